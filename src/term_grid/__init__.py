"""
Terminal Grid Library

A small layout engine for drawing weighted grids of box-drawing lines in
character-cell user interfaces. Computes column and row boundaries, hides the
grid junctions covered by spanning widgets, and draws the remaining lines onto
a character buffer that can be written to a Blessed terminal.
"""

from .term_grid import (
    ASCII_GLYPHS,
    LIGHT_GLYPHS,
    Buffer,
    ConstrainedRect,
    GridDimension,
    GridLayout,
    GridWindow,
    LayoutResult,
    OcclusionMap,
    Rect,
    allocate_extra,
    corner_glyph,
    draw_borders,
    draw_corners,
    layout_axis,
)

__all__ = [
    'ASCII_GLYPHS',
    'LIGHT_GLYPHS',
    'Buffer',
    'ConstrainedRect',
    'GridDimension',
    'GridLayout',
    'GridWindow',
    'LayoutResult',
    'OcclusionMap',
    'Rect',
    'allocate_extra',
    'corner_glyph',
    'draw_borders',
    'draw_corners',
    'layout_axis',
]

__version__ = '0.1.0'
