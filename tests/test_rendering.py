"""Tests for the border and corner renderers and the Buffer surface."""

import pytest
from unittest.mock import Mock, patch
from blessed import Terminal
from term_grid import (
    ASCII_GLYPHS,
    LIGHT_GLYPHS,
    Buffer,
    OcclusionMap,
    Rect,
    corner_glyph,
    draw_borders,
    draw_corners,
)


def draw(xs, ys, visibility, glyphs=LIGHT_GLYPHS):
    buffer = Buffer(xs[-1] + 1, ys[-1] + 1)
    draw_borders(buffer, xs, ys, visibility, glyphs)
    draw_corners(buffer, xs, ys, visibility, glyphs)
    return buffer.lines()


class TestCornerGlyph:
    """Tests for the junction lookup table."""

    @pytest.mark.parametrize("up,down,left,right,expected", [
        (False, False, False, False, ' '),
        (True, False, False, False, '╵'),
        (False, True, False, False, '╷'),
        (False, False, True, False, '╴'),
        (False, False, False, True, '╶'),
        (True, True, False, False, '│'),
        (False, False, True, True, '─'),
        (True, False, True, False, '┘'),
        (True, False, False, True, '└'),
        (False, True, True, False, '┐'),
        (False, True, False, True, '┌'),
        (True, True, True, False, '┤'),
        (True, True, False, True, '├'),
        (False, True, True, True, '┬'),
        (True, False, True, True, '┴'),
        (True, True, True, True, '┼'),
    ])
    def test_light_glyphs(self, up, down, left, right, expected):
        """Test every neighbour pattern against the box-drawing set."""
        assert corner_glyph(up, down, left, right) == expected

    def test_tables_are_complete(self):
        """Test that both glyph tables cover all 16 patterns."""
        assert len(LIGHT_GLYPHS) == 16
        assert len(set(LIGHT_GLYPHS)) == 16
        assert len(ASCII_GLYPHS) == 16

    def test_ascii_glyphs(self):
        """Test the plain ASCII fallback."""
        assert corner_glyph(True, True, True, True, ASCII_GLYPHS) == '+'
        assert corner_glyph(False, False, True, True, ASCII_GLYPHS) == '-'
        assert corner_glyph(True, True, False, False, ASCII_GLYPHS) == '|'
        assert corner_glyph(False, False, False, False, ASCII_GLYPHS) == ' '


class TestDrawing:
    """Tests for drawing borders and corners onto a buffer."""

    def test_plain_grid(self):
        """Test a 2x2 grid with nothing placed on it."""
        lines = draw([0, 2, 4], [0, 2, 4], OcclusionMap(3, 3))
        assert lines == [
            '┌─┬─┐',
            '│ │ │',
            '├─┼─┤',
            '│ │ │',
            '└─┴─┘',
        ]

    def test_spanning_widget_breaks_lines(self):
        """Test that a widget over every cell leaves only the outer ring."""
        visibility = OcclusionMap.build(2, 2, [Rect(0, 0, 2, 2)])
        lines = draw([0, 2, 4], [0, 2, 4], visibility)
        assert lines == [
            '┌───┐',
            '│   │',
            '│   │',
            '│   │',
            '└───┘',
        ]

    def test_partial_span(self):
        """Test a widget covering the left two columns of a 3x2 grid."""
        visibility = OcclusionMap.build(3, 2, [Rect(0, 0, 2, 2)])
        lines = draw([0, 2, 4, 6], [0, 2, 4], visibility)
        assert lines == [
            '┌───┬─┐',
            '│   │ │',
            '│   ├─┤',
            '│   │ │',
            '└───┴─┘',
        ]

    def test_ascii_grid(self):
        """Test drawing with the ASCII glyph set."""
        lines = draw([0, 2, 4], [0, 2], OcclusionMap(3, 2), ASCII_GLYPHS)
        assert lines == [
            '+-+-+',
            '| | |',
            '+-+-+',
        ]

    def test_interiors_untouched(self):
        """Test that cell interiors keep whatever was there."""
        buffer = Buffer(5, 3, fill='.')
        visibility = OcclusionMap(3, 2)
        draw_borders(buffer, [0, 2, 4], [0, 2], visibility)
        draw_corners(buffer, [0, 2, 4], [0, 2], visibility)
        assert buffer.get(1, 1) == '.'
        assert buffer.get(3, 1) == '.'

    def test_occluded_points_are_skipped(self):
        """Test that no glyph is drawn on a hidden junction."""
        buffer = Buffer(5, 5, fill='.')
        visibility = OcclusionMap.build(2, 2, [Rect(0, 0, 2, 2)])
        draw_corners(buffer, [0, 2, 4], [0, 2, 4], visibility)
        assert buffer.get(2, 2) == '.'

    def test_drawing_is_idempotent(self):
        """Test that drawing twice gives the same buffer."""
        visibility = OcclusionMap.build(3, 2, [Rect(1, 0, 2, 2)])
        assert draw([0, 2, 4, 6], [0, 2, 4], visibility) == draw([0, 2, 4, 6], [0, 2, 4], visibility)


class TestBuffer:
    """Tests for the character buffer."""

    def test_set_and_get(self):
        """Test writing and reading a cell."""
        buffer = Buffer(3, 2)
        buffer.set(1, 1, 'x')
        assert buffer.get(1, 1) == 'x'
        assert buffer.render() == '   \n x '

    def test_writes_outside_are_dropped(self):
        """Test that out of range writes are clipped."""
        buffer = Buffer(2, 2)
        buffer.set(5, 0, 'x')
        buffer.set(-1, 0, 'x')
        assert buffer.lines() == ['  ', '  ']
        assert buffer.get(5, 0) == ' '

    def test_absolute_origin(self):
        """Test that a buffer is addressed by absolute coordinates."""
        buffer = Buffer(2, 2, x=10, y=5)
        buffer.set(11, 6, 'x')
        buffer.set(0, 0, 'y')
        assert buffer.lines() == ['  ', ' x']

    @patch('builtins.print')
    def test_flush(self, mock_print):
        """Test that flush writes every row at its terminal position."""
        term = Mock(spec=Terminal)
        term.move = Mock(return_value='')
        buffer = Buffer(4, 3, x=2, y=1)

        buffer.flush(term)

        assert mock_print.call_count == 4
        term.move.assert_any_call(1, 2)
        term.move.assert_any_call(3, 2)
