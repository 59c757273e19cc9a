"""
Core grid layout classes for terminal-based UIs.

This module computes the boundaries of a weighted grid of columns and rows,
works out which grid intersections are hidden underneath placed widgets, and
draws the grid lines and box-drawing junctions onto a character buffer.
"""

import heapq
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from blessed import Terminal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridDimension:
    """One column or row of the grid.

    Attributes:
        min: Minimum content size in cells, not counting border lines
        weight: Share of the remaining space this dimension receives
    """
    min: int = 0
    weight: int = 1

    def __post_init__(self):
        for name in ('min', 'weight'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"GridDimension.{name} must be a non-negative int, got {value!r}")


@dataclass(frozen=True)
class Rect:
    """A rectangle in cell units.

    Used both for drawing regions (terminal cells) and for widget spans
    (grid cells).
    """
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def __post_init__(self):
        for name in ('x', 'y', 'width', 'height'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"Rect.{name} must be a non-negative int, got {value!r}")

    @property
    def right(self):
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def bottom(self):
        """Exclusive bottom edge."""
        return self.y + self.height

    def clip(self, bounds: 'Rect') -> 'Rect':
        """Intersect with bounds, collapsing to zero size when they don't overlap."""
        x = max(bounds.x, min(self.x, bounds.right))
        y = max(bounds.y, min(self.y, bounds.bottom))
        right = max(x, min(self.right, bounds.right))
        bottom = max(y, min(self.bottom, bounds.bottom))
        return Rect(x, y, right - x, bottom - y)


def allocate_extra(dimensions: Sequence[GridDimension], extra: int) -> List[int]:
    """Split extra cells between dimensions in proportion to their weights.

    Uses the largest-remainder method: every dimension first receives the
    whole part of its ideal share, then the leftover cells go one at a time
    to the dimensions with the largest fractional remainder. Ties go to the
    lowest index.

    Args:
        dimensions: Ordered columns or rows
        extra: Number of cells to distribute

    Returns:
        Extra cells per dimension. Sums to ``extra`` unless every weight is
        zero, in which case nothing is distributed.
    """
    allocation = [0] * len(dimensions)
    total_weight = sum(dim.weight for dim in dimensions)
    if extra <= 0 or total_weight == 0:
        return allocation

    heap = []
    for index, dim in enumerate(dimensions):
        share, remainder = divmod(extra * dim.weight, total_weight)
        allocation[index] = share
        # Remainders are in units of 1/total_weight of a cell
        heapq.heappush(heap, (-remainder, index))

    leftover = extra - sum(allocation)
    assert 0 <= leftover < len(dimensions), "largest remainder leftover out of range"
    for _ in range(leftover):
        _, index = heapq.heappop(heap)
        allocation[index] += 1

    assert sum(allocation) == extra
    return allocation


def layout_axis(dimensions: Sequence[GridDimension], start: int, length: int) -> List[int]:
    """Compute the boundary coordinates of one axis.

    Each dimension takes one cell for its leading border line plus its
    minimum size, and the axis takes one more cell for the trailing border.
    Whatever is left of ``length`` is shared out by weight. When the space
    is fully shared out the last boundary is ``start + length - 1``.

    Returns:
        ``len(dimensions) + 1`` absolute coordinates, one per grid line.
    """
    taken = sum(1 + dim.min for dim in dimensions) + 1
    remaining = length - taken
    extras = allocate_extra(dimensions, remaining)

    boundaries = [start]
    position = start
    for dim, extra in zip(dimensions, extras):
        position += 1 + dim.min + extra
        boundaries.append(position)

    assert len(boundaries) == len(dimensions) + 1
    return boundaries


class OcclusionMap:
    """Visibility flags for every grid intersection point.

    There is one more intersection than cells along each axis because of the
    outer borders. Flags are stored flat, indexed by ``row * columns + col``.

    Attributes:
        columns: Number of intersection points across
        rows: Number of intersection points down
    """

    def __init__(self, columns: int, rows: int):
        self.columns = columns
        self.rows = rows
        self._visible = [True] * (columns * rows)

    @classmethod
    def build(cls, column_count: int, row_count: int, spans: Iterable[Rect]) -> 'OcclusionMap':
        """Build the map for a grid of cells, hiding points inside each span.

        Args:
            column_count: Number of grid columns (cells, not lines)
            row_count: Number of grid rows
            spans: Widget spans in grid-cell coordinates
        """
        occlusion = cls(column_count + 1, row_count + 1)
        grid = Rect(0, 0, column_count, row_count)
        for span in spans:
            clipped = span.clip(grid)
            # A span one cell wide has no intersection strictly inside it
            if clipped.width <= 1 or clipped.height <= 1:
                continue
            for row in range(clipped.y + 1, clipped.bottom):
                for col in range(clipped.x + 1, clipped.right):
                    occlusion.occlude(col, row)
        return occlusion

    def _index(self, col, row):
        if not (0 <= col < self.columns and 0 <= row < self.rows):
            raise IndexError(f"intersection ({col}, {row}) outside {self.columns}x{self.rows} grid")
        return row * self.columns + col

    def is_visible(self, col: int, row: int) -> bool:
        """Whether the point exists and is not occluded."""
        if not (0 <= col < self.columns and 0 <= row < self.rows):
            return False
        return self._visible[row * self.columns + col]

    def occlude(self, col: int, row: int):
        """Hide a point. Hidden points stay hidden."""
        self._visible[self._index(col, row)] = False

    def occluded_points(self) -> List[Tuple[int, int]]:
        """All hidden points as (col, row) pairs, row-major."""
        return [
            (index % self.columns, index // self.columns)
            for index, visible in enumerate(self._visible)
            if not visible
        ]

    def __eq__(self, other):
        if not isinstance(other, OcclusionMap):
            return NotImplemented
        return (self.columns, self.rows, self._visible) == (other.columns, other.rows, other._visible)


# Corner tables are indexed by neighbour bits: up=1, down=2, left=4, right=8
UP, DOWN, LEFT, RIGHT = 1, 2, 4, 8

LIGHT_GLYPHS = (
    ' ',  # none
    '╵',  # up
    '╷',  # down
    '│',  # up down
    '╴',  # left
    '┘',  # up left
    '┐',  # down left
    '┤',  # up down left
    '╶',  # right
    '└',  # up right
    '┌',  # down right
    '├',  # up down right
    '─',  # left right
    '┴',  # up left right
    '┬',  # down left right
    '┼',  # all
)

ASCII_GLYPHS = (
    ' ', '|', '|', '|',
    '-', '+', '+', '+',
    '-', '+', '+', '+',
    '-', '+', '+', '+',
)


def corner_glyph(up: bool, down: bool, left: bool, right: bool,
                 glyphs: Sequence[str] = LIGHT_GLYPHS) -> str:
    """Pick the junction glyph for a point given which neighbours connect to it."""
    pattern = (UP if up else 0) | (DOWN if down else 0) | (LEFT if left else 0) | (RIGHT if right else 0)
    return glyphs[pattern]


def horizontal_glyph(glyphs: Sequence[str]) -> str:
    return glyphs[LEFT | RIGHT]


def vertical_glyph(glyphs: Sequence[str]) -> str:
    return glyphs[UP | DOWN]


class Buffer:
    """A mutable grid of characters addressed by absolute terminal coordinates.

    Writes outside the buffer are dropped, so callers can draw layouts that
    overflow a too-small region without clipping them first.

    Attributes:
        x: Column of the buffer's left edge
        y: Row of the buffer's top edge
        width: Number of columns
        height: Number of rows
        fill: Character used for cells that have not been written
    """

    def __init__(self, width: int, height: int, fill: str = ' ', x: int = 0, y: int = 0):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.fill = fill
        self._cells: List[List[str]] = [[fill] * width for _ in range(height)]

    def contains(self, x, y):
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def set(self, x: int, y: int, char: str):
        """Write a character at (x, y) if it falls inside the buffer."""
        if self.contains(x, y):
            self._cells[y - self.y][x - self.x] = char

    def get(self, x: int, y: int) -> str:
        """Character at (x, y), or the fill character outside the buffer."""
        if self.contains(x, y):
            return self._cells[y - self.y][x - self.x]
        return self.fill

    def lines(self) -> List[str]:
        return [''.join(row) for row in self._cells]

    def render(self) -> str:
        """The whole buffer as newline separated text."""
        return '\n'.join(self.lines())

    def flush(self, term: Terminal):
        """Write every row of the buffer to the terminal at its position."""
        for offset, line in enumerate(self.lines()):
            print(term.move(self.y + offset, self.x) + line, end='')
        print('', end='', flush=True)


def draw_borders(buffer: Buffer, xs: Sequence[int], ys: Sequence[int],
                 visibility: OcclusionMap, glyphs: Sequence[str] = LIGHT_GLYPHS):
    """Draw the line segments between adjacent visible intersections.

    Only cells strictly between two boundaries are written; the junction
    cells themselves belong to :func:`draw_corners`.
    """
    horizontal = horizontal_glyph(glyphs)
    vertical = vertical_glyph(glyphs)

    for row, y in enumerate(ys):
        for col in range(len(xs) - 1):
            if visibility.is_visible(col, row) and visibility.is_visible(col + 1, row):
                for x in range(xs[col] + 1, xs[col + 1]):
                    buffer.set(x, y, horizontal)

    for col, x in enumerate(xs):
        for row in range(len(ys) - 1):
            if visibility.is_visible(col, row) and visibility.is_visible(col, row + 1):
                for y in range(ys[row] + 1, ys[row + 1]):
                    buffer.set(x, y, vertical)


def draw_corners(buffer: Buffer, xs: Sequence[int], ys: Sequence[int],
                 visibility: OcclusionMap, glyphs: Sequence[str] = LIGHT_GLYPHS):
    """Draw a junction glyph on every visible intersection."""
    for row, y in enumerate(ys):
        for col, x in enumerate(xs):
            if not visibility.is_visible(col, row):
                continue
            buffer.set(x, y, corner_glyph(
                visibility.is_visible(col, row - 1),
                visibility.is_visible(col, row + 1),
                visibility.is_visible(col - 1, row),
                visibility.is_visible(col + 1, row),
                glyphs,
            ))


@dataclass(frozen=True)
class LayoutResult:
    """Computed geometry for one drawing region.

    Attributes:
        region: The region the layout was computed for
        xs: Column boundary coordinates, one per vertical grid line
        ys: Row boundary coordinates, one per horizontal grid line
        visibility: Which intersections are visible
    """
    region: Rect
    xs: Tuple[int, ...]
    ys: Tuple[int, ...]
    visibility: OcclusionMap


class GridLayout:
    """A weighted grid of columns and rows with widgets spanning its cells.

    The computed layout is cached against the drawing region it was made
    for. Changing the columns, rows or widgets marks the cache dirty, and
    :meth:`recompute_if_needed` rebuilds it on the next call.

    Attributes:
        glyphs: 16-entry junction table used when drawing
        compute_count: How many times the layout has been recomputed
    """

    def __init__(self, columns: Iterable[GridDimension] = (), rows: Iterable[GridDimension] = (),
                 widgets: Iterable[Rect] = (), glyphs: Sequence[str] = LIGHT_GLYPHS):
        if len(glyphs) != 16:
            raise ValueError(f"glyph table needs 16 entries, got {len(glyphs)}")
        self.glyphs = glyphs
        self._columns: Tuple[GridDimension, ...] = tuple(columns)
        self._rows: Tuple[GridDimension, ...] = tuple(rows)
        self._widgets: List[Rect] = list(widgets)
        self._result: Optional[LayoutResult] = None
        self._dirty = True
        self.compute_count = 0

    @property
    def columns(self) -> Tuple[GridDimension, ...]:
        return self._columns

    @property
    def rows(self) -> Tuple[GridDimension, ...]:
        return self._rows

    @property
    def widgets(self) -> Tuple[Rect, ...]:
        return tuple(self._widgets)

    @property
    def dirty(self) -> bool:
        """Whether the next layout request has to recompute."""
        return self._dirty

    def set_columns(self, columns: Iterable[GridDimension]):
        self._columns = tuple(columns)
        self._dirty = True

    def set_rows(self, rows: Iterable[GridDimension]):
        self._rows = tuple(rows)
        self._dirty = True

    def add_widget(self, span: Rect):
        """Register a widget covering a span of grid cells."""
        self._widgets.append(span)
        self._dirty = True

    def recompute_if_needed(self, region: Rect) -> LayoutResult:
        """Return the layout for region, recomputing only when the cache is stale."""
        if not self._dirty and self._result is not None and self._result.region == region:
            logger.debug("grid layout cache hit for %s", region)
            return self._result

        xs = layout_axis(self._columns, region.x, region.width)
        ys = layout_axis(self._rows, region.y, region.height)
        visibility = OcclusionMap.build(len(self._columns), len(self._rows), self._widgets)
        self._result = LayoutResult(region, tuple(xs), tuple(ys), visibility)
        self._dirty = False
        self.compute_count += 1
        logger.debug(
            "grid layout recomputed for %s: %d column lines, %d row lines, %d occluded points",
            region, len(xs), len(ys), len(visibility.occluded_points()),
        )
        return self._result

    def render(self, region: Rect, buffer: Buffer) -> LayoutResult:
        """Draw the grid lines and junctions for region into buffer."""
        result = self.recompute_if_needed(region)
        draw_borders(buffer, result.xs, result.ys, result.visibility, self.glyphs)
        draw_corners(buffer, result.xs, result.ys, result.visibility, self.glyphs)
        return result

    def cell_area(self, span: Rect, region: Rect) -> Rect:
        """Absolute area inside the border lines around a span of cells.

        Hosts use this to position widget contents. Spans are clipped to the
        grid; a span entirely outside it yields an empty rect.
        """
        result = self.recompute_if_needed(region)
        clipped = span.clip(Rect(0, 0, len(self._columns), len(self._rows)))
        if clipped.width == 0 or clipped.height == 0:
            return Rect(result.xs[clipped.x], result.ys[clipped.y], 0, 0)
        left = result.xs[clipped.x] + 1
        top = result.ys[clipped.y] + 1
        return Rect(
            left,
            top,
            max(0, result.xs[clipped.right] - left),
            max(0, result.ys[clipped.bottom] - top),
        )


class ConstrainedRect:
    """A placement resolved inside a container rect.

    Fields of the requested placement may be None (centre the grid, or use
    the full container size), an int, or a float. Floats are relative values
    (0.0 to 1.0) giving a fraction of the container, so a grid placed with
    relative values follows the terminal when it is resized. The resolved
    rect never extends past the container.

    Attributes:
        base_x, base_y, base_width, base_height: Requested placement
        container: Rect the placement is clamped to
    """

    def __init__(self, x=None, y=None, width=None, height=None, container: Rect = Rect()):
        self.base_x = x
        self.base_y = y
        self.base_width = width
        self.base_height = height
        self.container = container

    @staticmethod
    def _resolve(value: Union[int, float], low: int, high: int) -> int:
        """Clamp a value between low and high, scaling relative float values."""
        if isinstance(value, float):
            value = int(round(low + value * (high - low)))
        return max(low, min(high, value))

    def _requested_width(self):
        if self.base_width is None:
            return self.container.width
        return self._resolve(self.base_width, 0, self.container.width)

    def _requested_height(self):
        if self.base_height is None:
            return self.container.height
        return self._resolve(self.base_height, 0, self.container.height)

    @property
    def x(self) -> int:
        """X position, centered if no x was requested."""
        if self.base_x is None:
            return self.container.x + (self.container.width - self._requested_width()) // 2
        return self._resolve(self.base_x, self.container.x, self.container.right)

    @property
    def y(self) -> int:
        """Y position, centered if no y was requested."""
        if self.base_y is None:
            return self.container.y + (self.container.height - self._requested_height()) // 2
        return self._resolve(self.base_y, self.container.y, self.container.bottom)

    @property
    def width(self) -> int:
        """Width, shrunk to fit between x and the container's right edge."""
        return min(self._requested_width(), self.container.right - self.x)

    @property
    def height(self) -> int:
        """Height, shrunk to fit between y and the container's bottom edge."""
        return min(self._requested_height(), self.container.bottom - self.y)

    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)


class GridWindow:
    """Places a grid layout on a blessed terminal and draws it.

    Attributes:
        layout: The grid to draw
        position: Placement of the grid within the terminal
        term: Blessed Terminal instance
        redraw: Whether the grid needs to be redrawn
    """

    def __init__(self, layout: GridLayout, x=None, y=None, width=None, height=None,
                 term: Optional[Terminal] = None):
        self.layout = layout
        self.position = ConstrainedRect(x, y, width, height)
        if term is None:
            term = Terminal()
        self._term = None
        self.term = term
        self.redraw = True

    @property
    def term(self):
        """Blessed Terminal instance."""
        return self._term

    @term.setter
    def term(self, value):
        """Set terminal and handle resize."""
        self._term = value
        self.handle_resize()

    @property
    def region(self) -> Rect:
        """Absolute drawing region of the grid."""
        return self.position.rect()

    def handle_resize(self):
        """Fit the placement container to the current terminal size."""
        self.position.container = Rect(0, 0, self.term.width, self.term.height)
        self.redraw = True

    def draw(self) -> Buffer:
        """Render the grid into a fresh buffer and write it to the terminal."""
        self.redraw = False
        region = self.region
        buffer = Buffer(region.width, region.height, x=region.x, y=region.y)
        self.layout.render(region, buffer)
        buffer.flush(self.term)
        return buffer
