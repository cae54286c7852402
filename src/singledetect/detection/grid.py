"""
Uniform grid index over the viewport.

Buckets points by square cell so proximity tests only look at the 3x3 block
of cells around a point instead of the whole point set.
"""

import math
from collections import defaultdict
from typing import Iterator

from singledetect.detection.point import Point, Viewport

GridCell = tuple[int, int]

# Relative slack on the cell side. Keeps two points exactly max_distance apart
# within one cell of each other despite rounding in the cell division.
CELL_SIDE_MARGIN = 1e-9


def cell_side_for(max_distance: float) -> float:
    """
    Derive the grid cell side from the detection threshold.

    Any side >= max_distance makes the 3x3 block exhaustive: points within
    max_distance are at most one cell apart per axis, and points two or more
    cells apart per axis are farther than one full side.
    """
    if not math.isfinite(max_distance) or max_distance <= 0:
        raise ValueError(f"max_distance must be a positive finite number, got {max_distance}")
    return max_distance * (1.0 + CELL_SIDE_MARGIN)


class GridIndex:
    """
    Mapping from grid cell to the points currently inside it.

    Cell coordinates are clamped to the grid, so points outside the viewport
    land in the nearest border cell.
    """

    def __init__(self, viewport: Viewport, cell_side: float):
        if not math.isfinite(cell_side) or cell_side <= 0:
            raise ValueError(f"cell_side must be a positive finite number, got {cell_side}")

        self.viewport = viewport
        self.cell_side = float(cell_side)
        self.width = max(1, math.ceil(viewport.width / self.cell_side))
        self.height = max(1, math.ceil(viewport.height / self.cell_side))

        # (cell_x, cell_y) -> uid -> point
        self._buckets: defaultdict[GridCell, dict[int, Point]] = defaultdict(dict)
        self._size = 0

    def cell_of(self, x: float, y: float) -> GridCell:
        """
        Cell containing (x, y), clamped to the grid bounds.

        Infinite coordinates land in the border cell on their side.

        Raises:
            ValueError: If either coordinate is NaN.
        """
        return (
            self._axis_cell(x, self.viewport.x_min, self.width),
            self._axis_cell(y, self.viewport.y_min, self.height),
        )

    def _axis_cell(self, value: float, origin: float, count: int) -> int:
        offset = (value - origin) / self.cell_side
        if math.isnan(offset):
            raise ValueError(f"Cannot place a NaN coordinate on the grid (got {value})")
        if not math.isfinite(offset):
            return 0 if offset < 0 else count - 1
        return min(max(math.floor(offset), 0), count - 1)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def insert(self, point: Point) -> None:
        """Attach a point to this index and bucket it by its position."""
        if point._index is not None and point._index is not self:
            raise ValueError(f"{point!r} is already attached to another grid index")
        if point._index is self:
            self.relocate(point)
            return

        cell = self.cell_of(point.x, point.y)
        self._buckets[cell][point.uid] = point
        point._cell = cell
        point._index = self
        self._size += 1

    def remove(self, point: Point) -> None:
        """Detach a point from this index."""
        if point._index is not self:
            raise ValueError(f"{point!r} is not attached to this grid index")

        self._discard(point._cell, point.uid)
        point._cell = None
        point._index = None
        self._size -= 1

    def relocate(self, point: Point, cell: GridCell | None = None) -> None:
        """Move a point to the bucket matching its current position."""
        if cell is None:
            cell = self.cell_of(point.x, point.y)
        if cell == point._cell:
            return
        self._discard(point._cell, point.uid)
        self._buckets[cell][point.uid] = point
        point._cell = cell

    def _discard(self, cell: GridCell | None, uid: int) -> None:
        bucket = self._buckets.get(cell)
        if bucket is None:
            return
        bucket.pop(uid, None)
        if not bucket:
            del self._buckets[cell]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def points_in(self, cell: GridCell) -> list[Point]:
        """Points bucketed in a single cell."""
        bucket = self._buckets.get(cell)
        return list(bucket.values()) if bucket else []

    def neighbor_cells(self, cell_x: int, cell_y: int, radius: int = 1) -> Iterator[GridCell]:
        """
        The (2r+1) x (2r+1) block of cells centered on (cell_x, cell_y),
        clipped to the grid. radius=1 gives the 3x3 candidate region.
        """
        x0 = max(cell_x - radius, 0)
        x1 = min(cell_x + radius, self.width - 1)
        y0 = max(cell_y - radius, 0)
        y1 = min(cell_y + radius, self.height - 1)
        for gx in range(x0, x1 + 1):
            for gy in range(y0, y1 + 1):
                yield (gx, gy)

    def ring_cells(self, cell_x: int, cell_y: int, radius: int) -> Iterator[GridCell]:
        """Cells at Chebyshev distance exactly ``radius``, clipped to the grid."""
        if radius == 0:
            ring = [(cell_x, cell_y)]
        else:
            ring = []
            for gx in range(cell_x - radius, cell_x + radius + 1):
                ring.append((gx, cell_y - radius))
                ring.append((gx, cell_y + radius))
            for gy in range(cell_y - radius + 1, cell_y + radius):
                ring.append((cell_x - radius, gy))
                ring.append((cell_x + radius, gy))

        for gx, gy in ring:
            if 0 <= gx < self.width and 0 <= gy < self.height:
                yield (gx, gy)

    def candidates(self, cell: GridCell, radius: int = 1) -> Iterator[Point]:
        """All points in the block of cells around ``cell``."""
        for key in self.neighbor_cells(cell[0], cell[1], radius):
            bucket = self._buckets.get(key)
            if bucket:
                yield from bucket.values()

    @property
    def occupied_cells(self) -> int:
        """Number of non-empty cells."""
        return len(self._buckets)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, point: object) -> bool:
        return isinstance(point, Point) and point._index is self

    def __repr__(self) -> str:
        return (
            f"GridIndex(cell_side={self.cell_side}, width={self.width}, "
            f"height={self.height}, points={self._size})"
        )
