"""
Point data model.

A point has a fixed identity and a mutable position. Every coordinate write
goes through ``Point.set_position`` so the grid bucket holding the point is
reconciled before any neighbor query can run.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from singledetect.detection.grid import GridCell, GridIndex


@dataclass(frozen=True)
class Viewport:
    """Axis-aligned rectangle bounding valid point coordinates."""

    x_min: float
    y_min: float
    x_max: float
    y_max: float

    def __post_init__(self) -> None:
        if not self.x_max > self.x_min or not self.y_max > self.y_min:
            raise ValueError(
                f"Degenerate viewport: x [{self.x_min}, {self.x_max}], y [{self.y_min}, {self.y_max}]"
            )

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    def contains(self, x: float, y: float) -> bool:
        """Check if (x, y) lies inside the viewport (bounds inclusive)."""
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

    def clamp(self, x: float, y: float) -> tuple[float, float]:
        """Return (x, y) pulled back inside the viewport."""
        return (
            min(max(x, self.x_min), self.x_max),
            min(max(y, self.y_min), self.y_max),
        )


class Point:
    """
    A 2-D dot with a stable identifier.

    Equality and hashing use ``uid`` only, so two points stacked on the same
    coordinates are still two points.

    Example:
        >>> allocator = PointIdAllocator()
        >>> p = allocator.create(10, 20)
        >>> p.set_position(12, 20)
        >>> p.distance_to(12, 24)
        4.0
    """

    __slots__ = ("_uid", "_x", "_y", "_cell", "_index", "data")

    def __init__(self, uid: int, x: float, y: float, data: Any = None):
        self._uid = int(uid)
        self._x = float(x)
        self._y = float(y)
        self._cell: GridCell | None = None
        self._index: GridIndex | None = None
        self.data = data

    @property
    def uid(self) -> int:
        return self._uid

    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    @property
    def cell(self) -> GridCell | None:
        """Grid cell the point is bucketed in, or None when not indexed."""
        return self._cell

    def set_position(self, x: float, y: float) -> None:
        """
        Move the point.

        If the point is attached to a grid index and the move crosses a cell
        boundary, the point is moved to the new bucket before returning.
        Coordinates outside the viewport, infinities included, are accepted.
        A NaN coordinate raises ValueError and leaves the point unchanged.
        """
        x = float(x)
        y = float(y)
        if math.isnan(x) or math.isnan(y):
            raise ValueError(f"Cannot move {self!r} to a NaN coordinate ({x}, {y})")

        # Resolve the new cell before touching any state
        cell = self._index.cell_of(x, y) if self._index is not None else None

        self._x = x
        self._y = y
        if self._index is not None:
            self._index.relocate(self, cell)

    def distance_to(self, x: float, y: float) -> float:
        """Euclidean distance to (x, y), unrounded."""
        dx = self._x - x
        dy = self._y - y
        return math.sqrt(dx * dx + dy * dy)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self._uid == other._uid

    def __hash__(self) -> int:
        return hash(self._uid)

    def __repr__(self) -> str:
        return f"Point(uid={self._uid}, x={self._x}, y={self._y})"


class PointIdAllocator:
    """Hands out monotonically increasing point identifiers."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def next_id(self) -> int:
        return next(self._counter)

    def create(self, x: float, y: float, data: Any = None) -> Point:
        """Create a point with the next identifier."""
        return Point(self.next_id(), x, y, data=data)
