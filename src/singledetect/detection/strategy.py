"""
Detection strategies.

A strategy computes the singles set and k-NN results for a DetectionEngine.
Two interchangeable variants share one contract:

- NaiveStrategy: exhaustive pairwise scan, used as the correctness oracle.
- GridStrategy: only tests candidates found through the engine's GridIndex.
"""

import heapq
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from singledetect.detection.grid import CELL_SIDE_MARGIN, GridIndex
from singledetect.detection.point import Point
from singledetect.detection.results import KnnResult, PointDistance, SingleDetectionResult

if TYPE_CHECKING:
    from singledetect.detection.engine import DetectionEngine

logger = logging.getLogger(__name__)


def _sort_key(item: PointDistance) -> tuple[float, int]:
    return item.sort_key


class DetectionStrategy(ABC):
    """Base class for single detection / k-NN algorithms."""

    name: str = "Detection Strategy"

    @abstractmethod
    def find_singles(self, engine: "DetectionEngine") -> set[Point]:
        """Return every point with no other point within ``engine.max_distance``."""

    @abstractmethod
    def find_knn(self, engine: "DetectionEngine", origin: Point, k: int) -> list[PointDistance]:
        """Return the k nearest points to ``origin``, sorted, origin excluded."""

    def update_singles(self, engine: "DetectionEngine") -> SingleDetectionResult:
        """Recompute the singles set from scratch and time it."""
        start = time.perf_counter()
        singles = self.find_singles(engine)
        elapsed_ms = (time.perf_counter() - start) * 1000

        return SingleDetectionResult(
            singles=frozenset(singles),
            elapsed_ms=elapsed_ms,
            strategy=self.name,
        )

    def update_knn(self, engine: "DetectionEngine", origin: Point, k: int) -> KnnResult:
        """Run a k-NN query and time it."""
        start = time.perf_counter()
        neighbors = self.find_knn(engine, origin, k)
        elapsed_ms = (time.perf_counter() - start) * 1000

        return KnnResult(origin=origin, k=k, neighbors=neighbors, elapsed_ms=elapsed_ms)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NaiveStrategy(DetectionStrategy):
    """Compares every point against every other point."""

    name = "Naive Strategy"

    def find_singles(self, engine: "DetectionEngine") -> set[Point]:
        """O(n^2)."""
        points = engine.points
        max_distance = engine.max_distance
        singles = set()

        for p1 in points:
            for p2 in points:
                if p1 is p2:
                    continue
                if not p1.distance_to(p2.x, p2.y) > max_distance:
                    break
            else:
                singles.add(p1)

        return singles

    def find_knn(self, engine: "DetectionEngine", origin: Point, k: int) -> list[PointDistance]:
        """O(n log n), dominated by the sort."""
        distances = [
            PointDistance(point=p, distance=origin.distance_to(p.x, p.y))
            for p in engine.points
            if p != origin
        ]
        distances.sort(key=_sort_key)
        return distances[:k]


class GridStrategy(DetectionStrategy):
    """
    Prunes candidates with the engine's grid index.

    The cell side is at least the threshold, so every neighbor within
    ``max_distance`` of a point sits in the 3x3 block around the point's cell.
    Expected cost approaches O(n) for evenly spread points and degrades toward
    O(n^2) when most points share a cell.
    """

    name = "Grid Strategy"

    def find_singles(self, engine: "DetectionEngine") -> set[Point]:
        grid = engine.grid
        max_distance = engine.max_distance
        singles = set()

        for p1 in engine.points:
            for p2 in grid.candidates(p1.cell):
                if p2 is p1:
                    continue
                if not p1.distance_to(p2.x, p2.y) > max_distance:
                    break
            else:
                singles.add(p1)

        return singles

    def find_knn(self, engine: "DetectionEngine", origin: Point, k: int) -> list[PointDistance]:
        """
        Expand the search ring by ring from the origin's cell.

        Starts with the 3x3 block, then adds the 5x5 ring and so on, until at
        least k candidates are known and the k-th best is strictly closer than
        any point outside the scanned block can be.
        """
        grid = engine.grid
        others = len(engine) - (1 if origin in engine else 0)

        if k >= others:
            # Everything is returned anyway
            return NaiveStrategy().find_knn(engine, origin, k)

        cx, cy = grid.cell_of(origin.x, origin.y)
        max_radius = max(cx, grid.width - 1 - cx, cy, grid.height - 1 - cy)

        found: list[PointDistance] = []
        self._collect(grid, grid.neighbor_cells(cx, cy, 1), origin, found)

        radius = 1
        while radius < max_radius:
            if len(found) >= k:
                kth = heapq.nsmallest(k, found, key=_sort_key)[-1]
                if kth.distance < self._covered_distance(grid, origin, cx, cy, radius):
                    break
            radius += 1
            self._collect(grid, grid.ring_cells(cx, cy, radius), origin, found)

        logger.debug(f"k-NN for {origin!r}: k={k}, radius={radius}, candidates={len(found)}")
        return heapq.nsmallest(k, found, key=_sort_key)

    @staticmethod
    def _collect(grid: GridIndex, cells, origin: Point, found: list[PointDistance]) -> None:
        for cell in cells:
            for p in grid.points_in(cell):
                if p != origin:
                    found.append(PointDistance(point=p, distance=origin.distance_to(p.x, p.y)))

    @staticmethod
    def _covered_distance(grid: GridIndex, origin: Point, cx: int, cy: int, radius: int) -> float:
        """
        Lower bound on the distance from origin to any point outside the
        block of cells within ``radius`` of (cx, cy). Block sides lying on the
        grid border have nothing beyond them.
        """
        side = grid.cell_side
        vp = grid.viewport
        gaps = []

        if cx - radius > 0:
            gaps.append(origin.x - (vp.x_min + (cx - radius) * side))
        if cx + radius < grid.width - 1:
            gaps.append(vp.x_min + (cx + radius + 1) * side - origin.x)
        if cy - radius > 0:
            gaps.append(origin.y - (vp.y_min + (cy - radius) * side))
        if cy + radius < grid.height - 1:
            gaps.append(vp.y_min + (cy + radius + 1) * side - origin.y)

        if not gaps:
            return math.inf
        # Absorb rounding in the cell assignment of points right on an edge
        return min(gaps) - side * CELL_SIDE_MARGIN


_STRATEGIES: dict[str, type[DetectionStrategy]] = {
    "naive": NaiveStrategy,
    "grid": GridStrategy,
}


def create_strategy(name: str) -> DetectionStrategy:
    """Build a strategy from its configuration name ('naive' or 'grid')."""
    try:
        return _STRATEGIES[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown detection strategy {name!r}, expected one of {sorted(_STRATEGIES)}"
        ) from None
