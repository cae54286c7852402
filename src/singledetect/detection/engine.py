"""
Single detection engine.

Owns the point set, the grid index and the active strategy, and keeps the
last singles / k-NN results for the caller to read back each frame.
"""

import logging
import numbers
from typing import Iterable

from singledetect.config import get_settings
from singledetect.detection.grid import GridIndex, cell_side_for
from singledetect.detection.point import Point, Viewport
from singledetect.detection.results import KnnResult, SingleDetectionResult
from singledetect.detection.strategy import DetectionStrategy, create_strategy

logger = logging.getLogger(__name__)


class DetectionEngine:
    """
    Detects singles and answers k-NN queries over a fixed set of moving points.

    The engine owns the structure of the point list (which points, how many);
    callers move individual points with ``Point.set_position`` between
    refreshes. Not safe for concurrent calls from multiple threads.

    Example:
        >>> from singledetect.detection import DetectionEngine, PointIdAllocator, Viewport
        >>> allocator = PointIdAllocator()
        >>> points = [allocator.create(0, 0), allocator.create(10, 0), allocator.create(100, 0)]
        >>> engine = DetectionEngine(points, Viewport(0, 0, 600, 500), max_distance=45)
        >>> _ = engine.refresh_singles()
        >>> [p.uid for p in engine.singles]
        [3]
    """

    def __init__(
        self,
        points: Iterable[Point],
        viewport: Viewport | None = None,
        max_distance: float | None = None,
        strategy: DetectionStrategy | str | None = None,
    ):
        """
        Initialize the engine.

        Args:
            points: Points to watch. Uids must be unique.
            viewport: Bounds of valid coordinates. If None, uses settings.
            max_distance: Threshold; a point whose nearest neighbor is farther
                          than this is a single. If None, uses settings.
            strategy: Strategy instance or name ('naive', 'grid').
                      If None, uses settings.
        """
        settings = get_settings()

        self._viewport = viewport or Viewport(
            settings.viewport_x_min,
            settings.viewport_y_min,
            settings.viewport_x_max,
            settings.viewport_y_max,
        )
        self._max_distance = float(max_distance if max_distance is not None else settings.max_distance)
        self._grid = GridIndex(self._viewport, cell_side_for(self._max_distance))

        self._strategy = self._resolve_strategy(strategy or settings.detection_strategy)

        self._points: list[Point] = []
        self._by_uid: dict[int, Point] = {}
        for point in points:
            if point.uid in self._by_uid:
                raise ValueError(f"Duplicate point uid: {point.uid}")
            if point.cell is not None:
                raise ValueError(f"{point!r} is already attached to another engine")
            self._by_uid[point.uid] = point
            self._points.append(point)

        for point in self._points:
            self._grid.insert(point)

        self._last_result = SingleDetectionResult(strategy=self._strategy.name)
        self._knn: KnnResult | None = None

        logger.info(
            f"Detection engine ready: {len(self._points)} points, "
            f"max_distance={self._max_distance}, cell_side={self._grid.cell_side:.6g}, "
            f"grid={self._grid.width}x{self._grid.height}, strategy={self._strategy.name}"
        )

    @staticmethod
    def _resolve_strategy(strategy: DetectionStrategy | str) -> DetectionStrategy:
        if isinstance(strategy, DetectionStrategy):
            return strategy
        return create_strategy(strategy)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def refresh_singles(self) -> float:
        """
        Recompute the singles set with the active strategy.

        Returns:
            Elapsed computation time in milliseconds.
        """
        self._last_result = self._strategy.update_singles(self)
        logger.debug(
            f"Singles refreshed: {self._last_result.count}/{len(self._points)} "
            f"in {self._last_result.elapsed_ms:.3f} ms ({self._strategy.name})"
        )
        return self._last_result.elapsed_ms

    def query_knn(self, origin: Point, k: int) -> KnnResult:
        """
        Find the k nearest points to ``origin``.

        Args:
            origin: Query point. Excluded from its own result.
            k: Number of neighbors, >= 0. k >= n-1 returns all other points.

        Returns:
            KnnResult sorted by ascending distance, ties by uid.

        Raises:
            TypeError: If k is not an integer.
            ValueError: If k is negative.
        """
        if isinstance(k, bool) or not isinstance(k, numbers.Integral):
            raise TypeError(f"k must be an integer, got {type(k).__name__}")
        if k < 0:
            raise ValueError(f"k must be >= 0, got {k}")
        k = int(k)

        if k == 0 or not self._points:
            self._knn = KnnResult(origin=origin, k=k)
        else:
            self._knn = self._strategy.update_knn(self, origin, k)
        return self._knn

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def points(self) -> tuple[Point, ...]:
        return tuple(self._points)

    @property
    def singles(self) -> frozenset[Point]:
        """Singles found by the last refresh."""
        return self._last_result.singles

    @property
    def last_result(self) -> SingleDetectionResult:
        return self._last_result

    @property
    def knn(self) -> KnnResult | None:
        """Result of the last k-NN query, if any."""
        return self._knn

    @property
    def strategy(self) -> DetectionStrategy:
        return self._strategy

    @strategy.setter
    def strategy(self, strategy: DetectionStrategy | str) -> None:
        self._strategy = self._resolve_strategy(strategy)
        logger.info(f"Detection strategy switched to {self._strategy.name}")

    @property
    def max_distance(self) -> float:
        return self._max_distance

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def grid(self) -> GridIndex:
        return self._grid

    @property
    def cell_side(self) -> float:
        return self._grid.cell_side

    @property
    def grid_width(self) -> int:
        return self._grid.width

    @property
    def grid_height(self) -> int:
        return self._grid.height

    def get(self, uid: int) -> Point | None:
        """Get a point by uid."""
        return self._by_uid.get(uid)

    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, point: object) -> bool:
        return isinstance(point, Point) and self._by_uid.get(point.uid) is not None
