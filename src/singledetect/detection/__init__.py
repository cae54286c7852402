"""Single detection core: points, grid index, strategies and engine."""

from singledetect.detection.point import Point, PointIdAllocator, Viewport
from singledetect.detection.grid import GridCell, GridIndex, cell_side_for
from singledetect.detection.results import KnnResult, PointDistance, SingleDetectionResult
from singledetect.detection.strategy import (
    DetectionStrategy,
    GridStrategy,
    NaiveStrategy,
    create_strategy,
)
from singledetect.detection.engine import DetectionEngine

__all__ = [
    "Point",
    "PointIdAllocator",
    "Viewport",
    "GridCell",
    "GridIndex",
    "cell_side_for",
    "KnnResult",
    "PointDistance",
    "SingleDetectionResult",
    "DetectionStrategy",
    "GridStrategy",
    "NaiveStrategy",
    "create_strategy",
    "DetectionEngine",
]
