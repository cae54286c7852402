"""
SingleDetect.

Detects "singles" (points whose nearest neighbor lies farther than a fixed
threshold) in a moving 2-D point set and answers k-nearest-neighbor queries.
"""

from singledetect.detection import (
    DetectionEngine,
    DetectionStrategy,
    GridIndex,
    GridStrategy,
    KnnResult,
    NaiveStrategy,
    Point,
    PointDistance,
    PointIdAllocator,
    SingleDetectionResult,
    Viewport,
    create_strategy,
)

__version__ = "0.1.0"

__all__ = [
    "DetectionEngine",
    "DetectionStrategy",
    "GridIndex",
    "GridStrategy",
    "KnnResult",
    "NaiveStrategy",
    "Point",
    "PointDistance",
    "PointIdAllocator",
    "SingleDetectionResult",
    "Viewport",
    "create_strategy",
]
