"""
Random dots and per-frame movement.

Moves a random subset of the engine's points each frame, keeping them inside
the viewport. All writes go through ``Point.set_position``.
"""

import logging

import numpy as np

from singledetect.detection.engine import DetectionEngine
from singledetect.detection.point import Point, PointIdAllocator, Viewport

logger = logging.getLogger(__name__)


def random_points(
    allocator: PointIdAllocator,
    viewport: Viewport,
    count: int,
    rng: np.random.Generator | None = None,
) -> list[Point]:
    """Create ``count`` points at random integer coordinates inside the viewport."""
    rng = rng if rng is not None else np.random.default_rng()

    xs = rng.integers(int(viewport.x_min), int(viewport.x_max), size=count, endpoint=False)
    ys = rng.integers(int(viewport.y_min), int(viewport.y_max), size=count, endpoint=False)
    return [allocator.create(float(x), float(y)) for x, y in zip(xs, ys)]


class Animation:
    """
    Moves a random selection of dots each frame.

    Example:
        >>> animation = Animation(engine, engine.viewport)
        >>> animation.select_moving(10)
        >>> animation.update_moving_position(-3, 3)
    """

    def __init__(
        self,
        engine: DetectionEngine,
        viewport: Viewport | None = None,
        rng: np.random.Generator | None = None,
    ):
        self._engine = engine
        self.viewport = viewport or engine.viewport
        self._rng = rng if rng is not None else np.random.default_rng()
        self.moving: list[Point] = []

    def select_moving(self, count: int) -> list[Point]:
        """Pick up to ``count`` distinct points to move this frame."""
        points = self._engine.points
        count = min(max(count, 0), len(points))
        if count == 0:
            self.moving = []
            return self.moving

        picks = self._rng.choice(len(points), size=count, replace=False)
        self.moving = [points[i] for i in picks]
        return self.moving

    def update_moving_position(self, low: int, high: int) -> None:
        """Shift every moving point by a random step in [low, high] per axis."""
        if high < low:
            raise ValueError(f"Invalid movement range [{low}, {high}]")

        steps = self._rng.integers(low, high, size=(len(self.moving), 2), endpoint=True)
        for point, (dx, dy) in zip(self.moving, steps):
            x, y = self.viewport.clamp(point.x + float(dx), point.y + float(dy))
            point.set_position(x, y)
