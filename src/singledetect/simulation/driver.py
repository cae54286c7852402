"""
Frame driver.

Runs one animation frame at a time: move dots, refresh singles and
optionally query k-NN. A frame requested while another is still running is
dropped, never queued.
"""

import logging
import time
from dataclasses import dataclass
from typing import Generator

from singledetect.config import get_settings
from singledetect.detection.engine import DetectionEngine
from singledetect.detection.results import KnnResult
from singledetect.simulation.animation import Animation

logger = logging.getLogger(__name__)


@dataclass
class FrameStats:
    """Diagnostics for one processed frame."""

    frame_index: int
    singles_count: int
    moving_count: int
    detect_ms: float
    frame_ms: float
    knn: KnnResult | None = None


class FrameDriver:
    """
    Drives the engine once per frame.

    Example:
        >>> driver = FrameDriver(engine, Animation(engine))
        >>> for stats in driver.run(frames=100):
        ...     print(stats.singles_count)
    """

    def __init__(
        self,
        engine: DetectionEngine,
        animation: Animation,
        moving_count: int | None = None,
        speed: int | None = None,
        knn_k: int | None = None,
        log_every: int | None = None,
        interval_ms: float | None = None,
    ):
        """
        Initialize frame driver.

        Args:
            engine: Engine to refresh each frame.
            animation: Mover for the engine's points.
            moving_count: Dots moved per frame. If None, uses settings.
            speed: Max step per axis per frame. If None, uses settings.
            knn_k: Neighbors to query from the first point; 0 disables.
                   If None, uses settings.
            log_every: Frames between perf log lines. If None, uses settings.
            interval_ms: Target time per frame used by run(); 0 runs as fast
                         as possible. May be changed while running. If None,
                         uses settings.
        """
        settings = get_settings()

        self.engine = engine
        self.animation = animation
        self.moving_count = moving_count if moving_count is not None else settings.dots_moving_count
        self.speed = speed if speed is not None else settings.movement_speed
        self.knn_k = knn_k if knn_k is not None else settings.knn_k
        self.log_every = log_every or settings.perf_log_every
        self.interval_ms = interval_ms if interval_ms is not None else settings.frame_interval_ms

        self._frame_index = 0
        self._skipped = 0

        # Always finish current frame update before next frame is started
        self._is_running_frame_update = False

    def step(self) -> FrameStats | None:
        """
        Process one frame.

        Returns:
            FrameStats, or None if a frame was already in progress.
        """
        if self._is_running_frame_update:
            self._skipped += 1
            logger.debug(f"Frame skipped, previous frame still running ({self._skipped} skipped)")
            return None

        self._is_running_frame_update = True
        try:
            t0 = time.perf_counter()

            self.animation.select_moving(self.moving_count)
            self.animation.update_moving_position(-self.speed, self.speed)

            detect_ms = self.engine.refresh_singles()

            knn = None
            if self.knn_k > 0 and len(self.engine) > 0:
                knn = self.engine.query_knn(self.engine.points[0], self.knn_k)

            frame_ms = (time.perf_counter() - t0) * 1000
            self._frame_index += 1

            stats = FrameStats(
                frame_index=self._frame_index,
                singles_count=len(self.engine.singles),
                moving_count=len(self.animation.moving),
                detect_ms=detect_ms,
                frame_ms=frame_ms,
                knn=knn,
            )
        finally:
            self._is_running_frame_update = False

        if self._frame_index % self.log_every == 0:
            logger.info(
                f"FRAME_PERF:\n"
                f"  Frame: {stats.frame_index}\n"
                f"  Singles: {stats.singles_count}/{len(self.engine)}\n"
                f"  Detect: {stats.detect_ms:.2f} ms ({self.engine.strategy.name})\n"
                f"  Total: {stats.frame_ms:.2f} ms"
            )

        return stats

    def run(
        self,
        frames: int | None = None,
        interval_ms: float | None = None,
    ) -> Generator[FrameStats, None, None]:
        """
        Run frames and yield their stats.

        Args:
            frames: Number of frames to run. None runs until the caller stops.
            interval_ms: Replaces ``self.interval_ms`` when given. The pacing
                         follows ``self.interval_ms``, so changing it between
                         frames takes effect on the next frame.
        """
        if interval_ms is not None:
            self.interval_ms = interval_ms

        produced = 0
        while frames is None or produced < frames:
            started = time.perf_counter()

            stats = self.step()
            if stats is not None:
                produced += 1
                yield stats

            # A slow frame simply delays the next one
            remaining = max(self.interval_ms, 0) / 1000.0 - (time.perf_counter() - started)
            if remaining > 0:
                time.sleep(remaining)

    @property
    def frame_index(self) -> int:
        return self._frame_index

    @property
    def skipped_frames(self) -> int:
        return self._skipped

    @property
    def is_running_frame_update(self) -> bool:
        return self._is_running_frame_update
