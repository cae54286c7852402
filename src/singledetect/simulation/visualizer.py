"""
Dot visualization layer.

Responsible ONLY for drawing the engine state onto a canvas.
Does NOT move points or run detection.
"""

import cv2
import numpy as np

from singledetect.detection.engine import DetectionEngine
from singledetect.simulation.driver import FrameStats

_BACKGROUND = (255, 255, 255)
_DOT = (0, 0, 0)
_SINGLE = (0, 0, 255)
_GRID = (200, 200, 200)
_KNN = (0, 165, 255)
_TEXT = (60, 60, 60)


class DotVisualizer:
    """
    Draws dots, singles, the grid and k-NN links with OpenCV.

    Only reads engine state, never mutates it.
    """

    def __init__(self, dot_size: int = 4, show_grid: bool = True, panel_width: int = 220) -> None:
        self.dot_size = dot_size
        self.show_grid = show_grid
        self.panel_width = panel_width

    def toggle_grid(self) -> None:
        """Toggle grid rendering on/off."""
        self.show_grid = not self.show_grid

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def draw(self, engine: DetectionEngine, stats: FrameStats | None = None) -> np.ndarray:
        """
        Render the engine state.

        Args:
            engine: Engine to draw.
            stats: Optional frame stats for the info panel.

        Returns:
            A new BGR canvas of viewport size plus the info panel.
        """
        vp = engine.viewport
        width = int(np.ceil(vp.width))
        height = int(np.ceil(vp.height))

        canvas = np.full((height, width + self.panel_width, 3), _BACKGROUND, dtype=np.uint8)

        if self.show_grid:
            self._draw_grid(canvas, engine, width, height)
        if stats is not None and stats.knn is not None:
            self._draw_knn(canvas, engine, stats)
        self._draw_dots(canvas, engine)
        self._draw_panel(canvas, engine, stats, width)

        return canvas

    def _to_pixel(self, engine: DetectionEngine, x: float, y: float) -> tuple[int, int]:
        vp = engine.viewport
        return int(round(x - vp.x_min)), int(round(y - vp.y_min))

    def _draw_grid(self, canvas: np.ndarray, engine: DetectionEngine, width: int, height: int) -> None:
        side = engine.cell_side
        for i in range(1, engine.grid_width):
            x = int(round(i * side))
            cv2.line(canvas, (x, 0), (x, height - 1), _GRID, 1)
        for j in range(1, engine.grid_height):
            y = int(round(j * side))
            cv2.line(canvas, (0, y), (width - 1, y), _GRID, 1)

    def _draw_dots(self, canvas: np.ndarray, engine: DetectionEngine) -> None:
        singles = engine.singles
        radius = max(1, self.dot_size // 2)
        for point in engine.points:
            center = self._to_pixel(engine, point.x, point.y)
            if point in singles:
                cv2.circle(canvas, center, radius + 2, _SINGLE, -1, cv2.LINE_AA)
            else:
                cv2.circle(canvas, center, radius, _DOT, -1, cv2.LINE_AA)

    def _draw_knn(self, canvas: np.ndarray, engine: DetectionEngine, stats: FrameStats) -> None:
        origin = stats.knn.origin
        start = self._to_pixel(engine, origin.x, origin.y)
        for neighbor in stats.knn:
            end = self._to_pixel(engine, neighbor.point.x, neighbor.point.y)
            cv2.line(canvas, start, end, _KNN, 1, cv2.LINE_AA)

    def _draw_panel(
        self,
        canvas: np.ndarray,
        engine: DetectionEngine,
        stats: FrameStats | None,
        offset_x: int,
    ) -> None:
        lines = [
            "Detect Singles",
            f"Singles: {len(engine.singles)}",
            f"MaxDistance: {engine.max_distance:g}",
            f"Square: {engine.cell_side:.2f}",
            f"Dots: {len(engine)}",
            f"Grid: {engine.grid_width};{engine.grid_height}",
            f"Strategy: {engine.strategy.name}",
        ]
        if stats is not None:
            lines += [
                f"Frame: {stats.frame_index}",
                f"Moving dots: {stats.moving_count}",
                f"Detect: {stats.detect_ms:.2f} ms",
                f"Time per frame: {stats.frame_ms:.2f} ms",
            ]

        for i, line in enumerate(lines):
            cv2.putText(
                canvas,
                line,
                (offset_x + 10, 25 + i * 22),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.5,
                _TEXT,
                1,
                cv2.LINE_AA,
            )
