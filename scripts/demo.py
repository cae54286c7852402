"""
Demo script for single detection.

Animates random dots and highlights singles in an OpenCV window.
Press 'g' to toggle the grid, 'n'/'s' to switch naive/grid strategy, 'q' to quit.
'+'/'-' change the movement speed, '['/']' shorten/lengthen the frame interval.
Use --headless to only log frame stats.
"""

import argparse
import logging
import sys

import cv2
import numpy as np

# Add src to path for development
sys.path.insert(0, str(__file__).replace("\\", "/").rsplit("/", 2)[0] + "/src")

from singledetect.config import get_settings
from singledetect.detection import DetectionEngine, PointIdAllocator, Viewport
from singledetect.simulation import Animation, FrameDriver, random_points
from singledetect.simulation.visualizer import DotVisualizer

INTERVAL_STEP_MS = 25


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="SingleDetect Demo")
    parser.add_argument("--dots", type=int, default=settings.dots_count, help="Number of dots")
    parser.add_argument(
        "--strategy",
        choices=["naive", "grid"],
        default=settings.detection_strategy,
        help="Detection strategy",
    )
    parser.add_argument(
        "--max-distance",
        type=float,
        default=settings.max_distance,
        help="Dots whose nearest neighbor is farther than this are singles",
    )
    parser.add_argument("--knn", type=int, default=settings.knn_k, help="k-NN from the first dot (0 = off)")
    parser.add_argument("--frames", type=int, default=None, help="Stop after this many frames")
    parser.add_argument("--seed", type=int, default=settings.random_seed, help="Random seed")
    parser.add_argument("--headless", action="store_true", help="Do not open a window")
    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    rng = np.random.default_rng(args.seed)
    viewport = Viewport(
        settings.viewport_x_min,
        settings.viewport_y_min,
        settings.viewport_x_max,
        settings.viewport_y_max,
    )

    points = random_points(PointIdAllocator(), viewport, args.dots, rng)
    engine = DetectionEngine(points, viewport, args.max_distance, args.strategy)
    driver = FrameDriver(engine, Animation(engine, viewport, rng), knn_k=args.knn)
    visualizer = DotVisualizer(dot_size=settings.dot_size, show_grid=settings.show_grid)

    interval_ms = 0 if args.headless else settings.frame_interval_ms
    window_name = f"{settings.app_name} - Demo"
    if not args.headless:
        cv2.namedWindow(window_name, cv2.WINDOW_AUTOSIZE)

    logger.info(f"Starting demo with {args.dots} dots, strategy: {args.strategy}")

    try:
        for stats in driver.run(frames=args.frames, interval_ms=interval_ms):
            if args.headless:
                continue

            cv2.imshow(window_name, visualizer.draw(engine, stats))

            key = cv2.waitKey(1) & 0xFF

            if key == ord("q"):
                logger.info("Quitting...")
                break
            elif key == ord("g"):
                visualizer.toggle_grid()
            elif key == ord("n"):
                engine.strategy = "naive"
            elif key == ord("s"):
                engine.strategy = "grid"
            elif key in (ord("+"), ord("=")):
                driver.speed += 1
                logger.info(f"Movement speed: {driver.speed}")
            elif key == ord("-"):
                driver.speed = max(0, driver.speed - 1)
                logger.info(f"Movement speed: {driver.speed}")
            elif key == ord("]"):
                driver.interval_ms += INTERVAL_STEP_MS
                logger.info(f"Frame interval: {driver.interval_ms:g} ms")
            elif key == ord("["):
                driver.interval_ms = max(0, driver.interval_ms - INTERVAL_STEP_MS)
                logger.info(f"Frame interval: {driver.interval_ms:g} ms")

    except KeyboardInterrupt:
        logger.info("Interrupted by user")

    finally:
        if not args.headless:
            cv2.destroyAllWindows()

    logger.info(f"Done after {driver.frame_index} frames, {len(engine.singles)} singles")


if __name__ == "__main__":
    main()
