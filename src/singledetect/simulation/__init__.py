"""
Simulation collaborators for SingleDetect: random dots, movement and the
frame driver. The OpenCV visualizer is imported from
``singledetect.simulation.visualizer`` directly so the core does not need
OpenCV installed.
"""

from singledetect.simulation.animation import Animation, random_points
from singledetect.simulation.driver import FrameDriver, FrameStats

__all__ = [
    "Animation",
    "random_points",
    "FrameDriver",
    "FrameStats",
]
