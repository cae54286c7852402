"""Shared fixtures for SingleDetect tests."""

import numpy as np
import pytest

from singledetect.detection import DetectionEngine, PointIdAllocator, Viewport


@pytest.fixture
def allocator():
    return PointIdAllocator()


@pytest.fixture
def viewport():
    return Viewport(0, 0, 600, 500)


@pytest.fixture
def make_engine(allocator, viewport):
    """Build an engine from a list of (x, y) coordinates."""

    def _make(coords, max_distance=45.0, strategy="grid", bounds=None):
        points = [allocator.create(x, y) for x, y in coords]
        return DetectionEngine(points, bounds or viewport, max_distance, strategy)

    return _make


def _random_coords(seed, count, width=600.0, height=500.0):
    rng = np.random.default_rng(seed)
    coords = rng.uniform(0, 1, size=(count, 2)) * (width, height)
    snapped = rng.random(count) < 0.2
    coords[snapped] = np.round(coords[snapped] / 45.0) * 45.0
    return [(float(x), float(y)) for x, y in coords]


@pytest.fixture
def random_coords():
    """Mix of float coordinates and coordinates snapped onto 45-unit cell edges."""
    return _random_coords
