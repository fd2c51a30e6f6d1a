"""
Shared fixtures: a ground-truth homography and point sets mapped through it.
"""

import numpy as np
import pytest


def apply_h(H, pts):
    """Project N x 2 points through H with plain numpy (independent of the package)."""
    pts = np.asarray(pts, dtype=float)
    homog = np.hstack([pts, np.ones((len(pts), 1))]) @ np.asarray(H).T
    return homog[:, :2] / homog[:, 2:3]


@pytest.fixture
def true_h():
    return np.array([
        [1.1,    0.05,  12.0],
        [-0.04,  0.95,   7.0],
        [2e-4,  -1e-4,   1.0],
    ])


@pytest.fixture
def quad_points():
    return np.array([[10.0, 20.0], [180.0, 15.0], [170.0, 140.0], [25.0, 150.0]])


@pytest.fixture
def circle_points():
    # 15 points on a circle: no three of them are collinear
    theta = 2 * np.pi * np.arange(15) / 15
    return np.column_stack([120 + 80 * np.cos(theta), 100 + 80 * np.sin(theta)])


@pytest.fixture
def rgba_image():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(12, 16, 4), dtype=np.uint8)
