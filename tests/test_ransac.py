"""
Unit tests for RANSAC estimation and the caller-level dispatch
"""

import numpy as np
import pytest

from homovision.geometry.ransac import (
    count_inliers,
    estimate_homography,
    ransac_homography,
    sample_indices,
)
from homovision.utils.config import RansacConfig
from homovision.utils.errors import FailureReason

from conftest import apply_h


@pytest.fixture
def contaminated(true_h, circle_points):
    """15 exact correspondences followed by 5 gross outliers"""
    inner = np.array([[100.0, 90.0], [140.0, 110.0], [115.0, 130.0],
                      [95.0, 70.0], [150.0, 80.0]])
    src = np.vstack([circle_points, inner])
    dst = apply_h(true_h, src)
    dst[15:] += np.array([[25.0, -30.0], [-40.0, 22.0], [30.0, 30.0],
                          [-24.0, -26.0], [45.0, 5.0]])
    return src, dst


class FixedSequence:
    """Stand-in generator returning a scripted sequence of integers."""

    def __init__(self, values):
        self.values = list(values)

    def integers(self, n):
        return self.values.pop(0)


class TestSampling:

    def test_duplicates_are_redrawn(self):
        assert sample_indices(FixedSequence([1, 1, 2, 2, 3, 0]), 5) == [1, 2, 3, 0]

    def test_distinct_and_in_range(self):
        rng = np.random.default_rng(3)
        for _ in range(50):
            idx = sample_indices(rng, 6)
            assert len(set(idx)) == 4
            assert all(0 <= i < 6 for i in idx)


class TestRansacHomography:
    """Robust estimation over more than four correspondences"""

    def test_outlier_rejection(self, true_h, contaminated):
        src, dst = contaminated

        result = ransac_homography(src, dst, rng=np.random.default_rng(0))

        assert result.ok
        assert result.inlier_count >= 15
        assert set(result.inliers) == set(range(15))
        assert np.allclose(result.value, true_h, atol=1e-6)

    def test_seeded_runs_are_reproducible(self, contaminated):
        src, dst = contaminated
        cfg = RansacConfig(num_iterations=50, seed=42)

        first = ransac_homography(src, dst, config=cfg)
        second = ransac_homography(src, dst, config=cfg)

        assert np.array_equal(first.value, second.value)
        assert first.inliers == second.inliers
        assert first.trials == second.trials

    def test_fixed_iteration_budget(self, contaminated):
        src, dst = contaminated
        result = ransac_homography(src, dst, config=RansacConfig(num_iterations=30),
                                   rng=np.random.default_rng(5))
        assert result.trials <= 30

    def test_no_consensus(self):
        rng = np.random.default_rng(9)
        src = rng.uniform(0, 500, size=(12, 2))
        dst = rng.uniform(0, 500, size=(12, 2))

        result = ransac_homography(src, dst,
                                   config=RansacConfig(num_iterations=200, min_inliers=10),
                                   rng=np.random.default_rng(1))

        assert not result.ok
        assert result.reason is FailureReason.NO_CONSENSUS
        assert result.value is None

    def test_all_degenerate_samples_in_strict_mode(self):
        src = np.column_stack([np.arange(8.0), np.arange(8.0)])
        dst = 2 * src

        result = ransac_homography(src, dst, config=RansacConfig(num_iterations=20),
                                   rng=np.random.default_rng(0), strict=True)

        assert result.reason is FailureReason.NO_CONSENSUS
        assert result.trials == 0

    def test_count_inliers_threshold(self):
        src = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
        dst = src + np.array([[0.0, 0.0], [4.9, 0.0], [0.0, 5.0]])
        assert count_inliers(np.eye(3), src, dst, threshold=5.0).tolist() == [0, 1]


class TestEstimateHomography:
    """Input validation and routing"""

    def test_too_few_pairs(self, quad_points):
        result = estimate_homography(quad_points[:3], quad_points[:3])
        assert result.reason is FailureReason.INSUFFICIENT_INPUT

    def test_mismatched_lengths(self, quad_points):
        result = estimate_homography(quad_points, quad_points[:3])
        assert result.reason is FailureReason.INSUFFICIENT_INPUT
        assert "equal" in result.message

    def test_four_pairs_use_direct_solve(self, true_h, quad_points):
        result = estimate_homography(quad_points, apply_h(true_h, quad_points))
        assert result.ok
        assert result.inliers == (0, 1, 2, 3)
        assert result.trials == 0
        assert np.allclose(result.value, true_h, atol=1e-6)

    def test_more_pairs_use_ransac(self, true_h, contaminated):
        src, dst = contaminated
        result = estimate_homography(src, dst, ransac=RansacConfig(seed=11))
        assert result.ok
        assert result.trials > 0
        assert result.inlier_count == 15
