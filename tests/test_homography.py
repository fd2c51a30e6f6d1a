"""
Unit tests for the four-point DLT solver and projection helpers
"""

import numpy as np
import pytest
from scipy.linalg import null_space

from homovision.geometry.homography import (
    build_dlt_system,
    format_matrix,
    project_points,
    reprojection_errors,
    solve_homography,
)
from homovision.utils.errors import FailureReason

from conftest import apply_h


class TestSolveHomography:
    """Exactly-determined DLT solve"""

    def test_exact_recovery(self, true_h, quad_points):
        """Points projected through a known H give back that H"""
        result = solve_homography(quad_points, apply_h(true_h, quad_points))

        assert result.ok
        assert not result.degenerate
        assert np.allclose(result.value, true_h, atol=1e-6)
        assert result.value[2, 2] == pytest.approx(1.0)

    def test_identity(self, quad_points):
        result = solve_homography(quad_points, quad_points)
        assert result.ok
        assert np.allclose(result.value, np.eye(3), atol=1e-9)

    def test_unit_square_to_scaled_square(self):
        src = [[0, 0], [1, 0], [1, 1], [0, 1]]
        dst = [[0, 0], [2, 0], [2, 2], [0, 2]]
        H = solve_homography(src, dst).unwrap()
        assert np.allclose(H, np.diag([2.0, 2.0, 1.0]), atol=1e-12)

    def test_agrees_with_svd_null_space(self, true_h, quad_points):
        """The back-substituted vector spans the null space of the DLT matrix"""
        dst = apply_h(true_h, quad_points)
        A = build_dlt_system(quad_points, dst)
        assert A.shape == (8, 9)

        ns = null_space(A)
        assert ns.shape == (9, 1)
        reference = (ns[:, 0] / ns[8, 0]).reshape(3, 3)

        H = solve_homography(quad_points, dst).unwrap()
        assert np.allclose(H, reference, atol=1e-6)

    def test_inputs_are_not_modified(self, true_h, quad_points):
        dst = apply_h(true_h, quad_points)
        src_before, dst_before = quad_points.copy(), dst.copy()
        solve_homography(quad_points, dst)
        assert np.array_equal(quad_points, src_before)
        assert np.array_equal(dst, dst_before)

    def test_collinear_points_are_flagged(self):
        """Collinear sources never produce an unflagged result"""
        src = [[0, 0], [1, 1], [2, 2], [3, 3]]
        dst = [[0, 0], [2, 1], [4, 2], [6, 3]]

        result = solve_homography(src, dst)

        assert (not result.ok) or result.degenerate

    def test_collinear_points_fail_in_strict_mode(self):
        src = [[0, 0], [1, 1], [2, 2], [3, 3]]
        dst = [[0, 0], [2, 1], [4, 2], [6, 3]]

        result = solve_homography(src, dst, strict=True)

        assert not result.ok
        assert result.reason is FailureReason.DEGENERATE
        assert result.value is None

    def test_wrong_number_of_points(self, quad_points):
        with pytest.raises(ValueError):
            solve_homography(quad_points[:3], quad_points[:3])
        with pytest.raises(ValueError):
            solve_homography(np.vstack([quad_points, [[1.0, 1.0]]]),
                             np.vstack([quad_points, [[1.0, 1.0]]]))

    def test_bad_point_shape(self):
        with pytest.raises(ValueError):
            solve_homography([1, 2, 3, 4], [1, 2, 3, 4])


class TestProjection:
    """Projection and reprojection error"""

    def test_project_points(self, true_h, quad_points):
        assert np.allclose(project_points(true_h, quad_points),
                           apply_h(true_h, quad_points))

    def test_vanishing_weight_gives_nan(self):
        H = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
        out = project_points(H, [[0.0, 5.0], [2.0, 4.0]])
        assert np.all(np.isnan(out[0]))
        assert np.allclose(out[1], [1.0, 2.0])

    def test_reprojection_errors(self):
        errors = reprojection_errors(np.eye(3), [[0, 0], [1, 1]], [[3, 4], [1, 1]])
        assert errors.tolist() == [5.0, 0.0]


class TestFormatMatrix:
    """Matrix display"""

    def test_identity(self):
        lines = format_matrix(np.eye(3)).splitlines()
        assert len(lines) == 3
        assert lines[0].split() == ["1.0000", "0.0000", "0.0000"]
        assert lines[2].split() == ["0.0000", "0.0000", "1.0000"]

    def test_precision(self):
        text = format_matrix([[1.23456, 0, 0], [0, 1, 0], [0, 0, 1]], precision=2)
        assert text.splitlines()[0].split()[0] == "1.23"

    def test_placeholder(self):
        assert format_matrix(None) == "Matrix will be displayed here."
