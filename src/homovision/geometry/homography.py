"""
Homography estimation from point correspondences.

A planar homography (projective transformation) maps points in one image to
corresponding points in another when the scene is planar or the camera
undergoes pure rotation.  The 3x3 matrix is estimated via the Direct Linear
Transform (DLT): each correspondence contributes two linear equations in the
nine homography entries, and with four pairs the homogeneous system is solved
by Gaussian elimination and back-substitution with the last entry fixed to 1.

Point arrays are N x 2 with columns (x, y) in native pixel coordinates.
"""

import numpy as np

from homovision.linalg.matrix import PIVOT_EPS, gaussian_elimination
from homovision.utils.errors import FailureReason, Result
from homovision.utils.logging import get_logger

logger = get_logger(__name__)

MIN_CORRESPONDENCES = 4


def as_points(points) -> np.ndarray:
    """Return *points* as a new N x 2 float64 array."""
    pts = np.array(points, dtype=float)
    if pts.size == 0:
        return pts.reshape(0, 2)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected an N x 2 array of (x, y) points, got shape {pts.shape}")
    return pts


def build_dlt_system(pts1: np.ndarray, pts2: np.ndarray) -> np.ndarray:
    """Stack the two DLT rows of every correspondence into a 2N x 9 matrix."""
    A = []
    for (x1, y1), (x2, y2) in zip(pts1, pts2):
        A.append([-x1, -y1, -1,   0,   0,  0, x1 * x2, y1 * x2, x2])
        A.append([  0,   0,  0, -x1, -y1, -1, x1 * y2, y1 * y2, y2])
    return np.array(A, dtype=float)


def _solve_homogeneous(A: np.ndarray):
    """Solve ``A h = 0`` for an 8 x 9 matrix with ``h[8]`` fixed to 1.

    Returns the 9-vector and the number of coefficients that had to be zeroed
    because their diagonal pivot vanished.
    """
    B = gaussian_elimination(A)
    n = B.shape[1]

    h = np.zeros(n)
    h[n - 1] = 1.0
    zeroed = 0
    for i in range(n - 2, -1, -1):
        s = float(B[i, i + 1:] @ h[i + 1:])
        if abs(B[i, i]) < PIVOT_EPS:
            h[i] = 0.0
            zeroed += 1
        else:
            h[i] = -s / B[i, i]
    return h, zeroed


def solve_homography(points1, points2, strict: bool = False) -> Result:
    """Estimate a 3x3 homography from exactly four point correspondences.

    Parameters
    ----------
    points1 : array_like
        4 x 2 source (x, y) coordinates.
    points2 : array_like
        4 x 2 destination (x, y) coordinates.
    strict : bool
        When True, a vanishing pivot during back-substitution fails the solve
        with reason ``DEGENERATE``.  Otherwise the affected coefficient is set
        to zero and the result is returned with ``degenerate=True``.

    Returns
    -------
    Result
        *value* is the 3 x 3 homography, normalised so ``H[2, 2] == 1`` unless
        that entry is (numerically) zero, such that
        ``points2 ~ H @ points1`` in homogeneous coordinates.

    Raises
    ------
    ValueError
        If either argument does not hold exactly four points.
    """
    pts1 = as_points(points1)
    pts2 = as_points(points2)
    if len(pts1) != MIN_CORRESPONDENCES or len(pts2) != MIN_CORRESPONDENCES:
        raise ValueError(
            f"solve_homography needs exactly 4 correspondences, got "
            f"{len(pts1)} and {len(pts2)}"
        )

    A = build_dlt_system(pts1, pts2)
    h, zeroed = _solve_homogeneous(A)

    if zeroed and strict:
        return Result.failure(
            FailureReason.DEGENERATE,
            f"Degenerate configuration: {zeroed} vanishing pivot(s); "
            "check that no three points are collinear",
        )

    H = h.reshape(3, 3)
    if abs(H[2, 2]) >= PIVOT_EPS:
        H = H / H[2, 2]

    if zeroed:
        logger.debug("DLT solve zeroed %d coefficient(s)", zeroed)
    return Result.success(H, degenerate=bool(zeroed),
                          inliers=tuple(range(MIN_CORRESPONDENCES)))


def project_points(H: np.ndarray, points) -> np.ndarray:
    """Apply a homography to a set of (x, y) coordinates.

    Parameters
    ----------
    H : np.ndarray
        3 x 3 homography matrix.
    points : array_like
        N x 2 array of (x, y) coordinates.

    Returns
    -------
    np.ndarray
        N x 2 array of transformed coordinates.  Points whose homogeneous
        weight satisfies ``|w| < PIVOT_EPS`` map to NaN.
    """
    pts = as_points(points)
    homog = np.hstack([pts, np.ones((len(pts), 1))])

    transformed = homog @ np.asarray(H, dtype=float).T
    w = transformed[:, 2]
    valid = np.abs(w) >= PIVOT_EPS

    out = np.full((len(pts), 2), np.nan)
    out[valid] = transformed[valid, :2] / w[valid, None]
    return out


def reprojection_errors(H: np.ndarray, points1, points2) -> np.ndarray:
    """Euclidean distance between ``H(points1)`` and *points2*, NaN where undefined."""
    projected = project_points(H, points1)
    return np.sqrt(np.sum((projected - as_points(points2)) ** 2, axis=1))


def format_matrix(H, precision: int = 4) -> str:
    """Render a homography as three rows of fixed-point values."""
    if H is None:
        return "Matrix will be displayed here."
    H = np.asarray(H, dtype=float)
    cells = [[f"{v:.{precision}f}" for v in row] for row in H]
    width = max(len(c) for row in cells for c in row)
    return "\n".join("  ".join(c.rjust(width) for c in row) for row in cells)
