"""
RANSAC-based robust homography estimation.

Random Sample Consensus (RANSAC) handles mismatched correspondences by
repeatedly drawing minimal subsets of four pairs, fitting a homography, and
counting geometrically consistent inliers.  The hypothesis with the highest
inlier count is returned as-is; there is no final re-fit on the inlier set.
"""

from typing import List, Optional

import numpy as np

from homovision.geometry.homography import (
    MIN_CORRESPONDENCES,
    as_points,
    reprojection_errors,
    solve_homography,
)
from homovision.utils.config import RansacConfig
from homovision.utils.errors import FailureReason, Result
from homovision.utils.logging import get_logger

logger = get_logger(__name__)


def count_inliers(H: np.ndarray, pts1: np.ndarray, pts2: np.ndarray,
                  threshold: float = 5.0) -> np.ndarray:
    """Indices of correspondences consistent with homography *H*.

    A pair is an inlier when the reprojection error ``||H * p1 - p2||`` is
    below *threshold* pixels.  Pairs whose projection has a vanishing
    homogeneous weight are never inliers.

    Parameters
    ----------
    H : np.ndarray
        3 x 3 homography matrix.
    pts1, pts2 : np.ndarray
        N x 2 corresponding (x, y) coordinates.
    threshold : float
        Maximum allowed reprojection error (pixels) for an inlier.

    Returns
    -------
    np.ndarray
        Sorted integer indices of the inlier pairs.
    """
    dist = reprojection_errors(H, pts1, pts2)
    return np.flatnonzero(dist < threshold)


def sample_indices(rng: np.random.Generator, n: int, k: int = 4) -> List[int]:
    """Draw *k* distinct indices in ``[0, n)``, redrawing on duplicates."""
    chosen: List[int] = []
    while len(chosen) < k:
        idx = int(rng.integers(n))
        if idx not in chosen:
            chosen.append(idx)
    return chosen


def ransac_homography(points1, points2, config: Optional[RansacConfig] = None,
                      rng: Optional[np.random.Generator] = None,
                      strict: bool = False) -> Result:
    """Estimate a robust homography via RANSAC.

    Parameters
    ----------
    points1, points2 : array_like
        N x 2 corresponding (x, y) coordinates, N >= 4.
    config : RansacConfig, optional
        Iteration budget, inlier threshold and minimum consensus size.
    rng : numpy.random.Generator, optional
        Random source for sampling.  Built from ``config.seed`` when omitted,
        so a seeded config reproduces the exact trial sequence.
    strict : bool
        Forwarded to :func:`solve_homography`; degenerate samples are then
        skipped instead of scored.

    Returns
    -------
    Result
        The best-scoring 3 x 3 homography with its inlier indices, or a
        failure with reason ``NO_CONSENSUS`` when fewer than
        ``config.min_inliers`` pairs agree with any candidate.
    """
    config = config or RansacConfig()
    if rng is None:
        rng = np.random.default_rng(config.seed)

    pts1 = as_points(points1)
    pts2 = as_points(points2)
    n = len(pts1)
    if n != len(pts2) or n < MIN_CORRESPONDENCES:
        raise ValueError(f"RANSAC needs two equal lists of >= 4 points, got {n} and {len(pts2)}")

    best = None
    best_inliers = np.empty(0, dtype=int)
    trials = 0

    for _ in range(config.num_iterations):
        sample = sample_indices(rng, n, MIN_CORRESPONDENCES)

        fit = solve_homography(pts1[sample], pts2[sample], strict=strict)
        if not fit.ok:
            continue
        trials += 1

        inliers = count_inliers(fit.value, pts1, pts2, config.inlier_threshold)
        if len(inliers) > len(best_inliers):
            best = fit
            best_inliers = inliers

    logger.debug("RANSAC: %d inliers / %d pairs after %d trials (threshold=%.2fpx)",
                 len(best_inliers), n, trials, config.inlier_threshold)

    if best is None or len(best_inliers) < config.min_inliers:
        return Result.failure(
            FailureReason.NO_CONSENSUS,
            f"No consensus model: best candidate has {len(best_inliers)} "
            f"inliers, need {config.min_inliers}",
            inliers=tuple(int(i) for i in best_inliers),
            trials=trials,
        )

    return Result.success(best.value, degenerate=best.degenerate,
                          inliers=tuple(int(i) for i in best_inliers),
                          trials=trials)


def estimate_homography(points1, points2, ransac: Optional[RansacConfig] = None,
                        rng: Optional[np.random.Generator] = None,
                        strict: bool = False) -> Result:
    """Validate a correspondence set and estimate its homography.

    Exactly four pairs are solved directly; larger sets go through
    :func:`ransac_homography`.

    Returns
    -------
    Result
        ``INSUFFICIENT_INPUT`` when the lists differ in length or hold fewer
        than four pairs; otherwise the solver or RANSAC result.
    """
    pts1 = as_points(points1)
    pts2 = as_points(points2)

    if len(pts1) != len(pts2):
        return Result.failure(
            FailureReason.INSUFFICIENT_INPUT,
            "The number of points on both images must be equal "
            f"({len(pts1)} vs {len(pts2)})",
        )
    if len(pts1) < MIN_CORRESPONDENCES:
        return Result.failure(
            FailureReason.INSUFFICIENT_INPUT,
            f"At least 4 pairs of points are required, got {len(pts1)}",
        )

    if len(pts1) == MIN_CORRESPONDENCES:
        return solve_homography(pts1, pts2, strict=strict)
    return ransac_homography(pts1, pts2, config=ransac, rng=rng, strict=strict)
