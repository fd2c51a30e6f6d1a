"""
Visualization utilities for the homography pipeline.

All functions save figures to disk rather than displaying them interactively,
making the module suitable for headless execution.
"""

import os
import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend
import matplotlib.pyplot as plt

from homovision.geometry.homography import format_matrix


# ---------------------------------------------------------------------------
# Correspondences
# ---------------------------------------------------------------------------

def save_correspondences(img1: np.ndarray, img2: np.ndarray,
                         pts1: np.ndarray, pts2: np.ndarray,
                         scene: str, out_dir: str, inliers=None) -> str:
    """Save a side-by-side image with numbered lines joining each point pair.

    Pairs listed in *inliers* are drawn in green, the rest in red.  When
    *inliers* is None every pair is drawn green.
    """
    h1, w1 = img1.shape[:2]
    h2, w2 = img2.shape[:2]
    h = max(h1, h2)
    combined = np.zeros((h, w1 + w2, 4), dtype=np.uint8)
    combined[:h1, :w1] = img1
    combined[:h2, w1:w1 + w2] = img2

    keep = set(range(len(pts1))) if inliers is None else set(inliers)

    fig, ax = plt.subplots(figsize=(16, 8))
    ax.imshow(combined)

    for idx, ((x1, y1), (x2, y2)) in enumerate(zip(pts1, pts2)):
        colour = "g" if idx in keep else "r"
        ax.plot([x1, x2 + w1], [y1, y2], f"{colour}-", linewidth=1, alpha=0.6)
        ax.plot(x1, y1, f"{colour}o", markersize=5)
        ax.plot(x2 + w1, y2, f"{colour}o", markersize=5)
        kw = dict(color="yellow", fontsize=8, weight="bold",
                  bbox=dict(boxstyle="round,pad=0.3", facecolor="black", alpha=0.5))
        ax.text(x1, y1 - 10, str(idx + 1), **kw)
        ax.text(x2 + w1, y2 - 10, str(idx + 1), **kw)

    ax.set_title(f"{scene} – {len(pts1)} pairs, {len(keep)} inliers")
    ax.axis("off")
    plt.tight_layout()
    path = os.path.join(out_dir, scene, "correspondences.png")
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close()
    return path


# ---------------------------------------------------------------------------
# Reprojection error
# ---------------------------------------------------------------------------

def save_error_histogram(errors: np.ndarray, threshold: float,
                         scene: str, out_dir: str) -> str:
    """Save a histogram of reprojection errors with the inlier threshold marked."""
    finite = errors[np.isfinite(errors)]
    plt.figure(figsize=(10, 5))
    plt.hist(finite, bins=max(10, len(finite) // 2), edgecolor="black", alpha=0.7)
    plt.axvline(threshold, color="red", linestyle="--", linewidth=2,
                label=f"Threshold = {threshold}px")
    plt.xlabel("Reprojection error (px)")
    plt.ylabel("Count")
    plt.title(f"{scene} – reprojection error distribution")
    plt.legend()
    plt.grid(True, alpha=0.3)
    path = os.path.join(out_dir, scene, "reprojection_errors.png")
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close()
    return path


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------

def save_preview_figure(preview: np.ndarray, H: np.ndarray, scene: str,
                        out_dir: str, n_inliers: int, n_pairs: int) -> str:
    """Save the composited preview next to the homography it was rendered with."""
    rate = 100.0 * n_inliers / n_pairs if n_pairs else 0.0
    fig, (ax_img, ax_txt) = plt.subplots(
        1, 2, figsize=(16, 8), gridspec_kw={"width_ratios": [3, 1]})

    ax_img.imshow(preview)
    ax_img.set_title(f"{scene} preview  |  {n_inliers}/{n_pairs} inliers ({rate:.1f}%)")
    ax_img.axis("off")

    ax_txt.text(0.0, 0.5, format_matrix(H), family="monospace", fontsize=11,
                va="center")
    ax_txt.set_title("Homography")
    ax_txt.axis("off")

    plt.tight_layout()
    path = os.path.join(out_dir, scene, "preview_figure.png")
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close()
    return path
