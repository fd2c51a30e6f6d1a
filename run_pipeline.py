#!/usr/bin/env python3
"""
run_pipeline.py – Homography Estimation & Split-Screen Preview Pipeline

Loads configuration from configs/default.yaml (or a user-specified file),
estimates the homography for every scene defined in the config from its
point-pair file, renders the warped preview and writes the matrix, the
preview raster and diagnostic figures to the results directory.

Usage
-----
    python run_pipeline.py
    python run_pipeline.py --config configs/default.yaml
    python run_pipeline.py --scenes poster facade
    python run_pipeline.py --split-x 70 --split-y 100 --seed 7
    python run_pipeline.py --no-figures
"""

import argparse
import dataclasses
import os
import sys
import time

import numpy as np

# Ensure src/ is on the Python path when invoked from a source checkout
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from homovision.geometry.homography import format_matrix, reprojection_errors
from homovision.geometry.ransac import estimate_homography
from homovision.session.points import CorrespondenceSession
from homovision.utils.config import (
    build_preview_config,
    build_ransac_config,
    build_solver_config,
    load_config,
)
from homovision.utils.image_io import ensure_output_dirs, load_image_pair, save_rgba
from homovision.utils.visualization import (
    save_correspondences,
    save_error_histogram,
    save_preview_figure,
)
from homovision.warping.preview import render_preview


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

def banner(text: str) -> None:
    width = 60
    print("\n" + "─" * width)
    print(f"  {text}")
    print("─" * width)


def write_matrix(H: np.ndarray, path: str) -> None:
    np.savetxt(path, H, fmt="%.10g")


# ──────────────────────────────────────────────────────────────────────────────
# Per-scene pipeline
# ──────────────────────────────────────────────────────────────────────────────

def run_scene(scene_cfg: dict, settings: dict, results_dir: str,
              make_figures: bool) -> dict:
    """Execute the full pipeline for a single scene and return summary metrics."""
    name = scene_cfg["name"]
    banner(f"Scene: {name}")
    r_cfg = settings["ransac"]
    p_cfg = settings["preview"]

    metrics = {
        "scene": name,
        "pairs": 0,
        "inliers": None,
        "degenerate": False,
        "status": "ok",
    }

    # ── 1. Load images and point pairs ────────────────────────────────────────
    img1, img2 = load_image_pair(scene_cfg["img1"], scene_cfg["img2"])
    print(f"  Loaded images  {img1.shape[1]}×{img1.shape[0]}  /  "
          f"{img2.shape[1]}×{img2.shape[0]}")

    session = CorrespondenceSession.from_file(scene_cfg["points"])
    pts1 = np.array(session.points1)
    pts2 = np.array(session.points2)
    metrics["pairs"] = len(session)
    print(f"  Loaded {len(session)} point pairs from {scene_cfg['points']}")

    # ── 2. Homography estimation ──────────────────────────────────────────────
    if len(session) > 4:
        print(f"  Stage 1 – RANSAC homography ({r_cfg.num_iterations} iterations, "
              f"threshold={r_cfg.inlier_threshold}px)")
    elif len(session) == 4:
        print("  Stage 1 – Direct linear transform (4 pairs)")

    rng = np.random.default_rng(r_cfg.seed)
    result = estimate_homography(pts1, pts2, ransac=r_cfg, rng=rng,
                                 strict=settings["solver"].strict_degenerate)
    if not result.ok:
        print(f"  Estimation failed – {result.message}")
        metrics["status"] = result.reason.value
        return metrics

    H = result.value
    metrics["inliers"] = result.inlier_count
    metrics["degenerate"] = result.degenerate
    print(f"    {result.inlier_count} / {len(session)} inliers")
    if result.degenerate:
        print("    Warning: degenerate point configuration – "
              "check that no three points are collinear")
    for line in format_matrix(H).splitlines():
        print(f"    {line}")
    write_matrix(H, os.path.join(results_dir, name, "homography.txt"))

    # ── 3. Preview rendering ─────────────────────────────────────────────────
    print(f"  Stage 2 – Warping preview (split {p_cfg.split_x:g}% × {p_cfg.split_y:g}%)")
    preview = render_preview(H, img1, img2, p_cfg)
    if not preview.ok:
        print(f"  Preview skipped – {preview.message}")
        metrics["status"] = preview.reason.value
        return metrics
    out_path = os.path.join(results_dir, name, "preview.png")
    save_rgba(preview.value, out_path)
    print(f"  Saved preview → {out_path}")

    # ── 4. Figures ────────────────────────────────────────────────────────────
    if make_figures:
        save_correspondences(img1, img2, pts1, pts2, name, results_dir,
                             inliers=result.inliers)
        save_error_histogram(reprojection_errors(H, pts1, pts2),
                             r_cfg.inlier_threshold, name, results_dir)
        save_preview_figure(preview.value, H, name, results_dir,
                            result.inlier_count, len(session))
        print(f"  Saved figures → {os.path.join(results_dir, name)}/")

    return metrics


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Homography estimation and split-screen preview pipeline"
    )
    p.add_argument(
        "--config", default="configs/default.yaml",
        help="Path to YAML configuration file (default: configs/default.yaml)",
    )
    p.add_argument(
        "--scenes", nargs="*", default=None,
        help="Subset of scene names to process (default: all scenes in config)",
    )
    p.add_argument("--split-x", type=float, default=None,
                   help="Preview width in percent of the destination image")
    p.add_argument("--split-y", type=float, default=None,
                   help="Preview height in percent of the destination image")
    p.add_argument("--seed", type=int, default=None,
                   help="Seed for RANSAC sampling")
    p.add_argument(
        "--no-figures", action="store_true",
        help="Skip the matplotlib diagnostic figures",
    )
    return p.parse_args(argv)


def build_settings(cfg: dict, args) -> dict:
    ransac = build_ransac_config(cfg)
    preview = build_preview_config(cfg)
    if args.seed is not None:
        ransac = dataclasses.replace(ransac, seed=args.seed)
    overrides = {k: v for k, v in (("split_x", args.split_x),
                                   ("split_y", args.split_y)) if v is not None}
    if overrides:
        preview = build_preview_config(
            {"preview": {**dataclasses.asdict(preview), **overrides}})
    return {
        "ransac": ransac,
        "solver": build_solver_config(cfg),
        "preview": preview,
    }


def main(argv=None) -> int:
    args = parse_args(argv)

    # Load configuration
    if not os.path.exists(args.config):
        print(f"[ERROR] Config file not found: {args.config}")
        return 1
    cfg = load_config(args.config)
    try:
        settings = build_settings(cfg, args)
    except ValueError as exc:
        print(f"[ERROR] Invalid configuration: {exc}")
        return 1

    results_dir = cfg.get("results_dir", "results")
    scenes = cfg.get("scenes") or []

    # Optionally restrict to a subset of scenes
    if args.scenes:
        scenes = [s for s in scenes if s["name"] in args.scenes]
        if not scenes:
            print(f"[ERROR] No matching scenes found for: {args.scenes}")
            return 1

    # Validate that input files exist
    for sc in scenes:
        for key in ("img1", "img2", "points"):
            if not os.path.exists(sc[key]):
                print(f"[ERROR] File not found: {sc[key]}")
                return 1

    # Create output directories
    ensure_output_dirs([s["name"] for s in scenes], base=results_dir)

    make_figures = not args.no_figures

    banner("Homography Estimation & Preview Pipeline")
    print(f"  Config  : {args.config}")
    print(f"  Scenes  : {[s['name'] for s in scenes]}")
    print(f"  Figures : {'enabled' if make_figures else 'disabled'}")
    print(f"  Output  : {results_dir}/")

    t0 = time.time()
    all_metrics = []

    for sc in scenes:
        metrics = run_scene(sc, settings, results_dir, make_figures)
        all_metrics.append(metrics)

    # ── Summary table ──────────────────────────────────────────────────────
    banner("Results Summary")
    header = f"{'Scene':<12} {'Pairs':>7} {'Inliers':>9} {'Rate':>7} {'Status':>20}"
    print(header)
    print("─" * len(header))
    for m in all_metrics:
        inl = str(m["inliers"]) if m["inliers"] is not None else "–"
        rate = (f"{100 * m['inliers'] / m['pairs']:.1f}%"
                if m["inliers"] is not None and m["pairs"] else "–")
        status = m["status"] + (" (degenerate)" if m["degenerate"] else "")
        print(f"{m['scene']:<12} {m['pairs']:>7} {inl:>9} {rate:>7} {status:>20}")

    elapsed = time.time() - t0
    print(f"\nPipeline complete in {elapsed:.1f}s")
    print(f"Results saved to: {os.path.abspath(results_dir)}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
