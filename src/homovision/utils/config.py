"""
Configuration loading.

The pipeline is configured from a YAML file (``configs/default.yaml``).  Each
section maps onto a small dataclass; keys missing from the file fall back to
the dataclass defaults.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

import yaml


@dataclass(frozen=True)
class RansacConfig:
    """Parameters for robust estimation when more than four pairs exist."""

    num_iterations: int = 1000
    inlier_threshold: float = 5.0
    min_inliers: int = 4
    seed: Optional[int] = None


@dataclass(frozen=True)
class SolverConfig:
    # Turn vanishing-pivot solves into DEGENERATE failures.
    strict_degenerate: bool = False


@dataclass(frozen=True)
class PreviewConfig:
    """Split-screen preview settings.

    ``split_x`` and ``split_y`` are percentages of the destination width and
    height; the warped source is shown in the top-left rectangle they define.
    """

    split_x: float = 50.0
    split_y: float = 50.0
    band_rows: int = 64
    guide_color: Tuple[int, int, int, int] = (59, 130, 246, 255)
    dash: Tuple[int, int] = (5, 5)


def load_config(path: str) -> Dict[str, Any]:
    with open(path, "r") as fh:
        return yaml.safe_load(fh) or {}


def _build(cls, section: Optional[Dict[str, Any]]):
    section = section or {}
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**section)


def build_ransac_config(cfg: Dict[str, Any]) -> RansacConfig:
    rc = _build(RansacConfig, cfg.get("ransac"))
    if rc.num_iterations < 1:
        raise ValueError("ransac.num_iterations must be at least 1")
    if rc.inlier_threshold <= 0:
        raise ValueError("ransac.inlier_threshold must be positive")
    return rc


def build_solver_config(cfg: Dict[str, Any]) -> SolverConfig:
    return _build(SolverConfig, cfg.get("solver"))


def build_preview_config(cfg: Dict[str, Any]) -> PreviewConfig:
    section = dict(cfg.get("preview") or {})
    for key in ("guide_color", "dash"):
        if key in section:
            section[key] = tuple(int(v) for v in section[key])
    pc = _build(PreviewConfig, section)
    for name in ("split_x", "split_y"):
        value = getattr(pc, name)
        if not 0 <= value <= 100:
            raise ValueError(f"preview.{name} must lie in [0, 100], got {value}")
    if pc.band_rows < 1:
        raise ValueError("preview.band_rows must be at least 1")
    if len(pc.guide_color) != 4:
        raise ValueError("preview.guide_color must have four RGBA components")
    return pc
