"""
Split-screen preview via inverse warping and bilinear interpolation.

Given a homography that maps the source image into the coordinate frame of
the destination image, every destination pixel inside the preview rectangle
is mapped back through H⁻¹ and the source is sampled with bilinear
interpolation.  Pixels that land outside the source keep the destination
(base) value, so the base image shows through.  Dashed guide lines mark the
edges of the preview rectangle.

Rasters are H x W x 4 uint8 RGBA arrays.  Inputs are never modified; every
call returns a new array.
"""

import math
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

from homovision.linalg.matrix import PIVOT_EPS, invert_3x3
from homovision.utils.config import PreviewConfig
from homovision.utils.errors import Result
from homovision.utils.logging import get_logger

logger = get_logger(__name__)


def _check_raster(raster: np.ndarray, name: str) -> None:
    if raster.ndim != 3 or raster.shape[2] != 4 or raster.dtype != np.uint8:
        raise ValueError(
            f"{name} must be an H x W x 4 uint8 RGBA raster, got shape "
            f"{raster.shape} and dtype {raster.dtype}"
        )


def _check_split(split_x: float, split_y: float) -> None:
    for name, value in (("split_x", split_x), ("split_y", split_y)):
        if not 0 <= value <= 100:
            raise ValueError(f"{name} must lie in [0, 100], got {value}")


def split_extent(shape: Tuple[int, ...], split_x: float,
                 split_y: float) -> Tuple[int, int]:
    """Number of destination columns and rows inside the preview rectangle.

    A pixel (x, y) is inside when ``x < split_x% * width`` and
    ``y < split_y% * height``.
    """
    h, w = shape[:2]
    cols = min(w, max(0, math.ceil(split_x / 100.0 * w)))
    rows = min(h, max(0, math.ceil(split_y / 100.0 * h)))
    return cols, rows


def bilinear_sample(source: np.ndarray, sx: np.ndarray, sy: np.ndarray) -> np.ndarray:
    """Sample *source* at fractional coordinates with bilinear interpolation.

    Parameters
    ----------
    source : np.ndarray
        H x W x C image.
    sx, sy : np.ndarray
        1-D arrays of x and y coordinates inside ``[0, W) x [0, H)``.

    Returns
    -------
    np.ndarray
        N x C float64 array of interpolated values.  Neighbours beyond the
        last row or column are clamped to it.
    """
    h1, w1 = source.shape[:2]
    x0 = np.floor(sx).astype(np.intp)
    y0 = np.floor(sy).astype(np.intp)
    x1 = np.minimum(w1 - 1, x0 + 1)
    y1 = np.minimum(h1 - 1, y0 + 1)

    tx = (sx - x0)[:, None]
    ty = (sy - y0)[:, None]

    top = source[y0, x0] * (1 - tx) + source[y0, x1] * tx
    bottom = source[y1, x0] * (1 - tx) + source[y1, x1] * tx
    return top * (1 - ty) + bottom * ty


def iter_warp_bands(H_inv: np.ndarray, source: np.ndarray, canvas: np.ndarray,
                    cols: int, rows: int,
                    band_rows: int = 64) -> Iterator[Tuple[int, int]]:
    """Warp *source* into the top-left ``rows x cols`` block of *canvas*.

    *canvas* is written in place and should be a buffer the caller owns (see
    :func:`composite_warp`).  The generator yields ``(rows_done, rows)`` after
    each band of destination rows, so a cooperative caller can interleave
    other work or stop between bands.
    """
    h1, w1 = source.shape[:2]
    xs = np.arange(cols, dtype=float)

    for start in range(0, rows, band_rows):
        stop = min(rows, start + band_rows)
        gx, gy = np.meshgrid(xs, np.arange(start, stop, dtype=float))
        gx = gx.ravel()
        gy = gy.ravel()

        # H_inv @ (x, y, 1) for every pixel in the band
        px = H_inv[0, 0] * gx + H_inv[0, 1] * gy + H_inv[0, 2]
        py = H_inv[1, 0] * gx + H_inv[1, 1] * gy + H_inv[1, 2]
        pw = H_inv[2, 0] * gx + H_inv[2, 1] * gy + H_inv[2, 2]

        ok = np.abs(pw) >= PIVOT_EPS
        sx = np.full_like(px, -1.0)
        sy = np.full_like(py, -1.0)
        sx[ok] = px[ok] / pw[ok]
        sy[ok] = py[ok] / pw[ok]

        inside = ok & (sx >= 0) & (sx < w1) & (sy >= 0) & (sy < h1)
        if np.any(inside):
            values = bilinear_sample(source, sx[inside], sy[inside])
            dst_x = gx[inside].astype(np.intp)
            dst_y = gy[inside].astype(np.intp)
            canvas[dst_y, dst_x] = np.clip(np.rint(values), 0, 255).astype(np.uint8)

        yield stop, rows


def composite_warp(H: np.ndarray, source: np.ndarray, base: np.ndarray,
                   split_x: float = 50.0, split_y: float = 50.0,
                   band_rows: int = 64) -> Result:
    """Warp *source* onto a copy of *base* inside the preview rectangle.

    Parameters
    ----------
    H : np.ndarray
        3 x 3 homography mapping source coordinates to destination
        coordinates.
    source : np.ndarray
        h1 x w1 x 4 uint8 source raster.
    base : np.ndarray
        h2 x w2 x 4 uint8 destination raster; its size sets the output size.
    split_x, split_y : float
        Preview rectangle extent, in percent of the destination width and
        height.
    band_rows : int
        Destination rows processed per vectorised step.

    Returns
    -------
    Result
        The composited h2 x w2 x 4 raster, or the ``NOT_INVERTIBLE`` failure
        from inverting *H* (in which case nothing is rendered).
    """
    _check_raster(source, "source")
    _check_raster(base, "base")
    _check_split(split_x, split_y)

    inverse = invert_3x3(H)
    if not inverse.ok:
        return inverse

    canvas = base.copy()
    cols, rows = split_extent(canvas.shape, split_x, split_y)
    if cols and rows:
        for _ in iter_warp_bands(inverse.value, source, canvas, cols, rows, band_rows):
            pass

    logger.debug("Warped %d x %d preview block into %d x %d canvas",
                 cols, rows, canvas.shape[1], canvas.shape[0])
    return Result.success(canvas)


def draw_guides(raster: np.ndarray, split_x: float, split_y: float,
                color: Sequence[int] = (59, 130, 246, 255),
                dash: Tuple[int, int] = (5, 5)) -> np.ndarray:
    """Overlay dashed lines at the preview rectangle edges.

    A vertical line is drawn at column ``floor(split_x% * width)`` over the
    full height and a horizontal line at row ``floor(split_y% * height)``
    over the full width.  A line whose position falls on or past the raster
    edge is not drawn.

    Returns
    -------
    np.ndarray
        New raster with the guides drawn.
    """
    _check_raster(raster, "raster")
    _check_split(split_x, split_y)
    out = raster.copy()
    h, w = out.shape[:2]
    on, off = dash
    rgba = np.asarray(color, dtype=np.uint8)

    col = int(math.floor(split_x / 100.0 * w))
    if col < w:
        ys = np.arange(h)
        out[ys[ys % (on + off) < on], col] = rgba

    row = int(math.floor(split_y / 100.0 * h))
    if row < h:
        xs = np.arange(w)
        out[row, xs[xs % (on + off) < on]] = rgba

    return out


def render_preview(H: np.ndarray, source: np.ndarray, base: np.ndarray,
                   config: Optional[PreviewConfig] = None) -> Result:
    """Composite the warped source over *base* and draw the split guides."""
    config = config or PreviewConfig()
    warped = composite_warp(H, source, base, config.split_x, config.split_y,
                            config.band_rows)
    if not warped.ok:
        return warped
    return Result.success(draw_guides(warped.value, config.split_x, config.split_y,
                                      config.guide_color, config.dash))
