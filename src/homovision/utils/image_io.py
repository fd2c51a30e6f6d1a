"""
Image I/O helpers.

Thin wrappers around PIL and scikit-image that turn decoded images into the
H x W x 4 uint8 RGBA rasters the warping engine works on, and back to files.
"""

import os

import numpy as np
from PIL import Image
from skimage.color import gray2rgba
from skimage.util import img_as_ubyte


def load_rgba(path: str) -> np.ndarray:
    """Load an image file as an H x W x 4 uint8 RGBA array."""
    with Image.open(path) as im:
        return np.array(im.convert("RGBA"))


def load_image_pair(path1: str, path2: str):
    """Load the source and destination images as RGBA rasters."""
    return load_rgba(path1), load_rgba(path2)


def to_rgba(img: np.ndarray) -> np.ndarray:
    """Convert a grey, RGB or RGBA array (uint8 or float in [0, 1]) to RGBA uint8.

    Parameters
    ----------
    img : np.ndarray
        H x W, H x W x 3 or H x W x 4 image.

    Returns
    -------
    np.ndarray
        New H x W x 4 uint8 array; alpha is opaque where the input has none.
    """
    img = np.asarray(img)
    if img.ndim == 2:
        return img_as_ubyte(gray2rgba(img_as_ubyte(img)))
    if img.ndim == 3 and img.shape[2] == 3:
        rgb = img_as_ubyte(img)
        alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([rgb, alpha], axis=2)
    if img.ndim == 3 and img.shape[2] == 4:
        return img_as_ubyte(img).copy()
    raise ValueError(f"Unsupported image shape {img.shape}")


def save_rgba(raster: np.ndarray, path: str) -> None:
    """Write an RGBA raster to *path* (format chosen from the extension)."""
    Image.fromarray(np.ascontiguousarray(raster)).save(path)


def ensure_output_dirs(scenes: list, base: str = "results") -> None:
    """Create output subdirectories for each scene name.

    Parameters
    ----------
    scenes : list of str
        Scene identifiers (one subdirectory is created per scene).
    base : str
        Root output directory.
    """
    for scene in scenes:
        os.makedirs(os.path.join(base, scene), exist_ok=True)
