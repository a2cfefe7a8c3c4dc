"""
Image decoding and encoding through OpenCV.

Decoded images are float32 RGB in linear light. The panorama is written
as RGBA: float formats keep linear values, integer formats are encoded
back to sRGB.
"""

import logging
from pathlib import Path

import cv2
import numpy as np

from .errors import ImageReadError

logger = logging.getLogger(__name__)

FLOAT_FORMATS = {'.exr', '.tif', '.tiff'}
NO_ALPHA_FORMATS = {'.jpg', '.jpeg', '.bmp'}


def srgb_to_linear(values: np.ndarray) -> np.ndarray:
    values = np.asarray(values, dtype=np.float32)
    return np.where(values <= 0.04045, values / 12.92,
                    ((values + 0.055) / 1.055) ** 2.4).astype(np.float32)


def linear_to_srgb(values: np.ndarray) -> np.ndarray:
    values = np.clip(np.asarray(values, dtype=np.float32), 0.0, 1.0)
    return np.where(values <= 0.0031308, values * 12.92,
                    1.055 * values ** (1.0 / 2.4) - 0.055).astype(np.float32)


def read_image(path) -> np.ndarray:
    """Read an image as linear float32 RGB of shape (h, w, 3)."""
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ImageReadError(f"Could not load {path}")

    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)

    if img.dtype == np.uint8:
        return srgb_to_linear(img.astype(np.float32) / 255.0)
    if img.dtype == np.uint16:
        return srgb_to_linear(img.astype(np.float32) / 65535.0)
    return img.astype(np.float32)


def write_image(path, rgba: np.ndarray):
    """Write an (h, w, 4) float RGBA canvas, picking the encoding from the extension."""
    path = Path(path)
    suffix = path.suffix.lower()
    rgba = np.asarray(rgba, dtype=np.float32)

    if suffix in FLOAT_FORMATS:
        out = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)
    else:
        encoded = np.concatenate([linear_to_srgb(rgba[..., :3]),
                                  np.clip(rgba[..., 3:], 0.0, 1.0)], axis=-1)
        if suffix == '.png':
            out = np.round(encoded * 65535.0).astype(np.uint16)
        else:
            out = np.round(encoded * 255.0).astype(np.uint8)
        if suffix in NO_ALPHA_FORMATS:
            out = cv2.cvtColor(out, cv2.COLOR_RGBA2BGR)
        else:
            out = cv2.cvtColor(out, cv2.COLOR_RGBA2BGRA)

    try:
        written = cv2.imwrite(str(path), out)
    except cv2.error as e:
        raise IOError(f"Could not write {path}: {e}") from e
    if not written:
        raise IOError(f"Could not write {path}")
    logger.debug("Wrote %dx%d image to %s", rgba.shape[1], rgba.shape[0], path)
