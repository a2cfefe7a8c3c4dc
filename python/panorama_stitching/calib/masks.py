"""Contribution weighting and fisheye vignette masking for source images."""
import numpy as np
from typing import Optional, Tuple

from ..errors import InvalidConfigurationError

# Steepness of the logistic falloff across one transition width
SIGMOID_SCALE = 10.0


def sigmoid(x, sigwidth: float, sig_mid: float):
    """Logistic falloff centered at sig_mid: ~1 below, ~0 above."""
    return 1.0 / (1.0 + np.exp(SIGMOID_SCALE * ((x - sig_mid) / sigwidth)))


def fisheye_mask_radius(width: int, height: int, margin: float) -> float:
    """Radius beyond which fisheye pixels are discarded."""
    return min(width, height) * 0.5 * (1.0 - margin)


def contribution_weights(px: np.ndarray, py: np.ndarray, width: int, height: int,
                         fisheye_masking: bool = False, fisheye_masking_margin: float = 0.05,
                         transition_size: float = 10.0) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute blend weights for source-image pixel coordinates.

    Coordinates outside [0, width) x [0, height) are rejected. With
    fisheye masking, coordinates farther than the mask radius from the
    image center are rejected as well, and the rest fade out through a
    sigmoid centered half a transition width inside the radius.

    Args:
        px, py: Source pixel coordinates (any matching shape)
        width, height: Source image dimensions
        fisheye_masking: Enable radial masking
        fisheye_masking_margin: Excluded border as fraction of min(width, height)
        transition_size: Falloff band width in pixels

    Returns:
        (weights, accepted): float64 weights in [0, 1] and boolean mask.
        Weights of rejected entries are 0 and must not be deposited.

    Raises:
        InvalidConfigurationError: transition_size <= 0, or margin outside [0, 1)
    """
    if not transition_size > 0:
        raise InvalidConfigurationError(f"transitionSize must be > 0, got {transition_size}")
    if not 0.0 <= fisheye_masking_margin < 1.0:
        raise InvalidConfigurationError(
            f"fisheyeMaskingMargin must be in [0, 1), got {fisheye_masking_margin}")

    px = np.asarray(px, dtype=np.float64)
    py = np.asarray(py, dtype=np.float64)

    # NaN coordinates fail every comparison and drop out here
    accepted = (px >= 0) & (px < width) & (py >= 0) & (py < height)

    if not fisheye_masking:
        return np.where(accepted, 1.0, 0.0), accepted

    max_radius = fisheye_mask_radius(width, height, fisheye_masking_margin)
    blur_mid = max_radius - transition_size / 2.0
    cx, cy = width // 2, height // 2

    dist = np.sqrt((px - cx)**2 + (py - cy)**2)
    accepted &= dist <= max_radius

    with np.errstate(over='ignore', invalid='ignore'):
        weights = sigmoid(dist, transition_size, blur_mid)
    return np.where(accepted, weights, 0.0), accepted


def contribution_weight(px: float, py: float, width: int, height: int,
                        fisheye_masking: bool = False, fisheye_masking_margin: float = 0.05,
                        transition_size: float = 10.0) -> Optional[float]:
    """Scalar form of contribution_weights; None means the pixel is rejected."""
    weights, accepted = contribution_weights(px, py, width, height, fisheye_masking,
                                             fisheye_masking_margin, transition_size)
    if not accepted:
        return None
    return float(weights)
