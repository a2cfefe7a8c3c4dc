"""Stitching configuration and contribution masking."""

from .stitching_config import StitchingParameters
from .masks import (
    sigmoid,
    fisheye_mask_radius,
    contribution_weights,
    contribution_weight,
    SIGMOID_SCALE
)

__all__ = [
    'StitchingParameters',
    'sigmoid', 'fisheye_mask_radius',
    'contribution_weights', 'contribution_weight',
    'SIGMOID_SCALE',
]
