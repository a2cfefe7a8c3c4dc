"""
Output panorama size selection.
"""

import logging
from typing import Iterable, Tuple

from .errors import InvalidConfigurationError, NoValidCamerasError
from .sfm_data import EXIFOrientation, View

logger = logging.getLogger(__name__)


def compute_panorama_size(views: Iterable[View], orientation: EXIFOrientation,
                          scale_factor: float,
                          requested_size: Tuple[int, int] = (0, 0)) -> Tuple[int, int]:
    """Choose the (width, height) of the equirectangular canvas.

    A fully specified `requested_size` is used as is. If only one side is
    given, the canvas becomes a square of that side. Otherwise widths are
    summed across views and heights maxed, with the two axes swapped when
    the reference orientation is a rotated one. The scale factor applies
    in every case.

    Args:
        views: Valid (posed) views
        orientation: Orientation of the reference view
        scale_factor: Output resolution multiplier (> 0)
        requested_size: Forced (width, height), zeros for automatic
    """
    if not scale_factor > 0:
        raise InvalidConfigurationError(f"scaleFactor must be > 0, got {scale_factor}")

    views = list(views)
    if not views:
        raise NoValidCamerasError("Failed to get valid cameras from input images.")

    width, height = (int(s) for s in requested_size)
    if width == 0 or height == 0:
        if width != 0 or height != 0:
            width = height = max(width, height)
        else:
            logger.info("Automatic panorama size choice.")
            width = height = 0
            for view in views:
                if orientation.is_rotated:
                    width += view.height
                    height = max(height, view.width)
                else:
                    width += view.width
                    height = max(height, view.height)
                logger.debug("Update output panorama size: %d, %d", width, height)

    width = int(width * scale_factor)
    height = int(height * scale_factor)

    if width <= 0 or height <= 0:
        raise InvalidConfigurationError(
            f"Panorama size {width}x{height} is empty (scaleFactor={scale_factor})")

    logger.info("Output panorama size: %d, %d", width, height)
    return width, height
