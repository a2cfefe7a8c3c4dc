"""
Weighted-average compositing of posed views into an equirectangular canvas.

Each (view, canvas row band) pair is evaluated independently and yields a
private (color_sum, weight_sum) contribution for a disjoint row range.
Contributions are summed into the canvas, so view and band order do not
affect the result. The canvas is normalized once, after every view.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np

from .calib.masks import contribution_weights
from .calib.stitching_config import StitchingParameters
from .cameras import IntrinsicBase, Pose
from .canvas_size import compute_panorama_size
from .errors import ImageReadError, InvalidConfigurationError, NoValidCamerasError
from .image_io import read_image as default_read_image
from .sfm_data import SfMData, View
from .spherical_mapping import canvas_rays

logger = logging.getLogger(__name__)

# Accumulated weight at or below this leaves the pixel uncovered
WEIGHT_EPSILON = 1e-4

# Bands per worker, for load balancing across uneven rows
BANDS_PER_WORKER = 4

# Widest map handed to a single cv2.remap call
REMAP_MAX_COLS = 16384


class PanoramaCanvas:
    """Per-pixel (color, weight) accumulators over the whole output canvas."""

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self.color = np.zeros((self.height, self.width, 3), dtype=np.float64)
        self.weight = np.zeros((self.height, self.width), dtype=np.float64)
        self.normalized = False

    def _check_accumulating(self):
        if self.normalized:
            raise RuntimeError("Cannot deposit into a canvas that has already been normalized")

    def deposit(self, x: int, y: int, color, weight: float):
        """Add weight * color and weight at canvas pixel (x, y)."""
        self._check_accumulating()
        if not weight > 0:
            raise ValueError(f"Deposit weight must be > 0, got {weight}")
        self.color[y, x] += weight * np.asarray(color, dtype=np.float64)
        self.weight[y, x] += weight

    def add_band(self, row_start: int, color_sum: np.ndarray, weight_sum: np.ndarray):
        """Sum a pre-weighted contribution into rows starting at row_start."""
        self._check_accumulating()
        row_stop = row_start + weight_sum.shape[0]
        self.color[row_start:row_stop] += color_sum
        self.weight[row_start:row_stop] += weight_sum

    def normalize(self):
        """Divide accumulated color by accumulated weight, once.

        Pixels whose weight does not exceed WEIGHT_EPSILON keep a zero
        color. Calling this again is a no-op.
        """
        if self.normalized:
            logger.debug("Canvas already normalized, skipping")
            return
        covered = self.weight > WEIGHT_EPSILON
        self.color[covered] /= self.weight[covered][:, np.newaxis]
        self.normalized = True
        logger.debug("Normalized canvas: %.1f%% of pixels covered", 100.0 * self.coverage)

    @property
    def coverage(self) -> float:
        """Fraction of canvas pixels with a contribution."""
        return float(np.mean(self.weight > WEIGHT_EPSILON))

    def to_rgba(self, keep_contribution_alpha: bool = False) -> np.ndarray:
        """Return the normalized canvas as (h, w, 4) float32 RGBA.

        Alpha holds the accumulated weight when keep_contribution_alpha is
        set, otherwise 1 for covered pixels and 0 elsewhere.
        """
        if not self.normalized:
            raise RuntimeError("Canvas must be normalized before export")
        rgba = np.zeros((self.height, self.width, 4), dtype=np.float32)
        rgba[..., :3] = self.color
        if keep_contribution_alpha:
            rgba[..., 3] = self.weight
        else:
            rgba[..., 3] = self.weight > WEIGHT_EPSILON
        return rgba


def row_bands(height: int, n_bands: int) -> List[Tuple[int, int]]:
    """Split [0, height) into at most n_bands contiguous (start, stop) ranges."""
    n_bands = max(1, min(n_bands, height))
    edges = np.linspace(0, height, n_bands + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def composite_view_band(image: np.ndarray, pose: Pose, intrinsic: IntrinsicBase,
                        canvas_width: int, canvas_height: int,
                        row_start: int, row_stop: int,
                        params: StitchingParameters) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reproject canvas rows [row_start, row_stop) into one source image.

    Rays behind the camera, outside the image or masked out by the
    fisheye vignette contribute nothing.

    Args:
        image: Source image, (h, w, 3) float32 linear RGB
        pose, intrinsic: Camera model of the view
        canvas_width, canvas_height: Full canvas size
        row_start, row_stop: Canvas row range of this band
        params: Blend parameters

    Returns:
        (color_sum, weight_sum): (rows, width, 3) and (rows, width) float64
    """
    h, w = image.shape[:2]
    rays = canvas_rays(canvas_width, canvas_height, row_start, row_stop)

    in_front = pose.depth(rays) >= 0
    pix = intrinsic.project(pose, rays, apply_distortion=True)
    px, py = pix[..., 0], pix[..., 1]

    weights, accepted = contribution_weights(
        px, py, w, h,
        fisheye_masking=params.fisheye_masking,
        fisheye_masking_margin=params.fisheye_masking_margin,
        transition_size=params.transition_size)
    accepted &= in_front & (weights > 0)

    color_sum = np.zeros(rays.shape[:2] + (3,), dtype=np.float64)
    weight_sum = np.zeros(rays.shape[:2], dtype=np.float64)
    if not np.any(accepted):
        return color_sum, weight_sum

    # Rejected entries may be non-finite; park them on a valid pixel
    map_x = np.where(accepted, px, 0.0).astype(np.float32)
    map_y = np.where(accepted, py, 0.0).astype(np.float32)
    source = np.ascontiguousarray(image, dtype=np.float32)
    samples = np.empty(accepted.shape + (3,), dtype=np.float32)
    # cv2.remap refuses maps with a side of SHRT_MAX or more
    for col in range(0, accepted.shape[1], REMAP_MAX_COLS):
        cols = slice(col, col + REMAP_MAX_COLS)
        chunk = cv2.remap(source, np.ascontiguousarray(map_x[:, cols]),
                          np.ascontiguousarray(map_y[:, cols]),
                          cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)
        samples[:, cols] = chunk.reshape(map_x[:, cols].shape + (-1,))[..., :3]

    color_sum[accepted] = samples[accepted] * weights[accepted, np.newaxis]
    weight_sum[accepted] = weights[accepted]
    return color_sum, weight_sum


def _load_view_image(read_image: Callable, view: View) -> np.ndarray:
    logger.info("Reading %s", view.image_path)
    return read_image(view.image_path)


def composite_panorama(sfm_data: SfMData, params: Optional[StitchingParameters] = None,
                       read_image: Callable = default_read_image,
                       num_workers: Optional[int] = None) -> PanoramaCanvas:
    """
    Composite every valid view of the scene into a normalized canvas.

    A view whose image cannot be read is skipped with a warning.

    Args:
        sfm_data: Scene with views, poses and intrinsics
        params: Blend parameters (defaults if None)
        read_image: Callable returning (h, w, 3) linear float RGB for a path
        num_workers: Thread count (default: CPU count)

    Raises:
        InvalidConfigurationError: Parameters or worker count out of range
        NoValidCamerasError: No valid view, or no valid view could be read
    """
    params = (params or StitchingParameters()).validate()

    valid_views = sfm_data.get_valid_views()
    logger.info("%d cameras loaded", len(valid_views))
    if not valid_views:
        raise NoValidCamerasError("Failed to get valid cameras from input images.")

    width, height = compute_panorama_size(valid_views, valid_views[0].orientation,
                                          params.scale_factor, params.panorama_size)
    canvas = PanoramaCanvas(width, height)

    if num_workers is None:
        num_workers = os.cpu_count() or 1
    elif num_workers < 1:
        raise InvalidConfigurationError(f"Worker count must be at least 1, got {num_workers}")
    bands = row_bands(height, num_workers * BANDS_PER_WORKER)
    composited = 0

    with ThreadPoolExecutor(max_workers=num_workers) as executor:
        next_image = executor.submit(_load_view_image, read_image, valid_views[0])
        for index, view in enumerate(valid_views):
            image_future = next_image
            if index + 1 < len(valid_views):
                next_image = executor.submit(_load_view_image, read_image, valid_views[index + 1])

            try:
                image = image_future.result()
            except ImageReadError as e:
                logger.warning("Skipping view %d: %s", view.view_id, e)
                continue

            pose = sfm_data.get_pose(view)
            intrinsic = sfm_data.get_intrinsic(view)
            contributions = executor.map(
                lambda band: composite_view_band(image, pose, intrinsic, width, height,
                                                 band[0], band[1], params),
                bands)
            for (row_start, _), (color_sum, weight_sum) in zip(bands, contributions):
                canvas.add_band(row_start, color_sum, weight_sum)
            composited += 1

    if composited == 0:
        raise NoValidCamerasError(f"None of the {len(valid_views)} valid views could be read.")

    canvas.normalize()
    return canvas
