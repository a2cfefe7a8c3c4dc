"""
Panorama Stitching Package for posed multi-camera 360° capture

Modules:
- spherical_mapping: Equirectangular canvas to unit ray mapping
- canvas_size: Output panorama size heuristic
- calib: Stitching parameters and contribution masking
- cameras: Camera poses and intrinsic projection models
- sfm_data: SfM scene loading
- compositing: Weighted accumulation canvas and compositing loop
- image_io: Linear-light image decoding and encoding

Usage:
    from panorama_stitching import load_sfm_data, composite_panorama
    canvas = composite_panorama(load_sfm_data('cameras.sfm'))
"""

import os

# OpenCV only decodes and encodes EXR when this is set before its first use
os.environ.setdefault('OPENCV_IO_ENABLE_OPENEXR', '1')

from .spherical_mapping import (
    canvas_to_longitude_latitude,
    canvas_to_ray,
    canvas_rays
)

from .canvas_size import compute_panorama_size

from .calib import (
    StitchingParameters,
    sigmoid,
    contribution_weights,
    contribution_weight
)

from .cameras import Pose, IntrinsicBase, make_intrinsic

from .sfm_data import EXIFOrientation, View, SfMData, load_sfm_data

from .compositing import (
    PanoramaCanvas,
    composite_view_band,
    composite_panorama,
    WEIGHT_EPSILON
)

from .errors import (
    StitchingError,
    SceneLoadError,
    NoValidCamerasError,
    InvalidConfigurationError,
    ImageReadError
)

__version__ = '1.0.0'
__all__ = [
    # Spherical mapping
    'canvas_to_longitude_latitude', 'canvas_to_ray', 'canvas_rays',
    # Canvas size
    'compute_panorama_size',
    # Parameters and masking
    'StitchingParameters', 'sigmoid', 'contribution_weights', 'contribution_weight',
    # Cameras
    'Pose', 'IntrinsicBase', 'make_intrinsic',
    # Scene
    'EXIFOrientation', 'View', 'SfMData', 'load_sfm_data',
    # Compositing
    'PanoramaCanvas', 'composite_view_band', 'composite_panorama', 'WEIGHT_EPSILON',
    # Errors
    'StitchingError', 'SceneLoadError', 'NoValidCamerasError',
    'InvalidConfigurationError', 'ImageReadError',
]
