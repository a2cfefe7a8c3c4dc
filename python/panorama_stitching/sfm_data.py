"""
SfM scene description: views, poses and intrinsics loaded from the
JSON scene file produced by the structure-from-motion stage.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

import numpy as np
from scipy.spatial.transform import Rotation

from .cameras import IntrinsicBase, Pose, make_intrinsic
from .errors import SceneLoadError

logger = logging.getLogger(__name__)


class EXIFOrientation(IntEnum):
    """EXIF orientation tag values."""
    NONE = 1
    REVERSED = 2
    UPSIDEDOWN = 3
    UPSIDEDOWN_REVERSED = 4
    LEFT_REVERSED = 5
    RIGHT = 6
    RIGHT_REVERSED = 7
    LEFT = 8
    UNKNOWN = -1

    @property
    def is_rotated(self) -> bool:
        """True for portrait-via-rotation classes (width and height swapped)."""
        return self in (EXIFOrientation.LEFT, EXIFOrientation.RIGHT,
                        EXIFOrientation.LEFT_REVERSED, EXIFOrientation.RIGHT_REVERSED)

    @classmethod
    def parse(cls, value) -> 'EXIFOrientation':
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


@dataclass
class View:
    """One source image contributed by one camera."""
    view_id: int
    image_path: str
    width: int
    height: int
    pose_id: Optional[int] = None
    intrinsic_id: Optional[int] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def orientation(self) -> EXIFOrientation:
        value = self.metadata.get('Orientation', self.metadata.get('Exif:Orientation'))
        return EXIFOrientation.parse(value)


@dataclass
class SfMData:
    views: Dict[int, View] = field(default_factory=dict)
    intrinsics: Dict[int, IntrinsicBase] = field(default_factory=dict)
    poses: Dict[int, Pose] = field(default_factory=dict)

    def is_pose_and_intrinsic_defined(self, view: View) -> bool:
        return view.pose_id in self.poses and view.intrinsic_id in self.intrinsics

    def get_valid_views(self) -> List[View]:
        """Views with both pose and intrinsic resolved, in view-id order."""
        return [self.views[view_id] for view_id in sorted(self.views)
                if self.is_pose_and_intrinsic_defined(self.views[view_id])]

    def get_pose(self, view: View) -> Pose:
        return self.poses[view.pose_id]

    def get_intrinsic(self, view: View) -> IntrinsicBase:
        return self.intrinsics[view.intrinsic_id]


def _parse_view(d) -> View:
    pose_id = d.get('poseId')
    intrinsic_id = d.get('intrinsicId')
    return View(
        view_id=int(d['viewId']),
        image_path=str(d['path']),
        width=int(d['width']),
        height=int(d['height']),
        pose_id=int(pose_id) if pose_id is not None else None,
        intrinsic_id=int(intrinsic_id) if intrinsic_id is not None else None,
        metadata={str(k): str(v) for k, v in d.get('metadata', {}).items()},
    )


def _parse_intrinsic(d) -> IntrinsicBase:
    type_name = d['type']
    width, height = int(d['width']), int(d['height'])
    distortion = [float(k) for k in d.get('distortionParams', [])]

    if type_name.startswith('equidistant'):
        center = d.get('circleCenter')
        radius = d.get('circleRadius')
        return make_intrinsic(
            type_name, width, height,
            fov=np.radians(float(d['fov'])),
            circle_center=[float(c) for c in center] if center is not None else None,
            circle_radius=float(radius) if radius is not None else None,
            distortion_params=distortion,
        )

    principal_point = d.get('principalPoint')
    return make_intrinsic(
        type_name, width, height,
        focal=float(d['pxFocalLength']),
        principal_point=[float(c) for c in principal_point] if principal_point is not None else None,
        distortion_params=distortion,
    )


def _parse_pose(d) -> Pose:
    transform = d['pose']['transform']
    values = [float(v) for v in transform['rotation']]
    if len(values) != 9:
        raise ValueError(f"rotation needs 9 values, got {len(values)}")
    # Stored column-major
    rotation = np.array(values).reshape(3, 3, order='F')
    rotation = Rotation.from_matrix(rotation).as_matrix()
    center = [float(v) for v in transform['center']]
    return Pose(rotation, center)


def load_sfm_data(filepath) -> SfMData:
    """Load views, intrinsics and extrinsics from an SfM JSON file."""
    try:
        with open(filepath) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise SceneLoadError(f"The input SfMData file '{filepath}' cannot be read: {e}") from e

    try:
        sfm_data = SfMData()
        for d in data.get('views', []):
            view = _parse_view(d)
            sfm_data.views[view.view_id] = view
        for d in data.get('intrinsics', []):
            sfm_data.intrinsics[int(d['intrinsicId'])] = _parse_intrinsic(d)
        for d in data.get('poses', []):
            sfm_data.poses[int(d['poseId'])] = _parse_pose(d)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SceneLoadError(f"The input SfMData file '{filepath}' is malformed: {e!r}") from e

    logger.debug("Loaded %d views, %d intrinsics, %d poses from %s",
                 len(sfm_data.views), len(sfm_data.intrinsics), len(sfm_data.poses), filepath)
    return sfm_data
