import numpy as np
import pytest

from panorama_stitching.cameras import EquiDistant, Pose
from panorama_stitching.sfm_data import SfMData, View

FRONT_COLOR = (0.2, 0.4, 0.6)
BACK_COLOR = (0.8, 0.6, 0.0)


def uniform_image(color, width=4, height=4):
    img = np.empty((height, width, 3), dtype=np.float32)
    img[...] = color
    return img


def make_two_camera_scene(front_id=1, back_id=2, center_offset=0.5):
    """Two 4x4 full-sphere fisheyes looking at +x and -x.

    Shifting both optical centers backwards by center_offset makes the
    hemispheres they see overlap around the x = 0 plane.
    """
    sfm_data = SfMData()
    # 270 degree lens: a ray 90 degrees off axis lands 4/3 px from the center
    sfm_data.intrinsics[0] = EquiDistant(4, 4, fov=1.5 * np.pi)
    sfm_data.poses[0] = Pose.looking_at((1.0, 0.0, 0.0), center=(-center_offset, 0.0, 0.0))
    sfm_data.poses[1] = Pose.looking_at((-1.0, 0.0, 0.0), center=(center_offset, 0.0, 0.0))
    sfm_data.views[front_id] = View(front_id, 'front.png', 4, 4, pose_id=0, intrinsic_id=0)
    sfm_data.views[back_id] = View(back_id, 'back.png', 4, 4, pose_id=1, intrinsic_id=0)
    return sfm_data


@pytest.fixture
def two_camera_scene():
    return make_two_camera_scene()


@pytest.fixture
def two_camera_images():
    return {
        'front.png': uniform_image(FRONT_COLOR),
        'back.png': uniform_image(BACK_COLOR),
    }
