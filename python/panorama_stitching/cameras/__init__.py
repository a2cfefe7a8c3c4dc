"""Camera pose and intrinsic projection models."""

from .pose import Pose
from .intrinsics import (
    IntrinsicBase,
    Pinhole,
    PinholeRadialK1,
    PinholeRadialK3,
    Fisheye4,
    EquiDistant,
    EquiDistantRadialK3,
    INTRINSIC_TYPES,
    make_intrinsic
)

__all__ = [
    'Pose',
    'IntrinsicBase', 'Pinhole', 'PinholeRadialK1', 'PinholeRadialK3',
    'Fisheye4', 'EquiDistant', 'EquiDistantRadialK3',
    'INTRINSIC_TYPES', 'make_intrinsic',
]
