"""
Camera intrinsic models mapping camera-frame rays to image pixels.

Every model exposes project(pose, points, apply_distortion) over (..., 3)
arrays and returns (..., 2) pixel coordinates. Points that cannot be
projected come back as non-finite coordinates.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Sequence, Tuple

from .pose import Pose


def radial_k1(p: np.ndarray, k1: float) -> np.ndarray:
    r2 = np.sum(p**2, axis=-1, keepdims=True)
    return p * (1.0 + k1 * r2)


def radial_k3(p: np.ndarray, k1: float, k2: float, k3: float) -> np.ndarray:
    r2 = np.sum(p**2, axis=-1, keepdims=True)
    return p * (1.0 + k1 * r2 + k2 * r2**2 + k3 * r2**3)


def fisheye_k4(p: np.ndarray, k1: float, k2: float, k3: float, k4: float) -> np.ndarray:
    """Equidistant fisheye polynomial: theta_d = theta (1 + k1 t^2 + ... + k4 t^8)."""
    r = np.sqrt(np.sum(p**2, axis=-1, keepdims=True))
    theta = np.arctan(r)
    theta2 = theta**2
    theta_dist = theta * (1.0 + k1 * theta2 + k2 * theta2**2 + k3 * theta2**3 + k4 * theta2**4)
    with np.errstate(divide='ignore', invalid='ignore'):
        cdist = np.where(r > 1e-8, theta_dist / r, 1.0)
    return p * cdist


class IntrinsicBase(ABC):
    """Projection capability shared by all camera families."""

    type_name = ''
    n_distortion_params = 0

    def __init__(self, width: int, height: int, distortion_params: Sequence[float] = ()):
        self.width = int(width)
        self.height = int(height)
        params = [float(k) for k in distortion_params]
        if params and len(params) != self.n_distortion_params:
            raise ValueError(f"{self.type_name} expects {self.n_distortion_params} "
                             f"distortion parameters, got {len(params)}")
        self.distortion_params = tuple(params) if params else (0.0,) * self.n_distortion_params

    def add_distortion(self, p: np.ndarray) -> np.ndarray:
        return p

    @abstractmethod
    def project(self, pose: Pose, points: np.ndarray, apply_distortion: bool = True) -> np.ndarray:
        """Project world points through `pose` into pixel coordinates."""

    def __repr__(self):
        return f"{type(self).__name__}({self.width}x{self.height}, disto={self.distortion_params})"


class Pinhole(IntrinsicBase):
    type_name = 'pinhole'

    def __init__(self, width: int, height: int, focal: float,
                 principal_point: Tuple[float, float] = None, distortion_params: Sequence[float] = ()):
        super().__init__(width, height, distortion_params)
        self.focal = float(focal)
        if principal_point is None:
            principal_point = (width / 2.0, height / 2.0)
        self.principal_point = np.asarray(principal_point, dtype=np.float64)

    def project(self, pose: Pose, points: np.ndarray, apply_distortion: bool = True) -> np.ndarray:
        X = pose.transform(points)
        with np.errstate(divide='ignore', invalid='ignore'):
            p = X[..., :2] / X[..., 2:3]
        if apply_distortion:
            p = self.add_distortion(p)
        return self.focal * p + self.principal_point


class PinholeRadialK1(Pinhole):
    type_name = 'radial1'
    n_distortion_params = 1

    def add_distortion(self, p):
        return radial_k1(p, *self.distortion_params)


class PinholeRadialK3(Pinhole):
    type_name = 'radial3'
    n_distortion_params = 3

    def add_distortion(self, p):
        return radial_k3(p, *self.distortion_params)


class Fisheye4(Pinhole):
    type_name = 'fisheye4'
    n_distortion_params = 4

    def add_distortion(self, p):
        return fisheye_k4(p, *self.distortion_params)


class EquiDistant(IntrinsicBase):
    """Full-sphere equidistant lens; the image radius is linear in off-axis angle."""
    type_name = 'equidistant'

    def __init__(self, width: int, height: int, fov: float,
                 circle_center: Tuple[float, float] = None, circle_radius: float = None,
                 distortion_params: Sequence[float] = ()):
        super().__init__(width, height, distortion_params)
        self.fov = float(fov)  # radians
        if circle_center is None:
            circle_center = (width / 2.0, height / 2.0)
        self.circle_center = np.asarray(circle_center, dtype=np.float64)
        self.circle_radius = float(circle_radius) if circle_radius is not None else min(width, height) / 2.0

    def project(self, pose: Pose, points: np.ndarray, apply_distortion: bool = True) -> np.ndarray:
        X = pose.transform(points)
        x, y, z = X[..., 0], X[..., 1], X[..., 2]

        angle_radial = np.arctan2(y, x)
        angle_z = np.arctan2(np.sqrt(x**2 + y**2), z)
        radius = angle_z / (0.5 * self.fov)

        p = np.stack([np.cos(angle_radial) * radius, np.sin(angle_radial) * radius], axis=-1)
        if apply_distortion:
            p = self.add_distortion(p)
        return p * self.circle_radius + self.circle_center


class EquiDistantRadialK3(EquiDistant):
    type_name = 'equidistant_r3'
    n_distortion_params = 3

    def add_distortion(self, p):
        return radial_k3(p, *self.distortion_params)


INTRINSIC_TYPES = {
    cls.type_name: cls
    for cls in (Pinhole, PinholeRadialK1, PinholeRadialK3, Fisheye4, EquiDistant, EquiDistantRadialK3)
}


def make_intrinsic(type_name: str, width: int, height: int, **kwargs) -> IntrinsicBase:
    """Instantiate an intrinsic model from its serialized type name."""
    try:
        cls = INTRINSIC_TYPES[type_name]
    except KeyError:
        raise ValueError(f"Unknown intrinsic type: {type_name}") from None
    return cls(width, height, **kwargs)
