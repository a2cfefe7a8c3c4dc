"""
Camera extrinsics: rotation and optical center in the scene frame.
"""

import numpy as np
from typing import Sequence


class Pose:
    """World-to-camera rigid transform, X_cam = R (X - C).

    The camera looks down its +z axis with +x to the right and +y down.
    """

    def __init__(self, rotation=None, center=None):
        self.rotation = np.eye(3) if rotation is None else np.asarray(rotation, dtype=np.float64)
        self.center = np.zeros(3) if center is None else np.asarray(center, dtype=np.float64)
        if self.rotation.shape != (3, 3):
            raise ValueError(f"Rotation must be 3x3, got shape {self.rotation.shape}")
        if self.center.shape != (3,):
            raise ValueError(f"Center must have 3 components, got shape {self.center.shape}")

    @classmethod
    def looking_at(cls, direction: Sequence[float], up: Sequence[float] = (0.0, 0.0, 1.0),
                   center: Sequence[float] = (0.0, 0.0, 0.0)) -> 'Pose':
        """Build a pose whose optical axis points along `direction`."""
        forward = np.asarray(direction, dtype=np.float64)
        forward = forward / np.linalg.norm(forward)
        right = np.cross(forward, np.asarray(up, dtype=np.float64))
        norm = np.linalg.norm(right)
        if norm < 1e-12:
            raise ValueError("Viewing direction is parallel to the up vector")
        right /= norm
        down = np.cross(forward, right)
        return cls(np.stack([right, down, forward]), center)

    def transform(self, points: np.ndarray) -> np.ndarray:
        """Apply the pose to (..., 3) points."""
        points = np.asarray(points, dtype=np.float64)
        return (points - self.center) @ self.rotation.T

    def depth(self, points: np.ndarray) -> np.ndarray:
        """Signed depth along the optical axis; negative means behind the camera."""
        return self.transform(points)[..., 2]

    def __repr__(self):
        return f"Pose(rotation={self.rotation.tolist()}, center={self.center.tolist()})"
