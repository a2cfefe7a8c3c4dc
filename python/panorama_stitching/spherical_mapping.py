"""
Equirectangular canvas to unit-sphere mapping.

Column 0 sits at longitude -2*pi (equivalent to 0) and longitude grows
with the column index, reaching -pi at the center column. Row 0 is the
north pole (latitude +pi/2) and the last row approaches the south pole.
"""

import numpy as np
from typing import Optional


def canvas_to_longitude_latitude(x, y, width: int, height: int):
    """Convert canvas pixel coordinates to (longitude, latitude) in radians."""
    longitude = 2.0 * np.pi * (np.asarray(x, dtype=np.float64) - width) / width
    latitude = np.pi * (height / 2.0 - np.asarray(y, dtype=np.float64)) / height
    return longitude, latitude


def canvas_to_ray(x, y, width: int, height: int) -> np.ndarray:
    """Map canvas pixel coordinates to unit direction vectors.

    Works on scalars as well as broadcastable arrays; the result has a
    trailing axis of size 3 holding (Px, Py, Pz).
    """
    longitude, latitude = canvas_to_longitude_latitude(x, y, width, height)

    cos_lat = np.cos(latitude)
    Px = cos_lat * np.cos(longitude)
    Py = cos_lat * np.sin(longitude)
    Pz = np.sin(latitude)

    return np.stack(np.broadcast_arrays(Px, Py, Pz), axis=-1)


def canvas_rays(width: int, height: int, row_start: int = 0,
                row_stop: Optional[int] = None) -> np.ndarray:
    """Build the ray grid for canvas rows [row_start, row_stop).

    Returns:
        (rows, width, 3) float64 array of unit vectors
    """
    if row_stop is None:
        row_stop = height
    y, x = np.mgrid[row_start:row_stop, 0:width]
    return canvas_to_ray(x, y, width, height)
