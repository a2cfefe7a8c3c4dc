import numpy as np
import pytest

from panorama_stitching.spherical_mapping import (
    canvas_rays,
    canvas_to_longitude_latitude,
    canvas_to_ray,
)


@pytest.mark.parametrize('width,height', [(8, 4), (37, 19), (1000, 500)])
def test_rays_are_unit_length(width, height):
    rays = canvas_rays(width, height)
    assert rays.shape == (height, width, 3)
    np.testing.assert_allclose(np.linalg.norm(rays, axis=-1), 1.0, atol=1e-6)


def test_scalar_ray_is_a_3_vector():
    ray = canvas_to_ray(3, 1, 8, 4)
    assert ray.shape == (3,)
    assert abs(np.linalg.norm(ray) - 1.0) < 1e-6


def test_center_column_maps_to_minus_pi():
    width, height = 360, 180
    longitude, latitude = canvas_to_longitude_latitude(width / 2, height / 2, width, height)
    assert longitude == pytest.approx(-np.pi)
    assert latitude == pytest.approx(0.0)
    np.testing.assert_allclose(canvas_to_ray(width / 2, height / 2, width, height),
                               [-1.0, 0.0, 0.0], atol=1e-12)


def test_column_zero_faces_positive_x():
    np.testing.assert_allclose(canvas_to_ray(0, 2, 8, 4), [1.0, 0.0, 0.0], atol=1e-12)


def test_top_row_is_north_pole():
    np.testing.assert_allclose(canvas_to_ray(5, 0, 8, 4), [0.0, 0.0, 1.0], atol=1e-12)


def test_longitude_increases_monotonically_across_columns():
    longitude, _ = canvas_to_longitude_latitude(np.arange(64), 0, 64, 32)
    assert np.all(np.diff(longitude) > 0)
    assert longitude[0] == pytest.approx(-2 * np.pi)
    assert longitude[-1] < 0


def test_band_matches_full_grid():
    full = canvas_rays(16, 8)
    np.testing.assert_array_equal(canvas_rays(16, 8, 3, 6), full[3:6])
