import os
import subprocess
import sys

import cv2
import numpy as np
import pytest

from panorama_stitching.errors import ImageReadError
from panorama_stitching.image_io import linear_to_srgb, read_image, srgb_to_linear, write_image


def rgba_canvas():
    # Row 0: red, opaque and green, uncovered. Row 1: mid grey and white, opaque
    rgba = np.zeros((2, 2, 4), dtype=np.float32)
    rgba[0, 0] = (1.0, 0.0, 0.0, 1.0)
    rgba[0, 1] = (0.0, 1.0, 0.0, 0.0)
    rgba[1, 0] = (0.5, 0.5, 0.5, 1.0)
    rgba[1, 1] = (1.0, 1.0, 1.0, 1.0)
    return rgba


def test_srgb_transfer_functions():
    np.testing.assert_allclose(srgb_to_linear([0.0, 0.04045, 0.5, 1.0]),
                               [0.0, 0.04045 / 12.92, 0.214041, 1.0], rtol=1e-5, atol=1e-7)
    values = np.linspace(0.0, 1.0, 101)
    np.testing.assert_allclose(linear_to_srgb(srgb_to_linear(values)), values, atol=1e-5)
    # Encoding clips to the displayable range
    np.testing.assert_allclose(linear_to_srgb([-0.5, 2.0]), [0.0, 1.0], atol=1e-6)


def test_read_8bit_is_linear_rgb(tmp_path):
    bgr = np.zeros((2, 3, 3), dtype=np.uint8)
    bgr[..., 2] = 255
    bgr[..., 1] = 128
    path = tmp_path / 'red.png'
    cv2.imwrite(str(path), bgr)

    img = read_image(path)

    assert img.shape == (2, 3, 3)
    assert img.dtype == np.float32
    np.testing.assert_allclose(img[..., 0], 1.0, atol=1e-6)
    np.testing.assert_allclose(img[..., 1], srgb_to_linear(128 / 255.0), atol=1e-6)
    np.testing.assert_allclose(img[..., 2], 0.0)


def test_read_16bit_uses_full_range(tmp_path):
    bgr = np.full((2, 2, 3), 65535, dtype=np.uint16)
    bgr[0, 0] = 0
    path = tmp_path / 'deep.png'
    cv2.imwrite(str(path), bgr)

    img = read_image(path)

    np.testing.assert_allclose(img[0, 0], 0.0)
    np.testing.assert_allclose(img[1, 1], 1.0, atol=1e-6)


def test_read_grayscale_expands_to_rgb(tmp_path):
    path = tmp_path / 'gray.png'
    cv2.imwrite(str(path), np.full((3, 2), 255, dtype=np.uint8))

    img = read_image(path)

    assert img.shape == (3, 2, 3)
    np.testing.assert_allclose(img, 1.0, atol=1e-6)


def test_read_drops_alpha(tmp_path):
    bgra = np.zeros((2, 2, 4), dtype=np.uint8)
    bgra[..., 0] = 255
    bgra[..., 3] = 10
    path = tmp_path / 'alpha.png'
    cv2.imwrite(str(path), bgra)

    img = read_image(path)

    assert img.shape == (2, 2, 3)
    np.testing.assert_allclose(img[..., 2], 1.0, atol=1e-6)
    np.testing.assert_allclose(img[..., :2], 0.0)


def test_float_tiff_keeps_linear_rgba(tmp_path):
    rgba = rgba_canvas()
    rgba[1, 1, :3] = 2.5
    path = tmp_path / 'pano.tif'

    write_image(path, rgba)

    raw = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    assert raw.dtype == np.float32
    assert raw.shape == (2, 2, 4)
    np.testing.assert_allclose(raw, cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))

    # Values above one survive the trip back through read_image
    np.testing.assert_allclose(read_image(path), rgba[..., :3])


def test_png_is_16bit_srgb_rgba(tmp_path):
    rgba = rgba_canvas()
    path = tmp_path / 'pano.png'

    write_image(path, rgba)

    raw = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    assert raw.dtype == np.uint16
    assert raw.shape == (2, 2, 4)
    np.testing.assert_array_equal(raw[..., 3], [[65535, 0], [65535, 65535]])
    np.testing.assert_array_equal(raw[0, 0, :3], [0, 0, 65535])
    assert abs(int(raw[1, 0, 0]) - float(linear_to_srgb(0.5)) * 65535) <= 1
    np.testing.assert_allclose(read_image(path), rgba[..., :3], atol=1e-4)


@pytest.mark.parametrize('suffix', ['.jpg', '.jpeg', '.bmp'])
def test_formats_without_alpha_are_8bit_rgb(tmp_path, suffix):
    path = tmp_path / f'pano{suffix}'

    write_image(path, rgba_canvas())

    raw = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    assert raw.dtype == np.uint8
    assert raw.shape == (2, 2, 3)


def test_bmp_is_lossless_srgb(tmp_path):
    path = tmp_path / 'pano.bmp'
    write_image(path, rgba_canvas())

    raw = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    np.testing.assert_array_equal(raw[0, 0], [0, 0, 255])
    np.testing.assert_array_equal(raw[1, 1], [255, 255, 255])
    assert abs(int(raw[1, 0, 1]) - float(linear_to_srgb(0.5)) * 255) <= 1


@pytest.mark.parametrize('name,content', [
    ('missing.png', None),
    ('broken.png', b'not an image'),
])
def test_unreadable_image_raises(tmp_path, name, content):
    path = tmp_path / name
    if content is not None:
        path.write_bytes(content)
    with pytest.raises(ImageReadError):
        read_image(path)


def test_unknown_extension_is_a_write_error(tmp_path):
    with pytest.raises(IOError):
        write_image(tmp_path / 'pano.xyz', rgba_canvas())


def test_unwritable_directory_is_a_write_error(tmp_path):
    with pytest.raises(IOError):
        write_image(tmp_path / 'missing' / 'pano.png', rgba_canvas())


IMPORT_ORDER_CHECK = """
import os
import sys


class EXRGuard:
    def find_spec(self, name, path=None, target=None):
        if name == 'cv2' and os.environ.get('OPENCV_IO_ENABLE_OPENEXR') != '1':
            raise ImportError('cv2 imported before OpenEXR was enabled')
        return None


sys.meta_path.insert(0, EXRGuard())
import panorama_stitching
"""


def test_openexr_is_enabled_before_opencv_is_imported():
    env = {k: v for k, v in os.environ.items() if k != 'OPENCV_IO_ENABLE_OPENEXR'}
    env['PYTHONPATH'] = os.pathsep.join(sys.path)
    result = subprocess.run([sys.executable, '-c', IMPORT_ORDER_CHECK],
                            env=env, capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
