# tests/test_upscale.py
"""
Bilinear upscaling: boundary exactness, per-channel interpolation, degenerate sizes.
"""

import numpy as np
import pytest

from capturepng.errors import InvalidGeometryError
from capturepng.pixels import PackedARGBSource, StridedARGBSource
from capturepng.upscale import bilinear_upscale, upscale_source
from utils import generate_argb_pixels, strided_argb_buffer

CORNERS = [0xFFFF0000, 0xFF00FF00, 0xFF0000FF, 0x80FFFFFF]


def test_corners_are_exact_2x2_to_4x4():
    out = bilinear_upscale(PackedARGBSource(2, 2, CORNERS), 4, 4)
    assert out.shape == (4, 4)
    assert out.dtype == np.uint32
    assert out[0, 0] == CORNERS[0]
    assert out[0, 3] == CORNERS[1]
    assert out[3, 0] == CORNERS[2]
    assert out[3, 3] == CORNERS[3]


@pytest.mark.parametrize("dst", [(5, 5), (7, 3), (33, 17), (100, 64)])
def test_corners_are_exact_for_odd_ratios(dst):
    w, h = 3, 2
    pixels = generate_argb_pixels(w, h)
    out = bilinear_upscale(PackedARGBSource(w, h, pixels), *dst)
    dw, dh = dst
    assert out[0, 0] == pixels[0]
    assert out[0, dw - 1] == pixels[w - 1]
    assert out[dh - 1, 0] == pixels[(h - 1) * w]
    assert out[dh - 1, dw - 1] == pixels[h * w - 1]


def test_same_size_is_identity():
    w, h = 6, 4
    pixels = generate_argb_pixels(w, h)
    out = bilinear_upscale(PackedARGBSource(w, h, pixels), w, h)
    np.testing.assert_array_equal(out.reshape(-1), np.array(pixels, dtype=np.uint32))


def test_midpoint_rounds_half_up():
    out = bilinear_upscale(PackedARGBSource(2, 1, [0xFF000000, 0xFF0000FF]), 3, 1)
    assert out[0, 1] == 0xFF000080  # 127.5 -> 128


def test_channels_interpolated_independently():
    # Averaging the packed integers would smear alpha into red; per-channel gives 0x80 each
    out = bilinear_upscale(PackedARGBSource(2, 1, [0x00FFFFFF, 0xFF000000]), 3, 1)
    assert out[0, 1] == 0x80808080


def test_two_dimensional_weighting():
    # centre of a 2x2 -> 3x3 is the average of all four corners
    src = PackedARGBSource(2, 2, [0xFF000000, 0xFF000064, 0xFF0000C8, 0xFF0000FF])
    out = bilinear_upscale(src, 3, 3)
    # (0 + 100 + 200 + 255) / 4 = 138.75 -> 139
    assert out[1, 1] & 0xFF == 139
    assert out[1, 1] >> 24 == 0xFF


def test_single_pixel_source_fills_destination():
    out = bilinear_upscale(PackedARGBSource(1, 1, [0x7F123456]), 3, 2)
    assert (out == 0x7F123456).all()


def test_single_pixel_destination_avoids_division_by_zero():
    src = PackedARGBSource(1, 3, [0xFF010203, 0xFF040506, 0xFF070809])
    out = bilinear_upscale(src, 1, 5)
    assert out.shape == (5, 1)
    assert out[0, 0] == 0xFF010203
    assert out[4, 0] == 0xFF070809


def test_downscale_rejected_by_default():
    src = PackedARGBSource(4, 4, generate_argb_pixels(4, 4))
    with pytest.raises(InvalidGeometryError):
        bilinear_upscale(src, 2, 8)


def test_downscale_allowed_when_requested():
    pixels = generate_argb_pixels(4, 4)
    out = bilinear_upscale(PackedARGBSource(4, 4, pixels), 1, 1, allow_downscale=True)
    assert out[0, 0] == pixels[0]


@pytest.mark.parametrize("dst", [(0, 4), (4, -1)])
def test_invalid_target_geometry(dst):
    with pytest.raises(InvalidGeometryError):
        bilinear_upscale(PackedARGBSource(1, 1, [0]), *dst)


def test_strided_source_upscale_matches_packed():
    w, h, pitch = 3, 3, 16
    pixels = generate_argb_pixels(w, h)
    strided = StridedARGBSource(w, h, strided_argb_buffer(pixels, w, h, pitch), pitch)
    packed = PackedARGBSource(w, h, pixels)
    np.testing.assert_array_equal(bilinear_upscale(strided, 8, 8), bilinear_upscale(packed, 8, 8))


def test_upscale_source_wraps_result():
    src = upscale_source(PackedARGBSource(2, 2, CORNERS), 5, 4)
    assert isinstance(src, PackedARGBSource)
    assert src.size == (5, 4)
    assert src.get(4, 3) == (0xFF, 0xFF, 0xFF, 0x80)
