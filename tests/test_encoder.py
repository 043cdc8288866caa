# tests/test_encoder.py
"""
End-to-end encoding: produced files must decode with independent decoders
(pypng and Pillow) to exactly the input pixels.
"""

import logging
import zlib

import numpy as np
import pytest
from PIL import Image

from capturepng import (PNGEncoder, encode_png, encode_png_upscaled, save_png,
                        save_png_upscaled)
from capturepng import config
from capturepng.constants import PNG_SIGNATURE
from capturepng.errors import (InvalidGeometryError,
                               UnsupportedPixelSourceError)
from capturepng.pixels import PackedARGBSource
from capturepng.upscale import bilinear_upscale
from capturepng.verify import check_structure, decode_png
from utils import (argb_to_rgba_array, decode_with_pillow, generate_argb_pixels,
                   split_png, strided_argb_buffer)


def test_single_white_pixel_exact_bytes():
    data = encode_png(1, 1, [0xFFFFFFFF])
    assert data[:8] == PNG_SIGNATURE
    chunks = split_png(data)
    assert chunks[0][1] == b"\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
    assert chunks[1][1] == bytes.fromhex("7801" "010500faff" "00ffffffff" "09fb03fd")
    assert chunks[2] == (b"IEND", b"", 0xAE426082)


def test_roundtrip_pypng():
    w, h = 7, 5
    pixels = generate_argb_pixels(w, h)
    decoded = decode_png(encode_png(w, h, pixels))
    np.testing.assert_array_equal(decoded, argb_to_rgba_array(pixels, w, h))


def test_roundtrip_pillow():
    w, h = 4, 9
    pixels = generate_argb_pixels(w, h)
    mode, arr = decode_with_pillow(encode_png(w, h, pixels))
    assert mode == "RGBA"
    np.testing.assert_array_equal(arr, argb_to_rgba_array(pixels, w, h))


def test_fully_transparent_pixels_keep_colour():
    pixels = [0x00123456, 0x00FFFFFF]
    decoded = decode_png(encode_png(2, 1, pixels))
    assert decoded[0, 0].tolist() == [0x12, 0x34, 0x56, 0]
    assert decoded[0, 1].tolist() == [255, 255, 255, 0]


def test_large_image_spans_multiple_blocks():
    w, h = 200, 100  # 80100 scanline bytes
    pixels = generate_argb_pixels(w, h)
    data = encode_png(w, h, pixels)
    header, scanlines = check_structure(data)
    assert (header.width, header.height) == (w, h)
    assert len(scanlines) == h * (1 + w * 4)
    np.testing.assert_array_equal(decode_png(data), argb_to_rgba_array(pixels, w, h))


def test_encoding_is_deterministic():
    pixels = generate_argb_pixels(5, 5)
    assert encode_png(5, 5, pixels) == encode_png(5, 5, list(pixels))


def test_output_is_uncompressed():
    w, h = 16, 16
    data = encode_png(w, h, [0xFF000000] * (w * h))
    idat = split_png(data)[1][1]
    raw = h * (1 + w * 4)
    # header + one stored block header + payload + trailer
    assert len(idat) == 2 + 5 + raw + 4
    assert zlib.decompress(idat) == (b"\x00" + b"\x00\x00\x00\xff" * w) * h


def test_rgba_bytes_and_strided_sources_agree():
    w, h, pitch = 3, 4, 16
    pixels = generate_argb_pixels(w, h)
    rgba = argb_to_rgba_array(pixels, w, h).tobytes()
    from_packed = encode_png(w, h, pixels)
    assert encode_png(w, h, rgba) == from_packed
    assert encode_png(w, h, strided_argb_buffer(pixels, w, h, pitch), pitch) == from_packed


def test_pillow_image_source():
    img = Image.new("RGBA", (2, 2), (1, 2, 3, 4))
    decoded = decode_png(encode_png(2, 2, img))
    assert (decoded == [1, 2, 3, 4]).all()


@pytest.mark.parametrize("w,h", [(0, 1), (1, 0), (-2, 3)])
def test_invalid_geometry_raises(w, h):
    with pytest.raises(InvalidGeometryError):
        encode_png(w, h, [0])


def test_missing_pixels_raise():
    with pytest.raises(UnsupportedPixelSourceError):
        encode_png(2, 2, None)


def test_small_block_size_from_config():
    config._active_config = config._deep_merge(
        config.DEFAULT_CONFIG, {"capturepng": {"encoder": {"max_block_size": 16}}}
    )
    encoder = PNGEncoder()
    assert encoder.max_block_size == 16
    pixels = generate_argb_pixels(3, 3)
    data = encoder.encode(3, 3, pixels)
    _, scanlines = check_structure(data)
    assert len(scanlines) == 39
    np.testing.assert_array_equal(decode_png(data), argb_to_rgba_array(pixels, 3, 3))


def test_constructor_overrides():
    encoder = PNGEncoder(max_block_size=100, flg_baseline=2)
    data = encoder.encode(2, 2, [0xFFFFFFFF] * 4)
    assert split_png(data)[1][1][:2] == bytes([0x78, 94])


@pytest.mark.parametrize("kwargs", [{"max_block_size": 0}, {"max_block_size": 70000}, {"flg_baseline": 250}])
def test_constructor_rejects_bad_settings(kwargs):
    with pytest.raises(ValueError):
        PNGEncoder(**kwargs)


# --- Upscaled encode ---

def test_upscaled_roundtrip():
    src = [0xFFFF0000, 0xFF00FF00, 0xFF0000FF, 0x80FFFFFF]
    data = encode_png_upscaled(2, 2, src, None, 5, 3)
    decoded = decode_png(data)
    assert decoded.shape == (3, 5, 4)
    expected = bilinear_upscale(PackedARGBSource(2, 2, src), 5, 3).reshape(-1).tolist()
    np.testing.assert_array_equal(decoded, argb_to_rgba_array(expected, 5, 3))
    assert decoded[0, 0].tolist() == [255, 0, 0, 255]
    assert decoded[2, 4].tolist() == [255, 255, 255, 128]


def test_upscaled_from_strided_buffer():
    w, h, pitch = 2, 2, 12
    pixels = generate_argb_pixels(w, h)
    buf = strided_argb_buffer(pixels, w, h, pitch)
    assert encode_png_upscaled(w, h, buf, pitch, 6, 6) == encode_png_upscaled(w, h, pixels, None, 6, 6)


def test_upscaled_invalid_destination():
    with pytest.raises(InvalidGeometryError):
        encode_png_upscaled(2, 2, [0] * 4, None, 0, 4)


def test_upscaled_downscale_rejected():
    with pytest.raises(InvalidGeometryError):
        encode_png_upscaled(4, 4, [0] * 16, None, 2, 2)


def test_upscaled_downscale_enabled():
    data = PNGEncoder(allow_downscale=True).encode_upscaled(4, 4, [0xFF0000FF] * 16, None, 2, 2)
    assert (decode_png(data) == [0, 0, 255, 255]).all()


# --- Save ---

def test_save_writes_file(tmp_path):
    path = tmp_path / "shot.png"
    ok, err = save_png(str(path), 3, 2, generate_argb_pixels(3, 2))
    assert (ok, err) == (True, None)
    assert path.read_bytes() == encode_png(3, 2, generate_argb_pixels(3, 2))


def test_save_overwrites_existing_file(tmp_path):
    path = tmp_path / "shot.png"
    path.write_bytes(b"x" * 10000)
    assert save_png(str(path), 1, 1, [0xFFFFFFFF]) == (True, None)
    assert path.read_bytes() == encode_png(1, 1, [0xFFFFFFFF])


def test_save_reports_unopenable_path(tmp_path, caplog):
    path = tmp_path / "missing" / "shot.png"
    with caplog.at_level(logging.ERROR, logger="capturepng"):
        ok, err = save_png(str(path), 1, 1, [0xFFFFFFFF])
    assert ok is False
    assert err.startswith("Failed to open file")
    assert not path.exists()
    assert "Failed to open" in caplog.text


def test_save_reports_bad_input_without_raising(tmp_path):
    path = tmp_path / "shot.png"
    ok, err = save_png(str(path), 0, 1, [0])
    assert ok is False
    assert "width" in err or "height" in err
    assert not path.exists()

    ok, err = save_png(str(path), 1, 1, None)
    assert ok is False
    assert err
    assert not path.exists()


def test_save_upscaled(tmp_path):
    path = tmp_path / "big.png"
    ok, err = save_png_upscaled(str(path), 1, 1, [0xFF336699], None, 4, 4)
    assert (ok, err) == (True, None)
    assert (decode_png(path.read_bytes()) == [0x33, 0x66, 0x99, 0xFF]).all()


def test_save_upscaled_downscale_error(tmp_path):
    ok, err = save_png_upscaled(str(tmp_path / "small.png"), 4, 4, [0] * 16, None, 2, 2)
    assert ok is False
    assert err


# --- Pitched packed sources ---

PAD = 0xDEADBEEF
PITCHED = [0xFFFF0000, 0xFF00FF00, PAD, PAD, 0xFF0000FF, 0xFFFFFFFF, PAD, PAD]


def test_pitched_uint32_array_ignores_row_padding():
    data = encode_png(2, 2, np.array(PITCHED, dtype=np.uint32), pitch=16)
    decoded = decode_png(data)
    assert decoded[1, 0].tolist() == [0, 0, 255, 255]
    assert data == encode_png(2, 2, [0xFFFF0000, 0xFF00FF00, 0xFF0000FF, 0xFFFFFFFF])


def test_pitched_list_upscaled_matches_tight_list():
    tight = [0xFFFF0000, 0xFF00FF00, 0xFF0000FF, 0xFFFFFFFF]
    assert encode_png_upscaled(2, 2, PITCHED, 16, 4, 4) == encode_png_upscaled(2, 2, tight, None, 4, 4)


def test_save_reports_ragged_source(tmp_path):
    path = tmp_path / "shot.png"
    ok, err = save_png(str(path), 2, 1, [[0xFF000000], [1, 2]])
    assert ok is False
    assert err
    assert not path.exists()


def test_save_reports_pitch_with_image(tmp_path):
    ok, err = save_png(str(tmp_path / "shot.png"), 1, 1, Image.new("RGBA", (1, 1)), pitch=8)
    assert ok is False
    assert "pitch" in err
