import io
import struct
from typing import List, Tuple

import numpy as np
from PIL import Image


def generate_argb_pixels(width: int, height: int) -> List[int]:
    """Deterministic packed 0xAARRGGBB gradient, row-major"""
    pixels = []
    for y in range(height):
        for x in range(width):
            r = (x * 37 + y * 11) & 0xFF
            g = (x * 5 + y * 73) & 0xFF
            b = (x * y * 13 + 7) & 0xFF
            a = (255 - x * 19 - y * 3) & 0xFF
            pixels.append((a << 24) | (r << 16) | (g << 8) | b)
    return pixels


def argb_to_rgba_array(pixels: List[int], width: int, height: int) -> np.ndarray:
    """Expected decode result for packed pixels, computed independently of the package"""
    out = np.zeros((height, width, 4), dtype=np.uint8)
    for i, p in enumerate(pixels[: width * height]):
        y, x = divmod(i, width)
        out[y, x] = [(p >> 16) & 0xFF, (p >> 8) & 0xFF, p & 0xFF, (p >> 24) & 0xFF]
    return out


def strided_argb_buffer(pixels: List[int], width: int, height: int, pitch: int) -> bytes:
    """Lay packed pixels out as little-endian words with padded rows, like a locked surface"""
    buf = bytearray()
    pad = pitch - width * 4
    for y in range(height):
        row = pixels[y * width:(y + 1) * width]
        buf += struct.pack("<%dI" % width, *row)
        buf += b"\xEE" * pad
    return bytes(buf)


def decode_with_pillow(png_bytes: bytes) -> Tuple[str, np.ndarray]:
    img = Image.open(io.BytesIO(png_bytes))
    img.load()
    return img.mode, np.asarray(img)


def split_png(png_bytes: bytes) -> List[Tuple[bytes, bytes, int]]:
    """(type, data, stored_crc) for each chunk, parsed without the package"""
    chunks = []
    pos = 8
    while pos < len(png_bytes):
        (length,) = struct.unpack(">I", png_bytes[pos:pos + 4])
        ctype = png_bytes[pos + 4:pos + 8]
        data = png_bytes[pos + 8:pos + 8 + length]
        (crc,) = struct.unpack(">I", png_bytes[pos + 8 + length:pos + 12 + length])
        chunks.append((ctype, data, crc))
        pos += 12 + length
    return chunks
