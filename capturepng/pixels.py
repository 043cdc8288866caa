# capturepng/pixels.py
"""
Pixel sources.

A PixelSource is a read-only, row-major view over width x height pixels.
Every variant can hand back its pixels as an (H, W, 4) uint8 RGBA array,
which is what the scanline builder and the upscaler work from.

Variants:
- PackedARGBSource: 32-bit 0xAARRGGBB integers indexed [y*width + x]
- RGBABytesSource: raw interleaved R,G,B,A bytes, tightly packed rows
- StridedARGBSource: little-endian ARGB words with an explicit byte pitch,
  the layout of a locked A8R8G8B8 surface
- ImageSource: a Pillow image, converted to RGBA
"""
from __future__ import annotations

import logging
import operator
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from capturepng.constants import (BYTES_PER_PIXEL, CHANNEL_DTYPE,
                                  PIXEL_DTYPE, PNG_MAX_DIMENSION,
                                  argb_shift_map)
from capturepng.errors import InvalidGeometryError, UnsupportedPixelSourceError

logger = logging.getLogger(__name__)


# --- Helper Functions ---

def check_geometry(width, height) -> Tuple[int, int]:
    """Validate image dimensions and return them as plain ints."""
    try:
        w = operator.index(width)
        h = operator.index(height)
    except TypeError as e:
        raise InvalidGeometryError(f"width and height must be integers; got {width!r}, {height!r}") from e
    if w <= 0 or h <= 0:
        raise InvalidGeometryError(f"width and height must be positive; got {w}x{h}")
    if w > PNG_MAX_DIMENSION or h > PNG_MAX_DIMENSION:
        raise InvalidGeometryError(f"dimensions exceed PNG limit of {PNG_MAX_DIMENSION}; got {w}x{h}")
    return w, h


def check_pitch(width: int, pitch) -> int:
    """Validate a row pitch in bytes against the image width."""
    try:
        p = operator.index(pitch)
    except TypeError as e:
        raise InvalidGeometryError(f"pitch must be an integer; got {pitch!r}") from e
    if p < width * BYTES_PER_PIXEL:
        raise InvalidGeometryError(f"pitch {p} is smaller than width*4 ({width * BYTES_PER_PIXEL})")
    return p


def _as_argb_array(values) -> np.ndarray:
    try:
        arr = np.asarray(values)
    except (TypeError, ValueError) as e:
        raise UnsupportedPixelSourceError(f"packed ARGB pixels must form a flat or 2-D integer array: {e}") from e
    if arr.size == 0:
        raise UnsupportedPixelSourceError("pixel source cannot be empty.")
    if arr.dtype.kind == "i":
        # Signed values come from bit operations on 0xAARRGGBB; keep the low 32 bits.
        arr = arr.astype(np.int64) & 0xFFFFFFFF
    elif arr.dtype.kind != "u":
        raise UnsupportedPixelSourceError(f"packed ARGB pixels must be integers; got dtype {arr.dtype}")
    return arr.astype(PIXEL_DTYPE)


def unpack_argb(values) -> np.ndarray:
    """
    Split packed 0xAARRGGBB values into channels.

    Returns:
        uint8 array of shape values.shape + (4,), channels in R, G, B, A order
    """
    v = _as_argb_array(values)
    rgba = np.stack([(v >> argb_shift_map[ch]) & 0xFF for ch in "rgba"], axis=-1)
    return rgba.astype(CHANNEL_DTYPE)


def pack_argb(rgba: np.ndarray) -> np.ndarray:
    """Inverse of unpack_argb: (..., 4) RGBA channels -> uint32 0xAARRGGBB."""
    c = np.asarray(rgba).astype(PIXEL_DTYPE)
    out = np.zeros(c.shape[:-1], dtype=PIXEL_DTYPE)
    for i, ch in enumerate("rgba"):
        out |= c[..., i] << PIXEL_DTYPE(argb_shift_map[ch])
    return out


def _byte_view(data) -> np.ndarray:
    try:
        return np.frombuffer(memoryview(data).cast("B"), dtype=np.uint8)
    except TypeError as e:
        raise UnsupportedPixelSourceError(f"pixel buffer must be a contiguous bytes-like object; got {type(data).__name__}") from e


# --- Sources ---

class PixelSource(ABC):
    """Read-only width x height pixel grid."""

    def __init__(self, width, height):
        self.width, self.height = check_geometry(width, height)

    @abstractmethod
    def to_rgba(self) -> np.ndarray:
        """All pixels as an (height, width, 4) uint8 array in R, G, B, A order."""

    def to_argb(self) -> np.ndarray:
        """All pixels as an (height, width) uint32 array of 0xAARRGGBB values."""
        return pack_argb(self.to_rgba())

    def get(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """Return the (r, g, b, a) channels of the pixel at column x, row y."""
        self._check_xy(x, y)
        r, g, b, a = self._pixel(x, y)
        return int(r), int(g), int(b), int(a)

    def _pixel(self, x: int, y: int):
        return self.to_rgba()[y, x]

    def _check_xy(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def __repr__(self) -> str:
        return f"{type(self).__name__}(width={self.width}, height={self.height})"


class PackedARGBSource(PixelSource):
    """
    Row-major packed 32-bit ARGB values.

    Accepts any integer sequence or numpy array (1-D, or already shaped
    (height, width)). With a byte ``pitch``, row y starts at word
    y * pitch // 4, so padding words between rows are skipped. Entries past
    the end of a short array read as 0, i.e. transparent black; extra
    entries are ignored.
    """

    def __init__(self, width, height, pixels, pitch: Optional[int] = None):
        super().__init__(width, height)
        if pixels is None:
            raise UnsupportedPixelSourceError("pixel source cannot be None.")
        self.pitch = self.width * BYTES_PER_PIXEL if pitch is None else check_pitch(self.width, pitch)
        if self.pitch % BYTES_PER_PIXEL:
            raise InvalidGeometryError(f"pitch {self.pitch} is not a whole number of 32-bit words")
        stride = self.pitch // BYTES_PER_PIXEL
        flat = _as_argb_array(pixels).reshape(-1)
        count = (self.height - 1) * stride + self.width
        if flat.size < count:
            logger.debug("Packed source has %d of %d entries; padding with 0", flat.size, count)
            flat = np.concatenate([flat, np.zeros(count - flat.size, dtype=PIXEL_DTYPE)])
        if stride == self.width:
            self._argb = flat[:self.width * self.height].reshape(self.height, self.width)
        else:
            index = (np.arange(self.height) * stride)[:, None] + np.arange(self.width)[None, :]
            self._argb = flat[index]

    def to_argb(self) -> np.ndarray:
        return self._argb

    def to_rgba(self) -> np.ndarray:
        return unpack_argb(self._argb)

    def _pixel(self, x: int, y: int):
        return unpack_argb(self._argb[y, x])


class RGBABytesSource(PixelSource):
    """Raw R,G,B,A bytes, 4 per pixel, rows packed without padding."""

    def __init__(self, width, height, data):
        super().__init__(width, height)
        if data is None:
            raise UnsupportedPixelSourceError("pixel source cannot be None.")
        if isinstance(data, np.ndarray):
            buf = np.ascontiguousarray(data, dtype=np.uint8).reshape(-1)
        else:
            buf = _byte_view(data)
        if buf.size == 0:
            raise UnsupportedPixelSourceError("pixel source cannot be empty.")
        needed = self.width * self.height * BYTES_PER_PIXEL
        if buf.size < needed:
            raise UnsupportedPixelSourceError(
                f"RGBA buffer holds {buf.size} bytes; {self.width}x{self.height} needs {needed}"
            )
        self._rgba = buf[:needed].reshape(self.height, self.width, BYTES_PER_PIXEL)

    def to_rgba(self) -> np.ndarray:
        return self._rgba

    def _pixel(self, x: int, y: int):
        return self._rgba[y, x]


class StridedARGBSource(PixelSource):
    """
    Little-endian 32-bit ARGB words addressed by a byte pitch.

    Row y starts at byte offset y * pitch; only the first width*4 bytes of
    each row are pixels. This is how a locked D3D A8R8G8B8 texture sits in
    memory (bytes B, G, R, A per pixel).
    """

    def __init__(self, width, height, buffer, pitch: Optional[int] = None):
        super().__init__(width, height)
        row_bytes = self.width * BYTES_PER_PIXEL
        self.pitch = row_bytes if pitch is None else check_pitch(self.width, pitch)
        if buffer is None:
            raise UnsupportedPixelSourceError("pixel source cannot be None.")
        buf = _byte_view(buffer)
        if buf.size == 0:
            raise UnsupportedPixelSourceError("pixel source cannot be empty.")
        needed = (self.height - 1) * self.pitch + row_bytes
        if buf.size < needed:
            raise UnsupportedPixelSourceError(
                f"strided buffer holds {buf.size} bytes; {self.width}x{self.height} at pitch {self.pitch} needs {needed}"
            )
        rows = np.lib.stride_tricks.as_strided(
            buf, shape=(self.height, row_bytes), strides=(self.pitch, 1), writeable=False
        )
        self._argb = np.ascontiguousarray(rows).view("<u4").astype(PIXEL_DTYPE)

    def to_argb(self) -> np.ndarray:
        return self._argb

    def to_rgba(self) -> np.ndarray:
        return unpack_argb(self._argb)

    def _pixel(self, x: int, y: int):
        return unpack_argb(self._argb[y, x])


class ImageSource(PixelSource):
    """Pillow image in any mode; converted to RGBA on construction."""

    def __init__(self, image: Image.Image):
        if image is None:
            raise UnsupportedPixelSourceError("pixel source cannot be None.")
        width, height = image.size
        super().__init__(width, height)
        try:
            rgba = image if image.mode == "RGBA" else image.convert("RGBA")
            self._rgba = np.asarray(rgba, dtype=np.uint8).reshape(self.height, self.width, BYTES_PER_PIXEL)
        except (OSError, ValueError) as e:
            raise UnsupportedPixelSourceError(f"cannot read {image.mode} image as RGBA: {e}") from e

    def to_rgba(self) -> np.ndarray:
        return self._rgba

    def _pixel(self, x: int, y: int):
        return self._rgba[y, x]


# --- Dispatch ---

def as_pixel_source(width, height, pixels, pitch: Optional[int] = None) -> PixelSource:
    """
    Wrap ``pixels`` in the matching PixelSource.

    Geometry is validated before any pixel data is touched.

    Dispatch:
        PixelSource               -> used as is (size must match)
        PIL.Image.Image           -> ImageSource (size must match)
        bytes-like, no pitch      -> RGBABytesSource
        bytes-like, with pitch    -> StridedARGBSource
        uint8 ndarray (H, W, 4)   -> RGBABytesSource
        integer sequence/ndarray  -> PackedARGBSource (pitch in bytes, whole words)

    A pitch given with a PixelSource or Pillow image is an error.
    """
    width, height = check_geometry(width, height)
    if pitch is not None:
        check_pitch(width, pitch)
    if pixels is None:
        raise UnsupportedPixelSourceError("pixel source cannot be None.")

    if isinstance(pixels, (PixelSource, Image.Image)) and pitch is not None:
        raise InvalidGeometryError(f"pitch does not apply to a {type(pixels).__name__} source")

    if isinstance(pixels, PixelSource):
        source = pixels
    elif isinstance(pixels, Image.Image):
        source = ImageSource(pixels)
    elif isinstance(pixels, (bytes, bytearray, memoryview)):
        if pitch is None:
            source = RGBABytesSource(width, height, pixels)
        else:
            source = StridedARGBSource(width, height, pixels, pitch)
    elif isinstance(pixels, np.ndarray) and pixels.dtype == np.uint8:
        if pitch is not None:
            source = StridedARGBSource(width, height, np.ascontiguousarray(pixels), pitch)
        else:
            source = RGBABytesSource(width, height, pixels)
    elif isinstance(pixels, (np.ndarray, list, tuple)) or hasattr(pixels, "__len__"):
        source = PackedARGBSource(width, height, pixels, pitch)
    else:
        raise UnsupportedPixelSourceError(f"unsupported pixel source type: {type(pixels).__name__}")

    if source.size != (width, height):
        raise InvalidGeometryError(
            f"pixel source is {source.width}x{source.height}, expected {width}x{height}"
        )
    logger.debug("Pixel source resolved: %r", source)
    return source


__all__ = [
    "PixelSource",
    "PackedARGBSource",
    "RGBABytesSource",
    "StridedARGBSource",
    "ImageSource",
    "as_pixel_source",
    "unpack_argb",
    "pack_argb",
    "check_geometry",
    "check_pitch",
]
