# capturepng/container.py
"""
PNG Container Builder

File layout, in this fixed order:
  signature (8 bytes): 137 80 78 71 13 10 26 10
  IHDR: width, height, bit depth 8, color type 6 (RGBA), 0, 0, 0
  IDAT: the complete zlib stream
  IEND: empty

Each chunk is framed as
  length (u32, big-endian, data only) | type (4 ASCII) | data | CRC-32(type + data)
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Iterator, Tuple

from capturepng.checksum import crc32
from capturepng.constants import (BIT_DEPTH, CHUNK_IDAT, CHUNK_IEND,
                                  CHUNK_IHDR, COLOR_TYPE_RGBA,
                                  COMPRESSION_DEFLATE, FILTER_METHOD_ADAPTIVE,
                                  INTERLACE_NONE, PNG_SIGNATURE)
from capturepng.errors import StreamFormatError
from capturepng.pixels import check_geometry

logger = logging.getLogger(__name__)

# ---------- chunk framing ----------

_CHUNK_LEN_FMT = ">I"
_CHUNK_OVERHEAD = 12  # length + type + crc


@dataclass(frozen=True)
class Chunk:
    chunk_type: bytes
    data: bytes = b""

    def __post_init__(self):
        if not isinstance(self.chunk_type, bytes) or len(self.chunk_type) != 4 or not self.chunk_type.isalpha():
            raise ValueError(f"chunk type must be 4 ASCII letters; got {self.chunk_type!r}")

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def crc(self) -> int:
        return crc32(self.data, crc32(self.chunk_type))

    def to_bytes(self) -> bytes:
        return (
            struct.pack(_CHUNK_LEN_FMT, self.length)
            + self.chunk_type
            + self.data
            + struct.pack(">I", self.crc)
        )

    @staticmethod
    def read(buffer, offset: int = 0) -> Tuple["Chunk", int]:
        """Parse one chunk at ``offset``; returns (chunk, next_offset)."""
        view = memoryview(buffer).cast("B")
        if offset + _CHUNK_OVERHEAD > len(view):
            raise StreamFormatError(f"truncated chunk header at offset {offset}")
        (length,) = struct.unpack_from(_CHUNK_LEN_FMT, view, offset)
        data_start = offset + 8
        data_end = data_start + length
        if data_end + 4 > len(view):
            raise StreamFormatError(f"chunk at offset {offset} declares {length} bytes; file ends early")
        chunk_type = bytes(view[offset + 4:data_start])
        try:
            chunk = Chunk(chunk_type, bytes(view[data_start:data_end]))
        except ValueError as e:
            raise StreamFormatError(str(e)) from e
        (stored_crc,) = struct.unpack_from(">I", view, data_end)
        computed_crc = chunk.crc
        if stored_crc != computed_crc:
            raise StreamFormatError(
                f"CRC mismatch in {chunk_type.decode('ascii')} chunk: stored {stored_crc:#010x}, computed {computed_crc:#010x}"
            )
        return chunk, data_end + 4


def iter_chunks(png_bytes) -> Iterator[Chunk]:
    """Check the signature and yield every chunk, verifying each CRC."""
    view = memoryview(png_bytes).cast("B")
    if bytes(view[:len(PNG_SIGNATURE)]) != PNG_SIGNATURE:
        raise StreamFormatError("missing PNG signature")
    pos = len(PNG_SIGNATURE)
    while pos < len(view):
        chunk, pos = Chunk.read(view, pos)
        yield chunk
        if chunk.chunk_type == CHUNK_IEND:
            return


# ---------- IHDR ----------

_IHDR_FMT = ">IIBBBBB"
_IHDR_SIZE = struct.calcsize(_IHDR_FMT)  # 13


@dataclass(frozen=True)
class ImageHeader:
    width: int
    height: int
    bit_depth: int = BIT_DEPTH
    color_type: int = COLOR_TYPE_RGBA
    compression: int = COMPRESSION_DEFLATE
    filter_method: int = FILTER_METHOD_ADAPTIVE
    interlace: int = INTERLACE_NONE

    def to_bytes(self) -> bytes:
        return struct.pack(
            _IHDR_FMT,
            self.width,
            self.height,
            self.bit_depth,
            self.color_type,
            self.compression,
            self.filter_method,
            self.interlace,
        )

    @staticmethod
    def from_bytes(b: bytes) -> "ImageHeader":
        if len(b) != _IHDR_SIZE:
            raise StreamFormatError(f"IHDR data must be {_IHDR_SIZE} bytes; got {len(b)}")
        return ImageHeader(*struct.unpack(_IHDR_FMT, b))


def ihdr_data(width: int, height: int) -> bytes:
    w, h = check_geometry(width, height)
    return ImageHeader(w, h).to_bytes()


# ---------- container ----------

def build_png(width: int, height: int, idat: bytes) -> bytes:
    """Assemble signature + IHDR + IDAT + IEND around a finished zlib stream."""
    chunks = (
        Chunk(CHUNK_IHDR, ihdr_data(width, height)),
        Chunk(CHUNK_IDAT, bytes(idat)),
        Chunk(CHUNK_IEND, b""),
    )
    out = PNG_SIGNATURE + b"".join(c.to_bytes() for c in chunks)
    logger.debug("PNG container: %dx%d idat=%d bytes total=%d bytes", width, height, len(idat), len(out))
    return out


__all__ = ["Chunk", "ImageHeader", "ihdr_data", "build_png", "iter_chunks"]
