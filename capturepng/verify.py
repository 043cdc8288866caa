# capturepng/verify.py
"""
Decode-side checks for produced files.

Structural checks (signature, chunk order, CRCs, zlib framing, Adler-32) use
this package's own parsers; the pixel decode goes through pypng, an
independent standard-compliant decoder.
"""

import logging
from typing import Tuple

import numpy as np
import png

from capturepng.constants import CHUNK_ORDER, CHUNK_IHDR, CHUNK_IDAT
from capturepng.container import ImageHeader, iter_chunks
from capturepng.errors import StreamFormatError
from capturepng.zlib_wrapper import zlib_unwrap

logger = logging.getLogger(__name__)


def decode_png(png_bytes: bytes) -> np.ndarray:
    """
    Decode PNG bytes with pypng.

    Returns:
        uint8 array of shape (H, W, 4), channels R, G, B, A
    """
    reader = png.Reader(bytes=png_bytes)
    w, h, rows, _info = reader.asRGBA8()
    arr = np.vstack([np.asarray(row, dtype=np.uint8) for row in rows])
    return arr.reshape(h, w, 4)


def check_structure(png_bytes: bytes) -> Tuple[ImageHeader, bytes]:
    """
    Validate the container produced by the encoder.

    Returns:
        (header, scanlines) where scanlines is the inflated IDAT payload

    Raises:
        StreamFormatError: Wrong chunk order, bad CRC, bad zlib stream, or a
            payload whose size does not match the header.
    """
    chunks = list(iter_chunks(png_bytes))
    types = tuple(c.chunk_type for c in chunks)
    if types != CHUNK_ORDER:
        raise StreamFormatError(f"unexpected chunk sequence {types}; expected {CHUNK_ORDER}")
    header = ImageHeader.from_bytes(chunks[0].data)
    scanlines = zlib_unwrap(chunks[1].data)
    expected = header.height * (1 + header.width * 4)
    if len(scanlines) != expected:
        raise StreamFormatError(
            f"{CHUNK_IDAT.decode()} holds {len(scanlines)} bytes; {CHUNK_IHDR.decode()} implies {expected}"
        )
    logger.debug("Structure OK: %dx%d, %d scanline bytes", header.width, header.height, len(scanlines))
    return header, scanlines


__all__ = ["decode_png", "check_structure"]
