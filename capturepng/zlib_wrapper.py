# capturepng/zlib_wrapper.py
"""
Zlib Wrapper (RFC 1950)

  CMF (0x78) | FLG | stored-block DEFLATE stream | Adler-32 (u32, big-endian)

FLG is the smallest value at or above a baseline for which
(CMF * 256 + FLG) is a multiple of 31 and the FDICT bit is clear. The
trailer checksums the uncompressed payload, not the framed bytes.
"""

import logging
import struct

from capturepng.checksum import adler32
from capturepng.constants import (DEFAULT_FLG_BASELINE, MAX_STORED_BLOCK_SIZE,
                                  ZLIB_CMF, ZLIB_FDICT)
from capturepng.deflate import deflate_stored, read_stored_blocks
from capturepng.errors import StreamFormatError

logger = logging.getLogger(__name__)

_ZLIB_HEADER_SIZE = 2
_ADLER_TRAILER_SIZE = 4


def zlib_header(flg_baseline: int = DEFAULT_FLG_BASELINE) -> bytes:
    """Return the 2-byte CMF/FLG header."""
    baseline = int(flg_baseline)
    if not (0 <= baseline <= 0xFF):
        raise ValueError(f"flg_baseline must be a byte value; got {baseline}")
    for flg in range(baseline, 0x100):
        if (ZLIB_CMF * 256 + flg) % 31 == 0 and not flg & ZLIB_FDICT:
            return bytes((ZLIB_CMF, flg))
    raise ValueError(f"no valid FLG at or above baseline {baseline:#04x}")


def zlib_wrap(payload, max_block_size: int = MAX_STORED_BLOCK_SIZE,
              flg_baseline: int = DEFAULT_FLG_BASELINE) -> bytes:
    """Wrap ``payload`` in a zlib stream made of stored DEFLATE blocks."""
    header = zlib_header(flg_baseline)
    body = deflate_stored(payload, max_block_size)
    trailer = struct.pack(">I", adler32(payload))
    logger.debug("zlib stream: header=%s body=%d trailer=%s", header.hex(), len(body), trailer.hex())
    return header + body + trailer


def zlib_unwrap(stream) -> bytes:
    """
    Validate a zlib stream of stored blocks and return its payload.

    Raises:
        StreamFormatError: Bad CMF/FLG, preset dictionary, malformed blocks,
            missing trailer or Adler-32 mismatch.
    """
    data = memoryview(stream).cast("B")
    if len(data) < _ZLIB_HEADER_SIZE + _ADLER_TRAILER_SIZE:
        raise StreamFormatError(f"zlib stream too short: {len(data)} bytes")
    cmf, flg = data[0], data[1]
    if cmf & 0x0F != 8:
        raise StreamFormatError(f"unsupported compression method {cmf & 0x0F}")
    if (cmf * 256 + flg) % 31 != 0:
        raise StreamFormatError(f"FCHECK failed for header {cmf:02x}{flg:02x}")
    if flg & ZLIB_FDICT:
        raise StreamFormatError("preset dictionaries are not supported")

    blocks, end = read_stored_blocks(data, _ZLIB_HEADER_SIZE)
    payload = b"".join(b.payload for b in blocks)
    if end + _ADLER_TRAILER_SIZE > len(data):
        raise StreamFormatError("zlib stream is missing its Adler-32 trailer")
    (expected,) = struct.unpack_from(">I", data, end)
    actual = adler32(payload)
    if actual != expected:
        raise StreamFormatError(f"Adler-32 mismatch: stream says {expected:#010x}, payload is {actual:#010x}")
    return payload


__all__ = ["zlib_header", "zlib_wrap", "zlib_unwrap"]
