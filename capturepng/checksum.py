# capturepng/checksum.py
"""
Checksum Engine

CRC-32 (reflected, polynomial 0xEDB88320) trails every PNG chunk and
Adler-32 trails the zlib stream. Both follow the ``zlib`` module calling
convention: an optional running value may be passed to continue a checksum
over several buffers.

The CRC lookup table is the only process-wide state in the package. It is
built on first use under a lock and kept as an immutable tuple afterwards,
so concurrent encodes share it without further locking.
"""

import logging
import threading
from typing import Optional, Tuple

import numpy as np

from capturepng.constants import ADLER_MOD, CRC32_POLY

logger = logging.getLogger(__name__)

# Largest block folded at once by adler32; keeps the weighted sum inside int64.
_ADLER_BLOCK = 1 << 16

_crc32_table: Optional[Tuple[int, ...]] = None
_crc32_lock = threading.Lock()


def _build_crc32_table() -> Tuple[int, ...]:
    c = np.arange(256, dtype=np.uint32)
    for _ in range(8):
        c = np.where(c & 1, (c >> 1) ^ np.uint32(CRC32_POLY), c >> 1)
    return tuple(int(v) for v in c)


def crc32_table() -> Tuple[int, ...]:
    """Return the shared 256-entry CRC-32 table, building it once."""
    global _crc32_table
    table = _crc32_table
    if table is None:
        with _crc32_lock:
            if _crc32_table is None:
                _crc32_table = _build_crc32_table()
                logger.debug("CRC-32 lookup table built (poly=0x%08X)", CRC32_POLY)
            table = _crc32_table
    return table


def crc32(data, value: int = 0) -> int:
    """
    Compute the CRC-32 of ``data``.

    Args:
        data: Any C-contiguous bytes-like object.
        value: Running CRC from a previous call (0 starts a new checksum).

    Returns:
        Unsigned 32-bit CRC.
    """
    table = crc32_table()
    acc = (value ^ 0xFFFFFFFF) & 0xFFFFFFFF
    for byte in memoryview(data).cast("B"):
        acc = table[(acc ^ byte) & 0xFF] ^ (acc >> 8)
    return acc ^ 0xFFFFFFFF


def adler32(data, value: int = 1) -> int:
    """
    Compute the Adler-32 of ``data``.

    Folds whole blocks with numpy: for a block b of n bytes,
    s1' = s1 + sum(b) and s2' = s2 + n*s1 + sum((n - i) * b[i]).

    Args:
        data: Any C-contiguous bytes-like object.
        value: Running checksum from a previous call (1 starts a new one).

    Returns:
        Unsigned 32-bit checksum, ``s2 * 65536 + s1``.
    """
    s1 = value & 0xFFFF
    s2 = (value >> 16) & 0xFFFF
    buf = np.frombuffer(memoryview(data).cast("B"), dtype=np.uint8)
    for start in range(0, buf.size, _ADLER_BLOCK):
        block = buf[start:start + _ADLER_BLOCK].astype(np.int64)
        n = block.size
        weights = np.arange(n, 0, -1, dtype=np.int64)
        s2 = (s2 + n * s1 + int(np.dot(weights, block))) % ADLER_MOD
        s1 = (s1 + int(block.sum())) % ADLER_MOD
    return (s2 << 16) | s1


__all__ = ["crc32", "adler32", "crc32_table"]
