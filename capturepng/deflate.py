# capturepng/deflate.py
"""
Deflate Framer

Wraps a payload in RFC 1951 "stored" (BTYPE=00) blocks. Nothing is
compressed; the framing only satisfies DEFLATE's container rules so any
inflater reproduces the payload byte for byte.

Block layout (one per <= 65535 payload bytes):
  0:    header byte, bit 0 = BFINAL, bits 1-2 = BTYPE (00), rest 0
  1-2:  LEN  (u16, little-endian)
  3-4:  NLEN (u16, little-endian) = LEN ^ 0xFFFF
  5-..: LEN payload bytes, verbatim
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from capturepng.constants import BTYPE_STORED, MAX_STORED_BLOCK_SIZE
from capturepng.errors import StreamFormatError

logger = logging.getLogger(__name__)

_STORED_HDR_FMT = "<BHH"
_STORED_HDR_SIZE = struct.calcsize(_STORED_HDR_FMT)  # 5


def _check_block_size(max_block_size: int) -> int:
    size = int(max_block_size)
    if not (1 <= size <= MAX_STORED_BLOCK_SIZE):
        raise ValueError(f"max_block_size must be within [1, {MAX_STORED_BLOCK_SIZE}]; got {size}")
    return size


@dataclass(frozen=True)
class StoredBlock:
    is_final: bool
    payload: bytes

    def __post_init__(self):
        if len(self.payload) > MAX_STORED_BLOCK_SIZE:
            raise ValueError(f"stored block payload exceeds {MAX_STORED_BLOCK_SIZE} bytes")

    def header(self) -> bytes:
        n = len(self.payload)
        return struct.pack(_STORED_HDR_FMT, 0x01 if self.is_final else 0x00, n, n ^ 0xFFFF)

    def to_bytes(self) -> bytes:
        return self.header() + self.payload


def iter_stored_blocks(payload, max_block_size: int = MAX_STORED_BLOCK_SIZE) -> Iterator[StoredBlock]:
    """
    Split ``payload`` into stored blocks, in order.

    Exactly one block, the last, is final. An empty payload yields a
    single final block with LEN=0.
    """
    size = _check_block_size(max_block_size)
    view = memoryview(payload).cast("B")
    total = len(view)
    if total == 0:
        yield StoredBlock(True, b"")
        return
    for offset in range(0, total, size):
        end = min(offset + size, total)
        yield StoredBlock(end == total, bytes(view[offset:end]))


def deflate_stored(payload, max_block_size: int = MAX_STORED_BLOCK_SIZE) -> bytes:
    """Frame ``payload`` as a complete stored-block DEFLATE stream."""
    out = bytearray()
    count = 0
    for block in iter_stored_blocks(payload, max_block_size):
        out += block.header()
        out += block.payload
        count += 1
    logger.debug("Framed %d payload bytes into %d stored block(s)", len(out) - count * _STORED_HDR_SIZE, count)
    return bytes(out)


def read_stored_blocks(stream, offset: int = 0) -> Tuple[List[StoredBlock], int]:
    """
    Parse stored blocks starting at ``offset`` up to and including BFINAL.

    Returns:
        (blocks, end_offset) where end_offset is the first byte after the
        final block.

    Raises:
        StreamFormatError: On a non-stored block, a LEN/NLEN mismatch, or a
            truncated stream.
    """
    view = memoryview(stream).cast("B")
    blocks: List[StoredBlock] = []
    pos = offset
    while True:
        if pos + _STORED_HDR_SIZE > len(view):
            raise StreamFormatError(f"truncated stored block header at offset {pos}")
        hdr, length, nlength = struct.unpack_from(_STORED_HDR_FMT, view, pos)
        btype = (hdr >> 1) & 0x03
        if btype != BTYPE_STORED:
            raise StreamFormatError(f"unsupported BTYPE {btype} at offset {pos}; only stored blocks are handled")
        if length ^ 0xFFFF != nlength:
            raise StreamFormatError(f"LEN/NLEN mismatch at offset {pos}: {length:#06x}/{nlength:#06x}")
        start = pos + _STORED_HDR_SIZE
        end = start + length
        if end > len(view):
            raise StreamFormatError(f"stored block at offset {pos} needs {length} bytes; stream ends early")
        is_final = bool(hdr & 0x01)
        blocks.append(StoredBlock(is_final, bytes(view[start:end])))
        pos = end
        if is_final:
            return blocks, pos


def inflate_stored(stream) -> bytes:
    """Recover the payload from a stored-block DEFLATE stream."""
    blocks, _ = read_stored_blocks(stream)
    return b"".join(b.payload for b in blocks)


__all__ = [
    "StoredBlock",
    "iter_stored_blocks",
    "deflate_stored",
    "read_stored_blocks",
    "inflate_stored",
]
