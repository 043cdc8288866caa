# capturepng/scanline.py
"""
Scanline Builder

Turns a PixelSource into PNG's raw image data: each row is one filter-type
byte (always 0, "None") followed by width * 4 bytes in R, G, B, A order.
Rows are emitted top to bottom.
"""

import logging

import numpy as np

from capturepng.constants import BYTES_PER_PIXEL, FILTER_NONE
from capturepng.pixels import PixelSource

logger = logging.getLogger(__name__)


def scanline_length(width: int) -> int:
    """Bytes in one scanline, filter byte included."""
    return 1 + width * BYTES_PER_PIXEL


def build_scanlines(source: PixelSource) -> bytes:
    h, w = source.height, source.width
    rows = np.empty((h, scanline_length(w)), dtype=np.uint8)
    rows[:, 0] = FILTER_NONE
    rows[:, 1:] = source.to_rgba().reshape(h, w * BYTES_PER_PIXEL)
    data = rows.tobytes()
    logger.debug("Built %d scanlines of %d bytes (%d total)", h, rows.shape[1], len(data))
    return data


__all__ = ["build_scanlines", "scanline_length"]
