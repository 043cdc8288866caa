# capturepng/upscale.py
"""
Bilinear Upscaler

Resamples a source grid onto a larger destination grid before encoding.
Destination pixel (dx, dy) maps to source coordinates

    sx = dx * (srcW - 1) / (dstW - 1)
    sy = dy * (srcH - 1) / (dstH - 1)

(ratio 0 when the destination is one pixel wide/tall), so the four corner
pixels land exactly on the source corners. Each channel is interpolated
separately on unpacked 8-bit values, then rounded half up and clamped to
[0, 255].
"""

import logging
from typing import Tuple

import numpy as np

from capturepng.errors import InvalidGeometryError
from capturepng.pixels import PackedARGBSource, PixelSource, check_geometry, pack_argb

logger = logging.getLogger(__name__)


def _axis_samples(src: int, dst: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Lower/upper source index and fractional weight for every destination index."""
    if dst == 1:
        pos = np.zeros(1, dtype=np.float64)
    else:
        # multiply before dividing so the last sample is exactly src - 1
        pos = np.arange(dst, dtype=np.float64) * (src - 1) / (dst - 1)
    i0 = np.clip(np.floor(pos).astype(np.intp), 0, src - 1)
    i1 = np.minimum(i0 + 1, src - 1)
    t = pos - i0
    return i0, i1, t


def bilinear_upscale(source: PixelSource, dst_width: int, dst_height: int,
                     allow_downscale: bool = False) -> np.ndarray:
    """
    Bilinear resample of ``source`` to dst_width x dst_height.

    Args:
        source: Pixel grid to sample from.
        dst_width: Destination width, >= source width unless allow_downscale.
        dst_height: Destination height, >= source height unless allow_downscale.
        allow_downscale: Accept destinations smaller than the source.

    Returns:
        uint32 array of shape (dst_height, dst_width), packed 0xAARRGGBB
    """
    dst_w, dst_h = check_geometry(dst_width, dst_height)
    src_w, src_h = source.width, source.height
    if not allow_downscale and (dst_w < src_w or dst_h < src_h):
        raise InvalidGeometryError(
            f"upscale target {dst_w}x{dst_h} is smaller than source {src_w}x{src_h}"
        )

    x0, x1, tx = _axis_samples(src_w, dst_w)
    y0, y1, ty = _axis_samples(src_h, dst_h)
    tx = tx[None, :, None]
    ty = ty[:, None, None]

    img = source.to_rgba().astype(np.float64)
    p00 = img[y0[:, None], x0[None, :]]  # top-left
    p10 = img[y0[:, None], x1[None, :]]  # top-right
    p01 = img[y1[:, None], x0[None, :]]  # bottom-left
    p11 = img[y1[:, None], x1[None, :]]  # bottom-right

    top = p00 * (1 - tx) + p10 * tx
    bottom = p01 * (1 - tx) + p11 * tx
    out = np.clip(np.floor(top * (1 - ty) + bottom * ty + 0.5), 0, 255).astype(np.uint8)

    logger.debug("Bilinear upscale %dx%d -> %dx%d", src_w, src_h, dst_w, dst_h)
    return pack_argb(out)


def upscale_source(source: PixelSource, dst_width: int, dst_height: int,
                   allow_downscale: bool = False) -> PackedARGBSource:
    """bilinear_upscale, wrapped as a pixel source for the scanline builder."""
    grid = bilinear_upscale(source, dst_width, dst_height, allow_downscale=allow_downscale)
    return PackedARGBSource(grid.shape[1], grid.shape[0], grid)


__all__ = ["bilinear_upscale", "upscale_source"]
