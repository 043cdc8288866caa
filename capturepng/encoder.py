"""PNG encoding entry points.

This module contains the PNGEncoder class which is responsible for:
 - Resolving a pixel source (packed ARGB, raw RGBA bytes, strided ARGB buffer, Pillow image)
 - Optionally upscaling it with bilinear interpolation
 - Running scanlines -> stored deflate -> zlib -> PNG container
 - Saving the result, reporting failures as (ok, error) instead of raising

It knows nothing about where pixels come from or what decides
to capture them; it operates purely on in-memory buffers.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from capturepng.config import get_config
from capturepng.constants import MAX_STORED_BLOCK_SIZE
from capturepng.container import build_png
from capturepng.errors import CapturePNGError
from capturepng.pixels import PixelSource, as_pixel_source, check_geometry
from capturepng.scanline import build_scanlines
from capturepng.upscale import upscale_source
from capturepng.zlib_wrapper import zlib_header, zlib_wrap

logger = logging.getLogger(__name__)

SaveResult = Tuple[bool, Optional[str]]


class PNGEncoder:
    """Stateless encoder for turning pixel buffers into PNG bytes."""

    def __init__(self, max_block_size: Optional[int] = None, flg_baseline: Optional[int] = None,
                 allow_downscale: Optional[bool] = None):
        encoder_cfg = get_config("encoder")
        self.max_block_size = int(max_block_size if max_block_size is not None else encoder_cfg["max_block_size"])
        self.flg_baseline = int(flg_baseline if flg_baseline is not None else encoder_cfg["flg_baseline"])
        if allow_downscale is None:
            allow_downscale = get_config("upscale", "allow_downscale", False)
        self.allow_downscale = bool(allow_downscale)
        zlib_header(self.flg_baseline)
        if not (1 <= self.max_block_size <= MAX_STORED_BLOCK_SIZE):
            raise ValueError(f"max_block_size must be within [1, {MAX_STORED_BLOCK_SIZE}]; got {self.max_block_size}")
        logger.debug(
            "PNGEncoder initialized: max_block_size=%d flg_baseline=%d allow_downscale=%s",
            self.max_block_size, self.flg_baseline, self.allow_downscale,
        )

    def encode_source(self, source: PixelSource) -> bytes:
        scanlines = build_scanlines(source)
        idat = zlib_wrap(scanlines, max_block_size=self.max_block_size, flg_baseline=self.flg_baseline)
        png_bytes = build_png(source.width, source.height, idat)
        logger.debug("Encoded %dx%d image: %d bytes", source.width, source.height, len(png_bytes))
        return png_bytes

    def encode(self, width: int, height: int, pixels, pitch: Optional[int] = None) -> bytes:
        """
        Encode a width x height image to PNG.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            pixels: Packed 0xAARRGGBB integers indexed [y*width + x], raw
                RGBA bytes, a little-endian ARGB buffer (with ``pitch``),
                a PixelSource or a Pillow image.
            pitch: Row pitch in bytes for strided buffers.

        Returns:
            Complete PNG file contents.

        Raises:
            InvalidGeometryError: Bad width/height/pitch.
            UnsupportedPixelSourceError: Missing, empty or short pixel data.
        """
        source = as_pixel_source(width, height, pixels, pitch)
        return self.encode_source(source)

    def encode_upscaled(self, src_width: int, src_height: int, pixels, pitch: Optional[int],
                        dst_width: int, dst_height: int) -> bytes:
        """Bilinear-upscale a src_width x src_height image to dst_width x dst_height, then encode."""
        check_geometry(dst_width, dst_height)
        source = as_pixel_source(src_width, src_height, pixels, pitch)
        upscaled = upscale_source(source, dst_width, dst_height, allow_downscale=self.allow_downscale)
        return self.encode_source(upscaled)

    def save(self, path: str, width: int, height: int, pixels, pitch: Optional[int] = None) -> SaveResult:
        """Encode and write to ``path``. Returns (True, None) or (False, message)."""
        try:
            png_bytes = self.encode(width, height, pixels, pitch)
        except CapturePNGError as e:
            logger.warning("Not saving %s: %s", path, e)
            return False, str(e)
        return write_png_file(path, png_bytes)

    def save_upscaled(self, path: str, src_width: int, src_height: int, pixels, pitch: Optional[int],
                      dst_width: int, dst_height: int) -> SaveResult:
        try:
            png_bytes = self.encode_upscaled(src_width, src_height, pixels, pitch, dst_width, dst_height)
        except CapturePNGError as e:
            logger.warning("Not saving %s: %s", path, e)
            return False, str(e)
        return write_png_file(path, png_bytes)


def write_png_file(path: str, png_bytes: bytes) -> SaveResult:
    try:
        f = open(path, "wb")
    except OSError as e:
        logger.error("Failed to open %s: %s", path, e)
        return False, f"Failed to open file: {e}"
    try:
        with f:
            f.write(png_bytes)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        return False, f"Failed to write file: {e}"
    logger.debug("Wrote %d bytes to %s", len(png_bytes), path)
    return True, None


# --- Module-level convenience API ---

def encode_png(width: int, height: int, pixels, pitch: Optional[int] = None) -> bytes:
    return PNGEncoder().encode(width, height, pixels, pitch)


def encode_png_upscaled(src_width: int, src_height: int, pixels, pitch: Optional[int],
                        dst_width: int, dst_height: int) -> bytes:
    return PNGEncoder().encode_upscaled(src_width, src_height, pixels, pitch, dst_width, dst_height)


def save_png(path: str, width: int, height: int, pixels, pitch: Optional[int] = None) -> SaveResult:
    return PNGEncoder().save(path, width, height, pixels, pitch)


def save_png_upscaled(path: str, src_width: int, src_height: int, pixels, pitch: Optional[int],
                      dst_width: int, dst_height: int) -> SaveResult:
    return PNGEncoder().save_upscaled(path, src_width, src_height, pixels, pitch, dst_width, dst_height)


__all__ = [
    "PNGEncoder",
    "encode_png",
    "encode_png_upscaled",
    "save_png",
    "save_png_upscaled",
    "write_png_file",
]
