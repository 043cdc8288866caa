# capturepng/__init__.py
"""
capturepng - software PNG encoder for in-memory captures
"""

from .checksum import adler32, crc32
from .config import init_config
from .encoder import (PNGEncoder, encode_png, encode_png_upscaled, save_png,
                      save_png_upscaled)
from .errors import (CapturePNGError, InvalidGeometryError, StreamFormatError,
                     UnsupportedPixelSourceError)
from .pixels import (ImageSource, PackedARGBSource, PixelSource,
                     RGBABytesSource, StridedARGBSource, as_pixel_source)
from .upscale import bilinear_upscale

__version__ = "0.1.0"
__all__ = [
    "PNGEncoder",
    "encode_png",
    "encode_png_upscaled",
    "save_png",
    "save_png_upscaled",
    "init_config",
    "crc32",
    "adler32",
    "bilinear_upscale",
    "PixelSource",
    "PackedARGBSource",
    "RGBABytesSource",
    "StridedARGBSource",
    "ImageSource",
    "as_pixel_source",
    "CapturePNGError",
    "InvalidGeometryError",
    "UnsupportedPixelSourceError",
    "StreamFormatError",
]
