# capturepng/errors.py
"""
Exception types raised by the encoder.

Precondition failures subclass ValueError so callers that already guard
encodes with ``except ValueError`` keep working.
"""


class CapturePNGError(Exception):
    """Base class for all capturepng errors."""


class InvalidGeometryError(CapturePNGError, ValueError):
    """Width, height, pitch or target size cannot describe a valid image."""


class UnsupportedPixelSourceError(CapturePNGError, ValueError):
    """Pixel source is missing, empty, too short, or of an unknown type."""


class StreamFormatError(CapturePNGError, ValueError):
    """A stored-block, zlib or PNG byte stream failed validation."""


__all__ = [
    "CapturePNGError",
    "InvalidGeometryError",
    "UnsupportedPixelSourceError",
    "StreamFormatError",
]
