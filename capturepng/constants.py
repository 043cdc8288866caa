import numpy as np

# --- PNG container ---
PNG_SIGNATURE = bytes([137, 80, 78, 71, 13, 10, 26, 10])

CHUNK_IHDR = b"IHDR"
CHUNK_IDAT = b"IDAT"
CHUNK_IEND = b"IEND"
CHUNK_ORDER = (CHUNK_IHDR, CHUNK_IDAT, CHUNK_IEND)

BIT_DEPTH = 8
COLOR_TYPE_RGBA = 6        # truecolor with alpha
COMPRESSION_DEFLATE = 0
FILTER_METHOD_ADAPTIVE = 0
INTERLACE_NONE = 0
FILTER_NONE = 0            # per-scanline filter type

BYTES_PER_PIXEL = 4
PNG_MAX_DIMENSION = 2**31 - 1

# --- DEFLATE / zlib ---
MAX_STORED_BLOCK_SIZE = 65535
BTYPE_STORED = 0
ZLIB_CMF = 0x78            # CM=8 (deflate), CINFO=7 (32K window)
ZLIB_FDICT = 0x20
DEFAULT_FLG_BASELINE = 0x01

# --- Checksums ---
CRC32_POLY = 0xEDB88320
ADLER_MOD = 65521

# Shift of each channel inside a packed 0xAARRGGBB value
argb_shift_map = {
    "a": 24,
    "r": 16,
    "g": 8,
    "b": 0,
}

PIXEL_DTYPE = np.uint32
CHANNEL_DTYPE = np.uint8
