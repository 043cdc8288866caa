"""
capturepng command line interface
"""

import argparse
import logging
import os
from typing import List, Optional, Tuple

import png
import yaml

from .config import (DEFAULT_CONFIG, DEFAULT_CONFIG_PATH, get_config,
                     get_config_value, init_config, load_config,
                     set_config_value)
from .constants import CHUNK_IHDR
from .container import ImageHeader, iter_chunks
from .encoder import PNGEncoder
from .errors import StreamFormatError
from .logging_config import configure_logging
from .verify import check_structure, decode_png

_MISSING = object()


def _parse_size(text: str) -> Tuple[int, int]:
    try:
        w, h = text.lower().split('x')
        return int(w), int(h)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got '{text}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='capturepng', description='Software PNG encoder for raw pixel captures')
    parser.add_argument('--config', type=str, default=None, help='Path to configuration file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Encode command
    encode_parser = subparsers.add_parser('encode', help='Encode a raw pixel dump as PNG')
    encode_parser.add_argument('input', type=str, help='Raw pixel file')
    encode_parser.add_argument('output', type=str, help='PNG file to write')
    encode_parser.add_argument('--width', type=int, required=True, help='Source width in pixels')
    encode_parser.add_argument('--height', type=int, required=True, help='Source height in pixels')
    encode_parser.add_argument('--format', choices=['rgba', 'argb'], default='rgba',
                               help='rgba: R,G,B,A bytes; argb: little-endian 0xAARRGGBB words')
    encode_parser.add_argument('--pitch', type=int, default=None,
                               help='Row pitch in bytes (argb only, default width*4)')
    encode_parser.add_argument('--upscale', type=_parse_size, default=None, metavar='WxH',
                               help='Bilinear upscale to this size before encoding')

    # Info command
    info_parser = subparsers.add_parser('info', help='List the chunks of a PNG file')
    info_parser.add_argument('path', type=str, help='PNG file')

    # Verify command
    verify_parser = subparsers.add_parser('verify', help='Check structure and decode a PNG file')
    verify_parser.add_argument('path', type=str, help='PNG file')

    # Config commands
    config_parser = subparsers.add_parser('config', help='Configuration commands')
    config_sub = config_parser.add_subparsers(dest='config_command')

    show_parser = config_sub.add_parser('show', help='Show current configuration')
    show_parser.add_argument('--path', type=str, default=DEFAULT_CONFIG_PATH,
                             help='Path to configuration file')

    init_parser = config_sub.add_parser('init', help='Initialize configuration file')
    init_parser.add_argument('--path', type=str, default=DEFAULT_CONFIG_PATH,
                             help='Path to save configuration file')
    init_parser.add_argument('--force', action='store_true',
                             help='Overwrite existing configuration file')

    get_parser = config_sub.add_parser('get', help='Get a configuration value')
    get_parser.add_argument('key', type=str, help='Configuration key (e.g., capturepng.encoder.max_block_size)')
    get_parser.add_argument('--path', type=str, default=DEFAULT_CONFIG_PATH,
                            help='Path to configuration file')

    set_parser = config_sub.add_parser('set', help='Set a configuration value')
    set_parser.add_argument('key', type=str, help='Configuration key (e.g., capturepng.encoder.max_block_size)')
    set_parser.add_argument('value', type=str, help='Value to set')
    set_parser.add_argument('--path', type=str, default=DEFAULT_CONFIG_PATH,
                            help='Path to configuration file')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    init_config(args.config)
    level_name = 'DEBUG' if args.verbose else str(get_config('logging', 'level', 'INFO')).upper()
    configure_logging(
        level=logging.DEBUG,
        log_file=get_config('logging', 'log_file'),
        console_level=getattr(logging, level_name, logging.INFO),
    )

    if args.command == 'encode':
        return _encode(args)
    if args.command == 'info':
        return _info(args.path)
    if args.command == 'verify':
        return _verify(args.path)
    if args.command == 'config':
        if args.config_command == 'show':
            return _show_config(args.path)
        if args.config_command == 'init':
            return _init_config(args.path, args.force)
        if args.config_command == 'get':
            return _get_config_value(args.key, args.path)
        if args.config_command == 'set':
            return _set_config_value(args.key, args.value, args.path)
    parser.print_help()
    return 1


def _encode(args) -> int:
    """Read a raw dump and write it out as PNG"""
    try:
        with open(args.input, 'rb') as f:
            raw = f.read()
    except OSError as e:
        print(f"Failed to read {args.input}: {e}")
        return 1

    pitch = args.pitch
    if args.format == 'argb' and pitch is None:
        pitch = args.width * 4
    if args.format == 'rgba' and pitch is not None:
        print("--pitch only applies to --format argb")
        return 1

    encoder = PNGEncoder()
    if args.upscale:
        dst_w, dst_h = args.upscale
        ok, err = encoder.save_upscaled(args.output, args.width, args.height, raw, pitch, dst_w, dst_h)
    else:
        ok, err = encoder.save(args.output, args.width, args.height, raw, pitch)

    if not ok:
        print(f"Encoding failed: {err}")
        return 1
    print(f"Wrote {args.output}")
    return 0


def _info(path: str) -> int:
    """Print the chunk table of a PNG file"""
    try:
        with open(path, 'rb') as f:
            data = f.read()
        chunks = list(iter_chunks(data))
    except (OSError, StreamFormatError) as e:
        print(f"Cannot read {path}: {e}")
        return 1

    for chunk in chunks:
        print(f"{chunk.chunk_type.decode('ascii')}  length={chunk.length}  crc=0x{chunk.crc:08X}")
        if chunk.chunk_type == CHUNK_IHDR:
            hdr = ImageHeader.from_bytes(chunk.data)
            print(f"  {hdr.width}x{hdr.height} bit_depth={hdr.bit_depth} color_type={hdr.color_type} "
                  f"interlace={hdr.interlace}")
    return 0


def _verify(path: str) -> int:
    """Validate framing and decode pixels with pypng"""
    try:
        with open(path, 'rb') as f:
            data = f.read()
        header, _ = check_structure(data)
        pixels = decode_png(data)
    except (OSError, StreamFormatError) as e:
        print(f"Invalid {path}: {e}")
        return 1
    except png.Error as e:
        print(f"Decoder rejected {path}: {e}")
        return 1

    print(f"OK {header.width}x{header.height} ({pixels.shape[0] * pixels.shape[1]} pixels)")
    return 0


def _read_config_file(config_path: str) -> Optional[dict]:
    if not os.path.exists(config_path):
        print(f"Configuration file not found at {config_path}")
        print("Use 'capturepng config init' to create a default configuration")
        return None
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        print(f"Configuration file {config_path} does not hold a mapping")
        return None
    return config


def _write_config_file(config: dict, config_path: str) -> None:
    with open(config_path, 'w') as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)


def _show_config(config_path: str) -> int:
    """Show the effective configuration, defaults filled in"""
    if _read_config_file(config_path) is None:
        return 1
    print(f"Current configuration ({config_path}):")
    print(yaml.safe_dump(load_config(config_path), default_flow_style=False, sort_keys=False))
    return 0


def _init_config(config_path: str, force: bool) -> int:
    """Initialize a new configuration file"""
    if os.path.exists(config_path) and not force:
        print(f"Configuration file already exists at {config_path}")
        print("Use --force to overwrite")
        return 1

    os.makedirs(os.path.dirname(os.path.abspath(config_path)), exist_ok=True)
    _write_config_file(DEFAULT_CONFIG, config_path)
    print(f"Created default configuration at {config_path}")
    return 0


def _get_config_value(key: str, config_path: str) -> int:
    """Get a specific configuration value"""
    config = _read_config_file(config_path)
    if config is None:
        return 1

    value = get_config_value(config, *key.split('.'), default=_MISSING)
    if value is _MISSING:
        print(f"Key '{key}' not found in configuration")
        return 1
    print(f"{key} = {value}")
    return 0


def _set_config_value(key: str, value_str: str, config_path: str) -> int:
    """Set a specific configuration value; the value is parsed as a YAML scalar"""
    config = _read_config_file(config_path)
    if config is None:
        return 1

    try:
        value = yaml.safe_load(value_str)
    except yaml.YAMLError:
        value = value_str

    _write_config_file(set_config_value(config, *key.split('.'), value=value), config_path)
    print(f"Updated {key} = {value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
