"""
capturepng Configuration System

This module handles loading and validating configuration from YAML files.
"""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

from capturepng.constants import MAX_STORED_BLOCK_SIZE

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'capturepng_config.yaml')
DEFAULT_CONFIG = {
    'capturepng': {
        'encoder': {
            'max_block_size': MAX_STORED_BLOCK_SIZE,
            'flg_baseline': 1,
        },
        'upscale': {
            'allow_downscale': False,
        },
        'logging': {
            'level': 'INFO',
            'log_file': None,
        },
    }
}

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

_active_config: Optional[Dict[str, Any]] = None


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file, with fallback to default config.

    Values missing from the file are filled in from DEFAULT_CONFIG.

    Args:
        config_path: Path to YAML configuration file. If None, uses default path.

    Returns:
        Dictionary containing configuration
    """
    path_to_use = config_path or DEFAULT_CONFIG_PATH

    if path_to_use and os.path.exists(path_to_use):
        try:
            with open(path_to_use, 'r') as f:
                config = yaml.safe_load(f) or {}
            if not isinstance(config, dict) or 'capturepng' not in config:
                raise ValueError("Config file must contain 'capturepng' section")
            return _deep_merge(DEFAULT_CONFIG, config)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning("Failed to load config from %s: %s", path_to_use, e)
    else:
        logger.debug("No configuration file at %s; using defaults", path_to_use)

    return copy.deepcopy(DEFAULT_CONFIG)


def get_config_value(config: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    Safely get a nested configuration value.

    Args:
        config: Configuration dictionary
        *keys: Keys to traverse the nested structure
        default: Default value if path doesn't exist

    Returns:
        The configuration value or default
    """
    current = config
    for key in keys:
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return default
    return current


def set_config_value(config: Dict[str, Any], *keys: str, value: Any) -> Dict[str, Any]:
    """
    Return a copy of ``config`` with the nested key path set to ``value``.

    Intermediate sections are created as needed; a non-dict value in the
    way is replaced by a section.
    """
    if not keys:
        raise ValueError("at least one key is required")
    override: Any = value
    for key in reversed(keys):
        override = {key: override}
    return _deep_merge(config, override)


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure.

    Args:
        config: Configuration dictionary

    Returns:
        True if valid, False otherwise
    """
    section = config.get('capturepng')
    if not isinstance(section, dict):
        logger.warning("Configuration is missing the 'capturepng' section")
        return False

    encoder = section.get('encoder', {})
    block_size = encoder.get('max_block_size', MAX_STORED_BLOCK_SIZE)
    if not isinstance(block_size, int) or not (1 <= block_size <= MAX_STORED_BLOCK_SIZE):
        logger.warning("max_block_size must be between 1-%d, got %r", MAX_STORED_BLOCK_SIZE, block_size)
        return False
    flg_baseline = encoder.get('flg_baseline', 1)
    if not isinstance(flg_baseline, int) or not (0 <= flg_baseline <= 0xFF):
        logger.warning("flg_baseline must be between 0-255, got %r", flg_baseline)
        return False

    upscale = section.get('upscale', {})
    if not isinstance(upscale.get('allow_downscale', False), bool):
        logger.warning("allow_downscale must be a boolean, got %r", upscale.get('allow_downscale'))
        return False

    level = str(get_config_value(section, 'logging', 'level', default='INFO')).upper()
    if level not in _LOG_LEVELS:
        logger.warning("logging.level must be one of %s, got %r", _LOG_LEVELS, level)
        return False

    return True


def init_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load, validate and activate a configuration for this process.

    An invalid file is rejected in favour of the defaults.
    """
    global _active_config
    config = load_config(config_path)
    if not validate_config(config):
        logger.warning("Invalid configuration; falling back to defaults")
        config = copy.deepcopy(DEFAULT_CONFIG)
    _active_config = config
    return config


def reset_config() -> None:
    """Drop the active configuration; get_config() returns defaults again."""
    global _active_config
    _active_config = None


def get_config(section: str, key: Optional[str] = None, default: Any = None) -> Any:
    """
    Read from the active configuration (defaults when none was loaded).

    get_config("encoder") returns the whole section as a dict;
    get_config("encoder", "max_block_size", 65535) returns one value.
    """
    config = _active_config if _active_config is not None else DEFAULT_CONFIG
    values = dict(get_config_value(DEFAULT_CONFIG, 'capturepng', section, default={}))
    values.update(get_config_value(config, 'capturepng', section, default={}) or {})
    if key is None:
        return values
    return values.get(key, default)
