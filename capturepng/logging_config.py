# capturepng/logging_config.py
"""
Centralized logging configuration for the capturepng package.
"""

import logging
import sys
from typing import Optional

# Create a logger for this configuration module itself
_config_logger = logging.getLogger(__name__)


def configure_logging(
    level: int = logging.DEBUG,
    log_file: Optional[str] = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    format_string: Optional[str] = None
) -> None:
    """
    Configures logging for the capturepng package.

    Sets up a logger that outputs to the console and, optionally, a file.
    Prevents adding multiple handlers if called repeatedly. The library
    never calls this itself; applications and the CLI do.

    Args:
        level: The base logging level for the package logger.
        log_file: The name of the log file. If None, no file handler is added.
        console_level: The logging level for the console output.
        file_level: The logging level for the file output.
        format_string: The format string for log messages. If None, a default is used.
    """
    package_logger = logging.getLogger('capturepng')
    package_logger.setLevel(level)

    if package_logger.handlers:
        _config_logger.debug("Logging already configured for the 'capturepng' package. Skipping.")
        return

    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    formatter = logging.Formatter(format_string)

    # Console Handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)
    _config_logger.debug("Console handler added.")

    # File Handler
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            _config_logger.error("Failed to create file handler for '%s': %s", log_file, e)
        else:
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)
            _config_logger.debug("File handler added for '%s'.", log_file)

    _config_logger.info("Logging configured for the 'capturepng' package.")
