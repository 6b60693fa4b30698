"""
Logging configuration utilities for the one-time pad services and clients.
"""

import logging
import sys
from typing import Optional, TextIO

from rich.logging import RichHandler


def setup_logger(
    name: str,
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
    stream: Optional[TextIO] = None,
    use_rich: bool = False
) -> logging.Logger:
    """
    Set up a logger with consistent formatting.

    Output goes to stderr unless another stream is given, leaving stdout
    to the key generator and client results.

    Args:
        name: Logger name
        level: Logging level
        format_string: Custom format string
        include_timestamp: Whether to include timestamp in logs
        stream: Stream for the console handler
        use_rich: Render records with rich instead of a plain formatter

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding multiple handlers
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    if use_rich:
        handler = RichHandler(show_path=False)
        format_string = format_string or '%(message)s'
    else:
        handler = logging.StreamHandler(stream or sys.stderr)
        if format_string is None:
            if include_timestamp:
                format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            else:
                format_string = '%(name)s - %(levelname)s - %(message)s'

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(handler)

    return logger


def set_global_log_level(level: int) -> None:
    """
    Set the global logging level for all loggers.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO)
    """
    logging.getLogger().setLevel(level)

    logger = logging.getLogger('src.otp')
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def configure_debug_logging() -> None:
    """Configure debug-level logging for development."""
    set_global_log_level(logging.DEBUG)

    debug_format = '%(asctime)s - %(name)s:%(lineno)d - %(threadName)s - %(levelname)s - %(message)s'

    for logger in (logging.getLogger(), logging.getLogger('src.otp')):
        for handler in logger.handlers:
            if not isinstance(handler, RichHandler):
                handler.setFormatter(logging.Formatter(debug_format))


def silence_external_loggers() -> None:
    """Silence noisy external library loggers."""
    logging.getLogger('rich').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)
