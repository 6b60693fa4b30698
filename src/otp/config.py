"""
Configuration defaults and helpers shared by the services and clients.

Values can be overridden from the environment:

- OTP_HOST: address the services bind to (default: all interfaces)
- OTP_BACKLOG: pending-connection backlog (default: 5)
- OTP_MAX_FRAME_LENGTH: largest text or key a service accepts
- OTP_LOG_LEVEL: logging level name, e.g. DEBUG
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

from .exceptions import ConfigurationError, InvalidPortError

DEFAULT_HOST = ""
DEFAULT_CLIENT_HOST = "localhost"
DEFAULT_BACKLOG = 5
DEFAULT_MAX_FRAME_LENGTH = 10_000_000
RECOMMENDED_MIN_PORT = 50000
MAX_PORT = 65535


def int_from_env(name: str, default: int) -> int:
    """
    Read a positive integer from the environment variable name.

    Raises:
        ConfigurationError: If the variable is set to anything else
    """
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        number = int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if number < 1:
        raise ConfigurationError(f"{name} must be positive, got {number}")
    return number


def max_frame_length_from_env() -> int:
    return int_from_env("OTP_MAX_FRAME_LENGTH", DEFAULT_MAX_FRAME_LENGTH)


@dataclass(frozen=True)
class ServiceConfig:
    port: int
    host: str = DEFAULT_HOST
    backlog: int = DEFAULT_BACKLOG
    max_frame_length: int = DEFAULT_MAX_FRAME_LENGTH

    @classmethod
    def from_env(cls, port: int, **overrides) -> "ServiceConfig":
        """
        Build a configuration from environment variables.

        Keyword overrides whose value is None are ignored, so parsed
        command-line options can be passed through unchanged.

        Raises:
            ConfigurationError: If OTP_BACKLOG or OTP_MAX_FRAME_LENGTH is not
                a positive integer
        """
        config = cls(
            port=port,
            host=os.getenv("OTP_HOST", DEFAULT_HOST),
            backlog=int_from_env("OTP_BACKLOG", DEFAULT_BACKLOG),
            max_frame_length=max_frame_length_from_env(),
        )
        values = {name: value for name, value in overrides.items() if value is not None}
        return replace(config, **values) if values else config


def parse_port(value: str) -> int:
    """
    Parse a port argument.

    Raises:
        InvalidPortError: If value is not an integer in 0..65535
    """
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise InvalidPortError(f"invalid port {value!r}")
    if not 0 <= port <= MAX_PORT:
        raise InvalidPortError(f"invalid port {port}")
    return port


def port_warning(port: int) -> Optional[str]:
    """Return a warning for ports below the recommended range, if any."""
    if port < RECOMMENDED_MIN_PORT:
        return f"recommended to use a port number above {RECOMMENDED_MIN_PORT}"
    return None


def log_level_from_env(default: int = logging.WARNING) -> int:
    """Resolve OTP_LOG_LEVEL to a logging level, falling back to default."""
    name = os.getenv("OTP_LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default
