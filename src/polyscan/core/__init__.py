"""Core module exports."""

from polyscan.core.errors import (
    ConfigError,
    ErrorCode,
    ParseError,
    PolyscanError,
)
from polyscan.core.logging import configure_logging, get_logger

__all__ = [
    # Errors
    "PolyscanError",
    "ConfigError",
    "ErrorCode",
    "ParseError",
    # Logging
    "configure_logging",
    "get_logger",
]
