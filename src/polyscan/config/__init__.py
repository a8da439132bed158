"""Config module exports."""

from polyscan.config.loader import load_config
from polyscan.config.models import (
    FormattingConfig,
    LoggingConfig,
    LogOutputConfig,
    PolyscanConfig,
)

__all__ = [
    "load_config",
    "PolyscanConfig",
    "FormattingConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
