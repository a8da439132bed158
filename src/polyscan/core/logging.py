"""Structured logging for the analysis layer.

polyscan never prints. Every degradation (a grammar that cannot be loaded,
a parse that fails) is reported as a structlog event, so a host process can
route those events wherever it likes or ignore them entirely.

Modules take their logger once at import time::

    log = get_logger(__name__)

The returned logger is lazy: it resolves structlog's configuration on each
call, so ``configure_logging`` (or ``structlog.testing.capture_logs``) applied
later still takes effect.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from structlog._config import BoundLoggerLazyProxy

if TYPE_CHECKING:
    from polyscan.config.models import LoggingConfig, LogOutputConfig

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_number(name: str | None, default: int) -> int:
    if not name:
        return default
    return logging.getLevelNamesMapping().get(name.upper(), default)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route polyscan's events through stdlib handlers.

    Args:
        config: Level plus one entry per output. Wins over the simple params.
        json_format: Single stderr output rendered as JSON instead of console text.
        level: Level for the single-output setup.
    """
    from polyscan.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _level_number(config.level, logging.INFO)
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt=_TIMESTAMP_FORMAT, key="timestamp"),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must reach loggers created at import time.
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(root_level)
    for output in config.outputs:
        handler = _create_handler(output.destination)
        handler.setLevel(_level_number(output.level, root_level))
        handler.setFormatter(_create_formatter(output, pre_chain))
        root_logger.addHandler(handler)


def _create_formatter(
    output: LogOutputConfig, pre_chain: list[structlog.types.Processor]
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        colors = output.destination in ("stderr", "stdout") and sys.stderr.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


def _create_handler(destination: str) -> logging.Handler:
    """Create handler for stderr, stdout, or file path."""
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def get_logger(name: str | None = None) -> Any:
    """Lazy structlog logger; ``name`` becomes the stdlib logger and the ``logger`` key."""
    if not name:
        return structlog.get_logger()
    # ``structlog.get_logger(name, logger=name)`` collides with wrap_logger's
    # ``logger`` parameter; build the same lazy proxy it would return.
    return BoundLoggerLazyProxy(None, initial_values={"logger": name}, logger_factory_args=(name,))
