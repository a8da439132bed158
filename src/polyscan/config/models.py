"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (POLYSCAN__SECTION__KEY)
3. Project YAML (.polyscan/config.yaml)
4. Global YAML (~/.config/polyscan/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    POLYSCAN__<SECTION>__<KEY>=<VALUE>

Examples:
    POLYSCAN__LOGGING__LEVEL=DEBUG
    POLYSCAN__FORMATTING__INDENT_SIZE=2
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        POLYSCAN__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. Parse degradations are logged at WARNING.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class FormattingConfig(BaseModel):
    """Indentation used by generation, wrapping and formatting.

    Env vars:
        POLYSCAN__FORMATTING__INDENT_SIZE: Spaces per level for code languages
        POLYSCAN__FORMATTING__HTML_INDENT_SIZE: Spaces per level for HTML markup
    """

    indent_size: int = Field(
        default=4,
        description="Spaces per indentation level for TypeScript, JavaScript, Python and CSS.",
    )
    html_indent_size: int = Field(
        default=2,
        description="Spaces per nesting level when pretty-printing HTML.",
    )

    @field_validator("indent_size", "html_indent_size")
    @classmethod
    def validate_indent(cls, v: int) -> int:
        if not (1 <= v <= 16):
            raise ValueError(f"Indent size must be 1-16, got {v}")
        return v


class PolyscanConfig(BaseModel):
    """Root configuration for polyscan.

    All settings can be configured via:
    1. Environment variables: POLYSCAN__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    formatting: FormattingConfig = Field(default_factory=FormattingConfig)
