"""polyscan error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parse

Parse errors never leave the analysis layer: the tree-sitter helper turns
them into an explicit ``None`` result and a ``parse_failed`` log event.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Parse (3xxx)
    PARSE_GRAMMAR_UNAVAILABLE = 3001
    PARSE_FAILED = 3002


@dataclass(frozen=True, slots=True)
class PolyscanError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(PolyscanError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class ParseError(PolyscanError):
    """Source text could not be turned into a syntax tree."""

    @classmethod
    def grammar_unavailable(cls, grammar: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_GRAMMAR_UNAVAILABLE,
            message=f"Grammar not available: {grammar} ({reason})",
            details={"grammar": grammar, "reason": reason},
        )

    @classmethod
    def parser_failed(cls, grammar: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_FAILED,
            message=f"Failed to parse {grammar} source: {reason}",
            details={"grammar": grammar, "reason": reason},
        )
