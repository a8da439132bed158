"""Value types produced by language handlers.

Every type here is created fresh for each analysis call and never mutated
afterwards. Lines and columns are zero-based throughout.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Protocol

StructureType = Literal["class", "function", "interface", "variable", "other"]


@dataclass(frozen=True)
class HandlerDescriptor:
    """Immutable per-handler metadata.

    ``file_extensions`` include the leading dot. Several extensions may share
    one ``language_id`` (``.ts`` and ``.tsx`` are both ``typescript``).
    """

    file_extensions: tuple[str, ...]
    language_id: str
    import_patterns: tuple[re.Pattern[str], ...] = ()
    function_patterns: tuple[re.Pattern[str], ...] = ()
    class_patterns: tuple[re.Pattern[str], ...] = ()
    block_patterns: tuple[re.Pattern[str], ...] = ()

    def __post_init__(self) -> None:
        if not self.file_extensions:
            raise ValueError(f"Handler '{self.language_id}' declares no file extensions")


@dataclass(frozen=True)
class FunctionDescriptor:
    """A function found in source text with its branch-count complexity."""

    name: str
    params: tuple[str, ...] = ()
    return_type: str | None = None
    complexity: int = 1

    def __post_init__(self) -> None:
        # Branch counting starts at 1; never report less.
        if self.complexity < 1:
            object.__setattr__(self, "complexity", 1)


@dataclass(frozen=True)
class StructureNode:
    """A labelled, line-ranged outline entry."""

    type: StructureType
    name: str
    start_line: int
    end_line: int

    def __post_init__(self) -> None:
        start = max(0, self.start_line)
        object.__setattr__(self, "start_line", start)
        object.__setattr__(self, "end_line", max(start, self.end_line))


@dataclass(frozen=True)
class Diagnostic:
    """A detected syntax problem."""

    line: int
    column: int
    message: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "line", max(0, self.line))
        object.__setattr__(self, "column", max(0, self.column))


@dataclass(frozen=True)
class LinePosition:
    line: int


@dataclass(frozen=True)
class LineRange:
    start: LinePosition
    end: LinePosition


@dataclass(frozen=True)
class FileStructureNode:
    """Caller-facing outline node: ``{type, name, range: {start: {line}, end: {line}}}``."""

    type: str
    name: str
    range: LineRange

    @classmethod
    def from_structure(cls, node: StructureNode) -> FileStructureNode:
        return cls(
            type=node.type,
            name=node.name,
            range=LineRange(
                start=LinePosition(line=node.start_line),
                end=LinePosition(line=node.end_line),
            ),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Aggregate result of ``LanguageHandler.analyze``."""

    imports: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    structure: list[FileStructureNode] = field(default_factory=list)
    syntax_valid: bool = False
    imports_valid: bool = False
    structure_valid: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TextDocument(Protocol):
    """What the document convenience layer needs from a host text buffer."""

    @property
    def file_name(self) -> str | None: ...

    @property
    def language_id(self) -> str | None: ...

    def get_text(self) -> str: ...


@dataclass(frozen=True)
class Document:
    """Plain in-memory ``TextDocument``."""

    text: str
    file_name: str | None = None
    language_id: str | None = None

    def get_text(self) -> str:
        return self.text
