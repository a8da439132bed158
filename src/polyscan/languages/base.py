"""The language handler contract.

Every handler answers the same questions about raw source text, in two
independent phases:

* a regex phase (``analyze_imports`` and the ``scan_*`` helpers) that runs the
  descriptor's patterns from ``patterns.py`` and is always available;
* a language-specific phase (dependencies, functions, structure, diagnostics)
  that AST-backed handlers implement with tree-sitter and that degrades to an
  empty result when the source cannot be parsed.

No operation raises for malformed source text. Generation operations do not
validate their inputs; they render what they are given.

Usage::

    handler = registry.handler_for_file("app.ts")
    deps = handler.analyze_dependencies(text)
    result = await handler.analyze(Document(text, file_name="app.ts"))
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import ClassVar

from polyscan.languages.models import (
    AnalysisResult,
    Diagnostic,
    FileStructureNode,
    FunctionDescriptor,
    HandlerDescriptor,
    StructureNode,
    TextDocument,
)


def split_params(raw: str | None) -> tuple[str, ...]:
    """Split a raw comma-separated parameter list, dropping empties."""
    if not raw:
        return ()
    return tuple(p.strip() for p in raw.split(",") if p.strip())


def missing_dependencies(requested: Iterable[str], existing: Iterable[str]) -> list[str]:
    """Requested dependencies not already present, de-duplicated, in request order."""
    present = set(existing)
    missing: list[str] = []
    for dep in requested:
        if dep not in present:
            present.add(dep)
            missing.append(dep)
    return missing


class LanguageHandler(ABC):
    """Base class for the per-language handlers."""

    descriptor: ClassVar[HandlerDescriptor]

    def __init__(self, indent_size: int = 4) -> None:
        self.indent_size = indent_size

    def __repr__(self) -> str:
        return f"{type(self).__name__}(language_id={self.language_id!r})"

    # ------------------------------------------------------------------
    # Descriptor access
    # ------------------------------------------------------------------

    @property
    def file_extensions(self) -> tuple[str, ...]:
        return self.descriptor.file_extensions

    @property
    def language_id(self) -> str:
        return self.descriptor.language_id

    @property
    def import_patterns(self) -> tuple[re.Pattern[str], ...]:
        return self.descriptor.import_patterns

    @property
    def function_patterns(self) -> tuple[re.Pattern[str], ...]:
        return self.descriptor.function_patterns

    @property
    def class_patterns(self) -> tuple[re.Pattern[str], ...]:
        return self.descriptor.class_patterns

    @property
    def block_patterns(self) -> tuple[re.Pattern[str], ...]:
        return self.descriptor.block_patterns

    # ------------------------------------------------------------------
    # Regex phase
    # ------------------------------------------------------------------

    def _parse_import(self, match: re.Match[str]) -> str:
        """Map one import-pattern match to its specifier."""
        return match.group(1) or ""

    def _parse_function(self, match: re.Match[str]) -> FunctionDescriptor:
        """Map one function-pattern match to a descriptor with base complexity."""
        groups = match.groups()
        params = groups[1] if len(groups) > 1 else None
        return_type = groups[2] if len(groups) > 2 else None
        return FunctionDescriptor(
            name=groups[0],
            params=split_params(params),
            return_type=return_type.strip() if return_type and return_type.strip() else None,
        )

    def analyze_imports(self, text: str) -> list[str]:
        """Specifiers matched by each import pattern, pattern order then text order.

        Duplicates are kept: the regex layer is additive.
        """
        imports: list[str] = []
        for pattern in self.import_patterns:
            for match in pattern.finditer(text):
                spec = self._parse_import(match)
                if spec:
                    imports.append(spec)
        return imports

    def scan_functions(self, text: str) -> list[FunctionDescriptor]:
        """Function headers matched by the function patterns (complexity not computed)."""
        return [
            self._parse_function(match)
            for pattern in self.function_patterns
            for match in pattern.finditer(text)
        ]

    def scan_classes(self, text: str) -> list[str]:
        """Names matched by the class patterns."""
        return [
            match.group(1) for pattern in self.class_patterns for match in pattern.finditer(text)
        ]

    def scan_blocks(self, text: str) -> list[str]:
        """Innermost block bodies matched by the block patterns."""
        return [
            match.group(0) for pattern in self.block_patterns for match in pattern.finditer(text)
        ]

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    @abstractmethod
    def analyze_dependencies(self, text: str) -> list[str]:
        """Canonical de-duplicated dependencies, in first-occurrence order."""

    @abstractmethod
    def analyze_functions(self, text: str) -> list[FunctionDescriptor]: ...

    @abstractmethod
    def analyze_structure(self, text: str) -> list[StructureNode]: ...

    @abstractmethod
    def detect_syntax_errors(self, text: str) -> list[Diagnostic]: ...

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @abstractmethod
    def generate_imports(self, dependencies: Sequence[str]) -> str: ...

    @abstractmethod
    def generate_function(
        self, name: str, params: Sequence[str], return_type: str | None, body: str
    ) -> str: ...

    @abstractmethod
    def generate_class(
        self, name: str, properties: Sequence[str], methods: Sequence[str]
    ) -> str: ...

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_syntax(self, text: str) -> bool:
        return not self.detect_syntax_errors(text)

    @abstractmethod
    def validate_imports(self, text: str) -> bool: ...

    @abstractmethod
    def validate_structure(self, text: str) -> bool: ...

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    @abstractmethod
    def format_code(self, text: str) -> str: ...

    @abstractmethod
    def inject_imports(self, text: str, dependencies: Sequence[str]) -> str: ...

    @abstractmethod
    def wrap_in_function(self, text: str, function_name: str) -> str: ...

    def _missing_imports(
        self, text: str, dependencies: Sequence[str], existing: Iterable[str]
    ) -> list[str]:
        """Dependencies to inject: not already imported and not already rendered in ``text``."""
        return [
            dep
            for dep in missing_dependencies(dependencies, existing)
            if self.generate_imports([dep]) not in text
        ]

    def _indent(self, code: str, levels: int = 1) -> str:
        """Indent every non-blank line of ``code``."""
        pad = " " * (self.indent_size * levels)
        return "\n".join(pad + line if line.strip() else "" for line in code.split("\n"))

    # ------------------------------------------------------------------
    # Document convenience layer
    # ------------------------------------------------------------------

    async def get_imports(self, document: TextDocument) -> list[str]:
        return self.analyze_imports(document.get_text())

    async def get_dependencies(self, document: TextDocument) -> list[str]:
        return self.analyze_dependencies(document.get_text())

    async def get_file_structure(self, document: TextDocument) -> list[FileStructureNode]:
        """Outline for the host. Handlers with a meaningful outline override this."""
        return []

    async def analyze(self, document: TextDocument) -> AnalysisResult:
        text = document.get_text()
        return AnalysisResult(
            imports=await self.get_imports(document),
            dependencies=await self.get_dependencies(document),
            structure=await self.get_file_structure(document),
            syntax_valid=self.validate_syntax(text),
            imports_valid=self.validate_imports(text),
            structure_valid=self.validate_structure(text),
        )

    async def format(self, document: TextDocument) -> str:
        return self.format_code(document.get_text())


class OutlineMixin:
    """Expose ``analyze_structure`` as the document outline."""

    async def get_file_structure(self, document: TextDocument) -> list[FileStructureNode]:
        nodes = self.analyze_structure(document.get_text())  # type: ignore[attr-defined]
        return [FileStructureNode.from_structure(node) for node in nodes]
