"""CSS handler (``.css``, ``.scss``, ``.less``).

Parsed with tree-sitter-css. SCSS-only at-rules (``@mixin``, ``@function``)
come through as generic ``at_rule`` nodes, so they are recognised by their
``at_keyword`` text. ``@use 'x';`` does not parse at all: those statements are
blanked out before parsing and handled from the text.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from polyscan.languages.base import LanguageHandler, OutlineMixin, split_params
from polyscan.languages.models import Diagnostic, FunctionDescriptor, StructureNode
from polyscan.languages.patterns import CSS, CSS_QUOTED, CSS_USE_RULE
from polyscan.languages.treesitter import ParseResult, iter_nodes, parse_source

_IMPORT_PREFIXES = ("@import", "@use")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_NOT_NEWLINE = re.compile(r"[^\n]")


@dataclass(frozen=True)
class _UseRule:
    """An ``@use`` statement located in the original text."""

    start_byte: int
    line: int
    column: int
    source: str | None
    statement: str


def _strip_comments(text: str) -> str:
    """Drop block comments, keeping their newlines."""
    return _BLOCK_COMMENT.sub(lambda m: "\n" * m.group(0).count("\n"), text)


def _blank_bytes(text: str) -> str:
    """Spaces of the same UTF-8 length, newlines kept."""
    return "".join(c if c == "\n" else " " * len(c.encode("utf-8")) for c in text)


def _split_use_rules(text: str) -> tuple[str, list[_UseRule]]:
    """Return ``text`` with ``@use`` statements blanked, plus the statements.

    Byte offsets and line numbers of everything else are unchanged, so tree
    positions still refer to the original text.
    """
    searchable = _BLOCK_COMMENT.sub(lambda m: _NOT_NEWLINE.sub(" ", m.group(0)), text)
    rules: list[_UseRule] = []
    pieces: list[str] = []
    last = 0
    for match in CSS_USE_RULE.finditer(searchable):
        start, end = match.span()
        statement = text[start:end]
        prefix = text[:start]
        line_start = prefix.rfind("\n") + 1
        quoted = CSS_QUOTED.search(statement)
        rules.append(
            _UseRule(
                start_byte=len(prefix.encode("utf-8")),
                line=prefix.count("\n"),
                column=len(prefix[line_start:].encode("utf-8")),
                source=quoted.group(1) if quoted else None,
                statement=statement,
            )
        )
        pieces.append(text[last:start])
        pieces.append(_blank_bytes(statement))
        last = end
    if not rules:
        return text, rules
    pieces.append(text[last:])
    return "".join(pieces), rules


def _unquote(text: str) -> str:
    return text.strip().strip("'\"")


def _at_keyword(node: Any, result: ParseResult) -> str | None:
    for child in node.children:
        if child.type == "at_keyword":
            return result.text(child)
    return None


def _block_of(node: Any) -> Any | None:
    for child in node.named_children:
        if child.type == "block":
            return child
    return None


def _descendants(node: Any) -> Iterator[Any]:
    walk = iter_nodes(node)
    next(walk)  # the node itself
    yield from walk


def _collapse(text: str) -> str:
    return " ".join(text.split())


class CSSHandler(OutlineMixin, LanguageHandler):
    """Stylesheet analysis over tree-sitter-css trees."""

    descriptor = CSS

    def _parse(self, text: str) -> ParseResult | None:
        masked, _ = _split_use_rules(text)
        return parse_source(masked, "css")

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_dependencies(self, text: str) -> list[str]:
        masked, uses = _split_use_rules(text)
        result = parse_source(masked, "css")
        if result is None:
            return []

        found = [((use.line, use.column), use.source) for use in uses if use.source]
        for node in result.nodes():
            if node.type != "import_statement":
                continue
            source = self._first_argument(node, result)
            if source:
                found.append(((node.start_point[0], node.start_point[1]), source))
        found.sort(key=lambda item: item[0])
        return list(dict.fromkeys(source for _, source in found))

    @staticmethod
    def _first_argument(node: Any, result: ParseResult) -> str | None:
        """First string argument, or the bare argument of ``url(...)``."""
        for child in _descendants(node):
            if child.type == "string_value":
                return _unquote(result.text(child))
            if child.type == "plain_value" and child.parent is not None:
                if child.parent.type == "arguments":
                    return result.text(child).strip()
        return None

    def analyze_functions(self, text: str) -> list[FunctionDescriptor]:
        """``@mixin`` and ``@function`` definitions.

        Complexity is one plus the number of rule sets nested in the body.
        """
        result = self._parse(text)
        if result is None:
            return []

        functions: list[FunctionDescriptor] = []
        for node in result.nodes():
            if node.type != "at_rule" or _at_keyword(node, result) not in ("@mixin", "@function"):
                continue
            block = _block_of(node)
            header = result.text(node)
            if block is not None:
                header = result.source[node.start_byte : block.start_byte].decode("utf-8")
            name, params = self._header(header)
            if name is None:
                continue
            nested = 0
            if block is not None:
                nested = sum(1 for child in _descendants(block) if child.type == "rule_set")
            functions.append(
                FunctionDescriptor(name=name, params=params, complexity=1 + nested)
            )
        return functions

    def _header(self, header: str) -> tuple[str | None, tuple[str, ...]]:
        for pattern in self.function_patterns:
            match = pattern.search(header)
            if match:
                return match.group(1), split_params(match.group(2))
        return None, ()

    def analyze_structure(self, text: str) -> list[StructureNode]:
        result = self._parse(text)
        if result is None:
            return []

        structure: list[StructureNode] = []
        for node in result.nodes():
            if node.type != "rule_set":
                continue
            selectors = next((c for c in node.named_children if c.type == "selectors"), None)
            name = _collapse(result.text(selectors)) if selectors is not None else ""
            structure.append(
                StructureNode(
                    type="class" if name.startswith(".") else "other",
                    name=name,
                    start_line=node.start_point[0],
                    end_line=node.end_point[0],
                )
            )
        return structure

    def detect_syntax_errors(self, text: str) -> list[Diagnostic]:
        result = self._parse(text)
        if result is None:
            return [Diagnostic(0, 0, f"Unable to parse {self.language_id} source")]
        return result.diagnostics()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_imports(self, text: str) -> bool:
        """``@import`` / ``@use`` statements come before every other statement."""
        seen_rule = False
        for raw in _strip_comments(text).split("\n"):
            line = raw.strip()
            if not line or line.startswith("//"):
                continue
            if line.startswith(_IMPORT_PREFIXES):
                if seen_rule:
                    return False
            elif not line.startswith("@charset"):
                seen_rule = True
        return True

    def validate_structure(self, text: str) -> bool:
        """Flat stylesheets only: no rule set contains another."""
        result = self._parse(text)
        if result is None or result.has_errors:
            return False
        for node in result.nodes():
            if node.type == "rule_set" and any(
                child.type == "rule_set" for child in _descendants(node)
            ):
                return False
        return True

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_imports(self, dependencies: Sequence[str]) -> str:
        return "\n".join(f"@import '{dep}';" for dep in dependencies)

    def generate_function(
        self, name: str, params: Sequence[str], return_type: str | None, body: str
    ) -> str:
        return f"@mixin {name}({', '.join(params)}) {{\n{self._indent(body)}\n}}"

    def generate_class(self, name: str, properties: Sequence[str], methods: Sequence[str]) -> str:
        # Mixins are not expanded into the rule; ``methods`` is ignored.
        props = "\n".join(p if p.rstrip().endswith(";") else f"{p};" for p in properties)
        return f".{name} {{\n{self._indent(props)}\n}}"

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def wrap_in_function(self, text: str, function_name: str) -> str:
        return f"@mixin {function_name} {{\n{self._indent(text)}\n}}"

    def inject_imports(self, text: str, dependencies: Sequence[str]) -> str:
        new = self._missing_imports(text, dependencies, self.analyze_imports(text))
        if not new:
            return text

        statements = self.generate_imports(new)
        lines = text.split("\n")
        last_import = -1
        for i, raw in enumerate(_strip_comments(text).split("\n")):
            line = raw.strip()
            if line.startswith(_IMPORT_PREFIXES):
                last_import = i
            elif line and not line.startswith(("//", "@charset")):
                break

        if last_import == -1:
            return f"{statements}\n\n{text}"
        return "\n".join(lines[: last_import + 1] + [statements] + lines[last_import + 1 :])

    def format_code(self, text: str) -> str:
        """Pretty-print from the tree: one declaration per line, blank line between rules."""
        masked, uses = _split_use_rules(text)
        result = parse_source(masked, "css")
        if result is None or result.has_errors:
            return text

        top_level = result.root_node.named_children
        # ``@use`` inside a block has no tree node to render it from.
        if any(
            node.start_byte < use.start_byte < node.end_byte for node in top_level for use in uses
        ):
            return text

        entries = [(use.start_byte, _collapse(use.statement), False) for use in uses]
        for node in top_level:
            entries.append(
                (node.start_byte, self._render(node, result, 0), _block_of(node) is not None)
            )
        entries.sort(key=lambda entry: entry[0])

        chunks: list[str] = []
        previous_had_block = False
        for _, rendered, has_block in entries:
            if chunks and (has_block or previous_had_block):
                chunks.append("")
            chunks.append(rendered)
            previous_had_block = has_block
        formatted = "\n".join(chunks)
        return f"{formatted}\n" if formatted and text.endswith("\n") else formatted

    def _render(self, node: Any, result: ParseResult, depth: int) -> str:
        pad = " " * (self.indent_size * depth)
        if node.type == "comment":
            return pad + result.text(node).strip()
        if node.type == "declaration":
            return pad + self._render_declaration(node, result)

        block = _block_of(node)
        if block is None:
            statement = _collapse(result.text(node))
            return pad + statement

        header = _collapse(result.source[node.start_byte : block.start_byte].decode("utf-8"))
        items = [self._render(child, result, depth + 1) for child in block.named_children]
        if not items:
            return f"{pad}{header} {{}}"
        body = "\n".join(items)
        return f"{pad}{header} {{\n{body}\n{pad}}}"

    @staticmethod
    def _render_declaration(node: Any, result: ParseResult) -> str:
        text = result.text(node).strip().rstrip(";").rstrip()
        prop, colon, value = text.partition(":")
        if not colon:
            return f"{_collapse(text)};"
        return f"{prop.strip()}: {value.strip()};"
