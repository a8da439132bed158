"""Tree-sitter parsing shared by the AST-backed handlers.

Grammars are plain PyPI packages (``tree-sitter-typescript``,
``tree-sitter-javascript``, ``tree-sitter-css``, ``tree-sitter-html``); each
exposes a function returning the language pointer. ``Language`` objects are
loaded on first use and cached for the life of the process; parsers are
created per call so that no handler shares mutable state between calls.

``parse_source`` never raises. A grammar that cannot be loaded or a parser
that rejects its input yields ``None`` and a ``parse_failed`` warning, and
callers degrade to their empty result.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import tree_sitter

from polyscan.core.errors import ParseError
from polyscan.core.logging import get_logger
from polyscan.languages.models import Diagnostic

log = get_logger(__name__)

_SNIPPET_LIMIT = 40


@dataclass(frozen=True)
class Grammar:
    """Where to import a tree-sitter grammar from."""

    name: str
    module: str
    language_func: str = "language"


GRAMMARS: dict[str, Grammar] = {
    "typescript": Grammar("typescript", "tree_sitter_typescript", "language_typescript"),
    "tsx": Grammar("tsx", "tree_sitter_typescript", "language_tsx"),
    "javascript": Grammar("javascript", "tree_sitter_javascript"),
    "css": Grammar("css", "tree_sitter_css"),
    "html": Grammar("html", "tree_sitter_html"),
}

_languages: dict[str, tree_sitter.Language] = {}


def load_language(grammar_name: str) -> tree_sitter.Language:
    """Get or load a tree-sitter language.

    Raises:
        ParseError: If the grammar is unknown or its package is not installed.
    """
    cached = _languages.get(grammar_name)
    if cached is not None:
        return cached

    grammar = GRAMMARS.get(grammar_name)
    if grammar is None:
        raise ParseError.grammar_unavailable(grammar_name, "unknown grammar")

    try:
        mod = importlib.import_module(grammar.module)
        lang_fn = getattr(mod, grammar.language_func)
        lang = tree_sitter.Language(lang_fn())
    except (ImportError, AttributeError) as err:
        raise ParseError.grammar_unavailable(grammar_name, str(err)) from err

    _languages[grammar_name] = lang
    log.debug("grammar.loaded", grammar=grammar_name)
    return lang


def iter_nodes(root: Any) -> Iterator[Any]:
    """Pre-order walk without recursion (deeply nested sources are common)."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


@dataclass
class ParseResult:
    """Result of parsing one source text."""

    tree: Any  # tree_sitter.Tree
    root_node: Any  # tree_sitter.Node
    source: bytes
    grammar: str
    error_count: int
    total_nodes: int

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def text(self, node: Any) -> str:
        """Source text covered by ``node``."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def nodes(self) -> Iterator[Any]:
        return iter_nodes(self.root_node)

    def diagnostics(self) -> list[Diagnostic]:
        """One diagnostic per ERROR region and per missing node, zero-based."""
        found: list[Diagnostic] = []
        stack = [self.root_node]
        while stack:
            node = stack.pop()
            row, col = node.start_point[0], node.start_point[1]
            if node.is_missing:
                found.append(Diagnostic(row, col, f"Missing '{node.type}'"))
                continue
            if node.type == "ERROR":
                snippet = " ".join(self.text(node).split())[:_SNIPPET_LIMIT]
                message = f"Unexpected '{snippet}'" if snippet else "Unexpected end of input"
                found.append(Diagnostic(row, col, message))
                continue
            if node.has_error:
                stack.extend(reversed(node.children))
        return sorted(found, key=lambda d: (d.line, d.column))


def parse(text: str, grammar_name: str) -> ParseResult:
    """Parse ``text`` with the named grammar.

    Raises:
        ParseError: If the grammar is unavailable or the parser rejects the input.
    """
    lang = load_language(grammar_name)
    try:
        source = text.encode("utf-8")
        parser = tree_sitter.Parser()
        parser.language = lang
        tree = parser.parse(source)
    except (AttributeError, TypeError, ValueError) as err:
        raise ParseError.parser_failed(grammar_name, str(err)) from err

    error_count = 0
    total_nodes = 0
    for node in iter_nodes(tree.root_node):
        total_nodes += 1
        if node.type == "ERROR" or node.is_missing:
            error_count += 1

    return ParseResult(
        tree=tree,
        root_node=tree.root_node,
        source=source,
        grammar=grammar_name,
        error_count=error_count,
        total_nodes=total_nodes,
    )


def parse_source(text: str, grammar_name: str) -> ParseResult | None:
    """Parse ``text``, returning ``None`` (and logging) instead of raising."""
    try:
        return parse(text, grammar_name)
    except ParseError as err:
        log.warning("parse_failed", grammar=grammar_name, error=err.message, code=err.error_name)
        return None
