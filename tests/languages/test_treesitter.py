"""Tests for the tree-sitter parsing helpers."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from polyscan.core.errors import ErrorCode, ParseError
from polyscan.languages import treesitter
from polyscan.languages.treesitter import (
    Grammar,
    iter_nodes,
    load_language,
    parse,
    parse_source,
)


class TestLoadLanguage:
    """Grammar loading."""

    @pytest.mark.parametrize("grammar", ["typescript", "tsx", "javascript", "css", "html"])
    def test_loads_known_grammars(self, grammar: str) -> None:
        assert load_language(grammar) is not None

    def test_caches_language(self) -> None:
        assert load_language("css") is load_language("css")

    def test_unknown_grammar_raises_parse_error(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            load_language("cobol")
        assert exc_info.value.code == ErrorCode.PARSE_GRAMMAR_UNAVAILABLE

    def test_missing_grammar_package_raises_parse_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A grammar whose package is not installed is unavailable, not a crash."""
        monkeypatch.setitem(treesitter.GRAMMARS, "ghost", Grammar("ghost", "no_such_grammar_pkg"))

        with pytest.raises(ParseError) as exc_info:
            load_language("ghost")
        assert exc_info.value.details["grammar"] == "ghost"


class TestParse:
    """Parsing into ParseResult."""

    def test_clean_source_has_no_errors(self) -> None:
        result = parse("const x = 1;\n", "javascript")

        assert not result.has_errors
        assert result.error_count == 0
        assert result.diagnostics() == []
        assert result.text(result.root_node) == "const x = 1;\n"

    def test_broken_source_reports_diagnostics(self) -> None:
        result = parse("const = ;", "javascript")

        assert result.has_errors
        diagnostics = result.diagnostics()
        assert diagnostics
        assert all(d.line >= 0 and d.column >= 0 for d in diagnostics)

    def test_diagnostics_are_ordered(self) -> None:
        result = parse("function (\n\nclass {", "javascript")

        diagnostics = result.diagnostics()
        positions = [(d.line, d.column) for d in diagnostics]
        assert positions == sorted(positions)

    def test_text_decodes_non_ascii(self) -> None:
        result = parse("const s = 'héllo';", "javascript")
        strings = [n for n in result.nodes() if n.type == "string"]
        assert result.text(strings[0]) == "'héllo'"


class TestParseSource:
    """Non-raising wrapper."""

    def test_returns_result_for_known_grammar(self) -> None:
        assert parse_source("a { color: red; }", "css") is not None

    def test_unknown_grammar_returns_none_and_logs(self) -> None:
        with capture_logs() as logs:
            result = parse_source("x", "cobol")

        assert result is None
        assert any(
            entry["event"] == "parse_failed" and entry["log_level"] == "warning" for entry in logs
        )

    def test_failure_event_names_the_parsing_module(self) -> None:
        with capture_logs() as logs:
            parse_source("x", "cobol")

        [event] = [entry for entry in logs if entry["event"] == "parse_failed"]
        assert event["logger"] == "polyscan.languages.treesitter"
        assert event["grammar"] == "cobol"


class TestIterNodes:
    def test_pre_order_starts_at_root(self) -> None:
        result = parse("let a = 1; let b = 2;", "javascript")

        nodes = list(iter_nodes(result.root_node))

        assert nodes[0] == result.root_node
        declarations = [n for n in nodes if n.type == "lexical_declaration"]
        assert [d.start_byte for d in declarations] == sorted(d.start_byte for d in declarations)
        assert len(nodes) == result.total_nodes
