"""Tests for the CSS handler."""

from __future__ import annotations

import pytest

from polyscan.languages import CSSHandler, Document, StructureNode

SHEET = "@import 'reset.css';\n.btn { color: red; }"


class TestAnalysis:
    def test_import_then_rule(self, css: CSSHandler) -> None:
        """Should read the import and accept its placement."""
        assert css.analyze_imports(SHEET) == ["reset.css"]
        assert css.analyze_dependencies(SHEET) == ["reset.css"]
        assert css.validate_imports(SHEET) is True

    def test_generated_imports_read_back(self, css: CSSHandler) -> None:
        deps = ["a.css", "themes/dark.css"]
        assert css.analyze_imports(css.generate_imports(deps)) == deps

    def test_url_import(self, css: CSSHandler) -> None:
        source = "@import 'a.css';\n@import url(\"b.css\");\n.x { color: red; }\n"
        assert css.analyze_dependencies(source) == ["a.css", "b.css"]

    def test_extract_structure(self, css: CSSHandler) -> None:
        source = ".btn { color: red; }\n#main { margin: 0; }\na:hover { color: blue; }\n"
        assert css.analyze_structure(source) == [
            StructureNode("class", ".btn", 0, 0),
            StructureNode("other", "#main", 1, 1),
            StructureNode("other", "a:hover", 2, 2),
        ]

    def test_multiline_rule_range(self, css: CSSHandler) -> None:
        [node] = css.analyze_structure(".card {\n  padding: 0;\n  border: none;\n}\n")
        assert (node.start_line, node.end_line) == (0, 3)

    def test_mixin_complexity_counts_nested_rules(self, css: CSSHandler) -> None:
        source = "@mixin center {\n  .inner { margin: auto; }\n}\n"
        [fn] = css.analyze_functions(source)
        assert fn.name == "center"
        assert fn.complexity == 2

    def test_detect_syntax_errors(self, css: CSSHandler) -> None:
        assert css.detect_syntax_errors(".a { color: red; }") == []
        assert css.detect_syntax_errors(".a { color: red; ") != []

    @pytest.mark.parametrize("source", ["", "@", ".a {", "}}}", "/* open", "@import"])
    def test_truncated_source_does_not_raise(self, css: CSSHandler, source: str) -> None:
        assert isinstance(css.detect_syntax_errors(source), list)
        assert isinstance(css.analyze_structure(source), list)
        assert isinstance(css.analyze_dependencies(source), list)
        assert isinstance(css.format_code(source), str)


class TestUseRules:
    """``@use`` statements, which tree-sitter-css cannot parse."""

    def test_use_dependency(self, css: CSSHandler) -> None:
        assert css.analyze_dependencies("@use 'sass:math';\n") == ["sass:math"]

    def test_use_and_import_keep_text_order(self, css: CSSHandler) -> None:
        source = "@import 'a.css';\n@use 'sass:math';\n@import 'b.css';\n"
        assert css.analyze_dependencies(source) == ["a.css", "sass:math", "b.css"]

    def test_use_with_namespace(self, css: CSSHandler) -> None:
        source = "@use 'theme' as t;\n.a { color: red; }\n"
        assert css.analyze_dependencies(source) == ["theme"]

    def test_commented_use_is_ignored(self, css: CSSHandler) -> None:
        assert css.analyze_dependencies("/* @use 'old'; */\n.a { color: red; }\n") == []

    def test_use_is_valid_syntax(self, css: CSSHandler) -> None:
        """Should not report a syntax error for an ``@use`` line."""
        source = "@use 'theme';\n.a { color: red; }\n"
        assert css.detect_syntax_errors(source) == []
        assert css.validate_syntax(source) is True
        assert css.validate_structure(source) is True

    def test_structure_lines_after_use(self, css: CSSHandler) -> None:
        [node] = css.analyze_structure("@use 'thème';\n\n.a { color: red; }\n")
        assert (node.name, node.start_line, node.end_line) == (".a", 2, 2)

    def test_format_keeps_use(self, css: CSSHandler) -> None:
        source = "@use   'theme';\n@import 'a.css';\n.a{color:red;}\n"
        assert css.format_code(source) == (
            "@use 'theme';\n@import 'a.css';\n\n.a {\n    color: red;\n}\n"
        )

    def test_inject_after_use(self, css: CSSHandler) -> None:
        source = "@use 'theme';\n.a { color: red; }\n"
        assert css.inject_imports(source, ["b.css"]) == (
            "@use 'theme';\n@import 'b.css';\n.a { color: red; }\n"
        )


class TestValidation:
    def test_import_after_rule_is_invalid(self, css: CSSHandler) -> None:
        assert css.validate_imports(".a { color: red; }\n@import 'late.css';\n") is False

    def test_charset_and_comments_may_precede_imports(self, css: CSSHandler) -> None:
        source = '@charset "utf-8";\n/* theme\n   colours */\n@import \'a.css\';\n.a {}\n'
        assert css.validate_imports(source) is True

    def test_flat_sheet_is_valid(self, css: CSSHandler) -> None:
        assert css.validate_structure(".a { color: red; }\n.b { color: blue; }\n") is True

    def test_nested_rule_is_invalid(self, css: CSSHandler) -> None:
        assert css.validate_structure(".a { .b { color: red; } }") is False


class TestGeneration:
    def test_generate_imports(self, css: CSSHandler) -> None:
        assert css.generate_imports(["a.css", "b.css"]) == "@import 'a.css';\n@import 'b.css';"

    def test_generate_function(self, css: CSSHandler) -> None:
        assert css.generate_function("center", ["$w"], None, "margin: auto;") == (
            "@mixin center($w) {\n    margin: auto;\n}"
        )

    def test_generate_class(self, css: CSSHandler) -> None:
        """Should terminate each declaration exactly once."""
        assert css.generate_class("btn", ["color: red", "margin: 0;"], ["ignored"]) == (
            ".btn {\n    color: red;\n    margin: 0;\n}"
        )

    def test_wrap_in_function(self, css: CSSHandler) -> None:
        assert css.wrap_in_function("color: red;", "theme") == (
            "@mixin theme {\n    color: red;\n}"
        )


class TestEditing:
    def test_inject_after_last_import(self, css: CSSHandler) -> None:
        source = "@import 'a.css';\n.x { top: 0; }"
        assert css.inject_imports(source, ["b.css"]) == (
            "@import 'a.css';\n@import 'b.css';\n.x { top: 0; }"
        )

    def test_inject_without_imports_prepends(self, css: CSSHandler) -> None:
        assert css.inject_imports(".x {}", ["a.css"]) == "@import 'a.css';\n\n.x {}"

    def test_inject_after_import_below_block_comment(self, css: CSSHandler) -> None:
        """Should skip every line of a multi-line header comment."""
        source = "/* Header\n   comment */\n@import 'a.css';\n.a { color: red; }\n"
        assert css.inject_imports(source, ["b.css"]) == (
            "/* Header\n   comment */\n@import 'a.css';\n@import 'b.css';\n.a { color: red; }\n"
        )

    def test_inject_is_idempotent(self, css: CSSHandler) -> None:
        once = css.inject_imports(SHEET, ["reset.css", "grid.css"])
        assert once.count("reset.css") == 1
        assert css.inject_imports(once, ["grid.css"]) == once

    def test_format_code(self, css: CSSHandler) -> None:
        source = ".a{color:red;margin:0}\n.b{color:blue}"
        assert css.format_code(source) == (
            ".a {\n    color: red;\n    margin: 0;\n}\n\n.b {\n    color: blue;\n}"
        )

    def test_format_keeps_imports_together(self, css: CSSHandler) -> None:
        source = "@import 'a.css';\n@import 'b.css';\n.x{top:0}\n"
        assert css.format_code(source) == (
            "@import 'a.css';\n@import 'b.css';\n\n.x {\n    top: 0;\n}\n"
        )

    def test_format_leaves_broken_source_alone(self, css: CSSHandler) -> None:
        assert css.format_code(".a { color: red; ") == ".a { color: red; "


class TestDocumentLayer:
    @pytest.mark.asyncio
    async def test_analyze(self, css: CSSHandler) -> None:
        result = await css.analyze(Document(SHEET, file_name="site.css"))

        assert result.imports == ["reset.css"]
        assert result.syntax_valid
        assert result.imports_valid
        assert result.structure_valid
        assert [node.name for node in result.structure] == [".btn"]
