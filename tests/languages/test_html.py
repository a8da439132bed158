"""Tests for the HTML handler."""

from __future__ import annotations

import pytest

from polyscan.languages import Document, HTMLHandler

PAGE = """\
<!DOCTYPE html>
<html>
<head>
<title>Demo</title>
<link rel="stylesheet" href="style.css">
</head>
<body>
<img src="logo.png">
<div id="main">Hi</div>
<script src="app.js"></script>
</body>
</html>
"""

SKELETON = "<html>\n<head>\n<title>X</title>\n</head>\n<body>\n<p>Hi</p>\n</body>\n</html>\n"


class TestAnalysis:
    def test_extract_dependencies(self, html: HTMLHandler) -> None:
        """Should list stylesheets, scripts and images in document order."""
        assert html.analyze_dependencies(PAGE) == ["style.css", "logo.png", "app.js"]

    def test_icon_link_is_not_a_dependency(self, html: HTMLHandler) -> None:
        source = '<head><link rel="icon" href="favicon.ico"></head>'
        assert html.analyze_dependencies(source) == []

    def test_extract_structure_labels(self, html: HTMLHandler) -> None:
        labels = [(node.type, node.name) for node in html.analyze_structure(PAGE)]

        assert ("other", "html") in labels
        assert ("other", "div#main") in labels
        assert ("function", "script") in labels
        assert labels[0] == ("other", "html")

    def test_style_element_is_labelled(self, html: HTMLHandler) -> None:
        labels = [node.name for node in html.analyze_structure("<style>p { margin: 0; }</style>")]
        assert labels == ["style", "style"]

    def test_inline_script_functions(self, html: HTMLHandler) -> None:
        source = (
            "<script>\n"
            "function go(a, b) {\n"
            "  if (a) { return b; }\n"
            "  return a ? 1 : 2;\n"
            "}\n"
            "const run = (x) => x;\n"
            "</script>\n"
        )

        functions = html.analyze_functions(source)

        assert [(fn.name, fn.params) for fn in functions] == [("go", ("a", "b")), ("run", ("x",))]
        assert all(fn.complexity == 3 for fn in functions)

    def test_valid_document_has_no_diagnostics(self, html: HTMLHandler) -> None:
        assert html.detect_syntax_errors(PAGE) == []
        assert html.validate_syntax(PAGE)

    def test_unclosed_element_is_reported(self, html: HTMLHandler) -> None:
        assert html.detect_syntax_errors("<div><span>text</div>") != []

    def test_stray_closing_tag_is_reported(self, html: HTMLHandler) -> None:
        assert html.detect_syntax_errors("<p>hi</p></section>") != []

    @pytest.mark.parametrize("source", ["", "<", "<div", "<!--", "<script>", "</"])
    def test_truncated_source_does_not_raise(self, html: HTMLHandler, source: str) -> None:
        assert isinstance(html.detect_syntax_errors(source), list)
        assert isinstance(html.analyze_structure(source), list)
        assert isinstance(html.format_code(source), str)


class TestValidation:
    def test_missing_title_is_invalid(self, html: HTMLHandler) -> None:
        source = "<html><head></head><body></body></html>"
        assert html.validate_structure(source) is False

    def test_full_skeleton_is_valid(self, html: HTMLHandler) -> None:
        assert html.validate_structure(SKELETON) is True
        assert html.validate_structure(PAGE) is True

    def test_well_placed_imports(self, html: HTMLHandler) -> None:
        assert html.validate_imports(PAGE) is True

    def test_stylesheet_in_body_is_invalid(self, html: HTMLHandler) -> None:
        source = '<html><head></head><body><link rel="stylesheet" href="a.css"></body></html>'
        assert html.validate_imports(source) is False

    def test_script_not_last_in_body_is_invalid(self, html: HTMLHandler) -> None:
        source = '<html><head></head><body><script src="a.js"></script><p>x</p></body></html>'
        assert html.validate_imports(source) is False


class TestGeneration:
    def test_generate_imports_by_extension(self, html: HTMLHandler) -> None:
        assert html.generate_imports(["a.css", "b.js", "c.txt"]) == (
            '<link rel="stylesheet" href="a.css">\n'
            '<script src="b.js"></script>\n'
            "<!-- Unknown dependency: c.txt -->"
        )

    def test_generate_function(self, html: HTMLHandler) -> None:
        assert html.generate_function("go", ["a"], None, "return a;") == (
            "<script>\nfunction go(a) {\n  return a;\n}\n</script>"
        )

    def test_generate_class(self, html: HTMLHandler) -> None:
        assert html.generate_class("card", ["<h2>T</h2>"], []) == (
            '<div class="card">\n  <h2>T</h2>\n</div>'
        )

    def test_wrap_in_function(self, html: HTMLHandler) -> None:
        assert html.wrap_in_function("init();", "boot") == (
            "<script>\nfunction boot() {\n  init();\n}\n</script>"
        )


class TestEditing:
    def test_inject_links_and_scripts(self, html: HTMLHandler) -> None:
        """Should place links in head, scripts at the end of body, and skip the rest."""
        result = html.inject_imports(SKELETON, ["theme.css", "extra.js", "data.json"])

        assert result == (
            "<html>\n<head>\n<title>X</title>\n"
            '  <link rel="stylesheet" href="theme.css">\n'
            "</head>\n<body>\n<p>Hi</p>\n"
            '  <script src="extra.js"></script>\n'
            "</body>\n</html>\n"
        )
        assert html.validate_imports(result)

    def test_inject_is_idempotent(self, html: HTMLHandler) -> None:
        once = html.inject_imports(SKELETON, ["theme.css", "extra.js", "data.json"])
        assert html.inject_imports(once, ["theme.css", "extra.js", "data.json"]) == once

    def test_inject_existing_dependency_is_noop(self, html: HTMLHandler) -> None:
        assert html.inject_imports(PAGE, ["style.css", "app.js"]) == PAGE

    def test_inject_without_head_is_noop(self, html: HTMLHandler) -> None:
        assert html.inject_imports("<div></div>", ["a.css"]) == "<div></div>"

    def test_format_code(self, html: HTMLHandler) -> None:
        source = (
            "<html><head><title>X</title></head>"
            "<body><p>Hi <b>there</b></p><br></body></html>"
        )
        assert html.format_code(source) == (
            "<html>\n"
            "  <head>\n"
            "    <title>X</title>\n"
            "  </head>\n"
            "  <body>\n"
            "    <p>\n"
            "      Hi\n"
            "      <b>there</b>\n"
            "    </p>\n"
            "    <br>\n"
            "  </body>\n"
            "</html>"
        )

    def test_format_uses_configured_indent(self) -> None:
        handler = HTMLHandler(indent_size=4)
        assert handler.format_code("<ul><li>a</li></ul>\n") == (
            "<ul>\n    <li>a</li>\n</ul>\n"
        )


class TestDocumentLayer:
    @pytest.mark.asyncio
    async def test_file_structure_is_empty(self, html: HTMLHandler) -> None:
        """Should not expose an outline for markup."""
        assert await html.get_file_structure(Document(PAGE, file_name="index.html")) == []

    @pytest.mark.asyncio
    async def test_analyze(self, html: HTMLHandler) -> None:
        result = await html.analyze(Document(PAGE, file_name="index.html"))

        assert result.dependencies == ["style.css", "logo.png", "app.js"]
        assert result.imports == ["style.css", "app.js"]
        assert result.syntax_valid
        assert result.imports_valid
        assert result.structure_valid
        assert result.structure == []
