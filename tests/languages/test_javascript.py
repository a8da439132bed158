"""Tests for the JavaScript handler."""

from __future__ import annotations

from polyscan.languages import JavaScriptHandler, StructureNode


class TestAnalysis:
    def test_extract_dependencies(self, js: JavaScriptHandler) -> None:
        """Should collect require, static and dynamic imports in source order."""
        source = "const fs = require('fs');\nimport x from './x.js';\nimport('lazy');\n"
        assert js.analyze_dependencies(source) == ["fs", "./x.js", "lazy"]

    def test_template_with_substitution_is_not_a_dependency(self, js: JavaScriptHandler) -> None:
        source = "const m = require(`./locale/${lang}`);\nconst n = require(`plain`);\n"
        assert js.analyze_dependencies(source) == ["plain"]

    def test_logical_operators_count(self, js: JavaScriptHandler) -> None:
        """Should count && and || on top of branch statements."""
        source = (
            "function f(a, b) {\n"
            "  if (a && b || !a) { return 1; }\n"
            "  for (const k of b) {}\n"
            "  return 0;\n"
            "}\n"
        )

        [fn] = js.analyze_functions(source)

        assert fn.name == "f"
        assert fn.params == ("a", "b")
        assert fn.return_type is None
        assert fn.complexity == 5

    def test_switch_cases_count(self, js: JavaScriptHandler) -> None:
        source = (
            "function s(v) {\n"
            "  switch (v) { case 1: return 1; case 2: return 2; default: return 0; }\n"
            "}\n"
        )
        [fn] = js.analyze_functions(source)
        assert fn.complexity == 3

    def test_default_parameters_report_name(self, js: JavaScriptHandler) -> None:
        [fn] = js.analyze_functions("function g(x = 1, y) {}")
        assert fn.params == ("x", "y")

    def test_function_expressions(self, js: JavaScriptHandler) -> None:
        source = "const h = function (a) { return a; };\nlet k = async x => x;\n"
        functions = js.analyze_functions(source)
        assert [(fn.name, fn.params) for fn in functions] == [("h", ("a",)), ("k", ("x",))]

    def test_extract_structure(self, js: JavaScriptHandler) -> None:
        source = "const a = 1;\nlet b = 2, c = 3;\nclass K {}\nfunction* gen() {}\n"
        assert js.analyze_structure(source) == [
            StructureNode("variable", "a", 0, 0),
            StructureNode("variable", "b", 1, 1),
            StructureNode("class", "K", 2, 2),
            StructureNode("function", "gen", 3, 3),
        ]

    def test_truncated_source_does_not_raise(self, js: JavaScriptHandler) -> None:
        for source in ["function", "class A {", "const x = (", "`", "/* open"]:
            assert isinstance(js.detect_syntax_errors(source), list)
            assert isinstance(js.analyze_functions(source), list)
            assert isinstance(js.analyze_structure(source), list)


class TestValidation:
    def test_module_without_export_is_invalid(self, js: JavaScriptHandler) -> None:
        assert js.validate_structure("function add(a, b) { return a + b; }") is False

    def test_module_with_export_is_valid(self, js: JavaScriptHandler) -> None:
        assert js.validate_structure("export function add(a, b) { return a + b; }") is True

    def test_default_export_is_valid(self, js: JavaScriptHandler) -> None:
        assert js.validate_structure("export default 42;") is True

    def test_required_module_must_be_used(self, js: JavaScriptHandler) -> None:
        assert js.validate_imports("const path = require('path');\npath.join('a');\n")
        assert not js.validate_imports("import React from 'react';\nconsole.log(1);\n")

    def test_truncated_export_is_invalid(self, js: JavaScriptHandler) -> None:
        """Should fail validation when the parser reports a problem."""
        source = "export function add(a, b) { return a + b;\n"
        assert js.detect_syntax_errors(source) != []
        assert js.validate_structure(source) is False

    def test_imports_in_broken_module_are_invalid(self, js: JavaScriptHandler) -> None:
        source = "const path = require('path');\npath.join('a'\n"
        assert js.validate_imports(source) is False


class TestGeneration:
    def test_generate_imports(self, js: JavaScriptHandler) -> None:
        assert js.generate_imports(["react", "./api/client"]) == (
            "import react from 'react';\nimport client from './api/client';"
        )

    def test_generate_function_ignores_return_type(self, js: JavaScriptHandler) -> None:
        code = js.generate_function("add", ["a", "b"], "number", "return a + b;")
        assert code == "function add(a, b) {\n    return a + b;\n}"

    def test_generate_class(self, js: JavaScriptHandler) -> None:
        code = js.generate_class("A", ["x"], ["run"])

        assert code == (
            "class A {\n"
            "    constructor() {\n"
            "        this.x = null;\n"
            "    }\n"
            "    run() {}\n"
            "}"
        )
        assert js.validate_syntax(code)

    def test_generate_class_without_properties(self, js: JavaScriptHandler) -> None:
        assert js.generate_class("E", [], []) == "class E {\n    constructor() {}\n}"


class TestEditing:
    def test_inject_into_commonjs_prepends(self, js: JavaScriptHandler) -> None:
        source = "const fs = require('fs');\nfs.x();\n"
        result = js.inject_imports(source, ["path", "fs"])
        assert result == "import path from 'path';\n\n" + source

    def test_inject_is_idempotent(self, js: JavaScriptHandler) -> None:
        once = js.inject_imports("import a from 'a';\nrun(a);\n", ["b"])
        assert once == "import a from 'a';\nimport b from 'b';\nrun(a);\n"
        assert js.inject_imports(once, ["b"]) == once

    def test_format_code(self, js: JavaScriptHandler) -> None:
        source = "const o = {\na: [\n1,\n],\n};\n"
        assert js.format_code(source) == "const o = {\n    a: [\n        1,\n    ],\n};\n"
