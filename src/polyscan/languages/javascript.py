"""JavaScript handler (``.js``, ``.jsx``, ``.mjs``, ``.cjs``)."""

from __future__ import annotations

from collections.abc import Sequence

from polyscan.languages.base import OutlineMixin
from polyscan.languages.ecmascript import EcmaScriptHandler
from polyscan.languages.patterns import JAVASCRIPT


class JavaScriptHandler(OutlineMixin, EcmaScriptHandler):
    """JavaScript analysis. Logical ``&&`` / ``||`` count toward complexity."""

    descriptor = JAVASCRIPT
    grammars = ("javascript",)
    count_logical_operators = True

    def validate_structure(self, text: str) -> bool:
        """The module exports something (default or named)."""
        result = self._parse(text)
        if result is None or result.has_errors:
            return False
        return any(node.type == "export_statement" for node in result.nodes())

    def generate_imports(self, dependencies: Sequence[str]) -> str:
        return "\n".join(
            f"import {self._import_binding(dep)} from '{dep}';" for dep in dependencies
        )

    def generate_function(
        self, name: str, params: Sequence[str], return_type: str | None, body: str
    ) -> str:
        # JavaScript has no return annotations; ``return_type`` is ignored.
        return f"function {name}({', '.join(params)}) {{\n{self._indent(body)}\n}}"

    def generate_class(self, name: str, properties: Sequence[str], methods: Sequence[str]) -> str:
        init = "\n".join(f"this.{prop} = null;" for prop in properties)
        members = [f"constructor() {{\n{self._indent(init)}\n}}" if init else "constructor() {}"]
        members.extend(f"{method}() {{}}" for method in methods)
        body = "\n".join(members)
        return f"class {name} {{\n{self._indent(body)}\n}}"
