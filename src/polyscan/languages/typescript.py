"""TypeScript handler (``.ts``, ``.tsx``)."""

from __future__ import annotations

from collections.abc import Sequence

from polyscan.languages.base import OutlineMixin
from polyscan.languages.ecmascript import EcmaScriptHandler
from polyscan.languages.patterns import TYPESCRIPT


class TypeScriptHandler(OutlineMixin, EcmaScriptHandler):
    """TypeScript analysis. Sources that fail the plain grammar are retried as TSX."""

    descriptor = TYPESCRIPT
    grammars = ("typescript", "tsx")
    typed_params = True

    def validate_structure(self, text: str) -> bool:
        """Every class body declares a ``constructor``."""
        result = self._parse(text)
        if result is None or result.has_errors:
            return False
        for node in result.nodes():
            if node.type != "class_body":
                continue
            has_constructor = False
            for member in node.named_children:
                if member.type != "method_definition":
                    continue
                name = member.child_by_field_name("name")
                if name is not None and result.text(name) == "constructor":
                    has_constructor = True
                    break
            if not has_constructor:
                return False
        return True

    def generate_imports(self, dependencies: Sequence[str]) -> str:
        return "\n".join(
            f"import * as {self._import_binding(dep)} from '{dep}';" for dep in dependencies
        )

    def generate_function(
        self, name: str, params: Sequence[str], return_type: str | None, body: str
    ) -> str:
        typed = ", ".join(p if ":" in p else f"{p}: any" for p in params)
        signature = f"function {name}({typed})"
        if return_type:
            signature += f": {return_type}"
        return f"{signature} {{\n{self._indent(body)}\n}}"

    def generate_class(self, name: str, properties: Sequence[str], methods: Sequence[str]) -> str:
        members = [f"{prop}: any;" for prop in properties]
        if members:
            members.append("")
        members.append("constructor() {}")
        for method in methods:
            members.extend(["", f"{method}() {{}}"])
        body = "\n".join(members)
        return f"class {name} {{\n{self._indent(body)}\n}}"
