"""Tree-sitter analysis shared by the TypeScript and JavaScript handlers.

Both grammars share node names for everything polyscan looks at
(``import_statement``, ``call_expression``, ``function_declaration``,
``method_definition`` ...), so the tree walks live here once. Subclasses
pick the grammars, the branch set and the structural rule.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, ClassVar

from polyscan.languages.base import LanguageHandler
from polyscan.languages.models import Diagnostic, FunctionDescriptor, StructureNode
from polyscan.languages.treesitter import ParseResult, iter_nodes, parse_source

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")

_FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_CLASS_DECLARATIONS = frozenset({"class_declaration", "abstract_class_declaration"})
_VARIABLE_STATEMENTS = frozenset({"lexical_declaration", "variable_declaration"})
_BRANCH_NODES = frozenset(
    {
        "if_statement",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "do_statement",
        "switch_case",
        "ternary_expression",
    }
)
_LOGICAL_OPERATORS = frozenset({"&&", "||"})
_IDENTIFIER_NODES = frozenset(
    {
        "identifier",
        "type_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
    }
)
# Token spans whose brackets never count toward nesting depth.
_OPAQUE_NODES = frozenset({"string", "template_string", "comment", "regex"})
_OPENERS = frozenset(b"{[(")
_CLOSERS = frozenset(b"}])")


def derive_import_name(dependency: str) -> str:
    """Identifier for a specifier: last path segment, alphanumerics only, ``_`` before a digit."""
    name = _NON_ALNUM.sub("", dependency.split("/")[-1])
    if name[:1].isdigit():
        name = f"_{name}"
    return name


def _string_value(node: Any, result: ParseResult) -> str | None:
    if node is None or node.type not in ("string", "template_string"):
        return None
    text = result.text(node)
    if node.type == "template_string" and "${" in text:
        return None
    return text[1:-1] if len(text) >= 2 else None


class EcmaScriptHandler(LanguageHandler):
    """TypeScript / JavaScript analysis over tree-sitter syntax trees."""

    # Tried in order; the first error-free parse wins, else the one with fewest errors.
    grammars: ClassVar[tuple[str, ...]]
    count_logical_operators: ClassVar[bool] = False
    typed_params: ClassVar[bool] = False

    def _parse(self, text: str) -> ParseResult | None:
        best: ParseResult | None = None
        for grammar in self.grammars:
            result = parse_source(text, grammar)
            if result is None:
                continue
            if not result.has_errors:
                return result
            if best is None or result.error_count < best.error_count:
                best = result
        return best

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_dependencies(self, text: str) -> list[str]:
        result = self._parse(text)
        if result is None:
            return []

        deps: dict[str, None] = {}
        for node in result.nodes():
            source = None
            if node.type in ("import_statement", "export_statement"):
                source_node = node.child_by_field_name("source")
                if source_node is None and node.type == "import_statement":
                    for child in node.named_children:
                        if child.type == "import_require_clause":
                            source_node = child.child_by_field_name("source") or next(
                                (c for c in child.named_children if c.type == "string"), None
                            )
                source = _string_value(source_node, result)
            elif node.type == "call_expression":
                source = self._required_module(node, result)
            if source:
                deps.setdefault(source, None)
        return list(deps)

    @staticmethod
    def _required_module(node: Any, result: ParseResult) -> str | None:
        """Specifier of ``require('x')`` or ``import('x')``, else None."""
        fn = node.child_by_field_name("function")
        if fn is None:
            return None
        if not (fn.type == "import" or (fn.type == "identifier" and result.text(fn) == "require")):
            return None
        args = node.child_by_field_name("arguments")
        if args is None or not args.named_children:
            return None
        return _string_value(args.named_children[0], result)

    def analyze_functions(self, text: str) -> list[FunctionDescriptor]:
        result = self._parse(text)
        if result is None:
            return []

        functions: list[FunctionDescriptor] = []
        for node in result.nodes():
            if node.type in _FUNCTION_DECLARATIONS or node.type == "method_definition":
                name_node = node.child_by_field_name("name")
                name = result.text(name_node) if name_node is not None else "anonymous"
                functions.append(self._describe(name, node, result))
            elif node.type == "variable_declarator":
                value = node.child_by_field_name("value")
                name_node = node.child_by_field_name("name")
                if value is not None and value.type in _FUNCTION_VALUES and name_node is not None:
                    functions.append(self._describe(result.text(name_node), value, result))
        return functions

    def _describe(self, name: str, fn: Any, result: ParseResult) -> FunctionDescriptor:
        params: list[str] = []
        params_node = fn.child_by_field_name("parameters")
        if params_node is not None:
            for param in params_node.named_children:
                if param.type != "comment":
                    params.append(self._param_text(param, result))
        else:
            single = fn.child_by_field_name("parameter")
            if single is not None:
                params.append(result.text(single))

        return_type = None
        type_node = fn.child_by_field_name("return_type")
        if type_node is not None:
            return_type = result.text(type_node).lstrip(":").strip() or None

        return FunctionDescriptor(
            name=name,
            params=tuple(params),
            return_type=return_type,
            complexity=self._complexity(fn),
        )

    def _param_text(self, param: Any, result: ParseResult) -> str:
        if self.typed_params:
            return result.text(param)
        if param.type == "assignment_pattern":
            left = param.child_by_field_name("left")
            if left is not None:
                return result.text(left)
        return result.text(param)

    def _complexity(self, fn: Any) -> int:
        complexity = 1
        for node in iter_nodes(fn):
            if node.type in _BRANCH_NODES:
                complexity += 1
            elif self.count_logical_operators and node.type == "binary_expression":
                operator = node.child_by_field_name("operator")
                if operator is not None and operator.type in _LOGICAL_OPERATORS:
                    complexity += 1
        return complexity

    def analyze_structure(self, text: str) -> list[StructureNode]:
        result = self._parse(text)
        if result is None:
            return []

        structure: list[StructureNode] = []
        for node in result.nodes():
            entry = self._structure_entry(node, result)
            if entry is not None:
                kind, name = entry
                structure.append(
                    StructureNode(
                        type=kind,
                        name=name,
                        start_line=node.start_point[0],
                        end_line=node.end_point[0],
                    )
                )
        return structure

    def _structure_entry(self, node: Any, result: ParseResult) -> tuple[Any, str] | None:
        if node.type in _VARIABLE_STATEMENTS:
            for child in node.named_children:
                if child.type == "variable_declarator":
                    name_node = child.child_by_field_name("name")
                    if name_node is not None:
                        return "variable", result.text(name_node)
            return None

        kind = None
        if node.type in _FUNCTION_DECLARATIONS:
            kind = "function"
        elif node.type in _CLASS_DECLARATIONS:
            kind = "class"
        elif node.type == "interface_declaration":
            kind = "interface"
        elif node.type in ("enum_declaration", "type_alias_declaration"):
            kind = "other"
        if kind is None:
            return None
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        return kind, result.text(name_node)

    def detect_syntax_errors(self, text: str) -> list[Diagnostic]:
        result = self._parse(text)
        if result is None:
            return [Diagnostic(0, 0, f"Unable to parse {self.language_id} source")]
        return result.diagnostics()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_imports(self, text: str) -> bool:
        """Every dependency's derived identifier is used somewhere in the tree."""
        result = self._parse(text)
        if result is None or result.has_errors:
            return False
        deps = self.analyze_dependencies(text)
        used: set[str] = set()
        stack = [result.root_node]
        while stack:
            node = stack.pop()
            # Bindings introduced by the import itself are not uses.
            if node.type == "import_statement":
                continue
            if node.type in _IDENTIFIER_NODES:
                used.add(result.text(node))
            stack.extend(node.children)
        return all(derive_import_name(dep) in used for dep in deps)

    # ------------------------------------------------------------------
    # Generation & editing
    # ------------------------------------------------------------------

    def _import_binding(self, dependency: str) -> str:
        return derive_import_name(dependency) or "module"

    def wrap_in_function(self, text: str, function_name: str) -> str:
        return f"function {function_name}() {{\n{self._indent(text)}\n}}"

    def inject_imports(self, text: str, dependencies: Sequence[str]) -> str:
        new = self._missing_imports(text, dependencies, self.analyze_imports(text))
        if not new:
            return text

        statements = self.generate_imports(new)
        result = self._parse(text)
        last_import_end = -1
        if result is not None:
            for node in result.root_node.named_children:
                if node.type == "import_statement":
                    last_import_end = max(last_import_end, node.end_byte)

        if last_import_end == -1:
            return f"{statements}\n\n{text}"
        assert result is not None
        head = result.source[:last_import_end].decode("utf-8")
        tail = result.source[last_import_end:].decode("utf-8")
        return f"{head}\n{statements}{tail}"

    def format_code(self, text: str) -> str:
        """Re-indent by bracket depth. Sources with syntax errors are returned unchanged."""
        result = self._parse(text)
        if result is None or result.has_errors:
            return text

        src = result.source
        opaque = bytearray(len(src))
        for node in result.nodes():
            if node.type in _OPAQUE_NODES:
                span = node.end_byte - node.start_byte
                opaque[node.start_byte : node.end_byte] = b"\x01" * span

        unit = b" " * self.indent_size
        out: list[bytes] = []
        depth = 0
        pos = 0
        for raw in src.split(b"\n"):
            start = pos
            pos += len(raw) + 1
            continuing = 0 < start < len(src) and opaque[start] and opaque[start - 1]
            if continuing:
                out.append(raw)
            else:
                stripped = raw.strip()
                leading = 0
                while leading < len(stripped) and stripped[leading] in _CLOSERS:
                    leading += 1
                level = max(0, depth - leading)
                out.append(unit * level + stripped if stripped else b"")
            for i in range(start, min(start + len(raw), len(src))):
                if opaque[i]:
                    continue
                if src[i] in _OPENERS:
                    depth += 1
                elif src[i] in _CLOSERS:
                    depth = max(0, depth - 1)
        return b"\n".join(out).decode("utf-8")
