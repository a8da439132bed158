"""HTML handler (``.html``, ``.htm``).

Parsed with tree-sitter-html. Inline ``<script>`` bodies are not re-parsed:
functions and complexity inside them come from the descriptor's regexes.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from polyscan.languages.base import LanguageHandler
from polyscan.languages.models import Diagnostic, FunctionDescriptor, StructureNode
from polyscan.languages.patterns import HTML, HTML_SCRIPT_BRANCHES
from polyscan.languages.treesitter import ParseResult, parse_source

_ELEMENT_NODES = frozenset({"element", "script_element", "style_element"})
_RAW_TEXT_NODES = frozenset({"script_element", "style_element"})
_TAG_NODES = frozenset({"start_tag", "self_closing_tag"})

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)
# Elements whose end tag may be omitted (HTML living standard, "optional tags").
OPTIONAL_END_TAGS = frozenset(
    {
        "html",
        "head",
        "body",
        "p",
        "li",
        "dt",
        "dd",
        "rt",
        "rp",
        "optgroup",
        "option",
        "colgroup",
        "caption",
        "thead",
        "tbody",
        "tfoot",
        "tr",
        "td",
        "th",
    }
)
# Whitespace-sensitive content is emitted verbatim by the formatter.
_VERBATIM_ELEMENTS = frozenset({"pre", "textarea"})


@dataclass
class _Element:
    """An element with its tag name and attributes resolved."""

    tag: str
    node: Any
    tag_node: Any
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def closed(self) -> bool:
        return self.tag_node.type == "self_closing_tag" or any(
            child.type == "end_tag" for child in self.node.children
        )

    def contains(self, other: _Element) -> bool:
        return self.node.start_byte <= other.node.start_byte < self.node.end_byte


def _attribute(node: Any, result: ParseResult) -> tuple[str, str]:
    name = ""
    value = ""
    for child in node.children:
        if child.type == "attribute_name":
            name = result.text(child).lower()
        elif child.type == "attribute_value":
            value = result.text(child)
        elif child.type == "quoted_attribute_value":
            inner = [c for c in child.children if c.type == "attribute_value"]
            value = result.text(inner[0]) if inner else ""
    return name, value


def _element(node: Any, result: ParseResult) -> _Element | None:
    tag_node = next((c for c in node.children if c.type in _TAG_NODES), None)
    if tag_node is None:
        return None
    tag = ""
    attributes: dict[str, str] = {}
    for child in tag_node.children:
        if child.type == "tag_name":
            tag = result.text(child).lower()
        elif child.type == "attribute":
            name, value = _attribute(child, result)
            attributes.setdefault(name, value)
    if not tag:
        return None
    return _Element(tag=tag, node=node, tag_node=tag_node, attributes=attributes)


def _elements(result: ParseResult) -> Iterator[_Element]:
    for node in result.nodes():
        if node.type in _ELEMENT_NODES:
            element = _element(node, result)
            if element is not None:
                yield element


def _raw_text(node: Any, result: ParseResult) -> str:
    return "".join(result.text(c) for c in node.children if c.type == "raw_text")


def _is_stylesheet(element: _Element) -> bool:
    rel = element.attributes.get("rel", "").lower().split()
    return element.tag == "link" and "stylesheet" in rel


class HTMLHandler(LanguageHandler):
    """Document analysis over tree-sitter-html trees.

    ``indent_size`` is the markup indentation; the registry passes
    ``FormattingConfig.html_indent_size`` here.
    """

    descriptor = HTML

    def _parse(self, text: str) -> ParseResult | None:
        return parse_source(text, "html")

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_dependencies(self, text: str) -> list[str]:
        """Stylesheet links, external scripts and images, in document order."""
        result = self._parse(text)
        if result is None:
            return []

        deps: dict[str, None] = {}
        for element in _elements(result):
            source = None
            if _is_stylesheet(element):
                source = element.attributes.get("href")
            elif element.tag in ("script", "img"):
                source = element.attributes.get("src")
            if source:
                deps.setdefault(source, None)
        return list(deps)

    def analyze_functions(self, text: str) -> list[FunctionDescriptor]:
        """Functions declared in inline scripts, scored by their whole script block."""
        result = self._parse(text)
        if result is None:
            return []

        functions: list[FunctionDescriptor] = []
        for node in result.nodes():
            if node.type != "script_element":
                continue
            script = _raw_text(node, result)
            if not script.strip():
                continue
            complexity = 1 + sum(len(p.findall(script)) for p in HTML_SCRIPT_BRANCHES)
            for pattern in self.function_patterns:
                for match in pattern.finditer(script):
                    found = self._parse_function(match)
                    functions.append(
                        FunctionDescriptor(
                            name=found.name, params=found.params, complexity=complexity
                        )
                    )
        return functions

    def analyze_structure(self, text: str) -> list[StructureNode]:
        result = self._parse(text)
        if result is None:
            return []

        structure: list[StructureNode] = []
        for element in _elements(result):
            start, end = element.node.start_point[0], element.node.end_point[0]
            element_id = element.attributes.get("id")
            label = f"{element.tag}#{element_id}" if element_id else element.tag
            structure.append(StructureNode("other", label, start, end))
            if element.node.type == "script_element":
                structure.append(StructureNode("function", "script", start, end))
            elif element.node.type == "style_element":
                structure.append(StructureNode("other", "style", start, end))
        return structure

    def detect_syntax_errors(self, text: str) -> list[Diagnostic]:
        """Parser errors, stray closing tags and unclosed non-void elements."""
        result = self._parse(text)
        if result is None:
            return [Diagnostic(0, 0, f"Unable to parse {self.language_id} source")]

        diagnostics = result.diagnostics()
        for node in result.nodes():
            if node.type == "erroneous_end_tag":
                row, col = node.start_point
                diagnostics.append(
                    Diagnostic(row, col, f"Unexpected closing tag '{result.text(node)}'")
                )
        for element in _elements(result):
            if element.closed or element.tag in VOID_ELEMENTS | OPTIONAL_END_TAGS:
                continue
            row, col = element.node.start_point
            diagnostics.append(Diagnostic(row, col, f"Unclosed <{element.tag}> element"))
        return sorted(diagnostics, key=lambda d: (d.line, d.column))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_imports(self, text: str) -> bool:
        """Stylesheets live in ``<head>``; external scripts close the ``<body>``."""
        result = self._parse(text)
        if result is None:
            return False

        elements = list(_elements(result))
        head = next((e for e in elements if e.tag == "head"), None)
        body = next((e for e in elements if e.tag == "body"), None)

        for element in elements:
            if _is_stylesheet(element) and (head is None or not head.contains(element)):
                return False

        if body is None:
            return True
        if not any(
            e.tag == "script" and "src" in e.attributes and body.contains(e) for e in elements
        ):
            return True
        children = [c for c in body.node.named_children if c.type in _ELEMENT_NODES]
        return bool(children) and children[-1].type == "script_element"

    def validate_structure(self, text: str) -> bool:
        """The document has ``html``, ``head``, ``body`` and ``title`` elements."""
        result = self._parse(text)
        if result is None:
            return False
        tags = {element.tag for element in _elements(result)}
        return {"html", "head", "body", "title"} <= tags

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_imports(self, dependencies: Sequence[str]) -> str:
        lines = []
        for dep in dependencies:
            if dep.lower().endswith(".css"):
                lines.append(f'<link rel="stylesheet" href="{dep}">')
            elif dep.lower().endswith(".js"):
                lines.append(f'<script src="{dep}"></script>')
            else:
                lines.append(f"<!-- Unknown dependency: {dep} -->")
        return "\n".join(lines)

    def generate_function(
        self, name: str, params: Sequence[str], return_type: str | None, body: str
    ) -> str:
        function = f"function {name}({', '.join(params)}) {{\n{self._indent(body)}\n}}"
        return f"<script>\n{function}\n</script>"

    def generate_class(self, name: str, properties: Sequence[str], methods: Sequence[str]) -> str:
        content = "\n".join(properties)
        return f'<div class="{name}">\n{self._indent(content)}\n</div>'

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def wrap_in_function(self, text: str, function_name: str) -> str:
        return f"<script>\nfunction {function_name}() {{\n{self._indent(text)}\n}}\n</script>"

    def inject_imports(self, text: str, dependencies: Sequence[str]) -> str:
        """Add stylesheet links before ``</head>`` and scripts before ``</body>``.

        Dependencies that are neither ``.css`` nor ``.js`` are never inserted.
        Documents without both closing tags are returned unchanged.
        """
        new = self._missing_imports(text, dependencies, self.analyze_dependencies(text))
        links = [dep for dep in new if dep.lower().endswith(".css")]
        scripts = [dep for dep in new if dep.lower().endswith(".js")]
        if not links and not scripts:
            return text

        lowered = text.lower()
        head_close = lowered.find("</head>")
        body_close = lowered.rfind("</body>")
        if head_close == -1 or body_close == -1:
            return text

        # Later offset first so the earlier one stays valid.
        if scripts:
            text = self._insert_before(text, body_close, self.generate_imports(scripts))
        if links:
            text = self._insert_before(text, head_close, self.generate_imports(links))
        return text

    def _insert_before(self, text: str, offset: int, markup: str) -> str:
        line_start = text.rfind("\n", 0, offset) + 1
        prefix = text[line_start:offset]
        if prefix.strip():
            return text[:offset] + markup + text[offset:]
        pad = prefix + " " * self.indent_size
        block = "".join(f"{pad}{line}\n" for line in markup.split("\n"))
        return text[:line_start] + block + text[line_start:]

    def format_code(self, text: str) -> str:
        """Re-indent the element tree. Sources with parse errors are returned unchanged."""
        result = self._parse(text)
        if result is None or result.has_errors:
            return text

        lines: list[str] = []
        for child in result.root_node.children:
            self._render(child, result, 0, lines)
        formatted = "\n".join(lines)
        return f"{formatted}\n" if formatted and text.endswith("\n") else formatted

    def _render(self, node: Any, result: ParseResult, depth: int, lines: list[str]) -> None:
        pad = " " * (self.indent_size * depth)
        if node.type == "text":
            content = " ".join(result.text(node).split())
            if content:
                lines.append(pad + content)
            return
        if node.type not in _ELEMENT_NODES:
            content = result.text(node).strip()
            if content:
                lines.append(pad + content)
            return

        element = _element(node, result)
        if element is None:
            lines.append(pad + result.text(node).strip())
            return
        open_tag = self._open_tag(element, result)
        if element.tag_node.type == "self_closing_tag" or element.tag in VOID_ELEMENTS:
            lines.append(pad + open_tag)
            return
        if element.tag in _VERBATIM_ELEMENTS:
            lines.append(pad + result.text(node))
            return

        close_tag = f"</{element.tag}>"
        if node.type in _RAW_TEXT_NODES:
            raw = _raw_text(node, result).strip("\n")
            if not raw.strip():
                lines.append(f"{pad}{open_tag}{close_tag}")
                return
            lines.append(pad + open_tag)
            lines.extend(raw.rstrip().split("\n"))
            lines.append(pad + close_tag)
            return

        children = [c for c in node.children if c.type not in _TAG_NODES and c.type != "end_tag"]
        texts = [c for c in children if c.type == "text"]
        if len(children) == len(texts):
            content = " ".join(" ".join(result.text(c).split()) for c in texts).strip()
            lines.append(f"{pad}{open_tag}{content}{close_tag}")
            return
        lines.append(pad + open_tag)
        for child in children:
            self._render(child, result, depth + 1, lines)
        lines.append(pad + close_tag)

    @staticmethod
    def _open_tag(element: _Element, result: ParseResult) -> str:
        attributes = [result.text(c) for c in element.tag_node.children if c.type == "attribute"]
        inner = " ".join([element.tag, *attributes])
        if element.tag_node.type == "self_closing_tag":
            return f"<{inner} />"
        return f"<{inner}>"
