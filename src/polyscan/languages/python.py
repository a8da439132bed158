"""Python handler (``.py``).

No grammar is loaded for Python: everything here works on *logical lines*,
built by a small scanner that blanks string literals to ``""``, drops
comments, and joins physical lines while a bracket or string is open or a
line ends with a backslash. Structure and function blocks are delimited by
indentation, and syntax checking is a heuristic (indentation stack, header
shape, bracket balance) that can both miss and over-report.
"""

from __future__ import annotations

import dataclasses
import keyword
from collections.abc import Sequence
from dataclasses import dataclass

from polyscan.languages.base import LanguageHandler, OutlineMixin
from polyscan.languages.models import Diagnostic, FunctionDescriptor, StructureNode
from polyscan.languages.patterns import (
    PYTHON,
    PYTHON_BRANCH,
    PYTHON_CLASS_START,
    PYTHON_CLASS_STATEMENT,
    PYTHON_DEF_START,
    PYTHON_DEF_STATEMENT,
    PYTHON_DOCSTRING,
    PYTHON_IMPORT_STATEMENT,
    PYTHON_INIT,
    PYTHON_RETURN_ANNOTATION,
    PYTHON_VARIABLE,
)

_TAB_SIZE = 8
_PAIRS = {")": "(", "]": "[", "}": "{"}


@dataclass
class _LogicalLine:
    line: int  # first physical line
    end: int  # last physical line
    indent: int
    code: str


@dataclass
class _PhysicalLine:
    text: str
    starts_in_string: bool = False
    ends_in_string: bool = False


@dataclass
class _Scan:
    logical: list[_LogicalLine]
    physical: list[_PhysicalLine]
    diagnostics: list[Diagnostic]


def _indent_of(line: str) -> int:
    expanded = line.expandtabs(_TAB_SIZE)
    return len(expanded) - len(expanded.lstrip(" "))


def _scan(text: str) -> _Scan:
    """Split ``text`` into logical lines, collecting bracket and string problems."""
    logical: list[_LogicalLine] = []
    physical: list[_PhysicalLine] = []
    diagnostics: list[Diagnostic] = []
    quote: str | None = None
    quote_start = (0, 0)
    brackets: list[tuple[str, int, int]] = []
    current: _LogicalLine | None = None

    for i, raw in enumerate(text.split("\n")):
        entry = _PhysicalLine(raw, starts_in_string=quote is not None)
        code: list[str] = []
        pos, n = 0, len(raw)
        while pos < n:
            if quote is not None:
                end = raw.find(quote, pos)
                if end == -1:
                    pos = n
                    break
                pos = end + 3
                quote = None
                continue
            ch = raw[pos]
            if ch == "#":
                break
            if raw.startswith(('"""', "'''"), pos):
                quote, quote_start = raw[pos : pos + 3], (i, pos)
                code.append('""')
                pos += 3
                continue
            if ch in "'\"":
                end = pos + 1
                while end < n and raw[end] != ch:
                    end += 2 if raw[end] == "\\" else 1
                if end >= n and not raw.endswith("\\"):
                    diagnostics.append(Diagnostic(i, pos, "Unterminated string literal"))
                code.append('""')
                pos = end + 1
                continue
            if ch in "([{":
                brackets.append((ch, i, pos))
            elif ch in _PAIRS:
                if brackets and brackets[-1][0] == _PAIRS[ch]:
                    brackets.pop()
                else:
                    diagnostics.append(Diagnostic(i, pos, f"Unmatched '{ch}'"))
            code.append(ch)
            pos += 1
        entry.ends_in_string = quote is not None
        physical.append(entry)

        stripped = "".join(code).strip()
        explicit_join = stripped.endswith("\\")
        if explicit_join:
            stripped = stripped[:-1].rstrip()
        if current is None:
            if stripped:
                current = _LogicalLine(i, i, _indent_of(raw), stripped)
        else:
            current.end = i
            if stripped:
                current.code = f"{current.code} {stripped}"
        if current is not None and not (brackets or quote or explicit_join):
            logical.append(current)
            current = None

    if current is not None:
        logical.append(current)
    if quote is not None:
        diagnostics.append(Diagnostic(*quote_start, "Unterminated string literal"))
    for ch, line, col in brackets:
        diagnostics.append(Diagnostic(line, col, f"Unclosed '{ch}'"))
    return _Scan(logical, physical, diagnostics)


def _block_end(logical: list[_LogicalLine], index: int) -> int:
    """Last physical line of the block opened by ``logical[index]``."""
    header = logical[index]
    end = header.end
    for entry in logical[index + 1 :]:
        if entry.indent <= header.indent:
            break
        end = entry.end
    return end


def _block(logical: list[_LogicalLine], index: int) -> list[_LogicalLine]:
    header = logical[index]
    body: list[_LogicalLine] = []
    for entry in logical[index + 1 :]:
        if entry.indent <= header.indent:
            break
        body.append(entry)
    return body


def _levels(logical: list[_LogicalLine]) -> tuple[list[int], list[Diagnostic]]:
    """Nesting level of each logical line, plus indentation diagnostics."""
    levels: list[int] = []
    diagnostics: list[Diagnostic] = []
    stack = [0]
    expect_block = False
    for entry in logical:
        if expect_block:
            if entry.indent > stack[-1]:
                stack.append(entry.indent)
            else:
                diagnostics.append(
                    Diagnostic(entry.line, entry.indent, "Expected an indented block")
                )
                while entry.indent < stack[-1]:
                    stack.pop()
        elif entry.indent > stack[-1]:
            diagnostics.append(Diagnostic(entry.line, entry.indent, "Unexpected indent"))
            stack.append(entry.indent)
        else:
            while entry.indent < stack[-1]:
                stack.pop()
            if entry.indent != stack[-1]:
                diagnostics.append(Diagnostic(entry.line, entry.indent, "Invalid indentation"))
                stack.append(entry.indent)
        levels.append(len(stack) - 1)
        expect_block = entry.code.endswith(":")
    if expect_block and logical:
        last = logical[-1]
        diagnostics.append(Diagnostic(last.end, 0, "Expected an indented block"))
    return levels, diagnostics


def _imported_modules(logical: list[_LogicalLine]) -> list[str]:
    """Modules named by ``import a.b, c as d`` and ``from x import y`` statements."""
    modules: list[str] = []
    for entry in logical:
        if entry.code.startswith("from "):
            parts = entry.code.split()
            if len(parts) > 1:
                modules.append(parts[1])
        elif entry.code.startswith("import "):
            for item in entry.code[len("import ") :].split(","):
                words = item.split()
                if words:
                    modules.append(words[0])
    return modules


def _signature(header: str) -> tuple[tuple[str, ...], str] | None:
    """Parameters of a ``def`` header split on top-level commas, plus the text after ``)``."""
    open_at = header.find("(")
    if open_at == -1:
        return None
    params: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    for offset, ch in enumerate(header[open_at + 1 :], start=open_at + 1):
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            if depth == 0:
                params.append("".join(current))
                cleaned = (" ".join(p.split()) for p in params)
                return tuple(p for p in cleaned if p), header[offset + 1 :]
            depth -= 1
        elif ch == "," and depth == 0:
            params.append("".join(current))
            current = []
            continue
        current.append(ch)
    return None


def _is_definition(code: str) -> bool:
    return bool(PYTHON_DEF_START.match(code) or PYTHON_CLASS_START.match(code))


class PythonHandler(OutlineMixin, LanguageHandler):
    """Python analysis over logical lines."""

    descriptor = PYTHON

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_dependencies(self, text: str) -> list[str]:
        """Top-level module names from ``import`` / ``from`` lines.

        Relative imports (``from . import x``, ``from .pkg import y``) have
        no top-level name and are skipped.
        """
        deps: dict[str, None] = {}
        for name in _imported_modules(_scan(text).logical):
            top = name.split(".")[0]
            if top.isidentifier():
                deps.setdefault(top, None)
        return list(deps)

    def analyze_functions(self, text: str) -> list[FunctionDescriptor]:
        scan = _scan(text)
        lines = text.split("\n")
        pattern = self.function_patterns[0]
        functions: list[FunctionDescriptor] = []
        for index, entry in enumerate(scan.logical):
            start = PYTHON_DEF_START.match(entry.code)
            if start is None:
                continue
            header = "\n".join(lines[entry.line : entry.end + 1])
            match = pattern.match(header)
            if match is not None:
                function = self._parse_function(match)
            else:
                function = self._fallback_function(start.group(1) or "anonymous", header)
            branches = sum(len(PYTHON_BRANCH.findall(e.code)) for e in _block(scan.logical, index))
            functions.append(dataclasses.replace(function, complexity=1 + branches))
        return functions

    @staticmethod
    def _fallback_function(name: str, header: str) -> FunctionDescriptor:
        """Header the pattern cannot read, such as defaults that call functions."""
        signature = _signature(header)
        if signature is None:
            return FunctionDescriptor(name=name)
        params, rest = signature
        annotation = PYTHON_RETURN_ANNOTATION.match(rest)
        return FunctionDescriptor(
            name=name, params=params, return_type=annotation.group(1) if annotation else None
        )

    def analyze_structure(self, text: str) -> list[StructureNode]:
        logical = _scan(text).logical
        structure: list[StructureNode] = []
        for index, entry in enumerate(logical):
            def_match = PYTHON_DEF_START.match(entry.code)
            class_match = PYTHON_CLASS_START.match(entry.code)
            if def_match and def_match.group(1):
                end = _block_end(logical, index)
                structure.append(StructureNode("function", def_match.group(1), entry.line, end))
            elif class_match and class_match.group(1):
                end = _block_end(logical, index)
                structure.append(StructureNode("class", class_match.group(1), entry.line, end))
            elif entry.indent == 0:
                var_match = PYTHON_VARIABLE.match(entry.code)
                if var_match and not keyword.iskeyword(var_match.group(1)):
                    structure.append(
                        StructureNode("variable", var_match.group(1), entry.line, entry.end)
                    )
        return structure

    def detect_syntax_errors(self, text: str) -> list[Diagnostic]:
        scan = _scan(text)
        _, diagnostics = _levels(scan.logical)
        diagnostics.extend(scan.diagnostics)
        for entry in scan.logical:
            if PYTHON_DEF_START.match(entry.code):
                if not PYTHON_DEF_STATEMENT.match(entry.code):
                    diagnostics.append(
                        Diagnostic(entry.line, entry.indent, "Invalid function definition")
                    )
            elif PYTHON_CLASS_START.match(entry.code):
                if not PYTHON_CLASS_STATEMENT.match(entry.code):
                    diagnostics.append(
                        Diagnostic(entry.line, entry.indent, "Invalid class definition")
                    )
        return sorted(diagnostics, key=lambda d: (d.line, d.column))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_imports(self, text: str) -> bool:
        """Imports precede all other statements (module docstring excepted)."""
        seen_code = False
        for position, entry in enumerate(_scan(text).logical):
            if PYTHON_IMPORT_STATEMENT.match(entry.code):
                if seen_code:
                    return False
            elif position == 0 and PYTHON_DOCSTRING.match(entry.code):
                continue
            else:
                seen_code = True
        return True

    def validate_structure(self, text: str) -> bool:
        """Every class defines ``__init__`` and no class is nested in another."""
        logical = _scan(text).logical
        for index, entry in enumerate(logical):
            if not PYTHON_CLASS_START.match(entry.code):
                continue
            body = _block(logical, index)
            if any(PYTHON_CLASS_START.match(e.code) for e in body):
                return False
            if not any(PYTHON_INIT.match(e.code) for e in body):
                return False
        return True

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_imports(self, dependencies: Sequence[str]) -> str:
        return "\n".join(f"import {dep}" for dep in dependencies)

    def generate_function(
        self, name: str, params: Sequence[str], return_type: str | None, body: str
    ) -> str:
        arrow = f" -> {return_type}" if return_type else ""
        return f"def {name}({', '.join(params)}){arrow}:\n{self._indent(body or 'pass')}"

    def generate_class(self, name: str, properties: Sequence[str], methods: Sequence[str]) -> str:
        init_body = "\n".join(f"self.{prop} = None" for prop in properties) or "pass"
        members = [f"def __init__(self):\n{self._indent(init_body)}"]
        members.extend(f"def {method}(self):\n{self._indent('pass')}" for method in methods)
        body = "\n\n".join(members)
        return f"class {name}:\n{self._indent(body)}"

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def wrap_in_function(self, text: str, function_name: str) -> str:
        body = text if text.strip() else "pass"
        return f"def {function_name}():\n{self._indent(body)}"

    def inject_imports(self, text: str, dependencies: Sequence[str]) -> str:
        logical = _scan(text).logical
        # The import pattern reads only the first name of ``import a, b``.
        existing = [*self.analyze_imports(text), *_imported_modules(logical)]
        new = self._missing_imports(text, dependencies, existing)
        if not new:
            return text

        statements = self.generate_imports(new)
        last_import_end = -1
        docstring_end = -1
        for position, entry in enumerate(logical):
            if PYTHON_IMPORT_STATEMENT.match(entry.code):
                last_import_end = entry.end
            elif position == 0 and PYTHON_DOCSTRING.match(entry.code):
                docstring_end = entry.end
            else:
                break

        lines = text.split("\n")
        if last_import_end != -1:
            head, tail = lines[: last_import_end + 1], lines[last_import_end + 1 :]
            return "\n".join([*head, statements, *tail])
        if docstring_end == -1:
            return f"{statements}\n\n{text}"
        head, tail = lines[: docstring_end + 1], lines[docstring_end + 1 :]
        if tail and tail[0].strip():
            tail = ["", *tail]
        return "\n".join([*head, "", statements, *tail])

    def format_code(self, text: str) -> str:
        """Normalise indentation, trailing whitespace and blank lines.

        Sources the heuristic checker rejects are returned unchanged. Lines
        inside multi-line strings are never touched.
        """
        if self.detect_syntax_errors(text):
            return text

        scan = _scan(text)
        levels, _ = _levels(scan.logical)
        physical = scan.physical

        # New indentation for the first line of each logical line; continuation
        # lines shift by the same amount.
        rendered: dict[int, str] = {}
        starts: dict[int, _LogicalLine] = {}
        start_indent: dict[int, int] = {}
        for entry, level in zip(scan.logical, levels):
            delta = level * self.indent_size - entry.indent
            starts[entry.line] = entry
            start_indent[entry.line] = level * self.indent_size
            for i in range(entry.line, entry.end + 1):
                line = physical[i]
                if line.starts_in_string:
                    rendered[i] = line.text
                    continue
                content = line.text.expandtabs(_TAB_SIZE)
                indent = max(0, _indent_of(content) + delta)
                body = content.strip() if not line.ends_in_string else content.lstrip()
                rendered[i] = " " * indent + body if body else ""

        # Comment-only lines take the indentation of the code that follows.
        next_indent = 0
        for i in range(len(physical) - 1, -1, -1):
            if i in start_indent:
                next_indent = start_indent[i]
            elif i not in rendered and physical[i].text.strip():
                rendered[i] = " " * next_indent + physical[i].text.strip()

        output: list[str] = []
        pending_blank = 0
        previous = ""
        for i, line in enumerate(physical):
            new = rendered.get(i, "")
            if not new.strip() and not line.starts_in_string:
                pending_blank += 1
                continue
            entry = starts.get(i)
            top_level_def = (
                entry is not None
                and entry.indent == 0
                and (entry.code.startswith("@") or _is_definition(entry.code))
            )
            attached = pending_blank == 0 and (
                previous.startswith("@") or previous.lstrip().startswith("#")
            )
            if top_level_def and output and not attached:
                blanks = 2
            else:
                limit = 2 if new == new.lstrip() else 1
                blanks = min(pending_blank, limit) if output else 0
            output.extend([""] * blanks)
            output.append(new)
            previous = new
            pending_blank = 0

        result = "\n".join(output)
        if text.endswith("\n") and output:
            result += "\n"
        return result
