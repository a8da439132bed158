"""Pattern library: the regular expressions each language handler scans with.

Pure data. Every supported language has exactly ONE ``HandlerDescriptor``
here holding its extensions, language id and its import, function, class
and block patterns. Import patterns capture the specifier in group 1;
function patterns capture the name in group 1 and the raw parameter list in
group 2 (and a return type in group 3 where the language has one).

The branch-counting patterns used by the regex-only complexity scores live
here too, so that no handler carries its own ad-hoc expressions.
"""

from __future__ import annotations

import re

from polyscan.languages.models import HandlerDescriptor

_M = re.MULTILINE

# =========================================================================
# ECMAScript (shared by TypeScript and JavaScript)
# =========================================================================

_ES_IMPORT_FROM = re.compile(
    r"\bimport\s+(?:type\s+)?(?:[\w$]+\s*,\s*)?"
    r"(?:\*\s*as\s+[\w$]+|\{[^}]*\}|[\w$]+)\s*from\s*['\"]([^'\"]+)['\"]"
)
_ES_IMPORT_BARE = re.compile(r"\bimport\s*['\"]([^'\"]+)['\"]")
_ES_IMPORT_DYNAMIC = re.compile(r"\bimport\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")
_ES_REQUIRE = re.compile(r"\brequire\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")

_ES_BLOCK = re.compile(r"\{[^{}]*\}")

TYPESCRIPT = HandlerDescriptor(
    file_extensions=(".ts", ".tsx"),
    language_id="typescript",
    import_patterns=(_ES_IMPORT_FROM, _ES_IMPORT_BARE, _ES_IMPORT_DYNAMIC, _ES_REQUIRE),
    function_patterns=(
        re.compile(r"(?:async\s+)?function\s*\*?\s*([\w$]+)\s*(?:<[^>]*>)?\s*\(([^)]*)\)"),
        re.compile(r"(?:const|let|var)\s+([\w$]+)\s*=\s*(?:async\s+)?function\b"),
        re.compile(r"(?:const|let|var)\s+([\w$]+)\s*=\s*(?:async\s+)?\(([^)]*)\)\s*(?::[^=]+)?=>"),
    ),
    class_patterns=(
        re.compile(r"\bclass\s+([\w$]+)"),
        re.compile(r"\binterface\s+([\w$]+)"),
    ),
    block_patterns=(_ES_BLOCK,),
)

JAVASCRIPT = HandlerDescriptor(
    file_extensions=(".js", ".jsx", ".mjs", ".cjs"),
    language_id="javascript",
    import_patterns=(_ES_IMPORT_FROM, _ES_IMPORT_BARE, _ES_REQUIRE),
    function_patterns=(
        re.compile(r"function\s*\*?\s*([\w$]+)\s*\(([^)]*)\)"),
        re.compile(r"([\w$]+)\s*:\s*function\s*\(([^)]*)\)"),
        re.compile(r"([\w$]+)\s*=\s*function\s*\(([^)]*)\)"),
        re.compile(r"([\w$]+)\s*=\s*(?:async\s+)?\(([^)]*)\)\s*=>"),
    ),
    class_patterns=(re.compile(r"\bclass\s+([\w$]+)(?:\s+extends\s+([\w$.]+))?\s*\{"),),
    block_patterns=(_ES_BLOCK,),
)

# =========================================================================
# Python
# =========================================================================

PYTHON = HandlerDescriptor(
    file_extensions=(".py",),
    language_id="python",
    import_patterns=(
        re.compile(r"^[ \t]*from[ \t]+([\w.]+)[ \t]+import\b", _M),
        re.compile(r"^[ \t]*import[ \t]+([\w.]+)", _M),
    ),
    function_patterns=(
        re.compile(
            r"^[ \t]*(?:async[ \t]+)?def[ \t]+(\w+)[ \t]*\(([^)]*)\)"
            r"(?:[ \t]*->[ \t]*([^:]+?))?[ \t]*:",
            _M,
        ),
    ),
    class_patterns=(re.compile(r"^[ \t]*class[ \t]+(\w+)(?:\([^)]*\))?[ \t]*:", _M),),
    block_patterns=(re.compile(r":[ \t]*\n[ \t]+[^\n]+(?:\n[ \t]+[^\n]+)*"),),
)

# One match per branching keyword occurrence. ``elif`` never matches ``if``.
PYTHON_BRANCH = re.compile(r"\b(?:if|elif|for|while|and|or)\b")
PYTHON_VARIABLE = re.compile(r"^(\w+)[ \t]*(?::[^=]+)?=(?!=)")

# Statement openers (name in group 1) and the complete header shapes they must have.
PYTHON_DEF_START = re.compile(r"^[ \t]*(?:async[ \t]+)?def\b[ \t]*(\w*)")
PYTHON_CLASS_START = re.compile(r"^[ \t]*class\b[ \t]*(\w*)")
PYTHON_DEF_STATEMENT = re.compile(r"(?:async\s+)?def\s+\w+\s*\(.*\)\s*(?:->[^:]+)?:")
PYTHON_CLASS_STATEMENT = re.compile(r"class\s+\w+\s*(?:\(.*\))?\s*:")
PYTHON_INIT = re.compile(r"^(?:async\s+)?def\s+__init__\b")
PYTHON_IMPORT_STATEMENT = re.compile(r"^(?:import\s|from\s+\S+\s+import\b)")
PYTHON_DOCSTRING = re.compile(r"^[rRbBuUfF]{0,2}\"\"$")
PYTHON_RETURN_ANNOTATION = re.compile(r"\s*->\s*([^:]+?)\s*:")

# =========================================================================
# CSS (also SCSS / LESS sources)
# =========================================================================

CSS = HandlerDescriptor(
    file_extensions=(".css", ".scss", ".less"),
    language_id="css",
    import_patterns=(
        re.compile(r"@import\s+(?:url\(\s*)?['\"]([^'\"]+)['\"]\s*\)?"),
        re.compile(r"@use\s+['\"]([^'\"]+)['\"]"),
    ),
    function_patterns=(
        re.compile(r"@mixin\s+([\w-]+)\s*(?:\(([^)]*)\))?"),
        re.compile(r"@function\s+([\w-]+)\s*\(([^)]*)\)"),
    ),
    class_patterns=(re.compile(r"\.(-?[_a-zA-Z][\w-]*)"),),
    block_patterns=(re.compile(r"\{[^{}]*\}"),),
)

CSS_QUOTED = re.compile(r"['\"]([^'\"]*)['\"]")
# Whole `@use` statement; tree-sitter-css has no rule for its quoted argument.
CSS_USE_RULE = re.compile(r"@use\b[^;{}]*;")

# =========================================================================
# HTML
# =========================================================================

HTML = HandlerDescriptor(
    file_extensions=(".html", ".htm"),
    language_id="html",
    import_patterns=(
        re.compile(r"<link\s+[^>]*href=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE),
        re.compile(r"<script\s+[^>]*src=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE),
        re.compile(r"@import\s+(?:url\()?\s*['\"]([^'\"]+)['\"]\s*\)?"),
    ),
    function_patterns=(
        re.compile(r"function\s+([\w$]+)\s*\(([^)]*)\)"),
        re.compile(r"const\s+([\w$]+)\s*=\s*(?:async\s+)?\(([^)]*)\)\s*=>"),
    ),
    class_patterns=(re.compile(r"class=[\"']([^\"']+)[\"']"),),
    block_patterns=(re.compile(r"<[^>]+>"), re.compile(r"\{[^{}]*\}")),
)

# Inline-script branch constructs; each occurrence adds one.
HTML_SCRIPT_BRANCHES: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bif\s*\("),
    re.compile(r"\belse\s+if\s*\("),
    re.compile(r"\bfor\s*\("),
    re.compile(r"\bwhile\s*\("),
    re.compile(r"\bswitch\s*\("),
    re.compile(r"\?\s*[^:?]+\s*:"),
)

ALL_DESCRIPTORS: tuple[HandlerDescriptor, ...] = (TYPESCRIPT, PYTHON, JAVASCRIPT, CSS, HTML)
