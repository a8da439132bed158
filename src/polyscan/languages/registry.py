"""Handler registry: file extension / language id -> handler.

A registry is an ordinary value. Build one with ``create_default_registry``
at application start and pass it to whatever needs lookups; nothing here is
global. After construction the lookup tables are only read.

Usage::

    registry = create_default_registry(load_config().formatting)
    handler = registry.handler_for_file("src/app.tsx")
    if handler is not None:
        deps = handler.analyze_dependencies(text)
"""

from __future__ import annotations

from pathlib import Path

from polyscan.config.models import FormattingConfig, PolyscanConfig
from polyscan.core.logging import get_logger
from polyscan.languages.base import LanguageHandler
from polyscan.languages.css import CSSHandler
from polyscan.languages.html import HTMLHandler
from polyscan.languages.javascript import JavaScriptHandler
from polyscan.languages.python import PythonHandler
from polyscan.languages.typescript import TypeScriptHandler

log = get_logger(__name__)


class LanguageRegistry:
    """Ordered handler list plus an extension index.

    Registering a handler for an extension that is already mapped replaces
    the earlier mapping (last registration wins). Language-id lookup returns
    the first registered handler with that id.
    """

    def __init__(self, handlers: list[LanguageHandler] | None = None) -> None:
        self._handlers: list[LanguageHandler] = []
        self._by_extension: dict[str, LanguageHandler] = {}
        for handler in handlers or ():
            self.register(handler)

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        ids = ", ".join(self.supported_language_ids())
        return f"LanguageRegistry({ids})"

    def register(self, handler: LanguageHandler) -> None:
        self._handlers.append(handler)
        for ext in handler.file_extensions:
            ext_lower = ext.lower()
            previous = self._by_extension.get(ext_lower)
            if previous is not None and previous is not handler:
                log.debug(
                    "registry.extension_replaced",
                    extension=ext_lower,
                    previous=previous.language_id,
                    current=handler.language_id,
                )
            self._by_extension[ext_lower] = handler

    def handler_for_file(self, path: str | Path) -> LanguageHandler | None:
        """Handler for the file's (case-insensitive) extension, or None if unknown."""
        suffix = Path(path).suffix.lower()
        if not suffix:
            return None
        return self._by_extension.get(suffix)

    def handler_for_language_id(self, language_id: str) -> LanguageHandler | None:
        for handler in self._handlers:
            if handler.language_id == language_id:
                return handler
        return None

    def supported_extensions(self) -> list[str]:
        return list(self._by_extension)

    def supported_language_ids(self) -> list[str]:
        return list(dict.fromkeys(handler.language_id for handler in self._handlers))

    # Host-facing names.
    get_handler_for_file = handler_for_file
    get_handler_for_language_id = handler_for_language_id
    get_supported_extensions = supported_extensions
    get_supported_language_ids = supported_language_ids


def create_default_registry(
    config: FormattingConfig | PolyscanConfig | None = None,
) -> LanguageRegistry:
    """Registry with the built-in handlers, in the fixed order TS, Python, JS, CSS, HTML."""
    if isinstance(config, PolyscanConfig):
        config = config.formatting
    formatting = config or FormattingConfig()

    indent = formatting.indent_size
    return LanguageRegistry(
        [
            TypeScriptHandler(indent_size=indent),
            PythonHandler(indent_size=indent),
            JavaScriptHandler(indent_size=indent),
            CSSHandler(indent_size=indent),
            HTMLHandler(indent_size=formatting.html_indent_size),
        ]
    )
