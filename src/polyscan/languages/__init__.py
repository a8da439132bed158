"""Language handlers and the handler registry."""

from polyscan.languages.base import LanguageHandler
from polyscan.languages.css import CSSHandler
from polyscan.languages.html import HTMLHandler
from polyscan.languages.javascript import JavaScriptHandler
from polyscan.languages.models import (
    AnalysisResult,
    Diagnostic,
    Document,
    FileStructureNode,
    FunctionDescriptor,
    HandlerDescriptor,
    StructureNode,
    TextDocument,
)
from polyscan.languages.python import PythonHandler
from polyscan.languages.registry import LanguageRegistry, create_default_registry
from polyscan.languages.typescript import TypeScriptHandler

__all__ = [
    # Contract
    "LanguageHandler",
    # Handlers
    "CSSHandler",
    "HTMLHandler",
    "JavaScriptHandler",
    "PythonHandler",
    "TypeScriptHandler",
    # Registry
    "LanguageRegistry",
    "create_default_registry",
    # Values
    "AnalysisResult",
    "Diagnostic",
    "Document",
    "FileStructureNode",
    "FunctionDescriptor",
    "HandlerDescriptor",
    "StructureNode",
    "TextDocument",
]
