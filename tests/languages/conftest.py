"""Shared fixtures for language handler tests."""

import pytest

from polyscan.languages import (
    CSSHandler,
    HTMLHandler,
    JavaScriptHandler,
    LanguageRegistry,
    PythonHandler,
    TypeScriptHandler,
    create_default_registry,
)


@pytest.fixture
def registry() -> LanguageRegistry:
    return create_default_registry()


@pytest.fixture
def ts() -> TypeScriptHandler:
    return TypeScriptHandler()


@pytest.fixture
def js() -> JavaScriptHandler:
    return JavaScriptHandler()


@pytest.fixture
def py() -> PythonHandler:
    return PythonHandler()


@pytest.fixture
def css() -> CSSHandler:
    return CSSHandler()


@pytest.fixture
def html() -> HTMLHandler:
    return HTMLHandler(indent_size=2)
