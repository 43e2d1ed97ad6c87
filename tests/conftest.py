"""Pytest configuration and fixtures for eyelove tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from eyelove import context
from eyelove.cache import MemoryCache
from eyelove.controller import DarkModeController
from eyelove.dom import Document, Element
from eyelove.logger import reset_logger


@pytest.fixture(autouse=True)
def clean_global_state() -> None:
    """Reset the logger and CLI context before each test for isolation."""
    reset_logger()
    context.set_config_path(None)


@pytest.fixture
def document() -> Document:
    """An empty document with adopted stylesheet support."""
    return Document()


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def make_controller(cache: MemoryCache) -> Callable[..., DarkModeController]:
    """Factory for a controller over a given document, sharing the `cache` fixture."""

    def _make(doc: Document, **kwargs: Any) -> DarkModeController:
        kwargs.setdefault("cache", cache)
        return DarkModeController(doc, **kwargs)

    return _make


def add(parent: Element, tag: str, text: str | None = None, **attributes: str) -> Element:
    """Append a new element (optionally with a text child) and return it.

    Attribute names use underscores for dashes, e.g. `data_role="x"`; a trailing
    underscore is dropped so `class_` sets `class`.
    """
    assert parent.owner_document is not None
    doc = parent.owner_document
    names = {k: k.rstrip("_").replace("_", "-") for k in attributes}
    element = doc.create_element(tag, {names[k]: v for k, v in attributes.items()})
    if text is not None:
        element.append_child(doc.create_text_node(text))
    parent.append_child(element)
    return element
