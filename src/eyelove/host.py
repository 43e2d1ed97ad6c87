"""Protocol definitions for the page the engine runs against.

The engine never imports a concrete document implementation. Anything that
provides these methods can be themed: the bundled in-memory DOM
(`eyelove.dom`), or a bridge to a live browser page.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import Protocol

ELEMENT_NODE = 1
TEXT_NODE = 3


class Node(Protocol):
    """Any node that can show up in a mutation record."""

    @property
    def node_type(self) -> int:
        """ELEMENT_NODE or TEXT_NODE."""
        ...


class InlineStyle(Protocol):
    """An element's inline style declaration block."""

    def get_property_value(self, name: str) -> str:
        """Value of a declared property, or '' if not declared."""
        ...

    def set_property(self, name: str, value: str, priority: str = "") -> None:
        """Declare a property; `priority` is '' or 'important'."""
        ...

    def remove_property(self, name: str) -> str:
        """Remove a property, returning its old value ('' if absent)."""
        ...


class ComputedStyle(Protocol):
    """Resolved style values for one element."""

    def get_property_value(self, name: str) -> str:
        """Resolved value of a property or custom property ('' if none)."""
        ...


class Element(Node, Protocol):
    """A document element."""

    @property
    def tag_name(self) -> str:
        """Lowercase tag name."""
        ...

    @property
    def parent_element(self) -> Element | None:
        """Parent element, or None for the root or a detached element."""
        ...

    @property
    def style(self) -> InlineStyle:
        """Inline style of this element."""
        ...

    def get_attribute(self, name: str) -> str | None:
        """Attribute value, or None if the attribute is absent."""
        ...

    def set_attribute(self, name: str, value: str) -> None:
        """Set an attribute."""
        ...

    def remove_attribute(self, name: str) -> None:
        """Remove an attribute (no-op if absent)."""
        ...

    def has_attribute(self, name: str) -> bool:
        """True if the attribute is present."""
        ...

    def has_class(self, name: str) -> bool:
        """True if `name` is in the class list."""
        ...

    def add_class(self, name: str) -> None:
        """Add `name` to the class list."""
        ...

    def remove_class(self, name: str) -> None:
        """Remove `name` from the class list."""
        ...

    def computed_style(self) -> ComputedStyle:
        """Computed style snapshot for this element."""
        ...

    def rendered_size(self) -> tuple[float | None, float | None]:
        """Rendered (width, height) in px; None for a dimension that is unknown."""
        ...

    def has_direct_text(self) -> bool:
        """True if a direct child text node contains non-whitespace text."""
        ...

    def iter_descendants(self) -> Iterator[Element]:
        """Descendant elements in document order (excluding self)."""
        ...


class StyleSheet(Protocol):
    """A constructable stylesheet that can be adopted by a document."""

    def replace_sync(self, text: str) -> None:
        """Replace the whole sheet content."""
        ...


class MutationRecord(Protocol):
    """A batch entry describing a child-list change."""

    @property
    def type(self) -> str:
        """'childList' for insertions/removals."""
        ...

    @property
    def added_nodes(self) -> Sequence[Node]:
        """Nodes inserted by this mutation."""
        ...


class MutationWatcher(Protocol):
    """Handle to a subtree mutation watcher."""

    def observe(self, target: Element, *, child_list: bool = True, subtree: bool = True) -> None:
        """Start watching `target`."""
        ...

    def disconnect(self) -> None:
        """Stop watching and drop pending records."""
        ...


MutationCallback = Callable[[Sequence[MutationRecord]], None]


class Document(Protocol):
    """The page document."""

    @property
    def document_element(self) -> Element:
        """The root (`html`) element."""
        ...

    @property
    def body(self) -> Element:
        """The `body` element."""
        ...

    @property
    def supports_adopted_stylesheets(self) -> bool:
        """False if constructable/adopted stylesheets are unavailable."""
        ...

    @property
    def adopted_style_sheets(self) -> list[StyleSheet]:
        """Currently adopted stylesheets (a copy; assign to change)."""
        ...

    @adopted_style_sheets.setter
    def adopted_style_sheets(self, sheets: list[StyleSheet]) -> None: ...

    def create_style_sheet(self) -> StyleSheet:
        """Construct an empty stylesheet.

        Raises:
            UnsupportedEnvironmentError: If constructable stylesheets are unavailable
        """
        ...

    def create_mutation_watcher(self, callback: MutationCallback) -> MutationWatcher:
        """Create a watcher that reports child-list mutations to `callback`."""
        ...


class BootstrapCache(Protocol):
    """Synchronous string key/value store read by the first-paint script."""

    def get_item(self, key: str) -> str | None:
        """Stored value, or None."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store a value."""
        ...
