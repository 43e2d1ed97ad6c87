"""In-memory document model implementing the host protocols.

Provides just enough of a browser DOM for the engine to run outside a
browser: elements and text nodes, inline styles, a small CSS cascade
(user-agent rules, `<style>` elements, adopted stylesheets, inline styles,
`!important`, specificity, inheritance, `var()`), rendered sizes from
declared dimensions, and a mutation observer whose records are delivered by
`Document.flush_mutations()`.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from functools import lru_cache

from .color import try_parse
from .css import (
    Declaration,
    Rule,
    normalize_property,
    parse_declarations,
    parse_selector_group,
    parse_stylesheet,
    serialize_declarations,
    split_tokens,
    substitute_vars,
)
from .exceptions import UnsupportedEnvironmentError
from .host import ELEMENT_NODE, TEXT_NODE, MutationCallback

ORIGIN_USER_AGENT = 0
ORIGIN_AUTHOR = 1
ORIGIN_INLINE = 2

MAX_FLUSH_ROUNDS = 32

USER_AGENT_CSS = """
head, script, style, title, meta, link, template { display: none; }
button { background-color: #efefef; color: #000000; }
a { color: #0000ee; }
"""

INHERITED_PROPERTIES = frozenset({"color", "fill", "stroke", "color-scheme", "visibility"})

INITIAL_VALUES: dict[str, str] = {
    "background-color": "rgba(0, 0, 0, 0)",
    "color": "rgb(0, 0, 0)",
    "fill": "rgb(0, 0, 0)",
    "stroke": "none",
    "border-color": "currentcolor",
    "color-scheme": "normal",
    "display": "inline",
    "visibility": "visible",
    "width": "auto",
    "height": "auto",
}

_PX_RE = re.compile(r"^([0-9]*\.?[0-9]+)(px)?$")


@lru_cache(maxsize=256)
def _parse_sheet_text(text: str) -> tuple[Rule, ...]:
    return tuple(parse_stylesheet(text))


# ============================================================================
# Nodes
# ============================================================================


class Text:
    """A text node."""

    node_type = TEXT_NODE

    def __init__(self, data: str) -> None:
        self.data = data
        self.parent: Element | None = None

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


class Element:
    """A document element."""

    node_type = ELEMENT_NODE

    def __init__(
        self,
        tag_name: str,
        attributes: dict[str, str] | None = None,
        owner_document: Document | None = None,
    ) -> None:
        self._tag_name = tag_name.lower()
        self._attributes: dict[str, str] = dict(attributes or {})
        self.owner_document = owner_document
        self.parent: Element | None = None
        self.children: list[Element | Text] = []

    def __repr__(self) -> str:
        attrs = "".join(
            f" {name}={value!r}"
            for name, value in self._attributes.items()
            if name in ("id", "class")
        )
        return f"<{self._tag_name}{attrs}>"

    # -- identity and tree -------------------------------------------------

    @property
    def tag_name(self) -> str:
        return self._tag_name

    @property
    def parent_element(self) -> Element | None:
        return self.parent

    @property
    def element_children(self) -> list[Element]:
        return [child for child in self.children if isinstance(child, Element)]

    @property
    def is_connected(self) -> bool:
        """True if this element is part of its owner document's tree."""
        if self.owner_document is None:
            return False
        node: Element = self
        while node.parent is not None:
            node = node.parent
        return node is self.owner_document.document_element

    def iter_descendants(self) -> Iterator[Element]:
        for child in self.element_children:
            yield child
            yield from child.iter_descendants()

    def append_child(self, node: Element | Text) -> Element | Text:
        """Append a node, moving it from its current parent if it has one."""
        return self.insert_before(node, None)

    def insert_before(
        self, node: Element | Text, reference: Element | Text | None
    ) -> Element | Text:
        """Insert `node` before `reference` (append if None)."""
        if isinstance(node, Element) and (node is self or node in self._ancestors()):
            raise ValueError("Cannot insert an element into its own subtree")
        if node.parent is not None:
            node.parent.remove_child(node)
        if reference is None:
            self.children.append(node)
        else:
            self.children.insert(self.children.index(reference), node)
        node.parent = self
        if isinstance(node, Element) and node.owner_document is None:
            node._adopt(self.owner_document)
        self._record_mutation(added=[node])
        return node

    def remove_child(self, node: Element | Text) -> Element | Text:
        self.children.remove(node)
        node.parent = None
        self._record_mutation(removed=[node])
        return node

    def remove(self) -> None:
        """Detach this element from its parent."""
        if self.parent is not None:
            self.parent.remove_child(self)

    def _ancestors(self) -> Iterator[Element]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def _adopt(self, document: Document | None) -> None:
        self.owner_document = document
        for child in self.element_children:
            child._adopt(document)

    def _record_mutation(
        self, added: list[Element | Text] | None = None, removed: list[Element | Text] | None = None
    ) -> None:
        if self.owner_document is None:
            return
        self.owner_document._version += 1
        if self.is_connected:
            self.owner_document._queue_mutation(
                MutationRecord("childList", self, list(added or []), list(removed or []))
            )

    # -- attributes --------------------------------------------------------

    @property
    def attributes(self) -> dict[str, str]:
        return dict(self._attributes)

    def get_attribute(self, name: str) -> str | None:
        return self._attributes.get(name.lower())

    def set_attribute(self, name: str, value: str) -> None:
        self._attributes[name.lower()] = value

    def remove_attribute(self, name: str) -> None:
        self._attributes.pop(name.lower(), None)

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self._attributes

    @property
    def class_list(self) -> list[str]:
        return (self.get_attribute("class") or "").split()

    def has_class(self, name: str) -> bool:
        return name in self.class_list

    def add_class(self, name: str) -> None:
        classes = self.class_list
        if name not in classes:
            self.set_attribute("class", " ".join([*classes, name]))

    def remove_class(self, name: str) -> None:
        classes = self.class_list
        if name in classes:
            self.set_attribute("class", " ".join(c for c in classes if c != name))

    # -- content -----------------------------------------------------------

    @property
    def text_content(self) -> str:
        parts: list[str] = []
        for child in self.children:
            parts.append(child.data if isinstance(child, Text) else child.text_content)
        return "".join(parts)

    def has_direct_text(self) -> bool:
        return any(isinstance(child, Text) and child.data.strip() for child in self.children)

    # -- style -------------------------------------------------------------

    @property
    def style(self) -> InlineStyle:
        return InlineStyle(self)

    def computed_style(self) -> ComputedStyle:
        return ComputedStyle(self)

    def rendered_size(self) -> tuple[float | None, float | None]:
        """Width and height from declared px dimensions (0 x 0 when not displayed)."""
        computed = self.computed_style()
        if computed.get_property_value("display") == "none":
            return 0.0, 0.0
        return (
            _length(computed.get_property_value("width"), self.get_attribute("width")),
            _length(computed.get_property_value("height"), self.get_attribute("height")),
        )


def _length(declared: str, attribute: str | None) -> float | None:
    for candidate in (declared, attribute):
        if candidate:
            match = _PX_RE.match(candidate.strip().lower())
            if match:
                return float(match.group(1))
    return None


# ============================================================================
# Styles
# ============================================================================


class InlineStyle:
    """View over an element's `style` attribute."""

    def __init__(self, element: Element) -> None:
        self._element = element

    def _declarations(self) -> list[Declaration]:
        return parse_declarations(self._element.get_attribute("style") or "")

    @property
    def css_text(self) -> str:
        return serialize_declarations(self._declarations())

    def __len__(self) -> int:
        return len(self._declarations())

    def get_property_value(self, name: str) -> str:
        name = normalize_property(name)
        for declaration in reversed(self._declarations()):
            if declaration.name == name:
                return declaration.value
        return ""

    def get_property_priority(self, name: str) -> str:
        name = normalize_property(name)
        for declaration in reversed(self._declarations()):
            if declaration.name == name:
                return "important" if declaration.important else ""
        return ""

    def set_property(self, name: str, value: str, priority: str = "") -> None:
        name = normalize_property(name)
        if not value:
            self.remove_property(name)
            return
        updated = Declaration(name, value, priority.lower() == "important")
        declarations = self._declarations()
        for i, declaration in enumerate(declarations):
            if declaration.name == name:
                declarations[i] = updated
                declarations = [d for j, d in enumerate(declarations) if j <= i or d.name != name]
                break
        else:
            declarations.append(updated)
        self._element.set_attribute("style", serialize_declarations(declarations))

    def remove_property(self, name: str) -> str:
        name = normalize_property(name)
        old = self.get_property_value(name)
        declarations = self._declarations()
        remaining = [d for d in declarations if d.name != name]
        if len(remaining) != len(declarations):
            self._element.set_attribute("style", serialize_declarations(remaining))
        return old


class ComputedStyle:
    """Lazily resolved computed values for one element."""

    def __init__(self, element: Element) -> None:
        self._element = element
        self._cache: dict[str, str] = {}

    def get_property_value(self, name: str) -> str:
        name = normalize_property(name)
        if name not in self._cache:
            # Placeholder breaks var() cycles: a self-reference reads as unset
            self._cache[name] = ""
            self._cache[name] = self._compute(name)
        return self._cache[name]

    def _inherited(self, name: str) -> str:
        parent = self._element.parent_element
        if parent is None:
            return INITIAL_VALUES.get(name, "")
        return parent.computed_style().get_property_value(name)

    def _compute(self, name: str) -> str:
        inherited = name.startswith("--") or name in INHERITED_PROPERTIES
        document = self._element.owner_document
        declaration = document._cascaded(self._element, name) if document else None

        if declaration is None:
            return self._inherited(name) if inherited else INITIAL_VALUES.get(name, "")

        keyword = declaration.value.strip().lower()
        if keyword == "inherit" or (keyword == "unset" and inherited):
            return self._inherited(name)
        if keyword in ("initial", "unset", "revert"):
            return INITIAL_VALUES.get(name, "")

        value = substitute_vars(declaration.value, self._lookup_custom)
        if value is None:
            # Invalid at computed-value time
            return self._inherited(name) if inherited else INITIAL_VALUES.get(name, "")

        if declaration.name == "background" and name == "background-color":
            value = _background_color(value)

        if value.lower() == "currentcolor":
            return self._inherited("color") if name == "color" else self.get_property_value("color")
        return value

    def _lookup_custom(self, name: str) -> str | None:
        return self.get_property_value(name) or None


def _background_color(shorthand: str) -> str:
    """Pull the color layer out of a `background` shorthand value."""
    for token in split_tokens(shorthand):
        if token.lower() == "currentcolor" or try_parse(token) is not None:
            return token
    return INITIAL_VALUES["background-color"]


class CSSStyleSheet:
    """A constructable stylesheet."""

    def __init__(self, text: str = "") -> None:
        self._text = ""
        self.rules: list[Rule] = []
        self.replace_sync(text)

    def __repr__(self) -> str:
        return f"CSSStyleSheet(rules={len(self.rules)})"

    @property
    def css_text(self) -> str:
        return self._text

    def replace_sync(self, text: str) -> None:
        self._text = text
        self.rules = parse_stylesheet(text)


# ============================================================================
# Mutations
# ============================================================================


@dataclass
class MutationRecord:
    """A child-list mutation."""

    type: str
    target: Element
    added_nodes: list[Element | Text] = field(default_factory=list)
    removed_nodes: list[Element | Text] = field(default_factory=list)


class MutationObserver:
    """Collects child-list mutations until the document flushes them."""

    def __init__(self, callback: MutationCallback, document: Document) -> None:
        self.callback = callback
        self._document = document
        self._targets: list[tuple[Element, bool]] = []
        self._records: list[MutationRecord] = []

    def observe(self, target: Element, *, child_list: bool = True, subtree: bool = True) -> None:
        if not child_list:
            raise ValueError("Only child-list observation is supported")
        self._targets = [(t, s) for t, s in self._targets if t is not target]
        self._targets.append((target, subtree))
        self._document._register(self)

    def disconnect(self) -> None:
        self._targets.clear()
        self._records.clear()
        self._document._unregister(self)

    def take_records(self) -> list[MutationRecord]:
        records, self._records = self._records, []
        return records

    def _enqueue(self, record: MutationRecord) -> None:
        for target, subtree in self._targets:
            if record.target is target or (subtree and target in record.target._ancestors()):
                self._records.append(record)
                return


# ============================================================================
# Document
# ============================================================================


class Document:
    """An in-memory HTML document with `html`, `head` and `body` elements."""

    def __init__(
        self,
        *,
        supports_adopted_stylesheets: bool = True,
        user_agent_css: str = USER_AGENT_CSS,
    ) -> None:
        self._supports_adopted = supports_adopted_stylesheets
        self._user_agent_rules = parse_stylesheet(user_agent_css)
        self._adopted: list[CSSStyleSheet] = []
        self._observers: list[MutationObserver] = []
        self._version = 0  # Bumped on every child-list change
        self._style_rules: list[Rule] = []
        self._style_rules_version = -1

        self._document_element = self.create_element("html")
        self._head = self.create_element("head")
        self._body = self.create_element("body")
        self._document_element.append_child(self._head)
        self._document_element.append_child(self._body)

    # -- tree --------------------------------------------------------------

    @property
    def document_element(self) -> Element:
        return self._document_element

    @property
    def head(self) -> Element:
        return self._head

    @property
    def body(self) -> Element:
        return self._body

    def _set_structure(self, root: Element, head: Element, body: Element) -> None:
        """Replace the html/head/body elements (used by the HTML loader)."""
        self._document_element = root
        self._head = head
        self._body = body

    def create_element(self, tag_name: str, attributes: dict[str, str] | None = None) -> Element:
        return Element(tag_name, attributes, owner_document=self)

    def create_text_node(self, data: str) -> Text:
        return Text(data)

    def iter_elements(self) -> Iterator[Element]:
        """Every element in document order, starting with the root."""
        yield self._document_element
        yield from self._document_element.iter_descendants()

    def query_all(self, selector_text: str) -> list[Element]:
        """Elements matching a selector list, in document order."""
        selectors = parse_selector_group(selector_text)
        return [el for el in self.iter_elements() if any(s.matches(el) for s in selectors)]

    def get_element_by_id(self, element_id: str) -> Element | None:
        for element in self.iter_elements():
            if element.get_attribute("id") == element_id:
                return element
        return None

    # -- stylesheets -------------------------------------------------------

    @property
    def supports_adopted_stylesheets(self) -> bool:
        return self._supports_adopted

    @property
    def adopted_style_sheets(self) -> list[CSSStyleSheet]:
        return list(self._adopted)

    @adopted_style_sheets.setter
    def adopted_style_sheets(self, sheets: Sequence[CSSStyleSheet]) -> None:
        if not self._supports_adopted:
            raise UnsupportedEnvironmentError("Adopted stylesheets are not supported")
        for sheet in sheets:
            if not isinstance(sheet, CSSStyleSheet):
                raise TypeError(f"Not a constructed stylesheet: {sheet!r}")
        self._adopted = list(sheets)

    def create_style_sheet(self) -> CSSStyleSheet:
        if not self._supports_adopted:
            raise UnsupportedEnvironmentError("Constructable stylesheets are not supported")
        return CSSStyleSheet()

    def _author_rules(self) -> Iterator[Rule]:
        if self._style_rules_version != self._version:
            self._style_rules = [
                rule
                for element in self.iter_elements()
                if element.tag_name == "style"
                for rule in _parse_sheet_text(element.text_content)
            ]
            self._style_rules_version = self._version
        yield from self._style_rules
        for sheet in self._adopted:
            yield from sheet.rules

    def _cascaded(self, element: Element, name: str) -> Declaration | None:
        """Winning declaration for a property on an element, or None."""
        best: tuple[tuple[object, ...], Declaration] | None = None
        origins = (
            (ORIGIN_USER_AGENT, iter(self._user_agent_rules)),
            (ORIGIN_AUTHOR, self._author_rules()),
        )
        order = 0
        for origin, rules in origins:
            for rule in rules:
                order += 1
                candidates = [
                    (i, d) for i, d in enumerate(rule.declarations) if _declares(d, name)
                ]
                if not candidates:
                    continue
                matching = [s.specificity for s in rule.selectors if s.matches(element)]
                if not matching:
                    continue
                specificity = max(matching)
                for position, declaration in candidates:
                    key = (declaration.important, origin, specificity, order, position)
                    if best is None or key > best[0]:
                        best = (key, declaration)

        inline = parse_declarations(element.get_attribute("style") or "")
        for position, declaration in enumerate(inline):
            if _declares(declaration, name):
                key = (declaration.important, ORIGIN_INLINE, (0, 0, 0), order + 1, position)
                if best is None or key > best[0]:
                    best = (key, declaration)

        return best[1] if best else None

    # -- mutations ---------------------------------------------------------

    def create_mutation_watcher(self, callback: MutationCallback) -> MutationObserver:
        return MutationObserver(callback, self)

    @property
    def observer_count(self) -> int:
        """Number of observers currently watching this document."""
        return len(self._observers)

    def _register(self, observer: MutationObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def _unregister(self, observer: MutationObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _queue_mutation(self, record: MutationRecord) -> None:
        for observer in self._observers:
            observer._enqueue(record)

    def flush_mutations(self) -> int:
        """Deliver queued mutation records to their observers' callbacks.

        Stands in for the browser's microtask checkpoint. Mutations made by a
        callback are delivered in a following round.

        Returns:
            Number of records delivered
        """
        delivered = 0
        for _ in range(MAX_FLUSH_ROUNDS):
            batches = [(o, o.take_records()) for o in list(self._observers)]
            batches = [(o, records) for o, records in batches if records]
            if not batches:
                break
            for observer, records in batches:
                observer.callback(records)
                delivered += len(records)
        return delivered


def _declares(declaration: Declaration, name: str) -> bool:
    if declaration.name == name:
        return True
    return name == "background-color" and declaration.name == "background"
