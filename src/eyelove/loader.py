"""Load HTML files into the in-memory document and write them back out."""

from __future__ import annotations

from html import escape
from html.parser import HTMLParser
from pathlib import Path

from .dom import Document, Element, Text
from .exceptions import DocumentError
from .logger import get_logger

logger = get_logger()

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
        "source",
        "track",
        "wbr",
    }
)
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})
HEAD_ELEMENTS = frozenset({"base", "link", "meta", "script", "style", "title", "noscript"})
ADOPTED_SHEET_ATTRIBUTE = "data-eyelove-adopted"


class _TreeBuilder(HTMLParser):
    """Builds a Document from parser events.

    `html`, `head` and `body` tags map onto the document's own elements; head
    content seen before the body goes into `head`, anything else into `body`.
    Unclosed elements are closed by the end tag of an ancestor.
    """

    def __init__(self, document: Document) -> None:
        super().__init__(convert_charrefs=True)
        self.document = document
        self.stack: list[Element] = [document.head]
        self.in_body = False
        self.after_body = False

    def _enter_body(self) -> None:
        if not self.in_body:
            self.in_body = True
            self.stack = [self.document.body]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attributes = {name.lower(): value or "" for name, value in attrs}
        if tag == "html":
            for name, value in attributes.items():
                self.document.document_element.set_attribute(name, value)
            return
        if tag == "head":
            for name, value in attributes.items():
                self.document.head.set_attribute(name, value)
            return
        if tag == "body":
            self._enter_body()
            for name, value in attributes.items():
                self.document.body.set_attribute(name, value)
            return

        if not self.in_body and tag not in HEAD_ELEMENTS:
            self._enter_body()

        element = self.document.create_element(tag, attributes)
        self.stack[-1].append_child(element)
        if tag not in VOID_ELEMENTS:
            self.stack.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs)
        if tag not in VOID_ELEMENTS and tag not in ("html", "head", "body"):
            self.handle_endtag(tag)

    def handle_endtag(self, tag: str) -> None:
        if tag in ("body", "html"):
            self.after_body = self.in_body
        if tag in ("html", "head", "body"):
            return
        # Pop up to the nearest open element with this tag; stray end tags are ignored
        for index in range(len(self.stack) - 1, 0, -1):
            if self.stack[index].tag_name == tag:
                del self.stack[index:]
                return

    def handle_data(self, data: str) -> None:
        if self.after_body and not data.strip():
            return
        if not self.in_body and data.strip() and self.stack[-1] is self.document.head:
            self._enter_body()
        if not data:
            return
        parent = self.stack[-1]
        if parent is self.document.head and not data.strip():
            return
        parent.append_child(self.document.create_text_node(data))


def parse_html(text: str, *, supports_adopted_stylesheets: bool = True) -> Document:
    """Parse HTML text into a Document.

    Args:
        text: HTML source
        supports_adopted_stylesheets: Passed to the Document; False simulates a
            host without constructable stylesheets

    Returns:
        The parsed document
    """
    document = Document(supports_adopted_stylesheets=supports_adopted_stylesheets)
    builder = _TreeBuilder(document)
    builder.feed(text)
    builder.close()
    logger.debug(f"Parsed document with {sum(1 for _ in document.iter_elements())} elements")
    return document


def load_document(path: Path | str, *, supports_adopted_stylesheets: bool = True) -> Document:
    """Read and parse an HTML file.

    Raises:
        DocumentError: If the file is missing or unreadable
    """
    path = Path(path)
    if not path.exists():
        raise DocumentError(f"HTML file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentError(f"Could not read {path}: {e}") from e
    return parse_html(text, supports_adopted_stylesheets=supports_adopted_stylesheets)


def serialize(document: Document, include_adopted: bool = True) -> str:
    """Render a Document as HTML.

    Adopted stylesheets have no markup of their own; with `include_adopted`
    each one is written as a `<style>` element at the end of `head` so the
    output renders the same way.
    """
    parts = ["<!DOCTYPE html>\n"]
    _write_element(document.document_element, parts, document, include_adopted)
    parts.append("\n")
    return "".join(parts)


def _write_element(
    element: Element, parts: list[str], document: Document, include_adopted: bool
) -> None:
    parts.append(f"<{element.tag_name}")
    for name, value in element.attributes.items():
        parts.append(f' {name}="{escape(value, quote=True)}"')
    parts.append(">")

    if element.tag_name in VOID_ELEMENTS:
        return

    raw = element.tag_name in RAW_TEXT_ELEMENTS
    for child in element.children:
        if isinstance(child, Text):
            parts.append(child.data if raw else escape(child.data, quote=False))
        else:
            _write_element(child, parts, document, include_adopted)

    if include_adopted and element is document.head:
        for sheet in document.adopted_style_sheets:
            parts.append(f'<style {ADOPTED_SHEET_ATTRIBUTE}="">\n{sheet.css_text}</style>')

    parts.append(f"</{element.tag_name}>")
