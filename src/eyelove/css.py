"""Minimal CSS parsing: declarations, rules, selectors and var() substitution.

This is just enough CSS for the in-memory document to compute colors the way
a browser would for ordinary pages. Unsupported constructs (at-rules,
pseudo-elements, pseudo-classes other than :root) are dropped rather than
raising, the same way a browser drops rules it does not understand.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_IMPORTANT_RE = re.compile(r"!\s*important\s*$", re.IGNORECASE)
_IDENT = r"-?[_a-zA-Z][_a-zA-Z0-9-]*"
_COMPOUND_TOKEN_RE = re.compile(
    rf"(?P<tag>\*|{_IDENT})"
    rf"|#(?P<id>{_IDENT})"
    rf"|\.(?P<cls>{_IDENT})"
    rf"|\[\s*(?P<attr>{_IDENT})\s*(?:=\s*(?P<quote>['\"]?)(?P<val>[^'\"\]]*)(?P=quote)\s*)?\]"
    r"|(?P<pseudo>::?[a-zA-Z-]+)"
)

MAX_VAR_DEPTH = 16


class Matchable(Protocol):
    """What a selector needs from an element."""

    @property
    def tag_name(self) -> str: ...

    @property
    def parent_element(self) -> Matchable | None: ...

    def get_attribute(self, name: str) -> str | None: ...

    def has_class(self, name: str) -> bool: ...


# ============================================================================
# Declarations
# ============================================================================


@dataclass(frozen=True)
class Declaration:
    """A single `name: value [!important]` declaration."""

    name: str
    value: str
    important: bool = False

    def to_css(self) -> str:
        """Serialize the declaration the way browsers serialize inline styles."""
        suffix = " !important" if self.important else ""
        return f"{self.name}: {self.value}{suffix};"


def split_top_level(text: str, separator: str) -> list[str]:
    """Split `text` on `separator`, ignoring separators inside parentheses or quotes."""
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []
    for char in text:
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def split_tokens(value: str) -> list[str]:
    """Split a property value on whitespace outside parentheses."""
    tokens: list[str] = []
    for chunk in split_top_level(value.replace("\t", " ").replace("\n", " "), " "):
        if chunk.strip():
            tokens.append(chunk.strip())
    return tokens


def normalize_property(name: str) -> str:
    """Property names are case-insensitive except for custom properties."""
    name = name.strip()
    return name if name.startswith("--") else name.lower()


def parse_declarations(text: str) -> list[Declaration]:
    """Parse a declaration block (the body of a rule or a style attribute).

    Malformed entries (no colon, empty name) are skipped.
    """
    declarations: list[Declaration] = []
    for chunk in split_top_level(_COMMENT_RE.sub("", text), ";"):
        if ":" not in chunk:
            continue
        name, value = chunk.split(":", 1)
        name = normalize_property(name)
        if not name:
            continue
        value = value.strip()
        important = False
        match = _IMPORTANT_RE.search(value)
        if match:
            important = True
            value = value[: match.start()].rstrip()
        if not value and not name.startswith("--"):
            continue
        declarations.append(Declaration(name, value, important))
    return declarations


def serialize_declarations(declarations: list[Declaration]) -> str:
    """Serialize declarations back into style attribute text."""
    return " ".join(d.to_css() for d in declarations)


# ============================================================================
# Selectors
# ============================================================================


@dataclass(frozen=True)
class Compound:
    """A compound selector such as `div.card#main[role=button]`."""

    tag: str | None = None
    element_id: str | None = None
    classes: tuple[str, ...] = ()
    attributes: tuple[tuple[str, str | None], ...] = ()
    root: bool = False

    def matches(self, element: Matchable) -> bool:
        """Check this compound against a single element (no combinators)."""
        if self.tag is not None and self.tag != "*" and element.tag_name != self.tag:
            return False
        if self.element_id is not None and element.get_attribute("id") != self.element_id:
            return False
        if any(not element.has_class(cls) for cls in self.classes):
            return False
        for name, expected in self.attributes:
            actual = element.get_attribute(name)
            if actual is None or (expected is not None and actual != expected):
                return False
        return not (self.root and element.parent_element is not None)

    @property
    def specificity(self) -> tuple[int, int, int]:
        ids = 1 if self.element_id else 0
        classes = len(self.classes) + len(self.attributes) + (1 if self.root else 0)
        tags = 1 if self.tag not in (None, "*") else 0
        return ids, classes, tags


@dataclass(frozen=True)
class Selector:
    """A complex selector: compounds joined by descendant (' ') or child ('>') combinators.

    `parts[0]` is the leftmost compound; `combinators[i]` joins parts[i] and parts[i + 1].
    """

    parts: tuple[Compound, ...]
    combinators: tuple[str, ...] = ()
    text: str = ""

    @property
    def specificity(self) -> tuple[int, int, int]:
        totals = [0, 0, 0]
        for part in self.parts:
            for i, value in enumerate(part.specificity):
                totals[i] += value
        return totals[0], totals[1], totals[2]

    def matches(self, element: Matchable) -> bool:
        """Match right to left, backtracking over descendant combinators."""
        return self._matches_from(len(self.parts) - 1, element)

    def _matches_from(self, index: int, element: Matchable) -> bool:
        if not self.parts[index].matches(element):
            return False
        if index == 0:
            return True
        combinator = self.combinators[index - 1]
        ancestor = element.parent_element
        if combinator == ">":
            return ancestor is not None and self._matches_from(index - 1, ancestor)
        while ancestor is not None:
            if self._matches_from(index - 1, ancestor):
                return True
            ancestor = ancestor.parent_element
        return False


def parse_compound(text: str) -> Compound | None:
    """Parse one compound selector; None if it uses anything unsupported."""
    tag: str | None = None
    element_id: str | None = None
    classes: list[str] = []
    attributes: list[tuple[str, str | None]] = []
    root = False

    pos = 0
    while pos < len(text):
        match = _COMPOUND_TOKEN_RE.match(text, pos)
        if match is None:
            return None
        if match.group("tag"):
            if pos != 0:
                return None
            tag = match.group("tag").lower()
        elif match.group("id"):
            element_id = match.group("id")
        elif match.group("cls"):
            classes.append(match.group("cls"))
        elif match.group("attr"):
            value = match.group("val") if "=" in match.group(0) else None
            attributes.append((match.group("attr").lower(), value))
        elif match.group("pseudo"):
            if match.group("pseudo").lower() != ":root":
                return None
            root = True
        pos = match.end()

    return Compound(tag, element_id, tuple(classes), tuple(attributes), root)


def parse_selector(text: str) -> Selector | None:
    """Parse a single complex selector; None if unsupported."""
    spaced = re.sub(r"\s*>\s*", " > ", text.strip())
    tokens = spaced.split()
    if not tokens:
        return None

    parts: list[Compound] = []
    combinators: list[str] = []
    pending = " "
    for token in tokens:
        if token == ">":
            if not parts:
                return None
            pending = ">"
            continue
        compound = parse_compound(token)
        if compound is None:
            return None
        if parts:
            combinators.append(pending)
        parts.append(compound)
        pending = " "
    if pending == ">":
        return None
    return Selector(tuple(parts), tuple(combinators), text.strip())


def parse_selector_group(text: str) -> list[Selector]:
    """Parse a comma-separated selector list, dropping unsupported members."""
    selectors: list[Selector] = []
    for member in split_top_level(text, ","):
        selector = parse_selector(member)
        if selector is not None:
            selectors.append(selector)
    return selectors


# ============================================================================
# Rules
# ============================================================================


@dataclass
class Rule:
    """A style rule: selectors plus a declaration block."""

    selectors: list[Selector]
    declarations: list[Declaration] = field(default_factory=list)
    selector_text: str = ""

    def to_css(self) -> str:
        body = "\n".join(f"  {d.to_css()}" for d in self.declarations)
        return f"{self.selector_text} {{\n{body}\n}}"


def _iter_blocks(text: str) -> Iterator[tuple[str, str]]:
    """Yield (prelude, body) pairs for top-level blocks, with nested braces matched."""
    pos = 0
    while True:
        open_brace = text.find("{", pos)
        if open_brace == -1:
            return
        prelude = text[pos:open_brace]
        # Statement at-rules (@import ...;) end before the block
        if ";" in prelude and prelude.strip().startswith("@"):
            prelude = prelude[prelude.rfind(";") + 1 :]
        depth = 1
        cursor = open_brace + 1
        while cursor < len(text) and depth:
            if text[cursor] == "{":
                depth += 1
            elif text[cursor] == "}":
                depth -= 1
            cursor += 1
        yield prelude.strip(), text[open_brace + 1 : cursor - 1]
        pos = cursor


def parse_stylesheet(text: str) -> list[Rule]:
    """Parse stylesheet text into rules. At-rule blocks are skipped."""
    rules: list[Rule] = []
    for prelude, body in _iter_blocks(_COMMENT_RE.sub("", text)):
        if not prelude or prelude.startswith("@"):
            continue
        selectors = parse_selector_group(prelude)
        if not selectors:
            continue
        rules.append(Rule(selectors, parse_declarations(body), " ".join(prelude.split())))
    return rules


# ============================================================================
# var() substitution
# ============================================================================


def _find_var(value: str, start: int = 0) -> tuple[int, int] | None:
    """Locate the next `var(...)` call, returning (start, end) with `end` past ')'."""
    index = value.lower().find("var(", start)
    if index == -1:
        return None
    depth = 0
    for cursor in range(index + 3, len(value)):
        if value[cursor] == "(":
            depth += 1
        elif value[cursor] == ")":
            depth -= 1
            if depth == 0:
                return index, cursor + 1
    return None


def substitute_vars(
    value: str, lookup: Callable[[str], str | None], depth: int = 0
) -> str | None:
    """Replace every var(--name[, fallback]) in `value`.

    Args:
        value: Property value text
        lookup: Returns the computed value of a custom property, or None if unset
        depth: Recursion depth guard (cycles resolve to None)

    Returns:
        The substituted text, or None if a reference could not be resolved
        (the declaration is then invalid at computed-value time)
    """
    if depth > MAX_VAR_DEPTH:
        return None

    result = value
    span = _find_var(result)
    while span is not None:
        start, end = span
        inner = result[start + 4 : end - 1]
        name, comma, fallback = inner.partition(",")
        replacement = lookup(name.strip())
        if replacement is None or not replacement.strip():
            replacement = fallback.strip() if comma else None
        if replacement is None:
            return None
        replacement = substitute_vars(replacement, lookup, depth + 1)
        if replacement is None:
            return None
        result = result[:start] + replacement + result[end:]
        span = _find_var(result, start + len(replacement))
    return result.strip()
