"""Per-element style rewriting (Strategy 2).

Each pass reads the computed colors of every target element first and only
then writes inline overrides, so no read ever observes another element's
freshly written style (and the host never has to recompute styles between
elements). The original `style` attribute of every element the rewriter
touches is kept in a weak snapshot map, paired with a marker attribute, so
`restore()` can put it back byte for byte.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterable
from dataclasses import dataclass

from .color import (
    Color,
    OklchColor,
    alpha_of,
    darken,
    format_hex,
    relative_luminance,
    to_oklch,
    try_parse,
)
from .config import EngineConfig, TransformConfig
from .contrast import DARK_BACKGROUND_LUMINANCE, adjust_with_report
from .host import Element
from .logger import checks_enabled, debug_enabled, get_logger

logger = get_logger()

BUTTON_INPUT_TYPES = frozenset({"button", "submit", "reset"})


@dataclass
class ElementStyleRecord:
    """Colors and layout facts captured for one element during the read phase."""

    element: Element
    background: str
    color: str
    fill: str | None = None
    stroke: str | None = None
    width: float | None = None
    height: float | None = None
    has_text: bool = False
    is_button: bool = False
    is_vector: bool = False
    # Set in the write phase: the background descendants are judged against
    final_background: OklchColor | None = None


@dataclass
class RewriteStats:
    """Counters for one rewrite pass."""

    visited: int = 0
    skipped: int = 0
    styled: int = 0
    backgrounds: int = 0
    texts: int = 0
    icons: int = 0
    errors: int = 0

    def summary(self) -> str:
        return (
            f"styled {self.styled} of {self.visited} elements "
            f"(backgrounds {self.backgrounds}, text {self.texts}, icons {self.icons}, "
            f"already styled {self.skipped}, errors {self.errors})"
        )


class StyleRewriter:
    """Computes and applies inline dark-mode overrides, and rolls them back."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self._snapshots: weakref.WeakKeyDictionary[Element, str | None] = (
            weakref.WeakKeyDictionary()
        )
        self._tags = frozenset(self.config.element_tags)
        self._vector_tags = frozenset(self.config.vector_tags)

    # ------------------------------------------------------------------
    # Snapshot map and marker
    # ------------------------------------------------------------------

    @property
    def snapshot_count(self) -> int:
        """Number of elements with a saved original style."""
        return len(self._snapshots)

    def has_snapshot(self, element: Element) -> bool:
        return element in self._snapshots

    def is_styled(self, element: Element) -> bool:
        """True if the element carries the styled marker."""
        return element.has_attribute(self.config.markers.styled_attribute)

    def _mark(self, element: Element) -> None:
        """Snapshot the original inline style and set the marker, once per element."""
        if self.is_styled(element):
            return
        self._snapshots[element] = element.get_attribute("style")
        markers = self.config.markers
        element.set_attribute(markers.styled_attribute, markers.styled_value)

    # ------------------------------------------------------------------
    # Target selection
    # ------------------------------------------------------------------

    def collect_targets(self, root: Element) -> list[Element]:
        """`root` (if its tag is a target) plus its target descendants, in document order."""
        targets = [root] if root.tag_name in self._tags else []
        targets.extend(el for el in root.iter_descendants() if el.tag_name in self._tags)
        return targets

    def styled_elements(self, root: Element) -> list[Element]:
        """Every element under and including `root` that carries the marker."""
        candidates = [root, *root.iter_descendants()]
        return [el for el in candidates if self.is_styled(el)]

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process(self, elements: Iterable[Element]) -> RewriteStats:
        """Run one read-then-write pass over `elements`.

        An exception on one element is logged and counted; the rest of the
        pass carries on.
        """
        stats = RewriteStats()
        records: list[ElementStyleRecord] = []

        # Read phase: no writes until every element has been read
        for element in elements:
            stats.visited += 1
            if self.is_styled(element):
                stats.skipped += 1
                continue
            try:
                records.append(self._read(element))
            except Exception as e:  # noqa: BLE001 - one bad element must not stop the pass
                stats.errors += 1
                logger.warning(f"Could not read computed style of {element!r}: {e}")

        # Write phase
        backgrounds: dict[Element, OklchColor] = {}
        for record in records:
            try:
                self._write(record, backgrounds, stats)
            except Exception as e:  # noqa: BLE001 - one bad element must not stop the pass
                stats.errors += 1
                logger.warning(f"Could not style {record.element!r}: {e}")
            if record.final_background is not None:
                backgrounds[record.element] = record.final_background

        if records:
            logger.changes(f"Rewrite pass: {stats.summary()}")
        return stats

    def _read(self, element: Element) -> ElementStyleRecord:
        computed = element.computed_style()
        is_vector = element.tag_name in self._vector_tags
        width, height = element.rendered_size()
        record = ElementStyleRecord(
            element=element,
            background=computed.get_property_value("background-color"),
            color=computed.get_property_value("color"),
            width=width,
            height=height,
            has_text=element.has_direct_text(),
            is_button=self._is_button(element, is_vector),
            is_vector=is_vector,
        )
        if is_vector:
            record.fill = computed.get_property_value("fill")
            record.stroke = computed.get_property_value("stroke")
        if debug_enabled():
            logger.debug(
                f"Read {element!r}: background={record.background!r} color={record.color!r} "
                f"fill={record.fill!r} stroke={record.stroke!r} size={width}x{height}"
            )
        return record

    def _is_button(self, element: Element, is_vector: bool) -> bool:
        if _looks_like_button(element):
            return True
        if not is_vector:
            return False
        ancestor = element.parent_element
        while ancestor is not None:
            if _looks_like_button(ancestor):
                return True
            ancestor = ancestor.parent_element
        return False

    def _write(
        self,
        record: ElementStyleRecord,
        backgrounds: dict[Element, OklchColor],
        stats: RewriteStats,
    ) -> None:
        overrides: list[tuple[str, str]] = []

        background = self._background_override(record)
        if background is not None:
            overrides.append(("background-color", format_hex(background)))
            record.final_background = background
            stats.backgrounds += 1
        else:
            record.final_background = self._effective_background(record, backgrounds)

        text = self._text_override(record, record.final_background)
        if text is not None:
            overrides.append(("color", format_hex(text)))
            stats.texts += 1

        if record.is_vector:
            for prop, value in (("fill", record.fill), ("stroke", record.stroke)):
                icon = self._icon_override(record, prop, value, record.final_background)
                if icon is not None:
                    overrides.append((prop, format_hex(icon)))
                    stats.icons += 1

        if not overrides:
            return

        element = record.element
        self._mark(element)
        for prop, value in overrides:
            element.style.set_property(prop, value, "important")
        stats.styled += 1

        if checks_enabled():
            applied = ", ".join(f"{prop}={value}" for prop, value in overrides)
            logger.checks(f"Styled {element!r}: {applied}")

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def _background_override(self, record: ElementStyleRecord) -> OklchColor | None:
        """Dark replacement for the element's own background, or None to leave it."""
        candidate = transform_background(record.background, record.is_button, self.config.transform)
        if candidate is None:
            return None

        if not record.has_text:
            logger.checks(f"Keeping background of {record.element!r}: no direct text")
            return None

        limit = self.config.transform.min_element_size
        if any(size is not None and size < limit for size in (record.width, record.height)):
            logger.checks(
                f"Keeping background of {record.element!r}: "
                f"{record.width}x{record.height} is below {limit}px"
            )
            return None
        return candidate

    def _effective_background(
        self, record: ElementStyleRecord, backgrounds: dict[Element, OklchColor]
    ) -> OklchColor:
        """Background the element's own text sits on when it keeps its background.

        Its own opaque background if it has one, else the nearest ancestor's
        from this pass, else the dark estimate.
        """
        t = self.config.transform
        parsed = _visible_color(record.background, t.min_alpha)
        if parsed is not None:
            return to_oklch(parsed)

        ancestor = record.element.parent_element
        while ancestor is not None:
            if ancestor in backgrounds:
                return backgrounds[ancestor]
            ancestor = ancestor.parent_element
        return OklchColor(l=t.estimated_background_lightness, c=0.0)

    def _text_override(
        self, record: ElementStyleRecord, background: OklchColor
    ) -> OklchColor | None:
        return transform_text(record.color, background, record.is_button, self.config.transform)

    def _icon_override(
        self,
        record: ElementStyleRecord,
        prop: str,
        value: str | None,
        background: OklchColor,
    ) -> OklchColor | None:
        return transform_icon(value, prop, background, record.is_button, self.config.transform)

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(self, elements: Iterable[Element]) -> int:
        """Put back the original inline style of every marked element.

        Returns:
            Number of elements restored
        """
        markers = self.config.markers
        restored = 0
        for element in elements:
            if not self.is_styled(element):
                continue
            try:
                if element in self._snapshots:
                    original = self._snapshots.pop(element)
                    if original is None:
                        element.remove_attribute("style")
                    else:
                        element.set_attribute("style", original)
                else:
                    logger.warning(f"No original style saved for {element!r}; clearing its style")
                    element.remove_attribute("style")
                element.remove_attribute(markers.styled_attribute)
                restored += 1
            except Exception as e:  # noqa: BLE001 - keep restoring the remaining elements
                logger.warning(f"Could not restore {element!r}: {e}")

        if restored:
            logger.changes(f"Restored original styles of {restored} elements")
        return restored


# ============================================================================
# Color decisions
# ============================================================================


def transform_background(
    value: str | None, is_button: bool, transform: TransformConfig
) -> OklchColor | None:
    """Dark replacement for a background color, or None if it should stay.

    Only opaque-enough backgrounds lighter than the threshold are replaced.
    Buttons get a fixed mid-dark lightness so they still read as controls.
    """
    parsed = _visible_color(value, transform.min_alpha)
    if parsed is None:
        return None

    original = to_oklch(parsed)
    if original.l <= transform.min_background_lightness:
        return None

    if is_button:
        return OklchColor(
            l=transform.button_background_lightness,
            c=original.c * transform.button_background_chroma,
            h=original.h or 0.0,
        ).clamped()
    return darken(original, transform.background_chroma)


def transform_text(
    value: str | None,
    background: OklchColor,
    is_button: bool,
    transform: TransformConfig,
) -> OklchColor | None:
    """Text color for use on `background`, or None if the text is too transparent."""
    parsed = _visible_color(value, transform.min_alpha)
    if parsed is None:
        return None

    chroma = transform.button_text_chroma if is_button else transform.text_chroma
    text = darken(parsed, chroma)
    dark_background = background.l < transform.dark_threshold

    if transform.enforce_contrast:
        background_luminance = relative_luminance(background)
        # Only nudge when the enforcer pushes the same way the clamp below does
        if (background_luminance < DARK_BACKGROUND_LUMINANCE) == dark_background:
            result = adjust_with_report(text, background_luminance, transform.contrast_target)
            if not result.met:
                logger.checks(
                    f"Contrast target {transform.contrast_target} not reached for {value} "
                    f"(best {result.ratio:.2f} after {result.iterations} steps)"
                )
            text = result.color

    return _clamp_lightness(text, dark_background, transform.text_floor, transform.text_ceiling)


def transform_icon(
    value: str | None,
    prop: str,
    background: OklchColor,
    is_button: bool,
    transform: TransformConfig,
) -> OklchColor | None:
    """Fill or stroke color for use on `background`, or None to leave it."""
    parsed = _visible_color(value, transform.min_alpha)
    if parsed is None:
        return None

    if prop == "fill":
        chroma = transform.button_fill_chroma if is_button else transform.fill_chroma
    else:
        chroma = transform.button_stroke_chroma if is_button else transform.stroke_chroma
    icon = darken(parsed, chroma)
    return _clamp_lightness(
        icon, background.l < transform.dark_threshold, transform.icon_floor, transform.icon_ceiling
    )


# ============================================================================
# Internal Functions
# ============================================================================


def _looks_like_button(element: Element) -> bool:
    if element.tag_name == "button":
        return True
    if (element.get_attribute("role") or "").lower() == "button":
        return True
    return (
        element.tag_name == "input"
        and (element.get_attribute("type") or "").lower() in BUTTON_INPUT_TYPES
    )


def _visible_color(value: str | None, min_alpha: float) -> Color | None:
    """Parsed color if it is opaque enough to be worth rewriting."""
    parsed = try_parse(value)
    if parsed is None or alpha_of(parsed) <= min_alpha:
        return None
    return parsed


def _clamp_lightness(
    color: OklchColor, dark_background: bool, floor: float, ceiling: float
) -> OklchColor:
    """Force light colors on dark backgrounds and dark colors on light ones."""
    lightness = max(color.l, floor) if dark_background else min(color.l, ceiling)
    return OklchColor(l=lightness, c=color.c, h=color.h, alpha=color.alpha).clamped()
