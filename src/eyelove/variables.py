"""Theme-variable overrides (Strategy 1).

Reads a fixed catalog of well-known CSS custom properties on the document
root, computes a dark-mode equivalent for each one that holds a plain color,
and renders the override stylesheet the controller adopts.
"""

from __future__ import annotations

from collections.abc import Iterable

from .color import darken, format_hex, parse
from .config import DEFAULT_VARIABLES, EngineConfig, TransformConfig
from .exceptions import ColorParseError
from .host import ComputedStyle
from .logger import debug_enabled, get_logger

logger = get_logger()


def generate(
    root_style: ComputedStyle,
    variable_names: Iterable[str] = DEFAULT_VARIABLES,
    transform: TransformConfig | None = None,
) -> list[str]:
    """Compute `name: value !important;` overrides for the catalog variables.

    Variables that are unset, empty, or hold something other than a single
    color (gradients, keywords, lengths) are skipped.

    Args:
        root_style: Computed style of the document root element
        variable_names: Custom property names to check
        transform: Transform constants (defaults apply when omitted)

    Returns:
        Declarations in catalog order
    """
    chroma_factor = (transform or TransformConfig()).variable_chroma
    overrides: list[str] = []

    for name in variable_names:
        value = root_style.get_property_value(name).strip()
        if not value:
            continue
        try:
            original = parse(value)
        except ColorParseError as e:
            if debug_enabled():
                logger.debug(f"Skipping variable {name}: {e}")
            continue

        dark = darken(original, chroma_factor)
        overrides.append(f"{name}: {format_hex(dark)} !important;")
        logger.checks(f"Variable {name}: {value} -> {format_hex(dark)}")

    return overrides


def build_stylesheet(overrides: list[str], config: EngineConfig | None = None) -> str:
    """Render the adopted stylesheet text.

    One rule scoped to the activation markers holds the fallback declarations
    and the generated overrides; a second rule recolors links.
    """
    config = config or EngineConfig()
    markers = config.markers
    fallbacks = config.fallbacks

    declarations = [
        f"background-color: {fallbacks.background} !important;",
        f"color: {fallbacks.text} !important;",
        f"border-color: {fallbacks.border} !important;",
        f"color-scheme: {fallbacks.color_scheme} !important;",
        *overrides,
    ]
    body = "\n".join(f"  {declaration}" for declaration in declarations)
    scope = f"html.{markers.root_class},\nbody.{markers.body_class}"
    link_rule = f"body.{markers.body_class} a {{\n  color: {fallbacks.link} !important;\n}}"
    return f"{scope} {{\n{body}\n}}\n\n{link_rule}\n"
