"""Tests for theme-variable overrides and the adopted stylesheet text."""

from eyelove.color import parse, to_oklch
from eyelove.config import DEFAULT_VARIABLES, EngineConfig, FallbackConfig, MarkerConfig
from eyelove.css import parse_declarations, parse_stylesheet
from eyelove.dom import Document
from eyelove.variables import build_stylesheet, generate


def _document_with_root_style(style: str) -> Document:
    doc = Document()
    doc.document_element.set_attribute("style", style)
    return doc


def test_catalog_has_expected_names():
    assert len(DEFAULT_VARIABLES) == 35
    assert "--bg-color" in DEFAULT_VARIABLES
    assert "--text-color" in DEFAULT_VARIABLES
    assert all(name.startswith("--") for name in DEFAULT_VARIABLES)


def test_generates_override_for_color_variables():
    doc = _document_with_root_style("--bg-color: #ffffff; --text-color: #000000")

    overrides = generate(doc.document_element.computed_style())

    assert overrides == [
        "--bg-color: #000000 !important;",
        "--text-color: #ffffff !important;",
    ]


def test_skips_unset_and_non_color_values():
    doc = _document_with_root_style(
        "--bg-color: linear-gradient(red, blue); --text-color: ; --border-color: 1px; "
        "--link-color: rgb(0 0 238)"
    )

    overrides = generate(doc.document_element.computed_style())

    assert len(overrides) == 1
    assert overrides[0].startswith("--link-color: #")


def test_resolves_variables_defined_in_style_elements():
    doc = Document()
    style = doc.create_element("style")
    style.append_child(doc.create_text_node(":root { --surface: #f5f5f5; }"))
    doc.head.append_child(style)

    overrides = generate(doc.document_element.computed_style())

    assert len(overrides) == 1
    name, value = overrides[0].removesuffix(" !important;").split(": ")
    assert name == "--surface"
    assert to_oklch(parse(value)).l < 0.1


def test_custom_catalog_and_chroma():
    doc = _document_with_root_style("--brand: #3366cc; --bg-color: #ffffff")
    config = EngineConfig()
    config.transform.variable_chroma = 0.0

    overrides = generate(doc.document_element.computed_style(), ["--brand"], config.transform)

    assert len(overrides) == 1
    value = overrides[0].split(": ")[1].removesuffix(" !important;")
    assert to_oklch(parse(value)).c < 1e-3


def test_stylesheet_scopes_overrides_to_markers():
    text = build_stylesheet(["--bg-color: #000000 !important;"])
    rules = parse_stylesheet(text)

    assert len(rules) == 2
    scope, links = rules
    assert scope.selector_text == "html.eyelove-dark-theme-active, body.eyelove-dark-mode-enabled"
    declared = {d.name: (d.value, d.important) for d in scope.declarations}
    assert declared["background-color"] == ("#1a1a1a", True)
    assert declared["color"] == ("#e0e0e0", True)
    assert declared["border-color"] == ("#444444", True)
    assert declared["color-scheme"] == ("dark", True)
    assert declared["--bg-color"] == ("#000000", True)
    assert links.selector_text == "body.eyelove-dark-mode-enabled a"
    assert links.declarations == parse_declarations("color: #9ecaed !important")


def test_stylesheet_uses_configured_markers_and_fallbacks():
    config = EngineConfig(
        markers=MarkerConfig(body_class="night", root_class="night-root"),
        fallbacks=FallbackConfig(background="#101010", link="#88ccff"),
    )

    text = build_stylesheet([], config)

    assert "html.night-root" in text
    assert "body.night a" in text
    assert "background-color: #101010 !important;" in text
    assert "color: #88ccff !important;" in text
