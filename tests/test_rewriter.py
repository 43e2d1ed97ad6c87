"""Tests for per-element style rewriting and restoration."""

import logging

import pytest
from conftest import add

from eyelove.color import parse, to_oklch
from eyelove.config import EngineConfig
from eyelove.dom import Document, Element
from eyelove.rewriter import StyleRewriter


def _lightness(element: Element, prop: str) -> float:
    value = element.style.get_property_value(prop)
    assert value, f"{prop} was not overridden on {element!r}"
    return to_oklch(parse(value)).l


def _chroma(element: Element, prop: str) -> float:
    return to_oklch(parse(element.style.get_property_value(prop))).c


def _run(doc: Document, config: EngineConfig | None = None) -> StyleRewriter:
    rewriter = StyleRewriter(config)
    rewriter.process(rewriter.collect_targets(doc.body))
    return rewriter


class TestBackgrounds:
    """Test background override decisions."""

    def test_white_box_with_text_becomes_dark(self, document: Document) -> None:
        div = add(
            document.body,
            "div",
            "Hello",
            style="background-color: #ffffff; color: #000000; height: 40px",
        )

        _run(document)

        assert div.style.get_property_value("background-color") == "#000000"
        assert div.style.get_property_priority("background-color") == "important"
        assert _lightness(div, "color") >= 0.75
        assert div.get_attribute("data-eyelove-styled") == "inline"

    def test_no_direct_text_keeps_background(self, document: Document) -> None:
        wrapper = add(document.body, "div", style="background-color: #ffffff")
        paragraph = add(wrapper, "p", "Body text")

        _run(document)

        assert wrapper.style.get_property_value("background-color") == "#ffffff"
        assert wrapper.style.get_property_priority("background-color") == ""
        # The paragraph still sits on white, so its text stays dark
        assert _lightness(paragraph, "color") == pytest.approx(0.25, abs=0.01)

    def test_small_element_keeps_background(self, document: Document) -> None:
        badge = add(
            document.body, "span", "3", style="background-color: #ffffff; width: 16px; height: 30px"
        )

        _run(document)

        assert badge.style.get_property_value("background-color") == "#ffffff"

    def test_size_from_attributes(self, document: Document) -> None:
        cell = add(document.body, "td", "x", style="background-color: #ffffff", height="12")

        _run(document)

        assert cell.style.get_property_value("background-color") == "#ffffff"

    def test_unknown_size_is_not_small(self, document: Document) -> None:
        div = add(document.body, "div", "Text", style="background-color: #fafafa")

        _run(document)

        assert _lightness(div, "background-color") < 0.1

    def test_dark_background_is_left_alone(self, document: Document) -> None:
        div = add(document.body, "div", "Night", style="background-color: #222222; color: #dddddd")

        _run(document)

        assert div.style.get_property_value("background-color") == "#222222"
        assert _lightness(div, "color") == pytest.approx(0.75, abs=0.01)

    def test_translucent_background_is_left_alone(self, document: Document) -> None:
        div = add(document.body, "div", "Glass", style="background-color: rgba(255, 255, 255, 0.4)")

        _run(document)

        assert div.style.get_property_value("background-color") == "rgba(255, 255, 255, 0.4)"

    def test_background_shorthand(self, document: Document) -> None:
        div = add(document.body, "div", "Card", style="background: #ffffff url(x.png) no-repeat")

        _run(document)

        assert div.style.get_property_value("background-color") == "#000000"

    def test_button_background_is_mid_dark(self, document: Document) -> None:
        button = add(document.body, "button", "Save")

        _run(document)

        # User-agent #efefef becomes the fixed button lightness
        assert _lightness(button, "background-color") == pytest.approx(0.35, abs=0.01)

    @pytest.mark.parametrize(
        ("tag", "attributes"),
        [
            ("div", {"role": "button"}),
            ("span", {"role": "BUTTON"}),
        ],
    )
    def test_role_button(self, document: Document, tag: str, attributes: dict[str, str]) -> None:
        element = add(document.body, tag, "Go", style="background-color: #ffffff", **attributes)

        _run(document)

        assert _lightness(element, "background-color") == pytest.approx(0.35, abs=0.01)


class TestText:
    """Test text color decisions."""

    def test_text_on_overridden_ancestor_is_light(self, document: Document) -> None:
        section = add(
            document.body, "section", "Title", style="background-color: #ffffff; height: 100px"
        )
        paragraph = add(section, "p", "Body", style="color: #333333")

        _run(document)

        assert _lightness(section, "background-color") < 0.1
        assert _lightness(paragraph, "color") == pytest.approx(0.75, abs=0.01)

    def test_text_without_background_uses_estimate(self, document: Document) -> None:
        span = add(document.body, "span", "Plain", style="color: #555555")

        _run(document)

        assert _lightness(span, "color") == pytest.approx(0.75, abs=0.01)

    def test_transparent_text_is_left_alone(self, document: Document) -> None:
        span = add(document.body, "span", "Ghost", style="color: rgba(0, 0, 0, 0.2)")

        _run(document)

        assert span.style.get_property_value("color") == "rgba(0, 0, 0, 0.2)"

    def test_contrast_can_be_disabled(self, document: Document) -> None:
        config = EngineConfig()
        config.transform.enforce_contrast = False
        span = add(document.body, "span", "Dim", style="color: #9a9a9a")

        _run(document, config)

        # 1 - L lands below the floor; only the hard clamp applies
        assert _lightness(span, "color") == pytest.approx(0.75, abs=0.01)


class TestIcons:
    """Test fill and stroke decisions for vector graphics."""

    def test_fill_and_stroke_are_clamped(self, document: Document) -> None:
        svg = add(document.body, "svg")
        path = add(svg, "path", style="fill: #000000; stroke: #333333")

        _run(document)

        assert _lightness(path, "fill") >= 0.99
        assert _lightness(path, "stroke") == pytest.approx(0.70, abs=0.01)

    def test_no_stroke_is_left_alone(self, document: Document) -> None:
        svg = add(document.body, "svg")
        circle = add(svg, "circle", style="fill: #000000")

        _run(document)

        assert circle.style.get_property_value("stroke") == ""

    def test_icon_inside_button_keeps_more_chroma(self, document: Document) -> None:
        button = add(document.body, "button")
        inside = add(add(button, "svg"), "path", style="fill: #3366cc")
        outside = add(add(document.body, "svg"), "path", style="fill: #3366cc")

        _run(document)

        assert _chroma(inside, "fill") > _chroma(outside, "fill")


class TestPass:
    """Test pass mechanics: targets, statistics, isolation."""

    def test_collect_targets_in_document_order(self, document: Document) -> None:
        first = add(document.body, "div")
        nested = add(first, "p")
        add(nested, "b")
        second = add(document.body, "section")
        rewriter = StyleRewriter()

        assert rewriter.collect_targets(document.body) == [document.body, first, nested, second]
        assert rewriter.collect_targets(nested) == [nested]

    def test_root_not_in_tag_list_is_excluded(self, document: Document) -> None:
        form = add(document.body, "form")
        label = add(form, "label")

        assert StyleRewriter().collect_targets(form) == [label]

    def test_stats(self, document: Document) -> None:
        add(document.body, "div", "Hello", style="background-color: #ffffff; color: #000000")
        rewriter = StyleRewriter()

        stats = rewriter.process(rewriter.collect_targets(document.body))

        assert stats.visited == 2
        assert stats.backgrounds == 1
        assert stats.texts == 2
        assert stats.styled == 2
        assert stats.errors == 0

    def test_styled_elements_are_not_processed_twice(self, document: Document) -> None:
        div = add(document.body, "div", "Hello", style="background-color: #ffffff; color: #000000")
        rewriter = _run(document)
        after_first = div.get_attribute("style")

        stats = rewriter.process(rewriter.collect_targets(document.body))

        assert stats.skipped == 2
        assert stats.styled == 0
        assert div.get_attribute("style") == after_first
        assert rewriter.snapshot_count == 2

    def test_failure_on_one_element_does_not_stop_the_pass(
        self, document: Document, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.WARNING, logger="eyelove")
        bad = add(document.body, "div", "Broken", style="background-color: #ffffff")
        good = add(document.body, "div", "Fine", style="background-color: #ffffff")

        def explode() -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr(bad, "computed_style", explode)
        rewriter = StyleRewriter()

        stats = rewriter.process(rewriter.collect_targets(document.body))

        assert stats.errors == 1
        assert good.style.get_property_value("background-color") == "#000000"
        assert not rewriter.is_styled(bad)
        assert "boom" in caplog.text


class TestRestore:
    """Test snapshot and restoration."""

    @pytest.mark.parametrize(
        "original",
        [
            None,
            "",
            "background-color:#fff;color:#000",
            "  color : black ;  /* keep me */ background: white  ",
            "color: red !important; --x: 1",
        ],
    )
    def test_round_trip(self, document: Document, original: str | None) -> None:
        div = add(document.body, "div", "Hello")
        if original is not None:
            div.set_attribute("style", original)
        rewriter = _run(document)
        assert rewriter.is_styled(div)

        restored = rewriter.restore(rewriter.styled_elements(document.body))

        assert restored >= 1
        assert div.get_attribute("style") == original
        assert not div.has_attribute("data-eyelove-styled")
        assert rewriter.snapshot_count == 0

    def test_unmarked_elements_are_untouched(self, document: Document) -> None:
        div = add(document.body, "div", style="color: rgba(0, 0, 0, 0.1)")
        rewriter = _run(document)
        assert not rewriter.is_styled(div)

        rewriter.restore([div])

        assert div.get_attribute("style") == "color: rgba(0, 0, 0, 0.1)"

    def test_missing_snapshot_clears_style(
        self, document: Document, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.WARNING, logger="eyelove")
        div = add(
            document.body, "div", style="color: #fff !important", data_eyelove_styled="inline"
        )

        restored = StyleRewriter().restore([div])

        assert restored == 1
        assert div.get_attribute("style") is None
        assert not div.has_attribute("data-eyelove-styled")
        assert "No original style saved" in caplog.text
