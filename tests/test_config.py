"""Tests for engine configuration loading."""

from pathlib import Path

import pytest

from eyelove import context
from eyelove.config import DEFAULT_VARIABLES, EngineConfig, load_config
from eyelove.exceptions import ConfigError


def _write(tmp_path: Path, text: str, name: str = "eyelove_config.yaml") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    config = EngineConfig()

    assert config.markers.body_class == "eyelove-dark-mode-enabled"
    assert config.markers.cache_key == "eyelove-enabled-cache"
    assert config.transform.variable_chroma == 0.3
    assert config.transform.text_floor == 0.75
    assert config.fallbacks.link == "#9ecaed"
    assert len(config.variables) == 35
    assert config.variables == DEFAULT_VARIABLES


def test_partial_file_keeps_defaults(tmp_path: Path):
    path = _write(
        tmp_path,
        """
transform:
  contrast_target: 7.0
fallbacks:
  background: "#101010"
""",
    )

    config = load_config(path)

    assert config.transform.contrast_target == 7.0
    assert config.transform.text_chroma == 0.3
    assert config.fallbacks.background == "#101010"
    assert config.fallbacks.text == "#e0e0e0"
    assert config.markers == EngineConfig().markers


def test_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("", "Empty configuration file"),
        ("transform: [unclosed", "Failed to parse YAML"),
        ("- just\n- a list\n", "mapping at the root level"),
        ("transform:\n  text_floor: 1.5\n", "Invalid configuration"),
        ("transform:\n  contrast_target: 30\n", "Invalid configuration"),
        ("variables:\n  - bg-color\n", "must start with '--'"),
    ],
)
def test_invalid_files(tmp_path: Path, text: str, message: str):
    path = _write(tmp_path, text)

    with pytest.raises(ConfigError, match=message):
        load_config(path)


def test_tags_are_lowercased():
    config = EngineConfig(element_tags=["DIV", "Span"], vector_tags=["SVG"])

    assert config.element_tags == ["div", "span"]
    assert config.vector_tags == ["svg"]


class TestContext:
    """Test config lookup for CLI commands."""

    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert context.get_config() == EngineConfig()

    def test_search_dir(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        page_dir = tmp_path / "site"
        page_dir.mkdir()
        _write(page_dir, "fallbacks:\n  link: '#abcdef'\n")

        assert context.get_config(page_dir).fallbacks.link == "#abcdef"

    def test_explicit_path_wins_and_is_cached(self, tmp_path: Path):
        path = _write(tmp_path, "fallbacks:\n  link: '#123456'\n", name="custom.yaml")
        context.set_config_path(path)

        first = context.get_config()

        assert first.fallbacks.link == "#123456"
        assert context.get_config() is first
        assert context.get_config_path() == path

    def test_explicit_missing_path(self, tmp_path: Path):
        context.set_config_path(tmp_path / "missing.yaml")

        with pytest.raises(FileNotFoundError):
            context.get_config()
