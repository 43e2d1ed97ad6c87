"""Tests for CLI commands."""

from pathlib import Path

from typer.testing import CliRunner

from eyelove.cli import app

runner = CliRunner()

PAGE = """<!DOCTYPE html>
<html>
<head>
  <style>
    :root { --bg-color: #ffffff; --text-color: #111111; --gradient: linear-gradient(red, blue); }
  </style>
</head>
<body>
  <div style="background-color: #ffffff; color: #222222; width: 300px; height: 200px">Hello</div>
  <a href="#">link</a>
</body>
</html>
"""


def _page(tmp_path: Path) -> Path:
    path = tmp_path / "page.html"
    path.write_text(PAGE, encoding="utf-8")
    return path


class TestConvertCommand:
    """Test the convert command."""

    def test_variable(self):
        result = runner.invoke(app, ["convert", "#ffffff"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "#000000"

    def test_dark_background_is_unchanged(self):
        result = runner.invoke(app, ["convert", "#222222", "--role", "background"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "#222222 (unchanged)"

    def test_text_on_dark_background(self):
        result = runner.invoke(app, ["convert", "#000000", "-r", "text"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "#ffffff"

    def test_transparent_icon_is_unchanged(self):
        result = runner.invoke(app, ["convert", "rgba(0, 0, 0, 0.2)", "-r", "fill"])

        assert result.exit_code == 0
        assert "(unchanged)" in result.stdout

    def test_invalid_color(self):
        result = runner.invoke(app, ["convert", "not-a-color"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_config_option(self, tmp_path: Path):
        config = tmp_path / "custom.yaml"
        config.write_text("transform:\n  min_background_lightness: 0.9\n", encoding="utf-8")

        default = runner.invoke(app, ["convert", "#cccccc", "-r", "background"])
        configured = runner.invoke(
            app, ["-c", str(config), "convert", "#cccccc", "-r", "background"]
        )

        assert "(unchanged)" not in default.stdout
        assert configured.stdout.strip() == "#cccccc (unchanged)"

    def test_missing_config(self, tmp_path: Path):
        result = runner.invoke(app, ["-c", str(tmp_path / "nope.yaml"), "convert", "#fff"])

        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestContrastCommand:
    """Test the contrast command."""

    def test_black_on_white(self):
        result = runner.invoke(app, ["contrast", "#000000", "#ffffff"])

        assert result.exit_code == 0
        assert "Contrast ratio: 21.00:1" in result.stdout
        assert "WCAG AA normal text (4.5:1): pass" in result.stdout
        assert "WCAG AA large text (3.0:1): pass" in result.stdout

    def test_low_contrast(self):
        result = runner.invoke(app, ["contrast", "#777777", "#888888"])

        assert result.exit_code == 0
        assert "normal text (4.5:1): fail" in result.stdout
        assert "large text (3.0:1): fail" in result.stdout


class TestDarkenCommand:
    """Test the darken command."""

    def test_stdout(self, tmp_path: Path):
        result = runner.invoke(app, ["darken", str(_page(tmp_path))])

        assert result.exit_code == 0
        # The body itself may also be styled, so match the class attribute alone
        assert '<body class="eyelove-dark-mode-enabled"' in result.stdout
        assert "--bg-color: #000000 !important;" in result.stdout
        assert 'data-eyelove-styled="inline"' in result.stdout

    def test_output_file(self, tmp_path: Path):
        output = tmp_path / "dark.html"

        result = runner.invoke(app, ["darken", str(_page(tmp_path)), "-o", str(output)])

        assert result.exit_code == 0
        assert f"Dark page written to {output}" in result.stdout
        assert "data-eyelove-adopted" in output.read_text(encoding="utf-8")

    def test_inline_only(self, tmp_path: Path):
        result = runner.invoke(app, ["darken", str(_page(tmp_path)), "--inline-only"])

        assert result.exit_code == 0
        assert "data-eyelove-adopted" not in result.stdout
        assert 'data-eyelove-styled="inline"' in result.stdout

    def test_config_next_to_page(self, tmp_path: Path):
        (tmp_path / "eyelove_config.yaml").write_text(
            "fallbacks:\n  link: '#abcdef'\n", encoding="utf-8"
        )

        result = runner.invoke(app, ["darken", str(_page(tmp_path))])

        assert result.exit_code == 0
        assert "color: #abcdef !important;" in result.stdout

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["darken", str(tmp_path / "missing.html")])

        assert result.exit_code == 1
        assert "HTML file not found" in result.output


class TestVariablesCommand:
    """Test the variables command."""

    def test_lists_overrides(self, tmp_path: Path):
        result = runner.invoke(app, ["variables", str(_page(tmp_path))])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "--bg-color: #000000 !important;"
        assert lines[1].startswith("--text-color: #")
        assert len(lines) == 2

    def test_no_variables(self, tmp_path: Path):
        page = tmp_path / "plain.html"
        page.write_text("<p>plain</p>", encoding="utf-8")

        result = runner.invoke(app, ["variables", str(page)])

        assert result.exit_code == 0
        assert "No theme variables found" in result.stdout
