"""Command-line interface for EyeLove."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .color import OklchColor, contrast_ratio, darken, format_hex, parse, relative_luminance
from .config import DEFAULT_CONFIG_FILENAME, EngineConfig
from .contrast import WCAG_AA_LARGE, WCAG_AA_NORMAL
from .controller import DarkModeController
from .exceptions import EyeLoveError
from .loader import load_document, serialize
from .logger import setup_logger
from .rewriter import transform_background, transform_icon, transform_text
from .variables import generate

app = typer.Typer(
    name="eyelove",
    help="EyeLove - dark mode for any page, computed from its own colors",
    add_completion=False,
)


class Role(str, Enum):
    """What a color is used for."""

    VARIABLE = "variable"
    BACKGROUND = "background"
    TEXT = "text"
    FILL = "fill"
    STROKE = "stroke"


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help=f"Path to config file (default: {DEFAULT_CONFIG_FILENAME})",
        ),
    ] = None,
) -> None:
    """Global options for eyelove commands."""
    setup_logger(verbose)
    context.set_config_path(config)


def _load_config(search_dir: Path | None = None) -> EngineConfig:
    try:
        return context.get_config(search_dir)
    except (FileNotFoundError, EyeLoveError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def convert(
    color: Annotated[str, typer.Argument(help="CSS color, e.g. '#ffffff' or 'rgb(0 0 0)'")],
    *,
    role: Annotated[
        Role, typer.Option("--role", "-r", help="How the color is used on the page")
    ] = Role.VARIABLE,
    button: Annotated[
        bool, typer.Option("--button", help="Treat the color as part of a button")
    ] = False,
    background_lightness: Annotated[
        float | None,
        typer.Option(
            "--background-lightness",
            help="OKLCH lightness of the background behind text and icons (default: estimate)",
            min=0.0,
            max=1.0,
        ),
    ] = None,
) -> None:
    """Print the dark-mode replacement for a single color."""
    config = _load_config()
    transform = config.transform

    try:
        parsed = parse(color)
    except EyeLoveError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if background_lightness is None:
        background_lightness = transform.estimated_background_lightness
    background = OklchColor(l=background_lightness, c=0.0)

    if role == Role.VARIABLE:
        result = darken(parsed, transform.variable_chroma)
    elif role == Role.BACKGROUND:
        result = transform_background(color, button, transform)
    elif role == Role.TEXT:
        result = transform_text(color, background, button, transform)
    else:
        result = transform_icon(color, role.value, background, button, transform)

    if result is None:
        typer.echo(f"{format_hex(parsed)} (unchanged)")
    else:
        typer.echo(format_hex(result))


@app.command()
def contrast(
    foreground: Annotated[str, typer.Argument(help="Foreground (text) color")],
    background: Annotated[str, typer.Argument(help="Background color")],
) -> None:
    """Print the WCAG contrast ratio between two colors."""
    try:
        fg = parse(foreground)
        bg = parse(background)
    except EyeLoveError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    ratio = contrast_ratio(relative_luminance(fg), relative_luminance(bg))
    typer.echo(f"Contrast ratio: {ratio:.2f}:1")
    for label, threshold in (("normal text", WCAG_AA_NORMAL), ("large text", WCAG_AA_LARGE)):
        verdict = "pass" if ratio >= threshold else "fail"
        typer.echo(f"  WCAG AA {label} ({threshold}:1): {verdict}")


@app.command(name="darken")
def darken_page(
    file: Annotated[Path, typer.Argument(help="Path to the HTML file")],
    *,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    inline_only: Annotated[
        bool,
        typer.Option(
            "--inline-only",
            help="Behave like a host without adopted stylesheets (no variable overrides)",
        ),
    ] = False,
) -> None:
    """Apply dark mode to an HTML file and write the result."""
    config = _load_config(file.parent)

    try:
        document = load_document(file, supports_adopted_stylesheets=not inline_only)
    except EyeLoveError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    controller = DarkModeController(document, config)
    controller.activate()
    html = serialize(document)

    if output:
        output.write_text(html, encoding="utf-8")
        typer.echo(f"Dark page written to {output}")
    else:
        typer.echo(html, nl=False)


@app.command()
def variables(
    file: Annotated[Path, typer.Argument(help="Path to the HTML file")],
) -> None:
    """Print the theme-variable overrides computed for an HTML file."""
    config = _load_config(file.parent)

    try:
        document = load_document(file)
    except EyeLoveError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    root_style = document.document_element.computed_style()
    overrides = generate(root_style, config.variables, config.transform)
    if not overrides:
        typer.echo("No theme variables found")
        return
    for declaration in overrides:
        typer.echo(declaration)


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
