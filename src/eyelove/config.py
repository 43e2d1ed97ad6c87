"""Engine configuration: markers, transform constants, fallbacks and catalogs.

Every field has a default, so an empty `EngineConfig()` reproduces the stock
behaviour. A YAML file (eyelove_config.yaml) may override any subset.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigError

DEFAULT_CONFIG_FILENAME = "eyelove_config.yaml"

# Theme variable names checked on the document root
DEFAULT_VARIABLES: list[str] = [
    # Backgrounds
    "--bg-color",
    "--background-color",
    "--background",
    "--body-bg",
    "--body-background",
    "--surface-color",
    "--surface",
    "--color-background",
    "--page-bg",
    # Text
    "--text-color",
    "--color-text",
    "--text",
    "--body-color",
    "--foreground-color",
    "--color-foreground",
    "--fg-color",
    "--primary-text-color",
    # Borders
    "--border-color",
    "--color-border",
    # Links
    "--link-color",
    "--anchor-color",
    "--color-link",
    # Primary / accent
    "--primary-color",
    "--primary",
    "--accent-color",
    "--accent",
    "--color-primary",
    # Secondary
    "--secondary-color",
    "--secondary",
    "--color-secondary",
    # Framework variables
    "--bs-body-bg",
    "--bs-body-color",
    "--bs-border-color",
    "--md-sys-color-surface",
    "--md-sys-color-on-surface",
]

DEFAULT_ELEMENT_TAGS: list[str] = [
    "body",
    "div",
    "section",
    "article",
    "main",
    "header",
    "footer",
    "nav",
    "aside",
    "p",
    "li",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "span",
    "button",
    "label",
    "legend",
    "td",
    "th",
    # Vector graphics
    "svg",
    "path",
    "circle",
    "rect",
    "ellipse",
    "line",
    "polyline",
    "polygon",
    "g",
    "use",
    "text",
]

DEFAULT_VECTOR_TAGS: list[str] = [
    "svg",
    "path",
    "circle",
    "rect",
    "ellipse",
    "line",
    "polyline",
    "polygon",
    "g",
    "use",
    "text",
]


class MarkerConfig(BaseModel):
    """Names of the class, attribute and cache key the engine owns."""

    body_class: str = "eyelove-dark-mode-enabled"
    root_class: str = "eyelove-dark-theme-active"  # Set by the first-paint script
    styled_attribute: str = "data-eyelove-styled"
    styled_value: str = "inline"
    cache_key: str = "eyelove-enabled-cache"


class TransformConfig(BaseModel):
    """Numeric constants of the dark-mode transforms."""

    variable_chroma: float = 0.3

    min_alpha: float = 0.5  # Colors at or below this alpha are left alone
    min_background_lightness: float = 0.3  # Darker backgrounds are left alone
    background_chroma: float = 0.3
    button_background_chroma: float = 0.1
    button_background_lightness: float = 0.35
    min_element_size: float = 24.0  # px; smaller elements keep their background

    text_chroma: float = 0.3
    button_text_chroma: float = 0.5
    fill_chroma: float = 0.3
    button_fill_chroma: float = 0.4
    stroke_chroma: float = 0.2
    button_stroke_chroma: float = 0.3

    dark_threshold: float = 0.5  # Background lightness below this counts as dark
    estimated_background_lightness: float = 0.2
    text_floor: float = 0.75
    text_ceiling: float = 0.25
    icon_floor: float = 0.70
    icon_ceiling: float = 0.30

    contrast_target: float = 4.5
    enforce_contrast: bool = True

    @field_validator(
        "min_alpha",
        "min_background_lightness",
        "button_background_lightness",
        "dark_threshold",
        "estimated_background_lightness",
        "text_floor",
        "text_ceiling",
        "icon_floor",
        "icon_ceiling",
    )
    @classmethod
    def check_unit_interval(cls, v: float) -> float:
        """Lightness and alpha thresholds live in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"must be between 0 and 1, got {v}")
        return v

    @field_validator("contrast_target")
    @classmethod
    def check_contrast_target(cls, v: float) -> float:
        """Contrast ratios live in [1, 21]."""
        if not 1.0 <= v <= 21.0:  # noqa: PLR2004
            raise ValueError(f"must be between 1 and 21, got {v}")
        return v


class FallbackConfig(BaseModel):
    """Fixed declarations written alongside the generated variable overrides."""

    background: str = "#1a1a1a"
    text: str = "#e0e0e0"
    border: str = "#444444"
    color_scheme: str = "dark"
    link: str = "#9ecaed"


class EngineConfig(BaseModel):
    """Complete engine configuration."""

    markers: MarkerConfig = Field(default_factory=MarkerConfig)
    transform: TransformConfig = Field(default_factory=TransformConfig)
    fallbacks: FallbackConfig = Field(default_factory=FallbackConfig)
    variables: list[str] = Field(default_factory=lambda: list(DEFAULT_VARIABLES))
    element_tags: list[str] = Field(default_factory=lambda: list(DEFAULT_ELEMENT_TAGS))
    vector_tags: list[str] = Field(default_factory=lambda: list(DEFAULT_VECTOR_TAGS))

    @field_validator("variables")
    @classmethod
    def check_variable_names(cls, v: list[str]) -> list[str]:
        """Custom property names must start with '--'."""
        bad = [name for name in v if not name.startswith("--")]
        if bad:
            raise ValueError(f"variable names must start with '--': {', '.join(bad)}")
        return v

    @field_validator("element_tags", "vector_tags")
    @classmethod
    def lowercase_tags(cls, v: list[str]) -> list[str]:
        """Tag names are matched case-insensitively."""
        return [tag.lower() for tag in v]


def load_config(config_path: Path | str) -> EngineConfig:
    """Load engine configuration from a YAML file.

    Args:
        config_path: Path to eyelove_config.yaml

    Returns:
        EngineConfig with defaults for every key the file leaves out

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigError: If the file is empty, not valid YAML, or fails validation
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if not data:
        raise ConfigError("Empty configuration file")

    if not isinstance(data, dict):
        raise ConfigError("Config must contain a mapping at the root level")

    try:
        return EngineConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
