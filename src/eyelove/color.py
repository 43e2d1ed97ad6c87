"""Color math: parsing CSS colors, OKLCH conversion, luminance and contrast.

All arithmetic happens in OKLCH, the polar form of Björn Ottosson's OKLab.
Parsed colors come back either as `RgbColor` (gamma-encoded sRGB channels in
[0, 1]) or, for `oklch()`/`oklab()` input, directly as `OklchColor`.

>>> format_hex(parse("#0f0"))
'#00ff00'
>>> round(relative_luminance(parse("white")), 3)
1.0
>>> round(contrast_ratio(1.0, 0.0), 1)
21.0
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from .exceptions import ColorParseError

ACHROMATIC_CHROMA = 1e-4  # Below this chroma the hue is meaningless

# WCAG relative luminance weights
LUMINANCE_WEIGHTS = (0.2126, 0.7152, 0.0722)

HEX_LENGTHS = (3, 4, 6, 8)

NAMED_COLORS: dict[str, str] = {
    "aliceblue": "#f0f8ff",
    "antiquewhite": "#faebd7",
    "aqua": "#00ffff",
    "aquamarine": "#7fffd4",
    "azure": "#f0ffff",
    "beige": "#f5f5dc",
    "bisque": "#ffe4c4",
    "black": "#000000",
    "blanchedalmond": "#ffebcd",
    "blue": "#0000ff",
    "blueviolet": "#8a2be2",
    "brown": "#a52a2a",
    "burlywood": "#deb887",
    "cadetblue": "#5f9ea0",
    "chartreuse": "#7fff00",
    "chocolate": "#d2691e",
    "coral": "#ff7f50",
    "cornflowerblue": "#6495ed",
    "cornsilk": "#fff8dc",
    "crimson": "#dc143c",
    "cyan": "#00ffff",
    "darkblue": "#00008b",
    "darkcyan": "#008b8b",
    "darkgoldenrod": "#b8860b",
    "darkgray": "#a9a9a9",
    "darkgreen": "#006400",
    "darkgrey": "#a9a9a9",
    "darkkhaki": "#bdb76b",
    "darkmagenta": "#8b008b",
    "darkolivegreen": "#556b2f",
    "darkorange": "#ff8c00",
    "darkorchid": "#9932cc",
    "darkred": "#8b0000",
    "darksalmon": "#e9967a",
    "darkseagreen": "#8fbc8f",
    "darkslateblue": "#483d8b",
    "darkslategray": "#2f4f4f",
    "darkslategrey": "#2f4f4f",
    "darkturquoise": "#00ced1",
    "darkviolet": "#9400d3",
    "deeppink": "#ff1493",
    "deepskyblue": "#00bfff",
    "dimgray": "#696969",
    "dimgrey": "#696969",
    "dodgerblue": "#1e90ff",
    "firebrick": "#b22222",
    "floralwhite": "#fffaf0",
    "forestgreen": "#228b22",
    "fuchsia": "#ff00ff",
    "gainsboro": "#dcdcdc",
    "ghostwhite": "#f8f8ff",
    "gold": "#ffd700",
    "goldenrod": "#daa520",
    "gray": "#808080",
    "green": "#008000",
    "greenyellow": "#adff2f",
    "grey": "#808080",
    "honeydew": "#f0fff0",
    "hotpink": "#ff69b4",
    "indianred": "#cd5c5c",
    "indigo": "#4b0082",
    "ivory": "#fffff0",
    "khaki": "#f0e68c",
    "lavender": "#e6e6fa",
    "lavenderblush": "#fff0f5",
    "lawngreen": "#7cfc00",
    "lemonchiffon": "#fffacd",
    "lightblue": "#add8e6",
    "lightcoral": "#f08080",
    "lightcyan": "#e0ffff",
    "lightgoldenrodyellow": "#fafad2",
    "lightgray": "#d3d3d3",
    "lightgreen": "#90ee90",
    "lightgrey": "#d3d3d3",
    "lightpink": "#ffb6c1",
    "lightsalmon": "#ffa07a",
    "lightseagreen": "#20b2aa",
    "lightskyblue": "#87cefa",
    "lightslategray": "#778899",
    "lightslategrey": "#778899",
    "lightsteelblue": "#b0c4de",
    "lightyellow": "#ffffe0",
    "lime": "#00ff00",
    "limegreen": "#32cd32",
    "linen": "#faf0e6",
    "magenta": "#ff00ff",
    "maroon": "#800000",
    "mediumaquamarine": "#66cdaa",
    "mediumblue": "#0000cd",
    "mediumorchid": "#ba55d3",
    "mediumpurple": "#9370db",
    "mediumseagreen": "#3cb371",
    "mediumslateblue": "#7b68ee",
    "mediumspringgreen": "#00fa9a",
    "mediumturquoise": "#48d1cc",
    "mediumvioletred": "#c71585",
    "midnightblue": "#191970",
    "mintcream": "#f5fffa",
    "mistyrose": "#ffe4e1",
    "moccasin": "#ffe4b5",
    "navajowhite": "#ffdead",
    "navy": "#000080",
    "oldlace": "#fdf5e6",
    "olive": "#808000",
    "olivedrab": "#6b8e23",
    "orange": "#ffa500",
    "orangered": "#ff4500",
    "orchid": "#da70d6",
    "palegoldenrod": "#eee8aa",
    "palegreen": "#98fb98",
    "paleturquoise": "#afeeee",
    "palevioletred": "#db7093",
    "papayawhip": "#ffefd5",
    "peachpuff": "#ffdab9",
    "peru": "#cd853f",
    "pink": "#ffc0cb",
    "plum": "#dda0dd",
    "powderblue": "#b0e0e6",
    "purple": "#800080",
    "rebeccapurple": "#663399",
    "red": "#ff0000",
    "rosybrown": "#bc8f8f",
    "royalblue": "#4169e1",
    "saddlebrown": "#8b4513",
    "salmon": "#fa8072",
    "sandybrown": "#f4a460",
    "seagreen": "#2e8b57",
    "seashell": "#fff5ee",
    "sienna": "#a0522d",
    "silver": "#c0c0c0",
    "skyblue": "#87ceeb",
    "slateblue": "#6a5acd",
    "slategray": "#708090",
    "slategrey": "#708090",
    "snow": "#fffafa",
    "springgreen": "#00ff7f",
    "steelblue": "#4682b4",
    "tan": "#d2b48c",
    "teal": "#008080",
    "thistle": "#d8bfd8",
    "tomato": "#ff6347",
    "turquoise": "#40e0d0",
    "violet": "#ee82ee",
    "wheat": "#f5deb3",
    "white": "#ffffff",
    "whitesmoke": "#f5f5f5",
    "yellow": "#ffff00",
    "yellowgreen": "#9acd32",
}

_FUNCTION_RE = re.compile(r"^([a-z]+)\((.*)\)$", re.DOTALL)
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)(e[+-]?\d+)?$")


@dataclass(frozen=True)
class RgbColor:
    """A gamma-encoded sRGB color with channels in [0, 1]."""

    r: float
    g: float
    b: float
    alpha: float | None = None


@dataclass(frozen=True)
class OklchColor:
    """A color in OKLCH: lightness, chroma, hue in degrees (None if achromatic)."""

    l: float  # noqa: E741 - standard name for OKLCH lightness
    c: float
    h: float | None = None
    alpha: float | None = None

    def clamped(self) -> OklchColor:
        """Return a copy with lightness in [0, 1] and non-negative chroma."""
        return OklchColor(
            l=_clamp01(self.l),
            c=max(0.0, self.c),
            h=self.h,
            alpha=self.alpha,
        )


Color = RgbColor | OklchColor


# ============================================================================
# Parsing
# ============================================================================


def parse(text: str) -> Color:
    """Parse a CSS color string.

    Args:
        text: Any hex, rgb()/rgba(), hsl()/hsla(), hwb(), oklch(), oklab()
            or named color

    Returns:
        RgbColor, or OklchColor for oklch()/oklab() input

    Raises:
        ColorParseError: If the text is not a supported color
    """
    value = text.strip().lower() if isinstance(text, str) else ""
    if not value:
        raise ColorParseError("Empty color value")

    if value.startswith("#"):
        return _parse_hex(value[1:], text)

    if value == "transparent":
        return RgbColor(0.0, 0.0, 0.0, 0.0)

    if value in NAMED_COLORS:
        return _parse_hex(NAMED_COLORS[value][1:], text)

    match = _FUNCTION_RE.match(value)
    if match is None:
        raise ColorParseError(f"Unsupported color: {text!r}")

    name, body = match.groups()
    channels, alpha = _split_arguments(body, text)
    parser = _FUNCTION_PARSERS.get(name)
    if parser is None:
        raise ColorParseError(f"Unsupported color function: {name}()")
    return parser(channels, alpha, text)


def try_parse(text: str | None) -> Color | None:
    """Parse a color, returning None instead of raising."""
    if not text:
        return None
    try:
        return parse(text)
    except ColorParseError:
        return None


def _parse_hex(digits: str, original: str) -> RgbColor:
    if len(digits) not in HEX_LENGTHS or any(c not in "0123456789abcdef" for c in digits):
        raise ColorParseError(f"Invalid hex color: {original!r}")
    if len(digits) in (3, 4):
        digits = "".join(c * 2 for c in digits)
    values = [int(digits[i : i + 2], 16) / 255 for i in range(0, len(digits), 2)]
    alpha = values[3] if len(values) == 4 else None  # noqa: PLR2004
    return RgbColor(values[0], values[1], values[2], alpha)


def _split_arguments(body: str, original: str) -> tuple[list[str], str | None]:
    """Split a color function body into channel tokens and an optional alpha token.

    Handles both the legacy comma syntax and the modern space syntax with `/ alpha`.
    """
    if "(" in body:
        # Nested functions (calc(), var()) are not resolved here
        raise ColorParseError(f"Unsupported nested function in color: {original!r}")

    if "," in body:
        parts = [p.strip() for p in body.split(",")]
        if any(not p for p in parts) or len(parts) not in (3, 4):
            raise ColorParseError(f"Malformed color arguments: {original!r}")
        return parts[:3], parts[3] if len(parts) == 4 else None  # noqa: PLR2004

    alpha: str | None = None
    if "/" in body:
        body, alpha = body.split("/", 1)
        alpha = alpha.strip()
        if not alpha:
            raise ColorParseError(f"Missing alpha after '/': {original!r}")
    parts = body.split()
    if len(parts) != 3:  # noqa: PLR2004
        raise ColorParseError(f"Expected three channels: {original!r}")
    return parts, alpha


def _number(token: str, original: str) -> float:
    if token == "none":
        return 0.0
    if not _NUMBER_RE.match(token):
        raise ColorParseError(f"Invalid number {token!r} in {original!r}")
    return float(token)


def _percent_or_number(token: str, scale: float, original: str) -> float:
    """Read a channel that may be a percentage; percentages map onto `scale`."""
    if token.endswith("%"):
        return _number(token[:-1], original) / 100 * scale
    return _number(token, original)


def _hue(token: str, original: str) -> float:
    for unit, factor in (("deg", 1.0), ("grad", 0.9), ("rad", 180 / math.pi), ("turn", 360.0)):
        if token.endswith(unit):
            return _number(token[: -len(unit)], original) * factor % 360
    return _number(token, original) % 360


def _alpha(token: str | None, original: str) -> float | None:
    if token is None:
        return None
    return _clamp01(_percent_or_number(token, 1.0, original))


def _parse_rgb(channels: list[str], alpha: str | None, original: str) -> RgbColor:
    r, g, b = (_clamp01(_percent_or_number(t, 255.0, original) / 255) for t in channels)
    return RgbColor(r, g, b, _alpha(alpha, original))


def _parse_hsl(channels: list[str], alpha: str | None, original: str) -> RgbColor:
    h = _hue(channels[0], original)
    s = _clamp01(_percent_or_number(channels[1], 100.0, original) / 100)
    light = _clamp01(_percent_or_number(channels[2], 100.0, original) / 100)
    r, g, b = _hsl_to_rgb(h, s, light)
    return RgbColor(r, g, b, _alpha(alpha, original))


def _parse_hwb(channels: list[str], alpha: str | None, original: str) -> RgbColor:
    h = _hue(channels[0], original)
    white = _clamp01(_percent_or_number(channels[1], 100.0, original) / 100)
    black = _clamp01(_percent_or_number(channels[2], 100.0, original) / 100)
    if white + black >= 1:
        gray = white / (white + black)
        return RgbColor(gray, gray, gray, _alpha(alpha, original))
    r, g, b = _hsl_to_rgb(h, 1.0, 0.5)
    scale = 1 - white - black
    return RgbColor(
        r * scale + white, g * scale + white, b * scale + white, _alpha(alpha, original)
    )


def _parse_oklch(channels: list[str], alpha: str | None, original: str) -> OklchColor:
    light = _percent_or_number(channels[0], 1.0, original)
    chroma = _percent_or_number(channels[1], 0.4, original)
    hue: float | None = None if channels[2] == "none" else _hue(channels[2], original)
    if chroma < ACHROMATIC_CHROMA:
        hue = None
    return OklchColor(light, chroma, hue, _alpha(alpha, original)).clamped()


def _parse_oklab(channels: list[str], alpha: str | None, original: str) -> OklchColor:
    light = _percent_or_number(channels[0], 1.0, original)
    a = _percent_or_number(channels[1], 0.4, original)
    b = _percent_or_number(channels[2], 0.4, original)
    return _lab_to_lch(light, a, b, _alpha(alpha, original)).clamped()


_FUNCTION_PARSERS = {
    "rgb": _parse_rgb,
    "rgba": _parse_rgb,
    "hsl": _parse_hsl,
    "hsla": _parse_hsl,
    "hwb": _parse_hwb,
    "oklch": _parse_oklch,
    "oklab": _parse_oklab,
}


# ============================================================================
# Conversion
# ============================================================================


def to_oklch(color: Color) -> OklchColor:
    """Convert a color into OKLCH. Already-OKLCH colors are returned unchanged."""
    if isinstance(color, OklchColor):
        return color

    rl, gl, bl = (_srgb_to_linear(v) for v in (color.r, color.g, color.b))
    lms = (
        0.4122214708 * rl + 0.5363325363 * gl + 0.0514459929 * bl,
        0.2119034982 * rl + 0.6806995451 * gl + 0.1073969566 * bl,
        0.0883024619 * rl + 0.2817188376 * gl + 0.6299787005 * bl,
    )
    l_, m_, s_ = (math.copysign(abs(v) ** (1 / 3), v) for v in lms)
    light = 0.2104542553 * l_ + 0.7936177850 * m_ - 0.0040720468 * s_
    a = 1.9779984951 * l_ - 2.4285922050 * m_ + 0.4505937099 * s_
    b = 0.0259040371 * l_ + 0.7827717662 * m_ - 0.8086757660 * s_
    return _lab_to_lch(light, a, b, color.alpha)


def to_linear_rgb(color: Color) -> tuple[float, float, float]:
    """Reconstruct linear-light sRGB channels, clamped to [0, 1]."""
    if isinstance(color, RgbColor):
        return (
            _srgb_to_linear(color.r),
            _srgb_to_linear(color.g),
            _srgb_to_linear(color.b),
        )

    oklch = color.clamped()
    hue = math.radians(oklch.h or 0.0)
    a = oklch.c * math.cos(hue)
    b = oklch.c * math.sin(hue)
    l_ = oklch.l + 0.3963377774 * a + 0.2158037573 * b
    m_ = oklch.l - 0.1055613458 * a - 0.0638541728 * b
    s_ = oklch.l - 0.0894841775 * a - 1.2914855480 * b
    l3, m3, s3 = l_**3, m_**3, s_**3
    return (
        _clamp01(4.0767416621 * l3 - 3.3077115913 * m3 + 0.2309699292 * s3),
        _clamp01(-1.2684380046 * l3 + 2.6097574011 * m3 - 0.3413193965 * s3),
        _clamp01(-0.0041960863 * l3 - 0.7034186147 * m3 + 1.7076147010 * s3),
    )


def to_rgb(color: Color) -> RgbColor:
    """Convert any color to gamma-encoded sRGB, clipping out-of-gamut channels."""
    if isinstance(color, RgbColor):
        return color
    r, g, b = (_linear_to_srgb(v) for v in to_linear_rgb(color))
    return RgbColor(r, g, b, color.alpha)


def alpha_of(color: Color) -> float:
    """Alpha channel of a color, treating a missing alpha as fully opaque."""
    return 1.0 if color.alpha is None else color.alpha


# ============================================================================
# Luminance, contrast and formatting
# ============================================================================


def relative_luminance(color: Color) -> float:
    """Relative luminance in [0, 1] from the color's linear RGB channels."""
    r, g, b = to_linear_rgb(color)
    wr, wg, wb = LUMINANCE_WEIGHTS
    return _clamp01(wr * r + wg * g + wb * b)


def contrast_ratio(luminance1: float, luminance2: float) -> float:
    """WCAG contrast ratio between two luminances, in [1, 21]."""
    lighter = max(luminance1, luminance2)
    darker = min(luminance1, luminance2)
    return (lighter + 0.05) / (darker + 0.05)


def format_hex(color: Color) -> str:
    """Format a color as `#rrggbb`. Alpha is dropped.

    OKLCH input is clamped (lightness into [0, 1], chroma non-negative) before
    conversion; out-of-gamut sRGB channels are clipped.
    """
    rgb = to_rgb(color.clamped() if isinstance(color, OklchColor) else color)
    return "#" + "".join(f"{round(_clamp01(v) * 255):02x}" for v in (rgb.r, rgb.g, rgb.b))


def darken(color: Color, chroma_factor: float) -> OklchColor:
    """Invert lightness and scale chroma, keeping the hue (0 for achromatic colors).

    This is the shared dark-mode transform used for variables, backgrounds,
    text and icons. The result is clamped.
    """
    oklch = to_oklch(color)
    return OklchColor(
        l=1.0 - oklch.l,
        c=oklch.c * chroma_factor,
        h=oklch.h or 0.0,
        alpha=oklch.alpha,
    ).clamped()


# ============================================================================
# Internal Functions
# ============================================================================


def _clamp01(value: float) -> float:
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


def _srgb_to_linear(channel: float) -> float:
    if channel <= 0.04045:  # noqa: PLR2004
        return channel / 12.92
    return ((channel + 0.055) / 1.055) ** 2.4


def _linear_to_srgb(channel: float) -> float:
    if channel <= 0.0031308:  # noqa: PLR2004
        return channel * 12.92
    return 1.055 * channel ** (1 / 2.4) - 0.055


def _lab_to_lch(light: float, a: float, b: float, alpha: float | None) -> OklchColor:
    chroma = math.hypot(a, b)
    hue: float | None = None
    if chroma >= ACHROMATIC_CHROMA:
        hue = math.degrees(math.atan2(b, a)) % 360
    return OklchColor(light, chroma, hue, alpha)


def _hsl_to_rgb(h: float, s: float, lightness: float) -> tuple[float, float, float]:
    """Convert HSL (hue in degrees, s and lightness in [0, 1]) to sRGB."""
    if s == 0:
        return lightness, lightness, lightness

    def hue_to_rgb(p: float, q: float, t: float) -> float:
        if t < 0:
            t += 1
        if t > 1:
            t -= 1
        if t < 1 / 6:
            return p + (q - p) * 6 * t
        if t < 1 / 2:
            return q
        if t < 2 / 3:
            return p + (q - p) * (2 / 3 - t) * 6
        return p

    q = lightness * (1 + s) if lightness < 0.5 else lightness + s - lightness * s  # noqa: PLR2004
    p = 2 * lightness - q
    hue = h / 360
    return hue_to_rgb(p, q, hue + 1 / 3), hue_to_rgb(p, q, hue), hue_to_rgb(p, q, hue - 1 / 3)
