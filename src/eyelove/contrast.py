"""Iterative contrast enforcement for foreground colors.

Nudges a candidate color's OKLCH lightness away from a known background
luminance until a target contrast ratio is reached or the iteration limit
runs out. The function is pure: it never touches a document.
"""

from __future__ import annotations

from dataclasses import dataclass

from .color import Color, OklchColor, contrast_ratio, relative_luminance, to_oklch

WCAG_AA_NORMAL = 4.5  # Normal body text
WCAG_AA_LARGE = 3.0  # Large text

DARK_BACKGROUND_LUMINANCE = 0.5  # Below this the background counts as dark
INITIAL_STEP = 0.05
FINE_STEP = 0.025
FINE_STEP_AFTER = 5  # Iterations at the initial step before switching to the fine step
MAX_ITERATIONS = 10


@dataclass(frozen=True)
class ContrastAdjustment:
    """Outcome of a contrast adjustment."""

    color: OklchColor
    ratio: float
    iterations: int
    target: float

    @property
    def met(self) -> bool:
        """True if the target ratio was reached."""
        return self.ratio >= self.target


def adjust(
    candidate: Color, background_luminance: float, target: float = WCAG_AA_NORMAL
) -> OklchColor:
    """Return `candidate` with lightness adjusted to reach `target` contrast.

    The best color reached is returned even if the target was not met.
    """
    return adjust_with_report(candidate, background_luminance, target).color


def adjust_with_report(
    candidate: Color, background_luminance: float, target: float = WCAG_AA_NORMAL
) -> ContrastAdjustment:
    """Adjust a color like `adjust()`, also reporting ratio and iterations used.

    Args:
        candidate: Foreground color to adjust
        background_luminance: Relative luminance of the background, in [0, 1]
        target: Contrast ratio to reach

    Returns:
        ContrastAdjustment with the final color, the achieved ratio and the
        number of iterations spent
    """
    color = to_oklch(candidate).clamped()
    ratio = contrast_ratio(relative_luminance(color), background_luminance)
    direction = 1.0 if background_luminance < DARK_BACKGROUND_LUMINANCE else -1.0

    iterations = 0
    while ratio < target and iterations < MAX_ITERATIONS:
        step = INITIAL_STEP if iterations < FINE_STEP_AFTER else FINE_STEP
        color = OklchColor(
            l=color.l + direction * step, c=color.c, h=color.h, alpha=color.alpha
        ).clamped()
        ratio = contrast_ratio(relative_luminance(color), background_luminance)
        iterations += 1

    return ContrastAdjustment(color=color, ratio=ratio, iterations=iterations, target=target)
