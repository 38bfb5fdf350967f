"""Glyph rendering of load fractions."""

from collections.abc import Iterable

from cpuline.models import TickResult
from cpuline.utilization import clamp_fraction

GLYPHS = "▁▂▃▄▅▆▇█"


def glyph(fraction: float) -> str:
    """Map a fraction in [0, 1] to a bar glyph."""
    return GLYPHS[int((len(GLYPHS) - 1) * clamp_fraction(fraction))]


def sparkline(fractions: Iterable[float]) -> str:
    return "".join(glyph(fraction) for fraction in fractions)


def render_cores(result: TickResult) -> str:
    """One glyph per core, ascending core order."""
    return sparkline(result.fractions)


def render_trend(result: TickResult) -> str:
    """System-wide trend, oldest sample first."""
    return sparkline(result.trend)


def format_percent(fraction: float | None) -> str:
    """Format a fraction as a fixed-width percentage."""
    if fraction is None:
        return "  --%"
    return f"{clamp_fraction(fraction) * 100:4.0f}%"
