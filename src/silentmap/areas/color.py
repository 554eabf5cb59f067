"""
Area Colors
===========

Deterministic loudness-to-color mapping.

Mapping:
    average == 0  ->  fixed quiet color (no signal)
    otherwise     ->  hsl(hue, 70%, lightness%)
                      hue       = max(0, 200 − 2 · average)
                      lightness = max(20, 80 − 1.5 · average)

Louder areas trend toward red and dark, quieter areas toward blue and
light. Both components are non-increasing in the average.
"""

from typing import Tuple


QUIET_COLOR = "blue"
SATURATION = 70


def _js_number(value: float) -> str:
    """Format like a JavaScript template literal: 175.0 -> '175', 61.25 -> '61.25'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def hue_and_lightness(average: float) -> Tuple[float, float]:
    """Return the (hue, lightness) pair for a non-zero average."""
    hue = max(0.0, 200.0 - average * 2.0)
    lightness = max(20.0, 80.0 - average * 1.5)
    return hue, lightness


def loudness_color(average: float, quiet_color: str = QUIET_COLOR) -> str:
    """
    Derive the CSS color of an area from its average loudness.

    Args:
        average: Average loudness recorded at commit time
        quiet_color: Color used when nothing was heard

    Returns:
        Named color or ``hsl(...)`` string
    """
    if average == 0:
        return quiet_color

    hue, lightness = hue_and_lightness(average)
    return f"hsl({_js_number(hue)}, {SATURATION}%, {_js_number(lightness)}%)"
