from __future__ import annotations

import math

FREQUENCY_DIGITS = 4


def format_integer(value: int | float) -> str:
    return f"{int(round(float(value))):,}"


def format_frequency(value: float, digits: int = FREQUENCY_DIGITS) -> str:
    """Format a relative frequency with a fixed number of decimals.

    Values that round to zero are shown as ``<0.0000``: the cell is present
    but below display precision. Zero-count cells follow the same rule.
    """
    if value is None or not math.isfinite(float(value)):
        return ""
    rounded = round(float(value), digits)
    if rounded == 0:
        return "<" + f"{0:.{digits}f}"
    return f"{rounded:.{digits}f}"


def format_count_frequency(count: int, frequency: float, digits: int = FREQUENCY_DIGITS) -> str:
    return f"{format_integer(count)} ({format_frequency(frequency, digits=digits)})"


def format_percent(value: float, digits: int = 1) -> str:
    if value is None or not math.isfinite(float(value)):
        return ""
    return f"{float(value) * 100.0:.{digits}f}%"


def conditional_frequency(part: float, whole: float) -> float | None:
    """Share of ``whole`` taken by ``part`` when both are grand-total frequencies."""
    if not whole:
        return None
    return float(part) / float(whole)
