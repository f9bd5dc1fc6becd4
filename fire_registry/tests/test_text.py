from __future__ import annotations

import math

import pytest

from fire_registry.report.text import (
    conditional_frequency,
    format_count_frequency,
    format_frequency,
    format_integer,
    format_percent,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0.25, "0.2500"),
        (2 / 12, "0.1667"),
        (1.0, "1.0000"),
        (0.00004, "<0.0000"),
        (0.0, "<0.0000"),
        (0.00005001, "0.0001"),
    ],
)
def test_format_frequency_rounds_to_four_places(value: float, expected: str) -> None:
    assert format_frequency(value) == expected


def test_format_frequency_handles_missing_values() -> None:
    assert format_frequency(math.nan) == ""
    assert format_frequency(0.123, digits=2) == "0.12"
    assert format_frequency(0.001, digits=2) == "<0.00"


def test_counts_never_take_the_below_precision_marker() -> None:
    assert format_count_frequency(0, 0.0) == "0 (<0.0000)"
    assert format_count_frequency(12_345, 0.5) == "12,345 (0.5000)"
    assert format_integer(0) == "0"
    assert format_integer(27_198.0) == "27,198"


def test_format_percent_and_conditional_frequency() -> None:
    assert format_percent(0.7) == "70.0%"
    assert format_percent(0.12346, digits=2) == "12.35%"
    assert conditional_frequency(7 / 12, 10 / 12) == pytest.approx(0.7)
    assert conditional_frequency(0.1, 0.0) is None
