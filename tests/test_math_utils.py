"""Tests for math_utils ratio helpers."""

import pytest

from todostats.utils.math_utils import (
    calculate_percentage,
    clamp_interval,
    round_ratio,
    safe_ratio,
)


def test_safe_ratio() -> None:
    """Zero or negative denominators give 0.0."""
    assert safe_ratio(9, 10) == 0.9
    assert safe_ratio(0, 0) == 0.0
    assert safe_ratio(3, -1) == 0.0


def test_round_ratio() -> None:
    """Rounds to two places by default."""
    assert round_ratio(66.6666) == 66.67
    assert round_ratio(66.6666, precision=0) == 67.0


@pytest.mark.parametrize(
    ("current", "target", "expected"),
    [(9, 10, 90.0), (1, 3, 33.33), (5, 0, 0.0), (0, 4, 0.0)],
)
def test_calculate_percentage(current: int, target: int, expected: float) -> None:
    """Percentages are rounded and never divide by zero."""
    assert calculate_percentage(current, target) == expected


@pytest.mark.parametrize(
    ("value", "expected"), [(3, 3), (1, 1), (0, 1), (-5, 1), (None, 1)]
)
def test_clamp_interval(value: int | None, expected: int) -> None:
    """Intervals below 1 are clamped to 1."""
    assert clamp_interval(value) == expected
