# File: utils/math_utils.py
"""Math and ratio utilities for todostats.

Pure Python math functions. Every rate in the package goes through
`safe_ratio` so a range with nothing scheduled reports 0 instead of NaN
or ZeroDivisionError.

Functions:
    - round_ratio: Consistent rounding to configured precision
    - safe_ratio: Division with zero-denominator protection
    - calculate_percentage: Progress percentage calculations
    - clamp_interval: Lenient interval normalization
"""

from __future__ import annotations

import logging

_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DATA_FLOAT_PRECISION = 2

MIN_INTERVAL = 1


# ==============================================================================
# Ratio Functions
# ==============================================================================


def round_ratio(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a ratio/percentage to the configured precision.

    Examples:
        round_ratio(66.6666) → 66.67
        round_ratio(10.0) → 10.0
    """
    return round(value, precision)


def safe_ratio(numerator: float, denominator: float) -> float:
    """Return numerator / denominator, or 0.0 when the denominator is <= 0.

    Examples:
        safe_ratio(9, 10) → 0.9
        safe_ratio(0, 0) → 0.0  # Division by zero protection
    """
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def calculate_percentage(
    current: float,
    target: float,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate a completion percentage with proper rounding.

    Args:
        current: Completed count
        target: Scheduled count
        precision: Number of decimal places for rounding

    Returns:
        Percentage (0-100) with proper rounding, or 0.0 if target is 0

    Examples:
        calculate_percentage(9, 10) → 90.0
        calculate_percentage(1, 3) → 33.33
        calculate_percentage(5, 0) → 0.0
    """
    return round_ratio(safe_ratio(current, target) * 100, precision)


def clamp_interval(value: int | None) -> int:
    """Normalize a recurrence interval to a positive integer.

    Non-positive or missing intervals are clamped to 1 instead of raising:
    existing stored rules rely on this lenience.

    Examples:
        clamp_interval(3) → 3
        clamp_interval(0) → 1
        clamp_interval(None) → 1
    """
    if value is None or value < MIN_INTERVAL:
        if value is not None:
            _LOGGER.debug("Clamping recurrence interval %s to %s", value, MIN_INTERVAL)
        return MIN_INTERVAL
    return value
