"""
Numeric policies shared by every analytics view.

This module centralizes the rounding, percentage and period-over-period
comparison rules so that every dashboard figure follows one policy:

- Rounding is half-up on the exact binary value of the float (a tie such as
  12.25 rounds to 12.3), matching how the dashboard has always displayed
  figures.
- Percentages of a zero total are 0, never NaN or an exception.
- Period-over-period change against a zero baseline is 100 when activity
  appeared and 0 otherwise.

Key Functions:
- round_to / round1 / round2: Half-up rounding to N decimal places
- round_half_up: Half-up rounding to an integer (used by estimators)
- safe_divide: Division with an explicit zero-denominator default
- percentage_of: round1(part / total * 100), 0 when total == 0
- percent_change: The MetricComparator used by every KPI delta

Example:
    >>> percent_change(120, 100)
    20.0
    >>> percent_change(5, 0)
    100.0
    >>> percentage_of(1, 3)
    33.3
"""

import math
from decimal import ROUND_HALF_UP, Decimal


def round_to(value: float, digits: int) -> float:
    """
    Round `value` half-up to `digits` decimal places.

    Args:
        value: Number to round.
        digits: Decimal places to keep (0 or more).

    Returns:
        The rounded value as a float.

    Example:
        >>> round_to(0.25, 1)
        0.3
        >>> round_to(2 / 3 * 100, 1)
        66.7
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round1(value: float) -> float:
    return round_to(value, 1)


def round2(value: float) -> float:
    return round_to(value, 2)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties towards +infinity."""
    return int(math.floor(value + 0.5))


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Return numerator / denominator, or `default` when the denominator is 0."""
    if denominator == 0:
        return default
    return numerator / denominator


def percentage_of(part: float, total: float) -> float:
    """
    Express `part` as a percentage of `total`, rounded to one decimal.

    Returns 0 when `total` is 0 so that sparse data never produces NaN.
    """
    if total == 0:
        return 0.0
    return round1(part / total * 100)


# =============================================================================
# MetricComparator
# =============================================================================


def percent_change(current: float, previous: float) -> float:
    """
    Period-over-period percentage change of a scalar metric.

    Zero-baseline policy: when `previous` is 0 the change is 100 if any
    activity appeared (`current > 0`) and 0 otherwise. All other cases return
    round1((current - previous) / previous * 100).

    Args:
        current: Metric value for the current period.
        previous: Metric value for the previous period of equal length.

    Returns:
        Percentage change rounded to one decimal place.

    Example:
        >>> percent_change(0, 0)
        0.0
        >>> percent_change(5, 0)
        100.0
        >>> percent_change(0, 5)
        -100.0
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round1((current - previous) / previous * 100)
