"""
Time range resolution for windowed dashboard views.

Every windowed view (dashboard overview, source breakdown, timeline, heatmap,
cost analysis) starts by turning an optional user-supplied start/end into a
concrete half-open TimeWindow, and every period-over-period comparison uses
the symmetric previous window of identical length.

Default Window:
    Both bounds omitted -> the last DEFAULT_WINDOW_DAYS days ending now.
    Only `end` supplied -> DEFAULT_WINDOW_DAYS days ending at `end`.
    Only `start` supplied -> from `start` until now.

Previous Period:
    previous_period([start, end)) == [start - (end - start), start)
    so "last 30 days" compares against the 30 days before it, not against
    the previous calendar month.

Usage:
    from lead_analytics.services.time_range import resolve_time_range, previous_period

    window = resolve_time_range(start, end)
    prior = previous_period(window)
"""

from datetime import datetime, timedelta
from typing import Optional

from lead_analytics.core.clock import ensure_utc, utc_now
from lead_analytics.core.errors import InvalidRangeError
from lead_analytics.models.schemas import TimeWindow


# Length of the window used when the caller supplies no start date
DEFAULT_WINDOW_DAYS: int = 30


def resolve_time_range(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    *,
    now: Optional[datetime] = None,
    default_days: int = DEFAULT_WINDOW_DAYS,
) -> TimeWindow:
    """
    Normalize optional bounds into a concrete [start, end) window.

    Args:
        start: Inclusive lower bound, or None for `end - default_days`.
        end: Exclusive upper bound, or None for `now`.
        now: Reference instant (defaults to the current UTC time). Injected
            by tests for deterministic windows.
        default_days: Length of the default window in days.

    Returns:
        TimeWindow with aware UTC bounds.

    Raises:
        InvalidRangeError: If the resolved start is not before the resolved
            end (including a `start` in the future with no `end`).

    Example:
        >>> w = resolve_time_range(now=datetime(2025, 1, 31, tzinfo=timezone.utc))
        >>> w.start.isoformat()
        '2025-01-01T00:00:00+00:00'
    """
    reference = ensure_utc(now) if now is not None else utc_now()

    resolved_end = ensure_utc(end) if end is not None else reference
    if start is not None:
        resolved_start = ensure_utc(start)
    else:
        resolved_start = resolved_end - timedelta(days=default_days)

    if resolved_start >= resolved_end:
        raise InvalidRangeError(resolved_start, resolved_end)

    return TimeWindow(start=resolved_start, end=resolved_end)


def previous_period(window: TimeWindow) -> TimeWindow:
    """
    Return the window of identical duration immediately preceding `window`.

    Example:
        >>> prior = previous_period(TimeWindow(start=jan_11, end=jan_21))
        >>> (prior.start, prior.end) == (jan_01, jan_11)
        True
    """
    return TimeWindow(start=window.start - window.duration, end=window.start)


def trailing_window(end: datetime, days: int) -> TimeWindow:
    """Window of `days` days ending at `end` (used for sparklines)."""
    end = ensure_utc(end)
    return TimeWindow(start=end - timedelta(days=days), end=end)
