"""
Weekday x hour activity heatmap.

Items are counted into a dense 7 x 24 numpy grid (rows: weekday with
0 = Sunday, columns: hour of day) and every cell is emitted, zero-filled,
weekday-major. Intensity is count / max over the grid; a flat (all zero)
grid has intensity 0 everywhere.

By default the weekday and hour are read from each item's timestamp in the
display timezone, so "Monday 9am" means 9am in the dashboard's zone.
"""

from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

import numpy as np

from lead_analytics.core.clock import ensure_utc, get_zone
from lead_analytics.core.errors import InvalidInputError
from lead_analytics.models.schemas import HeatmapCell, HeatmapGrid


DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24
DEFAULT_TIMEZONE = 'America/New_York'


def sunday_weekday(local: datetime) -> int:
    """Weekday index with Sunday = 0 ... Saturday = 6."""
    return (local.weekday() + 1) % DAYS_PER_WEEK


def build_heatmap(
    items: Iterable[Any],
    weekday_fn: Optional[Callable[[Any], int]] = None,
    hour_fn: Optional[Callable[[Any], int]] = None,
    *,
    timestamp_fn: Optional[Callable[[Any], datetime]] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> HeatmapGrid:
    """
    Count items into the 168-cell weekday x hour grid.

    Args:
        items: Rows to place on the grid.
        weekday_fn: Returns the weekday index (0 = Sunday) of a row. Defaults
            to the weekday of `timestamp_fn(row)` in `timezone`.
        hour_fn: Returns the hour (0-23) of a row. Defaults like weekday_fn.
        timestamp_fn: Timestamp accessor for the defaults (default: created_at).
        timezone: IANA timezone for the default weekday/hour.

    Returns:
        HeatmapGrid with exactly 168 cells and the grid maximum.

    Raises:
        InvalidInputError: If a weekday or hour falls outside its range.
    """
    zone = get_zone(timezone)
    timestamp_fn = timestamp_fn or (lambda item: item.created_at)

    def local_time(item: Any) -> datetime:
        return ensure_utc(timestamp_fn(item)).astimezone(zone)

    weekday_fn = weekday_fn or (lambda item: sunday_weekday(local_time(item)))
    hour_fn = hour_fn or (lambda item: local_time(item).hour)

    grid = np.zeros((DAYS_PER_WEEK, HOURS_PER_DAY), dtype=np.int64)

    for item in items:
        weekday = int(weekday_fn(item))
        hour = int(hour_fn(item))
        if not 0 <= weekday < DAYS_PER_WEEK:
            raise InvalidInputError(f"Weekday index {weekday} outside 0..6", weekday=weekday)
        if not 0 <= hour < HOURS_PER_DAY:
            raise InvalidInputError(f"Hour {hour} outside 0..23", hour=hour)
        grid[weekday, hour] += 1

    max_value = int(grid.max())
    if max_value > 0:
        intensity = grid / max_value
    else:
        intensity = np.zeros_like(grid, dtype=np.float64)

    cells: List[HeatmapCell] = [
        HeatmapCell(
            weekday=weekday,
            hour=hour,
            count=int(grid[weekday, hour]),
            intensity=float(intensity[weekday, hour]),
        )
        for weekday in range(DAYS_PER_WEEK)
        for hour in range(HOURS_PER_DAY)
    ]

    return HeatmapGrid(cells=cells, max_value=max_value)
