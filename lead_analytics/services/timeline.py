"""
Calendar-day and calendar-period series built with pandas.

Timestamps are converted to the display timezone before they are floored to
a day (or week/month), so a job started at 23:30 New York time counts
towards that New York day even though it is already the next day in UTC.
Every day of the window is present in the output, zero-filled.

Key Functions:
- compute_daily_metrics: Searches, businesses found, enriched and cost per day
- compute_cost_series: Cost per day/week/month with a per-service breakdown
- window_days: First and last local calendar day touched by a window

Weekly periods start on Monday and are labelled with that Monday's date.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from lead_analytics.core.clock import get_zone
from lead_analytics.models.enums import CostGrouping
from lead_analytics.models.schemas import (
    CostEntry,
    CostTimeSeriesPoint,
    DailyMetric,
    JobEntry,
    Record,
    TimeWindow,
)
from lead_analytics.services.metrics import round2


logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = 'America/New_York'

# Service name of scraping job spend in cost breakdowns
APIFY_SERVICE = 'apify'

PERIOD_FREQUENCIES: Dict[CostGrouping, str] = {
    CostGrouping.DAILY: 'D',
    CostGrouping.WEEKLY: 'W',
    CostGrouping.MONTHLY: 'M',
}


# =============================================================================
# Helpers
# =============================================================================


def window_days(window: TimeWindow, timezone: str = DEFAULT_TIMEZONE) -> Tuple[date, date]:
    """First and last local calendar day covered by the half-open window."""
    zone = get_zone(timezone)
    first = window.start.astimezone(zone).date()
    last = (window.end - timedelta(microseconds=1)).astimezone(zone).date()
    return first, last


def _local_naive(timestamps: pd.Series, timezone: str) -> pd.Series:
    """Aware instants -> naive wall-clock times in `timezone`."""
    return (
        pd.to_datetime(timestamps, utc=True)
        .dt.tz_convert(timezone)
        .dt.tz_localize(None)
    )


def _daily_totals(
    rows: Sequence[Any],
    timestamp_fn: Callable[[Any], datetime],
    columns: Dict[str, Callable[[Any], float]],
    days: pd.DatetimeIndex,
    timezone: str,
) -> pd.DataFrame:
    """Sum `columns` per local day, reindexed onto `days` with zeros."""
    if not rows:
        return pd.DataFrame(0.0, index=days, columns=list(columns))

    frame = pd.DataFrame({
        'timestamp': [timestamp_fn(row) for row in rows],
        **{name: [fn(row) for row in rows] for name, fn in columns.items()},
    })
    frame['day'] = _local_naive(frame['timestamp'], timezone).dt.normalize()

    return (
        frame.groupby('day')[list(columns)]
        .sum()
        .reindex(days, fill_value=0.0)
    )


# =============================================================================
# Daily Metrics
# =============================================================================


def compute_daily_metrics(
    window: TimeWindow,
    records: Iterable[Record],
    jobs: Iterable[JobEntry],
    costs: Iterable[CostEntry],
    timezone: str = DEFAULT_TIMEZONE,
) -> List[DailyMetric]:
    """
    Aggregate activity per calendar day of the window.

    Rows outside the window are ignored.

    Args:
        window: Half-open reporting window.
        records: Business records (enriched count by creation day).
        jobs: Scraping jobs (searches, businesses found, Apify cost).
        costs: API cost log entries (cost).
        timezone: Timezone defining calendar days.

    Returns:
        One DailyMetric per local calendar day, oldest first. Cost is the sum
        of Apify and API spend, rounded to cents.

    Example:
        >>> rows = compute_daily_metrics(window, records, jobs, costs)
        >>> rows[-1].date
        datetime.date(2025, 1, 31)
    """
    first_day, last_day = window_days(window, timezone)
    days = pd.date_range(first_day, last_day, freq='D')

    in_window_records = [r for r in records if window.contains(r.created_at)]
    in_window_jobs = [j for j in jobs if window.contains(j.created_at)]
    in_window_costs = [c for c in costs if window.contains(c.created_at)]

    job_totals = _daily_totals(
        in_window_jobs,
        lambda job: job.created_at,
        {
            'searches': lambda job: 1,
            'businesses_found': lambda job: job.businesses_found,
            'apify_cost': lambda job: job.apify_cost,
        },
        days,
        timezone,
    )
    record_totals = _daily_totals(
        in_window_records,
        lambda record: record.created_at,
        {'enriched': lambda record: 1 if record.is_enriched else 0},
        days,
        timezone,
    )
    cost_totals = _daily_totals(
        in_window_costs,
        lambda entry: entry.created_at,
        {'api_cost': lambda entry: entry.cost_usd},
        days,
        timezone,
    )

    daily = pd.concat([job_totals, record_totals, cost_totals], axis=1)

    metrics = [
        DailyMetric(
            date=day.date(),
            searches=int(row['searches']),
            businesses_found=int(row['businesses_found']),
            enriched=int(row['enriched']),
            cost=round2(float(row['apify_cost']) + float(row['api_cost'])),
        )
        for day, row in daily.iterrows()
    ]

    logger.debug(f"Daily metrics: {len(metrics)} days from {first_day} to {last_day}")
    return metrics


# =============================================================================
# Cost Time Series
# =============================================================================


def _period_label(period: pd.Period, grouping: CostGrouping) -> str:
    if grouping is CostGrouping.MONTHLY:
        return period.start_time.strftime('%Y-%m')
    return period.start_time.strftime('%Y-%m-%d')


def compute_cost_series(
    window: TimeWindow,
    jobs: Iterable[JobEntry],
    costs: Iterable[CostEntry],
    grouping: CostGrouping,
    timezone: str = DEFAULT_TIMEZONE,
) -> List[CostTimeSeriesPoint]:
    """
    Total spend per day, week or month with a per-service breakdown.

    Apify spend from scraping jobs appears under the "apify" service; API
    cost log entries appear under their own service name. Every period of
    the window is present; services without spend in a period report 0.

    Args:
        window: Half-open reporting window.
        jobs: Scraping jobs (Apify spend).
        costs: API cost log entries.
        grouping: daily, weekly or monthly.
        timezone: Timezone defining calendar periods.

    Returns:
        Ordered list of CostTimeSeriesPoint, oldest period first.

    Raises:
        ValueError: If grouping is not a time-based grouping.
    """
    grouping = CostGrouping(grouping)
    if grouping not in PERIOD_FREQUENCIES:
        raise ValueError(f"Grouping '{grouping.value}' has no time series")
    freq = PERIOD_FREQUENCIES[grouping]

    first_day, last_day = window_days(window, timezone)
    periods = pd.period_range(pd.Timestamp(first_day), pd.Timestamp(last_day), freq=freq)

    rows = [
        (job.created_at, APIFY_SERVICE, job.apify_cost)
        for job in jobs if window.contains(job.created_at)
    ] + [
        (entry.created_at, entry.service, entry.cost_usd)
        for entry in costs if window.contains(entry.created_at)
    ]

    if rows:
        frame = pd.DataFrame(rows, columns=['timestamp', 'service', 'cost'])
        frame['period'] = _local_naive(frame['timestamp'], timezone).dt.to_period(freq)
        table = (
            frame.pivot_table(
                index='period', columns='service', values='cost',
                aggfunc='sum', fill_value=0.0,
            )
            .reindex(periods, fill_value=0.0)
        )
    else:
        table = pd.DataFrame(index=periods)

    return [
        CostTimeSeriesPoint(
            period=_period_label(period, grouping),
            cost=round2(float(row.sum())),
            breakdown={service: round2(float(value)) for service, value in row.items()},
        )
        for period, row in table.iterrows()
    ]
