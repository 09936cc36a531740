"""
Budget projection for the cost analysis view.

project_spend extrapolates month-end spend linearly from the average daily
spend so far:

    projected = spend_to_date / day_of_period * days_in_period

This is a day-rate extrapolation, not a forecast. It ignores seasonality,
weekday effects and any spend already scheduled, so early in the month a
single expensive day can swing the projection by a large factor.
"""

import calendar
from datetime import datetime
from typing import Optional, Tuple

from lead_analytics.core.clock import ensure_utc, get_zone, utc_now
from lead_analytics.core.errors import InvalidInputError
from lead_analytics.models.schemas import BudgetProjection
from lead_analytics.services.metrics import round1, round2


def project_spend(
    spend_to_date: float,
    day_of_period: int,
    days_in_period: int,
    budget: float,
) -> BudgetProjection:
    """
    Linearly project period-end spend and compare it with the budget.

    Args:
        spend_to_date: Cumulative spend in the current period (USD).
        day_of_period: 1-based index of the current day within the period.
        days_in_period: Total days in the period.
        budget: Spend ceiling for the period (USD).

    Returns:
        BudgetProjection with projected spend rounded to cents,
        remaining = budget - projected, and percent_used of spend to date.

    Raises:
        InvalidInputError: If day_of_period, days_in_period or budget is not
            positive.

    Example:
        >>> p = project_spend(100, 10, 30, 250)
        >>> p.projected, p.remaining, p.percent_used, p.on_track
        (300.0, -50.0, 40.0, False)
    """
    if day_of_period <= 0:
        raise InvalidInputError(
            "day_of_period must be positive", day_of_period=day_of_period
        )
    if days_in_period <= 0:
        raise InvalidInputError(
            "days_in_period must be positive", days_in_period=days_in_period
        )
    if budget <= 0:
        raise InvalidInputError("budget must be positive", budget=budget)

    projected = spend_to_date / day_of_period * days_in_period

    return BudgetProjection(
        budget=budget,
        spend_to_date=round2(spend_to_date),
        projected=round2(projected),
        remaining=round2(budget - projected),
        percent_used=round1(spend_to_date / budget * 100),
        on_track=projected <= budget,
    )


def billing_period_position(
    now: Optional[datetime] = None,
    timezone: str = 'America/New_York',
) -> Tuple[int, int]:
    """
    Position of `now` in its calendar month as (day_of_month, days_in_month).

    Example:
        >>> billing_period_position(datetime(2025, 2, 10, 15, tzinfo=utc), 'UTC')
        (10, 28)
    """
    now = ensure_utc(now) if now is not None else utc_now()
    local = now.astimezone(get_zone(timezone))
    days_in_month = calendar.monthrange(local.year, local.month)[1]
    return local.day, days_in_month
