"""
Error taxonomy for the analytics engine.

Hierarchy:
    AnalyticsError
    ├── InvalidRangeError        (start >= end)
    ├── InvalidInputError        (non-positive divisors, out-of-range indices)
    └── InconsistentFunnelError  (later stage exceeds an earlier one; logged only)

Validation errors propagate to the caller unmodified. The API layer maps any
AnalyticsError to an HTTP 400 response.
"""

from datetime import datetime
from typing import Optional


class AnalyticsError(Exception):
    """Base exception for all analytics engine errors."""

    def __init__(self, message: str, code: str = "ANALYTICS_ERROR", details: Optional[dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


class InvalidRangeError(AnalyticsError):
    """Time range whose start is not strictly before its end."""

    def __init__(self, start: datetime, end: datetime):
        super().__init__(
            f"Start {start.isoformat()} must be before end {end.isoformat()}",
            code="INVALID_RANGE",
            details={"start": start.isoformat(), "end": end.isoformat()},
        )


class InvalidInputError(AnalyticsError):
    """Numeric input outside the domain an operation accepts."""

    def __init__(self, message: str, **details):
        super().__init__(message, code="INVALID_INPUT", details=details)


class InconsistentFunnelError(AnalyticsError):
    """
    A funnel stage holds more items than the stage before it.

    Source counts may legitimately be approximate, so this is only ever
    logged as a warning by the funnel calculator, never raised.
    """

    def __init__(self, stage: str, count: int, previous_stage: str, previous_count: int):
        super().__init__(
            f"Funnel stage '{stage}' ({count}) exceeds preceding stage "
            f"'{previous_stage}' ({previous_count})",
            code="INCONSISTENT_FUNNEL",
            details={
                "stage": stage,
                "count": count,
                "previous_stage": previous_stage,
                "previous_count": previous_count,
            },
        )
