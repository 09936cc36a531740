"""
Timezone helpers shared by the models and the engine.

Every instant handled by the engine is timezone-aware UTC. Naive datetimes
coming from callers or drivers are interpreted as UTC.
"""

from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@lru_cache(maxsize=32)
def get_zone(name: str) -> tzinfo:
    """Resolve an IANA timezone name, e.g. 'America/New_York'."""
    return ZoneInfo(name)
