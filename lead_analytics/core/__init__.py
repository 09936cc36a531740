"""
Core infrastructure package for the Lead Analytics backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg
- Error taxonomy shared by the engine and the API
- Timezone helpers
- FastAPI dependency injection utilities

Re-exports key components so other modules can write:

    from lead_analytics.core import get_settings, InvalidRangeError

Components Re-exported:
    Settings, get_settings: Configuration
    init_db, close_db, get_db_pool: Connection pool lifecycle
    AnalyticsError, InvalidRangeError, InvalidInputError,
    InconsistentFunnelError: Error taxonomy
    utc_now, ensure_utc, get_zone: Timezone helpers

Dependency helpers live in lead_analytics.core.dependencies and are not
re-exported here, since they import the record source service.
"""

from lead_analytics.core.clock import ensure_utc, get_zone, utc_now
from lead_analytics.core.config import Settings, get_settings
from lead_analytics.core.database import close_db, get_db_pool, init_db
from lead_analytics.core.errors import (
    AnalyticsError,
    InconsistentFunnelError,
    InvalidInputError,
    InvalidRangeError,
)

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Database
    "init_db",
    "close_db",
    "get_db_pool",
    # Errors
    "AnalyticsError",
    "InvalidRangeError",
    "InvalidInputError",
    "InconsistentFunnelError",
    # Time
    "utc_now",
    "ensure_utc",
    "get_zone",
]
