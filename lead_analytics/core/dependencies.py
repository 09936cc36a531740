"""
FastAPI dependency injection module for the Lead Analytics backend.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_record_source: Returns the RecordSource the endpoints read rows from
- SettingsDep: Type alias for injecting Settings into endpoints
- RecordSourceDep: Type alias for injecting the RecordSource into endpoints

Endpoints never talk to the database directly: they fetch rows through the
RecordSource and hand them to the pure view functions. Tests replace the
source with an in-memory double via dependency overrides:

    app.dependency_overrides[get_record_source] = lambda: InMemoryRecordSource(...)

Usage Examples:
    @router.get("/locations")
    async def locations(source: RecordSourceDep, settings: SettingsDep):
        records = await source.fetch_records(RecordFilter())
        return compute_location_stats(records, top_n=settings.location_top_n)
"""

import logging
from typing import Annotated

import asyncpg
from fastapi import Depends, HTTPException

from lead_analytics.core.config import Settings, get_settings
from lead_analytics.core.database import get_db_pool
from lead_analytics.services.record_source import PostgresRecordSource, RecordSource


logger = logging.getLogger(__name__)


def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override configuration:

        app.dependency_overrides[get_settings_dependency] = lambda: Settings(monthly_budget=250)
    """
    return get_settings()


async def get_record_source() -> RecordSource:
    """
    Return the Postgres-backed record source.

    Raises:
        HTTPException (503): If DATABASE_URL is not configured or the pool
            cannot be created.
    """
    try:
        pool = await get_db_pool()
    except (RuntimeError, OSError, asyncpg.PostgresError) as e:
        logger.error(f"Record source unavailable: {e}")
        raise HTTPException(status_code=503, detail="Analytics database unavailable")
    return PostgresRecordSource(pool)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

RecordSourceDep = Annotated[RecordSource, Depends(get_record_source)]
