"""
Record query collaborator used by the analytics API.

The engine never touches storage. The API layer fetches rows through a
RecordSource and passes them to the pure view functions in
lead_analytics.services.dashboard.

Implementations:
- PostgresRecordSource: asyncpg queries over the CRM tables
  (business, api_cost_log, scraping_job)

Tests substitute an in-memory implementation through FastAPI dependency
overrides (see lead_analytics/tests/conftest.py).

Timestamp Handling:
    The CRM tables store UTC instants in `timestamp without time zone`
    columns. Query parameters are sent as naive UTC and returned rows are
    read back as UTC by the model validators.
"""

import logging
from datetime import datetime
from typing import Any, List, Protocol, Sequence

from asyncpg import Pool

from lead_analytics.core.clock import ensure_utc
from lead_analytics.models.schemas import (
    CostEntry,
    JobEntry,
    Record,
    RecordFilter,
    TimeWindow,
)
from lead_analytics.sql.record_queries import (
    get_cost_entries_query,
    get_job_entries_query,
    get_record_count_query,
    get_records_query,
)


logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Async fetch/count interface the analytics API reads rows through."""

    async def fetch_records(self, record_filter: RecordFilter) -> List[Record]:
        ...

    async def fetch_cost_entries(self, window: TimeWindow) -> List[CostEntry]:
        ...

    async def fetch_job_entries(self, window: TimeWindow) -> List[JobEntry]:
        ...

    async def count_records(self, record_filter: RecordFilter) -> int:
        ...


def _db_params(params: Sequence[Any]) -> List[Any]:
    """Aware datetimes -> naive UTC for timestamp columns."""
    return [
        ensure_utc(value).replace(tzinfo=None) if isinstance(value, datetime) else value
        for value in params
    ]


class PostgresRecordSource:
    """
    RecordSource backed by the asyncpg connection pool.

    Args:
        pool: Connection pool from lead_analytics.core.database.get_db_pool.

    Example:
        source = PostgresRecordSource(await get_db_pool())
        records = await source.fetch_records(RecordFilter(cities=["Freehold"]))
    """

    def __init__(self, pool: Pool):
        self.pool = pool

    async def _fetch(self, query: str, params: Sequence[Any]):
        async with self.pool.acquire() as conn:
            return await conn.fetch(query, *_db_params(params))

    async def fetch_records(self, record_filter: RecordFilter) -> List[Record]:
        query, params = get_records_query(record_filter)
        rows = await self._fetch(query, params)
        logger.debug(f"Fetched {len(rows)} business records")
        return [Record(**dict(row)) for row in rows]

    async def fetch_cost_entries(self, window: TimeWindow) -> List[CostEntry]:
        query, params = get_cost_entries_query(window)
        rows = await self._fetch(query, params)
        return [
            CostEntry(
                created_at=row['created_at'],
                service=row['service'],
                operation_type=row['operation_type'] or 'unknown',
                cost_usd=float(row['cost_usd'] or 0),
            )
            for row in rows
        ]

    async def fetch_job_entries(self, window: TimeWindow) -> List[JobEntry]:
        query, params = get_job_entries_query(window)
        rows = await self._fetch(query, params)
        return [
            JobEntry(
                created_at=row['created_at'],
                status=row['status'],
                businesses_found=row['businesses_found'] or 0,
                businesses_saved=row['businesses_saved'] or 0,
                apify_cost=float(row['apify_cost'] or 0),
            )
            for row in rows
        ]

    async def count_records(self, record_filter: RecordFilter) -> int:
        query, params = get_record_count_query(record_filter)
        async with self.pool.acquire() as conn:
            total = await conn.fetchval(query, *_db_params(params))
        return int(total or 0)
