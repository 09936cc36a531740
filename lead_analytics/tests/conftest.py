"""
Pytest Configuration and Shared Fixtures for Lead Analytics Tests.

This module provides fixtures for all backend tests, supporting:
- Async test execution with pytest-asyncio
- A fixed anchor instant so windows, buckets and labels are deterministic
- Sample business records, API cost log entries and scraping jobs
- An in-memory RecordSource double for endpoint tests
- A mock asyncpg pool for the Postgres record source
- A FastAPI TestClient with dependency overrides

Sample Data (relative to ANCHOR = 2025-01-15 17:00 UTC, noon in New York):

    id  city       industry  source       status    created
    1   Freehold   plumbing  google_maps  enriched  anchor - 1h
    2   Freehold   plumbing  google_maps  pending   anchor - 2d
    3   Freehold   hvac      google_maps  enriched  anchor - 3d
    4   Manalapan  hvac      manual       failed    anchor - 5d
    5   Manalapan  roofing   google_maps  enriched  anchor - 10d
    6   (none)     (none)    (none)       pending   anchor - 20d
    7   Marlboro   plumbing  google_maps  pending   anchor - 40d

Records 1-6 fall in the default 30-day window ending at the anchor; record 7
falls in the previous period.
"""

from datetime import datetime, timedelta, timezone
from typing import Generator, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from lead_analytics.core.clock import utc_now
from lead_analytics.core.config import Settings
from lead_analytics.core.dependencies import get_record_source, get_settings_dependency
from lead_analytics.main import app
from lead_analytics.models import (
    CostEntry,
    JobEntry,
    Record,
    RecordFilter,
    TimeWindow,
)


ANCHOR = datetime(2025, 1, 15, 17, 0, tzinfo=timezone.utc)


# ============================================================
# SAMPLE DATA BUILDERS
# ============================================================


def make_record(
    record_id: int,
    created_at: datetime,
    *,
    city: Optional[str] = None,
    industry: Optional[str] = None,
    source: Optional[str] = 'google_maps',
    status: str = 'pending',
    updated_at: Optional[datetime] = None,
) -> Record:
    """Build a Record with only the fields a test cares about."""
    return Record(
        id=record_id,
        created_at=created_at,
        updated_at=updated_at,
        city=city,
        industry=industry,
        source=source,
        enrichment_status=status,
    )


def build_sample_records(anchor: datetime) -> List[Record]:
    return [
        make_record(1, anchor - timedelta(hours=1), city='Freehold', industry='plumbing',
                    status='enriched', updated_at=anchor - timedelta(minutes=30)),
        make_record(2, anchor - timedelta(days=2), city='Freehold', industry='plumbing'),
        make_record(3, anchor - timedelta(days=3), city='Freehold', industry='hvac',
                    status='enriched', updated_at=anchor - timedelta(days=3) + timedelta(hours=1)),
        make_record(4, anchor - timedelta(days=5), city='Manalapan', industry='hvac',
                    source='manual', status='failed'),
        make_record(5, anchor - timedelta(days=10), city='Manalapan', industry='roofing',
                    status='enriched', updated_at=anchor - timedelta(days=10) + timedelta(hours=1)),
        make_record(6, anchor - timedelta(days=20), source=None),
        make_record(7, anchor - timedelta(days=40), city='Marlboro', industry='plumbing'),
    ]


def build_sample_jobs(anchor: datetime) -> List[JobEntry]:
    return [
        JobEntry(created_at=anchor - timedelta(hours=1), status='completed',
                 businesses_found=20, businesses_saved=18, apify_cost=1.50),
        JobEntry(created_at=anchor - timedelta(days=2), status='completed',
                 businesses_found=30, businesses_saved=25, apify_cost=2.50),
        JobEntry(created_at=anchor - timedelta(days=3), status='failed',
                 businesses_found=0, businesses_saved=0, apify_cost=0.10),
        JobEntry(created_at=anchor - timedelta(days=40), status='completed',
                 businesses_found=10, businesses_saved=9, apify_cost=1.00),
    ]


def build_sample_costs(anchor: datetime) -> List[CostEntry]:
    return [
        CostEntry(created_at=anchor - timedelta(hours=1), service='hunter',
                  operation_type='email_search', cost_usd=0.25),
        CostEntry(created_at=anchor - timedelta(days=2), service='hunter',
                  operation_type='email_search', cost_usd=0.25),
        CostEntry(created_at=anchor - timedelta(days=3), service='abstract',
                  operation_type='company_enrichment', cost_usd=0.10),
        CostEntry(created_at=anchor - timedelta(days=40), service='hunter',
                  operation_type='email_search', cost_usd=0.50),
    ]


# ============================================================
# IN-MEMORY RECORD SOURCE
# ============================================================


class InMemoryRecordSource:
    """
    RecordSource double serving rows from lists.

    Applies the same filter semantics as the SQL builder and records every
    call so tests can assert on what an endpoint fetched.
    """

    def __init__(
        self,
        records: Optional[List[Record]] = None,
        jobs: Optional[List[JobEntry]] = None,
        costs: Optional[List[CostEntry]] = None,
    ):
        self.records = records or []
        self.jobs = jobs or []
        self.costs = costs or []
        self.calls: List[tuple] = []

    async def fetch_records(self, record_filter: RecordFilter) -> List[Record]:
        self.calls.append(('fetch_records', record_filter))
        return [record for record in self.records if record_filter.matches(record)]

    async def fetch_cost_entries(self, window: TimeWindow) -> List[CostEntry]:
        self.calls.append(('fetch_cost_entries', window))
        return [entry for entry in self.costs if window.contains(entry.created_at)]

    async def fetch_job_entries(self, window: TimeWindow) -> List[JobEntry]:
        self.calls.append(('fetch_job_entries', window))
        return [job for job in self.jobs if window.contains(job.created_at)]

    async def count_records(self, record_filter: RecordFilter) -> int:
        self.calls.append(('count_records', record_filter))
        return sum(1 for record in self.records if record_filter.matches(record))


class FailingRecordSource(InMemoryRecordSource):
    """RecordSource double whose every fetch fails like a dropped connection."""

    async def fetch_records(self, record_filter: RecordFilter) -> List[Record]:
        raise ConnectionError("connection reset by peer")


# ============================================================
# DATA FIXTURES
# ============================================================


@pytest.fixture
def anchor() -> datetime:
    return ANCHOR


@pytest.fixture
def sample_records(anchor: datetime) -> List[Record]:
    return build_sample_records(anchor)


@pytest.fixture
def sample_jobs(anchor: datetime) -> List[JobEntry]:
    return build_sample_jobs(anchor)


@pytest.fixture
def sample_costs(anchor: datetime) -> List[CostEntry]:
    return build_sample_costs(anchor)


@pytest.fixture
def current_window(anchor: datetime) -> TimeWindow:
    """Default 30-day window ending at the anchor."""
    return TimeWindow(start=anchor - timedelta(days=30), end=anchor)


@pytest.fixture
def memory_source(sample_records, sample_jobs, sample_costs) -> InMemoryRecordSource:
    return InMemoryRecordSource(sample_records, sample_jobs, sample_costs)


@pytest.fixture
def recent_source() -> InMemoryRecordSource:
    """Sample rows anchored at the real current time, for endpoints that use 'now'."""
    now = utc_now()
    return InMemoryRecordSource(
        build_sample_records(now), build_sample_jobs(now), build_sample_costs(now)
    )


# ============================================================
# DATABASE MOCKS
# ============================================================


@pytest.fixture
def mock_db_pool() -> AsyncMock:
    """
    Create a mock asyncpg connection pool.

    Usage:
        conn = mock_db_pool.acquire.return_value.__aenter__.return_value
        conn.fetch.return_value = [{'id': 1, ...}]
    """
    pool = AsyncMock()

    conn = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=conn)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)
    pool.close = AsyncMock(return_value=None)

    return pool


# ============================================================
# API CLIENT
# ============================================================


@pytest.fixture
def test_settings() -> Settings:
    return Settings(database_url=None, display_timezone='America/New_York')


@pytest.fixture
def api_client(
    memory_source: InMemoryRecordSource,
    test_settings: Settings,
) -> Generator[TestClient, None, None]:
    """TestClient whose endpoints read from the in-memory sample source."""
    app.dependency_overrides[get_record_source] = lambda: memory_source
    app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
