"""
SQL Query Module for the Lead Analytics backend.

Provides parameterized asyncpg queries over the CRM tables the analytics
engine reads (business, api_cost_log, scraping_job). Query builders return
(query, params) tuples; nothing in this package executes SQL.

Example usage:
    from lead_analytics.sql import get_records_query

    query, params = get_records_query(RecordFilter(cities=["Freehold"]))
    rows = await conn.fetch(query, *params)
"""

from lead_analytics.sql.record_queries import (
    COST_ENTRY_COLUMNS,
    JOB_ENTRY_COLUMNS,
    RECORD_COLUMNS,
    build_record_filter_clause,
    get_cost_entries_query,
    get_job_entries_query,
    get_record_count_query,
    get_records_query,
)

__all__ = [
    'RECORD_COLUMNS',
    'COST_ENTRY_COLUMNS',
    'JOB_ENTRY_COLUMNS',
    'build_record_filter_clause',
    'get_records_query',
    'get_record_count_query',
    'get_cost_entries_query',
    'get_job_entries_query',
]
