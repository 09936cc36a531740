"""
Record Queries Module for the Lead Analytics backend.

Provides parameterized PostgreSQL queries over the CRM tables read by the
analytics engine:

- business: scraped/enriched business records
- api_cost_log: one row per external API call (Hunter.io, AbstractAPI)
- scraping_job: one row per Google Maps scraping job run through Apify

Multi-select dashboard filters become conditional WHERE clauses. Every value
is passed as an asyncpg positional parameter ($1, $2, ...); list filters use
`= ANY($n)` so the number of placeholders does not depend on list length.

Filter Semantics (mirrors RecordFilter.matches):
- A filter field left as None adds no clause.
- An empty list matches nothing (rendered as FALSE).
- start is inclusive, end is exclusive.
"""

from typing import Any, List, Tuple

from lead_analytics.models.schemas import RecordFilter, TimeWindow


# =============================================================================
# CONSTANTS
# =============================================================================

RECORD_COLUMNS: str = (
    "id, created_at, updated_at, city, industry, source, enrichment_status"
)

COST_ENTRY_COLUMNS: str = "created_at, service, operation_type, cost_usd"

JOB_ENTRY_COLUMNS: str = (
    "created_at, status, businesses_found, businesses_saved, apify_cost"
)


# =============================================================================
# FILTER CLAUSE BUILDER
# =============================================================================


def build_record_filter_clause(
    record_filter: RecordFilter,
    start_index: int = 1,
) -> Tuple[str, List[Any]]:
    """
    Translate a RecordFilter into a WHERE clause body and its parameters.

    Args:
        record_filter: Filter to translate.
        start_index: Number of the first positional placeholder, so the
            clause can be appended to a query that already has parameters.

    Returns:
        Tuple of (clause, params). The clause is "TRUE" when the filter is
        unconstrained, so it can always follow WHERE.

    Example:
        >>> build_record_filter_clause(RecordFilter(cities=["Freehold"]))
        ('city = ANY($1::text[])', [['Freehold']])
    """
    clauses: List[str] = []
    params: List[Any] = []

    def placeholder(value: Any, cast: str = "") -> str:
        params.append(value)
        return f"${start_index + len(params) - 1}{cast}"

    list_filters = (
        ("city", record_filter.cities),
        ("industry", record_filter.industries),
        ("source", record_filter.sources),
        (
            "enrichment_status",
            None if record_filter.enrichment_statuses is None
            else [status.value for status in record_filter.enrichment_statuses],
        ),
    )

    for column, values in list_filters:
        if values is None:
            continue
        if not values:
            clauses.append("FALSE")
            continue
        clauses.append(f"{column} = ANY({placeholder(list(values), '::text[]')})")

    if record_filter.start is not None:
        clauses.append(f"created_at >= {placeholder(record_filter.start)}")
    if record_filter.end is not None:
        clauses.append(f"created_at < {placeholder(record_filter.end)}")

    if not clauses:
        return "TRUE", params
    return " AND ".join(clauses), params


# =============================================================================
# RECORD QUERIES
# =============================================================================


def get_records_query(record_filter: RecordFilter) -> Tuple[str, List[Any]]:
    """
    Generate the query fetching every business row matching the filter.

    No LIMIT is applied: top-N truncation happens in the engine, after
    percentages have been computed against the full population.
    """
    clause, params = build_record_filter_clause(record_filter)
    query = f"""
        SELECT {RECORD_COLUMNS}
        FROM business
        WHERE {clause}
        ORDER BY created_at, id
    """
    return query, params


def get_record_count_query(record_filter: RecordFilter) -> Tuple[str, List[Any]]:
    """Generate the query counting business rows matching the filter."""
    clause, params = build_record_filter_clause(record_filter)
    query = f"""
        SELECT COUNT(*) AS total
        FROM business
        WHERE {clause}
    """
    return query, params


# =============================================================================
# WINDOWED LOG QUERIES
# =============================================================================


def get_cost_entries_query(window: TimeWindow) -> Tuple[str, List[Any]]:
    """Generate the query fetching API cost log rows in [start, end)."""
    query = f"""
        SELECT {COST_ENTRY_COLUMNS}
        FROM api_cost_log
        WHERE created_at >= $1 AND created_at < $2
        ORDER BY created_at
    """
    return query, [window.start, window.end]


def get_job_entries_query(window: TimeWindow) -> Tuple[str, List[Any]]:
    """Generate the query fetching scraping jobs started in [start, end)."""
    query = f"""
        SELECT {JOB_ENTRY_COLUMNS}
        FROM scraping_job
        WHERE created_at >= $1 AND created_at < $2
        ORDER BY created_at
    """
    return query, [window.start, window.end]
