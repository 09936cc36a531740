"""
FastAPI router module for the analytics dashboard endpoints.

Endpoints (all GET, mounted under /analytics):
- /filter-options: Distinct filter values and the record date range
- /locations: Top cities with shares of the full total
- /sources: Records per acquisition source
- /pipeline: Records per pipeline stage
- /growth: Bucketed growth series (week / month / quarter)
- /dashboard: Six KPIs with period-over-period change and sparklines
- /source-breakdown: Per-platform searches, results, cost and success rate
- /timeline: Daily activity series
- /funnel: Scraped -> Enriched -> Contacted -> Responded funnel
- /heatmap: Weekday x hour activity grid
- /comparison: Segment comparison by city / industry / source
- /top-performers: Ranked segments with trend classification
- /cost-analysis: Cost breakdown, time series and budget status

Every endpoint follows the same shape: resolve the window, fetch the rows
it needs through the RecordSource (independent fetches fan out with
asyncio.gather), then hand the rows to one pure view function from
lead_analytics.services.dashboard.

Query Filters:
    cities, industries, enrichmentStatus, sources accept repeated parameters
    or comma-separated values; startDate / endDate are ISO timestamps
    (naive values are taken as UTC).

Error Mapping:
    AnalyticsError subclasses propagate to the application's exception
    handler (HTTP 400). Any other failure is logged and returned as 500.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from lead_analytics.core.dependencies import RecordSourceDep, SettingsDep
from lead_analytics.core.errors import AnalyticsError, InvalidInputError, InvalidRangeError
from lead_analytics.models import (
    ActivityType,
    ComparisonStats,
    CostAnalysis,
    CostGrouping,
    DashboardOverview,
    Dimension,
    EnrichmentStatus,
    FilterOptions,
    FunnelStats,
    Granularity,
    GrowthStats,
    HeatmapStats,
    LocationStats,
    PerformerMetric,
    PipelineStats,
    RecordFilter,
    SourceBreakdown,
    SourceStats,
    Timeline,
    TopPerformers,
)
from lead_analytics.services.bucketing import bucket_span
from lead_analytics.services.dashboard import (
    compute_comparison_stats,
    compute_cost_analysis,
    compute_dashboard_overview,
    compute_filter_options,
    compute_funnel_stats,
    compute_growth_series,
    compute_heatmap_stats,
    compute_location_stats,
    compute_pipeline_stats,
    compute_source_breakdown,
    compute_source_stats,
    compute_timeline,
    compute_top_performers,
    overview_fetch_window,
    typical_success_rates,
)
from lead_analytics.services.time_range import resolve_time_range


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


# =============================================================================
# Query Parsing
# =============================================================================


def _split_values(values: Optional[List[str]]) -> Optional[List[str]]:
    """Flatten repeated and comma-separated values; no values means no constraint."""
    if values is None:
        return None
    parts = [part.strip() for value in values for part in value.split(",")]
    parts = [part for part in parts if part]
    return parts or None


def get_record_filter(
    cities: Optional[List[str]] = Query(None, description="Cities to include"),
    industries: Optional[List[str]] = Query(None, description="Industries to include"),
    enrichment_status: Optional[List[str]] = Query(
        None, alias="enrichmentStatus", description="pending, enriched and/or failed"
    ),
    sources: Optional[List[str]] = Query(None, description="Sources to include"),
    start_date: Optional[datetime] = Query(None, alias="startDate", description="Inclusive start"),
    end_date: Optional[datetime] = Query(None, alias="endDate", description="Exclusive end"),
) -> RecordFilter:
    """
    Build the RecordFilter shared by every dashboard endpoint.

    Raises:
        InvalidInputError: If an enrichment status is not recognised.
        InvalidRangeError: If both dates are given and start is not before end.
    """
    statuses = _split_values(enrichment_status)
    parsed_statuses = None
    if statuses is not None:
        try:
            parsed_statuses = [EnrichmentStatus(status) for status in statuses]
        except ValueError:
            raise InvalidInputError(
                f"Unknown enrichment status in {statuses}",
                allowed=[status.value for status in EnrichmentStatus],
            )

    record_filter = RecordFilter(
        cities=_split_values(cities),
        industries=_split_values(industries),
        enrichment_statuses=parsed_statuses,
        sources=_split_values(sources),
        start=start_date,
        end=end_date,
    )

    if record_filter.start and record_filter.end and record_filter.start >= record_filter.end:
        raise InvalidRangeError(record_filter.start, record_filter.end)

    return record_filter


def _internal_error(view: str) -> HTTPException:
    return HTTPException(status_code=500, detail=f"Failed to compute {view}")


# =============================================================================
# Categorical Views
# =============================================================================


@router.get("/filter-options", response_model=FilterOptions)
async def get_filter_options(source: RecordSourceDep, settings: SettingsDep) -> FilterOptions:
    """Distinct cities, industries, statuses and sources, plus the date range."""
    try:
        records = await source.fetch_records(RecordFilter())
        return compute_filter_options(records, timezone=settings.display_timezone)
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching filter options")
        raise _internal_error("filter options")


@router.get("/locations", response_model=LocationStats)
async def get_location_stats(
    source: RecordSourceDep,
    settings: SettingsDep,
    record_filter: RecordFilter = Depends(get_record_filter),
) -> LocationStats:
    """Top cities by record count, percentages against all records."""
    try:
        records = await source.fetch_records(record_filter)
        return compute_location_stats(records, top_n=settings.location_top_n)
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching location stats")
        raise _internal_error("location stats")


@router.get("/sources", response_model=SourceStats)
async def get_source_stats(
    source: RecordSourceDep,
    record_filter: RecordFilter = Depends(get_record_filter),
) -> SourceStats:
    try:
        records = await source.fetch_records(record_filter)
        return compute_source_stats(records)
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching source stats")
        raise _internal_error("source stats")


@router.get("/pipeline", response_model=PipelineStats)
async def get_pipeline_stats(
    source: RecordSourceDep,
    record_filter: RecordFilter = Depends(get_record_filter),
) -> PipelineStats:
    try:
        records = await source.fetch_records(record_filter)
        return compute_pipeline_stats(records)
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching pipeline stats")
        raise _internal_error("pipeline stats")


# =============================================================================
# Time Series Views
# =============================================================================


@router.get("/growth", response_model=GrowthStats)
async def get_growth_stats(
    source: RecordSourceDep,
    settings: SettingsDep,
    period: Granularity = Query(Granularity.MONTH, description="week, month or quarter"),
    record_filter: RecordFilter = Depends(get_record_filter),
) -> GrowthStats:
    """
    Growth series ending now.

    week: 7 daily buckets; month: 4 weekly buckets; quarter: 3 buckets of
    30 days. Date filters are replaced by the span of the buckets.
    """
    try:
        span = bucket_span(period)
        records = await source.fetch_records(record_filter.with_window(span))
        return compute_growth_series(
            records, period, anchor=span.end, timezone=settings.display_timezone
        )
    except AnalyticsError:
        raise
    except Exception:
        logger.exception(f"Error fetching growth stats ({period.value})")
        raise _internal_error("growth stats")


@router.get("/dashboard", response_model=DashboardOverview)
async def get_dashboard_overview(
    source: RecordSourceDep,
    settings: SettingsDep,
    record_filter: RecordFilter = Depends(get_record_filter),
) -> DashboardOverview:
    """
    Headline KPIs for the window (default: last 30 days) with change
    against the previous window of equal length and 7-day sparklines.
    """
    try:
        window = resolve_time_range(
            record_filter.start, record_filter.end,
            default_days=settings.default_window_days,
        )
        fetch_window = overview_fetch_window(window, settings.sparkline_days)

        records, jobs, costs = await asyncio.gather(
            source.fetch_records(record_filter.with_window(fetch_window)),
            source.fetch_job_entries(fetch_window),
            source.fetch_cost_entries(fetch_window),
        )

        return compute_dashboard_overview(
            window, records, jobs, costs,
            sparkline_days=settings.sparkline_days,
            timezone=settings.display_timezone,
        )
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching dashboard overview")
        raise _internal_error("dashboard overview")


@router.get("/source-breakdown", response_model=SourceBreakdown)
async def get_source_breakdown(
    source: RecordSourceDep,
    settings: SettingsDep,
    record_filter: RecordFilter = Depends(get_record_filter),
) -> SourceBreakdown:
    try:
        window = resolve_time_range(
            record_filter.start, record_filter.end,
            default_days=settings.default_window_days,
        )

        jobs, costs, records = await asyncio.gather(
            source.fetch_job_entries(window),
            source.fetch_cost_entries(window),
            source.fetch_records(record_filter.with_window(window)),
        )

        estimator = typical_success_rates({
            'hunter': settings.hunter_success_rate,
            'abstract': settings.abstract_success_rate,
        })
        return compute_source_breakdown(
            window, jobs, costs, records, success_rate_estimator=estimator
        )
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching source breakdown")
        raise _internal_error("source breakdown")


@router.get("/timeline", response_model=Timeline)
async def get_timeline(
    source: RecordSourceDep,
    settings: SettingsDep,
    record_filter: RecordFilter = Depends(get_record_filter),
) -> Timeline:
    try:
        window = resolve_time_range(
            record_filter.start, record_filter.end,
            default_days=settings.default_window_days,
        )

        records, jobs, costs = await asyncio.gather(
            source.fetch_records(record_filter.with_window(window)),
            source.fetch_job_entries(window),
            source.fetch_cost_entries(window),
        )

        return compute_timeline(window, records, jobs, costs, timezone=settings.display_timezone)
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching timeline metrics")
        raise _internal_error("timeline metrics")


# =============================================================================
# Advanced Views
# =============================================================================


@router.get("/funnel", response_model=FunnelStats)
async def get_funnel_stats(
    source: RecordSourceDep,
    record_filter: RecordFilter = Depends(get_record_filter),
) -> FunnelStats:
    """Funnel over the filtered records; outreach stages report 0 until tracked."""
    try:
        records = await source.fetch_records(record_filter)
        return compute_funnel_stats(records)
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching funnel stats")
        raise _internal_error("funnel stats")


@router.get("/heatmap", response_model=HeatmapStats)
async def get_heatmap_stats(
    source: RecordSourceDep,
    settings: SettingsDep,
    activity_type: ActivityType = Query(ActivityType.BUSINESS_CREATED, alias="activityType"),
    record_filter: RecordFilter = Depends(get_record_filter),
) -> HeatmapStats:
    try:
        window = resolve_time_range(
            record_filter.start, record_filter.end,
            default_days=settings.default_window_days,
        )

        records, jobs = [], []
        if activity_type is ActivityType.SCRAPING_JOBS:
            jobs = await source.fetch_job_entries(window)
        elif activity_type is ActivityType.ENRICHMENTS:
            # Enrichment time is updated_at, so creation date must not constrain the fetch
            enriched_filter = record_filter.with_status(EnrichmentStatus.ENRICHED).model_copy(
                update={'start': None, 'end': None}
            )
            records = await source.fetch_records(enriched_filter)
        else:
            records = await source.fetch_records(record_filter.with_window(window))

        return compute_heatmap_stats(
            window, activity_type, records, jobs, timezone=settings.display_timezone
        )
    except AnalyticsError:
        raise
    except Exception:
        logger.exception(f"Error fetching heatmap stats ({activity_type.value})")
        raise _internal_error("heatmap stats")


@router.get("/comparison", response_model=ComparisonStats)
async def get_comparison_stats(
    source: RecordSourceDep,
    settings: SettingsDep,
    dimension: Dimension = Query(Dimension.CITY),
    record_filter: RecordFilter = Depends(get_record_filter),
) -> ComparisonStats:
    try:
        records = await source.fetch_records(record_filter)
        return compute_comparison_stats(
            records, dimension, limit=settings.comparison_segment_limit
        )
    except AnalyticsError:
        raise
    except Exception:
        logger.exception(f"Error fetching comparison stats by {dimension.value}")
        raise _internal_error("comparison stats")


@router.get("/top-performers", response_model=TopPerformers)
async def get_top_performers(
    source: RecordSourceDep,
    settings: SettingsDep,
    metric: PerformerMetric = Query(PerformerMetric.BUSINESSES),
    dimension: Dimension = Query(Dimension.CITY),
    limit: Optional[int] = Query(None, ge=1, description="Number of performers (max 20)"),
    record_filter: RecordFilter = Depends(get_record_filter),
) -> TopPerformers:
    """
    Segments ranked by businesses, enriched count or cost efficiency.

    Raises:
        InvalidInputError (400): If limit exceeds the configured maximum.
    """
    if limit is None:
        limit = settings.top_performers_default_limit
    if limit > settings.top_performers_max_limit:
        raise InvalidInputError(
            f"limit must be at most {settings.top_performers_max_limit}", limit=limit
        )

    try:
        records = await source.fetch_records(record_filter)
        return compute_top_performers(
            records, metric, dimension, limit,
            trend_threshold=settings.trend_threshold,
        )
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching top performers")
        raise _internal_error("top performers")


@router.get("/cost-analysis", response_model=CostAnalysis)
async def get_cost_analysis(
    source: RecordSourceDep,
    settings: SettingsDep,
    group_by: CostGrouping = Query(CostGrouping.SERVICE, alias="groupBy"),
    record_filter: RecordFilter = Depends(get_record_filter),
) -> CostAnalysis:
    """Spend breakdown, optional cost series and month-end budget projection."""
    try:
        window = resolve_time_range(
            record_filter.start, record_filter.end,
            default_days=settings.default_window_days,
        )

        jobs, costs, total_leads = await asyncio.gather(
            source.fetch_job_entries(window),
            source.fetch_cost_entries(window),
            source.count_records(record_filter.with_window(window)),
        )

        return compute_cost_analysis(
            window, jobs, costs, total_leads, group_by,
            monthly_budget=settings.monthly_budget,
            timezone=settings.display_timezone,
        )
    except AnalyticsError:
        raise
    except Exception:
        logger.exception("Error fetching cost analysis")
        raise _internal_error("cost analysis")
