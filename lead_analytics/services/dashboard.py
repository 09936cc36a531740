"""
Dashboard view computation for the Lead Analytics backend.

One pure function per dashboard view. Each takes collections the record
source has already fetched, composes the engine components (time range,
bucketing, aggregation, comparator, funnel, heatmap, cost projector, ranker)
and returns a typed result model. Nothing here performs I/O or reads
settings; the API layer passes configuration in explicitly.

Key Functions:
- compute_location_stats: Top cities with shares of the full total
- compute_source_stats: Records per acquisition source
- compute_pipeline_stats: Records per pipeline stage label
- compute_growth_series: Bucketed record growth for week/month/quarter
- compute_dashboard_overview: Six KPIs with deltas and sparklines
- compute_source_breakdown: Per-platform searches, results, cost, success
- compute_timeline: Daily activity over the window
- compute_funnel_stats: Scraped -> Enriched -> Contacted -> Responded
- compute_heatmap_stats: Weekday x hour activity grid
- compute_comparison_stats: Segment comparison for a dimension
- compute_top_performers: Ranked segments with trend classification
- compute_cost_analysis: Cost breakdown, time series and budget status
- compute_filter_options: Distinct values for the dashboard filter bar

Estimated Figures:
    Some figures have no exact data source yet (provider success rates,
    per-segment cost, segment trend). Each is produced by a pluggable
    estimator argument with a deterministic default, so real data can be
    swapped in without touching the aggregation code.

Filtering:
    Views that accept `record_filter` apply RecordFilter.matches to the rows
    they receive. The Postgres record source already filters in SQL, so the
    API layer passes None there; in-memory callers can pass a filter.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from lead_analytics.core.clock import get_zone
from lead_analytics.models.enums import (
    ActivityType,
    CostGrouping,
    Dimension,
    Granularity,
    PerformerMetric,
)
from lead_analytics.models.schemas import (
    BudgetStatus,
    ComparisonSegment,
    ComparisonStats,
    CostAnalysis,
    CostBreakdownItem,
    CostEntry,
    DailyMetric,
    DashboardMetric,
    DashboardOverview,
    DateBounds,
    FilterOptions,
    FunnelStats,
    GrowthDataPoint,
    GrowthStats,
    HeatmapStats,
    JobEntry,
    LocationItem,
    LocationStats,
    PipelineStage,
    PipelineStats,
    Record,
    RecordFilter,
    Segment,
    SourceBreakdown,
    SourceBreakdownItem,
    SourceItem,
    SourceStats,
    Timeline,
    TimeWindow,
    TopPerformer,
    TopPerformers,
)
from lead_analytics.services.aggregation import (
    DIMENSION_KEYS,
    PIPELINE_STAGE_LABELS,
    UNKNOWN_LOCATION,
    UNKNOWN_SOURCE,
    group_by,
    group_records,
    stage_label,
)
from lead_analytics.services.bucketing import bucket_span, bucketize
from lead_analytics.services.cost import billing_period_position, project_spend
from lead_analytics.services.funnel import compute_funnel, overall_conversion
from lead_analytics.services.heatmap import build_heatmap
from lead_analytics.services.metrics import (
    percent_change,
    percentage_of,
    round1,
    round2,
    round_to,
    safe_divide,
)
from lead_analytics.services.ranking import (
    classify_trend,
    flat_trend,
    rank_segments,
)
from lead_analytics.services.time_range import previous_period, trailing_window
from lead_analytics.services.timeline import compute_cost_series, compute_daily_metrics


logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = 'America/New_York'

# Cost log service identifiers and their display names
HUNTER_SERVICE = 'hunter'
ABSTRACT_SERVICE = 'abstract'
MANUAL_SOURCE = 'manual'

SERVICE_DISPLAY_NAMES: Mapping[str, str] = {
    HUNTER_SERVICE: 'Hunter.io',
    ABSTRACT_SERVICE: 'AbstractAPI',
}

APIFY_DISPLAY_NAME = 'Google Maps (Apify)'
COMPLETED_JOB_STATUS = 'completed'

DEFAULT_SUCCESS_RATES: Mapping[str, float] = {
    HUNTER_SERVICE: 85.0,
    ABSTRACT_SERVICE: 90.0,
}

SuccessRateEstimator = Callable[[str, int], float]
EnrichmentEstimator = Callable[[Segment], int]
CostEstimator = Callable[[Segment], float]
TrendEstimator = Callable[[Segment], float]


def _apply_filter(records: Iterable[Record], record_filter: Optional[RecordFilter]) -> List[Record]:
    if record_filter is None:
        return list(records)
    return [record for record in records if record_filter.matches(record)]


# =============================================================================
# Categorical Views (location, source, pipeline)
# =============================================================================


def compute_location_stats(records: Iterable[Record], *, top_n: int = 10) -> LocationStats:
    """
    Top cities by record count.

    Percentages are shares of ALL records, so the shown cities may sum to
    less than 100 when more than `top_n` cities exist. Records without a
    city are counted under "Unknown".
    """
    result = group_records(records, Dimension.CITY, top_n=top_n)

    locations = [
        LocationItem(city=group.key, count=group.count, percentage=group.percentage)
        for group in result.groups
    ]

    logger.info(f"Location stats: {len(locations)} cities, {result.total} total businesses")
    return LocationStats(locations=locations, total=result.total)


def compute_source_stats(records: Iterable[Record]) -> SourceStats:
    """Records per acquisition source; missing sources count as "unknown"."""
    result = group_records(records, Dimension.SOURCE)

    sources = [
        SourceItem(source=group.key, count=group.count, percentage=group.percentage)
        for group in result.groups
    ]

    logger.info(f"Source stats: {len(sources)} sources, {result.total} total businesses")
    return SourceStats(sources=sources, total=result.total)


def compute_pipeline_stats(
    records: Iterable[Record],
    labels: Mapping[str, str] = PIPELINE_STAGE_LABELS,
) -> PipelineStats:
    """
    Records per pipeline stage.

    Enrichment statuses are relabelled through `labels` (pending -> New
    Leads, enriched -> Qualified, failed -> Needs Review); a status missing
    from the table keeps its raw value.
    """
    result = group_by(
        records,
        lambda record: record.enrichment_status,
        sentinel=UNKNOWN_SOURCE,
    )

    stages = [
        PipelineStage(
            stage=stage_label(group.key, labels),
            count=group.count,
            percentage=group.percentage,
        )
        for group in result.groups
    ]

    logger.info(f"Pipeline stats: {len(stages)} stages, {result.total} total businesses")
    return PipelineStats(stages=stages, total=result.total)


# =============================================================================
# Growth Series
# =============================================================================


def compute_growth_series(
    records: Iterable[Record],
    granularity: Granularity = Granularity.MONTH,
    *,
    anchor: Optional[datetime] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> GrowthStats:
    """
    Record growth over the fixed bucket layout of `granularity`.

    Records are first narrowed to the span the buckets cover, so `total`
    always equals the sum of the bucket totals.

    Args:
        records: Candidate records (may extend beyond the bucket span).
        granularity: week (7 x 1 day), month (4 x 7 days) or quarter
            (3 x 30 days).
        anchor: End of the newest bucket (default: now).
        timezone: Timezone for bucket labels.

    Returns:
        GrowthStats with one data point per bucket, oldest first.
    """
    granularity = Granularity(granularity)
    span = bucket_span(granularity, anchor)
    in_span = [record for record in records if span.contains(record.created_at)]

    buckets = bucketize(in_span, granularity, anchor=span.end, timezone=timezone)

    total = len(in_span)
    enriched = sum(1 for record in in_span if record.is_enriched)
    enrichment_rate = percentage_of(enriched, total)

    data = [
        GrowthDataPoint(
            period=bucket.label,
            businesses=bucket.total,
            enriched=bucket.enriched,
            range_start=bucket.range_start,
            range_end=bucket.range_end,
        )
        for bucket in buckets
    ]

    logger.info(
        f"Growth stats ({granularity.value}): {total} businesses, "
        f"{enrichment_rate}% enrichment rate"
    )
    return GrowthStats(
        granularity=granularity,
        data=data,
        total=total,
        enrichment_rate=enrichment_rate,
    )


# =============================================================================
# Dashboard Overview
# =============================================================================


@dataclass(frozen=True)
class ActivitySnapshot:
    """
    Scalar activity totals for one window.

    Attributes:
        searches: Scraping jobs started.
        businesses_found: Businesses reported by those jobs.
        businesses: Records created.
        enriched: Records created that are enriched.
        total_cost: Apify spend plus API cost log spend (USD).
    """
    searches: int = 0
    businesses_found: int = 0
    businesses: int = 0
    enriched: int = 0
    total_cost: float = 0.0

    @property
    def cost_per_lead(self) -> float:
        return safe_divide(self.total_cost, self.businesses)

    @property
    def enrichment_rate(self) -> float:
        return safe_divide(self.enriched, self.businesses) * 100

    @classmethod
    def from_rows(
        cls,
        window: TimeWindow,
        records: Iterable[Record],
        jobs: Iterable[JobEntry],
        costs: Iterable[CostEntry],
    ) -> 'ActivitySnapshot':
        """Summarize the rows falling inside `window`."""
        window_records = [r for r in records if window.contains(r.created_at)]
        window_jobs = [j for j in jobs if window.contains(j.created_at)]
        window_costs = [c for c in costs if window.contains(c.created_at)]

        return cls(
            searches=len(window_jobs),
            businesses_found=sum(job.businesses_found for job in window_jobs),
            businesses=len(window_records),
            enriched=sum(1 for record in window_records if record.is_enriched),
            total_cost=(
                sum(job.apify_cost for job in window_jobs)
                + sum(entry.cost_usd for entry in window_costs)
            ),
        )


def overview_fetch_window(window: TimeWindow, sparkline_days: int = 7) -> TimeWindow:
    """
    Smallest window holding every row the overview needs.

    Covers the previous period, the current window and the sparkline days,
    so a caller can fetch once and pass the rows to the overview.
    """
    prior = previous_period(window)
    spark = trailing_window(window.end, sparkline_days)
    return TimeWindow(start=min(prior.start, spark.start), end=window.end)


def _sparkline_rows(
    window: TimeWindow,
    records: Sequence[Record],
    jobs: Sequence[JobEntry],
    costs: Sequence[CostEntry],
    days: int,
    timezone: str,
) -> List[DailyMetric]:
    daily = compute_daily_metrics(
        trailing_window(window.end, days), records, jobs, costs, timezone
    )
    return daily[-days:]


def compute_dashboard_overview(
    window: TimeWindow,
    records: Iterable[Record],
    jobs: Iterable[JobEntry],
    costs: Iterable[CostEntry],
    *,
    sparkline_days: int = 7,
    timezone: str = DEFAULT_TIMEZONE,
) -> DashboardOverview:
    """
    Six headline KPIs for `window` compared with the previous period.

    KPIs: Total Searches, Businesses Found, Cost Per Lead, Enriched Leads,
    Total Cost, Enrichment Rate. Each carries its value for the current
    window, percent_change against the equally long window before it, and
    a sparkline of the last `sparkline_days` calendar days.

    Args:
        window: Current reporting window.
        records, jobs, costs: Rows covering at least
            overview_fetch_window(window); rows outside a window are ignored.
        sparkline_days: Number of sparkline points.
        timezone: Timezone defining sparkline calendar days.

    Returns:
        DashboardOverview with metrics in display order.
    """
    records = list(records)
    jobs = list(jobs)
    costs = list(costs)
    prior = previous_period(window)

    current = ActivitySnapshot.from_rows(window, records, jobs, costs)
    previous = ActivitySnapshot.from_rows(prior, records, jobs, costs)
    spark = _sparkline_rows(window, records, jobs, costs, sparkline_days, timezone)

    metrics = [
        DashboardMetric(
            key='total_searches',
            name='Total Searches',
            value=current.searches,
            change=percent_change(current.searches, previous.searches),
            sparkline=[day.searches for day in spark],
        ),
        DashboardMetric(
            key='businesses_found',
            name='Businesses Found',
            value=current.businesses_found,
            change=percent_change(current.businesses_found, previous.businesses_found),
            sparkline=[day.businesses_found for day in spark],
        ),
        DashboardMetric(
            key='cost_per_lead',
            name='Cost Per Lead',
            value=round2(current.cost_per_lead),
            change=percent_change(current.cost_per_lead, previous.cost_per_lead),
            sparkline=[round2(safe_divide(day.cost, day.businesses_found)) for day in spark],
        ),
        DashboardMetric(
            key='enriched_leads',
            name='Enriched Leads',
            value=current.enriched,
            change=percent_change(current.enriched, previous.enriched),
            sparkline=[day.enriched for day in spark],
        ),
        DashboardMetric(
            key='total_cost',
            name='Total Cost',
            value=round2(current.total_cost),
            change=percent_change(current.total_cost, previous.total_cost),
            sparkline=[day.cost for day in spark],
        ),
        DashboardMetric(
            key='enrichment_rate',
            name='Enrichment Rate',
            value=round1(current.enrichment_rate),
            change=percent_change(current.enrichment_rate, previous.enrichment_rate),
            sparkline=[percentage_of(day.enriched, day.businesses_found) for day in spark],
        ),
    ]

    logger.info(
        f"Dashboard overview: {current.searches} searches, "
        f"{current.businesses_found} businesses, ${current.total_cost:.2f} cost"
    )
    return DashboardOverview(metrics=metrics, window=window, previous_window=prior)


# =============================================================================
# Source Breakdown & Timeline
# =============================================================================


def typical_success_rates(
    rates: Mapping[str, float] = DEFAULT_SUCCESS_RATES,
) -> SuccessRateEstimator:
    """
    Success-rate estimator returning a fixed typical rate per provider.

    Providers do not report per-call outcomes yet, so the estimate is the
    provider's typical rate when any calls were made and 0 otherwise.
    """
    def estimate(service: str, calls: int) -> float:
        if calls <= 0:
            return 0.0
        return rates.get(service, 0.0)
    return estimate


def compute_source_breakdown(
    window: TimeWindow,
    jobs: Iterable[JobEntry],
    costs: Iterable[CostEntry],
    records: Iterable[Record] = (),
    *,
    success_rate_estimator: Optional[SuccessRateEstimator] = None,
) -> SourceBreakdown:
    """
    Per-platform performance over `window`.

    Rows:
        Google Maps: scraping jobs, businesses found, Apify cost, and the
            share of jobs that completed.
        Hunter.io: email searches (one contact assumed per call), cost, and
            an estimated success rate.
        AbstractAPI: company lookups, cost, and an estimated success rate.
        Manual: records entered with source "manual"; no cost.

    `total` is the summed cost of all rows, rounded to cents.
    """
    estimate = success_rate_estimator or typical_success_rates()

    window_jobs = [job for job in jobs if window.contains(job.created_at)]
    window_costs = [entry for entry in costs if window.contains(entry.created_at)]
    manual_count = sum(
        1 for record in records
        if window.contains(record.created_at) and record.source == MANUAL_SOURCE
    )

    by_service = {
        group.key: group
        for group in group_by(
            window_costs,
            lambda entry: entry.service,
            sentinel=UNKNOWN_SOURCE,
            sum_fields={'cost': lambda entry: entry.cost_usd},
        ).groups
    }

    def calls(service: str) -> int:
        group = by_service.get(service)
        return group.count if group else 0

    def spend(service: str) -> float:
        group = by_service.get(service)
        return round2(group.sums['cost']) if group else 0.0

    completed = sum(1 for job in window_jobs if job.status == COMPLETED_JOB_STATUS)
    hunter_calls = calls(HUNTER_SERVICE)
    abstract_calls = calls(ABSTRACT_SERVICE)

    sources = [
        SourceBreakdownItem(
            source='Google Maps',
            searches=len(window_jobs),
            businesses=sum(job.businesses_found for job in window_jobs),
            cost=round2(sum(job.apify_cost for job in window_jobs)),
            success_rate=percentage_of(completed, len(window_jobs)),
        ),
        SourceBreakdownItem(
            source='Hunter.io',
            searches=hunter_calls,
            contacts_found=hunter_calls,
            cost=spend(HUNTER_SERVICE),
            success_rate=estimate(HUNTER_SERVICE, hunter_calls),
        ),
        SourceBreakdownItem(
            source='AbstractAPI',
            searches=abstract_calls,
            businesses=abstract_calls,
            cost=spend(ABSTRACT_SERVICE),
            success_rate=estimate(ABSTRACT_SERVICE, abstract_calls),
        ),
        SourceBreakdownItem(
            source='Manual',
            businesses=manual_count,
            cost=0.0,
        ),
    ]

    total = round2(sum(item.cost for item in sources))
    logger.info(f"Source breakdown: {len(sources)} sources, ${total:.2f} total cost")
    return SourceBreakdown(sources=sources, total=total)


def compute_timeline(
    window: TimeWindow,
    records: Iterable[Record],
    jobs: Iterable[JobEntry],
    costs: Iterable[CostEntry],
    *,
    timezone: str = DEFAULT_TIMEZONE,
) -> Timeline:
    """Daily searches, businesses found, enriched and cost over `window`."""
    data = compute_daily_metrics(window, records, jobs, costs, timezone)
    logger.info(
        f"Timeline metrics: {len(data)} days from "
        f"{window.start.isoformat()} to {window.end.isoformat()}"
    )
    return Timeline(data=data, window=window)


# =============================================================================
# Funnel & Heatmap
# =============================================================================


def compute_funnel_stats(
    records: Iterable[Record],
    *,
    record_filter: Optional[RecordFilter] = None,
    contacted: int = 0,
    responded: int = 0,
) -> FunnelStats:
    """
    Scraped -> Enriched -> Contacted -> Responded funnel.

    Contacted and responded counts come from outreach tracking outside the
    record table and are supplied by the caller (0 when untracked).
    """
    selected = _apply_filter(records, record_filter)
    scraped = len(selected)
    enriched = sum(1 for record in selected if record.is_enriched)

    stages = compute_funnel([
        ('Scraped', scraped),
        ('Enriched', enriched),
        ('Contacted', contacted),
        ('Responded', responded),
    ])

    logger.info(
        f"Funnel stats: {scraped} scraped -> {enriched} enriched -> "
        f"{contacted} contacted -> {responded} responded"
    )
    return FunnelStats(
        stages=stages,
        overall_conversion=overall_conversion(stages),
        total_at_top=scraped,
    )


def compute_heatmap_stats(
    window: TimeWindow,
    activity_type: ActivityType = ActivityType.BUSINESS_CREATED,
    records: Iterable[Record] = (),
    jobs: Iterable[JobEntry] = (),
    *,
    record_filter: Optional[RecordFilter] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> HeatmapStats:
    """
    Weekday x hour grid of one activity type inside `window`.

    Activity types:
        business_created: record creation times
        enrichments: enriched records by their last update (creation time
            when no update is recorded)
        scraping_jobs: scraping job start times
    """
    activity_type = ActivityType(activity_type)

    if activity_type is ActivityType.SCRAPING_JOBS:
        items = [job for job in jobs if window.contains(job.created_at)]
        timestamp_fn = lambda job: job.created_at
    elif activity_type is ActivityType.ENRICHMENTS:
        timestamp_fn = lambda record: record.updated_at or record.created_at
        items = [
            record for record in _apply_filter(records, record_filter)
            if record.is_enriched and window.contains(timestamp_fn(record))
        ]
    else:
        timestamp_fn = lambda record: record.created_at
        items = [
            record for record in _apply_filter(records, record_filter)
            if window.contains(record.created_at)
        ]

    grid = build_heatmap(items, timestamp_fn=timestamp_fn, timezone=timezone)

    logger.info(f"Heatmap stats: {len(items)} activities, max={grid.max_value}")
    return HeatmapStats(data=grid.cells, max_value=grid.max_value, activity_type=activity_type)


# =============================================================================
# Comparison & Ranking
# =============================================================================


def _dimension_segments(records: Sequence[Record], dimension: Dimension):
    """Every segment of `dimension` (count order) plus observed enriched counts."""
    sentinel = UNKNOWN_SOURCE if dimension is Dimension.SOURCE else UNKNOWN_LOCATION
    result = group_by(
        records,
        DIMENSION_KEYS[dimension],
        sentinel=sentinel,
        sum_fields={'enriched': lambda record: 1 if record.is_enriched else 0},
    )
    segments = [Segment(key=group.key, count=group.count) for group in result.groups]
    observed = {group.key: int(group.sums['enriched']) for group in result.groups}
    return segments, observed


def compute_comparison_stats(
    records: Iterable[Record],
    dimension: Dimension = Dimension.CITY,
    *,
    record_filter: Optional[RecordFilter] = None,
    limit: int = 10,
    enrichment_estimator: Optional[EnrichmentEstimator] = None,
    cost_estimator: Optional[CostEstimator] = None,
) -> ComparisonStats:
    """
    Compare the largest segments of a dimension.

    Args:
        records: Records to segment.
        dimension: city, industry or source.
        record_filter: Optional in-memory filter.
        limit: Number of segments returned (largest first).
        enrichment_estimator: fn(segment) -> enriched count. Defaults to the
            enriched count observed in the segment.
        cost_estimator: fn(segment) -> cost in USD. Defaults to 0 until spend
            is attributed per record.

    Returns:
        ComparisonStats; `total_segments` counts every segment, not only
        the returned ones.
    """
    dimension = Dimension(dimension)
    segments, observed = _dimension_segments(_apply_filter(records, record_filter), dimension)

    enriched_for = enrichment_estimator or (lambda segment: observed.get(segment.key, 0))
    cost_for = cost_estimator or (lambda segment: 0.0)

    rows: List[ComparisonSegment] = []
    for segment in segments[:max(limit, 0)]:
        enriched = int(enriched_for(segment))
        cost = float(cost_for(segment))
        rows.append(ComparisonSegment(
            segment=segment.key,
            total_businesses=segment.count,
            enriched_count=enriched,
            enrichment_rate=percentage_of(enriched, segment.count),
            total_cost=round2(cost),
            cost_per_lead=round2(safe_divide(cost, segment.count)),
        ))

    logger.info(f"Comparison stats by {dimension.value}: {len(rows)} segments")
    return ComparisonStats(dimension=dimension, segments=rows, total_segments=len(segments))


def compute_top_performers(
    records: Iterable[Record],
    metric: PerformerMetric = PerformerMetric.BUSINESSES,
    dimension: Dimension = Dimension.CITY,
    limit: int = 5,
    *,
    record_filter: Optional[RecordFilter] = None,
    enrichment_estimator: Optional[EnrichmentEstimator] = None,
    cost_estimator: Optional[CostEstimator] = None,
    trend_estimator: TrendEstimator = flat_trend,
    trend_threshold: float = 5.0,
) -> TopPerformers:
    """
    Rank the segments of a dimension by one metric.

    Metrics:
        businesses: segment size
        enriched: enriched count (observed, or from enrichment_estimator)
        cost_efficiency: lowest cost per lead first (from cost_estimator;
            with no estimator every segment ties and size order is kept)

    The trend of each performer is trend_estimator(segment), a percent
    change classified with classify_trend. The default estimator reports no
    change, so every trend is "stable".
    """
    metric = PerformerMetric(metric)
    dimension = Dimension(dimension)
    segments, observed = _dimension_segments(_apply_filter(records, record_filter), dimension)

    enriched_for = enrichment_estimator or (lambda segment: observed.get(segment.key, 0))
    cost_for = cost_estimator or (lambda segment: 0.0)

    if metric is PerformerMetric.ENRICHED:
        score = lambda segment: enriched_for(segment)
    elif metric is PerformerMetric.COST_EFFICIENCY:
        score = lambda segment: -safe_divide(cost_for(segment), segment.count)
    else:
        score = lambda segment: segment.count

    performers: List[TopPerformer] = []
    for ranked in rank_segments(segments, score, limit):
        enriched = int(enriched_for(ranked.segment))
        change = round1(trend_estimator(ranked.segment))
        performers.append(TopPerformer(
            rank=ranked.rank,
            name=ranked.key,
            total_businesses=ranked.count,
            enriched_count=enriched,
            enrichment_rate=percentage_of(enriched, ranked.count),
            change=change,
            trend=classify_trend(change, trend_threshold),
        ))

    logger.info(
        f"Top performers by {dimension.value}/{metric.value}: {len(performers)} entries"
    )
    return TopPerformers(
        metric=metric,
        dimension=dimension,
        performers=performers,
        total_segments=len(segments),
    )


# =============================================================================
# Cost Analysis
# =============================================================================


def _breakdown_item(name: str, cost: float, operations: int, total_cost: float) -> CostBreakdownItem:
    return CostBreakdownItem(
        name=name,
        cost=round2(cost),
        operations=operations,
        cost_per_operation=round_to(safe_divide(cost, operations), 3),
        percentage=percentage_of(cost, total_cost),
    )


def compute_cost_analysis(
    window: TimeWindow,
    jobs: Iterable[JobEntry],
    costs: Iterable[CostEntry],
    total_leads: int,
    grouping: CostGrouping = CostGrouping.SERVICE,
    *,
    monthly_budget: float = 500.0,
    now: Optional[datetime] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> CostAnalysis:
    """
    Spend breakdown, optional time series and budget status.

    The breakdown always starts with the Apify scraping row, followed by one
    row per API service (or per operation type when grouping is
    "operation"), largest operation count first. daily/weekly/monthly
    groupings add a per-period cost series with a per-service breakdown.

    Budget status projects the window's total spend over the current billing
    month (calendar month of `now` in `timezone`) with project_spend.

    Args:
        window: Reporting window.
        jobs: Scraping jobs (Apify spend).
        costs: API cost log entries.
        total_leads: Records matching the dashboard filter, for cost per lead.
        grouping: Breakdown key and optional time series period.
        monthly_budget: Monthly spend ceiling (USD).
        now: Reference instant for the billing month (default: now).
        timezone: Timezone defining calendar days and months.

    Raises:
        InvalidInputError: If monthly_budget is not positive.
    """
    grouping = CostGrouping(grouping)
    window_jobs = [job for job in jobs if window.contains(job.created_at)]
    window_costs = [entry for entry in costs if window.contains(entry.created_at)]

    apify_cost = sum(job.apify_cost for job in window_jobs)
    total_cost = apify_cost + sum(entry.cost_usd for entry in window_costs)

    if grouping is CostGrouping.OPERATION:
        key_fn = lambda entry: entry.operation_type
        display: Callable[[str], str] = lambda key: key
    else:
        key_fn = lambda entry: entry.service
        display = lambda key: SERVICE_DISPLAY_NAMES.get(key, key)

    groups = group_by(
        window_costs,
        key_fn,
        sentinel=UNKNOWN_SOURCE,
        sum_fields={'cost': lambda entry: entry.cost_usd},
    ).groups

    breakdown = [_breakdown_item(APIFY_DISPLAY_NAME, apify_cost, len(window_jobs), total_cost)]
    breakdown.extend(
        _breakdown_item(display(group.key), group.sums['cost'], group.count, total_cost)
        for group in groups
    )

    time_series = None
    if grouping in (CostGrouping.DAILY, CostGrouping.WEEKLY, CostGrouping.MONTHLY):
        time_series = compute_cost_series(window, window_jobs, window_costs, grouping, timezone)

    day_of_month, days_in_month = billing_period_position(now, timezone)
    projection = project_spend(total_cost, day_of_month, days_in_month, monthly_budget)

    budget_status = BudgetStatus(
        monthly_budget=monthly_budget,
        current_spend=round2(total_cost),
        remaining=round2(monthly_budget - total_cost),
        percent_used=projection.percent_used,
        projected_spend=projection.projected,
        on_track=projection.on_track,
    )

    avg_cost_per_lead = round_to(safe_divide(total_cost, total_leads), 3)

    logger.info(f"Cost analysis: ${total_cost:.2f} total, ${avg_cost_per_lead} per lead")
    return CostAnalysis(
        grouping=grouping,
        total_cost=round2(total_cost),
        breakdown=breakdown,
        time_series=time_series,
        budget_status=budget_status,
        avg_cost_per_lead=avg_cost_per_lead,
        total_leads=total_leads,
        window=window,
    )


# =============================================================================
# Filter Options
# =============================================================================


def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    return sorted({value for value in values if value})


def compute_filter_options(
    records: Iterable[Record],
    *,
    timezone: str = DEFAULT_TIMEZONE,
) -> FilterOptions:
    """Distinct filter values and the local date range of all records."""
    records = list(records)
    zone = get_zone(timezone)

    if records:
        created = [record.created_at for record in records]
        date_range = DateBounds(
            earliest=min(created).astimezone(zone).date(),
            latest=max(created).astimezone(zone).date(),
        )
    else:
        date_range = DateBounds()

    options = FilterOptions(
        cities=_distinct(record.city for record in records),
        industries=_distinct(record.industry for record in records),
        enrichment_statuses=_distinct(record.enrichment_status for record in records),
        sources=_distinct(record.source for record in records),
        date_range=date_range,
        total_records=len(records),
    )

    logger.info(
        f"Filter options: {len(options.cities)} cities, "
        f"{len(options.industries)} industries, {options.total_records} records"
    )
    return options
