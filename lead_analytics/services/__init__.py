"""
Lead Analytics Services Module

Stateless computation services for the lead analytics dashboard. Every
function except the record source is pure: it takes already-fetched rows and
returns new result models.

Services:
- metrics: Rounding, percentage and period-over-period change policies
- time_range: Default windows and the symmetric previous period
- bucketing: Fixed-width growth buckets with timezone-fixed labels
- aggregation: Single-pass group-by with top-N and sentinel keys
- funnel: Ordered conversion funnel
- heatmap: Weekday x hour activity grid (numpy)
- cost: Linear month-end budget projection
- ranking: Segment ranking and estimators
- timeline: Calendar-day and period series (pandas)
- dashboard: One view function per dashboard panel
- record_source: RecordSource protocol and the asyncpg implementation

All services are consumed by the API layer (lead_analytics/api/).
"""

# =============================================================================
# Numeric Policies & Time Ranges
# =============================================================================

from lead_analytics.services.metrics import (
    percent_change,
    percentage_of,
    round1,
    round2,
    round_half_up,
    round_to,
    safe_divide,
)
from lead_analytics.services.time_range import (
    DEFAULT_WINDOW_DAYS,
    previous_period,
    resolve_time_range,
    trailing_window,
)

# =============================================================================
# Engine Components
# =============================================================================

from lead_analytics.services.bucketing import (
    BUCKET_LAYOUT,
    bucket_span,
    bucketize,
    format_bucket_label,
    generate_buckets,
)
from lead_analytics.services.aggregation import (
    DIMENSION_KEYS,
    PIPELINE_STAGE_LABELS,
    group_by,
    group_records,
    stage_label,
)
from lead_analytics.services.funnel import compute_funnel, overall_conversion
from lead_analytics.services.heatmap import build_heatmap
from lead_analytics.services.cost import billing_period_position, project_spend
from lead_analytics.services.ranking import (
    classify_trend,
    flat_trend,
    proportional_enrichment,
    rank_segments,
)
from lead_analytics.services.timeline import compute_cost_series, compute_daily_metrics

# =============================================================================
# Dashboard Views
# =============================================================================

from lead_analytics.services.dashboard import (
    ActivitySnapshot,
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

# =============================================================================
# Record Source
# =============================================================================

from lead_analytics.services.record_source import PostgresRecordSource, RecordSource


__all__ = [
    # metrics
    "percent_change",
    "percentage_of",
    "round1",
    "round2",
    "round_half_up",
    "round_to",
    "safe_divide",
    # time_range
    "DEFAULT_WINDOW_DAYS",
    "previous_period",
    "resolve_time_range",
    "trailing_window",
    # bucketing
    "BUCKET_LAYOUT",
    "bucket_span",
    "bucketize",
    "format_bucket_label",
    "generate_buckets",
    # aggregation
    "DIMENSION_KEYS",
    "PIPELINE_STAGE_LABELS",
    "group_by",
    "group_records",
    "stage_label",
    # funnel / heatmap / cost / ranking
    "compute_funnel",
    "overall_conversion",
    "build_heatmap",
    "billing_period_position",
    "project_spend",
    "classify_trend",
    "flat_trend",
    "proportional_enrichment",
    "rank_segments",
    # timeline
    "compute_cost_series",
    "compute_daily_metrics",
    # dashboard
    "ActivitySnapshot",
    "compute_comparison_stats",
    "compute_cost_analysis",
    "compute_dashboard_overview",
    "compute_filter_options",
    "compute_funnel_stats",
    "compute_growth_series",
    "compute_heatmap_stats",
    "compute_location_stats",
    "compute_pipeline_stats",
    "compute_source_breakdown",
    "compute_source_stats",
    "compute_timeline",
    "compute_top_performers",
    "overview_fetch_window",
    "typical_success_rates",
    # record source
    "PostgresRecordSource",
    "RecordSource",
]
