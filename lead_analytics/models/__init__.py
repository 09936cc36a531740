"""
Package initialization file for the Lead Analytics models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from lead_analytics.models directly:

    from lead_analytics.models import (
        Record,
        RecordFilter,
        TimeWindow,
        Granularity,
        LocationStats,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from lead_analytics.models.enums import (
    ActivityType,
    CostGrouping,
    Dimension,
    EnrichmentStatus,
    Granularity,
    PerformerMetric,
    Trend,
)

# =============================================================================
# Schemas
# =============================================================================

from lead_analytics.models.schemas import (
    # Base classes
    AnalyticsModel,
    FrozenModel,
    # Input rows
    Record,
    CostEntry,
    JobEntry,
    # Windows and filters
    TimeWindow,
    RecordFilter,
    # Engine value objects
    Bucket,
    Segment,
    GroupStat,
    GroupingResult,
    RankedSegment,
    FunnelStage,
    HeatmapCell,
    HeatmapGrid,
    BudgetProjection,
    # View results
    LocationItem,
    LocationStats,
    SourceItem,
    SourceStats,
    PipelineStage,
    PipelineStats,
    GrowthDataPoint,
    GrowthStats,
    DashboardMetric,
    DashboardOverview,
    SourceBreakdownItem,
    SourceBreakdown,
    DailyMetric,
    Timeline,
    FunnelStats,
    HeatmapStats,
    ComparisonSegment,
    ComparisonStats,
    TopPerformer,
    TopPerformers,
    CostBreakdownItem,
    CostTimeSeriesPoint,
    BudgetStatus,
    CostAnalysis,
    DateBounds,
    FilterOptions,
)

__all__ = [
    # Enums
    "ActivityType",
    "CostGrouping",
    "Dimension",
    "EnrichmentStatus",
    "Granularity",
    "PerformerMetric",
    "Trend",
    # Base classes
    "AnalyticsModel",
    "FrozenModel",
    # Input rows
    "Record",
    "CostEntry",
    "JobEntry",
    # Windows and filters
    "TimeWindow",
    "RecordFilter",
    # Engine value objects
    "Bucket",
    "Segment",
    "GroupStat",
    "GroupingResult",
    "RankedSegment",
    "FunnelStage",
    "HeatmapCell",
    "HeatmapGrid",
    "BudgetProjection",
    # View results
    "LocationItem",
    "LocationStats",
    "SourceItem",
    "SourceStats",
    "PipelineStage",
    "PipelineStats",
    "GrowthDataPoint",
    "GrowthStats",
    "DashboardMetric",
    "DashboardOverview",
    "SourceBreakdownItem",
    "SourceBreakdown",
    "DailyMetric",
    "Timeline",
    "FunnelStats",
    "HeatmapStats",
    "ComparisonSegment",
    "ComparisonStats",
    "TopPerformer",
    "TopPerformers",
    "CostBreakdownItem",
    "CostTimeSeriesPoint",
    "BudgetStatus",
    "CostAnalysis",
    "DateBounds",
    "FilterOptions",
]
