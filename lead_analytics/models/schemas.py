"""
Pydantic models for the Lead Analytics engine.

This module defines three families of models:

- Input rows supplied by the record query collaborator (Record, CostEntry,
  JobEntry) plus the RecordFilter predicate. Inputs are frozen: the engine
  never mutates them.
- Engine value objects (TimeWindow, Bucket, GroupStat, FunnelStage,
  HeatmapCell, BudgetProjection, Segment, RankedSegment).
- One result model per dashboard view (LocationStats ... FilterOptions).

Python attributes are snake_case. Every model carries a camelCase alias
generator so that FastAPI responses keep the dashboard's wire contract
(`createdAt`, `conversionRate`, `maxValue`, ...). Models accept either form
on input.

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from lead_analytics.core.clock import ensure_utc
from lead_analytics.core.errors import InvalidRangeError
from lead_analytics.models.enums import (
    ActivityType,
    CostGrouping,
    Dimension,
    EnrichmentStatus,
    Granularity,
    PerformerMetric,
    Trend,
)


class AnalyticsModel(BaseModel):
    """Base model: camelCase aliases, population by field name allowed."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenModel(AnalyticsModel):
    """Base for read-only input rows."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# =============================================================================
# Input Rows (supplied by the record query collaborator)
# =============================================================================


class Record(FrozenModel):
    """
    A scraped/enriched business record.

    Only the fields the analytics engine reads are modelled. `source` and the
    categorical fields may be missing; aggregation maps missing keys to a
    sentinel label instead of dropping the record.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "example": {
                "id": 42,
                "createdAt": "2025-01-15T14:30:00Z",
                "updatedAt": "2025-01-16T09:00:00Z",
                "city": "Freehold",
                "industry": "plumbing",
                "source": "google_maps",
                "enrichmentStatus": "enriched",
            }
        },
    )

    id: Union[int, str]
    created_at: datetime
    updated_at: Optional[datetime] = None
    city: Optional[str] = None
    industry: Optional[str] = None
    source: Optional[str] = None
    enrichment_status: str = EnrichmentStatus.PENDING.value

    @field_validator('created_at', 'updated_at')
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @field_validator('enrichment_status', mode='before')
    @classmethod
    def _status_value(cls, value):
        # Store the plain string so set lookups hash like the raw column value
        return value.value if isinstance(value, EnrichmentStatus) else value

    @property
    def is_enriched(self) -> bool:
        return self.enrichment_status == EnrichmentStatus.ENRICHED.value


class CostEntry(FrozenModel):
    """One external API call recorded in the cost log (Hunter.io, AbstractAPI, ...)."""
    created_at: datetime
    service: str
    operation_type: str = "unknown"
    cost_usd: float = 0.0

    @field_validator('created_at')
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class JobEntry(FrozenModel):
    """One Google Maps scraping job run through Apify."""
    created_at: datetime
    status: str
    businesses_found: int = 0
    businesses_saved: int = 0
    apify_cost: float = 0.0

    @field_validator('created_at')
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


# =============================================================================
# Time Windows
# =============================================================================


class TimeWindow(FrozenModel):
    """
    Half-open interval [start, end) of aware UTC instants.

    Construction fails with InvalidRangeError unless start < end.
    """
    start: datetime
    end: datetime

    @field_validator('start', 'end')
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode='after')
    def _check_order(self) -> 'TimeWindow':
        if self.start >= self.end:
            raise InvalidRangeError(self.start, self.end)
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= ensure_utc(instant) < self.end


class RecordFilter(AnalyticsModel):
    """
    Multi-select record filter.

    A field left as None places no constraint. A list constrains the field to
    its members, so an empty list matches nothing. The storage layer turns
    this into query clauses (see lead_analytics.sql.record_queries); the
    engine only ever uses `matches` on rows already in memory.
    """
    cities: Optional[List[str]] = None
    industries: Optional[List[str]] = None
    enrichment_statuses: Optional[List[EnrichmentStatus]] = None
    sources: Optional[List[str]] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator('start', 'end')
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    def matches(self, record: Record) -> bool:
        if self.cities is not None and record.city not in self.cities:
            return False
        if self.industries is not None and record.industry not in self.industries:
            return False
        if self.sources is not None and record.source not in self.sources:
            return False
        if self.enrichment_statuses is not None and record.enrichment_status not in {
            status.value for status in self.enrichment_statuses
        }:
            return False
        if self.start is not None and record.created_at < self.start:
            return False
        if self.end is not None and record.created_at >= self.end:
            return False
        return True

    def with_status(self, status: EnrichmentStatus) -> 'RecordFilter':
        """Narrow the filter to one enrichment status (intersection, not override)."""
        if self.enrichment_statuses is None or status in self.enrichment_statuses:
            statuses = [status]
        else:
            statuses = []
        return self.model_copy(update={'enrichment_statuses': statuses})

    def with_window(self, window: TimeWindow) -> 'RecordFilter':
        return self.model_copy(update={'start': window.start, 'end': window.end})


# =============================================================================
# Engine Value Objects
# =============================================================================


class Bucket(AnalyticsModel):
    """Fixed-width half-open time bucket of a growth series."""
    label: str
    range_start: datetime
    range_end: datetime
    total: int = 0
    enriched: int = 0


class Segment(AnalyticsModel):
    """A named population slice with its size."""
    key: str
    count: int


class GroupStat(Segment):
    """
    One group produced by the aggregation engine.

    `percentage` is relative to the untruncated total of the grouping call.
    `sums` holds the per-group accumulations requested through `sum_fields`.
    """
    sums: Dict[str, float] = Field(default_factory=dict)
    percentage: float = 0.0


class GroupingResult(AnalyticsModel):
    groups: List[GroupStat]
    total: int


class RankedSegment(AnalyticsModel):
    rank: int
    key: str
    count: int
    score: float
    segment: Segment


class FunnelStage(AnalyticsModel):
    name: str
    count: int
    conversion_rate: float
    drop_off: int


class HeatmapCell(AnalyticsModel):
    weekday: int = Field(..., ge=0, le=6, description="0 = Sunday")
    hour: int = Field(..., ge=0, le=23)
    count: int
    intensity: float = Field(..., ge=0.0, le=1.0)


class HeatmapGrid(AnalyticsModel):
    cells: List[HeatmapCell]
    max_value: int


class BudgetProjection(AnalyticsModel):
    """Linear month-end spend projection. Not a forecast."""
    budget: float
    spend_to_date: float
    projected: float
    remaining: float
    percent_used: float
    on_track: bool


# =============================================================================
# Dashboard View Results
# =============================================================================


class LocationItem(AnalyticsModel):
    city: str
    count: int
    percentage: float


class LocationStats(AnalyticsModel):
    locations: List[LocationItem]
    total: int


class SourceItem(AnalyticsModel):
    source: str
    count: int
    percentage: float


class SourceStats(AnalyticsModel):
    sources: List[SourceItem]
    total: int


class PipelineStage(AnalyticsModel):
    stage: str
    count: int
    percentage: float


class PipelineStats(AnalyticsModel):
    stages: List[PipelineStage]
    total: int


class GrowthDataPoint(AnalyticsModel):
    period: str
    businesses: int
    enriched: int
    range_start: datetime
    range_end: datetime


class GrowthStats(AnalyticsModel):
    granularity: Granularity
    data: List[GrowthDataPoint]
    total: int
    enrichment_rate: float


class DashboardMetric(AnalyticsModel):
    key: str
    name: str
    value: Union[int, float]
    change: float
    sparkline: List[Union[int, float]]


class DashboardOverview(AnalyticsModel):
    metrics: List[DashboardMetric]
    window: TimeWindow
    previous_window: TimeWindow


class SourceBreakdownItem(AnalyticsModel):
    source: str
    searches: Optional[int] = None
    businesses: Optional[int] = None
    contacts_found: Optional[int] = None
    cost: float = 0.0
    success_rate: Optional[float] = None


class SourceBreakdown(AnalyticsModel):
    sources: List[SourceBreakdownItem]
    total: float


class DailyMetric(AnalyticsModel):
    date: DateType
    searches: int
    businesses_found: int
    enriched: int
    cost: float


class Timeline(AnalyticsModel):
    data: List[DailyMetric]
    window: TimeWindow


class FunnelStats(AnalyticsModel):
    stages: List[FunnelStage]
    overall_conversion: float
    total_at_top: int


class HeatmapStats(AnalyticsModel):
    data: List[HeatmapCell]
    max_value: int
    activity_type: ActivityType


class ComparisonSegment(AnalyticsModel):
    segment: str
    total_businesses: int
    enriched_count: int
    enrichment_rate: float
    total_cost: float
    cost_per_lead: float


class ComparisonStats(AnalyticsModel):
    dimension: Dimension
    segments: List[ComparisonSegment]
    total_segments: int


class TopPerformer(AnalyticsModel):
    rank: int
    name: str
    total_businesses: int
    enriched_count: int
    enrichment_rate: float
    change: float
    trend: Trend


class TopPerformers(AnalyticsModel):
    metric: PerformerMetric
    dimension: Dimension
    performers: List[TopPerformer]
    total_segments: int


class CostBreakdownItem(AnalyticsModel):
    name: str
    cost: float
    operations: int
    cost_per_operation: float
    percentage: float


class CostTimeSeriesPoint(AnalyticsModel):
    period: str
    cost: float
    breakdown: Dict[str, float]


class BudgetStatus(AnalyticsModel):
    monthly_budget: float
    current_spend: float
    remaining: float
    percent_used: float
    projected_spend: float
    on_track: bool


class CostAnalysis(AnalyticsModel):
    grouping: CostGrouping
    total_cost: float
    breakdown: List[CostBreakdownItem]
    time_series: Optional[List[CostTimeSeriesPoint]] = None
    budget_status: BudgetStatus
    avg_cost_per_lead: float
    total_leads: int
    window: TimeWindow


class DateBounds(AnalyticsModel):
    earliest: Optional[DateType] = None
    latest: Optional[DateType] = None


class FilterOptions(AnalyticsModel):
    cities: List[str]
    industries: List[str]
    enrichment_statuses: List[str]
    sources: List[str]
    date_range: DateBounds
    total_records: int
