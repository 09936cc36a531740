"""
Enumeration definitions for the Lead Analytics backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models and FastAPI query parameter parsing.
"""

from enum import Enum


class EnrichmentStatus(str, Enum):
    """
    Pipeline stage of a business record.

    - pending: New lead, enrichment not attempted yet
    - enriched: Contact data found
    - failed: Enrichment attempted and failed
    """
    PENDING = "pending"
    ENRICHED = "enriched"
    FAILED = "failed"


class Granularity(str, Enum):
    """
    Growth series period.

    Each value fixes both bucket count and bucket width:
    - week: 7 buckets of 1 day
    - month: 4 buckets of 7 days
    - quarter: 3 buckets of 30 days (fixed width, not calendar months)
    """
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


class Dimension(str, Enum):
    """Categorical record field used to segment comparisons and rankings."""
    CITY = "city"
    INDUSTRY = "industry"
    SOURCE = "source"


class PerformerMetric(str, Enum):
    """Metric used to order the top performers list."""
    BUSINESSES = "businesses"
    ENRICHED = "enriched"
    COST_EFFICIENCY = "cost_efficiency"


class ActivityType(str, Enum):
    """
    Activity plotted on the weekday x hour heatmap.

    - scraping_jobs: Scraping job start times
    - enrichments: Enriched records, by last update time
    - business_created: Record creation times
    """
    SCRAPING_JOBS = "scraping_jobs"
    ENRICHMENTS = "enrichments"
    BUSINESS_CREATED = "business_created"


class CostGrouping(str, Enum):
    """
    Grouping for the cost analysis view.

    service/operation select the breakdown key; daily/weekly/monthly
    additionally produce a cost time series at that period.
    """
    SERVICE = "service"
    OPERATION = "operation"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Trend(str, Enum):
    """Direction of a segment's period-over-period change."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"
