"""
Single-pass group-by aggregation for the categorical dashboard views.

This module groups a flat collection of rows by a caller-supplied key and
produces per-group counts, percentages of the full total, and optional
per-group numeric sums, all in one traversal.

Ordering:
    Groups are sorted by count descending. Ties keep the order in which the
    keys were first seen (Python's sort is stable, and dict preserves
    insertion order).

Top-N Truncation:
    `top_n` truncates the group list only. `total` is always the full row
    count and every percentage is computed against it, so "top 10 cities"
    still reports each city's share of all cities.

Missing Keys:
    None or empty-string keys map to a caller-specified sentinel ("Unknown"
    for location, "unknown" for source). Every row lands in exactly one group.

Key Functions:
- group_by: The aggregation engine entry point
- DIMENSION_KEYS: Key functions for the city / industry / source dimensions
- PIPELINE_STAGE_LABELS: Immutable status -> stage label table
- stage_label: Look up a pipeline label, falling back to the raw status
"""

from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from lead_analytics.models.enums import Dimension, EnrichmentStatus
from lead_analytics.models.schemas import GroupingResult, GroupStat, Record
from lead_analytics.services.metrics import percentage_of


UNKNOWN_LOCATION: str = "Unknown"
UNKNOWN_SOURCE: str = "unknown"

KeyFn = Callable[[Any], Optional[str]]
SumFn = Callable[[Any], float]


# Pipeline stage display labels keyed by enrichment status value
PIPELINE_STAGE_LABELS: Mapping[str, str] = MappingProxyType({
    EnrichmentStatus.PENDING.value: "New Leads",
    EnrichmentStatus.ENRICHED.value: "Qualified",
    EnrichmentStatus.FAILED.value: "Needs Review",
})


DIMENSION_KEYS: Mapping[Dimension, KeyFn] = MappingProxyType({
    Dimension.CITY: lambda record: record.city,
    Dimension.INDUSTRY: lambda record: record.industry,
    Dimension.SOURCE: lambda record: record.source,
})


def stage_label(status: str, labels: Mapping[str, str] = PIPELINE_STAGE_LABELS) -> str:
    """Display label for an enrichment status; unknown statuses keep their raw value."""
    return labels.get(status, status)


def group_by(
    items: Iterable[Any],
    key_fn: KeyFn,
    *,
    sentinel: str = UNKNOWN_LOCATION,
    top_n: Optional[int] = None,
    sum_fields: Optional[Mapping[str, SumFn]] = None,
) -> GroupingResult:
    """
    Group `items` by `key_fn` and compute counts, percentages and sums.

    Args:
        items: Rows to group (records, cost entries, ...). Not mutated.
        key_fn: Returns the grouping key of a row; None/"" maps to `sentinel`.
        sentinel: Label for rows with a missing key.
        top_n: Keep only the first N groups after sorting (None keeps all).
        sum_fields: Mapping of output name -> fn(row) accumulated per group.

    Returns:
        GroupingResult with groups sorted by count descending and the
        untruncated total.

    Example:
        >>> result = group_by(records, lambda r: r.city, top_n=10)
        >>> result.groups[0].key, result.groups[0].percentage
        ('Freehold', 42.5)
    """
    sum_fields = sum_fields or {}
    counts: Dict[str, int] = {}
    sums: Dict[str, Dict[str, float]] = {}
    total = 0

    for item in items:
        key = key_fn(item)
        if key is None or key == "":
            key = sentinel
        key = str(key)

        if key not in counts:
            counts[key] = 0
            sums[key] = {name: 0.0 for name in sum_fields}
        counts[key] += 1
        total += 1

        group_sums = sums[key]
        for name, fn in sum_fields.items():
            value = fn(item)
            if value:
                group_sums[name] += float(value)

    ordered = sorted(counts.items(), key=lambda pair: pair[1], reverse=True)
    if top_n is not None:
        ordered = ordered[:max(top_n, 0)]

    groups = [
        GroupStat(
            key=key,
            count=count,
            sums=sums[key],
            percentage=percentage_of(count, total),
        )
        for key, count in ordered
    ]

    return GroupingResult(groups=groups, total=total)


def group_records(
    records: Iterable[Record],
    dimension: Dimension,
    *,
    top_n: Optional[int] = None,
) -> GroupingResult:
    """Group records by a named dimension with the dimension's sentinel."""
    dimension = Dimension(dimension)
    sentinel = UNKNOWN_SOURCE if dimension is Dimension.SOURCE else UNKNOWN_LOCATION
    return group_by(records, DIMENSION_KEYS[dimension], sentinel=sentinel, top_n=top_n)
