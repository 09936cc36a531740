"""
Segment ranking and the estimators used beside it.

rank_segments only orders and truncates: it never estimates. Wherever
per-segment data is missing (enriched counts, trend deltas), the caller
passes an estimator into the metric function, so ranking logic can be
tested in isolation from estimation policy.

Estimators:
- proportional_enrichment: allocate an overall enrichment rate to a segment
- flat_trend: trend estimator reporting no change (default, deterministic)
- classify_trend: map a percent change to up / down / stable
"""

from typing import Callable, List, Sequence

from lead_analytics.models.enums import Trend
from lead_analytics.models.schemas import RankedSegment, Segment
from lead_analytics.services.metrics import round_half_up


MetricFn = Callable[[Segment], float]
EnrichmentEstimator = Callable[[Segment], int]
TrendEstimator = Callable[[Segment], float]


def rank_segments(
    segments: Sequence[Segment],
    metric: MetricFn,
    limit: int,
) -> List[RankedSegment]:
    """
    Order segments by `metric` descending and keep the first `limit`.

    Ties keep the input order. A non-positive limit returns an empty list.

    Example:
        >>> ranked = rank_segments(segments, lambda s: s.count, limit=3)
        >>> [r.rank for r in ranked]
        [1, 2, 3]
    """
    if limit <= 0:
        return []

    scored = [(metric(segment), segment) for segment in segments]
    scored.sort(key=lambda pair: pair[0], reverse=True)

    return [
        RankedSegment(
            rank=position,
            key=segment.key,
            count=segment.count,
            score=float(score),
            segment=segment,
        )
        for position, (score, segment) in enumerate(scored[:limit], start=1)
    ]


def proportional_enrichment(overall_rate: float) -> EnrichmentEstimator:
    """
    Estimator assigning each segment the overall enrichment rate.

    Args:
        overall_rate: Enriched / total over the whole population (0..1).

    Returns:
        fn(segment) -> round_half_up(segment.count * overall_rate)
    """
    def estimate(segment: Segment) -> int:
        return round_half_up(segment.count * overall_rate)
    return estimate


def flat_trend(segment: Segment) -> float:
    return 0.0


def classify_trend(change: float, threshold: float = 5.0) -> Trend:
    """Up above +threshold, down below -threshold, otherwise stable."""
    if change > threshold:
        return Trend.UP
    if change < -threshold:
        return Trend.DOWN
    return Trend.STABLE
