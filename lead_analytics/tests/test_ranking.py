"""
Test suite for segment ranking and estimators.
"""

from lead_analytics.models import Segment, Trend
from lead_analytics.services.ranking import (
    classify_trend,
    flat_trend,
    proportional_enrichment,
    rank_segments,
)


SEGMENTS = [
    Segment(key="Freehold", count=3),
    Segment(key="Manalapan", count=2),
    Segment(key="Marlboro", count=2),
    Segment(key="Howell", count=5),
]


class TestRankSegments:

    def test_orders_by_metric_descending(self) -> None:
        ranked = rank_segments(SEGMENTS, lambda s: s.count, limit=10)

        assert [r.key for r in ranked] == ["Howell", "Freehold", "Manalapan", "Marlboro"]
        assert [r.rank for r in ranked] == [1, 2, 3, 4]
        assert ranked[0].score == 5.0

    def test_ties_keep_input_order(self) -> None:
        ranked = rank_segments(SEGMENTS, lambda s: 1.0, limit=4)
        assert [r.key for r in ranked] == [s.key for s in SEGMENTS]

    def test_limit_truncates(self) -> None:
        ranked = rank_segments(SEGMENTS, lambda s: s.count, limit=2)
        assert [r.key for r in ranked] == ["Howell", "Freehold"]

    def test_non_positive_limit_is_empty(self) -> None:
        assert rank_segments(SEGMENTS, lambda s: s.count, limit=0) == []
        assert rank_segments(SEGMENTS, lambda s: s.count, limit=-3) == []

    def test_empty_segments(self) -> None:
        assert rank_segments([], lambda s: s.count, limit=5) == []

    def test_ranked_segment_keeps_original(self) -> None:
        ranked = rank_segments(SEGMENTS, lambda s: -s.count, limit=1)

        assert ranked[0].key == "Manalapan"
        assert ranked[0].segment == SEGMENTS[1]


class TestEstimators:

    def test_proportional_enrichment_rounds_half_up(self) -> None:
        estimate = proportional_enrichment(0.5)

        assert estimate(Segment(key="a", count=3)) == 2
        assert estimate(Segment(key="b", count=4)) == 2
        assert estimate(Segment(key="c", count=0)) == 0

    def test_flat_trend(self) -> None:
        assert flat_trend(SEGMENTS[0]) == 0.0


class TestClassifyTrend:

    def test_thresholds(self) -> None:
        assert classify_trend(5.1) == Trend.UP
        assert classify_trend(-5.1) == Trend.DOWN
        assert classify_trend(5.0) == Trend.STABLE
        assert classify_trend(-5.0) == Trend.STABLE
        assert classify_trend(0.0) == Trend.STABLE

    def test_custom_threshold(self) -> None:
        assert classify_trend(3.0, threshold=2.0) == Trend.UP
