"""
Test suite for the single-pass group-by engine.

Verifies:
1. Counts, percentages and the untruncated total
2. Stable ordering of ties by first appearance
3. Sentinel mapping of missing keys
4. Per-group numeric sums
"""

from types import SimpleNamespace

import pytest

from lead_analytics.models import Dimension
from lead_analytics.services.aggregation import (
    PIPELINE_STAGE_LABELS,
    UNKNOWN_LOCATION,
    UNKNOWN_SOURCE,
    group_by,
    group_records,
    stage_label,
)


def rows(*cities):
    return [SimpleNamespace(city=city) for city in cities]


class TestGroupBy:

    def test_counts_and_percentages(self) -> None:
        result = group_by(rows("A", "A", "B", None), lambda row: row.city, sentinel="Unknown")

        assert result.total == 4
        assert [(g.key, g.count, g.percentage) for g in result.groups] == [
            ("A", 2, 50.0),
            ("B", 1, 25.0),
            ("Unknown", 1, 25.0),
        ]

    def test_ties_keep_first_seen_order(self) -> None:
        result = group_by(rows("C", "B", "A", "B", "C"), lambda row: row.city)

        assert [g.key for g in result.groups] == ["C", "B", "A"]

    def test_counts_are_conserved(self) -> None:
        items = rows("A", "", None, "B", "A", "C", None)

        result = group_by(items, lambda row: row.city)

        assert sum(g.count for g in result.groups) == result.total == len(items)

    @pytest.mark.parametrize("group_count", [2, 3, 4, 7, 8])
    def test_percentages_sum_to_100(self, group_count: int) -> None:
        items = [SimpleNamespace(city=f"city-{i}") for i in range(group_count)]

        result = group_by(items, lambda row: row.city)

        total = sum(g.percentage for g in result.groups)
        assert abs(total - 100.0) <= 0.1 + 1e-9

    def test_mixed_group_percentages_sum_to_100(self) -> None:
        result = group_by(rows("A", "A", "B", None), lambda row: row.city)

        assert sum(g.percentage for g in result.groups) == 100.0

    def test_per_group_rounding_wins_over_sum_tolerance(self) -> None:
        """Six equal groups round to 16.7 each, so the shares add up to 100.2."""
        items = [SimpleNamespace(city=f"city-{i}") for i in range(6)]

        result = group_by(items, lambda row: row.city)

        assert [g.percentage for g in result.groups] == [16.7] * 6
        assert sum(g.percentage for g in result.groups) == pytest.approx(100.2)

    def test_empty_string_maps_to_sentinel(self) -> None:
        result = group_by(rows("", None), lambda row: row.city, sentinel=UNKNOWN_SOURCE)

        assert len(result.groups) == 1
        assert result.groups[0].key == "unknown"
        assert result.groups[0].count == 2

    def test_top_n_truncates_groups_only(self) -> None:
        items = rows("A", "A", "A", "B", "B", "C")

        full = group_by(items, lambda row: row.city)
        top = group_by(items, lambda row: row.city, top_n=2)

        assert [g.key for g in top.groups] == ["A", "B"]
        assert top.total == 6
        assert [g.percentage for g in top.groups] == [g.percentage for g in full.groups[:2]]

    def test_top_n_zero_keeps_no_groups(self) -> None:
        result = group_by(rows("A"), lambda row: row.city, top_n=0)
        assert result.groups == []
        assert result.total == 1

    def test_empty_input(self) -> None:
        result = group_by([], lambda row: row.city)
        assert result.groups == []
        assert result.total == 0

    def test_sum_fields_accumulate_per_group(self) -> None:
        entries = [
            SimpleNamespace(service="hunter", cost=0.25),
            SimpleNamespace(service="abstract", cost=0.10),
            SimpleNamespace(service="hunter", cost=0.50),
            SimpleNamespace(service="hunter", cost=None),
        ]

        result = group_by(
            entries,
            lambda entry: entry.service,
            sum_fields={"cost": lambda entry: entry.cost},
        )

        by_key = {g.key: g for g in result.groups}
        assert by_key["hunter"].count == 3
        assert by_key["hunter"].sums["cost"] == pytest.approx(0.75)
        assert by_key["abstract"].sums["cost"] == pytest.approx(0.10)


class TestGroupRecords:

    def test_city_dimension(self, sample_records) -> None:
        result = group_records(sample_records, Dimension.CITY)

        assert result.total == 7
        assert [(g.key, g.count) for g in result.groups] == [
            ("Freehold", 3),
            ("Manalapan", 2),
            ("Unknown", 1),
            ("Marlboro", 1),
        ]

    def test_source_dimension_uses_lowercase_sentinel(self, sample_records) -> None:
        result = group_records(sample_records, "source")

        keys = [g.key for g in result.groups]
        assert keys[0] == "google_maps"
        assert UNKNOWN_SOURCE in keys
        assert UNKNOWN_LOCATION not in keys


class TestStageLabels:

    def test_known_statuses(self) -> None:
        assert stage_label("pending") == "New Leads"
        assert stage_label("enriched") == "Qualified"
        assert stage_label("failed") == "Needs Review"

    def test_unknown_status_keeps_raw_value(self) -> None:
        assert stage_label("archived") == "archived"

    def test_custom_labels(self) -> None:
        assert stage_label("pending", {"pending": "Inbox"}) == "Inbox"

    def test_label_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            PIPELINE_STAGE_LABELS["pending"] = "Changed"
