"""
Test suite for the analytics API endpoints.

Endpoints read from the in-memory sample source (see conftest.py) through
FastAPI dependency overrides. Window-based endpoints are called with an
explicit startDate/endDate matching the default 30-day window ending at the
sample anchor.

Verifies:
1. camelCase response contract of each view
2. AnalyticsError -> HTTP 400 with a structured code
3. Query validation -> HTTP 422
4. Unexpected failures -> HTTP 500
"""

import logging
from typing import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from lead_analytics.api.analytics import _split_values
from lead_analytics.core.dependencies import get_record_source
from lead_analytics.main import app
from lead_analytics.services.record_source import PostgresRecordSource
from lead_analytics.tests.conftest import FailingRecordSource


WINDOW = {
    "startDate": "2024-12-16T17:00:00Z",
    "endDate": "2025-01-15T17:00:00Z",
}


@pytest.fixture
def recent_client(api_client: TestClient, recent_source) -> TestClient:
    """Client reading sample rows anchored at the current time."""
    app.dependency_overrides[get_record_source] = lambda: recent_source
    return api_client


@pytest.fixture
def failing_client(api_client: TestClient) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_record_source] = lambda: FailingRecordSource()
    yield api_client


class TestSplitValues:

    def test_comma_separated_and_repeated(self) -> None:
        assert _split_values(["Freehold,Manalapan", "Marlboro"]) == [
            "Freehold", "Manalapan", "Marlboro",
        ]

    def test_blank_values_mean_no_constraint(self) -> None:
        assert _split_values(None) is None
        assert _split_values(["", " , "]) is None


class TestHealth:

    def test_health(self, api_client: TestClient) -> None:
        response = api_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, api_client: TestClient) -> None:
        assert api_client.get("/").json()["name"] == "Lead Analytics API"


class TestCategoricalEndpoints:

    def test_locations(self, api_client: TestClient) -> None:
        response = api_client.get("/analytics/locations")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 7
        assert body["locations"][0] == {"city": "Freehold", "count": 3, "percentage": 42.9}

    def test_locations_with_comma_separated_filter(self, api_client: TestClient) -> None:
        response = api_client.get("/analytics/locations", params={"cities": "Freehold,Manalapan"})

        assert response.json()["total"] == 5

    def test_sources(self, api_client: TestClient) -> None:
        body = api_client.get("/analytics/sources").json()

        assert body["sources"][0]["source"] == "google_maps"
        assert body["total"] == 7

    def test_pipeline_with_status_filter(self, api_client: TestClient) -> None:
        response = api_client.get(
            "/analytics/pipeline", params={"enrichmentStatus": "enriched,failed"}
        )

        body = response.json()
        assert body["total"] == 4
        assert [stage["stage"] for stage in body["stages"]] == ["Qualified", "Needs Review"]

    def test_filter_options(self, api_client: TestClient) -> None:
        body = api_client.get("/analytics/filter-options").json()

        assert body["cities"] == ["Freehold", "Manalapan", "Marlboro"]
        assert body["enrichmentStatuses"] == ["enriched", "failed", "pending"]
        assert body["dateRange"] == {"earliest": "2024-12-06", "latest": "2025-01-15"}
        assert body["totalRecords"] == 7


class TestTimeSeriesEndpoints:

    def test_growth_week(self, recent_client: TestClient) -> None:
        response = recent_client.get("/analytics/growth", params={"period": "week"})

        assert response.status_code == 200
        body = response.json()
        assert body["granularity"] == "week"
        assert len(body["data"]) == 7
        assert body["total"] == 4
        assert body["enrichmentRate"] == 50.0
        assert {"period", "businesses", "enriched", "rangeStart", "rangeEnd"} <= set(body["data"][0])

    def test_growth_rejects_unknown_period(self, api_client: TestClient) -> None:
        response = api_client.get("/analytics/growth", params={"period": "year"})
        assert response.status_code == 422

    def test_dashboard(self, api_client: TestClient) -> None:
        response = api_client.get("/analytics/dashboard", params=WINDOW)

        assert response.status_code == 200
        metrics = {metric["key"]: metric for metric in response.json()["metrics"]}
        assert metrics["total_searches"]["value"] == 3
        assert isinstance(metrics["total_searches"]["value"], int)
        assert metrics["total_searches"]["change"] == 200.0
        assert metrics["cost_per_lead"]["value"] == 0.78
        assert len(metrics["total_cost"]["sparkline"]) == 7

    def test_dashboard_invalid_range(self, api_client: TestClient) -> None:
        response = api_client.get(
            "/analytics/dashboard",
            params={"startDate": WINDOW["endDate"], "endDate": WINDOW["startDate"]},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_RANGE"

    def test_source_breakdown(self, api_client: TestClient) -> None:
        body = api_client.get("/analytics/source-breakdown", params=WINDOW).json()

        assert [row["source"] for row in body["sources"]] == [
            "Google Maps", "Hunter.io", "AbstractAPI", "Manual",
        ]
        assert body["sources"][1]["contactsFound"] == 2
        assert body["sources"][1]["successRate"] == 85.0
        assert body["total"] == 4.7

    def test_timeline(self, api_client: TestClient) -> None:
        body = api_client.get("/analytics/timeline", params=WINDOW).json()

        assert len(body["data"]) == 31
        last = body["data"][-1]
        assert last["date"] == "2025-01-15"
        assert last["businessesFound"] == 20
        assert last["cost"] == 1.75


class TestAdvancedEndpoints:

    def test_funnel(self, api_client: TestClient) -> None:
        body = api_client.get("/analytics/funnel").json()

        assert body["totalAtTop"] == 7
        assert body["stages"][1]["conversionRate"] == 42.9
        assert body["stages"][1]["dropOff"] == 4
        assert body["overallConversion"] == 0.0

    def test_heatmap(self, api_client: TestClient) -> None:
        response = api_client.get(
            "/analytics/heatmap", params={**WINDOW, "activityType": "enrichments"}
        )

        body = response.json()
        assert response.status_code == 200
        assert len(body["data"]) == 168
        assert body["maxValue"] == 2
        assert body["activityType"] == "enrichments"

    def test_heatmap_defaults_to_business_created(self, api_client: TestClient) -> None:
        body = api_client.get("/analytics/heatmap", params=WINDOW).json()

        assert body["activityType"] == "business_created"
        assert sum(cell["count"] for cell in body["data"]) == 6

    def test_comparison(self, api_client: TestClient) -> None:
        body = api_client.get("/analytics/comparison", params={"dimension": "city"}).json()

        assert body["dimension"] == "city"
        assert body["totalSegments"] == 4
        assert body["segments"][0]["segment"] == "Freehold"
        assert body["segments"][0]["enrichedCount"] == 2
        assert body["segments"][0]["enrichmentRate"] == 66.7

    def test_top_performers(self, api_client: TestClient) -> None:
        response = api_client.get(
            "/analytics/top-performers",
            params={"metric": "enriched", "dimension": "city", "limit": 2},
        )

        body = response.json()
        assert [p["name"] for p in body["performers"]] == ["Freehold", "Manalapan"]
        assert body["performers"][0]["trend"] == "stable"
        assert body["totalSegments"] == 4

    def test_top_performers_limit_above_maximum(self, api_client: TestClient) -> None:
        response = api_client.get("/analytics/top-performers", params={"limit": 21})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_INPUT"

    def test_top_performers_limit_zero(self, api_client: TestClient) -> None:
        response = api_client.get("/analytics/top-performers", params={"limit": 0})
        assert response.status_code == 422

    def test_cost_analysis(self, api_client: TestClient) -> None:
        body = api_client.get("/analytics/cost-analysis", params=WINDOW).json()

        assert body["grouping"] == "service"
        assert body["totalCost"] == 4.7
        assert body["totalLeads"] == 6
        assert body["avgCostPerLead"] == 0.783
        assert body["breakdown"][0]["name"] == "Google Maps (Apify)"
        assert body["timeSeries"] is None
        assert body["budgetStatus"]["monthlyBudget"] == 500.0
        assert body["budgetStatus"]["remaining"] == 495.3

    def test_cost_analysis_daily_series(self, api_client: TestClient) -> None:
        body = api_client.get(
            "/analytics/cost-analysis", params={**WINDOW, "groupBy": "daily"}
        ).json()

        assert len(body["timeSeries"]) == 31
        assert body["timeSeries"][-1]["period"] == "2025-01-15"


class TestErrorMapping:

    def test_unknown_enrichment_status(self, api_client: TestClient) -> None:
        response = api_client.get("/analytics/locations", params={"enrichmentStatus": "archived"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_INPUT"
        assert "pending" in body["details"]["allowed"]

    def test_source_failure_returns_500(self, failing_client: TestClient) -> None:
        response = failing_client.get("/analytics/locations")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to compute location stats"


class TestRecordSourceDependency:

    @pytest.mark.asyncio
    async def test_returns_postgres_source(self, monkeypatch, mock_db_pool) -> None:
        monkeypatch.setattr(
            "lead_analytics.core.dependencies.get_db_pool",
            AsyncMock(return_value=mock_db_pool),
        )

        source = await get_record_source()

        assert isinstance(source, PostgresRecordSource)
        assert source.pool is mock_db_pool

    @pytest.mark.asyncio
    async def test_missing_database_url_is_logged_503(self, monkeypatch, caplog) -> None:
        monkeypatch.setattr(
            "lead_analytics.core.dependencies.get_db_pool",
            AsyncMock(side_effect=RuntimeError("DATABASE_URL is not configured")),
        )

        with caplog.at_level(logging.ERROR, logger="lead_analytics.core.dependencies"):
            with pytest.raises(HTTPException) as exc_info:
                await get_record_source()

        assert exc_info.value.status_code == 503
        assert "DATABASE_URL is not configured" in caplog.text

    def test_endpoint_without_database(self, api_client: TestClient, monkeypatch) -> None:
        app.dependency_overrides.pop(get_record_source)
        monkeypatch.setattr(
            "lead_analytics.core.dependencies.get_db_pool",
            AsyncMock(side_effect=OSError("connection refused")),
        )

        response = api_client.get("/analytics/locations")

        assert response.status_code == 503
        assert response.json()["detail"] == "Analytics database unavailable"
