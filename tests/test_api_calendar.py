"""Tests for trade calendar API endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from conftest import FakeTushare


CAL_ROWS = [
    {"exchange": "SSE", "cal_date": "20240201", "is_open": 1, "pretrade_date": "20240131"},
    {"exchange": "SSE", "cal_date": "20240202", "is_open": 1, "pretrade_date": "20240201"},
    {"exchange": "SSE", "cal_date": "20240203", "is_open": 0, "pretrade_date": "20240202"},
    {"exchange": "SSE", "cal_date": "20240209", "is_open": 0, "pretrade_date": "20240208"},
]


@pytest.fixture
def populated(fake_tushare: FakeTushare) -> FakeTushare:
    fake_tushare.set_rows("trade_cal", CAL_ROWS)
    return fake_tushare


class TestTradeCalendarEndpoint:
    """Tests for GET /calendar/trade-calendar."""

    def test_items_and_stats(self, client: TestClient, populated: FakeTushare):
        response = client.get(
            "/calendar/trade-calendar",
            params={"start_date": "20240201", "end_date": "20240229"},
        )
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["meta"]["total"] == 4
        stats = body["meta"]["stats"]
        assert stats["trading_days"] == 2
        assert stats["trading_ratio"] == 50.0
        assert stats["date_range"] == {"start": "20240201", "end": "20240229"}
        assert populated.calls[0]["params"]["exchange"] == "SSE"

    def test_default_range(self, client: TestClient, populated: FakeTushare):
        response = client.get("/calendar/trade-calendar", params={"exchange": "SZSE", "is_open": 1})
        assert response.status_code == status.HTTP_200_OK
        params = populated.calls[0]["params"]
        assert params["exchange"] == "SZSE"
        assert params["is_open"] == 1
        assert params["start_date"] < params["end_date"]

    def test_invalid_exchange_is_422(self, client: TestClient, populated: FakeTushare):
        response = client.get("/calendar/trade-calendar", params={"exchange": "NYSE"})
        assert response.status_code == 422
        assert populated.calls == []

    def test_invalid_date_is_422(self, client: TestClient, populated: FakeTushare):
        response = client.get("/calendar/trade-calendar", params={"start_date": "2024-02-01"})
        assert response.status_code == 422
        assert populated.calls == []


class TestMonthEndpoints:
    """Tests for the cached month calendar endpoints."""

    def test_month_grid(self, client: TestClient, populated: FakeTushare):
        response = client.get("/calendar/months/SSE/2024/2")
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["cached"] is False
        entry = body["data"]
        assert len(entry["dates"]) == 29
        assert entry["trading_days"] == 2
        assert entry["cache_key"] == "2024-02-SSE"

        feb_9 = entry["dates"][8]
        assert feb_9["trade_date"] == "20240209"
        assert feb_9["is_holiday"] is True

    def test_second_request_served_from_cache(self, client: TestClient, populated: FakeTushare):
        client.get("/calendar/months/SSE/2024/2")
        response = client.get("/calendar/months/SSE/2024/2")
        assert response.json()["cached"] is True
        assert len(populated.calls) == 1

    def test_force_refresh(self, client: TestClient, populated: FakeTushare):
        client.get("/calendar/months/SSE/2024/2")
        response = client.get("/calendar/months/SSE/2024/2", params={"force_refresh": "true"})
        assert response.json()["cached"] is False
        assert len(populated.calls) == 2

    def test_current_month(self, client: TestClient, populated: FakeTushare):
        response = client.get("/calendar/months/current")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["exchange"] == "SSE"

    def test_invalid_month_is_422(self, client: TestClient, populated: FakeTushare):
        response = client.get("/calendar/months/SSE/2024/13")
        assert response.status_code == 422
        assert populated.calls == []

    def test_upstream_failure(self, client: TestClient, fake_tushare: FakeTushare):
        fake_tushare.set_error("trade_cal")
        response = client.get("/calendar/months/SSE/2024/2")
        assert response.status_code == status.HTTP_502_BAD_GATEWAY

    def test_invalidate(self, client: TestClient, populated: FakeTushare):
        client.get("/calendar/months/SSE/2024/2")
        response = client.delete("/calendar/months/SSE/2024/2")
        assert response.status_code == status.HTTP_200_OK

        response = client.delete("/calendar/months/SSE/2024/2")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "NOT_FOUND"

    def test_clear_cache(self, client: TestClient, populated: FakeTushare):
        client.get("/calendar/months/SSE/2024/2")
        client.get("/calendar/months/SZSE/2024/2")
        response = client.delete("/calendar/cache")
        body = response.json()
        assert body["cleared"] == 2
        assert sorted(body["keys"]) == ["2024-02-SSE", "2024-02-SZSE"]
