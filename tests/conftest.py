"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Generator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from stockpool.core.config import settings
from stockpool.core.rate_limiter import RateLimiter, reset_rate_limiters
from stockpool.services.data_providers import TushareClient


# Configure asyncio
pytest_plugins = ["pytest_asyncio"]


TEST_TOKEN = "test-token-0123456789"


def tushare_payload(
    fields: list[str],
    items: list[list[Any]],
    code: int = 0,
    msg: str = "",
) -> dict[str, Any]:
    """Build a Tushare response body."""
    return {
        "code": code,
        "msg": msg,
        "data": {"fields": fields, "items": items, "has_more": False},
    }


class FakeTushare:
    """In-process Tushare endpoint served through ``httpx.MockTransport``.

    Responses are configured per ``api_name``; every request body is recorded.
    """

    def __init__(self):
        self.responses: dict[str, Any] = {}
        self.calls: list[dict[str, Any]] = []

    def set_rows(self, api_name: str, rows: list[dict[str, Any]]) -> None:
        fields = list(rows[0]) if rows else []
        items = [[row.get(f) for f in fields] for row in rows]
        self.responses[api_name] = tushare_payload(fields, items)

    def set_error(self, api_name: str, msg: str = "quota exceeded", code: int = 40203) -> None:
        self.responses[api_name] = {"code": code, "msg": msg, "data": None}

    def set_transport_error(
        self, api_name: str, error: type[httpx.TransportError] = httpx.ConnectError
    ) -> None:
        self.responses[api_name] = error

    def set_http_status(self, api_name: str, status_code: int) -> None:
        self.responses[api_name] = httpx.Response(status_code, text="upstream unavailable")

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        response = self.responses.get(body["api_name"], tushare_payload([], []))
        if isinstance(response, type) and issubclass(response, Exception):
            raise response("simulated failure", request=request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def api_names(self) -> list[str]:
        return [call["api_name"] for call in self.calls]

    def calls_for(self, api_name: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["api_name"] == api_name]

    def client(self, rate_limiter: RateLimiter | None = None) -> TushareClient:
        return TushareClient(
            token=TEST_TOKEN,
            base_url="http://tushare.test",
            rate_limiter=rate_limiter or RateLimiter("test", min_interval=0.0),
            transport=self.transport,
        )


class GatedTushare(FakeTushare):
    """Fake endpoint that holds selected datasets until the gate opens.

    Each request is stamped with its arrival time before it waits.
    """

    def __init__(self, *gated: str):
        super().__init__()
        self.gated = set(gated)
        self.gate = asyncio.Event()
        self.arrivals: list[tuple[str, float]] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        api_name = json.loads(request.content)["api_name"]
        self.arrivals.append((api_name, time.monotonic()))
        if api_name in self.gated:
            await self.gate.wait()
        return super().handler(request)

    async def wait_for_arrivals(self, count: int, timeout: float = 2.0) -> None:
        async def arrived():
            while len(self.arrivals) < count:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(arrived(), timeout)


ROSTER_ROWS = [
    {
        "ts_code": "600000.SH",
        "symbol": "600000",
        "name": "浦发银行",
        "area": "上海",
        "industry": "银行",
        "market": "主板",
        "list_date": "19991110",
        "list_status": "L",
    },
    {
        "ts_code": "000001.SZ",
        "symbol": "000001",
        "name": "平安银行",
        "area": "深圳",
        "industry": "银行",
        "market": "主板",
        "list_date": "19910403",
        "list_status": "L",
    },
    {
        "ts_code": "600519.SH",
        "symbol": "600519",
        "name": "贵州茅台",
        "area": "贵州",
        "industry": "白酒",
        "market": "主板",
        "list_date": "20010827",
        "list_status": "L",
    },
]


def daily_row(ts_code: str, trade_date: str = "20240102", **values: Any) -> dict[str, Any]:
    row = {
        "ts_code": ts_code,
        "trade_date": trade_date,
        "open": 10.0,
        "high": 10.8,
        "low": 9.9,
        "close": 10.5,
        "pre_close": 10.0,
        "change": 0.5,
        "pct_chg": 5.0,
        "vol": 1000.0,
        "amount": 1050.0,
    }
    row.update(values)
    return row


def daily_basic_row(ts_code: str, trade_date: str = "20240102", **values: Any) -> dict[str, Any]:
    row = {
        "ts_code": ts_code,
        "trade_date": trade_date,
        "close": 10.5,
        "turnover_rate": 0.8,
        "pe": 5.2,
        "pb": 0.45,
        "ps": 1.1,
        "dv_ratio": 4.3,
        "total_mv": 3_000_000.0,
        "circ_mv": 2_900_000.0,
    }
    row.update(values)
    return row



def bak_daily_row(ts_code: str, trade_date: str, **values: Any) -> dict[str, Any]:
    row = {
        "ts_code": ts_code,
        "trade_date": trade_date,
        "name": "浦发银行",
        "open": 10.0,
        "high": 10.6,
        "low": 9.8,
        "close": 10.2,
        "pct_change": 2.0,
        "vol": 500.0,
        "amount": 510.0,
    }
    row.update(values)
    return row


def minute_rows(ts_code: str, days: list[str], times: list[str]) -> list[dict[str, Any]]:
    """One bar per (day, time), newest first like the provider."""
    rows = []
    for day_index, day in enumerate(days):
        for time_index, bar_time in enumerate(times):
            base = 10.0 + day_index + time_index * 0.1
            rows.append(
                {
                    "ts_code": ts_code,
                    "trade_time": f"{day} {bar_time}",
                    "open": base,
                    "high": base + 0.2,
                    "low": base - 0.2,
                    "close": base + 0.1,
                    "vol": 100.0,
                    "amount": 1000.0,
                }
            )
    return list(reversed(rows))


@pytest.fixture(scope="function", autouse=True)
def reset_singletons(monkeypatch: pytest.MonkeyPatch):
    """Give every test a fresh limiter registry and a configured token."""
    reset_rate_limiters()
    monkeypatch.setattr(settings, "tushare_token", TEST_TOKEN)
    monkeypatch.setattr(settings, "tushare_rate_limit_delay", 0)
    yield
    reset_rate_limiters()


@pytest.fixture
def fake_tushare() -> FakeTushare:
    """Fake upstream endpoint."""
    return FakeTushare()


@pytest.fixture
def tushare(fake_tushare: FakeTushare) -> TushareClient:
    """Tushare client wired to the fake endpoint with no rate-limit delay."""
    return fake_tushare.client()


@pytest.fixture
def app(fake_tushare: FakeTushare) -> Generator[FastAPI, None, None]:
    """API app with upstream access routed to the fake endpoint."""
    from stockpool.api.app import create_api_app
    from stockpool.api.dependencies import get_tushare_client
    from stockpool.cache import CalendarCache
    from stockpool.services.trade_calendar import fetch_trade_markers

    async def fetch_markers(exchange, start, end):
        return await fetch_trade_markers(exchange, start, end, client=fake_tushare.client())

    app = create_api_app()
    app.dependency_overrides[get_tushare_client] = lambda: fake_tushare.client()
    app.state.calendar_cache = CalendarCache(fetch_markers)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
