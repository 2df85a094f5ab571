"""
Tests for the Tushare client: payload normalization and error mapping.
"""

from __future__ import annotations

import httpx
import pytest

from conftest import TEST_TOKEN, FakeTushare, tushare_payload
from stockpool.core.config import settings
from stockpool.core.exceptions import ConfigurationError, NetworkError, UpstreamError
from stockpool.core.rate_limiter import RateLimiter
from stockpool.services.data_providers import TushareClient, rows_from_payload


# =============================================================================
# Payload normalization
# =============================================================================


class TestRowsFromPayload:
    """Tests for rows_from_payload."""

    def test_zips_fields_with_items(self):
        """Each item becomes a dict keyed by the field list."""
        payload = tushare_payload(
            ["ts_code", "close"],
            [["600000.SH", 10.5], ["000001.SZ", 11.2]],
        )["data"]
        rows = rows_from_payload(payload)
        assert rows == [
            {"ts_code": "600000.SH", "close": 10.5},
            {"ts_code": "000001.SZ", "close": 11.2},
        ]

    def test_rows_share_one_shape(self):
        """All rows carry exactly the field-list keys."""
        payload = {"fields": ["a", "b", "c"], "items": [[1, 2, 3], [4, 5, 6]]}
        rows = rows_from_payload(payload)
        assert all(list(row) == ["a", "b", "c"] for row in rows)

    def test_missing_payload_yields_no_rows(self):
        assert rows_from_payload(None) == []
        assert rows_from_payload({}) == []

    def test_missing_items_yields_no_rows(self):
        assert rows_from_payload({"fields": ["ts_code"], "items": []}) == []
        assert rows_from_payload({"fields": ["ts_code"]}) == []


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    """Tests for TushareClient construction."""

    def test_missing_token_raises_configuration_error(self, monkeypatch):
        """A client without a token fails immediately."""
        monkeypatch.setattr(settings, "tushare_token", "")
        with pytest.raises(ConfigurationError) as exc_info:
            TushareClient()
        assert exc_info.value.status_code == 500
        assert exc_info.value.error_code == "CONFIGURATION_ERROR"

    def test_explicit_empty_token_raises(self):
        with pytest.raises(ConfigurationError):
            TushareClient(token="")

    def test_uses_settings_defaults(self):
        """Token, URL and timeout come from settings."""
        client = TushareClient()
        assert client.base_url == settings.tushare_base_url
        assert client.timeout == float(settings.external_api_timeout)

    def test_defaults_to_shared_limiter(self):
        """Clients without an explicit limiter share one."""
        assert TushareClient().rate_limiter is TushareClient().rate_limiter


# =============================================================================
# Calls
# =============================================================================


class TestCall:
    """Tests for TushareClient.call."""

    @pytest.mark.asyncio
    async def test_returns_normalized_rows(self, fake_tushare: FakeTushare, tushare):
        fake_tushare.set_rows(
            "daily", [{"ts_code": "600000.SH", "trade_date": "20240102", "close": 10.5}]
        )
        rows = await tushare.call("daily", {"trade_date": "20240102"})
        assert rows == [{"ts_code": "600000.SH", "trade_date": "20240102", "close": 10.5}]

    @pytest.mark.asyncio
    async def test_request_body(self, fake_tushare: FakeTushare, tushare):
        """Body carries api_name, token, params without None values and fields."""
        await tushare.call("daily", {"trade_date": "20240102", "ts_code": None}, "ts_code,close")
        assert fake_tushare.calls == [
            {
                "api_name": "daily",
                "token": TEST_TOKEN,
                "params": {"trade_date": "20240102"},
                "fields": "ts_code,close",
            }
        ]

    @pytest.mark.asyncio
    async def test_empty_data_returns_empty_list(self, fake_tushare: FakeTushare, tushare):
        fake_tushare.responses["daily"] = {"code": 0, "msg": "", "data": None}
        assert await tushare.call("daily") == []

    @pytest.mark.asyncio
    async def test_nonzero_code_raises_upstream_error(self, fake_tushare: FakeTushare, tushare):
        """Provider error codes surface with message and code."""
        fake_tushare.set_error("daily", msg="token invalid", code=40101)
        with pytest.raises(UpstreamError) as exc_info:
            await tushare.call("daily")
        error = exc_info.value
        assert error.provider_code == 40101
        assert error.provider_message == "token invalid"
        assert error.status_code == 502
        assert error.details["api_name"] == "daily"
        assert "token invalid" in error.message

    @pytest.mark.asyncio
    async def test_nonzero_code_with_http_200(self, fake_tushare: FakeTushare, tushare):
        """A non-zero code is an error even on HTTP success."""
        fake_tushare.responses["daily"] = tushare_payload(
            ["ts_code"], [["600000.SH"]], code=-2001, msg="params invalid"
        )
        with pytest.raises(UpstreamError) as exc_info:
            await tushare.call("daily")
        assert exc_info.value.provider_code == -2001

    @pytest.mark.asyncio
    async def test_connection_error_raises_network_error(self, fake_tushare: FakeTushare, tushare):
        fake_tushare.set_transport_error("daily", httpx.ConnectError)
        with pytest.raises(NetworkError) as exc_info:
            await tushare.call("daily")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_timeout_raises_network_error(self, fake_tushare: FakeTushare, tushare):
        fake_tushare.set_transport_error("daily", httpx.ReadTimeout)
        with pytest.raises(NetworkError):
            await tushare.call("daily")

    @pytest.mark.asyncio
    async def test_http_error_status_raises_network_error(self, fake_tushare: FakeTushare, tushare):
        fake_tushare.set_http_status("daily", 502)
        with pytest.raises(NetworkError) as exc_info:
            await tushare.call("daily")
        assert exc_info.value.details["http_status"] == 502

    @pytest.mark.asyncio
    async def test_unreadable_body_raises_upstream_error(self, fake_tushare: FakeTushare, tushare):
        fake_tushare.responses["daily"] = httpx.Response(200, text="<html>oops</html>")
        with pytest.raises(UpstreamError) as exc_info:
            await tushare.call("daily")
        assert exc_info.value.provider_code == -1

    @pytest.mark.asyncio
    async def test_no_retries(self, fake_tushare: FakeTushare, tushare):
        """A failing call reaches the endpoint exactly once."""
        fake_tushare.set_error("daily")
        with pytest.raises(UpstreamError):
            await tushare.call("daily")
        assert fake_tushare.api_names == ["daily"]

    @pytest.mark.asyncio
    async def test_every_call_acquires_limiter(self, fake_tushare: FakeTushare):
        limiter = RateLimiter("counting", min_interval=0.0)
        client = TushareClient(token=TEST_TOKEN, rate_limiter=limiter, transport=fake_tushare.transport)
        await client.call("daily")
        await client.call("daily_basic")
        assert limiter.calls == 2


class TestDatasetHelpers:
    """Tests for the per-dataset helpers."""

    @pytest.mark.asyncio
    async def test_stock_basic_params(self, fake_tushare: FakeTushare, tushare):
        await tushare.get_stock_basic(exchange="SSE", list_status="L")
        call = fake_tushare.calls[0]
        assert call["api_name"] == "stock_basic"
        assert call["params"] == {"exchange": "SSE", "list_status": "L"}
        assert "industry" in call["fields"]

    @pytest.mark.asyncio
    async def test_daily_drops_unset_params(self, fake_tushare: FakeTushare, tushare):
        await tushare.get_daily(trade_date="20240102")
        assert fake_tushare.calls[0]["params"] == {"trade_date": "20240102"}

    @pytest.mark.asyncio
    async def test_trade_cal_params(self, fake_tushare: FakeTushare, tushare):
        await tushare.get_trade_cal("SZSE", "20240201", "20240229", is_open=1)
        assert fake_tushare.calls[0]["params"] == {
            "exchange": "SZSE",
            "start_date": "20240201",
            "end_date": "20240229",
            "is_open": 1,
        }

    @pytest.mark.asyncio
    async def test_bak_daily_params(self, fake_tushare: FakeTushare, tushare):
        await tushare.get_bak_daily(
            ts_code="600000.SH", start_date="20240101", end_date="20240131", limit=20
        )
        call = fake_tushare.calls[0]
        assert call["api_name"] == "bak_daily"
        assert call["params"] == {
            "ts_code": "600000.SH",
            "start_date": "20240101",
            "end_date": "20240131",
            "limit": 20,
        }
        assert "pct_change" in call["fields"]

    @pytest.mark.asyncio
    async def test_stk_mins_params(self, fake_tushare: FakeTushare, tushare):
        await tushare.get_stk_mins(
            "600000.SH", "15min", "2024-01-02 09:00:00", "2024-01-05 15:30:00"
        )
        call = fake_tushare.calls[0]
        assert call["api_name"] == "stk_mins"
        assert call["params"] == {
            "ts_code": "600000.SH",
            "freq": "15min",
            "start_date": "2024-01-02 09:00:00",
            "end_date": "2024-01-05 15:30:00",
        }
        assert call["fields"].startswith("ts_code,trade_time")

    @pytest.mark.asyncio
    async def test_rt_k_params(self, fake_tushare: FakeTushare, tushare):
        await tushare.get_rt_k("600000.SH,000001.SZ")
        call = fake_tushare.calls[0]
        assert call["api_name"] == "rt_k"
        assert call["params"] == {"ts_code": "600000.SH,000001.SZ"}
        assert "num" in call["fields"]
