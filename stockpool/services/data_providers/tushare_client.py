"""
Tushare Pro client - single entry point for all upstream market data calls.

Every call:
1. Waits on the shared Tushare rate limiter (fixed minimum spacing)
2. POSTs ``{api_name, token, params, fields}`` to the Tushare endpoint
3. Maps transport failures to ``NetworkError`` and non-zero provider codes
   to ``UpstreamError``
4. Normalizes the ``{fields, items}`` payload into a list of row dicts

No retries happen here; retry policy belongs to the caller.

Usage:
    from stockpool.services.data_providers import TushareClient

    client = TushareClient()
    roster = await client.get_stock_basic(exchange="SSE")
    quotes = await client.get_daily(trade_date="20240102")
"""

from __future__ import annotations

from typing import Any

import httpx

from stockpool.core.config import settings
from stockpool.core.exceptions import ConfigurationError, NetworkError, UpstreamError
from stockpool.core.logging import get_logger
from stockpool.core.rate_limiter import RateLimiter, get_tushare_limiter


logger = get_logger("data_providers.tushare")

# Default field lists per dataset
STOCK_BASIC_FIELDS = "ts_code,symbol,name,area,industry,market,list_date,list_status"
DAILY_FIELDS = "ts_code,trade_date,open,high,low,close,pre_close,change,pct_chg,vol,amount"
DAILY_BASIC_FIELDS = (
    "ts_code,trade_date,close,turnover_rate,pe,pb,ps,dv_ratio,"
    "total_share,float_share,free_share,total_mv,circ_mv"
)
TRADE_CAL_FIELDS = "exchange,cal_date,is_open,pretrade_date"
BAK_DAILY_FIELDS = "ts_code,trade_date,name,close,open,high,low,pct_change,vol,amount"
STK_MINS_FIELDS = "ts_code,trade_time,open,high,low,close,vol,amount"
RT_K_FIELDS = "ts_code,name,pre_close,high,open,low,close,vol,amount,num"

Row = dict[str, Any]


def rows_from_payload(payload: dict[str, Any] | None) -> list[Row]:
    """Zip the field-name list with each data row.

    A payload without ``fields`` or ``items`` yields no rows.
    """
    if not payload:
        return []
    fields = payload.get("fields")
    items = payload.get("items")
    if not fields or not items:
        return []
    return [dict(zip(fields, item)) for item in items]


class TushareClient:
    """Rate-limited async client for the Tushare Pro HTTP API."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        rate_limiter: RateLimiter | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            token: API token (defaults to settings.tushare_token)
            base_url: Endpoint URL (defaults to settings.tushare_base_url)
            rate_limiter: Limiter shared by every call (defaults to the global one)
            timeout: Request timeout in seconds (defaults to settings.external_api_timeout)
            transport: Optional httpx transport, used by tests

        Raises:
            ConfigurationError: No token configured
        """
        self._token = token if token is not None else settings.tushare_token
        if not self._token:
            raise ConfigurationError(
                "TUSHARE_TOKEN environment variable is required",
                details={"setting": "TUSHARE_TOKEN"},
            )
        self.base_url = base_url or settings.tushare_base_url
        self.rate_limiter = rate_limiter or get_tushare_limiter()
        self.timeout = float(timeout if timeout is not None else settings.external_api_timeout)
        self._transport = transport

    async def call(
        self,
        api_name: str,
        params: dict[str, Any] | None = None,
        fields: str | None = None,
    ) -> list[Row]:
        """
        Call one Tushare dataset and return its rows.

        Args:
            api_name: Dataset name, e.g. ``stock_basic``
            params: Dataset parameters; None values are dropped
            fields: Comma-separated field list

        Returns:
            List of row dicts

        Raises:
            NetworkError: Connection failure, timeout or non-2xx HTTP status
            UpstreamError: Provider returned a non-zero code or an unreadable body
        """
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        body: dict[str, Any] = {
            "api_name": api_name,
            "token": self._token,
            "params": clean_params,
        }
        if fields:
            body["fields"] = fields

        await self.rate_limiter.acquire()
        logger.debug(f"Calling Tushare {api_name} with params {clean_params}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.base_url, json=body)
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout calling Tushare {api_name}: {e}")
            raise NetworkError(
                f"Timeout calling Tushare {api_name}", details={"api_name": api_name}
            ) from e
        except httpx.TransportError as e:
            logger.warning(f"Transport error calling Tushare {api_name}: {e}")
            raise NetworkError(
                f"Failed to connect to Tushare API: {e}", details={"api_name": api_name}
            ) from e

        if response.is_error:
            logger.warning(f"Tushare {api_name} returned HTTP {response.status_code}")
            raise NetworkError(
                f"HTTP error calling Tushare {api_name}: status {response.status_code}",
                details={"api_name": api_name, "http_status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("unreadable response body", -1, api_name) from e
        if not isinstance(data, dict):
            raise UpstreamError("unexpected response shape", -1, api_name)

        code = data.get("code")
        if code != 0:
            message = data.get("msg") or "unknown error"
            logger.warning(f"Tushare {api_name} error: {message} (code: {code})")
            raise UpstreamError(message, code if isinstance(code, int) else -1, api_name)

        rows = rows_from_payload(data.get("data"))
        logger.debug(f"Tushare {api_name} returned {len(rows)} rows")
        return rows

    # ------------------------------------------------------------------
    # Dataset helpers
    # ------------------------------------------------------------------

    async def get_stock_basic(
        self,
        exchange: str = "",
        list_status: str = "L",
        fields: str = STOCK_BASIC_FIELDS,
    ) -> list[Row]:
        """Instrument roster (one row per listed code)."""
        return await self.call(
            "stock_basic",
            {"exchange": exchange, "list_status": list_status},
            fields,
        )

    async def get_daily(
        self,
        ts_code: str | None = None,
        trade_date: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        fields: str = DAILY_FIELDS,
    ) -> list[Row]:
        """Daily quote snapshot."""
        return await self.call(
            "daily",
            {
                "ts_code": ts_code,
                "trade_date": trade_date,
                "start_date": start_date,
                "end_date": end_date,
            },
            fields,
        )

    async def get_daily_basic(
        self,
        ts_code: str | None = None,
        trade_date: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        fields: str = DAILY_BASIC_FIELDS,
    ) -> list[Row]:
        """Daily valuation indicators."""
        return await self.call(
            "daily_basic",
            {
                "ts_code": ts_code,
                "trade_date": trade_date,
                "start_date": start_date,
                "end_date": end_date,
            },
            fields,
        )

    async def get_trade_cal(
        self,
        exchange: str = "SSE",
        start_date: str | None = None,
        end_date: str | None = None,
        is_open: int | None = None,
    ) -> list[Row]:
        """Trading-day markers for one exchange over a date range."""
        return await self.call(
            "trade_cal",
            {
                "exchange": exchange,
                "start_date": start_date,
                "end_date": end_date,
                "is_open": is_open,
            },
            TRADE_CAL_FIELDS,
        )

    async def get_bak_daily(
        self,
        ts_code: str | None = None,
        trade_date: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        fields: str = BAK_DAILY_FIELDS,
    ) -> list[Row]:
        """Backup daily bars; note the provider's ``pct_change`` field name."""
        return await self.call(
            "bak_daily",
            {
                "ts_code": ts_code,
                "trade_date": trade_date,
                "start_date": start_date,
                "end_date": end_date,
                "limit": limit,
                "offset": offset,
            },
            fields,
        )

    async def get_stk_mins(
        self,
        ts_code: str,
        freq: str = "60min",
        start_date: str | None = None,
        end_date: str | None = None,
        fields: str = STK_MINS_FIELDS,
    ) -> list[Row]:
        """Intraday bars; the range bounds are ``YYYY-MM-DD HH:MM:SS`` strings."""
        return await self.call(
            "stk_mins",
            {
                "ts_code": ts_code,
                "freq": freq,
                "start_date": start_date,
                "end_date": end_date,
            },
            fields,
        )

    async def get_rt_k(self, ts_code: str, fields: str = RT_K_FIELDS) -> list[Row]:
        """Realtime snapshot for one code or a comma-separated list."""
        return await self.call("rt_k", {"ts_code": ts_code}, fields)
