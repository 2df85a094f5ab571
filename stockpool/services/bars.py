"""
Market Bars Service - single-instrument history, intraday bars and realtime snapshots.

- Daily history comes from ``bak_daily``; the newest ``limit`` rows are kept
  and returned oldest first.
- Intraday bars come from ``stk_mins``. Without an explicit window the last
  ``days`` trading days are fetched with a calendar-day buffer, then trimmed
  to ``days * bars_per_day`` bars.
- Realtime snapshots come from ``rt_k`` for one or more codes.

Usage:
    from stockpool.services.bars import MinuteBarQuery, fetch_minute_bars

    result = await fetch_minute_bars(client, MinuteBarQuery(ts_code="600000.SH", freq="15min"))
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from stockpool.core.config import settings
from stockpool.core.data_helpers import market_today
from stockpool.core.exceptions import ValidationError
from stockpool.core.logging import get_logger
from stockpool.core.validators import validate_quote_window, validate_time_range, validate_ts_code
from stockpool.domain import DailyBar, MinuteBar, MinuteFreq, RealtimeQuote
from stockpool.services.data_providers.tushare_client import TushareClient
from stockpool.services.stats import (
    HistoryStats,
    MinuteStats,
    summarize_history,
    summarize_minute_bars,
)
from stockpool.services.stock_pool import default_trade_date


logger = get_logger("services.bars")

M = TypeVar("M", bound=BaseModel)

MIN_BUFFER_DAYS = 10
SESSION_OPEN = "09:00:00"
SESSION_CLOSE = "15:30:00"


def parse_rows(model: type[M], rows: list[dict[str, Any]], source: str) -> list[M]:
    """Validate provider rows into ``model``, skipping malformed ones."""
    parsed: list[M] = []
    skipped = 0
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except PydanticValidationError:
            skipped += 1
    if skipped:
        logger.info(f"Skipped {skipped} malformed {source} rows")
    return parsed


# =============================================================================
# Daily history
# =============================================================================


class HistoryQuery(BaseModel):
    """Daily history request parameters."""

    ts_code: str | None = None
    trade_date: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    limit: int | None = Field(None, ge=1)
    offset: int | None = Field(None, ge=0)

    def validate_params(self) -> None:
        validate_quote_window(self.ts_code, self.trade_date, self.start_date, self.end_date)

    def fetch_params(self) -> dict[str, Any]:
        """Upstream parameters; a code alone asks for its whole history."""
        params: dict[str, Any] = {
            "ts_code": self.ts_code,
            "limit": self.limit,
            "offset": self.offset,
        }
        if self.start_date and self.end_date:
            params["start_date"] = self.start_date
            params["end_date"] = self.end_date
        elif self.trade_date:
            params["trade_date"] = self.trade_date
        elif not self.ts_code:
            params["trade_date"] = default_trade_date()
        return params


class HistoryResult(BaseModel):
    bars: list[DailyBar]
    stats: HistoryStats
    query: dict[str, Any]


async def fetch_daily_history(client: TushareClient, query: HistoryQuery) -> HistoryResult:
    """
    Daily bars for one instrument or one date.

    Args:
        client: Tushare client
        query: Request parameters

    Returns:
        HistoryResult with bars ascending by trade date

    Raises:
        ValidationError: Bad code, date or range
        NetworkError / UpstreamError: The bak_daily fetch failed
    """
    query.validate_params()
    params = query.fetch_params()

    rows = await client.get_bak_daily(**params)
    bars = parse_rows(DailyBar, rows, "bak_daily")
    if query.limit:
        bars = bars[: query.limit]
    bars.sort(key=lambda bar: (bar.trade_date, bar.code))

    logger.info(f"History for {query.ts_code or 'all codes'}: {len(bars)} bars")
    return HistoryResult(
        bars=bars,
        stats=summarize_history(bars),
        query={k: v for k, v in params.items() if v is not None},
    )


# =============================================================================
# Intraday bars
# =============================================================================


class MinuteBarQuery(BaseModel):
    """Intraday bar request parameters."""

    ts_code: str
    freq: MinuteFreq = MinuteFreq.MIN_60
    start_date: str | None = Field(None, description="YYYY-MM-DD HH:MM:SS")
    end_date: str | None = Field(None, description="YYYY-MM-DD HH:MM:SS")
    days: int = Field(5, ge=1, le=60, description="Trading days when no window is given")

    @property
    def derived_window(self) -> bool:
        return not (self.start_date and self.end_date)

    def validate_params(self) -> None:
        validate_ts_code(self.ts_code)
        if self.start_date or self.end_date:
            if not (self.start_date and self.end_date):
                raise ValidationError(
                    "start_date and end_date must be given together",
                    details={"start_date": self.start_date, "end_date": self.end_date},
                )
            validate_time_range(self.start_date, self.end_date)

    def window(self, today: date | None = None) -> tuple[str, str]:
        """Explicit window, or one wide enough to hold ``days`` trading days."""
        if not self.derived_window:
            return self.start_date, self.end_date
        today = today or market_today(settings.market_timezone)
        buffer_days = math.ceil(max(self.days * 1.5, MIN_BUFFER_DAYS))
        start = today - timedelta(days=buffer_days)
        return f"{start.isoformat()} {SESSION_OPEN}", f"{today.isoformat()} {SESSION_CLOSE}"


class MinuteBarResult(BaseModel):
    bars: list[MinuteBar]
    stats: MinuteStats
    start_date: str
    end_date: str


async def fetch_minute_bars(client: TushareClient, query: MinuteBarQuery) -> MinuteBarResult:
    """
    Intraday bars for one instrument, oldest first.

    Raises:
        ValidationError: Bad code, frequency or window
        NetworkError / UpstreamError: The stk_mins fetch failed
    """
    query.validate_params()
    start, end = query.window()
    logger.info(f"Minute bars {query.ts_code} {query.freq.value}: {start} to {end}")

    rows = await client.get_stk_mins(query.ts_code, query.freq.value, start, end)
    bars = sorted(parse_rows(MinuteBar, rows, "stk_mins"), key=lambda bar: bar.trade_time)

    days_requested = None
    if query.derived_window:
        days_requested = query.days
        bars = bars[-(query.days * query.freq.bars_per_day):]

    return MinuteBarResult(
        bars=bars,
        stats=summarize_minute_bars(bars, query.freq, days_requested),
        start_date=start,
        end_date=end,
    )


# =============================================================================
# Realtime snapshots
# =============================================================================


def parse_codes(value: str) -> list[str]:
    """Split and validate a comma-separated code list."""
    codes = [code.strip() for code in value.split(",") if code.strip()]
    if not codes:
        raise ValidationError("ts_code is required", details={"field": "ts_code"})
    for code in codes:
        validate_ts_code(code)
    return codes


async def fetch_realtime_quotes(client: TushareClient, ts_code: str) -> list[RealtimeQuote]:
    """Realtime snapshots in provider order."""
    codes = parse_codes(ts_code)
    rows = await client.get_rt_k(",".join(codes))
    return parse_rows(RealtimeQuote, rows, "rt_k")
