"""
Stock Pool Service - roster + quote + indicator aggregation.

Pipeline:
1. Validate the query (before any upstream call)
2. Fetch the roster (mandatory) and the requested overlays (optional)
   concurrently; the shared rate limiter still spaces physical calls
3. Overlay failures are captured as failed FetchResults and merged as absent
4. Merge by composite key and summarize

Usage:
    from stockpool.services.stock_pool import StockPoolQuery, fetch_stock_pool

    result = await fetch_stock_pool(client, StockPoolQuery(market="SH", include_market_data=True))
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from stockpool.core.config import settings
from stockpool.core.data_helpers import format_trade_date, market_today, previous_business_day
from stockpool.core.logging import get_logger
from stockpool.core.validators import validate_quote_window, validate_trade_date
from stockpool.domain import (
    DailyQuote,
    InstrumentRecord,
    ListStatus,
    OverlayKind,
    SubMarket,
)
from stockpool.services.data_providers.results import FetchResult, capture, gather_optional
from stockpool.services.data_providers.tushare_client import TushareClient
from stockpool.services.record_merger import merge_daily_quotes, merge_records
from stockpool.services.stats import PoolStats, QuoteStats, summarize_quotes, summarize_records


logger = get_logger("services.stock_pool")


def default_trade_date() -> str:
    """Most recent business day before today in the market timezone."""
    return format_trade_date(previous_business_day(market_today(settings.market_timezone)))


class StockPoolQuery(BaseModel):
    """Aggregation request parameters."""

    market: SubMarket | None = None
    limit: int | None = Field(None, ge=1)
    include_market_data: bool = False
    include_basic_indicators: bool = False
    list_status: ListStatus = ListStatus.LISTED
    trade_date: str | None = None

    def resolved_trade_date(self) -> str:
        return self.trade_date or default_trade_date()


class StockPoolResult(BaseModel):
    """Merged records plus metadata about how they were built."""

    records: list[InstrumentRecord]
    stats: PoolStats
    trade_date: str
    total_basic: int = Field(..., description="Roster rows before the limit")
    sources: dict[str, dict[str, Any]] = Field(default_factory=dict)


async def fetch_stock_pool(
    client: TushareClient,
    query: StockPoolQuery,
    top_n: int | None = None,
) -> StockPoolResult:
    """
    Build the merged stock pool for one trade date.

    Args:
        client: Tushare client
        query: Validated request parameters
        top_n: Industries in the stats block (defaults to settings.top_industries)

    Returns:
        StockPoolResult with one record per roster row (after the limit)

    Raises:
        ValidationError: Bad trade date
        NetworkError / UpstreamError: The roster fetch failed
    """
    trade_date = query.resolved_trade_date()
    validate_trade_date(trade_date)
    exchange = query.market.exchange.value if query.market else ""

    logger.info(
        f"Stock pool request: market={query.market and query.market.value} "
        f"trade_date={trade_date} quotes={query.include_market_data} "
        f"indicators={query.include_basic_indicators}"
    )

    # Overlay fetches never raise; a roster failure cancels them and propagates.
    roster, quotes, indicators = await gather_optional(
        client.get_stock_basic(exchange=exchange, list_status=query.list_status.value),
        capture("daily", client.get_daily(trade_date=trade_date))
        if query.include_market_data
        else None,
        capture("daily_basic", client.get_daily_basic(trade_date=trade_date))
        if query.include_basic_indicators
        else None,
    )

    if not roster:
        logger.warning(f"Empty roster for market={exchange or 'all'}")

    limited = roster[: query.limit] if query.limit else roster
    overlays: dict[OverlayKind, FetchResult | None] = {
        OverlayKind.QUOTE: quotes,
        OverlayKind.INDICATORS: indicators,
    }
    records = merge_records(limited, overlays, trade_date, query.list_status)
    stats = summarize_records(records, top_n or settings.top_industries)

    sources = {"stock_basic": {"source": "stock_basic", "ok": True, "rows": len(roster), "error": None}}
    for result in overlays.values():
        if result is not None:
            sources[result.source] = result.to_dict()

    logger.info(
        f"Stock pool built: {len(records)} records, coverage {stats.coverage}"
    )
    return StockPoolResult(
        records=records,
        stats=stats,
        trade_date=trade_date,
        total_basic=len(roster),
        sources=sources,
    )


class DailyQuoteQuery(BaseModel):
    """Daily quote request parameters."""

    ts_code: str | None = None
    trade_date: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    include_basic: bool = False
    limit: int | None = Field(None, ge=1)

    def validate_params(self) -> None:
        validate_quote_window(self.ts_code, self.trade_date, self.start_date, self.end_date)

    def fetch_params(self) -> dict[str, str | None]:
        if self.start_date and self.end_date:
            return {
                "ts_code": self.ts_code,
                "start_date": self.start_date,
                "end_date": self.end_date,
            }
        return {
            "ts_code": self.ts_code,
            "trade_date": self.trade_date or default_trade_date(),
        }


class DailyQuoteResult(BaseModel):
    quotes: list[DailyQuote]
    stats: QuoteStats
    sources: dict[str, dict[str, Any]] = Field(default_factory=dict)


async def fetch_daily_quotes(client: TushareClient, query: DailyQuoteQuery) -> DailyQuoteResult:
    """
    Daily quotes, optionally joined with valuation indicators.

    The quote fetch is mandatory; the indicator fetch is optional and runs
    concurrently.
    """
    query.validate_params()
    params = query.fetch_params()

    quote_rows, indicators = await gather_optional(
        client.get_daily(**params),
        capture("daily_basic", client.get_daily_basic(**params)) if query.include_basic else None,
    )

    quotes = merge_daily_quotes(quote_rows, indicators)
    if query.limit:
        quotes = quotes[: query.limit]

    sources = {"daily": {"source": "daily", "ok": True, "rows": len(quote_rows), "error": None}}
    if indicators is not None:
        sources[indicators.source] = indicators.to_dict()

    return DailyQuoteResult(quotes=quotes, stats=summarize_quotes(quotes), sources=sources)
