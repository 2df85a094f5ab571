"""Trade calendar routes - raw markers and cached month grids."""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from stockpool.api.dependencies import get_calendar_cache, get_tushare_client
from stockpool.cache import CalendarCache
from stockpool.core.config import settings
from stockpool.core.data_helpers import format_trade_date, market_today
from stockpool.core.exceptions import NotFoundError
from stockpool.core.logging import get_logger
from stockpool.domain import Exchange, month_key
from stockpool.schemas.calendar import (
    CacheClearResponse,
    MonthCalendarResponse,
    TradeCalendarMeta,
    TradeCalendarResponse,
)
from stockpool.schemas.common import MessageResponse
from stockpool.services.data_providers import TushareClient
from stockpool.services.stats import summarize_calendar
from stockpool.services.trade_calendar import query_trade_calendar


logger = get_logger("api.calendar")

router = APIRouter(prefix="/calendar")

# Default lookback for trade-calendar queries
DEFAULT_LOOKBACK_DAYS = 30


@router.get(
    "/trade-calendar",
    response_model=TradeCalendarResponse,
    summary="Get trade calendar",
    description="Trading-day markers for one exchange over a date range.",
)
async def get_trade_calendar(
    client: Annotated[TushareClient, Depends(get_tushare_client)],
    exchange: Exchange = Exchange.SSE,
    start_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
    end_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
    is_open: Annotated[int | None, Query(ge=0, le=1, description="1 = trading days only")] = None,
) -> TradeCalendarResponse:
    """Query trade calendar markers and summarize them."""
    today = market_today(settings.market_timezone)
    start = start_date or format_trade_date(today - timedelta(days=DEFAULT_LOOKBACK_DAYS))
    end = end_date or format_trade_date(today)

    items = await query_trade_calendar(client, exchange.value, start, end, is_open)
    return TradeCalendarResponse(
        data=items,
        meta=TradeCalendarMeta(
            total=len(items),
            stats=summarize_calendar(items, start, end),
            query={
                "exchange": exchange.value,
                "start_date": start,
                "end_date": end,
                "is_open": is_open,
            },
        ),
    )


@router.get(
    "/months/current",
    response_model=MonthCalendarResponse,
    summary="Get current month calendar",
)
async def get_current_month(
    cache: Annotated[CalendarCache, Depends(get_calendar_cache)],
    exchange: Exchange = Exchange.SSE,
    force_refresh: bool = False,
) -> MonthCalendarResponse:
    """Month grid for the current month in the market timezone."""
    today = market_today(settings.market_timezone)
    cached = not force_refresh and cache.get(exchange.value, today.year, today.month) is not None
    entry = await cache.get_or_fetch(exchange.value, today.year, today.month, force_refresh)
    return MonthCalendarResponse(data=entry, cached=cached)


@router.get(
    "/months/{exchange}/{year}/{month}",
    response_model=MonthCalendarResponse,
    summary="Get month calendar",
    description="Month grid generated from exchange markers, cached per exchange and month.",
)
async def get_month(
    exchange: Exchange,
    year: int,
    month: int,
    cache: Annotated[CalendarCache, Depends(get_calendar_cache)],
    force_refresh: bool = False,
) -> MonthCalendarResponse:
    """Month grid, fetched and generated on a cache miss."""
    cached = not force_refresh and cache.get(exchange.value, year, month) is not None
    entry = await cache.get_or_fetch(exchange.value, year, month, force_refresh)
    return MonthCalendarResponse(data=entry, cached=cached)


@router.delete(
    "/months/{exchange}/{year}/{month}",
    response_model=MessageResponse,
    summary="Invalidate month calendar",
)
async def invalidate_month(
    exchange: Exchange,
    year: int,
    month: int,
    cache: Annotated[CalendarCache, Depends(get_calendar_cache)],
) -> MessageResponse:
    """Drop one cached month."""
    key = month_key(exchange.value, year, month)
    if not cache.invalidate(exchange.value, year, month):
        raise NotFoundError(f"Month {key} is not cached", details={"key": key})
    return MessageResponse(message=f"Invalidated {key}")


@router.delete(
    "/cache",
    response_model=CacheClearResponse,
    summary="Clear calendar cache",
)
async def clear_cache(
    cache: Annotated[CalendarCache, Depends(get_calendar_cache)],
) -> CacheClearResponse:
    """Drop every cached month."""
    keys = cache.keys()
    cleared = cache.clear()
    return CacheClearResponse(cleared=cleared, keys=keys)
