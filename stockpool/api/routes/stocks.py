"""Stock pool, daily quote and bar routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from stockpool.api.dependencies import get_tushare_client
from stockpool.core.logging import get_logger
from stockpool.domain import ListStatus, MinuteFreq, SubMarket
from stockpool.schemas.common import ResponseMeta
from stockpool.schemas.stocks import (
    DailyQuoteMeta,
    DailyQuoteResponse,
    HistoryMeta,
    HistoryResponse,
    MinuteBarMeta,
    MinuteBarResponse,
    RealtimeResponse,
    StockPoolMeta,
    StockPoolResponse,
)
from stockpool.services.bars import (
    HistoryQuery,
    MinuteBarQuery,
    fetch_daily_history,
    fetch_minute_bars,
    fetch_realtime_quotes,
)
from stockpool.services.data_providers import TushareClient
from stockpool.services.stock_pool import (
    DailyQuoteQuery,
    StockPoolQuery,
    fetch_daily_quotes,
    fetch_stock_pool,
)


logger = get_logger("api.stocks")

router = APIRouter(prefix="/stocks")


@router.get(
    "/pool",
    response_model=StockPoolResponse,
    summary="Get stock pool",
    description=(
        "Instrument roster merged with optional daily quotes and valuation "
        "indicators. Overlay failures degrade to absent overlays."
    ),
)
async def get_stock_pool(
    client: Annotated[TushareClient, Depends(get_tushare_client)],
    market: Annotated[SubMarket | None, Query(description="SH, SZ or BJ")] = None,
    limit: Annotated[int | None, Query(ge=1, le=10000)] = None,
    include_market_data: bool = False,
    include_basic_indicators: bool = False,
    list_status: ListStatus = ListStatus.LISTED,
    trade_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
) -> StockPoolResponse:
    """Aggregate the stock pool for one trade date."""
    query = StockPoolQuery(
        market=market,
        limit=limit,
        include_market_data=include_market_data,
        include_basic_indicators=include_basic_indicators,
        list_status=list_status,
        trade_date=trade_date,
    )
    result = await fetch_stock_pool(client, query)

    effective_query = query.model_dump(mode="json")
    effective_query["trade_date"] = result.trade_date
    return StockPoolResponse(
        data=result.records,
        meta=StockPoolMeta(
            total=len(result.records),
            total_basic=result.total_basic,
            trade_date=result.trade_date,
            stats=result.stats,
            sources=result.sources,
            query=effective_query,
        ),
    )


@router.get(
    "/quotes",
    response_model=DailyQuoteResponse,
    summary="Get daily quotes",
    description="Daily quotes for one date or a date range, optionally joined with indicators.",
)
async def get_daily_quotes(
    client: Annotated[TushareClient, Depends(get_tushare_client)],
    ts_code: Annotated[str | None, Query(description="e.g. 600000.SH")] = None,
    trade_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
    start_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
    end_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
    include_basic: bool = False,
    limit: Annotated[int | None, Query(ge=1, le=10000)] = None,
) -> DailyQuoteResponse:
    """Daily quote rows with summary stats."""
    query = DailyQuoteQuery(
        ts_code=ts_code,
        trade_date=trade_date,
        start_date=start_date,
        end_date=end_date,
        include_basic=include_basic,
        limit=limit,
    )
    result = await fetch_daily_quotes(client, query)
    return DailyQuoteResponse(
        data=result.quotes,
        meta=DailyQuoteMeta(
            total=len(result.quotes),
            stats=result.stats,
            sources=result.sources,
            query=query.model_dump(mode="json", exclude_none=True),
        ),
    )


@router.get(
    "/history",
    response_model=HistoryResponse,
    summary="Get daily history",
    description="Daily bars from bak_daily for one code and/or date range, oldest first.",
)
async def get_daily_history(
    client: Annotated[TushareClient, Depends(get_tushare_client)],
    ts_code: Annotated[str | None, Query(description="e.g. 600000.SH")] = None,
    trade_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
    start_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
    end_date: Annotated[str | None, Query(description="YYYYMMDD")] = None,
    limit: Annotated[int | None, Query(ge=1, le=10000)] = None,
    offset: Annotated[int | None, Query(ge=0)] = None,
) -> HistoryResponse:
    """History bars with summary stats."""
    query = HistoryQuery(
        ts_code=ts_code,
        trade_date=trade_date,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    result = await fetch_daily_history(client, query)
    return HistoryResponse(
        data=result.bars,
        meta=HistoryMeta(
            total=len(result.bars),
            stats=result.stats,
            query=result.query,
        ),
    )


@router.get(
    "/minutes",
    response_model=MinuteBarResponse,
    summary="Get intraday bars",
    description=(
        "Minute bars from stk_mins. Without start_date/end_date the last "
        "`days` trading days are returned."
    ),
)
async def get_minute_bars(
    client: Annotated[TushareClient, Depends(get_tushare_client)],
    ts_code: Annotated[str, Query(description="e.g. 600000.SH")],
    freq: MinuteFreq = MinuteFreq.MIN_60,
    start_date: Annotated[str | None, Query(description="YYYY-MM-DD HH:MM:SS")] = None,
    end_date: Annotated[str | None, Query(description="YYYY-MM-DD HH:MM:SS")] = None,
    days: Annotated[int, Query(ge=1, le=60)] = 5,
) -> MinuteBarResponse:
    """Intraday bars with price and session stats."""
    query = MinuteBarQuery(
        ts_code=ts_code,
        freq=freq,
        start_date=start_date,
        end_date=end_date,
        days=days,
    )
    result = await fetch_minute_bars(client, query)
    return MinuteBarResponse(
        data=result.bars,
        meta=MinuteBarMeta(
            total=len(result.bars),
            stats=result.stats,
            query={
                "ts_code": query.ts_code,
                "freq": query.freq.value,
                "start_date": result.start_date,
                "end_date": result.end_date,
                "days": query.days,
            },
        ),
    )


@router.get(
    "/realtime",
    response_model=RealtimeResponse,
    summary="Get realtime quotes",
    description="Realtime snapshots from rt_k for one or more comma-separated codes.",
)
async def get_realtime_quotes(
    client: Annotated[TushareClient, Depends(get_tushare_client)],
    ts_code: Annotated[str, Query(description="e.g. 600000.SH,000001.SZ")],
) -> RealtimeResponse:
    quotes = await fetch_realtime_quotes(client, ts_code)
    return RealtimeResponse(
        data=quotes,
        meta=ResponseMeta(total=len(quotes), query={"ts_code": ts_code}),
    )
