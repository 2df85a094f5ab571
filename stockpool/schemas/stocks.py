"""Stock pool, daily quote and bar response schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from stockpool.domain import DailyBar, DailyQuote, InstrumentRecord, MinuteBar, RealtimeQuote
from stockpool.services.stats import HistoryStats, MinuteStats, PoolStats, QuoteStats

from .common import ResponseMeta


class StockPoolMeta(ResponseMeta):
    """Pool metadata: roster size before the limit plus distribution stats."""

    total_basic: int = Field(..., description="Roster rows before the limit was applied")
    trade_date: str = Field(..., description="Trade date overlays were fetched for")
    stats: PoolStats


class StockPoolResponse(BaseModel):
    """Merged stock pool."""

    success: bool = True
    data: List[InstrumentRecord]
    meta: StockPoolMeta


class DailyQuoteMeta(ResponseMeta):
    stats: QuoteStats


class DailyQuoteResponse(BaseModel):
    """Daily quotes, optionally with valuation indicators."""

    success: bool = True
    data: List[DailyQuote]
    meta: DailyQuoteMeta


class HistoryMeta(ResponseMeta):
    stats: HistoryStats


class HistoryResponse(BaseModel):
    """Daily bars, oldest first."""

    success: bool = True
    data: List[DailyBar]
    meta: HistoryMeta


class MinuteBarMeta(ResponseMeta):
    stats: MinuteStats


class MinuteBarResponse(BaseModel):
    """Intraday bars, oldest first."""

    success: bool = True
    data: List[MinuteBar]
    meta: MinuteBarMeta


class RealtimeResponse(BaseModel):
    """Realtime snapshots."""

    success: bool = True
    data: List[RealtimeQuote]
    meta: ResponseMeta
