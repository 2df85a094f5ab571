"""Trade calendar response schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from stockpool.domain import MonthCalendarEntry, TradeCalendarItem
from stockpool.services.stats import CalendarStats

from .common import ResponseMeta


class TradeCalendarMeta(ResponseMeta):
    stats: CalendarStats


class TradeCalendarResponse(BaseModel):
    """Raw trading-day markers for a date range."""

    success: bool = True
    data: List[TradeCalendarItem]
    meta: TradeCalendarMeta


class MonthCalendarResponse(BaseModel):
    """One generated month grid, served from the cache when possible."""

    success: bool = True
    data: MonthCalendarEntry
    cached: bool = Field(..., description="True when served without a fetch")


class CacheClearResponse(BaseModel):
    success: bool = True
    cleared: int = Field(..., description="Entries removed")
    keys: List[str] = Field(default_factory=list, description="Keys that were removed")
