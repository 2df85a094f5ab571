"""Domain models for strongly-typed data throughout the application.

Pydantic models that serve as the source of truth for data passed between
services, replacing the provider's raw row dicts.

Usage:
    from stockpool.domain import InstrumentRecord, CalendarDay

    record = InstrumentRecord.from_roster_row(row)
    data = record.model_dump()
"""

from stockpool.domain.bars import (
    DailyBar,
    MinuteBar,
    MinuteFreq,
    RealtimeQuote,
    Session,
)
from stockpool.domain.calendar import (
    CalendarDay,
    MonthCalendarEntry,
    TradeCalendarItem,
    month_key,
)
from stockpool.domain.instrument import (
    OVERLAY_MODELS,
    DailyQuote,
    Exchange,
    IndicatorOverlay,
    InstrumentRecord,
    ListStatus,
    OverlayKind,
    QuoteOverlay,
    SubMarket,
)

__all__ = [
    # Bars
    "DailyBar",
    "MinuteBar",
    "MinuteFreq",
    "RealtimeQuote",
    "Session",
    # Instruments
    "DailyQuote",
    "Exchange",
    "IndicatorOverlay",
    "InstrumentRecord",
    "ListStatus",
    "OVERLAY_MODELS",
    "OverlayKind",
    "QuoteOverlay",
    "SubMarket",
    # Calendar
    "CalendarDay",
    "MonthCalendarEntry",
    "TradeCalendarItem",
    "month_key",
]
