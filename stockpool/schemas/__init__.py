"""API request and response schemas."""

from .calendar import (
    CacheClearResponse,
    MonthCalendarResponse,
    TradeCalendarMeta,
    TradeCalendarResponse,
)
from .common import ErrorResponse, HealthResponse, MessageResponse, ResponseMeta, SourceStatus
from .stocks import (
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


__all__ = [
    "CacheClearResponse",
    "DailyQuoteMeta",
    "DailyQuoteResponse",
    "ErrorResponse",
    "HealthResponse",
    "HistoryMeta",
    "HistoryResponse",
    "MessageResponse",
    "MinuteBarMeta",
    "MinuteBarResponse",
    "MonthCalendarResponse",
    "RealtimeResponse",
    "ResponseMeta",
    "SourceStatus",
    "StockPoolMeta",
    "StockPoolResponse",
    "TradeCalendarMeta",
    "TradeCalendarResponse",
]
