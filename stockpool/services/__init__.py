"""Business logic services."""

from . import bars, record_keys, record_merger, stats, stock_pool, trade_calendar


__all__ = [
    "bars",
    "record_keys",
    "record_merger",
    "stats",
    "stock_pool",
    "trade_calendar",
]
