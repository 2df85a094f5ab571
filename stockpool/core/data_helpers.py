"""
Centralized Data Conversion Helpers.

Safe conversions for provider payload values and the date arithmetic shared by
the pool and calendar services.

Usage:
    from stockpool.core.data_helpers import safe_int, format_trade_date, market_today
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo


TRADE_DATE_FORMAT = "%Y%m%d"


def safe_int(value: Any, default: int | None = None) -> int | None:
    """
    Safely convert value to int.

    Args:
        value: Any value to convert
        default: Default to return if conversion fails

    Returns:
        Int value or default if conversion fails
    """
    if value is None:
        return default
    try:
        # Handle float strings like "1.0"
        return int(float(value))
    except (ValueError, TypeError):
        return default


def format_trade_date(value: date) -> str:
    """Format a date as Tushare's YYYYMMDD string."""
    return value.strftime(TRADE_DATE_FORMAT)


def parse_trade_date(value: str) -> date:
    """Parse a YYYYMMDD string. Raises ValueError on malformed input."""
    return datetime.strptime(value, TRADE_DATE_FORMAT).date()


def market_today(tz_name: str) -> date:
    """Today's date in the market timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def previous_business_day(today: date) -> date:
    """Most recent weekday strictly before ``today``."""
    day = today - timedelta(days=1)
    while day.weekday() >= 5:
        day -= timedelta(days=1)
    return day


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


__all__ = [
    "TRADE_DATE_FORMAT",
    "format_trade_date",
    "market_today",
    "month_bounds",
    "parse_trade_date",
    "previous_business_day",
    "safe_int",
]
