"""
Trade Calendar Service - month grids from sparse exchange markers.

Usage:
    from stockpool.services.trade_calendar import (
        fetch_trade_markers,
        generate_month_calendar,
        query_trade_calendar,
    )

    markers = await fetch_trade_markers("SSE", date(2024, 2, 1), date(2024, 2, 29))
    days = generate_month_calendar("SSE", 2024, 2, markers)
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Mapping

from stockpool.core.data_helpers import format_trade_date, month_bounds, safe_int
from stockpool.core.logging import get_logger
from stockpool.core.validators import validate_date_range, validate_month
from stockpool.domain import CalendarDay, TradeCalendarItem
from stockpool.services.data_providers.tushare_client import TushareClient


logger = get_logger("services.trade_calendar")

# Marker value meaning "exchange open"
OPEN = 1


def _is_open(marker: int | str | bool) -> bool:
    return safe_int(marker, 0) == OPEN


def generate_month_calendar(
    exchange: str,
    year: int,
    month: int,
    markers: Mapping[str, int | str | bool],
) -> list[CalendarDay]:
    """
    Expand sparse trading-day markers into one CalendarDay per day of a month.

    Args:
        exchange: Exchange the markers belong to
        year: Four-digit year
        month: Month number 1-12
        markers: ``{YYYYMMDD: is_open}``; dates without a marker are treated
            as not trading and not a holiday

    Returns:
        Days in ascending order, no padding to week boundaries
    """
    validate_month(year, month)
    first, last = month_bounds(year, month)

    days: list[CalendarDay] = []
    current = first
    while current <= last:
        trade_date = format_trade_date(current)
        is_weekend = current.weekday() >= 5
        marker = markers.get(trade_date)
        if marker is None:
            is_trading = False
            is_holiday = False
        else:
            is_trading = _is_open(marker)
            is_holiday = not is_trading and not is_weekend
        days.append(
            CalendarDay(
                date=current,
                date_string=current.isoformat(),
                is_trading=is_trading,
                is_weekend=is_weekend,
                is_holiday=is_holiday,
                exchange=exchange,
                trade_date=trade_date,
            )
        )
        current += timedelta(days=1)
    return days


def markers_from_items(items: list[TradeCalendarItem]) -> dict[str, int]:
    return {item.cal_date: item.is_open for item in items}


async def query_trade_calendar(
    client: TushareClient,
    exchange: str,
    start_date: str,
    end_date: str,
    is_open: int | None = None,
) -> list[TradeCalendarItem]:
    """
    Fetch trade calendar rows for a date range.

    Raises:
        ValidationError: Malformed or inverted dates
        NetworkError / UpstreamError: The fetch failed; this dataset is mandatory
    """
    validate_date_range(start_date, end_date)
    rows = await client.get_trade_cal(
        exchange=exchange,
        start_date=start_date,
        end_date=end_date,
        is_open=is_open,
    )
    items = [TradeCalendarItem.from_row(row, exchange) for row in rows if row.get("cal_date")]
    logger.info(f"Fetched {len(items)} calendar rows for {exchange} {start_date}-{end_date}")
    return items


async def fetch_trade_markers(
    exchange: str,
    start: date,
    end: date,
    client: TushareClient | None = None,
) -> dict[str, int]:
    """Marker map ``{YYYYMMDD: is_open}`` for one exchange over a date range.

    Builds a client from settings when none is given, so a missing token
    surfaces as ConfigurationError at fetch time.
    """
    client = client or TushareClient()
    items = await query_trade_calendar(
        client, exchange, format_trade_date(start), format_trade_date(end)
    )
    return markers_from_items(items)
