"""Trade calendar domain models.

Type-safe representations of exchange trading-day markers and the month grid
derived from them.
"""

from __future__ import annotations

from datetime import date as DateType
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, computed_field

from stockpool.core.data_helpers import safe_int


class TradeCalendarItem(BaseModel):
    """One normalized ``trade_cal`` row: is the exchange open on this date."""

    exchange: str = Field(..., description="Exchange (SSE, SZSE, BSE)")
    cal_date: str = Field(..., description="Calendar date (YYYYMMDD)")
    is_open: int = Field(..., ge=0, le=1, description="1 = trading, 0 = closed")
    pretrade_date: str = Field(default="", description="Previous trading day (YYYYMMDD)")

    model_config = {"frozen": True}

    @classmethod
    def from_row(cls, row: dict[str, Any], exchange: str) -> "TradeCalendarItem":
        """Create from a provider row, which may carry ``is_open`` as a string."""
        return cls(
            exchange=row.get("exchange") or exchange,
            cal_date=row["cal_date"],
            is_open=1 if safe_int(row.get("is_open"), 0) == 1 else 0,
            pretrade_date=row.get("pretrade_date") or "",
        )


class CalendarDay(BaseModel):
    """A single day of a month grid.

    ``is_weekend`` depends only on the date. ``is_trading`` and ``is_holiday``
    come from the exchange marker and are both False when no marker exists.
    """

    date: DateType = Field(..., description="Calendar date")
    date_string: str = Field(..., description="ISO date (YYYY-MM-DD)")
    is_trading: bool = Field(default=False)
    is_weekend: bool = Field(default=False)
    is_holiday: bool = Field(default=False, description="Marked closed on a weekday")
    exchange: str = Field(..., description="Exchange the marker belongs to")
    trade_date: str = Field(..., description="Raw calendar date (YYYYMMDD)")

    model_config = {"frozen": True}


class MonthCalendarEntry(BaseModel):
    """Cached month of calendar days for one exchange."""

    exchange: str
    year: int = Field(..., ge=1000, le=9999)
    month: int = Field(..., ge=1, le=12)
    dates: tuple[CalendarDay, ...] = Field(default=())
    last_update: datetime = Field(..., description="When the grid was generated")

    model_config = {"frozen": True}

    @computed_field
    @property
    def trading_days(self) -> int:
        """Number of trading days in the month."""
        return sum(1 for day in self.dates if day.is_trading)

    @computed_field
    @property
    def cache_key(self) -> str:
        return month_key(self.exchange, self.year, self.month)


def month_key(exchange: str, year: int, month: int) -> str:
    """Cache key for a month: ``{year}-{MM}-{exchange}``."""
    return f"{year}-{month:02d}-{exchange}"
