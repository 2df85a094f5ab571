"""
Tests for month calendar generation and trade calendar queries.
"""

from __future__ import annotations

from datetime import date

import pytest

from conftest import FakeTushare
from stockpool.core.exceptions import UpstreamError, ValidationError
from stockpool.services.trade_calendar import (
    fetch_trade_markers,
    generate_month_calendar,
    markers_from_items,
    query_trade_calendar,
)


# Lunar new year 2024: SSE closed 9-17 February
FEB_2024_MARKERS = {
    "20240201": 1,
    "20240202": 1,
    "20240203": 0,
    "20240204": 0,
    "20240205": 1,
    "20240208": 1,
    "20240209": 0,
    "20240212": 0,
    "20240219": 1,
}


class TestGenerateMonthCalendar:
    """Tests for generate_month_calendar."""

    def test_leap_february_has_29_days(self):
        days = generate_month_calendar("SSE", 2024, 2, {})
        assert len(days) == 29
        assert days[0].date == date(2024, 2, 1)
        assert days[-1].date == date(2024, 2, 29)

    def test_common_february_has_28_days(self):
        assert len(generate_month_calendar("SSE", 2023, 2, {})) == 28

    def test_days_are_ascending_and_unique(self):
        days = generate_month_calendar("SSE", 2024, 1, {})
        dates = [d.date for d in days]
        assert dates == sorted(set(dates))
        assert len(dates) == 31

    def test_missing_markers_are_not_trading_and_not_holiday(self):
        """Sparse markers leave every other day closed but not a holiday."""
        days = generate_month_calendar("SSE", 2024, 2, FEB_2024_MARKERS)
        by_date = {d.trade_date: d for d in days}

        feb_6 = by_date["20240206"]  # Tuesday, no marker
        assert feb_6.is_trading is False
        assert feb_6.is_holiday is False
        assert feb_6.is_weekend is False

    def test_weekend_flag_from_weekday(self):
        days = generate_month_calendar("SSE", 2024, 2, FEB_2024_MARKERS)
        by_date = {d.trade_date: d for d in days}
        assert by_date["20240203"].is_weekend is True  # Saturday
        assert by_date["20240204"].is_weekend is True  # Sunday
        assert by_date["20240205"].is_weekend is False
        assert by_date["20240210"].is_weekend is True  # no marker, still a weekend

    def test_trading_and_holiday_from_markers(self):
        days = generate_month_calendar("SSE", 2024, 2, FEB_2024_MARKERS)
        by_date = {d.trade_date: d for d in days}

        assert by_date["20240201"].is_trading is True
        assert by_date["20240201"].is_holiday is False

        # Closed weekday
        assert by_date["20240209"].is_trading is False
        assert by_date["20240209"].is_holiday is True

        # Closed weekend is not a holiday
        assert by_date["20240203"].is_holiday is False

    def test_string_markers(self):
        days = generate_month_calendar("SSE", 2024, 2, {"20240201": "1", "20240202": "0"})
        assert days[0].is_trading is True
        assert days[1].is_trading is False
        assert days[1].is_holiday is True

    def test_day_fields(self):
        day = generate_month_calendar("SZSE", 2024, 2, {})[0]
        assert day.exchange == "SZSE"
        assert day.trade_date == "20240201"
        assert day.date_string == "2024-02-01"

    @pytest.mark.parametrize("year,month", [(2024, 0), (2024, 13), (99, 1)])
    def test_invalid_month(self, year, month):
        with pytest.raises(ValidationError):
            generate_month_calendar("SSE", year, month, {})


class TestQueryTradeCalendar:
    """Tests for query_trade_calendar / fetch_trade_markers."""

    @pytest.mark.asyncio
    async def test_items_and_markers(self, fake_tushare: FakeTushare, tushare):
        fake_tushare.set_rows(
            "trade_cal",
            [
                {"exchange": "SSE", "cal_date": "20240201", "is_open": 1, "pretrade_date": "20240131"},
                {"exchange": "SSE", "cal_date": "20240203", "is_open": "0", "pretrade_date": "20240202"},
            ],
        )
        items = await query_trade_calendar(tushare, "SSE", "20240201", "20240229")
        assert [(i.cal_date, i.is_open) for i in items] == [("20240201", 1), ("20240203", 0)]
        assert markers_from_items(items) == {"20240201": 1, "20240203": 0}

    @pytest.mark.asyncio
    async def test_invalid_range_rejected_before_fetch(self, fake_tushare: FakeTushare, tushare):
        with pytest.raises(ValidationError):
            await query_trade_calendar(tushare, "SSE", "20240229", "20240201")
        with pytest.raises(ValidationError):
            await query_trade_calendar(tushare, "SSE", "2024-02-01", "20240229")
        assert fake_tushare.calls == []

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, fake_tushare: FakeTushare, tushare):
        fake_tushare.set_error("trade_cal")
        with pytest.raises(UpstreamError):
            await fetch_trade_markers("SSE", date(2024, 2, 1), date(2024, 2, 29), client=tushare)

    @pytest.mark.asyncio
    async def test_fetch_markers_formats_dates(self, fake_tushare: FakeTushare, tushare):
        await fetch_trade_markers("BSE", date(2024, 2, 1), date(2024, 2, 29), client=tushare)
        assert fake_tushare.calls[0]["params"] == {
            "exchange": "BSE",
            "start_date": "20240201",
            "end_date": "20240229",
        }
