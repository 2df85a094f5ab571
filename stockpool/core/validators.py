"""Request parameter validation.

Everything here raises ``ValidationError`` before any upstream call is made.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from stockpool.core.data_helpers import parse_trade_date
from stockpool.core.exceptions import ValidationError


TRADE_DATE_PATTERN = re.compile(r"[0-9]{8}")
TS_CODE_PATTERN = re.compile(r"[0-9]{6}\.(SH|SZ|BJ)")
TRADE_TIME_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}")
TRADE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def validate_trade_date(value: str, field_name: str = "trade_date") -> date:
    """Check a YYYYMMDD string and return it as a date."""
    if not isinstance(value, str) or not TRADE_DATE_PATTERN.fullmatch(value):
        raise ValidationError(
            f"Invalid {field_name} format. Expected YYYYMMDD, got: {value}",
            details={"field": field_name},
        )
    try:
        return parse_trade_date(value)
    except ValueError:
        raise ValidationError(
            f"Invalid {field_name}: {value} is not a calendar date",
            details={"field": field_name},
        ) from None


def validate_ts_code(value: str, field_name: str = "ts_code") -> str:
    """Check an exchange-qualified code such as 600000.SH."""
    if not isinstance(value, str) or not TS_CODE_PATTERN.fullmatch(value):
        raise ValidationError(
            f"Invalid {field_name} format. Expected XXXXXX.SH, XXXXXX.SZ or XXXXXX.BJ, got: {value}",
            details={"field": field_name},
        )
    return value


def validate_trade_time(value: str, field_name: str = "trade_time") -> datetime:
    """Check a YYYY-MM-DD HH:MM:SS string and return it as a datetime."""
    if not isinstance(value, str) or not TRADE_TIME_PATTERN.fullmatch(value):
        raise ValidationError(
            f"Invalid {field_name} format. Expected YYYY-MM-DD HH:MM:SS, got: {value}",
            details={"field": field_name},
        )
    try:
        return datetime.strptime(value, TRADE_TIME_FORMAT)
    except ValueError:
        raise ValidationError(
            f"Invalid {field_name}: {value} is not a valid time",
            details={"field": field_name},
        ) from None


def validate_time_range(start: str, end: str) -> tuple[datetime, datetime]:
    """Validate both ends of an intraday window and their order."""
    start_time = validate_trade_time(start, "start_date")
    end_time = validate_trade_time(end, "end_date")
    if start_time > end_time:
        raise ValidationError(
            f"start_date {start} is after end_date {end}",
            details={"start_date": start, "end_date": end},
        )
    return start_time, end_time


def validate_date_range(start_date: str, end_date: str) -> tuple[date, date]:
    """Validate both ends of a range and their order."""
    start = validate_trade_date(start_date, "start_date")
    end = validate_trade_date(end_date, "end_date")
    if start > end:
        raise ValidationError(
            f"start_date {start_date} is after end_date {end_date}",
            details={"start_date": start_date, "end_date": end_date},
        )
    return start, end


def validate_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}", details={"field": "month"})
    if not 1000 <= year <= 9999:
        raise ValidationError(f"Invalid year: {year}", details={"field": "year"})


def validate_quote_window(
    ts_code: str | None,
    trade_date: str | None,
    start_date: str | None,
    end_date: str | None,
) -> None:
    """Validate the code and date selectors shared by the daily bar queries.

    A range needs both ends; it takes precedence over ``trade_date``.
    """
    if ts_code:
        validate_ts_code(ts_code)
    if start_date or end_date:
        if not (start_date and end_date):
            raise ValidationError(
                "start_date and end_date must be given together",
                details={"start_date": start_date, "end_date": end_date},
            )
        validate_date_range(start_date, end_date)
    if trade_date:
        validate_trade_date(trade_date)
