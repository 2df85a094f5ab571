"""API dependencies for upstream clients and the calendar cache."""

from __future__ import annotations

from fastapi import Request

from stockpool.cache import CalendarCache
from stockpool.services.data_providers import TushareClient


def get_tushare_client() -> TushareClient:
    """
    Tushare client bound to the shared rate limiter.

    Raises ConfigurationError (500) when TUSHARE_TOKEN is not set.
    """
    return TushareClient()


def get_calendar_cache(request: Request) -> CalendarCache:
    """Application-wide month calendar cache."""
    return request.app.state.calendar_cache
