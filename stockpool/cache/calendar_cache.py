"""In-memory month calendar cache with single-flight refresh.

Entries never expire; they are replaced by a forced refresh, removed by
``invalidate`` and dropped wholesale by ``clear``.

Concurrency policy: cache hits take no lock. Misses and forced refreshes of
the same key are serialized on a per-key ``asyncio.Lock``. A miss that waited
behind another fetch re-checks the cache and returns the fresh entry without
fetching again; forced refreshes each run in turn, so the last one to finish
wins.

A fetch that was in flight when its key was invalidated, or when the cache
was cleared, still returns its entry to the caller but does not store it.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Mapping

from stockpool.core.config import settings
from stockpool.core.data_helpers import market_today, month_bounds
from stockpool.core.logging import get_logger
from stockpool.core.validators import validate_month
from stockpool.domain import CalendarDay, MonthCalendarEntry, month_key
from stockpool.services.trade_calendar import generate_month_calendar


logger = get_logger("cache.calendar")

MarkerFetcher = Callable[..., Awaitable[Mapping[str, int]]]
Generator = Callable[[str, int, int, Mapping[str, int]], list[CalendarDay]]


class CalendarCache:
    """Memo of generated month calendars keyed by exchange + year + month."""

    def __init__(
        self,
        fetch_markers: MarkerFetcher,
        generator: Generator = generate_month_calendar,
    ):
        """
        Args:
            fetch_markers: ``async (exchange, start: date, end: date) -> {YYYYMMDD: is_open}``
            generator: Builds the day list from markers
        """
        self._fetch_markers = fetch_markers
        self._generate = generator
        self._entries: dict[str, MonthCalendarEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Bumped by clear() and invalidate(); a build stores only if unchanged
        self._epoch = 0
        self._generations: dict[str, int] = {}

    def _get_lock(self, key: str) -> asyncio.Lock:
        """Get or create lock for a key."""
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        return list(self._entries)

    def _token(self, key: str) -> tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    def get(self, exchange: str, year: int, month: int) -> MonthCalendarEntry | None:
        """Cached entry or None. Never fetches."""
        return self._entries.get(month_key(exchange, year, month))

    async def get_or_fetch(
        self,
        exchange: str,
        year: int,
        month: int,
        force_refresh: bool = False,
    ) -> MonthCalendarEntry:
        """
        Return the cached month, fetching and generating it on a miss.

        Args:
            exchange: Exchange code
            year: Four-digit year
            month: Month number 1-12
            force_refresh: Always refetch markers and regenerate

        Raises:
            ValidationError: Bad year or month
            NetworkError / UpstreamError / ConfigurationError: Marker fetch
                failed; the previous entry, if any, is kept
        """
        validate_month(year, month)
        key = month_key(exchange, year, month)

        if not force_refresh:
            entry = self._entries.get(key)
            if entry is not None:
                logger.debug(f"Calendar cache hit: {key}")
                return entry

        async with self._get_lock(key):
            if not force_refresh:
                entry = self._entries.get(key)
                if entry is not None:
                    return entry

            logger.info(
                f"Calendar cache {'refresh' if force_refresh else 'miss'}: {key}"
            )
            token = self._token(key)
            entry = await self._build(exchange, year, month)
            if self._token(key) == token:
                self._entries[key] = entry
            else:
                logger.debug(f"Calendar cache dropped stale build: {key}")
            return entry

    async def get_current_month(
        self, exchange: str, force_refresh: bool = False
    ) -> MonthCalendarEntry:
        """Calendar for the current month in the market timezone."""
        today = market_today(settings.market_timezone)
        return await self.get_or_fetch(exchange, today.year, today.month, force_refresh)

    def invalidate(self, exchange: str, year: int, month: int) -> bool:
        """Drop one month. Returns True if it was cached."""
        key = month_key(exchange, year, month)
        removed = self._entries.pop(key, None) is not None
        self._generations[key] = self._generations.get(key, 0) + 1
        if removed:
            logger.info(f"Calendar cache invalidated: {key}")
        return removed

    def clear(self) -> int:
        """Drop every entry. Returns how many were removed."""
        count = len(self._entries)
        self._entries = {}
        self._epoch += 1
        logger.info(f"Calendar cache cleared ({count} entries)")
        return count

    async def _build(self, exchange: str, year: int, month: int) -> MonthCalendarEntry:
        start, end = month_bounds(year, month)
        markers = await self._fetch_markers(exchange, start, end)
        days = self._generate(exchange, year, month, markers)
        return MonthCalendarEntry(
            exchange=exchange,
            year=year,
            month=month,
            dates=tuple(days),
            last_update=datetime.now(timezone.utc),
        )
