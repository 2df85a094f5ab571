"""Global rate limiter for external API calls."""

from __future__ import annotations

import asyncio
import time

from stockpool.core.logging import get_logger


logger = get_logger("core.rate_limiter")


class RateLimiter:
    """
    Fixed-interval rate limiter for API calls.

    Every acquisition is spaced at least ``min_interval`` seconds after the
    previous one. Concurrent callers queue on a shared lock, so physical
    dispatch stays serialized even when logical requests run in parallel.
    """

    def __init__(self, name: str, min_interval: float = 0.2):
        """
        Initialize rate limiter.

        Args:
            name: Identifier for logging
            min_interval: Minimum spacing between calls in seconds
        """
        self.name = name
        self.min_interval = min_interval
        self.last_dispatch: float | None = None
        self.calls = 0
        self._async_lock: asyncio.Lock | None = None

    async def acquire(self) -> None:
        """Wait until the next call slot is free and claim it."""
        if self._async_lock is None:
            self._async_lock = asyncio.Lock()

        async with self._async_lock:
            if self.last_dispatch is not None:
                wait_time = self.last_dispatch + self.min_interval - time.monotonic()
                if wait_time > 0:
                    logger.debug(f"Rate limiter {self.name} waiting {wait_time:.3f}s")
                    await asyncio.sleep(wait_time)
            self.last_dispatch = time.monotonic()
            self.calls += 1

    def status(self) -> dict:
        """Get current rate limiter status."""
        return {
            "name": self.name,
            "min_interval": self.min_interval,
            "calls": self.calls,
        }


# Global rate limiters
_limiters: dict[str, RateLimiter] = {}


def get_rate_limiter(name: str, min_interval: float = 0.2) -> RateLimiter:
    """
    Get or create a named rate limiter.

    Args:
        name: Unique name for the limiter
        min_interval: Call spacing in seconds (only used on creation)

    Returns:
        RateLimiter instance
    """
    if name not in _limiters:
        _limiters[name] = RateLimiter(name, min_interval)
        logger.info(f"Created rate limiter '{name}': min interval {min_interval:.3f}s")
    return _limiters[name]


TUSHARE_LIMITER = "tushare"


def get_tushare_limiter() -> RateLimiter:
    """
    Get the Tushare rate limiter.

    One limiter per process: all Tushare calls go through the same endpoint
    and share its quota.
    """
    from stockpool.core.config import settings

    return get_rate_limiter(TUSHARE_LIMITER, min_interval=settings.rate_limit_interval)


def reset_rate_limiters() -> None:
    """Drop all registered limiters."""
    _limiters.clear()
