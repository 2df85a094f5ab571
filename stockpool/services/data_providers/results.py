"""
Fetch results for optional datasets.

Optional fetches (quote and indicator overlays) never raise past their call
site. ``capture`` awaits the fetch and turns any failure into a failed
``FetchResult``, which the merger treats exactly like an absent overlay.

Usage:
    result = await capture("daily", client.get_daily(trade_date="20240102"))
    if result.ok:
        rows = result.rows
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable

from stockpool.core.logging import get_logger


logger = get_logger("data_providers.results")


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one dataset fetch: rows on success, the error otherwise."""

    source: str
    rows: list[dict[str, Any]] | None = None
    error: Exception | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None and self.rows is not None

    @property
    def row_count(self) -> int:
        return len(self.rows) if self.rows is not None else 0

    @classmethod
    def success(cls, source: str, rows: list[dict[str, Any]]) -> "FetchResult":
        return cls(source=source, rows=list(rows))

    @classmethod
    def failure(cls, source: str, error: Exception) -> "FetchResult":
        return cls(source=source, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "ok": self.ok,
            "rows": self.row_count,
            "error": str(self.error) if self.error else None,
        }


async def capture(source: str, fetch: Awaitable[list[dict[str, Any]]]) -> FetchResult:
    """
    Await an optional fetch and never raise.

    Args:
        source: Dataset name for logging and metadata
        fetch: Awaitable returning rows

    Returns:
        FetchResult holding either the rows or the error
    """
    try:
        rows = await fetch
    except Exception as e:
        logger.warning(f"Optional dataset {source} unavailable: {e}")
        return FetchResult.failure(source, e)

    if not rows:
        logger.info(f"Optional dataset {source} returned no rows, possibly a non-trading day")
    return FetchResult.success(source, rows)


async def gather_optional(
    mandatory: Awaitable[Any],
    *optional: Awaitable[FetchResult] | None,
) -> tuple[Any, ...]:
    """
    Run a mandatory fetch concurrently with optional ``capture`` fetches.

    All fetches start as tasks at once, the mandatory one first, so none
    waits for another to finish before reaching the rate limiter. If the
    mandatory fetch raises, the optional tasks still pending are cancelled
    and drained before the error propagates, so they neither reach upstream
    nor hold the limiter after the request has failed.

    Args:
        mandatory: Fetch whose failure aborts the operation
        *optional: ``capture(...)`` awaitables, or None for datasets not requested

    Returns:
        ``(mandatory_result, *optional_results)`` with None for skipped slots
    """
    main = asyncio.ensure_future(mandatory)
    tasks = [asyncio.ensure_future(fetch) if fetch is not None else None for fetch in optional]
    started = [main, *(task for task in tasks if task is not None)]

    try:
        # Optional tasks never raise, so this returns when main fails or all finish
        await asyncio.wait(started, return_when=asyncio.FIRST_EXCEPTION)
    except BaseException:
        await _cancel(started)
        raise

    if main.exception() is not None:
        await _cancel(started)
        raise main.exception()

    optional_results = [await task if task is not None else None for task in tasks]
    return (main.result(), *optional_results)


async def _cancel(tasks: list[asyncio.Future]) -> None:
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    if pending:
        logger.info(f"Cancelled {len(pending)} pending fetches")
