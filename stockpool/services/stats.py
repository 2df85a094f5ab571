"""
Distributional summaries over pool records, daily quotes, bars and calendar
ranges.

All functions are pure and accept empty input: an empty pool yields a
``has_data=False`` summary with zero counts instead of dividing by zero.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from pydantic import BaseModel, Field

from stockpool.domain import (
    DailyBar,
    DailyQuote,
    InstrumentRecord,
    MinuteBar,
    MinuteFreq,
    OverlayKind,
    QuoteOverlay,
    Session,
    SubMarket,
    TradeCalendarItem,
)


UNCLASSIFIED_INDUSTRY = "Unclassified"


class IndustryShare(BaseModel):
    industry: str
    count: int
    share: int = Field(..., description="Rounded percent of all records")


class PriceStats(BaseModel):
    avg_close: float
    avg_change_pct: float
    advancing: int
    declining: int
    unchanged: int


class VolumeStats(BaseModel):
    total_volume: float
    total_amount: float
    avg_volume: float


class PoolStats(BaseModel):
    """Summary of a merged stock pool."""

    has_data: bool
    total: int
    markets: dict[str, int]
    coverage: dict[str, int] = Field(..., description="Percent of records per overlay")
    with_overlay: dict[str, int] = Field(..., description="Records per overlay")
    industries: list[IndustryShare]
    price_stats: PriceStats | None = None
    volume_stats: VolumeStats | None = None


class DateRange(BaseModel):
    start: str | None
    end: str | None


class QuoteStats(BaseModel):
    """Summary of a daily quote query."""

    has_data: bool
    total_records: int
    date_range: DateRange
    markets: dict[str, int]
    with_indicators: int
    price_stats: PriceStats | None = None
    volume_stats: VolumeStats | None = None


class HistoryStats(BaseModel):
    """Summary of a daily history query."""

    has_data: bool
    total_records: int
    date_range: DateRange
    markets: dict[str, int]
    price_stats: PriceStats | None = None
    volume_stats: VolumeStats | None = None


class MinutePriceStats(BaseModel):
    highest: float | None = None
    lowest: float | None = None
    price_range: float | None = Field(None, description="Highest high minus lowest low")
    avg_volume: int = 0


class MinuteStats(BaseModel):
    """Summary of an intraday bar query."""

    has_data: bool
    total_records: int
    frequency: MinuteFreq
    days_requested: int | None
    bars_per_day: int
    days_covered: int
    time_range: DateRange
    price_stats: MinutePriceStats
    sessions: dict[str, int]


class ExchangeDays(BaseModel):
    trading: int = 0
    total: int = 0


class CalendarStats(BaseModel):
    """Summary of a trade calendar range."""

    total_days: int
    trading_days: int
    non_trading_days: int
    trading_ratio: float = Field(..., description="Percent of trading days, 2 decimals")
    date_range: DateRange
    exchanges: dict[str, ExchangeDays]


def percent(part: int, total: int) -> int:
    """Rounded integer percent; 0 when total is 0."""
    if total <= 0:
        return 0
    return round(part / total * 100)


def market_counts(codes: Iterable[str]) -> dict[str, int]:
    counts = {market.value: 0 for market in SubMarket}
    for code in codes:
        market = SubMarket.from_code(code)
        if market is not None:
            counts[market.value] += 1
    return counts


def top_industries(records: Sequence[InstrumentRecord], top_n: int) -> list[IndustryShare]:
    """Most common industries, descending by count.

    Ties keep first-appearance order (Counter preserves insertion order and
    the sort is stable).
    """
    counter: Counter[str] = Counter(
        record.industry or UNCLASSIFIED_INDUSTRY for record in records
    )
    ranked = sorted(counter.items(), key=lambda item: -item[1])[:top_n]
    return [
        IndustryShare(industry=name, count=count, share=percent(count, len(records)))
        for name, count in ranked
    ]


def price_volume_stats(
    quotes: Sequence[QuoteOverlay | DailyBar],
) -> tuple[PriceStats | None, VolumeStats | None]:
    """Price and volume aggregates over quote snapshots or daily bars."""
    if not quotes:
        return None, None

    closes = [q.close for q in quotes if q.close is not None]
    changes = [q.pct_chg for q in quotes if q.pct_chg is not None]
    volumes = [q.vol for q in quotes if q.vol is not None]
    amounts = [q.amount for q in quotes if q.amount is not None]

    price = PriceStats(
        avg_close=round(sum(closes) / len(closes), 2) if closes else 0.0,
        avg_change_pct=round(sum(changes) / len(changes), 2) if changes else 0.0,
        advancing=sum(1 for c in changes if c > 0),
        declining=sum(1 for c in changes if c < 0),
        unchanged=sum(1 for c in changes if c == 0),
    )
    total_volume = sum(volumes)
    volume = VolumeStats(
        total_volume=round(total_volume, 2),
        total_amount=round(sum(amounts), 2),
        avg_volume=round(total_volume / len(volumes), 2) if volumes else 0.0,
    )
    return price, volume


def summarize_records(records: Sequence[InstrumentRecord], top_n: int = 10) -> PoolStats:
    """Sub-market counts, overlay coverage, price/volume and top industries."""
    total = len(records)
    with_overlay = {
        kind.value: sum(1 for record in records if record.overlay(kind) is not None)
        for kind in OverlayKind
    }
    quotes = [record.quote for record in records if record.quote is not None]
    price_stats, volume_stats = price_volume_stats(quotes)

    return PoolStats(
        has_data=total > 0,
        total=total,
        markets=market_counts(record.code for record in records),
        coverage={kind: percent(count, total) for kind, count in with_overlay.items()},
        with_overlay=with_overlay,
        industries=top_industries(records, top_n) if total else [],
        price_stats=price_stats,
        volume_stats=volume_stats,
    )


def summarize_quotes(quotes: Sequence[DailyQuote]) -> QuoteStats:
    """Price/volume aggregates and covered date range of a daily quote query."""
    dates = sorted({q.trade_date for q in quotes})
    price_stats, volume_stats = price_volume_stats([q.quote for q in quotes])
    return QuoteStats(
        has_data=bool(quotes),
        total_records=len(quotes),
        date_range=DateRange(
            start=dates[0] if dates else None,
            end=dates[-1] if dates else None,
        ),
        markets=market_counts(q.code for q in quotes),
        with_indicators=sum(1 for q in quotes if q.indicators is not None),
        price_stats=price_stats,
        volume_stats=volume_stats,
    )


def summarize_calendar(
    items: Sequence[TradeCalendarItem],
    start_date: str,
    end_date: str,
) -> CalendarStats:
    """Trading / non-trading counts, trading ratio and per-exchange totals."""
    exchanges: dict[str, ExchangeDays] = {}
    trading = 0
    for item in items:
        bucket = exchanges.setdefault(item.exchange, ExchangeDays())
        bucket.total += 1
        if item.is_open == 1:
            trading += 1
            bucket.trading += 1

    total = len(items)
    ratio = round(trading / total * 100, 2) if total else 0.0
    return CalendarStats(
        total_days=total,
        trading_days=trading,
        non_trading_days=total - trading,
        trading_ratio=ratio,
        date_range=DateRange(start=start_date, end=end_date),
        exchanges=exchanges,
    )


def summarize_history(bars: Sequence[DailyBar]) -> HistoryStats:
    """Covered date range, sub-markets and price/volume block of a history query."""
    dates = sorted({bar.trade_date for bar in bars})
    price_stats, volume_stats = price_volume_stats(bars)
    return HistoryStats(
        has_data=bool(bars),
        total_records=len(bars),
        date_range=DateRange(
            start=dates[0] if dates else None,
            end=dates[-1] if dates else None,
        ),
        markets=market_counts(bar.code for bar in bars),
        price_stats=price_stats,
        volume_stats=volume_stats,
    )


def summarize_minute_bars(
    bars: Sequence[MinuteBar],
    freq: MinuteFreq,
    days_requested: int | None = None,
) -> MinuteStats:
    """
    Price extremes, volume and session split of intraday bars.

    Args:
        bars: Bars in ascending time order
        freq: Bar frequency the bars were fetched at
        days_requested: Trading days asked for, when the window was derived from it

    Returns:
        MinuteStats; prices are None when there are no bars
    """
    highs = [bar.high for bar in bars if bar.high is not None]
    lows = [bar.low for bar in bars if bar.low is not None]
    highest = max(highs) if highs else None
    lowest = min(lows) if lows else None
    total_volume = sum(bar.vol or 0 for bar in bars)

    sessions = {session.value: 0 for session in Session}
    for bar in bars:
        if bar.session is not None:
            sessions[bar.session.value] += 1

    return MinuteStats(
        has_data=bool(bars),
        total_records=len(bars),
        frequency=freq,
        days_requested=days_requested,
        bars_per_day=freq.bars_per_day,
        days_covered=len({bar.trading_day for bar in bars}),
        time_range=DateRange(
            start=bars[0].trade_time if bars else None,
            end=bars[-1].trade_time if bars else None,
        ),
        price_stats=MinutePriceStats(
            highest=highest,
            lowest=lowest,
            price_range=(
                round(highest - lowest, 4)
                if highest is not None and lowest is not None
                else None
            ),
            avg_volume=round(total_volume / len(bars)) if bars else 0,
        ),
        sessions=sessions,
    )
