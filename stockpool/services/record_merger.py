"""
Roster / overlay merge.

The roster defines output cardinality and order. Each overlay is indexed by
composite key once and looked up per roster row; a matched row is attached as
a whole sub-structure, an unmatched key leaves the overlay absent. A failed
overlay fetch behaves exactly like an overlay that was never requested.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from stockpool.core.logging import get_logger
from stockpool.domain import (
    OVERLAY_MODELS,
    DailyQuote,
    IndicatorOverlay,
    InstrumentRecord,
    ListStatus,
    OverlayKind,
    QuoteOverlay,
)
from stockpool.services.data_providers.results import FetchResult
from stockpool.services.record_keys import row_key


logger = get_logger("services.record_merger")

Overlays = Mapping[OverlayKind, FetchResult | None]


def index_overlay(
    kind: OverlayKind, rows: list[dict[str, Any]]
) -> dict[str, BaseModel]:
    """Parse overlay rows and index them by composite key.

    Rows that cannot be keyed or parsed are skipped. On duplicate keys the
    first row wins.
    """
    model = OVERLAY_MODELS[kind]
    index: dict[str, BaseModel] = {}
    skipped = 0
    for row in rows:
        key = row_key(row)
        if key is None or key in index:
            skipped += 1
            continue
        try:
            index[key] = model.model_validate(row)
        except PydanticValidationError as e:
            skipped += 1
            logger.debug(f"Skipping malformed {kind.value} row for {key}: {e.error_count()} errors")
    if skipped:
        logger.info(f"Skipped {skipped} {kind.value} rows (unkeyed, duplicate or malformed)")
    return index


def _usable_rows(kind: OverlayKind, result: FetchResult | None) -> list[dict[str, Any]] | None:
    if result is None:
        return None
    if not result.ok:
        logger.info(f"Overlay {kind.value} absent: {result.error}")
        return None
    return result.rows


def merge_records(
    roster: list[dict[str, Any]],
    overlays: Overlays,
    trade_date: str,
    list_status: ListStatus = ListStatus.LISTED,
) -> list[InstrumentRecord]:
    """
    Left-join the roster with its overlays.

    Args:
        roster: Normalized ``stock_basic`` rows, in output order
        overlays: One FetchResult (or None) per overlay kind
        trade_date: Trade date the overlays were fetched for; roster rows
            have none of their own
        list_status: Listing status applied to roster rows without one

    Returns:
        One InstrumentRecord per roster row, in roster order
    """
    indexes: dict[OverlayKind, dict[str, BaseModel]] = {}
    for kind in OverlayKind:
        rows = _usable_rows(kind, overlays.get(kind))
        if rows is not None:
            indexes[kind] = index_overlay(kind, rows)

    records: list[InstrumentRecord] = []
    seen: set[str] = set()
    for row in roster:
        code = row.get("ts_code") or row.get("code")
        if not code or code in seen:
            logger.warning(f"Dropping roster row with missing or duplicate code: {code!r}")
            continue
        seen.add(code)

        key = row_key(row, trade_date)
        attached = {
            kind.value: index.get(key) for kind, index in indexes.items()
        }
        records.append(InstrumentRecord.from_roster_row(row, list_status, **attached))

    return records


def merge_daily_quotes(
    quotes: list[dict[str, Any]],
    indicators: FetchResult | None,
) -> list[DailyQuote]:
    """
    Join daily quote rows with indicator rows by each quote's own key.

    Quote rows define cardinality and order; quote rows that cannot be
    parsed are dropped.
    """
    indicator_rows = _usable_rows(OverlayKind.INDICATORS, indicators)
    index = (
        index_overlay(OverlayKind.INDICATORS, indicator_rows)
        if indicator_rows is not None
        else {}
    )

    merged: list[DailyQuote] = []
    for row in quotes:
        key = row_key(row)
        if key is None:
            continue
        try:
            quote = QuoteOverlay.model_validate(row)
        except PydanticValidationError:
            logger.debug(f"Skipping malformed quote row for {key}")
            continue
        indicator = index.get(key)
        merged.append(
            DailyQuote(
                quote=quote,
                indicators=indicator if isinstance(indicator, IndicatorOverlay) else None,
            )
        )
    return merged
