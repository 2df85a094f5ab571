"""Composite keys aligning rows across datasets."""

from __future__ import annotations

from typing import Any


KEY_SEPARATOR = "_"


def record_key(code: str, trade_date: str) -> str:
    """Key for one instrument on one trade date, e.g. ``600000.SH_20240102``.

    Neither a ts_code nor an 8-digit date contains ``_``.
    """
    return f"{code}{KEY_SEPARATOR}{trade_date}"


def row_key(row: dict[str, Any], trade_date: str | None = None) -> str | None:
    """Key for a provider row. ``trade_date`` fills in for rows without one.

    Returns None when the row cannot be keyed.
    """
    code = row.get("ts_code") or row.get("code")
    date = row.get("trade_date") or row.get("tradeDate") or trade_date
    if not code or not date:
        return None
    return record_key(code, str(date))
