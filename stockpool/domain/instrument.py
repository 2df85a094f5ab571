"""Instrument domain models.

Roster rows, the two overlay kinds (daily quote snapshot and valuation
indicators) and the merged ``InstrumentRecord``. Overlays are whole
sub-structures: a record carries either the full overlay parsed from one
provider row or nothing at all.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, computed_field


class SubMarket(str, Enum):
    """Exchange segment derived from the ts_code suffix."""

    SH = "SH"
    SZ = "SZ"
    BJ = "BJ"

    @classmethod
    def from_code(cls, code: str) -> "SubMarket | None":
        suffix = code.rpartition(".")[2].upper()
        try:
            return cls(suffix)
        except ValueError:
            return None

    @property
    def exchange(self) -> "Exchange":
        return _SUB_MARKET_EXCHANGES[self]


class Exchange(str, Enum):
    """Exchanges known to the trade calendar."""

    SSE = "SSE"
    SZSE = "SZSE"
    BSE = "BSE"


_SUB_MARKET_EXCHANGES = {
    SubMarket.SH: Exchange.SSE,
    SubMarket.SZ: Exchange.SZSE,
    SubMarket.BJ: Exchange.BSE,
}


class ListStatus(str, Enum):
    """Listing status as reported by stock_basic."""

    LISTED = "L"
    DELISTED = "D"
    PAUSED = "P"


class OverlayKind(str, Enum):
    """Optional datasets merged onto the roster."""

    QUOTE = "quote"
    INDICATORS = "indicators"


class QuoteOverlay(BaseModel):
    """Daily quote snapshot (Tushare ``daily``)."""

    code: str = Field(..., validation_alias=AliasChoices("ts_code", "code"))
    trade_date: str = Field(..., validation_alias=AliasChoices("trade_date", "tradeDate"))
    close: float | None = Field(None, description="Last/close price")
    pre_close: float | None = Field(None, description="Prior close")
    change: float | None = Field(None, description="Absolute change")
    pct_chg: float | None = Field(None, description="Change percent")
    vol: float | None = Field(None, ge=0, description="Volume (lots)")
    amount: float | None = Field(None, ge=0, description="Turnover amount (thousand CNY)")
    open: float | None = Field(None, description="Open price")
    high: float | None = Field(None, description="High price")
    low: float | None = Field(None, description="Low price")

    model_config = {"frozen": True, "populate_by_name": True}


class IndicatorOverlay(BaseModel):
    """Daily valuation indicators (Tushare ``daily_basic``).

    Values the provider reports as null (e.g. P/E of a loss-making company)
    stay null inside a present overlay.
    """

    code: str = Field(..., validation_alias=AliasChoices("ts_code", "code"))
    trade_date: str = Field(..., validation_alias=AliasChoices("trade_date", "tradeDate"))
    total_mv: float | None = Field(None, ge=0, description="Total market cap (10k CNY)")
    circ_mv: float | None = Field(None, ge=0, description="Free-float market cap (10k CNY)")
    turnover_rate: float | None = Field(None, description="Turnover rate (%)")
    pe: float | None = Field(None, description="P/E")
    pb: float | None = Field(None, description="P/B")
    ps: float | None = Field(None, description="P/S")
    dv_ratio: float | None = Field(None, description="Dividend yield (%)")

    model_config = {"frozen": True, "populate_by_name": True}


OVERLAY_MODELS: dict[OverlayKind, type[BaseModel]] = {
    OverlayKind.QUOTE: QuoteOverlay,
    OverlayKind.INDICATORS: IndicatorOverlay,
}


class InstrumentRecord(BaseModel):
    """One merged row of the stock pool."""

    # Identity
    code: str = Field(..., description="Exchange-qualified code, e.g. 600000.SH")
    symbol: str | None = Field(None, description="Bare six-digit symbol")

    # Roster
    name: str = Field(..., description="Display name")
    sub_market: SubMarket | None = Field(None, description="SH / SZ / BJ")
    board: str | None = Field(None, description="Board as reported by the provider")
    industry: str | None = Field(None, description="Industry classification")
    area: str | None = Field(None, description="Registered region")
    list_date: str | None = Field(None, description="Listing date (YYYYMMDD)")
    list_status: ListStatus = Field(default=ListStatus.LISTED)

    # Overlays
    quote: QuoteOverlay | None = None
    indicators: IndicatorOverlay | None = None

    model_config = {"frozen": True}

    @computed_field
    @property
    def has_quote(self) -> bool:
        return self.quote is not None

    @computed_field
    @property
    def has_indicators(self) -> bool:
        return self.indicators is not None

    def overlay(self, kind: OverlayKind) -> BaseModel | None:
        if kind is OverlayKind.QUOTE:
            return self.quote
        return self.indicators

    @classmethod
    def from_roster_row(
        cls,
        row: dict[str, Any],
        list_status: ListStatus = ListStatus.LISTED,
        **overlays: BaseModel | None,
    ) -> "InstrumentRecord":
        """Create from a normalized ``stock_basic`` row.

        Args:
            row: Row dict with at least ``ts_code`` (or ``code``) and ``name``
            list_status: Status used when the row does not carry one
            **overlays: ``quote`` / ``indicators`` sub-structures, if matched

        Returns:
            InstrumentRecord instance
        """
        code = row.get("ts_code") or row["code"]
        industry = row.get("industry")
        if isinstance(industry, str):
            industry = industry.strip() or None
        return cls(
            code=code,
            symbol=row.get("symbol"),
            name=row.get("name") or code,
            sub_market=SubMarket.from_code(code),
            board=row.get("market"),
            industry=industry,
            area=row.get("area"),
            list_date=row.get("list_date"),
            list_status=row.get("list_status") or list_status,
            **overlays,
        )


class DailyQuote(BaseModel):
    """A daily quote row with its valuation indicators joined on, if any."""

    quote: QuoteOverlay
    indicators: IndicatorOverlay | None = None

    model_config = {"frozen": True}

    @computed_field
    @property
    def code(self) -> str:
        return self.quote.code

    @computed_field
    @property
    def trade_date(self) -> str:
        return self.quote.trade_date
