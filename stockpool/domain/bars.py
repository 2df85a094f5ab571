"""Bar domain models: daily history, intraday minute bars and realtime snapshots."""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, Field


# Continuous-auction minutes per trading day: 09:30-11:30 and 13:00-15:00
TRADING_MINUTES_PER_DAY = 240


class MinuteFreq(str, Enum):
    """Intraday bar frequencies offered by stk_mins."""

    MIN_1 = "1min"
    MIN_5 = "5min"
    MIN_15 = "15min"
    MIN_30 = "30min"
    MIN_60 = "60min"

    @property
    def minutes(self) -> int:
        return int(self.value.removesuffix("min"))

    @property
    def bars_per_day(self) -> int:
        return TRADING_MINUTES_PER_DAY // self.minutes


class Session(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


class DailyBar(BaseModel):
    """One day of one instrument (Tushare ``bak_daily``)."""

    code: str = Field(..., validation_alias=AliasChoices("ts_code", "code"))
    trade_date: str = Field(..., validation_alias=AliasChoices("trade_date", "tradeDate"))
    name: str | None = None
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    pct_chg: float | None = Field(
        None,
        validation_alias=AliasChoices("pct_change", "pct_chg"),
        description="Change percent",
    )
    vol: float | None = Field(None, ge=0, description="Volume (lots)")
    amount: float | None = Field(None, ge=0, description="Turnover amount")

    model_config = {"frozen": True, "populate_by_name": True}


class MinuteBar(BaseModel):
    """One intraday bar (Tushare ``stk_mins``)."""

    code: str = Field(..., validation_alias=AliasChoices("ts_code", "code"))
    trade_time: str = Field(..., description="YYYY-MM-DD HH:MM:SS")
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    vol: float | None = Field(None, ge=0)
    amount: float | None = Field(None, ge=0)

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def trading_day(self) -> str:
        return self.trade_time[:10]

    @property
    def session(self) -> Session | None:
        """Trading session the bar closes in, by hour."""
        try:
            hour = int(self.trade_time[11:13])
        except ValueError:
            return None
        if 9 <= hour < 12:
            return Session.MORNING
        if 13 <= hour < 16:
            return Session.AFTERNOON
        return None


class RealtimeQuote(BaseModel):
    """Realtime snapshot (Tushare ``rt_k``)."""

    code: str = Field(..., validation_alias=AliasChoices("ts_code", "code"))
    name: str | None = None
    pre_close: float | None = None
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = Field(None, description="Last price")
    vol: float | None = Field(None, ge=0)
    amount: float | None = Field(None, ge=0)
    num: int | None = Field(None, ge=0, description="Number of trades")

    model_config = {"frozen": True, "populate_by_name": True}
