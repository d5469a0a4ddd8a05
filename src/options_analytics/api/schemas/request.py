"""Pydantic request schemas for the analytics tools."""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ...core.volatility import DEFAULT_PERIODS


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"


class LegAction(str, Enum):
    BUY = "buy"
    SELL = "sell"


class StrategyType(str, Enum):
    CALL = "call"
    PUT = "put"
    COVERED_CALL = "covered_call"
    PROTECTIVE_PUT = "protective_put"
    BULL_CALL_SPREAD = "bull_call_spread"
    BEAR_PUT_SPREAD = "bear_put_spread"
    BULL_PUT_SPREAD = "bull_put_spread"
    BEAR_CALL_SPREAD = "bear_call_spread"
    LONG_STRADDLE = "long_straddle"
    SHORT_STRADDLE = "short_straddle"
    LONG_STRANGLE = "long_strangle"
    SHORT_STRANGLE = "short_strangle"
    IRON_CONDOR = "iron_condor"
    IRON_BUTTERFLY = "iron_butterfly"
    BUTTERFLY_SPREAD = "butterfly_spread"
    CALENDAR_SPREAD = "calendar_spread"
    DIAGONAL_SPREAD = "diagonal_spread"
    CUSTOM = "custom"


class SymbolRequest(BaseModel):
    symbol: str = Field(..., min_length=1, max_length=20, description="Stock ticker symbol (e.g. AAPL, MSFT)")

    @field_validator("symbol")
    @classmethod
    def sym(cls, v: str) -> str:
        v = v.strip().upper()
        if not re.fullmatch(r"[A-Z0-9.\-^]{1,20}", v):
            raise ValueError("symbol must be 1-20 characters of letters, digits, '.', '-' or '^'")
        return v


class CalculateGreeksRequest(SymbolRequest):
    """Option Greeks (delta, gamma, theta, vega, rho) from the Black-Scholes model.

    Delta is the price change per $1 move in the underlying, gamma the rate
    of change of delta, theta the daily time decay, vega the sensitivity to a
    1% volatility change and rho the sensitivity to a 1% rate change.
    """

    strike: float = Field(..., gt=0, le=1e9, description="Option strike price")
    expiration_date: date = Field(..., description="Expiration date in YYYY-MM-DD format")
    option_type: OptionType = Field(..., description="Option type: call or put")
    underlying_price: Optional[float] = Field(
        None, gt=0, le=1e9, description="Current underlying price (fetched when omitted)"
    )
    risk_free_rate: Optional[float] = Field(
        None, ge=-1.0, le=1.0, description="Risk-free interest rate as a decimal (default 0.045)"
    )
    dividend_yield: Optional[float] = Field(
        None, ge=0.0, le=1.0, description="Annual dividend yield as a decimal (default 0)"
    )


class CalculateMaxPainRequest(SymbolRequest):
    """Strike at which option holders collectively lose the most at expiration."""

    expiration_date: Optional[date] = Field(
        None, description="Expiration date in YYYY-MM-DD format (defaults to the nearest expiration)"
    )


class CalculateHistoricalVolatilityRequest(SymbolRequest):
    """Annualised realised volatility, in percent, for several lookback windows."""

    periods: List[int] = Field(
        default_factory=lambda: list(DEFAULT_PERIODS),
        min_length=1,
        max_length=20,
        description="Lookback windows in trading days (default [10, 20, 30, 60, 90])",
    )

    @field_validator("periods")
    @classmethod
    def positive_periods(cls, v: List[int]) -> List[int]:
        if any(period < 1 or period > 2520 for period in v):
            raise ValueError("periods must be between 1 and 2520 days")
        return v


class GetImpliedVolatilityRequest(SymbolRequest):
    """At-the-money implied volatility, its term structure and the spread to realised volatility."""


class StrategyLegRequest(BaseModel):
    strike: float = Field(..., gt=0, le=1e9, description="Strike price")
    option_type: OptionType = Field(..., description="call or put")
    action: LegAction = Field(..., description="buy or sell")
    quantity: int = Field(1, ge=1, le=100_000, description="Number of contracts")
    premium: Optional[float] = Field(
        None, ge=0, le=1e9, description="Premium per share (fetched or modelled when omitted)"
    )


class AnalyzeStrategyRequest(SymbolRequest):
    """Max profit, max loss, break-evens, Greeks and a P&L curve for a multi-leg position."""

    strategy_type: StrategyType = Field(StrategyType.CUSTOM, description="Strategy label")
    legs: List[StrategyLegRequest] = Field(..., min_length=1, description="Option positions in the strategy")
    expiration_date: date = Field(..., description="Expiration date in YYYY-MM-DD format")


class BlackScholesRequest(BaseModel):
    """Price and Greeks for explicit model inputs."""

    spot_price: float = Field(..., gt=0, le=1e9)
    strike_price: float = Field(..., gt=0, le=1e9)
    time_to_expiry: float = Field(..., gt=0, le=50.0, description="Time to expiry in years")
    volatility: float = Field(..., gt=0, description="Annualised volatility as a decimal")
    option_type: OptionType
    risk_free_rate: Optional[float] = Field(None, ge=-1.0, le=1.0)
    dividend_yield: Optional[float] = Field(None, ge=0.0, le=1.0)
    precision: Optional[int] = Field(4, ge=0, le=12, description="Decimals for Greeks; null keeps full precision")
