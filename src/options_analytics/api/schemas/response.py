"""Response schemas exposed by the API."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel


class GreeksResponse(BaseModel):
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float


class CalculateGreeksResponse(BaseModel):
    symbol: str
    strike: float
    expiration_date: date
    option_type: str
    underlying_price: float
    time_to_expiry: float
    theoretical_price: float
    implied_volatility: float
    volatility_source: str
    greeks: GreeksResponse


class MaxPainPointResponse(BaseModel):
    price: float
    call_pain: float
    put_pain: float
    total_pain: float


class MaxPainResponse(BaseModel):
    symbol: str
    expiration_date: date
    max_pain_price: float
    current_price: float
    total_open_interest: int
    call_open_interest: int
    put_open_interest: int
    put_call_ratio: float
    price_points: List[MaxPainPointResponse]


class VolatilityPeriodResponse(BaseModel):
    days: int
    volatility: float
    annualized: float


class HistoricalVolatilityResponse(BaseModel):
    symbol: str
    current_price: float
    periods: List[VolatilityPeriodResponse]


class TermStructurePointResponse(BaseModel):
    expiration_date: date
    days_to_expiration: int
    implied_volatility: float


class ImpliedVolatilityResponse(BaseModel):
    symbol: str
    expiration_date: date
    current_iv: float
    historical_volatility: float
    iv_vs_hv: float
    atm_strike: float
    atm_call_iv: Optional[float] = None
    atm_put_iv: Optional[float] = None
    iv_by_expiration: List[TermStructurePointResponse]


class StrategyLegResponse(BaseModel):
    strike: float
    option_type: str
    action: str
    quantity: int
    premium: float
    premium_source: str
    volatility: Optional[float] = None
    greeks: GreeksResponse
    position_greeks: GreeksResponse
    error: Optional[str] = None


class PnLPointResponse(BaseModel):
    price: float
    profit_loss: float
    profit_loss_percent: float


class StrategyAnalysisResponse(BaseModel):
    symbol: str
    strategy_type: str
    expiration_date: date
    underlying_price: float
    legs: List[StrategyLegResponse]
    net_premium: float
    net_debit: float
    max_profit: float
    max_loss: float
    break_even_points: List[float]
    greeks: GreeksResponse
    profit_loss_chart: List[PnLPointResponse]
    warnings: List[str]


class BlackScholesResponse(BaseModel):
    theoretical_price: float
    greeks: GreeksResponse
    computation_time_ms: float


class ToolDefinitionResponse(BaseModel):
    name: str
    description: str
    input_schema: dict


class ToolListResponse(BaseModel):
    tools: List[ToolDefinitionResponse]
