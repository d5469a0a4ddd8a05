"""Helpers for converting between API schemas and domain models."""

from __future__ import annotations

from typing import List

from ..core.models import (
    Greeks,
    LegAction as DomainLegAction,
    LegAnalysis,
    OptionLeg,
    OptionType as DomainOptionType,
    PricingInputs,
    StrategyAnalysis,
)
from .schemas.request import BlackScholesRequest, OptionType, StrategyLegRequest
from .schemas.response import (
    CalculateGreeksResponse,
    GreeksResponse,
    HistoricalVolatilityResponse,
    ImpliedVolatilityResponse,
    MaxPainPointResponse,
    MaxPainResponse,
    PnLPointResponse,
    StrategyAnalysisResponse,
    StrategyLegResponse,
    TermStructurePointResponse,
    VolatilityPeriodResponse,
)
from .services import GreeksReport, HistoricalVolatilityReport, ImpliedVolatilityReport, MaxPainReport


def to_option_type(option_type: OptionType) -> DomainOptionType:
    return DomainOptionType(option_type.value)


def to_option_leg(leg: StrategyLegRequest) -> OptionLeg:
    """Convert an API leg into the domain representation."""

    return OptionLeg(
        strike=leg.strike,
        option_type=to_option_type(leg.option_type),
        action=DomainLegAction(leg.action.value),
        quantity=leg.quantity,
        premium=leg.premium,
    )


def to_option_legs(legs: List[StrategyLegRequest]) -> List[OptionLeg]:
    return [to_option_leg(leg) for leg in legs]


def to_pricing_inputs(request: BlackScholesRequest, *, risk_free_rate: float, dividend_yield: float) -> PricingInputs:
    """Build model inputs, filling rate and yield from configured defaults."""

    return PricingInputs(
        spot_price=request.spot_price,
        strike_price=request.strike_price,
        time_to_expiry=request.time_to_expiry,
        volatility=request.volatility,
        option_type=to_option_type(request.option_type),
        risk_free_rate=risk_free_rate if request.risk_free_rate is None else request.risk_free_rate,
        dividend_yield=dividend_yield if request.dividend_yield is None else request.dividend_yield,
    )


def greeks_response(greeks: Greeks) -> GreeksResponse:
    return GreeksResponse(**greeks.as_dict())


def greeks_report_response(report: GreeksReport) -> CalculateGreeksResponse:
    return CalculateGreeksResponse(
        symbol=report.symbol,
        strike=report.strike,
        expiration_date=report.expiration_date,
        option_type=report.option_type.value,
        underlying_price=report.underlying_price,
        time_to_expiry=report.time_to_expiry,
        theoretical_price=report.theoretical_price,
        implied_volatility=round(report.implied_volatility, 4),
        volatility_source=report.volatility_source,
        greeks=greeks_response(report.greeks),
    )


def max_pain_response(report: MaxPainReport) -> MaxPainResponse:
    result = report.result
    return MaxPainResponse(
        symbol=report.symbol,
        expiration_date=report.expiration_date,
        max_pain_price=result.max_pain_price,
        current_price=report.current_price,
        total_open_interest=result.total_open_interest,
        call_open_interest=result.call_open_interest,
        put_open_interest=result.put_open_interest,
        put_call_ratio=round(result.put_call_ratio, 4),
        price_points=[
            MaxPainPointResponse(
                price=point.price,
                call_pain=point.call_pain,
                put_pain=point.put_pain,
                total_pain=point.total_pain,
            )
            for point in result.price_points
        ],
    )


def historical_volatility_response(report: HistoricalVolatilityReport) -> HistoricalVolatilityResponse:
    return HistoricalVolatilityResponse(
        symbol=report.symbol,
        current_price=report.result.current_price,
        periods=[
            VolatilityPeriodResponse(
                days=period.days,
                volatility=period.volatility,
                annualized=round(period.annualized, 4),
            )
            for period in report.result.periods
        ],
    )


def implied_volatility_response(report: ImpliedVolatilityReport) -> ImpliedVolatilityResponse:
    summary = report.summary
    return ImpliedVolatilityResponse(
        symbol=report.symbol,
        expiration_date=report.expiration_date,
        current_iv=summary.current_iv,
        historical_volatility=summary.historical_volatility,
        iv_vs_hv=summary.iv_vs_hv,
        atm_strike=summary.atm_strike,
        atm_call_iv=summary.atm_call_iv,
        atm_put_iv=summary.atm_put_iv,
        iv_by_expiration=[
            TermStructurePointResponse(
                expiration_date=point.expiration_date,
                days_to_expiration=point.days_to_expiration,
                implied_volatility=point.implied_volatility,
            )
            for point in summary.term_structure
        ],
    )


def _leg_response(analysis: LegAnalysis) -> StrategyLegResponse:
    leg = analysis.leg
    return StrategyLegResponse(
        strike=leg.strike,
        option_type=leg.option_type.value,
        action=leg.action.value,
        quantity=leg.quantity,
        premium=leg.premium or 0.0,
        premium_source=analysis.premium_source.value,
        volatility=analysis.volatility,
        greeks=greeks_response(analysis.greeks.rounded(4)),
        position_greeks=greeks_response(analysis.position_greeks.rounded(4)),
        error=analysis.error,
    )


def strategy_response(symbol: str, analysis: StrategyAnalysis) -> StrategyAnalysisResponse:
    return StrategyAnalysisResponse(
        symbol=symbol,
        strategy_type=analysis.strategy_type,
        expiration_date=analysis.expiration_date,
        underlying_price=analysis.underlying_price,
        legs=[_leg_response(leg) for leg in analysis.legs],
        net_premium=round(analysis.net_premium, 2),
        net_debit=round(analysis.net_debit, 2),
        max_profit=analysis.max_profit,
        max_loss=analysis.max_loss,
        break_even_points=list(analysis.break_even_points),
        greeks=greeks_response(analysis.greeks),
        profit_loss_chart=[
            PnLPointResponse(
                price=point.price,
                profit_loss=point.profit_loss,
                profit_loss_percent=point.profit_loss_percent,
            )
            for point in analysis.profit_loss_chart
        ],
        warnings=list(analysis.warnings),
    )
