"""Multi-leg option strategy analysis at a single expiration."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import brentq

from ..observability.metrics import STRATEGY_LEG_FAILURES
from ..utils.numerics import year_fraction
from ..utils.validation import validate_legs
from .errors import AnalyticsError, InvalidPricingInputs, OptionExpired
from .models import (
    CONTRACT_MULTIPLIER,
    BreakEvenMethod,
    Greeks,
    LegAction,
    LegAnalysis,
    LegErrorPolicy,
    OptionLeg,
    OptionsChain,
    OptionType,
    PnLPoint,
    PremiumSource,
    PricingInputs,
    StrategyAnalysis,
)
from .pricing_engine import PricingEngine
from .volatility import VolatilityEstimator

LOGGER = logging.getLogger(__name__)

DEFAULT_RISK_FREE_RATE = 0.045

# Legacy break-even scan: step, search margin around the strikes, acceptance
# band in dollars of position P&L and the minimum spacing between results.
GRID_STEP = 0.5
GRID_MARGIN = 50.0
GRID_TOLERANCE = 25.0
GRID_MIN_SPACING = 1.0

CHART_POINTS = 101


@dataclass(slots=True)
class _LegContext:
    spot: float
    time_to_expiry: float
    risk_free_rate: float
    dividend_yield: float
    chain: Optional[OptionsChain]
    close_prices: Optional[Sequence[float]]


def payoff_at(legs: Sequence[OptionLeg], prices: np.ndarray) -> np.ndarray:
    """Position P&L at expiration for every price in ``prices``.

    Legs must carry resolved premiums; a missing premium counts as zero.
    """

    prices = np.asarray(prices, dtype=float)
    total = np.zeros_like(prices)
    for leg in legs:
        if leg.option_type is OptionType.CALL:
            intrinsic = np.maximum(prices - leg.strike, 0.0)
        else:
            intrinsic = np.maximum(leg.strike - prices, 0.0)
        premium = leg.premium or 0.0
        total += (intrinsic - premium) * leg.sign * leg.quantity * CONTRACT_MULTIPLIER
    return total


def _grid_break_evens(legs: Sequence[OptionLeg], low: float, high: float) -> List[float]:
    steps = math.floor((high - low + 2 * GRID_MARGIN) / GRID_STEP + 1e-9)
    prices = (low - GRID_MARGIN) + GRID_STEP * np.arange(steps + 1)
    pnl = payoff_at(legs, prices)

    found: List[float] = []
    for price, value in zip(prices, pnl):
        if abs(value) >= GRID_TOLERANCE:
            continue
        if any(abs(existing - price) < GRID_MIN_SPACING for existing in found):
            continue
        found.append(float(price))
    return found


def _exact_break_evens(legs: Sequence[OptionLeg], strikes: Sequence[float]) -> List[float]:
    def pnl(price: float) -> float:
        return float(payoff_at(legs, np.array([price]))[0])

    knots = sorted({0.0, *(s for s in strikes if s > 0)})
    top = knots[-1]
    slope = pnl(top + 1.0) - pnl(top)
    upper = top + GRID_MARGIN
    if slope != 0 and pnl(top) * slope < 0:
        upper = max(upper, top - pnl(top) / slope + 1.0)
    knots.append(upper)

    roots = set()
    for left, right in zip(knots, knots[1:]):
        f_left, f_right = pnl(left), pnl(right)
        if f_left == 0:
            roots.add(round(left, 2))
        if f_right == 0:
            roots.add(round(right, 2))
        if f_left * f_right < 0:
            roots.add(round(brentq(pnl, left, right, xtol=1e-9), 2))
    return sorted(roots)


def _sample_prices(strikes: Sequence[float]) -> np.ndarray:
    samples: List[float] = []
    for strike in strikes:
        samples.extend((strike - 10, strike - 5, strike, strike + 5, strike + 10))
    samples.extend((min(strikes) - 20, max(strikes) + 20, 0.0))
    return np.array(samples, dtype=float)


def _chart(legs: Sequence[OptionLeg], strikes: Sequence[float]) -> Tuple[PnLPoint, ...]:
    low, high = min(strikes), max(strikes)
    width = high - low
    if width <= 0:
        width = 0.2 * low
    start = max(0.0, low - 0.5 * width)
    end = high + 0.5 * width
    prices = np.linspace(start, end, CHART_POINTS)
    pnl = payoff_at(legs, prices)

    invested = sum(
        (leg.premium or 0.0) * leg.quantity * CONTRACT_MULTIPLIER
        for leg in legs
        if leg.action is LegAction.BUY
    )
    invested = abs(invested)

    points = []
    for price, value in zip(prices, pnl):
        percent = value / invested * 100.0 if invested > 0 else 0.0
        points.append(
            PnLPoint(
                price=round(float(price), 2),
                profit_loss=round(float(value), 2),
                profit_loss_percent=round(float(percent), 2),
            )
        )
    return tuple(points)


@dataclass(slots=True)
class StrategyComposer:
    """Resolve premiums and Greeks for each leg and summarise the payoff.

    Premiums missing from a leg are taken from the chain mid when the
    contract is listed, otherwise priced with Black-Scholes using realised
    volatility. Greeks use the contract's implied volatility when positive
    and realised volatility otherwise.
    """

    pricing_engine: PricingEngine = field(default_factory=PricingEngine)
    volatility_estimator: VolatilityEstimator = field(default_factory=VolatilityEstimator)
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE
    dividend_yield: float = 0.0
    leg_error_policy: LegErrorPolicy = LegErrorPolicy.LENIENT
    break_even_method: BreakEvenMethod = BreakEvenMethod.GRID
    max_workers: int = 1

    def analyze(
        self,
        legs: Sequence[OptionLeg],
        expiration: date | datetime,
        spot: float,
        *,
        chain: Optional[OptionsChain] = None,
        close_prices: Optional[Sequence[float]] = None,
        risk_free_rate: Optional[float] = None,
        dividend_yield: Optional[float] = None,
        as_of: Optional[datetime] = None,
        strategy_type: str = "custom",
    ) -> StrategyAnalysis:
        validate_legs(legs)
        if not isinstance(spot, (int, float)) or not math.isfinite(spot) or spot <= 0:
            raise InvalidPricingInputs("underlying price must be strictly positive", details={"spot": spot})

        context = _LegContext(
            spot=float(spot),
            time_to_expiry=year_fraction(expiration, as_of),
            risk_free_rate=self.risk_free_rate if risk_free_rate is None else risk_free_rate,
            dividend_yield=self.dividend_yield if dividend_yield is None else dividend_yield,
            chain=chain,
            close_prices=close_prices,
        )
        if not context.time_to_expiry > 0:
            raise OptionExpired(
                "Strategy expiration has already passed",
                details={"time_to_expiry": context.time_to_expiry},
            )

        indexed = list(enumerate(legs))
        if self.max_workers > 1 and len(indexed) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(indexed))) as pool:
                outcomes = list(pool.map(lambda item: self._evaluate_leg(item[0], item[1], context), indexed))
        else:
            outcomes = [self._evaluate_leg(index, leg, context) for index, leg in indexed]

        analyses = tuple(analysis for analysis, _ in outcomes)
        failures = [error for _, error in outcomes if error is not None]
        # payoff needs at least one leg with a known premium
        if failures and all(analysis.premium_source is PremiumSource.UNRESOLVED for analysis in analyses):
            raise failures[0]

        resolved = [analysis.leg for analysis in analyses]
        warnings = tuple(analysis.error for analysis in analyses if analysis.error)

        net_premium = sum(
            (leg.premium or 0.0) * -leg.sign * leg.quantity * CONTRACT_MULTIPLIER
            for leg in resolved
        )

        greeks = Greeks.zero()
        for analysis in analyses:
            greeks = greeks + analysis.position_greeks

        strikes = sorted(leg.strike for leg in resolved)
        sampled = payoff_at(resolved, _sample_prices(strikes))

        if self.break_even_method is BreakEvenMethod.EXACT:
            break_evens = _exact_break_evens(resolved, strikes)
        else:
            break_evens = _grid_break_evens(resolved, strikes[0], strikes[-1])

        expiration_date = expiration.date() if isinstance(expiration, datetime) else expiration
        return StrategyAnalysis(
            strategy_type=strategy_type,
            expiration_date=expiration_date,
            underlying_price=context.spot,
            legs=analyses,
            net_premium=net_premium,
            net_debit=abs(net_premium) if net_premium < 0 else 0.0,
            max_profit=round(float(sampled.max()), 2),
            max_loss=round(float(sampled.min()), 2),
            break_even_points=tuple(sorted(round(price, 2) for price in break_evens)),
            greeks=greeks.rounded(4),
            profit_loss_chart=_chart(resolved, strikes),
            warnings=warnings,
        )

    def _evaluate_leg(
        self, index: int, leg: OptionLeg, context: _LegContext
    ) -> Tuple[LegAnalysis, Optional[AnalyticsError]]:
        contract = context.chain.find(leg.option_type, leg.strike) if context.chain is not None else None
        problems: List[str] = []

        if leg.premium is not None:
            premium, source = leg.premium, PremiumSource.EXPLICIT
        elif contract is not None:
            premium, source = contract.mid, PremiumSource.MARKET
        else:
            try:
                premium = self._model_premium(leg, context)
                source = PremiumSource.MODEL
            except AnalyticsError as exc:
                self._handle_failure(index, exc)
                premium, source = 0.0, PremiumSource.UNRESOLVED
                problems.append(f"legs[{index}] premium unresolved: {exc.message}")

        implied = contract.implied_volatility if contract is not None else None
        try:
            volatility, _ = self.volatility_estimator.resolve_volatility(implied, context.close_prices)
            greeks = self.pricing_engine.calculate_greeks(
                self._inputs(leg, context, volatility), precision=None
            )
        except AnalyticsError as exc:
            self._handle_failure(index, exc)
            problems.append(f"legs[{index}] greeks unavailable: {exc.message}")
            analysis = LegAnalysis(
                leg=leg.with_premium(premium),
                premium_source=source,
                error="; ".join(problems),
            )
            return analysis, exc

        analysis = LegAnalysis(
            leg=leg.with_premium(premium),
            premium_source=source,
            volatility=volatility,
            greeks=greeks,
            position_greeks=greeks.scaled(leg.sign * leg.quantity),
            error="; ".join(problems) or None,
        )
        return analysis, None

    def _model_premium(self, leg: OptionLeg, context: _LegContext) -> float:
        if context.close_prices is None:
            volatility = 0.0
        else:
            volatility = self.volatility_estimator.fallback_volatility(context.close_prices)
        return self.pricing_engine.calculate_price(self._inputs(leg, context, volatility))

    def _handle_failure(self, index: int, exc: AnalyticsError) -> None:
        if self.leg_error_policy is LegErrorPolicy.STRICT:
            raise exc
        STRATEGY_LEG_FAILURES.labels(code=exc.code).inc()
        LOGGER.warning("Strategy leg %d failed (%s): %s", index, exc.code, exc.message)

    @staticmethod
    def _inputs(leg: OptionLeg, context: _LegContext, volatility: float) -> PricingInputs:
        return PricingInputs(
            spot_price=context.spot,
            strike_price=leg.strike,
            time_to_expiry=context.time_to_expiry,
            volatility=volatility,
            option_type=leg.option_type,
            risk_free_rate=context.risk_free_rate,
            dividend_yield=context.dividend_yield,
        )


__all__ = ["DEFAULT_RISK_FREE_RATE", "StrategyComposer", "payoff_at"]
