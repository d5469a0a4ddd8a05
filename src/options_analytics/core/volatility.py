"""Historical and implied volatility estimation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidPriceSeries
from .models import (
    ImpliedVolatilitySummary,
    OptionContract,
    OptionType,
    OptionsChain,
    TermStructurePoint,
    VolatilityPeriod,
    VolatilityResult,
)

LOGGER = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
DEFAULT_PERIODS: Tuple[int, ...] = (10, 20, 30, 60, 90)
DEFAULT_FALLBACK_DAYS = 30


def _log_returns(close_prices: Sequence[float]) -> np.ndarray:
    prices = np.asarray(close_prices, dtype=float)
    if prices.ndim != 1:
        raise InvalidPriceSeries("close prices must be a one-dimensional series")
    if prices.size and (not np.all(np.isfinite(prices)) or np.any(prices <= 0.0)):
        raise InvalidPriceSeries("close prices must be finite and strictly positive")
    if prices.size < 2:
        return np.empty(0, dtype=float)
    return np.diff(np.log(prices))


def _find_atm_strike(contracts: Sequence[OptionContract], spot: float) -> float:
    if not contracts:
        return spot
    closest = contracts[0].strike
    for contract in contracts:
        if abs(contract.strike - spot) < abs(closest - spot):
            closest = contract.strike
    return closest


@dataclass(slots=True)
class VolatilityEstimator:
    """Realised volatility from close prices plus the IV fallback policy."""

    trading_days: int = TRADING_DAYS_PER_YEAR
    fallback_days: int = DEFAULT_FALLBACK_DAYS

    def historical_volatility(
        self,
        close_prices: Sequence[float],
        periods: Iterable[int] = DEFAULT_PERIODS,
    ) -> VolatilityResult:
        """Return population volatility of log returns for each window.

        Windows with fewer than two returns report zero instead of failing.
        """

        windows = [int(period) for period in periods]
        if not windows:
            raise ValueError("at least one period is required")
        if any(period <= 0 for period in windows):
            raise ValueError("periods must be positive integers")

        returns = _log_returns(close_prices)
        scale = math.sqrt(self.trading_days) * 100.0

        results = []
        for period in windows:
            window = returns[-period:]
            if window.size < 2:
                results.append(VolatilityPeriod(days=period, volatility=0.0, annualized=0.0))
                continue
            daily = float(np.std(window, ddof=0))
            results.append(VolatilityPeriod(days=period, volatility=daily, annualized=daily * scale))

        current_price = float(close_prices[-1]) if len(close_prices) else 0.0
        return VolatilityResult(periods=tuple(results), current_price=current_price)

    def fallback_volatility(
        self, close_prices: Sequence[float], days: Optional[int] = None
    ) -> float:
        """Annualised volatility as a decimal over the fallback window."""

        window = days or self.fallback_days
        result = self.historical_volatility(close_prices, [window])
        return result.periods[0].annualized / 100.0

    def resolve_volatility(
        self,
        implied: Optional[float],
        close_prices: Optional[Sequence[float]],
        days: Optional[int] = None,
    ) -> Tuple[float, str]:
        """Prefer a positive implied volatility, else fall back to realised."""

        if implied is not None and math.isfinite(implied) and implied > 0:
            return float(implied), "implied"
        if close_prices is None:
            return 0.0, "historical"
        return self.fallback_volatility(close_prices, days), "historical"

    def implied_volatility_summary(
        self,
        chain: OptionsChain,
        historical_volatility: float,
        term_chains: Sequence[OptionsChain] = (),
        *,
        as_of: Optional[datetime] = None,
    ) -> ImpliedVolatilitySummary:
        """Summarise at-the-money IV against realised volatility (percent units).

        ``historical_volatility`` is already annualised in percent.
        """

        spot = chain.underlying_price
        atm_strike = _find_atm_strike(chain.calls, spot)
        atm_call = chain.find(OptionType.CALL, atm_strike)
        atm_put = chain.find(OptionType.PUT, atm_strike)

        call_iv = atm_call.implied_volatility if atm_call else 0.0
        put_iv = atm_put.implied_volatility if atm_put else 0.0
        current_iv = (call_iv or put_iv) * 100.0

        today = (as_of or datetime.now(UTC)).date()
        term_structure = []
        for term_chain in term_chains:
            strike = _find_atm_strike(term_chain.calls, spot)
            contract = term_chain.find(OptionType.CALL, strike)
            iv = (contract.implied_volatility if contract else 0.0) * 100.0
            if iv <= 0:
                continue
            term_structure.append(
                TermStructurePoint(
                    expiration_date=term_chain.expiration_date,
                    days_to_expiration=(term_chain.expiration_date - today).days,
                    implied_volatility=iv,
                )
            )

        return ImpliedVolatilitySummary(
            current_iv=current_iv,
            historical_volatility=historical_volatility,
            iv_vs_hv=current_iv - historical_volatility,
            atm_strike=atm_strike,
            atm_call_iv=call_iv * 100.0 if call_iv else None,
            atm_put_iv=put_iv * 100.0 if put_iv else None,
            term_structure=tuple(term_structure),
        )


__all__ = [
    "DEFAULT_FALLBACK_DAYS",
    "DEFAULT_PERIODS",
    "TRADING_DAYS_PER_YEAR",
    "VolatilityEstimator",
]
