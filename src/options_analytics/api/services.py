"""Tool handlers that combine market data with the analytics core."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence, TypeVar

from ..core.errors import DataUnavailable, InvalidLeg
from ..core.max_pain import MaxPainCalculator
from ..core.models import (
    Greeks,
    ImpliedVolatilitySummary,
    MaxPainResult,
    OptionLeg,
    OptionsChain,
    OptionType,
    PricingInputs,
    StrategyAnalysis,
    VolatilityResult,
)
from ..core.pricing_engine import PricingEngine
from ..core.strategy import StrategyComposer
from ..core.volatility import DEFAULT_PERIODS, VolatilityEstimator
from ..data.providers import MarketDataProvider
from ..observability.metrics import PROVIDER_ERRORS
from ..utils.numerics import year_fraction

LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

TERM_STRUCTURE_EXPIRATIONS = 6


@dataclass(frozen=True, slots=True)
class GreeksReport:
    symbol: str
    strike: float
    expiration_date: date
    option_type: OptionType
    underlying_price: float
    time_to_expiry: float
    theoretical_price: float
    implied_volatility: float
    volatility_source: str
    greeks: Greeks


@dataclass(frozen=True, slots=True)
class MaxPainReport:
    symbol: str
    expiration_date: date
    current_price: float
    result: MaxPainResult


@dataclass(frozen=True, slots=True)
class HistoricalVolatilityReport:
    symbol: str
    result: VolatilityResult


@dataclass(frozen=True, slots=True)
class ImpliedVolatilityReport:
    symbol: str
    expiration_date: date
    summary: ImpliedVolatilitySummary


@dataclass(slots=True)
class AnalyticsService:
    """Entry points behind each analytics tool.

    Market data comes from ``provider``; every computation is delegated to
    the injected core components. Collaborator failures surface as
    :class:`DataUnavailable`.
    """

    provider: MarketDataProvider
    pricing_engine: PricingEngine = field(default_factory=PricingEngine)
    volatility_estimator: VolatilityEstimator = field(default_factory=VolatilityEstimator)
    max_pain_calculator: MaxPainCalculator = field(default_factory=MaxPainCalculator)
    strategy_composer: Optional[StrategyComposer] = None
    risk_free_rate: float = 0.045
    dividend_yield: float = 0.0
    max_legs: int = 12
    clock: Callable[[], Optional[datetime]] = lambda: None

    def __post_init__(self) -> None:
        if self.strategy_composer is None:
            self.strategy_composer = StrategyComposer(
                pricing_engine=self.pricing_engine,
                volatility_estimator=self.volatility_estimator,
                risk_free_rate=self.risk_free_rate,
                dividend_yield=self.dividend_yield,
            )

    def _fetch(self, operation: str, symbol: str, loader: Callable[[], _T]) -> _T:
        try:
            return loader()
        except DataUnavailable:
            raise
        except Exception as exc:
            PROVIDER_ERRORS.labels(provider=getattr(self.provider, "name", "unknown"), operation=operation).inc()
            LOGGER.warning("Provider %s failed for %s: %s", operation, symbol, exc)
            raise DataUnavailable(
                f"Unable to fetch {operation} for {symbol}",
                details={"symbol": symbol, "operation": operation},
            ) from exc

    def _spot(self, symbol: str, underlying_price: Optional[float]) -> float:
        if underlying_price is not None:
            return float(underlying_price)
        return self._fetch("quote", symbol, lambda: self.provider.get_quote(symbol)).price

    def _chain(self, symbol: str, expiration_date: Optional[date] = None) -> OptionsChain:
        return self._fetch("chain", symbol, lambda: self.provider.get_chain(symbol, expiration_date))

    def _closes(self, symbol: str, lookback_days: int) -> List[float]:
        return self._fetch("historical", symbol, lambda: self.provider.get_historical(symbol, lookback_days))

    def _optional_chain(self, symbol: str, expiration_date: Optional[date]) -> Optional[OptionsChain]:
        try:
            return self._chain(symbol, expiration_date)
        except DataUnavailable as exc:
            LOGGER.info("Continuing without options chain for %s: %s", symbol, exc)
            return None

    def _optional_closes(self, symbol: str) -> Optional[List[float]]:
        try:
            return self._closes(symbol, self.volatility_estimator.fallback_days * 2)
        except DataUnavailable as exc:
            LOGGER.info("Continuing without price history for %s: %s", symbol, exc)
            return None

    def calculate_greeks(
        self,
        symbol: str,
        strike: float,
        expiration_date: date,
        option_type: OptionType,
        underlying_price: Optional[float] = None,
        risk_free_rate: Optional[float] = None,
        dividend_yield: Optional[float] = None,
    ) -> GreeksReport:
        """Price one contract and return its Greeks.

        Implied volatility comes from the listed contract when positive,
        otherwise from 30-day realised volatility.
        """

        symbol = symbol.upper()
        spot = self._spot(symbol, underlying_price)

        chain = self._optional_chain(symbol, expiration_date)
        contract = chain.find(option_type, strike) if chain is not None else None
        implied = contract.implied_volatility if contract is not None else None
        if implied is not None and implied > 0:
            volatility, source = float(implied), "implied"
        else:
            closes = self._closes(symbol, self.volatility_estimator.fallback_days * 2)
            volatility, source = self.volatility_estimator.resolve_volatility(None, closes)

        inputs = PricingInputs(
            spot_price=spot,
            strike_price=strike,
            time_to_expiry=year_fraction(expiration_date, self.clock()),
            volatility=volatility,
            option_type=option_type,
            risk_free_rate=self.risk_free_rate if risk_free_rate is None else risk_free_rate,
            dividend_yield=self.dividend_yield if dividend_yield is None else dividend_yield,
        )
        price, greeks = self.pricing_engine.price_and_greeks(inputs)
        return GreeksReport(
            symbol=symbol,
            strike=strike,
            expiration_date=expiration_date,
            option_type=option_type,
            underlying_price=spot,
            time_to_expiry=inputs.time_to_expiry,
            theoretical_price=round(price, 4),
            implied_volatility=volatility * 100.0,
            volatility_source=source,
            greeks=greeks,
        )

    def calculate_max_pain(self, symbol: str, expiration_date: Optional[date] = None) -> MaxPainReport:
        symbol = symbol.upper()
        chain = self._chain(symbol, expiration_date)
        result = self.max_pain_calculator.calculate(chain)
        current_price = chain.underlying_price if chain.underlying_price > 0 else self._spot(symbol, None)
        return MaxPainReport(
            symbol=symbol,
            expiration_date=chain.expiration_date,
            current_price=current_price,
            result=result,
        )

    def calculate_historical_volatility(
        self, symbol: str, periods: Sequence[int] = DEFAULT_PERIODS
    ) -> HistoricalVolatilityReport:
        """Realised volatility per window; history covers twice the longest window."""

        symbol = symbol.upper()
        windows = [int(period) for period in periods]
        if not windows or any(period <= 0 for period in windows):
            raise ValueError("periods must be a non-empty list of positive integers")
        closes = self._closes(symbol, max(windows) * 2)
        return HistoricalVolatilityReport(
            symbol=symbol,
            result=self.volatility_estimator.historical_volatility(closes, windows),
        )

    def analyze_strategy(
        self,
        symbol: str,
        strategy_type: str,
        legs: Sequence[OptionLeg],
        expiration_date: date,
    ) -> StrategyAnalysis:
        symbol = symbol.upper()
        if len(legs) > self.max_legs:
            raise InvalidLeg(
                f"A strategy may have at most {self.max_legs} legs",
                details={"legs": len(legs), "max_legs": self.max_legs},
            )

        spot = self._spot(symbol, None)
        chain = self._optional_chain(symbol, expiration_date)
        closes = self._optional_closes(symbol)
        return self.strategy_composer.analyze(
            legs,
            expiration_date,
            spot,
            chain=chain,
            close_prices=closes,
            as_of=self.clock(),
            strategy_type=strategy_type,
        )

    def get_implied_volatility(self, symbol: str) -> ImpliedVolatilityReport:
        """Compare at-the-money implied volatility with 30-day realised volatility."""

        symbol = symbol.upper()
        chain = self._chain(symbol)
        fallback_days = self.volatility_estimator.fallback_days
        closes = self._closes(symbol, fallback_days * 2)
        realised = self.volatility_estimator.historical_volatility(closes, [fallback_days]).periods[0].annualized

        expirations = self._fetch("expirations", symbol, lambda: self.provider.get_expiration_dates(symbol))
        term_chains: List[OptionsChain] = []
        for expiration in expirations[:TERM_STRUCTURE_EXPIRATIONS]:
            term_chain = self._optional_chain(symbol, expiration)
            if term_chain is not None:
                term_chains.append(term_chain)

        summary = self.volatility_estimator.implied_volatility_summary(
            chain, realised, term_chains, as_of=self.clock()
        )
        return ImpliedVolatilityReport(symbol=symbol, expiration_date=chain.expiration_date, summary=summary)


__all__ = [
    "AnalyticsService",
    "GreeksReport",
    "HistoricalVolatilityReport",
    "ImpliedVolatilityReport",
    "MaxPainReport",
]
