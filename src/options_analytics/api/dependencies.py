"""Shared dependencies for FastAPI routes."""

from __future__ import annotations

from functools import lru_cache

from ..core.max_pain import MaxPainCalculator
from ..core.pricing_engine import PricingEngine
from ..core.strategy import StrategyComposer
from ..core.volatility import VolatilityEstimator
from ..data.cache import CachingMarketDataProvider
from ..data.providers import MarketDataProvider, StaticMarketDataProvider
from .config import get_settings
from .services import AnalyticsService


@lru_cache(maxsize=1)
def get_pricing_engine() -> PricingEngine:
    """Return the process-wide pricing engine."""

    return PricingEngine()


@lru_cache(maxsize=1)
def get_volatility_estimator() -> VolatilityEstimator:
    return VolatilityEstimator(fallback_days=get_settings().hv_fallback_days)


@lru_cache(maxsize=1)
def get_market_data_provider() -> MarketDataProvider:
    """Build the configured provider, wrapped in a TTL cache when enabled."""

    settings = get_settings()
    provider: MarketDataProvider
    if settings.market_data_provider == "static":
        provider = StaticMarketDataProvider()
    else:
        from ..data.yfinance_provider import YFinanceMarketDataProvider

        provider = YFinanceMarketDataProvider()

    if settings.cache_ttl_seconds <= 0:
        return provider
    return CachingMarketDataProvider(
        provider,
        ttl_seconds=settings.cache_ttl_seconds,
        max_entries=settings.cache_max_entries,
    )


@lru_cache(maxsize=1)
def get_analytics_service() -> AnalyticsService:
    """Return the shared tool handler wired from settings."""

    settings = get_settings()
    engine = get_pricing_engine()
    estimator = get_volatility_estimator()
    composer = StrategyComposer(
        pricing_engine=engine,
        volatility_estimator=estimator,
        risk_free_rate=settings.risk_free_rate,
        dividend_yield=settings.dividend_yield,
        leg_error_policy=settings.leg_error_policy,
        break_even_method=settings.break_even_method,
        max_workers=settings.strategy_workers,
    )
    return AnalyticsService(
        provider=get_market_data_provider(),
        pricing_engine=engine,
        volatility_estimator=estimator,
        max_pain_calculator=MaxPainCalculator(),
        strategy_composer=composer,
        risk_free_rate=settings.risk_free_rate,
        dividend_yield=settings.dividend_yield,
        max_legs=settings.max_legs,
    )
