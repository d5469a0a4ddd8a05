"""Market data collaborators consumed by the tool handlers."""

from .cache import CachingMarketDataProvider
from .providers import (
    ChainProvider,
    HistoricalPriceProvider,
    MarketDataProvider,
    Quote,
    QuoteProvider,
    StaticMarketDataProvider,
)

__all__ = [
    "CachingMarketDataProvider",
    "ChainProvider",
    "HistoricalPriceProvider",
    "MarketDataProvider",
    "Quote",
    "QuoteProvider",
    "StaticMarketDataProvider",
]
