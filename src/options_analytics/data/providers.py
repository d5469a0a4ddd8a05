"""Market data collaborator contracts and an in-memory implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ..core.errors import DataUnavailable
from ..core.models import OptionsChain


@dataclass(frozen=True, slots=True)
class Quote:
    """Latest traded price of an underlying."""

    symbol: str
    price: float
    timestamp: Optional[datetime] = None


@runtime_checkable
class QuoteProvider(Protocol):
    def get_quote(self, symbol: str) -> Quote:
        ...


@runtime_checkable
class ChainProvider(Protocol):
    def get_chain(self, symbol: str, expiration_date: Optional[date] = None) -> OptionsChain:
        ...

    def get_expiration_dates(self, symbol: str) -> List[date]:
        ...


@runtime_checkable
class HistoricalPriceProvider(Protocol):
    def get_historical(self, symbol: str, lookback_days: int, interval: str = "1d") -> List[float]:
        """Return closing prices, oldest first."""
        ...


class MarketDataProvider(QuoteProvider, ChainProvider, HistoricalPriceProvider, Protocol):
    """A single collaborator serving every market data contract."""


@dataclass(slots=True)
class StaticMarketDataProvider:
    """In-memory provider for tests and offline use.

    ``chains`` maps a symbol to its listed chains; the earliest expiration is
    served when no expiration is requested. ``closes`` holds the full history
    of closing prices and ``get_historical`` returns the trailing window.
    """

    quotes: Dict[str, float] = field(default_factory=dict)
    chains: Dict[str, Sequence[OptionsChain]] = field(default_factory=dict)
    closes: Dict[str, Sequence[float]] = field(default_factory=dict)

    name = "static"

    @classmethod
    def from_mappings(
        cls,
        *,
        quotes: Optional[Mapping[str, float]] = None,
        chains: Optional[Mapping[str, Sequence[OptionsChain]]] = None,
        closes: Optional[Mapping[str, Sequence[float]]] = None,
    ) -> "StaticMarketDataProvider":
        return cls(
            quotes={k.upper(): float(v) for k, v in (quotes or {}).items()},
            chains={k.upper(): tuple(v) for k, v in (chains or {}).items()},
            closes={k.upper(): tuple(v) for k, v in (closes or {}).items()},
        )

    def get_quote(self, symbol: str) -> Quote:
        key = symbol.upper()
        if key not in self.quotes:
            raise DataUnavailable(f"No quote available for {key}", details={"symbol": key})
        return Quote(symbol=key, price=self.quotes[key])

    def _sorted_chains(self, symbol: str) -> Tuple[OptionsChain, ...]:
        key = symbol.upper()
        chains = self.chains.get(key)
        if not chains:
            raise DataUnavailable(f"No options data available for {key}", details={"symbol": key})
        return tuple(sorted(chains, key=lambda chain: chain.expiration_date))

    def get_chain(self, symbol: str, expiration_date: Optional[date] = None) -> OptionsChain:
        chains = self._sorted_chains(symbol)
        if expiration_date is None:
            return chains[0]
        for chain in chains:
            if chain.expiration_date == expiration_date:
                return chain
        raise DataUnavailable(
            f"No options listed for {symbol.upper()} expiring {expiration_date.isoformat()}",
            details={"symbol": symbol.upper(), "expiration_date": expiration_date.isoformat()},
        )

    def get_expiration_dates(self, symbol: str) -> List[date]:
        return [chain.expiration_date for chain in self._sorted_chains(symbol)]

    def get_historical(self, symbol: str, lookback_days: int, interval: str = "1d") -> List[float]:
        key = symbol.upper()
        closes = self.closes.get(key)
        if not closes:
            raise DataUnavailable(f"No historical data for {key}", details={"symbol": key})
        return list(closes[-lookback_days:]) if lookback_days > 0 else list(closes)


__all__ = [
    "ChainProvider",
    "HistoricalPriceProvider",
    "MarketDataProvider",
    "Quote",
    "QuoteProvider",
    "StaticMarketDataProvider",
]
