"""TTL caching in front of a market data provider."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Hashable, List, Optional, Tuple

from ..core.models import OptionsChain
from ..observability.metrics import PROVIDER_CACHE_HITS, PROVIDER_CACHE_MISSES
from .providers import MarketDataProvider, Quote


@dataclass(slots=True)
class _CacheEntry:
    payload: Any
    timestamp: float


class _TTLCache:
    """Thread-safe LRU cache with TTL support."""

    def __init__(self, max_size: int = 1024, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._max_size = max(1, max_size)
        self._ttl = max(0.0, ttl_seconds)
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: "OrderedDict[Hashable, _CacheEntry]" = OrderedDict()

    def get(self, key: Hashable) -> Tuple[bool, Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None

            if self._ttl and self._clock() - entry.timestamp > self._ttl:
                self._entries.pop(key, None)
                return False, None

            self._entries.move_to_end(key)
            return True, entry.payload

    def put(self, key: Hashable, payload: Any) -> None:
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)

            self._entries[key] = _CacheEntry(payload, self._clock())

            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class CachingMarketDataProvider:
    """Serve repeated market data lookups from a bounded TTL cache.

    Failures are never cached. Lists are copied on the way out so callers
    cannot mutate cached state.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        *,
        ttl_seconds: float = 60.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._cache = _TTLCache(max_size=max_entries, ttl_seconds=ttl_seconds, clock=clock)
        self.name = getattr(provider, "name", type(provider).__name__)

    @property
    def provider(self) -> MarketDataProvider:
        return self._provider

    def _cached(self, operation: str, key: Tuple[Hashable, ...], loader: Callable[[], Any]) -> Any:
        hit, payload = self._cache.get((operation, *key))
        if hit:
            PROVIDER_CACHE_HITS.labels(operation=operation).inc()
            return payload
        PROVIDER_CACHE_MISSES.labels(operation=operation).inc()
        payload = loader()
        self._cache.put((operation, *key), payload)
        return payload

    def get_quote(self, symbol: str) -> Quote:
        return self._cached("quote", (symbol.upper(),), lambda: self._provider.get_quote(symbol))

    def get_chain(self, symbol: str, expiration_date: Optional[date] = None) -> OptionsChain:
        return self._cached(
            "chain",
            (symbol.upper(), expiration_date),
            lambda: self._provider.get_chain(symbol, expiration_date),
        )

    def get_expiration_dates(self, symbol: str) -> List[date]:
        dates = self._cached(
            "expirations",
            (symbol.upper(),),
            lambda: tuple(self._provider.get_expiration_dates(symbol)),
        )
        return list(dates)

    def get_historical(self, symbol: str, lookback_days: int, interval: str = "1d") -> List[float]:
        closes = self._cached(
            "historical",
            (symbol.upper(), lookback_days, interval),
            lambda: tuple(self._provider.get_historical(symbol, lookback_days, interval)),
        )
        return list(closes)

    def clear(self) -> None:
        self._cache.clear()


__all__ = ["CachingMarketDataProvider"]
