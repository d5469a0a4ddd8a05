"""Yahoo Finance backed market data provider."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, timedelta
from typing import List, Optional

import pandas as pd
import yfinance as yf

from ..core.errors import DataUnavailable
from ..core.models import OptionContract, OptionsChain, OptionType
from ..observability.metrics import PROVIDER_ERRORS
from .cache import _TTLCache
from .providers import Quote

LOGGER = logging.getLogger(__name__)


def _number(value: object, default: float = 0.0) -> float:
    if value is None or pd.isna(value):
        return default
    return float(value)


def _contracts(frame: pd.DataFrame, expiration: date, option_type: OptionType) -> tuple[OptionContract, ...]:
    if frame is None or frame.empty:
        return ()
    contracts = []
    for row in frame.itertuples(index=False):
        strike = _number(getattr(row, "strike", None))
        if strike <= 0:
            continue
        contracts.append(
            OptionContract(
                strike=strike,
                expiration=expiration,
                option_type=option_type,
                bid=max(0.0, _number(getattr(row, "bid", None))),
                ask=max(0.0, _number(getattr(row, "ask", None))),
                last_price=max(0.0, _number(getattr(row, "lastPrice", None))),
                open_interest=int(_number(getattr(row, "openInterest", None))),
                implied_volatility=max(0.0, _number(getattr(row, "impliedVolatility", None))),
                in_the_money=bool(getattr(row, "inTheMoney", False)),
                volume=int(_number(getattr(row, "volume", None))),
                contract_symbol=getattr(row, "contractSymbol", None),
            )
        )
    return tuple(contracts)


class YFinanceMarketDataProvider:
    """Quotes, option chains and closing prices from Yahoo Finance.

    Every failure, including empty responses, surfaces as
    :class:`DataUnavailable` so callers can fall back or report a 503.
    """

    name = "yfinance"

    def __init__(self, *, max_tickers: int = 256) -> None:
        self._tickers = _TTLCache(max_size=max_tickers, ttl_seconds=0.0)

    def ticker(self, symbol: str) -> yf.Ticker:
        key = symbol.upper()
        hit, ticker = self._tickers.get(key)
        if not hit:
            ticker = yf.Ticker(key)
            self._tickers.put(key, ticker)
        return ticker

    def _fail(self, operation: str, symbol: str, exc: Optional[BaseException] = None) -> DataUnavailable:
        PROVIDER_ERRORS.labels(provider=self.name, operation=operation).inc()
        if exc is not None:
            LOGGER.warning("Failed to fetch %s for %s: %s", operation, symbol, exc)
        else:
            LOGGER.warning("Empty %s for %s", operation, symbol)
        return DataUnavailable(
            f"Unable to fetch {operation} for {symbol.upper()}",
            details={"symbol": symbol.upper(), "operation": operation},
        )

    def get_quote(self, symbol: str) -> Quote:
        try:
            history = self.ticker(symbol).history(period="5d", interval="1d")
        except Exception as exc:
            raise self._fail("quote", symbol, exc) from exc
        if history.empty or "Close" not in history:
            raise self._fail("quote", symbol)
        closes = history["Close"].dropna()
        if closes.empty:
            raise self._fail("quote", symbol)
        stamp = closes.index[-1]
        timestamp = stamp.to_pydatetime() if hasattr(stamp, "to_pydatetime") else None
        return Quote(symbol=symbol.upper(), price=float(closes.iloc[-1]), timestamp=timestamp)

    def get_expiration_dates(self, symbol: str) -> List[date]:
        try:
            raw = self.ticker(symbol).options
        except Exception as exc:
            raise self._fail("expirations", symbol, exc) from exc
        if not raw:
            raise self._fail("expirations", symbol)
        return sorted(date.fromisoformat(value) for value in raw)

    def get_chain(self, symbol: str, expiration_date: Optional[date] = None) -> OptionsChain:
        expiration = expiration_date or self.get_expiration_dates(symbol)[0]
        try:
            chain = self.ticker(symbol).option_chain(expiration.isoformat())
        except Exception as exc:
            raise self._fail("options chain", symbol, exc) from exc

        underlying = getattr(chain, "underlying", None) or {}
        spot = _number(underlying.get("regularMarketPrice")) if isinstance(underlying, dict) else 0.0
        if spot <= 0:
            spot = self.get_quote(symbol).price

        return OptionsChain(
            symbol=symbol.upper(),
            expiration_date=expiration,
            calls=_contracts(chain.calls, expiration, OptionType.CALL),
            puts=_contracts(chain.puts, expiration, OptionType.PUT),
            underlying_price=spot,
            timestamp=datetime.now(UTC),
        )

    def get_historical(self, symbol: str, lookback_days: int, interval: str = "1d") -> List[float]:
        start = (datetime.now(UTC) - timedelta(days=max(1, lookback_days))).date()
        try:
            history = self.ticker(symbol).history(start=start.isoformat(), interval=interval)
        except Exception as exc:
            raise self._fail("history", symbol, exc) from exc
        if history.empty or "Close" not in history:
            raise self._fail("history", symbol)
        return [float(value) for value in history["Close"].dropna().tolist()]


__all__ = ["YFinanceMarketDataProvider"]
