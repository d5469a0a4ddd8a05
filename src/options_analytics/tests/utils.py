"""Builders for deterministic market data used across the test suite."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime
from typing import Iterable, List, Sequence, Tuple

from options_analytics.core.models import OptionContract, OptionsChain, OptionType
from options_analytics.data.providers import StaticMarketDataProvider

AS_OF = datetime(2026, 1, 2, 15, 0, tzinfo=UTC)
NEAR_EXPIRY = date(2026, 2, 20)
FAR_EXPIRY = date(2026, 3, 20)
DAILY_MOVE = 0.01


def alternating_closes(count: int = 121, start: float = 100.0, move: float = DAILY_MOVE) -> List[float]:
    """Closing prices whose log returns alternate between +move and -move.

    Any even-length window of returns has a population standard deviation of
    exactly ``move``.
    """

    prices = [start]
    for index in range(count - 1):
        step = move if index % 2 == 0 else -move
        prices.append(prices[-1] * math.exp(step))
    return prices


def make_contracts(
    option_type: OptionType,
    expiration: date,
    rows: Iterable[Tuple[float, int, float]],
    *,
    spread: float = 0.2,
) -> Tuple[OptionContract, ...]:
    """Build contracts from ``(strike, open_interest, implied_volatility)`` rows."""

    contracts = []
    for strike, open_interest, iv in rows:
        mid = max(0.5, 100.0 - strike if option_type is OptionType.CALL else strike - 100.0) + 2.0
        contracts.append(
            OptionContract(
                strike=strike,
                expiration=expiration,
                option_type=option_type,
                bid=mid - spread / 2,
                ask=mid + spread / 2,
                last_price=mid,
                open_interest=open_interest,
                implied_volatility=iv,
            )
        )
    return tuple(contracts)


def make_chain(
    *,
    symbol: str = "TEST",
    expiration: date = NEAR_EXPIRY,
    spot: float = 101.0,
    calls: Sequence[Tuple[float, int, float]] = ((95.0, 100, 0.30), (100.0, 200, 0.25), (105.0, 50, 0.22)),
    puts: Sequence[Tuple[float, int, float]] = ((95.0, 50, 0.33), (100.0, 200, 0.27), (105.0, 100, 0.24)),
) -> OptionsChain:
    return OptionsChain(
        symbol=symbol,
        expiration_date=expiration,
        calls=make_contracts(OptionType.CALL, expiration, calls),
        puts=make_contracts(OptionType.PUT, expiration, puts),
        underlying_price=spot,
        timestamp=AS_OF,
    )


def make_static_provider() -> StaticMarketDataProvider:
    near = make_chain()
    far = make_chain(
        expiration=FAR_EXPIRY,
        calls=((95.0, 10, 0.31), (100.0, 20, 0.28), (105.0, 5, 0.26)),
        puts=((95.0, 5, 0.34), (100.0, 20, 0.29), (105.0, 10, 0.27)),
    )
    return StaticMarketDataProvider.from_mappings(
        quotes={"TEST": 101.0, "NOCHAIN": 50.0},
        chains={"TEST": [far, near]},
        closes={"TEST": alternating_closes(), "NOCHAIN": alternating_closes(start=50.0)},
    )


__all__ = [
    "AS_OF",
    "DAILY_MOVE",
    "FAR_EXPIRY",
    "NEAR_EXPIRY",
    "alternating_closes",
    "make_chain",
    "make_contracts",
    "make_static_provider",
]
