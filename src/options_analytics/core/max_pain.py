"""Max-pain aggregation over an options chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .errors import DataUnavailable
from .models import MaxPainPoint, MaxPainResult, OptionContract, OptionsChain

LOGGER = logging.getLogger(__name__)


def _strikes_and_interest(contracts: tuple[OptionContract, ...]) -> tuple[np.ndarray, np.ndarray]:
    strikes = np.fromiter((c.strike for c in contracts), dtype=float, count=len(contracts))
    interest = np.fromiter((c.open_interest for c in contracts), dtype=float, count=len(contracts))
    return strikes, interest


@dataclass(slots=True)
class MaxPainCalculator:
    """Find the settlement price that minimises total option holder payoff.

    Candidate settlement prices are the listed strikes. For a candidate ``p``
    every call struck below ``p`` pays ``(p - strike) * open_interest`` and
    every put struck above ``p`` pays ``(strike - p) * open_interest``.
    """

    def calculate(self, chain: OptionsChain) -> MaxPainResult:
        if chain.is_empty:
            raise DataUnavailable(
                f"No options data available for {chain.symbol}",
                details={"symbol": chain.symbol, "expiration_date": chain.expiration_date.isoformat()},
            )

        call_strikes, call_oi = _strikes_and_interest(chain.calls)
        put_strikes, put_oi = _strikes_and_interest(chain.puts)
        candidates = np.unique(np.concatenate([call_strikes, put_strikes]))

        # rows: candidate settlement price, columns: contract
        call_pain = (np.maximum(candidates[:, None] - call_strikes[None, :], 0.0) * call_oi).sum(axis=1)
        put_pain = (np.maximum(put_strikes[None, :] - candidates[:, None], 0.0) * put_oi).sum(axis=1)
        total_pain = call_pain + put_pain

        # argmin returns the first minimum, so ties settle on the lowest strike
        best = int(np.argmin(total_pain))

        total_call_oi = int(call_oi.sum())
        total_put_oi = int(put_oi.sum())
        put_call_ratio = total_put_oi / total_call_oi if total_call_oi > 0 else 0.0

        points = tuple(
            MaxPainPoint(
                price=float(price),
                call_pain=float(cp),
                put_pain=float(pp),
                total_pain=float(tp),
            )
            for price, cp, pp, tp in zip(candidates, call_pain, put_pain, total_pain)
        )
        LOGGER.debug(
            "Max pain for %s %s resolved to %.2f over %d strikes",
            chain.symbol,
            chain.expiration_date,
            candidates[best],
            candidates.size,
        )
        return MaxPainResult(
            max_pain_price=float(candidates[best]),
            total_open_interest=total_call_oi + total_put_oi,
            put_call_ratio=put_call_ratio,
            price_points=points,
            call_open_interest=total_call_oi,
            put_open_interest=total_put_oi,
        )


__all__ = ["MaxPainCalculator"]
