"""Tests for the max-pain calculator."""

from __future__ import annotations

import pytest

from options_analytics.core.errors import DataUnavailable
from options_analytics.core.max_pain import MaxPainCalculator
from options_analytics.core.models import OptionsChain
from options_analytics.tests.utils import NEAR_EXPIRY, make_chain


def _brute_force(chain: OptionsChain, price: float) -> float:
    pain = 0.0
    for call in chain.calls:
        if call.strike < price:
            pain += (price - call.strike) * call.open_interest
    for put in chain.puts:
        if put.strike > price:
            pain += (put.strike - price) * put.open_interest
    return pain


def test_reference_chain_settles_at_middle_strike() -> None:
    chain = make_chain()
    result = MaxPainCalculator().calculate(chain)

    assert result.max_pain_price == 100.0
    assert result.total_open_interest == 700
    assert result.call_open_interest == 350
    assert result.put_open_interest == 350
    assert result.put_call_ratio == pytest.approx(1.0)
    assert [point.price for point in result.price_points] == [95.0, 100.0, 105.0]
    assert [point.total_pain for point in result.price_points] == [2000.0, 1000.0, 2000.0]


def test_result_is_minimal_against_brute_force() -> None:
    chain = make_chain(
        calls=((80.0, 40, 0.3), (90.0, 300, 0.3), (100.0, 120, 0.3), (110.0, 900, 0.3)),
        puts=((85.0, 700, 0.3), (95.0, 60, 0.3), (100.0, 250, 0.3), (120.0, 10, 0.3)),
    )
    result = MaxPainCalculator().calculate(chain)

    best = _brute_force(chain, result.max_pain_price)
    for point in result.price_points:
        assert point.total_pain == pytest.approx(_brute_force(chain, point.price))
        assert best <= point.total_pain


def test_ties_resolve_to_lowest_strike() -> None:
    chain = make_chain(calls=((100.0, 1, 0.2),), puts=((110.0, 1, 0.2),))
    result = MaxPainCalculator().calculate(chain)
    assert [point.total_pain for point in result.price_points] == [10.0, 10.0]
    assert result.max_pain_price == 100.0


def test_put_call_ratio_is_zero_without_call_interest() -> None:
    chain = make_chain(calls=(), puts=((100.0, 10, 0.2), (105.0, 5, 0.2)))
    result = MaxPainCalculator().calculate(chain)
    assert result.put_call_ratio == 0.0
    assert result.max_pain_price == 105.0


def test_empty_chain_is_unavailable() -> None:
    chain = OptionsChain(symbol="EMPTY", expiration_date=NEAR_EXPIRY, calls=(), puts=(), underlying_price=10.0)
    with pytest.raises(DataUnavailable):
        MaxPainCalculator().calculate(chain)
