"""Tests for realised volatility and the implied volatility summary."""

from __future__ import annotations

import math
from datetime import timedelta

import numpy as np
import pytest

from options_analytics.core.errors import InvalidPriceSeries
from options_analytics.core.volatility import VolatilityEstimator
from options_analytics.tests.utils import AS_OF, DAILY_MOVE, FAR_EXPIRY, NEAR_EXPIRY, alternating_closes, make_chain

ANNUALISED = DAILY_MOVE * math.sqrt(252) * 100.0


def test_historical_volatility_for_even_windows(estimator: VolatilityEstimator) -> None:
    closes = alternating_closes()
    result = estimator.historical_volatility(closes, [10, 20, 30, 60])

    assert [period.days for period in result.periods] == [10, 20, 30, 60]
    for period in result.periods:
        assert period.volatility == pytest.approx(DAILY_MOVE, rel=1e-9)
        assert period.annualized == pytest.approx(ANNUALISED, rel=1e-9)
    assert result.current_price == pytest.approx(closes[-1])


def test_uses_population_standard_deviation(estimator: VolatilityEstimator) -> None:
    closes = [100.0, 102.0, 99.0, 101.0, 104.0, 103.0]
    returns = np.diff(np.log(closes))
    result = estimator.historical_volatility(closes, [5])
    assert result.periods[0].volatility == pytest.approx(float(np.std(returns, ddof=0)))
    assert result.periods[0].volatility != pytest.approx(float(np.std(returns, ddof=1)))


def test_window_uses_most_recent_returns(estimator: VolatilityEstimator) -> None:
    calm = [100.0] * 50
    closes = calm + [100.0 * math.exp(0.05 * (i % 2)) for i in range(1, 12)]
    short = estimator.historical_volatility(closes, [10]).periods[0]
    returns = np.diff(np.log(closes))[-10:]
    assert short.volatility == pytest.approx(float(np.std(returns)))


@pytest.mark.parametrize("closes", [[], [100.0], [100.0, 101.0]])
def test_fewer_than_two_returns_yield_zero(estimator: VolatilityEstimator, closes: list) -> None:
    result = estimator.historical_volatility(closes, [10])
    assert result.periods[0].volatility == 0.0
    assert result.periods[0].annualized == 0.0


@pytest.mark.parametrize("bad", [[100.0, 0.0, 101.0], [100.0, -5.0], [100.0, math.nan, 101.0]])
def test_non_positive_prices_are_rejected(estimator: VolatilityEstimator, bad: list) -> None:
    with pytest.raises(InvalidPriceSeries):
        estimator.historical_volatility(bad, [10])


@pytest.mark.parametrize("periods", [[], [0], [10, -1]])
def test_invalid_periods_are_rejected(estimator: VolatilityEstimator, periods: list) -> None:
    with pytest.raises(ValueError):
        estimator.historical_volatility(alternating_closes(), periods)


def test_fallback_volatility_is_decimal(estimator: VolatilityEstimator) -> None:
    assert estimator.fallback_volatility(alternating_closes()) == pytest.approx(ANNUALISED / 100.0)


def test_resolve_volatility_prefers_positive_implied(estimator: VolatilityEstimator) -> None:
    closes = alternating_closes()
    assert estimator.resolve_volatility(0.31, closes) == (0.31, "implied")

    sigma, source = estimator.resolve_volatility(0.0, closes)
    assert source == "historical"
    assert sigma == pytest.approx(ANNUALISED / 100.0)

    assert estimator.resolve_volatility(None, None) == (0.0, "historical")


def test_implied_volatility_summary(estimator: VolatilityEstimator) -> None:
    near = make_chain(spot=101.0)
    far = make_chain(expiration=FAR_EXPIRY, calls=((95.0, 1, 0.3), (100.0, 1, 0.28)), puts=())
    empty_iv = make_chain(expiration=FAR_EXPIRY + timedelta(days=28), calls=((100.0, 1, 0.0),), puts=())

    summary = estimator.implied_volatility_summary(near, 15.0, [near, far, empty_iv], as_of=AS_OF)

    assert summary.atm_strike == 100.0
    assert summary.atm_call_iv == pytest.approx(25.0)
    assert summary.atm_put_iv == pytest.approx(27.0)
    assert summary.current_iv == pytest.approx(25.0)
    assert summary.iv_vs_hv == pytest.approx(10.0)
    assert [point.expiration_date for point in summary.term_structure] == [NEAR_EXPIRY, FAR_EXPIRY]
    assert summary.term_structure[0].days_to_expiration == (NEAR_EXPIRY - AS_OF.date()).days
    assert summary.term_structure[1].implied_volatility == pytest.approx(28.0)


def test_implied_volatility_summary_falls_back_to_put_iv(estimator: VolatilityEstimator) -> None:
    chain = make_chain(calls=((100.0, 1, 0.0),), puts=((100.0, 1, 0.4),))
    summary = estimator.implied_volatility_summary(chain, 20.0)
    assert summary.atm_call_iv is None
    assert summary.current_iv == pytest.approx(40.0)
