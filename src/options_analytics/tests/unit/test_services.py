"""Tests for the tool handlers over the in-memory provider."""

from __future__ import annotations

import math
from datetime import date

import pytest

from options_analytics.api.services import AnalyticsService
from options_analytics.core.errors import DataUnavailable, InvalidLeg
from options_analytics.core.models import LegAction, OptionLeg, OptionType, PricingInputs
from options_analytics.data.providers import StaticMarketDataProvider
from options_analytics.tests.utils import AS_OF, DAILY_MOVE, FAR_EXPIRY, NEAR_EXPIRY, make_static_provider
from options_analytics.utils.numerics import year_fraction

ANNUALISED_PERCENT = DAILY_MOVE * math.sqrt(252) * 100.0


def test_greeks_use_listed_implied_volatility(service: AnalyticsService) -> None:
    report = service.calculate_greeks("test", 100.0, NEAR_EXPIRY, OptionType.CALL)

    assert report.symbol == "TEST"
    assert report.volatility_source == "implied"
    assert report.underlying_price == pytest.approx(101.0)
    assert report.implied_volatility == pytest.approx(25.0)

    inputs = PricingInputs(
        spot_price=101.0,
        strike_price=100.0,
        time_to_expiry=year_fraction(NEAR_EXPIRY, AS_OF),
        volatility=0.25,
        option_type=OptionType.CALL,
    )
    price, greeks = service.pricing_engine.price_and_greeks(inputs)
    assert report.theoretical_price == pytest.approx(round(price, 4))
    assert report.greeks == greeks


def test_greeks_fall_back_to_realised_volatility(service: AnalyticsService) -> None:
    report = service.calculate_greeks("TEST", 120.0, NEAR_EXPIRY, OptionType.CALL)
    assert report.volatility_source == "historical"
    assert report.implied_volatility == pytest.approx(ANNUALISED_PERCENT)


def test_greeks_without_listed_chain(service: AnalyticsService) -> None:
    report = service.calculate_greeks("NOCHAIN", 50.0, NEAR_EXPIRY, OptionType.PUT, underlying_price=49.0)
    assert report.volatility_source == "historical"
    assert report.underlying_price == pytest.approx(49.0)
    assert report.greeks.delta < 0


def test_unknown_symbol_is_unavailable(service: AnalyticsService) -> None:
    with pytest.raises(DataUnavailable):
        service.calculate_greeks("NOPE", 100.0, NEAR_EXPIRY, OptionType.CALL)


def test_max_pain_defaults_to_nearest_expiration(service: AnalyticsService) -> None:
    report = service.calculate_max_pain("TEST")
    assert report.expiration_date == NEAR_EXPIRY
    assert report.current_price == pytest.approx(101.0)
    assert report.result.max_pain_price == pytest.approx(100.0)

    far = service.calculate_max_pain("TEST", FAR_EXPIRY)
    assert far.expiration_date == FAR_EXPIRY


def test_max_pain_for_unlisted_expiration(service: AnalyticsService) -> None:
    with pytest.raises(DataUnavailable):
        service.calculate_max_pain("TEST", date(2030, 1, 18))


def test_historical_volatility_windows(service: AnalyticsService) -> None:
    report = service.calculate_historical_volatility("TEST", [10, 20])
    assert [period.days for period in report.result.periods] == [10, 20]
    for period in report.result.periods:
        assert period.annualized == pytest.approx(ANNUALISED_PERCENT)
    assert report.result.current_price == pytest.approx(make_static_provider().closes["TEST"][-1])


def test_historical_volatility_rejects_bad_periods(service: AnalyticsService) -> None:
    with pytest.raises(ValueError):
        service.calculate_historical_volatility("TEST", [0])


def test_analyze_strategy_uses_quote_and_chain(service: AnalyticsService) -> None:
    legs = [
        OptionLeg(strike=100.0, option_type=OptionType.CALL, action=LegAction.BUY, premium=5.0),
        OptionLeg(strike=110.0, option_type=OptionType.CALL, action=LegAction.SELL, premium=2.0),
    ]
    analysis = service.analyze_strategy("TEST", "bull_call_spread", legs, NEAR_EXPIRY)

    assert analysis.underlying_price == pytest.approx(101.0)
    assert analysis.net_premium == pytest.approx(-300.0)
    assert analysis.break_even_points == (103.0,)
    assert analysis.legs[0].volatility == pytest.approx(0.25)
    assert analysis.legs[1].volatility == pytest.approx(DAILY_MOVE * math.sqrt(252))


def test_analyze_strategy_limits_leg_count(static_provider) -> None:
    service = AnalyticsService(provider=static_provider, max_legs=2, clock=lambda: AS_OF)
    legs = [OptionLeg(strike=100.0, option_type=OptionType.CALL, action=LegAction.BUY, premium=1.0)] * 3
    with pytest.raises(InvalidLeg):
        service.analyze_strategy("TEST", "custom", legs, NEAR_EXPIRY)


def test_implied_volatility_summary(service: AnalyticsService) -> None:
    report = service.get_implied_volatility("TEST")
    summary = report.summary

    assert report.expiration_date == NEAR_EXPIRY
    assert summary.atm_strike == pytest.approx(100.0)
    assert summary.current_iv == pytest.approx(25.0)
    assert summary.historical_volatility == pytest.approx(ANNUALISED_PERCENT)
    assert summary.iv_vs_hv == pytest.approx(25.0 - ANNUALISED_PERCENT)
    assert [point.expiration_date for point in summary.term_structure] == [NEAR_EXPIRY, FAR_EXPIRY]
    assert [point.days_to_expiration for point in summary.term_structure] == [49, 77]


class _BrokenProvider:
    name = "broken"

    def get_quote(self, symbol):
        raise ConnectionError("upstream timeout")

    def get_chain(self, symbol, expiration_date=None):
        raise ConnectionError("upstream timeout")

    def get_expiration_dates(self, symbol):
        raise ConnectionError("upstream timeout")

    def get_historical(self, symbol, lookback_days, interval="1d"):
        raise ConnectionError("upstream timeout")


def test_collaborator_failures_become_data_unavailable() -> None:
    service = AnalyticsService(provider=_BrokenProvider(), clock=lambda: AS_OF)
    with pytest.raises(DataUnavailable) as excinfo:
        service.calculate_max_pain("TEST")
    assert excinfo.value.details == {"symbol": "TEST", "operation": "chain"}
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_analyze_strategy_with_quote_only() -> None:
    provider = StaticMarketDataProvider.from_mappings(quotes={"QUOTEONLY": 101.0})
    service = AnalyticsService(provider=provider, clock=lambda: AS_OF)
    legs = [
        OptionLeg(strike=100.0, option_type=OptionType.CALL, action=LegAction.BUY, premium=5.0),
        OptionLeg(strike=110.0, option_type=OptionType.CALL, action=LegAction.SELL, premium=2.0),
    ]
    analysis = service.analyze_strategy("QUOTEONLY", "bull_call_spread", legs, NEAR_EXPIRY)

    assert analysis.net_debit == pytest.approx(300.0)
    assert analysis.max_profit == pytest.approx(700.0)
    assert len(analysis.warnings) == 2
