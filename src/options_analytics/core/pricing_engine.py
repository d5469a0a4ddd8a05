"""Black-Scholes pricing and Greeks for European options."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from ..observability.metrics import PRICING_ERRORS, PRICING_LATENCY
from ..utils.numerics import DAYS_PER_YEAR, norm_cdf, norm_pdf, round_to
from ..utils.validation import validate_pricing_inputs
from .errors import AnalyticsError
from .models import Greeks, OptionType, PricingInputs

LOGGER = logging.getLogger(__name__)

GREEKS_PRECISION = 4


@dataclass(slots=True)
class _Terms:
    """Intermediate Black-Scholes terms shared by price and Greeks."""

    sqrt_t: float
    discount_dividend: float
    discount_rate: float
    adjusted_spot: float
    d1: float
    d2: float


def _terms(inputs: PricingInputs) -> _Terms:
    sigma = inputs.volatility
    tau = inputs.time_to_expiry
    sqrt_t = math.sqrt(tau)
    discount_dividend = math.exp(-inputs.dividend_yield * tau)
    discount_rate = math.exp(-inputs.risk_free_rate * tau)
    adjusted_spot = inputs.adjusted_spot

    d1 = (
        math.log(adjusted_spot / inputs.strike_price)
        + (inputs.risk_free_rate + sigma**2 / 2.0) * tau
    ) / (sigma * sqrt_t)
    d2 = d1 - sigma * sqrt_t
    return _Terms(sqrt_t, discount_dividend, discount_rate, adjusted_spot, d1, d2)


def _price(inputs: PricingInputs, terms: _Terms) -> float:
    strike = inputs.strike_price
    if inputs.option_type is OptionType.CALL:
        return terms.adjusted_spot * norm_cdf(terms.d1) - strike * terms.discount_rate * norm_cdf(terms.d2)
    return strike * terms.discount_rate * norm_cdf(-terms.d2) - terms.adjusted_spot * norm_cdf(-terms.d1)


def _greeks(inputs: PricingInputs, terms: _Terms) -> Greeks:
    spot = inputs.spot_price
    strike = inputs.strike_price
    sigma = inputs.volatility
    rate = inputs.risk_free_rate
    dividend = inputs.dividend_yield
    tau = inputs.time_to_expiry

    pdf_d1 = norm_pdf(terms.d1)
    decay = -(spot * pdf_d1 * sigma * terms.discount_dividend) / (2.0 * terms.sqrt_t)
    gamma = terms.discount_dividend * pdf_d1 / (spot * sigma * terms.sqrt_t)
    vega = spot * terms.discount_dividend * pdf_d1 * terms.sqrt_t / 100.0

    if inputs.option_type is OptionType.CALL:
        delta = terms.discount_dividend * norm_cdf(terms.d1)
        theta = (
            decay
            - rate * strike * terms.discount_rate * norm_cdf(terms.d2)
            + dividend * spot * terms.discount_dividend * norm_cdf(terms.d1)
        ) / DAYS_PER_YEAR
        rho = strike * tau * terms.discount_rate * norm_cdf(terms.d2) / 100.0
    else:
        delta = terms.discount_dividend * (norm_cdf(terms.d1) - 1.0)
        theta = (
            decay
            + rate * strike * terms.discount_rate * norm_cdf(-terms.d2)
            - dividend * spot * terms.discount_dividend * norm_cdf(-terms.d1)
        ) / DAYS_PER_YEAR
        rho = -strike * tau * terms.discount_rate * norm_cdf(-terms.d2) / 100.0

    return Greeks(delta=delta, gamma=gamma, theta=theta, vega=vega, rho=rho)


def _round_greeks(greeks: Greeks, precision: Optional[int]) -> Greeks:
    return Greeks(
        delta=round_to(greeks.delta, precision),
        gamma=round_to(greeks.gamma, precision),
        theta=round_to(greeks.theta, precision),
        vega=round_to(greeks.vega, precision),
        rho=round_to(greeks.rho, precision),
    )


@dataclass(slots=True)
class PricingEngine:
    """Deterministic Black-Scholes-Merton model with continuous dividends.

    The engine never infers volatility: callers resolve implied or historical
    volatility before building :class:`PricingInputs`.
    """

    def _evaluate(self, operation: str, inputs: PricingInputs) -> _Terms:
        try:
            validate_pricing_inputs(inputs)
        except AnalyticsError as exc:
            PRICING_ERRORS.labels(operation=operation, code=exc.code).inc()
            LOGGER.debug("Rejected %s inputs: %s", operation, exc)
            raise
        return _terms(inputs)

    def calculate_price(self, inputs: PricingInputs) -> float:
        """Return the theoretical option price for ``inputs``."""

        start = time.perf_counter()
        terms = self._evaluate("price", inputs)
        price = _price(inputs, terms)
        PRICING_LATENCY.labels(operation="price").observe(time.perf_counter() - start)
        return price

    def calculate_greeks(self, inputs: PricingInputs, precision: Optional[int] = GREEKS_PRECISION) -> Greeks:
        """Return delta, gamma, theta (per day), vega and rho (per 1%).

        Values are rounded to ``precision`` decimals; ``None`` keeps full
        floating-point precision.
        """

        start = time.perf_counter()
        terms = self._evaluate("greeks", inputs)
        greeks = _round_greeks(_greeks(inputs, terms), precision)
        PRICING_LATENCY.labels(operation="greeks").observe(time.perf_counter() - start)
        return greeks

    def price_and_greeks(
        self, inputs: PricingInputs, precision: Optional[int] = GREEKS_PRECISION
    ) -> Tuple[float, Greeks]:
        """Evaluate price and Greeks from a single set of intermediate terms."""

        start = time.perf_counter()
        terms = self._evaluate("price_and_greeks", inputs)
        price = _price(inputs, terms)
        greeks = _round_greeks(_greeks(inputs, terms), precision)
        PRICING_LATENCY.labels(operation="price_and_greeks").observe(time.perf_counter() - start)
        return price, greeks


__all__ = ["GREEKS_PRECISION", "PricingEngine"]
