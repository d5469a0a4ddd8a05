"""Validation helpers for pricing and strategy inputs."""

from __future__ import annotations

import math
from typing import Sequence

from ..core.errors import (
    EmptyStrategy,
    InvalidLeg,
    InvalidPricingInputs,
    InvalidVolatility,
    OptionExpired,
)
from ..core.models import OptionLeg, PricingInputs


def _finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def validate_pricing_inputs(inputs: PricingInputs) -> None:
    """Validate that inputs to the Black-Scholes model are well formed."""

    if not _finite(inputs.time_to_expiry) or inputs.time_to_expiry <= 0:
        raise OptionExpired(
            "Option has already expired",
            details={"time_to_expiry": inputs.time_to_expiry},
        )

    if not _finite(inputs.volatility) or inputs.volatility <= 0:
        raise InvalidVolatility(
            "volatility must be strictly positive",
            details={"volatility": inputs.volatility},
        )

    if not _finite(inputs.spot_price) or inputs.spot_price <= 0:
        raise InvalidPricingInputs("spot_price must be strictly positive")

    if not _finite(inputs.strike_price) or inputs.strike_price <= 0:
        raise InvalidPricingInputs("strike_price must be strictly positive")

    if not _finite(inputs.risk_free_rate):
        raise InvalidPricingInputs("risk_free_rate must be finite")

    if not _finite(inputs.dividend_yield) or inputs.dividend_yield < 0:
        raise InvalidPricingInputs("dividend_yield must be non-negative")


def validate_legs(legs: Sequence[OptionLeg]) -> None:
    """Reject empty strategies and malformed legs."""

    if not legs:
        raise EmptyStrategy("A strategy requires at least one leg")

    for index, leg in enumerate(legs):
        if not _finite(leg.strike) or leg.strike <= 0:
            raise InvalidLeg(
                f"legs[{index}].strike must be strictly positive",
                details={"index": index, "strike": leg.strike},
            )
        if isinstance(leg.quantity, bool) or not isinstance(leg.quantity, int) or leg.quantity <= 0:
            raise InvalidLeg(
                f"legs[{index}].quantity must be a positive integer",
                details={"index": index, "quantity": leg.quantity},
            )
        if leg.premium is not None and (not _finite(leg.premium) or leg.premium < 0):
            raise InvalidLeg(
                f"legs[{index}].premium must be non-negative",
                details={"index": index, "premium": leg.premium},
            )
