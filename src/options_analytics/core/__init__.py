"""Core analytics: domain models, errors and the pricing components."""

from .errors import (
    AnalyticsError,
    DataUnavailable,
    EmptyStrategy,
    InvalidLeg,
    InvalidPriceSeries,
    InvalidPricingInputs,
    InvalidVolatility,
    OptionExpired,
)
from .models import (
    BreakEvenMethod,
    Greeks,
    LegAction,
    LegErrorPolicy,
    OptionContract,
    OptionLeg,
    OptionsChain,
    OptionType,
    PricingInputs,
)

__all__ = [
    "AnalyticsError",
    "BreakEvenMethod",
    "DataUnavailable",
    "EmptyStrategy",
    "Greeks",
    "InvalidLeg",
    "InvalidPriceSeries",
    "InvalidPricingInputs",
    "InvalidVolatility",
    "LegAction",
    "LegErrorPolicy",
    "OptionContract",
    "OptionExpired",
    "OptionLeg",
    "OptionType",
    "OptionsChain",
    "PricingInputs",
]
