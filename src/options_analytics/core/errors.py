"""Error taxonomy for the analytics core."""

from __future__ import annotations

from typing import Any, Mapping, Optional


class AnalyticsError(Exception):
    """Base class for every error raised by the analytics core."""

    code = "ANALYTICS_ERROR"

    def __init__(self, message: str, *, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class OptionExpired(AnalyticsError, ValueError):
    """Raised when the time to expiry is not strictly positive."""

    code = "OPTION_EXPIRED"


class InvalidVolatility(AnalyticsError, ValueError):
    """Raised when a pricing call receives a non-positive volatility."""

    code = "INVALID_VOLATILITY"


class InvalidPricingInputs(AnalyticsError, ValueError):
    """Raised for malformed spot, strike or rate inputs."""

    code = "INVALID_INPUT"


class InvalidLeg(AnalyticsError, ValueError):
    """Raised when a strategy leg is malformed."""

    code = "INVALID_LEG"


class EmptyStrategy(AnalyticsError, ValueError):
    """Raised when a strategy has no legs."""

    code = "EMPTY_STRATEGY"


class InvalidPriceSeries(AnalyticsError, ValueError):
    """Raised when a historical price series cannot produce log returns."""

    code = "INVALID_PRICE_SERIES"


class DataUnavailable(AnalyticsError, RuntimeError):
    """Raised when a market data collaborator cannot supply an input."""

    code = "DATA_UNAVAILABLE"


__all__ = [
    "AnalyticsError",
    "DataUnavailable",
    "EmptyStrategy",
    "InvalidLeg",
    "InvalidPriceSeries",
    "InvalidPricingInputs",
    "InvalidVolatility",
    "OptionExpired",
]
