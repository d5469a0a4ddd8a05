"""Numerical helpers shared by the analytics core."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, time
from typing import Optional

__all__ = [
    "DAYS_PER_YEAR",
    "norm_cdf",
    "norm_pdf",
    "round_to",
    "year_fraction",
]

DAYS_PER_YEAR = 365.0
SECONDS_PER_YEAR = DAYS_PER_YEAR * 24.0 * 3600.0

INV_SQRT_TWO_PI = 1.0 / math.sqrt(2.0 * math.pi)

# Abramowitz & Stegun 26.2.17. Downstream figures are pinned to these exact
# constants, so they must not be replaced by an exact erf based CDF.
_AS_P = 0.2316419
_AS_PDF = 0.3989423
_AS_B1 = 0.3193815
_AS_B2 = -0.3565638
_AS_B3 = 1.781478
_AS_B4 = -1.821256
_AS_B5 = 1.330274


def norm_pdf(value: float) -> float:
    """Standard normal probability density."""

    return INV_SQRT_TWO_PI * math.exp(-0.5 * value * value)


def norm_cdf(value: float) -> float:
    """Standard normal CDF via the rational approximation."""

    t = 1.0 / (1.0 + _AS_P * abs(value))
    density = _AS_PDF * math.exp(-(value * value) / 2.0)
    tail = density * t * (_AS_B1 + t * (_AS_B2 + t * (_AS_B3 + t * (_AS_B4 + t * _AS_B5))))
    return 1.0 - tail if value > 0 else tail


def round_to(value: float, digits: Optional[int]) -> float:
    """Round ``value`` unless ``digits`` is ``None``."""

    if digits is None:
        return float(value)
    return round(float(value), digits)


def year_fraction(expiration: date | datetime, as_of: Optional[datetime] = None) -> float:
    """Return the ACT/365 year fraction between ``as_of`` and ``expiration``.

    A bare ``date`` expires at midnight UTC, matching how listed expiration
    dates are parsed from ``YYYY-MM-DD`` strings. Naive datetimes are treated
    as UTC.
    """

    if isinstance(expiration, datetime):
        expiry = expiration if expiration.tzinfo else expiration.replace(tzinfo=UTC)
    else:
        expiry = datetime.combine(expiration, time.min, tzinfo=UTC)

    now = as_of or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return (expiry - now).total_seconds() / SECONDS_PER_YEAR
