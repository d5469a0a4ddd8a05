"""The rational normal CDF approximation against scipy."""

from __future__ import annotations

from datetime import UTC, date, datetime

import numpy as np
import pytest
from scipy.stats import norm

from options_analytics.utils.numerics import norm_cdf, norm_pdf, round_to, year_fraction


def test_norm_cdf_tracks_scipy_closely() -> None:
    grid = np.linspace(-8.0, 8.0, 1601)
    errors = [abs(norm_cdf(float(x)) - norm.cdf(x)) for x in grid]
    assert max(errors) < 5e-7


def test_norm_cdf_is_symmetric() -> None:
    for x in (0.1, 0.5, 1.0, 2.5, 6.0):
        assert norm_cdf(x) + norm_cdf(-x) == pytest.approx(1.0, abs=1e-15)


def test_norm_cdf_uses_approximation_constants() -> None:
    # The approximation is pinned; an exact CDF would differ in the eighth decimal.
    assert norm_cdf(0.0) == pytest.approx(0.5, abs=1e-6)
    assert norm_cdf(0.0) != 0.5


def test_norm_pdf_matches_scipy() -> None:
    for x in (-3.0, -0.5, 0.0, 1.2, 4.0):
        assert norm_pdf(x) == pytest.approx(norm.pdf(x), rel=1e-12)


def test_round_to_keeps_full_precision_for_none() -> None:
    assert round_to(1.23456789, None) == 1.23456789
    assert round_to(1.23456789, 4) == 1.2346


def test_year_fraction_uses_midnight_utc_for_dates() -> None:
    as_of = datetime(2026, 1, 1, 0, 0, tzinfo=UTC)
    assert year_fraction(date(2027, 1, 1), as_of) == pytest.approx(1.0)
    assert year_fraction(date(2025, 12, 31), as_of) < 0


def test_year_fraction_treats_naive_datetimes_as_utc() -> None:
    aware = year_fraction(datetime(2026, 7, 2, 12, tzinfo=UTC), datetime(2026, 1, 2, 12, tzinfo=UTC))
    naive = year_fraction(datetime(2026, 7, 2, 12), datetime(2026, 1, 2, 12))
    assert aware == pytest.approx(naive)
