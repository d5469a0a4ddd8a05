"""Utility helpers exposed by :mod:`options_analytics`."""

from .numerics import norm_cdf, norm_pdf, round_to, year_fraction

__all__ = [
    "norm_cdf",
    "norm_pdf",
    "round_to",
    "year_fraction",
]
