"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from options_analytics.api.config import get_settings
from options_analytics.core.models import BreakEvenMethod, LegErrorPolicy

_VARIABLES = (
    "ENV",
    "OPA_ENVIRONMENT",
    "ALLOWED_HOSTS",
    "OPA_ALLOWED_HOSTS",
    "CORS_ALLOWED_ORIGINS",
    "OPA_ALLOWED_ORIGINS",
    "OPA_MARKET_DATA_PROVIDER",
    "OPA_LEG_ERROR_POLICY",
    "OPA_BREAK_EVEN_METHOD",
    "OPA_STRATEGY_WORKERS",
    "OPA_RISK_FREE_RATE",
    "OPA_CACHE_TTL_SECONDS",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    settings = get_settings()
    assert settings.environment == "development"
    assert settings.allowed_hosts == ("localhost", "127.0.0.1")
    assert settings.risk_free_rate == pytest.approx(0.045)
    assert settings.leg_error_policy is LegErrorPolicy.LENIENT
    assert settings.break_even_method is BreakEvenMethod.GRID
    assert settings.market_data_provider == "yfinance"
    assert settings.strategy_workers == 1
    assert settings.cache_ttl_seconds == pytest.approx(60.0)
    assert not settings.is_production


def test_settings_are_cached(clean_env) -> None:
    assert get_settings() is get_settings()


def test_overrides_are_parsed(clean_env) -> None:
    clean_env.setenv("OPA_LEG_ERROR_POLICY", "STRICT")
    clean_env.setenv("OPA_BREAK_EVEN_METHOD", "exact")
    clean_env.setenv("OPA_STRATEGY_WORKERS", "4")
    clean_env.setenv("OPA_RISK_FREE_RATE", "0.05")
    clean_env.setenv("OPA_MARKET_DATA_PROVIDER", "static")
    clean_env.setenv("OPA_ALLOWED_HOSTS", "api.example.com, ")

    settings = get_settings()
    assert settings.leg_error_policy is LegErrorPolicy.STRICT
    assert settings.break_even_method is BreakEvenMethod.EXACT
    assert settings.strategy_workers == 4
    assert settings.risk_free_rate == pytest.approx(0.05)
    assert settings.market_data_provider == "static"
    assert settings.allowed_hosts == ("api.example.com",)


def test_production_requires_allowed_hosts(clean_env) -> None:
    clean_env.setenv("ENV", "prod")
    with pytest.raises(RuntimeError, match="ALLOWED_HOSTS"):
        get_settings()


def test_production_with_hosts(clean_env) -> None:
    clean_env.setenv("ENV", "production")
    clean_env.setenv("ALLOWED_HOSTS", "api.example.com")
    settings = get_settings()
    assert settings.is_production
    assert settings.allowed_origins == ()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("OPA_LEG_ERROR_POLICY", "sometimes"),
        ("OPA_MARKET_DATA_PROVIDER", "bloomberg"),
        ("OPA_STRATEGY_WORKERS", "0"),
        ("OPA_RISK_FREE_RATE", "nan"),
        ("OPA_CACHE_TTL_SECONDS", "soon"),
    ],
)
def test_invalid_values_are_rejected(clean_env, name: str, value: str) -> None:
    clean_env.setenv(name, value)
    with pytest.raises(RuntimeError):
        get_settings()
