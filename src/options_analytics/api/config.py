"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Tuple, Type, TypeVar

from ..core.models import BreakEvenMethod, LegErrorPolicy

_E = TypeVar("_E", bound=Enum)

DEFAULT_RISK_FREE_RATE = 0.045
MARKET_DATA_PROVIDERS = ("yfinance", "static")


def _get_env(name: str, *, default: str | None = None) -> str | None:
    """Return a trimmed environment variable, treating blanks as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _get_env_alias(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty value among ``names``."""

    for name in names:
        value = _get_env(name)
        if value is not None:
            return value
    return default


def _split_csv(value: str | None) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _as_int(name: str, *, default: int, minimum: int | None = None, maximum: int | None = None) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer") from exc
    if minimum is not None and value < minimum:
        raise RuntimeError(f"Environment variable {name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise RuntimeError(f"Environment variable {name} must be <= {maximum}")
    return value


def _as_float(name: str, *, default: float, minimum: float | None = None) -> float:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be a number") from exc
    if value != value or value in (float("inf"), float("-inf")):
        raise RuntimeError(f"Environment variable {name} must be finite")
    if minimum is not None and value < minimum:
        raise RuntimeError(f"Environment variable {name} must be >= {minimum}")
    return value


def _as_bool(name: str, *, default: bool) -> bool:
    raw = _get_env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_choice(name: str, enum_type: Type[_E], *, default: _E) -> _E:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return enum_type(raw.lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in enum_type)
        raise RuntimeError(f"Environment variable {name} must be one of: {choices}") from exc


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable view over application configuration."""

    environment: str
    allowed_hosts: Tuple[str, ...]
    allowed_origins: Tuple[str, ...]
    cors_allow_credentials: bool
    risk_free_rate: float
    dividend_yield: float
    hv_fallback_days: int
    leg_error_policy: LegErrorPolicy
    break_even_method: BreakEvenMethod
    strategy_workers: int
    max_legs: int
    market_data_provider: str
    cache_ttl_seconds: float
    cache_max_entries: int
    max_body_bytes: int

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the current process environment."""

    environment_raw = (_get_env_alias("ENV", "OPA_ENVIRONMENT", default="development") or "development").lower()
    if environment_raw in {"prod", "production"}:
        environment = "production"
    elif environment_raw in {"dev", "development"}:
        environment = "development"
    else:
        environment = environment_raw

    allowed_hosts = _split_csv(_get_env_alias("ALLOWED_HOSTS", "OPA_ALLOWED_HOSTS"))
    if not allowed_hosts:
        if environment == "production":
            raise RuntimeError("ALLOWED_HOSTS must be provided when ENV/OPA_ENVIRONMENT=production")
        allowed_hosts = ("localhost", "127.0.0.1")

    allowed_origins = _split_csv(_get_env_alias("CORS_ALLOWED_ORIGINS", "OPA_ALLOWED_ORIGINS"))
    if not allowed_origins and environment != "production":
        allowed_origins = (
            "http://localhost",
            "http://localhost:3000",
            "http://localhost:8000",
        )

    provider = (_get_env("OPA_MARKET_DATA_PROVIDER", default="yfinance") or "yfinance").lower()
    if provider not in MARKET_DATA_PROVIDERS:
        raise RuntimeError(
            "OPA_MARKET_DATA_PROVIDER must be one of: " + ", ".join(MARKET_DATA_PROVIDERS)
        )

    return Settings(
        environment=environment,
        allowed_hosts=allowed_hosts,
        allowed_origins=allowed_origins,
        cors_allow_credentials=_as_bool("OPA_CORS_ALLOW_CREDENTIALS", default=True),
        risk_free_rate=_as_float("OPA_RISK_FREE_RATE", default=DEFAULT_RISK_FREE_RATE),
        dividend_yield=_as_float("OPA_DIVIDEND_YIELD", default=0.0, minimum=0.0),
        hv_fallback_days=_as_int("OPA_HV_FALLBACK_DAYS", default=30, minimum=2),
        leg_error_policy=_as_choice("OPA_LEG_ERROR_POLICY", LegErrorPolicy, default=LegErrorPolicy.LENIENT),
        break_even_method=_as_choice("OPA_BREAK_EVEN_METHOD", BreakEvenMethod, default=BreakEvenMethod.GRID),
        strategy_workers=_as_int("OPA_STRATEGY_WORKERS", default=1, minimum=1, maximum=32),
        max_legs=_as_int("OPA_MAX_LEGS", default=12, minimum=1),
        market_data_provider=provider,
        cache_ttl_seconds=_as_float("OPA_CACHE_TTL_SECONDS", default=60.0, minimum=0.0),
        cache_max_entries=_as_int("OPA_CACHE_MAX_ENTRIES", default=1024, minimum=1),
        max_body_bytes=_as_int("MAX_BODY_BYTES", default=1_048_576, minimum=1_024),
    )


__all__ = ["Settings", "get_settings"]
