"""Test configuration and environment bootstrapping."""

from __future__ import annotations

import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("OPA_ALLOWED_HOSTS", "testserver,localhost,127.0.0.1")
os.environ.setdefault("OPA_ALLOWED_ORIGINS", "http://testserver")
os.environ.setdefault("OPA_MARKET_DATA_PROVIDER", "static")
os.environ.setdefault("OPA_CACHE_TTL_SECONDS", "0")

from options_analytics.api.config import get_settings  # noqa: E402
from options_analytics.api.dependencies import get_analytics_service  # noqa: E402
from options_analytics.api.fastapi_app import create_app  # noqa: E402
from options_analytics.api.services import AnalyticsService  # noqa: E402
from options_analytics.core.pricing_engine import PricingEngine  # noqa: E402
from options_analytics.core.volatility import VolatilityEstimator  # noqa: E402
from options_analytics.data.providers import StaticMarketDataProvider  # noqa: E402
from options_analytics.tests.utils import AS_OF, make_static_provider  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def engine() -> PricingEngine:
    return PricingEngine()


@pytest.fixture()
def estimator() -> VolatilityEstimator:
    return VolatilityEstimator()


@pytest.fixture()
def static_provider() -> StaticMarketDataProvider:
    return make_static_provider()


@pytest.fixture()
def service(static_provider: StaticMarketDataProvider) -> AnalyticsService:
    return AnalyticsService(provider=static_provider, clock=lambda: AS_OF)


@pytest.fixture()
def client(service: AnalyticsService) -> Iterator[TestClient]:
    """Return a test client whose tools read from the in-memory provider."""

    app = create_app()
    app.dependency_overrides[get_analytics_service] = lambda: service
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
