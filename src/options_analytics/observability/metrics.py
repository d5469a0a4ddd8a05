"""Prometheus metrics used across the analytics service."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


REQUEST_COUNT = Counter(
    "opa_request_total",
    "Total number of HTTP requests processed",
    labelnames=("method", "route", "status_code"),
)

REQUEST_ERRORS = Counter(
    "opa_request_errors_total",
    "Total number of error responses emitted",
    labelnames=("method", "route", "status_code"),
)

REQUEST_LATENCY = Histogram(
    "opa_request_latency_seconds",
    "Distribution of HTTP request latency",
    labelnames=("method", "route"),
    buckets=(
        0.001,
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

PRICING_LATENCY = Histogram(
    "opa_pricing_latency_seconds",
    "Time spent evaluating the Black-Scholes model",
    labelnames=("operation",),
    buckets=(
        0.00001,
        0.00005,
        0.0001,
        0.0005,
        0.001,
        0.005,
        0.01,
        0.05,
    ),
)

PRICING_ERRORS = Counter(
    "opa_pricing_errors_total",
    "Number of rejected Black-Scholes evaluations",
    labelnames=("operation", "code"),
)

STRATEGY_LEG_FAILURES = Counter(
    "opa_strategy_leg_failures_total",
    "Strategy legs that fell back to zero Greeks under the lenient policy",
    labelnames=("code",),
)

PROVIDER_ERRORS = Counter(
    "opa_provider_errors_total",
    "Failures reported by market data collaborators",
    labelnames=("provider", "operation"),
)

PROVIDER_CACHE_HITS = Counter(
    "opa_provider_cache_hits_total",
    "Market data lookups served from the TTL cache",
    labelnames=("operation",),
)

PROVIDER_CACHE_MISSES = Counter(
    "opa_provider_cache_misses_total",
    "Market data lookups forwarded to the wrapped provider",
    labelnames=("operation",),
)

PAYLOAD_TOO_LARGE = Counter(
    "opa_payload_too_large_total",
    "Number of requests rejected because the payload exceeded limits",
    labelnames=("route",),
)
