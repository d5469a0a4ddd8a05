"""FastAPI application exposing the analytics tools."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

import psutil
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .. import __version__
from ..core.errors import AnalyticsError
from ..observability.metrics import REQUEST_COUNT, REQUEST_ERRORS, REQUEST_LATENCY
from .config import get_settings
from .middleware import BodySizeLimitMiddleware, SecurityHeadersMiddleware, ensure_request_id, track_request_duration
from .routes import pricing, tools

LOGGER = logging.getLogger(__name__)
START_TIME = time.time()


def _error_response(request: Request, status_code: int, content: dict[str, object]) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content)
    response.headers.setdefault("X-Request-ID", ensure_request_id(request))
    return response


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Options Analytics Engine",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )
    app.state.settings = settings

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=list(settings.allowed_hosts))
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Accept-Language", "X-Request-ID"],
    )

    app.include_router(tools.router, prefix="/api/v1")
    app.include_router(pricing.router, prefix="/api/v1")

    @app.middleware("http")
    async def _request_metrics(request: Request, call_next):
        request_id = ensure_request_id(request)
        method = request.method
        recorder = track_request_duration(request)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            route = getattr(request.scope.get("route"), "path", request.url.path)
            REQUEST_LATENCY.labels(method=method, route=route).observe(duration)
            REQUEST_ERRORS.labels(method=method, route=route, status_code="500").inc()
            REQUEST_COUNT.labels(method=method, route=route, status_code="500").inc()
            recorder(500)
            raise

        duration = time.perf_counter() - start
        route = getattr(request.scope.get("route"), "path", request.url.path)
        status_code = str(response.status_code)
        REQUEST_LATENCY.labels(method=method, route=route).observe(duration)
        REQUEST_COUNT.labels(method=method, route=route, status_code=status_code).inc()
        if response.status_code >= 400:
            REQUEST_ERRORS.labels(method=method, route=route, status_code=status_code).inc()
        response.headers.setdefault("X-Request-ID", request_id)
        recorder(response.status_code)
        return response

    @app.get("/metrics", tags=["monitoring"], include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics for scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    def _health_payload(cpu: float | None, memory: float | None) -> dict[str, object]:
        uptime = max(0.0, time.time() - START_TIME)
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": app.version,
            "environment": settings.environment,
            "market_data_provider": settings.market_data_provider,
            "uptime_seconds": round(uptime, 3),
            "system": {
                "cpu_percent": cpu,
                "memory_percent": memory,
            },
        }

    @app.get("/healthz", tags=["monitoring"])
    async def healthz() -> dict[str, object]:
        """Expose the readiness of the service."""

        try:
            cpu_usage = psutil.cpu_percent(interval=None)
            memory_usage = psutil.virtual_memory().percent
        except (psutil.Error, PermissionError):  # pragma: no cover - sandboxed hosts
            return _health_payload(cpu=None, memory=None)

        return _health_payload(cpu=cpu_usage, memory=memory_usage)

    @app.get("/health", tags=["monitoring"], include_in_schema=False)
    async def health() -> dict[str, object]:
        return await healthz()

    @app.exception_handler(AnalyticsError)
    async def analytics_error(request: Request, exc: AnalyticsError) -> JSONResponse:
        if isinstance(exc, RuntimeError):
            LOGGER.warning("Tool dependency unavailable: %s", exc.message)
            return _error_response(request, 503, exc.to_payload())
        return _error_response(request, 400, exc.to_payload())

    @app.exception_handler(ValueError)
    async def value_error(request: Request, exc: ValueError) -> JSONResponse:
        return _error_response(request, 400, {"detail": str(exc), "code": "INVALID_INPUT"})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(
            request,
            422,
            {"detail": jsonable_encoder(exc.errors()), "code": "VALIDATION_ERROR"},
        )

    @app.exception_handler(Exception)
    async def global_error(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled exception: %s", exc)
        return _error_response(request, 500, {"detail": "Internal server error", "code": "INTERNAL_ERROR"})

    return app


app = create_app()
