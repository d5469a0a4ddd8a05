"""Custom ASGI middleware used by the FastAPI application."""

from __future__ import annotations

import json
import logging
import time
from typing import Awaitable, Callable
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.status import HTTP_413_REQUEST_ENTITY_TOO_LARGE

from ..observability.metrics import PAYLOAD_TOO_LARGE

LOGGER = logging.getLogger("options_analytics.request")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach basic security headers to every HTTP response."""

    def __init__(self, app, *, hsts_max_age: int = 63_072_000) -> None:
        super().__init__(app)
        self._hsts_value = f"max-age={hsts_max_age}; includeSubDomains; preload"

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.setdefault("Strict-Transport-Security", self._hsts_value)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault("Cache-Control", "no-store")
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject tool invocations whose payload exceeds the configured limit."""

    def __init__(self, app, *, max_body_bytes: int) -> None:
        super().__init__(app)
        self._max_body_bytes = max(1, max_body_bytes)
        self._string_threshold = max(128, self._max_body_bytes // 32)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self._max_body_bytes:
            return self._reject(request)

        body = await request.body()
        if len(body) > self._max_body_bytes:
            return self._reject(request)

        if body:
            try:
                payload = json.loads(body)
            except ValueError:
                payload = None
            if payload is not None and self._has_oversized_string(payload):
                return self._reject(request)

        return await call_next(request)

    def _reject(self, request: Request) -> JSONResponse:
        PAYLOAD_TOO_LARGE.labels(route=request.url.path).inc()
        response = JSONResponse(
            status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"detail": "Payload too large", "code": "PAYLOAD_TOO_LARGE"},
        )
        response.headers.setdefault("X-Request-ID", ensure_request_id(request))
        return response

    def _has_oversized_string(self, payload: object) -> bool:
        if isinstance(payload, str):
            return len(payload.encode()) > self._string_threshold
        if isinstance(payload, dict):
            return any(self._has_oversized_string(value) for value in payload.values())
        if isinstance(payload, list):
            return any(self._has_oversized_string(item) for item in payload)
        return False


def log_request_completion(*, request: Request, status_code: int, duration_seconds: float) -> None:
    """Emit one JSON line per completed request."""

    payload = {
        "event": "request.complete",
        "request_id": getattr(request.state, "request_id", None),
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "latency_ms": round(duration_seconds * 1000.0, 3),
    }
    tool = getattr(request.state, "tool", None)
    if tool:
        payload["tool"] = tool
    LOGGER.info(json.dumps(payload, separators=(",", ":"), sort_keys=True))


def ensure_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return request_id
    request_id = request.headers.get("x-request-id") or uuid4().hex
    request.state.request_id = request_id
    return request_id


def track_request_duration(request: Request) -> Callable[[int], None]:
    start = time.perf_counter()

    def complete(status_code: int) -> None:
        log_request_completion(
            request=request,
            status_code=status_code,
            duration_seconds=time.perf_counter() - start,
        )

    return complete
