"""HTTP middleware shared by every route.

Registered by :func:`install_middleware` so that, outermost first, a request
passes through: security headers → access log → metrics capture → drain gate
→ error boundary → route dispatch.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("app.access")

# Same defaults helmet applies to an Express app.
SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


def internal_error_response(exc: Exception, expose_detail: bool) -> JSONResponse:
    """Generic 500; the exception text is only echoed in development."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if expose_detail else "An error occurred",
        },
    )


# ── Individual middleware ────────────────────────────────────────────────

async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def access_log_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000

    client = request.client.host if request.client else "-"
    access_logger.info(
        '%s - "%s %s HTTP/%s" %d %s "%s" "%s" %.2fms',
        client,
        request.method,
        request.url.path,
        request.scope.get("http_version", "1.1"),
        response.status_code,
        response.headers.get("content-length", "-"),
        request.headers.get("referer", "-"),
        request.headers.get("user-agent", "-"),
        elapsed_ms,
    )
    return response


async def metrics_middleware(request: Request, call_next):
    metrics = request.app.state.metrics
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        metrics.record_completion(500, (time.perf_counter() - start) * 1000)
        raise

    # Recorded once headers are ready; every body here is a single JSON chunk.
    elapsed_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"
    metrics.record_completion(response.status_code, elapsed_ms)
    return response


async def drain_gate_middleware(request: Request, call_next):
    coordinator = request.app.state.coordinator
    if not coordinator.request_started():
        return JSONResponse(
            status_code=503,
            content={"error": "Server is shutting down"},
            headers={"Connection": "close"},
        )
    try:
        return await call_next(request)
    finally:
        coordinator.request_finished()


async def error_boundary_middleware(request: Request, call_next):
    """Last line of defence: no exception leaves a single request."""
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=True)
        return internal_error_response(exc, request.app.state.settings.is_development)


def install_middleware(app: FastAPI) -> None:
    # Starlette wraps each newly added middleware around the previous ones,
    # so registration runs innermost to outermost.
    for middleware in (
        error_boundary_middleware,
        drain_gate_middleware,
        metrics_middleware,
        access_log_middleware,
        security_headers_middleware,
    ):
        app.middleware("http")(middleware)
