"""
HTTP middleware: request logging and security headers.

RequestLoggingMiddleware writes one line when a request arrives and one
when it completes (status and duration), tagged with a request id that is
echoed back in X-Request-ID. The duration is returned in X-Process-Time.
The same fields are attached as `extra` for structured log handlers.
"""

import logging
import time
import uuid
from typing import Optional, Set

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exclude_paths: Optional[Set[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or {"/health", "/favicon.ico"}

    async def dispatch(self, request: Request, call_next):
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        request.state.request_id = request_id
        start_time = time.perf_counter()
        should_log = request.url.path not in self.exclude_paths

        if should_log:
            logger.info(
                f"[{request_id}] {request.method} {request.url.path}"
                + (f"?{request.url.query}" if request.url.query else ""),
                extra={
                    "request_id": request_id,
                    "client_ip": _client_ip(request),
                    "method": request.method,
                    "path": request.url.path,
                },
            )

        response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed_ms}ms"

        if should_log:
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} in {elapsed_ms}ms",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "process_time_ms": elapsed_ms,
                },
            )

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


def register_middlewares(app: FastAPI) -> None:
    """Added last runs first: logging wraps the security headers."""
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
