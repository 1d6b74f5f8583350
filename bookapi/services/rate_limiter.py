"""
Rate Limiting Service

Per-client request limits with slowapi.

Rate Limit Tiers:
- Reads (list, detail, search, category, low-stock): RATE_LIMIT_DEFAULT
- Writes (create, update, delete): RATE_LIMIT_WRITE

Counters live in RATE_LIMIT_STORAGE_URI (memory:// by default, a redis://
URL when several API instances share limits). RATE_LIMIT_ENABLED=false
turns every limit into a no-op, which the test suite relies on.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from bookapi.config import get_settings
from bookapi.errors import problem_response

logger = logging.getLogger(__name__)
settings = get_settings()

RETRY_AFTER_SECONDS = 60


def get_client_ip(request: Request) -> str:
    """
    Client address used as the rate-limit key.

    Honors X-Forwarded-For (first hop) and X-Real-IP from a reverse proxy,
    falling back to the socket peer address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=settings.rate_limit_storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"default: {settings.rate_limit_default}, write: {settings.rate_limit_write}"
    )

    return limiter


limiter = create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 as a problem body with Retry-After."""
    limit_detail = str(exc.detail)
    logger.warning(f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}")

    return problem_response(
        request,
        429,
        "Too Many Requests",
        f"Rate limit exceeded: {limit_detail}",
        headers={
            "Retry-After": str(RETRY_AFTER_SECONDS),
            "X-RateLimit-Limit": limit_detail,
        },
    )
