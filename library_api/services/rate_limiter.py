"""
Rate Limiting Service

Per-client rate limiting with slowapi.

Rate Limit Tiers:
=================
- Reads: settings.rate_limit_default (100/minute)
- Writes (create, update, delete, borrow, return): settings.rate_limit_write (30/minute)

Counters live in process memory; the catalog runs as a single process.
Set RATE_LIMIT_ENABLED=false to switch limiting off (tests do).
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from library_api.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Checked in order; the first hop of the first header present wins
PROXY_HEADERS = ("X-Forwarded-For", "X-Real-IP")


def client_key(request: Request) -> str:
    """Counter key for a request: the originating client address."""
    for header in PROXY_HEADERS:
        first_hop = request.headers.get(header, "").split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


def build_limiter(enabled: bool | None = None) -> Limiter:
    """Limiter with in-memory fixed-window counters keyed by client_key."""
    if enabled is None:
        enabled = settings.rate_limit_enabled
    logger.info(
        f"Rate limiting {'on' if enabled else 'off'} "
        f"(reads {settings.rate_limit_default}, writes {settings.rate_limit_write})"
    )
    return Limiter(
        key_func=client_key,
        default_limits=[settings.rate_limit_default],
        storage_uri="memory://",
        strategy="fixed-window",
        enabled=enabled,
    )


limiter = build_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    429 in the same body shape as the domain errors.

    Retry-After is the length of the exceeded window, the longest a
    client can have to wait.
    """
    window_seconds = exc.limit.limit.get_expiry()
    logger.warning(f"Rate limit {exc.detail} exceeded by {client_key(request)} on {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "detail": f"Too many requests ({exc.detail}). Please slow down.",
        },
        headers={
            "Retry-After": str(window_seconds),
            "X-RateLimit-Limit": str(exc.detail),
        },
    )
