"""HTTP rate-limiting and security headers middleware."""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .rate_limit import FixedWindowRateLimiter

logger = logging.getLogger("chathub.http")

_RATE_LIMIT_EXEMPT = frozenset({"/api/health"})

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def client_source_key(client) -> str:
    """Rate-limit partition key for a Starlette ``request.client``/``websocket.client``."""
    host = getattr(client, "host", None) if client else None
    return host or "unknown"


def _add_security_headers(response):
    for header, value in _SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies one fixed-window limiter to every HTTP request, keyed by client IP."""

    def __init__(self, app, limiter: FixedWindowRateLimiter) -> None:
        super().__init__(app)
        self._limiter = limiter

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path not in _RATE_LIMIT_EXEMPT:
            source_key = client_source_key(request.client)
            if not self._limiter.try_acquire(source_key):
                retry_after = self._limiter.retry_after(source_key)
                logger.info("HTTP rate limit hit for %s on %s", source_key, path)
                return _add_security_headers(JSONResponse(
                    {"error": "rate limit exceeded"},
                    status_code=429,
                    headers={"Retry-After": str(max(retry_after, 1))},
                ))
        return _add_security_headers(await call_next(request))
