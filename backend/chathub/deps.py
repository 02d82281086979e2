"""Process-wide component instances shared by the app and route modules."""

from __future__ import annotations

from .config import settings
from .hub import BroadcastHub
from .rate_limit import FixedWindowRateLimiter
from .registry import ConnectionRegistry
from .runtime_logs import RuntimeLogStore


registry = ConnectionRegistry(max_connections=settings.ws_max_connections)
message_limiter = FixedWindowRateLimiter(
    permit_limit=settings.rate_limit_permits,
    window_seconds=settings.rate_limit_window_s,
    max_buckets=settings.rate_limit_max_buckets,
)
http_limiter = FixedWindowRateLimiter(
    permit_limit=settings.rate_limit_permits,
    window_seconds=settings.rate_limit_window_s,
    max_buckets=settings.rate_limit_max_buckets,
)
hub = BroadcastHub(
    registry,
    message_limiter,
    prefix=settings.chat_message_prefix,
    send_timeout_s=settings.ws_send_timeout_s,
)
runtime_logs = RuntimeLogStore(max_entries=settings.runtime_log_max_entries)
