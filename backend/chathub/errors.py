"""Error types raised by the registry, limiter, and broadcast hub."""

from __future__ import annotations


class HubError(Exception):
    """Base class for chat hub failures."""


class DuplicateConnectionError(HubError):
    def __init__(self, connection_id: str) -> None:
        super().__init__(f"connection {connection_id!r} is already registered")
        self.connection_id = connection_id


class RegistryFullError(HubError):
    def __init__(self, capacity: int) -> None:
        super().__init__(f"registry is at capacity ({capacity} connections)")
        self.capacity = capacity


class RateLimitedError(HubError):
    """The sender exhausted its permits for the current window."""

    def __init__(self, source_key: str, retry_after: int) -> None:
        super().__init__(f"rate limit exceeded for {source_key!r}; retry after {retry_after}s")
        self.source_key = source_key
        self.retry_after = retry_after


class DeliveryFailure(HubError):
    """Sending to one connection failed. Contained by the hub, never surfaced."""

    def __init__(self, connection_id: str, reason: str) -> None:
        super().__init__(f"delivery to {connection_id!r} failed: {reason}")
        self.connection_id = connection_id
        self.reason = reason
