"""Broadcast hub: admits, sanitizes, and fans out chat messages."""

from __future__ import annotations

import asyncio
import html
import logging

from .errors import DeliveryFailure, RateLimitedError
from .rate_limit import FixedWindowRateLimiter
from .registry import ConnectionHandle, ConnectionRegistry
from .schemas import EVENT_RECEIVE_MESSAGE, InboundMessage, OutboundMessage

logger = logging.getLogger("chathub.hub")


def sanitize(text: str) -> str:
    """HTML-escape ``text`` (``<``, ``>``, ``&`` and both quote characters)."""
    return html.escape(text, quote=True)


class BroadcastHub:
    def __init__(
        self,
        registry: ConnectionRegistry,
        limiter: FixedWindowRateLimiter,
        prefix: str,
        send_timeout_s: float = 2.0,
    ) -> None:
        self._registry = registry
        self._limiter = limiter
        self._prefix = prefix
        self._send_timeout_s = send_timeout_s

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def limiter(self) -> FixedWindowRateLimiter:
        return self._limiter

    def build_outbound(self, message: InboundMessage) -> OutboundMessage:
        return OutboundMessage(
            prefix=self._prefix,
            user=message.user,
            message=sanitize(message.message),
            date_time=message.date_time,
        )

    async def handle_inbound(self, source_key: str, message: InboundMessage) -> int:
        """Admit, sanitize and broadcast one message. Returns successful deliveries.

        Raises RateLimitedError when ``source_key`` has no permits left; nothing
        is broadcast in that case. Per-connection failures are absorbed.
        """
        if not self._limiter.try_acquire(source_key):
            retry_after = self._limiter.retry_after(source_key)
            logger.info("Rate limited message from %s (retry after %ss)", source_key, retry_after)
            raise RateLimitedError(source_key, retry_after)

        outbound = self.build_outbound(message)
        targets = self._registry.snapshot()
        if not targets:
            return 0
        results = await asyncio.gather(*[self._deliver(handle, outbound) for handle in targets])
        return sum(results)

    async def _deliver(self, handle: ConnectionHandle, outbound: OutboundMessage) -> int:
        # Skip connections removed after the snapshot was taken.
        if not self._registry.contains(handle):
            return 0
        try:
            await asyncio.wait_for(
                handle.send(EVENT_RECEIVE_MESSAGE, *outbound.as_args()),
                timeout=self._send_timeout_s,
            )
        except asyncio.TimeoutError:
            failure = DeliveryFailure(handle.connection_id, "send timed out")
        except Exception as exc:
            failure = DeliveryFailure(handle.connection_id, str(exc) or type(exc).__name__)
        else:
            return 1
        logger.warning("%s; unregistering", failure)
        self._registry.unregister(handle)
        await self._close_quietly(handle, code=1011)
        return 0

    async def _close_quietly(self, handle: ConnectionHandle, code: int) -> None:
        if handle.close is None:
            return
        try:
            await asyncio.wait_for(handle.close(code), timeout=self._send_timeout_s)
        except Exception as exc:
            logger.debug("Close failed for %s: %s", handle.connection_id, exc)

    async def disconnect_all(self, code: int = 1001) -> int:
        """Close and unregister every live connection."""
        handles = self._registry.snapshot()
        for handle in handles:
            self._registry.unregister(handle)
            await self._close_quietly(handle, code=code)
        return len(handles)
