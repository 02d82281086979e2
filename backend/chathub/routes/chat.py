"""WebSocket transport adapter for the chat hub (``/ChatHub``)."""

from __future__ import annotations

import asyncio
import json
import logging
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ..config import settings
from ..deps import http_limiter, hub, registry
from ..errors import DuplicateConnectionError, RateLimitedError, RegistryFullError
from ..middleware import client_source_key
from ..registry import Connection, ConnectionHandle
from ..schemas import EVENT_CONNECTED, EVENT_SEND_MESSAGE, ErrorFrame, EventFrame, InvocationFrame

logger = logging.getLogger("chathub.ws")

router = APIRouter()


class _SocketWriter:
    """Serializes writes to one socket; other sockets are unaffected."""

    def __init__(self, ws: WebSocket) -> None:
        self._ws = ws
        self._lock = asyncio.Lock()

    async def send_event(self, event: str, *args) -> None:
        await self.send_frame(EventFrame(event=event, args=list(args)).model_dump())

    async def send_error(self, error: str, detail: str = "", retry_after=None) -> None:
        frame = ErrorFrame(error=error, detail=detail, retry_after=retry_after)
        await self.send_frame(frame.model_dump(exclude_none=True))

    async def send_frame(self, payload: dict) -> None:
        async with self._lock:
            await self._ws.send_json(payload)

    async def close(self, code: int) -> None:
        await self._ws.close(code=code)


@router.websocket("/ChatHub")
async def chat_ws(ws: WebSocket) -> None:
    source_key = client_source_key(ws.client)
    # Connects count against the same per-IP HTTP policy as any other request.
    if not http_limiter.try_acquire(source_key):
        logger.info("Rejecting connection from %s: rate limit exceeded", source_key)
        await ws.close(code=1008, reason="rate limit exceeded")
        return
    await ws.accept()
    writer = _SocketWriter(ws)
    connection = Connection(
        connection_id=uuid4().hex,
        send=writer.send_event,
        source_key=source_key,
        close=writer.close,
    )
    try:
        handle = registry.register(connection)
    except RegistryFullError:
        logger.warning("Rejecting connection from %s: registry full", connection.source_key)
        await ws.close(code=1013, reason="max connections reached")
        return
    except DuplicateConnectionError as exc:
        logger.error("%s", exc)
        await ws.close(code=1011)
        return

    logger.info("Client %s connected from %s", handle.connection_id, handle.source_key)
    try:
        await writer.send_event(EVENT_CONNECTED, handle.connection_id)
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                await writer.send_error("invalid_message", "binary frames are not supported")
                continue
            await _handle_frame(writer, handle, raw)
    except WebSocketDisconnect:
        pass
    finally:
        registry.unregister(handle)
        logger.info("Client %s disconnected", handle.connection_id)


async def _handle_frame(writer: _SocketWriter, handle: ConnectionHandle, raw: str) -> None:
    try:
        frame = InvocationFrame.model_validate(json.loads(raw))
        if frame.event != EVENT_SEND_MESSAGE:
            raise ValueError(f"unknown event {frame.event!r}")
        message = frame.to_inbound()
    except (json.JSONDecodeError, ValidationError, ValueError, RecursionError) as exc:
        await writer.send_error("invalid_message", str(exc))
        return

    if len(message.message) > settings.chat_max_message_chars:
        await writer.send_error(
            "invalid_message",
            f"message exceeds {settings.chat_max_message_chars} characters",
        )
        return

    try:
        delivered = await hub.handle_inbound(handle.source_key, message)
    except RateLimitedError as exc:
        await writer.send_error(
            "rate_limited",
            "Too many messages, try again later.",
            retry_after=exc.retry_after,
        )
        return
    logger.debug("Message from %s delivered to %d clients", handle.connection_id, delivered)
