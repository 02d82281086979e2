"""Registry of live chat connections.

The registry owns connection lifecycle state only; it never performs I/O.
``snapshot()`` hands out an immutable copy so callers can fan out sends while
other tasks register or unregister connections.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Awaitable, Callable, Dict, Optional, Tuple

from .errors import DuplicateConnectionError, RegistryFullError

# send(event_name, *args) pushes one named event to a single client.
SendFn = Callable[..., Awaitable[None]]
# close(code) terminates the underlying transport.
CloseFn = Callable[[int], Awaitable[None]]


@dataclass(frozen=True)
class Connection:
    connection_id: str
    send: SendFn = field(compare=False, repr=False)
    source_key: str = "unknown"
    created_at: float = field(default_factory=time.time)
    close: Optional[CloseFn] = field(default=None, compare=False, repr=False)


# Handles are the registered Connection records themselves.
ConnectionHandle = Connection


class ConnectionRegistry:
    def __init__(self, max_connections: Optional[int] = None) -> None:
        self._connections: Dict[str, Connection] = {}
        self._max_connections = max_connections
        self._lock = Lock()

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def register(self, connection: Connection) -> ConnectionHandle:
        with self._lock:
            if connection.connection_id in self._connections:
                raise DuplicateConnectionError(connection.connection_id)
            if self._max_connections is not None and len(self._connections) >= self._max_connections:
                raise RegistryFullError(self._max_connections)
            self._connections[connection.connection_id] = connection
        return connection

    def unregister(self, handle: ConnectionHandle) -> bool:
        """Remove ``handle``. Returns False if it was already gone."""
        with self._lock:
            current = self._connections.get(handle.connection_id)
            # A stale handle must not evict a newer connection reusing the id.
            if current is None or current is not handle:
                return False
            del self._connections[handle.connection_id]
            return True

    def contains(self, handle: ConnectionHandle) -> bool:
        with self._lock:
            return self._connections.get(handle.connection_id) is handle

    def get(self, connection_id: str) -> Optional[ConnectionHandle]:
        with self._lock:
            return self._connections.get(connection_id)

    def snapshot(self) -> Tuple[ConnectionHandle, ...]:
        with self._lock:
            return tuple(self._connections.values())

    def clear(self) -> int:
        with self._lock:
            count = len(self._connections)
            self._connections.clear()
            return count
