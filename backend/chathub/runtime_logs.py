"""Bounded in-memory capture of recent log records, served by /api/runtime-logs."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Optional


class RuntimeLogStore:
    def __init__(self, max_entries: int = 1000):
        self._entries = deque(maxlen=max(1, int(max_entries)))
        self._lock = Lock()

    def record(self, record: logging.LogRecord) -> None:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "levelno": record.levelno,
            "logger": record.name,
            "message": record.getMessage(),
        }
        with self._lock:
            self._entries.append(entry)

    def list_entries(
        self,
        *,
        limit: int = 200,
        level: Optional[str] = None,
        contains: Optional[str] = None,
    ) -> list[dict]:
        """Newest ``limit`` entries at or above ``level`` whose message or logger contains ``contains``."""
        min_level = logging.getLevelName((level or "").strip().upper()) if level else logging.NOTSET
        if not isinstance(min_level, int):
            min_level = logging.NOTSET
        needle = (contains or "").strip().lower()
        with self._lock:
            items = list(self._entries)
        items = [
            item
            for item in items
            if item["levelno"] >= min_level
            and (not needle or needle in item["message"].lower() or needle in item["logger"].lower())
        ]
        return items[-max(1, min(int(limit), 2000)):]

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def count(self) -> int:
        with self._lock:
            return len(self._entries)


class RuntimeLogHandler(logging.Handler):
    def __init__(self, store: RuntimeLogStore):
        super().__init__()
        self._store = store

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._store.record(record)
        except Exception:
            self.handleError(record)
