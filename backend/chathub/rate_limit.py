"""Fixed-window rate limiter partitioned by source key (client IP)."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Dict, Optional

logger = logging.getLogger("chathub.rate_limit")


@dataclass
class RateLimitBucket:
    source_key: str
    remaining: int
    window_start: float
    lock: Lock = field(default_factory=Lock, repr=False)
    evicted: bool = False


class FixedWindowRateLimiter:
    """Per-key fixed-window permit counter.

    The bucket map is guarded by a short-lived map lock; the decrement/reset
    sequence runs under the bucket's own lock, so callers with different keys
    never wait on each other.
    """

    def __init__(
        self,
        permit_limit: int = 10,
        window_seconds: float = 60.0,
        max_buckets: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if permit_limit < 1:
            raise ValueError("permit_limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._permit_limit = int(permit_limit)
        self._window = float(window_seconds)
        self._max_buckets = max(1, int(max_buckets))
        self._clock = clock
        self._buckets: Dict[str, RateLimitBucket] = {}
        self._map_lock = Lock()
        self._last_sweep: Optional[float] = None

    @property
    def permit_limit(self) -> int:
        return self._permit_limit

    @property
    def window_seconds(self) -> float:
        return self._window

    @property
    def tracked_sources(self) -> int:
        with self._map_lock:
            return len(self._buckets)

    def try_acquire(self, source_key: str) -> bool:
        while True:
            bucket = self._bucket_for(source_key)
            with bucket.lock:
                if bucket.evicted:
                    continue
                now = self._clock()
                if now - bucket.window_start >= self._window:
                    bucket.remaining = self._permit_limit
                    bucket.window_start = now
                if bucket.remaining > 0:
                    bucket.remaining -= 1
                    return True
                return False

    def retry_after(self, source_key: str) -> int:
        """Whole seconds until ``source_key`` gets a fresh window (0 if unknown)."""
        with self._map_lock:
            bucket = self._buckets.get(source_key)
        if bucket is None:
            return 0
        with bucket.lock:
            remaining_s = bucket.window_start + self._window - self._clock()
        return max(1, math.ceil(remaining_s)) if remaining_s > 0 else 0

    def sweep(self) -> int:
        """Evict buckets whose window has elapsed. Returns the number evicted."""
        now = self._clock()
        evicted = 0
        with self._map_lock:
            self._last_sweep = now
            for key, bucket in list(self._buckets.items()):
                if not bucket.lock.acquire(blocking=False):
                    continue
                try:
                    if now - bucket.window_start >= self._window:
                        bucket.evicted = True
                        del self._buckets[key]
                        evicted += 1
                finally:
                    bucket.lock.release()
        if evicted:
            logger.debug("Evicted %d idle rate-limit buckets", evicted)
        return evicted

    def reset(self) -> None:
        with self._map_lock:
            for bucket in self._buckets.values():
                bucket.evicted = True
            self._buckets.clear()
            self._last_sweep = None

    def _bucket_for(self, source_key: str) -> RateLimitBucket:
        with self._map_lock:
            bucket = self._buckets.get(source_key)
            if bucket is not None:
                return bucket
            # At most one full sweep per window while the map stays over capacity.
            needs_sweep = len(self._buckets) >= self._max_buckets and (
                self._last_sweep is None or self._clock() - self._last_sweep >= self._window
            )
        if needs_sweep:
            self.sweep()
        with self._map_lock:
            bucket = self._buckets.get(source_key)
            if bucket is None:
                bucket = RateLimitBucket(
                    source_key=source_key,
                    remaining=self._permit_limit,
                    window_start=self._clock(),
                )
                self._buckets[source_key] = bucket
            return bucket

    def snapshot(self, source_key: str) -> Optional[dict]:
        with self._map_lock:
            bucket = self._buckets.get(source_key)
        if bucket is None:
            return None
        with bucket.lock:
            return {
                "source_key": bucket.source_key,
                "remaining": bucket.remaining,
                "window_start": bucket.window_start,
            }
