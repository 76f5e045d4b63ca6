"""In-memory TTL cache for platform guides."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable

import structlog

logger = structlog.get_logger()

DEFAULT_TTL = 600  # 10 minutes


class GuideCache:
    """Expire-then-refetch cache shared by all callers.

    The lock only guards the map; fetching happens outside of it.
    """

    def __init__(self, ttl: int = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Cached value, or None on a miss or after expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[key]
                logger.debug("guide_cache_expired", key=key)
                return None
        logger.debug("guide_cache_hit", key=key)
        return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def age(self, key: str) -> float | None:
        """Seconds since ``key`` was stored, or None when absent."""
        with self._lock:
            entry = self._entries.get(key)
        return None if entry is None else self._clock() - entry[0]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
