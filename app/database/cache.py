"""
Per-collection read cache for the JSON storage layer

Each collection file is parsed once and kept for `ttl_seconds`; writes
replace the entry directly so readers never see a stale collection.
"""
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    """
    Thread-safe in-memory cache with TTL (Time To Live)

    Uses a monotonic clock, so wall-clock changes do not expire entries early.
    """
    def __init__(self, ttl_seconds: int = 60):
        self.ttl = ttl_seconds
        self._entries: Dict[str, _Entry] = {}
        self._lock = Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when absent or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if time.monotonic() >= entry.expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return entry.value

    def set(self, key: str, value: Any):
        with self._lock:
            self._entries[key] = _Entry(value, time.monotonic() + self.ttl)

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Return the cached value, calling `loader` and caching its result on a miss
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value)
        logger.debug("Cache miss for %s, loaded from disk", key)
        return value

    def invalidate(self, key: str):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()
