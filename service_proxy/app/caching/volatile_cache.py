"""
Single-entry in-memory TTL cache for the proxied resource.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from shared.logging import get_logger


@dataclass
class CacheEntry:
    """The one value held by the cache."""

    key: str
    value: Any
    expires_at: float


class VolatileCache:
    """Process-local cache holding at most one live entry.

    Every entry shares the same TTL; setting a value resets its expiry to
    ``ttl_seconds`` from now. Expired entries are treated as absent and are
    dropped on the next access. Setting a different key replaces the current
    entry since capacity is one.
    """

    def __init__(self, ttl_seconds: float, clock: Optional[Callable[[], float]] = None):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.logger = get_logger("proxy.cache")
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._entry: Optional[CacheEntry] = None
        self._hits = 0
        self._misses = 0
        self._sets = 0

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for ``key`` if it has not expired. Caller holds the lock."""
        entry = self._entry
        if entry is None or entry.key != key:
            return None
        if self._clock() >= entry.expires_at:
            self._entry = None
            return None
        return entry

    def has(self, key: str) -> bool:
        """Check whether a live entry exists for ``key``."""
        with self._lock:
            return self._live_entry(key) is not None

    def get(self, key: str) -> Optional[Any]:
        """Get the cached value, or None when absent or expired."""
        entry = self.get_entry(key)
        return entry.value if entry else None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Get the live entry itself, so a cached ``None`` is distinguishable from a miss."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
            return entry

    def set(self, key: str, value: Any) -> float:
        """Store ``value`` under ``key`` and return its expiry time."""
        with self._lock:
            expires_at = self._clock() + self.ttl_seconds
            self._entry = CacheEntry(key=key, value=value, expires_at=expires_at)
            self._sets += 1
        self.logger.debug("Cached value", key=key, ttl=self.ttl_seconds)
        return expires_at

    def delete(self, key: str) -> bool:
        """Drop the entry for ``key``. Returns True when something was removed."""
        with self._lock:
            if self._entry is not None and self._entry.key == key:
                self._entry = None
                return True
            return False

    def expires_at(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._live_entry(key)
            return entry.expires_at if entry else None

    def stats(self) -> Dict[str, Any]:
        """Hit/miss counters and current occupancy."""
        with self._lock:
            entry = self._entry
            live = entry is not None and self._clock() < entry.expires_at
            return {
                "hits": self._hits,
                "misses": self._misses,
                "sets": self._sets,
                "entries": 1 if live else 0,
                "ttl_seconds": self.ttl_seconds,
            }
