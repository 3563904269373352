"""
TTL-backed read-through cache.

Wraps a durable key-value store that records a write timestamp per key.
Expiry is judged on read; nothing is ever actively evicted.
"""

import threading
from typing import Callable, Dict, Optional

from .rate_limiter import now_ms
from volcano_studio.storage.models import CacheEntry


class MemoryCacheStore:
    """Process-local cache store.

    Implements the same ``read``/``write`` interface as
    ``volcano_studio.storage.repository.SqliteCacheStore``.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}

    def read(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def write(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry


class TTLCache:
    """Cache of serialized values with read-time expiry.

    ``get`` treats an entry older than the caller's TTL as absent even though
    it is still stored; ``set`` overwrites unconditionally (last write wins).
    """

    def __init__(self, store, clock: Optional[Callable[[], int]] = None):
        """Initialize the cache.

        Args:
            store: Object with ``read(key) -> Optional[CacheEntry]`` and
                ``write(entry)``
            clock: Epoch-millisecond clock, defaults to wall time
        """
        self.store = store
        self._clock = clock or now_ms

    def get(self, key: str, ttl_ms: int) -> Optional[str]:
        """Return the cached value for ``key`` unless missing or stale."""
        entry = self.store.read(key)
        if entry is None:
            return None
        if self._clock() - entry.written_at > ttl_ms:
            return None
        return entry.value

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` stamped with the current time."""
        self.store.write(CacheEntry(key=key, value=value, written_at=self._clock()))
