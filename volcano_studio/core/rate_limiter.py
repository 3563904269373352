"""
Fixed-window rate limiting.

Counts requests per client key inside a fixed window. A key's window starts
on its first request and is replaced wholesale once it has elapsed, so up to
twice the limit can be admitted across a window boundary.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class RateBucket:
    """Request counter for one (feature, client) key."""
    key: str
    count: int
    reset_at: int


@dataclass(frozen=True)
class Admission:
    """Outcome of a single admission check."""
    allowed: bool
    remaining: int
    reset_at: int


class RateLimiter:
    """Shared fixed-window limiter.

    One instance is created at process start and handed to every caller that
    needs admission checks. Bucket updates are serialized by a lock, so
    concurrent requests against the same key never lose an increment.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or now_ms
        self._lock = threading.Lock()
        self._buckets: Dict[str, RateBucket] = {}

    def admit(self, key: str, window_ms: int, max_count: int) -> Admission:
        """Count one request against ``key`` and decide whether to allow it.

        Args:
            key: Composite of feature name and client identity
            window_ms: Window length in milliseconds
            max_count: Requests allowed per window

        Returns:
            Admission with the decision, remaining budget and window reset time
        """
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or now > bucket.reset_at:
                bucket = RateBucket(key=key, count=1, reset_at=now + window_ms)
                self._buckets[key] = bucket
                return Admission(True, max_count - 1, bucket.reset_at)

            if bucket.count >= max_count:
                return Admission(False, 0, bucket.reset_at)

            bucket.count += 1
            return Admission(True, max_count - bucket.count, bucket.reset_at)

    def bucket(self, key: str) -> Optional[RateBucket]:
        """Return a copy of the bucket for ``key``, if one exists."""
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                return None
            return RateBucket(bucket.key, bucket.count, bucket.reset_at)

    def purge_expired(self) -> int:
        """Drop buckets whose window has elapsed.

        Expired buckets are harmless (the next admit replaces them), so this
        only bounds memory for long-lived processes.

        Returns:
            Number of buckets removed
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, b in self._buckets.items() if now > b.reset_at]
            for key in expired:
                del self._buckets[key]
        return len(expired)
