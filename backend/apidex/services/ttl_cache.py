"""
Apidex Backend — In-Memory TTL Cache
=====================================

What:  Key-value memoization store whose entries expire after a time-to-live.
Why:   Some handlers compute results that are expensive and change slowly;
       recomputing them on every request wastes CPU.
How:   A dict of CacheEntry objects guarded by one lock. Expiry is checked on
       read: an expired entry is removed and reported as a miss.
Who:   Created once by the application factory and injected into every
       endpoint module through ModuleContext.cache.

Eviction Strategy: lazy, read-driven
    There is no background sweeper. An entry lingers in memory until the next
    get/contains/set touching its key, a live_count() sweep, or clear().
    The cache is meant for a small, bounded set of expensive-computation
    keys, not as a general memory-bounded cache.

Thread Safety:
    FastAPI runs sync handlers on a thread pool, so get/set/invalidate may run
    concurrently. Each public operation is a single critical section under
    one threading.Lock. Entries are independent; no cross-key locking exists.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# Five minutes
DEFAULT_TTL_MS = 300_000


def monotonic_ms() -> float:
    """Milliseconds from a clock that never goes backwards."""
    return time.monotonic() * 1000.0


@dataclass
class CacheEntry:
    """One memoized value and the moment it was stored."""

    key: str
    value: Any
    stored_at: float
    ttl_ms: int

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_ms

    def is_expired(self, now: float) -> bool:
        # Logically absent once now >= stored_at + ttl
        return now >= self.expires_at


class TTLCache:
    """
    Thread-safe TTL cache with lazy expiry.

    Args:
        default_ttl_ms: TTL used when set() gets None or 0
        clock:          Callable returning the current time in milliseconds;
                        injectable so tests can advance time deterministically

    Usage:
        cache = TTLCache()
        report = cache.get("report")
        if report is None:
            report = build_report()
            cache.set("report", report, ttl_ms=60_000)
    """

    def __init__(
        self,
        default_ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], float] = monotonic_ms,
    ):
        if default_ttl_ms <= 0:
            raise ValueError(f"default_ttl_ms must be positive, got {default_ttl_ms}")
        self.default_ttl_ms = default_ttl_ms
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the stored value, or `default` when missing or expired.

        An expired entry is removed here, so a later get() cannot resurrect it.
        A miss is a normal outcome, never an error.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key)
                return default
            return entry.value

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        """
        Store `value` under `key`, replacing any existing entry.

        Args:
            ttl_ms: Lifetime in milliseconds. None or 0 uses default_ttl_ms.

        Raises:
            ValueError: if ttl_ms is negative.
        """
        if ttl_ms is not None and ttl_ms < 0:
            raise ValueError(f"ttl_ms must be non-negative, got {ttl_ms}")
        effective_ttl = ttl_ms or self.default_ttl_ms
        with self._lock:
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                stored_at=self._clock(),
                ttl_ms=effective_ttl,
            )

    def invalidate(self, key: str) -> bool:
        """Remove `key` explicitly. Returns True if an entry was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def get_or_set(
        self,
        key: str,
        compute: Callable[[], Any],
        ttl_ms: Optional[int] = None,
    ) -> Any:
        """
        Return the cached value for `key`, computing and storing it on a miss.

        compute() runs outside the lock. Two concurrent misses on the same key
        may both compute; the later set() wins.
        """
        sentinel = object()
        value = self.get(key, sentinel)
        if value is not sentinel:
            return value
        value = compute()
        self.set(key, value, ttl_ms)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def live_count(self) -> int:
        """Number of unexpired entries. Expired ones are evicted on the way."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return len(self._entries)

    def __len__(self) -> int:
        # Physical count: expired entries not yet read still occupy a slot
        with self._lock:
            return len(self._entries)
