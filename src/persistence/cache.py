"""
In-Memory TTL Cache

Bounded, time-expiring cache used for NLP results. Entries expire after a
fixed TTL and the cache is pruned oldest-first once it grows past its
size limit. Safe to share between threads and coroutines.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Cache entry with metadata."""
    key: str
    value: V
    inserted_at: float
    hit_count: int = 0

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        """Check if entry has expired."""
        return now - self.inserted_at >= ttl_seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "inserted_at": self.inserted_at,
            "hit_count": self.hit_count,
        }


class TTLCache(Generic[V]):
    """
    Thread-safe TTL cache with oldest-first size pruning.

    Usage:
        cache = TTLCache(ttl_seconds=3600, max_entries=50)
        cache.set("key", value)
        cache.get("key")  # value, until the TTL passes
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_entries: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Lifetime of an entry
            max_entries: Entry count above which the oldest entries are evicted
            clock: Time source in seconds (injectable for tests)
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._lock = threading.Lock()

        # Stats
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[V]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            The stored object itself, or None if missing or expired
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._clock(), self.ttl_seconds):
                del self._entries[key]
                self._misses += 1
                return None

            entry.hit_count += 1
            self._hits += 1
            return entry.value

    def set(self, key: str, value: V):
        """
        Store a value, then prune if the cache is over its limit.

        Re-setting an existing key refreshes its insertion time and moves
        it to the newest position.
        """
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())
            self._prune_locked()

    def prune(self) -> int:
        """
        Drop expired entries, then the oldest entries beyond max_entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            return self._prune_locked()

    def _prune_locked(self) -> int:
        removed = 0
        now = self._clock()

        for key in [k for k, e in self._entries.items() if e.is_expired(now, self.ttl_seconds)]:
            del self._entries[key]
            removed += 1

        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            removed += 1

        if removed:
            self._evictions += removed
            logger.debug(f"Cache pruned {removed} entries ({len(self._entries)} remain)")
        return removed

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Live-entry check; hit and miss counters are left alone."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock(), self.ttl_seconds)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": round(self._hits / total, 3) if total else 0.0,
            }
