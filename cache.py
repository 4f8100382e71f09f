"""In-process memoizing cache with per-entry absolute expiry and priority.

One instance is created per application and shared by every request. There
is no coordination between requests populating the same key: the worst case
is a redundant fetch and the last writer wins.
"""
import enum
import threading
import time
from collections import OrderedDict
from datetime import timedelta
from typing import Any, Hashable, NamedTuple, Optional, Union

_MISSING = object()


class CachePriority(enum.IntEnum):
    LOW = 0
    NORMAL = 1
    HIGH = 2


class CacheEntry(NamedTuple):
    value: Any
    expires_at: float
    priority: CachePriority


class MemoryCache:
    def __init__(self, max_entries: Optional[int] = None, clock=time.monotonic):
        self._entries: 'OrderedDict[Hashable, CacheEntry]' = OrderedDict()
        self._lock = threading.Lock()
        self._clock = clock
        self.max_entries = max_entries

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the live value for ``key`` or ``default``; expired entries are dropped."""
        with self._lock:
            entry = self._entries.get(key, _MISSING)
            if entry is _MISSING:
                return default
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return default
            return entry.value

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(
        self,
        key: Hashable,
        value: Any,
        ttl: Union[timedelta, float],
        priority: CachePriority = CachePriority.NORMAL,
    ) -> Any:
        if isinstance(ttl, timedelta):
            ttl = ttl.total_seconds()
        with self._lock:
            self._entries[key] = CacheEntry(value, self._clock() + ttl, priority)
            self._entries.move_to_end(key)
            if self.max_entries is not None and len(self._entries) > self.max_entries:
                self._compact()
        return value

    def remove(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _compact(self) -> None:
        # Caller holds the lock. Expired entries go first, then the lowest
        # priority, oldest-inserted entries until we are back under the limit.
        now = self._clock()
        for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
            del self._entries[key]

        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return
        victims = sorted(
            enumerate(self._entries.items()),
            key=lambda item: (item[1][1].priority, item[0]),
        )[:overflow]
        for _, (key, _entry) in victims:
            del self._entries[key]
