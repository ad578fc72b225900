"""In-process TTL cache with least-recently-used eviction."""

from collections import OrderedDict
from dataclasses import dataclass
import threading
import time
from typing import Any, Callable


@dataclass
class CacheEntry:
    value: Any
    expires_at: float
    last_accessed: float


class BoundedCache:
    """Key/value store with per-entry expiry and a hard entry ceiling.

    Expired entries are swept at most once per ``cleanup_interval_s``, on the
    next ``get`` or ``set``. When the cache is full, ``set`` of a new key evicts
    exactly one entry: the least recently accessed one.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        cleanup_interval_s: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.cleanup_interval_s = cleanup_interval_s
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < self.cleanup_interval_s:
            return
        self._last_cleanup = now
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]

    def get(self, key: str) -> Any | None:
        with self._lock:
            now = self._clock()
            self._cleanup(now)
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            entry.last_accessed = now
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: Any, ttl_s: float) -> None:
        with self._lock:
            now = self._clock()
            self._cleanup(now)
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
            self._entries[key] = CacheEntry(value=value, expires_at=now + ttl_s, last_accessed=now)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and self._clock() < entry.expires_at
