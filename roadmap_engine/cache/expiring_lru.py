"""Bounded key/value store with least-recently-used eviction and a fixed time-to-live."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Generic, Optional, TypeVar

V = TypeVar("V")


@dataclass
class _CacheEntry(Generic[V]):
    value: V
    stored_at: float
    size: int


@dataclass(frozen=True)
class CacheStats:
    size: int
    total_bytes: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class ExpiringLRUCache(Generic[V]):
    """Process-local memoization store.

    Entries expire ``ttl_seconds`` after they were written; reads never extend
    that deadline. Writes evict least-recently-used entries until both the item
    ceiling and the optional byte ceiling (measured with ``size_of``) hold.
    """

    def __init__(
        self,
        *,
        max_items: int,
        ttl_seconds: float,
        max_bytes: Optional[int] = None,
        size_of: Optional[Callable[[V], int]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._max_items = max_items
        self._ttl = ttl_seconds
        self._max_bytes = max_bytes
        self._size_of = size_of or (lambda _value: 1)
        self._clock = clock
        self._entries: "OrderedDict[str, _CacheEntry[V]]" = OrderedDict()
        self._total_bytes = 0
        self._hits = 0
        self._misses = 0
        self._lock = Lock()

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._is_expired(entry, self._clock()):
                self._remove(key)
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(self, key: str, value: V) -> None:
        size = max(int(self._size_of(value)), 0)
        with self._lock:
            if key in self._entries:
                self._remove(key)
            if self._max_bytes is not None and size > self._max_bytes:
                # Values larger than the byte ceiling are never stored.
                return
            self._entries[key] = _CacheEntry(value=value, stored_at=self._clock(), size=size)
            self._total_bytes += size
            self._evict()

    def invalidate(self, key: str) -> None:
        with self._lock:
            if key in self._entries:
                self._remove(key)

    def prune(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in expired:
                self._remove(key)
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._total_bytes = 0

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                total_bytes=self._total_bytes,
                hits=self._hits,
                misses=self._misses,
            )

    def __len__(self) -> int:
        """Number of unexpired entries; expired ones still held are not counted."""
        with self._lock:
            now = self._clock()
            return sum(1 for entry in self._entries.values() if not self._is_expired(entry, now))

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and not self._is_expired(entry, self._clock())

    def _is_expired(self, entry: _CacheEntry[V], now: float) -> bool:
        return now - entry.stored_at >= self._ttl

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._total_bytes -= entry.size

    def _evict(self) -> None:
        while len(self._entries) > self._max_items or (
            self._max_bytes is not None and self._total_bytes > self._max_bytes
        ):
            oldest_key = next(iter(self._entries))
            self._remove(oldest_key)


__all__ = ["CacheStats", "ExpiringLRUCache"]
