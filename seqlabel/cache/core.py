"""
Bounded in-memory caches used by the decoders.

The beam search evaluates the same feature context many times when several
partial sequences share their recent history; ``LRUCache`` memoizes those
outcome distributions. One cache may be shared by decoders running on
different threads.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheStats:
    """Hit, miss and eviction counters."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class LRUCache(Generic[K, V]):
    """Least-recently-used cache of at most ``maxsize`` entries.

    Args:
        maxsize: Capacity; must be positive
    """

    def __init__(self, maxsize: int = 128):
        if maxsize < 1:
            raise ValueError(f"maxsize must be positive: {maxsize}")
        self.maxsize = maxsize
        self.stats = CacheStats()
        self._entries: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.RLock()

    def get(self, key: K) -> Optional[V]:
        """Value stored for ``key`` (None on a miss); marks it recently used."""
        with self._lock:
            try:
                self._entries.move_to_end(key)
            except KeyError:
                self.stats.misses += 1
                return None
            self.stats.hits += 1
            return self._entries[key]

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)
                self.stats.evictions += 1

    def get_or_set(self, key: K, factory: Callable[[], V]) -> V:
        """Cached value for ``key``, computing and storing it on a miss."""
        with self._lock:
            value = self.get(key)
            if value is None:
                value = factory()
                self.set(key, value)
            return value

    def clear(self) -> None:
        """Drop every entry; the counters are kept."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


__all__ = ["CacheStats", "LRUCache"]
