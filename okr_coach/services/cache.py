"""
Bounded read-through cache with LRU eviction and per-entry expiry.

Instances are created explicitly and injected where needed; there is no
module-level cache. Operations are synchronous and never await, so under
asyncio each get/set runs to completion without interleaving.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, Optional, Tuple, TypeVar

import structlog

log = structlog.get_logger(__name__)

V = TypeVar("V")


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    size: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class TTLCache(Generic[V]):
    """LRU cache whose entries also expire after `ttl_seconds`."""

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: "OrderedDict[Hashable, Tuple[float, V]]" = OrderedDict()
        self._stats = CacheStats()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry[0] > self._clock()

    def get(self, key: Hashable, default: Optional[V] = None) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            return default

        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            self._stats.expirations += 1
            self._stats.misses += 1
            return default

        self._entries.move_to_end(key)
        self._stats.hits += 1
        return value

    def set(self, key: Hashable, value: V, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = (self._clock() + ttl, value)

        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            self._stats.evictions += 1
            log.debug("cache_evicted", cache=self.name, key=str(evicted))

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        """Return the cached value for `key`, computing and storing it on a miss."""
        value = self.get(key)
        if value is None:
            value = compute()
            self.set(key, value)
        return value

    def delete(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop expired entries eagerly. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._stats.expirations += len(expired)
        return len(expired)

    def stats(self) -> CacheStats:
        self._stats.size = len(self._entries)
        return CacheStats(**vars(self._stats))

    def describe(self) -> dict[str, Any]:
        stats = self.stats()
        return {
            "name": self.name,
            "size": stats.size,
            "max_size": self.max_size,
            "hits": stats.hits,
            "misses": stats.misses,
            "evictions": stats.evictions,
            "hit_rate": round(stats.hit_rate, 3),
        }
