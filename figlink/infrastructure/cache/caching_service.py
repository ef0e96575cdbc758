"""Concrete implementation of the in-memory Caching Service.

Memoizes design API responses with two independent policies: a per-entry
TTL decides staleness, and ``last_accessed`` decides which entry is evicted
when the cache is full. Entries live only in process memory.
"""

import asyncio
import logging
import re
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

# Domain Layer Imports
from figlink.domain.interfaces.cache import CacheService
from figlink.domain.models.common import CacheKey, CacheStats

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 100
DEFAULT_TTL_SECONDS = 5 * 60  # 5 minutes
DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


@dataclass
class CacheEntry:
    """Internal representation of a cache entry."""
    value: Any
    timestamp: float      # Clock time the entry was stored
    ttl: float            # Seconds until the entry is stale
    access_count: int = 0
    last_accessed: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class CachingServiceImpl(CacheService):
    """Bounded TTL cache with least-recently-used eviction.

    Entries are kept in an ``OrderedDict`` ordered by ``last_accessed``:
    a hit moves the entry to the end, so the first entry is always the
    least recently used one.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_ITEMS,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the caching service.

        Args:
            max_size: Maximum number of entries held at once.
            default_ttl: TTL in seconds used when ``set`` gets none.
            clock: Monotonic time source (seconds).
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._stats: Dict[str, int] = {"hits": 0, "misses": 0, "sets": 0, "deletes": 0}
        logger.info(f"CachingService initialized (max_size={max_size}, default_ttl={default_ttl}s)")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def counters(self) -> Dict[str, int]:
        """Copy of the raw hit/miss/set/delete counters."""
        return dict(self._stats)

    def _evict_least_recently_used(self) -> None:
        """Removes the single entry with the oldest ``last_accessed``."""
        if not self._entries:
            return
        oldest_key, _ = self._entries.popitem(last=False)
        self._stats["deletes"] += 1
        logger.debug(f"Evicted least recently used cache entry: {oldest_key}")

    # --- CacheService Interface Implementation ---

    def get(self, key: CacheKey, default: Any = None) -> Any:
        """Returns the cached value, or ``default`` when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return default

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            self._stats["misses"] += 1
            logger.debug(f"Cache entry expired: {key}")
            return default

        entry.access_count += 1
        entry.last_accessed = now
        self._entries.move_to_end(key)
        self._stats["hits"] += 1
        return entry.value

    def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        """Stores a value, evicting the least recently used entry if full."""
        now = self._clock()
        effective_ttl = ttl if ttl is not None else self.default_ttl

        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            self._evict_least_recently_used()

        self._entries[key] = CacheEntry(
            value=value,
            timestamp=now,
            ttl=effective_ttl,
            access_count=0,
            last_accessed=now,
        )
        self._stats["sets"] += 1
        logger.debug(f"Stored cache entry: key={key}, ttl={effective_ttl}s")

    def delete(self, key: CacheKey) -> bool:
        if self._entries.pop(key, None) is None:
            return False
        self._stats["deletes"] += 1
        return True

    def invalidate(self, pattern: str) -> int:
        """Removes every entry whose key matches ``pattern`` (``re.search``)."""
        regex = re.compile(pattern)
        matching = [key for key in self._entries if regex.search(key)]
        for key in matching:
            del self._entries[key]
        self._stats["deletes"] += len(matching)
        if matching:
            logger.debug(f"Invalidated {len(matching)} cache entries matching {pattern!r}")
        return len(matching)

    def clear(self) -> None:
        removed = len(self._entries)
        self._entries.clear()
        self._stats["deletes"] += removed
        logger.info(f"Cleared cache ({removed} entries).")

    def cleanup(self) -> int:
        """Removes every expired entry, whether or not it was read."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        self._stats["deletes"] += len(expired)
        return len(expired)

    def get_stats(self) -> CacheStats:
        hits = self._stats["hits"]
        misses = self._stats["misses"]
        total = hits + misses
        return CacheStats(
            size=len(self._entries),
            max_size=self.max_size,
            hit_rate=hits / total if total > 0 else 0.0,
            miss_rate=misses / total if total > 0 else 0.0,
            total_hits=hits,
            total_misses=misses,
        )


class CacheSweeper:
    """Runs ``cache.cleanup()`` on a background asyncio task."""

    def __init__(self, cache: CacheService, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            removed = self.cache.cleanup()
            if removed:
                logger.info(f"Cache sweep removed {removed} expired entries.")
            else:
                logger.debug("Cache sweep found no expired entries.")

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="figlink-cache-sweeper")
        logger.info(f"Cache sweeper started (interval={self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cache sweeper stopped.")
