"""
Query cache — keyed results with stale marking.

Reads go through the cache; invalidation only marks entries stale so the
next read refetches. Keys are tuples and invalidation matches by prefix:
invalidating ("product",) hits ("product", "p-1") and ("product", "p-2").
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable

from kungfu import LazyCoroResult, Result, Ok, Error

from shopsync._types import QueryKey
from shopsync.cache._types import CacheEntry, CacheResult

logger = logging.getLogger(__name__)


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


# ═══════════════════════════════════════════════════════════════════════════════
# QueryCache — In-Memory LRU with Staleness
# ═══════════════════════════════════════════════════════════════════════════════


class QueryCache:
    """
    In-memory LRU query cache.

    Example:
        cache = QueryCache(max_size=256)

        result = await cache.get(("product", pid), lambda: fetch_product(pid))
        await cache.invalidate(("product", pid))   # next get refetches
    """

    def __init__(self, max_size: int = 256) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._max_size = max_size
        self._entries: OrderedDict[QueryKey, CacheEntry[object]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def peek(self, key: QueryKey) -> object | None:
        """Cached value (stale or not), without fetching."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: QueryKey, value: object) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self._max_size:
            oldest, _ = self._entries.popitem(last=False)
            logger.debug("evicted %r", oldest)
        self._entries[key] = CacheEntry(value)

    def get[T, E](
        self,
        key: QueryKey,
        fetch: Callable[[], LazyCoroResult[T, E]],
    ) -> LazyCoroResult[CacheResult[T], E]:
        """
        Read-through get.

        Fresh entry → hit. Missing or stale → fetch; Ok values are stored,
        errors are not cached.
        """
        entries = self._entries

        async def execute() -> Result[CacheResult[T], E]:
            entry = entries.get(key)
            if entry is not None and not entry.stale:
                entries.move_to_end(key)
                return Ok(CacheResult(value=entry.value, hit=True))  # type: ignore[arg-type]

            result = await fetch()
            match result:
                case Ok(value):
                    self.set(key, value)
                    return Ok(CacheResult(value=value, hit=False))
                case Error(e):
                    return Error(e)

        return LazyCoroResult(execute)

    async def invalidate(self, prefix: QueryKey) -> int:
        """Mark every entry under prefix stale. Returns count."""
        count = 0
        for key, entry in self._entries.items():
            if _matches(key, prefix):
                entry.stale = True
                count += 1
        logger.debug("invalidated %d entries under %r", count, prefix)
        return count

    async def remove(self, prefix: QueryKey) -> int:
        """Drop every entry under prefix. Returns count."""
        doomed = [k for k in self._entries if _matches(k, prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)


__all__ = ("QueryCache",)
