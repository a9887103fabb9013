"""
Invalidation sinks — binding the query cache to resource keys.
"""

from __future__ import annotations

from collections.abc import Callable

from combinators import lift as L

from shopsync._types import Lazy, QueryKey, ResourceId
from shopsync.cache._types import InvalidationSink, CacheError, CacheErrorKind
from shopsync.cache._query import QueryCache

# ═══════════════════════════════════════════════════════════════════════════════
# Default Keys
# ═══════════════════════════════════════════════════════════════════════════════

PRODUCTS_KEY: QueryKey = ("products",)


def product_key(product_id: ResourceId) -> QueryKey:
    return ("product", product_id)


# ═══════════════════════════════════════════════════════════════════════════════
# ResourceInvalidation — QueryCache as InvalidationSink
# ═══════════════════════════════════════════════════════════════════════════════


class ResourceInvalidation:
    """
    InvalidationSink over a QueryCache.

    Example:
        sink = ResourceInvalidation(cache)
        await sink.invalidate_collection()      # ("products",)
        await sink.invalidate_item("p-1")       # ("product", "p-1")
    """

    def __init__(
        self,
        cache: QueryCache,
        collection_key: QueryKey = PRODUCTS_KEY,
        item_key: Callable[[ResourceId], QueryKey] = product_key,
    ) -> None:
        self._cache = cache
        self._collection_key = collection_key
        self._item_key = item_key

    async def invalidate_collection(self) -> None:
        await self._cache.invalidate(self._collection_key)

    async def invalidate_item(self, resource_id: ResourceId) -> None:
        await self._cache.invalidate(self._item_key(resource_id))


# ═══════════════════════════════════════════════════════════════════════════════
# invalidate_resource() — Both Levels, As One Lazy Op
# ═══════════════════════════════════════════════════════════════════════════════


def invalidate_resource(
    sink: InvalidationSink,
    resource_id: ResourceId,
) -> Lazy[None, CacheError]:
    """
    Invalidate list then detail entry for a resource.

    Example:
        result = await invalidate_resource(sink, "p-1")
    """

    async def do_invalidate() -> None:
        await sink.invalidate_collection()
        await sink.invalidate_item(resource_id)

    return L.catching_async(
        do_invalidate,
        on_error=lambda e: CacheError(CacheErrorKind.INVALIDATION, str(e)),
    )


__all__ = (
    "PRODUCTS_KEY",
    "product_key",
    "ResourceInvalidation",
    "invalidate_resource",
)
