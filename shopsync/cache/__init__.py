"""
Cache — query results with invalidation.

    from shopsync import cache as C

    query_cache = C.QueryCache(max_size=256)
    sink = C.ResourceInvalidation(query_cache)
    result = await query_cache.get(C.product_key(pid), lambda: fetch(pid))
"""

from __future__ import annotations

from shopsync.cache._types import (
    InvalidationSink,
    CacheEntry,
    CacheResult,
    CacheError,
    CacheErrorKind,
)
from shopsync.cache._query import QueryCache
from shopsync.cache._sink import (
    PRODUCTS_KEY,
    product_key,
    ResourceInvalidation,
    invalidate_resource,
)

__all__ = (
    "InvalidationSink",
    "CacheEntry",
    "CacheResult",
    "CacheError",
    "CacheErrorKind",
    "QueryCache",
    "PRODUCTS_KEY",
    "product_key",
    "ResourceInvalidation",
    "invalidate_resource",
)
