"""
Cache types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from shopsync._types import ResourceId

# ═══════════════════════════════════════════════════════════════════════════════
# InvalidationSink Protocol — What Pollers Talk To
# ═══════════════════════════════════════════════════════════════════════════════


class InvalidationSink(Protocol):
    """
    Marks cached resource queries stale.

    Implement this to plug in any query cache.

    Example:
        class RecordingSink:
            def __init__(self) -> None:
                self.calls: list[tuple[str, str | None]] = []

            async def invalidate_collection(self) -> None:
                self.calls.append(("collection", None))

            async def invalidate_item(self, resource_id: str) -> None:
                self.calls.append(("item", resource_id))
    """

    async def invalidate_collection(self) -> None:
        """Mark the resource-list query stale."""
        ...

    async def invalidate_item(self, resource_id: ResourceId) -> None:
        """Mark the resource-detail query stale."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Entries & Results
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class CacheEntry[T]:
    """Stored value. stale entries are refetched on the next read."""

    value: T
    stale: bool = False


@dataclass(frozen=True, slots=True)
class CacheResult[T]:
    """Cache read result with metadata."""

    value: T
    hit: bool


class CacheErrorKind(Enum):
    """Cache error kinds."""

    INVALIDATION = auto()


@dataclass(frozen=True, slots=True)
class CacheError:
    """Cache operation error."""

    kind: CacheErrorKind
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "InvalidationSink",
    "CacheEntry",
    "CacheResult",
    "CacheError",
    "CacheErrorKind",
)
