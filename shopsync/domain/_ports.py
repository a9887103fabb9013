"""
Ports — the remote capabilities the core consumes.

Both ports return Result for explicit error handling; implementations
must not raise for expected failures (network, rejection, bad payload).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from kungfu import Result

from shopsync._types import ResourceId
from shopsync.domain._types import Product, Collection

# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FetchError:
    """Transient failure fetching a resource. Never user-facing."""

    message: str
    cause: Exception | None = None


class MutationErrorKind(Enum):
    """Kinds of mutation errors."""

    NETWORK = auto()  # Transport failed, no response
    REJECTED = auto()  # Server answered with a non-2xx status
    MALFORMED = auto()  # Response missing expected fields
    UNSUPPORTED = auto()  # Backend has no such operation


@dataclass(frozen=True, slots=True)
class MutationError:
    """
    Mutation failure.

    message is the best-effort human-readable text extracted from the
    server's error payload, or None when there is nothing to show.
    """

    kind: MutationErrorKind
    message: str | None = None
    status: int | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# ProductSource — Resource Fetch Capability
# ═══════════════════════════════════════════════════════════════════════════════


class ProductSource(Protocol):
    """
    Fetches a single product including its processing status.

    Example:
        class ProductApi:
            async def get_product(self, product_id: str) -> Result[Product | None, FetchError]:
                resp = await client.get(f"/products/{product_id}")
                if resp.status_code == 404:
                    return Ok(None)
                ...
    """

    async def get_product(
        self, product_id: ResourceId
    ) -> Result[Product | None, FetchError]:
        """Ok(None) means the product no longer exists."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# CollectionBackend — Mutation Submit Capability
# ═══════════════════════════════════════════════════════════════════════════════


class CollectionBackend(Protocol):
    """
    Server side of a cart or wishlist.

    Every mutation returns the authoritative post-mutation collection.
    """

    async def fetch(self) -> Result[Collection, MutationError]:
        ...

    async def add(
        self,
        product_id: ResourceId,
        variant_id: ResourceId,
        quantity: int | None,
    ) -> Result[Collection, MutationError]:
        ...

    async def remove(self, item_id: ResourceId) -> Result[Collection, MutationError]:
        ...

    async def update_quantity(
        self, item_id: ResourceId, quantity: int
    ) -> Result[Collection, MutationError]:
        ...

    async def clear(self) -> Result[Collection, MutationError]:
        ...


__all__ = (
    "FetchError",
    "MutationErrorKind",
    "MutationError",
    "ProductSource",
    "CollectionBackend",
)
