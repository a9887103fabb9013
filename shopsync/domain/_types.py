"""
Domain types — products, line items, collections.

Only the fields the consistency core reads or writes are modelled.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from shopsync._types import ResourceId

# ═══════════════════════════════════════════════════════════════════════════════
# Processing Status — Owned by the Server
# ═══════════════════════════════════════════════════════════════════════════════


class ProcessingStatus(Enum):
    """
    Image-processing state attached to a product.

    Lifecycle:
        PENDING → COMPLETED
                → FAILED

    COMPLETED and FAILED are terminal and equivalent for invalidation.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ProcessingStatus.PENDING


# ═══════════════════════════════════════════════════════════════════════════════
# Product Domain
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Variant:
    id: ResourceId
    size: str
    color: str
    price: float
    stock: int = 0


@dataclass(frozen=True, slots=True)
class Product:
    """
    Product as returned by the detail endpoint.

    image_processing_status is None when the server has not reported one;
    that is never terminal.
    """

    id: ResourceId
    name: str
    image_urls: tuple[str, ...] = ()
    variants: tuple[Variant, ...] = ()
    image_processing_status: ProcessingStatus | None = None

    @property
    def processing_finished(self) -> bool:
        status = self.image_processing_status
        return status is not None and status.is_terminal

    def variant(self, variant_id: ResourceId) -> Variant | None:
        for v in self.variants:
            if v.id == variant_id:
                return v
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Collection Domain (cart / wishlist)
# ═══════════════════════════════════════════════════════════════════════════════

type ItemKey = tuple[ResourceId, ResourceId]
"""(product_id, variant_id) — identity of a line item independent of its id."""


class CollectionKind(Enum):
    CART = "cart"
    WISHLIST = "wishlist"


@dataclass(frozen=True, slots=True)
class LineItem:
    """
    Denormalized snapshot of product + variant at the time of the action.

    quantity is None for wishlist items.
    """

    id: ResourceId
    product_id: ResourceId
    variant_id: ResourceId
    name: str
    image: str
    price: float
    size: str
    color: str
    quantity: int | None = None

    @property
    def key(self) -> ItemKey:
        return (self.product_id, self.variant_id)


@dataclass(frozen=True, slots=True)
class Collection:
    """Authoritative (or tentative) cart / wishlist contents."""

    id: ResourceId
    items: tuple[LineItem, ...] = ()

    @classmethod
    def empty(cls, id: ResourceId = "temp") -> Collection:
        return cls(id=id, items=())

    @property
    def total_items(self) -> int:
        return len(self.items)

    @property
    def subtotal(self) -> float:
        return sum(i.price * (i.quantity or 1) for i in self.items)

    def find(self, item_id: ResourceId) -> LineItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def with_items(self, items: tuple[LineItem, ...]) -> Collection:
        return Collection(id=self.id, items=items)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "ProcessingStatus",
    "Variant",
    "Product",
    "ItemKey",
    "CollectionKind",
    "LineItem",
    "Collection",
)
