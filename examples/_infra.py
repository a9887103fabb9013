"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field, replace

from kungfu import Result, Ok, Error

from shopsync.domain import (
    Collection,
    CollectionKind,
    FetchError,
    LineItem,
    MutationError,
    MutationErrorKind,
    ProcessingStatus,
    Product,
    Variant,
)


# Catalog
SHIRT = Product(
    id="p-shirt",
    name="Linen Shirt",
    image_urls=("https://cdn.example.com/shirt.webp",),
    variants=(Variant(id="v-m", size="M", color="Sand", price=49.0, stock=3),),
    image_processing_status=ProcessingStatus.PENDING,
)

MUG = Product(
    id="p-mug",
    name="Stoneware Mug",
    variants=(Variant(id="v-one", size="One", color="Slate", price=18.0, stock=0),),
    image_processing_status=ProcessingStatus.COMPLETED,
)


# Fake product API: images finish after a few reads
@dataclass(slots=True)
class SlowImages:
    ready_after: int = 3
    reads: int = 0

    async def get_product(self, product_id: str) -> Result[Product | None, FetchError]:
        await asyncio.sleep(0.01)
        self.reads += 1
        print(f"  [API] GET /products/{product_id} (read #{self.reads})")
        if product_id != SHIRT.id:
            return Ok(None)
        if self.reads < self.ready_after:
            return Ok(SHIRT)
        return Ok(replace(SHIRT, image_processing_status=ProcessingStatus.COMPLETED))


# Fake cart / wishlist server
@dataclass(slots=True)
class FakeShop:
    kind: CollectionKind
    catalog: dict[str, Product] = field(
        default_factory=lambda: {SHIRT.id: SHIRT, MUG.id: MUG}
    )
    items: list[LineItem] = field(default_factory=list)
    seq: int = 0

    def _collection(self) -> Collection:
        return Collection(id=f"{self.kind.value}-1", items=tuple(self.items))

    async def fetch(self) -> Result[Collection, MutationError]:
        await asyncio.sleep(0.01)
        return Ok(self._collection())

    async def add(
        self, product_id: str, variant_id: str, quantity: int | None
    ) -> Result[Collection, MutationError]:
        await asyncio.sleep(0.05)
        product = self.catalog.get(product_id)
        variant = product.variant(variant_id) if product else None
        if product is None or variant is None:
            return Error(MutationError(MutationErrorKind.REJECTED, "Product not found", 404))
        if self.kind is CollectionKind.CART and variant.stock < (quantity or 1):
            return Error(
                MutationError(MutationErrorKind.REJECTED, "Insufficient stock", 400)
            )
        self.seq += 1
        self.items.append(
            LineItem(
                id=f"{self.kind.value}-item-{self.seq}",
                product_id=product_id,
                variant_id=variant_id,
                name=product.name,
                image=product.image_urls[0] if product.image_urls else "",
                price=variant.price,
                size=variant.size,
                color=variant.color,
                quantity=quantity if self.kind is CollectionKind.CART else None,
            )
        )
        return Ok(self._collection())

    async def remove(self, item_id: str) -> Result[Collection, MutationError]:
        await asyncio.sleep(0.05)
        self.items = [i for i in self.items if i.id != item_id]
        return Ok(self._collection())

    async def update_quantity(
        self, item_id: str, quantity: int
    ) -> Result[Collection, MutationError]:
        await asyncio.sleep(0.05)
        self.items = [
            replace(i, quantity=quantity) if i.id == item_id else i for i in self.items
        ]
        return Ok(self._collection())

    async def clear(self) -> Result[Collection, MutationError]:
        await asyncio.sleep(0.05)
        self.items = []
        return Ok(self._collection())


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def show(label: str, items: tuple[LineItem, ...]) -> None:
    rendered = ", ".join(f"{i.name} x{i.quantity or 1} [{i.id}]" for i in items)
    print(f"  {label}: {rendered or '(empty)'}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    logging.basicConfig(level=logging.WARNING, format="  [%(name)s] %(message)s")
    asyncio.run(main())
