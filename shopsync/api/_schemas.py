"""
Wire schemas — REST payloads parsed with pydantic, mapped to domain types.

A payload that fails validation is malformed; callers turn the
ValidationError into an error Result.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from shopsync.domain import (
    Collection,
    LineItem,
    ProcessingStatus,
    Product,
    Variant,
)


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════════════════


class VariantIn(_Wire):
    id: str = Field(alias="_id")
    size: str = ""
    color: str = ""
    price: float = 0
    stock: int = 0

    def to_domain(self) -> Variant:
        return Variant(
            id=self.id,
            size=self.size,
            color=self.color,
            price=self.price,
            stock=self.stock,
        )


class ProductIn(_Wire):
    id: str = Field(alias="_id")
    name: str
    image_urls: list[str] = Field(default_factory=list, alias="imageUrls")
    variants: list[VariantIn] = Field(default_factory=list)
    image_processing_status: ProcessingStatus | None = Field(
        default=None, alias="imageProcessingStatus"
    )

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            image_urls=tuple(self.image_urls),
            variants=tuple(v.to_domain() for v in self.variants),
            image_processing_status=self.image_processing_status,
        )


class ProductEnvelope(_Wire):
    product: ProductIn | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Cart / Wishlist
# ═══════════════════════════════════════════════════════════════════════════════


class ProductRef(_Wire):
    """Populated productId: only the id is needed."""

    id: str = Field(alias="_id")


class LineItemIn(_Wire):
    id: str = Field(alias="_id")
    product: str | ProductRef = Field(alias="productId")
    variant_id: str = Field(alias="variantId")
    name: str = Field(alias="nameAtTime")
    price: float = Field(alias="priceAtTime")
    image: str = Field(default="", alias="imageAtTime")
    size: str = Field(default="", alias="sizeAtTime")
    color: str = Field(default="", alias="colorAtTime")
    quantity: int | None = None

    @property
    def product_id(self) -> str:
        return self.product if isinstance(self.product, str) else self.product.id

    def to_domain(self) -> LineItem:
        return LineItem(
            id=self.id,
            product_id=self.product_id,
            variant_id=self.variant_id,
            name=self.name,
            image=self.image,
            price=self.price,
            size=self.size,
            color=self.color,
            quantity=self.quantity,
        )


class CollectionIn(_Wire):
    id: str = Field(alias="_id")
    items: list[LineItemIn]

    def to_domain(self) -> Collection:
        return Collection(id=self.id, items=tuple(i.to_domain() for i in self.items))


class CartEnvelope(_Wire):
    cart: CollectionIn


class WishlistEnvelope(_Wire):
    wishlist: CollectionIn


class ErrorBody(_Wire):
    message: str | None = None


__all__ = (
    "VariantIn",
    "ProductIn",
    "ProductEnvelope",
    "ProductRef",
    "LineItemIn",
    "CollectionIn",
    "CartEnvelope",
    "WishlistEnvelope",
    "ErrorBody",
)
