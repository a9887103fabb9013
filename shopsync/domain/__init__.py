"""
Domain — what the storefront core knows about products and collections.

    from shopsync import domain as D

    D.Product(id="p-1", name="Tee", image_processing_status=D.ProcessingStatus.PENDING)
"""

from shopsync.domain._types import (
    ProcessingStatus,
    Variant,
    Product,
    ItemKey,
    CollectionKind,
    LineItem,
    Collection,
)
from shopsync.domain._ports import (
    FetchError,
    MutationError,
    MutationErrorKind,
    ProductSource,
    CollectionBackend,
)

__all__ = (
    "ProcessingStatus",
    "Variant",
    "Product",
    "ItemKey",
    "CollectionKind",
    "LineItem",
    "Collection",
    "FetchError",
    "MutationError",
    "MutationErrorKind",
    "ProductSource",
    "CollectionBackend",
)
