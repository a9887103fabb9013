"""
API — storefront REST endpoints implementing the core's ports.

    from shopsync import api as A

    async with A.ApiClient(settings) as client:
        poller = Poller(client.products)
        cart = Coordinator(CollectionKind.CART, client.cart, ...)
"""

from __future__ import annotations

from shopsync.api._schemas import (
    VariantIn,
    ProductIn,
    ProductEnvelope,
    ProductRef,
    LineItemIn,
    CollectionIn,
    CartEnvelope,
    WishlistEnvelope,
    ErrorBody,
)
from shopsync.api._client import (
    error_message,
    ProductApi,
    CollectionApi,
    ApiClient,
)

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
    "error_message",
    "ProductApi",
    "CollectionApi",
    "ApiClient",
)
