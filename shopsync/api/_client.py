"""
HTTP client — storefront REST endpoints behind the core's ports.
"""

from __future__ import annotations

import logging
from typing import Any, Self

import httpx
from kungfu import Result, Ok, Error

from shopsync._types import ResourceId
from shopsync.config import Settings
from shopsync.domain import (
    Collection,
    CollectionKind,
    FetchError,
    MutationError,
    MutationErrorKind,
    Product,
)
from shopsync.api._schemas import (
    CartEnvelope,
    ErrorBody,
    ProductEnvelope,
    WishlistEnvelope,
)

logger = logging.getLogger(__name__)


def error_message(response: httpx.Response) -> str | None:
    """Best-effort `message` from an error body."""
    try:
        return ErrorBody.model_validate(response.json()).message
    except ValueError:
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Products — ProductSource
# ═══════════════════════════════════════════════════════════════════════════════


class ProductApi:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def get_product(
        self, product_id: ResourceId
    ) -> Result[Product | None, FetchError]:
        try:
            response = await self._http.get(f"/products/{product_id}")
        except httpx.HTTPError as e:
            return Error(FetchError(f"GET /products/{product_id}: {e}", e))

        if response.status_code == 404:
            return Ok(None)
        if response.is_error:
            return Error(FetchError(f"HTTP {response.status_code}"))

        try:
            envelope = ProductEnvelope.model_validate(response.json())
        except ValueError as e:
            return Error(FetchError("malformed product payload", e))
        return Ok(envelope.product.to_domain() if envelope.product else None)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart / Wishlist — CollectionBackend
# ═══════════════════════════════════════════════════════════════════════════════


class CollectionApi:
    """
    REST backend for one collection.

        GET    /{kind}              fetch
        POST   /{kind}/items        add
        PUT    /{kind}/items/{id}   update quantity (cart only)
        DELETE /{kind}/items/{id}   remove
        DELETE /{kind}              clear

    Every response carries the full collection under the `kind` key.
    """

    def __init__(self, http: httpx.AsyncClient, kind: CollectionKind) -> None:
        self._http = http
        self._kind = kind
        self._base = f"/{kind.value}"

    @property
    def kind(self) -> CollectionKind:
        return self._kind

    async def fetch(self) -> Result[Collection, MutationError]:
        return await self._call("GET", self._base)

    async def add(
        self,
        product_id: ResourceId,
        variant_id: ResourceId,
        quantity: int | None,
    ) -> Result[Collection, MutationError]:
        body: dict[str, Any] = {"productId": product_id, "variantId": variant_id}
        if quantity is not None:
            body["quantity"] = quantity
        return await self._call("POST", f"{self._base}/items", body)

    async def remove(self, item_id: ResourceId) -> Result[Collection, MutationError]:
        return await self._call("DELETE", f"{self._base}/items/{item_id}")

    async def update_quantity(
        self, item_id: ResourceId, quantity: int
    ) -> Result[Collection, MutationError]:
        if self._kind is not CollectionKind.CART:
            return Error(
                MutationError(
                    MutationErrorKind.UNSUPPORTED,
                    f"{self._kind.value} items have no quantity",
                )
            )
        return await self._call(
            "PUT", f"{self._base}/items/{item_id}", {"quantity": quantity}
        )

    async def clear(self) -> Result[Collection, MutationError]:
        return await self._call("DELETE", self._base)

    async def _call(
        self, method: str, path: str, body: dict[str, Any] | None = None
    ) -> Result[Collection, MutationError]:
        try:
            response = await self._http.request(method, path, json=body)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            return Error(MutationError(MutationErrorKind.NETWORK))

        if response.is_error:
            return Error(
                MutationError(
                    MutationErrorKind.REJECTED,
                    error_message(response),
                    response.status_code,
                )
            )

        try:
            return Ok(self._parse(response.json()))
        except ValueError as e:
            logger.warning("%s %s: malformed %s payload: %s", method, path, self._kind.value, e)
            return Error(MutationError(MutationErrorKind.MALFORMED))

    def _parse(self, payload: Any) -> Collection:
        match self._kind:
            case CollectionKind.CART:
                return CartEnvelope.model_validate(payload).cart.to_domain()
            case CollectionKind.WISHLIST:
                return WishlistEnvelope.model_validate(payload).wishlist.to_domain()


# ═══════════════════════════════════════════════════════════════════════════════
# ApiClient — Owns the Transport
# ═══════════════════════════════════════════════════════════════════════════════


class ApiClient:
    """
    Example:
        async with ApiClient(load_settings()) as api:
            result = await api.products.get_product("p-1")
    """

    def __init__(
        self, settings: Settings, http: httpx.AsyncClient | None = None
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
            headers={"Content-Type": "application/json"},
        )
        self.products = ProductApi(self._http)
        self.cart = CollectionApi(self._http, CollectionKind.CART)
        self.wishlist = CollectionApi(self._http, CollectionKind.WISHLIST)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()


__all__ = ("error_message", "ProductApi", "CollectionApi", "ApiClient")
