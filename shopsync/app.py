"""
Composition root — owns the cache, stores and coordinators.
"""

from __future__ import annotations

from dataclasses import dataclass

from shopsync.api import ApiClient
from shopsync.cache import QueryCache, ResourceInvalidation
from shopsync.config import Settings
from shopsync.domain import CollectionBackend, CollectionKind, ProductSource
from shopsync.notify import LoggingNotifier, Notifier
from shopsync.optimistic import Coordinator
from shopsync.poll import Clock, Poller
from shopsync.store import CollectionState, Store


@dataclass(slots=True)
class Storefront:
    """
    Everything a UI layer needs, wired once.

    Example:
        async with ApiClient(settings) as client:
            shop = Storefront.connect(settings, client, notifier=toasts)
            await shop.cart.initialize()
            await shop.cart.add(product.id, variant.id, 1, product=product)

            poller = shop.poller()     # one per UI surface
            await poller.start_poll(product.id, shop.invalidation)
    """

    settings: Settings
    products: ProductSource
    cache: QueryCache
    invalidation: ResourceInvalidation
    cart: Coordinator
    wishlist: Coordinator
    notifier: Notifier

    @classmethod
    def build(
        cls,
        settings: Settings,
        products: ProductSource,
        cart_backend: CollectionBackend,
        wishlist_backend: CollectionBackend,
        notifier: Notifier | None = None,
    ) -> Storefront:
        cache = QueryCache(max_size=settings.cache_max_size)
        notifier = notifier or LoggingNotifier()

        def coordinator(kind: CollectionKind, backend: CollectionBackend) -> Coordinator:
            return Coordinator(
                kind,
                backend=backend,
                store=Store(CollectionState()),
                notifier=notifier,
                cache=cache,
            )

        return cls(
            settings=settings,
            products=products,
            cache=cache,
            invalidation=ResourceInvalidation(cache),
            cart=coordinator(CollectionKind.CART, cart_backend),
            wishlist=coordinator(CollectionKind.WISHLIST, wishlist_backend),
            notifier=notifier,
        )

    @classmethod
    def connect(
        cls,
        settings: Settings,
        client: ApiClient,
        notifier: Notifier | None = None,
    ) -> Storefront:
        return cls.build(
            settings,
            products=client.products,
            cart_backend=client.cart,
            wishlist_backend=client.wishlist,
            notifier=notifier,
        )

    def poller(self, clock: Clock | None = None) -> Poller:
        return Poller(self.products, self.settings.poll, clock)

    async def logout(self) -> None:
        await self.cart.reset()
        await self.wishlist.reset()


__all__ = ("Storefront",)
