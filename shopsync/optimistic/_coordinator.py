"""
Coordinator — optimistic cart / wishlist mutations.

Every call walks the same state machine:

    IDLE ──apply──▶ APPLIED ──server ok──▶ CONFIRMED ──┐
                        │                              ├──▶ SETTLED
                        └──server error──▶ ROLLED_BACK ┘

APPLIED happens before the first await, so the tentative state is on
screen before the request leaves. SETTLED always runs: it marks the
collection query stale and, once no other mutation is in flight,
re-fetches the server's copy so overlapping mutations converge.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter, deque
from collections.abc import Awaitable, Callable
from dataclasses import replace

from kungfu import LazyCoroResult, Result, Ok, Error

from shopsync._types import Listener, QueryKey, ResourceId, Unsubscribe
from shopsync.cache import QueryCache, product_key
from shopsync.domain import (
    Collection,
    CollectionBackend,
    CollectionKind,
    ItemKey,
    LineItem,
    MutationError,
    MutationErrorKind,
    Product,
)
from shopsync.notify import Notifier
from shopsync.store import (
    CollectionSnapshot,
    CollectionState,
    OptimisticEntry,
    Store,
)
from shopsync.optimistic._apply import (
    apply_add,
    apply_clear,
    apply_remove,
    apply_update_quantity,
    confirm,
    is_temp_id,
    new_temp_id,
    optimistic_item,
    restore,
    settle_entry,
)
from shopsync.optimistic._types import (
    ERROR_TITLE,
    MESSAGES,
    MutationKind,
    Phase,
)

logger = logging.getLogger(__name__)

type Call = Callable[[], Awaitable[Result[Collection, MutationError]]]
type Lookup = Callable[[ResourceId], Product | None]
type PhaseObserver = Callable[[MutationKind, Phase], None]


class Coordinator:
    """
    Optimistic mutation coordinator for one collection.

    Example:
        cart = Coordinator(
            CollectionKind.CART,
            backend=cart_api,
            store=Store(CollectionState()),
            notifier=notifications,
            cache=query_cache,
        )

        await cart.initialize()
        result = await cart.add(product.id, variant.id, 1, product=product)

        match result:
            case Ok(collection):
                print(collection.total_items)
            case Error(e):
                print(e.kind)  # already rolled back and toasted
    """

    def __init__(
        self,
        kind: CollectionKind,
        backend: CollectionBackend,
        store: Store[CollectionState],
        notifier: Notifier,
        cache: QueryCache,
        lookup: Lookup | None = None,
        observer: PhaseObserver | None = None,
    ) -> None:
        self._kind = kind
        self._backend = backend
        self._store = store
        self._notifier = notifier
        self._cache = cache
        self._lookup = lookup or self._cached_product
        self._observer = observer
        self._messages = MESSAGES[kind]

        self._in_flight = 0
        self._generation = 0
        self._holders: Counter[ResourceId] = Counter()
        self._temp_keys: dict[ResourceId, ItemKey] = {}
        self._confirmations: dict[ResourceId, asyncio.Future[ResourceId | None]] = {}
        self._recent: deque[OptimisticEntry] = deque(maxlen=32)

    # ───────────────────────────────────────────────────────────────────────────
    # Read side
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def kind(self) -> CollectionKind:
        return self._kind

    @property
    def query_key(self) -> QueryKey:
        return (self._kind.value,)

    @property
    def state(self) -> CollectionState:
        return self._store.state

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def recent_entries(self) -> tuple[OptimisticEntry, ...]:
        """Settled optimistic entries, newest last."""
        return tuple(self._recent)

    def subscribe(self, listener: Listener[CollectionState]) -> Unsubscribe:
        return self._store.subscribe(listener)

    # ───────────────────────────────────────────────────────────────────────────
    # Operations
    # ───────────────────────────────────────────────────────────────────────────

    async def add(
        self,
        product_id: ResourceId,
        variant_id: ResourceId,
        quantity: int | None = None,
        product: Product | None = None,
    ) -> Result[Collection, MutationError]:
        if quantity is not None and quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {quantity}")

        known = product if product is not None else self._lookup(product_id)
        item = optimistic_item(new_temp_id(), product_id, variant_id, quantity, known)

        snapshot = self.state.snapshot()
        state, handle = apply_add(self.state, item)
        self._hold(handle, item.key)
        self._apply(MutationKind.ADD, state)

        def added(collection: Collection) -> str:
            confirmed = item_for(collection, item.key)
            return self._messages.added(confirmed.name if confirmed else None)

        return await self._mutate(
            MutationKind.ADD,
            snapshot,
            lambda: self._backend.add(product_id, variant_id, quantity),
            added,
            handle=handle,
        )

    async def remove(self, item_id: ResourceId) -> Result[Collection, MutationError]:
        visible_id = self.state.ids.resolve(item_id)
        snapshot = self.state.snapshot()
        state, removed = apply_remove(self.state, visible_id)
        self._apply(MutationKind.REMOVE, state)

        async def call() -> Result[Collection, MutationError]:
            server_id = await self._server_id(visible_id)
            if server_id is None:
                # the add it belonged to never reached the server
                return Ok(self.state.collection or Collection.empty())
            return await self._backend.remove(server_id)

        if removed is None:
            logger.debug("%s: removing unknown item %s", self._kind.value, item_id)
        return await self._mutate(
            MutationKind.REMOVE,
            snapshot,
            call,
            lambda _: self._messages.removed(),
        )

    async def update_quantity(
        self, item_id: ResourceId, quantity: int
    ) -> Result[Collection, MutationError]:
        if quantity < 1:
            return Ok(self.state.collection or Collection.empty())
        if self._kind is not CollectionKind.CART:
            logger.debug("%s: quantity update on %s ignored", self._kind.value, item_id)
            return Error(
                MutationError(
                    MutationErrorKind.UNSUPPORTED,
                    f"{self._kind.value} items have no quantity",
                )
            )

        visible_id = self.state.ids.resolve(item_id)
        snapshot = self.state.snapshot()
        self._apply(
            MutationKind.UPDATE_QUANTITY,
            apply_update_quantity(self.state, visible_id, quantity),
        )

        async def call() -> Result[Collection, MutationError]:
            server_id = await self._server_id(visible_id)
            if server_id is None:
                return Error(MutationError(MutationErrorKind.REJECTED))
            return await self._backend.update_quantity(server_id, quantity)

        return await self._mutate(
            MutationKind.UPDATE_QUANTITY,
            snapshot,
            call,
            lambda _: self._messages.updated(),
        )

    async def clear(self) -> Result[Collection, MutationError]:
        snapshot = self.state.snapshot()
        self._apply(MutationKind.CLEAR, apply_clear(self.state))
        return await self._mutate(
            MutationKind.CLEAR,
            snapshot,
            self._backend.clear,
            lambda _: self._messages.cleared(),
        )

    async def initialize(self, force: bool = False) -> Result[Collection, MutationError]:
        """Load the collection unless already loaded (or force)."""
        state = self.state
        if state.collection is not None and not force:
            return Ok(state.collection)
        if state.is_loading and not force:
            return Ok(state.collection or Collection.empty())

        generation = self._generation
        self._store.set(replace(state, is_loading=True, error=None))
        if force:
            await self._cache.invalidate(self.query_key)

        fetched = await self._cache.get(self.query_key, self._fetch)
        current = generation == self._generation

        match fetched:
            case Ok(cached) if not current:
                return Ok(cached.value)
            case Error(e) if not current:
                return Error(e)
            case Ok(cached):
                self._store.update(
                    lambda s: replace(
                        confirm(s, cached.value, self._temp_keys),
                        is_loading=self._in_flight > 0,
                    )
                )
                return Ok(cached.value)
            case Error(e):
                logger.warning("%s: initial load failed: %s", self._kind.value, e)
                self._store.update(
                    lambda s: replace(
                        s, is_loading=False, error=self._messages.load_failed()
                    )
                )
                return Error(e)

    async def reset(self) -> None:
        """
        Forget local state (logout). Nothing is sent to the server.

        Mutations still in flight finish against the old generation: they
        settle, but their answers no longer touch state or notify.
        """
        self._generation += 1
        self._in_flight = 0
        for future in self._confirmations.values():
            if not future.done():
                future.set_result(None)
        self._confirmations.clear()
        self._temp_keys.clear()
        self._holders.clear()
        await self._cache.remove(self.query_key)
        self._store.set(CollectionState())

    # ───────────────────────────────────────────────────────────────────────────
    # State machine
    # ───────────────────────────────────────────────────────────────────────────

    def _apply(self, kind: MutationKind, state: CollectionState) -> None:
        self._in_flight += 1
        self._store.set(replace(state, is_loading=True))
        self._emit(kind, Phase.APPLIED)

    async def _mutate(
        self,
        kind: MutationKind,
        snapshot: CollectionSnapshot,
        call: Call,
        success: Callable[[Collection], str],
        handle: ResourceId | None = None,
    ) -> Result[Collection, MutationError]:
        generation = self._generation
        try:
            result = await self._guarded(call)
            if generation != self._generation:
                logger.debug(
                    "%s %s answered after reset, ignored",
                    self._kind.value,
                    kind.name.lower(),
                )
                return result
            match result:
                case Ok(collection):
                    self._confirm(kind, collection, handle)
                    self._notifier.success(success(collection))
                case Error(err):
                    self._rollback(kind, snapshot, err, handle)
                    self._notifier.error(
                        ERROR_TITLE, err.message or self._messages.fallback(kind)
                    )
            return result
        finally:
            await self._settle(kind, generation)

    def _confirm(
        self, kind: MutationKind, collection: Collection, handle: ResourceId | None
    ) -> None:
        settled = self._release(handle, ok=True, collection=collection)
        self._store.update(lambda s: confirm(s, collection, self._temp_keys, settled))
        self._prune_temp_keys()
        logger.debug(
            "%s %s confirmed: %d items",
            self._kind.value,
            kind.name.lower(),
            collection.total_items,
        )
        self._emit(kind, Phase.CONFIRMED)

    def _rollback(
        self,
        kind: MutationKind,
        snapshot: CollectionSnapshot,
        err: MutationError,
        handle: ResourceId | None,
    ) -> None:
        settled = self._release(handle, ok=False, collection=None)
        self._store.update(lambda s: restore(s, snapshot, settled))
        logger.info(
            "%s %s rolled back (%s): %s",
            self._kind.value,
            kind.name.lower(),
            err.kind.name.lower(),
            err.message,
        )
        self._emit(kind, Phase.ROLLED_BACK)

    async def _settle(self, kind: MutationKind, generation: int) -> None:
        if generation != self._generation:
            # reset() already zeroed the counter and dropped the cache entry
            self._emit(kind, Phase.SETTLED)
            return

        self._in_flight -= 1
        await self._cache.invalidate(self.query_key)

        if self._in_flight == 0:
            fetched = await self._cache.get(self.query_key, self._fetch)
            # a mutation (or a reset) may have happened while we were fetching
            if self._in_flight == 0 and generation == self._generation:
                match fetched:
                    case Ok(cached):
                        self._store.update(
                            lambda s: replace(
                                confirm(s, cached.value, self._temp_keys),
                                is_loading=False,
                            )
                        )
                    case Error(e):
                        logger.warning(
                            "%s: settle re-fetch failed: %s", self._kind.value, e
                        )
                        self._store.update(lambda s: replace(s, is_loading=False))

        self._emit(kind, Phase.SETTLED)

    # ───────────────────────────────────────────────────────────────────────────
    # Temp id bookkeeping
    # ───────────────────────────────────────────────────────────────────────────

    def _hold(self, handle: ResourceId, key: ItemKey) -> None:
        if not is_temp_id(handle):
            # merged into an item the server already knows
            return
        self._holders[handle] += 1
        self._temp_keys[handle] = key
        if handle not in self._confirmations:
            self._confirmations[handle] = asyncio.get_running_loop().create_future()

    def _release(
        self, handle: ResourceId | None, ok: bool, collection: Collection | None
    ) -> frozenset[ResourceId]:
        """Drop one hold on handle; returns temp ids whose entries are done."""
        if handle is None or handle not in self._holders:
            return frozenset()

        self._holders[handle] -= 1
        future = self._confirmations.get(handle)
        confirmed = (
            item_for(collection, self._temp_keys[handle])
            if ok and collection is not None
            else None
        )
        server_id = confirmed.id if confirmed is not None else None
        if (
            future is not None
            and not future.done()
            and (server_id is not None or self._holders[handle] <= 0)
        ):
            future.set_result(server_id)

        if self._holders[handle] > 0:
            return frozenset()

        del self._holders[handle]
        self._confirmations.pop(handle, None)
        for entry in self.state.pending:
            if entry.temp_id == handle:
                self._recent.append(settle_entry(entry, ok))
        if not ok:
            self._temp_keys.pop(handle, None)
        return frozenset({handle})

    def _prune_temp_keys(self) -> None:
        aliases = self.state.ids.aliases
        for temp_id in list(self._temp_keys):
            if temp_id not in aliases and temp_id not in self._holders:
                del self._temp_keys[temp_id]

    async def _server_id(self, item_id: ResourceId) -> ResourceId | None:
        """Server id for item_id, waiting for its add to confirm if needed."""
        future = self._confirmations.get(item_id)
        if future is not None:
            return await asyncio.shield(future)
        resolved = self.state.ids.resolve(item_id)
        # a temp id with no alias belonged to an add that was rolled back
        return None if is_temp_id(resolved) else resolved

    # ───────────────────────────────────────────────────────────────────────────
    # Helpers
    # ───────────────────────────────────────────────────────────────────────────

    def _guarded(self, call: Call) -> LazyCoroResult[Collection, MutationError]:
        """Backend call as a lazy Result; raising or odd payloads become errors."""
        kind = self._kind

        async def run() -> Result[Collection, MutationError]:
            try:
                result = await call()
            except Exception:
                logger.exception("%s backend call raised", kind.value)
                return Error(MutationError(MutationErrorKind.NETWORK))

            match result:
                case Ok(Collection() as collection):
                    return Ok(collection)
                case Error(_):
                    return result
                case _:
                    logger.warning(
                        "%s backend returned %r, expected a Collection result",
                        kind.value,
                        result,
                    )
                    return Error(MutationError(MutationErrorKind.MALFORMED))

        return LazyCoroResult(run)

    def _fetch(self) -> LazyCoroResult[Collection, MutationError]:
        return self._guarded(self._backend.fetch)

    def _cached_product(self, product_id: ResourceId) -> Product | None:
        value = self._cache.peek(product_key(product_id))
        return value if isinstance(value, Product) else None

    def _emit(self, kind: MutationKind, phase: Phase) -> None:
        if self._observer is not None:
            self._observer(kind, phase)


def item_for(collection: Collection, key: ItemKey) -> LineItem | None:
    for item in collection.items:
        if item.key == key:
            return item
    return None


__all__ = ("Coordinator", "item_for")
