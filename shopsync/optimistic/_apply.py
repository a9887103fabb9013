"""
Reducers — pure state transitions for optimistic mutations.

No I/O here: every function takes a CollectionState and returns a new one.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import replace

from shopsync._types import ResourceId
from shopsync.domain import Collection, ItemKey, LineItem, Product
from shopsync.store import (
    CollectionSnapshot,
    CollectionState,
    EntryState,
    IdMap,
    OptimisticEntry,
)

TEMP_PREFIX = "optimistic_"
PLACEHOLDER_NAME = "Unknown Product"
PLACEHOLDER_IMAGE = "/placeholder.svg"
PLACEHOLDER_ATTR = "N/A"


def new_temp_id() -> ResourceId:
    return f"{TEMP_PREFIX}{uuid.uuid4().hex}"


def is_temp_id(item_id: ResourceId) -> bool:
    return item_id.startswith(TEMP_PREFIX)


# ═══════════════════════════════════════════════════════════════════════════════
# Tentative Line Items
# ═══════════════════════════════════════════════════════════════════════════════


def optimistic_item(
    temp_id: ResourceId,
    product_id: ResourceId,
    variant_id: ResourceId,
    quantity: int | None,
    product: Product | None = None,
) -> LineItem:
    """
    Build the tentative line item.

    Unknown product or variant degrades to placeholder fields (zero price,
    "Unknown Product") until the server answers.
    """
    variant = product.variant(variant_id) if product is not None else None
    return LineItem(
        id=temp_id,
        product_id=product_id,
        variant_id=variant_id,
        name=product.name if product is not None else PLACEHOLDER_NAME,
        image=product.image_urls[0]
        if product is not None and product.image_urls
        else PLACEHOLDER_IMAGE,
        price=variant.price if variant is not None else 0,
        size=variant.size if variant is not None else PLACEHOLDER_ATTR,
        color=variant.color if variant is not None else PLACEHOLDER_ATTR,
        quantity=quantity,
    )


def placeholder_item(
    temp_id: ResourceId,
    product_id: ResourceId,
    variant_id: ResourceId,
    quantity: int | None = None,
) -> LineItem:
    return optimistic_item(temp_id, product_id, variant_id, quantity, None)


def _bump(item: LineItem, quantity: int | None) -> LineItem:
    if item.quantity is None or quantity is None:
        return item
    return replace(item, quantity=item.quantity + quantity)


def _replace_item(items: tuple[LineItem, ...], new: LineItem) -> tuple[LineItem, ...]:
    return tuple(new if i.id == new.id else i for i in items)


# ═══════════════════════════════════════════════════════════════════════════════
# Optimistic Apply
# ═══════════════════════════════════════════════════════════════════════════════


def apply_add(
    state: CollectionState, item: LineItem
) -> tuple[CollectionState, ResourceId]:
    """
    Show item before the server confirms it.

    Returns the new state and the visible id the caller should track.
    An item already visible for the same product+variant is bumped in
    place, so a key never has two entries on screen.
    """
    collection = state.collection or Collection.empty()
    visible_id = state.ids.item_id(item.key)
    existing = collection.find(visible_id) if visible_id is not None else None

    if existing is not None:
        bumped = _bump(existing, item.quantity)
        pending = tuple(
            replace(e, payload=bumped) if e.temp_id == existing.id else e
            for e in state.pending
        )
        return (
            replace(
                state,
                collection=collection.with_items(_replace_item(collection.items, bumped)),
                pending=pending,
            ),
            existing.id,
        )

    entry = OptimisticEntry(temp_id=item.id, payload=item)
    return (
        replace(
            state,
            collection=collection.with_items((*collection.items, item)),
            ids=state.ids.with_key(item.key, item.id),
            pending=(*state.pending, entry),
        ),
        item.id,
    )


def apply_remove(
    state: CollectionState, item_id: ResourceId
) -> tuple[CollectionState, LineItem | None]:
    collection = state.collection or Collection.empty()
    removed = collection.find(item_id)
    items = tuple(i for i in collection.items if i.id != item_id)
    ids = state.ids.without_key(removed.key) if removed is not None else state.ids
    return (
        replace(
            state,
            collection=collection.with_items(items),
            ids=ids,
            pending=tuple(e for e in state.pending if e.temp_id != item_id),
        ),
        removed,
    )


def apply_update_quantity(
    state: CollectionState, item_id: ResourceId, quantity: int
) -> CollectionState:
    collection = state.collection or Collection.empty()
    target = collection.find(item_id)
    if target is None or target.quantity is None:
        return state
    return replace(
        state,
        collection=collection.with_items(
            _replace_item(collection.items, replace(target, quantity=quantity))
        ),
    )


def apply_clear(state: CollectionState) -> CollectionState:
    collection = state.collection or Collection.empty()
    return replace(
        state,
        collection=collection.with_items(()),
        ids=IdMap(),
        pending=(),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Reconcile
# ═══════════════════════════════════════════════════════════════════════════════


def _drop_entries(
    pending: tuple[OptimisticEntry, ...], settled: frozenset[ResourceId]
) -> tuple[OptimisticEntry, ...]:
    return tuple(e for e in pending if e.temp_id not in settled)


def confirm(
    state: CollectionState,
    collection: Collection,
    temp_keys: Mapping[ResourceId, ItemKey],
    settled: frozenset[ResourceId] = frozenset(),
) -> CollectionState:
    """
    Replace visible state with the authoritative collection.

    Full replace, never a field merge; the id table is rebuilt from the
    response.
    """
    return replace(
        state,
        collection=collection,
        ids=IdMap.from_collection(collection, temp_keys),
        pending=_drop_entries(state.pending, settled),
    )


def restore(
    state: CollectionState,
    snapshot: CollectionSnapshot,
    settled: frozenset[ResourceId] = frozenset(),
) -> CollectionState:
    """Put the pre-mutation collection and id table back verbatim."""
    return replace(
        state,
        collection=snapshot.collection,
        ids=snapshot.ids,
        pending=_drop_entries(state.pending, settled),
    )


def settle_entry(entry: OptimisticEntry, ok: bool) -> OptimisticEntry:
    return entry.settle(EntryState.CONFIRMED if ok else EntryState.ROLLED_BACK)


__all__ = (
    "TEMP_PREFIX",
    "PLACEHOLDER_NAME",
    "PLACEHOLDER_IMAGE",
    "PLACEHOLDER_ATTR",
    "new_temp_id",
    "is_temp_id",
    "optimistic_item",
    "placeholder_item",
    "apply_add",
    "apply_remove",
    "apply_update_quantity",
    "apply_clear",
    "confirm",
    "restore",
    "settle_entry",
)
