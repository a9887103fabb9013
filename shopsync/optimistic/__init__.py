"""
Optimistic — show cart / wishlist changes before the server confirms them.

    from shopsync import optimistic as O

    wishlist = O.Coordinator(CollectionKind.WISHLIST, wishlist_api, store, notifier, cache)
    result = await wishlist.add(product_id, variant_id)

On failure the pre-mutation snapshot is restored and one error toast is
sent; on success the server's collection replaces local state wholesale.
"""

from __future__ import annotations

from shopsync.optimistic._types import (
    MutationKind,
    Phase,
    ERROR_TITLE,
    Messages,
    MESSAGES,
)
from shopsync.optimistic._apply import (
    TEMP_PREFIX,
    PLACEHOLDER_NAME,
    PLACEHOLDER_IMAGE,
    PLACEHOLDER_ATTR,
    new_temp_id,
    is_temp_id,
    optimistic_item,
    placeholder_item,
    apply_add,
    apply_remove,
    apply_update_quantity,
    apply_clear,
    confirm,
    restore,
    settle_entry,
)
from shopsync.optimistic._coordinator import Coordinator, item_for

__all__ = (
    "MutationKind",
    "Phase",
    "ERROR_TITLE",
    "Messages",
    "MESSAGES",
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
    "Coordinator",
    "item_for",
)
