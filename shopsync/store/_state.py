"""
Collection state — what a cart / wishlist store holds.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum, auto

from shopsync._types import ResourceId
from shopsync.domain import Collection, ItemKey, LineItem

# ═══════════════════════════════════════════════════════════════════════════════
# Optimistic Entry — Tentative Line Item
# ═══════════════════════════════════════════════════════════════════════════════


class EntryState(Enum):
    """
    Lifecycle:
        PENDING → CONFIRMED (server accepted, replaced by server data)
                → ROLLED_BACK (server refused, snapshot restored)
    """

    PENDING = auto()
    CONFIRMED = auto()
    ROLLED_BACK = auto()


@dataclass(frozen=True, slots=True)
class OptimisticEntry:
    """A line item shown before the server has confirmed it."""

    temp_id: ResourceId
    payload: LineItem
    state: EntryState = EntryState.PENDING

    @property
    def key(self) -> ItemKey:
        return self.payload.key

    def settle(self, state: EntryState) -> OptimisticEntry:
        return replace(self, state=state)


# ═══════════════════════════════════════════════════════════════════════════════
# IdMap — Explicit Id Mapping Table
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class IdMap:
    """
    by_key: (product_id, variant_id) → visible item id (temp or server).
    aliases: temp id → server id, for ids handed out before confirmation.
    """

    by_key: Mapping[ItemKey, ResourceId] = field(default_factory=dict)
    aliases: Mapping[ResourceId, ResourceId] = field(default_factory=dict)

    @classmethod
    def from_collection(
        cls,
        collection: Collection | None,
        temp_keys: Mapping[ResourceId, ItemKey] | None = None,
    ) -> IdMap:
        """
        Rebuild from an authoritative collection.

        Same inputs always give the same map: first item per key wins,
        and a temp id aliases to whatever server item now holds its key.
        """
        by_key: dict[ItemKey, ResourceId] = {}
        for item in collection.items if collection is not None else ():
            by_key.setdefault(item.key, item.id)

        aliases = {
            temp_id: by_key[key]
            for temp_id, key in (temp_keys or {}).items()
            if key in by_key
        }
        return cls(by_key=by_key, aliases=aliases)

    def item_id(self, key: ItemKey) -> ResourceId | None:
        return self.by_key.get(key)

    def resolve(self, item_id: ResourceId) -> ResourceId:
        """Server id for a temp id once known; other ids pass through."""
        return self.aliases.get(item_id, item_id)

    def with_key(self, key: ItemKey, item_id: ResourceId) -> IdMap:
        return IdMap(by_key={**self.by_key, key: item_id}, aliases=self.aliases)

    def without_key(self, key: ItemKey) -> IdMap:
        by_key = {k: v for k, v in self.by_key.items() if k != key}
        return IdMap(by_key=by_key, aliases=self.aliases)


# ═══════════════════════════════════════════════════════════════════════════════
# Snapshot & State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CollectionSnapshot:
    """Pre-mutation copy, used only for rollback."""

    collection: Collection | None
    ids: IdMap


@dataclass(frozen=True, slots=True)
class CollectionState:
    collection: Collection | None = None
    ids: IdMap = field(default_factory=IdMap)
    pending: tuple[OptimisticEntry, ...] = ()
    is_loading: bool = False
    error: str | None = None

    @property
    def items(self) -> tuple[LineItem, ...]:
        return self.collection.items if self.collection is not None else ()

    @property
    def loaded(self) -> bool:
        return self.collection is not None

    def snapshot(self) -> CollectionSnapshot:
        return CollectionSnapshot(collection=self.collection, ids=self.ids)

    def pending_for(self, key: ItemKey) -> OptimisticEntry | None:
        for entry in self.pending:
            if entry.key == key:
                return entry
        return None

    def contains(self, key: ItemKey) -> bool:
        return key in self.ids.by_key


__all__ = (
    "EntryState",
    "OptimisticEntry",
    "IdMap",
    "CollectionSnapshot",
    "CollectionState",
)
