"""
Store — client-held collection state.

    from shopsync import store as St

    cart = St.Store(St.CollectionState())
    cart.subscribe(lambda state: render(state.items))
"""

from __future__ import annotations

from shopsync.store._store import Store
from shopsync.store._state import (
    EntryState,
    OptimisticEntry,
    IdMap,
    CollectionSnapshot,
    CollectionState,
)

__all__ = (
    "Store",
    "EntryState",
    "OptimisticEntry",
    "IdMap",
    "CollectionSnapshot",
    "CollectionState",
)
