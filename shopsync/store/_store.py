"""
Store — injectable observable state container.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from shopsync._types import Listener, Unsubscribe

logger = logging.getLogger(__name__)


class Store[S]:
    """
    Holds one piece of client state and notifies subscribers on change.

    Owned by a composition root and passed to whatever mutates it; there
    is no global instance.

    Example:
        store = Store(CollectionState())
        unsubscribe = store.subscribe(render)
        store.update(lambda s: replace(s, is_loading=True))
    """

    def __init__(self, initial: S) -> None:
        self._state = initial
        self._listeners: list[Listener[S]] = []

    @property
    def state(self) -> S:
        return self._state

    def set(self, state: S) -> None:
        if state is self._state:
            return
        self._state = state
        for listener in tuple(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("store listener %r raised", listener)

    def update(self, fn: Callable[[S], S]) -> S:
        """Read-modify-write. Returns the new state."""
        self.set(fn(self._state))
        return self._state

    def subscribe(self, listener: Listener[S]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


__all__ = ("Store",)
