"""
Optimistic mutation types — mutation kinds and user-facing wording.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from shopsync.domain import CollectionKind


class MutationKind(Enum):
    ADD = auto()
    REMOVE = auto()
    UPDATE_QUANTITY = auto()
    CLEAR = auto()


class Phase(Enum):
    """
    Per-invocation state machine:
        IDLE → APPLIED → CONFIRMED | ROLLED_BACK → SETTLED
    """

    IDLE = auto()
    APPLIED = auto()
    CONFIRMED = auto()
    ROLLED_BACK = auto()
    SETTLED = auto()


ERROR_TITLE = "Error"


@dataclass(frozen=True, slots=True)
class Messages:
    """Toast wording for one collection kind."""

    noun: str
    failed: dict[MutationKind, str]

    def added(self, name: str | None) -> str:
        return f"{name or 'Item'} added to {self.noun}."

    def removed(self) -> str:
        return f"Item removed from {self.noun}."

    def updated(self) -> str:
        return "Quantity updated."

    def cleared(self) -> str:
        return f"{self.noun.capitalize()} cleared."

    def load_failed(self) -> str:
        return f"Failed to load {self.noun}."

    def fallback(self, kind: MutationKind) -> str:
        return self.failed[kind]


MESSAGES: dict[CollectionKind, Messages] = {
    CollectionKind.CART: Messages(
        noun="cart",
        failed={
            MutationKind.ADD: "Failed to add item.",
            MutationKind.REMOVE: "Failed to remove item.",
            MutationKind.UPDATE_QUANTITY: "Failed to update quantity.",
            MutationKind.CLEAR: "Failed to clear cart.",
        },
    ),
    CollectionKind.WISHLIST: Messages(
        noun="wishlist",
        failed={
            MutationKind.ADD: "Failed to add item to wishlist.",
            MutationKind.REMOVE: "Failed to remove item from wishlist.",
            MutationKind.UPDATE_QUANTITY: "Failed to update wishlist item.",
            MutationKind.CLEAR: "Failed to clear wishlist.",
        },
    ),
}


__all__ = ("MutationKind", "Phase", "ERROR_TITLE", "Messages", "MESSAGES")
