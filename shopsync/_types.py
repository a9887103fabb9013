"""
Core types for shopsync.

Re-exports from kungfu + custom type aliases shared by every module.
"""

from __future__ import annotations

from collections.abc import Callable

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Identity & Callbacks
# ═══════════════════════════════════════════════════════════════════════════════

type ResourceId = str
"""Opaque server-side identifier (product id, item id, ...)."""

type QueryKey = tuple[str, ...]
"""Hierarchical cache key, e.g. ("product", "p-1")."""

type OnDone = Callable[[], None]
"""Completion callback fired once a poll observes a terminal status."""

type Listener[S] = Callable[[S], None]
"""State subscriber."""

type Unsubscribe = Callable[[], None]

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Type aliases
    "Lazy",
    "ResourceId",
    "QueryKey",
    "OnDone",
    "Listener",
    "Unsubscribe",
)
