"""
Poll types — live target and final report.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from shopsync._types import ResourceId


class PollOutcome(Enum):
    """
    How a start_poll call ended.

    COMPLETED / FAILED: terminal status observed, caches invalidated.
    VANISHED: resource not found, nothing invalidated.
    TIMED_OUT: budget exhausted while still pending.
    BUSY: another poll is active on this poller, call ignored.
    SKIPPED: empty resource id.
    """

    COMPLETED = auto()
    FAILED = auto()
    VANISHED = auto()
    TIMED_OUT = auto()
    BUSY = auto()
    SKIPPED = auto()

    @property
    def invalidated(self) -> bool:
        return self in (PollOutcome.COMPLETED, PollOutcome.FAILED)


@dataclass(slots=True)
class PollTarget:
    """Live state of the active poll loop."""

    resource_id: ResourceId
    started_at: float
    current_delay: int  # ms
    attempt: int = 0


@dataclass(frozen=True, slots=True)
class PollReport:
    """Result of start_poll. elapsed is in seconds."""

    outcome: PollOutcome
    resource_id: ResourceId
    attempts: int = 0
    elapsed: float = 0.0


__all__ = ("PollOutcome", "PollTarget", "PollReport")
