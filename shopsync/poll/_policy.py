"""
Poll policy — backoff and timeout configuration.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import timedelta


def _ms(delta: timedelta) -> int:
    return round(delta.total_seconds() * 1000)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 → 3, not 2)."""
    return math.floor(value + 0.5)


# ═══════════════════════════════════════════════════════════════════════════════
# PollPolicy — Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PollPolicy:
    """
    Bounded exponential backoff.

    Fluent builder pattern — chain methods to configure.

    Example:
        policy = (
            PollPolicy()
            .with_initial_delay(seconds=1)
            .with_max_delay(seconds=5)
            .with_timeout(minutes=2)
        )

    Note: Immutable — each method returns new PollPolicy.
    """

    initial_delay: timedelta = timedelta(seconds=1)
    factor: float = 1.5
    max_delay: timedelta = timedelta(seconds=5)
    timeout: timedelta = timedelta(minutes=2)

    def __post_init__(self) -> None:
        if self.initial_delay <= timedelta(0):
            raise ValueError("initial_delay must be positive")
        if self.factor < 1:
            raise ValueError("factor must be >= 1")
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        if self.timeout <= timedelta(0):
            raise ValueError("timeout must be positive")

    def with_initial_delay(
        self, *, seconds: float | None = None, delta: timedelta | None = None
    ) -> PollPolicy:
        return replace(self, initial_delay=_delta(seconds, delta))

    def with_max_delay(
        self, *, seconds: float | None = None, delta: timedelta | None = None
    ) -> PollPolicy:
        return replace(self, max_delay=_delta(seconds, delta))

    def with_factor(self, factor: float) -> PollPolicy:
        return replace(self, factor=factor)

    def with_timeout(
        self,
        *,
        seconds: float | None = None,
        minutes: float | None = None,
        delta: timedelta | None = None,
    ) -> PollPolicy:
        """
        Set the total wall-clock budget.

        Example:
            .with_timeout(minutes=2)
            .with_timeout(seconds=30)
        """
        if delta is None and minutes is not None:
            delta = timedelta(minutes=minutes)
        return replace(self, timeout=_delta(seconds, delta))

    @property
    def initial_delay_ms(self) -> int:
        return _ms(self.initial_delay)

    @property
    def max_delay_ms(self) -> int:
        return _ms(self.max_delay)

    @property
    def timeout_ms(self) -> int:
        return _ms(self.timeout)

    def next_delay_ms(self, delay_ms: int) -> int:
        return min(self.max_delay_ms, round_half_up(delay_ms * self.factor))

    def delays(self) -> Iterator[int]:
        """
        Infinite backoff schedule in milliseconds.

        With defaults: 1000, 1500, 2250, 3375, 5000, 5000, ...
        """
        delay = self.initial_delay_ms
        while True:
            yield delay
            delay = self.next_delay_ms(delay)


def _delta(seconds: float | None, delta: timedelta | None) -> timedelta:
    if delta is not None:
        return delta
    if seconds is not None:
        return timedelta(seconds=seconds)
    raise ValueError("Must provide seconds or delta")


__all__ = ("PollPolicy", "round_half_up")
