"""
Poll — wait for asynchronous server work to finish.

    from shopsync import poll as P

    poller = P.Poller(product_api, P.PollPolicy().with_timeout(minutes=2))
    report = await poller.start_poll(product_id, sink, on_done=close_dialog)
"""

from __future__ import annotations

from shopsync.poll._types import PollOutcome, PollTarget, PollReport
from shopsync.poll._policy import PollPolicy, round_half_up
from shopsync.poll._clock import Clock, SystemClock
from shopsync.poll._run import Poller

__all__ = (
    "PollOutcome",
    "PollTarget",
    "PollReport",
    "PollPolicy",
    "round_half_up",
    "Clock",
    "SystemClock",
    "Poller",
)
