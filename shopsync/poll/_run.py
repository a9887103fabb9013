"""
Poller — watch a resource's processing status until it settles.

One Poller per UI surface. It holds its own in-flight flag, so two
independent pollers can run side by side while a single poller runs at
most one loop at a time.
"""

from __future__ import annotations

import logging

from kungfu import Ok, Error
from combinators import lift as L

from shopsync._types import OnDone, ResourceId
from shopsync.cache import InvalidationSink, invalidate_resource
from shopsync.domain import FetchError, Product, ProcessingStatus, ProductSource
from shopsync.poll._clock import Clock, SystemClock
from shopsync.poll._policy import PollPolicy
from shopsync.poll._types import PollOutcome, PollReport, PollTarget

logger = logging.getLogger(__name__)


class Poller:
    """
    Bounded exponential-backoff poller.

    Example:
        poller = Poller(product_api)
        report = await poller.start_poll(product_id, sink, on_done=refresh)

        match report.outcome:
            case PollOutcome.TIMED_OUT:
                notifier.error("Still processing", "Images are taking a while.")
    """

    def __init__(
        self,
        source: ProductSource,
        policy: PollPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._source = source
        self._policy = policy or PollPolicy()
        self._clock = clock or SystemClock()
        self._active: PollTarget | None = None

    @property
    def policy(self) -> PollPolicy:
        return self._policy

    @property
    def active(self) -> PollTarget | None:
        """Live loop state, None when idle."""
        return self._active

    @property
    def is_polling(self) -> bool:
        return self._active is not None

    async def start_poll(
        self,
        resource_id: ResourceId,
        sink: InvalidationSink,
        on_done: OnDone | None = None,
    ) -> PollReport:
        """
        Poll until terminal status, disappearance or timeout.

        A call made while another poll is active returns BUSY at once;
        it is neither queued nor cancels the running loop.
        """
        if not resource_id:
            return PollReport(PollOutcome.SKIPPED, resource_id)
        if self._active is not None:
            logger.debug(
                "poll for %s ignored, %s in flight",
                resource_id,
                self._active.resource_id,
            )
            return PollReport(PollOutcome.BUSY, resource_id)

        target = PollTarget(
            resource_id=resource_id,
            started_at=self._clock.now(),
            current_delay=self._policy.initial_delay_ms,
        )
        self._active = target
        try:
            report = await self._loop(target, sink, on_done)
        finally:
            self._active = None

        logger.info(
            "poll %s ended: %s after %d attempts",
            resource_id,
            report.outcome.name.lower(),
            report.attempts,
        )
        return report

    # ───────────────────────────────────────────────────────────────────────────

    async def _loop(
        self,
        target: PollTarget,
        sink: InvalidationSink,
        on_done: OnDone | None,
    ) -> PollReport:
        budget = self._policy.timeout.total_seconds()

        while self._elapsed(target) < budget:
            target.attempt += 1
            fetched = await L.catching_async(
                lambda: self._source.get_product(target.resource_id),
                on_error=lambda e: FetchError(str(e), e),
            )

            match fetched:
                case Ok(Ok(None)):
                    return self._report(PollOutcome.VANISHED, target)
                case Ok(Ok(product)) if product.processing_finished:
                    await self._finish(target, sink, on_done)
                    return self._report(_outcome_for(product), target)
                case Ok(Error(err)) | Error(err):
                    # transient: try again after the normal backoff step
                    logger.debug(
                        "poll %s attempt %d failed: %s",
                        target.resource_id,
                        target.attempt,
                        err.message,
                    )
                case _:
                    pass

            await self._clock.sleep(target.current_delay / 1000)
            target.current_delay = self._policy.next_delay_ms(target.current_delay)

        return self._report(PollOutcome.TIMED_OUT, target)

    async def _finish(
        self,
        target: PollTarget,
        sink: InvalidationSink,
        on_done: OnDone | None,
    ) -> None:
        match await invalidate_resource(sink, target.resource_id):
            case Error(e):
                logger.warning(
                    "invalidation for %s failed: %s", target.resource_id, e.message
                )
            case _:
                pass

        if on_done is not None:
            try:
                on_done()
            except Exception:
                logger.exception("on_done callback for %s raised", target.resource_id)

    def _elapsed(self, target: PollTarget) -> float:
        return self._clock.now() - target.started_at

    def _report(self, outcome: PollOutcome, target: PollTarget) -> PollReport:
        return PollReport(
            outcome=outcome,
            resource_id=target.resource_id,
            attempts=target.attempt,
            elapsed=self._elapsed(target),
        )


def _outcome_for(product: Product) -> PollOutcome:
    if product.image_processing_status is ProcessingStatus.FAILED:
        return PollOutcome.FAILED
    return PollOutcome.COMPLETED


__all__ = ("Poller",)
