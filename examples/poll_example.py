"""
Poll — wait for background image processing, then refresh caches.

Key concepts:
- One Poller per UI surface; a second start_poll while busy is ignored
- Backoff: 1s → 1.5s → 2.25s → 3.375s → 5s (capped), 2 minute budget
- Terminal status → invalidate list + detail entries → on_done

Level 3: shopsync.poll
Level 2: shopsync.cache
Level 1: kungfu.Result
"""

import asyncio
from datetime import timedelta

from shopsync import cache as C
from shopsync import poll as P
from examples._infra import SHIRT, SlowImages, banner, run


# ═══════════════════════════════════════════════════════════════════════════════
# 1. POLICY — shortened so the example finishes quickly
# ═══════════════════════════════════════════════════════════════════════════════

policy = (
    P.PollPolicy()
    .with_initial_delay(delta=timedelta(milliseconds=100))
    .with_max_delay(seconds=0.5)
    .with_timeout(seconds=5)
)


async def main() -> None:
    banner("Poll: Processing Status → Cache Invalidation")

    cache = C.QueryCache()
    cache.set(C.PRODUCTS_KEY, [SHIRT])
    cache.set(C.product_key(SHIRT.id), SHIRT)
    sink = C.ResourceInvalidation(cache)

    source = SlowImages(ready_after=3)
    poller = P.Poller(source, policy)

    print(f"\n1. Schedule: {[d for d, _ in zip(policy.delays(), range(6))]} ms")

    print("\n2. Start polling; a second call on the same poller is ignored:")
    first = asyncio.create_task(
        poller.start_poll(SHIRT.id, sink, on_done=lambda: print("  [UI] refresh gallery"))
    )
    await asyncio.sleep(0)
    busy = await poller.start_poll(SHIRT.id, sink)
    print(f"   second call → {busy.outcome.name}")

    report = await first
    print(f"   first call  → {report.outcome.name} after {report.attempts} reads")

    print("\n3. Cache entries are now stale:")
    print(f"   products list stale={cache.is_stale(C.PRODUCTS_KEY)}")
    print(f"   product detail stale={cache.is_stale(C.product_key(SHIRT.id))}")

    print("\n4. Unknown product stops silently:")
    gone = await P.Poller(SlowImages(), policy).start_poll("p-deleted", sink)
    print(f"   → {gone.outcome.name}, invalidated={gone.outcome.invalidated}")

    print("\nDone!")


if __name__ == "__main__":
    run(main)
