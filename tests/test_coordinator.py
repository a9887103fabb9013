"""Tests for the optimistic mutation coordinator.

Backends are in-memory; a gate Event holds mutations at the "network"
so tests can look at the tentative state while a request is in flight.
"""

import asyncio
from dataclasses import dataclass, field

import pytest
from kungfu import Ok

from shopsync.cache import QueryCache, product_key
from shopsync.domain import CollectionKind, MutationError, MutationErrorKind
from shopsync.notify import Level, Notification, NotificationLog
from shopsync.optimistic import Coordinator, MutationKind, Phase, is_temp_id
from shopsync.store import CollectionState, Store

from tests.fakes import FakeBackend, error_value, line_item, ok_value, product


@dataclass
class Harness:
    coordinator: Coordinator
    backend: FakeBackend
    log: NotificationLog
    cache: QueryCache
    events: list = field(default_factory=list)

    def phases(self):
        return [(kind, phase) for kind, phase, _, _ in self.events]

    def at(self, phase):
        """(state, backend mutation count) captured when phase was emitted."""
        for _, p, state, calls in self.events:
            if p is phase:
                return state, calls
        raise AssertionError(f"{phase} never emitted")


def harness(backend=None, kind=CollectionKind.CART) -> Harness:
    backend = backend or FakeBackend(kind)
    log = NotificationLog()
    cache = QueryCache()
    events = []
    h = None

    def observe(mutation, phase):
        events.append(
            (mutation, phase, h.coordinator.state, len(backend.mutation_calls()))
        )

    coordinator = Coordinator(
        kind,
        backend=backend,
        store=Store(CollectionState()),
        notifier=log,
        cache=cache,
        observer=observe,
    )
    h = Harness(coordinator, backend, log, cache, events)
    return h


async def settle_tasks():
    for _ in range(5):
        await asyncio.sleep(0)


def success(text):
    return Notification(Level.SUCCESS, text)


def error(text):
    return Notification(Level.ERROR, "Error", text)


# ---------------------------------------------------------------------------
# Optimistic visibility
# ---------------------------------------------------------------------------

class TestOptimisticApply:
    def test_item_visible_before_request_completes(self):
        async def scenario():
            gate = asyncio.Event()
            h = harness(FakeBackend(gate=gate))
            await h.coordinator.initialize()

            task = asyncio.create_task(
                h.coordinator.add("p-1", "v-1", 1, product=product())
            )
            await settle_tasks()
            during = h.coordinator.state
            gate.set()
            result = await task
            return h, during, result

        h, during, result = asyncio.run(scenario())

        [tentative] = during.items
        assert is_temp_id(tentative.id)
        assert tentative.name == "Linen Shirt"
        assert tentative.price == 49.0
        assert during.is_loading

        state, calls = h.at(Phase.APPLIED)
        assert calls == 0
        assert len(state.items) == 1

        assert [i.id for i in ok_value(result).items] == ["srv-1"]
        assert [i.id for i in h.coordinator.state.items] == ["srv-1"]
        assert h.coordinator.state.pending == ()
        assert not h.coordinator.state.is_loading
        assert h.log.items == (success("Product p-1 added to cart."),)

    def test_unknown_product_gets_placeholder(self):
        h = harness()
        asyncio.run(h.coordinator.add("p-1", "v-1", 1))
        state, _ = h.at(Phase.APPLIED)
        assert state.items[0].name == "Unknown Product"
        assert state.items[0].price == 0

    def test_product_looked_up_from_cache(self):
        h = harness()
        h.cache.set(product_key("p-1"), product())
        asyncio.run(h.coordinator.add("p-1", "v-2", 1))
        state, _ = h.at(Phase.APPLIED)
        assert state.items[0].name == "Linen Shirt"
        assert state.items[0].price == 52.0

    def test_add_before_initial_load(self):
        h = harness()
        result = asyncio.run(h.coordinator.add("p-1", "v-1", 1))
        assert ok_value(result).total_items == 1
        assert h.coordinator.state.loaded

    def test_add_rejects_non_positive_quantity(self):
        h = harness()
        with pytest.raises(ValueError):
            asyncio.run(h.coordinator.add("p-1", "v-1", 0))
        assert h.backend.calls == []
        assert h.coordinator.in_flight == 0


# ---------------------------------------------------------------------------
# Rollback
# ---------------------------------------------------------------------------

class TestRollback:
    def test_failed_add_restores_snapshot(self):
        async def scenario():
            backend = FakeBackend(
                items=(line_item("a-1"),),
                fail=MutationError(MutationErrorKind.REJECTED, "Out of stock", 400),
            )
            h = harness(backend)
            await h.coordinator.initialize()
            before = h.coordinator.state
            result = await h.coordinator.add("p-2", "v-1", 1)
            return h, before, result

        h, before, result = asyncio.run(scenario())

        assert error_value(result).status == 400
        rolled_back, _ = h.at(Phase.ROLLED_BACK)
        assert rolled_back.collection is before.collection
        assert rolled_back.ids is before.ids
        assert rolled_back.pending == ()
        assert h.coordinator.state.items == before.items
        assert h.log.items == (error("Out of stock"),)

    def test_fallback_message_when_server_gives_none(self):
        backend = FakeBackend(fail=MutationError(MutationErrorKind.NETWORK))
        h = harness(backend)
        asyncio.run(h.coordinator.add("p-1", "v-1", 1))
        assert h.log.items == (error("Failed to add item."),)
        assert h.coordinator.state.items == ()

    def test_wishlist_fallback_wording(self):
        backend = FakeBackend(
            CollectionKind.WISHLIST, fail=MutationError(MutationErrorKind.NETWORK)
        )
        h = harness(backend, CollectionKind.WISHLIST)
        asyncio.run(h.coordinator.add("p-1", "v-1"))
        assert h.log.items == (error("Failed to add item to wishlist."),)

    def test_raising_backend_rolls_back(self):
        class Exploding(FakeBackend):
            async def add(self, product_id, variant_id, quantity):
                raise ConnectionError("reset by peer")

        h = harness(Exploding())
        err = error_value(asyncio.run(h.coordinator.add("p-1", "v-1", 1)))
        assert err.kind is MutationErrorKind.NETWORK
        assert h.coordinator.state.items == ()
        assert h.log.items == (error("Failed to add item."),)

    def test_malformed_payload_rolls_back(self):
        class Garbage(FakeBackend):
            async def add(self, product_id, variant_id, quantity):
                return Ok({"cart": "not a cart"})

        h = harness(Garbage())
        err = error_value(asyncio.run(h.coordinator.add("p-1", "v-1", 1)))
        assert err.kind is MutationErrorKind.MALFORMED
        assert h.coordinator.state.items == ()
        assert len(h.log.items) == 1

    def test_phase_order(self):
        ok = harness()
        asyncio.run(ok.coordinator.add("p-1", "v-1", 1))
        assert ok.phases() == [
            (MutationKind.ADD, Phase.APPLIED),
            (MutationKind.ADD, Phase.CONFIRMED),
            (MutationKind.ADD, Phase.SETTLED),
        ]

        failed = harness(FakeBackend(fail=MutationError(MutationErrorKind.NETWORK)))
        asyncio.run(failed.coordinator.add("p-1", "v-1", 1))
        assert failed.phases() == [
            (MutationKind.ADD, Phase.APPLIED),
            (MutationKind.ADD, Phase.ROLLED_BACK),
            (MutationKind.ADD, Phase.SETTLED),
        ]

    def test_settled_entries_are_recorded(self):
        h = harness(FakeBackend(fail=MutationError(MutationErrorKind.NETWORK)))
        asyncio.run(h.coordinator.add("p-1", "v-1", 1))
        [entry] = h.coordinator.recent_entries
        assert entry.key == ("p-1", "v-1")
        assert entry.state.name == "ROLLED_BACK"


# ---------------------------------------------------------------------------
# Confirmation and settle
# ---------------------------------------------------------------------------

class TestConfirm:
    def test_server_collection_replaces_local(self):
        async def scenario():
            backend = FakeBackend(items=(line_item("a-1", "p-1"), line_item("a-2", "p-2")))
            h = harness(backend)
            await h.coordinator.initialize()
            result = await h.coordinator.add("p-3", "v-1", 1)
            return h, result

        h, result = asyncio.run(scenario())

        confirmed, _ = h.at(Phase.CONFIRMED)
        assert [i.id for i in confirmed.items] == ["a-1", "a-2", "srv-1"]
        assert confirmed.collection is ok_value(result)
        assert not any(is_temp_id(i.id) for i in h.coordinator.state.items)
        assert h.log.items == (success("Product p-3 added to cart."),)

    def test_settle_invalidates_and_refetches(self):
        async def scenario():
            h = harness()
            await h.coordinator.initialize()
            await h.coordinator.add("p-1", "v-1", 1)
            return h

        h = asyncio.run(scenario())
        assert h.backend.calls == [("fetch",), ("add", "p-1", "v-1", 1), ("fetch",)]
        assert h.coordinator.in_flight == 0

    def test_rapid_adds_of_same_key_converge_to_one_entry(self):
        async def scenario():
            gate = asyncio.Event()
            h = harness(FakeBackend(gate=gate))
            await h.coordinator.initialize()

            first = asyncio.create_task(h.coordinator.add("p-1", "v-1", 1))
            second = asyncio.create_task(h.coordinator.add("p-1", "v-1", 1))
            await settle_tasks()
            during = h.coordinator.state
            gate.set()
            await asyncio.gather(first, second)
            return h, during

        h, during = asyncio.run(scenario())

        [tentative] = during.items
        assert tentative.quantity == 2
        assert len(during.pending) == 1

        [item] = h.coordinator.state.items
        assert item.id == "srv-1"
        assert item.quantity == 2
        assert h.coordinator.state.pending == ()
        assert not h.coordinator.state.is_loading
        assert len(h.log.items) == 2

    def test_wishlist_double_add_keeps_one_entry(self):
        async def scenario():
            gate = asyncio.Event()
            h = harness(FakeBackend(CollectionKind.WISHLIST, gate=gate), CollectionKind.WISHLIST)
            first = asyncio.create_task(h.coordinator.add("p-1", "v-1"))
            second = asyncio.create_task(h.coordinator.add("p-1", "v-1"))
            await settle_tasks()
            during = h.coordinator.state
            gate.set()
            await asyncio.gather(first, second)
            return h, during

        h, during = asyncio.run(scenario())
        assert len(during.items) == 1
        assert [i.id for i in h.coordinator.state.items] == ["srv-1"]
        assert h.log.items[0] == success("Product p-1 added to wishlist.")


# ---------------------------------------------------------------------------
# Remove / update / clear
# ---------------------------------------------------------------------------

class TestOtherMutations:
    def test_remove_server_item(self):
        async def scenario():
            h = harness(FakeBackend(items=(line_item("a-1"), line_item("a-2", "p-2"))))
            await h.coordinator.initialize()
            await h.coordinator.remove("a-1")
            return h

        h = asyncio.run(scenario())
        assert [i.id for i in h.coordinator.state.items] == ["a-2"]
        assert ("remove", "a-1") in h.backend.calls
        assert h.log.items == (success("Item removed from cart."),)

    def test_remove_of_temp_id_waits_for_confirmation(self):
        async def scenario():
            gate = asyncio.Event()
            h = harness(FakeBackend(gate=gate))
            await h.coordinator.initialize()

            adding = asyncio.create_task(h.coordinator.add("p-1", "v-1", 1))
            await settle_tasks()
            [tentative] = h.coordinator.state.items
            removing = asyncio.create_task(h.coordinator.remove(tentative.id))
            await settle_tasks()
            hidden = h.coordinator.state
            gate.set()
            await asyncio.gather(adding, removing)
            return h, hidden

        h, hidden = asyncio.run(scenario())
        assert hidden.items == ()
        assert h.backend.mutation_calls() == [
            ("add", "p-1", "v-1", 1),
            ("remove", "srv-1"),
        ]
        assert h.coordinator.state.items == ()
        assert h.backend.items == []

    def test_remove_of_rolled_back_temp_id_skips_network(self):
        async def scenario():
            gate = asyncio.Event()
            backend = FakeBackend(
                gate=gate, fail=MutationError(MutationErrorKind.REJECTED, "Sold out")
            )
            h = harness(backend)
            adding = asyncio.create_task(h.coordinator.add("p-1", "v-1", 1))
            await settle_tasks()
            [tentative] = h.coordinator.state.items
            removing = asyncio.create_task(h.coordinator.remove(tentative.id))
            await settle_tasks()
            gate.set()
            results = await asyncio.gather(adding, removing)
            return h, results

        h, (added, removed) = asyncio.run(scenario())
        assert error_value(added).message == "Sold out"
        ok_value(removed)
        assert h.backend.mutation_calls() == [("add", "p-1", "v-1", 1)]
        assert h.coordinator.state.items == ()

    def test_update_quantity(self):
        async def scenario():
            h = harness(FakeBackend(items=(line_item("a-1", quantity=1),)))
            await h.coordinator.initialize()
            await h.coordinator.update_quantity("a-1", 3)
            return h

        h = asyncio.run(scenario())
        applied, _ = h.at(Phase.APPLIED)
        assert applied.items[0].quantity == 3
        assert h.coordinator.state.items[0].quantity == 3
        assert h.log.items == (success("Quantity updated."),)

    def test_update_quantity_below_one_is_noop(self):
        async def scenario():
            h = harness(FakeBackend(items=(line_item("a-1", quantity=2),)))
            await h.coordinator.initialize()
            before = h.coordinator.state
            await h.coordinator.update_quantity("a-1", 0)
            return h, before

        h, before = asyncio.run(scenario())
        assert h.coordinator.state is before
        assert h.backend.mutation_calls() == []
        assert h.log.items == ()
        assert h.events == []

    def test_wishlist_quantity_update_is_unsupported_without_applying(self):
        async def scenario():
            backend = FakeBackend(
                CollectionKind.WISHLIST, items=(line_item("w-1", quantity=None),)
            )
            h = harness(backend, CollectionKind.WISHLIST)
            await h.coordinator.initialize()
            before = h.coordinator.state
            result = await h.coordinator.update_quantity("w-1", 3)
            return h, before, result

        h, before, result = asyncio.run(scenario())
        assert error_value(result).kind is MutationErrorKind.UNSUPPORTED
        assert h.coordinator.state is before
        assert h.coordinator.state.items[0].quantity is None
        assert h.backend.mutation_calls() == []
        assert h.log.items == ()
        assert h.events == []

    def test_failed_update_restores_quantity(self):
        async def scenario():
            backend = FakeBackend(items=(line_item("a-1", quantity=2),))
            h = harness(backend)
            await h.coordinator.initialize()
            backend.fail = MutationError(MutationErrorKind.REJECTED, "Only 2 left", 400)
            await h.coordinator.update_quantity("a-1", 5)
            return h

        h = asyncio.run(scenario())
        assert h.coordinator.state.items[0].quantity == 2
        assert h.log.items == (error("Only 2 left"),)

    def test_clear(self):
        async def scenario():
            h = harness(FakeBackend(items=(line_item("a-1"), line_item("a-2", "p-2"))))
            await h.coordinator.initialize()
            await h.coordinator.clear()
            return h

        h = asyncio.run(scenario())
        applied, calls = h.at(Phase.APPLIED)
        assert applied.items == ()
        assert calls == 0
        assert h.coordinator.state.items == ()
        assert h.log.items == (success("Cart cleared."),)

    def test_failed_clear_restores_items(self):
        async def scenario():
            backend = FakeBackend(items=(line_item("a-1"), line_item("a-2", "p-2")))
            h = harness(backend)
            await h.coordinator.initialize()
            backend.fail = MutationError(MutationErrorKind.NETWORK)
            await h.coordinator.clear()
            return h

        h = asyncio.run(scenario())
        assert [i.id for i in h.coordinator.state.items] == ["a-1", "a-2"]
        assert h.log.items == (error("Failed to clear cart."),)


# ---------------------------------------------------------------------------
# Initialize / reset
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_initialize_loads_once(self):
        async def scenario():
            h = harness(FakeBackend(items=(line_item("a-1"),)))
            first = await h.coordinator.initialize()
            second = await h.coordinator.initialize()
            return h, first, second

        h, first, second = asyncio.run(scenario())
        assert ok_value(first) is ok_value(second)
        assert h.backend.calls == [("fetch",)]
        assert not h.coordinator.state.is_loading

    def test_force_initialize_refetches(self):
        async def scenario():
            backend = FakeBackend()
            h = harness(backend)
            await h.coordinator.initialize()
            backend.items.append(line_item("a-9", "p-9"))
            await h.coordinator.initialize(force=True)
            return h

        h = asyncio.run(scenario())
        assert [i.id for i in h.coordinator.state.items] == ["a-9"]
        assert h.backend.calls == [("fetch",), ("fetch",)]

    def test_failed_load_sets_error(self):
        class Offline(FakeBackend):
            async def fetch(self):
                raise ConnectionError("offline")

        h = harness(Offline())
        error_value(asyncio.run(h.coordinator.initialize()))
        state = h.coordinator.state
        assert state.error == "Failed to load cart."
        assert not state.is_loading
        assert not state.loaded

    def test_reset_forgets_everything(self):
        async def scenario():
            h = harness(FakeBackend(items=(line_item("a-1"),)))
            await h.coordinator.initialize()
            await h.coordinator.reset()
            return h

        h = asyncio.run(scenario())
        assert h.coordinator.state == CollectionState()
        assert h.coordinator.query_key not in h.cache
        assert h.backend.mutation_calls() == []

    def test_subscribers_see_tentative_then_confirmed(self):
        h = harness()
        rendered = []
        unsubscribe = h.coordinator.subscribe(
            lambda s: rendered.append(tuple(i.id for i in s.items))
        )
        asyncio.run(h.coordinator.add("p-1", "v-1", 1))
        unsubscribe()

        assert is_temp_id(rendered[0][0])
        assert rendered[-1] == ("srv-1",)

    def test_reset_releases_remove_waiting_on_temp_id(self):
        async def scenario():
            gate = asyncio.Event()
            h = harness(FakeBackend(gate=gate))
            await h.coordinator.initialize()

            adding = asyncio.create_task(h.coordinator.add("p-1", "v-1", 1))
            await settle_tasks()
            [tentative] = h.coordinator.state.items
            removing = asyncio.create_task(h.coordinator.remove(tentative.id))
            await settle_tasks()

            await h.coordinator.reset()
            gate.set()
            removed = await asyncio.wait_for(removing, 1.0)
            await adding
            return h, removed

        h, removed = asyncio.run(scenario())
        ok_value(removed)
        assert h.backend.mutation_calls() == [("add", "p-1", "v-1", 1)]
        assert h.coordinator.state == CollectionState()
        assert h.coordinator.in_flight == 0
        settled = sorted(k.name for k, phase in h.phases() if phase is Phase.SETTLED)
        assert settled == ["ADD", "REMOVE"]

    def test_answer_after_reset_does_not_restore_state(self):
        async def scenario():
            gate = asyncio.Event()
            h = harness(FakeBackend(gate=gate))
            await h.coordinator.initialize()

            adding = asyncio.create_task(h.coordinator.add("p-1", "v-1", 1))
            await settle_tasks()
            await h.coordinator.reset()
            gate.set()
            result = await adding
            return h, result

        h, result = asyncio.run(scenario())
        assert [i.id for i in ok_value(result).items] == ["srv-1"]
        assert h.coordinator.state == CollectionState()
        assert h.coordinator.query_key not in h.cache
        assert h.coordinator.in_flight == 0
        assert h.log.items == ()
        assert Phase.CONFIRMED not in [phase for _, phase in h.phases()]

    def test_mutations_after_reset_work_normally(self):
        async def scenario():
            h = harness()
            await h.coordinator.initialize()
            await h.coordinator.reset()
            await h.coordinator.add("p-1", "v-1", 1)
            return h

        h = asyncio.run(scenario())
        assert [i.id for i in h.coordinator.state.items] == ["srv-1"]
        assert h.coordinator.in_flight == 0
        assert not h.coordinator.state.is_loading
