import asyncio

from app.services.remote.base import BaseRemoteMirror
from app.services.remote.memory import InMemoryRemoteMirror
from app.state import SyncStatus, load_local_snapshot
from app.state.defaults import default_snapshot

KEY = "gab_eats_global_state"


class SilentMirror(BaseRemoteMirror):
    """Accepts a subscription but never delivers anything."""

    @property
    def provider_name(self) -> str:
        return "silent"

    async def read(self):
        return None

    async def write(self, document):
        return None

    async def subscribe(self, listener, on_error=None):
        async def unsubscribe():
            return None

        return unsubscribe

    async def health_check(self) -> bool:
        return True


def test_load_local_falls_back_to_seed(store, clock, settings):
    snapshot = load_local_snapshot(store, KEY, clock, settings=settings)

    assert snapshot.timestamp == clock()
    assert [r.id for r in snapshot.restaurants] == ["1"]
    assert [u.identifier for u in snapshot.users] == ["Ansar"]


def test_load_local_fills_missing_sections(store, clock, settings):
    store.set(KEY, {"orders": [], "_timestamp": 77})

    snapshot = load_local_snapshot(store, KEY, clock, settings=settings)

    assert snapshot.timestamp == 77
    assert [r.id for r in snapshot.restaurants] == ["1"]
    assert snapshot.settings.commissions.min_order_value == 200


def test_load_local_corrupt_document_uses_seed(store, clock, settings):
    store.set(KEY, {"restaurants": [{"id": "x"}], "_timestamp": 5})

    snapshot = load_local_snapshot(store, KEY, clock, settings=settings)

    assert snapshot.timestamp == clock()
    assert [r.id for r in snapshot.restaurants] == ["1"]


async def test_local_only_mode(make_state):
    state = make_state()
    assert state.initializing

    await state.start()

    assert not state.initializing
    assert state.sync_status == SyncStatus.LOCAL


async def test_absent_remote_document_is_bootstrapped(make_state, mirror):
    state = make_state(remote=mirror)

    await state.start()
    await state.gateway.flush()

    assert not state.initializing
    assert state.sync_status == SyncStatus.CLOUD_ACTIVE
    assert mirror.document == state.snapshot.to_document()


async def test_newer_remote_document_is_adopted_and_persisted(make_state, settings, clock):
    remote_snapshot = default_snapshot(timestamp=clock() + 10_000, settings=settings)
    remote_snapshot = remote_snapshot.model_copy(update={"restaurants": []})
    mirror = InMemoryRemoteMirror(document=remote_snapshot.to_document())
    state = make_state(remote=mirror)

    await state.start()

    assert state.snapshot.timestamp == remote_snapshot.timestamp
    assert state.restaurants == []
    assert state.store.get(KEY)["_timestamp"] == remote_snapshot.timestamp


async def test_older_remote_document_is_ignored(make_state, settings, clock):
    stale = default_snapshot(timestamp=clock() - 10_000, settings=settings)
    stale = stale.model_copy(update={"restaurants": []})
    mirror = InMemoryRemoteMirror(document=stale.to_document())
    state = make_state(remote=mirror)

    await state.start()

    assert state.snapshot.timestamp == clock()
    assert [r.id for r in state.restaurants] == ["1"]
    assert state.sync_status == SyncStatus.CLOUD_ACTIVE


async def test_own_echo_does_not_replace_live_snapshot(make_state, mirror, clock):
    state = make_state(remote=mirror)
    await state.start()
    await state.gateway.flush()
    replacements = []
    state.live.subscribe(replacements.append)

    assert state.login_staff("Ansar", "Anudada@007")
    clock.advance(100)
    state.create_restaurant("Echo Grill")
    await state.gateway.flush()

    assert len(replacements) == 1
    assert mirror.write_count == 2


async def test_invalid_remote_document_is_ignored(make_state, clock):
    mirror = InMemoryRemoteMirror(document={"restaurants": "nope", "users": [{"bad": 1}], "_timestamp": clock() + 1})
    state = make_state(remote=mirror)

    await state.start()

    assert state.snapshot.timestamp == clock()
    assert not state.initializing


async def test_unavailable_remote_falls_back_to_local(make_state, mirror):
    mirror.available = False
    state = make_state(remote=mirror)

    await state.start()

    assert not state.initializing
    assert state.sync_status == SyncStatus.ERROR

    state.login_customer("03001234567")
    state.add_menu_item_to_cart("1", "m1")
    order = state.place_order("Ali Ahmed", "Clifton Block 5")
    await state.gateway.flush()

    assert state.get_order(order.id).total == 450
    assert mirror.write_count == 0


async def test_silent_remote_times_out(make_state):
    state = make_state(remote=SilentMirror())

    await asyncio.wait_for(state.start(), timeout=2)

    assert not state.initializing
    assert state.sync_status == SyncStatus.CONNECTING


async def test_subscription_error_sets_error_status(make_state, mirror):
    state = make_state(remote=mirror)
    await state.start()

    state.reconciler.handle_remote_error(RuntimeError("connection reset"))

    assert state.sync_status == SyncStatus.ERROR
    assert not state.initializing


async def test_stop_unsubscribes(make_state, mirror):
    state = make_state(remote=mirror)
    await state.start()
    assert mirror.subscriber_count == 1

    await state.close()

    assert mirror.subscriber_count == 0
