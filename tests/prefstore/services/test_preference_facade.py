"""Tests for mode switching and notification in :class:`PreferenceFacade`."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio

from prefstore.errors import RemoteWriteError
from prefstore.remote.base import SessionIdentityProvider
from prefstore.remote.memory import InMemoryRemoteStore
from prefstore.schemas.preferences import PreferenceMode
from prefstore.services.facade import PreferenceFacade
from prefstore.services.preference_store import LocalOnlyStore


class GatedRemoteStore(InMemoryRemoteStore):
    """Remote store whose profile reads can be held open per user."""

    def __init__(self) -> None:
        super().__init__()
        self.gates: dict[str, asyncio.Event] = {}
        self.fail_writes = False

    async def read_profile(self, user_id: str) -> dict[str, Any]:
        gate = self.gates.get(user_id)
        if gate is not None:
            await gate.wait()
        return await super().read_profile(user_id)

    async def add(self, user_id: str, document: dict[str, Any]) -> str:
        if self.fail_writes:
            raise ConnectionError("remote offline")
        return await super().add(user_id, document)


@pytest.fixture
def remote() -> GatedRemoteStore:
    return GatedRemoteStore()


@pytest.fixture
def identity() -> SessionIdentityProvider:
    return SessionIdentityProvider()


@pytest_asyncio.fixture
async def facade(collection, remote, identity) -> AsyncIterator[PreferenceFacade]:
    facade = PreferenceFacade(
        local_store=LocalOnlyStore(collection),
        remote=remote,
        identity=identity,
    )
    await facade.start()
    try:
        yield facade
    finally:
        await facade.close()


@pytest.mark.asyncio
async def test_starts_in_local_mode(facade) -> None:
    assert facade.mode is PreferenceMode.LOCAL
    assert facade.user_id is None
    assert facade.is_authenticated is False


@pytest.mark.asyncio
async def test_sign_in_switches_to_remote_state(facade, identity, remote, make_hotel) -> None:
    await facade.add_favorite(make_hotel("guest-pick", "Guest Pick"))
    await remote.add("alice", {"id": "h1", "name": "Alice Pick"})

    await identity.sign_in("alice")

    assert facade.mode is PreferenceMode.REMOTE
    assert facade.user_id == "alice"
    assert [entry.id for entry in await facade.list_favorites()] == ["h1"]


@pytest.mark.asyncio
async def test_sign_out_returns_to_local_cache(facade, identity, make_hotel) -> None:
    await facade.add_favorite(make_hotel("guest-pick"))
    await identity.sign_in("alice")
    await facade.add_favorite(make_hotel("alice-pick"))

    await identity.sign_out()

    assert facade.mode is PreferenceMode.LOCAL
    assert [entry.id for entry in await facade.list_favorites()] == ["guest-pick"]


@pytest.mark.asyncio
async def test_sign_out_can_clear_local_cache(collection, remote, identity, make_hotel) -> None:
    facade = PreferenceFacade(
        local_store=LocalOnlyStore(collection),
        remote=remote,
        identity=identity,
        clear_local_on_sign_out=True,
    )
    await facade.start()
    await facade.add_favorite(make_hotel("guest-pick"))
    await identity.sign_in("alice")

    await identity.sign_out()

    assert await facade.list_favorites() == []
    await facade.close()


@pytest.mark.asyncio
async def test_re_sign_in_reloads_from_remote(facade, identity, make_hotel) -> None:
    await identity.sign_in("alice")
    await facade.add_favorite(make_hotel("h1", "Saved"))
    await identity.sign_out()

    await identity.sign_in("alice")

    assert [entry.name for entry in await facade.list_favorites()] == ["Saved"]


@pytest.mark.asyncio
async def test_starting_with_signed_in_identity_loads_remote(collection, remote) -> None:
    await remote.add("bob", {"id": "b1", "name": "Bob Pick"})
    identity = SessionIdentityProvider("bob")
    facade = PreferenceFacade(
        local_store=LocalOnlyStore(collection), remote=remote, identity=identity
    )

    await facade.start()

    assert facade.is_authenticated
    assert [entry.id for entry in await facade.list_favorites()] == ["b1"]
    await facade.close()


@pytest.mark.asyncio
async def test_stale_identity_load_is_discarded(facade, identity, remote) -> None:
    await remote.add("alice", {"id": "a1", "name": "Alice Pick"})
    await remote.add("bob", {"id": "b1", "name": "Bob Pick"})
    remote.gates["alice"] = asyncio.Event()

    alice_sign_in = asyncio.create_task(identity.sign_in("alice"))
    await asyncio.sleep(0)
    await identity.sign_in("bob")
    remote.gates["alice"].set()
    await alice_sign_in

    assert facade.user_id == "bob"
    assert [entry.id for entry in await facade.list_favorites()] == ["b1"]


@pytest.mark.asyncio
async def test_listeners_notified_on_mutations_and_transitions(
    facade, identity, make_hotel
) -> None:
    notifications: list[int] = []
    unsubscribe = facade.subscribe(lambda: notifications.append(1))

    await facade.add_favorite(make_hotel("h1"))
    await facade.toggle_favorite(make_hotel("h1"))
    await facade.remove_favorite("h1")
    await facade.add_recent_search("rome")
    assert len(notifications) == 2

    await identity.sign_in("alice")
    assert len(notifications) == 3

    unsubscribe()
    await facade.add_favorite(make_hotel("h2"))
    assert len(notifications) == 3


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_a_mutation(facade, make_hotel, caplog) -> None:
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("listener exploded")

    facade.subscribe(lambda: calls.append("first"))
    facade.subscribe(broken)
    facade.subscribe(lambda: calls.append("third"))

    added = await facade.add_favorite(make_hotel("h1", "Still Saved"))
    toggled = await facade.toggle_favorite(make_hotel("h1"))

    assert added.name == "Still Saved"
    assert toggled is False
    assert calls == ["first", "third", "first", "third"]
    assert "listener exploded" in caplog.text


@pytest.mark.asyncio
async def test_remote_failure_raises_without_notifying(facade, identity, remote, make_hotel) -> None:
    await identity.sign_in("alice")
    notifications: list[int] = []
    facade.subscribe(lambda: notifications.append(1))
    remote.fail_writes = True

    with pytest.raises(RemoteWriteError):
        await facade.add_favorite(make_hotel("h1"))

    assert notifications == []
    assert await facade.is_favorited("h1")


@pytest.mark.asyncio
async def test_recent_searches_follow_the_active_store(facade, identity) -> None:
    await facade.add_recent_search("guest search")
    await identity.sign_in("alice")

    assert facade.recent_searches() == []
    await facade.add_recent_search("alice search")
    assert facade.recent_searches() == ["alice search"]


@pytest.mark.asyncio
async def test_guest_recent_searches_do_not_survive_a_session(facade, identity, make_hotel) -> None:
    await facade.add_favorite(make_hotel("guest-pick"))
    await facade.add_recent_search("guest query")

    await identity.sign_in("alice")
    await identity.sign_out()

    assert facade.recent_searches() == []
    assert [entry.id for entry in await facade.list_favorites()] == ["guest-pick"]


@pytest.mark.asyncio
async def test_require_action_picks_callee_by_authentication(facade, identity) -> None:
    assert facade.require_action(lambda: "action", lambda: "fallback") == "fallback"

    await identity.sign_in("alice")

    assert facade.require_action(lambda: "action", lambda: "fallback") == "action"


@pytest.mark.asyncio
async def test_close_stops_following_identity(facade, identity) -> None:
    await facade.close()

    await identity.sign_in("alice")

    assert facade.mode is PreferenceMode.LOCAL
