"""
Tests for the room manager: lobby, seats, reconnects and timers.
"""

import random

import pytest

from econwars.exceptions import (
    DuplicateNameError,
    GameAlreadyStartedError,
    NotEnoughPlayersError,
    NotInRoomError,
    NotRoomCreatorError,
    PlayerKickedError,
    RoomError,
    RoomFullError,
    RoomNotFoundError,
    SavedGameNotFoundError,
)
from server.rooms import (
    HOST_ENDED_MESSAGE,
    ROOM_CODE_ALPHABET,
    ROOM_EXPIRED_MESSAGE,
    RoomManager,
    RoomStatus,
)
from server.settings import ServerSettings
from server.storage import SnapshotStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def drain(queue):
    out = []
    while not queue.empty():
        out.append(queue.get_nowait())
    return out


def types(messages):
    return [m["type"] for m in messages]


def make_settings(**overrides):
    values = dict(reconnect_grace_seconds=10, room_ttl_seconds=100, persist_snapshots=True)
    values.update(overrides)
    return ServerSettings(**values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(clock):
    return RoomManager(make_settings(), clock=clock, rng=random.Random(5))


@pytest.fixture
def lobby(manager):
    """Alice hosts, Bob joined; both outboxes drained."""
    qa = manager.connect("c-alice")
    qb = manager.connect("c-bob")
    room = manager.create_room("c-alice", "Alice", "alice-browser")
    manager.join_room("c-bob", room.code, "Bob", "bob-browser")
    drain(qa)
    drain(qb)
    return room, qa, qb


@pytest.fixture
def started(manager, lobby):
    room, qa, qb = lobby
    manager.start_game("c-alice")
    drain(qa)
    drain(qb)
    return room, qa, qb


def test_create_room(manager):
    queue = manager.connect("c1")
    room = manager.create_room("c1", "  Alice  ", "cid-1")

    assert len(room.code) == 5
    assert all(ch in ROOM_CODE_ALPHABET for ch in room.code)
    message = drain(queue)[0]
    assert message["type"] == "room-created"
    assert message["code"] == room.code
    assert message["players"] == ["Alice"]
    assert message["participants"][0]["is_host"]


def test_defaults_and_limits_on_names(manager):
    manager.connect("c1")
    room = manager.create_room("c1", "", "")
    member = room.ordered()[0]
    assert member.name == "Host"
    assert member.client_id == "legacy-c1"

    manager.connect("c2")
    manager.join_room("c2", room.code, "A" * 40, "x" * 100)
    joined = room.ordered()[1]
    assert joined.name == "A" * 16
    assert joined.client_id == "x" * 64


def test_join_notifies_everyone(manager):
    qa = manager.connect("c-alice")
    qb = manager.connect("c-bob")
    room = manager.create_room("c-alice", "Alice", "a")
    drain(qa)
    manager.join_room("c-bob", room.code.lower(), "Bob", "b")

    assert types(drain(qb)) == ["joined"]
    joined = drain(qa)
    assert joined[0]["type"] == "player-joined"
    assert joined[0]["new_player"] == "Bob"
    assert joined[0]["players"] == ["Alice", "Bob"]


def test_join_errors(clock):
    manager = RoomManager(make_settings(max_players=2), clock=clock, rng=random.Random(1))
    for c in ("c1", "c2", "c3"):
        manager.connect(c)
    room = manager.create_room("c1", "Alice", "a")

    with pytest.raises(RoomNotFoundError):
        manager.join_room("c2", "ZZZZZ", "Bob", "b")
    with pytest.raises(DuplicateNameError):
        manager.join_room("c2", room.code, "alice", "b")
    manager.join_room("c2", room.code, "Bob", "b")
    with pytest.raises(RoomFullError) as err:
        manager.join_room("c3", room.code, "Cara", "c")
    assert "full" in str(err.value)


def test_start_game_rules(manager, lobby):
    room, qa, qb = lobby
    with pytest.raises(NotRoomCreatorError):
        manager.start_game("c-bob")

    manager.start_game("c-alice")
    assert room.status is RoomStatus.ACTIVE

    start_a = drain(qa)[0]
    start_b = drain(qb)[0]
    assert start_a["type"] == start_b["type"] == "game-start"
    assert start_a["seat_index"] == 0 and start_b["seat_index"] == 1
    assert start_a["player_id"] != start_b["player_id"]
    assert start_a["state"]["decks"]["globalNews"] == []

    with pytest.raises(GameAlreadyStartedError):
        manager.start_game("c-alice")


def test_start_needs_two_players(manager):
    manager.connect("c1")
    manager.create_room("c1", "Alice", "a")
    with pytest.raises(NotEnoughPlayersError):
        manager.start_game("c1")


def test_new_player_cannot_join_started_game(manager, started):
    room, _, _ = started
    manager.connect("c-late")
    with pytest.raises(GameAlreadyStartedError):
        manager.join_room("c-late", room.code, "Late", "late")


def test_actions_use_server_side_identity(manager, started):
    room, qa, qb = started
    alice_id = room.members["alice-browser"].player_id

    # Bob claims to be Alice; the claim is ignored
    assert not manager.handle_action("c-bob", {"actionType": "roll-dice", "fromPlayerId": alice_id})
    assert drain(qb) == []

    assert manager.handle_action("c-alice", {"actionType": "roll-dice"})
    assert "state-update" in types(drain(qa))
    assert "state-update" in types(drain(qb))


def test_malformed_action_is_ignored(manager, started):
    assert not manager.handle_action("c-alice", {"actionType": "teleport"})
    assert not manager.handle_action("c-alice", "roll")


def test_actions_require_a_room(manager):
    manager.connect("c-stray")
    with pytest.raises(NotInRoomError):
        manager.handle_action("c-stray", {"actionType": "roll-dice"})


def test_disconnected_current_player_is_skipped(manager, started):
    """When the active player drops, the turn moves on without any client action."""
    room, qa, qb = started
    state = room.engine.state
    bob_id = room.members["bob-browser"].player_id
    assert state.current_player().name == "Alice"

    manager.disconnect("c-alice")

    assert state.current_player().id == bob_id
    messages = drain(qb)
    assert messages[0]["type"] == "player-left"
    assert messages[0]["disconnected"]
    assert "state-update" in types(messages)


def test_reconnect_reclaims_seat(manager, started):
    room, qa, qb = started
    alice_id = room.members["alice-browser"].player_id
    manager.disconnect("c-alice")
    drain(qb)

    q2 = manager.connect("c-alice-2")
    manager.join_room("c-alice-2", room.code, "Alice", "alice-browser")

    messages = drain(q2)
    assert types(messages)[:2] == ["joined", "game-start"]
    assert messages[0]["rejoined"]
    assert messages[1]["player_id"] == alice_id
    assert room.engine.state.get_player(alice_id).connected
    assert room.host_deadline is None
    assert "player-joined" in types(drain(qb))


def test_rejoin_supersedes_old_connection(manager, started):
    room, qa, _ = started
    manager.connect("c-alice-2")
    manager.join_room("c-alice-2", room.code, "Alice", "alice-browser")

    assert types(drain(qa)) == ["superseded"]
    # the old socket closing later changes nothing
    manager.disconnect("c-alice")
    assert room.members["alice-browser"].connected


def test_lobby_leaver_is_removed(manager, lobby):
    room, qa, _ = lobby
    manager.disconnect("c-bob")
    assert list(room.members) == ["alice-browser"]
    message = drain(qa)[0]
    assert message["type"] == "player-left"
    assert message["players"] == ["Alice"]


def test_host_grace_then_migration(manager, clock, started):
    room, _, qb = started
    manager.disconnect("c-alice")
    drain(qb)

    clock.now += 5
    assert manager.sweep() == []
    assert room.host_client_id == "alice-browser"

    clock.now += 6
    assert manager.sweep() == []
    assert room.host_client_id == "bob-browser"
    message = drain(qb)[0]
    assert message["type"] == "host-changed"
    assert message["host"] == "Bob"


def test_host_loss_without_migration_ends_session(clock):
    manager = RoomManager(make_settings(host_migration=False), clock=clock, rng=random.Random(2))
    manager.connect("c-alice")
    qb = manager.connect("c-bob")
    room = manager.create_room("c-alice", "Alice", "a")
    manager.join_room("c-bob", room.code, "Bob", "b")
    manager.start_game("c-alice")
    manager.disconnect("c-alice")
    drain(qb)

    clock.now += 11
    assert manager.sweep() == [room.code]
    assert room.code not in manager.rooms
    assert drain(qb) == [{"type": "session-ended", "message": HOST_ENDED_MESSAGE}]
    with pytest.raises(NotInRoomError):
        manager.chat("c-bob", "hello?")


def test_idle_room_expires(manager, clock, lobby):
    room, qa, qb = lobby
    clock.now += 101
    assert manager.sweep() == [room.code]
    assert drain(qa) == [{"type": "room-expired", "message": ROOM_EXPIRED_MESSAGE}]
    assert drain(qb) == [{"type": "room-expired", "message": ROOM_EXPIRED_MESSAGE}]


def test_kick_player(manager, started):
    room, qa, qb = started
    bob_id = room.members["bob-browser"].player_id

    with pytest.raises(NotRoomCreatorError):
        manager.kick_player("c-bob", room.members["alice-browser"].player_id)

    manager.kick_player("c-alice", bob_id)

    assert types(drain(qb)) == ["kicked"]
    assert room.engine.state.get_player(bob_id).bankrupt
    assert room.engine.state.game_over
    assert room.status is RoomStatus.ENDED
    assert "player-left" in types(drain(qa))

    manager.connect("c-bob-2")
    with pytest.raises(PlayerKickedError):
        manager.join_room("c-bob-2", room.code, "Bob", "bob-browser")


def test_kick_only_after_start(manager, lobby):
    with pytest.raises(RoomError):
        manager.kick_player("c-alice", "anyone")


def test_chat_is_relayed_to_others(manager, lobby):
    room, qa, qb = lobby
    manager.chat("c-bob", "x" * 300)
    assert drain(qb) == []
    message = drain(qa)[0]
    assert message["type"] == "chat"
    assert message["from"] == "Bob"
    assert len(message["message"]) == 200


def test_resume_saved_game(clock):
    store = SnapshotStore("sqlite://")
    manager = RoomManager(make_settings(host_migration=False), store=store, clock=clock, rng=random.Random(3))
    manager.connect("c-alice")
    manager.connect("c-bob")
    room = manager.create_room("c-alice", "Alice", "a")
    manager.join_room("c-bob", room.code, "Bob", "b")
    manager.start_game("c-alice")
    alice_id = room.members["a"].player_id
    code = room.code

    manager.disconnect("c-alice")
    clock.now += 11
    manager.sweep()
    assert code not in manager.rooms
    assert store.list_saves(code) == []
    manager.flush_saves()
    assert store.list_saves(code)[0]["reason"] == "host-left"

    q = manager.connect("c-alice-2")
    with pytest.raises(NotRoomCreatorError):
        manager.resume_room("c-alice-2", code, "b")
    resumed = manager.resume_room("c-alice-2", code, "a")

    assert resumed.status is RoomStatus.ACTIVE
    messages = drain(q)
    assert types(messages)[:2] == ["joined", "game-start"]
    assert messages[1]["player_id"] == alice_id

    manager.connect("c-bob-2")
    manager.join_room("c-bob-2", code, "Bob", "b")
    assert resumed.members["b"].connected


def test_resume_without_save(manager):
    manager.connect("c1")
    with pytest.raises(SavedGameNotFoundError):
        manager.resume_room("c1", "ABCDE", "a")


def test_finished_game_is_saved(clock):
    store = SnapshotStore("sqlite://")
    manager = RoomManager(make_settings(), store=store, clock=clock, rng=random.Random(4))
    manager.connect("c-alice")
    manager.connect("c-bob")
    room = manager.create_room("c-alice", "Alice", "a")
    manager.join_room("c-bob", room.code, "Bob", "b")
    manager.start_game("c-alice")
    manager.kick_player("c-alice", room.members["b"].player_id)

    assert [reason for _, _, reason in manager.pending_saves] == ["finished"]
    manager.flush_saves()
    assert manager.pending_saves == []
    saved = store.load_latest(room.code)
    assert saved["game"]["game_over"]
    assert saved["room"]["host_client_id"] == "a"
