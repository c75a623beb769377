from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from econwars.engine import GameEngine
from econwars.events import AnimationEvent
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
from econwars.game import GameState, create_game
from econwars.rules import apply_action, parse_action
from econwars.snapshot import public_document, to_document

from .settings import ServerSettings, get_settings
from .storage import SnapshotStore

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 5

HOST_ENDED_MESSAGE = "Host disconnected. The game session has ended."
ROOM_EXPIRED_MESSAGE = "Room expired due to inactivity."
KICKED_MESSAGE = "You were removed by the host."
SUPERSEDED_MESSAGE = "This seat was opened from another connection."


class RoomStatus(Enum):
    LOBBY = "lobby"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class RosterEntry:
    """A seat in a room, keyed by the client's persistent id."""

    client_id: str
    name: str
    connection_id: Optional[str]
    connected: bool = True
    kicked: bool = False
    player_id: Optional[str] = None
    seat_index: Optional[int] = None
    avatar: Optional[int] = None


class Room:
    """One multiplayer session: its roster, its engine and the seat assignments."""

    def __init__(self, code: str, host_client_id: str, now: float):
        self.code = code
        self.host_client_id = host_client_id
        self.members: Dict[str, RosterEntry] = {}
        self.status = RoomStatus.LOBBY
        self.engine: Optional[GameEngine] = None
        self.created_at = now
        self.last_activity = now
        self.host_deadline: Optional[float] = None
        self.unsubscribe: Optional[Callable[[], None]] = None

    def ordered(self) -> List[RosterEntry]:
        return list(self.members.values())

    def member_for_player(self, player_id: Optional[str]) -> Optional[RosterEntry]:
        for m in self.members.values():
            if player_id is not None and m.player_id == player_id:
                return m
        return None

    def member_for_connection(self, connection_id: str) -> Optional[RosterEntry]:
        for m in self.members.values():
            if m.connection_id == connection_id:
                return m
        return None

    def participants(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": m.name,
                "client_id": m.client_id,
                "connected": m.connected,
                "is_host": m.client_id == self.host_client_id,
                "player_id": m.player_id,
                "seat_index": m.seat_index,
                "avatar": m.avatar,
            }
            for m in self.ordered()
            if not m.kicked
        ]

    def roster_payload(self) -> Dict[str, Any]:
        participants = self.participants()
        return {"players": [p["name"] for p in participants], "participants": participants}

    def touch(self, now: float) -> None:
        self.last_activity = now

    @property
    def state(self) -> Optional[GameState]:
        return self.engine.state if self.engine else None


class RoomObserver:
    """Forwards one room's engine events to the room's members."""

    def __init__(self, manager: "RoomManager", room: Room):
        self.manager = manager
        self.room = room

    def on_state_changed(self, state: GameState) -> None:
        self.manager.broadcast(self.room, {"type": "state-update", "state": public_document(state)})

    def on_animation(self, event: AnimationEvent) -> None:
        message = event.to_message()
        if event.private_to is None:
            self.manager.broadcast(self.room, message)
            return
        member = self.room.member_for_player(event.private_to)
        if member is not None and member.connected:
            self.manager.send(member.connection_id, message)


class RoomManager:
    """
    Maps room codes to rooms and relays between connections and engines.

    Every method runs to completion without awaiting, so actions for a
    room are applied one at a time in arrival order. Outbound messages go
    to one bounded queue per connection, drained by the websocket layer.
    """

    def __init__(
        self,
        settings: Optional[ServerSettings] = None,
        store: Optional[SnapshotStore] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.clock = clock
        self.rng = rng or random.Random()
        self.rooms: Dict[str, Room] = {}
        self._outboxes: Dict[str, asyncio.Queue] = {}
        self._connection_room: Dict[str, str] = {}
        self.pending_saves: List[Tuple[str, Dict[str, Any], str]] = []

    # ---- Connections and fan-out ----

    def connect(self, connection_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.settings.outbox_size)
        self._outboxes[connection_id] = queue
        return queue

    def send(self, connection_id: Optional[str], message: Dict[str, Any]) -> None:
        queue = self._outboxes.get(connection_id) if connection_id else None
        if queue is None:
            return
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Outbox full for connection {connection_id}; dropping {message.get('type')}")

    def broadcast(self, room: Room, message: Dict[str, Any], exclude: Optional[str] = None) -> None:
        for m in room.ordered():
            if m.connected and m.connection_id and m.connection_id != exclude:
                self.send(m.connection_id, message)

    def room_for_connection(self, connection_id: str) -> Optional[Room]:
        code = self._connection_room.get(connection_id)
        return self.rooms.get(code) if code else None

    def _require_member(self, connection_id: str) -> Tuple[Room, RosterEntry]:
        room = self.room_for_connection(connection_id)
        member = room.member_for_connection(connection_id) if room else None
        if room is None or member is None:
            raise NotInRoomError()
        return room, member

    # ---- Input cleanup ----

    def _clean_name(self, name: Optional[str], default: str) -> str:
        cleaned = (name or "").strip()[: self.settings.name_max_length]
        return cleaned or default

    def _clean_client_id(self, client_id: Optional[str], connection_id: str) -> str:
        cleaned = (client_id or "").strip()[: self.settings.client_id_max_length]
        return cleaned or f"legacy-{connection_id}"

    def _new_code(self) -> str:
        while True:
            code = "".join(self.rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self.rooms:
                return code

    # ---- Lobby ----

    def create_room(
        self,
        connection_id: str,
        name: Optional[str] = "",
        client_id: Optional[str] = "",
        avatar: Optional[int] = None,
    ) -> Room:
        self._detach(connection_id)
        now = self.clock()
        client = self._clean_client_id(client_id, connection_id)
        room = Room(self._new_code(), client, now)
        room.members[client] = RosterEntry(client, self._clean_name(name, "Host"), connection_id, avatar=avatar)
        self.rooms[room.code] = room
        self._connection_room[connection_id] = room.code

        logger.info(f"Room {room.code} created by {client}")
        self.send(connection_id, {"type": "room-created", "code": room.code, **room.roster_payload()})
        return room

    def join_room(
        self,
        connection_id: str,
        code: str,
        name: Optional[str] = "",
        client_id: Optional[str] = "",
        avatar: Optional[int] = None,
    ) -> Room:
        room = self.rooms.get((code or "").strip().upper())
        if room is None:
            raise RoomNotFoundError()
        client = self._clean_client_id(client_id, connection_id)

        existing = room.members.get(client)
        if existing is not None:
            if existing.kicked:
                raise PlayerKickedError()
            self._detach(connection_id)
            return self._reattach(room, existing, connection_id)

        if room.status is not RoomStatus.LOBBY:
            raise GameAlreadyStartedError()
        if len(room.members) >= self.settings.max_players:
            raise RoomFullError()
        display = self._clean_name(name, "Player")
        if any(m.name.lower() == display.lower() for m in room.ordered()):
            raise DuplicateNameError()

        self._detach(connection_id)
        room.members[client] = RosterEntry(client, display, connection_id, avatar=avatar)
        self._connection_room[connection_id] = room.code
        room.touch(self.clock())

        logger.info(f"{display} joined room {room.code}")
        self.send(connection_id, {"type": "joined", "code": room.code, "rejoined": False, **room.roster_payload()})
        self.broadcast(
            room,
            {"type": "player-joined", "new_player": display, "reconnected": False, **room.roster_payload()},
            exclude=connection_id,
        )
        return room

    def _reattach(self, room: Room, entry: RosterEntry, connection_id: str) -> Room:
        """Give a returning client its seat back on a new connection."""
        old = entry.connection_id
        if old and old != connection_id:
            self._connection_room.pop(old, None)
            self.send(old, {"type": "superseded", "message": SUPERSEDED_MESSAGE})

        entry.connection_id = connection_id
        entry.connected = True
        self._connection_room[connection_id] = room.code
        room.touch(self.clock())
        if entry.client_id == room.host_client_id:
            room.host_deadline = None

        logger.info(f"{entry.name} rejoined room {room.code}")
        self.send(connection_id, {"type": "joined", "code": room.code, "rejoined": True, **room.roster_payload()})
        if room.engine is not None:
            self.send(connection_id, self._game_start_message(room, entry, rejoined=True))
        self.broadcast(
            room,
            {"type": "player-joined", "new_player": entry.name, "reconnected": True, **room.roster_payload()},
            exclude=connection_id,
        )
        if room.engine is not None and entry.player_id is not None:
            room.engine.set_connected(entry.player_id, True)
            self._skip_absent_turns(room)
        return room

    def _game_start_message(self, room: Room, entry: RosterEntry, rejoined: bool) -> Dict[str, Any]:
        return {
            "type": "game-start",
            "code": room.code,
            "state": public_document(room.engine.state),
            "player_id": entry.player_id,
            "seat_index": entry.seat_index,
            "rejoined": rejoined,
        }

    def start_game(self, connection_id: str, map_id: str = "classic") -> GameEngine:
        room, entry = self._require_member(connection_id)
        if entry.client_id != room.host_client_id:
            raise NotRoomCreatorError()
        if room.status is not RoomStatus.LOBBY:
            raise GameAlreadyStartedError()
        members = [m for m in room.ordered() if not m.kicked]
        if len(members) < 2:
            raise NotEnoughPlayersError()

        state = create_game([m.name for m in members], map_id, [m.avatar for m in members], rng=self.rng)
        engine = GameEngine(state, rng=self.rng)
        for seat, (member, player) in enumerate(zip(members, state.players)):
            member.player_id = player.id
            member.seat_index = seat
            player.connected = member.connected

        room.engine = engine
        room.status = RoomStatus.ACTIVE
        room.unsubscribe = engine.subscribe(RoomObserver(self, room))
        room.touch(self.clock())

        logger.info(f"Room {room.code} started a {map_id} game with {len(members)} players")
        for member in members:
            if member.connected:
                self.send(member.connection_id, self._game_start_message(room, member, rejoined=False))
        self._skip_absent_turns(room)
        return engine

    def resume_room(self, connection_id: str, code: str, client_id: Optional[str] = "") -> Room:
        """Reopen a saved game for the host that saved it; others rejoin by client id."""
        code = (code or "").strip().upper()
        if self.store is None:
            raise SavedGameNotFoundError()
        if code in self.rooms:
            raise RoomError("That room is still open. Join it instead.")
        self.flush_saves()
        document = self.store.load_latest(code)
        if document is None:
            raise SavedGameNotFoundError()

        saved_room = document["room"]
        client = self._clean_client_id(client_id, connection_id)
        if client != saved_room["host_client_id"]:
            raise NotRoomCreatorError()
        engine = GameEngine.from_document(document["game"], rng=self.rng)
        if engine.state.game_over:
            raise RoomError("That game has already finished.")

        room = Room(code, client, self.clock())
        for m in saved_room["members"]:
            room.members[m["client_id"]] = RosterEntry(
                client_id=m["client_id"],
                name=m["name"],
                connection_id=None,
                connected=False,
                kicked=m["kicked"],
                player_id=m["player_id"],
                seat_index=m["seat_index"],
                avatar=m.get("avatar"),
            )
        for player in engine.state.players:
            player.connected = False
        if client not in room.members:
            raise NotRoomCreatorError()

        room.engine = engine
        room.status = RoomStatus.ACTIVE
        room.unsubscribe = engine.subscribe(RoomObserver(self, room))
        self.rooms[code] = room
        self._detach(connection_id)
        logger.info(f"Room {code} resumed from a saved game")
        return self._reattach(room, room.members[client], connection_id)

    # ---- In game ----

    def handle_action(self, connection_id: str, payload: Any) -> bool:
        """
        Apply a client action as the sender's own seat.

        Returns False for malformed actions and ones the engine declines.
        """
        room, entry = self._require_member(connection_id)
        if room.status is not RoomStatus.ACTIVE or room.engine is None or entry.player_id is None:
            return False
        action = parse_action(payload)
        if action is None:
            return False

        accepted = apply_action(room.engine, entry.player_id, action)
        room.touch(self.clock())
        self._skip_absent_turns(room)
        self._check_finished(room)
        return accepted

    def kick_player(self, connection_id: str, player_id: str) -> None:
        room, entry = self._require_member(connection_id)
        if entry.client_id != room.host_client_id:
            raise NotRoomCreatorError()
        if room.engine is None:
            raise RoomError("Players can only be removed once the game has started.")
        target = room.member_for_player(player_id)
        if target is None or target is entry or target.kicked:
            raise RoomError("Player not found.")

        target.kicked = True
        target.connected = False
        old = target.connection_id
        target.connection_id = None
        if old:
            self.send(old, {"type": "kicked", "message": KICKED_MESSAGE})
            self._connection_room.pop(old, None)

        logger.info(f"{target.name} was removed from room {room.code}")
        room.engine.forfeit(player_id)
        self.broadcast(
            room,
            {"type": "player-left", "left_player": target.name, "kicked": True, "disconnected": False, **room.roster_payload()},
        )
        self._skip_absent_turns(room)
        self._check_finished(room)

    def chat(self, connection_id: str, message: str) -> None:
        room, entry = self._require_member(connection_id)
        text = str(message or "").strip()[: self.settings.chat_max_length]
        if not text:
            return
        room.touch(self.clock())
        self.broadcast(
            room,
            {"type": "chat", "from": entry.name, "player_id": entry.player_id, "message": text},
            exclude=connection_id,
        )

    def _skip_absent_turns(self, room: Room) -> None:
        """Advance past disconnected current players while anyone is left to play."""
        engine = room.engine
        if engine is None:
            return
        state = engine.state
        for _ in range(len(state.players)):
            if state.game_over:
                return
            current = state.current_player()
            if current.connected:
                return
            if not any(p.connected for p in state.active_players()):
                return
            engine.skip_turn()

    def _check_finished(self, room: Room) -> None:
        if room.engine is not None and room.engine.state.game_over and room.status is RoomStatus.ACTIVE:
            room.status = RoomStatus.ENDED
            logger.info(f"Game in room {room.code} finished; winner {room.engine.state.winner}")
            self._persist(room, "finished")

    # ---- Departures and timers ----

    def disconnect(self, connection_id: str) -> None:
        """Handle a closed connection. Superseded connections are ignored."""
        self._outboxes.pop(connection_id, None)
        self._detach(connection_id)

    def _detach(self, connection_id: str) -> None:
        code = self._connection_room.pop(connection_id, None)
        room = self.rooms.get(code) if code else None
        entry = room.member_for_connection(connection_id) if room else None
        if room is None or entry is None:
            return

        is_host = entry.client_id == room.host_client_id
        if room.status is RoomStatus.LOBBY and not is_host:
            del room.members[entry.client_id]
            logger.info(f"{entry.name} left room {room.code}")
            self.broadcast(
                room,
                {"type": "player-left", "left_player": entry.name, "disconnected": False, "kicked": False, **room.roster_payload()},
            )
            if not room.members:
                self._remove_room(room)
            return

        entry.connected = False
        entry.connection_id = None
        if is_host:
            room.host_deadline = self.clock() + self.settings.reconnect_grace_seconds
        logger.info(f"{entry.name} disconnected from room {room.code}")
        self.broadcast(
            room,
            {"type": "player-left", "left_player": entry.name, "disconnected": True, "kicked": False, **room.roster_payload()},
        )
        if room.engine is not None and entry.player_id is not None:
            room.engine.set_connected(entry.player_id, False)
            self._skip_absent_turns(room)

    def sweep(self, now: Optional[float] = None) -> List[str]:
        """
        Apply timers: host grace expiry and idle room expiry.

        Returns the codes of rooms that were closed.
        """
        now = self.clock() if now is None else now
        closed: List[str] = []
        for code, room in list(self.rooms.items()):
            if room.host_deadline is not None and now >= room.host_deadline:
                if not self._migrate_host(room):
                    self._close_room(room, "session-ended", HOST_ENDED_MESSAGE, "host-left")
                    closed.append(code)
                    continue
            if now - room.last_activity >= self.settings.room_ttl_seconds:
                self._close_room(room, "room-expired", ROOM_EXPIRED_MESSAGE, "expired")
                closed.append(code)
        return closed

    def _migrate_host(self, room: Room) -> bool:
        if not self.settings.host_migration:
            return False
        candidates = [m for m in room.ordered() if m.connected and not m.kicked]
        if not candidates:
            return False
        new_host = candidates[0]
        room.host_client_id = new_host.client_id
        room.host_deadline = None
        logger.info(f"Room {room.code}: host authority moved to {new_host.name}")
        self.broadcast(room, {"type": "host-changed", "host": new_host.name, **room.roster_payload()})
        return True

    def _close_room(self, room: Room, message_type: str, message: str, reason: str) -> None:
        if room.status is RoomStatus.ACTIVE:
            self._persist(room, reason)
        self.broadcast(room, {"type": message_type, "message": message})
        logger.info(f"Room {room.code} closed ({reason})")
        self._remove_room(room)

    def _remove_room(self, room: Room) -> None:
        for m in room.ordered():
            if m.connection_id:
                self._connection_room.pop(m.connection_id, None)
        if room.unsubscribe is not None:
            room.unsubscribe()
        self.rooms.pop(room.code, None)

    # ---- Persistence and inspection ----

    def room_document(self, room: Room) -> Dict[str, Any]:
        return {
            "room": {
                "code": room.code,
                "host_client_id": room.host_client_id,
                "members": [
                    {
                        "client_id": m.client_id,
                        "name": m.name,
                        "player_id": m.player_id,
                        "seat_index": m.seat_index,
                        "avatar": m.avatar,
                        "kicked": m.kicked,
                    }
                    for m in room.ordered()
                ],
            },
            "game": to_document(room.engine.state),
        }

    def _persist(self, room: Room, reason: str) -> None:
        if self.store is None or room.engine is None or not self.settings.persist_snapshots:
            return
        self.pending_saves.append((room.code, self.room_document(room), reason))

    def take_pending_saves(self) -> List[Tuple[str, Dict[str, Any], str]]:
        saves, self.pending_saves = self.pending_saves, []
        return saves

    def write_saves(self, saves: List[Tuple[str, Dict[str, Any], str]]) -> None:
        """
        Write snapshot documents taken from `take_pending_saves`.

        Touches only the store, so the server runs it in a worker thread.
        """
        store = self.store
        if store is None:
            return
        for code, document, reason in saves:
            try:
                store.save(code, document, reason)
            except SQLAlchemyError as e:
                logger.warning(f"Failed to save room {code}: {e}")

    def flush_saves(self) -> None:
        self.write_saves(self.take_pending_saves())

    def room_status(self, code: str) -> Optional[Dict[str, Any]]:
        room = self.rooms.get((code or "").upper())
        if room is None:
            return None
        return {"code": room.code, "status": room.status.value, **room.roster_payload()}
