from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from econwars.exceptions import EconWarsError
from econwars.rules import get_legal_actions
from econwars.snapshot import from_document, public_document

from .rooms import RoomManager
from .schemas import (
    Chat,
    CreateRoom,
    GameAction,
    HealthResponse,
    JoinRoom,
    KickPlayer,
    LegalActionsResponse,
    ResumeRoom,
    RoomStatusResponse,
    StartGame,
    inbound_adapter,
)
from .settings import ServerSettings, get_settings
from .storage import SnapshotStore

logger = logging.getLogger(__name__)


def _manager(request: Request) -> RoomManager:
    return request.app.state.manager


def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    """Build the room server. Each app owns its own RoomManager."""
    settings = settings or get_settings()
    manager = RoomManager(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the snapshot store and run the timer sweep."""
        logger.info("Starting Global Economic Wars server")
        if settings.persist_snapshots:
            manager.store = SnapshotStore(settings.database_url)

        async def sweeper():
            while True:
                await asyncio.sleep(settings.sweep_interval_seconds)
                await _sweep_once(manager)

        sweep_task = asyncio.create_task(sweeper())
        yield

        logger.info("Shutting down server")
        sweep_task.cancel()
        if manager.store is not None:
            manager.flush_saves()
            manager.store.close()
            manager.store = None

    app = FastAPI(title="Global Economic Wars Server", version="0.1.0", lifespan=lifespan)
    app.state.manager = manager
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_model=HealthResponse)
    async def health(request: Request):
        return HealthResponse(status="ok", rooms=len(_manager(request).rooms))

    @app.get("/rooms/{code}", response_model=RoomStatusResponse)
    async def room_status(code: str, request: Request):
        status = _manager(request).room_status(code)
        if status is None:
            raise HTTPException(status_code=404, detail="Room not found")
        return status

    @app.get("/rooms/{code}/state")
    async def room_state(code: str, request: Request):
        room = _manager(request).rooms.get(code.upper())
        if room is None or room.engine is None:
            raise HTTPException(status_code=404, detail="No game in progress for that room")
        return public_document(room.engine.state)

    @app.get("/rooms/{code}/players/{player_id}/actions", response_model=LegalActionsResponse)
    async def legal_actions(code: str, player_id: str, request: Request):
        room = _manager(request).rooms.get(code.upper())
        if room is None or room.engine is None:
            raise HTTPException(status_code=404, detail="No game in progress for that room")
        if room.engine.state.get_player(player_id) is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return LegalActionsResponse(
            code=room.code,
            player_id=player_id,
            actions=get_legal_actions(room.engine, player_id),
        )

    @app.get("/saved/{code}")
    async def saved_games(code: str, request: Request):
        store = _manager(request).store
        code = code.upper()
        latest = store.load_latest(code) if store is not None else None
        if latest is None:
            raise HTTPException(status_code=404, detail="No saved game found for that room")
        game = from_document(latest["game"])
        return {"code": code, "state": public_document(game), "saves": store.list_saves(code)}

    @app.websocket("/ws")
    async def ws_session(websocket: WebSocket):
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        queue = manager.connect(connection_id)

        async def sender():
            while True:
                msg = await queue.get()
                await websocket.send_json(msg)

        async def heartbeat():
            while True:
                await asyncio.sleep(settings.heartbeat_seconds)
                manager.send(connection_id, {"type": "heartbeat"})

        sender_task = asyncio.create_task(sender())
        hb_task = asyncio.create_task(heartbeat())
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    _dispatch(manager, connection_id, inbound_adapter.validate_json(raw))
                except ValidationError:
                    manager.send(connection_id, {"type": "error-msg", "message": "Malformed message."})
                except EconWarsError as e:
                    manager.send(connection_id, {"type": "error-msg", "message": str(e)})
                await _write_pending_saves(manager)
        except WebSocketDisconnect:
            logger.info(f"Connection {connection_id} closed")
        finally:
            manager.disconnect(connection_id)
            sender_task.cancel()
            hb_task.cancel()

    return app


async def _sweep_once(manager: RoomManager) -> None:
    try:
        manager.sweep()
        await _write_pending_saves(manager)
    except Exception:
        logger.exception("Room sweep failed")


async def _write_pending_saves(manager: RoomManager) -> None:
    """Write queued snapshots in a worker thread, off the event loop."""
    saves = manager.take_pending_saves()
    if saves:
        await asyncio.to_thread(manager.write_saves, saves)


def _dispatch(manager: RoomManager, connection_id: str, message) -> None:
    if isinstance(message, CreateRoom):
        manager.create_room(connection_id, message.name, message.client_id, message.avatar)
    elif isinstance(message, JoinRoom):
        manager.join_room(connection_id, message.code, message.name, message.client_id, message.avatar)
    elif isinstance(message, ResumeRoom):
        manager.resume_room(connection_id, message.code, message.client_id)
    elif isinstance(message, StartGame):
        manager.start_game(connection_id, message.map_id)
    elif isinstance(message, GameAction):
        manager.handle_action(connection_id, message.action)
    elif isinstance(message, KickPlayer):
        manager.kick_player(connection_id, message.player_id)
    elif isinstance(message, Chat):
        manager.chat(connection_id, message.message)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)
