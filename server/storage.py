"""
Saved-game persistence with SQLAlchemy.

Each row holds one snapshot document (the game state plus the room's seat
assignments) so a room can be resumed later.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utc_now() -> datetime:
    """Generate timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class SavedGame(Base):
    """One saved snapshot of a room's game."""

    __tablename__ = "saved_games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_code: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    game_id: Mapped[str] = mapped_column(String(64), nullable=False)
    schema_version: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(32), nullable=False, default="checkpoint")
    saved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    document: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<SavedGame(id={self.id}, room={self.room_code}, reason={self.reason})>"


class SnapshotStore:
    """
    Repository for saved games.

    Uses a synchronous engine; every call opens and closes its own session.
    """

    def __init__(self, database_url: str):
        kwargs: Dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(database_url, **kwargs)
        Base.metadata.create_all(self.engine)
        self._sessions = sessionmaker(self.engine, expire_on_commit=False)
        logger.info(f"Snapshot store ready at {self.engine.url.render_as_string(hide_password=True)}")

    def save(self, room_code: str, document: Dict[str, Any], reason: str = "checkpoint") -> int:
        """
        Store a snapshot document.

        Args:
            room_code: Room the game belongs to
            document: `{"room": ..., "game": ...}` snapshot
            reason: Why it was saved (finished, closed, checkpoint)

        Returns:
            Row id of the saved snapshot
        """
        game = document.get("game", {})
        row = SavedGame(
            room_code=room_code,
            game_id=str(game.get("id", "")),
            schema_version=int(game.get("schema_version", 0)),
            reason=reason,
            document=document,
        )
        with self._sessions() as session, session.begin():
            session.add(row)
        logger.info(f"Saved game {row.game_id} for room {room_code} ({reason})")
        return row.id

    def load_latest(self, room_code: str) -> Optional[Dict[str, Any]]:
        """Most recent snapshot document for a room, if any."""
        stmt = (
            select(SavedGame)
            .where(SavedGame.room_code == room_code)
            .order_by(SavedGame.saved_at.desc(), SavedGame.id.desc())
            .limit(1)
        )
        with self._sessions() as session:
            row = session.scalars(stmt).first()
            return dict(row.document) if row else None

    def list_saves(self, room_code: str) -> List[Dict[str, Any]]:
        stmt = select(SavedGame).where(SavedGame.room_code == room_code).order_by(SavedGame.id)
        with self._sessions() as session:
            return [
                {"id": row.id, "game_id": row.game_id, "reason": row.reason, "saved_at": row.saved_at}
                for row in session.scalars(stmt)
            ]

    def close(self) -> None:
        self.engine.dispose()
