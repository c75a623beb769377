"""
Server configuration using pydantic-settings.

Environment variables (prefix: ECONWARS_), also read from a `.env` file:
    ECONWARS_HOST                      - bind address (default: 0.0.0.0)
    ECONWARS_PORT                      - bind port (default: 3001)
    ECONWARS_RECONNECT_GRACE_SECONDS   - how long a room waits for its host
    ECONWARS_ROOM_TTL_SECONDS          - idle lifetime of a room
    ECONWARS_SWEEP_INTERVAL_SECONDS    - how often timers are checked
    ECONWARS_HOST_MIGRATION            - hand host authority to another member
    ECONWARS_DATABASE_URL              - SQLAlchemy URL for saved games
    ECONWARS_PERSIST_SNAPSHOTS         - save games when they end or close
    ECONWARS_LOG_LEVEL                 - logging level name
"""

from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Configuration for the room server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="ECONWARS_",
    )

    host: str = Field(default="0.0.0.0", description="Bind address.")
    port: int = Field(default=3001, gt=0, lt=65536, description="Bind port.")

    reconnect_grace_seconds: float = Field(
        default=15.0,
        ge=0,
        description="Seconds a room survives its creator's disconnect.",
    )
    room_ttl_seconds: float = Field(
        default=2 * 60 * 60,
        gt=0,
        description="Rooms idle for longer than this are closed.",
    )
    sweep_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Interval of the background timer sweep.",
    )
    heartbeat_seconds: float = Field(default=5.0, gt=0, description="Websocket heartbeat interval.")
    outbox_size: int = Field(default=256, gt=0, description="Per-connection outbound queue bound.")

    host_migration: bool = Field(
        default=True,
        description="Hand host authority to a connected member instead of closing the room.",
    )
    max_players: int = Field(default=8, ge=2, le=8)
    name_max_length: int = Field(default=16, gt=0)
    client_id_max_length: int = Field(default=64, gt=0)
    chat_max_length: int = Field(default=200, gt=0)

    database_url: str = Field(
        default="sqlite:///./econwars.db",
        description="SQLAlchemy URL for saved games.",
    )
    persist_snapshots: bool = Field(default=True)

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> ServerSettings:
    """Return cached server settings."""
    return ServerSettings()
