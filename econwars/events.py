"""
Game log and the engine's outbound event types.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, Iterable, List, Optional, Protocol


class LogKind(Enum):
    """Presentation category of a log entry."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    RENT = "rent"
    PURCHASE = "purchase"
    DEVELOPMENT = "development"
    TRADE = "trade"
    INFLUENCE = "influence"
    BANKRUPT = "bankrupt"
    VICTORY = "victory"


@dataclass
class LogEntry:
    """A single line of game history."""

    time: float
    turn: int
    message: str
    kind: LogKind = LogKind.INFO

    def __repr__(self) -> str:
        return f"[T{self.turn}] {self.kind.value}: {self.message}"


class GameLog:
    """Append-only history keeping only the most recent entries."""

    def __init__(self, limit: int = 200, entries: Iterable[LogEntry] = ()):
        self.limit = limit
        self.entries: Deque[LogEntry] = deque(entries, maxlen=limit)

    def log(self, message: str, kind: LogKind = LogKind.INFO, turn: int = 0) -> None:
        self.entries.append(LogEntry(time.time(), turn, message, kind))

    def get_recent(self, count: int = 10) -> List[LogEntry]:
        return list(self.entries)[-count:]

    def messages(self) -> List[str]:
        return [e.message for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


class AnimationType(Enum):
    """Presentation events emitted alongside state changes."""

    DICE = "dice"
    MOVE = "move"
    PURCHASE = "purchase"
    PAYMENT = "payment"
    CARD = "card"
    SANCTIONS = "sanctions"
    BANKRUPT = "bankrupt"
    VICTORY = "victory"
    DEVELOP = "develop"
    TRADE = "trade"


@dataclass
class AnimationEvent:
    """
    A presentation event.

    `private_to` holds a player id when only that player may see it.
    """

    type: AnimationType
    data: Dict[str, Any] = field(default_factory=dict)
    private_to: Optional[str] = None

    def to_message(self) -> Dict[str, Any]:
        return {"type": "animation", "animation": self.type.value, "data": self.data}


class EngineObserver(Protocol):
    """Receives the engine's typed event streams."""

    def on_state_changed(self, state: Any) -> None:
        ...

    def on_animation(self, event: AnimationEvent) -> None:
        ...
