"""
Player state and property ownership.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Player:
    """Represents the complete state of a player in the game."""

    id: str
    name: str
    color: str
    avatar: int
    money: int
    properties: List[int] = field(default_factory=list)
    influence: int = 0
    position: int = 0
    in_sanctions: bool = False
    sanctions_turns: int = 0
    has_get_out_free: bool = False
    has_free_upgrade: bool = False
    bankrupt: bool = False
    connected: bool = True
    doubles_count: int = 0
    turns_played: int = 0
    total_rent_collected: int = 0
    total_rent_paid: int = 0
    development_count: int = 0

    @property
    def active(self) -> bool:
        return not self.bankrupt

    def add_influence(self, amount: int) -> None:
        self.influence = max(0, self.influence + amount)

    def __repr__(self) -> str:
        return (
            f"Player(id={self.id}, name='{self.name}', "
            f"money={self.money}, position={self.position}, bankrupt={self.bankrupt})"
        )


@dataclass
class Ownership:
    """Tracks the runtime state of an ownable space."""

    owner_id: Optional[str] = None
    development_level: int = 0
    mortgaged: bool = False

    def is_owned(self) -> bool:
        return self.owner_id is not None

    def release(self) -> None:
        self.owner_id = None
        self.development_level = 0
        self.mortgaged = False
