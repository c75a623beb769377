from dataclasses import dataclass, field
from enum import Enum
from typing import List, Set


class TradeStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass
class PropertyTerms:
    """
    Ownership of one listed property as it stood when the trade was proposed.
    """
    space_id: int
    owner_id: str
    development_level: int = 0
    mortgaged: bool = False


@dataclass
class TradeOffer:
    """
    A two-party exchange of money and properties.

    Trade flow:
    1. Proposer lists what they give and what they want
    2. Recipient accepts or rejects, or the proposer cancels
    3. On acceptance the live ownership is compared with `terms` and
       everything is transferred together or nothing is
    """
    id: str
    from_id: str
    to_id: str
    give_money: int = 0
    get_money: int = 0
    give_properties: List[int] = field(default_factory=list)
    get_properties: List[int] = field(default_factory=list)
    status: TradeStatus = TradeStatus.PENDING
    terms: List[PropertyTerms] = field(default_factory=list)
    proposed_turn: int = 0

    def is_pending(self) -> bool:
        return self.status is TradeStatus.PENDING

    def involves(self, player_id: str) -> bool:
        return player_id in (self.from_id, self.to_id)

    def overlapping_properties(self) -> Set[int]:
        return set(self.give_properties) & set(self.get_properties)

    def is_empty(self) -> bool:
        return (
            self.give_money == 0
            and self.get_money == 0
            and not self.give_properties
            and not self.get_properties
        )

    def __repr__(self) -> str:
        items = []
        if self.give_money > 0:
            items.append(f"${self.give_money}")
        if self.give_properties:
            items.append(f"{len(self.give_properties)} properties")
        wants = []
        if self.get_money > 0:
            wants.append(f"${self.get_money}")
        if self.get_properties:
            wants.append(f"{len(self.get_properties)} properties")
        return (
            f"TradeOffer({self.id}: {self.from_id} gives {' + '.join(items) or 'nothing'} "
            f"for {' + '.join(wants) or 'nothing'}, {self.status.value})"
        )
