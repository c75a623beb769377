"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from econwars.config import Resource


class SpaceType(Enum):
    """Types of spaces on the board."""

    COUNTRY = "country"
    TRANSPORT = "transport"
    INFRASTRUCTURE = "infrastructure"
    TAX = "tax"
    CARD = "card"
    SPECIAL = "special"


class SpecialKind(Enum):
    """Subtypes of the four corner spaces."""

    GO = "go"
    SANCTIONS = "sanctions"
    FREE_TRADE = "freetrade"
    INCIDENT = "incident"


class DeckType(Enum):
    """The two card decks."""

    GLOBAL_NEWS = "globalNews"
    DIPLOMATIC_CABLE = "diplomaticCable"


@dataclass
class Space:
    """Base class for a board space."""

    space_id: int
    name: str
    space_type: SpaceType

    @property
    def ownable(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', space_id={self.space_id})"


@dataclass
class CountrySpace(Space):
    """A country that can be owned, developed and mortgaged."""

    alliance: str
    price: int
    resource: Resource
    rents: Tuple[int, ...]

    def __init__(
        self,
        space_id: int,
        name: str,
        alliance: str,
        price: int,
        resource: Resource,
        rents: Tuple[int, ...],
    ):
        super().__init__(space_id, name, SpaceType.COUNTRY)
        self.alliance = alliance
        self.price = price
        self.resource = resource
        self.rents = tuple(rents)

    @property
    def ownable(self) -> bool:
        return True

    def base_rent(self, level: int) -> int:
        """Schedule entry for a development level, falling back to level 0."""
        if 0 <= level < len(self.rents) and self.rents[level]:
            return self.rents[level]
        return self.rents[0]


@dataclass
class TransportSpace(Space):
    """A transport network; rent scales with the number of networks owned."""

    price: int
    rents: Tuple[int, ...]

    def __init__(self, space_id: int, name: str, price: int = 2000, rents: Tuple[int, ...] = (250, 500, 1000, 2000)):
        super().__init__(space_id, name, SpaceType.TRANSPORT)
        self.price = price
        self.rents = tuple(rents)

    @property
    def ownable(self) -> bool:
        return True

    def get_rent(self, owned: int) -> int:
        """Rent for an owner holding `owned` transport networks."""
        index = owned - 1
        if 0 <= index < len(self.rents):
            return self.rents[index]
        return 0


@dataclass
class InfrastructureSpace(Space):
    """Infrastructure; rent is the dice total times a multiplier."""

    price: int

    def __init__(self, space_id: int, name: str, price: int = 1500):
        super().__init__(space_id, name, SpaceType.INFRASTRUCTURE)
        self.price = price

    @property
    def ownable(self) -> bool:
        return True


@dataclass
class TaxSpace(Space):
    """A flat tax."""

    amount: int

    def __init__(self, space_id: int, name: str, amount: int):
        super().__init__(space_id, name, SpaceType.TAX)
        self.amount = amount


@dataclass
class CardSpace(Space):
    """Draws from one of the two decks."""

    deck: DeckType

    def __init__(self, space_id: int, deck: DeckType, name: Optional[str] = None):
        if name is None:
            name = "Global News" if deck is DeckType.GLOBAL_NEWS else "Diplomatic Cable"
        super().__init__(space_id, name, SpaceType.CARD)
        self.deck = deck


@dataclass
class SpecialSpace(Space):
    """Corner spaces: start, sanctions, free trade zone, incident."""

    kind: SpecialKind

    def __init__(self, space_id: int, name: str, kind: SpecialKind):
        super().__init__(space_id, name, SpaceType.SPECIAL)
        self.kind = kind


OwnableSpace = (CountrySpace, TransportSpace, InfrastructureSpace)
