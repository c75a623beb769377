"""
Board layouts for the two supported maps.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from econwars.config import Resource
from econwars.spaces import (
    CardSpace,
    CountrySpace,
    DeckType,
    InfrastructureSpace,
    OwnableSpace,
    Space,
    SpecialKind,
    SpecialSpace,
    TaxSpace,
    TransportSpace,
)

OIL = Resource.OIL
TECH = Resource.TECH
AGRI = Resource.AGRICULTURE
TOUR = Resource.TOURISM

NEWS = DeckType.GLOBAL_NEWS
CABLE = DeckType.DIPLOMATIC_CABLE

# Rent schedules shared by several countries
RENTS_600 = (20, 40, 120, 360, 640, 900)
RENTS_800 = (30, 60, 180, 500, 700, 1000)
RENTS_1000 = (40, 80, 220, 600, 800, 1100)
RENTS_1200 = (50, 100, 300, 750, 950, 1300)
RENTS_1400 = (55, 110, 330, 800, 1050, 1400)
RENTS_1600 = (65, 130, 400, 950, 1150, 1500)
RENTS_1800 = (70, 140, 420, 1000, 1200, 1600)
RENTS_2000 = (80, 160, 480, 1100, 1350, 1800)
RENTS_2200 = (85, 170, 500, 1100, 1400, 1800)
RENTS_2400 = (90, 180, 540, 1200, 1500, 2000)
RENTS_2600 = (100, 200, 600, 1400, 1700, 2200)
RENTS_2800 = (110, 220, 660, 1500, 1800, 2400)
RENTS_3000 = (120, 240, 720, 1600, 2000, 2600)
RENTS_3200 = (130, 260, 780, 1800, 2200, 2800)
RENTS_3400 = (140, 280, 840, 1900, 2400, 3000)
RENTS_4000 = (150, 300, 900, 2000, 2500, 3200)

SIDES = ("bottom", "left", "top", "right")


def _go(i: int) -> Space:
    return SpecialSpace(i, "Global Summit", SpecialKind.GO)


def _sanctions(i: int) -> Space:
    return SpecialSpace(i, "Trade Sanctions", SpecialKind.SANCTIONS)


def _free_trade(i: int) -> Space:
    return SpecialSpace(i, "Free Trade Zone", SpecialKind.FREE_TRADE)


def _incident(i: int) -> Space:
    return SpecialSpace(i, "International Incident", SpecialKind.INCIDENT)


def _classic_spaces() -> List[Space]:
    return [
        _go(0),
        CountrySpace(1, "Gyumri", "EASTERN", 600, AGRI, RENTS_600),
        CardSpace(2, CABLE),
        CountrySpace(3, "Kapan", "EASTERN", 800, TECH, RENTS_800),
        TaxSpace(4, "Import Tariff", 600),
        TransportSpace(5, "Maritime Routes"),
        CountrySpace(6, "Yerevan", "EASTERN", 1000, AGRI, RENTS_1000),
        CountrySpace(7, "Alexandria", "AFRICAN_RISING", 1000, OIL, RENTS_1000),
        CountrySpace(8, "Giza", "AFRICAN_RISING", 1000, TOUR, RENTS_1000),
        CountrySpace(9, "Cairo", "AFRICAN_RISING", 1200, TOUR, RENTS_1200),
        _sanctions(10),
        CountrySpace(11, "Mumbai", "SOUTH_ASIAN", 1400, AGRI, RENTS_1400),
        InfrastructureSpace(12, "Internet Backbone"),
        CountrySpace(13, "Bengaluru", "SOUTH_ASIAN", 1400, TECH, RENTS_1400),
        CountrySpace(14, "Delhi", "SOUTH_ASIAN", 1600, AGRI, RENTS_1600),
        TransportSpace(15, "Rail Networks"),
        CountrySpace(16, "Salvador", "BRICS", 1800, TOUR, RENTS_1800),
        CardSpace(17, CABLE),
        CountrySpace(18, "Rio", "BRICS", 2000, TECH, RENTS_2000),
        CountrySpace(19, "Sao Paulo", "BRICS", 2200, AGRI, RENTS_2200),
        _free_trade(20),
        CountrySpace(21, "Paris", "EU", 2200, TOUR, RENTS_2200),
        CardSpace(22, NEWS),
        CountrySpace(23, "Toulouse", "EU", 2400, TECH, RENTS_2400),
        CountrySpace(24, "Lyon", "EU", 2600, TECH, RENTS_2600),
        TransportSpace(25, "Air Routes"),
        CountrySpace(26, "Tel Aviv", "ASIAN_TIGERS", 2600, TECH, RENTS_2600),
        CountrySpace(27, "Haifa", "ASIAN_TIGERS", 2800, TECH, RENTS_2800),
        InfrastructureSpace(28, "Shipping Lanes"),
        CountrySpace(29, "Jerusalem", "ASIAN_TIGERS", 3000, TECH, RENTS_3000),
        _incident(30),
        CountrySpace(31, "Dubai", "OIL_NATIONS", 3200, OIL, RENTS_3200),
        CountrySpace(32, "Riyadh", "OIL_NATIONS", 3000, OIL, RENTS_3000),
        CardSpace(33, CABLE),
        CountrySpace(34, "Abu Dhabi", "OIL_NATIONS", 3400, OIL, RENTS_3400),
        TransportSpace(35, "Digital Networks"),
        CardSpace(36, NEWS),
        CountrySpace(37, "New York", "AMERICAS", 3500, AGRI, RENTS_3400),
        TaxSpace(38, "Luxury Tax", 1200),
        CountrySpace(39, "San Francisco", "AMERICAS", 4000, TECH, RENTS_4000),
    ]


def _expanded_spaces() -> List[Space]:
    return [
        _go(0),
        CountrySpace(1, "Gyumri", "EASTERN", 600, AGRI, RENTS_600),
        CardSpace(2, CABLE),
        CountrySpace(3, "Kapan", "EASTERN", 800, TECH, RENTS_800),
        TaxSpace(4, "Import Tariff", 600),
        TransportSpace(5, "Maritime Routes"),
        CountrySpace(6, "Yerevan", "EASTERN", 1000, AGRI, RENTS_1000),
        CountrySpace(7, "Alexandria", "AFRICAN_RISING", 1000, OIL, RENTS_1000),
        CardSpace(8, NEWS),
        CountrySpace(9, "Giza", "AFRICAN_RISING", 1000, TOUR, RENTS_1000),
        CountrySpace(10, "Cairo", "AFRICAN_RISING", 1200, TOUR, RENTS_1200),
        CardSpace(11, NEWS),
        _sanctions(12),
        CountrySpace(13, "Mumbai", "SOUTH_ASIAN", 1400, AGRI, RENTS_1400),
        InfrastructureSpace(14, "Internet Backbone"),
        CountrySpace(15, "Bengaluru", "SOUTH_ASIAN", 1400, TECH, RENTS_1400),
        CountrySpace(16, "Delhi", "SOUTH_ASIAN", 1600, AGRI, RENTS_1600),
        TransportSpace(17, "Rail Networks"),
        CountrySpace(18, "Salvador", "BRICS", 1800, TOUR, RENTS_1800),
        CardSpace(19, CABLE),
        CountrySpace(20, "Rio", "BRICS", 2000, TECH, RENTS_2000),
        CountrySpace(21, "Sao Paulo", "BRICS", 2200, AGRI, RENTS_2200),
        CountrySpace(22, "Stockholm", "NORDIC", 1800, OIL, RENTS_1800),
        CountrySpace(23, "Gothenburg", "NORDIC", 1800, TECH, RENTS_1800),
        _free_trade(24),
        CountrySpace(25, "Malmo", "NORDIC", 2200, TECH, RENTS_2200),
        CountrySpace(26, "Paris", "EU", 2200, TOUR, RENTS_2200),
        CardSpace(27, NEWS),
        CountrySpace(28, "Toulouse", "EU", 2400, TECH, RENTS_2400),
        TransportSpace(29, "Air Routes"),
        CountrySpace(30, "Lyon", "EU", 2600, TECH, RENTS_2600),
        CountrySpace(31, "Tel Aviv", "ASIAN_TIGERS", 2600, TECH, RENTS_2600),
        CountrySpace(32, "Haifa", "ASIAN_TIGERS", 2800, TECH, RENTS_2800),
        InfrastructureSpace(33, "Shipping Lanes"),
        CountrySpace(34, "Jerusalem", "ASIAN_TIGERS", 3000, TECH, RENTS_3000),
        CountrySpace(35, "Auckland", "PACIFIC_ISLANDS", 1600, TOUR, RENTS_1600),
        _incident(36),
        CountrySpace(37, "Wellington", "PACIFIC_ISLANDS", 1600, AGRI, RENTS_1600),
        CountrySpace(38, "Queenstown", "PACIFIC_ISLANDS", 2400, TOUR, RENTS_2400),
        CardSpace(39, CABLE),
        CountrySpace(40, "Dubai", "OIL_NATIONS", 3200, OIL, RENTS_3200),
        TransportSpace(41, "Digital Networks"),
        CountrySpace(42, "Abu Dhabi", "OIL_NATIONS", 3400, OIL, RENTS_3400),
        CountrySpace(43, "Riyadh", "OIL_NATIONS", 3000, OIL, RENTS_3000),
        CountrySpace(44, "Chicago", "AMERICAS", 3200, OIL, RENTS_3200),
        CountrySpace(45, "New York", "AMERICAS", 3500, AGRI, RENTS_3400),
        TaxSpace(46, "Luxury Tax", 1200),
        CountrySpace(47, "San Francisco", "AMERICAS", 4000, TECH, RENTS_4000),
    ]


@dataclass(frozen=True)
class MapDefinition:
    """Registry entry describing one board variant."""

    map_id: str
    name: str
    description: str
    grid_size: int
    total_spaces: int
    corners: Tuple[int, int, int, int]
    corner_multiplier: float
    factory: Callable[[], List[Space]]


MAPS: Dict[str, MapDefinition] = {
    "classic": MapDefinition(
        "classic",
        "Classic",
        "40 spaces · 23 cities · 8 alliances",
        11,
        40,
        (0, 10, 20, 30),
        1.15,
        _classic_spaces,
    ),
    "expanded": MapDefinition(
        "expanded",
        "World Domination",
        "48 spaces · 30 cities · 10 alliances",
        13,
        48,
        (0, 12, 24, 36),
        1.12,
        _expanded_spaces,
    ),
}

DEFAULT_MAP = "classic"


class Board:
    """
    The ordered ring of spaces for one map.

    Spaces are immutable template data; ownership, development and mortgage
    state live on the game state keyed by space id.
    """

    def __init__(self, map_id: str = DEFAULT_MAP):
        definition = MAPS[map_id]
        self.map_id = definition.map_id
        self.name = definition.name
        self.grid_size = definition.grid_size
        self.corners = definition.corners
        self.spaces: List[Space] = definition.factory()
        if len(self.spaces) != definition.total_spaces:
            raise ValueError(f"Map {map_id} defines {len(self.spaces)} spaces, expected {definition.total_spaces}")

    def __len__(self) -> int:
        return len(self.spaces)

    @property
    def total_spaces(self) -> int:
        return len(self.spaces)

    @property
    def sanctions_position(self) -> int:
        return self.corners[1]

    def get_space(self, space_id: int) -> Optional[Space]:
        """Space at an index, or None when the index is off the board."""
        if isinstance(space_id, bool) or not isinstance(space_id, int):
            return None
        if 0 <= space_id < len(self.spaces):
            return self.spaces[space_id]
        return None

    def ownable_spaces(self) -> List[Space]:
        return [s for s in self.spaces if isinstance(s, OwnableSpace)]

    def alliance_spaces(self, alliance_id: str) -> List[CountrySpace]:
        return [s for s in self.spaces if isinstance(s, CountrySpace) and s.alliance == alliance_id]

    def alliance_ids(self) -> List[str]:
        seen: List[str] = []
        for s in self.spaces:
            if isinstance(s, CountrySpace) and s.alliance not in seen:
                seen.append(s.alliance)
        return seen

    def position_of(self, name: str) -> Optional[int]:
        for s in self.spaces:
            if s.name == name:
                return s.space_id
        return None

    def find_next(self, start: int, predicate: Callable[[Space], bool]) -> Optional[int]:
        """First space strictly after `start` (wrapping) matching the predicate."""
        total = len(self.spaces)
        for step in range(1, total):
            pos = (start + step) % total
            if predicate(self.spaces[pos]):
                return pos
        return None

    def side_of(self, space_id: int) -> str:
        """Layout side for a space; informational only."""
        side = 0
        for i, corner in enumerate(self.corners):
            if space_id >= corner:
                side = i
        return SIDES[side]
