"""
Game configuration settings and static rule tables.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Resource(Enum):
    """Natural resource tag carried by every country."""

    OIL = "oil"
    TECH = "tech"
    AGRICULTURE = "agriculture"
    TOURISM = "tourism"


@dataclass
class GameConfig:
    """Configuration for a Global Economic Wars game."""

    starting_money: int = 8000
    go_salary: int = 700
    salary_influence_step: int = 50
    salary_influence_bonus: int = 10
    go_influence: int = 20

    sanctions_bail: int = 1000
    max_sanctions_turns: int = 3
    max_doubles: int = 3

    influence_to_win: int = 2500
    min_players: int = 2
    max_players: int = 8

    free_trade_bonus: int = 100
    free_trade_influence: int = 10
    purchase_influence: int = 10
    development_influence: int = 5
    rent_influence_divisor: int = 100
    brics_influence_divisor: int = 10

    infrastructure_multiplier: int = 4
    infrastructure_pair_multiplier: int = 8
    south_asian_surcharge: int = 200
    resource_bonus: float = 0.05

    mortgage_rate: float = 0.5
    mortgage_interest_rate: float = 0.10
    liquidation_rate: float = 0.5
    mortgaged_liquidation_rate: float = 0.25

    embargo_cost: int = 200
    embargo_duration: int = 1
    summit_cost: int = 150
    summit_payout: int = 500
    development_grant_cost: int = 100

    oil_nations_round_income: int = 300
    eastern_round_influence: int = 50
    african_rising_round_income: int = 250

    log_limit: int = 200

    seed: Optional[int] = None


@dataclass(frozen=True)
class Alliance:
    """A named group of countries sharing a resource and a completion bonus."""

    alliance_id: str
    name: str
    resource: Resource
    bonus: str


@dataclass(frozen=True)
class DevelopmentTier:
    """One of the five development levels a country can reach."""

    level: int
    name: str
    cost_multiplier: float


ALLIANCES: Dict[str, Alliance] = {
    a.alliance_id: a
    for a in [
        Alliance("EU", "European Union", Resource.TECH, "Developed cities earn double rent"),
        Alliance("EASTERN", "Eastern Partnership", Resource.AGRICULTURE, "+50 influence every round"),
        Alliance("ASIAN_TIGERS", "Asian Tigers", Resource.TECH, "Tech Hub upgrades cost half"),
        Alliance("SOUTH_ASIAN", "South Asian Union", Resource.AGRICULTURE, "+200 flat rent surcharge"),
        Alliance("BRICS", "BRICS", Resource.OIL, "Extra influence from every rent collected"),
        Alliance("OIL_NATIONS", "Oil Nations", Resource.OIL, "+300 income every round"),
        Alliance("AMERICAS", "Americas", Resource.TOURISM, "A free upgrade every round"),
        Alliance("AFRICAN_RISING", "African Rising", Resource.TOURISM, "+250 income every round"),
        Alliance("PACIFIC_ISLANDS", "Pacific Islands", Resource.TOURISM, "Island tourism boom"),
        Alliance("NORDIC", "Nordic Council", Resource.TECH, "Clean energy dividend"),
    ]
}

DEVELOPMENT_TIERS: List[DevelopmentTier] = [
    DevelopmentTier(0, "Undeveloped", 0.0),
    DevelopmentTier(1, "Local Markets", 0.5),
    DevelopmentTier(2, "Factories", 0.75),
    DevelopmentTier(3, "Tech Hubs", 1.0),
    DevelopmentTier(4, "Economic Capital", 1.5),
]

MAX_DEVELOPMENT_LEVEL = len(DEVELOPMENT_TIERS) - 1
CAPITAL_LEVEL = MAX_DEVELOPMENT_LEVEL
TECH_HUB_LEVEL = 3

PLAYER_COLORS: List[str] = [
    "#E74C3C",
    "#3498DB",
    "#2ECC71",
    "#F39C12",
    "#9B59B6",
    "#1ABC9C",
    "#E67E22",
    "#34495E",
]

AVATAR_COUNT = 8


@dataclass
class InfluenceAction:
    """Cost table entry for spending influence."""

    name: str
    cost: int
    description: str = ""
    needs_target: bool = False
    extra: Dict[str, int] = field(default_factory=dict)


def influence_actions(config: GameConfig) -> Dict[str, InfluenceAction]:
    """Influence actions priced from the given configuration."""
    return {
        "embargo": InfluenceAction(
            "embargo",
            config.embargo_cost,
            "Target player collects no rent for one round",
            needs_target=True,
        ),
        "summit": InfluenceAction(
            "summit",
            config.summit_cost,
            "Every active player receives a payout",
            extra={"payout": config.summit_payout},
        ),
        "development_grant": InfluenceAction(
            "development_grant",
            config.development_grant_cost,
            "Grants one free development upgrade",
        ),
    }
