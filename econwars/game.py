"""
Game state aggregate and factory.
"""

import random
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from econwars.board import MAPS, Board
from econwars.cards import CardBase, Deck, create_diplomatic_deck, create_global_news_deck
from econwars.config import AVATAR_COUNT, PLAYER_COLORS, GameConfig, Resource
from econwars.events import GameLog
from econwars.exceptions import InvalidGameSetupError
from econwars.player import Ownership, Player
from econwars.spaces import CountrySpace, DeckType, InfrastructureSpace, Space, TransportSpace
from econwars.trade import TradeOffer


class Phase(Enum):
    """Turn state machine tag."""

    PRE_ROLL = "pre-roll"
    ROLLING = "rolling"
    MOVING = "moving"
    LANDED = "landed"
    ACTION = "action"
    END_TURN = "end-turn"


class EffectType(Enum):
    """Timed rent modifiers."""

    EMBARGO = "embargo"
    HALF_RENT = "half_rent"
    TECH_DOUBLE_RENT = "tech_double_rent"
    TECH_HALF_RENT = "tech_half_rent"


@dataclass
class ActiveEffect:
    """A rent modifier lasting through `expires_round`, optionally aimed at one player."""

    type: EffectType
    expires_round: int
    target_id: Optional[str] = None

    def is_expired(self, round_number: int) -> bool:
        return round_number > self.expires_round


@dataclass(frozen=True)
class DiceRoll:
    d1: int
    d2: int

    @property
    def total(self) -> int:
        return self.d1 + self.d2

    @property
    def is_doubles(self) -> bool:
        return self.d1 == self.d2


class GameState:
    """
    The complete, serializable state of one game.

    Only the engine mutates it; the query helpers here are read-only.
    """

    def __init__(
        self,
        config: GameConfig,
        board: Board,
        players: List[Player],
        decks: Dict[DeckType, Deck],
        game_id: Optional[str] = None,
    ):
        self.id = game_id or uuid.uuid4().hex[:12]
        self.config = config
        self.board = board
        self.players = players
        self.decks = decks

        self.ownership: Dict[int, Ownership] = {s.space_id: Ownership() for s in board.ownable_spaces()}

        self.current_player_index = 0
        self.phase = Phase.PRE_ROLL
        self.turn_number = 1
        self.round_number = 1
        self.last_dice: Optional[DiceRoll] = None
        self.current_card: Optional[CardBase] = None
        self.active_effects: List[ActiveEffect] = []
        self.trade_offers: List[TradeOffer] = []
        self.pending_purchase_discount: Optional[float] = None
        self.log = GameLog(config.log_limit)
        self.winner: Optional[str] = None
        self.game_over = False

    # ---- Map metadata ----

    @property
    def map_id(self) -> str:
        return self.board.map_id

    @property
    def total_spaces(self) -> int:
        return self.board.total_spaces

    @property
    def corners(self):
        return self.board.corners

    @property
    def grid_size(self) -> int:
        return self.board.grid_size

    # ---- Player queries ----

    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def active_players(self) -> List[Player]:
        return [p for p in self.players if not p.bankrupt]

    # ---- Board queries ----

    def space(self, space_id: int) -> Optional[Space]:
        return self.board.get_space(space_id)

    def owner_of(self, space_id: int) -> Optional[str]:
        own = self.ownership.get(space_id)
        return own.owner_id if own else None

    def owned_spaces(self, player_id: str) -> List[Space]:
        return [self.board.spaces[sid] for sid, own in self.ownership.items() if own.owner_id == player_id]

    def has_complete_alliance(self, player_id: Optional[str], alliance_id: str) -> bool:
        if player_id is None:
            return False
        members = self.board.alliance_spaces(alliance_id)
        return bool(members) and all(self.owner_of(s.space_id) == player_id for s in members)

    def transport_count(self, player_id: str) -> int:
        return sum(1 for s in self.owned_spaces(player_id) if isinstance(s, TransportSpace))

    def infrastructure_count(self, player_id: str) -> int:
        return sum(1 for s in self.owned_spaces(player_id) if isinstance(s, InfrastructureSpace))

    def distinct_resources(self, player_id: str) -> List[Resource]:
        found: List[Resource] = []
        for s in self.owned_spaces(player_id):
            if isinstance(s, CountrySpace) and s.resource not in found:
                found.append(s.resource)
        return found

    def get_trade(self, trade_id: str) -> Optional[TradeOffer]:
        for t in self.trade_offers:
            if t.id == trade_id:
                return t
        return None

    def __repr__(self) -> str:
        return (
            f"GameState(id={self.id}, map={self.map_id}, turn={self.turn_number}, "
            f"round={self.round_number}, phase={self.phase.value}, game_over={self.game_over})"
        )


def _player_id(rng: random.Random, taken: Sequence[str]) -> str:
    while True:
        candidate = "%09x" % rng.getrandbits(36)
        if candidate not in taken:
            return candidate


def create_game(
    player_names: Sequence[str],
    map_id: str = "classic",
    avatars: Optional[Sequence[Optional[int]]] = None,
    config: Optional[GameConfig] = None,
    rng: Optional[random.Random] = None,
) -> GameState:
    """
    Create a new game ready for the first roll.

    Args:
        player_names: 2-8 display names in seat order
        map_id: Key into the map registry
        avatars: Optional avatar index per seat
        config: Rule constants; defaults apply when omitted
        rng: Randomness for ids and deck shuffles

    Raises:
        InvalidGameSetupError: bad player count, blank or repeated names,
            or an unknown map
    """
    config = config or GameConfig()
    rng = rng or random.Random(config.seed)

    names = [str(n).strip() for n in player_names]
    if not config.min_players <= len(names) <= config.max_players:
        raise InvalidGameSetupError(
            f"Need {config.min_players}-{config.max_players} players, got {len(names)}"
        )
    if any(not n for n in names):
        raise InvalidGameSetupError("Player names must not be empty")
    if len(set(names)) != len(names):
        raise InvalidGameSetupError("Player names must be unique")
    if map_id not in MAPS:
        raise InvalidGameSetupError(f"Unknown map: {map_id}")

    players: List[Player] = []
    for i, name in enumerate(names):
        avatar = i % AVATAR_COUNT
        if avatars is not None and i < len(avatars):
            chosen = avatars[i]
            if isinstance(chosen, int) and 0 <= chosen < AVATAR_COUNT:
                avatar = chosen
        players.append(
            Player(
                id=_player_id(rng, [p.id for p in players]),
                name=name,
                color=PLAYER_COLORS[i],
                avatar=avatar,
                money=config.starting_money,
            )
        )

    decks = {
        DeckType.GLOBAL_NEWS: create_global_news_deck(rng),
        DeckType.DIPLOMATIC_CABLE: create_diplomatic_deck(rng),
    }
    state = GameState(config, Board(map_id), players, decks)
    state.log.log(f"Game started on the {state.board.name} map with {len(players)} players.", turn=state.turn_number)
    return state
