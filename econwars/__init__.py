"""
Global Economic Wars rules engine

An authoritative implementation of the Global Economic Wars board game:
turn state machine, rent and development rules, card decks, trading,
influence actions, bankruptcy and victory.
"""

from .config import GameConfig
from .board import Board, MAPS
from .player import Player
from .game import GameState, Phase, create_game
from .engine import GameEngine
from .snapshot import SCHEMA_VERSION, from_document, public_document, to_document

__all__ = [
    "GameConfig",
    "Board",
    "MAPS",
    "Player",
    "GameState",
    "Phase",
    "create_game",
    "GameEngine",
    "SCHEMA_VERSION",
    "to_document",
    "from_document",
    "public_document",
]
