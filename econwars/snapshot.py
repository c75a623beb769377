"""
Versioned (de)serialization of the game state.

Documents are flat and JSON-compatible: players, spaces and trades refer
to each other only by id. `public_document` is what clients receive; it
never contains undrawn or discarded cards.
"""

from dataclasses import asdict
from typing import Any, Dict, List

from pydantic import ValidationError

from econwars.board import MAPS, Board
from econwars.cards import Deck, card_adapter
from econwars.config import GameConfig
from econwars.events import GameLog, LogEntry, LogKind
from econwars.exceptions import SnapshotError, SnapshotVersionError
from econwars.game import ActiveEffect, DiceRoll, EffectType, GameState, Phase
from econwars.player import Player
from econwars.spaces import DeckType
from econwars.trade import PropertyTerms, TradeOffer, TradeStatus

SCHEMA_VERSION = 1


def _player_doc(player: Player) -> Dict[str, Any]:
    doc = asdict(player)
    doc["properties"] = list(player.properties)
    return doc


def _trade_doc(trade: TradeOffer) -> Dict[str, Any]:
    return {
        "id": trade.id,
        "from_id": trade.from_id,
        "to_id": trade.to_id,
        "give_money": trade.give_money,
        "get_money": trade.get_money,
        "give_properties": list(trade.give_properties),
        "get_properties": list(trade.get_properties),
        "status": trade.status.value,
        "terms": [asdict(t) for t in trade.terms],
        "proposed_turn": trade.proposed_turn,
    }


def to_document(state: GameState) -> Dict[str, Any]:
    """Full state, including deck order; for persistence only."""
    return {
        "schema_version": SCHEMA_VERSION,
        "id": state.id,
        "map_id": state.map_id,
        "total_spaces": state.total_spaces,
        "corners": list(state.corners),
        "grid_size": state.grid_size,
        "config": asdict(state.config),
        "players": [_player_doc(p) for p in state.players],
        "current_player_index": state.current_player_index,
        "phase": state.phase.value,
        "turn_number": state.turn_number,
        "round_number": state.round_number,
        "ownership": [
            {
                "space_id": sid,
                "owner_id": own.owner_id,
                "development_level": own.development_level,
                "mortgaged": own.mortgaged,
            }
            for sid, own in sorted(state.ownership.items())
        ],
        "decks": {t.value: [c.model_dump() for c in d.cards] for t, d in state.decks.items()},
        "discards": {t.value: [c.model_dump() for c in d.discard] for t, d in state.decks.items()},
        "last_dice": (
            {
                "d1": state.last_dice.d1,
                "d2": state.last_dice.d2,
                "total": state.last_dice.total,
                "is_doubles": state.last_dice.is_doubles,
            }
            if state.last_dice
            else None
        ),
        "current_card": state.current_card.model_dump() if state.current_card else None,
        "active_effects": [
            {"type": e.type.value, "expires_round": e.expires_round, "target_id": e.target_id}
            for e in state.active_effects
        ],
        "trade_offers": [_trade_doc(t) for t in state.trade_offers],
        "pending_purchase_discount": state.pending_purchase_discount,
        "log": [
            {"time": e.time, "turn": e.turn, "message": e.message, "kind": e.kind.value}
            for e in state.log.entries
        ],
        "winner": state.winner,
        "game_over": state.game_over,
    }


def public_document(state: GameState) -> Dict[str, Any]:
    """State as broadcast to clients: decks, discards and the RNG seed are withheld."""
    doc = to_document(state)
    doc["config"].pop("seed", None)
    doc["deck_counts"] = {t.value: len(d.cards) for t, d in state.decks.items()}
    doc["decks"] = {t.value: [] for t in state.decks}
    doc["discards"] = {t.value: [] for t in state.decks}
    return doc


def _cards(raw: List[Dict[str, Any]]):
    return [card_adapter.validate_python(c) for c in raw]


def from_document(doc: Dict[str, Any]) -> GameState:
    """
    Rebuild a GameState from `to_document` output.

    Raises:
        SnapshotVersionError: unknown schema version
        SnapshotError: missing or malformed fields
    """
    if not isinstance(doc, dict):
        raise SnapshotError("Snapshot must be a mapping")
    version = doc.get("schema_version")
    if version != SCHEMA_VERSION:
        raise SnapshotVersionError(f"Unsupported snapshot schema version: {version!r}")

    try:
        map_id = doc["map_id"]
        if map_id not in MAPS:
            raise SnapshotError(f"Unknown map: {map_id}")
        config = GameConfig(**doc["config"])
        players = [Player(**p) for p in doc["players"]]
        decks = {}
        for deck_type in DeckType:
            decks[deck_type] = Deck(
                deck_type,
                _cards(doc["decks"][deck_type.value]),
                _cards(doc["discards"][deck_type.value]),
            )

        state = GameState(config, Board(map_id), players, decks, game_id=doc["id"])
        for entry in doc["ownership"]:
            own = state.ownership[entry["space_id"]]
            own.owner_id = entry["owner_id"]
            own.development_level = entry["development_level"]
            own.mortgaged = entry["mortgaged"]

        state.current_player_index = doc["current_player_index"]
        state.phase = Phase(doc["phase"])
        state.turn_number = doc["turn_number"]
        state.round_number = doc["round_number"]
        dice = doc["last_dice"]
        state.last_dice = DiceRoll(dice["d1"], dice["d2"]) if dice else None
        card = doc["current_card"]
        state.current_card = card_adapter.validate_python(card) if card else None
        state.active_effects = [
            ActiveEffect(EffectType(e["type"]), e["expires_round"], e.get("target_id"))
            for e in doc["active_effects"]
        ]
        state.trade_offers = [
            TradeOffer(
                id=t["id"],
                from_id=t["from_id"],
                to_id=t["to_id"],
                give_money=t["give_money"],
                get_money=t["get_money"],
                give_properties=list(t["give_properties"]),
                get_properties=list(t["get_properties"]),
                status=TradeStatus(t["status"]),
                terms=[PropertyTerms(**terms) for terms in t["terms"]],
                proposed_turn=t.get("proposed_turn", 0),
            )
            for t in doc["trade_offers"]
        ]
        state.pending_purchase_discount = doc.get("pending_purchase_discount")
        state.log = GameLog(
            config.log_limit,
            [LogEntry(e["time"], e["turn"], e["message"], LogKind(e["kind"])) for e in doc["log"]],
        )
        state.winner = doc["winner"]
        state.game_over = doc["game_over"]
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise SnapshotError(f"Malformed snapshot: {e}") from e

    if not 0 <= state.current_player_index < len(state.players):
        raise SnapshotError("Current player index out of range")
    return state
