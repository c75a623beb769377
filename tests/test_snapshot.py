"""
Tests for the versioned snapshot documents.
"""

import json

import pytest

from econwars.config import GameConfig
from econwars.engine import GameEngine
from econwars.exceptions import SnapshotError, SnapshotVersionError
from econwars.game import ActiveEffect, EffectType, Phase, create_game
from econwars.snapshot import SCHEMA_VERSION, from_document, public_document, to_document
from econwars.spaces import DeckType

from conftest import grant


def _as_json(doc):
    return json.loads(json.dumps(doc))


@pytest.fixture
def busy_game(engine, game, alice, bob, dice):
    """A game with purchases, a mortgage, an effect and a pending trade."""
    dice.queue(1, 2)
    engine.roll_dice(alice.id)
    engine.buy_property(alice.id)
    grant(game, bob, 31, 32, 34)
    engine.mortgage_property(bob.id, 31)
    game.active_effects.append(ActiveEffect(EffectType.EMBARGO, 2, alice.id))
    engine.propose_trade(bob.id, alice.id, give_money=100, get_properties=[3])
    return game


def test_document_is_json_and_round_trips(busy_game):
    doc = _as_json(to_document(busy_game))
    restored = from_document(doc)

    assert doc["schema_version"] == SCHEMA_VERSION
    assert _as_json(to_document(restored)) == doc
    assert restored.owner_of(3) == busy_game.owner_of(3)
    assert restored.ownership[31].mortgaged
    assert restored.phase is Phase.END_TURN
    assert restored.trade_offers[0].is_pending()
    assert restored.active_effects[0].target_id == busy_game.players[0].id


def test_deck_order_survives(busy_game):
    restored = from_document(to_document(busy_game))
    for deck_type in DeckType:
        assert [c.id for c in restored.decks[deck_type].cards] == [
            c.id for c in busy_game.decks[deck_type].cards
        ]


def test_public_document_hides_decks(busy_game):
    doc = public_document(busy_game)
    for deck_type in DeckType:
        assert doc["decks"][deck_type.value] == []
        assert doc["discards"][deck_type.value] == []
        assert doc["deck_counts"][deck_type.value] == len(busy_game.decks[deck_type].cards)


def test_unknown_version_rejected(busy_game):
    doc = to_document(busy_game)
    doc["schema_version"] = SCHEMA_VERSION + 1
    with pytest.raises(SnapshotVersionError):
        from_document(doc)


def test_malformed_document_rejected(busy_game):
    doc = to_document(busy_game)
    del doc["players"]
    with pytest.raises(SnapshotError):
        from_document(doc)
    with pytest.raises(SnapshotError):
        from_document(["not", "a", "mapping"])


def test_engine_resumes_from_document(busy_game, bob):
    engine = GameEngine.from_document(_as_json(to_document(busy_game)))
    state = engine.state
    assert state.current_player().name == "Alice"
    assert engine.end_turn(state.current_player().id)
    assert state.current_player().id == bob.id
    assert engine.roll_dice(bob.id) is not None


def test_public_document_withholds_seed():
    seeded = create_game(["Alice", "Bob"], config=GameConfig(seed=42))
    assert "seed" not in public_document(seeded)["config"]
    assert to_document(seeded)["config"]["seed"] == 42
