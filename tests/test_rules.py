"""
Tests for action parsing, dispatch and legal-action listing.
"""

import pytest

from econwars.game import Phase
from econwars.rules import (
    BuyProperty,
    DevelopProperty,
    ProposeTrade,
    RollDice,
    apply_action,
    get_legal_actions,
    parse_action,
)

from conftest import grant


def test_parse_accepts_client_spelling():
    action = parse_action({"actionType": "develop-property", "spaceId": 6})
    assert isinstance(action, DevelopProperty)
    assert action.space_id == 6


def test_parse_trade_terms():
    action = parse_action(
        {
            "action_type": "propose-trade",
            "partnerId": "abc",
            "offer": {"giveMoney": 100, "getProperties": [3]},
        }
    )
    assert isinstance(action, ProposeTrade)
    assert action.offer.give_money == 100
    assert action.offer.get_properties == [3]


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "roll-dice",
        {"actionType": "teleport"},
        {"actionType": "develop-property", "spaceId": "north"},
        {"actionType": "propose-trade", "partnerId": "abc", "offer": {"giveMoney": -1}},
    ],
)
def test_parse_rejects_malformed(payload):
    assert parse_action(payload) is None


def test_claimed_actor_is_ignored():
    action = parse_action({"actionType": "roll-dice", "fromPlayerId": "someone-else"})
    assert isinstance(action, RollDice)


def test_turn_actions_only_for_current_player(engine, game, alice, bob, dice):
    dice.queue(1, 2)
    assert not apply_action(engine, bob.id, RollDice(action_type="roll-dice"))
    assert apply_action(engine, alice.id, RollDice(action_type="roll-dice"))
    assert not apply_action(engine, bob.id, BuyProperty(action_type="buy-property"))
    assert apply_action(engine, alice.id, BuyProperty(action_type="buy-property"))
    assert game.owner_of(3) == alice.id


def test_management_actions_allowed_out_of_turn(engine, game, bob):
    grant(game, bob, 6)
    action = parse_action({"actionType": "mortgage-property", "spaceId": 6})
    assert apply_action(engine, bob.id, action)
    assert game.ownership[6].mortgaged


def test_out_of_range_space_is_rejected(engine, bob):
    action = parse_action({"actionType": "mortgage-property", "spaceId": 400})
    assert not apply_action(engine, bob.id, action)


def test_legal_actions_at_start(engine, alice, bob):
    assert "roll-dice" in get_legal_actions(engine, alice.id)
    assert "roll-dice" not in get_legal_actions(engine, bob.id)
    assert "propose-trade" in get_legal_actions(engine, bob.id)


def test_legal_actions_in_action_phase(engine, game, alice):
    alice.position = 1
    game.phase = Phase.ACTION
    actions = get_legal_actions(engine, alice.id)
    assert "buy-property" in actions
    assert "decline-purchase" in actions
    assert "end-turn" not in actions


def test_legal_actions_block_end_turn_when_insolvent(engine, game, alice):
    grant(game, alice, 1)
    alice.money = -50
    game.phase = Phase.END_TURN
    actions = get_legal_actions(engine, alice.id)
    assert "end-turn" not in actions
    assert "mortgage-property" in actions


def test_legal_actions_empty_for_unknown_player(engine):
    assert get_legal_actions(engine, "nobody") == []
