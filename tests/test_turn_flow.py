"""
Tests for turn flow: rolling, moving, buying and passing the turn.
"""

import random

from econwars.engine import GameEngine
from econwars.events import AnimationType
from econwars.game import Phase, create_game


def test_roll_moves_and_offers_purchase(engine, game, alice, dice):
    """Landing on an unowned country opens the buy/decline decision."""
    dice.queue(1, 2)
    roll = engine.roll_dice(alice.id)

    assert roll.total == 3
    assert not roll.is_doubles
    assert alice.position == 3
    assert game.phase is Phase.ACTION


def test_buy_country_at_listed_price(engine, game, alice):
    """Buying Gyumri (600) leaves 7400 and records the owner."""
    alice.position = 1
    game.phase = Phase.ACTION

    assert engine.buy_property(alice.id)

    assert alice.money == 7400
    assert game.owner_of(1) == alice.id
    assert alice.properties == [1]
    assert alice.influence == 10
    assert game.phase is Phase.END_TURN


def test_buy_requires_action_phase(engine, game, alice):
    alice.position = 1
    assert game.phase is Phase.PRE_ROLL
    assert not engine.buy_property(alice.id)
    assert game.owner_of(1) is None


def test_buy_requires_funds(engine, game, alice):
    alice.position = 39
    alice.money = 100
    game.phase = Phase.ACTION
    assert not engine.buy_property(alice.id)
    assert alice.money == 100


def test_decline_then_end_turn(engine, game, alice, bob, dice):
    dice.queue(1, 2)
    engine.roll_dice(alice.id)

    assert engine.decline_purchase(alice.id)
    assert game.phase is Phase.END_TURN
    assert engine.end_turn(alice.id)

    assert game.current_player() is bob
    assert game.phase is Phase.PRE_ROLL
    assert game.turn_number == 2
    assert alice.turns_played == 1


def test_only_current_player_may_roll(engine, game, bob):
    assert engine.roll_dice(bob.id) is None
    assert bob.position == 0
    assert game.phase is Phase.PRE_ROLL


def test_cannot_end_turn_before_rolling(engine, alice):
    assert not engine.end_turn(alice.id)


def test_doubles_grant_another_turn(engine, game, alice, dice):
    """Import Tariff at 4 is paid, then the same player rolls again."""
    dice.queue(2, 2)
    engine.roll_dice(alice.id)

    assert alice.position == 4
    assert alice.money == 7400
    assert engine.end_turn(alice.id)
    assert game.current_player() is alice
    assert game.phase is Phase.PRE_ROLL
    assert alice.doubles_count == 1


def test_third_consecutive_doubles_goes_to_sanctions(engine, game, alice, bob, dice):
    """The third double sends the player to sanctions instead of moving by its total."""
    dice.queue(2, 2)
    engine.roll_dice(alice.id)
    engine.end_turn(alice.id)

    dice.queue(1, 1)
    engine.roll_dice(alice.id)
    assert alice.position == 6
    engine.decline_purchase(alice.id)
    engine.end_turn(alice.id)

    dice.queue(4, 4)
    engine.roll_dice(alice.id)

    assert alice.in_sanctions
    assert alice.position == game.board.sanctions_position
    assert alice.position != 14
    assert alice.doubles_count == 0
    assert game.phase is Phase.END_TURN

    # no bonus turn from sanctions
    assert engine.end_turn(alice.id)
    assert game.current_player() is bob


def test_non_double_resets_doubles_count(engine, alice, dice):
    dice.queue(2, 2)
    engine.roll_dice(alice.id)
    engine.end_turn(alice.id)
    dice.queue(1, 2)
    engine.roll_dice(alice.id)
    assert alice.doubles_count == 0


def test_passing_start_pays_salary(engine, alice, dice):
    alice.position = 38
    dice.queue(1, 2)
    engine.roll_dice(alice.id)

    assert alice.position == 1
    assert alice.money == 8000 + 700
    assert alice.influence == 20


def test_salary_grows_with_influence(engine, alice):
    alice.influence = 120
    assert engine.calculate_go_salary(alice) == 700 + 2 * 10


def test_free_trade_zone_bonus(engine, game, alice, dice):
    alice.position = 17
    dice.queue(1, 2)
    engine.roll_dice(alice.id)

    assert alice.position == 20
    assert alice.money == 8100
    assert alice.influence == 10
    assert game.phase is Phase.END_TURN


def test_dice_faces_stay_in_range():
    for seed in range(40):
        engine = GameEngine(create_game(["A", "B"], rng=random.Random(seed)), rng=random.Random(seed))
        roll = engine.roll_dice()
        assert 1 <= roll.d1 <= 6
        assert 1 <= roll.d2 <= 6


def test_successful_action_emits_state_once(engine, alice, recorder, dice):
    dice.queue(1, 2)
    engine.roll_dice(alice.id)

    assert len(recorder.states) == 1
    kinds = [a.type for a in recorder.animations]
    assert kinds[:2] == [AnimationType.DICE, AnimationType.MOVE]


def test_rejected_action_emits_nothing(engine, bob, recorder):
    engine.roll_dice(bob.id)
    engine.buy_property(bob.id)
    assert recorder.states == []
    assert recorder.animations == []


def test_skip_turn_advances_round(engine, game, alice, bob):
    engine.skip_turn()
    assert game.current_player() is bob
    assert game.round_number == 1
    engine.skip_turn()
    assert game.current_player() is alice
    assert game.round_number == 2
