"""
Tests for developing countries, from undeveloped up to capital.
"""

from econwars.config import CAPITAL_LEVEL

from conftest import grant


def test_develop_requires_complete_alliance(engine, game, alice):
    grant(game, alice, 1, 3)
    assert not engine.develop_property(alice.id, 1)
    assert game.ownership[1].development_level == 0


def test_develop_charges_tier_cost(engine, game, alice):
    """Tier 1 costs half the country's price."""
    grant(game, alice, 1, 3, 6)
    assert engine.develop_property(alice.id, 1)

    assert game.ownership[1].development_level == 1
    assert alice.money == 8000 - 300
    assert alice.influence == 5
    assert alice.development_count == 1


def test_develop_needs_cash(engine, game, alice):
    grant(game, alice, 1, 3, 6)
    alice.money = 299
    assert not engine.develop_property(alice.id, 1)


def test_cannot_develop_mortgaged(engine, game, alice):
    grant(game, alice, 1, 3, 6)
    game.ownership[1].mortgaged = True
    assert not engine.develop_property(alice.id, 1)


def test_cannot_develop_someone_elses(engine, game, alice, bob):
    grant(game, bob, 1, 3, 6)
    assert not engine.develop_property(alice.id, 1)


def test_one_capital_per_alliance(engine, game, alice):
    grant(game, alice, 1, 3, 6, level=3)

    assert engine.development_cost(1) == 900
    assert engine.develop_property(alice.id, 1)
    assert game.ownership[1].development_level == CAPITAL_LEVEL

    assert engine.development_cost(3) is None
    assert not engine.develop_property(alice.id, 3)
    assert engine.development_cost(1) is None


def test_asian_tigers_tech_hub_discount(engine, game, alice):
    grant(game, alice, 26, 27, 29, level=2)
    assert engine.development_cost(26) == 1300


def test_tech_hub_full_price_elsewhere(engine, game, alice):
    grant(game, alice, 21, 23, 24, level=2)
    assert engine.development_cost(24) == 2600


def test_sell_development_refunds_half(engine, game, alice):
    grant(game, alice, 1, 3, 6, level=1)
    assert engine.sell_development(alice.id, 1)
    assert game.ownership[1].development_level == 0
    assert alice.money == 8000 + 150
    assert not engine.sell_development(alice.id, 1)


def test_free_upgrade(engine, game, alice):
    grant(game, alice, 1, 3, 6)
    alice.has_free_upgrade = True

    assert engine.free_upgrade_property(alice.id, 3)
    assert game.ownership[3].development_level == 1
    assert alice.money == 8000
    assert not alice.has_free_upgrade
    assert not engine.free_upgrade_property(alice.id, 3)


def test_transport_cannot_be_developed(engine, game, alice):
    grant(game, alice, 5)
    assert engine.development_cost(5) is None
    assert not engine.develop_property(alice.id, 5)
