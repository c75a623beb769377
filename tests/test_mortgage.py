"""
Tests for mortgaging and selling property back to the bank.
"""

from conftest import grant


def test_mortgage_pays_half_price(engine, game, alice):
    grant(game, alice, 6)
    assert engine.mortgage_property(alice.id, 6)
    assert game.ownership[6].mortgaged
    assert alice.money == 8500


def test_unmortgage_costs_principal_plus_interest(engine, game, alice):
    """Yerevan (1000) unmortgages for exactly 550."""
    grant(game, alice, 6, mortgaged=True)

    assert engine.unmortgage_cost(6) == 550
    assert engine.unmortgage_property(alice.id, 6)
    assert alice.money == 8000 - 550
    assert not game.ownership[6].mortgaged


def test_unmortgage_needs_cash(engine, game, alice):
    grant(game, alice, 6, mortgaged=True)
    alice.money = 549
    assert not engine.unmortgage_property(alice.id, 6)
    assert game.ownership[6].mortgaged


def test_cannot_mortgage_developed_or_twice(engine, game, alice):
    grant(game, alice, 1, 3, 6, level=1)
    assert not engine.mortgage_property(alice.id, 1)

    grant(game, alice, 5)
    assert engine.mortgage_property(alice.id, 5)
    assert not engine.mortgage_property(alice.id, 5)


def test_cannot_mortgage_others_property(engine, game, alice, bob):
    grant(game, bob, 6)
    assert not engine.mortgage_property(alice.id, 6)
    assert not engine.mortgage_property(alice.id, 99)


def test_sell_property_to_bank(engine, game, alice):
    grant(game, alice, 6)
    assert engine.sell_property(alice.id, 6)
    assert alice.money == 8500
    assert game.owner_of(6) is None
    assert alice.properties == []


def test_sell_mortgaged_property_pays_quarter(engine, game, alice):
    grant(game, alice, 6, mortgaged=True)
    assert engine.sell_property(alice.id, 6)
    assert alice.money == 8250


def test_sell_property_includes_developments(engine, game, alice):
    """Gyumri level 2: 300 for the land, 150 and 225 back for the two tiers."""
    grant(game, alice, 1, 3, 6)
    game.ownership[1].development_level = 2
    assert engine.sell_property(alice.id, 1)
    assert alice.money == 8000 + 300 + 150 + 225
    assert game.ownership[1].development_level == 0
