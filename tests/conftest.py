"""Shared test fixtures for Global Economic Wars tests."""

import random

import pytest

from econwars.engine import GameEngine
from econwars.game import create_game


class ScriptedRandom(random.Random):
    """Random source whose dice come from a queued script; everything else is seeded."""

    def __init__(self, seed=7):
        super().__init__(seed)
        self.rolls = []

    def queue(self, *values):
        self.rolls.extend(values)

    def randint(self, a, b):
        if self.rolls:
            return self.rolls.pop(0)
        return super().randint(a, b)


class Recorder:
    """Engine observer that keeps everything it is told."""

    def __init__(self):
        self.states = []
        self.animations = []

    def on_state_changed(self, state):
        self.states.append(state)

    def on_animation(self, event):
        self.animations.append(event)


def grant(state, player, *space_ids, level=0, mortgaged=False):
    """Hand spaces straight to a player, bypassing purchase."""
    for sid in space_ids:
        own = state.ownership[sid]
        own.owner_id = player.id
        own.development_level = level
        own.mortgaged = mortgaged
        if sid not in player.properties:
            player.properties.append(sid)


@pytest.fixture
def dice():
    """Dice that roll whatever a test queues."""
    return ScriptedRandom()


@pytest.fixture
def game(dice):
    """Two-player classic game: Alice (seat 0, current) and Bob."""
    return create_game(["Alice", "Bob"], rng=dice)


@pytest.fixture
def engine(game, dice):
    return GameEngine(game, rng=dice)


@pytest.fixture
def alice(game):
    return game.players[0]


@pytest.fixture
def bob(game):
    return game.players[1]


@pytest.fixture
def recorder(engine):
    rec = Recorder()
    engine.subscribe(rec)
    return rec
