"""
Tests for game creation and board layout.
"""

import random

import pytest

from econwars.board import MAPS, Board
from econwars.config import PLAYER_COLORS
from econwars.exceptions import InvalidGameSetupError
from econwars.game import Phase, create_game
from econwars.spaces import CountrySpace, SpecialKind, SpecialSpace


def test_new_game_defaults():
    """Every player starts on the start space with the starting purse."""
    state = create_game(["Alice", "Bob", "Cara"], rng=random.Random(1))

    assert state.phase is Phase.PRE_ROLL
    assert state.turn_number == 1
    assert state.round_number == 1
    assert state.current_player().name == "Alice"
    assert not state.game_over and state.winner is None
    for i, p in enumerate(state.players):
        assert p.money == 8000
        assert p.position == 0
        assert p.influence == 0
        assert p.properties == []
        assert p.color == PLAYER_COLORS[i]
    assert len({p.id for p in state.players}) == 3
    assert all(len(p.id) == 9 for p in state.players)


def test_every_ownable_space_starts_unowned():
    state = create_game(["Alice", "Bob"], rng=random.Random(1))
    assert state.ownership
    assert all(own.owner_id is None for own in state.ownership.values())


@pytest.mark.parametrize("names", [["Solo"], ["P%d" % i for i in range(9)]])
def test_player_count_is_bounded(names):
    with pytest.raises(InvalidGameSetupError):
        create_game(names)


def test_duplicate_or_blank_names_rejected():
    with pytest.raises(InvalidGameSetupError):
        create_game(["Alice", "Alice"])
    with pytest.raises(InvalidGameSetupError):
        create_game(["Alice", "  "])


def test_unknown_map_rejected():
    with pytest.raises(InvalidGameSetupError):
        create_game(["Alice", "Bob"], map_id="moon")


def test_avatars_are_kept_when_valid():
    state = create_game(["Alice", "Bob"], avatars=[5, 99], rng=random.Random(1))
    assert state.players[0].avatar == 5
    assert state.players[1].avatar == 1


@pytest.mark.parametrize("map_id", list(MAPS))
def test_map_geometry(map_id):
    """Space ids are contiguous and the corners hold the four specials."""
    board = Board(map_id)
    definition = MAPS[map_id]

    assert board.total_spaces == definition.total_spaces
    assert [s.space_id for s in board.spaces] == list(range(board.total_spaces))
    kinds = [board.spaces[c].kind for c in board.corners]
    assert kinds == [SpecialKind.GO, SpecialKind.SANCTIONS, SpecialKind.FREE_TRADE, SpecialKind.INCIDENT]
    assert board.sanctions_position == board.corners[1]


def test_country_rent_schedules_have_six_entries():
    for map_id in MAPS:
        for space in Board(map_id).spaces:
            if isinstance(space, CountrySpace):
                assert len(space.rents) == 6


def test_expanded_map_has_more_alliances():
    assert len(Board("classic").alliance_ids()) == 8
    assert len(Board("expanded").alliance_ids()) == 10


def test_get_space_out_of_range_is_none():
    board = Board()
    assert board.get_space(-1) is None
    assert board.get_space(40) is None
    assert board.get_space("3") is None
    assert isinstance(board.get_space(0), SpecialSpace)
