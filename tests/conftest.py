"""
Shared pytest fixtures for Mergers tests.

Game state fixtures are function-scoped so tests never share state. See
``tests/helpers.py`` for the board notation.
"""

from typing import Callable

import pytest

from mergers.models import Chain, GameState, Move, MoveType, Player
from tests.helpers import make_player, make_state


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def player_factory() -> Callable[..., Player]:
    """Factory for creating Player instances with customizable defaults."""
    return make_player


@pytest.fixture
def move_factory() -> Callable[..., Move]:
    """Factory for creating Move instances."""

    def _create_move(move_type: MoveType, player: str = "0", **kwargs) -> Move:
        return Move(type=move_type, player=player, **kwargs)

    return _create_move


@pytest.fixture
def game_state_factory() -> Callable[..., GameState]:
    """Factory for creating GameState instances from a drawn board."""
    return make_state


# =============================================================================
# COMMON GAME STATE FIXTURES
# =============================================================================


@pytest.fixture
def two_chain_merger_state() -> GameState:
    """Tower (3) and Luxor (4) one tile apart; player 0 can join them at 3-B.

    Player 0 holds the only three Tower shares in play.
    """
    return make_state(
        [
            "T T T .",
            ". . 0 .",
            "L L L L",
        ],
        stocks={"0": {Chain.TOWER: 3}},
    )


@pytest.fixture
def tied_merger_state() -> GameState:
    """Tower (2) and Luxor (2) both touch player 0's tile at 2-B."""
    return make_state(
        [
            "T T . .",
            ". 0 . .",
            "L L . .",
        ],
        stocks={"0": {Chain.TOWER: 2}, "1": {Chain.LUXOR: 1}},
    )
