"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from backgammon_engine.core.dice import dice_values
from backgammon_engine.core.types import DiceRoll, GamePhase, GameState


@pytest.fixture
def rng():
    """Create a seeded NumPy random generator for testing."""
    return np.random.default_rng(42)


@pytest.fixture
def sample_board():
    """Create a sample board state for testing."""
    from backgammon_engine.core.board import initial_board
    return initial_board()


@pytest.fixture
def make_state():
    """Factory for a mid-game state with a given board, player and roll.

    With a roll the state is in ``moving`` with the roll's dice unused;
    without one it is in ``rolling``.
    """
    def _make(board, player, roll=None, cube=None, remaining=None):
        if roll is None:
            return GameState(
                board=board,
                current_player=player,
                phase=GamePhase.ROLLING,
                turn_number=1,
                doubling_cube=cube,
            )
        dice_roll = roll if isinstance(roll, DiceRoll) else DiceRoll(*roll)
        return GameState(
            board=board,
            current_player=player,
            phase=GamePhase.MOVING,
            dice_roll=dice_roll,
            remaining_moves=tuple(remaining) if remaining is not None else dice_values(dice_roll),
            turn_number=1,
            doubling_cube=cube,
        )
    return _make
