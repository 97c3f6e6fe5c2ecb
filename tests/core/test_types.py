"""Tests for core type definitions."""

import dataclasses

import pytest
from backgammon_engine.core.types import (
    BAR,
    OFF,
    Board,
    CheckerCounts,
    DiceRoll,
    GameOptions,
    GamePhase,
    GameState,
    MatchConfig,
    MatchScore,
    Move,
    Player,
    VictoryType,
    is_valid_die_value,
    is_valid_point_index,
)


class TestPlayer:
    """Tests for Player enum."""

    def test_opponent(self):
        """Test getting opponent."""
        assert Player.WHITE.opponent() == Player.BLACK
        assert Player.BLACK.opponent() == Player.WHITE

    def test_str(self):
        """Test string form is the wire value."""
        assert str(Player.WHITE) == "white"
        assert str(Player.BLACK) == "black"


class TestValidators:
    """Tests for point and die validators."""

    def test_point_index(self):
        """Points are ints 1-24."""
        assert is_valid_point_index(1)
        assert is_valid_point_index(24)
        assert not is_valid_point_index(0)
        assert not is_valid_point_index(25)
        assert not is_valid_point_index("5")
        assert not is_valid_point_index(True)

    def test_die_value(self):
        """Dice are ints 1-6."""
        assert all(is_valid_die_value(d) for d in range(1, 7))
        assert not is_valid_die_value(0)
        assert not is_valid_die_value(7)
        assert not is_valid_die_value(2.0)


class TestBoard:
    """Tests for Board dataclass."""

    def test_default_board_is_empty(self):
        """A default board has no checkers anywhere."""
        board = Board()
        assert board.points == (0,) * 24
        assert board.bar == CheckerCounts(0, 0)
        assert board.borne_off == CheckerCounts(0, 0)

    def test_points_normalised_to_tuple(self):
        """Points given as a list are stored as a tuple."""
        board = Board(points=[0] * 23 + [2])
        assert isinstance(board.points, tuple)
        assert board.at(24) == 2

    def test_wrong_length_rejected(self):
        """Points must have exactly 24 entries."""
        with pytest.raises(AssertionError):
            Board(points=(0,) * 23)

    def test_board_is_immutable(self):
        """Boards are frozen."""
        board = Board()
        with pytest.raises(dataclasses.FrozenInstanceError):
            board.points = (1,) * 24

    def test_checker_counts(self):
        """Per-color counters update by copy."""
        counts = CheckerCounts(white=1, black=2)
        assert counts.get(Player.WHITE) == 1
        assert counts.add(Player.BLACK, 3) == CheckerCounts(white=1, black=5)
        assert counts == CheckerCounts(white=1, black=2)


class TestMove:
    """Tests for Move and DiceRoll dataclasses."""

    def test_valid_moves(self):
        """Test creating valid moves."""
        assert Move(24, 18, 6).die_used == 6
        assert Move(BAR, 22, 3).from_point == BAR
        assert Move(3, OFF, 3).to_point == OFF

    def test_invalid_moves(self):
        """Test invalid moves raise assertion."""
        with pytest.raises(AssertionError):
            Move(0, 5, 3)
        with pytest.raises(AssertionError):
            Move(8, 25, 3)
        with pytest.raises(AssertionError):
            Move(8, 5, 7)
        with pytest.raises(AssertionError):
            Move(OFF, 5, 3)

    def test_dice_roll(self):
        """Test DiceRoll validation and doubles detection."""
        assert DiceRoll(4, 4).is_doubles
        assert not DiceRoll(3, 1).is_doubles
        with pytest.raises(AssertionError):
            DiceRoll(0, 3)


class TestGameConfig:
    """Tests for option and configuration dataclasses."""

    def test_victory_multipliers(self):
        """Single, gammon and backgammon are worth 1, 2 and 3."""
        assert VictoryType.SINGLE.multiplier == 1
        assert VictoryType.GAMMON.multiplier == 2
        assert VictoryType.BACKGAMMON.multiplier == 3

    def test_cube_in_play(self):
        """Crawford disables the cube even when enabled."""
        assert not GameOptions().cube_in_play
        assert GameOptions(enable_doubling_cube=True).cube_in_play
        assert not GameOptions(enable_doubling_cube=True, is_crawford_game=True).cube_in_play

    def test_match_config_validation(self):
        """Target score must be a positive int."""
        assert MatchConfig(target_score=5).enable_doubling_cube
        with pytest.raises(ValueError):
            MatchConfig(target_score=0)
        with pytest.raises(ValueError):
            MatchConfig(target_score="5")

    def test_match_score_add(self):
        """Adding points returns a new score."""
        score = MatchScore().add(Player.BLACK, 2).add(Player.WHITE, 1)
        assert (score.white, score.black) == (1, 2)

    def test_initial_game_state_defaults(self):
        """A default GameState has not started."""
        state = GameState()
        assert state.phase == GamePhase.NOT_STARTED
        assert state.current_player is None
        assert state.action_history == ()
