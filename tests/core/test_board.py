"""Tests for board module."""

import pytest
from backgammon_engine.core.board import (
    INITIAL_POINTS,
    all_checkers_home,
    apply_move,
    assert_valid_board,
    board_from_positions,
    checker_count,
    count_total_checkers,
    empty_board,
    entry_point,
    initial_board,
    is_blocked,
    is_home,
    is_valid_board,
    move_hits,
    pip_count,
    point_owner,
    unapply_move,
)
from backgammon_engine.core.types import BAR, OFF, Board, CheckerCounts, Move, Player
from backgammon_engine.errors import InvalidMoveError, InvariantViolationError


class TestBoardInitialization:
    """Tests for board initialization."""

    def test_initial_board(self):
        """Test standard starting position."""
        board = initial_board()

        assert list(board.points) == [
            -2, 0, 0, 0, 0, 5, 0, 3, 0, 0, 0, -5,
            5, 0, 0, 0, -3, 0, -5, 0, 0, 0, 0, 2,
        ]
        assert board.points == INITIAL_POINTS
        assert board.bar == CheckerCounts(0, 0)
        assert board.borne_off == CheckerCounts(0, 0)

        # Check total
        assert count_total_checkers(board, Player.WHITE) == 15
        assert count_total_checkers(board, Player.BLACK) == 15

    def test_empty_board(self):
        """Test empty board."""
        board = empty_board()
        assert count_total_checkers(board, Player.WHITE) == 0
        assert not is_valid_board(board)[0]

    def test_board_from_positions_defaults_rest_to_off(self):
        """Test that unplaced checkers count as borne off."""
        board = board_from_positions({6: 3}, {19: 2}, black_bar=1)
        assert board.at(6) == 3
        assert board.at(19) == -2
        assert board.borne_off == CheckerCounts(white=12, black=12)
        assert board.bar == CheckerCounts(white=0, black=1)
        assert is_valid_board(board) == (True, "")

    def test_board_from_positions_rejects_mixed_point(self):
        """Test that a point cannot hold both colors."""
        with pytest.raises(ValueError):
            board_from_positions({6: 1}, {6: 1})


class TestBoardQueries:
    """Tests for board query functions."""

    def test_point_owner_and_count(self, sample_board):
        """Test reading ownership and counts from signed points."""
        assert point_owner(sample_board, 6) == Player.WHITE
        assert point_owner(sample_board, 1) == Player.BLACK
        assert point_owner(sample_board, 2) is None
        assert checker_count(sample_board, 6, Player.WHITE) == 5
        assert checker_count(sample_board, 6, Player.BLACK) == 0
        assert checker_count(sample_board, 19, Player.BLACK) == 5

    def test_pip_count_initial(self, sample_board):
        """Test pip count for starting position."""
        # Each player starts with 167 pips
        assert pip_count(sample_board, Player.WHITE) == 167
        assert pip_count(sample_board, Player.BLACK) == 167

    def test_pip_count_includes_bar(self):
        """Test that a checker on the bar counts 25 pips."""
        board = board_from_positions({1: 1}, {24: 1}, white_bar=1)
        assert pip_count(board, Player.WHITE) == 26
        assert pip_count(board, Player.BLACK) == 1

    def test_home_board(self):
        """Test home board membership."""
        assert is_home(Player.WHITE, 1) and is_home(Player.WHITE, 6)
        assert not is_home(Player.WHITE, 7)
        assert is_home(Player.BLACK, 19) and is_home(Player.BLACK, 24)
        assert not is_home(Player.BLACK, 18)

    def test_entry_points(self):
        """Test bar entry points for each player."""
        assert entry_point(Player.WHITE, 1) == 24
        assert entry_point(Player.WHITE, 6) == 19
        assert entry_point(Player.BLACK, 1) == 1
        assert entry_point(Player.BLACK, 6) == 6

    def test_all_checkers_home(self, sample_board):
        """Test bear-off eligibility."""
        assert not all_checkers_home(sample_board, Player.WHITE)

        home = board_from_positions({1: 5, 6: 5}, {24: 15}, white_off=5)
        assert all_checkers_home(home, Player.WHITE)
        assert all_checkers_home(home, Player.BLACK)

        on_bar = board_from_positions({1: 14}, {24: 15}, white_bar=1)
        assert not all_checkers_home(on_bar, Player.WHITE)

    def test_is_blocked(self, sample_board):
        """Test that 2+ opposing checkers block a point."""
        assert is_blocked(sample_board, 19, Player.WHITE)
        assert not is_blocked(sample_board, 20, Player.WHITE)
        assert not is_blocked(sample_board, 6, Player.WHITE)


class TestApplyMove:
    """Tests for move application."""

    def test_simple_move(self, sample_board):
        """Test moving a checker from one point to another."""
        board, hit = apply_move(sample_board, Move(8, 5, 3), Player.WHITE)
        assert not hit
        assert board.at(8) == 2
        assert board.at(5) == 1
        # Original unchanged
        assert sample_board.at(8) == 3

    def test_hit_sends_blot_to_bar(self):
        """Test that landing on a blot hits it."""
        board = board_from_positions({7: 1, 6: 14}, {1: 2, 19: 13})
        new_board, hit = apply_move(board, Move(1, 7, 6), Player.BLACK)
        assert hit
        assert new_board.at(7) == -1
        assert new_board.at(1) == -1
        assert new_board.bar.white == 1
        assert is_valid_board(new_board)[0]

    def test_enter_from_bar(self):
        """Test entering a checker from the bar."""
        board = board_from_positions({6: 14}, {19: 15}, white_bar=1)
        new_board, hit = apply_move(board, Move(BAR, 22, 3), Player.WHITE)
        assert not hit
        assert new_board.bar.white == 0
        assert new_board.at(22) == 1

    def test_bear_off(self):
        """Test bearing a checker off."""
        board = board_from_positions({3: 2}, {24: 15})
        new_board, _ = apply_move(board, Move(3, OFF, 3), Player.WHITE)
        assert new_board.at(3) == 1
        assert new_board.borne_off.white == 14

    def test_empty_source_rejected(self, sample_board):
        """Test that moving from a point without a mover checker fails."""
        with pytest.raises(InvalidMoveError):
            apply_move(sample_board, Move(7, 4, 3), Player.WHITE)
        with pytest.raises(InvalidMoveError):
            apply_move(sample_board, Move(1, 4, 3), Player.WHITE)

    def test_blocked_destination_rejected(self, sample_board):
        """Test that landing on 2+ opposing checkers fails."""
        with pytest.raises(InvalidMoveError):
            apply_move(sample_board, Move(24, 19, 5), Player.WHITE)

    def test_empty_bar_rejected(self, sample_board):
        """Test that entering with nothing on the bar fails."""
        with pytest.raises(InvalidMoveError):
            apply_move(sample_board, Move(BAR, 22, 3), Player.WHITE)

    def test_move_hits(self):
        """Test hit prediction."""
        board = board_from_positions({7: 1, 6: 14}, {1: 2, 19: 13})
        assert move_hits(board, Move(1, 7, 6), Player.BLACK)
        assert not move_hits(board, Move(1, 6, 5), Player.BLACK)


class TestUnapplyMove:
    """Tests for move reversal."""

    def test_unapply_simple(self, sample_board):
        """Test that unapply restores the board exactly."""
        move = Move(13, 7, 6)
        board, hit = apply_move(sample_board, move, Player.WHITE)
        assert unapply_move(board, move, Player.WHITE, hit) == sample_board

    def test_unapply_hit(self):
        """Test that unapplying a hit puts the blot back."""
        board = board_from_positions({7: 1, 6: 14}, {1: 2, 19: 13})
        move = Move(1, 7, 6)
        after, hit = apply_move(board, move, Player.BLACK)
        assert unapply_move(after, move, Player.BLACK, hit) == board

    def test_unapply_bar_entry_and_bear_off(self):
        """Test reversing moves that use the bar and the tray."""
        board = board_from_positions({3: 1, 6: 13}, {19: 15}, white_bar=1)
        entry = Move(BAR, 20, 5)
        after, hit = apply_move(board, entry, Player.WHITE)
        assert unapply_move(after, entry, Player.WHITE, hit) == board

        home = board_from_positions({3: 2}, {24: 15})
        bear = Move(3, OFF, 3)
        after, hit = apply_move(home, bear, Player.WHITE)
        assert unapply_move(after, bear, Player.WHITE, hit) == home

    def test_unapply_inconsistent_board(self, sample_board):
        """Test that reversing a move that was never made fails."""
        with pytest.raises(InvalidMoveError):
            unapply_move(sample_board, Move(10, 7, 3), Player.WHITE, False)


class TestInvariants:
    """Tests for board validation."""

    def test_valid_initial(self, sample_board):
        """Test that the starting position is valid."""
        assert is_valid_board(sample_board) == (True, "")
        assert_valid_board(sample_board)

    def test_missing_checker_detected(self):
        """Test that a lost checker breaks the invariant."""
        board = Board(points=(0,) * 23 + (1,), borne_off=CheckerCounts(white=13, black=15))
        valid, message = is_valid_board(board)
        assert not valid
        assert "white" in message
        with pytest.raises(InvariantViolationError):
            assert_valid_board(board, context="test")
