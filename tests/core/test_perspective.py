"""Tests for player-relative board views."""

from backgammon_engine.core.board import board_from_positions, pip_count
from backgammon_engine.core.perspective import (
    board_from_perspective,
    flip_board,
    from_perspective_point,
    move_from_perspective,
    move_to_perspective,
    to_perspective_point,
)
from backgammon_engine.core.types import BAR, OFF, Move, Player


class TestPoints:
    """Tests for point translation."""

    def test_white_identity(self):
        """Test that white's view is the engine's view."""
        assert to_perspective_point(24, Player.WHITE) == 24
        assert from_perspective_point(1, Player.WHITE) == 1

    def test_black_mirror(self):
        """Test that black's point p is engine point 25-p."""
        assert to_perspective_point(1, Player.BLACK) == 24
        assert to_perspective_point(19, Player.BLACK) == 6
        assert from_perspective_point(to_perspective_point(7, Player.BLACK), Player.BLACK) == 7

    def test_moves_keep_sentinels(self):
        """Test that bar and off pass through unchanged."""
        assert move_to_perspective(Move(BAR, 3, 3), Player.BLACK) == Move(BAR, 22, 3)
        assert move_to_perspective(Move(22, OFF, 3), Player.BLACK) == Move(3, OFF, 3)
        move = Move(1, 7, 6)
        assert move_from_perspective(move_to_perspective(move, Player.BLACK), Player.BLACK) == move


class TestBoardFlip:
    """Tests for flipping the board."""

    def test_initial_board_symmetric(self, sample_board):
        """Test that the starting position looks the same to both players."""
        assert flip_board(sample_board) == sample_board

    def test_flip_is_involution(self):
        """Test that flipping twice is the identity."""
        board = board_from_positions({6: 3, 2: 1}, {19: 4}, white_bar=2, black_bar=1)
        assert flip_board(flip_board(board)) == board

    def test_flip_swaps_colors(self):
        """Test that black's checkers become positive and mirrored."""
        board = board_from_positions({6: 3}, {19: 4}, black_bar=1)
        flipped = flip_board(board)
        assert flipped.at(6) == 4
        assert flipped.at(19) == -3
        assert flipped.bar.white == 1
        assert flipped.borne_off.white == board.borne_off.black
        assert pip_count(flipped, Player.WHITE) == pip_count(board, Player.BLACK)

    def test_board_from_perspective(self):
        """Test choosing the view by player."""
        board = board_from_positions({6: 3}, {19: 4})
        assert board_from_perspective(board, Player.WHITE) is board
        assert board_from_perspective(board, Player.BLACK) == flip_board(board)
