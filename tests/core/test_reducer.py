"""Tests for the reducer and action replay."""

import pytest
from backgammon_engine.core.actions import (
    DiceRolled,
    DoubleAccepted,
    DoubleDeclined,
    DoubleProposed,
    FirstPlayerSet,
    GameStart,
    MoveUndone,
    PieceMoved,
    TurnEnded,
)
from backgammon_engine.core.board import INITIAL_POINTS
from backgammon_engine.core.reducer import initial_game_state, reduce, replay
from backgammon_engine.core.types import (
    CubeOwner,
    CubeState,
    DiceRoll,
    GamePhase,
    Move,
    Player,
    Turn,
    VictoryType,
)
from backgammon_engine.errors import InvariantViolationError, ReplayError


def opening_actions():
    """White opens 3-1 and makes the 5-point."""
    return [
        GameStart(Player.WHITE, 3, 1),
        PieceMoved(Player.WHITE, 8, 5, 3),
        PieceMoved(Player.WHITE, 6, 5, 1),
        TurnEnded(Player.WHITE),
    ]


class TestReduce:
    """Tests for individual action handlers."""

    def test_initial_state(self):
        """Test the fresh state before any action."""
        state = initial_game_state()
        assert state.phase == GamePhase.NOT_STARTED
        assert state.board.points == INITIAL_POINTS
        assert state.action_history == ()

    def test_game_start(self):
        """Test that the opening roll puts the winner in moving."""
        state = reduce(initial_game_state(), GameStart(Player.BLACK, 2, 6))
        assert state.current_player == Player.BLACK
        assert state.phase == GamePhase.MOVING
        assert state.dice_roll == DiceRoll(6, 2)
        assert state.remaining_moves == (6, 2)
        assert state.turn_number == 1
        assert state.doubling_cube is None

    def test_game_start_with_cube(self):
        """Test that enabling the cube centers it at 1."""
        state = reduce(initial_game_state(), GameStart(Player.WHITE, 5, 2, doubling_cube_enabled=True))
        assert state.doubling_cube == CubeState(1, CubeOwner.CENTERED)

    def test_first_player_set(self):
        """Test choosing the first player leaves them to roll."""
        state = reduce(initial_game_state(), FirstPlayerSet(Player.BLACK))
        assert state.current_player == Player.BLACK
        assert state.phase == GamePhase.ROLLING
        assert state.dice_roll is None

    def test_doubles_roll(self):
        """Test that doubles expand to four remaining moves."""
        state = replay([FirstPlayerSet(Player.WHITE), DiceRolled(Player.WHITE, DiceRoll(5, 5))])
        assert state.phase == GamePhase.MOVING
        assert state.remaining_moves == (5, 5, 5, 5)

    def test_forfeited_roll(self):
        """Test that a forfeited roll leaves nothing to play."""
        state = replay([FirstPlayerSet(Player.WHITE), DiceRolled(Player.WHITE, DiceRoll(3, 1), turn_forfeited=True)])
        assert state.dice_roll == DiceRoll(3, 1)
        assert state.remaining_moves == ()

    def test_piece_moved(self):
        """Test that moves update the board and consume dice."""
        state = replay(opening_actions()[:2])
        assert state.board.at(8) == 2
        assert state.board.at(5) == 1
        assert state.remaining_moves == (1,)
        assert state.moves_this_turn == (Move(8, 5, 3),)

    def test_turn_ended(self):
        """Test that ending a turn records it and passes the dice."""
        state = replay(opening_actions())
        assert state.current_player == Player.BLACK
        assert state.phase == GamePhase.ROLLING
        assert state.turn_number == 2
        assert state.history == (Turn(Player.WHITE, DiceRoll(3, 1), (Move(8, 5, 3), Move(6, 5, 1))),)
        assert state.board.at(5) == 2
        assert state.board.at(6) == 4
        assert state.board.at(8) == 2

    def test_move_undone_restores_dice_order(self):
        """Test that undoing restores the board and the original dice order."""
        actions = opening_actions()[:3] + [
            MoveUndone(Player.WHITE, 6, 5, 1),
            MoveUndone(Player.WHITE, 8, 5, 3),
        ]
        state = replay(actions)
        assert state.board.points == INITIAL_POINTS
        assert state.remaining_moves == (3, 1)
        assert state.moves_this_turn == ()
        assert len(state.action_history) == 5

    def test_double_accept_and_decline(self):
        """Test cube handlers."""
        start = [FirstPlayerSet(Player.WHITE, doubling_cube_enabled=True), DoubleProposed(Player.WHITE, 2)]
        pending = replay(start)
        assert pending.phase == GamePhase.DOUBLING_PROPOSED
        assert pending.double_proposed_by == Player.WHITE

        taken = reduce(pending, DoubleAccepted(Player.BLACK, 2))
        assert taken.doubling_cube == CubeState(2, CubeOwner.BLACK)
        assert taken.phase == GamePhase.ROLLING
        assert taken.double_proposed_by is None

        dropped = reduce(pending, DoubleDeclined(Player.BLACK, 1))
        assert dropped.phase == GamePhase.GAME_OVER
        assert dropped.result.winner == Player.WHITE
        assert dropped.result.victory_type == VictoryType.SINGLE
        assert dropped.result.points == 1


class TestReplay:
    """Tests for replay determinism and reducer guards."""

    def test_replay_equals_incremental(self):
        """Test that folding the log rebuilds the exact same state."""
        state = initial_game_state()
        for action in opening_actions():
            state = reduce(state, action)
        assert replay(state.action_history) == state

    def test_replay_does_not_mutate(self):
        """Test that reduce never touches its input."""
        before = replay(opening_actions()[:1])
        snapshot = before.board
        reduce(before, PieceMoved(Player.WHITE, 8, 5, 3))
        assert before.board == snapshot
        assert before.moves_this_turn == ()

    def test_unknown_action(self):
        """Test that a foreign object is rejected."""
        with pytest.raises(ReplayError):
            reduce(initial_game_state(), object())

    def test_impossible_move(self):
        """Test that a move from an empty point is an invariant violation."""
        state = replay(opening_actions()[:1])
        with pytest.raises(InvariantViolationError):
            reduce(state, PieceMoved(Player.WHITE, 7, 4, 3))

    def test_wrong_die(self):
        """Test that a die not rolled is an invariant violation."""
        state = replay(opening_actions()[:1])
        with pytest.raises(InvariantViolationError):
            reduce(state, PieceMoved(Player.WHITE, 8, 2, 6))

    def test_wrong_hit_flag(self):
        """Test that a recorded hit must match the board."""
        state = replay(opening_actions()[:1])
        with pytest.raises(InvariantViolationError):
            reduce(state, PieceMoved(Player.WHITE, 8, 5, 3, hit=True))

    def test_undo_of_other_move(self):
        """Test that only the last move can be undone."""
        state = replay(opening_actions()[:3])
        with pytest.raises(InvariantViolationError):
            reduce(state, MoveUndone(Player.WHITE, 8, 5, 3))

    def test_roll_out_of_turn(self):
        """Test that a roll for the wrong player is rejected."""
        state = replay([FirstPlayerSet(Player.WHITE)])
        with pytest.raises(InvariantViolationError):
            reduce(state, DiceRolled(Player.BLACK, DiceRoll(3, 1)))
