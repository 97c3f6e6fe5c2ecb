"""Tests for action-log queries and summaries."""

from backgammon_engine.core.actions import DiceRolled, DoubleProposed, PieceMoved, TurnEnded
from backgammon_engine.core.board import board_from_positions
from backgammon_engine.core.history import (
    format_move,
    last_action,
    last_turn_of,
    live_moves_this_turn,
    moves_with_hits,
    summarize_action,
    summarize_game,
    summarize_result,
    summarize_turn,
    turn_records,
)
from backgammon_engine.core.operations import (
    perform_end_turn,
    perform_move,
    perform_roll_dice,
    perform_start_game,
    perform_undo_move,
)
from backgammon_engine.core.reducer import initial_game_state
from backgammon_engine.core.types import (
    BAR,
    OFF,
    DiceRoll,
    GameResult,
    Move,
    Player,
    VictoryType,
)


def two_turns():
    """White opens 3-1 (13/10 24/23), black rolls 6-4 and plays 17/23* 1/5."""
    state, _ = perform_start_game(initial_game_state(), opening_rolls=(3, 1))
    state, _ = perform_move(state, 13, 10, 3)
    state, _ = perform_move(state, 24, 23, 1)
    state, _ = perform_end_turn(state)
    state, _ = perform_roll_dice(state, roll=(6, 4))
    state, _ = perform_move(state, 17, 23, 6)
    state, _ = perform_move(state, 1, 5, 4)
    return state


class TestFormatting:
    """Tests for move notation."""

    def test_format_move(self):
        """Test standard notation including hits, bar and off."""
        assert format_move(Move(24, 18, 6)) == "24/18"
        assert format_move(Move(13, 7, 6), hit=True) == "13/7*"
        assert format_move(Move(BAR, 22, 3)) == "bar/22"
        assert format_move(Move(6, OFF, 6)) == "6/off"

    def test_summarize_result(self):
        """Test result lines use the right victory name and plural."""
        single = GameResult(Player.BLACK, VictoryType.SINGLE, 1, 1)
        gammon = GameResult(Player.WHITE, VictoryType.GAMMON, 2, 4)
        assert summarize_result(single) == "black wins a single game (1 point)"
        assert summarize_result(gammon) == "white wins a gammon (4 points)"

    def test_summarize_action(self):
        """Test one-line action descriptions."""
        assert summarize_action(DiceRolled(Player.WHITE, DiceRoll(4, 4))) == "white rolled Double 4s"
        assert summarize_action(PieceMoved(Player.BLACK, 1, 7, 6, True)) == "black played 1/7*"
        assert summarize_action(DoubleProposed(Player.WHITE, 2)) == "white doubles to 2"
        assert summarize_action(TurnEnded(Player.BLACK)) == "black ended their turn"


class TestTurnRecords:
    """Tests for grouping the log into turns."""

    def test_two_turns(self):
        """Test that completed and open turns are both reported."""
        records = turn_records(two_turns().action_history)
        assert len(records) == 2
        assert records[0].player == Player.WHITE
        assert records[0].completed
        assert records[1].player == Player.BLACK
        assert not records[1].completed
        assert records[1].moves == ((Move(17, 23, 6), True), (Move(1, 5, 4), False))

    def test_take_backs_resolved(self):
        """Test that undone moves vanish from the record."""
        state, _ = perform_start_game(initial_game_state(), opening_rolls=(3, 1))
        state, _ = perform_move(state, 24, 21, 3)
        state, _ = perform_undo_move(state)
        state, _ = perform_move(state, 8, 5, 3)
        records = turn_records(state.action_history)
        assert records[-1].moves == ((Move(8, 5, 3), False),)

    def test_last_turn_of(self):
        """Test finding a player's last completed turn."""
        state = two_turns()
        assert last_turn_of(state, Player.WHITE).dice_roll == DiceRoll(3, 1)
        assert last_turn_of(state, Player.BLACK) is None

    def test_moves_with_hits(self):
        """Test per-turn (move, hit) lookup by index."""
        state = two_turns()
        assert moves_with_hits(state, 0) == ((Move(13, 10, 3), False), (Move(24, 23, 1), False))
        assert moves_with_hits(state)[0] == (Move(17, 23, 6), True)
        assert moves_with_hits(state, 7) == ()

    def test_live_moves_this_turn(self):
        """Test that live moves track ``moves_this_turn``."""
        state = two_turns()
        live = live_moves_this_turn(state)
        assert tuple(move for move, _ in live) == state.moves_this_turn

        state, _ = perform_undo_move(state)
        assert live_moves_this_turn(state) == ((Move(17, 23, 6), True),)
        assert state.remaining_moves == (4,)

    def test_last_action(self):
        """Test the most recent action lookup."""
        assert last_action(initial_game_state()) is None
        assert isinstance(last_action(two_turns()), PieceMoved)


class TestSummaries:
    """Tests for multi-line game summaries."""

    def test_summarize_game(self):
        """Test one numbered line per turn."""
        text = summarize_game(two_turns())
        assert text.splitlines() == [
            "1. white rolled 3-1: 13/10 24/23",
            "2. black rolled 6-4: 17/23* 1/5",
        ]

    def test_forfeited_turn_line(self, make_state):
        """Test the summary of a turn with no legal move."""
        board = board_from_positions(
            {6: 14},
            {19: 3, 20: 2, 21: 2, 22: 2, 23: 2, 24: 2, 12: 2},
            white_bar=1,
        )
        state, _ = perform_roll_dice(make_state(board, Player.WHITE), roll=(3, 1))
        records = turn_records(state.action_history)
        assert summarize_turn(records[-1]) == "white rolled 3-1: no legal moves"
