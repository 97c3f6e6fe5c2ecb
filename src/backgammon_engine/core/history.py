"""Queries and text summaries over the action log.

``state.history`` keeps completed turns as (player, dice, moves). The
action log also knows which moves hit, which moves were taken back, and
whether a turn was forfeited, so the summaries here are built from
``state.action_history``.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

from backgammon_engine.core.actions import (
    ACTION_TYPES,
    DiceRolled,
    DoubleAccepted,
    DoubleDeclined,
    DoubleProposed,
    FirstPlayerSet,
    GameAction,
    GameStart,
    MoveUndone,
    PieceMoved,
    TurnEnded,
)
from backgammon_engine.core.dice import dice_to_string, opening_dice
from backgammon_engine.core.types import (
    BAR,
    OFF,
    DiceRoll,
    GameResult,
    GameState,
    Move,
    Player,
    VictoryType,
)


@dataclass(frozen=True)
class TurnRecord:
    """One turn as reconstructed from the action log.

    Attributes:
        player: Player on roll
        dice_roll: Dice for the turn
        moves: (move, hit) pairs still standing after any take-backs
        forfeited: The roll had no legal move
        completed: The turn was ended (False for the turn in progress or a
            turn that ended the game)
    """
    player: Player
    dice_roll: DiceRoll
    moves: Tuple[Tuple[Move, bool], ...] = ()
    forfeited: bool = False
    completed: bool = False


def turn_records(actions: Sequence[GameAction]) -> List[TurnRecord]:
    """Group an action log into turns, resolving take-backs.

    Args:
        actions: Action log, oldest first

    Returns:
        TurnRecords in play order, including an open final turn
    """
    records: List[TurnRecord] = []
    current: Optional[TurnRecord] = None
    moves: List[Tuple[Move, bool]] = []

    def close(completed: bool) -> None:
        if current is not None:
            records.append(TurnRecord(
                player=current.player,
                dice_roll=current.dice_roll,
                moves=tuple(moves),
                forfeited=current.forfeited,
                completed=completed,
            ))

    for action in actions:
        if isinstance(action, GameStart):
            records.clear()
            current = TurnRecord(
                player=action.first_player,
                dice_roll=opening_dice(action.first_player, action.white_roll, action.black_roll),
            )
            moves = []
        elif isinstance(action, FirstPlayerSet):
            records.clear()
            current = None
            moves = []
        elif isinstance(action, DiceRolled):
            current = TurnRecord(
                player=action.player,
                dice_roll=action.roll,
                forfeited=action.turn_forfeited,
            )
            moves = []
        elif isinstance(action, PieceMoved):
            moves.append((action.move, action.hit))
        elif isinstance(action, MoveUndone):
            if moves:
                moves.pop()
        elif isinstance(action, TurnEnded):
            close(completed=True)
            current = None
            moves = []

    close(completed=False)
    return records


# ==============================================================================
# QUERIES
# ==============================================================================

def last_action(state: GameState) -> Optional[GameAction]:
    return state.action_history[-1] if state.action_history else None


def last_turn_of(state: GameState, player: Player) -> Optional[TurnRecord]:
    """Most recent completed turn played by ``player``."""
    for record in reversed(turn_records(state.action_history)):
        if record.player == player and record.completed:
            return record
    return None


def moves_with_hits(state: GameState, turn_index: int = -1) -> Tuple[Tuple[Move, bool], ...]:
    """(move, hit) pairs of one turn, by index into the turn list.

    Args:
        state: Any state
        turn_index: Index into ``turn_records`` (default: latest turn)

    Returns:
        Empty tuple if there is no such turn
    """
    records = turn_records(state.action_history)
    try:
        return records[turn_index].moves
    except IndexError:
        return ()


def live_moves_this_turn(state: GameState) -> Tuple[Tuple[Move, bool], ...]:
    """(move, hit) pairs of the turn in progress, matching ``moves_this_turn``.

    Read from the run of move and take-back actions at the end of the log.
    """
    if not state.moves_this_turn:
        return ()
    tail: List[GameAction] = []
    for action in reversed(state.action_history):
        if not isinstance(action, (PieceMoved, MoveUndone)):
            break
        tail.append(action)

    moves: List[Tuple[Move, bool]] = []
    for action in reversed(tail):
        if isinstance(action, PieceMoved):
            moves.append((action.move, action.hit))
        elif moves:
            moves.pop()
    return tuple(moves)


# ==============================================================================
# TEXT SUMMARIES
# ==============================================================================

def format_move(move: Move, hit: bool = False) -> str:
    """Standard notation: ``24/18``, ``13/7*``, ``bar/22``, ``6/off``."""
    origin = "bar" if move.from_point == BAR else str(move.from_point)
    destination = "off" if move.to_point == OFF else str(move.to_point)
    return f"{origin}/{destination}{'*' if hit else ''}"


def summarize_turn(record: TurnRecord) -> str:
    """One line per turn, e.g. ``white rolled 3-1: 8/5 6/5``."""
    prefix = f"{record.player} rolled {dice_to_string(record.dice_roll)}"
    if record.forfeited:
        return f"{prefix}: no legal moves"
    if not record.moves:
        return f"{prefix}: no moves played"
    return f"{prefix}: " + " ".join(format_move(move, hit) for move, hit in record.moves)


def _summarize_game_start(action: GameStart) -> str:
    return (
        f"Game started: white rolled {action.white_roll}, black rolled {action.black_roll}; "
        f"{action.first_player} moves first"
    )


def _summarize_first_player_set(action: FirstPlayerSet) -> str:
    return f"Game started: {action.player} moves first"


def _summarize_dice_rolled(action: DiceRolled) -> str:
    text = f"{action.player} rolled {dice_to_string(action.roll)}"
    if action.turn_forfeited:
        text += " (no legal moves)"
    return text


def _summarize_piece_moved(action: PieceMoved) -> str:
    return f"{action.player} played {format_move(action.move, action.hit)}"


def _summarize_move_undone(action: MoveUndone) -> str:
    return f"{action.player} took back {format_move(action.move, action.hit)}"


def _summarize_turn_ended(action: TurnEnded) -> str:
    return f"{action.player} ended their turn"


def _summarize_double_proposed(action: DoubleProposed) -> str:
    return f"{action.player} doubles to {action.new_value}"


def _summarize_double_accepted(action: DoubleAccepted) -> str:
    return f"{action.player} accepts; cube at {action.cube_value}"


def _summarize_double_declined(action: DoubleDeclined) -> str:
    return f"{action.player} declines; {action.player.opponent()} wins {action.cube_value}"


_SUMMARIZERS: Dict[Type, Callable[..., str]] = {
    GameStart: _summarize_game_start,
    FirstPlayerSet: _summarize_first_player_set,
    DiceRolled: _summarize_dice_rolled,
    PieceMoved: _summarize_piece_moved,
    MoveUndone: _summarize_move_undone,
    TurnEnded: _summarize_turn_ended,
    DoubleProposed: _summarize_double_proposed,
    DoubleAccepted: _summarize_double_accepted,
    DoubleDeclined: _summarize_double_declined,
}

assert set(_SUMMARIZERS) == set(ACTION_TYPES.values()), "every action type needs a summary"


def summarize_action(action: GameAction) -> str:
    return _SUMMARIZERS[type(action)](action)


_VICTORY_NAMES = {
    VictoryType.SINGLE: "a single game",
    VictoryType.GAMMON: "a gammon",
    VictoryType.BACKGAMMON: "a backgammon",
}


def summarize_result(result: GameResult) -> str:
    points = "point" if result.points == 1 else "points"
    return f"{result.winner} wins {_VICTORY_NAMES[result.victory_type]} ({result.points} {points})"


def summarize_game(state: GameState) -> str:
    """Multi-line summary: one line per turn, then the result if any."""
    lines = [
        f"{index}. {summarize_turn(record)}"
        for index, record in enumerate(turn_records(state.action_history), start=1)
    ]
    if state.result is not None:
        lines.append(summarize_result(state.result))
    return "\n".join(lines)
