"""The reducer: the only way a GameState changes.

``reduce(state, action)`` applies one already-validated action and returns
the next state, appending the action to ``action_history``. Validation is
the job of ``core.operations``; the reducer trusts its input and only
checks that the result still satisfies the board invariants. A failed
check is a bug and raises ``InvariantViolationError``.
"""

from dataclasses import replace
from typing import Callable, Dict, Iterable, Optional, Tuple, Type

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
from backgammon_engine.core.board import apply_move, assert_valid_board, initial_board, unapply_move
from backgammon_engine.core.cube import accepted_cube, initial_cube
from backgammon_engine.core.dice import dice_values, opening_dice
from backgammon_engine.core.rules import check_game_over
from backgammon_engine.core.types import (
    DiceRoll,
    GamePhase,
    GameResult,
    GameState,
    Move,
    Turn,
    VictoryType,
)
from backgammon_engine.errors import InvalidMoveError, InvariantViolationError, ReplayError


def initial_game_state() -> GameState:
    """Fresh ``not_started`` state with the standard layout on the board."""
    return GameState(board=initial_board())


def _remaining_after(dice_roll: Optional[DiceRoll], moves: Tuple[Move, ...]) -> Tuple[int, ...]:
    """Dice left once ``moves`` have been played from a fresh roll."""
    if dice_roll is None:
        return ()
    remaining = list(dice_values(dice_roll))
    for move in moves:
        remaining.remove(move.die_used)
    return tuple(remaining)


def _cube_value(state: GameState) -> int:
    return state.doubling_cube.value if state.doubling_cube is not None else 1


# ==============================================================================
# HANDLERS
# ==============================================================================

def _game_start(state: GameState, action: GameStart) -> GameState:
    dice_roll = opening_dice(action.first_player, action.white_roll, action.black_roll)
    return replace(
        state,
        board=initial_board(),
        current_player=action.first_player,
        phase=GamePhase.MOVING,
        dice_roll=dice_roll,
        # Opening dice are always distinct, so never expanded as doubles
        remaining_moves=(dice_roll.die1, dice_roll.die2),
        turn_number=1,
        moves_this_turn=(),
        result=None,
        history=(),
        doubling_cube=initial_cube() if action.doubling_cube_enabled else None,
        double_proposed_by=None,
    )


def _first_player_set(state: GameState, action: FirstPlayerSet) -> GameState:
    return replace(
        state,
        board=initial_board(),
        current_player=action.player,
        phase=GamePhase.ROLLING,
        dice_roll=None,
        remaining_moves=(),
        turn_number=1,
        moves_this_turn=(),
        result=None,
        history=(),
        doubling_cube=initial_cube() if action.doubling_cube_enabled else None,
        double_proposed_by=None,
    )


def _dice_rolled(state: GameState, action: DiceRolled) -> GameState:
    if state.current_player != action.player:
        raise InvariantViolationError(
            f"dice_roll for {action.player} while {state.current_player} is to play"
        )
    return replace(
        state,
        phase=GamePhase.MOVING,
        dice_roll=action.roll,
        remaining_moves=() if action.turn_forfeited else dice_values(action.roll),
        moves_this_turn=(),
    )


def _piece_moved(state: GameState, action: PieceMoved) -> GameState:
    move = action.move
    if move.die_used not in state.remaining_moves:
        raise InvariantViolationError(
            f"piece_move uses die {move.die_used} not in remaining {state.remaining_moves}"
        )
    try:
        board, hit = apply_move(state.board, move, action.player)
    except InvalidMoveError as e:
        raise InvariantViolationError(f"piece_move could not be applied: {e.message}") from e
    if hit != action.hit:
        raise InvariantViolationError(
            f"piece_move recorded hit={action.hit} but the board gives hit={hit}"
        )

    remaining = list(state.remaining_moves)
    remaining.remove(move.die_used)
    result = check_game_over(board, _cube_value(state))
    return replace(
        state,
        board=board,
        remaining_moves=tuple(remaining),
        moves_this_turn=state.moves_this_turn + (move,),
        result=result,
        phase=GamePhase.GAME_OVER if result is not None else state.phase,
    )


def _move_undone(state: GameState, action: MoveUndone) -> GameState:
    move = action.move
    if not state.moves_this_turn or state.moves_this_turn[-1] != move:
        raise InvariantViolationError(f"move_undone for {move} which is not the last move of the turn")
    try:
        board = unapply_move(state.board, move, action.player, action.hit)
    except InvalidMoveError as e:
        raise InvariantViolationError(f"move_undone could not be applied: {e.message}") from e

    moves = state.moves_this_turn[:-1]
    return replace(
        state,
        board=board,
        moves_this_turn=moves,
        remaining_moves=_remaining_after(state.dice_roll, moves),
    )


def _turn_ended(state: GameState, action: TurnEnded) -> GameState:
    history = state.history
    if state.dice_roll is not None:
        history = history + (Turn(action.player, state.dice_roll, state.moves_this_turn),)
    return replace(
        state,
        current_player=action.player.opponent(),
        phase=GamePhase.ROLLING,
        dice_roll=None,
        remaining_moves=(),
        moves_this_turn=(),
        turn_number=state.turn_number + 1,
        history=history,
    )


def _double_proposed(state: GameState, action: DoubleProposed) -> GameState:
    return replace(state, phase=GamePhase.DOUBLING_PROPOSED, double_proposed_by=action.player)


def _double_accepted(state: GameState, action: DoubleAccepted) -> GameState:
    if state.doubling_cube is None:
        raise InvariantViolationError("double_accepted without a doubling cube")
    cube = accepted_cube(state.doubling_cube, action.player)
    if cube.value != action.cube_value:
        raise InvariantViolationError(
            f"double_accepted recorded value {action.cube_value}, cube gives {cube.value}"
        )
    return replace(state, doubling_cube=cube, phase=GamePhase.ROLLING, double_proposed_by=None)


def _double_declined(state: GameState, action: DoubleDeclined) -> GameState:
    # Proposer wins a single game at the pre-double value
    result = GameResult(
        winner=action.player.opponent(),
        victory_type=VictoryType.SINGLE,
        cube_value=action.cube_value,
        points=action.cube_value,
    )
    return replace(state, result=result, phase=GamePhase.GAME_OVER, double_proposed_by=None)


_HANDLERS: Dict[Type, Callable[[GameState, GameAction], GameState]] = {
    GameStart: _game_start,
    FirstPlayerSet: _first_player_set,
    DiceRolled: _dice_rolled,
    PieceMoved: _piece_moved,
    MoveUndone: _move_undone,
    TurnEnded: _turn_ended,
    DoubleProposed: _double_proposed,
    DoubleAccepted: _double_accepted,
    DoubleDeclined: _double_declined,
}

assert set(_HANDLERS) == set(ACTION_TYPES.values()), "reducer must handle every action type"


# ==============================================================================
# PUBLIC API
# ==============================================================================

def reduce(state: GameState, action: GameAction) -> GameState:
    """Apply one action and record it in ``action_history``.

    Args:
        state: Current state (not modified)
        action: Validated action

    Returns:
        Next state

    Raises:
        ReplayError: If the action is not a known action type
        InvariantViolationError: If the resulting board breaks the
            checker-count invariant
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise ReplayError(f"Unknown action type: {type(action).__name__}")

    next_state = handler(state, action)
    next_state = replace(next_state, action_history=state.action_history + (action,))
    assert_valid_board(next_state.board, context=action.type)
    return next_state


def replay(actions: Iterable[GameAction], state: Optional[GameState] = None) -> GameState:
    """Rebuild a state by folding actions through the reducer.

    Args:
        actions: Action log, oldest first
        state: Starting state (default: ``initial_game_state()``)

    Returns:
        Final state
    """
    if state is None:
        state = initial_game_state()
    for action in actions:
        state = reduce(state, action)
    return state
