"""Named operations: validate, derive actions, reduce, report.

Every ``perform_*`` function takes the current state and returns an
``OperationOutcome(state, result)``:

- On success the actions it derived have been folded through
  ``reducer.reduce`` and ``result`` is ``Ok`` with an operation-specific
  payload (legal moves are precomputed so callers need no second query).
- On failure ``state`` is the very object that was passed in and
  ``result`` is ``Err(kind, message)``.

Nothing here raises for a caller mistake. An ``InvariantViolationError``
from the reducer is a bug and is allowed to propagate.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, NamedTuple, Optional, Tuple

import numpy as np

from backgammon_engine.core.actions import (
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
from backgammon_engine.core.board import move_hits
from backgammon_engine.core.cube import MAX_CUBE_VALUE, can_double, owner_to_player
from backgammon_engine.core.dice import dice_values, roll_dice, roll_for_first_player
from backgammon_engine.core.history import format_move, live_moves_this_turn
from backgammon_engine.core.reducer import initial_game_state, reduce
from backgammon_engine.core.result import Err, ErrorKind, Ok, Result
from backgammon_engine.core.rules import (
    explain_illegal_move,
    flatten_moves,
    get_legal_moves,
    get_valid_moves,
)
from backgammon_engine.core.types import (
    BAR,
    OFF,
    AvailableMoves,
    DiceRoll,
    GameOptions,
    GamePhase,
    GameResult,
    GameState,
    Move,
    Player,
    Turn,
    is_valid_die_value,
    is_valid_point_index,
)

logger = logging.getLogger(__name__)


class OperationOutcome(NamedTuple):
    state: GameState
    result: Result


# ==============================================================================
# RESULT PAYLOADS
# ==============================================================================

@dataclass(frozen=True)
class StartGameResult:
    first_player: Player
    dice_roll: Optional[DiceRoll]
    valid_moves: Tuple[AvailableMoves, ...]


@dataclass(frozen=True)
class RollDiceResult:
    dice_roll: DiceRoll
    valid_moves: Tuple[AvailableMoves, ...]
    turn_forfeited: bool


@dataclass(frozen=True)
class MoveResult:
    """Outcome of one accepted move.

    Attributes:
        move: The move as played
        hit: Whether it sent an opposing blot to the bar
        game_over: GameResult if this move won the game, else None
        remaining_moves: Dice still to play
        valid_moves: Legal moves for what is left (empty once the game ends)
    """
    move: Move
    hit: bool
    game_over: Optional[GameResult]
    remaining_moves: Tuple[int, ...]
    valid_moves: Tuple[AvailableMoves, ...]


@dataclass(frozen=True)
class EndTurnResult:
    next_player: Player
    turn_number: int
    completed_turn: Turn


@dataclass(frozen=True)
class UndoResult:
    undone: Tuple[Move, ...]
    remaining_moves: Tuple[int, ...]
    valid_moves: Tuple[AvailableMoves, ...]


@dataclass(frozen=True)
class DoubleResult:
    """Proposal or acceptance of a double."""
    player: Player
    cube_value: int
    cube_owner: Optional[Player]


@dataclass(frozen=True)
class DeclineResult:
    declined_by: Player
    winner: Player
    game_result: GameResult


# ==============================================================================
# HELPERS
# ==============================================================================

def _fail(state: GameState, kind: ErrorKind, message: str, **details: Any) -> OperationOutcome:
    logger.debug("Rejected (%s): %s", kind.value, message)
    return OperationOutcome(state, Err(kind, message, details))


def _commit(state: GameState, *actions: GameAction) -> GameState:
    for action in actions:
        state = reduce(state, action)
        logger.debug("Applied %s", action)
    return state


def _check_player(state: GameState, player: Optional[Player], command: str) -> Optional[OperationOutcome]:
    """Common guard: a current player exists and, if given, ``player`` is it."""
    if state.current_player is None:
        return _fail(state, ErrorKind.NO_CURRENT_PLAYER, f"Cannot {command}: no game in progress.")
    if player is not None and player != state.current_player:
        return _fail(
            state,
            ErrorKind.NOT_PLAYERS_TURN,
            f"Cannot {command}: it is {state.current_player}'s turn, not {player}'s.",
        )
    return None


def _check_phase(state: GameState, expected: GamePhase, command: str) -> Optional[OperationOutcome]:
    if state.phase == expected:
        return None
    if state.phase == GamePhase.GAME_OVER:
        message = f"Cannot {command}: the game is over."
    elif state.phase == GamePhase.DOUBLING_PROPOSED:
        message = f"Cannot {command}: a double is pending; accept or decline it first."
    elif state.phase == GamePhase.ROLLING and expected == GamePhase.MOVING:
        message = f"Cannot {command}: roll the dice first."
    elif state.phase == GamePhase.MOVING and expected == GamePhase.ROLLING:
        message = f"Cannot {command}: dice already rolled this turn."
    else:
        message = f"Cannot {command} in phase '{state.phase}'."
    return _fail(
        state,
        ErrorKind.INVALID_COMMAND_FOR_PHASE,
        message,
        phase=state.phase.value,
        expected=expected.value,
    )


def _move_list(moves: Tuple[AvailableMoves, ...]):
    return [format_move(move) for move in flatten_moves(moves)]


# ==============================================================================
# GAME SETUP
# ==============================================================================

def perform_start_game(
    state: GameState,
    rng: Optional[np.random.Generator] = None,
    options: Optional[GameOptions] = None,
    opening_rolls: Optional[Tuple[int, int]] = None,
) -> OperationOutcome:
    """Start a game with the opening roll.

    Each side rolls one die, rerolling ties; the higher die moves first
    using both opening dice.

    Args:
        state: Current state; must be ``not_started``
        rng: Generator for the opening roll
        options: Cube and Crawford settings
        opening_rolls: Explicit (white_roll, black_roll) instead of rolling

    Returns:
        OperationOutcome with a StartGameResult
    """
    if state.phase != GamePhase.NOT_STARTED:
        return _fail(
            state,
            ErrorKind.INVALID_COMMAND_FOR_PHASE,
            "Cannot start game: a game is already in progress; reset it first.",
            phase=state.phase.value,
        )
    options = options or GameOptions()

    if opening_rolls is not None:
        if (
            len(opening_rolls) != 2
            or not all(is_valid_die_value(d) for d in opening_rolls)
            or opening_rolls[0] == opening_rolls[1]
        ):
            return _fail(
                state,
                ErrorKind.INVALID_INPUT,
                f"Opening rolls must be two different die values, got {opening_rolls!r}.",
            )
        white_roll, black_roll = opening_rolls
        first_player = Player.WHITE if white_roll > black_roll else Player.BLACK
    elif rng is not None:
        first_player, white_roll, black_roll = roll_for_first_player(rng)
    else:
        return _fail(state, ErrorKind.INVALID_INPUT, "Cannot start game: no random generator or opening rolls given.")

    new_state = _commit(
        state,
        GameStart(first_player, white_roll, black_roll, doubling_cube_enabled=options.cube_in_play),
    )
    dice_roll = new_state.dice_roll
    logger.info("Game started: %s moves first with %d-%d", first_player, dice_roll.die1, dice_roll.die2)
    return OperationOutcome(
        new_state,
        Ok(StartGameResult(first_player, new_state.dice_roll, get_legal_moves(new_state))),
    )


def perform_set_first_player(
    state: GameState,
    player: Player,
    options: Optional[GameOptions] = None,
) -> OperationOutcome:
    """Start a game with a chosen first player, who then rolls normally."""
    if state.phase not in (GamePhase.NOT_STARTED, GamePhase.ROLLING_FOR_FIRST):
        return _fail(
            state,
            ErrorKind.INVALID_COMMAND_FOR_PHASE,
            "Cannot set first player: a game is already in progress; reset it first.",
            phase=state.phase.value,
        )
    if not isinstance(player, Player):
        return _fail(state, ErrorKind.INVALID_INPUT, f"Unknown player {player!r}.")
    options = options or GameOptions()

    new_state = _commit(state, FirstPlayerSet(player, doubling_cube_enabled=options.cube_in_play))
    return OperationOutcome(new_state, Ok(StartGameResult(player, None, ())))


def perform_reset_game(state: Optional[GameState] = None) -> OperationOutcome:
    """Replace any state with a fresh ``not_started`` game. Always succeeds."""
    return OperationOutcome(initial_game_state(), Ok(None))


# ==============================================================================
# TURN FLOW
# ==============================================================================

def _coerce_roll(roll: Any) -> Optional[DiceRoll]:
    if isinstance(roll, DiceRoll):
        return roll
    if isinstance(roll, (tuple, list)) and len(roll) == 2 and all(is_valid_die_value(d) for d in roll):
        return DiceRoll(roll[0], roll[1])
    return None


def perform_roll_dice(
    state: GameState,
    rng: Optional[np.random.Generator] = None,
    roll: Any = None,
    player: Optional[Player] = None,
) -> OperationOutcome:
    """Roll for the current player.

    Doubles give four moves. If nothing can be played the turn is
    forfeited: ``remaining_moves`` is emptied, the phase stays ``moving``
    and the caller must end the turn.

    Args:
        state: Current state; must be ``rolling``
        rng: Generator used when ``roll`` is not given
        roll: Explicit DiceRoll or (die1, die2)
        player: If given, must be the current player

    Returns:
        OperationOutcome with a RollDiceResult
    """
    guard = _check_player(state, player, "roll dice") or _check_phase(state, GamePhase.ROLLING, "roll dice")
    if guard:
        return guard

    if roll is not None:
        dice_roll = _coerce_roll(roll)
        if dice_roll is None:
            return _fail(state, ErrorKind.INVALID_INPUT, f"Invalid dice roll {roll!r}; need two values 1-6.")
    elif rng is not None:
        dice_roll = roll_dice(rng)
    else:
        return _fail(state, ErrorKind.INVALID_INPUT, "Cannot roll dice: no random generator or roll given.")

    current = state.current_player
    probe = replace(
        state,
        phase=GamePhase.MOVING,
        dice_roll=dice_roll,
        remaining_moves=dice_values(dice_roll),
    )
    legal = get_legal_moves(probe)
    forfeited = not legal

    new_state = _commit(state, DiceRolled(current, dice_roll, turn_forfeited=forfeited))
    if forfeited:
        logger.debug("%s rolled %d-%d with no legal moves", current, dice_roll.die1, dice_roll.die2)
    return OperationOutcome(new_state, Ok(RollDiceResult(dice_roll, legal, forfeited)))


def _parse_location(value: Any, sentinel: str) -> Optional[Any]:
    if value == sentinel or is_valid_point_index(value):
        return value
    return None


def perform_move(
    state: GameState,
    from_point: Any,
    to_point: Any,
    die_used: Any,
    player: Optional[Player] = None,
) -> OperationOutcome:
    """Play one checker move.

    The move must be in ``get_legal_moves(state)``; otherwise the error
    message names the rule it breaks.

    Args:
        state: Current state; must be ``moving``
        from_point: 1-24 or "bar"
        to_point: 1-24 or "off"
        die_used: Die value 1-6
        player: If given, must be the current player

    Returns:
        OperationOutcome with a MoveResult
    """
    guard = _check_player(state, player, "move") or _check_phase(state, GamePhase.MOVING, "move")
    if guard:
        return guard

    origin = _parse_location(from_point, BAR)
    destination = _parse_location(to_point, OFF)
    if origin is None:
        return _fail(state, ErrorKind.INVALID_INPUT, f"Invalid origin {from_point!r}; use 1-24 or '{BAR}'.")
    if destination is None:
        return _fail(state, ErrorKind.INVALID_INPUT, f"Invalid destination {to_point!r}; use 1-24 or '{OFF}'.")
    if not is_valid_die_value(die_used):
        return _fail(state, ErrorKind.INVALID_INPUT, f"Invalid die value {die_used!r}; use 1-6.")

    move = Move(origin, destination, die_used)
    legal = get_legal_moves(state)
    if move not in flatten_moves(legal):
        reason = explain_illegal_move(state, move)
        return _fail(
            state,
            ErrorKind.ILLEGAL_MOVE,
            f"Illegal move {format_move(move)}: {reason}",
            move=format_move(move),
            legal_moves=_move_list(legal),
        )

    player_to_move = state.current_player
    hit = move_hits(state.board, move, player_to_move)
    new_state = _commit(state, PieceMoved(player_to_move, origin, destination, die_used, hit))

    if new_state.result is not None:
        logger.info(
            "Game over: %s wins (%s, %d points)",
            new_state.result.winner, new_state.result.victory_type, new_state.result.points,
        )
        valid_after: Tuple[AvailableMoves, ...] = ()
    else:
        valid_after = get_legal_moves(new_state)

    return OperationOutcome(
        new_state,
        Ok(MoveResult(move, hit, new_state.result, new_state.remaining_moves, valid_after)),
    )


def perform_end_turn(state: GameState, player: Optional[Player] = None) -> OperationOutcome:
    """End the current turn and pass the dice.

    Refused while a die is unused and some legal move remains.
    """
    guard = _check_player(state, player, "end turn") or _check_phase(state, GamePhase.MOVING, "end turn")
    if guard:
        return guard

    if state.remaining_moves and get_valid_moves(state):
        dice = ", ".join(str(d) for d in state.remaining_moves)
        return _fail(
            state,
            ErrorKind.MOVES_REMAINING,
            f"Cannot end turn: legal moves remain for dice {dice}.",
            remaining_moves=list(state.remaining_moves),
        )

    current = state.current_player
    new_state = _commit(state, TurnEnded(current))
    return OperationOutcome(
        new_state,
        Ok(EndTurnResult(new_state.current_player, new_state.turn_number, new_state.history[-1])),
    )


def _undo_actions(state: GameState, count: Optional[int]) -> Tuple[MoveUndone, ...]:
    live = live_moves_this_turn(state)
    if count is not None:
        live = live[-count:]
    return tuple(
        MoveUndone(state.current_player, move.from_point, move.to_point, move.die_used, hit)
        for move, hit in reversed(live)
    )


def _perform_undo(state: GameState, player: Optional[Player], count: Optional[int], command: str) -> OperationOutcome:
    guard = _check_player(state, player, command) or _check_phase(state, GamePhase.MOVING, command)
    if guard:
        return guard
    actions = _undo_actions(state, count)
    if not actions:
        return _fail(state, ErrorKind.NOTHING_TO_UNDO, f"Cannot {command}: no moves this turn.")

    new_state = _commit(state, *actions)
    return OperationOutcome(
        new_state,
        Ok(UndoResult(
            undone=tuple(action.move for action in actions),
            remaining_moves=new_state.remaining_moves,
            valid_moves=get_legal_moves(new_state),
        )),
    )


def perform_undo_move(state: GameState, player: Optional[Player] = None) -> OperationOutcome:
    """Take back the last move of the turn, un-hitting if it hit."""
    return _perform_undo(state, player, 1, "undo move")


def perform_undo_all_moves(state: GameState, player: Optional[Player] = None) -> OperationOutcome:
    """Take back every move of the turn, most recent first."""
    return _perform_undo(state, player, None, "undo moves")


# ==============================================================================
# DOUBLING CUBE
# ==============================================================================

def perform_propose_double(state: GameState, player: Optional[Player] = None) -> OperationOutcome:
    """Offer a double before rolling.

    Allowed for the player on roll when the cube is in play, below 64, and
    either centered or owned by that player.
    """
    guard = _check_player(state, player, "double") or _check_phase(state, GamePhase.ROLLING, "double")
    if guard:
        return guard

    cube = state.doubling_cube
    current = state.current_player
    if cube is None:
        return _fail(state, ErrorKind.CANNOT_DOUBLE, "Cannot double: the doubling cube is not in use for this game.")
    if not can_double(cube, current):
        if cube.value >= MAX_CUBE_VALUE:
            return _fail(state, ErrorKind.CANNOT_DOUBLE, f"Cannot double: the cube is already at {MAX_CUBE_VALUE}.")
        return _fail(
            state,
            ErrorKind.CANNOT_DOUBLE,
            f"Cannot double: {owner_to_player(cube.owner)} owns the cube; only the cube owner may redouble.",
        )

    new_value = cube.value * 2
    new_state = _commit(state, DoubleProposed(current, new_value))
    return OperationOutcome(new_state, Ok(DoubleResult(current, new_value, owner_to_player(cube.owner))))


def _check_pending_double(state: GameState, player: Optional[Player], command: str) -> Optional[OperationOutcome]:
    if state.current_player is None:
        return _fail(state, ErrorKind.NO_CURRENT_PLAYER, f"Cannot {command}: no game in progress.")
    guard = _check_phase(state, GamePhase.DOUBLING_PROPOSED, command)
    if guard:
        return guard
    responder = state.double_proposed_by.opponent()
    if player is not None and player != responder:
        return _fail(
            state,
            ErrorKind.NOT_PLAYERS_TURN,
            f"Cannot {command}: only {responder} may respond to the double.",
        )
    return None


def perform_accept_double(state: GameState, player: Optional[Player] = None) -> OperationOutcome:
    """Take the pending double: the cube doubles and the accepter owns it."""
    guard = _check_pending_double(state, player, "accept double")
    if guard:
        return guard

    responder = state.double_proposed_by.opponent()
    new_value = state.doubling_cube.value * 2
    new_state = _commit(state, DoubleAccepted(responder, new_value))
    return OperationOutcome(new_state, Ok(DoubleResult(responder, new_value, responder)))


def perform_decline_double(state: GameState, player: Optional[Player] = None) -> OperationOutcome:
    """Pass the pending double: the proposer wins a single game at the current cube value."""
    guard = _check_pending_double(state, player, "decline double")
    if guard:
        return guard

    responder = state.double_proposed_by.opponent()
    new_state = _commit(state, DoubleDeclined(responder, state.doubling_cube.value))
    logger.info("Double declined: %s wins %d", new_state.result.winner, new_state.result.points)
    return OperationOutcome(
        new_state,
        Ok(DeclineResult(responder, new_state.result.winner, new_state.result)),
    )


def perform_respond_to_double(state: GameState, accept: bool, player: Optional[Player] = None) -> OperationOutcome:
    """Accept or decline the pending double."""
    if accept:
        return perform_accept_double(state, player)
    return perform_decline_double(state, player)
