"""Move legality engine.

Given a board, a player and the unused die values, this module computes
every legal single-checker move, applies the forced-move rules (use as many
dice as possible; if only one of two dice can be used, use the higher), and
detects the end of the game.

Rule summary:
    - Checkers on the bar must enter before any other checker moves.
      White enters on 25 - die, black on die.
    - A point holding 2+ opposing checkers is blocked.
    - Bearing off needs every checker in the home board. An exact die bears
      off from the matching point; a larger die bears off from the highest
      occupied point only.
"""

from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from backgammon_engine.core.board import (
    all_checkers_home,
    apply_move,
    checker_count,
    direction,
    entry_point,
    has_checker_further_from_home,
    home_board_range,
    is_blocked,
    occupied_points,
    pips_to_bear_off,
)
from backgammon_engine.core.cube import compute_game_points
from backgammon_engine.core.types import (
    BAR,
    CHECKERS_PER_PLAYER,
    OFF,
    AvailableMoves,
    Board,
    GamePhase,
    GameResult,
    GameState,
    Move,
    MoveDestination,
    Player,
    RequiredMoves,
    VictoryType,
    is_valid_point_index,
)


# ==============================================================================
# SINGLE MOVE GENERATION
# ==============================================================================

def _destination(
    board: Board,
    player: Player,
    from_point: int,
    die: int,
    can_bear_off: bool,
) -> Optional[MoveDestination]:
    """Where a checker on ``from_point`` can go with ``die``, if anywhere."""
    target = from_point + direction(player) * die

    if is_valid_point_index(target):
        if is_blocked(board, target, player):
            return None
        would_hit = checker_count(board, target, player.opponent()) == 1
        return MoveDestination(to_point=target, die_value=die, would_hit=would_hit)

    # Past the edge: only a bear-off can use this die
    if not can_bear_off:
        return None
    needed = pips_to_bear_off(player, from_point)
    if die == needed:
        return MoveDestination(to_point=OFF, die_value=die)
    if die > needed and not has_checker_further_from_home(board, player, from_point):
        return MoveDestination(to_point=OFF, die_value=die)
    return None


def _unique_dice(dice: Iterable[int]) -> List[int]:
    seen: List[int] = []
    for die in dice:
        if die not in seen:
            seen.append(die)
    return seen


def valid_moves_for_dice(
    board: Board,
    player: Player,
    dice: Sequence[int],
) -> Tuple[AvailableMoves, ...]:
    """All single-checker moves for a player, one entry per origin.

    Each remaining die value is considered independently and the results
    are merged by origin, so duplicate die values produce one destination.

    Args:
        board: Current board
        player: Player to move
        dice: Unused die values

    Returns:
        Tuple of AvailableMoves (origins with no destination are omitted)
    """
    unique = _unique_dice(dice)
    if not unique:
        return ()

    # Bar priority: only entering moves while a checker is on the bar
    if board.bar.get(player) > 0:
        destinations = []
        for die in unique:
            point = entry_point(player, die)
            if not is_blocked(board, point, player):
                would_hit = checker_count(board, point, player.opponent()) == 1
                destinations.append(MoveDestination(point, die, would_hit))
        if not destinations:
            return ()
        return (AvailableMoves(from_point=BAR, destinations=tuple(destinations)),)

    can_bear_off = all_checkers_home(board, player)
    result = []
    for point in occupied_points(board, player):
        destinations = []
        for die in unique:
            dest = _destination(board, player, point, die, can_bear_off)
            if dest is not None and dest not in destinations:
                destinations.append(dest)
        if destinations:
            result.append(AvailableMoves(from_point=point, destinations=tuple(destinations)))
    return tuple(result)


def get_valid_moves(state: GameState) -> Tuple[AvailableMoves, ...]:
    """Valid single moves for the current player and remaining dice.

    This is the raw rule check, before the forced-move filters; see
    ``get_legal_moves`` for what may actually be played.
    """
    if state.current_player is None or not state.remaining_moves:
        return ()
    return valid_moves_for_dice(state.board, state.current_player, state.remaining_moves)


def has_any_legal_moves(state: GameState) -> bool:
    return len(get_valid_moves(state)) > 0


def filter_moves_by_die(moves: Sequence[AvailableMoves], die: int) -> Tuple[AvailableMoves, ...]:
    """Narrow a move list to destinations reached with ``die``.

    Args:
        moves: Moves as returned by ``get_valid_moves``
        die: Die value to keep

    Returns:
        Filtered moves; origins left with no destination are dropped
    """
    result = []
    for available in moves:
        destinations = tuple(d for d in available.destinations if d.die_value == die)
        if destinations:
            result.append(AvailableMoves(available.from_point, destinations))
    return tuple(result)


def flatten_moves(moves: Sequence[AvailableMoves]) -> List[Move]:
    """Expand AvailableMoves into a flat list of Move values."""
    return [move for available in moves for move in available.moves()]


# ==============================================================================
# FORCED-MOVE RULES
# ==============================================================================

def _without_one(dice: Tuple[int, ...], die: int) -> Tuple[int, ...]:
    index = dice.index(die)
    return dice[:index] + dice[index + 1:]


@lru_cache(maxsize=8192)
def _max_dice_usable(board: Board, player: Player, dice: Tuple[int, ...]) -> int:
    best = 0
    for move in flatten_moves(valid_moves_for_dice(board, player, dice)):
        next_board, _ = apply_move(board, move, player)
        used = 1 + _max_dice_usable(next_board, player, _without_one(dice, move.die_used))
        if used > best:
            best = used
            if best == len(dice):
                break
    return best


def max_dice_usable(board: Board, player: Player, dice: Sequence[int]) -> int:
    """Most dice any sequence of legal moves can use.

    Args:
        board: Current board
        player: Player to move
        dice: Unused die values

    Returns:
        0 through len(dice)
    """
    return _max_dice_usable(board, player, tuple(sorted(dice)))


def get_required_moves(state: GameState) -> RequiredMoves:
    """Forced-move constraints for the current player.

    - A player must use as many dice as possible.
    - If only one of two different dice can be used and either could be
      played on its own, the higher die is required.
    - If only one die value can be played at all, nothing is required:
      there is no choice to constrain.

    Returns:
        RequiredMoves for the current remaining dice
    """
    player = state.current_player
    remaining = state.remaining_moves
    if player is None or not remaining:
        return RequiredMoves()

    max_usable = max_dice_usable(state.board, player, remaining)

    if max_usable == 1 and len(remaining) == 2 and remaining[0] != remaining[1]:
        playable = {
            dest.die_value
            for available in get_valid_moves(state)
            for dest in available.destinations
        }
        if len(playable) == 2:
            return RequiredMoves(
                required_die=max(playable),
                must_play_higher_die=True,
                max_moves_usable=1,
            )
        return RequiredMoves(max_moves_usable=1)

    return RequiredMoves(
        must_play_both_dice=max_usable >= 2,
        max_moves_usable=max_usable,
    )


def get_legal_moves(state: GameState) -> Tuple[AvailableMoves, ...]:
    """Moves the current player may actually play next.

    Starts from ``get_valid_moves`` and removes moves forbidden by the
    forced-move rules: the required die when one is set, and any move after
    which fewer dice could be used than the best available sequence.
    """
    valid = get_valid_moves(state)
    if not valid:
        return ()

    required = get_required_moves(state)
    if required.required_die is not None:
        return filter_moves_by_die(valid, required.required_die)
    if required.max_moves_usable <= 1:
        return valid

    player = state.current_player
    remaining = state.remaining_moves
    target = required.max_moves_usable - 1
    result = []
    for available in valid:
        kept = []
        for move, dest in zip(available.moves(), available.destinations):
            next_board, _ = apply_move(state.board, move, player)
            if max_dice_usable(next_board, player, _without_one(remaining, move.die_used)) >= target:
                kept.append(dest)
        if kept:
            result.append(AvailableMoves(available.from_point, tuple(kept)))
    return tuple(result)


def is_legal_move(state: GameState, move: Move) -> bool:
    return move in flatten_moves(get_legal_moves(state))


def get_legal_move_sequences(state: GameState) -> List[Tuple[Move, ...]]:
    """Every full sequence of moves the current player may play this turn.

    Depth-first over single moves; positions reached twice with the same
    dice left are expanded once, so transposed orderings appear once.
    Only sequences that use the maximum number of dice are returned (and
    only the higher die when a single die of two may be played).

    Returns:
        List of move tuples; ``[()]`` if nothing can be played
    """
    player = state.current_player
    if player is None or not state.remaining_moves:
        return [()]

    sequences: List[Tuple[Move, ...]] = []
    visited: Set[Tuple[Board, Tuple[int, ...]]] = set()

    def dfs(board: Board, dice_left: Tuple[int, ...], path: Tuple[Move, ...]) -> None:
        moves = flatten_moves(valid_moves_for_dice(board, player, dice_left))
        if not moves:
            sequences.append(path)
            return

        key = (board, tuple(sorted(dice_left)))
        if key in visited:
            return
        visited.add(key)

        for move in moves:
            next_board, _ = apply_move(board, move, player)
            dfs(next_board, _without_one(dice_left, move.die_used), path + (move,))

    dfs(state.board, tuple(state.remaining_moves), ())

    longest = max(len(seq) for seq in sequences)
    sequences = [seq for seq in sequences if len(seq) == longest]
    required = get_required_moves(state)
    if required.required_die is not None:
        sequences = [seq for seq in sequences if seq[0].die_used == required.required_die]
    return sequences


def explain_illegal_move(state: GameState, move: Move) -> str:
    """Name the rule a rejected move breaks.

    Args:
        state: State the move was attempted in
        move: The rejected move

    Returns:
        Human-readable reason
    """
    player = state.current_player
    if player is None:
        return "No current player."
    board = state.board
    die = move.die_used

    if die not in state.remaining_moves:
        remaining = ", ".join(str(d) for d in state.remaining_moves) or "none"
        return f"Die {die} is not available (remaining dice: {remaining})."

    if board.bar.get(player) > 0 and move.from_point != BAR:
        return f"Bar priority: {player} must enter checkers from the bar before moving any other checker."

    if move.from_point == BAR:
        if board.bar.get(player) == 0:
            return f"{player} has no checkers on the bar to enter."
        point = entry_point(player, die)
        if move.to_point != point:
            return f"A {die} enters from the bar on point {point}, not {move.to_point}."
        if is_blocked(board, point, player):
            return f"Entry point {point} is blocked by 2 or more opposing checkers."
    else:
        if checker_count(board, move.from_point, player) == 0:
            return f"No {player} checker on point {move.from_point}."
        if move.to_point == OFF:
            if not all_checkers_home(board, player):
                return f"Cannot bear off: not all {player} checkers are in the home board."
            needed = pips_to_bear_off(player, move.from_point)
            if die < needed:
                return f"A {die} is too small to bear off from point {move.from_point}."
            if die > needed and has_checker_further_from_home(board, player, move.from_point):
                return (
                    f"Cannot bear off from point {move.from_point} with a {die} "
                    f"while a checker remains on a higher point."
                )
        else:
            target = move.from_point + direction(player) * die
            if target != move.to_point:
                landing = target if is_valid_point_index(target) else "off the board"
                return f"A {die} from point {move.from_point} lands on {landing}, not {move.to_point}."
            if is_blocked(board, move.to_point, player):
                return f"Point {move.to_point} is blocked by 2 or more opposing checkers."

    required = get_required_moves(state)
    if required.required_die is not None and die != required.required_die:
        return f"Only one die can be played, so the higher die ({required.required_die}) must be used."
    return "That move would leave a playable die unused; as many dice as possible must be played."


def can_end_turn(state: GameState) -> bool:
    """True in ``moving`` when the dice are used up or nothing can be played."""
    if state.phase != GamePhase.MOVING:
        return False
    return not state.remaining_moves or not has_any_legal_moves(state)


# ==============================================================================
# GAME OVER
# ==============================================================================

def determine_victory_type(board: Board, winner: Player) -> VictoryType:
    """Classify a win by the loser's position.

    - Loser bore off at least one checker: single
    - Otherwise, loser has a checker on the bar or in the winner's home
      board: backgammon
    - Otherwise: gammon
    """
    loser = winner.opponent()
    if board.borne_off.get(loser) > 0:
        return VictoryType.SINGLE

    if board.bar.get(loser) > 0:
        return VictoryType.BACKGAMMON
    if any(checker_count(board, point, loser) > 0 for point in home_board_range(winner)):
        return VictoryType.BACKGAMMON
    return VictoryType.GAMMON


def check_game_over(board: Board, cube_value: int = 1) -> Optional[GameResult]:
    """GameResult if either player has borne off all checkers, else None."""
    for player in (Player.WHITE, Player.BLACK):
        if board.borne_off.get(player) == CHECKERS_PER_PLAYER:
            victory_type = determine_victory_type(board, player)
            return GameResult(
                winner=player,
                victory_type=victory_type,
                cube_value=cube_value,
                points=compute_game_points(victory_type, cube_value),
            )
    return None
