"""Board model: construction, queries, move application and invariants.

Board Layout:
    White moves from 24→1→off (home board: 1-6)
    Black moves from 1→24→off (home board: 19-24)

    Point numbering:
    13 14 15 16 17 18    19 20 21 22 23 24
    +------------------+------------------+
    |                  |                  |  Black home
    |                  |                  |
    |                  |                  |
    |                  |                  |
    |                  |                  |
    |                  |                  |  White home
    +------------------+------------------+
    12 11 10  9  8  7     6  5  4  3  2  1

Everything here is pure: appliers return new Board values and never
touch their input.
"""

from typing import Dict, List, Optional, Tuple
import numpy as np
from backgammon_engine.core.types import (
    BAR,
    CHECKERS_PER_PLAYER,
    NUM_POINTS,
    OFF,
    Board,
    CheckerCounts,
    Move,
    Player,
    Point,
    is_valid_point_index,
)
from backgammon_engine.errors import InvalidMoveError, InvariantViolationError


#: Standard opening layout, index 0 = point 1
INITIAL_POINTS = (
    -2, 0, 0, 0, 0, 5, 0, 3, 0, 0, 0, -5,
    5, 0, 0, 0, -3, 0, -5, 0, 0, 0, 0, 2,
)


def sign(player: Player) -> int:
    """Sign used for a player's checkers in ``Board.points``."""
    return 1 if player == Player.WHITE else -1


def direction(player: Player) -> int:
    """Point delta per pip for a player (white -1, black +1)."""
    return -1 if player == Player.WHITE else 1


# ==============================================================================
# BOARD CONSTRUCTION
# ==============================================================================

def initial_board() -> Board:
    """Create the standard backgammon starting position.

    Standard setup:
    - White: 2 on 24, 5 on 13, 3 on 8, 5 on 6
    - Black: 2 on 1, 5 on 12, 3 on 17, 5 on 19

    Returns:
        Board in starting position
    """
    return Board(points=INITIAL_POINTS)


def empty_board() -> Board:
    """Create an empty board with no checkers.

    Note that an empty board does not satisfy the checker-count invariant;
    it is a building block for ``board_from_positions``.
    """
    return Board()


def board_from_positions(
    white: Dict[Point, int],
    black: Dict[Point, int],
    white_bar: int = 0,
    black_bar: int = 0,
    white_off: Optional[int] = None,
    black_off: Optional[int] = None,
) -> Board:
    """Build a board from per-player point counts.

    Checkers not placed on a point or on the bar are treated as borne off
    unless an explicit borne-off count is given.

    Args:
        white: Mapping point -> number of white checkers
        black: Mapping point -> number of black checkers
        white_bar: White checkers on the bar
        black_bar: Black checkers on the bar
        white_off: White checkers borne off (default: the remainder)
        black_off: Black checkers borne off (default: the remainder)

    Returns:
        New board

    Raises:
        ValueError: If both colors are placed on the same point
    """
    points = [0] * NUM_POINTS
    for point, count in white.items():
        points[point - 1] += count
    for point, count in black.items():
        if points[point - 1] > 0 and count > 0:
            raise ValueError(f"Point {point} holds checkers of both colors")
        points[point - 1] -= count

    if white_off is None:
        white_off = CHECKERS_PER_PLAYER - sum(white.values()) - white_bar
    if black_off is None:
        black_off = CHECKERS_PER_PLAYER - sum(black.values()) - black_bar

    return Board(
        points=tuple(points),
        bar=CheckerCounts(white=white_bar, black=black_bar),
        borne_off=CheckerCounts(white=white_off, black=black_off),
    )


# ==============================================================================
# BOARD QUERIES
# ==============================================================================

def point_owner(board: Board, point: Point) -> Optional[Player]:
    """Which player occupies a point, or None if it is empty."""
    value = board.at(point)
    if value > 0:
        return Player.WHITE
    if value < 0:
        return Player.BLACK
    return None


def checker_count(board: Board, point: Point, player: Player) -> int:
    """Number of a player's checkers on a point (0 if the opponent holds it)."""
    value = board.at(point) * sign(player)
    return value if value > 0 else 0


def is_blocked(board: Board, point: Point, player: Player) -> bool:
    """True if the opponent holds 2+ checkers on the point."""
    return checker_count(board, point, player.opponent()) >= 2


def home_board_range(player: Player) -> range:
    """Get the range of points in a player's home board."""
    if player == Player.WHITE:
        return range(1, 7)  # 1-6
    else:
        return range(19, 25)  # 19-24


def is_home(player: Player, point: Point) -> bool:
    """True if the point lies in the player's home board."""
    return point in home_board_range(player)


def entry_point(player: Player, die: int) -> Point:
    """Get the entry point for a die value when entering from the bar.

    Args:
        player: Which player
        die: Die value (1-6)

    Returns:
        Point number
    """
    if player == Player.WHITE:
        return 25 - die  # White enters in 19-24 (opponent's home)
    else:
        return die  # Black enters in 1-6 (opponent's home)


def pips_to_bear_off(player: Player, point: Point) -> int:
    """Distance from a home point to off (white point 3 -> 3, black 22 -> 3)."""
    return point if player == Player.WHITE else 25 - point


def occupied_points(board: Board, player: Player) -> List[Point]:
    """Points holding at least one of the player's checkers, in ascending order."""
    s = sign(player)
    return [i + 1 for i, value in enumerate(board.points) if value * s > 0]


def all_checkers_home(board: Board, player: Player) -> bool:
    """Check if a player can bear off checkers.

    A player can bear off when all their checkers still in play are in their
    home board: nothing on the bar and nothing outside points 1-6 (white) or
    19-24 (black).
    """
    if board.bar.get(player) > 0:
        return False
    return all(is_home(player, point) for point in occupied_points(board, player))


def has_checker_further_from_home(board: Board, player: Player, point: Point) -> bool:
    """True if the player has a checker on a home point farther from off than ``point``.

    Used by the overshoot bear-off rule.
    """
    if player == Player.WHITE:
        farther = range(point + 1, 7)
    else:
        farther = range(19, point)
    return any(checker_count(board, p, player) > 0 for p in farther)


def pip_count(board: Board, player: Player) -> int:
    """Calculate pip count for a player.

    Pip count = sum of (distance to off × num_checkers) for all checkers.
    Checkers on the bar count 25 pips.
    """
    pts = np.asarray(board.points)
    indices = np.arange(1, NUM_POINTS + 1)
    if player == Player.WHITE:
        on_board = int(np.sum(np.where(pts > 0, pts * indices, 0)))
    else:
        on_board = int(np.sum(np.where(pts < 0, -pts * (25 - indices), 0)))
    return on_board + 25 * board.bar.get(player)


def count_total_checkers(board: Board, player: Player) -> int:
    """Checkers on points + bar + borne off for one player."""
    pts = np.asarray(board.points)
    if player == Player.WHITE:
        on_board = int(pts[pts > 0].sum())
    else:
        on_board = int(-pts[pts < 0].sum())
    return on_board + board.bar.get(player) + board.borne_off.get(player)


def is_valid_board(board: Board) -> Tuple[bool, str]:
    """Validate a board state.

    Args:
        board: Board to validate

    Returns:
        (is_valid, error_message) tuple
    """
    for player in (Player.WHITE, Player.BLACK):
        if board.bar.get(player) < 0:
            return False, f"{player} has a negative bar count"
        if board.borne_off.get(player) < 0:
            return False, f"{player} has a negative borne-off count"

        total = count_total_checkers(board, player)
        if total != CHECKERS_PER_PLAYER:
            return False, f"{player} has {total} checkers, should have {CHECKERS_PER_PLAYER}"

    return True, ""


def assert_valid_board(board: Board, context: str = "") -> None:
    """Raise InvariantViolationError if the board breaks the checker-count invariant."""
    valid, message = is_valid_board(board)
    if not valid:
        raise InvariantViolationError(
            f"Board invariant violated: {message}",
            context={"after": context} if context else None,
        )


# ==============================================================================
# MOVE APPLICATION
# ==============================================================================

def _with_point(points: List[int], point: Point, value: int) -> None:
    points[point - 1] = value


def move_hits(board: Board, move: Move, player: Player) -> bool:
    """True if the move lands on a single opposing checker."""
    if move.to_point == OFF:
        return False
    return checker_count(board, move.to_point, player.opponent()) == 1


def apply_move(board: Board, move: Move, player: Player) -> Tuple[Board, bool]:
    """Apply a single checker move.

    Checks only what the board itself can check (checker present, landing
    point open); dice and bear-off eligibility are the legality engine's job.

    Args:
        board: Current board (not modified)
        move: Move to apply
        player: Player making the move

    Returns:
        (new_board, hit) tuple

    Raises:
        InvalidMoveError: If the source holds no mover checker, the bar is
            empty for a bar move, or the destination is blocked
    """
    points = list(board.points)
    bar = board.bar
    borne_off = board.borne_off
    s = sign(player)
    opponent = player.opponent()

    # Lift the checker
    if move.from_point == BAR:
        if bar.get(player) == 0:
            raise InvalidMoveError(
                f"{player} has no checkers on the bar",
                context={"move": move},
            )
        bar = bar.add(player, -1)
    else:
        if not is_valid_point_index(move.from_point) or checker_count(board, move.from_point, player) == 0:
            raise InvalidMoveError(
                f"No {player} checker on point {move.from_point}",
                context={"move": move},
            )
        _with_point(points, move.from_point, points[move.from_point - 1] - s)

    # Place it
    hit = False
    if move.to_point == OFF:
        borne_off = borne_off.add(player, 1)
    else:
        if not is_valid_point_index(move.to_point):
            raise InvalidMoveError(
                f"Invalid destination {move.to_point}",
                context={"move": move},
            )
        if is_blocked(board, move.to_point, player):
            raise InvalidMoveError(
                f"Point {move.to_point} is blocked",
                context={"move": move},
            )
        if checker_count(board, move.to_point, opponent) == 1:
            # Hit: send the blot to the opponent's bar before landing
            hit = True
            _with_point(points, move.to_point, 0)
            bar = bar.add(opponent, 1)
        _with_point(points, move.to_point, points[move.to_point - 1] + s)

    return Board(points=tuple(points), bar=bar, borne_off=borne_off), hit


def unapply_move(board: Board, move: Move, player: Player, hit: bool) -> Board:
    """Reverse ``apply_move`` exactly, including returning a hit checker.

    Args:
        board: Board after the move (not modified)
        move: Move to reverse
        player: Player who made the move
        hit: Whether the move hit a blot

    Returns:
        Board as it was before the move

    Raises:
        InvalidMoveError: If the board is not consistent with the move
    """
    points = list(board.points)
    bar = board.bar
    borne_off = board.borne_off
    s = sign(player)
    opponent = player.opponent()

    # Pick the checker back up from where it landed
    if move.to_point == OFF:
        if borne_off.get(player) == 0:
            raise InvalidMoveError(
                f"{player} has no borne-off checker to return",
                context={"move": move},
            )
        borne_off = borne_off.add(player, -1)
    else:
        if checker_count(board, move.to_point, player) == 0:
            raise InvalidMoveError(
                f"No {player} checker on point {move.to_point} to take back",
                context={"move": move},
            )
        _with_point(points, move.to_point, points[move.to_point - 1] - s)
        if hit:
            if bar.get(opponent) == 0:
                raise InvalidMoveError(
                    f"{opponent} has no checker on the bar to restore",
                    context={"move": move},
                )
            bar = bar.add(opponent, -1)
            _with_point(points, move.to_point, -s)

    # Put it back on its origin
    if move.from_point == BAR:
        bar = bar.add(player, 1)
    else:
        _with_point(points, move.from_point, points[move.from_point - 1] + s)

    return Board(points=tuple(points), bar=bar, borne_off=borne_off)
