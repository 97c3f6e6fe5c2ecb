"""Player-relative view of the board.

The engine always stores the board from white's point of view. Callers that
want every player to "move from 24 toward 1" translate at the boundary with
these functions; nothing inside the engine uses them.

For white the transform is the identity. For black, point ``p`` becomes
``25 - p`` and colors swap, so black's checkers become the positive ones.
Every function here is its own inverse.
"""

from backgammon_engine.core.types import BAR, OFF, Board, CheckerCounts, Move, MoveFrom, Player


def to_perspective_point(point: int, player: Player) -> int:
    """Engine point -> point as seen by ``player``."""
    if player == Player.WHITE:
        return point
    return 25 - point


def from_perspective_point(point: int, player: Player) -> int:
    """Point as seen by ``player`` -> engine point."""
    return to_perspective_point(point, player)


def _location(value: MoveFrom, player: Player):
    if value in (BAR, OFF):
        return value
    return to_perspective_point(value, player)


def move_to_perspective(move: Move, player: Player) -> Move:
    """Translate a move's points; ``bar`` and ``off`` are unchanged."""
    return Move(_location(move.from_point, player), _location(move.to_point, player), move.die_used)


def move_from_perspective(move: Move, player: Player) -> Move:
    return move_to_perspective(move, player)


def flip_board(board: Board) -> Board:
    """Flip board perspective (white ↔ black).

    Args:
        board: Board to flip

    Returns:
        New board with colors swapped and points mirrored
    """
    # Point i for white becomes point (25-i) for black
    points = tuple(-value for value in reversed(board.points))
    return Board(
        points=points,
        bar=CheckerCounts(white=board.bar.black, black=board.bar.white),
        borne_off=CheckerCounts(white=board.borne_off.black, black=board.borne_off.white),
    )


def board_from_perspective(board: Board, player: Player) -> Board:
    """Board as ``player`` sees it: their own checkers positive, moving 24 -> 1."""
    if player == Player.WHITE:
        return board
    return flip_board(board)
