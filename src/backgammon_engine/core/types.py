"""Core type definitions for the backgammon engine.

Every state value here is a frozen dataclass built from tuples, enums and
ints, so a state is never mutated in place: transitions return a new value via
``dataclasses.replace``. That keeps snapshots safe to share and makes them
deterministically serializable (see ``core.serialization``).

Board orientation is always white's point of view:
    White moves 24 → 1 → off (home board 1-6)
    Black moves 1 → 24 → off (home board 19-24)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple, Union

if TYPE_CHECKING:
    from backgammon_engine.core.actions import GameAction


# ==============================================================================
# PRIMITIVES
# ==============================================================================

NUM_POINTS = 24
CHECKERS_PER_PLAYER = 15

#: Sentinel origin for entering a checker from the bar
BAR = "bar"
#: Sentinel destination for bearing a checker off
OFF = "off"

Point = int  # 1-24
MoveFrom = Union[int, str]  # 1-24 or BAR
MoveTo = Union[int, str]  # 1-24 or OFF

CUBE_VALUES = (1, 2, 4, 8, 16, 32, 64)


def is_valid_point_index(value) -> bool:
    """Check that a value is an integer point index 1-24."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= NUM_POINTS


def is_valid_die_value(value) -> bool:
    """Check that a value is an integer die face 1-6."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 6


class Player(Enum):
    """Player colors."""
    WHITE = "white"
    BLACK = "black"

    def opponent(self) -> "Player":
        """Return the opponent player."""
        return Player.BLACK if self == Player.WHITE else Player.WHITE

    def __str__(self) -> str:
        return self.value


class GamePhase(Enum):
    """Game phases.

    Flow:
        not_started -> rolling_for_first -> moving (opening roll)
        rolling -> [doubling_proposed -> rolling] -> moving -> rolling ...
        any move or a declined double may end in game_over
    """
    NOT_STARTED = "not_started"
    ROLLING_FOR_FIRST = "rolling_for_first"
    ROLLING = "rolling"
    DOUBLING_PROPOSED = "doubling_proposed"
    MOVING = "moving"
    GAME_OVER = "game_over"

    def __str__(self) -> str:
        return self.value


class VictoryType(Enum):
    """How a game was won.

    - single: loser has borne off at least one checker (1x)
    - gammon: loser has borne off nothing (2x)
    - backgammon: gammon with a loser checker on the bar or in the
      winner's home board (3x)
    """
    SINGLE = "single"
    GAMMON = "gammon"
    BACKGAMMON = "backgammon"

    @property
    def multiplier(self) -> int:
        return _VICTORY_MULTIPLIERS[self]

    def __str__(self) -> str:
        return self.value


_VICTORY_MULTIPLIERS = {
    VictoryType.SINGLE: 1,
    VictoryType.GAMMON: 2,
    VictoryType.BACKGAMMON: 3,
}


class CubeOwner(Enum):
    """Who holds the doubling cube."""
    WHITE = "white"
    BLACK = "black"
    CENTERED = "centered"


# ==============================================================================
# BOARD REPRESENTATION
# ==============================================================================

@dataclass(frozen=True)
class CheckerCounts:
    """Per-color counter used for the bar and the borne-off tray."""
    white: int = 0
    black: int = 0

    def get(self, player: Player) -> int:
        return self.white if player == Player.WHITE else self.black

    def with_count(self, player: Player, count: int) -> "CheckerCounts":
        """Return a copy with one color's count replaced."""
        if player == Player.WHITE:
            return CheckerCounts(white=count, black=self.black)
        return CheckerCounts(white=self.white, black=count)

    def add(self, player: Player, delta: int) -> "CheckerCounts":
        return self.with_count(player, self.get(player) + delta)


@dataclass(frozen=True)
class Board:
    """Board state.

    Attributes:
        points: 24 signed counts; index 0 is point 1, index 23 is point 24.
            Positive = white checkers, negative = black checkers, 0 = empty.
        bar: Checkers hit and waiting to re-enter
        borne_off: Checkers removed from play
    """
    points: Tuple[int, ...] = (0,) * NUM_POINTS
    bar: CheckerCounts = field(default_factory=CheckerCounts)
    borne_off: CheckerCounts = field(default_factory=CheckerCounts)

    def __post_init__(self):
        """Normalise points to a tuple of ints and validate its length."""
        points = tuple(int(p) for p in self.points)
        assert len(points) == NUM_POINTS, f"points must have length {NUM_POINTS}"
        object.__setattr__(self, "points", points)

    def at(self, point: Point) -> int:
        """Signed checker count on a point (1-24)."""
        return self.points[point - 1]


# ==============================================================================
# DICE AND MOVES
# ==============================================================================

@dataclass(frozen=True)
class DiceRoll:
    """A roll of two dice."""
    die1: int
    die2: int

    def __post_init__(self):
        assert is_valid_die_value(self.die1), f"Invalid die: {self.die1}"
        assert is_valid_die_value(self.die2), f"Invalid die: {self.die2}"

    @property
    def is_doubles(self) -> bool:
        return self.die1 == self.die2


@dataclass(frozen=True)
class Move:
    """A single checker movement.

    Attributes:
        from_point: Starting point (1-24) or BAR
        to_point: Ending point (1-24) or OFF
        die_used: Which die value was used (1-6)
    """
    from_point: MoveFrom
    to_point: MoveTo
    die_used: int

    def __post_init__(self):
        assert self.from_point == BAR or is_valid_point_index(self.from_point), \
            f"Invalid from_point: {self.from_point}"
        assert self.to_point == OFF or is_valid_point_index(self.to_point), \
            f"Invalid to_point: {self.to_point}"
        assert is_valid_die_value(self.die_used), f"Invalid die: {self.die_used}"


@dataclass(frozen=True)
class MoveDestination:
    """A reachable destination for one checker with one die."""
    to_point: MoveTo
    die_value: int
    would_hit: bool = False


@dataclass(frozen=True)
class AvailableMoves:
    """All legal destinations from one origin."""
    from_point: MoveFrom
    destinations: Tuple[MoveDestination, ...] = ()

    def moves(self) -> Tuple[Move, ...]:
        """Expand into concrete Move values."""
        return tuple(
            Move(self.from_point, dest.to_point, dest.die_value)
            for dest in self.destinations
        )


@dataclass(frozen=True)
class Turn:
    """A completed turn: the roll and the moves actually played."""
    player: Player
    dice_roll: DiceRoll
    moves: Tuple[Move, ...] = ()


@dataclass(frozen=True)
class RequiredMoves:
    """Forced-move constraints for the dice still to be played.

    Attributes:
        required_die: Die that must be played next, or None if free choice
        must_play_both_dice: At least two dice can be used, so as many as
            possible must be
        must_play_higher_die: Only one die can be used and both could be;
            the higher one is required
        max_moves_usable: Most dice any legal sequence can use
    """
    required_die: Optional[int] = None
    must_play_both_dice: bool = False
    must_play_higher_die: bool = False
    max_moves_usable: int = 0


# ==============================================================================
# GAME STATE
# ==============================================================================

@dataclass(frozen=True)
class GameResult:
    """Outcome of a finished game.

    Attributes:
        winner: Which player won
        victory_type: single, gammon or backgammon
        cube_value: Cube value the game was played for
        points: cube_value * victory multiplier
    """
    winner: Player
    victory_type: VictoryType
    cube_value: int = 1
    points: int = 1


@dataclass(frozen=True)
class CubeState:
    """Doubling cube: current value and who may turn it next."""
    value: int = 1
    owner: CubeOwner = CubeOwner.CENTERED

    def __post_init__(self):
        assert self.value in CUBE_VALUES, f"Invalid cube value: {self.value}"


@dataclass(frozen=True)
class GameOptions:
    """Per-game configuration.

    Attributes:
        enable_doubling_cube: Play this game with a doubling cube
        is_crawford_game: Crawford game of a match; the cube is disabled
            regardless of enable_doubling_cube
    """
    enable_doubling_cube: bool = False
    is_crawford_game: bool = False

    @property
    def cube_in_play(self) -> bool:
        return self.enable_doubling_cube and not self.is_crawford_game


@dataclass(frozen=True)
class GameState:
    """Complete game state; the single source of truth for one game.

    Replaced wholesale by every accepted command. ``history`` and
    ``action_history`` only grow until the game is reset.
    """
    board: Board = field(default_factory=Board)
    current_player: Optional[Player] = None
    phase: GamePhase = GamePhase.NOT_STARTED
    dice_roll: Optional[DiceRoll] = None
    remaining_moves: Tuple[int, ...] = ()
    turn_number: int = 0
    moves_this_turn: Tuple[Move, ...] = ()
    result: Optional[GameResult] = None
    history: Tuple[Turn, ...] = ()
    action_history: Tuple["GameAction", ...] = ()
    doubling_cube: Optional[CubeState] = None
    double_proposed_by: Optional[Player] = None


# ==============================================================================
# MATCH STATE
# ==============================================================================

class MatchPhase(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class MatchConfig:
    """Configuration for a scored series of games.

    Attributes:
        target_score: Points needed to win the match
        enable_doubling_cube: Use the cube (outside the Crawford game)
    """
    target_score: int
    enable_doubling_cube: bool = True

    def __post_init__(self):
        if isinstance(self.target_score, bool) or not isinstance(self.target_score, int):
            raise ValueError(f"target_score must be an int, got {self.target_score!r}")
        if self.target_score < 1:
            raise ValueError(f"target_score must be >= 1, got {self.target_score}")


@dataclass(frozen=True)
class MatchScore:
    white: int = 0
    black: int = 0

    def get(self, player: Player) -> int:
        return self.white if player == Player.WHITE else self.black

    def add(self, player: Player, points: int) -> "MatchScore":
        if player == Player.WHITE:
            return MatchScore(white=self.white + points, black=self.black)
        return MatchScore(white=self.white, black=self.black + points)


@dataclass(frozen=True)
class MatchGameRecord:
    """One finished game as scored by the match."""
    winner: Player
    victory_type: VictoryType
    cube_value: int
    points: int


@dataclass(frozen=True)
class MatchState:
    """Score and Crawford bookkeeping for a match.

    Updated only at game boundaries; replaced on match reset.
    """
    config: MatchConfig
    score: MatchScore = field(default_factory=MatchScore)
    phase: MatchPhase = MatchPhase.IN_PROGRESS
    winner: Optional[Player] = None
    game_number: int = 1
    is_crawford_game: bool = False
    crawford_game_used: bool = False
    game_history: Tuple[MatchGameRecord, ...] = ()
