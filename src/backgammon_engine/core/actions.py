"""Game actions: the append-only event log of a game.

Each accepted state-changing command is recorded as one of the frozen
dataclasses below. Feeding the log back through ``reducer.reduce`` from the
initial state reproduces the game exactly.

The set is closed: ``ACTION_TYPES`` lists every variant, and the reducer,
history summaries and serialization each keep a handler table keyed by it.
"""

from dataclasses import dataclass
from typing import ClassVar, Dict, Type, Union

from backgammon_engine.core.types import DiceRoll, Move, MoveFrom, MoveTo, Player


@dataclass(frozen=True)
class GameStart:
    """Opening roll resolved; ``first_player`` moves with both opening dice."""
    first_player: Player
    white_roll: int
    black_roll: int
    doubling_cube_enabled: bool = False
    type: ClassVar[str] = "game_start"


@dataclass(frozen=True)
class FirstPlayerSet:
    """First player chosen directly instead of by opening roll."""
    player: Player
    doubling_cube_enabled: bool = False
    type: ClassVar[str] = "first_player_set"


@dataclass(frozen=True)
class DiceRolled:
    player: Player
    roll: DiceRoll
    turn_forfeited: bool = False
    type: ClassVar[str] = "dice_roll"


@dataclass(frozen=True)
class PieceMoved:
    player: Player
    from_point: MoveFrom
    to_point: MoveTo
    die_used: int
    hit: bool = False
    type: ClassVar[str] = "piece_move"

    @property
    def move(self) -> Move:
        return Move(self.from_point, self.to_point, self.die_used)


@dataclass(frozen=True)
class MoveUndone:
    """Takes back the most recent move of the turn in progress."""
    player: Player
    from_point: MoveFrom
    to_point: MoveTo
    die_used: int
    hit: bool = False
    type: ClassVar[str] = "move_undone"

    @property
    def move(self) -> Move:
        return Move(self.from_point, self.to_point, self.die_used)


@dataclass(frozen=True)
class TurnEnded:
    player: Player
    type: ClassVar[str] = "turn_end"


@dataclass(frozen=True)
class DoubleProposed:
    player: Player
    new_value: int
    type: ClassVar[str] = "double_proposed"


@dataclass(frozen=True)
class DoubleAccepted:
    """``cube_value`` is the value after doubling; ``player`` is the accepter."""
    player: Player
    cube_value: int
    type: ClassVar[str] = "double_accepted"


@dataclass(frozen=True)
class DoubleDeclined:
    """``cube_value`` is the value the game is forfeited at; ``player`` is the decliner."""
    player: Player
    cube_value: int
    type: ClassVar[str] = "double_declined"


GameAction = Union[
    GameStart,
    FirstPlayerSet,
    DiceRolled,
    PieceMoved,
    MoveUndone,
    TurnEnded,
    DoubleProposed,
    DoubleAccepted,
    DoubleDeclined,
]

ACTION_TYPES: Dict[str, Type] = {
    cls.type: cls
    for cls in (
        GameStart,
        FirstPlayerSet,
        DiceRolled,
        PieceMoved,
        MoveUndone,
        TurnEnded,
        DoubleProposed,
        DoubleAccepted,
        DoubleDeclined,
    )
}
