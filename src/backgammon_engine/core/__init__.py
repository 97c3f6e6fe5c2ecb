"""Core game logic and data structures."""

from backgammon_engine.core.types import (
    BAR,
    OFF,
    AvailableMoves,
    Board,
    CubeOwner,
    CubeState,
    DiceRoll,
    GameOptions,
    GamePhase,
    GameResult,
    GameState,
    MatchConfig,
    MatchState,
    Move,
    MoveDestination,
    Player,
    Point,
    RequiredMoves,
    Turn,
    VictoryType,
)
from backgammon_engine.core.result import Err, ErrorKind, Ok
from backgammon_engine.core.rules import (
    filter_moves_by_die,
    get_legal_moves,
    get_required_moves,
    get_valid_moves,
)

__all__ = [
    "BAR",
    "OFF",
    "AvailableMoves",
    "Board",
    "CubeOwner",
    "CubeState",
    "DiceRoll",
    "GameOptions",
    "GamePhase",
    "GameResult",
    "GameState",
    "MatchConfig",
    "MatchState",
    "Move",
    "MoveDestination",
    "Player",
    "Point",
    "RequiredMoves",
    "Turn",
    "VictoryType",
    "Err",
    "ErrorKind",
    "Ok",
    "filter_moves_by_die",
    "get_legal_moves",
    "get_required_moves",
    "get_valid_moves",
]
