"""
Backgammon Engine - pure, replayable backgammon rules and game state.
"""

__version__ = "0.1.0"

# Core exports
from backgammon_engine.core.types import (
    Board,
    DiceRoll,
    GameOptions,
    GamePhase,
    GameState,
    MatchConfig,
    Move,
    Player,
    VictoryType,
)
from backgammon_engine.core.result import Err, ErrorKind, Ok
from backgammon_engine.session import GameSession, MatchSession

__all__ = [
    "Board",
    "DiceRoll",
    "GameOptions",
    "GamePhase",
    "GameState",
    "MatchConfig",
    "Move",
    "Player",
    "VictoryType",
    "Err",
    "ErrorKind",
    "Ok",
    "GameSession",
    "MatchSession",
]
