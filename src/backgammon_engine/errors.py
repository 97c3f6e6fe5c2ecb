"""Exception hierarchy for the backgammon engine.

Caller mistakes (illegal moves, wrong phase, nothing to undo) are never raised
past the operation layer; they come back as ``Err`` results. The exceptions
here cover the two remaining cases:

- Board-level applier failures (``InvalidMoveError``), which the operation
  layer catches and turns into an ``ILLEGAL_MOVE`` result.
- Programming errors (``InvariantViolationError``, ``ReplayError``), which must
  propagate and abort loudly.
"""

from typing import Any, Dict, Optional

__all__ = [
    "BackgammonError",
    "InvalidMoveError",
    "InvariantViolationError",
    "ReplayError",
]


class BackgammonError(Exception):
    """Base exception for all engine errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        context: Extra values useful when debugging
    """
    code: str = "BACKGAMMON_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class InvalidMoveError(BackgammonError):
    """A board transition was requested that the board cannot perform.

    Raised by ``board.apply_move`` when the source holds no checker of the
    mover, the destination is blocked, or a bar entry is requested with an
    empty bar.
    """
    code: str = "INVALID_MOVE"


class InvariantViolationError(BackgammonError):
    """A transition produced a state that breaks an engine invariant.

    This always indicates a bug in the transition logic, never bad input.
    """
    code: str = "INVARIANT_VIOLATION"


class ReplayError(BackgammonError):
    """An action log or serialized state could not be decoded."""
    code: str = "REPLAY_ERROR"
