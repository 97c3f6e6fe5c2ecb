"""Result types returned by every named operation.

Operations never raise for caller mistakes. They return ``Ok(value)`` with
an operation-specific payload, or ``Err(kind, message)`` and leave the state
untouched.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(Enum):
    """Recoverable failure categories."""
    NO_CURRENT_PLAYER = "no_current_player"
    INVALID_COMMAND_FOR_PHASE = "invalid_command_for_phase"
    ILLEGAL_MOVE = "illegal_move"
    NOT_PLAYERS_TURN = "not_players_turn"
    NOTHING_TO_UNDO = "nothing_to_undo"
    INVALID_INPUT = "invalid_input"
    MOVES_REMAINING = "moves_remaining"
    CANNOT_DOUBLE = "cannot_double"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err:
    """A rejected command.

    Attributes:
        kind: Failure category
        message: Human-readable reason, naming the rule that was broken
        details: Extra machine-readable context (e.g. the legal moves)
    """
    kind: ErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    ok: ClassVar[bool] = False

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "details": self.details}

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


Result = Union[Ok[Any], Err]
