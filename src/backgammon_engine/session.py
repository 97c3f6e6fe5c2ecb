"""Stateful holders for a game and a match.

``GameSession`` owns the authoritative ``GameState`` and the random
generator. Each command runs the matching ``perform_*`` operation,
replaces the held state with the outcome and returns the ``Result``.
Commands never raise for caller mistakes.

``MatchSession`` adds a ``MatchState`` around a ``GameSession``: finished
games are folded into the score and the next game starts with a fresh
cube and the Crawford flag applied.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from backgammon_engine.core import operations as ops
from backgammon_engine.core.cube import (
    can_propose_double,
    is_match_over,
    next_game_options,
    record_game_result,
    start_match,
)
from backgammon_engine.core.history import summarize_game
from backgammon_engine.core.reducer import initial_game_state
from backgammon_engine.core.result import Err, ErrorKind, Ok, Result
from backgammon_engine.core.rules import (
    can_end_turn,
    get_legal_moves,
    get_required_moves,
    get_valid_moves,
)
from backgammon_engine.core.serialization import (
    dumps,
    game_state_from_dict,
    game_state_to_dict,
    match_state_to_dict,
)
from backgammon_engine.core.types import (
    AvailableMoves,
    GameOptions,
    GamePhase,
    GameResult,
    GameState,
    MatchConfig,
    MatchState,
    Move,
    Player,
    RequiredMoves,
)

logger = logging.getLogger(__name__)

MoveLike = Union[Move, Mapping[str, Any], Sequence[Any]]


@dataclass(frozen=True)
class PlayTurnResult:
    """Outcome of a committed ``play_turn`` batch.

    Attributes:
        moves: Per-move results, in order
        game_over: GameResult if the batch ended the game
        next_player: Player on roll afterwards (None once the game is over)
    """
    moves: Tuple[ops.MoveResult, ...]
    game_over: Optional[GameResult]
    next_player: Optional[Player]


def _move_args(move: MoveLike) -> Optional[Tuple[Any, Any, Any]]:
    """(from, to, die) from a Move, a {"from", "to", "dieUsed"} dict or a 3-sequence."""
    if isinstance(move, Move):
        return move.from_point, move.to_point, move.die_used
    if isinstance(move, Mapping):
        if not {"from", "to", "dieUsed"} <= set(move):
            return None
        return move["from"], move["to"], move["dieUsed"]
    if isinstance(move, (tuple, list)) and len(move) == 3:
        return move[0], move[1], move[2]
    return None


class GameSession:
    """Command surface for a single game.

    Args:
        seed: Seed for the dice generator (ignored if ``rng`` is given)
        options: Default options for ``start_game``
        rng: Shared generator, e.g. from a MatchSession
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        options: Optional[GameOptions] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.options = options or GameOptions()
        self.state: GameState = initial_game_state()

    def _apply(self, outcome: ops.OperationOutcome) -> Result:
        self.state = outcome.state
        return outcome.result

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_game(
        self,
        options: Optional[GameOptions] = None,
        opening_rolls: Optional[Tuple[int, int]] = None,
    ) -> Result:
        return self._apply(ops.perform_start_game(
            self.state, self.rng, options or self.options, opening_rolls=opening_rolls,
        ))

    def set_first_player(self, player: Player, options: Optional[GameOptions] = None) -> Result:
        return self._apply(ops.perform_set_first_player(self.state, player, options or self.options))

    def roll_dice(self, roll: Any = None, player: Optional[Player] = None) -> Result:
        return self._apply(ops.perform_roll_dice(self.state, self.rng, roll=roll, player=player))

    def make_move(
        self,
        from_point: Any,
        to_point: Any,
        die_used: Any,
        player: Optional[Player] = None,
    ) -> Result:
        return self._apply(ops.perform_move(self.state, from_point, to_point, die_used, player=player))

    def end_turn(self, player: Optional[Player] = None) -> Result:
        return self._apply(ops.perform_end_turn(self.state, player=player))

    def undo_move(self, player: Optional[Player] = None) -> Result:
        return self._apply(ops.perform_undo_move(self.state, player=player))

    def undo_all_moves(self, player: Optional[Player] = None) -> Result:
        return self._apply(ops.perform_undo_all_moves(self.state, player=player))

    def reset_game(self) -> Result:
        return self._apply(ops.perform_reset_game(self.state))

    def propose_double(self, player: Optional[Player] = None) -> Result:
        return self._apply(ops.perform_propose_double(self.state, player=player))

    def accept_double(self, player: Optional[Player] = None) -> Result:
        return self._apply(ops.perform_accept_double(self.state, player=player))

    def decline_double(self, player: Optional[Player] = None) -> Result:
        return self._apply(ops.perform_decline_double(self.state, player=player))

    def respond_to_double(self, accept: bool, player: Optional[Player] = None) -> Result:
        return self._apply(ops.perform_respond_to_double(self.state, accept, player=player))

    def play_turn(self, moves: Sequence[MoveLike], player: Optional[Player] = None) -> Result:
        """Play a whole turn: every move, then end the turn.

        The batch runs against a scratch copy of the state and is committed
        only if every move and the end of turn succeed. On failure the held
        state is unchanged and the first error is returned, with the index
        of the failing move in ``details["move_index"]``.

        Args:
            moves: Moves as Move, {"from", "to", "dieUsed"} or (from, to, die)
            player: If given, must be the current player

        Returns:
            Ok(PlayTurnResult) or the first Err
        """
        state = self.state
        results: List[ops.MoveResult] = []

        for index, move in enumerate(moves):
            args = _move_args(move)
            if args is None:
                return Err(ErrorKind.INVALID_INPUT, f"Move {index} is not a valid move: {move!r}", {"move_index": index})
            outcome = ops.perform_move(state, *args, player=player)
            if not outcome.result.ok:
                err = outcome.result
                return Err(err.kind, err.message, {**err.details, "move_index": index})
            state = outcome.state
            results.append(outcome.result.value)
            if state.phase == GamePhase.GAME_OVER:
                break

        if state.phase != GamePhase.GAME_OVER:
            outcome = ops.perform_end_turn(state, player=player)
            if not outcome.result.ok:
                return outcome.result
            state = outcome.state

        self.state = state
        return Ok(PlayTurnResult(
            moves=tuple(results),
            game_over=state.result,
            next_player=None if state.result is not None else state.current_player,
        ))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def current_player(self) -> Optional[Player]:
        return self.state.current_player

    @property
    def result(self) -> Optional[GameResult]:
        return self.state.result

    def valid_moves(self) -> Tuple[AvailableMoves, ...]:
        return get_valid_moves(self.state)

    def legal_moves(self) -> Tuple[AvailableMoves, ...]:
        return get_legal_moves(self.state)

    def required_moves(self) -> RequiredMoves:
        return get_required_moves(self.state)

    def can_end_turn(self) -> bool:
        return can_end_turn(self.state)

    def can_double(self) -> bool:
        return can_propose_double(self.state)

    def summary(self) -> str:
        return summarize_game(self.state)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return game_state_to_dict(self.state)

    def to_json(self) -> str:
        return dumps(self.to_dict())

    def load(self, data: Dict[str, Any]) -> None:
        """Replace the held state with a decoded snapshot.

        Raises:
            ReplayError: If the snapshot is malformed
        """
        self.state = game_state_from_dict(data)


class MatchSession:
    """A scored series of games to ``config.target_score`` points.

    Args:
        config: Match configuration
        seed: Seed for the shared dice generator
    """

    def __init__(self, config: MatchConfig, seed: Optional[int] = None):
        self.config = config
        self.rng = np.random.default_rng(seed)
        self.match: MatchState = start_match(config)
        self.game = GameSession(rng=self.rng, options=next_game_options(self.match))
        self._recorded = False

    @property
    def is_over(self) -> bool:
        return is_match_over(self.match)

    def start_game(self, opening_rolls: Optional[Tuple[int, int]] = None) -> Result:
        """Start the current game of the match with the match's options."""
        if self.is_over:
            return Err(ErrorKind.INVALID_COMMAND_FOR_PHASE, "Cannot start game: the match is over.")
        return self.game.start_game(next_game_options(self.match), opening_rolls=opening_rolls)

    def record_current_game(self) -> Result:
        """Fold the finished game into the match score.

        Returns:
            Ok(MatchState) or Err if the game is not finished, was already
            recorded, or the match is over
        """
        if self.is_over:
            return Err(ErrorKind.INVALID_COMMAND_FOR_PHASE, "Cannot record game: the match is over.")
        if self.game.phase != GamePhase.GAME_OVER or self.game.result is None:
            return Err(
                ErrorKind.INVALID_COMMAND_FOR_PHASE,
                "Cannot record game: the current game is not over.",
                {"phase": self.game.phase.value},
            )
        if self._recorded:
            return Err(ErrorKind.INVALID_COMMAND_FOR_PHASE, "Cannot record game: already recorded.")

        self.match = record_game_result(self.match, self.game.result)
        self._recorded = True
        logger.info(
            "Game %d recorded: score white %d, black %d",
            self.match.game_number - 1, self.match.score.white, self.match.score.black,
        )
        return Ok(self.match)

    def start_next_game(self, opening_rolls: Optional[Tuple[int, int]] = None) -> Result:
        """Reset the board and start the match's next game.

        The cube starts centered at 1, and is absent in the Crawford game.
        """
        if self.is_over:
            return Err(ErrorKind.INVALID_COMMAND_FOR_PHASE, "Cannot start next game: the match is over.")
        if not self._recorded:
            return Err(
                ErrorKind.INVALID_COMMAND_FOR_PHASE,
                "Cannot start next game: record the current game first.",
            )
        self.game.reset_game()
        self._recorded = False
        self.game.options = next_game_options(self.match)
        return self.start_game(opening_rolls=opening_rolls)

    def reset_match(self) -> Result:
        self.match = start_match(self.config)
        self.game.reset_game()
        self.game.options = next_game_options(self.match)
        self._recorded = False
        return Ok(self.match)

    def to_dict(self) -> Dict[str, Any]:
        return {"match": match_state_to_dict(self.match), "game": self.game.to_dict()}

    def to_json(self) -> str:
        return dumps(self.to_dict())
