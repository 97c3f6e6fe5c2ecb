"""Deterministic dict/JSON codec for game and match state.

Keys are camelCase (``currentPlayer``, ``remainingMoves`` ...) and
``dumps`` sorts them, so equal states always encode to identical bytes.
Decoding validates shapes and raises ``ReplayError`` on malformed input.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

from backgammon_engine.core.actions import (
    ACTION_TYPES,
    DiceRolled,
    DoubleAccepted,
    DoubleDeclined,
    DoubleProposed,
    FirstPlayerSet,
    GameAction,
    GameStart,
    MoveUndone,
    PieceMoved,
    TurnEnded,
)
from backgammon_engine.core.board import assert_valid_board
from backgammon_engine.core.types import (
    BAR,
    CUBE_VALUES,
    OFF,
    Board,
    CheckerCounts,
    CubeOwner,
    CubeState,
    DiceRoll,
    GamePhase,
    GameResult,
    GameState,
    MatchConfig,
    MatchGameRecord,
    MatchPhase,
    MatchScore,
    MatchState,
    Move,
    Player,
    Turn,
    VictoryType,
    is_valid_die_value,
    is_valid_point_index,
)
from backgammon_engine.errors import InvariantViolationError, ReplayError


# ==============================================================================
# ENCODING
# ==============================================================================

def _player(player: Optional[Player]) -> Optional[str]:
    return player.value if player is not None else None


def _counts_to_dict(counts: CheckerCounts) -> Dict[str, int]:
    return {"white": counts.white, "black": counts.black}


def board_to_dict(board: Board) -> Dict[str, Any]:
    return {
        "points": list(board.points),
        "bar": _counts_to_dict(board.bar),
        "borneOff": _counts_to_dict(board.borne_off),
    }


def dice_to_dict(dice: Optional[DiceRoll]) -> Optional[Dict[str, int]]:
    if dice is None:
        return None
    return {"die1": dice.die1, "die2": dice.die2}


def move_to_dict(move: Move) -> Dict[str, Any]:
    return {"from": move.from_point, "to": move.to_point, "dieUsed": move.die_used}


def result_to_dict(result: Optional[GameResult]) -> Optional[Dict[str, Any]]:
    if result is None:
        return None
    return {
        "winner": result.winner.value,
        "victoryType": result.victory_type.value,
        "cubeValue": result.cube_value,
        "points": result.points,
    }


def action_to_dict(action: GameAction) -> Dict[str, Any]:
    """Encode one action as ``{"type": ..., <camelCase fields>}``."""
    data: Dict[str, Any] = {"type": action.type}
    if isinstance(action, GameStart):
        data.update(
            firstPlayer=action.first_player.value,
            whiteRoll=action.white_roll,
            blackRoll=action.black_roll,
            doublingCubeEnabled=action.doubling_cube_enabled,
        )
    elif isinstance(action, FirstPlayerSet):
        data.update(player=action.player.value, doublingCubeEnabled=action.doubling_cube_enabled)
    elif isinstance(action, DiceRolled):
        data.update(
            player=action.player.value,
            roll=dice_to_dict(action.roll),
            turnForfeited=action.turn_forfeited,
        )
    elif isinstance(action, (PieceMoved, MoveUndone)):
        data.update(
            player=action.player.value,
            dieUsed=action.die_used,
            hit=action.hit,
            **{"from": action.from_point, "to": action.to_point},
        )
    elif isinstance(action, TurnEnded):
        data.update(player=action.player.value)
    elif isinstance(action, DoubleProposed):
        data.update(player=action.player.value, newValue=action.new_value)
    elif isinstance(action, (DoubleAccepted, DoubleDeclined)):
        data.update(player=action.player.value, cubeValue=action.cube_value)
    else:
        raise ReplayError(f"Cannot encode action of type {type(action).__name__}")
    return data


def game_state_to_dict(state: GameState) -> Dict[str, Any]:
    """Encode a GameState as plain JSON-compatible data."""
    cube = state.doubling_cube
    return {
        "board": board_to_dict(state.board),
        "currentPlayer": _player(state.current_player),
        "phase": state.phase.value,
        "diceRoll": dice_to_dict(state.dice_roll),
        "remainingMoves": list(state.remaining_moves),
        "turnNumber": state.turn_number,
        "movesThisTurn": [move_to_dict(m) for m in state.moves_this_turn],
        "result": result_to_dict(state.result),
        "history": [
            {
                "player": turn.player.value,
                "diceRoll": dice_to_dict(turn.dice_roll),
                "moves": [move_to_dict(m) for m in turn.moves],
            }
            for turn in state.history
        ],
        "actionHistory": [action_to_dict(a) for a in state.action_history],
        "doublingCube": None if cube is None else {"value": cube.value, "owner": cube.owner.value},
        "doubleProposedBy": _player(state.double_proposed_by),
    }


def match_state_to_dict(match: MatchState) -> Dict[str, Any]:
    """Encode a MatchState as plain JSON-compatible data."""
    return {
        "config": {
            "targetScore": match.config.target_score,
            "enableDoublingCube": match.config.enable_doubling_cube,
        },
        "score": {"white": match.score.white, "black": match.score.black},
        "phase": match.phase.value,
        "winner": _player(match.winner),
        "gameNumber": match.game_number,
        "isCrawfordGame": match.is_crawford_game,
        "crawfordGameUsed": match.crawford_game_used,
        "gameHistory": [
            {
                "winner": record.winner.value,
                "victoryType": record.victory_type.value,
                "cubeValue": record.cube_value,
                "points": record.points,
            }
            for record in match.game_history
        ],
    }


def dumps(data: Dict[str, Any]) -> str:
    """Canonical JSON: sorted keys, no insignificant whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


# ==============================================================================
# DECODING
# ==============================================================================

def _require(data: Dict[str, Any], key: str) -> Any:
    if not isinstance(data, dict):
        raise ReplayError(f"Expected an object, got {type(data).__name__}")
    if key not in data:
        raise ReplayError(f"Missing field '{key}'", context={"keys": sorted(data)})
    return data[key]


def _enum(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ReplayError(f"Invalid {field_name}: {value!r}") from e


def _optional_player(value: Any, field_name: str) -> Optional[Player]:
    return None if value is None else _enum(Player, value, field_name)


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ReplayError(f"Invalid {field_name}: {value!r} is not an integer")
    return value


def _die(value: Any, field_name: str) -> int:
    if not is_valid_die_value(value):
        raise ReplayError(f"Invalid {field_name}: {value!r} is not a die value")
    return value


def _counts_from_dict(data: Dict[str, Any], field_name: str) -> CheckerCounts:
    return CheckerCounts(
        white=_int(_require(data, "white"), f"{field_name}.white"),
        black=_int(_require(data, "black"), f"{field_name}.black"),
    )


def board_from_dict(data: Dict[str, Any]) -> Board:
    points = _require(data, "points")
    if not isinstance(points, list) or len(points) != 24:
        raise ReplayError("board.points must be a list of 24 integers")
    return Board(
        points=tuple(_int(p, "board.points") for p in points),
        bar=_counts_from_dict(_require(data, "bar"), "bar"),
        borne_off=_counts_from_dict(_require(data, "borneOff"), "borneOff"),
    )


def dice_from_dict(data: Optional[Dict[str, Any]]) -> Optional[DiceRoll]:
    if data is None:
        return None
    return DiceRoll(_die(_require(data, "die1"), "die1"), _die(_require(data, "die2"), "die2"))


def _location(value: Any, sentinel: str, field_name: str):
    if value == sentinel or is_valid_point_index(value):
        return value
    raise ReplayError(f"Invalid {field_name}: {value!r}")


def move_from_dict(data: Dict[str, Any]) -> Move:
    return Move(
        _location(_require(data, "from"), BAR, "from"),
        _location(_require(data, "to"), OFF, "to"),
        _die(_require(data, "dieUsed"), "dieUsed"),
    )


def result_from_dict(data: Optional[Dict[str, Any]]) -> Optional[GameResult]:
    if data is None:
        return None
    return GameResult(
        winner=_enum(Player, _require(data, "winner"), "winner"),
        victory_type=_enum(VictoryType, _require(data, "victoryType"), "victoryType"),
        cube_value=_int(data.get("cubeValue", 1), "cubeValue"),
        points=_int(data.get("points", 1), "points"),
    )


def _player_field(data: Dict[str, Any], key: str = "player") -> Player:
    return _enum(Player, _require(data, key), key)


_ACTION_DECODERS: Dict[str, Callable[[Dict[str, Any]], GameAction]] = {
    GameStart.type: lambda d: GameStart(
        first_player=_player_field(d, "firstPlayer"),
        white_roll=_die(_require(d, "whiteRoll"), "whiteRoll"),
        black_roll=_die(_require(d, "blackRoll"), "blackRoll"),
        doubling_cube_enabled=bool(d.get("doublingCubeEnabled", False)),
    ),
    FirstPlayerSet.type: lambda d: FirstPlayerSet(
        player=_player_field(d),
        doubling_cube_enabled=bool(d.get("doublingCubeEnabled", False)),
    ),
    DiceRolled.type: lambda d: DiceRolled(
        player=_player_field(d),
        roll=dice_from_dict(_require(d, "roll")),
        turn_forfeited=bool(d.get("turnForfeited", False)),
    ),
    PieceMoved.type: lambda d: PieceMoved(_player_field(d), *_move_fields(d)),
    MoveUndone.type: lambda d: MoveUndone(_player_field(d), *_move_fields(d)),
    TurnEnded.type: lambda d: TurnEnded(player=_player_field(d)),
    DoubleProposed.type: lambda d: DoubleProposed(
        player=_player_field(d),
        new_value=_int(_require(d, "newValue"), "newValue"),
    ),
    DoubleAccepted.type: lambda d: DoubleAccepted(
        player=_player_field(d),
        cube_value=_int(_require(d, "cubeValue"), "cubeValue"),
    ),
    DoubleDeclined.type: lambda d: DoubleDeclined(
        player=_player_field(d),
        cube_value=_int(_require(d, "cubeValue"), "cubeValue"),
    ),
}

assert set(_ACTION_DECODERS) == set(ACTION_TYPES), "every action type needs a decoder"


def _move_fields(data: Dict[str, Any]) -> Tuple[Any, Any, int, bool]:
    move = move_from_dict(data)
    return move.from_point, move.to_point, move.die_used, bool(data.get("hit", False))


def action_from_dict(data: Dict[str, Any]) -> GameAction:
    """Decode one action dict.

    Raises:
        ReplayError: Unknown type or malformed fields
    """
    action_type = _require(data, "type")
    decoder = _ACTION_DECODERS.get(action_type)
    if decoder is None:
        raise ReplayError(f"Unknown action type: {action_type!r}")
    return decoder(data)


def actions_from_list(data: List[Dict[str, Any]]) -> List[GameAction]:
    if not isinstance(data, list):
        raise ReplayError("Action log must be a list")
    return [action_from_dict(item) for item in data]


def game_state_from_dict(data: Dict[str, Any]) -> GameState:
    """Decode the output of ``game_state_to_dict``.

    Raises:
        ReplayError: Missing or malformed fields
    """
    cube_data = _require(data, "doublingCube")
    cube = None
    if cube_data is not None:
        value = _int(_require(cube_data, "value"), "doublingCube.value")
        if value not in CUBE_VALUES:
            raise ReplayError(f"Invalid doublingCube.value: {value}")
        cube = CubeState(value=value, owner=_enum(CubeOwner, _require(cube_data, "owner"), "owner"))

    history = tuple(
        Turn(
            player=_player_field(turn),
            dice_roll=dice_from_dict(_require(turn, "diceRoll")),
            moves=tuple(move_from_dict(m) for m in _require(turn, "moves")),
        )
        for turn in _require(data, "history")
    )

    board = board_from_dict(_require(data, "board"))
    try:
        assert_valid_board(board)
    except InvariantViolationError as e:
        raise ReplayError(e.message, context=e.context) from e

    return GameState(
        board=board,
        current_player=_optional_player(_require(data, "currentPlayer"), "currentPlayer"),
        phase=_enum(GamePhase, _require(data, "phase"), "phase"),
        dice_roll=dice_from_dict(_require(data, "diceRoll")),
        remaining_moves=tuple(_die(d, "remainingMoves") for d in _require(data, "remainingMoves")),
        turn_number=_int(_require(data, "turnNumber"), "turnNumber"),
        moves_this_turn=tuple(move_from_dict(m) for m in _require(data, "movesThisTurn")),
        result=result_from_dict(_require(data, "result")),
        history=history,
        action_history=tuple(actions_from_list(_require(data, "actionHistory"))),
        doubling_cube=cube,
        double_proposed_by=_optional_player(_require(data, "doubleProposedBy"), "doubleProposedBy"),
    )


def match_state_from_dict(data: Dict[str, Any]) -> MatchState:
    """Decode the output of ``match_state_to_dict``.

    Raises:
        ReplayError: Missing or malformed fields
    """
    config_data = _require(data, "config")
    try:
        config = MatchConfig(
            target_score=_require(config_data, "targetScore"),
            enable_doubling_cube=bool(config_data.get("enableDoublingCube", True)),
        )
    except ValueError as e:
        raise ReplayError(str(e)) from e

    score_data = _require(data, "score")
    return MatchState(
        config=config,
        score=MatchScore(
            white=_int(_require(score_data, "white"), "score.white"),
            black=_int(_require(score_data, "black"), "score.black"),
        ),
        phase=_enum(MatchPhase, _require(data, "phase"), "phase"),
        winner=_optional_player(_require(data, "winner"), "winner"),
        game_number=_int(_require(data, "gameNumber"), "gameNumber"),
        is_crawford_game=bool(_require(data, "isCrawfordGame")),
        crawford_game_used=bool(_require(data, "crawfordGameUsed")),
        game_history=tuple(
            MatchGameRecord(
                winner=_player_field(record, "winner"),
                victory_type=_enum(VictoryType, _require(record, "victoryType"), "victoryType"),
                cube_value=_int(_require(record, "cubeValue"), "cubeValue"),
                points=_int(_require(record, "points"), "points"),
            )
            for record in _require(data, "gameHistory")
        ),
    )
