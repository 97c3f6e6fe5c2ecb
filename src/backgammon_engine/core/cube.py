"""Doubling cube and match scoring.

This module implements:
- Cube state management (value, ownership)
- Cube decision rules (who may double, what accepting does)
- Game points (victory multiplier x cube value)
- Match play (score tracking, Crawford rule)
"""

import logging
from dataclasses import replace
from typing import Optional

from backgammon_engine.core.types import (
    CubeOwner,
    CubeState,
    GameOptions,
    GamePhase,
    GameResult,
    GameState,
    MatchConfig,
    MatchGameRecord,
    MatchPhase,
    MatchState,
    Player,
    VictoryType,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# CUBE STATE
# ==============================================================================

MAX_CUBE_VALUE = 64


def initial_cube() -> CubeState:
    """Create initial cube state (centered, value 1).

    Returns:
        CubeState with value=1, owner=CENTERED
    """
    return CubeState(value=1, owner=CubeOwner.CENTERED)


def owner_to_player(owner: CubeOwner) -> Optional[Player]:
    """Convert CubeOwner to Player (None if centered).

    Args:
        owner: Cube owner

    Returns:
        Player who owns the cube, or None if centered
    """
    if owner == CubeOwner.WHITE:
        return Player.WHITE
    elif owner == CubeOwner.BLACK:
        return Player.BLACK
    return None


def player_to_owner(player: Player) -> CubeOwner:
    """Convert Player to CubeOwner.

    Args:
        player: Player

    Returns:
        Corresponding CubeOwner
    """
    if player == Player.WHITE:
        return CubeOwner.WHITE
    return CubeOwner.BLACK


# ==============================================================================
# CUBE RULES
# ==============================================================================


def can_double(cube: CubeState, player: Player) -> bool:
    """Check if a player can offer a double.

    A player can double if:
    - The cube is centered (either player can double), OR
    - They own the cube
    - AND the cube value hasn't reached the maximum (64)

    Args:
        cube: Current cube state
        player: Player wanting to double

    Returns:
        True if the player can legally double
    """
    if cube.value >= MAX_CUBE_VALUE:
        return False

    if cube.owner == CubeOwner.CENTERED:
        return True

    # Player can double only if they own the cube
    return cube.owner == player_to_owner(player)


def can_propose_double(state: GameState) -> bool:
    """Check if the current player may propose a double right now.

    Requires a cube in play, the ``rolling`` phase (before the dice are
    thrown), no proposal already pending, and ``can_double`` for the
    current player.
    """
    if state.doubling_cube is None or state.current_player is None:
        return False
    if state.phase != GamePhase.ROLLING or state.double_proposed_by is not None:
        return False
    return can_double(state.doubling_cube, state.current_player)


def accepted_cube(cube: CubeState, accepter: Player) -> CubeState:
    """Cube after a double is accepted: value doubles, the accepter owns it.

    Args:
        cube: Cube before the double
        accepter: Player who took the double

    Returns:
        New CubeState
    """
    return CubeState(value=cube.value * 2, owner=player_to_owner(accepter))


def victory_multiplier(victory_type: VictoryType) -> int:
    """Points multiplier for a victory type (single 1, gammon 2, backgammon 3)."""
    return victory_type.multiplier


def compute_game_points(victory_type: VictoryType, cube_value: int) -> int:
    """Calculate total points won in a game considering the cube.

    Args:
        victory_type: How the game was won
        cube_value: Cube value the game was played for

    Returns:
        Total points = multiplier * cube_value
    """
    return victory_multiplier(victory_type) * cube_value


# ==============================================================================
# MATCH PLAY
# ==============================================================================


def start_match(config: MatchConfig) -> MatchState:
    """Create a new match.

    Args:
        config: Target score and cube setting

    Returns:
        New MatchState at 0-0, game 1
    """
    return MatchState(config=config)


def is_match_over(match: MatchState) -> bool:
    """Check if the match is over.

    Args:
        match: Current match state

    Returns:
        True once either player has reached the target score
    """
    return match.phase == MatchPhase.COMPLETED


def match_winner(match: MatchState) -> Optional[Player]:
    """Get the match winner.

    Args:
        match: Current match state

    Returns:
        Winner player, or None if match is not over
    """
    return match.winner if is_match_over(match) else None


def record_game_result(match: MatchState, result: GameResult) -> MatchState:
    """Update match score after a game.

    Also handles Crawford rule transitions:
    - The Crawford game just played is marked used, and never recurs
    - If a player reaches match point - 1 before the Crawford game has been
      played, the next game is Crawford

    A completed match is returned unchanged.

    Args:
        match: Current match state
        result: Finished game's result

    Returns:
        Updated MatchState
    """
    if is_match_over(match):
        return match

    points = compute_game_points(result.victory_type, result.cube_value)
    record = MatchGameRecord(
        winner=result.winner,
        victory_type=result.victory_type,
        cube_value=result.cube_value,
        points=points,
    )
    score = match.score.add(result.winner, points)
    target = match.config.target_score

    is_crawford = match.is_crawford_game
    crawford_used = match.crawford_game_used
    if is_crawford:
        # Crawford game just happened, doubling is back from now on
        is_crawford = False
        crawford_used = True

    phase = match.phase
    winner = match.winner
    if score.get(result.winner) >= target:
        phase = MatchPhase.COMPLETED
        winner = result.winner
        logger.info(
            "Match won by %s %d-%d", winner, score.white, score.black,
        )
    elif not crawford_used and (score.white == target - 1 or score.black == target - 1):
        is_crawford = True
        logger.debug("Next game (%d) is the Crawford game", match.game_number + 1)

    return replace(
        match,
        score=score,
        phase=phase,
        winner=winner,
        game_number=match.game_number + 1,
        is_crawford_game=is_crawford,
        crawford_game_used=crawford_used,
        game_history=match.game_history + (record,),
    )


def is_crawford_game(match: MatchState) -> bool:
    """Check if the current game is a Crawford game.

    In the Crawford game, the doubling cube is disabled.
    """
    return match.is_crawford_game


def next_game_options(match: MatchState) -> GameOptions:
    """Options for the match's upcoming game (cube setting, Crawford flag)."""
    return GameOptions(
        enable_doubling_cube=match.config.enable_doubling_cube,
        is_crawford_game=match.is_crawford_game,
    )


def can_double_in_match(
    cube: Optional[CubeState],
    player: Player,
    match: Optional[MatchState],
) -> bool:
    """Check if doubling is allowed considering match context.

    Doubling is disabled in the Crawford game and when the match was
    configured without a cube. Outside a match (match=None), standard cube
    rules apply.

    Args:
        cube: Current cube state (None when no cube is in play)
        player: Player wanting to double
        match: Match state (None for a single game)

    Returns:
        True if player can double
    """
    if cube is None:
        return False

    if match is not None:
        if is_crawford_game(match) or not match.config.enable_doubling_cube:
            return False

    return can_double(cube, player)
