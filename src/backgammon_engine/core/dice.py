"""Dice utilities for backgammon.

This module handles dice rolling, doubles expansion, the opening roll,
and related utilities. All randomness comes from an injected
``numpy.random.Generator`` so games are reproducible from a seed.
"""

from typing import Tuple
import numpy as np
from backgammon_engine.core.types import DiceRoll, Player


def is_doubles(dice: DiceRoll) -> bool:
    """Check if dice roll is doubles.

    Args:
        dice: Dice roll

    Returns:
        True if both dice show the same value
    """
    return dice.die1 == dice.die2


def dice_values(dice: DiceRoll) -> Tuple[int, ...]:
    """Get the dice values to use for moves.

    For doubles, you get 4 moves. For non-doubles, you get 2 moves.

    Args:
        dice: Dice roll

    Returns:
        Tuple of dice values (length 2 or 4)

    Examples:
        >>> dice_values(DiceRoll(3, 5))
        (3, 5)
        >>> dice_values(DiceRoll(4, 4))
        (4, 4, 4, 4)
    """
    if is_doubles(dice):
        return (dice.die1,) * 4
    else:
        return (dice.die1, dice.die2)


def roll_die(rng: np.random.Generator) -> int:
    """Roll a single die.

    Args:
        rng: NumPy random generator

    Returns:
        Value 1-6
    """
    return int(rng.integers(1, 7))


def roll_dice(rng: np.random.Generator) -> DiceRoll:
    """Roll two dice.

    Args:
        rng: NumPy random generator

    Returns:
        DiceRoll where each die is 1-6
    """
    die1 = roll_die(rng)
    die2 = roll_die(rng)
    return DiceRoll(die1, die2)


def roll_for_first_player(rng: np.random.Generator) -> Tuple[Player, int, int]:
    """Roll one die each until they differ; the higher die moves first.

    Ties are rerolled inside this call, so it always returns a decided
    opening.

    Args:
        rng: NumPy random generator

    Returns:
        (first_player, white_roll, black_roll)
    """
    while True:
        white_roll = roll_die(rng)
        black_roll = roll_die(rng)
        if white_roll != black_roll:
            break

    first_player = Player.WHITE if white_roll > black_roll else Player.BLACK
    return first_player, white_roll, black_roll


def opening_dice(first_player: Player, white_roll: int, black_roll: int) -> DiceRoll:
    """Arrange the opening dice so die1 is the first player's die.

    Args:
        first_player: Player who won the opening roll
        white_roll: White's opening die
        black_roll: Black's opening die

    Returns:
        DiceRoll the first player moves with
    """
    if first_player == Player.WHITE:
        return DiceRoll(white_roll, black_roll)
    return DiceRoll(black_roll, white_roll)


def dice_to_string(dice: DiceRoll) -> str:
    """Convert dice to readable string.

    Args:
        dice: Dice roll

    Returns:
        String representation

    Examples:
        >>> dice_to_string(DiceRoll(3, 5))
        '3-5'
        >>> dice_to_string(DiceRoll(4, 4))
        'Double 4s'
    """
    if is_doubles(dice):
        return f"Double {dice.die1}s"
    else:
        return f"{dice.die1}-{dice.die2}"
