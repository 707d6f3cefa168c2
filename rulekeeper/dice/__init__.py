"""
Dice engine: notation parsing, rolling, advantage and fallback rolls.
"""

from rulekeeper.dice.dice_roller import (
    Advantage,
    DiceExpression,
    DiceGroup,
    DiceParseError,
    DiceRoller,
    GroupResult,
    RollResult,
    format_modifier,
    get_dice_roller,
    minimal_roll,
    parse,
    roll,
)

__all__ = [
    "Advantage",
    "DiceExpression",
    "DiceGroup",
    "DiceParseError",
    "DiceRoller",
    "GroupResult",
    "RollResult",
    "format_modifier",
    "get_dice_roller",
    "minimal_roll",
    "parse",
    "roll",
]
