"""
Skill checks, raw ability checks, saving throws and free-form dice rolls.
"""

import logging

from rulekeeper.data_models import Ability, GameWorld, Skill
from rulekeeper.dice.dice_roller import Advantage, DiceParseError
from rulekeeper.rules import effects as fx
from rulekeeper.rules import intents as it
from rulekeeper.rules.helpers import is_unconscious
from rulekeeper.rules.types import Resolution

logger = logging.getLogger(__name__)

# Unconscious characters automatically fail STR and DEX checks and saves
AUTO_FAIL_WHEN_UNCONSCIOUS = frozenset({Ability.STRENGTH, Ability.DEXTERITY})


def _outcome(succeeded: bool, check_type: str, total: int, dc: int) -> fx.Effect:
    if succeeded:
        return fx.CheckSucceeded(check_type=check_type, roll=total, dc=dc)
    return fx.CheckFailed(check_type=check_type, roll=total, dc=dc)


class CheckResolverMixin:
    """Resolvers for d20 tests. Expects ``self.dice``."""

    def _resolve_skill_check(self, world: GameWorld, intent: it.SkillCheck) -> Resolution:
        character = world.player_character
        skill: Skill = intent.skill
        skill_name = skill.display_name

        if is_unconscious(character) and skill.ability in AUTO_FAIL_WHEN_UNCONSCIOUS:
            return Resolution(
                narrative=f"{character.name} is unconscious and automatically fails the {skill_name} check!"
            ).add(fx.CheckFailed(check_type=skill_name, roll=0, dc=intent.dc))

        advantage = intent.advantage
        note = ""
        armor = character.equipment.armor
        if skill == Skill.STEALTH and armor is not None and armor.stealth_disadvantage:
            advantage = advantage.combine(Advantage.DISADVANTAGE)
            note = " [armor disadvantage]"

        roll = self.dice.roll_d20(
            character.skill_modifier(skill),
            advantage,
            reason=f"{skill_name} check",
        )
        succeeded = roll.total >= intent.dc
        verb = "succeeds" if succeeded else "fails"

        resolution = Resolution(
            narrative=f"{character.name} {verb} ({skill_name} check: {roll.total} vs DC {intent.dc}){note}"
        )
        resolution.add(fx.DiceRolled(roll=roll, purpose=f"{skill_name} check - {intent.description}"))
        resolution.add(_outcome(succeeded, skill_name, roll.total, intent.dc))
        return resolution

    def _resolve_ability_check(self, world: GameWorld, intent: it.AbilityCheck) -> Resolution:
        character = world.player_character
        abbr = intent.ability.abbreviation

        if is_unconscious(character) and intent.ability in AUTO_FAIL_WHEN_UNCONSCIOUS:
            return Resolution(
                narrative=f"{character.name} is unconscious and automatically fails the {abbr} check!"
            ).add(fx.CheckFailed(check_type=f"{abbr} check", roll=0, dc=intent.dc))

        roll = self.dice.roll_d20(
            character.ability_modifier(intent.ability),
            intent.advantage,
            reason=f"{abbr} check",
        )
        succeeded = roll.total >= intent.dc
        verb = "succeeds" if succeeded else "fails"

        resolution = Resolution(
            narrative=f"{character.name} {verb} ({abbr} check: {roll.total} vs DC {intent.dc})"
        )
        resolution.add(fx.DiceRolled(roll=roll, purpose=f"{abbr} check - {intent.description}"))
        resolution.add(_outcome(succeeded, abbr, roll.total, intent.dc))
        return resolution

    def _resolve_saving_throw(self, world: GameWorld, intent: it.SavingThrow) -> Resolution:
        character = world.player_character
        abbr = intent.ability.abbreviation
        check_type = f"{abbr} save"

        if is_unconscious(character) and intent.ability in AUTO_FAIL_WHEN_UNCONSCIOUS:
            return Resolution(
                narrative=f"{character.name} is unconscious and automatically fails the {abbr} saving throw!"
            ).add(fx.CheckFailed(check_type=check_type, roll=0, dc=intent.dc))

        roll = self.dice.roll_d20(
            character.saving_throw_modifier(intent.ability),
            intent.advantage,
            reason=f"{abbr} save vs {intent.source}",
        )
        succeeded = roll.total >= intent.dc
        verb = "succeeds" if succeeded else "fails"

        resolution = Resolution(
            narrative=f"{character.name} {verb} on {abbr} saving throw ({roll.total} vs DC {intent.dc})"
        )
        resolution.add(fx.DiceRolled(roll=roll, purpose=f"{abbr} save vs {intent.source}"))
        resolution.add(_outcome(succeeded, check_type, roll.total, intent.dc))
        return resolution

    def _resolve_roll_dice(self, world: GameWorld, intent: it.RollDice) -> Resolution:
        try:
            roll = self.dice.roll(intent.notation, reason=intent.purpose)
        except DiceParseError as e:
            logger.debug(f"Rejected dice notation {intent.notation!r}: {e}")
            return Resolution.reject(f"Failed to roll {intent.notation}: {e}")

        return Resolution(
            narrative=f"Rolling {intent.notation} for {intent.purpose}: {roll.total}"
        ).add(fx.DiceRolled(roll=roll, purpose=intent.purpose))
