"""
Spellcasting: slot validation, spell attacks, save spells, healing and
slot restoration.
"""

import logging
from typing import Optional

from rulekeeper.classes.class_data import spellcasting_ability
from rulekeeper.content.spell_registry import SpellAttackType, get_spell_registry
from rulekeeper.data_models import Ability, Character, GameWorld
from rulekeeper.dice.dice_roller import format_modifier
from rulekeeper.rules import effects as fx
from rulekeeper.rules import intents as it
from rulekeeper.rules.helpers import double_dice
from rulekeeper.rules.types import Resolution

logger = logging.getLogger(__name__)

MAX_SLOT_LEVEL = 9
MIN_SPELL_SAVE_DC = 8


def _casting_ability(caster: Character) -> Optional[Ability]:
    if caster.spellcasting is not None:
        return caster.spellcasting.ability
    if caster.primary_class is not None:
        return spellcasting_ability(caster.primary_class)
    return None


def _target_names(world: GameWorld, intent: it.CastSpell) -> list[str]:
    """Named targets, falling back to combatant names for target ids."""
    if intent.target_names:
        return list(intent.target_names)
    names = []
    if world.combat is not None:
        for target_id in intent.targets:
            combatant = world.combat.find_by_id(target_id)
            if combatant:
                names.append(combatant.name)
    return names


class SpellResolverMixin:
    """Resolvers for casting spells and restoring slots. Expects ``self.dice``."""

    def _resolve_cast_spell(self, world: GameWorld, intent: it.CastSpell) -> Resolution:
        caster = world.player_character
        spell = get_spell_registry().get_by_name(intent.spell_name)
        if spell is None:
            return Resolution.reject(
                f"Unknown spell: '{intent.spell_name}'. The spell is not in the database."
            )

        if spell.is_cantrip():
            slot_level = 0
        elif intent.spell_level == 0:
            slot_level = spell.level
        elif intent.spell_level < spell.level:
            return Resolution.reject(
                f"Cannot cast {spell.name} using a level {intent.spell_level} slot - "
                f"requires at least level {spell.level}."
            )
        else:
            slot_level = intent.spell_level

        available = 0
        if not spell.is_cantrip():
            if caster.spellcasting is None:
                return Resolution.reject(f"{caster.name} doesn't have spellcasting ability!")
            if slot_level > MAX_SLOT_LEVEL:
                return Resolution.reject("Invalid spell slot level.")
            available = caster.spellcasting.spell_slots.available(slot_level)
            if available <= 0:
                return Resolution.reject(f"{caster.name} has no level {slot_level} spell slots remaining!")

        ability = _casting_ability(caster)
        spell_mod = caster.ability_modifier(ability) if ability else 0
        attack_bonus = spell_mod + caster.proficiency_bonus
        save_dc = max(MIN_SPELL_SAVE_DC, MIN_SPELL_SAVE_DC + spell_mod + caster.proficiency_bonus)

        if spell.is_cantrip():
            slot_text = ""
        elif slot_level > spell.level:
            slot_text = f" (upcast at level {slot_level})"
        else:
            slot_text = f" (level {slot_level} slot)"

        parts = [f"{caster.name} casts {spell.name}{slot_text}!"]
        if spell.concentration:
            parts.append("(Concentration)")

        resolution = Resolution()
        damage_dice = spell.effective_damage_dice(caster.level, slot_level)
        damage_name = spell.damage_type.value if spell.damage_type else "magical"
        targets = _target_names(world, intent)

        if spell.attack_type is not None:
            attack_kind = "melee" if spell.attack_type == SpellAttackType.MELEE else "ranged"
            attack_roll = self.dice.roll_with_fallback(
                f"1d20{format_modifier(attack_bonus)}", "1d20", reason=f"{spell.name} attack"
            )
            resolution.add(fx.DiceRolled(roll=attack_roll, purpose=f"{attack_kind} spell attack"))

            target_name = targets[0] if targets else "target"
            target_ac = 10
            if world.combat is not None:
                combatant = world.combat.find_combatant(target_name)
                if combatant:
                    target_ac = combatant.armor_class

            parts.append(
                f"Makes a {attack_kind} spell attack against {target_name}: "
                f"{attack_roll.total} vs AC {target_ac}."
            )
            critical = attack_roll.is_critical()
            if not attack_roll.is_fumble() and (attack_roll.total >= target_ac or critical):
                parts.append("Hit!")
                resolution.add(fx.AttackHit(
                    attacker_name=caster.name,
                    target_name=target_name,
                    attack_roll=attack_roll.total,
                    target_ac=target_ac,
                    is_critical=critical,
                ))
                if damage_dice:
                    dice = double_dice(damage_dice) if critical else damage_dice
                    damage = self.dice.roll_with_fallback(dice, "1d4", reason=f"{spell.name} damage")
                    parts.append(f"Deals {damage.total} {damage_name} damage.")
                    resolution.add(fx.DiceRolled(roll=damage, purpose=f"{spell.name} damage"))
            else:
                parts.append("Miss!")
                resolution.add(fx.AttackMissed(
                    attacker_name=caster.name,
                    target_name=target_name,
                    attack_roll=attack_roll.total,
                    target_ac=target_ac,
                ))

        elif spell.save_type is not None:
            on_success = spell.save_effect or "negates effect"
            parts.append(
                f"Targets must make a DC {save_dc} {spell.save_type.full_name} saving throw "
                f"({on_success} on success)."
            )
            if damage_dice:
                damage = self.dice.roll_with_fallback(damage_dice, "1d4", reason=f"{spell.name} damage")
                parts.append(f"On a failed save: {damage.total} {damage_name} damage.")
                resolution.add(fx.DiceRolled(roll=damage, purpose=f"{spell.name} damage"))

        elif spell.healing_dice:
            healing_dice = spell.effective_healing_dice(slot_level) or spell.healing_dice
            healing = self.dice.roll_with_fallback(
                f"{healing_dice}{format_modifier(spell_mod)}", "1d4", reason=f"{spell.name} healing"
            )
            target_name = targets[0] if targets else caster.name
            parts.append(f"{caster.name} heals {target_name} for {healing.total} HP.")
            resolution.add(fx.DiceRolled(roll=healing, purpose=f"{spell.name} healing"))

        elif spell.description:
            parts.append(spell.description)

        if not spell.is_cantrip():
            resolution.add(fx.SpellSlotUsed(level=slot_level, remaining=available - 1))

        resolution.narrative = " ".join(parts)
        logger.debug(f"{caster.name} cast {spell.name} at slot level {slot_level}")
        return resolution

    def _resolve_restore_spell_slot(self, world: GameWorld, intent: it.RestoreSpellSlot) -> Resolution:
        if not 1 <= intent.slot_level <= MAX_SLOT_LEVEL:
            return Resolution.reject(
                f"Invalid spell slot level: {intent.slot_level}. Must be between 1 and 9."
            )
        spellcasting = world.player_character.spellcasting
        new_remaining = spellcasting.spell_slots.available(intent.slot_level) + 1 if spellcasting else 0
        return Resolution(
            narrative=f"Level {intent.slot_level} spell slot restored by {intent.source}"
        ).add(fx.SpellSlotRestored(level=intent.slot_level, new_remaining=new_remaining))
