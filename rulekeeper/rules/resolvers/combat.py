"""
Combat resolvers: attacks, damage and healing, conditions, the combat
lifecycle, death saves and concentration.

All of these read the world and return a Resolution; none of them mutate it.
"""

import copy
import logging

from rulekeeper.content.item_catalog import get_item_catalog
from rulekeeper.classes.class_data import sneak_attack_dice
from rulekeeper.data_models import (
    IMMOBILIZING_CONDITIONS,
    Ability,
    CharacterClass,
    Condition,
    GameWorld,
)
from rulekeeper.dice.dice_roller import Advantage, format_modifier
from rulekeeper.rules import effects as fx
from rulekeeper.rules import intents as it
from rulekeeper.rules.helpers import (
    double_dice,
    hp_status,
    is_unconscious,
    target_combatant,
)
from rulekeeper.rules.types import Resolution

logger = logging.getLogger(__name__)

DEATH_SAVE_DC = 10
CONCENTRATION_MIN_DC = 10


class CombatResolverMixin:
    """Resolvers for combat intents. Expects ``self.dice`` (a DiceRoller)."""

    # -------------------------------------------------------------------------
    # Attacks
    # -------------------------------------------------------------------------

    def _resolve_attack(self, world: GameWorld, intent: it.Attack) -> Resolution:
        attacker = world.player_character
        if is_unconscious(attacker):
            return Resolution.reject(f"{attacker.name} is unconscious and cannot attack!")

        target = target_combatant(world, intent.target_id)
        if intent.target_id is not None and intent.target_id == attacker.id:
            target_ac = attacker.current_ac()
        elif world.combat is not None:
            target_ac = target.armor_class if target else 10
        else:
            target_ac = 10
        target_name = target.name if target else "target"

        weapon = get_item_catalog().get_weapon(intent.weapon_name) if intent.weapon_name else None
        if weapon is None:
            weapon = attacker.equipment.main_hand
        if weapon is not None:
            damage_dice = weapon.damage_dice
            is_finesse = weapon.is_finesse()
            is_ranged = weapon.ranged
            weapon_name = intent.weapon_name or weapon.name
        else:
            damage_dice = "1"
            is_finesse = False
            is_ranged = False
            weapon_name = intent.weapon_name or "Unarmed Strike"

        str_mod = attacker.ability_modifier(Ability.STRENGTH)
        dex_mod = attacker.ability_modifier(Ability.DEXTERITY)
        if is_ranged:
            ability_mod = dex_mod
        elif is_finesse:
            ability_mod = max(str_mod, dex_mod)
        else:
            ability_mod = str_mod
        is_strength_melee = not is_ranged and (not is_finesse or str_mod >= dex_mod)

        attack_roll = self.dice.roll_d20(
            ability_mod + attacker.proficiency_bonus,
            intent.advantage,
            reason=f"Attack with {weapon_name}",
        )
        resolution = Resolution(
            narrative=f"{attacker.name} attacks with {weapon_name} (roll: {attack_roll.total} vs AC {target_ac})"
        )
        resolution.add(fx.DiceRolled(roll=attack_roll, purpose=f"Attack with {weapon_name}"))

        critical = attack_roll.is_critical()
        hits = not attack_roll.is_fumble() and (attack_roll.total >= target_ac or critical)
        if not hits:
            return resolution.add(fx.AttackMissed(
                attacker_name=attacker.name,
                target_name=target_name,
                attack_roll=attack_roll.total,
                target_ac=target_ac,
            ))

        resolution.add(fx.AttackHit(
            attacker_name=attacker.name,
            target_name=target_name,
            attack_roll=attack_roll.total,
            target_ac=target_ac,
            is_critical=critical,
        ))

        rage_bonus = 0
        if is_strength_melee and attacker.class_resources.rage_active:
            rage_bonus = attacker.class_resources.rage_damage_bonus
        dice_term = double_dice(damage_dice) if critical else damage_dice
        damage_roll = self.dice.roll_with_fallback(
            f"{dice_term}{format_modifier(ability_mod + rage_bonus)}", "1d4", reason="Damage"
        )
        resolution.add(fx.DiceRolled(roll=damage_roll, purpose="Damage"))

        rogue_level = attacker.class_level(CharacterClass.ROGUE)
        if rogue_level > 0 and (is_finesse or is_ranged):
            if world.combat is not None:
                available = attacker.id not in world.combat.sneak_attack_used
                ally_engaged = any(
                    c.is_ally and not c.is_player and c.current_hp > 0 and c.id != intent.target_id
                    for c in world.combat.combatants
                )
            else:
                available = True
                ally_engaged = False

            if available and (intent.advantage == Advantage.ADVANTAGE or ally_engaged):
                sneak_dice = sneak_attack_dice(rogue_level)
                count = sneak_dice * 2 if critical else sneak_dice
                sneak_roll = self.dice.roll_with_fallback(f"{count}d6", "1d6", reason="Sneak Attack")
                resolution.add(fx.DiceRolled(roll=sneak_roll, purpose="Sneak Attack"))
                resolution.add(fx.SneakAttackUsed(character_id=attacker.id, damage_dice=sneak_dice))

        return resolution

    # -------------------------------------------------------------------------
    # Damage and healing
    # -------------------------------------------------------------------------

    def _resolve_damage(self, world: GameWorld, intent: it.Damage) -> Resolution:
        if intent.amount < 0:
            return Resolution.reject(f"Invalid damage amount {intent.amount}: damage cannot be negative.")

        combatant = target_combatant(world, intent.target_id)
        damage_name = intent.damage_type.value
        if combatant is not None:
            new_current = max(0, combatant.current_hp - intent.amount)
            narrative = f"{combatant.name} takes {intent.amount} {damage_name} damage from {intent.source}"
            if new_current == 0:
                narrative += " and falls!"
            return Resolution(narrative=narrative).add(fx.HpChanged(
                target_id=combatant.id,
                amount=-intent.amount,
                new_current=new_current,
                new_max=combatant.max_hp,
                dropped_to_zero=combatant.current_hp > 0 and new_current == 0,
            ))

        target = world.player_character
        hp = target.hit_points
        prefix = f"{target.name} takes {intent.amount} {damage_name} damage from {intent.source}"

        if hp.current <= 0:
            if intent.amount >= hp.maximum:
                logger.info(f"{target.name} killed by massive damage while unconscious")
                return Resolution(
                    narrative=(
                        f"{prefix} while unconscious - INSTANT DEATH! "
                        f"(Damage {intent.amount} >= max HP {hp.maximum})"
                    )
                ).add(fx.CharacterDied(
                    target_id=target.id,
                    cause=f"Massive damage while unconscious from {intent.source}",
                ))

            new_failures = target.death_saves.failures + 1
            failure = fx.DeathSaveFailure(
                target_id=target.id,
                failures=1,
                total_failures=new_failures,
                source=intent.source,
            )
            if new_failures >= 3:
                logger.info(f"{target.name} died from a third death save failure")
                return Resolution(
                    narrative=(
                        f"{prefix} while unconscious - death save failure! "
                        f"Total failures: 3 - {target.name} DIES!"
                    )
                ).add(failure).add(fx.CharacterDied(
                    target_id=target.id,
                    cause="Failed 3 death saving throws",
                ))
            return Resolution(
                narrative=f"{prefix} while unconscious - death save failure! (Failures: {new_failures}/3)"
            ).add(failure)

        overflow = intent.amount - (hp.current + hp.temporary)
        after = copy.copy(hp)
        result = after.take_damage(intent.amount)
        instant_death = result.dropped_to_zero and overflow >= hp.maximum

        if instant_death:
            status = (
                f" (INSTANT DEATH! Massive damage ({overflow} overflow) exceeds max HP of {hp.maximum})"
            )
        elif result.dropped_to_zero:
            status = (
                f" (HP: 0/{hp.maximum} - UNCONSCIOUS! Character falls and begins making death saving throws)"
            )
        else:
            status = hp_status(after.current, after.maximum)

        resolution = Resolution(narrative=f"{prefix}{status}")
        resolution.add(fx.HpChanged(
            target_id=target.id,
            amount=-intent.amount,
            new_current=after.current,
            new_max=after.maximum,
            dropped_to_zero=result.dropped_to_zero,
        ))
        if instant_death:
            logger.info(f"{target.name} killed outright by {intent.amount} damage")
            resolution.add(fx.CharacterDied(
                target_id=target.id,
                cause=f"Massive damage from {intent.source}",
            ))
        return resolution

    def _resolve_heal(self, world: GameWorld, intent: it.Heal) -> Resolution:
        if intent.amount < 0:
            return Resolution.reject(f"Invalid healing amount {intent.amount}: healing cannot be negative.")

        combatant = target_combatant(world, intent.target_id)
        if combatant is not None:
            new_current = min(combatant.max_hp, combatant.current_hp + intent.amount)
            healed = new_current - combatant.current_hp
            return Resolution(
                narrative=f"{combatant.name} heals {healed} hit points from {intent.source}"
            ).add(fx.HpChanged(
                target_id=combatant.id,
                amount=healed,
                new_current=new_current,
                new_max=combatant.max_hp,
            ))

        target = world.player_character
        hp = target.hit_points
        was_down = hp.current <= 0
        after = copy.copy(hp)
        healed = after.heal(intent.amount)

        if was_down and after.current > 0:
            status = f" (HP: {after.current}/{after.maximum} - regains consciousness!)"
        elif after.current == after.maximum:
            status = " - fully healed"
        else:
            status = f" (HP: {after.current}/{after.maximum})"

        return Resolution(
            narrative=f"{target.name} heals {healed} hit points from {intent.source}{status}"
        ).add(fx.HpChanged(
            target_id=target.id,
            amount=healed,
            new_current=after.current,
            new_max=after.maximum,
        ))

    # -------------------------------------------------------------------------
    # Conditions
    # -------------------------------------------------------------------------

    def _resolve_apply_condition(self, world: GameWorld, intent: it.ApplyCondition) -> Resolution:
        target = world.player_character
        duration = f" for {intent.duration_rounds} rounds" if intent.duration_rounds is not None else ""
        return Resolution(
            narrative=f"{target.name} is now {intent.condition.display_name} ({intent.source}){duration}"
        ).add(fx.ConditionApplied(
            target_id=intent.target_id or target.id,
            condition=intent.condition,
            source=intent.source,
            duration_rounds=intent.duration_rounds,
        ))

    def _resolve_remove_condition(self, world: GameWorld, intent: it.RemoveCondition) -> Resolution:
        target = world.player_character
        return Resolution(
            narrative=f"{target.name} is no longer {intent.condition.display_name}"
        ).add(fx.ConditionRemoved(
            target_id=intent.target_id or target.id,
            condition=intent.condition,
        ))

    # -------------------------------------------------------------------------
    # Combat lifecycle
    # -------------------------------------------------------------------------

    def _resolve_start_combat(self, world: GameWorld, intent: it.StartCombat) -> Resolution:
        character = world.player_character
        resolution = Resolution(narrative="Combat begins! Roll for initiative.")
        resolution.add(fx.CombatStarted())

        for combatant in intent.combatants:
            is_player = combatant.is_player or combatant.id == character.id
            modifier = character.initiative_modifier() if is_player else combatant.initiative_modifier
            roll = self.dice.roll_d20(modifier, reason=f"Initiative for {combatant.name}")
            natural = roll.kept[0] if roll.kept else roll.total - modifier
            resolution.add(fx.InitiativeRolled(
                character_id=combatant.id,
                name=combatant.name,
                roll=natural,
                total=roll.total,
            ))
            resolution.add(fx.CombatantAdded(
                id=combatant.id,
                name=combatant.name,
                initiative=roll.total,
                is_ally=combatant.is_ally,
                current_hp=combatant.current_hp,
                max_hp=combatant.max_hp,
                armor_class=combatant.armor_class,
            ))

        logger.info(f"Combat started with {len(intent.combatants)} combatants")
        return resolution

    def _resolve_end_combat(self, world: GameWorld, intent: it.EndCombat) -> Resolution:
        logger.info("Combat ended")
        return Resolution(narrative="Combat ends.").add(fx.CombatEnded())

    def _resolve_next_turn(self, world: GameWorld, intent: it.NextTurn) -> Resolution:
        if world.combat is None:
            return Resolution.reject("No combat in progress")

        preview = world.combat.clone()
        preview.next_turn()
        current = preview.current_combatant()
        current_name = current.name if current else "Unknown"
        return Resolution(
            narrative=f"Next turn: {current_name} (Round {preview.round})"
        ).add(fx.TurnAdvanced(round=preview.round, current_combatant=current_name))

    def _resolve_roll_initiative(self, world: GameWorld, intent: it.RollInitiative) -> Resolution:
        character = world.player_character
        character_id = intent.character_id or character.id
        modifier = character.initiative_modifier() if intent.is_player else intent.modifier
        roll = self.dice.roll_d20(modifier, reason="Initiative")
        natural = roll.kept[0] if roll.kept else roll.total - modifier
        return Resolution(
            narrative=f"{intent.name} rolls initiative: {natural} {format_modifier(modifier)[0]} "
                      f"{abs(modifier)} = {roll.total}"
        ).add(fx.DiceRolled(roll=roll, purpose="Initiative")).add(fx.InitiativeRolled(
            character_id=character_id,
            name=intent.name,
            roll=natural,
            total=roll.total,
        ))

    # -------------------------------------------------------------------------
    # Death and concentration
    # -------------------------------------------------------------------------

    def _resolve_death_save(self, world: GameWorld, intent: it.DeathSave) -> Resolution:
        character = world.player_character
        if character.hit_points.current > 0:
            return Resolution.reject(
                f"{character.name} is not dying and doesn't need to make a death save."
            )

        roll = self.dice.roll_d20(reason="Death save")
        resolution = Resolution()
        resolution.add(fx.DiceRolled(roll=roll, purpose="Death save"))
        saves = character.death_saves
        name = character.name

        if roll.is_critical():
            resolution.narrative = (
                f"{name} rolls a NATURAL 20 on their death save! They regain 1 HP and become conscious!"
            )
            resolution.add(fx.DeathSavesReset(target_id=character.id))
            resolution.add(fx.HpChanged(
                target_id=character.id,
                amount=1,
                new_current=1,
                new_max=character.hit_points.maximum,
            ))
            resolution.add(fx.ConditionRemoved(target_id=character.id, condition=Condition.UNCONSCIOUS))
            return resolution

        if roll.is_fumble():
            total = min(3, saves.failures + 2)
            resolution.add(fx.DeathSaveFailure(
                target_id=character.id,
                failures=2,
                total_failures=total,
                source="Natural 1 on death save",
            ))
            if total >= 3:
                logger.info(f"{name} died on a natural 1 death save")
                resolution.narrative = (
                    f"{name} rolls a NATURAL 1 on their death save! Two failures! {name} has died!"
                )
                resolution.add(fx.CharacterDied(target_id=character.id, cause="Failed death saves"))
            else:
                resolution.narrative = (
                    f"{name} rolls a NATURAL 1 on their death save! That counts as TWO failures! ({total}/3)"
                )
            return resolution

        if roll.total >= DEATH_SAVE_DC:
            successes = min(3, saves.successes + 1)
            resolution.add(fx.DeathSaveSuccess(
                target_id=character.id,
                roll=roll.total,
                total_successes=successes,
            ))
            resolution.narrative = (
                f"{name} rolls {roll.total} on their death save - SUCCESS! ({successes}/3 successes)"
            )
            if successes >= 3:
                resolution.narrative += f" With 3 successes, {name} is now STABLE!"
                resolution.add(fx.Stabilized(target_id=character.id))
            return resolution

        failures = min(3, saves.failures + 1)
        resolution.add(fx.DeathSaveFailure(
            target_id=character.id,
            failures=1,
            total_failures=failures,
            source="Death save",
        ))
        resolution.narrative = (
            f"{name} rolls {roll.total} on their death save - FAILURE! ({failures}/3 failures)"
        )
        if failures >= 3:
            logger.info(f"{name} died after failing three death saves")
            resolution.narrative += f" With 3 failures, {name} has DIED!"
            resolution.add(fx.CharacterDied(target_id=character.id, cause="Failed death saves"))
        return resolution

    def _resolve_concentration_check(self, world: GameWorld, intent: it.ConcentrationCheck) -> Resolution:
        character = world.player_character
        dc = max(CONCENTRATION_MIN_DC, intent.damage_taken // 2)
        modifier = character.saving_throw_modifier(Ability.CONSTITUTION)
        roll = self.dice.roll_d20(modifier, reason=f"Concentration on {intent.spell_name}")

        resolution = Resolution()
        resolution.add(fx.DiceRolled(roll=roll, purpose="Concentration save"))
        prefix = (
            f"{character.name} makes a DC {dc} Constitution save to maintain concentration "
            f"on {intent.spell_name}. Rolls {roll.total}"
        )
        if roll.total >= dc:
            resolution.narrative = f"{prefix} - SUCCESS! Concentration maintained."
            resolution.add(fx.ConcentrationMaintained(
                character_id=character.id,
                spell_name=intent.spell_name,
                roll=roll.total,
                dc=dc,
            ))
        else:
            resolution.narrative = f"{prefix} - FAILED! Concentration is broken!"
            resolution.add(fx.ConcentrationBroken(
                character_id=character.id,
                spell_name=intent.spell_name,
                damage_taken=intent.damage_taken,
                roll=roll.total,
                dc=dc,
            ))
        return resolution

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def _resolve_move(self, world: GameWorld, intent: it.Move) -> Resolution:
        character = world.player_character
        if character.is_immobilized():
            blocking = next(
                c.condition.display_name for c in character.conditions if c.condition in IMMOBILIZING_CONDITIONS
            )
            return Resolution.reject(f"{character.name} cannot move while {blocking.lower()}.")
        if world.in_combat() and intent.distance_feet > character.speed:
            return Resolution.reject(
                f"{character.name} can only move {character.speed} feet this turn "
                f"(tried to move {intent.distance_feet} feet)."
            )
        distance = f" ({intent.distance_feet} feet)" if intent.distance_feet else ""
        return Resolution(
            narrative=f"{character.name} moves to {intent.destination}{distance}."
        ).add(fx.Moved(
            character_id=intent.character_id or character.id,
            destination=intent.destination,
            distance_feet=intent.distance_feet,
        ))
