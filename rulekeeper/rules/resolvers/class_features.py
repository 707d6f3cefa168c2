"""
Class feature resolvers.

Each feature validates state first (already active, no uses left, pool too
small) and rejects before rolling anything. A successful use always emits a
ClassResourceUsed audit effect plus the feature's own effects.
"""

import logging
from typing import Optional

from rulekeeper.classes.class_data import bardic_inspiration_die, rage_damage_bonus
from rulekeeper.data_models import Character, CharacterClass, GameWorld
from rulekeeper.rules import effects as fx
from rulekeeper.rules import intents as it
from rulekeeper.rules.helpers import limited_feature, plural
from rulekeeper.rules.types import Resolution

logger = logging.getLogger(__name__)

LAY_ON_HANDS_CURE_COST = 5
SMITE_BASE_DICE = 2
SMITE_MAX_DICE = 5

RAGE_END_REASONS = {
    "duration_expired": "Rage ended (1 minute duration expired).",
    "unconscious": "Rage ended (knocked unconscious).",
    "no_combat_action": "Rage ended (turn ended without attacking or taking damage).",
    "voluntary": "Rage ended voluntarily.",
}

KI_ABILITIES = {
    "flurry_of_blows": "Flurry of Blows: Make two unarmed strikes as a bonus action.",
    "patient_defense": "Patient Defense: Take the Dodge action as a bonus action.",
    "step_of_the_wind": "Step of the Wind: Disengage or Dash as a bonus action, jump distance doubled.",
    "stunning_strike": "Stunning Strike: Target must make a CON save or be Stunned until the end of your next turn.",
}

CHANNEL_DIVINITY_OPTIONS = {
    "turn_undead": (
        "Turn Undead: Each undead within 30 feet must make a WIS save. On failure, they must "
        "spend their turns moving away and cannot take reactions for 1 minute."
    ),
    "divine_spark": (
        "Divine Spark: Either deal 1d8 radiant damage to one creature within 30 feet "
        "(DEX save for half), or restore 1d8 HP to one creature within 30 feet."
    ),
    "sacred_weapon": (
        "Sacred Weapon: Your weapon becomes magical for 1 minute, +CHA to attack rolls, "
        "and sheds bright light."
    ),
}

METAMAGIC_OPTIONS = {
    "careful": "Careful Spell: Protect allies from your spell's area effect.",
    "distant": "Distant Spell: Double the spell's range (or 30 ft if touch).",
    "empowered": "Empowered Spell: Reroll up to CHA mod damage dice.",
    "extended": "Extended Spell: Double the spell's duration (max 24 hours).",
    "heightened": "Heightened Spell: Target has disadvantage on first save.",
    "quickened": "Quickened Spell: Cast as a bonus action instead of an action.",
    "subtle": "Subtle Spell: Cast without verbal or somatic components.",
    "twinned": "Twinned Spell: Target a second creature with a single-target spell.",
}


def _option_key(text: str) -> str:
    """'Turn Undead' / 'turn-undead' -> 'turn_undead'."""
    return "_".join(text.strip().lower().replace("-", " ").replace("_", " ").split())


def _out_of_uses(character: Character, feature_name: str) -> bool:
    feature = limited_feature(character, feature_name)
    return feature is not None and feature.uses.current <= 0


def _feature_used(character: Character, feature_name: str) -> Optional[fx.FeatureUsed]:
    """A FeatureUsed effect for features that track uses, else None."""
    feature = limited_feature(character, feature_name)
    if feature is None:
        return None
    return fx.FeatureUsed(feature_name=feature.name, uses_remaining=max(0, feature.uses.current - 1))


def _add_feature_used(resolution: Resolution, character: Character, feature_name: str) -> None:
    effect = _feature_used(character, feature_name)
    if effect is not None:
        resolution.add(effect)


class ClassFeatureResolverMixin:
    """Resolvers for barbarian, bard, cleric, druid, fighter, monk, paladin and sorcerer features."""

    # -------------------------------------------------------------------------
    # Barbarian
    # -------------------------------------------------------------------------

    def _resolve_use_rage(self, world: GameWorld, intent: it.UseRage) -> Resolution:
        character = world.player_character
        resources = character.class_resources
        if resources.rage_active:
            return Resolution.reject(f"{character.name} is already raging!")
        if _out_of_uses(character, "Rage"):
            return Resolution.reject(
                f"{character.name} has no rage uses remaining! (Recovers on long rest)"
            )

        bonus = rage_damage_bonus(character.class_level(CharacterClass.BARBARIAN))
        resolution = Resolution(
            narrative=(
                f"{character.name} enters a RAGE! Gains: advantage on STR checks/saves, "
                f"+{bonus} rage damage to melee attacks, resistance to bludgeoning/piercing/slashing "
                f"damage. Cannot cast spells or concentrate while raging."
            )
        )
        resolution.add(fx.RageStarted(character_id=character.id, damage_bonus=bonus))
        resolution.add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Rage",
            description=f"Entered rage (1 minute, +{bonus} damage)",
        ))
        _add_feature_used(resolution, character, "Rage")
        return resolution

    def _resolve_end_rage(self, world: GameWorld, intent: it.EndRage) -> Resolution:
        character = world.player_character
        if not character.class_resources.rage_active:
            return Resolution.reject(f"{character.name} is not currently raging.")

        reason_text = RAGE_END_REASONS.get(_option_key(intent.reason), "Rage ended.")
        return Resolution(
            narrative=f"{character.name}'s rage ends. {reason_text}"
        ).add(fx.RageEnded(
            character_id=character.id,
            reason=intent.reason,
        )).add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Rage",
            description=reason_text,
        ))

    # -------------------------------------------------------------------------
    # Monk
    # -------------------------------------------------------------------------

    def _resolve_use_ki(self, world: GameWorld, intent: it.UseKi) -> Resolution:
        character = world.player_character
        available = character.class_resources.ki_points
        if intent.points <= 0:
            return Resolution.reject(f"Invalid ki point amount {intent.points}: must spend at least 1.")
        if available < intent.points:
            return Resolution.reject(
                f"{character.name} doesn't have enough ki points! Has {available} but needs {intent.points}."
            )

        description = KI_ABILITIES.get(_option_key(intent.ability), intent.ability)
        points_text = "ki point" if intent.points == 1 else "ki points"
        return Resolution(
            narrative=f"{character.name} spends {intent.points} {points_text}. {description}"
        ).add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Ki Points",
            description=f"Spent {intent.points} ki for {intent.ability}",
        )).add(fx.KiPointsSpent(
            character_id=character.id,
            points=intent.points,
            remaining=available - intent.points,
        ))

    # -------------------------------------------------------------------------
    # Paladin
    # -------------------------------------------------------------------------

    def _resolve_use_lay_on_hands(self, world: GameWorld, intent: it.UseLayOnHands) -> Resolution:
        character = world.player_character
        pool = character.class_resources.lay_on_hands_pool
        if intent.hp_amount < 0:
            return Resolution.reject(f"Invalid Lay on Hands amount {intent.hp_amount}: cannot be negative.")

        cost = intent.hp_amount
        if intent.cure_disease:
            cost += LAY_ON_HANDS_CURE_COST
        if intent.neutralize_poison:
            cost += LAY_ON_HANDS_CURE_COST

        if cost == 0:
            return Resolution.reject("Invalid Lay on Hands use: nothing to heal or cure.")
        if pool < cost:
            return Resolution.reject(
                f"{character.name} doesn't have enough in their Lay on Hands pool! "
                f"Has {pool} HP but needs {cost}."
            )

        parts = []
        if intent.hp_amount > 0:
            parts.append(f"restores {intent.hp_amount} HP")
        if intent.cure_disease:
            parts.append("cures one disease")
        if intent.neutralize_poison:
            parts.append("neutralizes one poison")
        remaining = pool - cost

        return Resolution(
            narrative=(
                f"{character.name} uses Lay on Hands on {intent.target_name}: {', '.join(parts)}. "
                f"({remaining} HP remaining in pool)"
            )
        ).add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Lay on Hands",
            description=f"Used {cost} points on {intent.target_name}",
        )).add(fx.LayOnHandsSpent(
            character_id=character.id,
            amount=cost,
            remaining=remaining,
        ))

    def _resolve_use_divine_smite(self, world: GameWorld, intent: it.UseDivineSmite) -> Resolution:
        character = world.player_character
        slot_level = intent.spell_slot_level
        spellcasting = character.spellcasting
        if spellcasting is None or spellcasting.spell_slots.available(slot_level) <= 0:
            return Resolution.reject(f"{character.name} has no level {slot_level} spell slots remaining!")

        dice_count = SMITE_BASE_DICE + min(slot_level - 1, 3)
        if intent.target_is_undead_or_fiend:
            dice_count = min(dice_count + 1, SMITE_MAX_DICE + 1)
        else:
            dice_count = min(dice_count, SMITE_MAX_DICE)

        damage = self.dice.roll_with_fallback(f"{dice_count}d8", "2d8", reason="Divine Smite")
        extra = " (extra damage vs undead/fiend)" if intent.target_is_undead_or_fiend else ""
        remaining = spellcasting.spell_slots.available(slot_level) - 1

        resolution = Resolution(
            narrative=(
                f"{character.name} channels divine power into their strike! Divine Smite deals "
                f"{dice_count}d8 = {damage.total} radiant damage{extra}. (Level {slot_level} slot expended)"
            )
        )
        resolution.add(fx.DiceRolled(roll=damage, purpose="Divine Smite damage"))
        resolution.add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Divine Smite",
            description=f"Used level {slot_level} slot for smite",
        ))
        resolution.add(fx.SpellSlotUsed(level=slot_level, remaining=remaining))
        return resolution

    # -------------------------------------------------------------------------
    # Druid
    # -------------------------------------------------------------------------

    def _resolve_use_wild_shape(self, world: GameWorld, intent: it.UseWildShape) -> Resolution:
        character = world.player_character
        if character.class_resources.wild_shape_form is not None:
            return Resolution.reject(f"{character.name} is already in Wild Shape form!")
        if _out_of_uses(character, "Wild Shape"):
            return Resolution.reject(
                f"{character.name} has no Wild Shape uses remaining! (Recovers on short/long rest)"
            )

        hours = max(1, character.class_level(CharacterClass.DRUID) // 2)
        resolution = Resolution(
            narrative=(
                f"{character.name} transforms into a {intent.beast_form}! Beast form has "
                f"{intent.beast_hp} HP. Duration: {plural(hours, 'hour')}. Mental stats, proficiencies, "
                f"and features retained. Cannot cast spells but can maintain concentration."
            )
        )
        resolution.add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Wild Shape",
            description=f"Transformed into {intent.beast_form} ({intent.beast_hp} HP)",
        ))
        _add_feature_used(resolution, character, "Wild Shape")
        resolution.add(fx.WildShapeStarted(
            character_id=character.id,
            beast_form=intent.beast_form,
            beast_hp=intent.beast_hp,
        ))
        return resolution

    def _resolve_end_wild_shape(self, world: GameWorld, intent: it.EndWildShape) -> Resolution:
        character = world.player_character
        if character.class_resources.wild_shape_form is None:
            return Resolution.reject(f"{character.name} is not currently in Wild Shape form.")

        reason = _option_key(intent.reason)
        excess = max(0, intent.excess_damage)
        if reason == "duration_expired":
            reason_text = "Wild Shape ended (duration expired)."
        elif reason == "hp_zero":
            reason_text = "Wild Shape ended (beast HP dropped to 0)."
            if excess > 0:
                reason_text += f" {excess} excess damage carries over to normal form!"
        elif reason == "voluntary":
            reason_text = "Wild Shape ended voluntarily as a bonus action."
        elif reason == "incapacitated":
            reason_text = "Wild Shape ended (druid became incapacitated)."
        else:
            reason_text = "Wild Shape ended."

        resolution = Resolution(narrative=f"{character.name} reverts to their normal form. {reason_text}")
        resolution.add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Wild Shape",
            description=reason_text,
        ))
        resolution.add(fx.WildShapeEnded(character_id=character.id, reason=intent.reason))

        if excess > 0:
            hp = character.hit_points
            resolution.add(fx.HpChanged(
                target_id=character.id,
                amount=-excess,
                new_current=max(0, hp.current - excess),
                new_max=hp.maximum,
                dropped_to_zero=hp.current > 0 and hp.current - excess <= 0,
            ))
        return resolution

    # -------------------------------------------------------------------------
    # Cleric and bard
    # -------------------------------------------------------------------------

    def _resolve_use_channel_divinity(self, world: GameWorld, intent: it.UseChannelDivinity) -> Resolution:
        character = world.player_character
        if _out_of_uses(character, "Channel Divinity"):
            return Resolution.reject(
                f"{character.name} has no Channel Divinity uses remaining! (Recovers on short/long rest)"
            )

        description = CHANNEL_DIVINITY_OPTIONS.get(_option_key(intent.option), intent.option)
        narrative = f"{character.name} uses Channel Divinity: {description.rstrip('.')}."
        if intent.targets:
            narrative += f" Targets: {', '.join(intent.targets)}."

        resolution = Resolution(narrative=narrative)
        resolution.add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Channel Divinity",
            description=intent.option,
        ))
        _add_feature_used(resolution, character, "Channel Divinity")
        return resolution

    def _resolve_use_bardic_inspiration(self, world: GameWorld, intent: it.UseBardicInspiration) -> Resolution:
        character = world.player_character
        if _out_of_uses(character, "Bardic Inspiration"):
            return Resolution.reject(
                f"{character.name} has no Bardic Inspiration uses remaining! "
                f"(Recovers on long rest, or short rest at level 5+)"
            )

        die = intent.die_size or bardic_inspiration_die(character.class_level(CharacterClass.BARD))
        target = intent.target_name
        resolution = Resolution(
            narrative=(
                f"{character.name} inspires {target} with a rousing performance! {target} gains a "
                f"{die} Bardic Inspiration die they can add to one ability check, attack roll, or "
                f"saving throw within the next 10 minutes."
            )
        )
        resolution.add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Bardic Inspiration",
            description=f"Inspired {target} with a {die}",
        ))
        _add_feature_used(resolution, character, "Bardic Inspiration")
        return resolution

    # -------------------------------------------------------------------------
    # Fighter
    # -------------------------------------------------------------------------

    def _resolve_use_action_surge(self, world: GameWorld, intent: it.UseActionSurge) -> Resolution:
        character = world.player_character
        if character.class_resources.action_surge_used or _out_of_uses(character, "Action Surge"):
            return Resolution.reject(
                f"{character.name} has already used Action Surge! (Recovers on short/long rest)"
            )

        resolution = Resolution(
            narrative=(
                f"{character.name} surges with renewed vigor! Takes an additional action this turn: "
                f"{intent.action_taken}"
            )
        )
        resolution.add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Action Surge",
            description=f"Additional action: {intent.action_taken}",
        ))
        _add_feature_used(resolution, character, "Action Surge")
        resolution.add(fx.ActionSurgeUsed(character_id=character.id))
        return resolution

    def _resolve_use_second_wind(self, world: GameWorld, intent: it.UseSecondWind) -> Resolution:
        character = world.player_character
        if character.class_resources.second_wind_used or _out_of_uses(character, "Second Wind"):
            return Resolution.reject(
                f"{character.name} has already used Second Wind! (Recovers on short/long rest)"
            )

        fighter_level = character.class_level(CharacterClass.FIGHTER) or 1
        roll = self.dice.roll_with_fallback(f"1d10+{fighter_level}", "1d10+1", reason="Second Wind")
        hp = character.hit_points
        healing = roll.total
        new_current = min(hp.current + healing, hp.maximum)

        resolution = Resolution(
            narrative=(
                f"{character.name} catches their breath with Second Wind! Regains 1d10+{fighter_level} "
                f"= {healing} HP. (Now at {new_current}/{hp.maximum})"
            )
        )
        resolution.add(fx.DiceRolled(roll=roll, purpose="Second Wind healing"))
        resolution.add(fx.HpChanged(
            target_id=character.id,
            amount=healing,
            new_current=new_current,
            new_max=hp.maximum,
        ))
        resolution.add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Second Wind",
            description=f"Healed {healing} HP",
        ))
        _add_feature_used(resolution, character, "Second Wind")
        resolution.add(fx.SecondWindUsed(character_id=character.id, healing=healing))
        return resolution

    # -------------------------------------------------------------------------
    # Sorcerer
    # -------------------------------------------------------------------------

    def _resolve_use_sorcery_points(self, world: GameWorld, intent: it.UseSorceryPoints) -> Resolution:
        character = world.player_character
        points = character.class_resources.sorcery_points
        action = _option_key(intent.metamagic)
        spellcasting = character.spellcasting

        if action == "convert_to_slot":
            if intent.slot_level is None or not 1 <= intent.slot_level <= 9:
                return Resolution.reject("Converting sorcery points requires a slot level between 1 and 9.")
            level = intent.slot_level
            cost = level
            if points < cost:
                return Resolution.reject(
                    f"{character.name} doesn't have enough sorcery points! Has {points} but needs "
                    f"{cost} to create a level {level} slot."
                )
            new_remaining = spellcasting.spell_slots.available(level) + 1 if spellcasting else 1
            return Resolution(
                narrative=f"{character.name} converts {cost} sorcery points into a level {level} spell slot."
            ).add(fx.ClassResourceUsed(
                character_name=character.name,
                resource_name="Sorcery Points",
                description=f"Created level {level} spell slot",
            )).add(fx.SorceryPointsChanged(
                character_id=character.id,
                amount=-cost,
                new_total=points - cost,
            )).add(fx.SpellSlotRestored(level=level, new_remaining=new_remaining))

        if action == "convert_from_slot":
            if intent.slot_level is None:
                return Resolution.reject("Converting a spell slot requires a slot level.")
            level = intent.slot_level
            if spellcasting is None or spellcasting.spell_slots.available(level) <= 0:
                return Resolution.reject(f"{character.name} has no level {level} spell slots remaining!")
            return Resolution(
                narrative=f"{character.name} converts a level {level} spell slot into {level} sorcery points."
            ).add(fx.ClassResourceUsed(
                character_name=character.name,
                resource_name="Sorcery Points",
                description=f"Gained {level} points from slot",
            )).add(fx.SpellSlotUsed(
                level=level,
                remaining=spellcasting.spell_slots.available(level) - 1,
            )).add(fx.SorceryPointsChanged(
                character_id=character.id,
                amount=level,
                new_total=points + level,
            ))

        if intent.points <= 0:
            return Resolution.reject(f"Invalid sorcery point amount {intent.points}: must spend at least 1.")
        if points < intent.points:
            return Resolution.reject(
                f"{character.name} doesn't have enough sorcery points! Has {points} but needs {intent.points}."
            )

        description = METAMAGIC_OPTIONS.get(action.replace("_spell", ""), intent.metamagic)
        on_spell = f" on {intent.spell_name}" if intent.spell_name else ""
        points_text = "sorcery point" if intent.points == 1 else "sorcery points"
        return Resolution(
            narrative=f"{character.name} uses {description}{on_spell} ({intent.points} {points_text})."
        ).add(fx.ClassResourceUsed(
            character_name=character.name,
            resource_name="Sorcery Points",
            description=f"Used {intent.points} for {intent.metamagic}",
        )).add(fx.SorceryPointsChanged(
            character_id=character.id,
            amount=-intent.points,
            new_total=points - intent.points,
        ))
