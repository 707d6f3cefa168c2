"""
Tests for effect application: the only path that mutates a world.
"""

from dataclasses import dataclass

import pytest

from rulekeeper.classes.character_builder import create_character, create_sample_world
from rulekeeper.classes.class_data import UNLIMITED_RAGES
from rulekeeper.data_models import Ability, CharacterClass, Condition
from rulekeeper.observability import get_run_log
from rulekeeper.rules import effects as fx
from rulekeeper.rules.effect_applier import EffectApplier, apply_effect, apply_effects, effect_summary
from rulekeeper.rules.types import StateType, UnhandledVariantError
from tests.helpers import snapshot


NARRATION_ONLY = [
    fx.CheckSucceeded(check_type="STR", roll=15, dc=10),
    fx.CheckFailed(check_type="STR", roll=5, dc=10),
    fx.AttackHit(attacker_name="Roland", target_name="Goblin", attack_roll=18, target_ac=15),
    fx.AttackMissed(attacker_name="Roland", target_name="Goblin", attack_roll=3, target_ac=15),
    fx.Moved(character_id="x", destination="the door", distance_feet=30),
    fx.AcChanged(new_ac=18, source="Shield"),
    fx.FactRemembered(subject_name="Mira", subject_type="npc", fact="Likes cats"),
    fx.ItemUsed(item_name="Torch"),
    fx.ConsequenceRegistered(consequence_id="c1", trigger_description="t", consequence_description="c"),
    fx.ConsequenceTriggered(consequence_id="c1", consequence_description="c"),
    fx.ClassResourceUsed(character_name="Roland", resource_name="Second Wind"),
    fx.NpcUpdated(npc_name="Hilda", changes="disposition changed"),
    fx.LocationUpdated(location_name="Millbrook", changes="description updated"),
    fx.EventScheduled(description="Festival", trigger_description="in 2 days"),
    fx.EventCancelled(description="Festival"),
    fx.EventTriggered(description="Festival"),
]


class TestDispatch:
    """Handler lookup and narration-only effects."""

    def test_every_effect_type_has_a_handler(self):
        """Test that every effect type has a handler."""
        applier = EffectApplier()
        missing = [t.__name__ for t in fx.all_effect_types() if not applier.has_handler(t)]
        assert missing == []

    def test_unknown_effect_type_raises(self, fighter_world):
        """Test that an unregistered effect type raises."""
        @dataclass(frozen=True)
        class Unregistered:
            kind = "unregistered"

        with pytest.raises(UnhandledVariantError):
            apply_effect(fighter_world, Unregistered())

    def test_unhandled_variant_is_a_type_error(self):
        """Test that dispatch errors are TypeErrors."""
        assert issubclass(UnhandledVariantError, TypeError)

    @pytest.mark.parametrize("effect", NARRATION_ONLY, ids=lambda e: type(e).__name__)
    def test_narration_only_effects_change_nothing(self, fighter_world, effect):
        """Test that narration-only effects leave the world unchanged."""
        before = snapshot(fighter_world)
        apply_effect(fighter_world, effect)
        assert fighter_world == before

    def test_empty_effect_list(self, fighter_world):
        """Test applying no effects."""
        before = snapshot(fighter_world)
        assert apply_effects(fighter_world, []) is fighter_world
        assert fighter_world == before

    def test_applied_effects_are_logged(self, fighter_world):
        """Test that applied effects are recorded in the run log."""
        apply_effects(fighter_world, [fx.GoldChanged(amount=5, new_total=20)])
        applied = get_run_log().get_applied_effects()
        assert applied[0].effect_type == "GoldChanged"
        assert applied[0].summary == {"amount": 5, "new_total": 20, "reason": ""}


class TestHitPoints:
    """Hit point changes."""

    def test_damage_then_heal(self, fighter_world):
        """Test damage followed by healing."""
        character = fighter_world.player_character
        apply_effects(fighter_world, [
            fx.HpChanged(target_id=character.id, amount=-10, new_current=18, new_max=28),
            fx.HpChanged(target_id=character.id, amount=4, new_current=22, new_max=28),
        ])
        assert character.hit_points.current == 22

    def test_drop_to_zero_knocks_unconscious(self, fighter_world):
        """Test that dropping to zero knocks the character out."""
        character = fighter_world.player_character
        apply_effect(fighter_world, fx.HpChanged(
            target_id=character.id, amount=-28, new_current=0, new_max=28, dropped_to_zero=True
        ))
        assert character.has_condition(Condition.UNCONSCIOUS)

    def test_healing_from_zero_wakes_and_resets_death_saves(self, fighter_world):
        """Test that healing from zero wakes the character and clears death saves."""
        character = fighter_world.player_character
        apply_effect(fighter_world, fx.HpChanged(
            target_id=character.id, amount=-28, new_current=0, new_max=28, dropped_to_zero=True
        ))
        apply_effect(fighter_world, fx.DeathSaveFailure(target_id=character.id, failures=1, total_failures=1))
        apply_effect(fighter_world, fx.HpChanged(target_id=character.id, amount=5, new_current=5, new_max=28))

        assert not character.has_condition(Condition.UNCONSCIOUS)
        assert character.death_saves.failures == 0

    def test_combatant_hp(self, combat_world):
        """Test changing a combatant's HP."""
        apply_effect(combat_world, fx.HpChanged(target_id="goblin-1", amount=-5, new_current=2, new_max=7))
        assert combat_world.combat.find_by_id("goblin-1").current_hp == 2

    def test_missing_target_is_skipped(self, fighter_world):
        """Test that a missing target is skipped."""
        before = snapshot(fighter_world)
        apply_effect(fighter_world, fx.HpChanged(target_id="nobody", amount=-5, new_current=0, new_max=7))
        assert fighter_world == before

    def test_player_hp_is_mirrored_into_combat(self, combat_world):
        """Test that player HP is mirrored into the combat roster."""
        character = combat_world.player_character
        apply_effect(combat_world, fx.HpChanged(target_id=character.id, amount=-8, new_current=20, new_max=28))
        assert combat_world.combat.find_by_id(character.id).current_hp == 20


class TestConditionsAndDeath:
    """Conditions, death saves and death."""

    def test_conditions_on_player(self, fighter_world):
        """Test adding and removing a condition on the player."""
        character = fighter_world.player_character
        apply_effect(fighter_world, fx.ConditionApplied(target_id=character.id, condition=Condition.POISONED))
        assert character.has_condition(Condition.POISONED)
        apply_effect(fighter_world, fx.ConditionRemoved(target_id=character.id, condition=Condition.POISONED))
        assert not character.has_condition(Condition.POISONED)

    def test_conditions_on_others_are_not_tracked(self, combat_world):
        """Test that conditions on other combatants are not tracked."""
        before = snapshot(combat_world)
        apply_effect(combat_world, fx.ConditionApplied(target_id="goblin-1", condition=Condition.PRONE))
        assert combat_world == before

    def test_death_save_tallies(self, fighter_world):
        """Test tallying death save successes and failures."""
        character = fighter_world.player_character
        apply_effects(fighter_world, [
            fx.DeathSaveFailure(target_id=character.id, failures=2, total_failures=2),
            fx.DeathSaveSuccess(target_id=character.id, roll=12, total_successes=1),
        ])
        assert character.death_saves.failures == 2
        assert character.death_saves.successes == 1

    def test_stabilized_resets_tallies(self, fighter_world):
        """Test that stabilizing clears the tallies."""
        character = fighter_world.player_character
        character.death_saves.add_failure(2)
        apply_effect(fighter_world, fx.Stabilized(target_id=character.id))
        assert character.death_saves.failures == 0

    def test_character_died(self, fighter_world):
        """Test marking the character dead."""
        apply_effect(fighter_world, fx.CharacterDied(target_id="x", cause="three failed death saves"))
        assert fighter_world.player_character.is_dead


class TestCombatLifecycle:
    """Combat state changes."""

    def test_start_add_and_end(self, fighter_world):
        """Test starting combat, adding combatants and ending it."""
        character = fighter_world.player_character
        apply_effects(fighter_world, [
            fx.CombatStarted(),
            fx.CombatantAdded(id=character.id, name=character.name, initiative=14),
            fx.CombatantAdded(id="orc-1", name="Orc", initiative=18, current_hp=15, max_hp=15, armor_class=13),
        ])
        combat = fighter_world.combat
        assert [c.id for c in combat.combatants] == ["orc-1", character.id]
        player = combat.find_by_id(character.id)
        assert player.is_player
        assert player.current_hp == 28

        apply_effect(fighter_world, fx.CombatEnded())
        assert fighter_world.combat is None

    def test_combatant_outside_combat_is_skipped(self, fighter_world):
        """Test adding a combatant with no combat running."""
        apply_effect(fighter_world, fx.CombatantAdded(id="orc-1", name="Orc", initiative=18))
        assert fighter_world.combat is None

    def test_turn_advance_ticks_conditions(self, combat_world):
        """Test that advancing a turn ticks condition durations."""
        character = combat_world.player_character
        character.add_condition(Condition.BLINDED, source="Spell", duration_rounds=1)
        apply_effect(combat_world, fx.TurnAdvanced(round=1, current_combatant="Goblin"))
        assert not character.has_condition(Condition.BLINDED)


class TestLevelUp:
    """Level up side effects."""

    def test_level_up_below_current_is_ignored(self, fighter_world):
        """Test that a level at or below the current one is ignored."""
        before = snapshot(fighter_world)
        apply_effect(fighter_world, fx.LevelUp(new_level=1))
        assert fighter_world == before

    def test_level_up_barbarian_grows_rage(self, barbarian_world):
        """Test that a barbarian's rage grows with level."""
        apply_effect(barbarian_world, fx.LevelUp(new_level=6))
        character = barbarian_world.player_character
        assert character.level == 6
        assert character.find_feature("Rage").uses.maximum == 4
        assert character.class_resources.rage_damage_bonus == 2

    def test_level_up_paladin_grows_pool(self, paladin_world):
        """Test that a paladin's lay on hands pool grows with level."""
        apply_effect(paladin_world, fx.LevelUp(new_level=3))
        resources = paladin_world.player_character.class_resources
        assert resources.lay_on_hands_max == 15
        assert resources.lay_on_hands_pool == 15

    def test_new_slot_refunds_a_spent_one(self, wizard_world):
        """Test that a newly gained slot arrives unspent alongside a refunded one."""
        slots = wizard_world.player_character.spellcasting.spell_slots
        slots.use_slot(1)
        apply_effect(wizard_world, fx.LevelUp(new_level=2))
        assert slots.slots[0].total == 3
        assert slots.slots[0].used == 0
        assert slots.available(1) == 3

    def test_refund_is_limited_to_new_capacity(self, wizard_world):
        """Test that only as many spent slots are refunded as were gained."""
        slots = wizard_world.player_character.spellcasting.spell_slots
        slots.use_slot(1)
        slots.use_slot(1)
        apply_effect(wizard_world, fx.LevelUp(new_level=2))
        assert slots.slots[0].used == 1
        assert slots.available(1) == 2

    @pytest.mark.parametrize("level,bonus", [(8, 2), (9, 3), (15, 3), (16, 4)])
    def test_rage_bonus_brackets(self, barbarian_world, level, bonus):
        """Test the rage damage bonus at each level bracket."""
        apply_effect(barbarian_world, fx.LevelUp(new_level=level))
        assert barbarian_world.player_character.class_resources.rage_damage_bonus == bonus

    def test_barbarian_level_20_rages_are_unlimited(self, barbarian_world):
        """Test that a level 20 barbarian gets the unlimited rage count."""
        apply_effect(barbarian_world, fx.LevelUp(new_level=20))
        rage = barbarian_world.player_character.find_feature("Rage")
        assert rage.uses.maximum == UNLIMITED_RAGES
        assert rage.uses.current == UNLIMITED_RAGES

    def test_sorcerer_gains_points_from_level_2(self):
        """Test that a sorcerer first gains sorcery points at level 2."""
        world = create_sample_world(create_character("Vex", CharacterClass.SORCERER))
        resources = world.player_character.class_resources
        assert resources.max_sorcery_points == 0

        apply_effect(world, fx.LevelUp(new_level=2))
        assert resources.max_sorcery_points == 2
        assert resources.sorcery_points == 1

    def test_sorcerer_points_grow_by_levels_gained(self, sorcerer_world):
        """Test that current sorcery points grow by the levels gained."""
        resources = sorcerer_world.player_character.class_resources
        resources.sorcery_points = 1
        apply_effect(sorcerer_world, fx.LevelUp(new_level=5))
        assert resources.max_sorcery_points == 5
        assert resources.sorcery_points == 3

    @pytest.mark.parametrize("character_class,ability", [
        (CharacterClass.PALADIN, Ability.CHARISMA),
        (CharacterClass.RANGER, Ability.WISDOM),
    ])
    def test_half_caster_gains_spellcasting_at_level_2(self, character_class, ability):
        """Test that paladins and rangers start spellcasting at level 2."""
        world = create_sample_world(create_character("Ash", character_class))
        character = world.player_character
        assert character.spellcasting is None

        apply_effect(world, fx.LevelUp(new_level=2))
        assert character.spellcasting.ability == ability
        assert character.spellcasting.spell_slots.slots[0].total == 2
        assert character.spellcasting.spell_slots.available(1) == 2


class TestFeaturesAndSlots:
    """Feature and spell slot usage."""

    def test_feature_without_uses_is_skipped(self, rogue_world):
        """Test using a feature that has no use counter."""
        before = snapshot(rogue_world)
        apply_effect(rogue_world, fx.FeatureUsed(feature_name="Expertise", uses_remaining=0))
        assert rogue_world == before

    def test_spending_a_missing_slot_is_skipped(self, fighter_world):
        """Test spending a slot the character does not have."""
        before = snapshot(fighter_world)
        apply_effect(fighter_world, fx.SpellSlotUsed(level=1, remaining=0))
        assert fighter_world == before


class TestStateAsserted:
    """State assertion application."""

    def test_unknown_entity_is_skipped(self, fighter_world):
        """Test asserting state about an unknown entity."""
        before = snapshot(fighter_world)
        apply_effect(fighter_world, fx.StateAsserted(
            entity_name="Nobody", state_type=StateType.DISPOSITION, new_value="hostile"
        ))
        assert fighter_world == before


class TestSummary:
    """Run log summaries of effects."""

    def test_roll_results_collapse_to_totals(self, seeded_dice):
        """Test that rolls are summarized by their totals."""
        roll = seeded_dice.roll("1d6+1")
        summary = effect_summary(fx.DiceRolled(roll=roll, purpose="test"))
        assert summary == {"roll": roll.total, "purpose": "test"}

    def test_enums_and_tuples(self):
        """Test that enums and tuples become JSON-friendly values."""
        summary = effect_summary(fx.LocationCreated(name="Cave", location_type="cave", items=("Torch",)))
        assert summary["items"] == ["Torch"]
        summary = effect_summary(fx.StateAsserted(entity_name="x", state_type=StateType.STATUS, new_value="ok"))
        assert summary["state_type"] == "status"
