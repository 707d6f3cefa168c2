"""
Tests for spellcasting: slot validation, spell attacks, save spells,
healing, upcasting and slot restoration.
"""

import pytest

from rulekeeper.classes.character_builder import create_sample_wizard, create_sample_world
from rulekeeper.content.spell_registry import DamageScaling, get_spell_registry
from rulekeeper.data_models import Ability, CharacterClass, Combatant
from rulekeeper.rules import effects as fx
from rulekeeper.rules.intents import CastSpell, RestoreSpellSlot
from tests.helpers import effect_names, effects_of, find_effect, fixed_engine, resolve_and_apply, snapshot


class TestSpellRegistry:
    """Bundled spell data."""

    def test_lookup_is_case_insensitive(self):
        """Test that spell names are matched case-insensitively."""
        registry = get_spell_registry()
        assert registry.get_by_name("fireball") is registry.get_by_name("Fireball")
        assert registry.get_by_name("  FIRE   bolt ").name == "Fire Bolt"

    def test_unknown_spell(self):
        """Test looking up a spell that does not exist."""
        assert get_spell_registry().get_by_name("Wish of Plenty") is None

    def test_spell_fields(self):
        """Test the fields loaded for a spell."""
        fireball = get_spell_registry().get_by_name("Fireball")
        assert fireball.level == 3
        assert fireball.save_type == Ability.DEXTERITY
        assert fireball.damage_scaling == DamageScaling.PER_SLOT

    def test_queries(self):
        """Test listing spells by level and class."""
        registry = get_spell_registry()
        assert all(s.level == 0 for s in registry.get_by_level(0))
        assert "Sacred Flame" in [s.name for s in registry.get_for_class(CharacterClass.CLERIC)]
        assert len(registry.get_all()) == registry.spell_count

    @pytest.mark.parametrize("caster_level,expected", [(1, "1d10"), (5, "2d10"), (11, "3d10"), (17, "4d10")])
    def test_cantrip_scaling(self, caster_level, expected):
        """Test cantrip damage scaling with caster level."""
        fire_bolt = get_spell_registry().get_by_name("Fire Bolt")
        assert fire_bolt.effective_damage_dice(caster_level, 0) == expected

    def test_upcast_scaling(self):
        """Test extra dice for casting at a higher level."""
        fireball = get_spell_registry().get_by_name("Fireball")
        assert fireball.effective_damage_dice(5, 3) == "8d6"
        assert fireball.effective_damage_dice(7, 5) == "8d6 + 2d6"

    def test_upcast_healing(self):
        """Test extra healing dice when upcast."""
        cure = get_spell_registry().get_by_name("Cure Wounds")
        assert cure.effective_healing_dice(1) == "1d8"
        assert cure.effective_healing_dice(3) == "1d8 + 2d8"

    def test_no_damage_dice(self):
        """Test scaling a spell that deals no damage."""
        assert get_spell_registry().get_by_name("Bless").effective_damage_dice(5, 1) is None


class TestSpellValidation:
    """Rejections before any dice are rolled."""

    def test_unknown_spell_is_rejected(self, engine, wizard_world):
        """Test casting an unknown spell."""
        resolution = engine.resolve(wizard_world, CastSpell(spell_name="Summon Pie"))
        assert resolution.is_rejected()
        assert resolution.narrative.startswith("Unknown spell: 'Summon Pie'")

    def test_non_caster_is_rejected(self, engine, fighter_world):
        """Test that a character without spellcasting is rejected."""
        resolution = engine.resolve(fighter_world, CastSpell(spell_name="Cure Wounds"))
        assert resolution.narrative == "Roland doesn't have spellcasting ability!"

    def test_slot_below_spell_level_is_rejected(self, engine, wizard_world):
        """Test casting with a slot below the spell's level."""
        resolution = engine.resolve(wizard_world, CastSpell(spell_name="Fireball", spell_level=1))
        assert resolution.narrative == (
            "Cannot cast Fireball using a level 1 slot - requires at least level 3."
        )

    def test_no_slots_remaining(self, engine, cleric_world):
        """Test casting with every slot of that level spent."""
        slots = cleric_world.player_character.spellcasting.spell_slots
        slots.use_slot(1)
        slots.use_slot(1)
        resolution = engine.resolve(cleric_world, CastSpell(spell_name="Cure Wounds"))
        assert resolution.is_rejected()
        assert resolution.narrative == "Brother Aldric has no level 1 spell slots remaining!"

    def test_missing_higher_slot(self, engine, cleric_world):
        """Test casting at a level the caster has no slots for."""
        resolution = engine.resolve(cleric_world, CastSpell(spell_name="Cure Wounds", spell_level=2))
        assert resolution.narrative == "Brother Aldric has no level 2 spell slots remaining!"

    def test_cantrips_need_no_slot(self, fighter_world):
        """Test that cantrips spend no slot."""
        resolution = fixed_engine(15, 5).resolve(fighter_world, CastSpell(spell_name="Fire Bolt"))
        assert not resolution.is_rejected()
        assert find_effect(resolution, fx.SpellSlotUsed) is None


class TestSpellAttacks:
    """Spells that make attack rolls."""

    def test_fire_bolt_hit(self, wizard_world):
        """Test a Fire Bolt hit."""
        resolution = fixed_engine(15, 7).resolve(
            wizard_world, CastSpell(spell_name="Fire Bolt", target_names=("Goblin",))
        )
        assert effect_names(resolution) == ["DiceRolled", "AttackHit", "DiceRolled"]
        assert resolution.effects[0].roll.total == 20
        assert "Makes a ranged spell attack against Goblin: 20 vs AC 10." in resolution.narrative
        assert "Deals 7 fire damage." in resolution.narrative

    def test_fire_bolt_miss(self, wizard_world):
        """Test a Fire Bolt miss."""
        resolution = fixed_engine(2).resolve(wizard_world, CastSpell(spell_name="Fire Bolt"))
        assert effect_names(resolution) == ["DiceRolled", "AttackMissed"]
        assert "Miss!" in resolution.narrative

    def test_critical_spell_attack_doubles_dice(self, wizard_world):
        """Test that a critical spell attack doubles the dice."""
        resolution = fixed_engine(20, 3, 4).resolve(wizard_world, CastSpell(spell_name="Fire Bolt"))
        damage = effects_of(resolution, fx.DiceRolled)[1]
        assert damage.roll.notation == "2d10"
        assert damage.roll.total == 7

    def test_cantrip_damage_scales_with_caster_level(self):
        """Test that cantrip damage scales with the caster's level."""
        world = create_sample_world(create_sample_wizard("Elminster", level=5))
        resolution = fixed_engine(15, 2, 2).resolve(world, CastSpell(spell_name="Fire Bolt"))
        assert effects_of(resolution, fx.DiceRolled)[1].roll.notation == "2d10"

    def test_attack_uses_combatant_armor_class(self, wizard_world):
        """Test that spell attacks use the combatant's AC."""
        combat = wizard_world.start_combat()
        combat.add_combatant(Combatant(id="ogre-1", name="Ogre", initiative=8,
                                       current_hp=59, max_hp=59, armor_class=11))
        resolution = fixed_engine(6).resolve(
            wizard_world, CastSpell(spell_name="Ray of Frost", targets=("ogre-1",))
        )
        hit = find_effect(resolution, fx.AttackHit)
        assert hit.target_name == "Ogre"
        assert hit.target_ac == 11

    def test_leveled_attack_spell_spends_slot(self, cleric_world):
        """Test that a leveled attack spell spends a slot."""
        resolution = resolve_and_apply(
            fixed_engine(15, 1, 2, 3, 4), cleric_world, CastSpell(spell_name="Guiding Bolt")
        )
        assert find_effect(resolution, fx.SpellSlotUsed).remaining == 1
        assert "Deals 10 radiant damage." in resolution.narrative
        assert cleric_world.player_character.spellcasting.spell_slots.available(1) == 1


class TestSaveSpells:
    """Spells that call for saving throws."""

    def test_burning_hands(self, wizard_world):
        """Test a Burning Hands save spell."""
        resolution = fixed_engine(1, 2, 3).resolve(wizard_world, CastSpell(spell_name="Burning Hands"))
        assert "DC 13 Dexterity saving throw (half damage on success)" in resolution.narrative
        assert "On a failed save: 6 fire damage." in resolution.narrative
        assert effect_names(resolution) == ["DiceRolled", "SpellSlotUsed"]

    def test_upcast_adds_dice(self):
        """Test that upcasting a save spell adds dice."""
        world = create_sample_world(create_sample_wizard("Elminster", level=3))
        resolution = fixed_engine(1, 1, 1, 1).resolve(
            world, CastSpell(spell_name="Burning Hands", spell_level=2)
        )
        damage = find_effect(resolution, fx.DiceRolled)
        assert damage.roll.notation == "3d6+1d6"
        assert damage.roll.total == 4
        assert "(upcast at level 2)" in resolution.narrative
        assert find_effect(resolution, fx.SpellSlotUsed).level == 2

    def test_save_cantrip(self, cleric_world):
        """Test a saving throw cantrip."""
        resolution = fixed_engine(5).resolve(cleric_world, CastSpell(spell_name="Sacred Flame"))
        assert "DC 13 Dexterity saving throw (no damage on success)" in resolution.narrative
        assert find_effect(resolution, fx.SpellSlotUsed) is None


class TestHealingSpells:
    """Healing spells."""

    def test_cure_wounds(self, cleric_world):
        """Test Cure Wounds healing."""
        resolution = resolve_and_apply(
            fixed_engine(5), cleric_world, CastSpell(spell_name="Cure Wounds", target_names=("Roland",))
        )
        healing = find_effect(resolution, fx.DiceRolled)
        assert healing.roll.notation == "1d8+3"
        assert "Brother Aldric heals Roland for 8 HP." in resolution.narrative
        assert cleric_world.player_character.spellcasting.spell_slots.available(1) == 1

    def test_healing_defaults_to_caster(self, bard_world):
        """Test that healing without a target heals the caster."""
        resolution = fixed_engine(2).resolve(bard_world, CastSpell(spell_name="Healing Word"))
        assert "Melody heals Melody for 5 HP." in resolution.narrative


class TestUtilitySpells:
    """Spells without attacks, saves or healing."""

    def test_concentration_is_noted(self, cleric_world):
        """Test that concentration spells say so."""
        resolution = fixed_engine().resolve(cleric_world, CastSpell(spell_name="Bless"))
        assert "(Concentration)" in resolution.narrative
        assert "bless up to three creatures" in resolution.narrative
        assert effect_names(resolution) == ["SpellSlotUsed"]

    def test_magic_missile_narrates_description(self, wizard_world):
        """Test that Magic Missile narrates its description."""
        resolution = fixed_engine().resolve(wizard_world, CastSpell(spell_name="Magic Missile"))
        assert resolution.narrative.startswith("Elminster casts Magic Missile (level 1 slot)!")
        assert "three glowing darts" in resolution.narrative
        assert effect_names(resolution) == ["SpellSlotUsed"]

    def test_casting_does_not_mutate_world(self, cleric_world):
        """Test that casting leaves the world untouched."""
        before = snapshot(cleric_world)
        fixed_engine(5).resolve(cleric_world, CastSpell(spell_name="Cure Wounds"))
        assert cleric_world == before


class TestRestoreSpellSlot:
    """Restoring spent slots."""

    def test_restore(self, engine, cleric_world):
        """Test restoring a spent slot."""
        slots = cleric_world.player_character.spellcasting.spell_slots
        slots.use_slot(1)
        resolution = resolve_and_apply(engine, cleric_world, RestoreSpellSlot(slot_level=1, source="Arcane Recovery"))
        assert resolution.narrative == "Level 1 spell slot restored by Arcane Recovery"
        assert find_effect(resolution, fx.SpellSlotRestored).new_remaining == 2
        assert slots.available(1) == 2

    @pytest.mark.parametrize("level", [0, 10])
    def test_invalid_level_is_rejected(self, engine, cleric_world, level):
        """Test slot levels outside 1-9."""
        resolution = engine.resolve(cleric_world, RestoreSpellSlot(slot_level=level))
        assert resolution.is_rejected()
        assert f"Invalid spell slot level: {level}" in resolution.narrative

    def test_restore_with_nothing_spent_changes_nothing(self, engine, cleric_world):
        """Test restoring when no slot of that level is spent."""
        resolve_and_apply(engine, cleric_world, RestoreSpellSlot(slot_level=1, source="Potion"))
        assert cleric_world.player_character.spellcasting.spell_slots.available(1) == 2
