"""
Class progression tables and character construction.

Provides:
- Hit dice, saving throw proficiencies and spellcasting abilities per class
- Spell slot progression for full, half and pact casters
- Rage, sneak attack and bardic inspiration scaling
- Character builders and sample characters for each class
"""

from rulekeeper.classes.class_data import (
    HIT_DIE_SIDES,
    MAX_LEVEL,
    SAVING_THROW_PROFICIENCIES,
    SPELLCASTING_ABILITY,
    UNLIMITED_RAGES,
    XP_THRESHOLDS,
    bardic_inspiration_die,
    hit_die_sides,
    level_for_experience,
    rage_damage_bonus,
    rage_uses,
    sneak_attack_dice,
    spell_slots_at_level,
    spellcasting_ability,
)
from rulekeeper.classes.character_builder import (
    SAMPLE_BUILDERS,
    class_features,
    create_character,
    create_sample_barbarian,
    create_sample_bard,
    create_sample_cleric,
    create_sample_druid,
    create_sample_fighter,
    create_sample_monk,
    create_sample_paladin,
    create_sample_rogue,
    create_sample_sorcerer,
    create_sample_wizard,
    create_sample_world,
    equip_from_catalog,
)

__all__ = [
    # Tables
    "HIT_DIE_SIDES",
    "MAX_LEVEL",
    "SAVING_THROW_PROFICIENCIES",
    "SPELLCASTING_ABILITY",
    "UNLIMITED_RAGES",
    "XP_THRESHOLDS",
    "bardic_inspiration_die",
    "hit_die_sides",
    "level_for_experience",
    "rage_damage_bonus",
    "rage_uses",
    "sneak_attack_dice",
    "spell_slots_at_level",
    "spellcasting_ability",
    # Builders
    "SAMPLE_BUILDERS",
    "class_features",
    "create_character",
    "create_sample_barbarian",
    "create_sample_bard",
    "create_sample_cleric",
    "create_sample_druid",
    "create_sample_fighter",
    "create_sample_monk",
    "create_sample_paladin",
    "create_sample_rogue",
    "create_sample_sorcerer",
    "create_sample_wizard",
    "create_sample_world",
    "equip_from_catalog",
]
