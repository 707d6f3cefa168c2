"""
Class progression tables.

Hit dice, spellcasting abilities, spell slot progressions and the level
brackets for class resources. Pure data plus small lookup helpers.
"""

from typing import Optional
import math

from rulekeeper.data_models import Ability, CharacterClass


HIT_DIE_SIDES: dict[CharacterClass, int] = {
    CharacterClass.BARBARIAN: 12,
    CharacterClass.FIGHTER: 10,
    CharacterClass.PALADIN: 10,
    CharacterClass.RANGER: 10,
    CharacterClass.BARD: 8,
    CharacterClass.CLERIC: 8,
    CharacterClass.DRUID: 8,
    CharacterClass.MONK: 8,
    CharacterClass.ROGUE: 8,
    CharacterClass.WARLOCK: 8,
    CharacterClass.SORCERER: 6,
    CharacterClass.WIZARD: 6,
}

SPELLCASTING_ABILITY: dict[CharacterClass, Ability] = {
    CharacterClass.BARD: Ability.CHARISMA,
    CharacterClass.SORCERER: Ability.CHARISMA,
    CharacterClass.WARLOCK: Ability.CHARISMA,
    CharacterClass.PALADIN: Ability.CHARISMA,
    CharacterClass.CLERIC: Ability.WISDOM,
    CharacterClass.DRUID: Ability.WISDOM,
    CharacterClass.RANGER: Ability.WISDOM,
    CharacterClass.WIZARD: Ability.INTELLIGENCE,
}

SAVING_THROW_PROFICIENCIES: dict[CharacterClass, tuple[Ability, Ability]] = {
    CharacterClass.BARBARIAN: (Ability.STRENGTH, Ability.CONSTITUTION),
    CharacterClass.BARD: (Ability.DEXTERITY, Ability.CHARISMA),
    CharacterClass.CLERIC: (Ability.WISDOM, Ability.CHARISMA),
    CharacterClass.DRUID: (Ability.INTELLIGENCE, Ability.WISDOM),
    CharacterClass.FIGHTER: (Ability.STRENGTH, Ability.CONSTITUTION),
    CharacterClass.MONK: (Ability.STRENGTH, Ability.DEXTERITY),
    CharacterClass.PALADIN: (Ability.WISDOM, Ability.CHARISMA),
    CharacterClass.RANGER: (Ability.STRENGTH, Ability.DEXTERITY),
    CharacterClass.ROGUE: (Ability.DEXTERITY, Ability.INTELLIGENCE),
    CharacterClass.SORCERER: (Ability.CONSTITUTION, Ability.CHARISMA),
    CharacterClass.WARLOCK: (Ability.WISDOM, Ability.CHARISMA),
    CharacterClass.WIZARD: (Ability.INTELLIGENCE, Ability.WISDOM),
}

# XP needed to reach each level; index 0 is level 1
XP_THRESHOLDS: list[int] = [
    0, 300, 900, 2700, 6500, 14000, 23000, 34000, 48000, 64000,
    85000, 100000, 120000, 140000, 165000, 195000, 225000, 265000, 305000, 355000,
]

MAX_LEVEL = 20

# Rage uses at level 20 never run out
UNLIMITED_RAGES = 255


# =============================================================================
# SPELL SLOTS
# =============================================================================

_FULL_CASTER_SLOTS: list[list[int]] = [
    [2, 0, 0, 0, 0, 0, 0, 0, 0],
    [3, 0, 0, 0, 0, 0, 0, 0, 0],
    [4, 2, 0, 0, 0, 0, 0, 0, 0],
    [4, 3, 0, 0, 0, 0, 0, 0, 0],
    [4, 3, 2, 0, 0, 0, 0, 0, 0],
    [4, 3, 3, 0, 0, 0, 0, 0, 0],
    [4, 3, 3, 1, 0, 0, 0, 0, 0],
    [4, 3, 3, 2, 0, 0, 0, 0, 0],
    [4, 3, 3, 3, 1, 0, 0, 0, 0],
    [4, 3, 3, 3, 2, 0, 0, 0, 0],
    [4, 3, 3, 3, 2, 1, 0, 0, 0],
    [4, 3, 3, 3, 2, 1, 0, 0, 0],
    [4, 3, 3, 3, 2, 1, 1, 0, 0],
    [4, 3, 3, 3, 2, 1, 1, 0, 0],
    [4, 3, 3, 3, 2, 1, 1, 1, 0],
    [4, 3, 3, 3, 2, 1, 1, 1, 0],
    [4, 3, 3, 3, 2, 1, 1, 1, 1],
    [4, 3, 3, 3, 3, 1, 1, 1, 1],
    [4, 3, 3, 3, 3, 2, 1, 1, 1],
    [4, 3, 3, 3, 3, 2, 2, 1, 1],
]

_HALF_CASTER_SLOTS: list[list[int]] = [
    [0, 0, 0, 0, 0, 0, 0, 0, 0],
    [2, 0, 0, 0, 0, 0, 0, 0, 0],
    [3, 0, 0, 0, 0, 0, 0, 0, 0],
    [3, 0, 0, 0, 0, 0, 0, 0, 0],
    [4, 2, 0, 0, 0, 0, 0, 0, 0],
    [4, 2, 0, 0, 0, 0, 0, 0, 0],
    [4, 3, 0, 0, 0, 0, 0, 0, 0],
    [4, 3, 0, 0, 0, 0, 0, 0, 0],
    [4, 3, 2, 0, 0, 0, 0, 0, 0],
    [4, 3, 2, 0, 0, 0, 0, 0, 0],
    [4, 3, 3, 0, 0, 0, 0, 0, 0],
    [4, 3, 3, 0, 0, 0, 0, 0, 0],
    [4, 3, 3, 1, 0, 0, 0, 0, 0],
    [4, 3, 3, 1, 0, 0, 0, 0, 0],
    [4, 3, 3, 2, 0, 0, 0, 0, 0],
    [4, 3, 3, 2, 0, 0, 0, 0, 0],
    [4, 3, 3, 3, 1, 0, 0, 0, 0],
    [4, 3, 3, 3, 1, 0, 0, 0, 0],
    [4, 3, 3, 3, 2, 0, 0, 0, 0],
    [4, 3, 3, 3, 2, 0, 0, 0, 0],
]

# Pact magic: few slots, all at the warlock's highest slot level
_WARLOCK_SLOTS: list[list[int]] = [
    [1, 0, 0, 0, 0, 0, 0, 0, 0],
    [2, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 2, 0, 0, 0, 0, 0, 0, 0],
    [0, 2, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 2, 0, 0, 0, 0, 0, 0],
    [0, 0, 2, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 2, 0, 0, 0, 0, 0],
    [0, 0, 0, 2, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 2, 0, 0, 0, 0],
    [0, 0, 0, 0, 2, 0, 0, 0, 0],
    [0, 0, 0, 0, 3, 0, 0, 0, 0],
    [0, 0, 0, 0, 3, 0, 0, 0, 0],
    [0, 0, 0, 0, 3, 0, 0, 0, 0],
    [0, 0, 0, 0, 3, 0, 0, 0, 0],
    [0, 0, 0, 0, 3, 0, 0, 0, 0],
    [0, 0, 0, 0, 3, 0, 0, 0, 0],
    [0, 0, 0, 0, 4, 0, 0, 0, 0],
    [0, 0, 0, 0, 4, 0, 0, 0, 0],
    [0, 0, 0, 0, 4, 0, 0, 0, 0],
    [0, 0, 0, 0, 4, 0, 0, 0, 0],
]

_FULL_CASTERS = {
    CharacterClass.BARD,
    CharacterClass.CLERIC,
    CharacterClass.DRUID,
    CharacterClass.SORCERER,
    CharacterClass.WIZARD,
}
_HALF_CASTERS = {CharacterClass.PALADIN, CharacterClass.RANGER}


def hit_die_sides(character_class: CharacterClass) -> int:
    return HIT_DIE_SIDES[character_class]


def spellcasting_ability(character_class: CharacterClass) -> Optional[Ability]:
    return SPELLCASTING_ABILITY.get(character_class)


def spell_slots_at_level(character_class: CharacterClass, level: int) -> list[int]:
    """
    Slot totals for levels 1-9 at a class level.

    Args:
        character_class: The class
        level: Class level (1-20); out-of-range levels have no slots

    Returns:
        Nine slot totals, index 0 = 1st-level slots
    """
    if not 1 <= level <= MAX_LEVEL:
        return [0] * 9
    if character_class in _FULL_CASTERS:
        return list(_FULL_CASTER_SLOTS[level - 1])
    if character_class in _HALF_CASTERS:
        return list(_HALF_CASTER_SLOTS[level - 1])
    if character_class == CharacterClass.WARLOCK:
        return list(_WARLOCK_SLOTS[level - 1])
    return [0] * 9


# =============================================================================
# CLASS RESOURCES
# =============================================================================


def rage_damage_bonus(barbarian_level: int) -> int:
    if barbarian_level >= 16:
        return 4
    elif barbarian_level >= 9:
        return 3
    return 2


def rage_uses(barbarian_level: int) -> int:
    if barbarian_level >= 20:
        return UNLIMITED_RAGES
    elif barbarian_level >= 17:
        return 6
    elif barbarian_level >= 12:
        return 5
    elif barbarian_level >= 6:
        return 4
    elif barbarian_level >= 3:
        return 3
    return 2


def sneak_attack_dice(rogue_level: int) -> int:
    """Sneak attack d6 count: ceil(level / 2)."""
    return math.ceil(rogue_level / 2) if rogue_level > 0 else 0


def bardic_inspiration_die(bard_level: int) -> str:
    if bard_level >= 15:
        return "d12"
    elif bard_level >= 10:
        return "d10"
    elif bard_level >= 5:
        return "d8"
    return "d6"


def level_for_experience(experience: int) -> int:
    """Highest level whose XP threshold has been reached."""
    level = 1
    for i, threshold in enumerate(XP_THRESHOLDS):
        if experience >= threshold:
            level = i + 1
    return level
