"""
Character construction for the rules kernel.

Builds player characters from a class and level using the progression
tables in class_data, and provides ready-made sample characters for each
class. The samples are what the CLI and the test suite play with.
"""

from typing import Optional
import logging

from rulekeeper.classes.class_data import (
    SAVING_THROW_PROFICIENCIES,
    bardic_inspiration_die,
    hit_die_sides,
    rage_damage_bonus,
    rage_uses,
    spell_slots_at_level,
    spellcasting_ability,
)
from rulekeeper.content.item_catalog import get_item_catalog
from rulekeeper.data_models import (
    Ability,
    AbilityScores,
    Character,
    CharacterClass,
    ClassLevel,
    Feature,
    FeatureUses,
    GameWorld,
    HitPoints,
    Item,
    ItemType,
    Location,
    LocationType,
    RechargeType,
    Skill,
    SlotInfo,
    SpellcastingData,
    SpellSlots,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CLASS FEATURES
# =============================================================================


def _limited(name: str, uses: int, recharge: RechargeType, source: str, description: str = "") -> Feature:
    return Feature(
        name=name,
        description=description,
        source=source,
        uses=FeatureUses(current=uses, maximum=uses, recharge=recharge),
    )


def class_features(
    character_class: CharacterClass,
    level: int,
    ability_scores: AbilityScores,
) -> list[Feature]:
    """
    Features a class grants up to the given level.

    Args:
        character_class: The class
        level: Class level
        ability_scores: Used for features whose uses scale with an ability

    Returns:
        List of Feature objects, limited-use features with full uses
    """
    source = character_class.display_name
    features: list[Feature] = []

    if character_class == CharacterClass.BARBARIAN:
        features.append(_limited("Rage", rage_uses(level), RechargeType.LONG_REST, source,
                                 "Bonus damage and resistance while raging"))
        features.append(Feature(name="Unarmored Defense", source=source))
    elif character_class == CharacterClass.BARD:
        uses = max(1, ability_scores.modifier(Ability.CHARISMA))
        recharge = RechargeType.SHORT_REST if level >= 5 else RechargeType.LONG_REST
        features.append(_limited("Bardic Inspiration", uses, recharge, source,
                                 f"Grant a {bardic_inspiration_die(level)} inspiration die"))
    elif character_class == CharacterClass.CLERIC:
        if level >= 2:
            uses = 3 if level >= 18 else 2 if level >= 6 else 1
            features.append(_limited("Channel Divinity", uses, RechargeType.SHORT_REST, source))
    elif character_class == CharacterClass.DRUID:
        if level >= 2:
            features.append(_limited("Wild Shape", 2, RechargeType.SHORT_REST, source))
    elif character_class == CharacterClass.FIGHTER:
        features.append(_limited("Second Wind", 1, RechargeType.SHORT_REST, source,
                                 "Regain 1d10 + fighter level HP as a bonus action"))
        if level >= 2:
            uses = 2 if level >= 17 else 1
            features.append(_limited("Action Surge", uses, RechargeType.SHORT_REST, source,
                                     "Take one additional action"))
    elif character_class == CharacterClass.MONK:
        features.append(Feature(name="Martial Arts", source=source))
        if level >= 2:
            features.append(Feature(name="Ki", source=source, description=f"{level} ki points"))
    elif character_class == CharacterClass.PALADIN:
        features.append(Feature(name="Lay on Hands", source=source,
                                description=f"Healing pool of {5 * level} HP"))
        if level >= 2:
            features.append(Feature(name="Divine Smite", source=source))
    elif character_class == CharacterClass.RANGER:
        features.append(Feature(name="Favored Enemy", source=source))
    elif character_class == CharacterClass.ROGUE:
        features.append(Feature(name="Sneak Attack", source=source))
        features.append(Feature(name="Expertise", source=source))
    elif character_class == CharacterClass.SORCERER:
        if level >= 2:
            features.append(Feature(name="Font of Magic", source=source,
                                    description=f"{level} sorcery points"))
    elif character_class == CharacterClass.WARLOCK:
        features.append(Feature(name="Pact Magic", source=source))
    elif character_class == CharacterClass.WIZARD:
        features.append(_limited("Arcane Recovery", 1, RechargeType.LONG_REST, source))

    return features


# =============================================================================
# BUILDER
# =============================================================================


def create_character(
    name: str,
    character_class: CharacterClass,
    level: int = 1,
    ability_scores: Optional[AbilityScores] = None,
    race: str = "Human",
    skill_proficiencies: Optional[set[Skill]] = None,
) -> Character:
    """
    Build a character of a single class.

    Hit points use the maximum hit die at first level and the fixed
    average (half the die plus one) afterwards, plus CON modifier per
    level, with at least 1 HP gained per level.

    Args:
        name: Character name
        character_class: The class
        level: Class level (1-20)
        ability_scores: Scores; all 10s when omitted
        race: Flavor only
        skill_proficiencies: Trained skills

    Returns:
        A fully initialized Character
    """
    scores = ability_scores or AbilityScores()
    sides = hit_die_sides(character_class)
    con_mod = scores.modifier(Ability.CONSTITUTION)
    max_hp = max(1, sides + con_mod)
    for _ in range(level - 1):
        max_hp += max(1, sides // 2 + 1 + con_mod)

    character = Character(
        name=name,
        race=race,
        classes=[ClassLevel(character_class=character_class, level=level)],
        ability_scores=scores,
        hit_points=HitPoints(current=max_hp, maximum=max_hp),
        skill_proficiencies=set(skill_proficiencies or ()),
        saving_throw_proficiencies=set(SAVING_THROW_PROFICIENCIES[character_class]),
        features=class_features(character_class, level, scores),
    )
    character.hit_dice.add(sides, level)

    ability = spellcasting_ability(character_class)
    totals = spell_slots_at_level(character_class, level)
    if ability is None and character_class == CharacterClass.WARLOCK:
        ability = Ability.CHARISMA
    if ability is not None and any(totals):
        character.spellcasting = SpellcastingData(
            ability=ability,
            spell_slots=SpellSlots(slots=[SlotInfo(total=t) for t in totals]),
        )

    resources = character.class_resources
    if character_class == CharacterClass.MONK and level >= 2:
        resources.max_ki_points = level
        resources.ki_points = level
    elif character_class == CharacterClass.SORCERER and level >= 2:
        resources.max_sorcery_points = level
        resources.sorcery_points = level
    elif character_class == CharacterClass.PALADIN:
        resources.lay_on_hands_max = 5 * level
        resources.lay_on_hands_pool = 5 * level
    elif character_class == CharacterClass.BARBARIAN:
        resources.rage_damage_bonus = rage_damage_bonus(level)

    logger.debug(f"Created {character_class.display_name} {name} (level {level}, {max_hp} HP)")
    return character


def equip_from_catalog(
    character: Character,
    weapon: Optional[str] = None,
    armor: Optional[str] = None,
    shield: bool = False,
) -> Character:
    """Equip catalog items by name. Unknown names are skipped."""
    catalog = get_item_catalog()
    if weapon:
        character.equipment.main_hand = catalog.get_weapon(weapon)
    if armor:
        character.equipment.armor = catalog.get_armor(armor)
    if shield:
        character.equipment.shield = catalog.get_shield("Shield")
    return character


def _stock(character: Character, *names: str, gold: int = 10) -> None:
    catalog = get_item_catalog()
    for name in names:
        item = catalog.find_item(name) or Item(name=name, item_type=ItemType.GEAR)
        character.inventory.add_item(item)
    character.inventory.gold = gold


# =============================================================================
# SAMPLE CHARACTERS
# =============================================================================


def create_sample_fighter(name: str) -> Character:
    """Level 1 Fighter with 28 HP, chain mail and a longsword."""
    character = create_character(
        name,
        CharacterClass.FIGHTER,
        ability_scores=AbilityScores(
            strength=16, dexterity=12, constitution=15, intelligence=10, wisdom=13, charisma=8
        ),
        skill_proficiencies={Skill.ATHLETICS, Skill.PERCEPTION},
    )
    character.hit_points = HitPoints(current=28, maximum=28)
    character.features.append(_limited("Action Surge", 1, RechargeType.SHORT_REST, "Fighter"))
    equip_from_catalog(character, weapon="Longsword", armor="Chain Mail")
    _stock(character, "Backpack", "Potion of Healing", "Rations (1 day)", gold=15)
    return character


def create_sample_cleric(name: str) -> Character:
    """Level 1 Cleric with WIS spellcasting and two 1st-level slots."""
    character = create_character(
        name,
        CharacterClass.CLERIC,
        ability_scores=AbilityScores(
            strength=12, dexterity=10, constitution=14, intelligence=10, wisdom=16, charisma=13
        ),
        race="Dwarf",
        skill_proficiencies={Skill.MEDICINE, Skill.RELIGION},
    )
    if character.spellcasting:
        character.spellcasting.cantrips_known = ["Sacred Flame", "Light"]
        character.spellcasting.spells_prepared = ["Cure Wounds", "Bless", "Guiding Bolt"]
    equip_from_catalog(character, weapon="Mace", armor="Chain Shirt", shield=True)
    _stock(character, "Holy Symbol", "Healer's Kit")
    return character


def create_sample_rogue(name: str, level: int = 1) -> Character:
    character = create_character(
        name,
        CharacterClass.ROGUE,
        level=level,
        ability_scores=AbilityScores(
            strength=10, dexterity=16, constitution=12, intelligence=13, wisdom=12, charisma=14
        ),
        race="Halfling",
        skill_proficiencies={Skill.STEALTH, Skill.SLEIGHT_OF_HAND, Skill.ACROBATICS, Skill.DECEPTION},
    )
    character.skill_expertise = {Skill.STEALTH, Skill.SLEIGHT_OF_HAND}
    equip_from_catalog(character, weapon="Rapier", armor="Leather Armor")
    _stock(character, "Thieves' Tools", "Shortbow")
    return character


def create_sample_barbarian(name: str, level: int = 1) -> Character:
    character = create_character(
        name,
        CharacterClass.BARBARIAN,
        level=level,
        ability_scores=AbilityScores(
            strength=16, dexterity=14, constitution=15, intelligence=8, wisdom=12, charisma=10
        ),
        race="Half-Orc",
        skill_proficiencies={Skill.ATHLETICS, Skill.SURVIVAL},
    )
    equip_from_catalog(character, weapon="Greataxe")
    _stock(character, "Javelin", "Bedroll")
    return character


def create_sample_wizard(name: str, level: int = 1) -> Character:
    character = create_character(
        name,
        CharacterClass.WIZARD,
        level=level,
        ability_scores=AbilityScores(
            strength=8, dexterity=14, constitution=13, intelligence=16, wisdom=12, charisma=10
        ),
        race="Elf",
        skill_proficiencies={Skill.ARCANA, Skill.HISTORY},
    )
    if character.spellcasting:
        character.spellcasting.cantrips_known = ["Fire Bolt", "Mage Hand", "Ray of Frost"]
        character.spellcasting.spells_known = ["Magic Missile", "Shield", "Sleep", "Burning Hands"]
    equip_from_catalog(character, weapon="Quarterstaff")
    _stock(character, "Component Pouch", "Spell Scroll (Magic Missile)")
    return character


def create_sample_paladin(name: str, level: int = 2) -> Character:
    character = create_character(
        name,
        CharacterClass.PALADIN,
        level=level,
        ability_scores=AbilityScores(
            strength=16, dexterity=10, constitution=14, intelligence=8, wisdom=12, charisma=15
        ),
        skill_proficiencies={Skill.ATHLETICS, Skill.PERSUASION},
    )
    equip_from_catalog(character, weapon="Longsword", armor="Chain Mail", shield=True)
    return character


def create_sample_druid(name: str, level: int = 2) -> Character:
    character = create_character(
        name,
        CharacterClass.DRUID,
        level=level,
        ability_scores=AbilityScores(
            strength=10, dexterity=14, constitution=14, intelligence=12, wisdom=16, charisma=8
        ),
        race="Wood Elf",
        skill_proficiencies={Skill.NATURE, Skill.ANIMAL_HANDLING},
    )
    equip_from_catalog(character, weapon="Scimitar", armor="Leather Armor")
    return character


def create_sample_monk(name: str, level: int = 2) -> Character:
    character = create_character(
        name,
        CharacterClass.MONK,
        level=level,
        ability_scores=AbilityScores(
            strength=12, dexterity=16, constitution=13, intelligence=10, wisdom=15, charisma=8
        ),
        skill_proficiencies={Skill.ACROBATICS, Skill.INSIGHT},
    )
    equip_from_catalog(character, weapon="Quarterstaff")
    return character


def create_sample_sorcerer(name: str, level: int = 2) -> Character:
    character = create_character(
        name,
        CharacterClass.SORCERER,
        level=level,
        ability_scores=AbilityScores(
            strength=8, dexterity=14, constitution=14, intelligence=10, wisdom=12, charisma=16
        ),
        race="Tiefling",
        skill_proficiencies={Skill.ARCANA, Skill.INTIMIDATION},
    )
    if character.spellcasting:
        character.spellcasting.cantrips_known = ["Fire Bolt", "Ray of Frost"]
        character.spellcasting.spells_known = ["Magic Missile", "Shield", "Burning Hands"]
    equip_from_catalog(character, weapon="Dagger")
    return character


def create_sample_bard(name: str, level: int = 1) -> Character:
    character = create_character(
        name,
        CharacterClass.BARD,
        level=level,
        ability_scores=AbilityScores(
            strength=8, dexterity=14, constitution=12, intelligence=12, wisdom=10, charisma=16
        ),
        race="Half-Elf",
        skill_proficiencies={Skill.PERFORMANCE, Skill.PERSUASION, Skill.DECEPTION},
    )
    if character.spellcasting:
        character.spellcasting.cantrips_known = ["Vicious Mockery", "Prestidigitation"]
        character.spellcasting.spells_known = ["Healing Word", "Charm Person", "Sleep"]
    equip_from_catalog(character, weapon="Rapier", armor="Leather Armor")
    return character


SAMPLE_BUILDERS = {
    CharacterClass.FIGHTER: create_sample_fighter,
    CharacterClass.CLERIC: create_sample_cleric,
    CharacterClass.ROGUE: create_sample_rogue,
    CharacterClass.BARBARIAN: create_sample_barbarian,
    CharacterClass.WIZARD: create_sample_wizard,
    CharacterClass.PALADIN: create_sample_paladin,
    CharacterClass.DRUID: create_sample_druid,
    CharacterClass.MONK: create_sample_monk,
    CharacterClass.SORCERER: create_sample_sorcerer,
    CharacterClass.BARD: create_sample_bard,
}


def create_sample_world(character: Character, campaign_name: str = "Sample Campaign") -> GameWorld:
    """Wrap a character in a fresh world starting in a small town."""
    return GameWorld(
        player_character=character,
        campaign_name=campaign_name,
        current_location=Location(
            name="Millbrook",
            location_type=LocationType.TOWN,
            description="A quiet farming village at a river crossing.",
        ),
    )
