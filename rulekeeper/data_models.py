"""
World state for the rules kernel.

These structures are read by the resolvers and mutated only by the effect
applier. Nothing here imports the rules package, so the world model can be
built, inspected and persisted on its own.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import copy
import logging
import math
import uuid

from rulekeeper.name_index import find_by_name, normalize_name

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class Ability(str, Enum):
    """The six ability scores, valued by abbreviation."""
    STRENGTH = "STR"
    DEXTERITY = "DEX"
    CONSTITUTION = "CON"
    INTELLIGENCE = "INT"
    WISDOM = "WIS"
    CHARISMA = "CHA"

    @property
    def abbreviation(self) -> str:
        return self.value

    @property
    def full_name(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, text: str) -> Optional["Ability"]:
        """Accept 'STR', 'str' or 'Strength'."""
        wanted = text.strip().upper()
        for ability in cls:
            if wanted in (ability.value, ability.name):
                return ability
        return None


class Skill(str, Enum):
    """Skills and their governing abilities."""
    ATHLETICS = "athletics"
    ACROBATICS = "acrobatics"
    SLEIGHT_OF_HAND = "sleight_of_hand"
    STEALTH = "stealth"
    ARCANA = "arcana"
    HISTORY = "history"
    INVESTIGATION = "investigation"
    NATURE = "nature"
    RELIGION = "religion"
    ANIMAL_HANDLING = "animal_handling"
    INSIGHT = "insight"
    MEDICINE = "medicine"
    PERCEPTION = "perception"
    SURVIVAL = "survival"
    DECEPTION = "deception"
    INTIMIDATION = "intimidation"
    PERFORMANCE = "performance"
    PERSUASION = "persuasion"

    @property
    def ability(self) -> Ability:
        return SKILL_ABILITIES[self]

    @property
    def display_name(self) -> str:
        return " ".join(
            word if word == "of" else word.capitalize()
            for word in self.value.split("_")
        )


SKILL_ABILITIES: dict[Skill, Ability] = {
    Skill.ATHLETICS: Ability.STRENGTH,
    Skill.ACROBATICS: Ability.DEXTERITY,
    Skill.SLEIGHT_OF_HAND: Ability.DEXTERITY,
    Skill.STEALTH: Ability.DEXTERITY,
    Skill.ARCANA: Ability.INTELLIGENCE,
    Skill.HISTORY: Ability.INTELLIGENCE,
    Skill.INVESTIGATION: Ability.INTELLIGENCE,
    Skill.NATURE: Ability.INTELLIGENCE,
    Skill.RELIGION: Ability.INTELLIGENCE,
    Skill.ANIMAL_HANDLING: Ability.WISDOM,
    Skill.INSIGHT: Ability.WISDOM,
    Skill.MEDICINE: Ability.WISDOM,
    Skill.PERCEPTION: Ability.WISDOM,
    Skill.SURVIVAL: Ability.WISDOM,
    Skill.DECEPTION: Ability.CHARISMA,
    Skill.INTIMIDATION: Ability.CHARISMA,
    Skill.PERFORMANCE: Ability.CHARISMA,
    Skill.PERSUASION: Ability.CHARISMA,
}


class Condition(str, Enum):
    """5e conditions."""
    BLINDED = "blinded"
    CHARMED = "charmed"
    DEAFENED = "deafened"
    FRIGHTENED = "frightened"
    GRAPPLED = "grappled"
    INCAPACITATED = "incapacitated"
    INVISIBLE = "invisible"
    PARALYZED = "paralyzed"
    PETRIFIED = "petrified"
    POISONED = "poisoned"
    PRONE = "prone"
    RESTRAINED = "restrained"
    STUNNED = "stunned"
    UNCONSCIOUS = "unconscious"
    EXHAUSTION = "exhaustion"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


# Conditions that stop a character from moving
IMMOBILIZING_CONDITIONS = frozenset({
    Condition.UNCONSCIOUS,
    Condition.PARALYZED,
    Condition.PETRIFIED,
    Condition.STUNNED,
    Condition.RESTRAINED,
    Condition.GRAPPLED,
})


class DamageType(str, Enum):
    """Damage types."""
    SLASHING = "slashing"
    PIERCING = "piercing"
    BLUDGEONING = "bludgeoning"
    FIRE = "fire"
    COLD = "cold"
    LIGHTNING = "lightning"
    THUNDER = "thunder"
    ACID = "acid"
    POISON = "poison"
    NECROTIC = "necrotic"
    RADIANT = "radiant"
    FORCE = "force"
    PSYCHIC = "psychic"


class CharacterClass(str, Enum):
    """The twelve core classes."""
    BARBARIAN = "barbarian"
    BARD = "bard"
    CLERIC = "cleric"
    DRUID = "druid"
    FIGHTER = "fighter"
    MONK = "monk"
    PALADIN = "paladin"
    RANGER = "ranger"
    ROGUE = "rogue"
    SORCERER = "sorcerer"
    WARLOCK = "warlock"
    WIZARD = "wizard"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class ArmorType(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class WeaponProperty(str, Enum):
    FINESSE = "finesse"
    LIGHT = "light"
    HEAVY = "heavy"
    TWO_HANDED = "two_handed"
    VERSATILE = "versatile"
    THROWN = "thrown"
    REACH = "reach"
    AMMUNITION = "ammunition"
    LOADING = "loading"


class ItemType(str, Enum):
    """Inventory item categories."""
    WEAPON = "weapon"
    ARMOR = "armor"
    SHIELD = "shield"
    POTION = "potion"
    SCROLL = "scroll"
    GEAR = "gear"
    TOOL = "tool"
    TREASURE = "treasure"
    OTHER = "other"

    @classmethod
    def parse(cls, text: Optional[str]) -> "ItemType":
        if not text:
            return cls.OTHER
        try:
            return cls(text.strip().lower())
        except ValueError:
            return cls.OTHER


class RechargeType(str, Enum):
    """When a limited-use feature recovers."""
    SHORT_REST = "short_rest"
    LONG_REST = "long_rest"
    NEVER = "never"


class Disposition(str, Enum):
    """NPC attitude toward the party."""
    HOSTILE = "hostile"
    UNFRIENDLY = "unfriendly"
    NEUTRAL = "neutral"
    FRIENDLY = "friendly"
    HELPFUL = "helpful"

    @classmethod
    def parse(cls, text: str) -> Optional["Disposition"]:
        try:
            return cls(text.strip().lower())
        except ValueError:
            return None


class LocationType(str, Enum):
    """Kinds of places in the world."""
    WILDERNESS = "wilderness"
    TOWN = "town"
    CITY = "city"
    DUNGEON = "dungeon"
    BUILDING = "building"
    ROOM = "room"
    ROAD = "road"
    CAVE = "cave"
    OTHER = "other"

    @classmethod
    def parse(cls, text: Optional[str]) -> "LocationType":
        """Map free text onto a location type, falling back to OTHER."""
        if not text:
            return cls.OTHER
        wanted = text.strip().lower()
        aliases = {
            "village": cls.TOWN,
            "forest": cls.WILDERNESS,
            "tavern": cls.BUILDING,
            "inn": cls.BUILDING,
            "shop": cls.BUILDING,
            "temple": cls.BUILDING,
            "castle": cls.BUILDING,
        }
        if wanted in aliases:
            return aliases[wanted]
        try:
            return cls(wanted)
        except ValueError:
            return cls.OTHER


class QuestStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


class GameMode(str, Enum):
    EXPLORATION = "exploration"
    COMBAT = "combat"


# =============================================================================
# ABILITIES AND HEALTH
# =============================================================================


@dataclass
class AbilityScores:
    """The six ability scores."""
    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10

    def get(self, ability: Ability) -> int:
        return getattr(self, ability.full_name.lower())

    def set(self, ability: Ability, value: int) -> None:
        setattr(self, ability.full_name.lower(), value)

    def modifier(self, ability: Ability) -> int:
        """Standard 5e modifier: (score - 10) // 2."""
        return (self.get(ability) - 10) // 2


@dataclass
class DamageResult:
    """Outcome of HitPoints.take_damage."""
    damage_taken: int
    dropped_to_zero: bool


@dataclass
class HitPoints:
    """Current, maximum and temporary hit points."""
    current: int
    maximum: int
    temporary: int = 0

    def take_damage(self, amount: int) -> DamageResult:
        """
        Apply damage, burning temporary HP first.

        Current HP never goes below zero.

        Returns:
            DamageResult with the damage dealt to real HP and whether this
            blow took the character from positive HP to zero
        """
        amount = max(0, amount)
        absorbed = min(self.temporary, amount)
        self.temporary -= absorbed
        remaining = amount - absorbed

        was_conscious = self.current > 0
        taken = min(self.current, remaining) if self.current > 0 else 0
        self.current = max(0, self.current - remaining)
        return DamageResult(
            damage_taken=taken,
            dropped_to_zero=was_conscious and self.current == 0,
        )

    def heal(self, amount: int) -> int:
        """Heal up to maximum. Returns the amount actually healed."""
        if amount <= 0:
            return 0
        before = max(0, self.current)
        self.current = min(self.maximum, before + amount)
        return self.current - before

    def add_temp_hp(self, amount: int) -> None:
        """Temporary HP does not stack; keep the larger pool."""
        self.temporary = max(self.temporary, amount)

    def is_unconscious(self) -> bool:
        return self.current <= 0

    def ratio(self) -> float:
        return self.current / self.maximum if self.maximum > 0 else 0.0


@dataclass
class HitDieEntry:
    sides: int
    total: int
    remaining: int


@dataclass
class HitDice:
    """Hit dice pools, one per die size."""
    entries: list[HitDieEntry] = field(default_factory=list)

    def add(self, sides: int, count: int = 1) -> None:
        for entry in self.entries:
            if entry.sides == sides:
                entry.total += count
                entry.remaining += count
                return
        self.entries.append(HitDieEntry(sides=sides, total=count, remaining=count))

    def spend(self, sides: int) -> bool:
        for entry in self.entries:
            if entry.sides == sides and entry.remaining > 0:
                entry.remaining -= 1
                return True
        return False

    def recover_half(self) -> None:
        """Long rest: regain half the total (rounded up, minimum 1) per pool."""
        for entry in self.entries:
            regained = max(1, math.ceil(entry.total / 2))
            entry.remaining = min(entry.total, entry.remaining + regained)

    def total(self) -> int:
        return sum(e.total for e in self.entries)

    def remaining(self) -> int:
        return sum(e.remaining for e in self.entries)


@dataclass
class DeathSaves:
    """Death saving throw tallies, each capped at three."""
    successes: int = 0
    failures: int = 0

    def add_success(self) -> bool:
        """Returns True once the character is stable."""
        self.successes = min(3, self.successes + 1)
        return self.successes >= 3

    def add_failure(self, count: int = 1) -> bool:
        """Returns True once the character is dead."""
        self.failures = min(3, self.failures + count)
        return self.failures >= 3

    def reset(self) -> None:
        self.successes = 0
        self.failures = 0

    def is_dead(self) -> bool:
        return self.failures >= 3

    def is_stable(self) -> bool:
        return self.successes >= 3


@dataclass
class ActiveCondition:
    """A condition on a character. duration_rounds None means until removed."""
    condition: Condition
    source: str = ""
    duration_rounds: Optional[int] = None

    def tick(self) -> bool:
        """
        Count down one round.

        Returns:
            True if the condition has expired
        """
        if self.duration_rounds is None:
            return False
        self.duration_rounds = max(0, self.duration_rounds - 1)
        return self.duration_rounds == 0


# =============================================================================
# FEATURES, SPELLCASTING AND CLASS RESOURCES
# =============================================================================


@dataclass
class FeatureUses:
    current: int
    maximum: int
    recharge: RechargeType = RechargeType.LONG_REST


@dataclass
class Feature:
    """A class or racial feature, optionally with limited uses."""
    name: str
    description: str = ""
    source: str = ""
    uses: Optional[FeatureUses] = None


@dataclass
class ClassLevel:
    character_class: CharacterClass
    level: int = 1
    subclass: Optional[str] = None


@dataclass
class SlotInfo:
    total: int = 0
    used: int = 0

    @property
    def available(self) -> int:
        return max(0, self.total - self.used)


@dataclass
class SpellSlots:
    """Spell slots for levels 1-9."""
    slots: list[SlotInfo] = field(default_factory=lambda: [SlotInfo() for _ in range(9)])

    def get(self, level: int) -> Optional[SlotInfo]:
        if 1 <= level <= 9:
            return self.slots[level - 1]
        return None

    def available(self, level: int) -> int:
        slot = self.get(level)
        return slot.available if slot else 0

    def use_slot(self, level: int) -> bool:
        slot = self.get(level)
        if slot is None or slot.available <= 0:
            return False
        slot.used += 1
        return True

    def restore_slot(self, level: int) -> bool:
        slot = self.get(level)
        if slot is None or slot.used <= 0:
            return False
        slot.used -= 1
        return True

    def recover_all(self) -> None:
        for slot in self.slots:
            slot.used = 0

    def totals(self) -> list[int]:
        return [slot.total for slot in self.slots]


@dataclass
class SpellcastingData:
    ability: Ability
    spell_slots: SpellSlots = field(default_factory=SpellSlots)
    cantrips_known: list[str] = field(default_factory=list)
    spells_known: list[str] = field(default_factory=list)
    spells_prepared: list[str] = field(default_factory=list)


@dataclass
class ClassResources:
    """
    Class-specific pools that are not modelled as feature uses.

    Rage uses, bardic inspiration and channel divinity are Feature uses;
    what lives here is state (rage, wild shape) and point pools.
    """
    rage_active: bool = False
    rage_rounds_remaining: Optional[int] = None
    rage_damage_bonus: int = 0
    ki_points: int = 0
    max_ki_points: int = 0
    wild_shape_form: Optional[str] = None
    wild_shape_hp: Optional[int] = None
    lay_on_hands_pool: int = 0
    lay_on_hands_max: int = 0
    sorcery_points: int = 0
    max_sorcery_points: int = 0
    action_surge_used: bool = False
    second_wind_used: bool = False

    def short_rest_recovery(self, character_class: CharacterClass, level: int) -> None:
        if character_class == CharacterClass.FIGHTER:
            self.action_surge_used = False
            self.second_wind_used = False
        elif character_class == CharacterClass.MONK:
            self.ki_points = self.max_ki_points

    def long_rest_recovery(self, character_class: CharacterClass, level: int) -> None:
        self.short_rest_recovery(character_class, level)
        if character_class == CharacterClass.BARBARIAN:
            self.rage_active = False
            self.rage_rounds_remaining = None
            self.rage_damage_bonus = 0
        elif character_class == CharacterClass.PALADIN:
            self.lay_on_hands_pool = self.lay_on_hands_max
        elif character_class == CharacterClass.SORCERER:
            self.sorcery_points = self.max_sorcery_points


# =============================================================================
# EQUIPMENT AND INVENTORY
# =============================================================================


@dataclass
class Weapon:
    name: str
    damage_dice: str = "1d4"
    damage_type: DamageType = DamageType.BLUDGEONING
    properties: list[WeaponProperty] = field(default_factory=list)
    ranged: bool = False
    weight: float = 0.0
    value_gp: float = 0.0

    def is_finesse(self) -> bool:
        return WeaponProperty.FINESSE in self.properties

    def is_two_handed(self) -> bool:
        return WeaponProperty.TWO_HANDED in self.properties


@dataclass
class Armor:
    name: str
    armor_type: ArmorType = ArmorType.MEDIUM
    base_ac: int = 14
    strength_requirement: Optional[int] = None
    stealth_disadvantage: bool = False
    weight: float = 0.0
    value_gp: float = 0.0

    def ac_for_dex(self, dex_modifier: int) -> int:
        if self.armor_type == ArmorType.LIGHT:
            return self.base_ac + dex_modifier
        elif self.armor_type == ArmorType.MEDIUM:
            return self.base_ac + min(dex_modifier, 2)
        return self.base_ac


@dataclass
class Item:
    """An inventory stack."""
    name: str
    item_type: ItemType = ItemType.OTHER
    quantity: int = 1
    weight: float = 0.0
    value_gp: float = 0.0
    description: str = ""
    magical: bool = False


SHIELD_AC_BONUS = 2


@dataclass
class Equipment:
    armor: Optional[Armor] = None
    shield: Optional[Item] = None
    main_hand: Optional[Weapon] = None
    off_hand: Optional[Item] = None


@dataclass
class Inventory:
    items: list[Item] = field(default_factory=list)
    gold: int = 0
    silver: int = 0

    def find_item(self, name: str) -> Optional[Item]:
        return find_by_name(self.items, name)

    def count(self, name: str) -> int:
        item = self.find_item(name)
        return item.quantity if item else 0

    def add_item(self, item: Item) -> int:
        """Add a stack, merging with an existing one. Returns the new total."""
        existing = self.find_item(item.name)
        if existing:
            existing.quantity += item.quantity
            return existing.quantity
        self.items.append(item)
        return item.quantity

    def remove_item(self, name: str, quantity: int = 1) -> bool:
        """Remove up to quantity; drops the stack when it empties."""
        item = self.find_item(name)
        if item is None or item.quantity < quantity:
            return False
        item.quantity -= quantity
        if item.quantity <= 0:
            self.items.remove(item)
        return True


# =============================================================================
# CHARACTER
# =============================================================================


@dataclass
class Character:
    """A player character."""
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    race: str = "Human"
    classes: list[ClassLevel] = field(default_factory=list)
    ability_scores: AbilityScores = field(default_factory=AbilityScores)
    hit_points: HitPoints = field(default_factory=lambda: HitPoints(current=10, maximum=10))
    hit_dice: HitDice = field(default_factory=HitDice)
    death_saves: DeathSaves = field(default_factory=DeathSaves)
    conditions: list[ActiveCondition] = field(default_factory=list)
    skill_proficiencies: set[Skill] = field(default_factory=set)
    skill_expertise: set[Skill] = field(default_factory=set)
    saving_throw_proficiencies: set[Ability] = field(default_factory=set)
    features: list[Feature] = field(default_factory=list)
    spellcasting: Optional[SpellcastingData] = None
    class_resources: ClassResources = field(default_factory=ClassResources)
    inventory: Inventory = field(default_factory=Inventory)
    equipment: Equipment = field(default_factory=Equipment)
    experience: int = 0
    speed: int = 30
    is_dead: bool = False

    @property
    def level(self) -> int:
        return max(1, sum(c.level for c in self.classes))

    @property
    def primary_class(self) -> Optional[CharacterClass]:
        return self.classes[0].character_class if self.classes else None

    def class_level(self, character_class: CharacterClass) -> int:
        for entry in self.classes:
            if entry.character_class == character_class:
                return entry.level
        return 0

    @property
    def proficiency_bonus(self) -> int:
        return 2 + (self.level - 1) // 4

    def ability_modifier(self, ability: Ability) -> int:
        return self.ability_scores.modifier(ability)

    def skill_modifier(self, skill: Skill) -> int:
        modifier = self.ability_modifier(skill.ability)
        if skill in self.skill_expertise:
            modifier += self.proficiency_bonus * 2
        elif skill in self.skill_proficiencies:
            modifier += self.proficiency_bonus
        return modifier

    def saving_throw_modifier(self, ability: Ability) -> int:
        modifier = self.ability_modifier(ability)
        if ability in self.saving_throw_proficiencies:
            modifier += self.proficiency_bonus
        return modifier

    def initiative_modifier(self) -> int:
        return self.ability_modifier(Ability.DEXTERITY)

    def current_ac(self) -> int:
        """Armor class from worn armor and shield, or the unarmored formula."""
        dex = self.ability_modifier(Ability.DEXTERITY)
        if self.equipment.armor:
            ac = self.equipment.armor.ac_for_dex(dex)
        elif self.class_level(CharacterClass.BARBARIAN) > 0:
            ac = 10 + dex + self.ability_modifier(Ability.CONSTITUTION)
        elif self.class_level(CharacterClass.MONK) > 0 and not self.equipment.shield:
            ac = 10 + dex + self.ability_modifier(Ability.WISDOM)
        else:
            ac = 10 + dex
        if self.equipment.shield:
            ac += SHIELD_AC_BONUS
        return ac

    # Conditions

    def has_condition(self, condition: Condition) -> bool:
        return any(c.condition == condition for c in self.conditions)

    def add_condition(
        self,
        condition: Condition,
        source: str = "",
        duration_rounds: Optional[int] = None,
    ) -> None:
        self.conditions.append(
            ActiveCondition(condition=condition, source=source, duration_rounds=duration_rounds)
        )

    def remove_condition(self, condition: Condition) -> None:
        """Remove every instance of the condition."""
        self.conditions = [c for c in self.conditions if c.condition != condition]

    def is_immobilized(self) -> bool:
        return any(c.condition in IMMOBILIZING_CONDITIONS for c in self.conditions)

    # Features

    def find_feature(self, name: str) -> Optional[Feature]:
        for feature in self.features:
            if feature.name == name:
                return feature
        return None

    def has_feature(self, name: str) -> bool:
        return self.find_feature(name) is not None


# =============================================================================
# COMBAT
# =============================================================================


@dataclass
class Combatant:
    """A participant in combat."""
    id: str
    name: str
    initiative: int = 0
    is_player: bool = False
    is_ally: bool = False
    current_hp: int = 0
    max_hp: int = 0
    armor_class: int = 10

    def is_alive(self) -> bool:
        return self.current_hp > 0


@dataclass
class CombatState:
    """
    Initiative order and round tracking for one combat.

    The roster is kept sorted by initiative, highest first; ties keep
    insertion order.
    """
    combatants: list[Combatant] = field(default_factory=list)
    turn_index: int = 0
    round: int = 1
    sneak_attack_used: set[str] = field(default_factory=set)

    def add_combatant(self, combatant: Combatant) -> None:
        position = len(self.combatants)
        for i, existing in enumerate(self.combatants):
            if combatant.initiative > existing.initiative:
                position = i
                break
        self.combatants.insert(position, combatant)

    def next_turn(self) -> None:
        """Advance the turn pointer, wrapping into a new round."""
        if not self.combatants:
            self.round += 1
            self.sneak_attack_used.clear()
            return
        self.turn_index += 1
        if self.turn_index >= len(self.combatants):
            self.turn_index = 0
            self.round += 1
            self.sneak_attack_used.clear()

    def current_combatant(self) -> Optional[Combatant]:
        if 0 <= self.turn_index < len(self.combatants):
            return self.combatants[self.turn_index]
        return None

    def find_combatant(self, name: str) -> Optional[Combatant]:
        return find_by_name(self.combatants, name)

    def find_by_id(self, combatant_id: str) -> Optional[Combatant]:
        for combatant in self.combatants:
            if combatant.id == combatant_id:
                return combatant
        return None

    def update_hp(self, combatant_id: str, current_hp: int) -> None:
        combatant = self.find_by_id(combatant_id)
        if combatant:
            combatant.current_hp = current_hp

    def clone(self) -> "CombatState":
        return copy.deepcopy(self)


# =============================================================================
# WORLD ENTITIES
# =============================================================================


@dataclass
class NPC:
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: str = ""
    personality: str = ""
    occupation: Optional[str] = None
    disposition: Disposition = Disposition.NEUTRAL
    location_id: Optional[str] = None
    known_information: list[str] = field(default_factory=list)


@dataclass
class Location:
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    location_type: LocationType = LocationType.OTHER
    description: str = ""
    connections: list["LocationConnection"] = field(default_factory=list)
    npcs_present: list[str] = field(default_factory=list)
    items: list[str] = field(default_factory=list)
    parent: Optional[str] = None


@dataclass
class LocationConnection:
    destination_id: str
    destination_name: str
    direction: Optional[str] = None
    travel_time_minutes: Optional[int] = None


@dataclass
class QuestObjective:
    description: str
    completed: bool = False
    optional: bool = False


@dataclass
class Quest:
    name: str
    description: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: QuestStatus = QuestStatus.ACTIVE
    objectives: list[QuestObjective] = field(default_factory=list)
    rewards: list[str] = field(default_factory=list)
    giver: Optional[str] = None


MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24
DAYS_PER_MONTH = 30
MONTHS_PER_YEAR = 12


@dataclass
class GameTime:
    """In-world calendar: twelve months of thirty days."""
    year: int = 1492
    month: int = 1
    day: int = 1
    hour: int = 8
    minute: int = 0

    def advance_minutes(self, minutes: int) -> None:
        total = self.minute + minutes
        self.minute = total % MINUTES_PER_HOUR
        hours = self.hour + total // MINUTES_PER_HOUR
        self.hour = hours % HOURS_PER_DAY
        days = (self.day - 1) + hours // HOURS_PER_DAY
        self.day = days % DAYS_PER_MONTH + 1
        months = (self.month - 1) + days // DAYS_PER_MONTH
        self.month = months % MONTHS_PER_YEAR + 1
        self.year += months // MONTHS_PER_YEAR

    def advance_hours(self, hours: int) -> None:
        self.advance_minutes(hours * MINUTES_PER_HOUR)

    def is_daytime(self) -> bool:
        return 6 <= self.hour < 20

    def __str__(self) -> str:
        return f"Day {self.day} of Month {self.month}, Year {self.year} {self.hour:02d}:{self.minute:02d}"


# =============================================================================
# GAME WORLD
# =============================================================================


@dataclass
class GameWorld:
    """Everything the kernel reads during resolve and writes during apply."""
    player_character: Character
    campaign_name: str = "Untitled Campaign"
    combat: Optional[CombatState] = None
    mode: GameMode = GameMode.EXPLORATION
    npcs: dict[str, NPC] = field(default_factory=dict)
    known_locations: dict[str, Location] = field(default_factory=dict)
    current_location: Location = field(
        default_factory=lambda: Location(name="Starting Location", location_type=LocationType.TOWN)
    )
    quests: list[Quest] = field(default_factory=list)
    game_time: GameTime = field(default_factory=GameTime)

    # Lookups

    def find_npc(self, name: str) -> Optional[NPC]:
        return find_by_name(self.npcs.values(), name)

    def find_location(self, name: str) -> Optional[Location]:
        """Known locations first, then the current location."""
        found = find_by_name(self.known_locations.values(), name)
        if found is None and normalize_name(self.current_location.name) == normalize_name(name):
            return self.current_location
        return found

    def find_quest(self, name: str) -> Optional[Quest]:
        return find_by_name(self.quests, name)

    def location_name(self, location_id: Optional[str]) -> Optional[str]:
        if location_id is None:
            return None
        if location_id == self.current_location.id:
            return self.current_location.name
        location = self.known_locations.get(location_id)
        return location.name if location else None

    def in_combat(self) -> bool:
        return self.combat is not None

    # Combat lifecycle

    def start_combat(self) -> CombatState:
        self.mode = GameMode.COMBAT
        self.combat = CombatState()
        return self.combat

    def end_combat(self) -> None:
        self.combat = None
        self.mode = GameMode.EXPLORATION

    # Rests

    def short_rest(self) -> None:
        """Recover short-rest class resources and feature uses."""
        character = self.player_character
        for entry in character.classes:
            character.class_resources.short_rest_recovery(entry.character_class, entry.level)
            if entry.character_class == CharacterClass.WARLOCK and character.spellcasting:
                character.spellcasting.spell_slots.recover_all()
        for feature in character.features:
            if feature.uses and feature.uses.recharge == RechargeType.SHORT_REST:
                feature.uses.current = feature.uses.maximum
        logger.debug(f"{character.name} completed a short rest")

    def long_rest(self) -> None:
        """Full recovery: HP, half hit dice, spell slots, all feature uses."""
        character = self.player_character
        character.hit_points.current = character.hit_points.maximum
        character.hit_points.temporary = 0
        character.death_saves.reset()
        character.remove_condition(Condition.UNCONSCIOUS)
        character.hit_dice.recover_half()
        if character.spellcasting:
            character.spellcasting.spell_slots.recover_all()
        for entry in character.classes:
            character.class_resources.long_rest_recovery(entry.character_class, entry.level)
        for feature in character.features:
            if feature.uses and feature.uses.recharge != RechargeType.NEVER:
                feature.uses.current = feature.uses.maximum
        logger.debug(f"{character.name} completed a long rest")
