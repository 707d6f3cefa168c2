"""
Spell registry for the rules kernel.

Loads spell definitions from the bundled JSON file and answers lookups by
name (case-insensitive), level or class.

Usage:
    registry = get_spell_registry()
    fireball = registry.get_by_name("fireball")
    dice = fireball.effective_damage_dice(caster_level=5, slot_level=4)  # "8d6 + 1d6"
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional
import json
import logging

from rulekeeper.data_models import Ability, CharacterClass, DamageType
from rulekeeper.name_index import NameIndex

logger = logging.getLogger(__name__)

DEFAULT_SPELL_FILE = Path(__file__).parent / "data" / "spells.json"


class DamageScaling(str, Enum):
    """How a spell's dice grow."""
    NONE = "none"
    CANTRIP = "cantrip"  # More dice at caster levels 5, 11 and 17
    PER_SLOT = "per_slot"  # extra_dice per slot level above base


class SpellAttackType(str, Enum):
    MELEE = "melee"
    RANGED = "ranged"


@dataclass
class SpellData:
    """Static definition of a spell."""
    name: str
    level: int
    school: str = ""
    casting_time: str = "1 action"
    range: str = ""
    duration: str = "Instantaneous"
    concentration: bool = False
    ritual: bool = False
    description: str = ""
    damage_dice: Optional[str] = None
    damage_type: Optional[DamageType] = None
    damage_scaling: DamageScaling = DamageScaling.NONE
    extra_dice: Optional[str] = None
    healing_dice: Optional[str] = None
    save_type: Optional[Ability] = None
    save_effect: Optional[str] = None
    attack_type: Optional[SpellAttackType] = None
    classes: list[CharacterClass] = field(default_factory=list)

    def is_cantrip(self) -> bool:
        return self.level == 0

    @staticmethod
    def cantrip_dice_count(caster_level: int) -> int:
        if caster_level >= 17:
            return 4
        elif caster_level >= 11:
            return 3
        elif caster_level >= 5:
            return 2
        return 1

    def effective_damage_dice(self, caster_level: int, slot_level: int) -> Optional[str]:
        """
        Damage notation after cantrip scaling or upcasting.

        Args:
            caster_level: Character level of the caster
            slot_level: Slot the spell is cast with (0 for cantrips)

        Returns:
            Dice notation, or None for spells that deal no damage
        """
        if not self.damage_dice:
            return None
        return self._scaled(self.damage_dice, caster_level, slot_level)

    def effective_healing_dice(self, slot_level: int) -> Optional[str]:
        """Healing notation after upcasting."""
        if not self.healing_dice:
            return None
        return self._scaled(self.healing_dice, 0, slot_level)

    def _scaled(self, base_dice: str, caster_level: int, slot_level: int) -> str:
        if self.damage_scaling == DamageScaling.CANTRIP:
            if "d" not in base_dice:
                return base_dice
            die = base_dice[base_dice.index("d"):]
            return f"{self.cantrip_dice_count(caster_level)}{die}"

        if self.damage_scaling == DamageScaling.PER_SLOT and self.extra_dice:
            extra_levels = slot_level - self.level
            if extra_levels <= 0 or "d" not in self.extra_dice:
                return base_dice
            d_pos = self.extra_dice.index("d")
            count_text = self.extra_dice[:d_pos]
            count = int(count_text) if count_text.isdigit() else 1
            return f"{base_dice} + {count * extra_levels}{self.extra_dice[d_pos:]}"

        return base_dice

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpellData":
        save_type = data.get("save_type")
        damage_type = data.get("damage_type")
        attack_type = data.get("attack_type")
        return cls(
            name=data["name"],
            level=data.get("level", 0),
            school=data.get("school", ""),
            casting_time=data.get("casting_time", "1 action"),
            range=data.get("range", ""),
            duration=data.get("duration", "Instantaneous"),
            concentration=data.get("concentration", False),
            ritual=data.get("ritual", False),
            description=data.get("description", ""),
            damage_dice=data.get("damage_dice"),
            damage_type=DamageType(damage_type) if damage_type else None,
            damage_scaling=DamageScaling(data.get("damage_scaling", "none")),
            extra_dice=data.get("extra_dice"),
            healing_dice=data.get("healing_dice"),
            save_type=Ability.parse(save_type) if save_type else None,
            save_effect=data.get("save_effect"),
            attack_type=SpellAttackType(attack_type) if attack_type else None,
            classes=[CharacterClass(c) for c in data.get("classes", [])],
        )


class SpellRegistry:
    """Name-indexed spell store."""

    def __init__(self):
        self._by_name: NameIndex[SpellData] = NameIndex()
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def spell_count(self) -> int:
        return len(self._by_name)

    def load(self, spell_file: Optional[Path] = None) -> int:
        """
        Load spells from a JSON file.

        Args:
            spell_file: Path to a {"spells": [...]} file. Defaults to the
                bundled spell list.

        Returns:
            Number of spells registered
        """
        path = Path(spell_file) if spell_file else DEFAULT_SPELL_FILE
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        for spell_data in data.get("spells", []):
            self.register(SpellData.from_dict(spell_data))

        self._loaded = True
        logger.info(f"Loaded {self.spell_count} spells into registry")
        return self.spell_count

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def register(self, spell: SpellData) -> None:
        if spell.name in self._by_name:
            logger.warning(f"Duplicate spell '{spell.name}' - overwriting")
        self._by_name.register(spell.name, spell)

    def get_by_name(self, name: str) -> Optional[SpellData]:
        self._ensure_loaded()
        return self._by_name.get(name)

    def get_by_level(self, level: int) -> list[SpellData]:
        self._ensure_loaded()
        return [s for s in self._by_name if s.level == level]

    def get_for_class(self, character_class: CharacterClass) -> list[SpellData]:
        self._ensure_loaded()
        return [s for s in self._by_name if character_class in s.classes]

    def get_all(self) -> list[SpellData]:
        self._ensure_loaded()
        return self._by_name.values()

    def clear(self) -> None:
        self._by_name.clear()
        self._loaded = False


# Singleton instance
_spell_registry: Optional[SpellRegistry] = None


def get_spell_registry() -> SpellRegistry:
    """Get the singleton SpellRegistry instance."""
    global _spell_registry
    if _spell_registry is None:
        _spell_registry = SpellRegistry()
    return _spell_registry


def reset_spell_registry() -> None:
    """Reset the singleton SpellRegistry instance."""
    global _spell_registry
    if _spell_registry:
        _spell_registry.clear()
    _spell_registry = None


def get_spell(name: str) -> Optional[SpellData]:
    """Look up a spell by name in the default registry."""
    return get_spell_registry().get_by_name(name)
