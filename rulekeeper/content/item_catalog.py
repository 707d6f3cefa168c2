"""
Item catalog for weapons, armor and consumables.

Loads item definitions from the bundled JSON files in content/data/. The
resolvers and the effect applier both query it by name; the applier does so
at application time so that equipment built from unknown names can fall
back to sensible defaults.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
import json
import logging

from rulekeeper.data_models import (
    Armor,
    ArmorType,
    DamageType,
    Item,
    ItemType,
    Weapon,
    WeaponProperty,
)
from rulekeeper.name_index import NameIndex

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"


@dataclass
class PotionData:
    name: str
    healing_dice: str = "2d4"
    healing_bonus: int = 2
    weight: float = 0.5
    value_gp: float = 50.0
    description: str = ""

    @property
    def healing_notation(self) -> str:
        return f"{self.healing_dice}+{self.healing_bonus}"


@dataclass
class ScrollData:
    name: str
    spell: str = ""
    weight: float = 0.0
    value_gp: float = 0.0


class ItemCatalog:
    """
    Catalog of weapons, armor, shields, potions, scrolls and gear.

    Directory layout:
        data/
            weapons.json      {"category": "weapons", "items": [...]}
            armor.json        {"category": "armor", "items": [...], "shields": [...]}
            consumables.json  {"potions": [...], "scrolls": [...], "gear": [...]}
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
        self._weapons: NameIndex[Weapon] = NameIndex()
        self._armor: NameIndex[Armor] = NameIndex()
        self._shields: NameIndex[Item] = NameIndex()
        self._potions: NameIndex[PotionData] = NameIndex()
        self._scrolls: NameIndex[ScrollData] = NameIndex()
        self._gear: NameIndex[Item] = NameIndex()
        self._loaded = False

    def load(self) -> None:
        """Load every catalog file."""
        if not self.data_dir.exists():
            logger.warning(f"Item data directory not found: {self.data_dir}")
            self._loaded = True
            return

        self._load_weapons(self._read("weapons.json"))
        self._load_armor(self._read("armor.json"))
        self._load_consumables(self._read("consumables.json"))

        self._loaded = True
        total = sum(
            len(index)
            for index in (self._weapons, self._armor, self._shields, self._potions, self._scrolls, self._gear)
        )
        logger.info(f"Loaded {total} items in 6 categories")

    def _read(self, filename: str) -> dict[str, Any]:
        path = self.data_dir / filename
        if not path.exists():
            logger.warning(f"Item file not found: {path}")
            return {}
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _load_weapons(self, data: dict[str, Any]) -> None:
        for entry in data.get("items", []):
            weapon = Weapon(
                name=entry["name"],
                damage_dice=entry.get("damage_dice", "1d4"),
                damage_type=DamageType(entry.get("damage_type", "bludgeoning")),
                properties=[WeaponProperty(p) for p in entry.get("properties", [])],
                ranged=entry.get("ranged", False),
                weight=entry.get("weight", 0),
                value_gp=entry.get("value_gp", 0),
            )
            self._weapons.register(weapon.name, weapon)

    def _load_armor(self, data: dict[str, Any]) -> None:
        for entry in data.get("items", []):
            armor = Armor(
                name=entry["name"],
                armor_type=ArmorType(entry.get("armor_type", "medium")),
                base_ac=entry.get("base_ac", 14),
                strength_requirement=entry.get("strength_requirement"),
                stealth_disadvantage=entry.get("stealth_disadvantage", False),
                weight=entry.get("weight", 0),
                value_gp=entry.get("value_gp", 0),
            )
            self._armor.register(armor.name, armor)
        for entry in data.get("shields", []):
            shield = Item(
                name=entry["name"],
                item_type=ItemType.SHIELD,
                weight=entry.get("weight", 0),
                value_gp=entry.get("value_gp", 0),
            )
            self._shields.register(shield.name, shield)

    def _load_consumables(self, data: dict[str, Any]) -> None:
        for entry in data.get("potions", []):
            potion = PotionData(
                name=entry["name"],
                healing_dice=entry.get("healing_dice", "2d4"),
                healing_bonus=entry.get("healing_bonus", 2),
                weight=entry.get("weight", 0.5),
                value_gp=entry.get("value_gp", 50),
                description=entry.get("description", ""),
            )
            self._potions.register(potion.name, potion)
        for entry in data.get("scrolls", []):
            scroll = ScrollData(
                name=entry["name"],
                spell=entry.get("spell", ""),
                weight=entry.get("weight", 0),
                value_gp=entry.get("value_gp", 0),
            )
            self._scrolls.register(scroll.name, scroll)
        for entry in data.get("gear", []):
            gear = Item(
                name=entry["name"],
                item_type=ItemType.parse(entry.get("item_type", "gear")),
                weight=entry.get("weight", 0),
                value_gp=entry.get("value_gp", 0),
            )
            self._gear.register(gear.name, gear)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_weapon(self, name: str) -> Optional[Weapon]:
        self._ensure_loaded()
        return self._weapons.get(name)

    def get_armor(self, name: str) -> Optional[Armor]:
        self._ensure_loaded()
        return self._armor.get(name)

    def get_shield(self, name: str) -> Optional[Item]:
        self._ensure_loaded()
        return self._shields.get(name)

    def get_potion(self, name: str) -> Optional[PotionData]:
        self._ensure_loaded()
        return self._potions.get(name)

    def get_scroll(self, name: str) -> Optional[ScrollData]:
        self._ensure_loaded()
        return self._scrolls.get(name)

    def find_item(self, name: str, quantity: int = 1) -> Optional[Item]:
        """
        Build an inventory Item for any catalog entry.

        Args:
            name: Item name (case-insensitive)
            quantity: Stack size for the new item

        Returns:
            A fresh Item, or None if the name is not in the catalog
        """
        self._ensure_loaded()
        weapon = self._weapons.get(name)
        if weapon:
            return Item(name=weapon.name, item_type=ItemType.WEAPON, quantity=quantity,
                        weight=weapon.weight, value_gp=weapon.value_gp)
        armor = self._armor.get(name)
        if armor:
            return Item(name=armor.name, item_type=ItemType.ARMOR, quantity=quantity,
                        weight=armor.weight, value_gp=armor.value_gp)
        shield = self._shields.get(name)
        if shield:
            return Item(name=shield.name, item_type=ItemType.SHIELD, quantity=quantity,
                        weight=shield.weight, value_gp=shield.value_gp)
        potion = self._potions.get(name)
        if potion:
            return Item(name=potion.name, item_type=ItemType.POTION, quantity=quantity,
                        weight=potion.weight, value_gp=potion.value_gp,
                        description=potion.description, magical=True)
        scroll = self._scrolls.get(name)
        if scroll:
            return Item(name=scroll.name, item_type=ItemType.SCROLL, quantity=quantity,
                        weight=scroll.weight, value_gp=scroll.value_gp,
                        description=f"A scroll bearing the spell {scroll.spell}.", magical=True)
        gear = self._gear.get(name)
        if gear:
            return Item(name=gear.name, item_type=gear.item_type, quantity=quantity,
                        weight=gear.weight, value_gp=gear.value_gp)
        return None

    def clear(self) -> None:
        for index in (self._weapons, self._armor, self._shields, self._potions, self._scrolls, self._gear):
            index.clear()
        self._loaded = False


# Singleton instance
_item_catalog: Optional[ItemCatalog] = None


def get_item_catalog() -> ItemCatalog:
    """Get the singleton ItemCatalog instance."""
    global _item_catalog
    if _item_catalog is None:
        _item_catalog = ItemCatalog()
    return _item_catalog


def reset_item_catalog() -> None:
    global _item_catalog
    if _item_catalog:
        _item_catalog.clear()
    _item_catalog = None
