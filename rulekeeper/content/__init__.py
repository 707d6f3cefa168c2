"""
Static content: the spell registry and the item catalog.
"""

from rulekeeper.content.spell_registry import (
    DamageScaling,
    SpellAttackType,
    SpellData,
    SpellRegistry,
    get_spell,
    get_spell_registry,
    reset_spell_registry,
)
from rulekeeper.content.item_catalog import (
    ItemCatalog,
    PotionData,
    ScrollData,
    get_item_catalog,
    reset_item_catalog,
)

__all__ = [
    "DamageScaling",
    "SpellAttackType",
    "SpellData",
    "SpellRegistry",
    "get_spell",
    "get_spell_registry",
    "reset_spell_registry",
    "ItemCatalog",
    "PotionData",
    "ScrollData",
    "get_item_catalog",
    "reset_item_catalog",
]
