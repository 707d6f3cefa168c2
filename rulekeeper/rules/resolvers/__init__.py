"""
Resolver mixins, one per rules area. RulesEngine combines them.
"""

from rulekeeper.rules.resolvers.checks import CheckResolverMixin
from rulekeeper.rules.resolvers.class_features import ClassFeatureResolverMixin
from rulekeeper.rules.resolvers.combat import CombatResolverMixin
from rulekeeper.rules.resolvers.inventory import InventoryResolverMixin
from rulekeeper.rules.resolvers.progression import ProgressionResolverMixin
from rulekeeper.rules.resolvers.quests import QuestResolverMixin
from rulekeeper.rules.resolvers.spells import SpellResolverMixin
from rulekeeper.rules.resolvers.world_building import WorldBuildingResolverMixin

__all__ = [
    "CheckResolverMixin",
    "ClassFeatureResolverMixin",
    "CombatResolverMixin",
    "InventoryResolverMixin",
    "ProgressionResolverMixin",
    "QuestResolverMixin",
    "SpellResolverMixin",
    "WorldBuildingResolverMixin",
]
