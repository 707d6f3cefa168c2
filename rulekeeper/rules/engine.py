"""
Rules engine: resolves intents against a read-only world.

resolve() never mutates the world. It returns a Resolution whose effects
describe every state change; apply them with rulekeeper.rules.effect_applier.

Usage:
    engine = RulesEngine(DiceRoller(seed=42))
    resolution = engine.resolve(world, Attack(weapon_name="Longsword", target_id="goblin-1"))
    apply_effects(world, resolution.effects)
"""

import logging
from typing import Callable, Optional

from rulekeeper.data_models import GameWorld
from rulekeeper.dice.dice_roller import DiceRoller, get_dice_roller
from rulekeeper.observability.run_log import get_run_log
from rulekeeper.rules.intents import Intent
from rulekeeper.rules.resolvers import (
    CheckResolverMixin,
    ClassFeatureResolverMixin,
    CombatResolverMixin,
    InventoryResolverMixin,
    ProgressionResolverMixin,
    QuestResolverMixin,
    SpellResolverMixin,
    WorldBuildingResolverMixin,
)
from rulekeeper.rules.types import Resolution, UnhandledVariantError

logger = logging.getLogger(__name__)


class RulesEngine(
    CombatResolverMixin,
    CheckResolverMixin,
    SpellResolverMixin,
    ClassFeatureResolverMixin,
    InventoryResolverMixin,
    ProgressionResolverMixin,
    QuestResolverMixin,
    WorldBuildingResolverMixin,
):
    """
    Turns intents into narrated, effect-carrying resolutions.

    Each intent type has a ``_resolve_<kind>`` method; the engine owns a
    DiceRoller so separately seeded engines never share random state.
    """

    def __init__(self, dice: Optional[DiceRoller] = None):
        self.dice = dice if dice is not None else get_dice_roller()

    def resolve(self, world: GameWorld, intent: Intent) -> Resolution:
        """
        Resolve an intent.

        Args:
            world: Current world state (read only)
            intent: What is being attempted

        Returns:
            Resolution with a narrative and ordered effects. Rejected
            intents come back with no effects and an explanation.

        Raises:
            UnhandledVariantError: If no resolver exists for the intent type
        """
        handler = self._handler_for(intent)
        resolution = handler(world, intent)

        if resolution.is_rejected():
            logger.debug(f"{type(intent).__name__} rejected: {resolution.narrative}")
        else:
            logger.debug(f"{type(intent).__name__} resolved with {len(resolution.effects)} effects")

        get_run_log().log_resolution(
            intent_type=type(intent).__name__,
            narrative=resolution.narrative,
            effect_types=resolution.effect_types(),
        )
        return resolution

    def has_resolver(self, intent_type: type) -> bool:
        kind = getattr(intent_type, "kind", None)
        return kind is not None and callable(getattr(self, f"_resolve_{kind}", None))

    def _handler_for(self, intent: Intent) -> Callable[[GameWorld, Intent], Resolution]:
        handler = getattr(self, f"_resolve_{intent.kind}", None) if isinstance(intent, Intent) else None
        if handler is None:
            raise UnhandledVariantError(f"No resolver for intent type: {type(intent).__name__}")
        return handler


# Process default engine
_engine: Optional[RulesEngine] = None


def get_rules_engine() -> RulesEngine:
    """Get the process-wide default engine, built on the default DiceRoller."""
    global _engine
    if _engine is None:
        _engine = RulesEngine()
    return _engine


def resolve(world: GameWorld, intent: Intent) -> Resolution:
    """Resolve an intent with the default engine."""
    return get_rules_engine().resolve(world, intent)
