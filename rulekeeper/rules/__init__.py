"""
Intent/Effect rules pipeline.

Build an Intent, resolve it into a Resolution (narrative plus ordered
effects) without touching the world, then commit the effects:

    resolution = resolve(world, Attack(target_id="goblin-1"))
    apply_effects(world, resolution.effects)
"""

from rulekeeper.rules.effect_applier import EffectApplier, apply_effect, apply_effects
from rulekeeper.rules.effects import Effect, all_effect_types
from rulekeeper.rules.engine import RulesEngine, get_rules_engine, resolve
from rulekeeper.rules.intents import Intent, all_intent_types
from rulekeeper.rules.serialization import (
    effect_from_dict,
    effect_to_dict,
    intent_from_dict,
    intent_to_dict,
    resolution_to_dict,
    roll_result_from_dict,
    roll_result_to_dict,
)
from rulekeeper.rules.types import (
    CombatantInit,
    Resolution,
    RestType,
    StateType,
    UnhandledVariantError,
)

__all__ = [
    "EffectApplier",
    "apply_effect",
    "apply_effects",
    "Effect",
    "all_effect_types",
    "RulesEngine",
    "get_rules_engine",
    "resolve",
    "Intent",
    "all_intent_types",
    "effect_from_dict",
    "effect_to_dict",
    "intent_from_dict",
    "intent_to_dict",
    "resolution_to_dict",
    "roll_result_from_dict",
    "roll_result_to_dict",
    "CombatantInit",
    "Resolution",
    "RestType",
    "StateType",
    "UnhandledVariantError",
]
