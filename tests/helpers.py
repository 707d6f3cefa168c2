"""
Test helpers for the Rulekeeper test suite.

Provides:
- FixedDice, a DiceRoller that returns scripted faces
- resolve_and_apply for running one intent end to end
- small effect-list queries
"""

import copy
from typing import Optional

from rulekeeper.data_models import GameWorld
from rulekeeper.dice.dice_roller import DiceExpression, DiceRoller
from rulekeeper.rules.effect_applier import apply_effects
from rulekeeper.rules.effects import Effect
from rulekeeper.rules.engine import RulesEngine
from rulekeeper.rules.intents import Intent
from rulekeeper.rules.types import Resolution


# =============================================================================
# SCRIPTED DICE
# =============================================================================


class FixedDice(DiceRoller):
    """
    DiceRoller that returns scripted die faces in order.

    Each die drawn consumes one face; advantage rolls consume two. Once the
    script runs out, faces come from the seeded RNG.

    Usage:
        dice = FixedDice(20, 6)     # natural 20 to hit, then a 6 for damage
        engine = RulesEngine(dice)
    """

    def __init__(self, *faces: int, seed: int = 0):
        super().__init__(seed=seed)
        self._faces = list(faces)

    def queue(self, *faces: int) -> "FixedDice":
        self._faces.extend(faces)
        return self

    @property
    def remaining_faces(self) -> list[int]:
        return list(self._faces)

    def _draw_faces(self, expr: DiceExpression, double_d20: bool) -> list[int]:
        drawn = []
        for group in expr.groups:
            repeat = 2 if double_d20 else group.count
            for _ in range(repeat):
                if self._faces:
                    drawn.append(self._faces.pop(0))
                else:
                    drawn.append(self._rng.randint(1, group.sides))
        return drawn


def fixed_engine(*faces: int) -> RulesEngine:
    """Engine whose dice show the given faces."""
    return RulesEngine(FixedDice(*faces))


# =============================================================================
# PIPELINE HELPERS
# =============================================================================


def resolve_and_apply(engine: RulesEngine, world: GameWorld, intent: Intent) -> Resolution:
    """Resolve an intent and commit its effects."""
    resolution = engine.resolve(world, intent)
    apply_effects(world, resolution.effects)
    return resolution


def snapshot(world: GameWorld) -> GameWorld:
    """Deep copy for before/after comparisons."""
    return copy.deepcopy(world)


def effect_names(resolution: Resolution) -> list[str]:
    return [type(e).__name__ for e in resolution.effects]


def find_effect(resolution: Resolution, effect_type: type) -> Optional[Effect]:
    """First effect of the given type, or None."""
    for effect in resolution.effects:
        if isinstance(effect, effect_type):
            return effect
    return None


def effects_of(resolution: Resolution, effect_type: type) -> list[Effect]:
    return [e for e in resolution.effects if isinstance(e, effect_type)]
