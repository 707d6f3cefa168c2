"""
Shared types for the Intent/Effect rules pipeline.

Resolution is what resolve() returns; the small enums and records here are
used by both intents and effects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional
import re

if TYPE_CHECKING:
    from rulekeeper.rules.effects import Effect

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def kind_for(class_name: str) -> str:
    """'CreateNpc' -> 'create_npc'."""
    return _CAMEL_BOUNDARY.sub("_", class_name).lower()


class UnhandledVariantError(TypeError):
    """An Intent or Effect type reached a dispatcher with no handler for it."""


class RestType(str, Enum):
    SHORT = "short"
    LONG = "long"


class StateType(str, Enum):
    """Kinds of declarative state assertions about world entities."""
    DISPOSITION = "disposition"
    LOCATION = "location"
    STATUS = "status"
    KNOWLEDGE = "knowledge"
    RELATIONSHIP = "relationship"

    @classmethod
    def parse(cls, text: str) -> Optional["StateType"]:
        try:
            return cls(text.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class CombatantInit:
    """A participant supplied to StartCombat."""
    id: str
    name: str
    is_player: bool = False
    is_ally: bool = False
    current_hp: int = 0
    max_hp: int = 0
    armor_class: int = 10
    initiative_modifier: int = 0


@dataclass
class Resolution:
    """
    The outcome of resolving one intent.

    effects is an ordered transaction log; an empty list with a narrative
    means the action was rejected or had no mechanical consequence.
    """
    narrative: str = ""
    effects: list["Effect"] = field(default_factory=list)

    def add(self, effect: "Effect") -> "Resolution":
        self.effects.append(effect)
        return self

    def extend(self, effects: Iterable["Effect"]) -> "Resolution":
        self.effects.extend(effects)
        return self

    def is_rejected(self) -> bool:
        return not self.effects

    def effect_types(self) -> list[str]:
        return [type(e).__name__ for e in self.effects]

    @classmethod
    def reject(cls, narrative: str) -> "Resolution":
        return cls(narrative=narrative)
