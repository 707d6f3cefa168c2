"""
Effects: atomic, ordered state-deltas produced by resolving an intent.

Every effect is a frozen dataclass subclassing Effect, with a snake_case
``kind`` used by the effect applier to find its ``_apply_<kind>`` handler.
Some effects only narrate (DiceRolled, AttackHit, ...) and apply as no-ops.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional

from rulekeeper.data_models import Ability, Condition
from rulekeeper.dice.dice_roller import RollResult
from rulekeeper.rules.intents import QuestObjectiveSpec
from rulekeeper.rules.types import RestType, StateType, kind_for


@dataclass(frozen=True)
class Effect:
    """Base class for all effects."""
    kind: ClassVar[str] = "effect"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.kind = kind_for(cls.__name__)


# =============================================================================
# DICE AND CHECKS
# =============================================================================


@dataclass(frozen=True)
class DiceRolled(Effect):
    roll: RollResult
    purpose: str = ""


@dataclass(frozen=True)
class CheckSucceeded(Effect):
    check_type: str
    roll: int
    dc: int


@dataclass(frozen=True)
class CheckFailed(Effect):
    check_type: str
    roll: int
    dc: int


# =============================================================================
# COMBAT
# =============================================================================


@dataclass(frozen=True)
class AttackHit(Effect):
    attacker_name: str
    target_name: str
    attack_roll: int
    target_ac: int
    is_critical: bool = False


@dataclass(frozen=True)
class AttackMissed(Effect):
    attacker_name: str
    target_name: str
    attack_roll: int
    target_ac: int


@dataclass(frozen=True)
class SneakAttackUsed(Effect):
    character_id: str
    damage_dice: int


@dataclass(frozen=True)
class CombatStarted(Effect):
    pass


@dataclass(frozen=True)
class CombatEnded(Effect):
    pass


@dataclass(frozen=True)
class TurnAdvanced(Effect):
    round: int
    current_combatant: str


@dataclass(frozen=True)
class InitiativeRolled(Effect):
    character_id: str
    name: str
    roll: int
    total: int


@dataclass(frozen=True)
class CombatantAdded(Effect):
    id: str
    name: str
    initiative: int
    is_ally: bool = False
    current_hp: int = 0
    max_hp: int = 0
    armor_class: int = 10


@dataclass(frozen=True)
class Moved(Effect):
    character_id: str
    destination: str
    distance_feet: int


# =============================================================================
# HEALTH AND CONDITIONS
# =============================================================================


@dataclass(frozen=True)
class HpChanged(Effect):
    target_id: str
    amount: int
    new_current: int
    new_max: int
    dropped_to_zero: bool = False


@dataclass(frozen=True)
class ConditionApplied(Effect):
    target_id: str
    condition: Condition
    source: str = ""
    duration_rounds: Optional[int] = None


@dataclass(frozen=True)
class ConditionRemoved(Effect):
    target_id: str
    condition: Condition


@dataclass(frozen=True)
class AcChanged(Effect):
    new_ac: int
    source: str = ""


@dataclass(frozen=True)
class DeathSaveFailure(Effect):
    target_id: str
    failures: int
    total_failures: int
    source: str = ""


@dataclass(frozen=True)
class DeathSaveSuccess(Effect):
    target_id: str
    roll: int
    total_successes: int


@dataclass(frozen=True)
class DeathSavesReset(Effect):
    target_id: str


@dataclass(frozen=True)
class Stabilized(Effect):
    target_id: str


@dataclass(frozen=True)
class CharacterDied(Effect):
    target_id: str
    cause: str = ""


@dataclass(frozen=True)
class ConcentrationBroken(Effect):
    character_id: str
    spell_name: str
    damage_taken: int
    roll: int
    dc: int


@dataclass(frozen=True)
class ConcentrationMaintained(Effect):
    character_id: str
    spell_name: str
    roll: int
    dc: int


# =============================================================================
# TIME, REST AND PROGRESSION
# =============================================================================


@dataclass(frozen=True)
class TimeAdvanced(Effect):
    minutes: int


@dataclass(frozen=True)
class RestCompleted(Effect):
    rest_type: RestType


@dataclass(frozen=True)
class ExperienceGained(Effect):
    amount: int
    new_total: int


@dataclass(frozen=True)
class LevelUp(Effect):
    new_level: int


@dataclass(frozen=True)
class FeatureUsed(Effect):
    feature_name: str
    uses_remaining: int


@dataclass(frozen=True)
class AbilityScoreModified(Effect):
    ability: Ability
    modifier: int
    source: str = ""


# =============================================================================
# SPELL SLOTS
# =============================================================================


@dataclass(frozen=True)
class SpellSlotUsed(Effect):
    level: int
    remaining: int


@dataclass(frozen=True)
class SpellSlotRestored(Effect):
    level: int
    new_remaining: int


# =============================================================================
# CLASS RESOURCES
# =============================================================================


@dataclass(frozen=True)
class ClassResourceUsed(Effect):
    character_name: str
    resource_name: str
    description: str = ""


@dataclass(frozen=True)
class RageStarted(Effect):
    character_id: str
    damage_bonus: int


@dataclass(frozen=True)
class RageEnded(Effect):
    character_id: str
    reason: str = ""


@dataclass(frozen=True)
class KiPointsSpent(Effect):
    character_id: str
    points: int
    remaining: int


@dataclass(frozen=True)
class LayOnHandsSpent(Effect):
    character_id: str
    amount: int
    remaining: int


@dataclass(frozen=True)
class SorceryPointsChanged(Effect):
    character_id: str
    amount: int
    new_total: int


@dataclass(frozen=True)
class WildShapeStarted(Effect):
    character_id: str
    beast_form: str
    beast_hp: int


@dataclass(frozen=True)
class WildShapeEnded(Effect):
    character_id: str
    reason: str = ""


@dataclass(frozen=True)
class ActionSurgeUsed(Effect):
    character_id: str


@dataclass(frozen=True)
class SecondWindUsed(Effect):
    character_id: str
    healing: int


# =============================================================================
# INVENTORY
# =============================================================================


@dataclass(frozen=True)
class ItemAdded(Effect):
    item_name: str
    quantity: int
    new_total: int
    item_type: Optional[str] = None
    description: Optional[str] = None
    magical: bool = False
    weight: Optional[float] = None
    value_gp: Optional[float] = None


@dataclass(frozen=True)
class ItemRemoved(Effect):
    item_name: str
    quantity: int
    remaining: int


@dataclass(frozen=True)
class ItemEquipped(Effect):
    item_name: str
    slot: str


@dataclass(frozen=True)
class ItemUnequipped(Effect):
    item_name: str
    slot: str


@dataclass(frozen=True)
class ItemUsed(Effect):
    item_name: str
    result: str = ""


@dataclass(frozen=True)
class GoldChanged(Effect):
    amount: int
    new_total: int
    reason: str = ""


@dataclass(frozen=True)
class SilverChanged(Effect):
    amount: int
    new_total: int
    reason: str = ""


# =============================================================================
# MEMORY, LOCATION AND CONSEQUENCES
# =============================================================================


@dataclass(frozen=True)
class FactRemembered(Effect):
    subject_name: str
    subject_type: str
    fact: str
    category: str = ""
    related_entities: tuple[str, ...] = ()
    importance: float = 0.5


@dataclass(frozen=True)
class LocationChanged(Effect):
    previous_location: str
    new_location: str


@dataclass(frozen=True)
class ConsequenceRegistered(Effect):
    consequence_id: str
    trigger_description: str
    consequence_description: str
    severity: str = "moderate"


@dataclass(frozen=True)
class ConsequenceTriggered(Effect):
    consequence_id: str
    consequence_description: str


# =============================================================================
# QUESTS
# =============================================================================


@dataclass(frozen=True)
class QuestCreated(Effect):
    name: str
    description: str = ""
    giver: Optional[str] = None
    objectives: tuple[QuestObjectiveSpec, ...] = ()
    rewards: tuple[str, ...] = ()


@dataclass(frozen=True)
class QuestObjectiveAdded(Effect):
    quest_name: str
    objective: str
    optional: bool = False


@dataclass(frozen=True)
class QuestObjectiveCompleted(Effect):
    quest_name: str
    objective_description: str


@dataclass(frozen=True)
class QuestCompleted(Effect):
    quest_name: str
    completion_note: Optional[str] = None


@dataclass(frozen=True)
class QuestFailed(Effect):
    quest_name: str
    failure_reason: str = ""


@dataclass(frozen=True)
class QuestUpdated(Effect):
    quest_name: str
    new_description: Optional[str] = None
    add_rewards: tuple[str, ...] = ()


# =============================================================================
# WORLD BUILDING
# =============================================================================


@dataclass(frozen=True)
class NpcCreated(Effect):
    name: str
    description: str = ""
    personality: str = ""
    occupation: Optional[str] = None
    disposition: str = "neutral"
    location: Optional[str] = None
    known_information: tuple[str, ...] = ()


@dataclass(frozen=True)
class NpcUpdated(Effect):
    npc_name: str
    changes: str


@dataclass(frozen=True)
class NpcMoved(Effect):
    npc_name: str
    to_location: str
    from_location: Optional[str] = None


@dataclass(frozen=True)
class NpcRemoved(Effect):
    npc_name: str
    reason: str = ""
    permanent: bool = False


@dataclass(frozen=True)
class LocationCreated(Effect):
    name: str
    location_type: str
    description: str = ""
    parent_location: Optional[str] = None
    items: tuple[str, ...] = ()
    npcs_present: tuple[str, ...] = ()


@dataclass(frozen=True)
class LocationsConnected(Effect):
    from_location: str
    to_location: str
    direction: Optional[str] = None
    travel_time_minutes: Optional[int] = None
    bidirectional: bool = True


@dataclass(frozen=True)
class LocationUpdated(Effect):
    location_name: str
    changes: str


@dataclass(frozen=True)
class StateAsserted(Effect):
    entity_name: str
    state_type: StateType
    new_value: str
    old_value: Optional[str] = None
    reason: str = ""
    target_entity: Optional[str] = None


@dataclass(frozen=True)
class KnowledgeShared(Effect):
    knowing_entity: str
    content: str
    source: str = ""
    verification: str = "unverified"
    context: Optional[str] = None


# =============================================================================
# SCHEDULED EVENTS
# =============================================================================


@dataclass(frozen=True)
class EventScheduled(Effect):
    description: str
    trigger_description: str
    location: Optional[str] = None
    visibility: str = "public"


@dataclass(frozen=True)
class EventCancelled(Effect):
    description: str
    reason: str = ""


@dataclass(frozen=True)
class EventTriggered(Effect):
    description: str
    location: Optional[str] = None


def all_effect_types() -> list[type[Effect]]:
    return list(Effect.__subclasses__())
