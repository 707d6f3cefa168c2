"""
Intents: immutable requests for a character or the world to do something.

Every intent is a frozen dataclass subclassing Intent. Each subclass gets a
snake_case ``kind`` derived from its class name; the rules engine dispatches
on it to a ``_resolve_<kind>`` handler.

Character ids default to None, which means the player character.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional

from rulekeeper.data_models import Ability, Condition, DamageType, Skill
from rulekeeper.dice.dice_roller import Advantage
from rulekeeper.rules.types import CombatantInit, StateType, kind_for


@dataclass(frozen=True)
class Intent:
    """Base class for all intents."""
    kind: ClassVar[str] = "intent"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.kind = kind_for(cls.__name__)


@dataclass(frozen=True)
class QuestObjectiveSpec:
    description: str
    optional: bool = False


# =============================================================================
# COMBAT
# =============================================================================


@dataclass(frozen=True)
class Attack(Intent):
    weapon_name: str = ""
    target_id: Optional[str] = None
    advantage: Advantage = Advantage.NORMAL
    attacker_id: Optional[str] = None


@dataclass(frozen=True)
class Damage(Intent):
    amount: int
    damage_type: DamageType = DamageType.BLUDGEONING
    source: str = ""
    target_id: Optional[str] = None


@dataclass(frozen=True)
class Heal(Intent):
    amount: int
    source: str = ""
    target_id: Optional[str] = None


@dataclass(frozen=True)
class ApplyCondition(Intent):
    condition: Condition
    source: str = ""
    duration_rounds: Optional[int] = None
    target_id: Optional[str] = None


@dataclass(frozen=True)
class RemoveCondition(Intent):
    condition: Condition
    target_id: Optional[str] = None


@dataclass(frozen=True)
class StartCombat(Intent):
    combatants: tuple[CombatantInit, ...] = ()


@dataclass(frozen=True)
class EndCombat(Intent):
    pass


@dataclass(frozen=True)
class NextTurn(Intent):
    pass


@dataclass(frozen=True)
class RollInitiative(Intent):
    name: str
    modifier: int = 0
    is_player: bool = False
    character_id: Optional[str] = None


@dataclass(frozen=True)
class DeathSave(Intent):
    character_id: Optional[str] = None


@dataclass(frozen=True)
class ConcentrationCheck(Intent):
    damage_taken: int
    spell_name: str
    character_id: Optional[str] = None


@dataclass(frozen=True)
class Move(Intent):
    destination: str
    distance_feet: int = 0
    character_id: Optional[str] = None


# =============================================================================
# CHECKS AND DICE
# =============================================================================


@dataclass(frozen=True)
class SkillCheck(Intent):
    skill: Skill
    dc: int
    advantage: Advantage = Advantage.NORMAL
    description: str = ""
    character_id: Optional[str] = None


@dataclass(frozen=True)
class AbilityCheck(Intent):
    ability: Ability
    dc: int
    advantage: Advantage = Advantage.NORMAL
    description: str = ""
    character_id: Optional[str] = None


@dataclass(frozen=True)
class SavingThrow(Intent):
    ability: Ability
    dc: int
    advantage: Advantage = Advantage.NORMAL
    source: str = ""
    character_id: Optional[str] = None


@dataclass(frozen=True)
class RollDice(Intent):
    notation: str
    purpose: str = ""


# =============================================================================
# SPELLS
# =============================================================================


@dataclass(frozen=True)
class CastSpell(Intent):
    spell_name: str
    spell_level: int = 0  # 0 = the spell's base level
    target_names: tuple[str, ...] = ()
    targets: tuple[str, ...] = ()
    caster_id: Optional[str] = None


@dataclass(frozen=True)
class RestoreSpellSlot(Intent):
    slot_level: int
    source: str = ""


# =============================================================================
# REST, TIME AND PROGRESSION
# =============================================================================


@dataclass(frozen=True)
class ShortRest(Intent):
    pass


@dataclass(frozen=True)
class LongRest(Intent):
    pass


@dataclass(frozen=True)
class AdvanceTime(Intent):
    minutes: int


@dataclass(frozen=True)
class GainExperience(Intent):
    amount: int


@dataclass(frozen=True)
class UseFeature(Intent):
    feature_name: str
    character_id: Optional[str] = None


@dataclass(frozen=True)
class ModifyAbilityScore(Intent):
    ability: Ability
    modifier: int
    source: str = ""
    duration: Optional[str] = None


# =============================================================================
# INVENTORY
# =============================================================================


@dataclass(frozen=True)
class AddItem(Intent):
    item_name: str
    quantity: int = 1
    item_type: Optional[str] = None
    description: Optional[str] = None
    magical: bool = False
    weight: Optional[float] = None
    value_gp: Optional[float] = None


@dataclass(frozen=True)
class RemoveItem(Intent):
    item_name: str
    quantity: int = 1


@dataclass(frozen=True)
class EquipItem(Intent):
    item_name: str


@dataclass(frozen=True)
class UnequipItem(Intent):
    slot: str


@dataclass(frozen=True)
class UseItem(Intent):
    item_name: str
    target_id: Optional[str] = None


@dataclass(frozen=True)
class AdjustGold(Intent):
    amount: int
    reason: str = ""


@dataclass(frozen=True)
class AdjustSilver(Intent):
    amount: int
    reason: str = ""


# =============================================================================
# CLASS FEATURES
# =============================================================================


@dataclass(frozen=True)
class UseRage(Intent):
    character_id: Optional[str] = None


@dataclass(frozen=True)
class EndRage(Intent):
    reason: str = "voluntary"
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseKi(Intent):
    points: int
    ability: str
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseLayOnHands(Intent):
    target_name: str
    hp_amount: int = 0
    cure_disease: bool = False
    neutralize_poison: bool = False
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseDivineSmite(Intent):
    spell_slot_level: int = 1
    target_is_undead_or_fiend: bool = False
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseWildShape(Intent):
    beast_form: str
    beast_hp: int
    beast_ac: Optional[int] = None
    character_id: Optional[str] = None


@dataclass(frozen=True)
class EndWildShape(Intent):
    reason: str = "voluntary"
    excess_damage: int = 0
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseChannelDivinity(Intent):
    option: str
    targets: tuple[str, ...] = ()
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseBardicInspiration(Intent):
    target_name: str
    die_size: str = ""
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseActionSurge(Intent):
    action_taken: str = ""
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseSecondWind(Intent):
    character_id: Optional[str] = None


@dataclass(frozen=True)
class UseSorceryPoints(Intent):
    points: int
    metamagic: str
    spell_name: Optional[str] = None
    slot_level: Optional[int] = None
    character_id: Optional[str] = None


# =============================================================================
# MEMORY AND CONSEQUENCES
# =============================================================================


@dataclass(frozen=True)
class RememberFact(Intent):
    subject_name: str
    subject_type: str
    fact: str
    category: str = ""
    related_entities: tuple[str, ...] = ()
    importance: float = 0.5


@dataclass(frozen=True)
class ChangeLocation(Intent):
    new_location: str
    location_type: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class RegisterConsequence(Intent):
    trigger_description: str
    consequence_description: str
    severity: str = "moderate"
    related_entities: tuple[str, ...] = ()
    importance: float = 0.5
    expires_in_turns: Optional[int] = None


# =============================================================================
# QUESTS
# =============================================================================


@dataclass(frozen=True)
class CreateQuest(Intent):
    name: str
    description: str = ""
    giver: Optional[str] = None
    objectives: tuple[QuestObjectiveSpec, ...] = ()
    rewards: tuple[str, ...] = ()


@dataclass(frozen=True)
class AddQuestObjective(Intent):
    quest_name: str
    objective: str
    optional: bool = False


@dataclass(frozen=True)
class CompleteObjective(Intent):
    quest_name: str
    objective_description: str


@dataclass(frozen=True)
class CompleteQuest(Intent):
    quest_name: str
    completion_note: Optional[str] = None


@dataclass(frozen=True)
class FailQuest(Intent):
    quest_name: str
    failure_reason: str = ""


@dataclass(frozen=True)
class UpdateQuest(Intent):
    quest_name: str
    new_description: Optional[str] = None
    add_rewards: tuple[str, ...] = ()


# =============================================================================
# WORLD BUILDING
# =============================================================================


@dataclass(frozen=True)
class CreateNpc(Intent):
    name: str
    description: str = ""
    personality: str = ""
    occupation: Optional[str] = None
    disposition: str = "neutral"
    location: Optional[str] = None
    known_information: tuple[str, ...] = ()


@dataclass(frozen=True)
class UpdateNpc(Intent):
    npc_name: str
    disposition: Optional[str] = None
    add_information: tuple[str, ...] = ()
    new_description: Optional[str] = None
    new_personality: Optional[str] = None


@dataclass(frozen=True)
class MoveNpc(Intent):
    npc_name: str
    destination: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class RemoveNpc(Intent):
    npc_name: str
    reason: str = ""
    permanent: bool = False


@dataclass(frozen=True)
class CreateLocation(Intent):
    name: str
    location_type: str = "other"
    description: str = ""
    parent_location: Optional[str] = None
    items: tuple[str, ...] = ()
    npcs_present: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConnectLocations(Intent):
    from_location: str
    to_location: str
    direction: Optional[str] = None
    travel_time_minutes: Optional[int] = None
    bidirectional: bool = True


@dataclass(frozen=True)
class UpdateLocation(Intent):
    location_name: str
    new_description: Optional[str] = None
    add_items: tuple[str, ...] = ()
    remove_items: tuple[str, ...] = ()
    add_npcs: tuple[str, ...] = ()
    remove_npcs: tuple[str, ...] = ()


@dataclass(frozen=True)
class AssertState(Intent):
    entity_name: str
    state_type: StateType
    new_value: str
    reason: str = ""
    target_entity: Optional[str] = None


@dataclass(frozen=True)
class ShareKnowledge(Intent):
    knowing_entity: str
    content: str
    source: str = ""
    verification: str = "unverified"
    context: Optional[str] = None


@dataclass(frozen=True)
class ScheduleEvent(Intent):
    description: str
    minutes: Optional[int] = None
    hours: Optional[int] = None
    day: Optional[int] = None
    month: Optional[int] = None
    year: Optional[int] = None
    hour: Optional[int] = None
    daily_hour: Optional[int] = None
    daily_minute: Optional[int] = None
    location: Optional[str] = None
    involved_entities: tuple[str, ...] = ()
    visibility: str = "public"
    repeating: bool = False


@dataclass(frozen=True)
class CancelEvent(Intent):
    event_description: str
    reason: str = ""


def all_intent_types() -> list[type[Intent]]:
    return list(Intent.__subclasses__())
