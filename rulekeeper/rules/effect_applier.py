"""
Effect application: the only code that mutates a GameWorld.

apply_effects() walks an effect list in order. Application never fails on
world-state conflicts: an effect whose target has vanished since resolution
is skipped and logged at DEBUG. Narration-only effects are explicit no-ops.
"""

from dataclasses import fields
from enum import Enum
from typing import Any, Callable, Iterable, Optional
import logging

from rulekeeper.classes.class_data import (
    hit_die_sides,
    rage_damage_bonus,
    rage_uses,
    spell_slots_at_level,
    spellcasting_ability,
)
from rulekeeper.content.item_catalog import get_item_catalog
from rulekeeper.data_models import (
    Ability,
    Armor,
    ArmorType,
    Character,
    CharacterClass,
    Combatant,
    Condition,
    DamageType,
    Disposition,
    GameWorld,
    Item,
    ItemType,
    Location,
    LocationConnection,
    LocationType,
    NPC,
    Quest,
    QuestObjective,
    QuestStatus,
    SpellcastingData,
    Weapon,
)
from rulekeeper.dice.dice_roller import RollResult
from rulekeeper.name_index import find_by_name, find_containing
from rulekeeper.observability.run_log import get_run_log
from rulekeeper.rules import effects as fx
from rulekeeper.rules.types import RestType, StateType, UnhandledVariantError

logger = logging.getLogger(__name__)

RAGE_DURATION_ROUNDS = 10
MIN_ABILITY_SCORE = 1
MAX_ABILITY_SCORE = 30
LAY_ON_HANDS_PER_LEVEL = 5


def _summary_value(value: Any) -> Any:
    if isinstance(value, RollResult):
        return value.total
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [_summary_value(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return {f.name: _summary_value(getattr(value, f.name)) for f in fields(value)}
    return value


def effect_summary(effect: fx.Effect) -> dict[str, Any]:
    """Flat, JSON-friendly view of an effect for the run log."""
    return {f.name: _summary_value(getattr(effect, f.name)) for f in fields(effect)}


class EffectApplier:
    """
    Applies effects to a world.

    Each effect type has an ``_apply_<kind>`` handler; a missing handler is
    a programming error and raises UnhandledVariantError.
    """

    def apply(self, world: GameWorld, effect: fx.Effect) -> None:
        handler = self._handler_for(effect)
        handler(world, effect)
        get_run_log().log_effect(type(effect).__name__, effect_summary(effect))

    def apply_all(self, world: GameWorld, effects: Iterable[fx.Effect]) -> GameWorld:
        for effect in effects:
            self.apply(world, effect)
        return world

    def has_handler(self, effect_type: type) -> bool:
        kind = getattr(effect_type, "kind", None)
        return kind is not None and callable(getattr(self, f"_apply_{kind}", None))

    def _handler_for(self, effect: fx.Effect) -> Callable[[GameWorld, fx.Effect], None]:
        handler = getattr(self, f"_apply_{effect.kind}", None) if isinstance(effect, fx.Effect) else None
        if handler is None:
            raise UnhandledVariantError(f"No handler for effect type: {type(effect).__name__}")
        return handler

    # =========================================================================
    # LOOKUP HELPERS
    # =========================================================================

    @staticmethod
    def _player_target(world: GameWorld, target_id: Optional[str]) -> Optional[Character]:
        character = world.player_character
        if target_id is None or target_id == character.id:
            return character
        return None

    @staticmethod
    def _combatant(world: GameWorld, target_id: str) -> Optional[Combatant]:
        if world.combat is None:
            return None
        return world.combat.find_by_id(target_id)

    @staticmethod
    def _find_npc(world: GameWorld, name: str) -> Optional[NPC]:
        npc = world.find_npc(name)
        if npc is None:
            logger.debug(f"NPC '{name}' not found; effect skipped")
        return npc

    @staticmethod
    def _find_quest(world: GameWorld, name: str) -> Optional[Quest]:
        quest = world.find_quest(name)
        if quest is None:
            logger.debug(f"Quest '{name}' not found; effect skipped")
        return quest

    # =========================================================================
    # NARRATION-ONLY EFFECTS
    # =========================================================================

    def _noop(self, world: GameWorld, effect: fx.Effect) -> None:
        pass

    _apply_dice_rolled = _noop
    _apply_check_succeeded = _noop
    _apply_check_failed = _noop
    _apply_attack_hit = _noop
    _apply_attack_missed = _noop
    _apply_initiative_rolled = _noop
    _apply_moved = _noop
    _apply_ac_changed = _noop
    _apply_concentration_broken = _noop
    _apply_concentration_maintained = _noop
    _apply_fact_remembered = _noop
    _apply_item_used = _noop
    _apply_consequence_registered = _noop
    _apply_consequence_triggered = _noop
    _apply_class_resource_used = _noop
    _apply_npc_updated = _noop
    _apply_location_updated = _noop
    _apply_event_scheduled = _noop
    _apply_event_cancelled = _noop
    _apply_event_triggered = _noop

    # =========================================================================
    # HEALTH AND CONDITIONS
    # =========================================================================

    def _apply_hp_changed(self, world: GameWorld, effect: fx.HpChanged) -> None:
        character = self._player_target(world, effect.target_id)
        if character is None:
            combatant = self._combatant(world, effect.target_id)
            if combatant is None:
                logger.debug(f"HP change for unknown target {effect.target_id}; skipped")
                return
            combatant.current_hp = max(0, effect.new_current)
            return

        hp = character.hit_points
        was_down = hp.current <= 0
        if effect.amount < 0:
            hp.take_damage(-effect.amount)
        elif effect.amount > 0:
            hp.heal(effect.amount)

        if effect.dropped_to_zero and not character.has_condition(Condition.UNCONSCIOUS):
            character.add_condition(Condition.UNCONSCIOUS, source="Dropped to 0 HP")

        if was_down and hp.current > 0:
            character.remove_condition(Condition.UNCONSCIOUS)
            character.death_saves.reset()

        if world.combat is not None:
            world.combat.update_hp(character.id, hp.current)

    def _apply_condition_applied(self, world: GameWorld, effect: fx.ConditionApplied) -> None:
        character = self._player_target(world, effect.target_id)
        if character is None:
            logger.debug(f"Condition {effect.condition.value} on non-player {effect.target_id}; not tracked")
            return
        character.add_condition(effect.condition, source=effect.source, duration_rounds=effect.duration_rounds)

    def _apply_condition_removed(self, world: GameWorld, effect: fx.ConditionRemoved) -> None:
        character = self._player_target(world, effect.target_id)
        if character is None:
            logger.debug(f"Condition removal on non-player {effect.target_id}; not tracked")
            return
        character.remove_condition(effect.condition)

    def _apply_death_save_failure(self, world: GameWorld, effect: fx.DeathSaveFailure) -> None:
        world.player_character.death_saves.add_failure(effect.failures)

    def _apply_death_save_success(self, world: GameWorld, effect: fx.DeathSaveSuccess) -> None:
        world.player_character.death_saves.successes = min(3, effect.total_successes)

    def _apply_death_saves_reset(self, world: GameWorld, effect: fx.DeathSavesReset) -> None:
        world.player_character.death_saves.reset()

    def _apply_stabilized(self, world: GameWorld, effect: fx.Stabilized) -> None:
        # Stable characters stay unconscious until healed
        world.player_character.death_saves.reset()

    def _apply_character_died(self, world: GameWorld, effect: fx.CharacterDied) -> None:
        character = world.player_character
        character.is_dead = True
        logger.info(f"{character.name} has died: {effect.cause}")

    # =========================================================================
    # COMBAT
    # =========================================================================

    def _apply_combat_started(self, world: GameWorld, effect: fx.CombatStarted) -> None:
        world.start_combat()

    def _apply_combat_ended(self, world: GameWorld, effect: fx.CombatEnded) -> None:
        world.end_combat()

    def _apply_combatant_added(self, world: GameWorld, effect: fx.CombatantAdded) -> None:
        if world.combat is None:
            logger.debug(f"Combatant {effect.name} added outside combat; skipped")
            return
        character = world.player_character
        is_player = effect.id == character.id
        world.combat.add_combatant(Combatant(
            id=effect.id,
            name=effect.name,
            initiative=effect.initiative,
            is_player=is_player,
            is_ally=effect.is_ally,
            current_hp=character.hit_points.current if is_player else effect.current_hp,
            max_hp=character.hit_points.maximum if is_player else effect.max_hp,
            armor_class=character.current_ac() if is_player else effect.armor_class,
        ))

    def _apply_turn_advanced(self, world: GameWorld, effect: fx.TurnAdvanced) -> None:
        if world.combat is not None:
            world.combat.next_turn()

        character = world.player_character
        expired = []
        remaining = []
        for active in character.conditions:
            if active.tick():
                expired.append(active)
            else:
                remaining.append(active)
        if expired:
            character.conditions = remaining
            logger.debug(f"Conditions expired: {', '.join(c.condition.value for c in expired)}")

    def _apply_sneak_attack_used(self, world: GameWorld, effect: fx.SneakAttackUsed) -> None:
        if world.combat is not None:
            world.combat.sneak_attack_used.add(effect.character_id)

    # =========================================================================
    # TIME, REST AND PROGRESSION
    # =========================================================================

    def _apply_time_advanced(self, world: GameWorld, effect: fx.TimeAdvanced) -> None:
        world.game_time.advance_minutes(effect.minutes)

    def _apply_rest_completed(self, world: GameWorld, effect: fx.RestCompleted) -> None:
        if effect.rest_type == RestType.LONG:
            world.long_rest()
        else:
            world.short_rest()

    def _apply_experience_gained(self, world: GameWorld, effect: fx.ExperienceGained) -> None:
        world.player_character.experience += effect.amount

    def _apply_level_up(self, world: GameWorld, effect: fx.LevelUp) -> None:
        character = world.player_character
        if not character.classes:
            logger.debug("Level up for a character without a class; skipped")
            return

        entry = character.classes[0]
        old_level = entry.level
        if effect.new_level <= old_level:
            logger.debug(f"Level up to {effect.new_level} does not exceed level {old_level}; skipped")
            return

        character_class = entry.character_class
        entry.level = effect.new_level

        sides = hit_die_sides(character_class)
        con_mod = character.ability_modifier(Ability.CONSTITUTION)
        gained = max(1, sides // 2 + 1 + con_mod)
        character.hit_points.maximum += gained
        character.hit_points.current += gained
        character.hit_dice.add(sides)

        self._resize_spell_slots(character, character_class, effect.new_level)
        self._refresh_class_resources(character, character_class, old_level, effect.new_level)
        logger.info(f"{character.name} is now level {effect.new_level} (+{gained} HP)")

    @staticmethod
    def _resize_spell_slots(character: Character, character_class: CharacterClass, level: int) -> None:
        """Grow slot totals; each newly gained slot refunds one spent slot of its level."""
        totals = spell_slots_at_level(character_class, level)
        if not any(totals):
            return
        if character.spellcasting is None:
            ability = spellcasting_ability(character_class) or Ability.CHARISMA
            character.spellcasting = SpellcastingData(ability=ability)
        for slot, total in zip(character.spellcasting.spell_slots.slots, totals):
            gained = total - slot.total
            slot.total = total
            if gained > 0:
                slot.used = max(0, slot.used - gained)
            slot.used = min(slot.used, total)

    @staticmethod
    def _refresh_class_resources(
        character: Character,
        character_class: CharacterClass,
        old_level: int,
        new_level: int,
    ) -> None:
        resources = character.class_resources
        if character_class == CharacterClass.MONK:
            resources.max_ki_points = new_level
            resources.ki_points = new_level
        elif character_class == CharacterClass.SORCERER and new_level >= 2:
            resources.max_sorcery_points = new_level
            resources.sorcery_points = min(
                resources.sorcery_points + (new_level - old_level),
                resources.max_sorcery_points,
            )
        elif character_class == CharacterClass.PALADIN:
            resources.lay_on_hands_max = LAY_ON_HANDS_PER_LEVEL * new_level
            resources.lay_on_hands_pool = resources.lay_on_hands_max
        elif character_class == CharacterClass.BARBARIAN:
            rage = character.find_feature("Rage")
            if rage is not None and rage.uses is not None:
                rage.uses.maximum = rage_uses(new_level)
                rage.uses.current = rage.uses.maximum
            resources.rage_damage_bonus = rage_damage_bonus(new_level)

    def _apply_feature_used(self, world: GameWorld, effect: fx.FeatureUsed) -> None:
        feature = world.player_character.find_feature(effect.feature_name)
        if feature is None or feature.uses is None:
            logger.debug(f"Feature '{effect.feature_name}' has no tracked uses; skipped")
            return
        feature.uses.current = max(0, effect.uses_remaining)

    def _apply_ability_score_modified(self, world: GameWorld, effect: fx.AbilityScoreModified) -> None:
        scores = world.player_character.ability_scores
        value = scores.get(effect.ability) + effect.modifier
        scores.set(effect.ability, max(MIN_ABILITY_SCORE, min(MAX_ABILITY_SCORE, value)))

    # =========================================================================
    # SPELL SLOTS
    # =========================================================================

    def _apply_spell_slot_used(self, world: GameWorld, effect: fx.SpellSlotUsed) -> None:
        spellcasting = world.player_character.spellcasting
        if spellcasting is None or not spellcasting.spell_slots.use_slot(effect.level):
            logger.debug(f"No level {effect.level} slot to spend; skipped")

    def _apply_spell_slot_restored(self, world: GameWorld, effect: fx.SpellSlotRestored) -> None:
        spellcasting = world.player_character.spellcasting
        if spellcasting is None or not spellcasting.spell_slots.restore_slot(effect.level):
            logger.debug(f"No spent level {effect.level} slot to restore; skipped")

    # =========================================================================
    # CLASS RESOURCES
    # =========================================================================

    def _apply_rage_started(self, world: GameWorld, effect: fx.RageStarted) -> None:
        resources = world.player_character.class_resources
        resources.rage_active = True
        resources.rage_damage_bonus = effect.damage_bonus
        resources.rage_rounds_remaining = RAGE_DURATION_ROUNDS

    def _apply_rage_ended(self, world: GameWorld, effect: fx.RageEnded) -> None:
        resources = world.player_character.class_resources
        resources.rage_active = False
        resources.rage_damage_bonus = 0
        resources.rage_rounds_remaining = None

    def _apply_ki_points_spent(self, world: GameWorld, effect: fx.KiPointsSpent) -> None:
        world.player_character.class_resources.ki_points = max(0, effect.remaining)

    def _apply_lay_on_hands_spent(self, world: GameWorld, effect: fx.LayOnHandsSpent) -> None:
        world.player_character.class_resources.lay_on_hands_pool = max(0, effect.remaining)

    def _apply_sorcery_points_changed(self, world: GameWorld, effect: fx.SorceryPointsChanged) -> None:
        world.player_character.class_resources.sorcery_points = max(0, effect.new_total)

    def _apply_wild_shape_started(self, world: GameWorld, effect: fx.WildShapeStarted) -> None:
        resources = world.player_character.class_resources
        resources.wild_shape_form = effect.beast_form
        resources.wild_shape_hp = effect.beast_hp

    def _apply_wild_shape_ended(self, world: GameWorld, effect: fx.WildShapeEnded) -> None:
        resources = world.player_character.class_resources
        resources.wild_shape_form = None
        resources.wild_shape_hp = None

    def _apply_action_surge_used(self, world: GameWorld, effect: fx.ActionSurgeUsed) -> None:
        world.player_character.class_resources.action_surge_used = True

    def _apply_second_wind_used(self, world: GameWorld, effect: fx.SecondWindUsed) -> None:
        world.player_character.class_resources.second_wind_used = True

    # =========================================================================
    # INVENTORY
    # =========================================================================

    def _apply_item_added(self, world: GameWorld, effect: fx.ItemAdded) -> None:
        item = get_item_catalog().find_item(effect.item_name, effect.quantity)
        if item is None:
            item = Item(
                name=effect.item_name,
                item_type=ItemType.parse(effect.item_type),
                quantity=effect.quantity,
                weight=effect.weight or 0.0,
                value_gp=effect.value_gp or 0.0,
                description=effect.description or "",
                magical=effect.magical,
            )
        world.player_character.inventory.add_item(item)

    def _apply_item_removed(self, world: GameWorld, effect: fx.ItemRemoved) -> None:
        if not world.player_character.inventory.remove_item(effect.item_name, effect.quantity):
            logger.debug(f"Could not remove {effect.quantity} x {effect.item_name}; skipped")

    def _apply_item_equipped(self, world: GameWorld, effect: fx.ItemEquipped) -> None:
        character = world.player_character
        inventory = character.inventory
        equipment = character.equipment
        catalog = get_item_catalog()
        carried = inventory.find_item(effect.item_name)
        if carried is None:
            logger.debug(f"{effect.item_name} is not in the inventory; equip skipped")
            return

        slot = effect.slot.lower()
        if slot == "armor":
            displaced = self._take_from_slot(character, "armor")
            equipment.armor = catalog.get_armor(effect.item_name) or Armor(
                name=carried.name, armor_type=ArmorType.MEDIUM, base_ac=14
            )
        elif slot == "shield":
            displaced = self._take_from_slot(character, "shield")
            equipment.shield = Item(name=carried.name, item_type=ItemType.SHIELD,
                                    weight=carried.weight, value_gp=carried.value_gp)
        elif slot in ("main_hand", "weapon"):
            displaced = self._take_from_slot(character, "main_hand")
            equipment.main_hand = catalog.get_weapon(effect.item_name) or Weapon(
                name=carried.name, damage_dice="1d8", damage_type=DamageType.SLASHING
            )
        elif slot == "off_hand":
            displaced = self._take_from_slot(character, "off_hand")
            equipment.off_hand = Item(name=carried.name, item_type=carried.item_type,
                                      weight=carried.weight, value_gp=carried.value_gp,
                                      description=carried.description, magical=carried.magical)
        else:
            logger.debug(f"Unknown equipment slot '{effect.slot}'; equip skipped")
            return
        inventory.remove_item(carried.name, 1)
        if displaced is not None:
            inventory.add_item(displaced)

    def _apply_item_unequipped(self, world: GameWorld, effect: fx.ItemUnequipped) -> None:
        slot = effect.slot.lower()
        if slot == "weapon":
            slot = "main_hand"
        returned = self._take_from_slot(world.player_character, slot)
        if returned is None:
            logger.debug(f"Nothing equipped in '{effect.slot}'; unequip skipped")
            return
        world.player_character.inventory.add_item(returned)

    @staticmethod
    def _take_from_slot(character: Character, slot: str) -> Optional[Item]:
        """Empty an equipment slot and return its contents as one inventory item."""
        equipment = character.equipment
        catalog = get_item_catalog()

        returned: Optional[Item] = None
        if slot == "armor" and equipment.armor is not None:
            name = equipment.armor.name
            equipment.armor = None
            returned = catalog.find_item(name) or Item(name=name, item_type=ItemType.ARMOR)
        elif slot == "shield" and equipment.shield is not None:
            returned = equipment.shield
            equipment.shield = None
        elif slot == "main_hand" and equipment.main_hand is not None:
            name = equipment.main_hand.name
            equipment.main_hand = None
            returned = catalog.find_item(name) or Item(name=name, item_type=ItemType.WEAPON)
        elif slot == "off_hand" and equipment.off_hand is not None:
            returned = equipment.off_hand
            equipment.off_hand = None

        if returned is not None:
            returned.quantity = 1
        return returned

    def _apply_gold_changed(self, world: GameWorld, effect: fx.GoldChanged) -> None:
        world.player_character.inventory.gold = max(0, effect.new_total)

    def _apply_silver_changed(self, world: GameWorld, effect: fx.SilverChanged) -> None:
        world.player_character.inventory.silver = max(0, effect.new_total)

    # =========================================================================
    # LOCATION
    # =========================================================================

    def _apply_location_changed(self, world: GameWorld, effect: fx.LocationChanged) -> None:
        known = find_by_name(world.known_locations.values(), effect.new_location)
        if known is not None:
            previous = world.current_location
            world.known_locations.setdefault(previous.id, previous)
            world.current_location = known
        elif world.current_location.id in world.known_locations:
            # Renaming would corrupt the registered entry
            world.current_location = Location(name=effect.new_location)
        else:
            world.current_location.name = effect.new_location

    # =========================================================================
    # QUESTS
    # =========================================================================

    def _apply_quest_created(self, world: GameWorld, effect: fx.QuestCreated) -> None:
        world.quests.append(Quest(
            name=effect.name,
            description=effect.description,
            giver=effect.giver,
            objectives=[
                QuestObjective(description=o.description, optional=o.optional)
                for o in effect.objectives
            ],
            rewards=list(effect.rewards),
        ))

    def _apply_quest_objective_added(self, world: GameWorld, effect: fx.QuestObjectiveAdded) -> None:
        quest = self._find_quest(world, effect.quest_name)
        if quest is not None:
            quest.objectives.append(QuestObjective(description=effect.objective, optional=effect.optional))

    def _apply_quest_objective_completed(self, world: GameWorld, effect: fx.QuestObjectiveCompleted) -> None:
        quest = self._find_quest(world, effect.quest_name)
        if quest is None:
            return
        objective = find_containing(quest.objectives, effect.objective_description, key=lambda o: o.description)
        if objective is None:
            logger.debug(f"No objective matching '{effect.objective_description}' in {quest.name}")
            return
        objective.completed = True

    def _apply_quest_completed(self, world: GameWorld, effect: fx.QuestCompleted) -> None:
        quest = self._find_quest(world, effect.quest_name)
        if quest is None:
            return
        quest.status = QuestStatus.COMPLETED
        for objective in quest.objectives:
            if not objective.optional:
                objective.completed = True

    def _apply_quest_failed(self, world: GameWorld, effect: fx.QuestFailed) -> None:
        quest = self._find_quest(world, effect.quest_name)
        if quest is not None:
            quest.status = QuestStatus.FAILED

    def _apply_quest_updated(self, world: GameWorld, effect: fx.QuestUpdated) -> None:
        quest = self._find_quest(world, effect.quest_name)
        if quest is None:
            return
        if effect.new_description is not None:
            quest.description = effect.new_description
        quest.rewards.extend(effect.add_rewards)

    # =========================================================================
    # WORLD BUILDING
    # =========================================================================

    def _apply_npc_created(self, world: GameWorld, effect: fx.NpcCreated) -> None:
        npc = NPC(
            name=effect.name,
            description=effect.description,
            personality=effect.personality,
            occupation=effect.occupation,
            disposition=Disposition.parse(effect.disposition) or Disposition.NEUTRAL,
            known_information=list(effect.known_information),
        )
        if effect.location:
            location = world.find_location(effect.location)
            if location is not None:
                npc.location_id = location.id
            else:
                logger.debug(f"Location '{effect.location}' for NPC {effect.name} not found")
        world.npcs[npc.id] = npc

    def _apply_npc_moved(self, world: GameWorld, effect: fx.NpcMoved) -> None:
        npc = self._find_npc(world, effect.npc_name)
        if npc is None:
            return
        destination = world.find_location(effect.to_location)
        npc.location_id = destination.id if destination else None

    def _apply_npc_removed(self, world: GameWorld, effect: fx.NpcRemoved) -> None:
        npc = self._find_npc(world, effect.npc_name)
        if npc is not None:
            del world.npcs[npc.id]

    def _apply_location_created(self, world: GameWorld, effect: fx.LocationCreated) -> None:
        location = Location(
            name=effect.name,
            location_type=LocationType.parse(effect.location_type),
            description=effect.description,
            items=list(effect.items),
            npcs_present=list(effect.npcs_present),
            parent=effect.parent_location,
        )
        world.known_locations[location.id] = location

    def _apply_locations_connected(self, world: GameWorld, effect: fx.LocationsConnected) -> None:
        origin = world.find_location(effect.from_location)
        destination = world.find_location(effect.to_location)
        if origin is None or destination is None:
            logger.debug(f"Cannot connect {effect.from_location} to {effect.to_location}; location missing")
            return
        origin.connections.append(LocationConnection(
            destination_id=destination.id,
            destination_name=destination.name,
            direction=effect.direction,
            travel_time_minutes=effect.travel_time_minutes,
        ))
        if effect.bidirectional:
            destination.connections.append(LocationConnection(
                destination_id=origin.id,
                destination_name=origin.name,
                travel_time_minutes=effect.travel_time_minutes,
            ))

    def _apply_state_asserted(self, world: GameWorld, effect: fx.StateAsserted) -> None:
        npc = self._find_npc(world, effect.entity_name)
        if npc is None:
            return
        info = npc.known_information

        if effect.state_type == StateType.DISPOSITION:
            disposition = Disposition.parse(effect.new_value)
            if disposition is None:
                logger.debug(f"Invalid disposition '{effect.new_value}'; skipped")
                return
            npc.disposition = disposition
        elif effect.state_type == StateType.LOCATION:
            if not any(f"at {effect.new_value}" in entry for entry in info):
                info.append(f"Currently at {effect.new_value}")
        elif effect.state_type == StateType.STATUS:
            npc.known_information = [entry for entry in info if not entry.startswith("Status:")]
            npc.known_information.append(f"Status: {effect.new_value}")
        elif effect.state_type == StateType.KNOWLEDGE:
            if effect.new_value not in info:
                info.append(effect.new_value)

    def _apply_knowledge_shared(self, world: GameWorld, effect: fx.KnowledgeShared) -> None:
        npc = world.find_npc(effect.knowing_entity)
        if npc is None:
            logger.debug(f"'{effect.knowing_entity}' is not an NPC; knowledge not stored")
            return
        if effect.content not in npc.known_information:
            npc.known_information.append(effect.content)


# Process default applier
_applier = EffectApplier()


def apply_effect(world: GameWorld, effect: fx.Effect) -> None:
    """Apply one effect to the world."""
    _applier.apply(world, effect)


def apply_effects(world: GameWorld, effects: Iterable[fx.Effect]) -> GameWorld:
    """
    Apply effects in order.

    Args:
        world: World to mutate
        effects: Effects from a Resolution

    Returns:
        The same world, for chaining
    """
    return _applier.apply_all(world, effects)
