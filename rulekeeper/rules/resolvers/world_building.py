"""
World-building resolvers: NPCs, locations, declarative state assertions,
knowledge sharing and scheduled events.

Name lookups are case-insensitive throughout. Creation intents reject
duplicates with a message steering the caller to the matching update
intent.
"""

from typing import Optional

from rulekeeper.data_models import GameWorld
from rulekeeper.rules import effects as fx
from rulekeeper.rules import intents as it
from rulekeeper.rules.types import Resolution, StateType

MINUTES_PER_DAY = 1440


def describe_trigger(intent: it.ScheduleEvent) -> str:
    """
    Human-readable trigger for a scheduled event.

    Daily times win over calendar dates, which win over relative delays.
    """
    if intent.daily_hour is not None and intent.daily_minute is not None:
        clock = f"{intent.daily_hour:02d}:{intent.daily_minute:02d}"
        return f"daily at {clock}" if intent.repeating else f"at {clock}"

    if intent.day is not None and intent.month is not None and intent.year is not None:
        date = f"on {intent.month}/{intent.day}/{intent.year}"
        if intent.hour is not None:
            return f"{date} at {intent.hour:02d}:00"
        return date

    if intent.minutes is not None or intent.hours is not None:
        total = (intent.minutes or 0) + (intent.hours or 0) * 60
        if total < 60:
            return f"in {total} minutes"
        elif total < MINUTES_PER_DAY:
            hours, minutes = divmod(total, 60)
            if minutes > 0:
                return f"in {hours} hours and {minutes} minutes"
            return f"in {hours} hours"
        return f"in {total // MINUTES_PER_DAY} days"

    return "at an unspecified time"


def _visibility_note(visibility: str) -> str:
    wanted = visibility.strip().lower()
    if wanted in ("private", "secret"):
        return " (private)"
    elif wanted == "hinted":
        return " (hinted)"
    return ""


class WorldBuildingResolverMixin:
    """Resolvers for NPC and location CRUD, state assertions and events."""

    # -------------------------------------------------------------------------
    # NPCs
    # -------------------------------------------------------------------------

    def _resolve_create_npc(self, world: GameWorld, intent: it.CreateNpc) -> Resolution:
        existing = world.find_npc(intent.name)
        if existing is not None:
            return Resolution.reject(
                f"DUPLICATE NPC ERROR: An NPC named '{existing.name}' already exists "
                f"(disposition: {existing.disposition.value}). Use 'update_npc' instead to modify their "
                f"disposition, add information, or change their description. Do NOT call create_npc "
                f"again for this character."
            )

        occupation = f" ({intent.occupation})" if intent.occupation else ""
        location = f" at {intent.location}" if intent.location else ""
        return Resolution(
            narrative=f"NPC {intent.name} ({intent.disposition}){occupation}{location} enters the world"
        ).add(fx.NpcCreated(
            name=intent.name,
            description=intent.description,
            personality=intent.personality,
            occupation=intent.occupation,
            disposition=intent.disposition,
            location=intent.location,
            known_information=intent.known_information,
        ))

    def _resolve_update_npc(self, world: GameWorld, intent: it.UpdateNpc) -> Resolution:
        if world.find_npc(intent.npc_name) is None:
            return Resolution.reject(f"NPC '{intent.npc_name}' not found in the world")

        changes = []
        if intent.disposition is not None:
            changes.append("disposition changed")
        if intent.add_information:
            changes.append("new information learned")
        if intent.new_description is not None:
            changes.append("description updated")
        if intent.new_personality is not None:
            changes.append("personality updated")
        changes_text = ", ".join(changes) if changes else "no changes"

        return Resolution(
            narrative=f"NPC {intent.npc_name} updated: {changes_text}"
        ).add(fx.NpcUpdated(npc_name=intent.npc_name, changes=changes_text))

    def _resolve_move_npc(self, world: GameWorld, intent: it.MoveNpc) -> Resolution:
        npc = world.find_npc(intent.npc_name)
        if npc is None:
            return Resolution.reject(f"NPC '{intent.npc_name}' not found in the world")

        reason = f" ({intent.reason})" if intent.reason else ""
        return Resolution(
            narrative=f"NPC {intent.npc_name} moves to {intent.destination}{reason}"
        ).add(fx.NpcMoved(
            npc_name=intent.npc_name,
            to_location=intent.destination,
            from_location=world.location_name(npc.location_id),
        ))

    def _resolve_remove_npc(self, world: GameWorld, intent: it.RemoveNpc) -> Resolution:
        if world.find_npc(intent.npc_name) is None:
            return Resolution.reject(f"NPC '{intent.npc_name}' not found in the world")

        permanence = "permanently" if intent.permanent else "temporarily"
        return Resolution(
            narrative=f"NPC {intent.npc_name} {permanence} removed: {intent.reason}"
        ).add(fx.NpcRemoved(
            npc_name=intent.npc_name,
            reason=intent.reason,
            permanent=intent.permanent,
        ))

    # -------------------------------------------------------------------------
    # Locations
    # -------------------------------------------------------------------------

    def _resolve_create_location(self, world: GameWorld, intent: it.CreateLocation) -> Resolution:
        existing = world.find_location(intent.name)
        if existing is not None:
            return Resolution.reject(
                f"DUPLICATE LOCATION ERROR: A location named '{existing.name}' already exists. "
                f"Use 'update_location' instead to change its description, items, or NPCs. "
                f"Do NOT call create_location again for this place."
            )

        parent = f" in {intent.parent_location}" if intent.parent_location else ""
        items = f" with items: {', '.join(intent.items)}" if intent.items else ""
        npcs = f" featuring NPCs: {', '.join(intent.npcs_present)}" if intent.npcs_present else ""
        return Resolution(
            narrative=(
                f"New location created: {intent.name} ({intent.location_type}){parent}{items}{npcs}"
                f" - {intent.description}"
            )
        ).add(fx.LocationCreated(
            name=intent.name,
            location_type=intent.location_type,
            description=intent.description,
            parent_location=intent.parent_location,
            items=intent.items,
            npcs_present=intent.npcs_present,
        ))

    def _resolve_connect_locations(self, world: GameWorld, intent: it.ConnectLocations) -> Resolution:
        direction = f" ({intent.direction} direction)" if intent.direction else ""
        travel = (
            f", {intent.travel_time_minutes} minutes travel time"
            if intent.travel_time_minutes is not None else ""
        )
        way = " (bidirectional)" if intent.bidirectional else " (one-way)"
        return Resolution(
            narrative=(
                f"Locations connected: {intent.from_location} to {intent.to_location}"
                f"{direction}{travel}{way}"
            )
        ).add(fx.LocationsConnected(
            from_location=intent.from_location,
            to_location=intent.to_location,
            direction=intent.direction,
            travel_time_minutes=intent.travel_time_minutes,
            bidirectional=intent.bidirectional,
        ))

    def _resolve_update_location(self, world: GameWorld, intent: it.UpdateLocation) -> Resolution:
        if world.find_location(intent.location_name) is None:
            return Resolution.reject(f"Location '{intent.location_name}' not found in the world")

        changes = []
        if intent.new_description is not None:
            changes.append("description updated")
        if intent.add_items:
            changes.append(f"added items: {', '.join(intent.add_items)}")
        if intent.remove_items:
            changes.append(f"removed items: {', '.join(intent.remove_items)}")
        if intent.add_npcs:
            changes.append(f"NPCs arrived: {', '.join(intent.add_npcs)}")
        if intent.remove_npcs:
            changes.append(f"NPCs left: {', '.join(intent.remove_npcs)}")
        changes_text = "; ".join(changes) if changes else "no changes"

        return Resolution(
            narrative=f"Location {intent.location_name} updated: {changes_text}"
        ).add(fx.LocationUpdated(location_name=intent.location_name, changes=changes_text))

    # -------------------------------------------------------------------------
    # State and knowledge
    # -------------------------------------------------------------------------

    def _resolve_assert_state(self, world: GameWorld, intent: it.AssertState) -> Resolution:
        entity = intent.entity_name
        value = intent.new_value
        reason = intent.reason

        old_value: Optional[str] = None
        npc = world.find_npc(entity)
        if npc is not None:
            if intent.state_type == StateType.DISPOSITION:
                old_value = npc.disposition.value
            elif intent.state_type == StateType.LOCATION:
                old_value = world.location_name(npc.location_id)

        if intent.state_type == StateType.DISPOSITION:
            narrative = f"{entity}'s disposition is now {value} (reason: {reason})"
        elif intent.state_type == StateType.LOCATION:
            narrative = f"{entity} is now at {value} (reason: {reason})"
        elif intent.state_type == StateType.STATUS:
            narrative = f"{entity}'s status is now {value} (reason: {reason})"
        elif intent.state_type == StateType.KNOWLEDGE:
            narrative = f"{entity} now knows: {value} (reason: {reason})"
        elif intent.target_entity:
            narrative = f"{entity}'s relationship with {intent.target_entity} is now {value} (reason: {reason})"
        else:
            narrative = f"{entity}'s relationship status: {value} (reason: {reason})"

        return Resolution(narrative=narrative).add(fx.StateAsserted(
            entity_name=entity,
            state_type=intent.state_type,
            new_value=value,
            old_value=old_value,
            reason=reason,
            target_entity=intent.target_entity,
        ))

    def _resolve_share_knowledge(self, world: GameWorld, intent: it.ShareKnowledge) -> Resolution:
        narrative = (
            f"{intent.knowing_entity} now knows: \"{intent.content}\" "
            f"(from: {intent.source}, {intent.verification})"
        )
        if intent.context:
            narrative += f" [{intent.context}]"
        return Resolution(narrative=narrative).add(fx.KnowledgeShared(
            knowing_entity=intent.knowing_entity,
            content=intent.content,
            source=intent.source,
            verification=intent.verification,
            context=intent.context,
        ))

    # -------------------------------------------------------------------------
    # Scheduled events
    # -------------------------------------------------------------------------

    def _resolve_schedule_event(self, world: GameWorld, intent: it.ScheduleEvent) -> Resolution:
        trigger = describe_trigger(intent)
        location = f" at {intent.location}" if intent.location else ""
        return Resolution(
            narrative=f"Scheduled: \"{intent.description}\" {trigger}{location}{_visibility_note(intent.visibility)}"
        ).add(fx.EventScheduled(
            description=intent.description,
            trigger_description=trigger,
            location=intent.location,
            visibility=intent.visibility,
        ))

    def _resolve_cancel_event(self, world: GameWorld, intent: it.CancelEvent) -> Resolution:
        return Resolution(
            narrative=f"Event cancelled: \"{intent.event_description}\" - {intent.reason}"
        ).add(fx.EventCancelled(description=intent.event_description, reason=intent.reason))
