"""
Tests for NPC and location management, state assertions, knowledge
sharing and scheduled events.
"""

import pytest

from rulekeeper.data_models import Disposition, LocationType
from rulekeeper.rules import effects as fx
from rulekeeper.rules.intents import (
    AssertState,
    CancelEvent,
    ConnectLocations,
    CreateLocation,
    CreateNpc,
    MoveNpc,
    RemoveNpc,
    ScheduleEvent,
    ShareKnowledge,
    UpdateLocation,
    UpdateNpc,
)
from rulekeeper.rules.resolvers.world_building import describe_trigger
from rulekeeper.rules.types import StateType
from tests.helpers import effect_names, find_effect, resolve_and_apply, snapshot


@pytest.fixture
def town_world(engine, fighter_world):
    """Fighter world with a blacksmith NPC and a forest location."""
    resolve_and_apply(
        engine,
        fighter_world,
        CreateNpc(name="Hilda", occupation="blacksmith", disposition="neutral",
                  location="Millbrook", known_information=("Forges swords",)),
    )
    resolve_and_apply(
        engine, fighter_world,
        CreateLocation(name="Dark Forest", location_type="wilderness", description="Tall pines"),
    )
    return fighter_world


# =============================================================================
# NPCS
# =============================================================================


class TestNpcs:
    """Creating, updating, moving and removing NPCs."""

    def test_create(self, engine, fighter_world):
        """Test creating an NPC."""
        resolution = resolve_and_apply(
            engine, fighter_world,
            CreateNpc(name="Old Tom", occupation="fisherman", disposition="friendly", location="Millbrook"),
        )
        assert resolution.narrative == "NPC Old Tom (friendly) (fisherman) at Millbrook enters the world"
        npc = fighter_world.find_npc("old tom")
        assert npc.disposition == Disposition.FRIENDLY
        assert npc.location_id == fighter_world.current_location.id

    def test_unknown_disposition_defaults_to_neutral(self, engine, fighter_world):
        """Test that an unknown disposition becomes neutral."""
        resolve_and_apply(engine, fighter_world, CreateNpc(name="Stranger", disposition="mysterious"))
        assert fighter_world.find_npc("Stranger").disposition == Disposition.NEUTRAL

    def test_duplicate_npc(self, engine, town_world):
        """Test that NPC names must be unique."""
        resolution = engine.resolve(town_world, CreateNpc(name="HILDA"))
        assert resolution.is_rejected()
        assert resolution.narrative.startswith(
            "DUPLICATE NPC ERROR: An NPC named 'Hilda' already exists (disposition: neutral)."
        )

    def test_update_is_narrated(self, engine, town_world):
        """Test that an NPC update is narrated."""
        before = snapshot(town_world)
        resolution = resolve_and_apply(
            engine, town_world, UpdateNpc(npc_name="Hilda", disposition="friendly", add_information=("x",))
        )
        assert resolution.narrative == "NPC Hilda updated: disposition changed, new information learned"
        assert town_world == before

    def test_update_without_changes(self, engine, town_world):
        """Test an update that changes nothing."""
        resolution = engine.resolve(town_world, UpdateNpc(npc_name="Hilda"))
        assert resolution.narrative == "NPC Hilda updated: no changes"

    def test_move(self, engine, town_world):
        """Test moving an NPC to a known location."""
        resolution = resolve_and_apply(
            engine, town_world, MoveNpc(npc_name="Hilda", destination="Dark Forest", reason="gathering wood")
        )
        assert resolution.narrative == "NPC Hilda moves to Dark Forest (gathering wood)"
        assert find_effect(resolution, fx.NpcMoved).from_location == "Millbrook"
        assert town_world.find_npc("Hilda").location_id == town_world.find_location("Dark Forest").id

    def test_move_to_unknown_place_clears_location(self, engine, town_world):
        """Test that moving to an unknown place clears the NPC's location."""
        resolve_and_apply(engine, town_world, MoveNpc(npc_name="Hilda", destination="Nowhere"))
        assert town_world.find_npc("Hilda").location_id is None

    def test_remove(self, engine, town_world):
        """Test removing an NPC."""
        resolution = resolve_and_apply(
            engine, town_world, RemoveNpc(npc_name="Hilda", reason="left town", permanent=True)
        )
        assert resolution.narrative == "NPC Hilda permanently removed: left town"
        assert town_world.find_npc("Hilda") is None

    @pytest.mark.parametrize("intent", [
        UpdateNpc(npc_name="Ghost"),
        MoveNpc(npc_name="Ghost", destination="Millbrook"),
        RemoveNpc(npc_name="Ghost"),
    ])
    def test_unknown_npc(self, engine, fighter_world, intent):
        """Test every NPC intent against an unknown NPC."""
        assert engine.resolve(fighter_world, intent).narrative == "NPC 'Ghost' not found in the world"


# =============================================================================
# LOCATIONS
# =============================================================================


class TestLocations:
    """Creating, connecting and updating locations."""

    def test_create(self, engine, fighter_world):
        """Test creating a location."""
        resolution = resolve_and_apply(
            engine, fighter_world,
            CreateLocation(name="The Rusty Flagon", location_type="building", description="A tavern",
                           parent_location="Millbrook", items=("Barrel",), npcs_present=("Barkeep",)),
        )
        assert resolution.narrative == (
            "New location created: The Rusty Flagon (building) in Millbrook with items: Barrel "
            "featuring NPCs: Barkeep - A tavern"
        )
        tavern = fighter_world.find_location("the rusty flagon")
        assert tavern.location_type == LocationType.BUILDING
        assert tavern.parent == "Millbrook"
        assert tavern.items == ["Barrel"]

    def test_duplicate_location(self, engine, town_world):
        """Test that location names must be unique."""
        resolution = engine.resolve(town_world, CreateLocation(name="dark forest"))
        assert resolution.narrative.startswith("DUPLICATE LOCATION ERROR")

    def test_current_location_counts_as_existing(self, engine, fighter_world):
        """Test that the current location counts as existing."""
        resolution = engine.resolve(fighter_world, CreateLocation(name="Millbrook"))
        assert resolution.is_rejected()

    def test_connect_bidirectional(self, engine, town_world):
        """Test a two-way connection."""
        resolution = resolve_and_apply(
            engine, town_world,
            ConnectLocations(from_location="Millbrook", to_location="Dark Forest",
                             direction="north", travel_time_minutes=30),
        )
        assert resolution.narrative == (
            "Locations connected: Millbrook to Dark Forest (north direction), 30 minutes travel time "
            "(bidirectional)"
        )
        town = town_world.current_location
        forest = town_world.find_location("Dark Forest")
        assert town.connections[0].destination_name == "Dark Forest"
        assert town.connections[0].direction == "north"
        assert forest.connections[0].destination_id == town.id

    def test_connect_one_way(self, engine, town_world):
        """Test a one-way connection."""
        resolve_and_apply(
            engine, town_world,
            ConnectLocations(from_location="Dark Forest", to_location="Millbrook", bidirectional=False),
        )
        assert len(town_world.find_location("Dark Forest").connections) == 1
        assert town_world.current_location.connections == []

    def test_connect_unknown_location_changes_nothing(self, engine, town_world):
        """Test connecting a location that does not exist."""
        before = snapshot(town_world)
        resolve_and_apply(engine, town_world, ConnectLocations(from_location="Millbrook", to_location="Atlantis"))
        assert town_world == before

    def test_update_location(self, engine, town_world):
        """Test that a location update is narrated."""
        resolution = engine.resolve(
            town_world,
            UpdateLocation(location_name="Dark Forest", add_items=("Mushrooms",), remove_npcs=("Wolf",)),
        )
        assert resolution.narrative == (
            "Location Dark Forest updated: added items: Mushrooms; NPCs left: Wolf"
        )

    def test_update_unknown_location(self, engine, fighter_world):
        """Test updating a location that does not exist."""
        resolution = engine.resolve(fighter_world, UpdateLocation(location_name="Atlantis"))
        assert resolution.narrative == "Location 'Atlantis' not found in the world"


# =============================================================================
# STATE AND KNOWLEDGE
# =============================================================================


class TestAssertState:
    """Declarative state assertions."""

    def test_disposition(self, engine, town_world):
        """Test asserting an NPC's disposition."""
        resolution = resolve_and_apply(
            engine, town_world,
            AssertState(entity_name="Hilda", state_type=StateType.DISPOSITION, new_value="Friendly",
                        reason="party paid her debts"),
        )
        assert resolution.narrative == "Hilda's disposition is now Friendly (reason: party paid her debts)"
        assert find_effect(resolution, fx.StateAsserted).old_value == "neutral"
        assert town_world.find_npc("Hilda").disposition == Disposition.FRIENDLY

    def test_invalid_disposition_is_ignored(self, engine, town_world):
        """Test that an invalid disposition value is ignored."""
        resolve_and_apply(
            engine, town_world,
            AssertState(entity_name="Hilda", state_type=StateType.DISPOSITION, new_value="grumpy"),
        )
        assert town_world.find_npc("Hilda").disposition == Disposition.NEUTRAL

    def test_status_replaces_previous_status(self, engine, town_world):
        """Test that a new status replaces the old one."""
        for status in ("injured", "recovering"):
            resolve_and_apply(
                engine, town_world,
                AssertState(entity_name="Hilda", state_type=StateType.STATUS, new_value=status),
            )
        info = town_world.find_npc("Hilda").known_information
        assert [entry for entry in info if entry.startswith("Status:")] == ["Status: recovering"]

    def test_location_reports_old_value(self, engine, town_world):
        """Test that a location assertion reports the old value."""
        resolution = engine.resolve(
            town_world, AssertState(entity_name="Hilda", state_type=StateType.LOCATION, new_value="the mill")
        )
        assert find_effect(resolution, fx.StateAsserted).old_value == "Millbrook"

    def test_knowledge_is_not_duplicated(self, engine, town_world):
        """Test that the same knowledge is stored once."""
        intent = AssertState(entity_name="Hilda", state_type=StateType.KNOWLEDGE, new_value="Forges swords")
        resolve_and_apply(engine, town_world, intent)
        assert town_world.find_npc("Hilda").known_information == ["Forges swords"]

    def test_relationship(self, engine, town_world):
        """Test asserting a relationship between two entities."""
        resolution = engine.resolve(
            town_world,
            AssertState(entity_name="Hilda", state_type=StateType.RELATIONSHIP, new_value="rivals",
                        reason="market dispute", target_entity="Old Tom"),
        )
        assert resolution.narrative == "Hilda's relationship with Old Tom is now rivals (reason: market dispute)"

    def test_non_npc_entity_is_narrated_only(self, engine, fighter_world):
        """Test asserting state about something that is not an NPC."""
        before = snapshot(fighter_world)
        resolve_and_apply(
            engine, fighter_world,
            AssertState(entity_name="The Bridge", state_type=StateType.STATUS, new_value="collapsed"),
        )
        assert fighter_world == before


class TestShareKnowledge:
    """Sharing knowledge with NPCs."""

    def test_npc_learns(self, engine, town_world):
        """Test that an NPC learns what is shared."""
        resolution = resolve_and_apply(
            engine, town_world,
            ShareKnowledge(knowing_entity="Hilda", content="The mayor is a vampire", source="Roland",
                           verification="rumor", context="whispered at the forge"),
        )
        assert resolution.narrative == (
            'Hilda now knows: "The mayor is a vampire" (from: Roland, rumor) [whispered at the forge]'
        )
        assert "The mayor is a vampire" in town_world.find_npc("Hilda").known_information

    def test_unknown_entity(self, engine, fighter_world):
        """Test sharing knowledge with an unknown entity."""
        resolution = resolve_and_apply(
            engine, fighter_world, ShareKnowledge(knowing_entity="Nobody", content="secret")
        )
        assert effect_names(resolution) == ["KnowledgeShared"]


# =============================================================================
# SCHEDULED EVENTS
# =============================================================================


class TestScheduledEvents:
    """Scheduling and cancelling events."""

    @pytest.mark.parametrize("kwargs,expected", [
        ({"daily_hour": 6, "daily_minute": 30, "repeating": True}, "daily at 06:30"),
        ({"daily_hour": 18, "daily_minute": 0}, "at 18:00"),
        ({"day": 5, "month": 3, "year": 1492}, "on 3/5/1492"),
        ({"day": 5, "month": 3, "year": 1492, "hour": 9}, "on 3/5/1492 at 09:00"),
        ({"minutes": 45}, "in 45 minutes"),
        ({"hours": 2, "minutes": 15}, "in 2 hours and 15 minutes"),
        ({"hours": 3}, "in 3 hours"),
        ({"hours": 50}, "in 2 days"),
        ({}, "at an unspecified time"),
    ])
    def test_describe_trigger(self, kwargs, expected):
        """Test readable trigger descriptions."""
        assert describe_trigger(ScheduleEvent(description="x", **kwargs)) == expected

    def test_daily_time_wins_over_delay(self):
        """Test that a daily time takes precedence over a delay."""
        intent = ScheduleEvent(description="x", minutes=10, daily_hour=7, daily_minute=0)
        assert describe_trigger(intent) == "at 07:00"

    def test_schedule(self, engine, fighter_world):
        """Test scheduling an event."""
        resolution = engine.resolve(
            fighter_world,
            ScheduleEvent(description="The bandits attack", hours=2, location="Millbrook", visibility="secret"),
        )
        assert resolution.narrative == 'Scheduled: "The bandits attack" in 2 hours at Millbrook (private)'
        assert find_effect(resolution, fx.EventScheduled).trigger_description == "in 2 hours"

    def test_cancel(self, engine, fighter_world):
        """Test cancelling an event."""
        resolution = engine.resolve(
            fighter_world, CancelEvent(event_description="The bandits attack", reason="bandits bribed")
        )
        assert resolution.narrative == 'Event cancelled: "The bandits attack" - bandits bribed'
