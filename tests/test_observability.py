"""
Tests for the run log and deterministic replay.
"""

import json

from rulekeeper.data_models import DamageType
from rulekeeper.dice.dice_roller import DiceRoller
from rulekeeper.observability import (
    EventType,
    ReplayMode,
    ReplaySession,
    RunLog,
    get_run_log,
    reset_run_log,
)
from rulekeeper.rules.effect_applier import apply_effects
from rulekeeper.rules.engine import RulesEngine
from rulekeeper.rules.intents import Attack, Damage, NextTurn
from tests.helpers import resolve_and_apply


class TestRunLog:
    """Recording and querying kernel events."""

    def test_singleton(self):
        """Test that the run log is a process-wide singleton."""
        assert get_run_log() is get_run_log()
        assert RunLog() is get_run_log()

    def test_sequence_numbers_increase(self):
        """Test that every event gets the next sequence number."""
        log = get_run_log()
        first = log.log_roll("1d6", [3], 0, 3)
        second = log.log_custom("note", {"value": 1})
        assert second.sequence_number == first.sequence_number + 1

    def test_reset_clears_events(self):
        """Test that reset drops events and the seed."""
        log = get_run_log()
        log.log_roll("1d6", [3], 0, 3)
        log.set_seed(9)
        reset_run_log()
        assert log.get_event_count() == 0
        assert log.get_seed() is None

    def test_resolution_events(self, engine, fighter_world):
        """Test that resolve() records the intent and its effect types."""
        engine.resolve(fighter_world, Damage(amount=5, source="Trap"))
        resolutions = get_run_log().get_resolutions()
        assert len(resolutions) == 1
        assert resolutions[0].intent_type == "Damage"
        assert resolutions[0].effect_types == ["HpChanged"]
        assert not resolutions[0].rejected

    def test_rejections_are_marked(self, engine, fighter_world):
        """Test that empty-effect resolutions are flagged as rejected."""
        engine.resolve(fighter_world, NextTurn())
        event = get_run_log().get_resolutions()[0]
        assert event.rejected
        assert event.narrative == "No combat in progress"

    def test_applied_effects_are_logged_with_summary(self, engine, fighter_world):
        """Test that applied effects carry a summary of their fields."""
        resolve_and_apply(engine, fighter_world, Damage(amount=5, damage_type=DamageType.FIRE, source="Trap"))
        applied = get_run_log().get_applied_effects()
        assert [e.effect_type for e in applied] == ["HpChanged"]
        assert applied[0].summary["new_current"] == 23

    def test_summary_counts(self, engine, fighter_world):
        """Test the aggregate counts."""
        resolve_and_apply(engine, fighter_world, Attack(weapon_name="Longsword"))
        engine.resolve(fighter_world, NextTurn())
        summary = get_run_log().get_summary()
        assert summary["resolutions"] == 2
        assert summary["rejections"] == 1
        assert summary["rolls"] >= 1
        assert summary["effects_applied"] >= 2

    def test_filter_by_event_type(self, engine, fighter_world):
        """Test filtering events by type."""
        engine.resolve(fighter_world, Attack(weapon_name="Longsword"))
        rolls = get_run_log().get_events(EventType.ROLL)
        assert rolls
        assert all(e.event_type == EventType.ROLL for e in rolls)

    def test_since_sequence(self):
        """Test fetching only events after a sequence number."""
        log = get_run_log()
        first = log.log_roll("1d4", [2], 0, 2)
        log.log_roll("1d4", [3], 0, 3)
        later = log.get_events(since_sequence=first.sequence_number)
        assert len(later) == 1
        assert later[0].total == 3

    def test_pause_and_resume(self):
        """Test that a paused log records nothing."""
        log = get_run_log()
        log.pause()
        try:
            log.log_roll("1d6", [1], 0, 1)
            assert log.get_event_count() == 0
        finally:
            log.resume()
        log.log_roll("1d6", [1], 0, 1)
        assert log.get_event_count() == 1

    def test_subscribers_receive_events(self):
        """Test that subscribers are called for each new event."""
        log = get_run_log()
        received = []
        log.subscribe(received.append)
        try:
            log.log_roll("1d8", [5], 0, 5)
        finally:
            log.unsubscribe(received.append)
        assert len(received) == 1
        assert received[0].notation == "1d8"

    def test_failing_subscriber_does_not_stop_logging(self):
        """Test that a raising subscriber is isolated."""
        log = get_run_log()

        def broken(event):
            raise RuntimeError("boom")

        log.subscribe(broken)
        try:
            log.log_roll("1d8", [5], 0, 5)
        finally:
            log.unsubscribe(broken)
        assert log.get_event_count() == 1

    def test_game_time_provider(self, fighter_world):
        """Test stamping events with the world clock."""
        log = get_run_log()
        log.set_game_time_provider(lambda: str(fighter_world.game_time))
        try:
            event = log.log_roll("1d4", [1], 0, 1)
        finally:
            log.set_game_time_provider(None)
        assert event.game_time == str(fighter_world.game_time)

    def test_roll_stream(self, seeded_dice):
        """Test the replayable roll stream."""
        seeded_dice.roll("2d6+1", reason="Damage")
        stream = get_run_log().get_roll_stream()
        assert len(stream) == 1
        assert stream[0]["notation"] == "2d6+1"
        assert stream[0]["modifier"] == 1
        assert len(stream[0]["rolls"]) == 2

    def test_save_and_load(self, tmp_path, engine, fighter_world):
        """Test round-tripping the log through a file."""
        log = get_run_log()
        log.set_seed(42)
        resolve_and_apply(engine, fighter_world, Attack(weapon_name="Longsword"))
        count = log.get_event_count()
        path = tmp_path / "run.json"
        log.save(str(path))

        data = json.loads(path.read_text())
        assert data["seed"] == 42
        assert len(data["events"]) == count

        reset_run_log()
        loaded = RunLog.load(str(path))
        assert loaded.get_event_count() == count
        assert loaded.get_seed() == 42
        assert loaded.get_resolutions()[0].intent_type == "Attack"

    def test_format_log(self):
        """Test the human-readable log dump."""
        log = get_run_log()
        log.log_roll("1d20", [12], 3, 15, reason="Attack")
        text = log.format_log()
        assert "=== Run Log ===" in text
        assert "ROLL 1d20: [12] + 3 = 15 (Attack)" in text

    def test_format_log_max_events(self):
        """Test limiting the dump to the latest events."""
        log = get_run_log()
        for face in (1, 2, 3):
            log.log_roll("1d6", [face], 0, face)
        text = log.format_log(max_events=1)
        assert "[3]" in text
        assert "[1] ROLL" not in text


class TestReplaySession:
    """Feeding a recorded roll stream back to the dice."""

    def test_from_run_log(self, seeded_dice):
        """Test building a replay session from a run log dict."""
        seeded_dice.roll("1d20")
        seeded_dice.roll("2d6")
        session = ReplaySession.from_run_log(get_run_log().to_dict())
        assert session.mode == ReplayMode.REPLAYING
        assert len(session.roll_stream) == 2
        assert session.get_remaining_rolls() == 2

    def test_replay_reproduces_faces(self):
        """Test that replayed rolls match the recorded faces."""
        original = DiceRoller(seed=1)
        first = [original.roll("1d20").rolls, original.roll("3d6").rolls]

        session = ReplaySession.from_run_log(get_run_log().to_dict())
        DiceRoller.set_replay_session(session)
        replayed_dice = DiceRoller(seed=999)
        second = [replayed_dice.roll("1d20").rolls, replayed_dice.roll("3d6").rolls]

        assert second == first
        assert session.get_remaining_rolls() == 0

    def test_replay_reproduces_a_combat_exchange(self, fighter_world):
        """Test replaying the dice behind an attack resolution."""
        engine = RulesEngine(DiceRoller(seed=11))
        first = engine.resolve(fighter_world, Attack(weapon_name="Longsword"))

        session = ReplaySession.from_run_log(get_run_log().to_dict())
        DiceRoller.set_replay_session(session)
        replay_engine = RulesEngine(DiceRoller(seed=12345))
        second = replay_engine.resolve(fighter_world, Attack(weapon_name="Longsword"))

        assert second.narrative == first.narrative
        assert second.effect_types() == first.effect_types()

    def test_overrun_falls_back_to_randomness(self):
        """Test that running out of recorded rolls falls back to the RNG."""
        session = ReplaySession(roll_stream=[], mode=ReplayMode.REPLAYING)
        DiceRoller.set_replay_session(session)
        result = DiceRoller(seed=3).roll("1d6")
        assert 1 <= result.total <= 6
        assert session.get_overrun_count() == 1

    def test_mismatched_roll_is_not_used(self):
        """Test that a recorded roll with a different shape is skipped."""
        session = ReplaySession(
            roll_stream=[{"notation": "1d4", "rolls": [4], "modifier": 0, "total": 4, "reason": ""}],
            mode=ReplayMode.REPLAYING,
        )
        DiceRoller.set_replay_session(session)
        result = DiceRoller(seed=3).roll("2d6")
        assert len(result.rolls) == 2

    def test_recording_session_captures_rolls(self):
        """Test recording rolls into a fresh session."""
        session = ReplaySession.recording(seed=5)
        DiceRoller.set_replay_session(session)
        DiceRoller(seed=5).roll("1d8", reason="Damage")
        assert session.is_recording()
        assert len(session.roll_stream) == 1
        assert session.roll_stream[0]["reason"] == "Damage"

    def test_start_replay_rewinds(self):
        """Test switching a recording session to replay."""
        session = ReplaySession.recording()
        DiceRoller.set_replay_session(session)
        recorded = DiceRoller(seed=8).roll("1d20").rolls

        session.start_replay()
        assert session.is_replaying()
        assert DiceRoller(seed=100).roll("1d20").rolls == recorded

    def test_not_replaying_returns_nothing(self):
        """Test that a disabled session hands out no rolls."""
        session = ReplaySession(roll_stream=[{"rolls": [1]}])
        assert session.get_next_roll() is None

    def test_save_and_load(self, tmp_path):
        """Test saving and loading a replay file."""
        session = ReplaySession.recording(seed=4)
        session.add_roll("1d6", [2], 0, 2, "test")
        path = tmp_path / "replay.json"
        session.save(str(path))

        loaded = ReplaySession.load(str(path))
        assert loaded.seed == 4
        assert loaded.is_replaying()
        assert loaded.peek_next_roll()["rolls"] == [2]

    def test_load_accepts_saved_run_log(self, tmp_path, seeded_dice):
        """Test loading a saved run log as a replay file."""
        seeded_dice.roll("1d12")
        path = tmp_path / "run.json"
        get_run_log().save(str(path))
        loaded = ReplaySession.load(str(path))
        assert loaded.roll_stream[0]["notation"] == "1d12"

    def test_summary(self):
        """Test the replay progress summary."""
        session = ReplaySession(seed=2, roll_stream=[{"rolls": [1]}], mode=ReplayMode.REPLAYING)
        session.get_next_roll()
        summary = session.get_summary()
        assert summary["current_position"] == 1
        assert summary["remaining_rolls"] == 0
        assert summary["mode"] == "replaying"

    def test_applied_effects_stay_in_sync_with_rolls(self, engine, fighter_world):
        """Test that each applied effect has a matching log entry."""
        resolution = engine.resolve(fighter_world, Attack(weapon_name="Longsword"))
        apply_effects(fighter_world, resolution.effects)
        assert len(get_run_log().get_applied_effects()) == len(resolution.effects)
