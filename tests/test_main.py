"""
Tests for the command line entry point.
"""

import json
from pathlib import Path

import pytest

from rulekeeper.main import (
    EngineConfig,
    create_config_from_args,
    create_world,
    load_script,
    main,
    parse_arguments,
)


@pytest.fixture
def script(tmp_path):
    """Write a small intent script and return its path."""
    path = tmp_path / "session.json"
    path.write_text(json.dumps([
        {"type": "AdjustGold", "amount": 10, "reason": "as a bounty"},
        {"type": "RemoveItem", "item_name": "Anvil"},
        {"type": "AdvanceTime", "minutes": 30},
    ]))
    return path


class TestArguments:
    """Command line parsing."""

    def test_roll_defaults(self):
        """Test the defaults of the roll command."""
        args = parse_arguments(["roll", "2d6+3"])
        assert args.command == "roll"
        assert args.notation == "2d6+3"
        assert args.seed is None
        assert not args.advantage
        assert not args.json

    def test_advantage_and_disadvantage_are_exclusive(self):
        """Test that advantage and disadvantage cannot be combined."""
        with pytest.raises(SystemExit):
            parse_arguments(["roll", "1d20", "--advantage", "--disadvantage"])

    def test_command_is_required(self):
        """Test that a subcommand is required."""
        with pytest.raises(SystemExit):
            parse_arguments([])

    def test_resolve_options(self, tmp_path):
        """Test resolve options flowing into the config."""
        args = parse_arguments([
            "-v", "resolve", "s.json", "--seed", "7", "--character", "wizard",
            "--run-log", str(tmp_path / "log.json"),
        ])
        config = create_config_from_args(args)
        assert config.seed == 7
        assert config.character == "wizard"
        assert config.verbose
        assert config.run_log_path == tmp_path / "log.json"

    def test_unknown_character_class(self):
        """Test rejecting a class without a sample character."""
        with pytest.raises(SystemExit):
            parse_arguments(["resolve", "s.json", "--character", "necromancer"])

    def test_roll_config_uses_defaults(self):
        """Test config defaults for the roll command."""
        config = create_config_from_args(parse_arguments(["roll", "1d4"]))
        assert config.character == "fighter"
        assert config.run_log_path is None


class TestConfig:
    """EngineConfig and world creation."""

    def test_string_paths_become_paths(self):
        """Test that string paths are converted to Path."""
        config = EngineConfig(run_log_path="out/log.json")
        assert isinstance(config.run_log_path, Path)

    @pytest.mark.parametrize("character", ["fighter", "cleric", "rogue"])
    def test_create_world(self, character):
        """Test building the sample world for a class."""
        world = create_world(EngineConfig(character=character))
        assert world.player_character.name == "Aria"
        assert world.player_character.primary_class.value == character


class TestRollCommand:
    """The roll command."""

    def test_roll(self, capsys):
        """Test rolling from the command line."""
        assert main(["roll", "1d20+2", "--seed", "1"]) == 0
        out = capsys.readouterr().out
        assert "RULEKEEPER v0.1.0" in out
        assert "1d20+2:" in out

    def test_seeded_rolls_repeat(self, capsys):
        """Test that a seed makes rolls repeatable."""
        main(["roll", "4d6", "--seed", "3"])
        first = capsys.readouterr().out
        main(["roll", "4d6", "--seed", "3"])
        assert capsys.readouterr().out == first

    def test_json_output(self, capsys):
        """Test the JSON summary output."""
        assert main(["roll", "3d6", "--seed", "5", "--json"]) == 0
        out = capsys.readouterr().out
        summary = json.loads(out[out.index("{"):])
        assert summary["notation"] == "3d6"
        assert len(summary["rolls"]) == 3

    def test_bad_notation(self, capsys):
        """Test reporting invalid notation."""
        assert main(["roll", "banana"]) == 1
        assert "Invalid dice notation" in capsys.readouterr().out


class TestResolveCommand:
    """The resolve command."""

    def test_resolve_script(self, capsys, script):
        """Test resolving a script of intents."""
        assert main(["resolve", str(script), "--seed", "1"]) == 0
        out = capsys.readouterr().out
        assert "fighter, in Millbrook" in out
        assert "[1] > Aria gains 10 gp as a bounty" in out
        assert "      effects: GoldChanged" in out
        assert "[2] x " in out
        assert "[3] > 30 minutes pass." in out
        assert "location Millbrook" in out

    def test_run_log_is_saved(self, capsys, script, tmp_path):
        """Test saving the run log after a script."""
        log_path = tmp_path / "run.json"
        assert main(["resolve", str(script), "--seed", "9", "--run-log", str(log_path)]) == 0
        assert f"Run log saved to {log_path}" in capsys.readouterr().out

        data = json.loads(log_path.read_text())
        assert data["seed"] == 9
        resolutions = [e for e in data["events"] if e.get("intent_type")]
        assert [e["intent_type"] for e in resolutions] == ["AdjustGold", "RemoveItem", "AdvanceTime"]

    def test_other_character(self, capsys, script):
        """Test resolving with another sample class."""
        assert main(["resolve", str(script), "--character", "cleric"]) == 0
        assert "cleric, in Millbrook" in capsys.readouterr().out

    def test_script_must_be_a_list(self, capsys, tmp_path):
        """Test that a script must hold a list."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"type": "ShortRest"}))
        assert main(["resolve", str(path)]) == 1
        assert "Could not load script" in capsys.readouterr().out

    def test_missing_script(self, capsys, tmp_path):
        """Test a script file that does not exist."""
        assert main(["resolve", str(tmp_path / "nope.json")]) == 1
        assert "Could not load script" in capsys.readouterr().out

    def test_unknown_intent_in_script(self, capsys, tmp_path):
        """Test a script naming an unknown intent type."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"type": "Teleport"}]))
        assert main(["resolve", str(path)]) == 1
        assert "Unknown intent type: Teleport" in capsys.readouterr().out

    def test_load_script(self, script):
        """Test loading a script file."""
        assert len(load_script(script)) == 3
