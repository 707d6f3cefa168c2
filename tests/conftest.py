"""
Pytest fixtures for the Rulekeeper test suite.

Provides seeded dice, engines and sample worlds for each class.
"""

import pytest

from rulekeeper.classes.character_builder import (
    create_sample_barbarian,
    create_sample_bard,
    create_sample_cleric,
    create_sample_druid,
    create_sample_fighter,
    create_sample_monk,
    create_sample_paladin,
    create_sample_rogue,
    create_sample_sorcerer,
    create_sample_wizard,
    create_sample_world,
)
from rulekeeper.data_models import Combatant
from rulekeeper.dice.dice_roller import DiceRoller
from rulekeeper.observability.run_log import reset_run_log
from rulekeeper.rules.engine import RulesEngine


# =============================================================================
# GLOBAL STATE
# =============================================================================


@pytest.fixture(autouse=True)
def reset_observability():
    """Start every test with an empty run log and no replay session."""
    reset_run_log()
    DiceRoller.set_replay_session(None)
    yield
    DiceRoller.set_replay_session(None)
    reset_run_log()


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    return DiceRoller(seed=42)


@pytest.fixture
def clean_dice():
    """Provide a DiceRoller without a seed."""
    return DiceRoller()


@pytest.fixture
def engine(seeded_dice):
    """Rules engine on a seeded roller."""
    return RulesEngine(seeded_dice)


# =============================================================================
# WORLD FIXTURES
# =============================================================================


@pytest.fixture
def fighter_world():
    """Level 1 fighter (28 HP, chain mail, longsword) in Millbrook."""
    return create_sample_world(create_sample_fighter("Roland"))


@pytest.fixture
def cleric_world():
    return create_sample_world(create_sample_cleric("Brother Aldric"))


@pytest.fixture
def rogue_world():
    return create_sample_world(create_sample_rogue("Nyx", level=3))


@pytest.fixture
def barbarian_world():
    return create_sample_world(create_sample_barbarian("Grog", level=3))


@pytest.fixture
def wizard_world():
    return create_sample_world(create_sample_wizard("Elminster"))


@pytest.fixture
def paladin_world():
    return create_sample_world(create_sample_paladin("Sir Galahad"))


@pytest.fixture
def druid_world():
    return create_sample_world(create_sample_druid("Thornwood"))


@pytest.fixture
def monk_world():
    return create_sample_world(create_sample_monk("Li Wei"))


@pytest.fixture
def sorcerer_world():
    return create_sample_world(create_sample_sorcerer("Zara", level=3))


@pytest.fixture
def bard_world():
    return create_sample_world(create_sample_bard("Melody"))


@pytest.fixture
def combat_world(fighter_world):
    """Fighter in combat with a single goblin (id 'goblin-1', 7 HP, AC 15)."""
    character = fighter_world.player_character
    combat = fighter_world.start_combat()
    combat.add_combatant(Combatant(
        id=character.id,
        name=character.name,
        initiative=15,
        is_player=True,
        is_ally=True,
        current_hp=character.hit_points.current,
        max_hp=character.hit_points.maximum,
        armor_class=character.current_ac(),
    ))
    combat.add_combatant(Combatant(
        id="goblin-1",
        name="Goblin",
        initiative=12,
        current_hp=7,
        max_hp=7,
        armor_class=15,
    ))
    return fighter_world
