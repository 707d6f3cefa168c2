"""
Rulekeeper - Main Entry Point

Command line access to the rules kernel: roll dice, or resolve a scripted
list of intents against a sample world and print each narrative.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from rulekeeper import __version__
from rulekeeper.classes.character_builder import SAMPLE_BUILDERS, create_sample_world
from rulekeeper.data_models import CharacterClass, GameWorld
from rulekeeper.dice.dice_roller import (
    Advantage,
    DiceParseError,
    DiceRoller,
    roll_result_summary,
)
from rulekeeper.observability.run_log import get_run_log
from rulekeeper.rules.effect_applier import apply_effects
from rulekeeper.rules.engine import RulesEngine
from rulekeeper.rules.serialization import intents_from_list


# Configure logging
def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class EngineConfig:
    """Configuration for an engine session."""

    seed: Optional[int] = None
    character: str = "fighter"
    run_log_path: Optional[Path] = None
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.run_log_path, str):
            self.run_log_path = Path(self.run_log_path)


def create_engine(config: EngineConfig) -> RulesEngine:
    """Build an engine with its own roller, recording the seed in the run log."""
    dice = DiceRoller(seed=config.seed)
    if config.seed is not None:
        get_run_log().set_seed(config.seed)
    logger.debug(f"Engine created (seed={config.seed})")
    return RulesEngine(dice)


def create_world(config: EngineConfig) -> GameWorld:
    """Build the sample world around a sample character of the configured class."""
    character_class = CharacterClass(config.character)
    builder = SAMPLE_BUILDERS[character_class]
    return create_sample_world(builder("Aria"), campaign_name="Rulekeeper Session")


# =============================================================================
# COMMANDS
# =============================================================================

def run_roll(args: argparse.Namespace, config: EngineConfig) -> int:
    """Roll a dice expression and print the breakdown."""
    mode = Advantage.NORMAL
    if args.advantage:
        mode = Advantage.ADVANTAGE
    elif args.disadvantage:
        mode = Advantage.DISADVANTAGE

    dice = DiceRoller(seed=config.seed)
    try:
        result = dice.roll_with_advantage(args.notation, mode, reason="command line")
    except DiceParseError as e:
        print(f"Invalid dice notation: {e}")
        return 1

    print(result)
    if args.json:
        print(json.dumps(roll_result_summary(result), indent=2))
    return 0


def load_script(path: Path) -> list[dict[str, Any]]:
    """Load a JSON intent script: a list of tagged intent dicts."""
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of intents")
    return data


def run_script(args: argparse.Namespace, config: EngineConfig) -> int:
    """Resolve and apply each scripted intent in order."""
    try:
        intents = intents_from_list(load_script(args.script))
    except (OSError, ValueError) as e:
        print(f"Could not load script: {e}")
        return 1

    engine = create_engine(config)
    world = create_world(config)
    character = world.player_character
    print(f"{character.name}, level {character.level} {config.character}, "
          f"in {world.current_location.name}\n")

    for index, intent in enumerate(intents, start=1):
        resolution = engine.resolve(world, intent)
        apply_effects(world, resolution.effects)
        marker = "x" if resolution.is_rejected() else ">"
        print(f"[{index}] {marker} {resolution.narrative}")
        if resolution.effects:
            print(f"      effects: {', '.join(resolution.effect_types())}")

    hp = character.hit_points
    print(f"\nHP {hp.current}/{hp.maximum}, gold {character.inventory.gold}, "
          f"location {world.current_location.name}, time {world.game_time}")

    if config.run_log_path is not None:
        get_run_log().save(str(config.run_log_path))
        print(f"Run log saved to {config.run_log_path}")
    return 0


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Rulekeeper - a deterministic rules kernel for tabletop RPG play",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rulekeeper.main roll 1d20+5 --advantage
  python -m rulekeeper.main roll 8d6 --seed 42
  python -m rulekeeper.main resolve session.json --character cleric --seed 7
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    roll_parser = subparsers.add_parser("roll", help="Roll a dice expression")
    roll_parser.add_argument("notation", type=str, help="Dice notation, e.g. 2d6+3")
    advantage_group = roll_parser.add_mutually_exclusive_group()
    advantage_group.add_argument("--advantage", action="store_true", help="Roll a d20 twice, keep the higher")
    advantage_group.add_argument("--disadvantage", action="store_true", help="Roll a d20 twice, keep the lower")
    roll_parser.add_argument("--seed", type=int, help="Random seed for reproducible rolls")
    roll_parser.add_argument("--json", action="store_true", help="Also print the roll as JSON")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a JSON script of intents")
    resolve_parser.add_argument("script", type=Path, help="JSON file holding a list of intents")
    resolve_parser.add_argument("--seed", type=int, help="Random seed for reproducible rolls")
    resolve_parser.add_argument(
        "--character",
        type=str,
        default="fighter",
        choices=sorted(c.value for c in SAMPLE_BUILDERS),
        help="Sample character class (default: fighter)",
    )
    resolve_parser.add_argument("--run-log", type=Path, help="Save the run log to this path")

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> EngineConfig:
    """Create EngineConfig from parsed arguments."""
    return EngineConfig(
        seed=args.seed,
        character=getattr(args, "character", "fighter"),
        run_log_path=getattr(args, "run_log", None),
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    config = create_config_from_args(args)

    print("=" * 60)
    print(f"RULEKEEPER v{__version__}")
    print("=" * 60)

    if args.command == "roll":
        return run_roll(args, config)
    return run_script(args, config)


if __name__ == "__main__":
    sys.exit(main())
