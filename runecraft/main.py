"""
Runecraft - Main Entry Point

Command line access to the rules engine: list the rune alphabet,
evaluate a rune sequence for a neutral player, and list the named spells
a sequence can evolve into.

This module provides the EngineConfig dataclass, the RunecraftEngine
that wires catalogs and services together, and the ``runecraft``
console script.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from runecraft import __version__
from runecraft.combat.runtime import SpellRuntime
from runecraft.config import RulesConfig, load_rules_config
from runecraft.content_loader.blueprint_catalog import BlueprintCatalog
from runecraft.content_loader.blueprint_loader import DEFAULT_BLUEPRINTS_FILE
from runecraft.content_loader.rune_catalog import RuneCatalog
from runecraft.content_loader.rune_loader import DEFAULT_RUNES_FILE
from runecraft.data_models import Player, Spell
from runecraft.errors import RunecraftError
from runecraft.observability.run_log import RunLog
from runecraft.progression.player_service import PlayerService
from runecraft.spell.spell_factory import SpellFactory


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
    """Content and rules locations for an engine instance."""

    runes_file: Path = DEFAULT_RUNES_FILE
    blueprints_file: Path = DEFAULT_BLUEPRINTS_FILE
    rules_file: Optional[Path] = None

    # Runtime options
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.runes_file, str):
            self.runes_file = Path(self.runes_file)
        if isinstance(self.blueprints_file, str):
            self.blueprints_file = Path(self.blueprints_file)
        if isinstance(self.rules_file, str):
            self.rules_file = Path(self.rules_file)


# =============================================================================
# ENGINE
# =============================================================================

class RunecraftEngine:
    """
    Owns the catalogs and services for one configuration.

    Everything is built explicitly from the EngineConfig; nothing reads
    the process-wide defaults.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.rules: RulesConfig = load_rules_config(self.config.rules_file)
        self.run_log = RunLog(min_level=logging.DEBUG if self.config.verbose else logging.INFO)
        self.catalog = RuneCatalog.from_file(self.config.runes_file)
        self.blueprints = BlueprintCatalog.from_file(self.config.blueprints_file)
        self.factory = SpellFactory(self.catalog)
        self.players = PlayerService()
        self.runtime = SpellRuntime(
            catalog=self.catalog,
            blueprints=self.blueprints,
            config=self.rules,
            run_log=self.run_log,
        )

    def neutral_player(self, familiarity: float = 0.0, runes: str = "") -> Player:
        """A fresh player, optionally with the same familiarity on the given runes."""
        initial = {r: familiarity for r in runes} if familiarity else None
        return self.players.create("cli-player", "Apprentice", initial)

    def craft(self, runes: str, owner: Player, name: Optional[str] = None) -> Spell:
        spell = self.factory.create_nameless(owner.actor_id, runes)
        spell.name = name
        return spell

    def describe_runes(self) -> list[dict[str, Any]]:
        return [rune.to_dict() for rune in self.catalog.list()]

    def evaluate(self, runes: str, familiarity: float = 0.0) -> dict[str, Any]:
        player = self.neutral_player(familiarity, runes.upper())
        spell = self.craft(runes, player)
        preview = self.runtime.preview(spell, player)
        return {"runes": spell.rune_string, **preview.to_dict()}

    def evolutions(
        self,
        runes: str,
        flags: Sequence[str] = (),
        name: Optional[str] = None,
        familiarity: float = 0.0,
    ) -> list[dict[str, Any]]:
        player = self.neutral_player(familiarity, runes.upper())
        spell = self.craft(runes, player, name)
        self.runtime.preview(spell, player)
        options = self.runtime.list_available_evolutions(spell, player, flags)
        return [option.to_dict() for option in options]


# =============================================================================
# CLI
# =============================================================================

def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="runecraft",
        description="Runecraft - deterministic rune spell-crafting rules engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  runecraft runes                                  # List the rune alphabet
  runecraft evaluate FAR                           # Evaluate a rune sequence
  runecraft evolutions FAR                         # Named spells FAR can become
  runecraft evolutions FAR --name "Ember Ray" \\
      --familiarity 0.6 --flag boss_fire_1_defeated
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    # Shared options, given after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    content_group = common.add_argument_group("Content Options")
    content_group.add_argument(
        "--runes-file",
        type=Path,
        default=DEFAULT_RUNES_FILE,
        help="Rune alphabet JSON (default: packaged runes.json)",
    )
    content_group.add_argument(
        "--blueprints-file",
        type=Path,
        default=DEFAULT_BLUEPRINTS_FILE,
        help="Named spell JSON (default: packaged named_spells.json)",
    )
    content_group.add_argument(
        "--rules-file",
        type=Path,
        default=None,
        help="JSON file overriding rules constants",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("runes", parents=[common], help="List the rune alphabet")

    evaluate = subparsers.add_parser(
        "evaluate", parents=[common], help="Evaluate a rune sequence for a neutral player"
    )
    evaluate.add_argument("runes", help="Rune sequence, e.g. FAR")
    evaluate.add_argument(
        "--familiarity",
        type=float,
        default=0.0,
        help="Player familiarity with each rune of the sequence (default: 0)",
    )

    evolutions = subparsers.add_parser(
        "evolutions", parents=[common], help="List named spells a rune sequence can evolve into"
    )
    evolutions.add_argument("runes", help="Rune sequence, e.g. FAR")
    evolutions.add_argument(
        "--flag",
        dest="flags",
        action="append",
        default=[],
        help="Progression flag held by the player (repeatable)",
    )
    evolutions.add_argument(
        "--name",
        default=None,
        help="Treat the spell as already named (for chained evolutions)",
    )
    evolutions.add_argument(
        "--familiarity",
        type=float,
        default=0.0,
        help="Player familiarity with each rune of the sequence (default: 0)",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> EngineConfig:
    """Create EngineConfig from parsed arguments."""
    return EngineConfig(
        runes_file=args.runes_file,
        blueprints_file=args.blueprints_file,
        rules_file=args.rules_file,
        verbose=args.verbose,
    )


def run_command(engine: RunecraftEngine, args: argparse.Namespace) -> Any:
    if args.command == "runes":
        return engine.describe_runes()
    if args.command == "evaluate":
        return engine.evaluate(args.runes, args.familiarity)
    if args.command == "evolutions":
        return engine.evolutions(args.runes, args.flags, args.name, args.familiarity)
    raise ValueError(f"Unknown command: {args.command}")


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    config = create_config_from_args(args)
    try:
        engine = RunecraftEngine(config)
        result = run_command(engine, args)
    except RunecraftError as e:
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
