"""
Pytest fixtures for the Runecraft test suite.

Provides catalogs, services wired to a fresh RunLog, and sample actors.
"""

import pytest

from runecraft.config import RulesConfig
from runecraft.content_loader.blueprint_catalog import load_default_blueprint_catalog
from runecraft.content_loader.rune_catalog import load_default_rune_catalog
from runecraft.data_models import Creature
from runecraft.evaluation.combat_stats import CombatStatsService
from runecraft.evaluation.evaluator import EvaluatorService
from runecraft.evolution.evolution_service import EvolutionService
from runecraft.combat.runtime import SpellRuntime
from runecraft.observability.run_log import RunLog, reset_run_log
from runecraft.progression.affinity import AffinityService
from runecraft.progression.player_service import PlayerService
from runecraft.progression.rune_familiarity import RuneFamiliarityService
from runecraft.spell.spell_factory import SpellFactory


@pytest.fixture(autouse=True)
def clean_default_run_log():
    """Keep the process-wide RunLog empty between tests."""
    reset_run_log()
    yield
    reset_run_log()


# =============================================================================
# CONTENT FIXTURES
# =============================================================================


@pytest.fixture
def rune_catalog():
    """The packaged 26-rune catalog."""
    return load_default_rune_catalog()


@pytest.fixture
def blueprint_catalog():
    """The packaged named spell catalog."""
    return load_default_blueprint_catalog()


@pytest.fixture
def rules():
    """Default rules constants."""
    return RulesConfig()


@pytest.fixture
def run_log():
    """A fresh RunLog recording every level."""
    return RunLog()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def factory(rune_catalog):
    return SpellFactory(rune_catalog)


@pytest.fixture
def evaluator(rune_catalog, rules, run_log):
    return EvaluatorService(rune_catalog, rules, run_log)


@pytest.fixture
def combat_stats(rune_catalog):
    return CombatStatsService(rune_catalog)


@pytest.fixture
def affinity_service(rules, run_log):
    return AffinityService(rules, run_log)


@pytest.fixture
def familiarity_service(rules, run_log):
    return RuneFamiliarityService(rules, run_log)


@pytest.fixture
def evolution_service(blueprint_catalog, rules, run_log):
    return EvolutionService(blueprint_catalog, rules, run_log)


@pytest.fixture
def runtime(rune_catalog, blueprint_catalog, rules, run_log):
    return SpellRuntime(rune_catalog, blueprint_catalog, rules, run_log)


# =============================================================================
# ACTOR FIXTURES
# =============================================================================


@pytest.fixture
def neutral_player():
    """Fresh player: 100 hp/mana, no familiarity, no modifiers."""
    return PlayerService().create("player-1", "Apprentice")


@pytest.fixture
def goblin():
    """A plain creature target."""
    return Creature(actor_id="goblin-1", name="Goblin", hp=30.0, max_hp=30.0, species="goblin")


@pytest.fixture
def far_spell(factory, neutral_player):
    """Nameless FAR spell owned by the neutral player."""
    return factory.create_nameless(neutral_player.actor_id, "FAR")

