"""Spell evaluation: mana cost, scalar snapshot and combat stats."""

from runecraft.evaluation.cost import (
    compute_base_mana_cost,
    compute_spell_mana_cost,
    infusion_map,
)
from runecraft.evaluation.evaluator import (
    EvaluatorService,
    formation_penalty,
    growth_mitigation,
    synergy_score,
)
from runecraft.evaluation.combat_stats import CombatStatsService

__all__ = [
    "compute_base_mana_cost",
    "compute_spell_mana_cost",
    "infusion_map",
    "EvaluatorService",
    "formation_penalty",
    "growth_mitigation",
    "synergy_score",
    "CombatStatsService",
]
