"""Evolution of crafted spells into named spells."""

from runecraft.evolution.evolution_service import (
    EvolutionContext,
    EvolutionService,
    GateResult,
    MatchReport,
    SpellEvolutionOption,
    contains_all_runes,
    damage_focus_ratio,
    extras_only_allowed,
    total_damage,
)

__all__ = [
    "EvolutionContext",
    "EvolutionService",
    "GateResult",
    "MatchReport",
    "SpellEvolutionOption",
    "contains_all_runes",
    "damage_focus_ratio",
    "extras_only_allowed",
    "total_damage",
]
