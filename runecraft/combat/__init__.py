"""Spell hits between actors and the runtime facade."""

from runecraft.combat.encounter import EncounterService, SpellHitResult, defensive_multiplier
from runecraft.combat.runtime import CastResult, SpellPreview, SpellRuntime

__all__ = [
    "EncounterService",
    "SpellHitResult",
    "defensive_multiplier",
    "CastResult",
    "SpellPreview",
    "SpellRuntime",
]
