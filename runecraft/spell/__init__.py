"""Spell construction, traits and tiers."""

from runecraft.spell.spell_factory import SpellFactory
from runecraft.spell.traits import SpellTraits
from runecraft.spell.spell_tier import (
    AFFINITY_WEIGHTS,
    SpellTier,
    get_affinity_weight_for_spell,
    get_spell_tier,
)

__all__ = [
    "SpellFactory",
    "SpellTraits",
    "SpellTier",
    "AFFINITY_WEIGHTS",
    "get_spell_tier",
    "get_affinity_weight_for_spell",
]
