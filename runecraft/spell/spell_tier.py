"""
Spell tiers.

A spell is nameless until it evolves; a named spell that was itself
evolved from another spell sits one tier higher. Tiers scale how fast
casting a spell grows the caster's affinity.
"""

from enum import IntEnum

from runecraft.data_models import Spell


class SpellTier(IntEnum):
    NAMELESS = 0
    NAMED_TIER_1 = 1
    NAMED_TIER_2_PLUS = 2


# Affinity gain multiplier per tier
AFFINITY_WEIGHTS: dict[SpellTier, float] = {
    SpellTier.NAMELESS: 0.4,
    SpellTier.NAMED_TIER_1: 1.0,
    SpellTier.NAMED_TIER_2_PLUS: 1.3,
}


def get_spell_tier(spell: Spell) -> SpellTier:
    if spell.is_nameless:
        return SpellTier.NAMELESS
    if not spell.evolved_from:
        return SpellTier.NAMED_TIER_1
    return SpellTier.NAMED_TIER_2_PLUS


def get_affinity_weight_for_spell(spell: Spell) -> float:
    """Multiplier applied to affinity growth from casting this spell."""
    return AFFINITY_WEIGHTS[get_spell_tier(spell)]
