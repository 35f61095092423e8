"""
Mana cost calculation.

Base cost is the sum of the rune mana costs plus any non-negative mana
infused into a rune position. The caster's cost efficiency then takes a
capped fraction off the total.
"""

import logging
from typing import Optional

from runecraft.config import RulesConfig
from runecraft.content_loader.rune_catalog import RuneCatalog, load_default_rune_catalog
from runecraft.data_models import CombatActor, Spell, clamp


logger = logging.getLogger(__name__)


def infusion_map(spell: Spell) -> dict[int, float]:
    """
    Extra mana per rune index.

    Negative infusions count as zero and several infusions at the same
    index add up. Indices outside the rune sequence are dropped.
    """
    extra: dict[int, float] = {}
    length = len(spell.runes)
    for infusion in spell.infusions:
        if not 0 <= infusion.index < length:
            logger.debug(
                f"Ignoring infusion at index {infusion.index} for spell "
                f"{spell.spell_id} with {length} runes"
            )
            continue
        extra[infusion.index] = extra.get(infusion.index, 0.0) + max(0.0, infusion.extra_mana)
    return extra


def compute_base_mana_cost(
    spell: Spell,
    catalog: Optional[RuneCatalog] = None,
) -> float:
    """Rune mana costs plus infused mana, before efficiency."""
    catalog = catalog or load_default_rune_catalog()
    base = sum(catalog.lookup(r).mana_cost for r in spell.runes)
    return base + sum(infusion_map(spell).values())


def compute_spell_mana_cost(
    actor: CombatActor,
    spell: Spell,
    catalog: Optional[RuneCatalog] = None,
    config: Optional[RulesConfig] = None,
) -> float:
    """
    Total mana needed to cast a spell.

    Args:
        actor: Caster; only a Player carries ``cost_efficiency``
        spell: Spell being cast
        catalog: Rune catalog (packaged catalog when omitted)
        config: Rules constants (defaults when omitted)

    Returns:
        Non-negative mana cost, unrounded
    """
    config = config or RulesConfig()
    efficiency = clamp(getattr(actor, "cost_efficiency", 0.0) or 0.0, 0.0, config.cost_efficiency_cap)
    return max(0.0, compute_base_mana_cost(spell, catalog) * (1 - efficiency))
