"""
Elemental affinity progression.

Casting a spell grows the caster's XP in the damage types the spell
focuses on. Affinity is a saturating function of XP:

    affinity = (xp / 100) / (1 + xp / 100)

so 0 XP gives 0, 100 XP gives 0.5 and the curve approaches 1. Only
confirmed casts should be recorded; previews must not call
``record_spell_use``.
"""

import logging
from typing import Optional

from runecraft.config import RulesConfig
from runecraft.data_models import CombatActor, DamageType, Spell, clamp
from runecraft.observability.run_log import RunLog, get_run_log


logger = logging.getLogger(__name__)


def xp_to_affinity(xp: float, config: Optional[RulesConfig] = None) -> float:
    """Map elemental XP to affinity in [0, affinity_soft_cap]. Negative XP counts as 0."""
    config = config or RulesConfig()
    t = max(0.0, xp) / config.xp_per_point
    return clamp(t / (1 + t), 0.0, config.affinity_soft_cap)


def compute_focus(vector: dict[DamageType, float]) -> dict[DamageType, float]:
    """
    Share of the vector's total held by each positive entry.

    Returns an empty map when the total is not positive.
    """
    total = sum(vector.values())
    if total <= 0:
        return {}
    return {t: v / total for t, v in vector.items() if v > 0}


class AffinityService:
    """Grows elemental XP and affinity on actors (players and creatures alike)."""

    def __init__(
        self,
        config: Optional[RulesConfig] = None,
        run_log: Optional[RunLog] = None,
    ):
        self.config = config or RulesConfig()
        self.run_log = run_log or get_run_log()

    def record_spell_use(self, actor: CombatActor, spell: Spell) -> dict[DamageType, float]:
        """
        Grow elemental XP after a confirmed cast.

        Burst and total DoT damage are each turned into per-type focus;
        every type gains ``xp_per_full_focus_cast * (burst + 0.7 * dot)``
        XP, then the whole affinity map is recomputed.

        Returns:
            XP gained per damage type (empty when the spell has no combat stats)
        """
        combat = spell.combat
        if combat is None:
            logger.debug(f"Spell {spell.spell_id} has no combat stats; no XP recorded")
            return {}

        cfg = self.config
        burst_focus = compute_focus(combat.burst)
        dot_focus = compute_focus(
            {t: v * combat.dot_duration_sec for t, v in combat.dot.items()}
        )

        gains: dict[DamageType, float] = {}
        xp = dict(actor.element_xp)
        for dtype in DamageType:
            contribution = (
                burst_focus.get(dtype, 0.0) * cfg.burst_focus_weight
                + dot_focus.get(dtype, 0.0) * cfg.dot_focus_weight
            )
            if contribution <= 0:
                continue
            gain = cfg.xp_per_full_focus_cast * contribution
            xp[dtype] = xp.get(dtype, 0.0) + gain
            gains[dtype] = gain

        actor.element_xp = xp
        actor.element_affinity = self.recompute_affinity_map(xp)

        if gains:
            logger.debug(
                f"{actor.actor_id} gained element XP from {spell.rune_string}: "
                + ", ".join(f"{t.value}+{g:.2f}" for t, g in gains.items())
            )
            self.run_log.log_progression(
                actor_id=actor.actor_id,
                spell_id=spell.spell_id,
                kind="element_xp",
                changes={t.value: g for t, g in gains.items()},
            )
        return gains

    def recompute_affinity_map(self, xp: dict[DamageType, float]) -> dict[DamageType, float]:
        """Affinity for every damage type with positive XP."""
        return {
            dtype: xp_to_affinity(xp[dtype], self.config)
            for dtype in DamageType
            if xp.get(dtype, 0.0) > 0
        }

    def get_affinity(self, actor: CombatActor, damage_type: DamageType) -> float:
        """Actor affinity for a damage type, clamped to [0, 1]; 0 when absent."""
        return clamp(actor.element_affinity.get(damage_type, 0.0), 0.0, 1.0)
