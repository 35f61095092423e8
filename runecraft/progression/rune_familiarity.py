"""
Rune familiarity.

Familiarity lives on ``actor.affinity`` as a 0..1 value per rune letter.
It grows whenever a spell using that rune is cast, slowly for nameless
spells and faster for named and evolved ones, and gates evolution into
advanced named spells.
"""

import logging
from typing import Optional

from runecraft.config import RulesConfig
from runecraft.data_models import CombatActor, RuneCode, Spell, clamp
from runecraft.observability.run_log import RunLog, get_run_log


logger = logging.getLogger(__name__)


def spell_profile(spell: Spell) -> dict[RuneCode, float]:
    """The spell's profile, rebuilt from its runes when missing."""
    if spell.profile:
        return spell.profile
    if not spell.runes:
        return {}
    counts: dict[RuneCode, int] = {}
    for r in spell.runes:
        counts[r] = counts.get(r, 0) + 1
    return {r: c / len(spell.runes) for r, c in counts.items()}


class RuneFamiliarityService:
    """Reads and grows per-rune familiarity."""

    def __init__(
        self,
        config: Optional[RulesConfig] = None,
        run_log: Optional[RunLog] = None,
    ):
        self.config = config or RulesConfig()
        self.run_log = run_log or get_run_log()

    def tier_multiplier(self, spell: Spell) -> float:
        cfg = self.config
        if spell.is_nameless:
            return cfg.familiarity_nameless_mult
        if spell.evolved_from:
            return cfg.familiarity_evolved_mult
        return cfg.familiarity_named_mult

    def record_spell_cast(self, actor: CombatActor, spell: Spell) -> dict[RuneCode, float]:
        """
        Grow familiarity for every rune in a cast spell.

        Each rune gains ``base_step * profile_weight * tier_multiplier``,
        capped at ``max_familiarity``.

        Returns:
            Familiarity actually gained per rune
        """
        cfg = self.config
        tier_mul = self.tier_multiplier(spell)
        current = dict(actor.affinity)
        gains: dict[RuneCode, float] = {}

        for rune, weight in spell_profile(spell).items():
            if weight <= 0:
                continue
            previous = current.get(rune, 0.0)
            updated = clamp(
                previous + cfg.familiarity_base_step * weight * tier_mul,
                0.0,
                cfg.max_familiarity,
            )
            if updated != previous:
                current[rune] = updated
                gains[rune] = updated - previous

        if gains:
            actor.affinity = current
            self.run_log.log_progression(
                actor_id=actor.actor_id,
                spell_id=spell.spell_id,
                kind="rune_familiarity",
                changes={r.value: g for r, g in gains.items()},
            )
        return gains

    def get_rune_familiarity(self, actor: CombatActor, rune: RuneCode) -> float:
        """Familiarity with one rune, clamped; 0 when the actor never used it."""
        return clamp(actor.affinity.get(rune, 0.0), 0.0, self.config.max_familiarity)

    def get_spell_familiarity_score(self, actor: CombatActor, spell: Spell) -> float:
        """
        Aggregate familiarity for a spell.

        Sum over the distinct runes of the spell of familiarity weighted
        by the rune's share of the profile, so a spell whose runes are all
        at familiarity ``f`` scores ``f``.
        """
        return sum(
            self.get_rune_familiarity(actor, rune) * weight
            for rune, weight in spell_profile(spell).items()
        )
