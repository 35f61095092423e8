"""
Spell Evaluator for the Runecraft engine.

Turns a rune sequence, the caster's rune familiarity and the spell's
growth into a scalar snapshot: power, mana cost, instability and
synergy. The snapshot is also cached on ``spell.last_eval``.

Per rune with familiarity ``a`` (clamped to 0..1):
    power       += power_factor     * (1 + 0.5 a)
    control     += control_factor   * (1 + 0.25 a)
    instability += instability_base * (1 - 0.35 a)

Instability is the mean per-rune instability, raised by the formation
penalty and lowered by stability growth.

Usage:
    evaluator = EvaluatorService(catalog)
    snapshot = evaluator.evaluate(spell, player)
"""

import logging
from typing import Optional, Sequence

from runecraft.config import RulesConfig
from runecraft.content_loader.rune_catalog import RuneCatalog, load_default_rune_catalog
from runecraft.data_models import (
    CombatActor,
    RuneCode,
    RuneTag,
    Spell,
    SpellEvalSnapshot,
    clamp,
    round_to,
)
from runecraft.evaluation.cost import compute_spell_mana_cost
from runecraft.observability.run_log import RunLog, get_run_log
from runecraft.spell.traits import SpellTraits


logger = logging.getLogger(__name__)


def formation_penalty(runes: Sequence[RuneCode], config: Optional[RulesConfig] = None) -> float:
    """
    Penalty for awkward rune formations, in [0, formation_penalty_cap].

    Too few vowel runes scales a penalty up to ``vowel_penalty_max``, and
    every adjacent clashing pair adds ``clash_penalty``.
    """
    if not runes:
        return 0.0
    config = config or RulesConfig()

    letters = [RuneCode(r).value for r in runes]
    vowels = sum(1 for r in letters if r in config.vowel_runes)
    ratio = vowels / len(letters)

    vowel_penalty = 0.0
    if ratio < config.vowel_ratio_target:
        vowel_penalty = (
            config.vowel_penalty_max
            * (config.vowel_ratio_target - ratio)
            / config.vowel_ratio_target
        )

    clash = sum(
        config.clash_penalty
        for first, second in zip(letters, letters[1:])
        if config.is_clash(first, second)
    )
    return min(config.formation_penalty_cap, vowel_penalty + clash)


def synergy_score(traits: SpellTraits) -> float:
    """Rune combination synergy. No combinations are scored yet."""
    return 0.0


def growth_mitigation(growth_value: float, config: RulesConfig) -> float:
    """1 - clamp(growth / divisor, 0, cap)."""
    return 1 - clamp(
        growth_value / config.growth_mitigation_divisor, 0.0, config.growth_mitigation_cap
    )


class EvaluatorService:
    """Computes and caches SpellEvalSnapshot values."""

    def __init__(
        self,
        catalog: Optional[RuneCatalog] = None,
        config: Optional[RulesConfig] = None,
        run_log: Optional[RunLog] = None,
    ):
        self.catalog = catalog or load_default_rune_catalog()
        self.config = config or RulesConfig()
        self.run_log = run_log or get_run_log()

    def evaluate(self, spell: Spell, actor: CombatActor) -> SpellEvalSnapshot:
        """
        Evaluate a spell for a caster.

        Args:
            spell: Spell to evaluate; ``last_eval`` is overwritten
            actor: Caster whose rune familiarity amplifies the runes

        Returns:
            The new SpellEvalSnapshot
        """
        cfg = self.config
        power_sum = 0.0
        control_sum = 0.0
        instability_sum = 0.0
        tags: list[RuneTag] = []

        for code in spell.runes:
            rune = self.catalog.lookup(code)
            a = clamp(actor.affinity.get(rune.code, 0.0), 0.0, 1.0)

            power_sum += rune.power_factor * (1 + cfg.power_affinity_amp * a)
            control_sum += rune.control_factor * (1 + cfg.control_affinity_amp * a)
            instability_sum += rune.instability_base * (1 - cfg.instability_affinity_mitigation * a)

            for tag in rune.tags:
                if tag not in tags:
                    tags.append(tag)

        penalty = formation_penalty(spell.runes, cfg)

        # Control growth mitigation is computed but has no effect on the snapshot
        control_growth_mit = growth_mitigation(spell.growth.control, cfg)
        stability_growth_mit = growth_mitigation(spell.growth.stability, cfg)

        mean_instability = instability_sum / max(1, len(spell.runes))
        instability = round_to(max(0.0, mean_instability * (1 + penalty)) * stability_growth_mit, 3)
        power = round_to(max(0.0, power_sum), 2)
        synergy = round_to(synergy_score(SpellTraits(spell)), 3)
        cost = compute_spell_mana_cost(actor, spell, self.catalog, cfg)

        snapshot = SpellEvalSnapshot(
            power=power,
            cost=cost,
            instability=instability,
            synergy=synergy,
            effects=tags,
        )
        spell.last_eval = snapshot

        logger.debug(
            f"Evaluated {spell.rune_string} for {actor.actor_id}: power={power} "
            f"control={control_sum:.2f} (mit {control_growth_mit:.2f}) "
            f"instability={instability} penalty={penalty:.3f} cost={cost:g}"
        )
        self.run_log.log_evaluation(
            spell_id=spell.spell_id,
            actor_id=actor.actor_id,
            runes=spell.rune_string,
            power=power,
            cost=cost,
            instability=instability,
            formation_penalty=penalty,
        )
        return snapshot
