"""
Combat Stats derivation.

Converts a spell's runes, the caster's rune familiarity, the spell's
growth and any infusions into a CombatStats snapshot (burst and damage
over time vectors, penetration, crits, crowd control and effects) and
caches it on ``spell.combat``.

Derivation runs in two phases:

1. Per rune: damage and penetration scaled by familiarity and overcharge,
   crowd control tags, base and overcharge effects, DoT affinity.
2. Global: trait and growth scaling, then part of the burst spills into
   damage over time before the burst scale is applied.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from runecraft.config import RulesConfig
from runecraft.content_loader.rune_catalog import RuneCatalog, load_default_rune_catalog
from runecraft.data_models import (
    CombatActor,
    CombatStats,
    CrowdControlTag,
    DamageType,
    EffectBlueprint,
    EffectInstance,
    RuneCode,
    RuneSymbol,
    Spell,
    clamp,
    round_to,
)
from runecraft.evaluation.cost import infusion_map
from runecraft.spell.traits import SpellTraits


logger = logging.getLogger(__name__)

_DEFAULT_RULES = RulesConfig()


@dataclass
class _Accumulator:
    """Mutable state shared by the derivation phases."""
    burst: dict[DamageType, float] = field(default_factory=dict)
    dot: dict[DamageType, float] = field(default_factory=dict)
    penetration: dict[DamageType, float] = field(default_factory=dict)
    cc_tags: list[CrowdControlTag] = field(default_factory=list)
    effects: list[EffectInstance] = field(default_factory=list)
    burst_scale: float = 1.0
    dot_scale: float = 0.0
    crit_chance: float = 0.0
    crit_mult: float = 0.0


def affinity_multiplier(
    actor: CombatActor,
    rune: RuneCode,
    config: Optional[RulesConfig] = None,
) -> float:
    """0..1 rune familiarity maps to a 1..1.5 multiplier with default rules."""
    cfg = config or _DEFAULT_RULES
    return 1 + cfg.damage_affinity_amp * clamp(actor.affinity.get(rune, 0.0), 0.0, 1.0)


def overcharge_factor(
    base_mana_cost: float,
    extra_mana: float,
    config: Optional[RulesConfig] = None,
) -> float:
    """Extra mana boosts a rune's output, up to +75% with default rules."""
    cfg = config or _DEFAULT_RULES
    if extra_mana <= 0:
        return 1.0
    denom = base_mana_cost * 2 or 1.0
    return 1 + min(cfg.max_overcharge_bonus, extra_mana / denom)


def round_half_up(value: float) -> int:
    """Round to the nearest whole second, halves rounding up."""
    return int(round_to(value, 0))


def dot_duration(traits: SpellTraits, config: Optional[RulesConfig] = None) -> int:
    cfg = config or _DEFAULT_RULES
    mult = cfg.duration_rune_mult if traits.has_duration else 1.0
    return round_half_up(cfg.base_dot_duration_sec * mult)


class CombatStatsService:
    """
    Derives CombatStats for spells.

    Usage:
        stats = CombatStatsService(catalog).derive(spell, player)
        stats.total_damage()
    """

    def __init__(
        self,
        catalog: Optional[RuneCatalog] = None,
        config: Optional[RulesConfig] = None,
    ):
        self.catalog = catalog or load_default_rune_catalog()
        self.config = config or RulesConfig()

    def derive(self, spell: Spell, caster: CombatActor) -> CombatStats:
        """
        Derive and cache combat stats for a spell.

        Args:
            spell: Spell to derive; ``combat`` is overwritten
            caster: Actor whose rune familiarity scales the output

        Returns:
            The new CombatStats
        """
        traits = SpellTraits(spell)
        extra_by_index = infusion_map(spell)
        cfg = self.config
        acc = _Accumulator(crit_chance=cfg.base_crit_chance, crit_mult=cfg.base_crit_mult)
        power = spell.growth.power

        for index, code in enumerate(spell.runes):
            rune = self.catalog.lookup(code)
            extra = extra_by_index.get(index, 0.0)
            aff_mul = affinity_multiplier(caster, rune.code, cfg)
            over = overcharge_factor(rune.mana_cost, extra, cfg)

            self._accumulate_damage(rune, aff_mul * over, acc)
            for tag in rune.cc_instant:
                if tag not in acc.cc_tags:
                    acc.cc_tags.append(tag)
            self._accumulate_effects(rune, traits, power, aff_mul, over, extra, acc)
            if rune.dot_affinity:
                acc.dot_scale += rune.dot_affinity

        self._apply_global_scaling(traits, spell, acc)

        stats = CombatStats(
            burst=acc.burst,
            dot=acc.dot,
            dot_duration_sec=max(0, dot_duration(traits, cfg)),
            penetration=acc.penetration,
            crit_chance=clamp(acc.crit_chance, 0.0, cfg.max_crit_chance),
            crit_mult=acc.crit_mult,
            cc_tags=acc.cc_tags,
            effects=acc.effects,
        )
        spell.combat = stats
        logger.debug(
            f"Derived combat stats for {spell.rune_string}: "
            f"total={stats.total_damage():.2f} crit={stats.crit_chance:.2f} "
            f"effects={len(stats.effects)}"
        )
        return stats

    def _accumulate_damage(self, rune: RuneSymbol, scale: float, acc: _Accumulator) -> None:
        for dtype, base in rune.damage.items():
            acc.burst[dtype] = acc.burst.get(dtype, 0.0) + base * scale
        for dtype, pen in rune.penetration.items():
            acc.penetration[dtype] = clamp(
                acc.penetration.get(dtype, 0.0) + pen, 0.0, self.config.max_penetration
            )

    def _accumulate_effects(
        self,
        rune: RuneSymbol,
        traits: SpellTraits,
        power: float,
        aff_mul: float,
        over: float,
        extra: float,
        acc: _Accumulator,
    ) -> None:
        duration_mul = self.config.duration_rune_mult if traits.has_duration else 1.0
        mag_scale = 1 + min(0.5, power / 150)

        def resolve(blueprint: EffectBlueprint) -> EffectInstance:
            return EffectInstance(
                effect_type=blueprint.effect_type,
                magnitude=blueprint.base_magnitude * aff_mul * mag_scale * over,
                duration_sec=round_half_up(blueprint.base_duration_sec * duration_mul),
                self_target=blueprint.self_target or traits.is_self_target,
            )

        for blueprint in rune.effects:
            acc.effects.append(resolve(blueprint))

        if extra > 0:
            for tier in rune.overcharge_effects:
                if extra >= tier.min_extra_mana:
                    acc.effects.append(resolve(tier.blueprint))

    def _apply_global_scaling(self, traits: SpellTraits, spell: Spell, acc: _Accumulator) -> None:
        cfg = self.config
        power = spell.growth.power
        control = spell.growth.control
        stability = spell.growth.stability

        if traits.has_duration:
            acc.dot_scale += 0.15
        if traits.is_amplified:
            acc.burst_scale += 0.2
            acc.crit_chance += 0.05
        if traits.is_aoe:
            acc.burst_scale += 0.15
        if traits.is_beam_like:
            acc.burst_scale += 0.1

        acc.burst_scale *= 1 + min(0.5, power / 100)
        acc.dot_scale *= 1 + min(0.5, power / 150)
        acc.crit_chance += min(0.15, control / 500)
        acc.crit_mult += min(0.25, power / 400)

        pen_mul = 1 + min(0.3, stability / 400)
        for dtype in acc.penetration:
            acc.penetration[dtype] = clamp(acc.penetration[dtype] * pen_mul, 0.0, cfg.max_penetration)

        # Spill part of the burst into damage per second
        duration = max(1, dot_duration(traits, cfg))
        spill_ratio = clamp(acc.dot_scale, 0.0, cfg.max_dot_spill)
        for dtype, total in acc.burst.items():
            spill = total * spill_ratio
            acc.burst[dtype] = total - spill
            if spill > 0:
                acc.dot[dtype] = acc.dot.get(dtype, 0.0) + spill / duration

        for dtype in acc.burst:
            acc.burst[dtype] *= acc.burst_scale
