"""
Encounter resolution.

Applies a single spell hit from a caster to a target: burst damage per
type, reduced by the target's elemental affinity, comes off the target's
hp and the spell's on-hit effects are attached to the target.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from runecraft.config import RulesConfig
from runecraft.data_models import CombatActor, DamageType, EffectInstance, Spell, clamp
from runecraft.evaluation.combat_stats import CombatStatsService
from runecraft.progression.affinity import AffinityService


logger = logging.getLogger(__name__)

_DEFAULT_RULES = RulesConfig()


def defensive_multiplier(affinity: float, config: Optional[RulesConfig] = None) -> float:
    """0 affinity takes full damage; with default rules 1 affinity takes half."""
    reduction = (config or _DEFAULT_RULES).defensive_affinity_reduction
    return 1 - reduction * clamp(affinity, 0.0, 1.0)


@dataclass
class SpellHitResult:
    """Outcome of one resolved hit."""
    caster_id: str
    target_id: str
    per_type: dict[DamageType, float] = field(default_factory=dict)
    total_damage: float = 0.0
    target_hp_before: float = 0.0
    target_hp_after: float = 0.0
    effects_applied: list[EffectInstance] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "caster_id": self.caster_id,
            "target_id": self.target_id,
            "per_type": {t.value: v for t, v in self.per_type.items()},
            "total_damage": self.total_damage,
            "target_hp_before": self.target_hp_before,
            "target_hp_after": self.target_hp_after,
            "effects_applied": [e.to_dict() for e in self.effects_applied],
        }


class EncounterService:
    """Resolves spell hits between actors."""

    def __init__(
        self,
        stats: Optional[CombatStatsService] = None,
        affinity: Optional[AffinityService] = None,
        config: Optional[RulesConfig] = None,
    ):
        self.stats = stats or CombatStatsService(config=config)
        self.affinity = affinity or AffinityService(config)
        self.config = config or self.stats.config

    def resolve_spell_hit(
        self,
        caster: CombatActor,
        spell: Spell,
        target: CombatActor,
    ) -> SpellHitResult:
        """
        Resolve one hit.

        Combat stats are derived first when the spell has none or has no
        effects. The target's hp is floored at 0 and each on-hit effect is
        copied onto ``target.effects``.
        """
        if spell.combat is None or not spell.combat.effects:
            self.stats.derive(spell, caster)
        combat = spell.combat

        per_type: dict[DamageType, float] = {}
        total = 0.0
        for dtype in DamageType:
            base = combat.burst.get(dtype, 0.0)
            if base <= 0:
                continue
            applied = base * defensive_multiplier(self.affinity.get_affinity(target, dtype), self.config)
            if applied > 0:
                per_type[dtype] = applied
                total += applied

        hp_before = target.hp
        target.hp = max(0.0, hp_before - total)

        applied_effects = [
            EffectInstance(e.effect_type, e.magnitude, e.duration_sec, e.self_target)
            for e in combat.effects
        ]
        target.effects.extend(applied_effects)

        logger.debug(
            f"{caster.actor_id} hit {target.actor_id} with {spell.display_name} "
            f"for {total:.2f} ({hp_before:.1f} -> {target.hp:.1f})"
        )
        return SpellHitResult(
            caster_id=caster.actor_id,
            target_id=target.actor_id,
            per_type=per_type,
            total_damage=total,
            target_hp_before=hp_before,
            target_hp_after=target.hp,
            effects_applied=applied_effects,
        )
