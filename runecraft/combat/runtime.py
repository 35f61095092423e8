"""
Spell runtime facade.

Small entry point for a game layer: cast a spell at a target, preview a
spell without side effects on the caster, and list or perform
evolutions. It wires the lower-level services together and serializes
writes per actor and per spell through an EntityLockRegistry.

Usage:
    runtime = SpellRuntime()
    result = runtime.cast_spell(spell, player, goblin)
    options = runtime.list_available_evolutions(spell, player, {"boss_fire_1_defeated"})
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from runecraft.config import RulesConfig
from runecraft.content_loader.blueprint_catalog import BlueprintCatalog
from runecraft.content_loader.rune_catalog import RuneCatalog, load_default_rune_catalog
from runecraft.data_models import CombatActor, CombatStats, Spell, SpellEvalSnapshot
from runecraft.errors import InsufficientManaError
from runecraft.evaluation.combat_stats import CombatStatsService
from runecraft.evaluation.cost import compute_spell_mana_cost
from runecraft.evaluation.evaluator import EvaluatorService
from runecraft.evolution.evolution_service import EvolutionService, SpellEvolutionOption
from runecraft.combat.encounter import EncounterService, SpellHitResult
from runecraft.observability.run_log import RunLog, get_run_log
from runecraft.progression.affinity import AffinityService
from runecraft.progression.locks import EntityLockRegistry
from runecraft.progression.rune_familiarity import RuneFamiliarityService
from runecraft.spell.spell_tier import get_affinity_weight_for_spell, get_spell_tier


logger = logging.getLogger(__name__)


@dataclass
class CastResult:
    """What a cast did to the caster and the target."""
    hit: SpellHitResult
    mana_spent: float
    caster: CombatActor
    target: CombatActor

    def to_dict(self) -> dict[str, Any]:
        return {
            "hit": self.hit.to_dict(),
            "mana_spent": self.mana_spent,
            "caster": self.caster.to_dict(),
            "target": self.target.to_dict(),
        }


@dataclass
class SpellPreview:
    """Evaluation and combat stats computed without progression."""
    evaluation: SpellEvalSnapshot
    combat: CombatStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "evaluation": self.evaluation.to_dict(),
            "combat": self.combat.to_dict(),
            "total_damage": round(self.combat.total_damage(), 3),
        }


class SpellRuntime:
    """Facade over evaluation, combat, progression and evolution."""

    def __init__(
        self,
        catalog: Optional[RuneCatalog] = None,
        blueprints: Optional[BlueprintCatalog] = None,
        config: Optional[RulesConfig] = None,
        run_log: Optional[RunLog] = None,
        locks: Optional[EntityLockRegistry] = None,
    ):
        self.catalog = catalog or load_default_rune_catalog()
        self.config = config or RulesConfig()
        self.run_log = run_log or get_run_log()
        self.locks = locks or EntityLockRegistry()

        self.evaluator = EvaluatorService(self.catalog, self.config, self.run_log)
        self.stats = CombatStatsService(self.catalog, self.config)
        self.affinity = AffinityService(self.config, self.run_log)
        self.familiarity = RuneFamiliarityService(self.config, self.run_log)
        self.encounter = EncounterService(self.stats, self.affinity, self.config)
        self.evolution = EvolutionService(blueprints, self.config, self.run_log, self.familiarity)

    def cast_spell(self, spell: Spell, caster: CombatActor, target: CombatActor) -> CastResult:
        """
        Cast a spell at a target.

        Pays the mana cost, resolves the hit, then grows the caster's
        elemental XP and rune familiarity.

        Raises:
            InsufficientManaError: If the caster cannot pay; nothing changes
        """
        with self.locks.hold(caster.actor_id, target.actor_id, spell.spell_id):
            cost = compute_spell_mana_cost(caster, spell, self.catalog, self.config)
            if caster.mana < cost:
                raise InsufficientManaError(caster.actor_id, cost, caster.mana)
            caster.mana -= cost

            hit = self.encounter.resolve_spell_hit(caster, spell, target)
            self.affinity.record_spell_use(caster, spell)
            self.familiarity.record_spell_cast(caster, spell)

            self.run_log.log_cast(
                caster_id=caster.actor_id,
                target_id=target.actor_id,
                spell_id=spell.spell_id,
                mana_spent=cost,
                total_damage=hit.total_damage,
                target_hp_after=hit.target_hp_after,
                context={
                    "tier": get_spell_tier(spell).name.lower(),
                    "affinity_weight": get_affinity_weight_for_spell(spell),
                },
            )

        logger.info(
            f"{caster.actor_id} cast {spell.display_name} at {target.actor_id}: "
            f"{hit.total_damage:.2f} damage for {cost:g} mana"
        )
        return CastResult(hit=hit, mana_spent=cost, caster=caster, target=target)

    def preview(self, spell: Spell, caster: CombatActor) -> SpellPreview:
        """Evaluate and derive combat stats; the caster is not modified."""
        with self.locks.hold(spell.spell_id):
            evaluation = self.evaluator.evaluate(spell, caster)
            combat = self.stats.derive(spell, caster)
            spell.craft_cost = evaluation.cost
        return SpellPreview(evaluation=evaluation, combat=combat)

    def list_available_evolutions(
        self,
        spell: Spell,
        actor: Optional[CombatActor] = None,
        flags: Optional[Iterable[str]] = None,
    ) -> list[SpellEvolutionOption]:
        return self.evolution.list_possible_evolutions(spell, actor, flags)

    def try_evolve_spell(
        self,
        spell: Spell,
        blueprint_id: str,
        actor: Optional[CombatActor] = None,
        flags: Optional[Iterable[str]] = None,
    ) -> Optional[Spell]:
        """Evolve into ``blueprint_id`` if allowed; None otherwise."""
        return self.evolution.evolve_spell(spell, blueprint_id, actor, flags)
