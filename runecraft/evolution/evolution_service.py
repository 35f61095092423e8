"""
Spell evolution for the Runecraft engine.

Matches spells against the named spell blueprint catalog, scores the
candidates, and produces evolved named spells.

A spell matches a blueprint when every requirement the blueprint sets
holds:

1. nameless_source: unless the blueprint chains from another, the spell
   must still be nameless
2. required_runes: the spell contains the required runes as a multiset
3. allowed_extras: every spell rune is required or whitelisted
4. damage_focus: one damage type holds at least the required share
5. total_power: total damage (burst + full DoT) reaches the minimum
6. rune_familiarity: per-rune familiarity thresholds (needs an actor)
7. familiarity_score: aggregate familiarity threshold (needs an actor)
8. flags: every required flag is present
9. named_source: the spell carries the source blueprint's name

Each check is traced as a GateCheckEvent in the RunLog and logged at
DEBUG, so it is visible why a spell did not qualify.

Usage:
    service = EvolutionService(blueprint_catalog)
    for option in service.list_possible_evolutions(spell, actor, {"boss_fire_1_defeated"}):
        print(option.blueprint.name, option.score)
    named = service.evolve_spell(spell, "ember_ray", actor)
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from runecraft.config import RulesConfig
from runecraft.content_loader.blueprint_catalog import (
    BlueprintCatalog,
    load_default_blueprint_catalog,
)
from runecraft.data_models import (
    CombatActor,
    DamageType,
    NamedSpellBlueprint,
    RuneCode,
    Spell,
)
from runecraft.observability.run_log import RunLog, get_run_log
from runecraft.progression.rune_familiarity import RuneFamiliarityService


logger = logging.getLogger(__name__)


# =============================================================================
# MATCH HELPERS
# =============================================================================


def total_damage(spell: Spell) -> float:
    """Burst plus full DoT across all damage types; 0 without combat stats."""
    if spell.combat is None:
        return 0.0
    return spell.combat.total_damage()


def damage_focus_ratio(spell: Spell, damage_type: DamageType) -> float:
    """Share of total damage dealt as one type (0..1)."""
    if spell.combat is None:
        return 0.0
    total = total_damage(spell)
    if total <= 0:
        return 0.0
    return spell.combat.damage_for(damage_type) / total


def contains_all_runes(spell: Spell, runes: Iterable[RuneCode]) -> bool:
    """Multiset containment: each required rune consumes one occurrence."""
    counts: dict[RuneCode, int] = {}
    for r in spell.runes:
        counts[r] = counts.get(r, 0) + 1
    for r in runes:
        if counts.get(r, 0) <= 0:
            return False
        counts[r] -= 1
    return True


def extras_only_allowed(
    spell: Spell,
    required: Iterable[RuneCode],
    allowed: Optional[Iterable[RuneCode]],
) -> bool:
    """True when no whitelist is set or every spell rune is required or allowed."""
    if not allowed:
        return True
    permitted = set(required) | set(allowed)
    return all(r in permitted for r in spell.runes)


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass
class EvolutionContext:
    """Who is evolving the spell and which progression flags they hold."""
    actor: Optional[CombatActor] = None
    flags: Optional[frozenset[str]] = None

    @classmethod
    def build(
        cls,
        actor: Optional[CombatActor] = None,
        flags: Optional[Iterable[str]] = None,
    ) -> "EvolutionContext":
        return cls(actor=actor, flags=frozenset(flags) if flags is not None else None)


@dataclass
class SpellEvolutionOption:
    """A blueprint a spell qualifies for, with its ranking score."""
    blueprint: NamedSpellBlueprint
    score: float

    def to_dict(self) -> dict:
        return {
            "id": self.blueprint.blueprint_id,
            "name": self.blueprint.name,
            "score": round(self.score, 3),
            "hint": self.blueprint.hint,
        }


@dataclass
class GateResult:
    gate: str
    passed: bool
    detail: str = ""


@dataclass
class MatchReport:
    """Outcome of checking one spell against one blueprint."""
    blueprint_id: str
    gates: list[GateResult] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return all(g.passed for g in self.gates)

    @property
    def failed_gate(self) -> Optional[str]:
        for g in self.gates:
            if not g.passed:
                return g.gate
        return None


# =============================================================================
# EVOLUTION SERVICE
# =============================================================================


class EvolutionService:
    """
    Lists and performs evolutions into named spells.

    Never raises for a spell that simply does not qualify: listing returns
    an empty list and evolve_spell returns None.
    """

    def __init__(
        self,
        blueprints: Optional[BlueprintCatalog] = None,
        config: Optional[RulesConfig] = None,
        run_log: Optional[RunLog] = None,
        familiarity: Optional[RuneFamiliarityService] = None,
    ):
        self.blueprints = blueprints or load_default_blueprint_catalog()
        self.config = config or RulesConfig()
        self.run_log = run_log or get_run_log()
        self.familiarity = familiarity or RuneFamiliarityService(self.config, self.run_log)

    # -------------------------------------------------------------------------
    # Gates
    # -------------------------------------------------------------------------

    def _gates(
        self,
        spell: Spell,
        bp: NamedSpellBlueprint,
        ctx: EvolutionContext,
    ) -> Iterable[Callable[[], GateResult]]:
        if bp.requires_named_source_id is None:
            yield lambda: GateResult(
                "nameless_source",
                spell.is_nameless,
                f"spell name {spell.name!r}",
            )

        yield lambda: GateResult(
            "required_runes",
            contains_all_runes(spell, bp.required_runes),
            f"needs {''.join(r.value for r in bp.required_runes)}, has {spell.rune_string}",
        )

        if bp.allowed_extra_runes:
            yield lambda: GateResult(
                "allowed_extras",
                extras_only_allowed(spell, bp.required_runes, bp.allowed_extra_runes),
                f"extras limited to {''.join(r.value for r in bp.allowed_extra_runes)}",
            )

        if bp.min_damage_focus is not None:
            focus = bp.min_damage_focus

            def check_focus() -> GateResult:
                ratio = damage_focus_ratio(spell, focus.damage_type)
                return GateResult(
                    "damage_focus",
                    ratio >= focus.ratio,
                    f"{focus.damage_type.value} {ratio:.3f} >= {focus.ratio}",
                )
            yield check_focus

        if bp.min_total_power is not None:
            minimum = bp.min_total_power

            def check_power() -> GateResult:
                total = total_damage(spell)
                return GateResult("total_power", total >= minimum, f"{total:.2f} >= {minimum}")
            yield check_power

        if bp.min_rune_familiarity:
            yield lambda: self._check_rune_familiarity(bp, ctx)

        if bp.min_total_familiarity_score is not None:
            yield lambda: self._check_familiarity_score(spell, bp, ctx)

        if bp.required_flags:
            yield lambda: self._check_flags(bp, ctx)

        if bp.requires_named_source_id is not None:
            yield lambda: self._check_named_source(spell, bp)

    def _check_rune_familiarity(self, bp: NamedSpellBlueprint, ctx: EvolutionContext) -> GateResult:
        if ctx.actor is None:
            return GateResult("rune_familiarity", False, "no actor")
        for rune, needed in bp.min_rune_familiarity.items():
            have = self.familiarity.get_rune_familiarity(ctx.actor, rune)
            if have < needed:
                return GateResult("rune_familiarity", False, f"{rune.value} {have:.3f} < {needed}")
        return GateResult("rune_familiarity", True, "all thresholds met")

    def _check_familiarity_score(
        self,
        spell: Spell,
        bp: NamedSpellBlueprint,
        ctx: EvolutionContext,
    ) -> GateResult:
        if ctx.actor is None:
            return GateResult("familiarity_score", False, "no actor")
        score = self.familiarity.get_spell_familiarity_score(ctx.actor, spell)
        needed = bp.min_total_familiarity_score
        return GateResult("familiarity_score", score >= needed, f"{score:.3f} >= {needed}")

    def _check_flags(self, bp: NamedSpellBlueprint, ctx: EvolutionContext) -> GateResult:
        if not ctx.flags:
            return GateResult("flags", False, "no flags")
        missing = [f for f in bp.required_flags if f not in ctx.flags]
        if missing:
            return GateResult("flags", False, f"missing {', '.join(missing)}")
        return GateResult("flags", True, "all present")

    def _check_named_source(self, spell: Spell, bp: NamedSpellBlueprint) -> GateResult:
        source = self.blueprints.get_by_id(bp.requires_named_source_id)
        if source is None:
            return GateResult("named_source", False, f"unknown source {bp.requires_named_source_id}")
        return GateResult(
            "named_source",
            spell.name == source.name,
            f"spell name {spell.name!r}, needs {source.name!r}",
        )

    # -------------------------------------------------------------------------
    # Matching and scoring
    # -------------------------------------------------------------------------

    def check_blueprint(
        self,
        spell: Spell,
        bp: NamedSpellBlueprint,
        context: Optional[EvolutionContext] = None,
    ) -> MatchReport:
        """
        Run the blueprint's gates in order, stopping at the first failure.

        Every gate that runs is traced to the RunLog.
        """
        ctx = context or EvolutionContext()
        report = MatchReport(blueprint_id=bp.blueprint_id)
        for gate in self._gates(spell, bp, ctx):
            result = gate()
            report.gates.append(result)
            logger.debug(
                f"Gate {bp.blueprint_id}.{result.gate} for {spell.spell_id}: "
                f"{'pass' if result.passed else 'fail'} ({result.detail})"
            )
            self.run_log.log_gate_check(
                spell_id=spell.spell_id,
                blueprint_id=bp.blueprint_id,
                gate=result.gate,
                passed=result.passed,
                detail=result.detail,
            )
            if not result.passed:
                break
        return report

    def matches_blueprint(
        self,
        spell: Spell,
        bp: NamedSpellBlueprint,
        context: Optional[EvolutionContext] = None,
    ) -> bool:
        return self.check_blueprint(spell, bp, context).matched

    def score_match(self, spell: Spell, bp: NamedSpellBlueprint) -> float:
        """
        Ranking score for a matched blueprint.

        Total damage, plus 10 per unit of damage focus above the required
        ratio, plus a bonus when the spell has exactly the required runes.
        """
        score = total_damage(spell)

        if bp.min_damage_focus is not None:
            ratio = damage_focus_ratio(spell, bp.min_damage_focus.damage_type)
            if ratio > bp.min_damage_focus.ratio:
                score += (ratio - bp.min_damage_focus.ratio) * self.config.focus_excess_weight

        if len(spell.runes) == len(bp.required_runes) and contains_all_runes(spell, bp.required_runes):
            score += self.config.exact_rune_count_bonus

        return score

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def list_possible_evolutions(
        self,
        spell: Spell,
        actor: Optional[CombatActor] = None,
        flags: Optional[Iterable[str]] = None,
    ) -> list[SpellEvolutionOption]:
        """
        All blueprints the spell currently qualifies for, best first.

        Equal scores keep catalog order.
        """
        ctx = EvolutionContext.build(actor, flags)
        candidates = [
            SpellEvolutionOption(blueprint=bp, score=self.score_match(spell, bp))
            for bp in self.blueprints.list()
            if self.matches_blueprint(spell, bp, ctx)
        ]
        candidates.sort(key=lambda option: option.score, reverse=True)
        logger.debug(
            f"Spell {spell.spell_id} [{spell.rune_string}] qualifies for "
            f"{[c.blueprint.blueprint_id for c in candidates]}"
        )
        return candidates

    def evolve_spell(
        self,
        spell: Spell,
        blueprint_id: str,
        actor: Optional[CombatActor] = None,
        flags: Optional[Iterable[str]] = None,
    ) -> Optional[Spell]:
        """
        Evolve a spell into a named blueprint.

        Args:
            spell: Source spell; never modified
            blueprint_id: Target blueprint
            actor: Evolving actor, needed for familiarity gates
            flags: Progression flags, needed for flag gates

        Returns:
            A new Spell with id ``"<spell id>::<blueprint id>"``, the
            blueprint's name and ``evolved_from`` set, or None when the
            blueprint is unknown or the spell does not qualify
        """
        bp = self.blueprints.get_by_id(blueprint_id)
        if bp is None:
            logger.debug(f"Unknown blueprint {blueprint_id!r}")
            return None

        report = self.check_blueprint(spell, bp, EvolutionContext.build(actor, flags))
        if not report.matched:
            logger.debug(
                f"Spell {spell.spell_id} cannot evolve into {blueprint_id}: "
                f"failed {report.failed_gate}"
            )
            return None

        evolved = copy.deepcopy(spell)
        evolved.spell_id = f"{spell.spell_id}::{bp.blueprint_id}"
        evolved.name = bp.name
        evolved.evolved_from = spell.spell_id

        logger.info(f"Spell {spell.spell_id} evolved into {bp.name} ({evolved.spell_id})")
        self.run_log.log_evolution(
            source_spell_id=spell.spell_id,
            new_spell_id=evolved.spell_id,
            blueprint_id=bp.blueprint_id,
            name=bp.name,
        )
        return evolved
