"""
Tests for encounter resolution and the SpellRuntime facade.
"""

import pytest

from runecraft.combat.encounter import EncounterService, defensive_multiplier
from runecraft.combat.runtime import SpellRuntime
from runecraft.config import RulesConfig
from runecraft.data_models import DamageType, EffectType, RuneCode
from runecraft.errors import InsufficientManaError
from runecraft.observability.run_log import CastEvent, EventType


class TestDefensiveMultiplier:
    """Elemental affinity as defense."""

    @pytest.mark.parametrize("affinity, expected", [(0.0, 1.0), (0.5, 0.75), (1.0, 0.5), (3.0, 0.5), (-1.0, 1.0)])
    def test_multiplier(self, affinity, expected):
        """Full affinity halves incoming damage; values are clamped."""
        assert defensive_multiplier(affinity) == pytest.approx(expected)

    def test_configured_reduction(self):
        """The reduction at full affinity comes from RulesConfig."""
        config = RulesConfig(defensive_affinity_reduction=1.0)
        assert defensive_multiplier(1.0, config) == 0.0
        assert defensive_multiplier(0.25, config) == pytest.approx(0.75)


class TestResolveSpellHit:
    """Single hits between actors."""

    @pytest.fixture
    def encounter(self, combat_stats, affinity_service):
        return EncounterService(combat_stats, affinity_service)

    def test_far_hits_goblin(self, encounter, far_spell, neutral_player, goblin):
        """Burst damage comes off the target's hp."""
        hit = encounter.resolve_spell_hit(neutral_player, far_spell, goblin)
        assert hit.total_damage == pytest.approx(9.9)
        assert hit.per_type[DamageType.FIRE] == pytest.approx(8.25)
        assert hit.target_hp_before == 30.0
        assert goblin.hp == pytest.approx(20.1)
        assert hit.target_hp_after == goblin.hp

    def test_derives_missing_stats(self, encounter, far_spell, neutral_player, goblin):
        """A spell without combat stats is derived first."""
        assert far_spell.combat is None
        encounter.resolve_spell_hit(neutral_player, far_spell, goblin)
        assert far_spell.combat is not None

    def test_target_affinity_mitigates(self, encounter, far_spell, neutral_player, goblin):
        """A fire-attuned target takes half fire damage."""
        goblin.element_affinity = {DamageType.FIRE: 1.0}
        hit = encounter.resolve_spell_hit(neutral_player, far_spell, goblin)
        assert hit.total_damage == pytest.approx(5.775)

    def test_hp_floor(self, encounter, far_spell, neutral_player, goblin):
        """hp never drops below zero."""
        goblin.hp = 5.0
        hit = encounter.resolve_spell_hit(neutral_player, far_spell, goblin)
        assert goblin.hp == 0.0
        assert hit.target_hp_after == 0.0
        assert not goblin.is_alive()

    def test_effects_are_copied_to_target(self, encounter, far_spell, neutral_player, goblin):
        """The target gets its own copies of the spell's effects."""
        hit = encounter.resolve_spell_hit(neutral_player, far_spell, goblin)
        assert [e.effect_type for e in goblin.effects] == [EffectType.BURN]
        assert goblin.effects[0] is not far_spell.combat.effects[0]
        goblin.effects[0].magnitude = 99
        assert far_spell.combat.effects[0].magnitude == pytest.approx(2)
        assert hit.effects_applied[0] is goblin.effects[0]

    def test_hit_to_dict(self, encounter, far_spell, neutral_player, goblin):
        """Damage types serialize by value."""
        data = encounter.resolve_spell_hit(neutral_player, far_spell, goblin).to_dict()
        assert set(data["per_type"]) == {"fire", "physical"}
        assert data["effects_applied"][0]["type"] == "burn"


class TestCastSpell:
    """Full casts through the runtime."""

    def test_cast_pays_and_hits(self, runtime, far_spell, neutral_player, goblin):
        """Mana is spent and the goblin takes the hit."""
        result = runtime.cast_spell(far_spell, neutral_player, goblin)
        assert result.mana_spent == pytest.approx(13)
        assert neutral_player.mana == pytest.approx(87)
        assert goblin.hp == pytest.approx(20.1)
        assert result.hit.total_damage == pytest.approx(9.9)

    def test_cast_grows_progression(self, runtime, far_spell, neutral_player, goblin):
        """A cast grows elemental XP and rune familiarity."""
        runtime.cast_spell(far_spell, neutral_player, goblin)
        assert neutral_player.element_xp[DamageType.FIRE] == pytest.approx(14.1667, abs=1e-3)
        assert neutral_player.affinity[RuneCode.F] == pytest.approx(0.02 / 3 * 0.5)

    def test_cast_event(self, runtime, far_spell, neutral_player, goblin, run_log):
        """The cast is logged with the spell tier and its affinity weight."""
        runtime.cast_spell(far_spell, neutral_player, goblin)
        events = run_log.get_events(EventType.CAST)
        assert len(events) == 1
        event = events[0]
        assert isinstance(event, CastEvent)
        assert event.mana_spent == pytest.approx(13)
        assert event.target_hp_after == pytest.approx(20.1)
        assert event.context == {"tier": "nameless", "affinity_weight": 0.4}

    def test_cast_event_order(self, runtime, far_spell, neutral_player, goblin, run_log):
        """Progression events come before the cast event."""
        runtime.cast_spell(far_spell, neutral_player, goblin)
        types = [e.event_type for e in run_log.get_events()]
        assert types == [EventType.PROGRESSION, EventType.PROGRESSION, EventType.CAST]

    def test_insufficient_mana_changes_nothing(self, runtime, far_spell, neutral_player, goblin, run_log):
        """A caster short on mana raises and no state changes."""
        neutral_player.mana = 5.0
        with pytest.raises(InsufficientManaError) as exc_info:
            runtime.cast_spell(far_spell, neutral_player, goblin)
        assert exc_info.value.required == pytest.approx(13)
        assert exc_info.value.available == 5.0
        assert neutral_player.mana == 5.0
        assert neutral_player.element_xp == {}
        assert neutral_player.affinity == {}
        assert goblin.hp == 30.0
        assert goblin.effects == []
        assert run_log.get_event_count() == 0

    def test_exact_mana_is_enough(self, runtime, far_spell, neutral_player, goblin):
        """Mana equal to the cost pays for the cast."""
        neutral_player.mana = 13.0
        runtime.cast_spell(far_spell, neutral_player, goblin)
        assert neutral_player.mana == pytest.approx(0.0)

    def test_evolved_spell_tier_in_cast_event(self, runtime, far_spell, neutral_player, goblin, run_log):
        """Evolved spells cast with the higher tier weight."""
        runtime.preview(far_spell, neutral_player)
        ember = runtime.try_evolve_spell(far_spell, "ember_ray", neutral_player)
        runtime.cast_spell(ember, neutral_player, goblin)
        event = run_log.get_events(EventType.CAST)[-1]
        assert event.context == {"tier": "named_tier_2_plus", "affinity_weight": 1.3}
        assert neutral_player.affinity[RuneCode.F] == pytest.approx(0.02 / 3 * 1.3)


class TestPreviewAndEvolution:
    """Side-effect free previews and the evolution entry points."""

    def test_preview(self, runtime, far_spell, neutral_player):
        """Preview evaluates and derives without touching the caster."""
        preview = runtime.preview(far_spell, neutral_player)
        assert preview.evaluation.power == pytest.approx(2.9)
        assert preview.combat.total_damage() == pytest.approx(12.9)
        assert far_spell.craft_cost == pytest.approx(13)
        assert neutral_player.mana == 100.0
        assert neutral_player.affinity == {}
        assert neutral_player.element_xp == {}

    def test_preview_to_dict(self, runtime, far_spell, neutral_player):
        """The preview dict carries the rounded total damage."""
        data = runtime.preview(far_spell, neutral_player).to_dict()
        assert data["total_damage"] == pytest.approx(12.9)
        assert data["evaluation"]["cost"] == pytest.approx(13)

    def test_list_and_evolve(self, runtime, far_spell, neutral_player):
        """Evolutions are listed and performed through the runtime."""
        runtime.preview(far_spell, neutral_player)
        options = runtime.list_available_evolutions(far_spell, neutral_player)
        assert [o.blueprint.blueprint_id for o in options] == ["ember_ray"]
        ember = runtime.try_evolve_spell(far_spell, "ember_ray", neutral_player)
        assert ember.name == "Ember Ray"
        assert runtime.try_evolve_spell(far_spell, "tidal_barrier", neutral_player) is None

    def test_casting_toward_searing_ember_ray(self, runtime, far_spell, neutral_player, goblin):
        """Enough casts of Ember Ray plus the boss flag unlock the searing variant."""
        runtime.preview(far_spell, neutral_player)
        ember = runtime.try_evolve_spell(far_spell, "ember_ray", neutral_player)
        flags = ["boss_fire_1_defeated"]
        neutral_player.mana = 10_000.0
        for _ in range(80):
            goblin.hp = goblin.max_hp
            runtime.cast_spell(ember, neutral_player, goblin)
        searing = runtime.try_evolve_spell(ember, "searing_ember_ray", neutral_player, flags)
        assert searing is not None
        assert searing.spell_id == f"{far_spell.spell_id}::ember_ray::searing_ember_ray"


class TestRuntimeRules:
    """The runtime hands its RulesConfig to every service."""

    def test_rules_reach_combat_services(self, rune_catalog, blueprint_catalog, run_log):
        """Combat stats and encounters use the runtime's rules."""
        config = RulesConfig(max_crit_chance=0.2, defensive_affinity_reduction=1.0)
        runtime = SpellRuntime(rune_catalog, blueprint_catalog, config, run_log)
        assert runtime.stats.config is config
        assert runtime.encounter.config is config
