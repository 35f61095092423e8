"""
Tests for SpellFactory, SpellTraits and spell tiers.
"""

import pytest

from runecraft.data_models import RuneCode, RuneInfusion, Spell
from runecraft.errors import EmptyRuneSequenceError, UnknownRuneError
from runecraft.spell.spell_tier import SpellTier, get_affinity_weight_for_spell, get_spell_tier
from runecraft.spell.traits import SpellTraits


class TestCreateNameless:
    """Building fresh spells."""

    def test_basic_spell(self, factory):
        """A new spell is nameless, ungrown and unevaluated."""
        spell = factory.create_nameless("player-1", "FAR")
        assert spell.owner_id == "player-1"
        assert spell.runes == [RuneCode.F, RuneCode.A, RuneCode.R]
        assert spell.name is None
        assert spell.is_nameless
        assert spell.display_name == "nameless"
        assert spell.growth.power == 0 and spell.growth.stability == 0
        assert spell.last_eval is None
        assert spell.combat is None
        assert spell.evolved_from is None

    @pytest.mark.parametrize("runes", ["FAR", "FFA", "ZZZZ", "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "q"])
    def test_profile_sums_to_one(self, factory, runes):
        """Profile entries are count / length and sum to 1."""
        spell = factory.create_nameless("p", runes)
        assert sum(spell.profile.values()) == pytest.approx(1.0, abs=1e-9)

    def test_profile_weights(self, factory):
        """Repeated runes weigh more."""
        profile = factory.create_nameless("p", "FFA").profile
        assert profile[RuneCode.F] == pytest.approx(2 / 3)
        assert profile[RuneCode.A] == pytest.approx(1 / 3)

    def test_lowercase_and_list_input(self, factory):
        """Letters are accepted in any case and as a list."""
        assert factory.create_nameless("p", ["f", "a", "r"]).rune_string == "FAR"

    def test_unique_ids(self, factory):
        """Each spell gets its own id."""
        ids = {factory.create_nameless("p", "FAR").spell_id for _ in range(50)}
        assert len(ids) == 50

    def test_empty_sequence_rejected(self, factory):
        """A spell needs at least one rune."""
        with pytest.raises(EmptyRuneSequenceError):
            factory.create_nameless("p", "")
        with pytest.raises(ValueError):
            factory.create_nameless("p", [])

    def test_unknown_rune_rejected(self, factory):
        """Symbols outside the alphabet are rejected."""
        with pytest.raises(UnknownRuneError):
            factory.create_nameless("p", "F4R")

    def test_infusions_are_copied(self, factory):
        """Infusions are copied so later edits to the input do not leak in."""
        infusion = RuneInfusion(index=0, extra_mana=5)
        spell = factory.create_nameless("p", "FAR", [infusion])
        infusion.extra_mana = 50
        assert spell.infusions[0].extra_mana == 5

    def test_compose_profile_empty(self, factory):
        """An empty sequence composes to an empty profile."""
        assert factory.compose_profile([]) == {}


class TestSpellTraits:
    """Rune-presence traits."""

    def _spell(self, runes):
        return Spell(spell_id="s", owner_id="p", runes=[RuneCode(r) for r in runes])

    def test_count_and_has(self):
        """count respects repeats; has/has_any/has_all check presence."""
        traits = SpellTraits(self._spell("FFAR"))
        assert traits.count(RuneCode.F) == 2
        assert traits.has(RuneCode.R)
        assert traits.has_any(RuneCode.Z, RuneCode.A)
        assert not traits.has_all(RuneCode.F, RuneCode.Z)

    def test_self_target_needs_no_target_rune(self):
        """S alone targets the caster; S with T does not."""
        assert SpellTraits(self._spell("HS")).is_self_target
        assert not SpellTraits(self._spell("HST")).is_self_target
        assert SpellTraits(self._spell("HST")).is_targeted

    def test_shape_traits(self):
        """D, R, X and B/Q map to duration, beam, amplified and AOE."""
        traits = SpellTraits(self._spell("DRX"))
        assert traits.has_duration and traits.is_beam_like and traits.is_amplified
        assert not traits.is_aoe
        assert SpellTraits(self._spell("Q")).is_aoe
        assert SpellTraits(self._spell("B")).is_aoe


class TestSpellTier:
    """Tiers and the affinity weight they carry."""

    def test_tiers(self):
        """Nameless, first named, and evolved-from-named spells."""
        nameless = Spell(spell_id="s", owner_id="p", runes=[RuneCode.F])
        named = Spell(spell_id="s", owner_id="p", runes=[RuneCode.F], name="Spark")
        evolved = Spell(spell_id="s2", owner_id="p", runes=[RuneCode.F], name="Spark+", evolved_from="s")
        assert get_spell_tier(nameless) == SpellTier.NAMELESS
        assert get_spell_tier(named) == SpellTier.NAMED_TIER_1
        assert get_spell_tier(evolved) == SpellTier.NAMED_TIER_2_PLUS
        assert [get_affinity_weight_for_spell(s) for s in (nameless, named, evolved)] == [0.4, 1.0, 1.3]
