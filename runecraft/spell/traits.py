"""Structural traits of a spell read off its rune sequence."""

from runecraft.data_models import RuneCode, Spell


class SpellTraits:
    """
    Rune-presence queries used by combat derivation.

    D extends durations, S without T targets the caster, R shapes a beam,
    X amplifies, and B or Q hit an area.
    """

    def __init__(self, spell: Spell):
        self.spell = spell
        self._present = frozenset(spell.runes)

    def count(self, rune: RuneCode) -> int:
        return sum(1 for r in self.spell.runes if r == rune)

    def has(self, rune: RuneCode) -> bool:
        return rune in self._present

    def has_any(self, *runes: RuneCode) -> bool:
        return any(r in self._present for r in runes)

    def has_all(self, *runes: RuneCode) -> bool:
        return all(r in self._present for r in runes)

    @property
    def has_duration(self) -> bool:
        return self.has(RuneCode.D)

    @property
    def is_self_target(self) -> bool:
        return self.has(RuneCode.S) and not self.has(RuneCode.T)

    @property
    def is_targeted(self) -> bool:
        return self.has(RuneCode.T)

    @property
    def is_beam_like(self) -> bool:
        return self.has(RuneCode.R)

    @property
    def is_amplified(self) -> bool:
        return self.has(RuneCode.X)

    @property
    def is_aoe(self) -> bool:
        return self.has_any(RuneCode.B, RuneCode.Q)
