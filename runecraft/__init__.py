"""
Runecraft - a deterministic spell-crafting rules engine.

Runes go in, spells come out: the engine evaluates rune sequences against
an actor's progression state, derives combat stats, tracks elemental and
rune progression, and matches crafted spells against named blueprints.
"""

__version__ = "0.4.0"
