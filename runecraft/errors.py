"""
Exception hierarchy for the Runecraft rules engine.

Only genuine input or content problems raise. Expected outcomes, such as
a spell that does not qualify for an evolution, are reported through
return values instead.
"""

from typing import Any


class RunecraftError(Exception):
    """Base class for all engine errors."""


class UnknownRuneError(RunecraftError, KeyError):
    """A rune symbol outside the 26-letter alphabet was used."""

    def __init__(self, symbol: Any):
        self.symbol = symbol
        super().__init__(f"Unknown rune symbol: {symbol!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return self.args[0]


class EmptyRuneSequenceError(RunecraftError, ValueError):
    """A spell was built from an empty rune sequence."""

    def __init__(self):
        super().__init__("A spell needs at least one rune")


class RuneCatalogError(RunecraftError):
    """Rune content could not be turned into a complete catalog."""


class BlueprintCatalogError(RunecraftError):
    """Named spell content could not be turned into a valid catalog."""


class InsufficientManaError(RunecraftError):
    """The caster cannot pay a spell's mana cost."""

    def __init__(self, actor_id: str, required: float, available: float):
        self.actor_id = actor_id
        self.required = required
        self.available = available
        super().__init__(
            f"Actor '{actor_id}' needs {required:g} mana but has {available:g}"
        )
