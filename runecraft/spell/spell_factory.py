"""
Spell Factory for the Runecraft engine.

Builds fresh, nameless, unevaluated spells from rune sequences.

Usage:
    factory = SpellFactory(catalog)
    spell = factory.create_nameless("player-1", "FAR")
    spell.profile  # {F: 0.333, A: 0.333, R: 0.333}
"""

import logging
import uuid
from typing import Any, Iterable, Optional

from runecraft.content_loader.rune_catalog import RuneCatalog, load_default_rune_catalog
from runecraft.data_models import RuneCode, RuneInfusion, Spell, SpellGrowth
from runecraft.errors import EmptyRuneSequenceError


logger = logging.getLogger(__name__)


class SpellFactory:
    """Creates new nameless spells."""

    def __init__(self, catalog: Optional[RuneCatalog] = None):
        self.catalog = catalog or load_default_rune_catalog()

    def create_nameless(
        self,
        owner_id: str,
        runes: Iterable[Any],
        infusions: Iterable[RuneInfusion] = (),
    ) -> Spell:
        """
        Create a fresh, nameless spell.

        Args:
            owner_id: Actor that crafted the spell
            runes: Rune letters or RuneCodes, e.g. "FAR" or ["F", "A", "R"]
            infusions: Extra mana invested per rune index

        Returns:
            A Spell with zero growth, no name and no cached evaluation

        Raises:
            EmptyRuneSequenceError: If runes is empty
            UnknownRuneError: If any symbol is outside the catalog
        """
        codes = [self.catalog.lookup(r).code for r in runes]
        if not codes:
            raise EmptyRuneSequenceError()

        spell = Spell(
            spell_id=uuid.uuid4().hex,
            owner_id=owner_id,
            runes=codes,
            profile=self.compose_profile(codes),
            name=None,
            growth=SpellGrowth(),
            infusions=[RuneInfusion(i.index, i.extra_mana) for i in infusions],
        )
        logger.debug(f"Created nameless spell {spell.spell_id} [{spell.rune_string}] for {owner_id}")
        return spell

    def compose_profile(self, runes: Iterable[RuneCode]) -> dict[RuneCode, float]:
        """Normalized rune frequency vector (count / length)."""
        counts: dict[RuneCode, int] = {}
        for r in runes:
            counts[r] = counts.get(r, 0) + 1

        total = sum(counts.values())
        if not total:
            return {}
        return {r: c / total for r, c in counts.items()}
