"""
Rune Catalog for the Runecraft engine.

An immutable, total lookup over the 26-letter rune alphabet. Catalogs are
constructed explicitly and handed to the services that need them, so
tests can substitute fixture alphabets.

Usage:
    catalog = load_default_rune_catalog()
    fire = catalog.lookup("F")
    for rune in catalog.list():
        print(rune.code, rune.concept)
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Optional

from runecraft.content_loader.rune_loader import load_runes
from runecraft.data_models import RuneCode, RuneSymbol, parse_rune_code
from runecraft.errors import RuneCatalogError, UnknownRuneError


logger = logging.getLogger(__name__)


# Cached packaged catalog
_default_catalog: Optional["RuneCatalog"] = None


class RuneCatalog:
    """
    Immutable lookup of rune definitions.

    Construction fails unless every RuneCode has exactly one definition,
    so lookups for a valid symbol never miss.
    """

    def __init__(self, runes: Iterable[RuneSymbol]):
        by_code: dict[RuneCode, RuneSymbol] = {}
        for rune in runes:
            if rune.code in by_code:
                raise RuneCatalogError(f"Duplicate rune definition: {rune.code.value}")
            by_code[rune.code] = rune

        missing = [code.value for code in RuneCode if code not in by_code]
        if missing:
            raise RuneCatalogError(f"Rune catalog is missing: {', '.join(missing)}")

        # Canonical A..Z order regardless of input order
        self._runes = MappingProxyType({code: by_code[code] for code in RuneCode})

    def lookup(self, symbol: Any) -> RuneSymbol:
        """
        Look up a rune definition.

        Args:
            symbol: RuneCode or single letter

        Returns:
            The RuneSymbol for that letter

        Raises:
            UnknownRuneError: If symbol is outside the alphabet
        """
        code = parse_rune_code(symbol)
        try:
            return self._runes[code]
        except KeyError:
            raise UnknownRuneError(symbol) from None

    def __getitem__(self, symbol: Any) -> RuneSymbol:
        return self.lookup(symbol)

    def __contains__(self, symbol: Any) -> bool:
        try:
            self.lookup(symbol)
        except UnknownRuneError:
            return False
        return True

    def list(self) -> list[RuneSymbol]:
        """All 26 runes in canonical order (a new list on each call)."""
        return list(self._runes.values())

    def __iter__(self) -> Iterator[RuneSymbol]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._runes)

    def codes(self) -> list[RuneCode]:
        return list(self._runes.keys())

    @classmethod
    def from_file(cls, runes_file: Optional[Path] = None) -> "RuneCatalog":
        """
        Build a catalog from a rune JSON file.

        Raises:
            RuneCatalogError: If the file fails to load or is incomplete
        """
        result = load_runes(runes_file)
        if not result.success:
            raise RuneCatalogError(
                f"Could not load runes from {result.file_path}: {'; '.join(result.errors)}"
            )
        catalog = cls(result.loaded_runes)
        logger.info(f"Loaded {len(catalog)} runes from {result.file_path}")
        return catalog


def load_default_rune_catalog() -> RuneCatalog:
    """
    Get the packaged rune catalog, loading it on first use.

    Returns:
        The shared RuneCatalog built from the packaged runes.json
    """
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = RuneCatalog.from_file()
    return _default_catalog


def reset_default_rune_catalog() -> None:
    """Drop the cached packaged catalog."""
    global _default_catalog
    _default_catalog = None
