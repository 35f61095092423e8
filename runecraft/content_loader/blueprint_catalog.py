"""
Named Spell Blueprint Catalog.

Immutable, ordered collection of blueprints. Catalog order is the
tie-breaker when evolution candidates score equally.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Optional

from runecraft.content_loader.blueprint_loader import load_blueprints
from runecraft.data_models import NamedSpellBlueprint, SpellTag
from runecraft.errors import BlueprintCatalogError


logger = logging.getLogger(__name__)


_default_catalog: Optional["BlueprintCatalog"] = None


class BlueprintCatalog:
    """
    Ordered lookup of named spell blueprints.

    Rejects duplicate ids and chained blueprints whose
    ``requires_named_source_id`` points at an unknown blueprint.
    """

    def __init__(self, blueprints: Iterable[NamedSpellBlueprint]):
        ordered: dict[str, NamedSpellBlueprint] = {}
        for bp in blueprints:
            if bp.blueprint_id in ordered:
                raise BlueprintCatalogError(f"Duplicate blueprint id: {bp.blueprint_id}")
            ordered[bp.blueprint_id] = bp

        for bp in ordered.values():
            source = bp.requires_named_source_id
            if source is not None and source not in ordered:
                raise BlueprintCatalogError(
                    f"Blueprint '{bp.blueprint_id}' requires unknown source '{source}'"
                )

        self._blueprints = MappingProxyType(ordered)

    def get_by_id(self, blueprint_id: str) -> Optional[NamedSpellBlueprint]:
        """Look up a blueprint by id; None when unknown."""
        return self._blueprints.get(blueprint_id)

    def __contains__(self, blueprint_id: str) -> bool:
        return blueprint_id in self._blueprints

    def list(self) -> list[NamedSpellBlueprint]:
        """All blueprints in catalog order."""
        return list(self._blueprints.values())

    def __iter__(self) -> Iterator[NamedSpellBlueprint]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._blueprints)

    def get_by_tag(self, tag: SpellTag) -> list[NamedSpellBlueprint]:
        return [bp for bp in self._blueprints.values() if tag in bp.tags]

    def visible(self) -> list[NamedSpellBlueprint]:
        """Blueprints shown in the spellbook before discovery."""
        return [bp for bp in self._blueprints.values() if not bp.hidden]

    def chain_from(self, blueprint_id: str) -> list[NamedSpellBlueprint]:
        """Blueprints that evolve directly out of the given named spell."""
        return [
            bp for bp in self._blueprints.values()
            if bp.requires_named_source_id == blueprint_id
        ]

    @classmethod
    def from_file(cls, blueprints_file: Optional[Path] = None) -> BlueprintCatalog:
        """
        Build a catalog from a named spell JSON file.

        Raises:
            BlueprintCatalogError: If the file fails to load or is inconsistent
        """
        result = load_blueprints(blueprints_file)
        if not result.success:
            raise BlueprintCatalogError(
                f"Could not load blueprints from {result.file_path}: "
                f"{'; '.join(result.errors)}"
            )
        catalog = cls(result.loaded_blueprints)
        logger.info(f"Loaded {len(catalog)} named spell blueprints from {result.file_path}")
        return catalog


def load_default_blueprint_catalog() -> BlueprintCatalog:
    """Get the packaged blueprint catalog, loading it on first use."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = BlueprintCatalog.from_file()
    return _default_catalog


def reset_default_blueprint_catalog() -> None:
    """Drop the cached packaged catalog."""
    global _default_catalog
    _default_catalog = None
