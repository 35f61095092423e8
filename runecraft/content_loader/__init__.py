"""Content loading: the rune alphabet and named spell blueprints."""

from runecraft.content_loader.rune_loader import (
    RuneDataLoader,
    RuneFileLoadResult,
    RuneFileMetadata,
    load_runes,
)
from runecraft.content_loader.rune_catalog import (
    RuneCatalog,
    load_default_rune_catalog,
    reset_default_rune_catalog,
)
from runecraft.content_loader.blueprint_loader import (
    BlueprintDataLoader,
    BlueprintFileLoadResult,
    load_blueprints,
)
from runecraft.content_loader.blueprint_catalog import (
    BlueprintCatalog,
    load_default_blueprint_catalog,
    reset_default_blueprint_catalog,
)

__all__ = [
    # Runes
    "RuneDataLoader",
    "RuneFileLoadResult",
    "RuneFileMetadata",
    "load_runes",
    "RuneCatalog",
    "load_default_rune_catalog",
    "reset_default_rune_catalog",
    # Blueprints
    "BlueprintDataLoader",
    "BlueprintFileLoadResult",
    "load_blueprints",
    "BlueprintCatalog",
    "load_default_blueprint_catalog",
    "reset_default_blueprint_catalog",
]
