"""
Rune Data Loader for the Runecraft engine.

Loads rune definitions from JSON content files and converts them into
immutable RuneSymbol entries.

JSON File Format:
{
    "_metadata": {
        "content_type": "runes",
        "item_count": 26
    },
    "items": [
        {
            "code": "F",
            "concept": "Fire",
            "power_factor": 1.2,
            "control_factor": 0.8,
            "instability_base": 0.1,
            "mana_cost": 7,
            "tags": ["Damage", "DOT"],
            "damage": {"fire": 10},
            "pen": {"fire": 0.1},
            "cc_instant": [],
            "effects": [{"type": "burn", "base_magnitude": 2, "base_duration_sec": 4}],
            "overcharge_effects": [],
            "dot_affinity": 0.25
        }
    ]
}
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from runecraft.data_models import (
    CrowdControlTag,
    DamageType,
    EffectBlueprint,
    OverchargeEffect,
    RuneSymbol,
    RuneTag,
    parse_rune_code,
)


logger = logging.getLogger(__name__)


DEFAULT_CONTENT_DIR = Path(__file__).parent.parent / "content"
DEFAULT_RUNES_FILE = DEFAULT_CONTENT_DIR / "runes.json"


# =============================================================================
# RESULT DATACLASSES
# =============================================================================


@dataclass
class RuneFileMetadata:
    """Metadata from a rune JSON file."""

    content_type: str = "runes"
    item_count: int = 0
    note: str = ""


@dataclass
class RuneFileLoadResult:
    """Result of loading a single rune JSON file."""

    file_path: Optional[Path]
    success: bool
    metadata: Optional[RuneFileMetadata] = None
    runes_loaded: int = 0
    runes_failed: int = 0
    errors: list[str] = field(default_factory=list)
    loaded_runes: list[RuneSymbol] = field(default_factory=list)


# =============================================================================
# RUNE LOADER
# =============================================================================


class RuneDataLoader:
    """
    Loads rune data from JSON and converts it to RuneSymbol objects.

    Usage:
        loader = RuneDataLoader()
        result = loader.load_file(Path("runecraft/content/runes.json"))
        if result.success:
            catalog = RuneCatalog(result.loaded_runes)
    """

    def load_file(self, file_path: Path) -> RuneFileLoadResult:
        """
        Load runes from a single JSON file.

        Args:
            file_path: Path to the JSON file

        Returns:
            RuneFileLoadResult with loaded runes and any errors
        """
        result = RuneFileLoadResult(file_path=file_path, success=False)

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            result.errors.append(f"JSON parse error: {e}")
            return result
        except FileNotFoundError:
            result.errors.append(f"File not found: {file_path}")
            return result
        except OSError as e:
            result.errors.append(f"Error reading file: {e}")
            return result

        return self.load_data(data, result)

    def load_data(
        self,
        data: dict[str, Any],
        result: Optional[RuneFileLoadResult] = None,
    ) -> RuneFileLoadResult:
        """
        Load runes from already-parsed JSON content.

        Args:
            data: Dictionary with ``_metadata`` and ``items``
            result: Optional result to fill (used by load_file)

        Returns:
            RuneFileLoadResult with loaded runes and any errors
        """
        if result is None:
            result = RuneFileLoadResult(file_path=None, success=False)

        metadata_dict = data.get("_metadata", {})
        result.metadata = RuneFileMetadata(
            content_type=metadata_dict.get("content_type", "runes"),
            item_count=metadata_dict.get("item_count", 0),
            note=metadata_dict.get("note", ""),
        )

        for item in data.get("items", []):
            try:
                result.loaded_runes.append(self.parse_rune_item(item))
                result.runes_loaded += 1
            except (KeyError, ValueError, TypeError) as e:
                result.errors.append(
                    f"Error parsing rune '{item.get('code', 'unknown')}': {e}"
                )
                result.runes_failed += 1

        result.success = result.runes_failed == 0 and not result.errors
        return result

    def parse_rune_item(self, item: dict[str, Any]) -> RuneSymbol:
        """
        Parse a single rune entry.

        Raises:
            KeyError: Required field missing
            ValueError: Out-of-range number or unknown enum value
        """
        code = parse_rune_code(item["code"])

        instability = float(item["instability_base"])
        if not 0.0 <= instability <= 1.0:
            raise ValueError(f"instability_base must be in [0, 1], got {instability}")

        mana_cost = float(item["mana_cost"])
        if mana_cost < 0:
            raise ValueError(f"mana_cost must be >= 0, got {mana_cost}")

        penetration = {DamageType(k): float(v) for k, v in (item.get("pen") or {}).items()}
        for dtype, value in penetration.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"pen[{dtype.value}] must be in [0, 1], got {value}")

        dot_affinity = item.get("dot_affinity")

        return RuneSymbol(
            code=code,
            concept=item.get("concept", code.value),
            description=item.get("description", ""),
            power_factor=float(item["power_factor"]),
            control_factor=float(item["control_factor"]),
            instability_base=instability,
            mana_cost=mana_cost,
            tags=tuple(RuneTag(t) for t in item.get("tags", [])),
            damage={DamageType(k): float(v) for k, v in (item.get("damage") or {}).items()},
            penetration=penetration,
            cc_instant=tuple(CrowdControlTag(c) for c in item.get("cc_instant") or []),
            effects=tuple(EffectBlueprint.from_dict(e) for e in item.get("effects") or []),
            overcharge_effects=tuple(
                OverchargeEffect.from_dict(o) for o in item.get("overcharge_effects") or []
            ),
            dot_affinity=float(dot_affinity) if dot_affinity is not None else None,
        )


def load_runes(runes_file: Optional[Path] = None) -> RuneFileLoadResult:
    """
    Convenience function to load the rune alphabet.

    Args:
        runes_file: Optional custom file. Defaults to the packaged runes.json.

    Returns:
        RuneFileLoadResult with all loaded runes
    """
    if runes_file is None:
        runes_file = DEFAULT_RUNES_FILE

    loader = RuneDataLoader()
    result = loader.load_file(Path(runes_file))
    for error in result.errors:
        logger.error(f"Rune loading error: {error}")
    return result
