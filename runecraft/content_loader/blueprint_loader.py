"""
Named Spell Blueprint Loader for the Runecraft engine.

Loads named spell blueprints from JSON content files.

JSON File Format:
{
    "_metadata": {"content_type": "named_spells", "item_count": 1},
    "items": [
        {
            "id": "ember_ray",
            "name": "Ember Ray",
            "description": "...",
            "tags": ["Fire", "Ray"],
            "required_runes": ["F", "A", "R"],
            "allowed_extra_runes": ["D", "X"],
            "min_damage_focus": {"type": "fire", "ratio": 0.55},
            "min_total_power": 1.0,
            "min_rune_familiarity": {"F": 0.5},
            "min_total_familiarity_score": 0.5,
            "required_flags": ["boss_fire_1_defeated"],
            "requires_named_source_id": null,
            "hidden": false,
            "hint": "..."
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
    DamageFocus,
    DamageType,
    NamedSpellBlueprint,
    SpellTag,
    parse_rune_code,
    parse_rune_sequence,
)


logger = logging.getLogger(__name__)


DEFAULT_BLUEPRINTS_FILE = Path(__file__).parent.parent / "content" / "named_spells.json"


@dataclass
class BlueprintFileLoadResult:
    """Result of loading a single named spell JSON file."""

    file_path: Optional[Path]
    success: bool
    blueprints_loaded: int = 0
    blueprints_failed: int = 0
    errors: list[str] = field(default_factory=list)
    loaded_blueprints: list[NamedSpellBlueprint] = field(default_factory=list)


class BlueprintDataLoader:
    """Loads named spell blueprints from JSON."""

    def load_file(self, file_path: Path) -> BlueprintFileLoadResult:
        """
        Load blueprints from a single JSON file.

        Args:
            file_path: Path to the JSON file

        Returns:
            BlueprintFileLoadResult with loaded blueprints and any errors
        """
        result = BlueprintFileLoadResult(file_path=file_path, success=False)

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
        result: Optional[BlueprintFileLoadResult] = None,
    ) -> BlueprintFileLoadResult:
        """Load blueprints from already-parsed JSON content."""
        if result is None:
            result = BlueprintFileLoadResult(file_path=None, success=False)

        for item in data.get("items", []):
            try:
                result.loaded_blueprints.append(self.parse_blueprint_item(item))
                result.blueprints_loaded += 1
            except (KeyError, ValueError, TypeError) as e:
                result.errors.append(
                    f"Error parsing blueprint '{item.get('id', 'unknown')}': {e}"
                )
                result.blueprints_failed += 1

        result.success = result.blueprints_failed == 0
        return result

    def parse_blueprint_item(self, item: dict[str, Any]) -> NamedSpellBlueprint:
        """
        Parse a single blueprint entry.

        Raises:
            KeyError: Required field missing
            ValueError: Bad rune, enum value or ratio
        """
        required = tuple(parse_rune_sequence(item["required_runes"]))
        if not required:
            raise ValueError("required_runes must not be empty")

        allowed = item.get("allowed_extra_runes")
        focus = item.get("min_damage_focus")
        min_focus = None
        if focus:
            ratio = float(focus["ratio"])
            if not 0.0 <= ratio <= 1.0:
                raise ValueError(f"min_damage_focus ratio must be in [0, 1], got {ratio}")
            min_focus = DamageFocus(damage_type=DamageType(focus["type"]), ratio=ratio)

        familiarity = item.get("min_rune_familiarity")
        flags = item.get("required_flags")
        min_power = item.get("min_total_power")
        min_score = item.get("min_total_familiarity_score")

        return NamedSpellBlueprint(
            blueprint_id=item["id"],
            name=item["name"],
            description=item.get("description", ""),
            required_runes=required,
            allowed_extra_runes=tuple(parse_rune_sequence(allowed)) if allowed else None,
            min_damage_focus=min_focus,
            min_total_power=float(min_power) if min_power is not None else None,
            min_rune_familiarity=(
                {parse_rune_code(k): float(v) for k, v in familiarity.items()}
                if familiarity else None
            ),
            min_total_familiarity_score=float(min_score) if min_score is not None else None,
            required_flags=tuple(flags) if flags else None,
            requires_named_source_id=item.get("requires_named_source_id"),
            hidden=bool(item.get("hidden", False)),
            hint=item.get("hint", ""),
            tags=tuple(SpellTag(t) for t in item.get("tags", [])),
        )


def load_blueprints(blueprints_file: Optional[Path] = None) -> BlueprintFileLoadResult:
    """
    Convenience function to load named spell blueprints.

    Args:
        blueprints_file: Optional custom file. Defaults to the packaged
            named_spells.json.
    """
    if blueprints_file is None:
        blueprints_file = DEFAULT_BLUEPRINTS_FILE

    loader = BlueprintDataLoader()
    result = loader.load_file(Path(blueprints_file))
    for error in result.errors:
        logger.error(f"Blueprint loading error: {error}")
    return result
