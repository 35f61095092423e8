"""
Rules configuration for the Runecraft engine.

All formula constants used by the evaluator, cost calculator, combat
stats, encounter and progression services live here. The defaults are the canonical rules; a
JSON file can override any subset of them.
"""

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union


logger = logging.getLogger(__name__)


# Rune letters treated as vowels by the formation penalty
DEFAULT_VOWEL_RUNES: tuple[str, ...] = ("A", "E", "I", "O", "U", "Y")

# Adjacent rune pairs that clash, checked in either order
DEFAULT_CLASH_PAIRS: tuple[tuple[str, str], ...] = (
    ("F", "W"),  # Fire / Water
    ("F", "I"),  # Fire / Ice
    ("L", "V"),  # Light / Void
)


@dataclass
class RulesConfig:
    """Formula constants for evaluation, cost, combat and progression."""

    # Per-rune affinity amplification (evaluator)
    power_affinity_amp: float = 0.5
    control_affinity_amp: float = 0.25
    instability_affinity_mitigation: float = 0.35

    # Formation penalty
    vowel_runes: tuple[str, ...] = DEFAULT_VOWEL_RUNES
    vowel_ratio_target: float = 0.4
    vowel_penalty_max: float = 0.3
    clash_pairs: tuple[tuple[str, str], ...] = DEFAULT_CLASH_PAIRS
    clash_penalty: float = 0.04
    formation_penalty_cap: float = 0.35

    # Growth mitigation: 1 - clamp(growth / divisor, 0, cap)
    growth_mitigation_divisor: float = 200.0
    growth_mitigation_cap: float = 0.6

    # Cost
    cost_efficiency_cap: float = 0.3

    # Elemental XP and affinity
    xp_per_point: float = 100.0
    affinity_soft_cap: float = 1.0
    xp_per_full_focus_cast: float = 10.0
    burst_focus_weight: float = 1.0
    dot_focus_weight: float = 0.7

    # Rune familiarity growth
    familiarity_base_step: float = 0.02
    familiarity_nameless_mult: float = 0.5
    familiarity_named_mult: float = 1.0
    familiarity_evolved_mult: float = 1.3
    max_familiarity: float = 1.0

    # Combat stats derivation
    base_crit_chance: float = 0.05
    base_crit_mult: float = 1.5
    max_crit_chance: float = 0.6
    max_penetration: float = 0.95
    base_dot_duration_sec: float = 3.0
    duration_rune_mult: float = 1.5
    max_overcharge_bonus: float = 0.75
    max_dot_spill: float = 0.6
    damage_affinity_amp: float = 0.5

    # Encounter: target elemental affinity 1 halves damage of that type
    defensive_affinity_reduction: float = 0.5

    # Evolution scoring
    focus_excess_weight: float = 10.0
    exact_rune_count_bonus: float = 5.0

    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # JSON gives lists; keep the tuple shape
        self.vowel_runes = tuple(str(r).upper() for r in self.vowel_runes)
        self.clash_pairs = tuple(
            (str(a).upper(), str(b).upper()) for a, b in self.clash_pairs
        )

    def is_clash(self, first: str, second: str) -> bool:
        """Check whether two adjacent rune letters clash (order-free)."""
        for a, b in self.clash_pairs:
            if (first == a and second == b) or (first == b and second == a):
                return True
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "vowel_runes":
                value = list(value)
            elif f.name == "clash_pairs":
                value = [list(pair) for pair in value]
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RulesConfig":
        """Create from dictionary, ignoring unknown keys (kept in ``extra``)."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        unknown = {k: v for k, v in data.items() if k not in known}
        if unknown:
            logger.warning(f"Ignoring unknown rules config keys: {sorted(unknown)}")
            kwargs.setdefault("extra", {}).update(unknown)
        return cls(**kwargs)


def load_rules_config(path: Optional[Union[str, Path]] = None) -> RulesConfig:
    """
    Load rules configuration from a JSON file.

    Args:
        path: JSON file with any subset of RulesConfig fields.
            None returns the default rules.

    Returns:
        RulesConfig instance
    """
    if path is None:
        return RulesConfig()

    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    config = RulesConfig.from_dict(data)
    logger.info(f"Loaded rules config from {path}")
    return config
