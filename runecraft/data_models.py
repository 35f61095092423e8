"""
Shared data structures for the Runecraft rules engine.

Catalog entries (runes, named spell blueprints) are immutable and loaded
once. Actors and spells are plain mutable records owned by the caller;
the engine only writes the fields documented on each service.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from runecraft.errors import UnknownRuneError


# =============================================================================
# ENUMS
# =============================================================================


class RuneCode(str, Enum):
    """The 26 letters of the rune alphabet, in canonical order."""
    A = "A"  # Air
    B = "B"  # Burst
    C = "C"  # Crystal
    D = "D"  # Duration
    E = "E"  # Energy
    F = "F"  # Fire
    G = "G"  # Gravity
    H = "H"  # Heal
    I = "I"  # Ice
    J = "J"  # Jolt
    K = "K"  # Kinetic
    L = "L"  # Light
    M = "M"  # Mind
    N = "N"  # Null
    O = "O"  # Order
    P = "P"  # Persuasion
    Q = "Q"  # Quake
    R = "R"  # Ray
    S = "S"  # Self
    T = "T"  # Target
    U = "U"  # Unbind
    V = "V"  # Void
    W = "W"  # Water
    X = "X"  # Amplify
    Y = "Y"  # Yield
    Z = "Z"  # Zeal


class DamageType(str, Enum):
    """Damage types a spell can deal."""
    PHYSICAL = "physical"
    FIRE = "fire"
    ICE = "ice"
    WATER = "water"
    ELECTRIC = "electric"
    LIGHT = "light"
    VOID = "void"
    GRAVITY = "gravity"
    MIND = "mind"
    HEAL = "heal"


class RuneTag(str, Enum):
    """High-level rune category tags."""
    DAMAGE = "Damage"
    HEAL = "Heal"
    BUFF = "Buff"
    DEBUFF = "Debuff"
    UTILITY = "Utility"
    AOE = "AOE"
    CC = "CC"
    DOT = "DOT"
    SILENCE = "Silence"


class CrowdControlTag(str, Enum):
    """Instantaneous on-hit crowd control."""
    PUSH = "push"
    SLOW = "slow"
    STUN = "stun"
    KNOCKDOWN = "knockdown"
    SILENCE = "silence"


class EffectType(str, Enum):
    """Ongoing status effects (buffs and debuffs)."""
    BURN = "burn"
    POISON = "poison"
    BLEED = "bleed"
    SHOCK = "shock"
    SLOW = "slow"
    STUN = "stun"
    SILENCE = "silence"
    SHIELD = "shield"
    REGEN = "regen"
    VULNERABLE = "vulnerable"
    FORTIFIED = "fortified"


class SpellTag(str, Enum):
    """Tags hung on named spells for filtering and flavor."""
    FIRE = "Fire"
    RAY = "Ray"
    BURN = "Burn"
    MIND = "Mind"
    DEBUFF = "Debuff"
    SILENCE = "Silence"
    WATER = "Water"
    SHIELD = "Shield"
    HEAL = "Heal"


# =============================================================================
# HELPERS
# =============================================================================


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round_to(value: float, places: int) -> float:
    """Round to a number of decimal places, halves rounding up."""
    scale = 10 ** places
    return math.floor(value * scale + 0.5) / scale


def parse_rune_code(symbol: Any) -> RuneCode:
    """
    Convert a symbol into a RuneCode.

    Accepts RuneCode members and single letters (case-insensitive).

    Raises:
        UnknownRuneError: If the symbol is not one of the 26 runes
    """
    if isinstance(symbol, RuneCode):
        return symbol
    if isinstance(symbol, str) and len(symbol) == 1:
        try:
            return RuneCode(symbol.upper())
        except ValueError:
            pass
    raise UnknownRuneError(symbol)


def parse_rune_sequence(symbols: Iterable[Any]) -> list[RuneCode]:
    """Convert an iterable of symbols (or a string like "FAR") into RuneCodes."""
    return [parse_rune_code(s) for s in symbols]


def _damage_vector_to_dict(vector: dict["DamageType", float]) -> dict[str, float]:
    return {t.value: v for t, v in vector.items()}


def _damage_vector_from_dict(data: Optional[dict[str, Any]]) -> dict[DamageType, float]:
    return {DamageType(k): float(v) for k, v in (data or {}).items()}


def _rune_vector_to_dict(vector: dict[RuneCode, float]) -> dict[str, float]:
    return {parse_rune_code(r).value: v for r, v in vector.items()}


def _rune_vector_from_dict(data: Optional[dict[str, Any]]) -> dict[RuneCode, float]:
    return {parse_rune_code(k): float(v) for k, v in (data or {}).items()}


# =============================================================================
# EFFECTS
# =============================================================================


@dataclass(frozen=True)
class EffectBlueprint:
    """Unscaled effect carried by a rune definition."""
    effect_type: EffectType
    base_magnitude: float
    base_duration_sec: float
    self_target: bool = False  # True = applies to caster by default

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.effect_type.value,
            "base_magnitude": self.base_magnitude,
            "base_duration_sec": self.base_duration_sec,
            "self": self.self_target,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EffectBlueprint":
        return cls(
            effect_type=EffectType(data["type"]),
            base_magnitude=float(data.get("base_magnitude", 0.0)),
            base_duration_sec=float(data.get("base_duration_sec", 0.0)),
            self_target=bool(data.get("self", False)),
        )


@dataclass(frozen=True)
class OverchargeEffect:
    """Bonus effect unlocked once enough extra mana is infused into a rune."""
    min_extra_mana: float
    blueprint: EffectBlueprint

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_extra_mana": self.min_extra_mana,
            "blueprint": self.blueprint.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OverchargeEffect":
        return cls(
            min_extra_mana=float(data["min_extra_mana"]),
            blueprint=EffectBlueprint.from_dict(data["blueprint"]),
        )


@dataclass
class EffectInstance:
    """A resolved effect applied on hit or to the caster."""
    effect_type: EffectType
    magnitude: float
    duration_sec: int
    self_target: bool = False  # True = affects caster, False = affects target

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.effect_type.value,
            "magnitude": self.magnitude,
            "duration_sec": self.duration_sec,
            "self": self.self_target,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EffectInstance":
        return cls(
            effect_type=EffectType(data["type"]),
            magnitude=float(data.get("magnitude", 0.0)),
            duration_sec=int(data.get("duration_sec", 0)),
            self_target=bool(data.get("self", False)),
        )


# =============================================================================
# RUNES
# =============================================================================


@dataclass(frozen=True)
class RuneSymbol:
    """
    A single letter of the magic alphabet.

    Immutable catalog entry; one exists per RuneCode.
    """
    code: RuneCode
    concept: str
    power_factor: float
    control_factor: float
    instability_base: float  # 0..1
    mana_cost: float
    tags: tuple[RuneTag, ...] = ()
    damage: dict[DamageType, float] = field(default_factory=dict)
    penetration: dict[DamageType, float] = field(default_factory=dict)
    cc_instant: tuple[CrowdControlTag, ...] = ()
    effects: tuple[EffectBlueprint, ...] = ()
    overcharge_effects: tuple[OverchargeEffect, ...] = ()
    dot_affinity: Optional[float] = None
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "code": self.code.value,
            "concept": self.concept,
            "description": self.description,
            "power_factor": self.power_factor,
            "control_factor": self.control_factor,
            "instability_base": self.instability_base,
            "mana_cost": self.mana_cost,
            "tags": [t.value for t in self.tags],
            "damage": _damage_vector_to_dict(self.damage),
            "pen": _damage_vector_to_dict(self.penetration),
            "cc_instant": [c.value for c in self.cc_instant],
            "effects": [e.to_dict() for e in self.effects],
            "overcharge_effects": [o.to_dict() for o in self.overcharge_effects],
            "dot_affinity": self.dot_affinity,
        }


# =============================================================================
# ACTORS
# =============================================================================


@dataclass
class CombatActor:
    """
    Base combat actor shared by players and creatures.

    There are no levels: elemental XP/affinity is progression and rune
    familiarity (``affinity``) is pattern mastery.
    """
    actor_id: str
    name: str
    mana: float = 100.0
    max_mana: float = 100.0
    hp: float = 100.0
    max_hp: float = 100.0
    # Rune familiarity: 0..1 per rune letter
    affinity: dict[RuneCode, float] = field(default_factory=dict)
    element_xp: dict[DamageType, float] = field(default_factory=dict)
    element_affinity: dict[DamageType, float] = field(default_factory=dict)
    effects: list[EffectInstance] = field(default_factory=list)

    def is_alive(self) -> bool:
        return self.hp > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "actor_id": self.actor_id,
            "name": self.name,
            "mana": self.mana,
            "max_mana": self.max_mana,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "affinity": _rune_vector_to_dict(self.affinity),
            "element_xp": _damage_vector_to_dict(self.element_xp),
            "element_affinity": _damage_vector_to_dict(self.element_affinity),
            "effects": [e.to_dict() for e in self.effects],
        }

    @classmethod
    def _base_kwargs(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "actor_id": data["actor_id"],
            "name": data.get("name", ""),
            "mana": float(data.get("mana", 100.0)),
            "max_mana": float(data.get("max_mana", 100.0)),
            "hp": float(data.get("hp", 100.0)),
            "max_hp": float(data.get("max_hp", 100.0)),
            "affinity": _rune_vector_from_dict(data.get("affinity")),
            "element_xp": _damage_vector_from_dict(data.get("element_xp")),
            "element_affinity": _damage_vector_from_dict(data.get("element_affinity")),
            "effects": [EffectInstance.from_dict(e) for e in data.get("effects", [])],
        }


@dataclass
class Player(CombatActor):
    """A controllable actor with crafting modifiers."""
    control_bonus: float = 0.0     # reduces instability
    cost_efficiency: float = 0.0   # reduces mana cost (0..0.3 typical)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["kind"] = "player"
        data["control_bonus"] = self.control_bonus
        data["cost_efficiency"] = self.cost_efficiency
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Player":
        return cls(
            **cls._base_kwargs(data),
            control_bonus=float(data.get("control_bonus", 0.0)),
            cost_efficiency=float(data.get("cost_efficiency", 0.0)),
        )


@dataclass
class Creature(CombatActor):
    """A non-player actor. Casts and grows affinity exactly like a player."""
    species: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["kind"] = "creature"
        data["species"] = self.species
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Creature":
        return cls(**cls._base_kwargs(data), species=data.get("species"))


def actor_from_dict(data: dict[str, Any]) -> CombatActor:
    """Rebuild a Player or Creature from its ``to_dict`` form."""
    if data.get("kind") == "creature":
        return Creature.from_dict(data)
    return Player.from_dict(data)


# =============================================================================
# SPELLS
# =============================================================================


@dataclass
class RuneInfusion:
    """Extra mana invested into one rune occurrence during crafting."""
    index: int          # 0-based index into spell.runes
    extra_mana: float

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "extra_mana": self.extra_mana}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuneInfusion":
        return cls(index=int(data["index"]), extra_mana=float(data["extra_mana"]))


@dataclass
class SpellGrowth:
    """Usage-driven growth of a spell. Accumulated outside the engine."""
    power: float = 0.0
    control: float = 0.0
    stability: float = 0.0
    affinity: float = 0.0
    versatility: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "power": self.power,
            "control": self.control,
            "stability": self.stability,
            "affinity": self.affinity,
            "versatility": self.versatility,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "SpellGrowth":
        data = data or {}
        return cls(**{k: float(data.get(k, 0.0)) for k in
                      ("power", "control", "stability", "affinity", "versatility")})


@dataclass
class SpellEvalSnapshot:
    """Scalar evaluation of a spell, cached on ``Spell.last_eval``."""
    power: float
    cost: float
    instability: float
    synergy: float
    effects: list[RuneTag] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "power": self.power,
            "cost": self.cost,
            "instability": self.instability,
            "synergy": self.synergy,
            "effects": [t.value for t in self.effects],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpellEvalSnapshot":
        return cls(
            power=float(data["power"]),
            cost=float(data["cost"]),
            instability=float(data["instability"]),
            synergy=float(data.get("synergy", 0.0)),
            effects=[RuneTag(t) for t in data.get("effects", [])],
        )


@dataclass
class CombatStats:
    """Derived combat snapshot for a spell."""
    burst: dict[DamageType, float] = field(default_factory=dict)   # instant damage
    dot: dict[DamageType, float] = field(default_factory=dict)     # damage per second
    dot_duration_sec: int = 0
    penetration: dict[DamageType, float] = field(default_factory=dict)  # 0..0.95
    crit_chance: float = 0.05
    crit_mult: float = 1.5
    cc_tags: list[CrowdControlTag] = field(default_factory=list)
    effects: list[EffectInstance] = field(default_factory=list)

    def damage_for(self, damage_type: DamageType) -> float:
        """Burst plus full DoT for one damage type."""
        return (
            self.burst.get(damage_type, 0.0)
            + self.dot.get(damage_type, 0.0) * self.dot_duration_sec
        )

    def total_damage(self) -> float:
        """Burst plus full DoT across every damage type."""
        return sum(self.damage_for(t) for t in DamageType)

    def to_dict(self) -> dict[str, Any]:
        return {
            "burst": _damage_vector_to_dict(self.burst),
            "dot": _damage_vector_to_dict(self.dot),
            "dot_duration_sec": self.dot_duration_sec,
            "penetration": _damage_vector_to_dict(self.penetration),
            "crit_chance": self.crit_chance,
            "crit_mult": self.crit_mult,
            "cc_tags": [c.value for c in self.cc_tags],
            "effects": [e.to_dict() for e in self.effects],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CombatStats":
        return cls(
            burst=_damage_vector_from_dict(data.get("burst")),
            dot=_damage_vector_from_dict(data.get("dot")),
            dot_duration_sec=int(data.get("dot_duration_sec", 0)),
            penetration=_damage_vector_from_dict(data.get("penetration")),
            crit_chance=float(data.get("crit_chance", 0.05)),
            crit_mult=float(data.get("crit_mult", 1.5)),
            cc_tags=[CrowdControlTag(c) for c in data.get("cc_tags", [])],
            effects=[EffectInstance.from_dict(e) for e in data.get("effects", [])],
        )


@dataclass
class Spell:
    """
    A crafted incantation.

    There is no level or XP on spells. ``name is None`` means the spell is
    nameless; evolution produces new named Spell values and never touches
    the source.
    """
    spell_id: str
    owner_id: str
    runes: list[RuneCode]
    profile: dict[RuneCode, float] = field(default_factory=dict)
    name: Optional[str] = None
    growth: SpellGrowth = field(default_factory=SpellGrowth)
    infusions: list[RuneInfusion] = field(default_factory=list)
    last_eval: Optional[SpellEvalSnapshot] = None
    combat: Optional[CombatStats] = None
    craft_cost: Optional[float] = None
    evolved_from: Optional[str] = None

    @property
    def is_nameless(self) -> bool:
        return not self.name

    @property
    def display_name(self) -> str:
        return self.name or "nameless"

    @property
    def rune_string(self) -> str:
        return "".join(r.value for r in self.runes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "spell_id": self.spell_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "runes": [r.value for r in self.runes],
            "profile": _rune_vector_to_dict(self.profile),
            "growth": self.growth.to_dict(),
            "infusions": [i.to_dict() for i in self.infusions],
            "last_eval": self.last_eval.to_dict() if self.last_eval else None,
            "combat": self.combat.to_dict() if self.combat else None,
            "craft_cost": self.craft_cost,
            "evolved_from": self.evolved_from,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Spell":
        """Create from dictionary."""
        return cls(
            spell_id=data["spell_id"],
            owner_id=data["owner_id"],
            name=data.get("name"),
            runes=parse_rune_sequence(data["runes"]),
            profile=_rune_vector_from_dict(data.get("profile")),
            growth=SpellGrowth.from_dict(data.get("growth")),
            infusions=[RuneInfusion.from_dict(i) for i in data.get("infusions", [])],
            last_eval=(
                SpellEvalSnapshot.from_dict(data["last_eval"])
                if data.get("last_eval") else None
            ),
            combat=CombatStats.from_dict(data["combat"]) if data.get("combat") else None,
            craft_cost=data.get("craft_cost"),
            evolved_from=data.get("evolved_from"),
        )


# =============================================================================
# NAMED SPELL BLUEPRINTS
# =============================================================================


@dataclass(frozen=True)
class DamageFocus:
    """Minimum share of total damage a single type must reach."""
    damage_type: DamageType
    ratio: float


@dataclass(frozen=True)
class NamedSpellBlueprint:
    """
    A named spell a crafted spell can evolve into.

    Requirements are all optional except ``required_runes``; see
    EvolutionService for how each one gates a match.
    """
    blueprint_id: str
    name: str
    description: str
    required_runes: tuple[RuneCode, ...]
    allowed_extra_runes: Optional[tuple[RuneCode, ...]] = None
    min_damage_focus: Optional[DamageFocus] = None
    min_total_power: Optional[float] = None
    min_rune_familiarity: Optional[dict[RuneCode, float]] = None
    min_total_familiarity_score: Optional[float] = None
    required_flags: Optional[tuple[str, ...]] = None
    requires_named_source_id: Optional[str] = None
    hidden: bool = False
    hint: str = ""
    tags: tuple[SpellTag, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.blueprint_id,
            "name": self.name,
            "description": self.description,
            "required_runes": [r.value for r in self.required_runes],
            "allowed_extra_runes": (
                [r.value for r in self.allowed_extra_runes]
                if self.allowed_extra_runes is not None else None
            ),
            "min_damage_focus": (
                {"type": self.min_damage_focus.damage_type.value,
                 "ratio": self.min_damage_focus.ratio}
                if self.min_damage_focus else None
            ),
            "min_total_power": self.min_total_power,
            "min_rune_familiarity": (
                _rune_vector_to_dict(self.min_rune_familiarity)
                if self.min_rune_familiarity else None
            ),
            "min_total_familiarity_score": self.min_total_familiarity_score,
            "required_flags": list(self.required_flags) if self.required_flags else None,
            "requires_named_source_id": self.requires_named_source_id,
            "hidden": self.hidden,
            "hint": self.hint,
            "tags": [t.value for t in self.tags],
        }
