"""
Run Log system for rules-engine event tracking.

Captures the deterministic decisions the engine makes (evaluations,
evolution gate checks, evolutions, progression updates, casts) so a
caller can inspect why a spell did or did not qualify for a blueprint.

Services take a RunLog in their constructor; get_run_log() returns the
process-wide default used when none is injected.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union
import json
import logging
import threading

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    EVALUATION = "evaluation"  # Evaluator snapshot
    GATE_CHECK = "gate_check"  # One blueprint requirement checked
    EVOLUTION = "evolution"  # Spell evolved into a named blueprint
    PROGRESSION = "progression"  # Actor XP/affinity/familiarity updated
    CAST = "cast"  # Spell cast resolved against a target
    CUSTOM = "custom"  # Custom event


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # Note: event_type has a default to allow subclass fields with defaults
    # Subclasses set the correct value in __post_init__
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    level: int = logging.INFO
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "level": self.level,
            "context": self.context,
        }

    @classmethod
    def _base_kwargs(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "timestamp": datetime.fromisoformat(data["timestamp"]),
            "sequence_number": data.get("sequence_number", 0),
            "level": data.get("level", logging.INFO),
            "context": data.get("context", {}),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        """Create from dictionary."""
        return cls(event_type=EventType(data["event_type"]), **cls._base_kwargs(data))


@dataclass
class EvaluationEvent(LogEvent):
    """An evaluator run for one spell."""

    spell_id: str = ""
    actor_id: str = ""
    runes: str = ""
    power: float = 0.0
    cost: float = 0.0
    instability: float = 0.0
    formation_penalty: float = 0.0

    def __post_init__(self):
        self.event_type = EventType.EVALUATION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "spell_id": self.spell_id,
                "actor_id": self.actor_id,
                "runes": self.runes,
                "power": self.power,
                "cost": self.cost,
                "instability": self.instability,
                "formation_penalty": self.formation_penalty,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EvaluationEvent":
        return cls(
            **cls._base_kwargs(data),
            spell_id=data.get("spell_id", ""),
            actor_id=data.get("actor_id", ""),
            runes=data.get("runes", ""),
            power=data.get("power", 0.0),
            cost=data.get("cost", 0.0),
            instability=data.get("instability", 0.0),
            formation_penalty=data.get("formation_penalty", 0.0),
        )

    def __str__(self) -> str:
        return (
            f"[{self.sequence_number}] EVAL {self.runes}: power={self.power} "
            f"cost={self.cost:g} instability={self.instability} "
            f"(penalty {self.formation_penalty:.3f})"
        )


@dataclass
class GateCheckEvent(LogEvent):
    """A single blueprint requirement checked against a spell."""

    spell_id: str = ""
    blueprint_id: str = ""
    gate: str = ""
    passed: bool = False
    detail: str = ""

    def __post_init__(self):
        self.event_type = EventType.GATE_CHECK
        self.level = logging.DEBUG

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "spell_id": self.spell_id,
                "blueprint_id": self.blueprint_id,
                "gate": self.gate,
                "passed": self.passed,
                "detail": self.detail,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GateCheckEvent":
        return cls(
            **cls._base_kwargs(data),
            spell_id=data.get("spell_id", ""),
            blueprint_id=data.get("blueprint_id", ""),
            gate=data.get("gate", ""),
            passed=data.get("passed", False),
            detail=data.get("detail", ""),
        )

    def __str__(self) -> str:
        status = "pass" if self.passed else "FAIL"
        return f"[{self.sequence_number}] GATE {self.blueprint_id}.{self.gate}: {status} ({self.detail})"


@dataclass
class EvolutionEvent(LogEvent):
    """A spell evolved into a named blueprint."""

    source_spell_id: str = ""
    new_spell_id: str = ""
    blueprint_id: str = ""
    name: str = ""

    def __post_init__(self):
        self.event_type = EventType.EVOLUTION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "source_spell_id": self.source_spell_id,
                "new_spell_id": self.new_spell_id,
                "blueprint_id": self.blueprint_id,
                "name": self.name,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EvolutionEvent":
        return cls(
            **cls._base_kwargs(data),
            source_spell_id=data.get("source_spell_id", ""),
            new_spell_id=data.get("new_spell_id", ""),
            blueprint_id=data.get("blueprint_id", ""),
            name=data.get("name", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] EVOLVE {self.source_spell_id} -> {self.name} ({self.new_spell_id})"


@dataclass
class ProgressionEvent(LogEvent):
    """An actor's elemental XP or rune familiarity changed."""

    actor_id: str = ""
    spell_id: str = ""
    kind: str = ""  # "element_xp" or "rune_familiarity"
    changes: dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        self.event_type = EventType.PROGRESSION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "actor_id": self.actor_id,
                "spell_id": self.spell_id,
                "kind": self.kind,
                "changes": self.changes,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressionEvent":
        return cls(
            **cls._base_kwargs(data),
            actor_id=data.get("actor_id", ""),
            spell_id=data.get("spell_id", ""),
            kind=data.get("kind", ""),
            changes=data.get("changes", {}),
        )

    def __str__(self) -> str:
        parts = ", ".join(f"{k}+{v:.3f}" for k, v in self.changes.items())
        return f"[{self.sequence_number}] PROGRESS {self.actor_id} {self.kind}: {parts}"


@dataclass
class CastEvent(LogEvent):
    """A spell cast resolved against a target."""

    caster_id: str = ""
    target_id: str = ""
    spell_id: str = ""
    mana_spent: float = 0.0
    total_damage: float = 0.0
    target_hp_after: float = 0.0

    def __post_init__(self):
        self.event_type = EventType.CAST

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "caster_id": self.caster_id,
                "target_id": self.target_id,
                "spell_id": self.spell_id,
                "mana_spent": self.mana_spent,
                "total_damage": self.total_damage,
                "target_hp_after": self.target_hp_after,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CastEvent":
        return cls(
            **cls._base_kwargs(data),
            caster_id=data.get("caster_id", ""),
            target_id=data.get("target_id", ""),
            spell_id=data.get("spell_id", ""),
            mana_spent=data.get("mana_spent", 0.0),
            total_damage=data.get("total_damage", 0.0),
            target_hp_after=data.get("target_hp_after", 0.0),
        )

    def __str__(self) -> str:
        return (
            f"[{self.sequence_number}] CAST {self.caster_id} -> {self.target_id}: "
            f"{self.total_damage:.2f} dmg, {self.mana_spent:g} mana "
            f"(target hp {self.target_hp_after:.1f})"
        )


_EVENT_CLASSES: dict[EventType, type[LogEvent]] = {
    EventType.EVALUATION: EvaluationEvent,
    EventType.GATE_CHECK: GateCheckEvent,
    EventType.EVOLUTION: EvolutionEvent,
    EventType.PROGRESSION: ProgressionEvent,
    EventType.CAST: CastEvent,
}


def event_from_dict(data: dict[str, Any]) -> LogEvent:
    """Rebuild the right LogEvent subclass from its ``to_dict`` form."""
    event_cls = _EVENT_CLASSES.get(EventType(data["event_type"]), LogEvent)
    return event_cls.from_dict(data)


class RunLog:
    """
    Collects engine events in order.

    Events below ``min_level`` are dropped, so gate traces (DEBUG) can be
    silenced without losing evaluations and evolutions (INFO). With
    ``max_events`` set only the newest events are kept; sequence numbers
    keep counting.
    """

    def __init__(self, min_level: int = logging.DEBUG, max_events: Optional[int] = None):
        self.min_level = min_level
        self.max_events = max_events
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._session_start: datetime = datetime.now()
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._paused: bool = False
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Reset the log for a new session."""
        with self._lock:
            self._events = []
            self._sequence = 0
            self._session_start = datetime.now()
        logger.debug("RunLog reset")

    def pause(self) -> None:
        """Pause logging."""
        self._paused = True

    def resume(self) -> None:
        """Resume logging."""
        self._paused = False

    def is_paused(self) -> bool:
        """Check if logging is paused."""
        return self._paused

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Unsubscribe from events."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def log_event(self, event: LogEvent) -> Optional[LogEvent]:
        """
        Record an event.

        Returns:
            The event with its sequence number set, or None if it was
            dropped (paused or below ``min_level``)
        """
        if self._paused or event.level < self.min_level:
            return None

        with self._lock:
            self._sequence += 1
            event.sequence_number = self._sequence
            self._events.append(event)
            if self.max_events is not None and len(self._events) > self.max_events:
                del self._events[: len(self._events) - self.max_events]

        # Notify subscribers
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")
        return event

    def log_evaluation(
        self,
        spell_id: str,
        actor_id: str,
        runes: str,
        power: float,
        cost: float,
        instability: float,
        formation_penalty: float,
        context: Optional[dict[str, Any]] = None,
    ) -> EvaluationEvent:
        """Log an evaluator snapshot."""
        event = EvaluationEvent(
            spell_id=spell_id,
            actor_id=actor_id,
            runes=runes,
            power=power,
            cost=cost,
            instability=instability,
            formation_penalty=formation_penalty,
            context=context or {},
        )
        self.log_event(event)
        return event

    def log_gate_check(
        self,
        spell_id: str,
        blueprint_id: str,
        gate: str,
        passed: bool,
        detail: str = "",
    ) -> GateCheckEvent:
        """Log one evolution gate check."""
        event = GateCheckEvent(
            spell_id=spell_id,
            blueprint_id=blueprint_id,
            gate=gate,
            passed=passed,
            detail=detail,
        )
        self.log_event(event)
        return event

    def log_evolution(
        self,
        source_spell_id: str,
        new_spell_id: str,
        blueprint_id: str,
        name: str,
    ) -> EvolutionEvent:
        """Log a successful evolution."""
        event = EvolutionEvent(
            source_spell_id=source_spell_id,
            new_spell_id=new_spell_id,
            blueprint_id=blueprint_id,
            name=name,
        )
        self.log_event(event)
        return event

    def log_progression(
        self,
        actor_id: str,
        spell_id: str,
        kind: str,
        changes: dict[str, float],
    ) -> ProgressionEvent:
        """Log an actor progression update."""
        event = ProgressionEvent(
            actor_id=actor_id,
            spell_id=spell_id,
            kind=kind,
            changes=changes,
        )
        self.log_event(event)
        return event

    def log_cast(
        self,
        caster_id: str,
        target_id: str,
        spell_id: str,
        mana_spent: float,
        total_damage: float,
        target_hp_after: float,
        context: Optional[dict[str, Any]] = None,
    ) -> CastEvent:
        """Log a resolved cast."""
        event = CastEvent(
            caster_id=caster_id,
            target_id=target_id,
            spell_id=spell_id,
            mana_spent=mana_spent,
            total_damage=total_damage,
            target_hp_after=target_hp_after,
            context=context or {},
        )
        self.log_event(event)
        return event

    def log_custom(
        self,
        event_name: str,
        details: dict[str, Any],
    ) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self.log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number

        Returns:
            List of events
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_gate_checks(self, blueprint_id: Optional[str] = None) -> list[GateCheckEvent]:
        """Get gate check events, optionally for one blueprint."""
        return [
            e for e in self._events
            if isinstance(e, GateCheckEvent)
            and (blueprint_id is None or e.blueprint_id == blueprint_id)
        ]

    def get_event_count(self) -> int:
        """Get total number of logged events."""
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        counts = {t.value: 0 for t in EventType}
        for e in self._events:
            counts[e.event_type.value] += 1
        return {
            "session_start": self._session_start.isoformat(),
            "total_events": len(self._events),
            "by_type": counts,
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "sequence": self._sequence,
            "min_level": self.min_level,
            "max_events": self.max_events,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize the log to JSON."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: Union[str, Path]) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> "RunLog":
        """Load a log saved with ``save`` into a new RunLog."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = cls(
            min_level=data.get("min_level", logging.DEBUG),
            max_events=data.get("max_events"),
        )
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._sequence = data.get("sequence", 0)
        log._events = [event_from_dict(e) for e in data.get("events", [])]

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """
        Format the log as a human-readable string.

        Args:
            event_types: Filter by event types (None = all)
            max_events: Maximum number of events to include

        Returns:
            Formatted log string
        """
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)


# Default instance
DEFAULT_MAX_EVENTS = 10_000
_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the process-wide default RunLog."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog(max_events=DEFAULT_MAX_EVENTS)
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the default RunLog."""
    log = get_run_log()
    log.reset()
    return log
