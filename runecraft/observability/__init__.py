"""
Observability for the Runecraft engine.

Structured event log of evaluations, evolution gate checks, evolutions,
progression updates and casts.
"""

from runecraft.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    EvaluationEvent,
    GateCheckEvent,
    EvolutionEvent,
    ProgressionEvent,
    CastEvent,
    event_from_dict,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "EvaluationEvent",
    "GateCheckEvent",
    "EvolutionEvent",
    "ProgressionEvent",
    "CastEvent",
    "event_from_dict",
    "get_run_log",
    "reset_run_log",
]
