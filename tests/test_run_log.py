"""
Tests for the RunLog event recorder.
"""

import logging

import pytest

from runecraft.observability.run_log import (
    DEFAULT_MAX_EVENTS,
    CastEvent,
    EvaluationEvent,
    EventType,
    GateCheckEvent,
    LogEvent,
    ProgressionEvent,
    RunLog,
    event_from_dict,
    get_run_log,
    reset_run_log,
)


@pytest.fixture
def log():
    return RunLog()


def _evaluation(log, runes="FAR"):
    return log.log_evaluation(
        spell_id="s1",
        actor_id="p1",
        runes=runes,
        power=2.9,
        cost=13,
        instability=0.07,
        formation_penalty=0.05,
    )


class TestRecording:
    """Sequence numbers, levels and pausing."""

    def test_sequence_numbers(self, log):
        """Events are numbered from 1 in logging order."""
        first = _evaluation(log)
        second = log.log_gate_check("s1", "ember_ray", "required_runes", True)
        assert (first.sequence_number, second.sequence_number) == (1, 2)
        assert log.get_event_count() == 2

    def test_event_types(self, log):
        """Each helper produces its own event type."""
        assert _evaluation(log).event_type == EventType.EVALUATION
        assert log.log_gate_check("s", "b", "flags", False).event_type == EventType.GATE_CHECK
        assert log.log_evolution("s", "s::b", "b", "B").event_type == EventType.EVOLUTION
        assert log.log_progression("p", "s", "element_xp", {"fire": 1.0}).event_type == EventType.PROGRESSION
        assert log.log_cast("p", "g", "s", 13, 9.9, 20.1).event_type == EventType.CAST
        assert log.log_custom("note", {"x": 1}).context == {"event_name": "note", "x": 1}

    def test_min_level_drops_gate_checks(self):
        """Gate checks are DEBUG and dropped by an INFO log."""
        log = RunLog(min_level=logging.INFO)
        event = log.log_gate_check("s1", "ember_ray", "required_runes", True)
        assert event.level == logging.DEBUG
        assert log.get_event_count() == 0
        _evaluation(log)
        assert log.get_events()[0].sequence_number == 1

    def test_log_event_returns_none_when_dropped(self):
        """Dropped events are not numbered."""
        log = RunLog(min_level=logging.INFO)
        assert log.log_event(GateCheckEvent(gate="flags")) is None

    def test_pause_and_resume(self, log):
        """Nothing is recorded while paused."""
        log.pause()
        assert log.is_paused()
        _evaluation(log)
        assert log.get_event_count() == 0
        log.resume()
        _evaluation(log)
        assert log.get_event_count() == 1

    def test_max_events_keeps_newest(self):
        """A bounded log keeps the newest events and keeps numbering."""
        log = RunLog(max_events=2)
        for runes in ("F", "FA", "FAR"):
            _evaluation(log, runes)
        assert [e.runes for e in log.get_events()] == ["FA", "FAR"]
        assert [e.sequence_number for e in log.get_events()] == [2, 3]
        assert log.get_summary()["last_sequence"] == 3

    def test_reset(self, log):
        """Reset clears events and restarts numbering."""
        _evaluation(log)
        log.reset()
        assert log.get_event_count() == 0
        assert _evaluation(log).sequence_number == 1


class TestSubscribers:
    """Live event delivery."""

    def test_subscribe_and_unsubscribe(self, log):
        """Subscribers see events until they unsubscribe."""
        seen = []
        log.subscribe(seen.append)
        _evaluation(log)
        log.unsubscribe(seen.append)
        _evaluation(log)
        assert len(seen) == 1
        assert isinstance(seen[0], EvaluationEvent)

    def test_failing_subscriber_does_not_break_logging(self, log):
        """A subscriber error is logged and the event is kept."""
        def broken(event):
            raise RuntimeError("boom")

        log.subscribe(broken)
        _evaluation(log)
        assert log.get_event_count() == 1

    def test_cast_context_visible_to_subscribers(self, log):
        """Cast context is set before subscribers run."""
        seen = []
        log.subscribe(lambda e: seen.append(dict(e.context)))
        log.log_cast("p", "g", "s", 13, 9.9, 20.1, context={"tier": "nameless"})
        assert seen == [{"tier": "nameless"}]


class TestQueries:
    """Filtering and summaries."""

    def test_filters(self, log):
        """Filter by type and by sequence."""
        _evaluation(log)
        log.log_gate_check("s1", "ember_ray", "required_runes", True)
        log.log_gate_check("s1", "mind_lance", "required_runes", False)
        assert len(log.get_events(EventType.GATE_CHECK)) == 2
        assert len(log.get_events(since_sequence=1)) == 2
        assert [g.blueprint_id for g in log.get_gate_checks("mind_lance")] == ["mind_lance"]
        assert len(log.get_gate_checks()) == 2

    def test_summary(self, log):
        """The summary counts events by type."""
        _evaluation(log)
        log.log_cast("p", "g", "s", 13, 9.9, 20.1)
        summary = log.get_summary()
        assert summary["total_events"] == 2
        assert summary["by_type"]["evaluation"] == 1
        assert summary["by_type"]["cast"] == 1
        assert summary["by_type"]["evolution"] == 0
        assert summary["last_sequence"] == 2

    def test_format_log(self, log):
        """The text form lists each event."""
        _evaluation(log)
        log.log_gate_check("s1", "ember_ray", "flags", False, "no flags")
        text = log.format_log()
        assert "EVAL FAR" in text
        assert "GATE ember_ray.flags: FAIL (no flags)" in text
        assert "GATE" not in log.format_log(event_types=[EventType.EVALUATION])


class TestPersistence:
    """Saving and loading."""

    def test_save_and_load(self, log, tmp_path):
        """A saved log loads back with the same events."""
        _evaluation(log)
        log.log_gate_check("s1", "ember_ray", "required_runes", True, "needs FAR")
        log.log_progression("p1", "s1", "rune_familiarity", {"F": 0.003})
        log.log_cast("p1", "g1", "s1", 13, 9.9, 20.1, context={"tier": "nameless", "affinity_weight": 0.4})
        log.log_custom("note", {"x": 1})

        path = tmp_path / "run.json"
        log.save(path)
        loaded = RunLog.load(path)

        assert loaded.get_event_count() == 5
        events = loaded.get_events()
        assert isinstance(events[0], EvaluationEvent)
        assert events[0].power == 2.9
        assert isinstance(events[1], GateCheckEvent)
        assert events[1].detail == "needs FAR"
        assert isinstance(events[2], ProgressionEvent)
        assert events[2].changes == {"F": 0.003}
        assert isinstance(events[3], CastEvent)
        assert events[3].context["affinity_weight"] == 0.4
        assert type(events[4]) is LogEvent
        assert loaded.get_summary()["last_sequence"] == 5

    def test_event_from_dict(self):
        """Events rebuild into their own class."""
        event = GateCheckEvent(spell_id="s", blueprint_id="b", gate="flags", passed=True)
        rebuilt = event_from_dict(event.to_dict())
        assert isinstance(rebuilt, GateCheckEvent)
        assert rebuilt.passed is True
        assert rebuilt.timestamp == event.timestamp


class TestDefaultRunLog:
    """The process-wide default instance."""

    def test_default_is_shared(self):
        """get_run_log returns one instance."""
        assert get_run_log() is get_run_log()

    def test_default_is_bounded(self):
        """The shared log caps how many events it keeps."""
        assert get_run_log().max_events == DEFAULT_MAX_EVENTS

    def test_reset_default(self):
        """reset_run_log empties the default log."""
        _evaluation(get_run_log())
        assert reset_run_log().get_event_count() == 0
