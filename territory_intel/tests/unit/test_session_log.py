"""Unit tests for the append-only session log and its restartable view."""

from __future__ import annotations

from territory_intel.agent.events.event_types import CompletedEvent, PhaseEvent
from territory_intel.agent.stream.session_log import SessionLog


def _phase(session_id: int, label: str) -> PhaseEvent:
    return PhaseEvent(session_id=session_id, phase=label, timestamp="t")


def test_append_keeps_arrival_order() -> None:
    log = SessionLog(7)
    events = [_phase(7, "Planning"), _phase(7, "Analysis"), CompletedEvent(session_id=7, result=None)]
    for event in events:
        assert log.append(event) is True

    assert list(log.events()) == events
    assert log.last() == events[-1]


def test_append_refuses_other_sessions_and_unscoped_log() -> None:
    log = SessionLog(7)
    assert log.append(_phase(8, "Planning")) is False
    assert len(log) == 0

    unscoped = SessionLog()
    assert unscoped.append(_phase(7, "Planning")) is False


def test_events_view_is_restartable_and_grows_with_appends() -> None:
    log = SessionLog(1)
    log.append(_phase(1, "A"))
    view = log.events()

    first = list(view)
    second = list(view)
    log.append(_phase(1, "B"))
    third = list(view)

    assert first == second
    assert third[: len(first)] == first
    assert [event.phase for event in third] == ["A", "B"]
    assert len(view) == 2


def test_iteration_in_progress_stops_at_starting_length() -> None:
    log = SessionLog(1)
    log.append(_phase(1, "A"))
    iterator = iter(log.events())
    log.append(_phase(1, "B"))

    assert [event.phase for event in iterator] == ["A"]


def test_reset_rescopes_and_empties() -> None:
    log = SessionLog(1)
    log.append(_phase(1, "A"))
    log.reset(2)

    assert log.session_id == 2
    assert len(log) == 0
    assert log.append(_phase(1, "late")) is False
    assert log.append(_phase(2, "fresh")) is True
