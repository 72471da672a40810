"""Event layer: bounded in-memory replay buffer feeding the session SSE stream."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from threading import Lock

from territory_intel.agent.events.event_types import LoggedEvent


@dataclass(frozen=True)
class BufferedEvent:
    """One published reasoning event with its stream sequence id."""

    id: int
    session_id: int
    event: LoggedEvent


class ReplayBuffer:
    """Keep recent events by session_id and support replay from last_event_id."""

    def __init__(self, max_events_per_session: int = 200) -> None:
        self._max_events_per_session = max(10, max_events_per_session)
        self._sessions: dict[int, deque[BufferedEvent]] = {}
        self._finished: set[int] = set()
        self._seq = 0
        self._lock = Lock()

    def append(self, event: LoggedEvent) -> BufferedEvent:
        """Append a stream event and return it with its sequence id."""
        with self._lock:
            self._seq += 1
            item = BufferedEvent(id=self._seq, session_id=event.session_id, event=event)
            bucket = self._sessions.setdefault(
                event.session_id, deque(maxlen=self._max_events_per_session)
            )
            bucket.append(item)
            if event.type == "completed":
                self._finished.add(event.session_id)
            return item

    def list_events(self, session_id: int, last_event_id: int | None = None) -> list[BufferedEvent]:
        """List buffered events newer than last_event_id."""
        with self._lock:
            bucket = self._sessions.get(session_id)
            if not bucket:
                return []
            if last_event_id is None:
                return list(bucket)
            return [item for item in bucket if item.id > last_event_id]

    def mark_finished(self, session_id: int) -> None:
        """Flag a session whose stream should end once drained."""
        with self._lock:
            self._finished.add(session_id)

    def is_finished(self, session_id: int) -> bool:
        with self._lock:
            return session_id in self._finished
