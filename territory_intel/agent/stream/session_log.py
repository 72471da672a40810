"""Append-only reasoning event log scoped to one session id."""

from __future__ import annotations

from collections.abc import Iterator

from territory_intel.agent.events.event_types import LoggedEvent


class SessionEventsView:
    """Lazy, restartable view over a session log.

    Every iteration starts from the first event and stops at the length the
    log had when that iteration began, so a consumer always sees a stable
    prefix while the stream keeps appending.
    """

    def __init__(self, log: "SessionLog") -> None:
        self._log = log

    def __iter__(self) -> Iterator[LoggedEvent]:
        return self._log._iter_prefix(len(self._log))

    def __len__(self) -> int:
        return len(self._log)


class SessionLog:
    """Ordered events of exactly one session; entries are never rewritten."""

    def __init__(self, session_id: int | None = None) -> None:
        self._session_id = session_id
        self._events: list[LoggedEvent] = []

    @property
    def session_id(self) -> int | None:
        return self._session_id

    def reset(self, session_id: int | None) -> None:
        """Drop every event and re-scope the log to another session."""
        self._session_id = session_id
        self._events = []

    def append(self, event: LoggedEvent) -> bool:
        """Append an event addressed to this log's session; return False otherwise."""
        if self._session_id is None or event.session_id != self._session_id:
            return False
        self._events.append(event)
        return True

    def events(self) -> SessionEventsView:
        return SessionEventsView(self)

    def last(self) -> LoggedEvent | None:
        return self._events[-1] if self._events else None

    def _iter_prefix(self, length: int) -> Iterator[LoggedEvent]:
        # Bind the list so a reset during iteration keeps yielding the old prefix.
        events = self._events
        for index in range(length):
            yield events[index]

    def __len__(self) -> int:
        return len(self._events)
