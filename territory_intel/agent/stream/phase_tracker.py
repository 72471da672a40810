"""Current reasoning phase derived from the event stream."""

from __future__ import annotations

from territory_intel.agent.events.event_types import ConnectedEvent, LoggedEvent

INITIAL_PHASE = "Initializing"
COMPLETED_PHASE = "Completed"


class PhaseTracker:
    """Last-writer-wins phase label; `completed` forces the terminal label."""

    def __init__(self) -> None:
        self._current = INITIAL_PHASE
        self._completed = False

    @property
    def current(self) -> str:
        return self._current

    @property
    def completed(self) -> bool:
        return self._completed

    def observe(self, event: LoggedEvent | ConnectedEvent) -> None:
        if event.type == "phase":
            self._current = event.phase
        elif event.type == "completed":
            self._current = COMPLETED_PHASE
            self._completed = True

    def set_label(self, label: str) -> None:
        """Overwrite the label directly, e.g. from a stored session snapshot."""
        self._current = label
        self._completed = label == COMPLETED_PHASE

    def reset(self) -> None:
        self._current = INITIAL_PHASE
        self._completed = False
