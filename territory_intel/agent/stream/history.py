"""Rebuild timeline events from a persisted reasoning session."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from territory_intel.agent.events.event_types import ActionEvent, LoggedEvent, ThoughtEvent
from territory_intel.agent.stream.phase_tracker import COMPLETED_PHASE
from territory_intel.protocol.messages import AgentSessionDetailDto

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(timestamp: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(timestamp)
    except (TypeError, ValueError):
        return _EPOCH
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


class SessionHistory:
    """Persisted thoughts and actions of one session, as stream events."""

    def __init__(self, detail: AgentSessionDetailDto) -> None:
        self._detail = detail

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SessionHistory":
        return cls(AgentSessionDetailDto.model_validate(payload))

    @property
    def session_id(self) -> int:
        return self._detail.session.id

    @property
    def detail(self) -> AgentSessionDetailDto:
        return self._detail

    def to_events(self) -> list[LoggedEvent]:
        """Thoughts and actions merged in timestamp order (stable for ties)."""
        events: list[LoggedEvent] = []
        for thought in self._detail.thoughts:
            events.append(
                ThoughtEvent(
                    session_id=self.session_id,
                    agent=thought.agent_type,
                    thought_type=thought.thought_type,
                    content=thought.content,
                    timestamp=thought.timestamp,
                )
            )
        for action in self._detail.actions:
            events.append(
                ActionEvent(
                    session_id=self.session_id,
                    agent=action.agent_type,
                    action_type=action.action_type,
                    description=action.action_description,
                    metadata=action.action_params or {},
                    timestamp=action.executed_at,
                )
            )
        events.sort(key=lambda item: _sort_key(item.timestamp))
        return events

    def phase_label(self) -> str:
        session = self._detail.session
        if session.status == "completed":
            return COMPLETED_PHASE
        return session.current_phase or session.status
