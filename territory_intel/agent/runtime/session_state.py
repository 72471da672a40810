"""In-memory store of reasoning sessions and their persisted thoughts/actions."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from territory_intel.protocol.messages import (
    AgentActionCreate,
    AgentActionDto,
    AgentSessionCreate,
    AgentSessionDetailDto,
    AgentSessionDto,
    AgentThoughtCreate,
    AgentThoughtDto,
)


def _utc_now_iso() -> str:
    """Generate UTC ISO8601 timestamp used by session rows."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: int) -> None:
        super().__init__(f"session '{session_id}' not found")
        self.session_id = session_id


class SessionClosedError(RuntimeError):
    """Raised when publishing into a session that already completed or failed."""

    def __init__(self, session_id: int, status: str) -> None:
        super().__init__(f"session '{session_id}' is {status}")
        self.session_id = session_id
        self.status = status


@dataclass
class _SessionRecord:
    session: AgentSessionDto
    thoughts: list[AgentThoughtDto] = field(default_factory=list)
    actions: list[AgentActionDto] = field(default_factory=list)


class AgentSessionStore:
    """Thread-safe session store keyed by integer session id."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._records: dict[int, _SessionRecord] = {}
        self._next_session_id = 1
        self._next_thought_id = 1
        self._next_action_id = 1

    def create(self, payload: AgentSessionCreate) -> AgentSessionDto:
        with self._lock:
            session = AgentSessionDto(
                id=self._next_session_id,
                goal_description=payload.goal_description,
                goal_type=payload.goal_type,
                status="in_progress",
                current_phase="initializing",
                context_data=dict(payload.context_data),
                started_at=_utc_now_iso(),
            )
            self._next_session_id += 1
            self._records[session.id] = _SessionRecord(session=session)
            return session

    def status_counts(self) -> dict[str, int]:
        with self._lock:
            counts = {"in_progress": 0, "completed": 0, "failed": 0}
            for record in self._records.values():
                counts[record.session.status] += 1
            return counts

    def detail(self, session_id: int) -> AgentSessionDetailDto | None:
        """Return a deep copy of one session with its full trace."""
        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return None
            return AgentSessionDetailDto(
                session=deepcopy(record.session),
                thoughts=deepcopy(record.thoughts),
                actions=deepcopy(record.actions),
            )

    def set_phase(self, session_id: int, phase: str) -> AgentSessionDto:
        with self._lock:
            record = self._open_record(session_id)
            record.session = record.session.model_copy(update={"current_phase": phase})
            return record.session

    def add_thought(self, session_id: int, payload: AgentThoughtCreate) -> AgentThoughtDto:
        with self._lock:
            record = self._open_record(session_id)
            thought = AgentThoughtDto(
                id=self._next_thought_id,
                session_id=session_id,
                sequence_number=len(record.thoughts) + 1,
                timestamp=_utc_now_iso(),
                **payload.model_dump(),
            )
            self._next_thought_id += 1
            record.thoughts.append(thought)
            return thought

    def add_action(self, session_id: int, payload: AgentActionCreate) -> AgentActionDto:
        with self._lock:
            record = self._open_record(session_id)
            action = AgentActionDto(
                id=self._next_action_id,
                session_id=session_id,
                executed_at=_utc_now_iso(),
                **payload.model_dump(),
            )
            self._next_action_id += 1
            record.actions.append(action)
            return action

    def complete(
        self,
        session_id: int,
        *,
        final_outcome: str | None,
        confidence_score: int | None,
    ) -> AgentSessionDto:
        return self._finish(
            session_id,
            {
                "status": "completed",
                "final_outcome": final_outcome,
                "confidence_score": confidence_score,
            },
        )

    def fail(self, session_id: int, *, error: str) -> AgentSessionDto:
        return self._finish(session_id, {"status": "failed", "final_outcome": f"Error: {error}"})

    def _finish(self, session_id: int, update: dict[str, Any]) -> AgentSessionDto:
        with self._lock:
            record = self._open_record(session_id)
            record.session = record.session.model_copy(update={**update, "completed_at": _utc_now_iso()})
            return record.session

    def _open_record(self, session_id: int) -> _SessionRecord:
        record = self._records.get(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        if record.session.status != "in_progress":
            raise SessionClosedError(session_id, record.session.status)
        return record
