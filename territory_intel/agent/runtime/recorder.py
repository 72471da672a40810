"""Persist reasoning steps reported by the orchestrator and publish them to the stream."""

from __future__ import annotations

from typing import Any

from territory_intel.agent.events.event_types import (
    ActionEvent,
    CompletedEvent,
    PhaseEvent,
    ThoughtEvent,
)
from territory_intel.agent.events.replay_buffer import ReplayBuffer
from territory_intel.agent.runtime.session_state import AgentSessionStore
from territory_intel.infra.observability.logger import get_logger
from territory_intel.protocol.messages import (
    AgentActionCreate,
    AgentActionDto,
    AgentSessionDto,
    AgentThoughtCreate,
    AgentThoughtDto,
)

logger = get_logger(__name__)


class ReasoningRecorder:
    """Write-through from the session store to the replay buffer.

    The store is updated first so a client that backfills history and then
    streams never sees an event the store does not know about.
    """

    def __init__(self, *, session_store: AgentSessionStore, replay_buffer: ReplayBuffer) -> None:
        self._sessions = session_store
        self._buffer = replay_buffer

    def record_phase(self, session_id: int, phase: str) -> AgentSessionDto:
        session = self._sessions.set_phase(session_id, phase)
        published = self._buffer.append(PhaseEvent(session_id=session_id, phase=phase))
        logger.info("reasoning.phase session_id=%s phase=%s seq=%s", session_id, phase, published.id)
        return session

    def record_thought(self, session_id: int, payload: AgentThoughtCreate) -> AgentThoughtDto:
        thought = self._sessions.add_thought(session_id, payload)
        self._buffer.append(
            ThoughtEvent(
                session_id=session_id,
                agent=thought.agent_type,
                thought_type=thought.thought_type,
                content=thought.content,
                timestamp=thought.timestamp,
            )
        )
        logger.debug(
            "reasoning.thought session_id=%s agent=%s seq_no=%s",
            session_id,
            thought.agent_type,
            thought.sequence_number,
        )
        return thought

    def record_action(self, session_id: int, payload: AgentActionCreate) -> AgentActionDto:
        action = self._sessions.add_action(session_id, payload)
        self._buffer.append(
            ActionEvent(
                session_id=session_id,
                agent=action.agent_type,
                action_type=action.action_type,
                description=action.action_description,
                metadata=action.action_params or {},
                timestamp=action.executed_at,
            )
        )
        logger.debug(
            "reasoning.action session_id=%s agent=%s action_type=%s",
            session_id,
            action.agent_type,
            action.action_type,
        )
        return action

    def complete(
        self,
        session_id: int,
        *,
        result: Any,
        final_outcome: str | None = None,
        confidence_score: int | None = None,
    ) -> AgentSessionDto:
        session = self._sessions.complete(
            session_id,
            final_outcome=final_outcome,
            confidence_score=confidence_score,
        )
        self._buffer.append(CompletedEvent(session_id=session_id, result=result))
        logger.info(
            "reasoning.completed session_id=%s confidence=%s",
            session_id,
            confidence_score,
        )
        return session

    def fail(self, session_id: int, *, error: str) -> AgentSessionDto:
        session = self._sessions.fail(session_id, error=error)
        # No wire event exists for failure; the stream just ends.
        self._buffer.mark_finished(session_id)
        logger.warning("reasoning.failed session_id=%s error=%s", session_id, error)
        return session
