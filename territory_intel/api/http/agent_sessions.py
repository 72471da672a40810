"""HTTP API layer: reasoning session ingest and history.

The multi-agent orchestrator runs elsewhere and reports each step here; every
accepted step is stored and published to the session's event stream.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, status

from territory_intel.agent.runtime.session_state import SessionClosedError, SessionNotFoundError
from territory_intel.api.deps import get_container
from territory_intel.core.container import AppContainer
from territory_intel.infra.observability.logger import get_logger
from territory_intel.protocol.messages import (
    AgentActionCreate,
    AgentActionDto,
    AgentSessionCreate,
    AgentSessionDetailDto,
    AgentSessionDto,
    AgentThoughtCreate,
    AgentThoughtDto,
    PhaseUpdateRequest,
    SessionCompleteRequest,
    SessionFailRequest,
)

router = APIRouter(prefix="/api/agent/sessions", tags=["agent"])
logger = get_logger(__name__)

T = TypeVar("T")


def _publish(action: Callable[[], T]) -> T:
    try:
        return action()
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except SessionClosedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.post("", response_model=AgentSessionDto, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: AgentSessionCreate,
    container: AppContainer = Depends(get_container),
) -> AgentSessionDto:
    session = container.session_store.create(payload)
    logger.info(
        "api.agent.session_created session_id=%s goal_type=%s",
        session.id,
        session.goal_type,
    )
    return session


@router.get("/{session_id}", response_model=AgentSessionDetailDto)
def get_session(
    session_id: int,
    container: AppContainer = Depends(get_container),
) -> AgentSessionDetailDto:
    detail = container.session_store.detail(session_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"session '{session_id}' not found")
    return detail


@router.post("/{session_id}/phase", response_model=AgentSessionDto)
def record_phase(
    session_id: int,
    payload: PhaseUpdateRequest,
    container: AppContainer = Depends(get_container),
) -> AgentSessionDto:
    return _publish(lambda: container.recorder.record_phase(session_id, payload.phase))


@router.post("/{session_id}/thoughts", response_model=AgentThoughtDto, status_code=status.HTTP_201_CREATED)
def record_thought(
    session_id: int,
    payload: AgentThoughtCreate,
    container: AppContainer = Depends(get_container),
) -> AgentThoughtDto:
    return _publish(lambda: container.recorder.record_thought(session_id, payload))


@router.post("/{session_id}/actions", response_model=AgentActionDto, status_code=status.HTTP_201_CREATED)
def record_action(
    session_id: int,
    payload: AgentActionCreate,
    container: AppContainer = Depends(get_container),
) -> AgentActionDto:
    return _publish(lambda: container.recorder.record_action(session_id, payload))


@router.post("/{session_id}/complete", response_model=AgentSessionDto)
def complete_session(
    session_id: int,
    payload: SessionCompleteRequest,
    container: AppContainer = Depends(get_container),
) -> AgentSessionDto:
    return _publish(
        lambda: container.recorder.complete(
            session_id,
            result=payload.result,
            final_outcome=payload.final_outcome,
            confidence_score=payload.confidence_score,
        )
    )


@router.post("/{session_id}/fail", response_model=AgentSessionDto)
def fail_session(
    session_id: int,
    payload: SessionFailRequest,
    container: AppContainer = Depends(get_container),
) -> AgentSessionDto:
    return _publish(lambda: container.recorder.fail(session_id, error=payload.error))
