"""HTTP API layer: prescription-switching alerts."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from territory_intel.api.deps import get_container
from territory_intel.core.container import AppContainer
from territory_intel.infra.db.territory_store import RecordNotFoundError
from territory_intel.protocol.messages import (
    SuccessResponse,
    SwitchingEventWithHcpDto,
    SwitchingStatus,
    SwitchingStatusUpdateRequest,
)

router = APIRouter(prefix="/api/switching-events", tags=["switching"])


@router.get("", response_model=list[SwitchingEventWithHcpDto])
def list_switching_events(
    status: SwitchingStatus | None = Query(default=None),
    container: AppContainer = Depends(get_container),
) -> list[SwitchingEventWithHcpDto]:
    return container.store.list_switching_events(status=status)


@router.patch("/{event_id}/status", response_model=SuccessResponse)
def update_switching_event_status(
    event_id: int,
    payload: SwitchingStatusUpdateRequest,
    container: AppContainer = Depends(get_container),
) -> SuccessResponse:
    try:
        container.store.update_switching_event_status(event_id, payload.status)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return SuccessResponse()
