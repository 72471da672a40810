"""HTTP API layer: Next Best Action listing, creation and status updates."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from territory_intel.api.deps import get_container
from territory_intel.core.container import AppContainer
from territory_intel.infra.db.territory_store import RecordNotFoundError
from territory_intel.infra.observability.logger import get_logger
from territory_intel.protocol.messages import (
    NbaCreate,
    NbaDto,
    NbaStatusUpdateRequest,
    NbaWithHcpDto,
    SuccessResponse,
)

router = APIRouter(prefix="/api/nbas", tags=["nbas"])
logger = get_logger(__name__)


@router.get("", response_model=list[NbaWithHcpDto])
def list_nbas(
    territory: str | None = Query(default=None),
    container: AppContainer = Depends(get_container),
) -> list[NbaWithHcpDto]:
    return container.store.list_nbas(territory=territory or None)


@router.post("", response_model=NbaDto, status_code=status.HTTP_201_CREATED)
def create_nba(payload: NbaCreate, container: AppContainer = Depends(get_container)) -> NbaDto:
    try:
        nba = container.store.create_nba(payload)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("api.nbas.created id=%s hcp_id=%s priority=%s", nba.id, nba.hcp_id, nba.priority)
    return nba


@router.patch("/{nba_id}/status", response_model=SuccessResponse)
def update_nba_status(
    nba_id: int,
    payload: NbaStatusUpdateRequest,
    container: AppContainer = Depends(get_container),
) -> SuccessResponse:
    try:
        container.store.update_nba_status(nba_id, payload.status)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info("api.nbas.status id=%s status=%s", nba_id, payload.status)
    return SuccessResponse()
