"""HTTP API layer: healthcare provider listing, lookup and creation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from territory_intel.api.deps import get_container
from territory_intel.core.container import AppContainer
from territory_intel.infra.observability.logger import get_logger
from territory_intel.protocol.messages import HcpCreate, HcpDto, NbaProvenanceDto

router = APIRouter(prefix="/api/hcps", tags=["hcps"])
logger = get_logger(__name__)


@router.get("", response_model=list[HcpDto])
def list_hcps(container: AppContainer = Depends(get_container)) -> list[HcpDto]:
    return container.store.list_hcps()


@router.get("/high-risk", response_model=list[HcpDto])
def list_high_risk_hcps(
    min_score: int | None = Query(default=None, ge=0, le=100),
    container: AppContainer = Depends(get_container),
) -> list[HcpDto]:
    threshold = container.settings.high_risk_min_score if min_score is None else min_score
    return container.store.high_risk_hcps(min_score=threshold)


@router.get("/{hcp_id}", response_model=HcpDto)
def get_hcp(hcp_id: int, container: AppContainer = Depends(get_container)) -> HcpDto:
    hcp = container.store.get_hcp(hcp_id)
    if hcp is None:
        raise HTTPException(status_code=404, detail="HCP not found")
    return hcp


@router.get("/{hcp_id}/nba-provenance", response_model=NbaProvenanceDto)
def get_nba_provenance(hcp_id: int, container: AppContainer = Depends(get_container)) -> NbaProvenanceDto:
    if container.store.get_hcp(hcp_id) is None:
        raise HTTPException(status_code=404, detail="HCP not found")
    provenance = container.store.get_nba_provenance(hcp_id)
    if provenance is None:
        raise HTTPException(status_code=404, detail="NBA provenance not found")
    return provenance


@router.post("", response_model=HcpDto, status_code=status.HTTP_201_CREATED)
def create_hcp(payload: HcpCreate, container: AppContainer = Depends(get_container)) -> HcpDto:
    hcp = container.store.create_hcp(payload)
    logger.info("api.hcps.created id=%s territory=%s", hcp.id, hcp.territory)
    return hcp
