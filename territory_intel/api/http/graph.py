"""HTTP API layer: knowledge graph views around HCPs."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from territory_intel.api.deps import get_store
from territory_intel.infra.db.territory_store import TerritoryStore
from territory_intel.protocol.messages import GraphDto

router = APIRouter(prefix="/api/graph", tags=["graph"])


@router.get("/hcp/{hcp_id}/network", response_model=GraphDto)
def hcp_network(
    hcp_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    store: TerritoryStore = Depends(get_store),
) -> GraphDto:
    if store.get_hcp(hcp_id) is None:
        raise HTTPException(status_code=404, detail="HCP not found")
    return store.hcp_network(hcp_id, limit=limit)


@router.get("/full", response_model=GraphDto)
def full_graph(
    limit: int = Query(default=200, ge=1, le=2000),
    store: TerritoryStore = Depends(get_store),
) -> GraphDto:
    return store.full_graph(limit=limit)
