"""HTTP API layer: health endpoint with store load stats and agent session counts."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from territory_intel.api.deps import get_container
from territory_intel.core.container import AppContainer

router = APIRouter(tags=["health"])


@router.get("/health")
def health(container: AppContainer = Depends(get_container)) -> dict:
    sessions = container.session_store.status_counts()
    return {
        "status": "ok",
        "env": container.settings.env,
        "store": container.store.health(),
        "agentSessions": sessions,
        "streaming": sessions["in_progress"] > 0,
    }
