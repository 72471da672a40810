"""HTTP API layer: territory plans, switching analytics and dashboard stats."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from territory_intel.api.deps import get_container
from territory_intel.core.container import AppContainer
from territory_intel.protocol.messages import (
    StatsDto,
    SwitchingAnalyticsCreate,
    SwitchingAnalyticsDto,
    TerritoryPlanCreate,
    TerritoryPlanDto,
)

router = APIRouter(prefix="/api", tags=["territory"])


@router.get("/territory-plans/{territory}", response_model=TerritoryPlanDto)
def get_territory_plan(territory: str, container: AppContainer = Depends(get_container)) -> TerritoryPlanDto:
    plan = container.store.get_territory_plan(territory)
    if plan is None:
        raise HTTPException(status_code=404, detail="No plan found for territory")
    return plan


@router.post("/territory-plans", response_model=TerritoryPlanDto, status_code=status.HTTP_201_CREATED)
def create_territory_plan(
    payload: TerritoryPlanCreate,
    container: AppContainer = Depends(get_container),
) -> TerritoryPlanDto:
    return container.store.create_territory_plan(payload)


@router.get("/analytics/latest", response_model=SwitchingAnalyticsDto)
def latest_analytics(container: AppContainer = Depends(get_container)) -> SwitchingAnalyticsDto:
    analytics = container.store.latest_analytics()
    if analytics is None:
        raise HTTPException(status_code=404, detail="No analytics data found")
    return analytics


@router.post("/analytics", response_model=SwitchingAnalyticsDto, status_code=status.HTTP_201_CREATED)
def create_analytics(
    payload: SwitchingAnalyticsCreate,
    container: AppContainer = Depends(get_container),
) -> SwitchingAnalyticsDto:
    return container.store.create_analytics(payload)


@router.get("/stats", response_model=StatsDto)
def stats(container: AppContainer = Depends(get_container)) -> StatsDto:
    return container.store.stats()
