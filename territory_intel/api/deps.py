"""API layer: request-scoped accessors for the app container and its territory store."""

from __future__ import annotations

from fastapi import Depends, Request

from territory_intel.core.container import AppContainer
from territory_intel.infra.db.territory_store import TerritoryStore


def get_container(request: Request) -> AppContainer:
    return request.app.state.container  # type: ignore[return-value]


def get_store(container: AppContainer = Depends(get_container)) -> TerritoryStore:
    return container.store
