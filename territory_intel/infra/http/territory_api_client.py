"""HTTP infra: synchronous client for the territory REST endpoints."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from territory_intel.agent.stream.history import SessionHistory
from territory_intel.core.config import Settings
from territory_intel.infra.observability.logger import get_logger
from territory_intel.protocol.messages import (
    GraphDto,
    HcpDto,
    NbaProvenanceDto,
    NbaStatus,
    NbaWithHcpDto,
    StatsDto,
    SwitchingAnalyticsDto,
    TerritoryPlanDto,
)

logger = get_logger(__name__)


class TerritoryApiError(RuntimeError):
    """Raised when an endpoint answers with an unexpected status or is unreachable."""

    def __init__(self, operation: str, *, status_code: int | None = None, detail: str = "") -> None:
        message = f"Failed to {operation}"
        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


class TerritoryApiClient:
    """Thin typed wrapper; 404 maps to None only where the dashboard expects it."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.Client | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        """An injected `client` keeps its own base URL and timeout; `base_url` and
        `timeout_seconds` only configure the client built here when none is given.
        """
        if client is not None and str(client.base_url).rstrip("/") != base_url.rstrip("/"):
            logger.warning("api_client.base_url_ignored given=%s client=%s", base_url, client.base_url)
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout_seconds)
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TerritoryApiClient":
        return cls(settings.stream_base_url, timeout_seconds=settings.api_timeout_seconds)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "TerritoryApiClient":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def fetch_hcps(self) -> list[HcpDto]:
        payload = self._request("GET", "/api/hcps", operation="fetch HCPs")
        return [HcpDto.model_validate(item) for item in payload]

    def fetch_hcp(self, hcp_id: int) -> HcpDto | None:
        payload = self._request("GET", f"/api/hcps/{hcp_id}", operation="fetch HCP", allow_missing=True)
        return None if payload is None else HcpDto.model_validate(payload)

    def fetch_nba_provenance(self, hcp_id: int) -> NbaProvenanceDto | None:
        payload = self._request(
            "GET",
            f"/api/hcps/{hcp_id}/nba-provenance",
            operation="fetch NBA provenance",
            allow_missing=True,
        )
        return None if payload is None else NbaProvenanceDto.model_validate(payload)

    def fetch_hcp_network(self, hcp_id: int, limit: int = 50) -> GraphDto:
        payload = self._request(
            "GET",
            f"/api/graph/hcp/{hcp_id}/network",
            operation="fetch HCP network",
            params={"limit": limit},
        )
        return GraphDto.model_validate(payload)

    def fetch_full_graph(self, limit: int = 200) -> GraphDto:
        payload = self._request("GET", "/api/graph/full", operation="fetch graph", params={"limit": limit})
        return GraphDto.model_validate(payload)

    def fetch_nbas(self, territory: str | None = None) -> list[NbaWithHcpDto]:
        params = {"territory": territory} if territory else None
        payload = self._request("GET", "/api/nbas", operation="fetch NBAs", params=params)
        return [NbaWithHcpDto.model_validate(item) for item in payload]

    def fetch_stats(self) -> StatsDto:
        return StatsDto.model_validate(self._request("GET", "/api/stats", operation="fetch stats"))

    def fetch_latest_analytics(self) -> SwitchingAnalyticsDto | None:
        payload = self._request(
            "GET",
            "/api/analytics/latest",
            operation="fetch analytics",
            allow_missing=True,
        )
        return None if payload is None else SwitchingAnalyticsDto.model_validate(payload)

    def fetch_territory_plan(self, territory: str) -> TerritoryPlanDto | None:
        payload = self._request(
            "GET",
            f"/api/territory-plans/{quote(territory, safe='')}",
            operation="fetch territory plan",
            allow_missing=True,
        )
        return None if payload is None else TerritoryPlanDto.model_validate(payload)

    def update_nba_status(self, nba_id: int, status: NbaStatus) -> None:
        self._request(
            "PATCH",
            f"/api/nbas/{nba_id}/status",
            operation="update NBA status",
            json={"status": status},
        )

    def fetch_session_history(self, session_id: int) -> SessionHistory | None:
        payload = self._request(
            "GET",
            f"/api/agent/sessions/{session_id}",
            operation="load session history",
            allow_missing=True,
        )
        return None if payload is None else SessionHistory.from_payload(payload)

    def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        allow_missing: bool = False,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("api_client.unreachable operation=%s path=%s error=%s", operation, path, exc)
            raise TerritoryApiError(operation, detail=str(exc)) from exc
        if allow_missing and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise TerritoryApiError(operation, status_code=response.status_code, detail=response.text[:200])
        try:
            return response.json()
        except ValueError as exc:
            raise TerritoryApiError(operation, status_code=response.status_code, detail="invalid JSON body") from exc
