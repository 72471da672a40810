"""Unit tests for the typed dashboard API client."""

from __future__ import annotations

import json

import httpx
import pytest

from territory_intel.core.config import Settings
from territory_intel.infra.http.territory_api_client import TerritoryApiClient, TerritoryApiError


def _client(handler) -> TerritoryApiClient:
    http = httpx.Client(base_url="http://api.test", transport=httpx.MockTransport(handler))
    return TerritoryApiClient("http://api.test", client=http)


def test_fetch_stats_and_nbas() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/stats":
            return httpx.Response(
                200,
                json={
                    "activeHcps": 3,
                    "switchingRisks": 1,
                    "actionsCompleted": 1,
                    "totalActions": 2,
                    "agentAccuracy": 94.2,
                },
            )
        assert request.url.params["territory"] == "Northeast"
        return httpx.Response(
            200,
            json=[
                {
                    "id": 1,
                    "hcpId": 1,
                    "action": "Schedule Clinical Review",
                    "actionType": "meeting",
                    "priority": "High",
                    "reason": "r",
                    "aiInsight": "i",
                    "status": "pending",
                    "generatedAt": "2025-10-02T10:00:00Z",
                    "hcp": None,
                }
            ],
        )

    with _client(handler) as api:
        assert api.fetch_stats().active_hcps == 3
        nbas = api.fetch_nbas("Northeast")

    assert nbas[0].priority == "High"


def test_missing_resources_map_to_none() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.raw_path.decode())
        return httpx.Response(404, json={"detail": "not found"})

    api = _client(handler)
    assert api.fetch_latest_analytics() is None
    assert api.fetch_territory_plan("North East") is None
    assert api.fetch_session_history(7) is None
    assert paths[1] == "/api/territory-plans/North%20East"


def test_update_nba_status_sends_patch() -> None:
    seen: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, json.loads(request.content)))
        return httpx.Response(200, json={"success": True})

    _client(handler).update_nba_status(4, "completed")
    assert seen == [("PATCH", {"status": "completed"})]


def test_errors_carry_operation_and_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(TerritoryApiError) as excinfo:
        _client(handler).fetch_stats()
    assert excinfo.value.status_code == 500
    assert excinfo.value.operation == "fetch stats"


def test_unreachable_server_raises_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TerritoryApiError) as excinfo:
        _client(handler).update_nba_status(1, "dismissed")
    assert excinfo.value.status_code is None


def test_client_from_settings_owns_its_http_client() -> None:
    settings = Settings(stream_base_url="http://api.internal:8000", api_timeout_seconds=3.5)
    with TerritoryApiClient.from_settings(settings) as api:
        assert api._client.base_url.host == "api.internal"
        assert api._client.timeout.read == 3.5
    assert api._client.is_closed is True


def test_fetch_hcps_and_single_hcp() -> None:
    hcp = {
        "id": 1,
        "name": "Dr. Sarah Chen",
        "specialty": "Oncology",
        "hospital": "Memorial Cancer Center",
        "territory": "Northeast",
        "switchRiskScore": 82,
        "switchRiskTier": "critical",
        "createdAt": "2025-09-01T00:00:00Z",
    }

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/hcps":
            return httpx.Response(200, json=[hcp])
        if request.url.path == "/api/hcps/1":
            return httpx.Response(200, json=hcp)
        return httpx.Response(404, json={"detail": "HCP not found"})

    api = _client(handler)
    assert [item.id for item in api.fetch_hcps()] == [1]
    fetched = api.fetch_hcp(1)
    assert fetched is not None and fetched.switch_risk_score == 82
    assert api.fetch_hcp(2) is None


def test_fetch_provenance_and_graphs() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path.decode())
        if request.url.path == "/api/hcps/1/nba-provenance":
            return httpx.Response(
                200,
                json={
                    "hcpId": 1,
                    "rlContribution": {"topActions": [], "policyVersion": "v3", "modelName": "nba-dqn"},
                    "rulesContribution": {"triggeredRules": [], "filters": [], "escalations": []},
                    "llmContribution": {"narrative": "n", "adjustments": [], "hcpSpecificInsights": []},
                    "finalSynthesis": {
                        "action": "Schedule Clinical Review",
                        "actionType": "meeting",
                        "priority": "High",
                        "reason": "r",
                        "synthesisRationale": "s",
                    },
                },
            )
        if request.url.path.startswith("/api/graph/"):
            return httpx.Response(
                200,
                json={
                    "nodes": [
                        {"id": "1", "type": "HCP", "label": "Dr. Sarah Chen"},
                        {"id": "drug-onkovia", "type": "Drug", "label": "Onkovia"},
                    ],
                    "edges": [{"from": "1", "to": "drug-onkovia", "type": "PRESCRIBED"}],
                },
            )
        return httpx.Response(404, json={"detail": "NBA provenance not found"})

    api = _client(handler)
    provenance = api.fetch_nba_provenance(1)
    assert provenance is not None and provenance.rl_contribution.policy_version == "v3"
    assert api.fetch_nba_provenance(2) is None

    network = api.fetch_hcp_network(1, limit=100)
    assert network.edges[0].source == "1"
    assert network.edges[0].target == "drug-onkovia"
    assert api.fetch_full_graph().nodes[1].type == "Drug"

    assert seen[2:] == ["/api/graph/hcp/1/network?limit=100", "/api/graph/full?limit=200"]


def test_injected_client_base_url_wins(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "api.test"
        return httpx.Response(200, json=[])

    http = httpx.Client(base_url="http://api.test", transport=httpx.MockTransport(handler))
    with caplog.at_level("WARNING"):
        api = TerritoryApiClient("http://elsewhere.test", client=http)
    assert api.fetch_hcps() == []
    assert "api_client.base_url_ignored" in caplog.text
