"""Test fixtures shared by unit/integration tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from territory_intel.agent.stream.client import ReasoningStreamClient
from territory_intel.agent.stream.transport import StreamCallbacks

SEED_ROWS: list[dict[str, Any]] = [
    {
        "table": "hcps",
        "id": 1,
        "name": "Dr. Sarah Chen",
        "specialty": "Oncology",
        "hospital": "Memorial Cancer Center",
        "territory": "Northeast",
        "engagementLevel": "high",
        "switchRiskScore": 82,
        "switchRiskTier": "critical",
        "switchRiskReasons": ["Declining prescriptions"],
        "createdAt": "2025-01-10T09:00:00Z",
    },
    {
        "table": "hcps",
        "id": 2,
        "name": "Dr. Priya Patel",
        "specialty": "Oncology",
        "hospital": "Lakeside University Hospital",
        "territory": "Midwest",
        "engagementLevel": "low",
        "switchRiskScore": 18,
        "switchRiskTier": "low",
        "createdAt": "2025-01-12T09:00:00Z",
    },
    {
        "table": "next_best_actions",
        "id": 1,
        "hcpId": 1,
        "action": "Schedule Clinical Review",
        "actionType": "meeting",
        "priority": "High",
        "reason": "Young RCC cohort switched",
        "aiInsight": "Switching followed the conference readout.",
        "status": "pending",
        "generatedAt": "2025-10-02T10:00:00Z",
    },
    {
        "table": "next_best_actions",
        "id": 2,
        "hcpId": 2,
        "action": "Send access program update",
        "actionType": "email",
        "priority": "Medium",
        "reason": "PA denials",
        "aiInsight": "Denials cluster on one payer.",
        "status": "completed",
        "generatedAt": "2025-09-20T10:00:00Z",
        "completedAt": "2025-09-25T16:00:00Z",
    },
    {
        "table": "switching_events",
        "id": 1,
        "hcpId": 1,
        "fromProduct": "Onkovia",
        "toProduct": "Competitor X",
        "detectedAt": "2025-09-30T12:00:00Z",
        "confidenceScore": 87,
        "switchType": "gradual",
        "impactLevel": "high",
        "rootCauses": ["Conference data readout"],
        "status": "active",
        "aiAnalysis": "Cohort-specific switching.",
    },
    {
        "table": "nba_provenance",
        "hcpId": 1,
        "rlContribution": {
            "topActions": [
                {
                    "action": "Schedule Clinical Review",
                    "actionType": "meeting",
                    "confidence": 0.81,
                    "qValue": 2.4,
                    "reasoning": "Highest expected retention lift",
                }
            ],
            "policyVersion": "v3",
            "modelName": "nba-dqn",
        },
        "rulesContribution": {
            "triggeredRules": [
                {
                    "ruleId": "R-12",
                    "ruleName": "High switch risk",
                    "condition": "switchRiskScore >= 70",
                    "action": "Escalate to in-person meeting",
                    "priority": "High",
                }
            ],
            "filters": [],
            "escalations": ["Medical science liaison"],
        },
        "llmContribution": {
            "narrative": "Switching follows the ASCO readout.",
            "adjustments": [],
            "hcpSpecificInsights": ["Prefers clinical data"],
        },
        "finalSynthesis": {
            "action": "Schedule Clinical Review",
            "actionType": "meeting",
            "priority": "High",
            "reason": "Young RCC cohort switched",
            "synthesisRationale": "RL and rules agree; narrative adds context.",
        },
    },
    {"table": "graph_nodes", "id": "1", "type": "HCP", "label": "Dr. Sarah Chen", "properties": {"territory": "Northeast"}},
    {"table": "graph_nodes", "id": "2", "type": "HCP", "label": "Dr. Michael Torres"},
    {"table": "graph_nodes", "id": "drug-onkovia", "type": "Drug", "label": "Onkovia"},
    {"table": "graph_nodes", "id": "drug-competitor-x", "type": "Drug", "label": "Competitor X"},
    {"table": "graph_nodes", "id": "payer-aetna", "type": "Payer", "label": "Aetna"},
    {"table": "graph_edges", "from": "1", "to": "drug-onkovia", "type": "PRESCRIBED"},
    {"table": "graph_edges", "from": "1", "to": "drug-competitor-x", "type": "SWITCHED_TO"},
    {"table": "graph_edges", "from": "2", "to": "drug-onkovia", "type": "PRESCRIBED"},
    {"table": "graph_edges", "from": "drug-onkovia", "to": "payer-aetna", "type": "DENIED_BY"},
]


def write_seed(path: Path, rows: list[Any] | None = None) -> Path:
    with path.open("w", encoding="utf-8") as handle:
        for row in SEED_ROWS if rows is None else rows:
            handle.write(row if isinstance(row, str) else json.dumps(row, ensure_ascii=False))
            handle.write("\n")
    return path


class FakeHandle:
    """One recorded connection; tests drive its callbacks directly."""

    def __init__(self, session_id: int, callbacks: StreamCallbacks) -> None:
        self.session_id = session_id
        self.callbacks = callbacks
        self.closed = False
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    def open(self) -> None:
        self.callbacks.on_open()

    def send(self, payload: dict[str, Any] | str) -> None:
        raw = payload if isinstance(payload, str) else json.dumps(payload)
        self.callbacks.on_frame(raw)

    def fail(self, exc: Exception | None = None) -> None:
        self.callbacks.on_error(exc or ConnectionResetError("connection reset"))

    def end(self) -> None:
        self.callbacks.on_close()


class FakeTransport:
    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []

    def open(self, session_id: int, callbacks: StreamCallbacks) -> FakeHandle:
        handle = FakeHandle(session_id, callbacks)
        self.handles.append(handle)
        return handle

    @property
    def last(self) -> FakeHandle:
        return self.handles[-1]

    @property
    def active(self) -> list[FakeHandle]:
        return [handle for handle in self.handles if not handle.closed]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def stream_client(transport: FakeTransport) -> ReasoningStreamClient:
    return ReasoningStreamClient(transport)


@pytest.fixture
def seed_path(tmp_path: Path) -> Path:
    return write_seed(tmp_path / "territory.jsonl")


@pytest.fixture
def api_client(seed_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("TERRITORY_DATA_JSONL", str(seed_path))
    monkeypatch.setenv("AGENT_ROLES_FILE", str(tmp_path / "missing_roles.yaml"))
    monkeypatch.setenv("SSE_KEEPALIVE_SECONDS", "0.01")
    monkeypatch.setenv("SSE_MAX_WAIT_SECONDS", "2")

    from territory_intel.main import create_app

    return TestClient(create_app())
