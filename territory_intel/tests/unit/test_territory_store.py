"""Unit tests for the JSONL-seeded territory store."""

from __future__ import annotations

from pathlib import Path

import pytest

from territory_intel.infra.db.territory_store import AGENT_ACCURACY, RecordNotFoundError, TerritoryStore
from territory_intel.protocol.messages import HcpCreate, NbaCreate

from ..conftest import SEED_ROWS, write_seed


def test_load_counts_bad_lines(tmp_path: Path) -> None:
    path = write_seed(
        tmp_path / "seed.jsonl",
        [*SEED_ROWS, "", "{broken", '{"table": "unknown", "id": 1}', '{"table": "hcps", "id": "x"}'],
    )

    store = TerritoryStore.from_jsonl(path)
    health = store.health()

    assert health["loaded_rows"] == len(SEED_ROWS)
    assert health["bad_lines"] == 4
    assert health["hcps"] == 2


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        TerritoryStore.from_jsonl(tmp_path / "absent.jsonl")


def test_high_risk_hcps_sorted_by_score(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)
    store.create_hcp(
        HcpCreate(
            name="Dr. Omar Haddad",
            specialty="Urology",
            hospital="Bay General",
            territory="Northeast",
            switch_risk_score=91,
            switch_risk_tier="critical",
        )
    )

    scores = [item.switch_risk_score for item in store.high_risk_hcps(50)]
    assert scores == [91, 82]
    assert store.high_risk_hcps(95) == []


def test_list_nbas_joins_hcp_and_filters_territory(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)

    all_rows = store.list_nbas()
    assert [item.id for item in all_rows] == [1, 2]
    assert all_rows[0].hcp is not None
    assert all_rows[0].hcp.name == "Dr. Sarah Chen"

    midwest = store.list_nbas("Midwest")
    assert [item.id for item in midwest] == [2]


def test_create_nba_requires_known_hcp(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)
    payload = NbaCreate(
        hcp_id=99,
        action="Call",
        action_type="call",
        priority="Low",
        reason="r",
        ai_insight="i",
    )
    with pytest.raises(RecordNotFoundError):
        store.create_nba(payload)


def test_update_nba_status_sets_completion_time_once(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)

    completed = store.update_nba_status(1, "completed")
    again = store.update_nba_status(1, "completed")
    dismissed = store.update_nba_status(1, "dismissed")

    assert completed.completed_at is not None
    assert again == completed
    assert dismissed.completed_at is None
    with pytest.raises(RecordNotFoundError):
        store.update_nba_status(404, "completed")


def test_stats_counts_pending_high_priority_as_risks(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)
    stats = store.stats()

    assert stats.active_hcps == 2
    assert stats.switching_risks == 1
    assert stats.actions_completed == 1
    assert stats.total_actions == 2
    assert stats.agent_accuracy == AGENT_ACCURACY


def test_switching_events_filter_and_update(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)

    assert len(store.list_switching_events("active")) == 1
    store.update_switching_event_status(1, "addressed")
    assert store.list_switching_events("active") == []
    assert store.list_switching_events()[0].hcp is not None


def test_empty_store_has_no_plan_or_analytics() -> None:
    store = TerritoryStore.empty()
    assert store.get_territory_plan("Northeast") is None
    assert store.latest_analytics() is None


def test_nba_provenance_is_keyed_by_hcp(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)

    provenance = store.get_nba_provenance(1)
    assert provenance is not None
    assert provenance.rl_contribution.top_actions[0].q_value == 2.4
    assert provenance.rules_contribution.triggered_rules[0].rule_id == "R-12"
    assert provenance.final_synthesis.action == "Schedule Clinical Review"
    assert store.get_nba_provenance(2) is None


def test_hcp_network_returns_center_and_neighbours(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)

    network = store.hcp_network(1)
    assert [node.id for node in network.nodes] == ["1", "drug-onkovia", "drug-competitor-x"]
    assert [edge.type for edge in network.edges] == ["PRESCRIBED", "SWITCHED_TO"]

    limited = store.hcp_network(1, limit=1)
    assert [node.id for node in limited.nodes] == ["1", "drug-onkovia"]
    assert len(limited.edges) == 1

    assert store.hcp_network(99).nodes == []


def test_full_graph_keeps_only_edges_between_kept_nodes(seed_path: Path) -> None:
    store = TerritoryStore.from_jsonl(seed_path)

    full = store.full_graph()
    assert len(full.nodes) == 5
    assert len(full.edges) == 4
    assert store.health()["graph_edges"] == 4

    partial = store.full_graph(limit=3)
    assert [node.id for node in partial.nodes] == ["1", "2", "drug-onkovia"]
    assert {(edge.source, edge.target) for edge in partial.edges} == {("1", "drug-onkovia"), ("2", "drug-onkovia")}
