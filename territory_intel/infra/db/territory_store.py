"""Data layer: JSONL-seeded in-memory store for HCPs, NBAs, plans and switching data."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any

from pydantic import BaseModel, ValidationError

from territory_intel.protocol.messages import (
    GraphDto,
    GraphEdgeDto,
    GraphNodeDto,
    HcpCreate,
    HcpDto,
    NbaCreate,
    NbaDto,
    NbaProvenanceDto,
    NbaStatus,
    NbaWithHcpDto,
    StatsDto,
    SwitchingAnalyticsCreate,
    SwitchingAnalyticsDto,
    SwitchingEventDto,
    SwitchingEventWithHcpDto,
    SwitchingStatus,
    TerritoryPlanCreate,
    TerritoryPlanDto,
)

# Reported on the dashboard until accuracy tracking exists upstream.
AGENT_ACCURACY = 94.2


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class RecordNotFoundError(LookupError):
    """Raised when a referenced row does not exist."""

    def __init__(self, table: str, record_id: int | str) -> None:
        super().__init__(f"{table} '{record_id}' not found")
        self.table = table
        self.record_id = record_id


@dataclass(frozen=True)
class LoadStats:
    """Basic diagnostics collected while loading seed JSONL."""

    total_lines: int
    loaded_rows: int
    bad_lines: int


_TABLES: dict[str, type[BaseModel]] = {
    "hcps": HcpDto,
    "next_best_actions": NbaDto,
    "territory_plans": TerritoryPlanDto,
    "switching_analytics": SwitchingAnalyticsDto,
    "switching_events": SwitchingEventDto,
    "nba_provenance": NbaProvenanceDto,
    "graph_nodes": GraphNodeDto,
    "graph_edges": GraphEdgeDto,
}


class TerritoryStore:
    """Thread-safe store; every row is one validated DTO keyed by id."""

    def __init__(self, rows: dict[str, list[Any]], stats: LoadStats) -> None:
        self._lock = Lock()
        self._stats = stats
        self._hcps: dict[int, HcpDto] = {row.id: row for row in rows.get("hcps", [])}
        self._nbas: dict[int, NbaDto] = {row.id: row for row in rows.get("next_best_actions", [])}
        self._plans: dict[int, TerritoryPlanDto] = {row.id: row for row in rows.get("territory_plans", [])}
        self._analytics: dict[int, SwitchingAnalyticsDto] = {
            row.id: row for row in rows.get("switching_analytics", [])
        }
        self._switching: dict[int, SwitchingEventDto] = {
            row.id: row for row in rows.get("switching_events", [])
        }
        self._provenance: dict[int, NbaProvenanceDto] = {
            row.hcp_id: row for row in rows.get("nba_provenance", [])
        }
        self._graph_nodes: dict[str, GraphNodeDto] = {row.id: row for row in rows.get("graph_nodes", [])}
        self._graph_edges: list[GraphEdgeDto] = list(rows.get("graph_edges", []))

    @classmethod
    def empty(cls) -> "TerritoryStore":
        return cls({}, LoadStats(total_lines=0, loaded_rows=0, bad_lines=0))

    @classmethod
    def from_jsonl(cls, path: Path) -> "TerritoryStore":
        """Load rows shaped `{"table": "<name>", ...camelCase fields}`."""
        if not path.exists():
            raise FileNotFoundError(f"Territory data file not found: {path}")

        rows: dict[str, list[Any]] = {name: [] for name in _TABLES}
        bad_lines = 0
        total = 0
        loaded = 0
        with path.open("r", encoding="utf-8") as handle:
            for line in handle:
                total += 1
                raw_line = line.strip()
                if not raw_line:
                    bad_lines += 1
                    continue
                try:
                    payload = json.loads(raw_line)
                except json.JSONDecodeError:
                    bad_lines += 1
                    continue
                row = cls._parse_row(payload)
                if row is None:
                    bad_lines += 1
                    continue
                table, model = row
                rows[table].append(model)
                loaded += 1

        return cls(rows, stats=LoadStats(total_lines=total, loaded_rows=loaded, bad_lines=bad_lines))

    @staticmethod
    def _parse_row(payload: Any) -> tuple[str, BaseModel] | None:
        if not isinstance(payload, dict):
            return None
        table = payload.get("table")
        model_cls = _TABLES.get(table) if isinstance(table, str) else None
        if model_cls is None:
            return None
        fields = {key: value for key, value in payload.items() if key != "table"}
        try:
            return table, model_cls.model_validate(fields)
        except ValidationError:
            return None

    def health(self) -> dict[str, int]:
        """Expose basic load/quality stats for health endpoint."""
        with self._lock:
            return {
                "total_lines": self._stats.total_lines,
                "loaded_rows": self._stats.loaded_rows,
                "bad_lines": self._stats.bad_lines,
                "hcps": len(self._hcps),
                "next_best_actions": len(self._nbas),
                "switching_events": len(self._switching),
                "graph_nodes": len(self._graph_nodes),
                "graph_edges": len(self._graph_edges),
            }

    # HCPs

    def list_hcps(self) -> list[HcpDto]:
        with self._lock:
            return sorted(self._hcps.values(), key=lambda item: item.id)

    def get_hcp(self, hcp_id: int) -> HcpDto | None:
        with self._lock:
            return self._hcps.get(hcp_id)

    def create_hcp(self, payload: HcpCreate) -> HcpDto:
        with self._lock:
            hcp = HcpDto(id=self._next_id(self._hcps), created_at=_utc_now_iso(), **payload.model_dump())
            self._hcps[hcp.id] = hcp
            return hcp

    def high_risk_hcps(self, min_score: int = 50) -> list[HcpDto]:
        with self._lock:
            rows = [item for item in self._hcps.values() if item.switch_risk_score >= min_score]
        rows.sort(key=lambda item: (item.switch_risk_score, -item.id), reverse=True)
        return rows

    # Next best actions

    def list_nbas(self, territory: str | None = None) -> list[NbaWithHcpDto]:
        """NBAs joined with their HCP, newest first."""
        with self._lock:
            joined = [
                NbaWithHcpDto(**nba.model_dump(), hcp=self._hcps.get(nba.hcp_id))
                for nba in self._nbas.values()
            ]
        if territory:
            joined = [item for item in joined if item.hcp is not None and item.hcp.territory == territory]
        joined.sort(key=lambda item: (item.generated_at, item.id), reverse=True)
        return joined

    def create_nba(self, payload: NbaCreate) -> NbaDto:
        with self._lock:
            if payload.hcp_id not in self._hcps:
                raise RecordNotFoundError("hcp", payload.hcp_id)
            nba = NbaDto(id=self._next_id(self._nbas), generated_at=_utc_now_iso(), **payload.model_dump())
            self._nbas[nba.id] = nba
            return nba

    def update_nba_status(self, nba_id: int, status: NbaStatus) -> NbaDto:
        """Set status; repeating the same status leaves the row unchanged."""
        with self._lock:
            current = self._nbas.get(nba_id)
            if current is None:
                raise RecordNotFoundError("next_best_action", nba_id)
            if current.status == status:
                return current
            completed_at = _utc_now_iso() if status == "completed" else None
            updated = current.model_copy(update={"status": status, "completed_at": completed_at})
            self._nbas[nba_id] = updated
            return updated

    # Territory plans

    def get_territory_plan(self, territory: str) -> TerritoryPlanDto | None:
        """Latest generated plan for one territory."""
        with self._lock:
            plans = [item for item in self._plans.values() if item.territory == territory]
        if not plans:
            return None
        return max(plans, key=lambda item: (item.generated_at, item.id))

    def create_territory_plan(self, payload: TerritoryPlanCreate) -> TerritoryPlanDto:
        with self._lock:
            plan = TerritoryPlanDto(
                id=self._next_id(self._plans),
                generated_at=_utc_now_iso(),
                **payload.model_dump(),
            )
            self._plans[plan.id] = plan
            return plan

    # Switching analytics

    def latest_analytics(self) -> SwitchingAnalyticsDto | None:
        with self._lock:
            if not self._analytics:
                return None
            return max(self._analytics.values(), key=lambda item: (item.updated_at, item.id))

    def create_analytics(self, payload: SwitchingAnalyticsCreate) -> SwitchingAnalyticsDto:
        with self._lock:
            analytics = SwitchingAnalyticsDto(
                id=self._next_id(self._analytics),
                updated_at=_utc_now_iso(),
                **payload.model_dump(),
            )
            self._analytics[analytics.id] = analytics
            return analytics

    # Switching events

    def list_switching_events(self, status: SwitchingStatus | None = None) -> list[SwitchingEventWithHcpDto]:
        with self._lock:
            joined = [
                SwitchingEventWithHcpDto(**item.model_dump(), hcp=self._hcps.get(item.hcp_id))
                for item in self._switching.values()
                if status is None or item.status == status
            ]
        joined.sort(key=lambda item: (item.detected_at, item.id), reverse=True)
        return joined

    def update_switching_event_status(self, event_id: int, status: SwitchingStatus) -> SwitchingEventDto:
        with self._lock:
            current = self._switching.get(event_id)
            if current is None:
                raise RecordNotFoundError("switching_event", event_id)
            updated = current.model_copy(update={"status": status})
            self._switching[event_id] = updated
            return updated

    # NBA provenance

    def get_nba_provenance(self, hcp_id: int) -> NbaProvenanceDto | None:
        with self._lock:
            return self._provenance.get(hcp_id)

    # Knowledge graph

    def hcp_network(self, hcp_id: int, limit: int = 50) -> GraphDto:
        """The HCP node plus up to `limit` direct neighbours and the edges reaching them.

        HCP nodes are keyed by the string form of the HCP id; an HCP without a
        node yields an empty graph.
        """
        center_id = str(hcp_id)
        with self._lock:
            center = self._graph_nodes.get(center_id)
            if center is None:
                return GraphDto()
            neighbours: list[str] = []
            edges: list[GraphEdgeDto] = []
            for edge in self._graph_edges:
                if center_id not in (edge.source, edge.target):
                    continue
                other = edge.target if edge.source == center_id else edge.source
                if other not in self._graph_nodes:
                    continue
                if other not in neighbours:
                    if len(neighbours) >= limit:
                        continue
                    neighbours.append(other)
                edges.append(edge)
            nodes = [center] + [self._graph_nodes[node_id] for node_id in neighbours]
        return GraphDto(nodes=nodes, edges=edges)

    def full_graph(self, limit: int = 200) -> GraphDto:
        """First `limit` nodes in load order and the edges between them."""
        with self._lock:
            nodes = list(self._graph_nodes.values())[:limit]
            kept = {node.id for node in nodes}
            edges = [edge for edge in self._graph_edges if edge.source in kept and edge.target in kept]
        return GraphDto(nodes=nodes, edges=edges)

    def stats(self) -> StatsDto:
        with self._lock:
            nbas = list(self._nbas.values())
            active_hcps = len(self._hcps)
        return StatsDto(
            active_hcps=active_hcps,
            switching_risks=sum(1 for item in nbas if item.priority == "High" and item.status == "pending"),
            actions_completed=sum(1 for item in nbas if item.status == "completed"),
            total_actions=len(nbas),
            agent_accuracy=AGENT_ACCURACY,
        )

    @staticmethod
    def _next_id(table: dict[int, Any]) -> int:
        return max(table.keys(), default=0) + 1
