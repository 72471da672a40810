"""Agent role display registry used by the reasoning timeline."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from territory_intel.infra.observability.logger import get_logger

logger = get_logger(__name__)


class AgentRole(str, Enum):
    PLANNER = "planner"
    ANALYST = "analyst"
    SYNTHESIZER = "synthesizer"
    REFLECTOR = "reflector"
    ORCHESTRATOR = "orchestrator"


FALLBACK_ROLE = AgentRole.ORCHESTRATOR


@dataclass(frozen=True)
class AgentDisplay:
    """How one agent role is presented in the timeline."""

    role: AgentRole
    name: str
    color: str
    gradient: str
    emoji: str


_DEFAULT_DISPLAYS: dict[AgentRole, AgentDisplay] = {
    AgentRole.PLANNER: AgentDisplay(
        role=AgentRole.PLANNER,
        name="Strategic Planner",
        color="#0A84FF",
        gradient="from-blue-500 to-blue-600",
        emoji="🎯",
    ),
    AgentRole.ANALYST: AgentDisplay(
        role=AgentRole.ANALYST,
        name="Evidence Analyst",
        color="#30D158",
        gradient="from-green-500 to-emerald-600",
        emoji="👁️",
    ),
    AgentRole.SYNTHESIZER: AgentDisplay(
        role=AgentRole.SYNTHESIZER,
        name="Action Synthesizer",
        color="#FFD60A",
        gradient="from-yellow-500 to-amber-600",
        emoji="💡",
    ),
    AgentRole.REFLECTOR: AgentDisplay(
        role=AgentRole.REFLECTOR,
        name="Self-Reflector",
        color="#BF5AF2",
        gradient="from-purple-500 to-violet-600",
        emoji="🧠",
    ),
    AgentRole.ORCHESTRATOR: AgentDisplay(
        role=AgentRole.ORCHESTRATOR,
        name="Orchestrator",
        color="#86868b",
        gradient="from-gray-500 to-gray-600",
        emoji="⚡",
    ),
}

_OVERRIDABLE_FIELDS = ("name", "color", "gradient", "emoji")


def parse_role(raw: str | None) -> AgentRole | None:
    if not isinstance(raw, str):
        return None
    try:
        return AgentRole(raw.strip().lower())
    except ValueError:
        return None


class AgentRoleRegistry:
    """Resolve agent names to display metadata; unknown names use the fallback."""

    def __init__(self, *, overlay_file: Path | None = None) -> None:
        self._displays = dict(_DEFAULT_DISPLAYS)
        if overlay_file is not None:
            self._apply_yaml_overlay(overlay_file)

    def resolve(self, agent: str | None) -> AgentDisplay:
        role = parse_role(agent)
        if role is None:
            return self._displays[FALLBACK_ROLE]
        return self._displays[role]

    def all(self) -> list[AgentDisplay]:
        return [self._displays[role] for role in AgentRole]

    def _apply_yaml_overlay(self, overlay_file: Path) -> None:
        if not overlay_file.exists():
            return
        try:
            raw = yaml.safe_load(overlay_file.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("agent_roles.overlay_unreadable path=%s error=%s", overlay_file, exc)
            return
        roles = raw.get("agent_roles") if isinstance(raw, dict) else None
        if not isinstance(roles, dict):
            return
        for name, payload in roles.items():
            role = parse_role(name)
            if role is None or not isinstance(payload, dict):
                logger.debug("agent_roles.overlay_skipped role=%s", name)
                continue
            changes = self._read_changes(payload)
            if changes:
                self._displays[role] = replace(self._displays[role], **changes)

    def _read_changes(self, payload: dict[str, Any]) -> dict[str, str]:
        changes: dict[str, str] = {}
        for field_name in _OVERRIDABLE_FIELDS:
            value = payload.get(field_name)
            if isinstance(value, str) and value.strip():
                changes[field_name] = value.strip()
        return changes
