"""Pure rendering of a stream snapshot into timeline items."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union, assert_never

from territory_intel.agent.events.event_types import (
    ActionEvent,
    CompletedEvent,
    LoggedEvent,
    PhaseEvent,
    ThoughtEvent,
)
from territory_intel.agent.stream.agent_roles import AgentDisplay, AgentRoleRegistry
from territory_intel.agent.stream.client import StreamSnapshot

WAITING_MESSAGE = "AI Agents Thinking..."
IDLE_MESSAGE = "No active session"


@dataclass(frozen=True)
class PhaseDivider:
    label: str


@dataclass(frozen=True)
class ThoughtCard:
    agent: AgentDisplay
    thought_type: str
    content: str
    timestamp: str
    connector: bool


@dataclass(frozen=True)
class ActionCard:
    agent: AgentDisplay
    action_type: str
    description: str
    timestamp: str
    confidence: float | None = None


@dataclass(frozen=True)
class CompletionBanner:
    title: str = "Reasoning Complete"
    subtitle: str = "All agents have finished their analysis"
    result: Any = None


TimelineItem = Union[PhaseDivider, ThoughtCard, ActionCard, CompletionBanner]


@dataclass(frozen=True)
class TimelineView:
    session_id: int | None
    phase: str
    live: bool
    items: list[TimelineItem] = field(default_factory=list)
    empty_state: str | None = None


def _confidence(metadata: dict[str, Any]) -> float | None:
    value = metadata.get("confidence")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not value:
        return None
    return max(0.0, min(100.0, float(value)))


def render_event(event: LoggedEvent, *, index: int, roles: AgentRoleRegistry) -> TimelineItem:
    if isinstance(event, PhaseEvent):
        return PhaseDivider(label=event.phase)
    if isinstance(event, ThoughtEvent):
        return ThoughtCard(
            agent=roles.resolve(event.agent),
            thought_type=event.thought_type,
            content=event.content,
            timestamp=event.timestamp,
            connector=index > 0,
        )
    if isinstance(event, ActionEvent):
        return ActionCard(
            agent=roles.resolve(event.agent),
            action_type=event.action_type,
            description=event.description,
            timestamp=event.timestamp,
            confidence=_confidence(event.metadata),
        )
    if isinstance(event, CompletedEvent):
        return CompletionBanner(result=event.result)
    assert_never(event)


def build_timeline(snapshot: StreamSnapshot, *, roles: AgentRoleRegistry) -> TimelineView:
    items = [
        render_event(event, index=index, roles=roles)
        for index, event in enumerate(snapshot.events)
    ]
    empty_state: str | None = None
    if snapshot.session_id is None:
        empty_state = IDLE_MESSAGE
    elif not items:
        empty_state = WAITING_MESSAGE
    return TimelineView(
        session_id=snapshot.session_id,
        phase=snapshot.phase,
        live=snapshot.connected,
        items=items,
        empty_state=empty_state,
    )
