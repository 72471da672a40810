"""Composition layer: build and hold long-lived service objects for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass

from territory_intel.agent.events.replay_buffer import ReplayBuffer
from territory_intel.agent.runtime.recorder import ReasoningRecorder
from territory_intel.agent.runtime.session_state import AgentSessionStore
from territory_intel.agent.stream.agent_roles import AgentRoleRegistry
from territory_intel.core.config import Settings
from territory_intel.infra.db.territory_store import TerritoryStore


@dataclass
class AppContainer:
    """Container object attached to FastAPI app state."""

    settings: Settings
    store: TerritoryStore
    replay_buffer: ReplayBuffer
    session_store: AgentSessionStore
    recorder: ReasoningRecorder
    roles: AgentRoleRegistry


def build_container(settings: Settings) -> AppContainer:
    """Construct runtime dependencies in one place."""
    store = TerritoryStore.from_jsonl(settings.data_jsonl_path)
    replay_buffer = ReplayBuffer(max_events_per_session=settings.replay_buffer_size)
    session_store = AgentSessionStore()
    recorder = ReasoningRecorder(session_store=session_store, replay_buffer=replay_buffer)
    return AppContainer(
        settings=settings,
        store=store,
        replay_buffer=replay_buffer,
        session_store=session_store,
        recorder=recorder,
        roles=AgentRoleRegistry(overlay_file=settings.agent_roles_file),
    )
