"""Event layer: tagged reasoning events exchanged over the session stream."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


EventType = Literal["connected", "phase", "thought", "action", "completed"]

KNOWN_EVENT_TYPES: frozenset[str] = frozenset({"connected", "phase", "thought", "action", "completed"})


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventDecodeError(ValueError):
    """Raised when a stream frame cannot be decoded into a known event."""


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump with camelCase field names as sent on the stream."""
        return self.model_dump(mode="json", by_alias=True)


class ConnectedEvent(_WireModel):
    """Session acknowledgment sent once per connection; never logged."""

    type: Literal["connected"] = "connected"
    session_id: int = Field(alias="sessionId")


class PhaseEvent(_WireModel):
    type: Literal["phase"] = "phase"
    session_id: int = Field(alias="sessionId")
    phase: str
    timestamp: str = Field(default_factory=utc_now_iso)


class ThoughtEvent(_WireModel):
    """Visible reasoning step emitted by one agent role."""

    type: Literal["thought"] = "thought"
    session_id: int = Field(alias="sessionId")
    agent: str
    thought_type: str = Field(alias="thoughtType")
    content: str
    timestamp: str = Field(default_factory=utc_now_iso)


class ActionEvent(_WireModel):
    """Tool/data action executed by one agent role."""

    type: Literal["action"] = "action"
    session_id: int = Field(alias="sessionId")
    agent: str
    action_type: str = Field(alias="actionType")
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: str = Field(default_factory=utc_now_iso)

    @field_validator("metadata", mode="before")
    @classmethod
    def _null_metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class CompletedEvent(_WireModel):
    type: Literal["completed"] = "completed"
    session_id: int = Field(alias="sessionId")
    result: Any = None


ReasoningEvent = Annotated[
    Union[ConnectedEvent, PhaseEvent, ThoughtEvent, ActionEvent, CompletedEvent],
    Field(discriminator="type"),
]

# Event kinds that are appended to a session log.
LoggedEvent = Union[PhaseEvent, ThoughtEvent, ActionEvent, CompletedEvent]

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(ReasoningEvent)


def parse_event(payload: Any) -> ConnectedEvent | LoggedEvent | None:
    """Validate one decoded JSON object.

    Returns None for unrecognized `type` values so newer servers can add
    event kinds without breaking older clients.
    """
    if not isinstance(payload, dict):
        raise EventDecodeError(f"event payload must be an object, got {type(payload).__name__}")
    event_type = payload.get("type")
    if not isinstance(event_type, str) or event_type not in KNOWN_EVENT_TYPES:
        return None
    try:
        return _EVENT_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise EventDecodeError(f"invalid {event_type} event: {exc.error_count()} error(s)") from exc


def decode_frame(raw: str) -> ConnectedEvent | LoggedEvent | None:
    """Decode one text frame (the data of one SSE message)."""
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as exc:
        # ValueError also covers the int digit limit; RecursionError covers deep nesting.
        raise EventDecodeError(f"frame is not valid JSON: {exc}") from exc
    return parse_event(payload)
