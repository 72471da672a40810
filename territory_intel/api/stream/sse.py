"""Stream API layer: per-session reasoning SSE endpoint with replay and heartbeat."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import StreamingResponse

from territory_intel.agent.events.event_types import ConnectedEvent
from territory_intel.api.deps import get_container
from territory_intel.core.container import AppContainer
from territory_intel.infra.observability.logger import get_logger

router = APIRouter(tags=["stream"])
logger = get_logger(__name__)


def _format_sse(*, event: str, data: dict, event_id: int | None = None) -> str:
    body = json.dumps(data, ensure_ascii=False)
    prefix = f"id: {event_id}\n" if event_id is not None else ""
    return f"{prefix}event: {event}\ndata: {body}\n\n"


def _resolve_cursor(last_event_id: int | None, header_value: str | None) -> int | None:
    if last_event_id is not None:
        return last_event_id
    if isinstance(header_value, str):
        try:
            return int(header_value)
        except ValueError:
            return None
    return None


@router.get("/api/agent/sessions/{session_id}/stream")
async def stream(
    session_id: int,
    last_event_id: int | None = Query(default=None),
    last_event_id_header: str | None = Header(default=None, alias="Last-Event-ID"),
    container: AppContainer = Depends(get_container),
) -> StreamingResponse:
    if container.session_store.detail(session_id) is None:
        raise HTTPException(status_code=404, detail=f"session '{session_id}' not found")

    settings = container.settings
    buffer = container.replay_buffer

    async def iterator() -> AsyncIterator[str]:
        cursor = _resolve_cursor(last_event_id, last_event_id_header)
        logger.info("stream.sse.open session_id=%s cursor=%s", session_id, cursor)
        yield _format_sse(event="connected", data=ConnectedEvent(session_id=session_id).to_wire())
        loop = asyncio.get_running_loop()
        deadline = loop.time() + settings.sse_max_wait_seconds
        sent = 0
        while loop.time() < deadline:
            events = buffer.list_events(session_id, cursor)
            if events:
                for item in events:
                    cursor = item.id
                    sent += 1
                    yield _format_sse(event=item.event.type, data=item.event.to_wire(), event_id=item.id)
            elif buffer.is_finished(session_id):
                break
            else:
                yield ": keep-alive\n\n"
            await asyncio.sleep(settings.sse_keepalive_seconds)
        logger.info("stream.sse.close session_id=%s sent=%s cursor=%s", session_id, sent, cursor)

    return StreamingResponse(
        iterator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
