"""Stream client: one live subscription to a session's reasoning events.

The client runs on a single asyncio event loop. `subscribe` only registers the
connection and returns; frames arrive later through transport callbacks.
Each subscription gets a generation number and every callback is bound to
the generation it was opened with, so once a subscription is closed nothing
it delivers afterwards can reach the log of the next one.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from territory_intel.agent.events.event_types import (
    ConnectedEvent,
    EventDecodeError,
    LoggedEvent,
    decode_frame,
)
from territory_intel.agent.stream.phase_tracker import PhaseTracker
from territory_intel.agent.stream.session_log import SessionEventsView, SessionLog
from territory_intel.agent.stream.transport import StreamCallbacks, StreamHandle, StreamTransport
from territory_intel.infra.observability.logger import get_logger

if TYPE_CHECKING:
    from territory_intel.agent.stream.history import SessionHistory

logger = get_logger(__name__)


class StreamState(str, Enum):
    IDLE = "idle"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class StreamSnapshot:
    """Immutable copy of client state handed to renderers."""

    session_id: int | None
    events: tuple[LoggedEvent, ...]
    phase: str
    connected: bool
    state: StreamState


class ReasoningStreamClient:
    """Subscribe to one session at a time and rebuild its event log."""

    def __init__(self, transport: StreamTransport) -> None:
        self._transport = transport
        self._log = SessionLog()
        self._phase = PhaseTracker()
        self._handle: StreamHandle | None = None
        self._generation = 0
        self._connected = False
        self._state = StreamState.IDLE
        self._decode_errors = 0

    @property
    def session_id(self) -> int | None:
        return self._log.session_id

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def phase(self) -> str:
        return self._phase.current

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def decode_errors(self) -> int:
        return self._decode_errors

    @property
    def log(self) -> SessionLog:
        return self._log

    def events(self) -> SessionEventsView:
        return self._log.events()

    def snapshot(self) -> StreamSnapshot:
        return StreamSnapshot(
            session_id=self._log.session_id,
            events=tuple(self._log.events()),
            phase=self._phase.current,
            connected=self._connected,
            state=self._state,
        )

    def subscribe(self, session_id: int | None) -> None:
        """Switch the client to `session_id`; None means no active session."""
        closed = self._release()
        self._log.reset(session_id)
        self._phase.reset()
        self._connected = False
        if session_id is None:
            self._state = StreamState.IDLE
            logger.debug("stream.subscribe.idle closed_previous=%s", closed)
            return

        generation = self._generation
        callbacks = StreamCallbacks(
            on_open=lambda: self._handle_open(generation),
            on_frame=lambda raw: self._handle_frame(generation, raw),
            on_error=lambda exc: self._handle_error(generation, exc),
            on_close=lambda: self._handle_close(generation),
        )
        self._state = StreamState.CLOSED
        self._handle = self._transport.open(session_id, callbacks)
        self._state = StreamState.OPEN
        logger.info(
            "stream.subscribe session_id=%s generation=%s closed_previous=%s",
            session_id,
            generation,
            closed,
        )

    def unsubscribe(self) -> None:
        """Close the active connection, keeping the accumulated log."""
        closed = self._release()
        self._connected = False
        if self._state is StreamState.OPEN:
            self._state = StreamState.CLOSED
        if closed:
            logger.info("stream.unsubscribe session_id=%s events=%s", self.session_id, len(self._log))

    def on_frame(self, raw_text: str) -> None:
        """Process one frame for the active subscription; never raises."""
        if self._state is not StreamState.OPEN:
            logger.debug("stream.frame.dropped state=%s", self._state.value)
            return
        self._dispatch(raw_text)

    def backfill(self, history: "SessionHistory") -> int:
        """Seed an empty log with persisted events of the current session.

        Returns the number of events appended. Ignored once live events have
        been logged so arrival order is never rewritten.
        """
        if history.session_id != self.session_id or len(self._log) > 0:
            return 0
        appended = 0
        for event in history.to_events():
            if self._log.append(event):
                appended += 1
        self._phase.set_label(history.phase_label())
        logger.info("stream.backfill session_id=%s events=%s", self.session_id, appended)
        return appended

    @asynccontextmanager
    async def session(self, session_id: int) -> AsyncIterator["ReasoningStreamClient"]:
        """Hold a subscription for the duration of the block."""
        self.subscribe(session_id)
        try:
            yield self
        finally:
            self.unsubscribe()

    def _release(self) -> bool:
        self._generation += 1
        handle, self._handle = self._handle, None
        if handle is None:
            return False
        handle.close()
        return True

    def _detach(self) -> None:
        # The transport task is finishing on its own; only forget it.
        self._generation += 1
        self._handle = None
        self._connected = False
        self._state = StreamState.CLOSED

    def _handle_open(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._connected = True

    def _handle_frame(self, generation: int, raw_text: str) -> None:
        if generation != self._generation:
            logger.debug("stream.frame.stale generation=%s current=%s", generation, self._generation)
            return
        self._dispatch(raw_text)

    def _handle_error(self, generation: int, exc: Exception) -> None:
        if generation != self._generation:
            return
        logger.warning(
            "stream.transport_error session_id=%s events=%s error=%s",
            self.session_id,
            len(self._log),
            exc,
        )
        self._detach()

    def _handle_close(self, generation: int) -> None:
        if generation != self._generation:
            return
        logger.info("stream.closed_by_server session_id=%s events=%s", self.session_id, len(self._log))
        self._detach()

    def _dispatch(self, raw_text: str) -> None:
        try:
            event = decode_frame(raw_text)
        except EventDecodeError as exc:
            self._decode_errors += 1
            logger.warning("stream.frame.decode_failed session_id=%s error=%s", self.session_id, exc)
            return
        if event is None:
            logger.debug("stream.frame.unknown_type session_id=%s", self.session_id)
            return
        if event.session_id != self.session_id:
            logger.debug(
                "stream.frame.foreign_session expected=%s got=%s",
                self.session_id,
                event.session_id,
            )
            return
        if isinstance(event, ConnectedEvent):
            self._connected = True
            return
        self._log.append(event)
        self._phase.observe(event)
