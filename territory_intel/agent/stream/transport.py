"""Stream transport: SSE connection to the reasoning event source."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

from territory_intel.core.config import Settings
from territory_intel.infra.observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_STREAM_PATH = "/api/agent/sessions/{session_id}/stream"


class StreamHTTPError(RuntimeError):
    """Raised (and reported via on_error) when the stream endpoint answers non-2xx."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"stream endpoint returned {status_code} for {url}")
        self.status_code = status_code
        self.url = url


@dataclass(frozen=True)
class StreamCallbacks:
    """Callbacks one connection reports to; all run on the event loop thread."""

    on_open: Callable[[], None]
    on_frame: Callable[[str], None]
    on_error: Callable[[Exception], None]
    on_close: Callable[[], None]


class StreamHandle(Protocol):
    def close(self) -> None: ...


class StreamTransport(Protocol):
    def open(self, session_id: int, callbacks: StreamCallbacks) -> StreamHandle: ...


class SseLineParser:
    """Assemble SSE lines into message payloads.

    Only the `data` field is collected; `id`, `event` and `retry` are ignored
    because the JSON body carries its own `type` discriminator.
    """

    def __init__(self) -> None:
        self._data: list[str] = []

    def feed_line(self, line: str) -> str | None:
        """Consume one line (without terminator); return a payload when a message ends."""
        line = line.rstrip("\r")
        if not line:
            if not self._data:
                return None
            payload = "\n".join(self._data)
            self._data = []
            return payload
        if line.startswith(":"):
            return None
        field, sep, value = line.partition(":")
        if not sep:
            value = ""
        elif value.startswith(" "):
            value = value[1:]
        if field == "data":
            self._data.append(value)
        return None

    def flush(self) -> str | None:
        """Return a message left open when the stream ended without a blank line."""
        return self.feed_line("")

    @property
    def pending(self) -> bool:
        return bool(self._data)


class _TaskHandle:
    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def task(self) -> asyncio.Task[None]:
        return self._task

    def close(self) -> None:
        if not self._task.done():
            self._task.cancel()


class HttpxSseTransport:
    """Open one streamed GET per subscription on the running event loop."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        path_template: str = DEFAULT_STREAM_PATH,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._path_template = path_template

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> "HttpxSseTransport":
        return cls(settings.stream_base_url, client=client, path_template=settings.stream_path_template)

    def url_for(self, session_id: int) -> str:
        return self._base_url + self._path_template.format(session_id=session_id)

    def open(self, session_id: int, callbacks: StreamCallbacks) -> _TaskHandle:
        url = self.url_for(session_id)
        task = asyncio.get_running_loop().create_task(self._pump(url, callbacks))
        logger.debug("stream.transport.open url=%s", url)
        return _TaskHandle(task)

    async def _pump(self, url: str, callbacks: StreamCallbacks) -> None:
        owns_client = self._client is None
        # No read timeout: a stalled stream is only ended by the server or by close().
        client = self._client or httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=None))
        try:
            async with client.stream("GET", url, headers={"Accept": "text/event-stream"}) as response:
                if response.status_code >= 400:
                    callbacks.on_error(StreamHTTPError(response.status_code, url))
                    return
                callbacks.on_open()
                parser = SseLineParser()
                async for line in response.aiter_lines():
                    payload = parser.feed_line(line)
                    if payload is not None:
                        callbacks.on_frame(payload)
                tail = parser.flush()
                if tail is not None:
                    callbacks.on_frame(tail)
            callbacks.on_close()
        except httpx.HTTPError as exc:
            logger.warning("stream.transport.error url=%s error=%s", url, exc)
            callbacks.on_error(exc)
        except Exception as exc:
            logger.exception("stream.transport.failed url=%s", url)
            callbacks.on_error(exc)
        finally:
            if owns_client:
                await client.aclose()
