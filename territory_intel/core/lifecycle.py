"""Lifecycle hooks for startup diagnostics."""

from __future__ import annotations

from territory_intel.core.container import AppContainer
from territory_intel.infra.observability.logger import get_logger

logger = get_logger(__name__)


def on_startup(container: AppContainer) -> None:
    logger.info("Territory store loaded: %s", container.store.health())
    logger.info(
        "Reasoning stream ready: replay_buffer_size=%s max_wait=%ss",
        container.settings.replay_buffer_size,
        container.settings.sse_max_wait_seconds,
    )


def on_shutdown() -> None:
    logger.info("Territory intelligence API shutdown complete.")
