"""Observability layer: one logging setup for the API server and stream clients."""

from __future__ import annotations

import logging

# Loggers re-routed through the root handler so every line shares one format.
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
# httpx logs every request at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO") -> None:
    """Configure root logger once for single-line `key=value` console output."""
    normalized = level.upper()
    logging.basicConfig(
        level=normalized,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        force=True,
    )
    for name in _ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers.clear()
        routed.setLevel(normalized)
        routed.propagate = True
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
