"""Configuration layer: load runtime settings from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _resolve_path(path_like: str) -> Path:
    candidate = Path(path_like)
    if candidate.is_absolute():
        return candidate
    if candidate.exists():
        return candidate
    project_root = Path(__file__).resolve().parents[2]
    rooted = project_root / candidate
    if rooted.exists():
        return rooted
    return candidate


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass(frozen=True)
class Settings:
    """Immutable application settings used across API/stream layers."""

    app_name: str = "Territory Intelligence API"
    app_version: str = "0.1.0"
    env: str = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_allow_origins: str = "http://localhost:5173,http://127.0.0.1:5173"
    data_jsonl_path: Path = Path("data/seed/territory.jsonl")
    replay_buffer_size: int = 200
    sse_keepalive_seconds: float = 1.0
    sse_max_wait_seconds: int = 300
    agent_roles_file: Path = Path("config/agent_roles.yaml")
    stream_base_url: str = "http://127.0.0.1:8000"
    stream_path_template: str = "/api/agent/sessions/{session_id}/stream"
    api_timeout_seconds: float = 10.0
    high_risk_min_score: int = 50

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from process env with deterministic defaults."""
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            app_version=os.getenv("APP_VERSION", cls.app_version),
            env=os.getenv("APP_ENV", cls.env),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            host=os.getenv("HOST", cls.host),
            port=_env_int("PORT", cls.port),
            cors_allow_origins=os.getenv("CORS_ALLOW_ORIGINS", cls.cors_allow_origins),
            data_jsonl_path=_resolve_path(os.getenv("TERRITORY_DATA_JSONL", str(cls.data_jsonl_path))),
            replay_buffer_size=_env_int("REPLAY_BUFFER_SIZE", cls.replay_buffer_size),
            sse_keepalive_seconds=_env_float("SSE_KEEPALIVE_SECONDS", cls.sse_keepalive_seconds),
            sse_max_wait_seconds=_env_int("SSE_MAX_WAIT_SECONDS", cls.sse_max_wait_seconds),
            agent_roles_file=_resolve_path(os.getenv("AGENT_ROLES_FILE", str(cls.agent_roles_file))),
            stream_base_url=os.getenv("STREAM_BASE_URL", cls.stream_base_url),
            stream_path_template=os.getenv("STREAM_PATH_TEMPLATE", cls.stream_path_template),
            api_timeout_seconds=_env_float("API_TIMEOUT_SECONDS", cls.api_timeout_seconds),
            high_risk_min_score=_env_int("HIGH_RISK_MIN_SCORE", cls.high_risk_min_score),
        )
