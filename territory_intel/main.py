"""FastAPI entrypoint: wires config, container, routes, and lifecycle hooks."""

from __future__ import annotations

from contextlib import asynccontextmanager
from time import perf_counter

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from territory_intel.api.http.agent_sessions import router as agent_sessions_router
from territory_intel.api.http.graph import router as graph_router
from territory_intel.api.http.hcps import router as hcps_router
from territory_intel.api.http.health import router as health_router
from territory_intel.api.http.nbas import router as nbas_router
from territory_intel.api.http.switching import router as switching_router
from territory_intel.api.http.territory import router as territory_router
from territory_intel.api.stream.sse import router as sse_router
from territory_intel.core.config import Settings
from territory_intel.core.container import build_container
from territory_intel.core.lifecycle import on_shutdown, on_startup
from territory_intel.infra.observability.logger import get_logger, setup_logging

access_logger = get_logger("uvicorn.access")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)
    container = build_container(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        on_startup(container)
        try:
            yield
        finally:
            on_shutdown()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (perf_counter() - start) * 1000
            query = f"?{request.url.query}" if request.url.query else ""
            client_ip = request.client.host if request.client else "-"
            access_logger.info(
                '%s "%s %s%s" %s %.2fms',
                client_ip,
                request.method,
                request.url.path,
                query,
                status_code,
                duration_ms,
            )

    app.include_router(health_router)
    app.include_router(hcps_router)
    app.include_router(nbas_router)
    app.include_router(territory_router)
    app.include_router(switching_router)
    app.include_router(graph_router)
    app.include_router(agent_sessions_router)
    app.include_router(sse_router)

    return app
