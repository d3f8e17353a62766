from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from obs_lab.api.client_logs import router as client_logs_router
from obs_lab.api.demo import router as demo_router
from obs_lab.api.metrics import router as metrics_router
from obs_lab.api.probes import router as probes_router
from obs_lab.config import Settings, get_settings
from obs_lab.errors import register_exception_handlers
from obs_lab.observability.logging import configure_logging, install_crash_handlers
from obs_lab.observability.metrics import MetricsRegistry
from obs_lab.observability.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from obs_lab.state import ReadinessFlag


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    install_crash_handlers(asyncio.get_running_loop())
    structlog.get_logger("server").info(
        "server_started",
        port=settings.port,
        environment=settings.environment,
    )
    yield
    structlog.get_logger("server").info("server_stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title="Observability Lab", version="0.1.0", lifespan=_lifespan)
    app.state.settings = settings
    app.state.metrics = MetricsRegistry(app_name=settings.service_name, environment=settings.environment)
    app.state.readiness = ReadinessFlag()

    register_exception_handlers(app)

    app.include_router(metrics_router)
    app.include_router(probes_router)
    app.include_router(demo_router)
    app.include_router(client_logs_router)

    # add_middleware wraps outward: the last one added sees the request first.
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[settings.correlation_id_header],
    )
    app.add_middleware(
        RequestContextMiddleware,
        metrics=app.state.metrics,
        header_name=settings.correlation_id_header,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    return app
