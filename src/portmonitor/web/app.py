"""FastAPI application factory for the local PortMonitor JSON API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from portmonitor import __version__
from portmonitor.config import PortMonitorConfig
from portmonitor.service import PortMonitorService


def create_app(
    config: PortMonitorConfig | None = None,
    service: PortMonitorService | None = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    config = config or PortMonitorConfig.load()
    service = service or PortMonitorService(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        service.start_auto_refresh(config.refresh_interval)
        try:
            yield
        finally:
            service.stop_auto_refresh()

    app = FastAPI(
        title="PortMonitor",
        version=__version__,
        docs_url="/api/docs",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.service = service

    from portmonitor.web.api.ports import router as ports_router

    app.include_router(ports_router, prefix="/api")

    return app
