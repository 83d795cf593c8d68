"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the store, repository and services, registers routers, and restores
the last persisted snapshot on startup.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from backend.controllers.doctor_controller import router as doctor_router
from backend.controllers.system_controller import router as system_router
from backend.controllers.token_controller import router as token_router
from backend.repository.data_repository import DataRepository
from backend.repository.store import OPDStore
from backend.services.opd_service import OPDWorkflowService
from backend.services.simulation_service import SimulationService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every core component shares one explicit OPDStore injected here; the
    repository only snapshots it after successful writes.
    """
    settings = settings or get_settings()

    # --- Store and persistence ---
    store = OPDStore()
    repository = DataRepository(settings) if settings.persistence_enabled else None

    # --- Services ---
    workflow_service = OPDWorkflowService(
        store=store,
        repository=repository,
        settings=settings,
    )
    simulation_service = SimulationService(
        workflow=workflow_service,
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(
            "HTTP request | method=%s | path=%s | status=%s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response

    # --- Routers ---
    app.include_router(system_router)
    app.include_router(doctor_router)
    app.include_router(token_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.store = store
    app.state.repository = repository
    app.state.workflow_service = workflow_service
    app.state.simulation_service = simulation_service

    return app


def _startup(app: FastAPI) -> None:
    """Idempotent startup sequence. Safe to re-run on server restarts."""
    workflow_service: OPDWorkflowService = app.state.workflow_service

    logger.info("Startup: restoring persisted store")
    workflow_service.load()

    logger.info("Startup complete | system ready")


# Module-level app object for uvicorn
app = create_app()
