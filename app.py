"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the rack repository and services, registers routers, and runs
startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from hotel_rack.controllers.move_controller import router as move_router
from hotel_rack.controllers.rack_controller import router as rack_router
from hotel_rack.repository.data_repository import DataRepository
from hotel_rack.services.kpi_service import RackKpiService
from hotel_rack.services.move_workflow_service import MoveWorkflowService
from hotel_rack.utils.config import Settings, get_settings
from hotel_rack.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every collaborator is constructed here and exposed through app.state;
    controllers resolve them via the providers in controllers/dependencies.py.
    """
    resolved_settings = settings or get_settings()

    repository = DataRepository(resolved_settings)
    kpi_service = RackKpiService(repository=repository, settings=resolved_settings)
    move_service = MoveWorkflowService(repository=repository, settings=resolved_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, resolved_settings)
        yield

    app = FastAPI(
        title=resolved_settings.app_name,
        version=resolved_settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(rack_router)
    app.include_router(move_router)

    app.state.settings = resolved_settings
    app.state.repository = repository
    app.state.kpi_service = kpi_service
    app.state.move_service = move_service

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema creation must precede the demo seed; the seed is skipped whenever
    rooms already exist.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_data:
        logger.info("Startup: seeding demo rack (skipped if rooms exist)")
        repository.seed_demo_data()

    logger.info("Startup complete, rack ready")


# Module-level app object for uvicorn
app = create_app()
