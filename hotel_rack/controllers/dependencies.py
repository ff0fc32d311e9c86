"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from hotel_rack.services.kpi_service import RackKpiService
from hotel_rack.services.move_workflow_service import MoveWorkflowService
from hotel_rack.utils.config import Settings, get_settings


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with, falling back to the environment."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_kpi_service(request: Request) -> RackKpiService:
    service = getattr(request.app.state, "kpi_service", None)
    if service is None:
        repository = getattr(request.app.state, "repository", None)
        if repository is not None:
            service = RackKpiService(repository=repository, settings=get_app_settings(request))
            request.app.state.kpi_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="KPI service is not initialized",
        )
    return service


def get_move_service(request: Request) -> MoveWorkflowService:
    service = getattr(request.app.state, "move_service", None)
    if service is None:
        repository = getattr(request.app.state, "repository", None)
        if repository is not None:
            service = MoveWorkflowService(repository=repository, settings=get_app_settings(request))
            request.app.state.move_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Move workflow service is not initialized",
        )
    return service
