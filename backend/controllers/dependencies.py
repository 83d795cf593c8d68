"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from backend.services.opd_service import OPDWorkflowService
from backend.services.simulation_service import SimulationService
from backend.utils.config import get_settings


def get_workflow_service(request: Request) -> OPDWorkflowService:
    service = getattr(request.app.state, "workflow_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Workflow service is not initialized",
        )
    return service


def get_simulation_service(request: Request) -> SimulationService:
    service = getattr(request.app.state, "simulation_service", None)
    if service is None:
        workflow_service = getattr(request.app.state, "workflow_service", None)
        if workflow_service is not None:
            service = SimulationService(workflow=workflow_service, settings=get_settings())
            request.app.state.simulation_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Simulation service is not initialized",
        )
    return service
