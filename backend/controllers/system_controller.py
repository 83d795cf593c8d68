"""Controller layer for service metadata, stats and the day simulation."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from backend.controllers.dependencies import get_simulation_service, get_workflow_service
from backend.controllers.schemas import SimulateDayRequest, StatsResponse
from backend.domain.errors import ScheduleValidationError
from backend.services.opd_service import OPDWorkflowService
from backend.services.simulation_service import SimulationService, SimulationValidationError
from backend.utils.config import get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api", tags=["system"])


@router.get("")
async def api_index() -> dict[str, Any]:
    return {
        "message": f"{settings.app_name} API",
        "version": settings.app_version,
        "endpoints": {
            "health": "GET /api/health",
            "stats": "GET /api/stats",
            "doctors": {
                "list": "GET /api/doctors",
                "create": "POST /api/doctors",
                "slots": "GET /api/doctors/{id}/slots?date=YYYY-MM-DD",
                "schedule": "GET /api/doctors/{id}/schedule?date=YYYY-MM-DD",
            },
            "tokens": {
                "allocate": "POST /api/tokens/allocate",
                "cancel": "POST /api/tokens/{id}/cancel",
                "no_show": "POST /api/tokens/{id}/no-show",
            },
            "simulation": "POST /api/simulate/day",
        },
    }


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/stats", response_model=StatsResponse)
async def stats(
    service: OPDWorkflowService = Depends(get_workflow_service),
) -> StatsResponse:
    return StatsResponse(**service.stats())


@router.post("/simulate/day", status_code=status.HTTP_200_OK)
async def simulate_day(
    payload: Optional[SimulateDayRequest] = Body(default=None),
    service: SimulationService = Depends(get_simulation_service),
) -> dict[str, Any]:
    """Reset the store and replay a scripted OPD day across three doctors."""
    target_date = payload.date.isoformat() if payload and payload.date else None
    try:
        return service.run_day(target_date).to_api_dict()
    except (SimulationValidationError, ScheduleValidationError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected simulation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run simulation",
        ) from exc
