"""HTTP controller layer for doctors, their day slots and schedules."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backend.controllers.dependencies import get_workflow_service
from backend.controllers.schemas import (
    CreateDoctorRequest,
    DoctorResponse,
    ScheduleResponse,
    SlotResponse,
    SlotViewResponse,
)
from backend.domain.errors import DoctorNotFoundError, ScheduleValidationError
from backend.services.opd_service import OPDWorkflowService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/api/doctors", tags=["doctors"])


@router.post(
    "",
    response_model=DoctorResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_doctor(
    payload: CreateDoctorRequest,
    service: OPDWorkflowService = Depends(get_workflow_service),
) -> DoctorResponse:
    try:
        doctor = service.create_doctor(
            name=payload.name,
            start_time=payload.start_time,
            end_time=payload.end_time,
            slot_duration_minutes=payload.slot_duration_minutes,
            max_patients_per_slot=payload.max_patients_per_slot,
        )
        return DoctorResponse.from_domain(doctor)
    except ScheduleValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected doctor creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create doctor",
        ) from exc


@router.get("", response_model=list[DoctorResponse])
async def list_doctors(
    service: OPDWorkflowService = Depends(get_workflow_service),
) -> list[DoctorResponse]:
    return [DoctorResponse.from_domain(doctor) for doctor in service.list_doctors()]


@router.get("/{doctor_id}/slots", response_model=list[SlotResponse])
async def list_slots(
    doctor_id: str,
    date: dt.date = Query(...),
    service: OPDWorkflowService = Depends(get_workflow_service),
) -> list[SlotResponse]:
    """Generate the day's slots on first access and list them."""
    try:
        slots = service.ensure_slots_and_list(doctor_id, date.isoformat())
        return [SlotResponse.from_domain(slot) for slot in slots]
    except DoctorNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except ScheduleValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected slot generation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate slots",
        ) from exc


@router.get("/{doctor_id}/schedule", response_model=ScheduleResponse)
async def get_schedule(
    doctor_id: str,
    date: dt.date = Query(...),
    service: OPDWorkflowService = Depends(get_workflow_service),
) -> ScheduleResponse:
    try:
        doctor = service.get_doctor(doctor_id)
        views = service.schedule(doctor_id, date.isoformat())
        return ScheduleResponse(
            doctor=DoctorResponse.from_domain(doctor),
            date=date,
            schedule=[SlotViewResponse.from_domain(view) for view in views],
        )
    except DoctorNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected schedule read failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read schedule",
        ) from exc
