"""HTTP controller layer for token allocation and lifecycle transitions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from backend.controllers.dependencies import get_workflow_service
from backend.controllers.schemas import AllocateTokenRequest, TokenResponse
from backend.domain.errors import (
    DoctorNotFoundError,
    InvalidSourceError,
    NoCapacityError,
    ScheduleValidationError,
    TokenNotCancellableError,
    TokenNotFoundError,
)
from backend.services.opd_service import OPDWorkflowService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/api/tokens", tags=["tokens"])


@router.post(
    "/allocate",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def allocate_token(
    payload: AllocateTokenRequest,
    service: OPDWorkflowService = Depends(get_workflow_service),
) -> TokenResponse:
    """Allocate a normal or emergency token into the earliest feasible slot."""
    try:
        token = service.allocate(
            doctor_id=payload.doctor_id,
            date=payload.date.isoformat(),
            patient_name=payload.patient_name,
            source=payload.source,
            emergency=payload.emergency,
        )
        return TokenResponse.from_domain(token)
    except (InvalidSourceError, DoctorNotFoundError, ScheduleValidationError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NoCapacityError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected allocation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to allocate token",
        ) from exc


@router.post("/{token_id}/cancel", response_model=TokenResponse)
async def cancel_token(
    token_id: str,
    service: OPDWorkflowService = Depends(get_workflow_service),
) -> TokenResponse:
    try:
        return TokenResponse.from_domain(service.cancel(token_id))
    except (TokenNotFoundError, TokenNotCancellableError) as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Token not found or not cancellable",
        ) from exc
    except Exception as exc:
        logger.exception("Unexpected cancellation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel token",
        ) from exc


@router.post("/{token_id}/no-show", response_model=TokenResponse)
async def mark_no_show(
    token_id: str,
    service: OPDWorkflowService = Depends(get_workflow_service),
) -> TokenResponse:
    try:
        return TokenResponse.from_domain(service.mark_no_show(token_id))
    except (TokenNotFoundError, TokenNotCancellableError) as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Token not found or not markable as no-show",
        ) from exc
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected no-show failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark token as no-show",
        ) from exc
