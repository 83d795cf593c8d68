"""Request and response DTOs shared by the HTTP controllers."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from backend.domain.models import Doctor, Slot, SlotView, Token, TokenStatus
from backend.domain.priority import TokenSource
from backend.utils.config import get_settings


settings = get_settings()


class CreateDoctorRequest(BaseModel):
    name: str = Field(min_length=1)
    start_time: str = Field(pattern=settings.time_of_day_regex)
    end_time: str = Field(pattern=settings.time_of_day_regex)
    slot_duration_minutes: int = Field(gt=0)
    max_patients_per_slot: int = Field(gt=0)


class DoctorResponse(BaseModel):
    id: str
    name: str
    start_time: str
    end_time: str
    slot_duration_minutes: int
    max_patients_per_slot: int

    @classmethod
    def from_domain(cls, doctor: Doctor) -> "DoctorResponse":
        return cls(**doctor.to_dict())


class SlotResponse(BaseModel):
    id: str
    doctor_id: str
    date: dt.date
    start_time: str
    end_time: str
    capacity: int = Field(gt=0)

    @classmethod
    def from_domain(cls, slot: Slot) -> "SlotResponse":
        return cls(**slot.to_dict())


class AllocateTokenRequest(BaseModel):
    """Source stays a plain string so unknown values surface as a 400 from the service layer."""

    doctor_id: str = Field(min_length=1)
    date: dt.date
    patient_name: str = Field(min_length=1)
    source: Optional[str] = None
    emergency: bool = False

    @field_validator("patient_name")
    @classmethod
    def validate_patient_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("patient_name must be non-empty")
        return value.strip()


class TokenResponse(BaseModel):
    id: str
    doctor_id: str
    slot_id: str
    date: dt.date
    patient_name: str
    source: TokenSource
    priority_score: int = Field(ge=1, le=5)
    status: TokenStatus
    created_at: str

    @classmethod
    def from_domain(cls, token: Token) -> "TokenResponse":
        return cls(**token.to_dict())


class ScheduledTokenResponse(BaseModel):
    id: str
    patient_name: str
    source: TokenSource
    priority_score: int
    status: TokenStatus


class SlotViewResponse(BaseModel):
    slot_id: str
    start_time: str
    end_time: str
    capacity: int = Field(gt=0)
    booked: int = Field(ge=0)
    tokens: list[ScheduledTokenResponse]

    @classmethod
    def from_domain(cls, view: SlotView) -> "SlotViewResponse":
        return cls(**view.to_dict())


class ScheduleResponse(BaseModel):
    doctor: DoctorResponse
    date: dt.date
    schedule: list[SlotViewResponse]


class SimulateDayRequest(BaseModel):
    date: Optional[dt.date] = None


class StatsResponse(BaseModel):
    doctors: int = Field(ge=0)
    slots: int = Field(ge=0)
    tokens: int = Field(ge=0)
    tokens_by_status: dict[str, int]
