"""Domain models for doctors, day slots and patient tokens."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from backend.domain.priority import TokenSource


class TokenStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


@dataclass(frozen=True)
class Doctor:
    id: str
    name: str
    start_time: str
    end_time: str
    slot_duration_minutes: int
    max_patients_per_slot: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Slot:
    id: str
    doctor_id: str
    date: str
    start_time: str
    end_time: str
    capacity: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Token:
    """A patient booking. ``slot_id`` moves on bump/rebalance; ``status`` is terminal once left SCHEDULED."""

    id: str
    doctor_id: str
    slot_id: str
    date: str
    patient_name: str
    source: TokenSource
    priority_score: int
    created_at: str
    status: TokenStatus = TokenStatus.SCHEDULED

    @property
    def is_scheduled(self) -> bool:
        return self.status is TokenStatus.SCHEDULED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "doctor_id": self.doctor_id,
            "slot_id": self.slot_id,
            "date": self.date,
            "patient_name": self.patient_name,
            "source": self.source.value,
            "priority_score": self.priority_score,
            "status": self.status.value,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class SlotView:
    slot_id: str
    start_time: str
    end_time: str
    capacity: int
    booked: int
    tokens: list[Token] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slot_id": self.slot_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "capacity": self.capacity,
            "booked": self.booked,
            "tokens": [
                {
                    "id": token.id,
                    "patient_name": token.patient_name,
                    "source": token.source.value,
                    "priority_score": token.priority_score,
                    "status": token.status.value,
                }
                for token in self.tokens
            ],
        }
