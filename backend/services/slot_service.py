"""Lazy, idempotent generation of a doctor's day slots."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

from backend.domain.constraints import parse_booking_date, parse_time_of_day
from backend.domain.models import Doctor, Slot
from backend.repository.store import OPDStore
from backend.utils.logger import get_logger, log_event


logger = get_logger(__name__)


def build_day_slots(doctor: Doctor, date: str) -> list[Slot]:
    """Cut the working window into full-length slots; a trailing partial interval is dropped."""
    day = parse_booking_date(date)
    current = datetime.combine(day, parse_time_of_day(doctor.start_time))
    end = datetime.combine(day, parse_time_of_day(doctor.end_time))
    step = timedelta(minutes=doctor.slot_duration_minutes)

    slots: list[Slot] = []
    while current + step <= end:
        slot_end = current + step
        slots.append(
            Slot(
                id=uuid4().hex,
                doctor_id=doctor.id,
                date=date,
                start_time=current.strftime("%H:%M"),
                end_time=slot_end.strftime("%H:%M"),
                capacity=doctor.max_patients_per_slot,
            )
        )
        current = slot_end
    return slots


class SlotGenerator:
    def __init__(self, store: OPDStore) -> None:
        self._store = store

    def ensure_slots(self, doctor: Doctor, date: str) -> list[Slot]:
        existing = self._store.slots_for_day(doctor.id, date)
        if existing:
            return existing

        slots = build_day_slots(doctor, date)
        self._store.add_slots(slots)
        log_event(
            logger,
            "Slots generated",
            doctor_id=doctor.id,
            date=date,
            count=len(slots),
            capacity=doctor.max_patients_per_slot,
        )
        return self._store.slots_for_day(doctor.id, date)
