"""Read-only projection of a doctor's day."""

from __future__ import annotations

from backend.domain.models import SlotView
from backend.repository.store import OPDStore


class ScheduleReader:
    def __init__(self, store: OPDStore) -> None:
        self._store = store

    def schedule(self, doctor_id: str, date: str) -> list[SlotView]:
        """Slots are never generated here; a day without activity reads as empty."""
        views: list[SlotView] = []
        for slot in self._store.slots_for_day(doctor_id, date):
            scheduled = self._store.scheduled_tokens_for_slot(slot.id)
            views.append(
                SlotView(
                    slot_id=slot.id,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    capacity=slot.capacity,
                    booked=len(scheduled),
                    tokens=scheduled,
                )
            )
        return views
