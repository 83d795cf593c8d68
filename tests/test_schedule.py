from __future__ import annotations

from uuid import uuid4

from backend.domain.models import Doctor
from backend.repository.store import OPDStore
from backend.services.allocation_service import TokenAllocator
from backend.services.schedule_service import ScheduleReader
from backend.services.token_service import TokenLifecycleService


TARGET_DATE = "2026-03-02"


def _store_with_doctor(capacity: int = 3) -> tuple[OPDStore, Doctor]:
    store = OPDStore()
    doctor = Doctor(
        id=uuid4().hex,
        name="Dr. Test",
        start_time="09:00",
        end_time="09:30",
        slot_duration_minutes=15,
        max_patients_per_slot=capacity,
    )
    store.add_doctor(doctor)
    return store, doctor


def test_schedule_is_empty_and_does_not_generate_slots_without_activity() -> None:
    store, doctor = _store_with_doctor()

    assert ScheduleReader(store).schedule(doctor.id, TARGET_DATE) == []
    assert store.slots == []


def test_schedule_lists_scheduled_tokens_by_priority() -> None:
    store, doctor = _store_with_doctor()
    allocator = TokenAllocator(store)
    walk_in = allocator.allocate(doctor_id=doctor.id, date=TARGET_DATE, patient_name="W1", source="WALK_IN")
    allocator.allocate(doctor_id=doctor.id, date=TARGET_DATE, patient_name="F1", source="FOLLOW_UP")
    allocator.allocate(doctor_id=doctor.id, date=TARGET_DATE, patient_name="F2", source="FOLLOW_UP")
    allocator.allocate(doctor_id=doctor.id, date=TARGET_DATE, patient_name="P1", source="PAID")

    views = ScheduleReader(store).schedule(doctor.id, TARGET_DATE)

    assert [(view.start_time, view.end_time) for view in views] == [("09:00", "09:15"), ("09:15", "09:30")]
    assert [view.booked for view in views] == [3, 1]
    assert [token.patient_name for token in views[0].tokens] == ["F1", "F2", "W1"]
    assert views[0].tokens[-1] is walk_in
    assert views[1].tokens[0].patient_name == "P1"


def test_schedule_omits_released_tokens() -> None:
    store, doctor = _store_with_doctor(capacity=2)
    allocator = TokenAllocator(store)
    first = allocator.allocate(doctor_id=doctor.id, date=TARGET_DATE, patient_name="O1", source="ONLINE")
    allocator.allocate(doctor_id=doctor.id, date=TARGET_DATE, patient_name="O2", source="ONLINE")

    TokenLifecycleService(store).mark_no_show(first.id)
    views = ScheduleReader(store).schedule(doctor.id, TARGET_DATE)

    assert views[0].booked == 1
    assert [token.patient_name for token in views[0].tokens] == ["O2"]
    assert views[0].to_dict()["tokens"][0]["status"] == "SCHEDULED"
