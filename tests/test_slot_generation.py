from __future__ import annotations

from backend.domain.models import Doctor
from backend.repository.store import OPDStore
from backend.services.slot_service import SlotGenerator, build_day_slots


TARGET_DATE = "2026-03-02"


def _doctor(start: str = "09:00", end: str = "09:30", duration: int = 15, capacity: int = 1) -> Doctor:
    return Doctor(
        id="doc-1",
        name="Dr. Test",
        start_time=start,
        end_time=end,
        slot_duration_minutes=duration,
        max_patients_per_slot=capacity,
    )


def test_window_is_cut_into_contiguous_slots() -> None:
    slots = build_day_slots(_doctor(), TARGET_DATE)

    assert [(slot.start_time, slot.end_time) for slot in slots] == [
        ("09:00", "09:15"),
        ("09:15", "09:30"),
    ]
    assert all(slot.capacity == 1 for slot in slots)
    assert all(slot.date == TARGET_DATE and slot.doctor_id == "doc-1" for slot in slots)


def test_trailing_partial_slot_is_dropped() -> None:
    slots = build_day_slots(_doctor(start="09:00", end="10:00", duration=25), TARGET_DATE)

    assert [(slot.start_time, slot.end_time) for slot in slots] == [
        ("09:00", "09:25"),
        ("09:25", "09:50"),
    ]


def test_window_shorter_than_duration_yields_no_slots() -> None:
    assert build_day_slots(_doctor(start="09:00", end="09:10", duration=15), TARGET_DATE) == []


def test_ensure_slots_is_idempotent() -> None:
    store = OPDStore()
    doctor = _doctor(end="10:00", capacity=3)
    store.add_doctor(doctor)
    generator = SlotGenerator(store)

    first = generator.ensure_slots(doctor, TARGET_DATE)
    second = generator.ensure_slots(doctor, TARGET_DATE)

    assert len(first) == 4
    assert [slot.id for slot in first] == [slot.id for slot in second]
    assert len(store.slots) == 4


def test_slots_are_per_date() -> None:
    store = OPDStore()
    doctor = _doctor()
    store.add_doctor(doctor)
    generator = SlotGenerator(store)

    generator.ensure_slots(doctor, TARGET_DATE)
    generator.ensure_slots(doctor, "2026-03-03")

    assert len(store.slots) == 4
    assert len(store.slots_for_day(doctor.id, TARGET_DATE)) == 2


def test_existing_slots_keep_their_original_capacity() -> None:
    store = OPDStore()
    doctor = _doctor(capacity=2)
    store.add_doctor(doctor)
    generator = SlotGenerator(store)
    generator.ensure_slots(doctor, TARGET_DATE)

    widened = _doctor(capacity=9)
    slots = generator.ensure_slots(widened, TARGET_DATE)

    assert all(slot.capacity == 2 for slot in slots)
