"""Cancellation, no-show and the single-step rebalance they trigger."""

from __future__ import annotations

from uuid import uuid4

import pytest

from backend.domain.errors import TokenNotCancellableError, TokenNotFoundError
from backend.domain.models import Doctor, Slot, Token, TokenStatus
from backend.domain.priority import TokenSource
from backend.repository.store import OPDStore
from backend.services.allocation_service import TokenAllocator
from backend.services.rebalance_service import SlotRebalancer
from backend.services.slot_service import SlotGenerator
from backend.services.token_service import TokenLifecycleService


TARGET_DATE = "2026-03-02"


def _build_day(end: str = "09:30", capacity: int = 1) -> tuple[OPDStore, Doctor, list[Slot]]:
    store = OPDStore()
    doctor = Doctor(
        id=uuid4().hex,
        name="Dr. Test",
        start_time="09:00",
        end_time=end,
        slot_duration_minutes=15,
        max_patients_per_slot=capacity,
    )
    store.add_doctor(doctor)
    slots = SlotGenerator(store).ensure_slots(doctor, TARGET_DATE)
    return store, doctor, slots


def _seat(store: OPDStore, slot: Slot, source: TokenSource, name: str) -> Token:
    token = Token(
        id=uuid4().hex,
        doctor_id=slot.doctor_id,
        slot_id=slot.id,
        date=slot.date,
        patient_name=name,
        source=source,
        priority_score=source.priority,
        created_at="2026-03-02T08:00:00+00:00",
    )
    store.add_token(token)
    return token


def _book_walk_in_then_online() -> tuple[OPDStore, list[Slot], Token, Token]:
    store, doctor, slots = _build_day()
    allocator = TokenAllocator(store)
    walk_in = allocator.allocate(doctor_id=doctor.id, date=TARGET_DATE, patient_name="W1", source="WALK_IN")
    online = allocator.allocate(doctor_id=doctor.id, date=TARGET_DATE, patient_name="O1", source="ONLINE")
    return store, slots, walk_in, online


def test_cancel_pulls_later_token_into_freed_slot() -> None:
    store, slots, walk_in, online = _book_walk_in_then_online()
    assert (walk_in.slot_id, online.slot_id) == (slots[0].id, slots[1].id)

    cancelled = TokenLifecycleService(store).cancel(walk_in.id)

    assert cancelled.status is TokenStatus.CANCELLED
    assert online.slot_id == slots[0].id
    assert store.scheduled_tokens_for_slot(slots[1].id) == []


def test_no_show_rebalances_like_cancel() -> None:
    store, slots, walk_in, online = _book_walk_in_then_online()

    released = TokenLifecycleService(store).mark_no_show(walk_in.id)

    assert released.status is TokenStatus.NO_SHOW
    assert online.slot_id == slots[0].id
    assert store.scheduled_tokens_for_slot(slots[1].id) == []


@pytest.mark.parametrize("first_action, second_action", [
    ("cancel", "cancel"),
    ("cancel", "mark_no_show"),
    ("mark_no_show", "cancel"),
    ("mark_no_show", "mark_no_show"),
])
def test_terminal_status_is_immutable(first_action: str, second_action: str) -> None:
    store, slots, walk_in, online = _book_walk_in_then_online()
    lifecycle = TokenLifecycleService(store)
    getattr(lifecycle, first_action)(walk_in.id)
    status_after_first = walk_in.status

    with pytest.raises(TokenNotCancellableError):
        getattr(lifecycle, second_action)(walk_in.id)

    assert walk_in.status is status_after_first
    assert online.slot_id == slots[0].id


def test_unknown_token_is_reported() -> None:
    store, _, _, _ = _book_walk_in_then_online()

    with pytest.raises(TokenNotFoundError):
        TokenLifecycleService(store).cancel("missing")


def test_rebalance_uses_first_non_empty_later_slot_only() -> None:
    store, doctor, slots = _build_day(end="10:00", capacity=2)
    walk_in = _seat(store, slots[0], TokenSource.WALK_IN, "W1")
    online = _seat(store, slots[2], TokenSource.ONLINE, "O1")
    paid = _seat(store, slots[2], TokenSource.PAID, "P1")
    emergency = _seat(store, slots[3], TokenSource.EMERGENCY, "E1")

    TokenLifecycleService(store).cancel(walk_in.id)

    assert paid.slot_id == slots[0].id
    assert online.slot_id == slots[2].id
    assert emergency.slot_id == slots[3].id


def test_rebalance_tie_goes_to_earliest_booking() -> None:
    store, doctor, slots = _build_day(capacity=2)
    first = _seat(store, slots[1], TokenSource.ONLINE, "O1")
    second = _seat(store, slots[1], TokenSource.ONLINE, "O2")

    moved = SlotRebalancer(store).rebalance(doctor.id, TARGET_DATE, slots[0].id)

    assert moved is first
    assert first.slot_id == slots[0].id
    assert second.slot_id == slots[1].id


def test_rebalance_moves_a_single_token_per_release() -> None:
    store, doctor, slots = _build_day(end="09:45")
    lead = _seat(store, slots[0], TokenSource.WALK_IN, "W1")
    middle = _seat(store, slots[1], TokenSource.ONLINE, "O1")
    last = _seat(store, slots[2], TokenSource.FOLLOW_UP, "F1")

    TokenLifecycleService(store).cancel(lead.id)

    assert middle.slot_id == slots[0].id
    assert last.slot_id == slots[2].id


def test_release_in_last_slot_moves_nothing() -> None:
    store, slots, walk_in, online = _book_walk_in_then_online()

    TokenLifecycleService(store).cancel(online.id)

    assert walk_in.slot_id == slots[0].id


def test_rebalance_ignores_unknown_slot() -> None:
    store, doctor, slots = _build_day()
    token = _seat(store, slots[1], TokenSource.ONLINE, "O1")

    assert SlotRebalancer(store).rebalance(doctor.id, TARGET_DATE, "missing-slot") is None
    assert token.slot_id == slots[1].id
