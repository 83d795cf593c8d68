"""Priority-aware token allocation with emergency displacement."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Union
from uuid import uuid4

from backend.domain.errors import DoctorNotFoundError, NoCapacityError
from backend.domain.models import Slot, Token
from backend.domain.priority import TokenSource, resolve_source
from backend.repository.store import OPDStore
from backend.services.slot_service import SlotGenerator
from backend.utils.logger import get_logger, log_event


logger = get_logger(__name__)


class TokenAllocator:
    """Places new bookings into a doctor's day.

    Pass 1 is earliest-fit for everyone. Emergencies that still do not fit get
    a second pass that bumps the least urgent occupant of a full slot into the
    first later slot with room. Nothing is mutated unless a placement succeeds.
    """

    def __init__(self, store: OPDStore, slot_generator: Optional[SlotGenerator] = None) -> None:
        self._store = store
        self._slot_generator = slot_generator or SlotGenerator(store)

    def allocate(
        self,
        *,
        doctor_id: str,
        date: str,
        patient_name: str,
        source: Union[str, TokenSource, None] = None,
        emergency: bool = False,
    ) -> Token:
        effective_source = resolve_source(source, emergency)
        doctor = self._store.get_doctor(doctor_id)
        if doctor is None:
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found")

        slots = self._slot_generator.ensure_slots(doctor, date)
        priority_score = effective_source.priority

        def create_token_in_slot(slot: Slot) -> Token:
            token = Token(
                id=uuid4().hex,
                doctor_id=doctor_id,
                slot_id=slot.id,
                date=date,
                patient_name=patient_name,
                source=effective_source,
                priority_score=priority_score,
                created_at=datetime.now(timezone.utc).isoformat(),
            )
            self._store.add_token(token)
            log_event(
                logger,
                "Token allocated",
                token_id=token.id,
                doctor_id=doctor_id,
                slot=f"{slot.start_time}-{slot.end_time}",
                source=effective_source.value,
            )
            return token

        for slot in slots:
            if self._store.has_free_capacity(slot):
                return create_token_in_slot(slot)

        if not emergency:
            log_event(
                logger,
                "No capacity",
                doctor_id=doctor_id,
                date=date,
                source=effective_source.value,
            )
            raise NoCapacityError("No available slot for this request")

        for index, slot in enumerate(slots):
            scheduled = self._store.scheduled_tokens_for_slot(slot.id)
            if len(scheduled) < slot.capacity:
                return create_token_in_slot(slot)

            lowest = scheduled[-1] if scheduled else None
            if lowest is None or lowest.priority_score >= priority_score:
                continue

            for later_slot in slots[index + 1:]:
                if self._store.has_free_capacity(later_slot):
                    lowest.slot_id = later_slot.id
                    log_event(
                        logger,
                        "Token bumped",
                        token_id=lowest.id,
                        source=lowest.source.value,
                        moved_from=slot.start_time,
                        moved_to=later_slot.start_time,
                    )
                    return create_token_in_slot(slot)

        log_event(
            logger,
            "No capacity for emergency",
            logging.WARNING,
            doctor_id=doctor_id,
            date=date,
            patient=patient_name,
        )
        raise NoCapacityError("No available slot for this request, even after reallocation")
