"""Workflow facade the HTTP layer and simulation drive the allocation core through."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from threading import RLock
from typing import Any, Iterator, Optional, Union
from uuid import uuid4

from backend.domain.constraints import WorkingHours, canonical_date, validate_working_hours
from backend.domain.errors import DoctorNotFoundError
from backend.domain.models import Doctor, Slot, SlotView, Token
from backend.domain.priority import TokenSource
from backend.repository.data_repository import DataRepository
from backend.repository.store import OPDStore
from backend.services.allocation_service import TokenAllocator
from backend.services.rebalance_service import SlotRebalancer
from backend.services.schedule_service import ScheduleReader
from backend.services.slot_service import SlotGenerator
from backend.services.token_service import TokenLifecycleService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class OPDWorkflowService:
    """Serializes mutations behind one lock and persists after each successful write."""

    def __init__(
        self,
        store: Optional[OPDStore] = None,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store if store is not None else OPDStore()
        self._repository = repository
        if self._repository is None and self._settings.persistence_enabled:
            self._repository = DataRepository(self._settings)

        self._slot_generator = SlotGenerator(self._store)
        self._allocator = TokenAllocator(self._store, slot_generator=self._slot_generator)
        self._lifecycle = TokenLifecycleService(self._store, rebalancer=SlotRebalancer(self._store))
        self._schedule_reader = ScheduleReader(self._store)
        self._lock = RLock()
        self._schema_ready = False

    @property
    def store(self) -> OPDStore:
        return self._store

    def load(self) -> None:
        """Restore the last persisted snapshot into the live store."""
        if self._repository is None:
            return
        with self._lock:
            self._repository.initialize_database()
            self._schema_ready = True
            self._store.replace_with(self._repository.load_store())

    def _persist(self) -> None:
        if self._repository is None:
            return
        if not self._schema_ready:
            self._repository.initialize_database()
            self._schema_ready = True
        self._repository.save_store(self._store)

    @contextmanager
    def _write(self) -> Iterator[None]:
        """Run one mutation under the lock; a failed save restores the prior state."""
        with self._lock:
            snapshot = self._snapshot()
            yield
            try:
                self._persist()
            except RuntimeError:
                self._store.replace_with(snapshot)
                logger.error("Persistence failed | in-memory state rolled back")
                raise

    def _snapshot(self) -> OPDStore:
        # Tokens are the only mutable entities.
        return OPDStore(
            doctors=self._store.doctors,
            slots=self._store.slots,
            tokens=[replace(token) for token in self._store.tokens],
        )

    def _require_doctor(self, doctor_id: str) -> Doctor:
        doctor = self._store.get_doctor(doctor_id)
        if doctor is None:
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found")
        return doctor

    def create_doctor(
        self,
        *,
        name: str,
        start_time: str,
        end_time: str,
        slot_duration_minutes: int,
        max_patients_per_slot: int,
    ) -> Doctor:
        validate_working_hours(
            WorkingHours(
                start_time=start_time,
                end_time=end_time,
                slot_duration_minutes=slot_duration_minutes,
                max_patients_per_slot=max_patients_per_slot,
            )
        )
        doctor = Doctor(
            id=uuid4().hex,
            name=name,
            start_time=start_time,
            end_time=end_time,
            slot_duration_minutes=slot_duration_minutes,
            max_patients_per_slot=max_patients_per_slot,
        )
        with self._write():
            self._store.add_doctor(doctor)
        logger.info("Doctor created | doctor_id=%s | name=%s", doctor.id, doctor.name)
        return doctor

    def list_doctors(self) -> list[Doctor]:
        return list(self._store.doctors)

    def get_doctor(self, doctor_id: str) -> Doctor:
        return self._require_doctor(doctor_id)

    def ensure_slots_and_list(self, doctor_id: str, date: str) -> list[Slot]:
        day = canonical_date(date)
        with self._lock:
            doctor = self._require_doctor(doctor_id)
            existing = self._store.slots_for_day(doctor.id, day)
            if existing:
                return existing
            with self._write():
                slots = self._slot_generator.ensure_slots(doctor, day)
            return slots

    def allocate(
        self,
        *,
        doctor_id: str,
        date: str,
        patient_name: str,
        source: Union[str, TokenSource, None] = None,
        emergency: bool = False,
    ) -> Token:
        day = canonical_date(date)
        with self._write():
            token = self._allocator.allocate(
                doctor_id=doctor_id,
                date=day,
                patient_name=patient_name,
                source=source,
                emergency=emergency,
            )
        return token

    def cancel(self, token_id: str) -> Token:
        with self._write():
            token = self._lifecycle.cancel(token_id)
        return token

    def mark_no_show(self, token_id: str) -> Token:
        with self._write():
            token = self._lifecycle.mark_no_show(token_id)
        return token

    def schedule(self, doctor_id: str, date: str) -> list[SlotView]:
        day = canonical_date(date)
        with self._lock:
            self._require_doctor(doctor_id)
            return self._schedule_reader.schedule(doctor_id, day)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "doctors": len(self._store.doctors),
                "slots": len(self._store.slots),
                "tokens": len(self._store.tokens),
                "tokens_by_status": self._store.token_counts_by_status(),
            }

    def reset(self) -> None:
        with self._write():
            self._store.clear()
        logger.info("Store reset")
