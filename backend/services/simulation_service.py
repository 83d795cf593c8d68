"""Scripted OPD day driven through the public workflow operations.

The simulation resets the shared store, registers the configured doctors and
replays a fixed mix of bookings, one cancellation, one no-show and a burst of
emergencies. Every outcome, including refused bookings, lands in the event log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Any, Optional

from backend.domain.constraints import canonical_date
from backend.domain.errors import NoCapacityError
from backend.domain.models import Doctor, SlotView, Token
from backend.domain.priority import TokenSource
from backend.services.opd_service import OPDWorkflowService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class SimulationValidationError(Exception):
    """Raised when the simulation cannot be configured as requested."""


@dataclass(frozen=True)
class SimulationEvent:
    type: str
    doctor: Optional[str]
    token: Optional[dict[str, Any]]
    outcome: str = "OK"

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "doctor": self.doctor,
            "token": self.token,
            "outcome": self.outcome,
        }


@dataclass(frozen=True)
class DoctorSchedule:
    doctor: Doctor
    schedule: list[SlotView]


@dataclass(frozen=True)
class SimulationResult:
    date: str
    events: list[SimulationEvent] = field(default_factory=list)
    schedules: list[DoctorSchedule] = field(default_factory=list)

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "events": [event.to_api_dict() for event in self.events],
            "schedules": [
                {
                    "doctor": item.doctor.to_dict(),
                    "schedule": [view.to_dict() for view in item.schedule],
                }
                for item in self.schedules
            ],
        }


class SimulationService:
    def __init__(
        self,
        workflow: OPDWorkflowService,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._workflow = workflow

    def run_day(self, target_date: Optional[str] = None) -> SimulationResult:
        day = canonical_date(target_date or date_type.today().isoformat())

        profiles = self._settings.simulation_default_doctors
        if len(profiles) < 3:
            raise SimulationValidationError("simulation requires at least three doctors")

        self._workflow.reset()
        doctors = [
            self._workflow.create_doctor(
                name=profile.name,
                start_time=profile.start_time,
                end_time=profile.end_time,
                slot_duration_minutes=profile.slot_duration_minutes,
                max_patients_per_slot=profile.max_patients_per_slot,
            )
            for profile in profiles
        ]
        general, ortho, pediatrics = doctors[0], doctors[1], doctors[2]
        events: list[SimulationEvent] = []

        def book(
            event_type: str,
            doctor: Doctor,
            patient_name: str,
            source: TokenSource,
            emergency: bool = False,
        ) -> None:
            try:
                token = self._workflow.allocate(
                    doctor_id=doctor.id,
                    date=day,
                    patient_name=patient_name,
                    source=source,
                    emergency=emergency,
                )
            except NoCapacityError:
                events.append(SimulationEvent(event_type, doctor.name, None, "NO_CAPACITY"))
                return
            events.append(SimulationEvent(event_type, doctor.name, token.to_dict()))

        for index in range(8):
            book("ONLINE_BOOKING", general, f"Online Patient G{index + 1}", TokenSource.ONLINE)

        for index in range(3):
            book("PAID_BOOKING", ortho, f"Paid Ortho P{index + 1}", TokenSource.PAID)

        for index in range(5):
            doctor = general if index % 2 == 0 else pediatrics
            book("WALK_IN", doctor, f"Walk-in {index + 1}", TokenSource.WALK_IN)

        for index in range(4):
            book("FOLLOW_UP", pediatrics, f"Follow-up Child {index + 1}", TokenSource.FOLLOW_UP)

        tokens = self._workflow.store.tokens
        if len(tokens) >= 2:
            first_id, second_id = tokens[0].id, tokens[1].id
            cancelled: Token = self._workflow.cancel(first_id)
            events.append(SimulationEvent("CANCEL", None, cancelled.to_dict()))
            no_show: Token = self._workflow.mark_no_show(second_id)
            events.append(SimulationEvent("NO_SHOW", None, no_show.to_dict()))

        for index in range(3):
            doctor = general if index % 2 == 0 else ortho
            book(
                "EMERGENCY",
                doctor,
                f"Emergency Case {index + 1}",
                TokenSource.PAID,
                emergency=True,
            )

        schedules = [
            DoctorSchedule(doctor=doctor, schedule=self._workflow.schedule(doctor.id, day))
            for doctor in doctors
        ]
        logger.info(
            "Day simulation completed | date=%s | doctors=%s | events=%s",
            day,
            len(doctors),
            len(events),
        )
        return SimulationResult(date=day, events=events, schedules=schedules)
