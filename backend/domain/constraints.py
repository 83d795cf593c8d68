"""Domain-level validation rules for doctor working hours and booking dates."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time

from backend.domain.errors import ScheduleValidationError
from backend.utils.config import get_settings


TIME_OF_DAY_PATTERN = re.compile(get_settings().time_of_day_regex)
DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class WorkingHours:
    start_time: str
    end_time: str
    slot_duration_minutes: int
    max_patients_per_slot: int


def parse_time_of_day(value: str) -> time:
    if not isinstance(value, str) or not TIME_OF_DAY_PATTERN.match(value):
        raise ScheduleValidationError(f"time must follow HH:MM format, got {value!r}")
    return datetime.strptime(value, "%H:%M").time()


def parse_booking_date(value: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError) as exc:
        raise ScheduleValidationError("date must follow YYYY-MM-DD format") from exc


def canonical_date(value: str) -> str:
    """Normalize a booking date to zero-padded ISO form; slots and tokens are keyed by it."""
    return parse_booking_date(value).isoformat()


def validate_working_hours(hours: WorkingHours) -> None:
    start = parse_time_of_day(hours.start_time)
    end = parse_time_of_day(hours.end_time)
    if start >= end:
        raise ScheduleValidationError("start_time must be earlier than end_time")
    if hours.slot_duration_minutes <= 0:
        raise ScheduleValidationError("slot_duration_minutes must be > 0")
    if hours.max_patients_per_slot <= 0:
        raise ScheduleValidationError("max_patients_per_slot must be > 0")
