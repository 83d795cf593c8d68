"""In-memory entity store shared by the allocation core."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional

from backend.domain.models import Doctor, Slot, Token, TokenStatus


class OPDStore:
    """Holds the three entity collections: doctors, slots and tokens.

    Token list order is creation order; priority ties inside a slot are broken
    by it, so tokens are only ever appended.
    """

    def __init__(
        self,
        doctors: Optional[Iterable[Doctor]] = None,
        slots: Optional[Iterable[Slot]] = None,
        tokens: Optional[Iterable[Token]] = None,
    ) -> None:
        self.doctors: list[Doctor] = list(doctors or [])
        self.slots: list[Slot] = list(slots or [])
        self.tokens: list[Token] = list(tokens or [])

    def clear(self) -> None:
        self.doctors.clear()
        self.slots.clear()
        self.tokens.clear()

    def replace_with(self, other: "OPDStore") -> None:
        self.doctors[:] = other.doctors
        self.slots[:] = other.slots
        self.tokens[:] = other.tokens

    def add_doctor(self, doctor: Doctor) -> None:
        self.doctors.append(doctor)

    def get_doctor(self, doctor_id: str) -> Optional[Doctor]:
        return next((doctor for doctor in self.doctors if doctor.id == doctor_id), None)

    def add_slots(self, slots: Iterable[Slot]) -> None:
        self.slots.extend(slots)

    def slots_for_day(self, doctor_id: str, date: str) -> list[Slot]:
        """Return the day's slots in chronological order."""
        return sorted(
            (slot for slot in self.slots if slot.doctor_id == doctor_id and slot.date == date),
            key=lambda slot: slot.start_time,
        )

    def add_token(self, token: Token) -> None:
        self.tokens.append(token)

    def get_token(self, token_id: str) -> Optional[Token]:
        return next((token for token in self.tokens if token.id == token_id), None)

    def scheduled_tokens_for_slot(self, slot_id: str) -> list[Token]:
        """SCHEDULED occupants by priority descending; stable sort keeps arrival order on ties."""
        return sorted(
            (token for token in self.tokens if token.slot_id == slot_id and token.is_scheduled),
            key=lambda token: token.priority_score,
            reverse=True,
        )

    def has_free_capacity(self, slot: Slot) -> bool:
        return len(self.scheduled_tokens_for_slot(slot.id)) < slot.capacity

    def token_counts_by_status(self) -> dict[str, int]:
        counts = Counter(token.status.value for token in self.tokens)
        return {status.value: counts.get(status.value, 0) for status in TokenStatus}
