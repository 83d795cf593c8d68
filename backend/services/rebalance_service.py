"""Single-step rebalancing after a slot frees up."""

from __future__ import annotations

from typing import Optional

from backend.domain.models import Token
from backend.repository.store import OPDStore
from backend.utils.logger import get_logger, log_event


logger = get_logger(__name__)


class SlotRebalancer:
    def __init__(self, store: OPDStore) -> None:
        self._store = store

    def rebalance(self, doctor_id: str, date: str, freed_slot_id: str) -> Optional[Token]:
        """Pull the most urgent token of the first non-empty later slot into the freed slot.

        Exactly one unit is assumed to have been freed. At most one token moves;
        the move does not cascade further down the day. Returns the moved token.
        """
        slots = self._store.slots_for_day(doctor_id, date)
        freed_index = next(
            (index for index, slot in enumerate(slots) if slot.id == freed_slot_id),
            None,
        )
        if freed_index is None:
            return None

        for later_slot in slots[freed_index + 1:]:
            later_tokens = self._store.scheduled_tokens_for_slot(later_slot.id)
            if not later_tokens:
                continue

            candidate = later_tokens[0]
            candidate.slot_id = freed_slot_id
            log_event(
                logger,
                "Token rebalanced",
                token_id=candidate.id,
                source=candidate.source.value,
                moved_from=later_slot.start_time,
                moved_to=slots[freed_index].start_time,
            )
            return candidate
        return None
