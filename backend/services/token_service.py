"""Token lifecycle transitions: cancellation and no-show."""

from __future__ import annotations

from typing import Optional

from backend.domain.errors import TokenNotCancellableError, TokenNotFoundError
from backend.domain.models import Token, TokenStatus
from backend.repository.store import OPDStore
from backend.services.rebalance_service import SlotRebalancer
from backend.utils.logger import get_logger, log_event


logger = get_logger(__name__)


class TokenLifecycleService:
    """Only writer of ``Token.status``; every release of a slot triggers a rebalance."""

    def __init__(self, store: OPDStore, rebalancer: Optional[SlotRebalancer] = None) -> None:
        self._store = store
        self._rebalancer = rebalancer or SlotRebalancer(store)

    def cancel(self, token_id: str) -> Token:
        return self._release(token_id, TokenStatus.CANCELLED)

    def mark_no_show(self, token_id: str) -> Token:
        return self._release(token_id, TokenStatus.NO_SHOW)

    def _release(self, token_id: str, status: TokenStatus) -> Token:
        token = self._store.get_token(token_id)
        if token is None:
            raise TokenNotFoundError(f"Token {token_id} not found")
        if not token.is_scheduled:
            raise TokenNotCancellableError(
                f"Token {token_id} is {token.status.value} and cannot be changed"
            )

        token.status = status
        log_event(
            logger,
            "Token released",
            token_id=token.id,
            status=status.value,
            slot_id=token.slot_id,
        )
        self._rebalancer.rebalance(token.doctor_id, token.date, token.slot_id)
        return token
