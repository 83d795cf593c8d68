"""Booking sources and their priority scores."""

from __future__ import annotations

from enum import Enum
from typing import Union

from backend.domain.errors import InvalidSourceError


class TokenSource(str, Enum):
    EMERGENCY = "EMERGENCY"
    PAID = "PAID"
    FOLLOW_UP = "FOLLOW_UP"
    ONLINE = "ONLINE"
    WALK_IN = "WALK_IN"

    @property
    def priority(self) -> int:
        return PRIORITY_SCORES[self]


# Higher is more urgent.
PRIORITY_SCORES: dict[TokenSource, int] = {
    TokenSource.EMERGENCY: 5,
    TokenSource.PAID: 4,
    TokenSource.FOLLOW_UP: 3,
    TokenSource.ONLINE: 2,
    TokenSource.WALK_IN: 1,
}


def parse_source(source: Union[str, TokenSource, None]) -> TokenSource:
    if isinstance(source, TokenSource):
        return source
    if source is None:
        raise InvalidSourceError("Token source is required")
    try:
        return TokenSource(str(source).strip().upper())
    except ValueError as exc:
        raise InvalidSourceError(f"Invalid token source: {source!r}") from exc


def resolve_source(
    source: Union[str, TokenSource, None],
    emergency: bool = False,
) -> TokenSource:
    """Return the effective source; the emergency flag wins over ``source``."""
    if emergency:
        return TokenSource.EMERGENCY
    return parse_source(source)


def score(source: Union[str, TokenSource]) -> int:
    return parse_source(source).priority


