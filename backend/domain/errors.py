"""Expected booking outcomes raised to callers of the allocation core."""

from __future__ import annotations


class OPDError(Exception):
    """Base class for every expected booking failure."""


class ScheduleValidationError(OPDError):
    """Raised when a doctor definition, date or time-of-day is malformed."""


class InvalidSourceError(OPDError):
    """Raised when a booking source is unknown or unsupported."""


class DoctorNotFoundError(OPDError):
    """Raised when a doctor id does not resolve."""


class NoCapacityError(OPDError):
    """Raised when no slot can take the request, even after displacement."""


class TokenNotFoundError(OPDError):
    """Raised when a token id does not resolve."""


class TokenNotCancellableError(OPDError):
    """Raised when a token has already left the SCHEDULED state."""
