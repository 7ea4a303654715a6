# booking-backend/errors.py
"""
Exceptions raised by the booking core.

Every rejection carries a ``kind`` so a client can tell "fix your input"
apart from "pick another slot". main.py turns them into JSON responses.
"""

from fastapi import status


class BookingError(Exception):
    """Base class for all rejections of the booking service."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InputError(BookingError):
    """Malformed or missing fields, unparseable dates or instants."""

    kind = "input_error"
    status_code = status.HTTP_400_BAD_REQUEST


class PolicyViolation(BookingError):
    """Well-formed request that breaks a booking rule (hours, duration, past...)."""

    kind = "policy_violation"
    status_code = 422


class ReservationConflict(BookingError):
    """Overlap at commit time, or a status mismatch on confirm/decline."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ReservationNotFound(BookingError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationRequired(BookingError):
    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(BookingError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
