"""
Booking engine error hierarchy.

Every error is recoverable and carries the HTTP status the API layer
renders it with. The engine raises these; only the API layer turns them
into responses (see reservations.api.errors).
"""

from fastapi import status


class BookingError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(BookingError):
    """Missing or malformed field."""

    status_code = status.HTTP_400_BAD_REQUEST


class AvailabilityError(BookingError):
    """Closed day, outside operating hours, or date not offered."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConflictError(BookingError):
    """
    Slot overlap or a concurrent modification detected at commit time.
    Callers must refresh their view of availability and retry.
    """

    status_code = status.HTTP_409_CONFLICT


class CapacityError(BookingError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class StateTransitionError(BookingError):
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
