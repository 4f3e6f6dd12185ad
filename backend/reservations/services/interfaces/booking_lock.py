"""
Booking lock strategy interface.
Allows swapping between in-process and distributed serialisation of the
per-(resource, date) check-then-act sequences.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import AsyncContextManager


class BookingLock(ABC):
    """
    Interface for booking lock strategies.

    Implementations:
    - LocalBookingLock: asyncio locks, one process only
    - RedisBookingLock: Redis lease locks shared by every API instance

    The database row lock taken inside the critical section stays
    authoritative; these locks keep concurrent requests from racing on a
    stale busy set in the first place.
    """

    name: str = "abstract"

    @staticmethod
    def key(resource_id: int, booking_date: date) -> str:
        return f"booking-lock:{resource_id}:{booking_date.isoformat()}"

    @abstractmethod
    def hold(self, resource_id: int, booking_date: date) -> AsyncContextManager[None]:
        """
        Serialise callers for one resource on one date.

        Raises:
            ConflictError if the lock could not be acquired in time
        """
        pass
