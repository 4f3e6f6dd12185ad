"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .booking_lock import BookingLock
from .local_lock import LocalBookingLock

__all__ = ['BookingLock', 'LocalBookingLock']
