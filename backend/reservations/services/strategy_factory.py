"""
Booking lock strategy factory.
Configures which lock strategy serialises create/approve workflows.
"""

from typing import Optional

from reservations.core.config import get_settings
from reservations.services.interfaces.booking_lock import BookingLock
from reservations.services.interfaces.local_lock import LocalBookingLock
from reservations.services.lock_service import RedisBookingLock


def get_lock_strategy() -> BookingLock:
    """
    Get configured lock strategy.

    - local: LocalBookingLock (single process)
    - redis: RedisBookingLock (multi-instance), falling back to local locks

    Selected via the LOCK_STRATEGY env var.
    """
    strategy = get_settings().LOCK_STRATEGY.lower()

    if strategy == 'redis':
        return RedisBookingLock()
    return LocalBookingLock()


# Singleton instance
_strategy: Optional[BookingLock] = None


def get_booking_lock() -> BookingLock:
    """Get booking lock strategy singleton."""
    global _strategy
    if _strategy is None:
        _strategy = get_lock_strategy()
    return _strategy
