"""
In-process booking lock - one asyncio.Lock per (resource, date).
"""

import asyncio
import time
import weakref
from contextlib import asynccontextmanager
from datetime import date

from reservations.core.metrics import lock_wait
from reservations.services.interfaces.booking_lock import BookingLock


class LocalBookingLock(BookingLock):
    """
    Serialise bookings inside a single process.

    Use when:
    - One API worker (development, tests, small deployments)
    - As the fallback when Redis is unreachable
    """

    name = "local"

    def __init__(self):
        # Entries vanish once no coroutine holds or waits on them
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, resource_id: int, booking_date: date):
        lock = self._lock_for(self.key(resource_id, booking_date))
        started = time.perf_counter()
        async with lock:
            lock_wait.labels(strategy=self.name).observe(time.perf_counter() - started)
            yield
