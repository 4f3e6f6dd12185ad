"""
Distributed booking lock backed by Redis.
Implements BookingLock so several API instances serialise the same
(resource, date) pair.

Fallback:
  If Redis is disabled or errors out, the lock degrades to the in-process
  LocalBookingLock. Correctness across processes then rests on the
  resource row lock (SELECT ... FOR UPDATE) taken by the booking service.
  A lock that cannot be acquired within LOCK_BLOCKING_TIMEOUT_SECONDS is a
  ConflictError: the client refreshes availability and retries.
"""

import time
from contextlib import asynccontextmanager
from datetime import date

from redis.exceptions import LockError, RedisError

from reservations.core.config import get_settings
from reservations.core.exceptions import ConflictError
from reservations.core.logging import get_logger
from reservations.core.metrics import lock_timeouts, lock_wait, redis_circuit_breaker_open, redis_connection_errors
from reservations.infrastructure.redis_client import get_redis
from reservations.services.interfaces.booking_lock import BookingLock
from reservations.services.interfaces.local_lock import LocalBookingLock

logger = get_logger(__name__)


class RedisBookingLock(BookingLock):
    """
    Redis lease lock per (resource, date).

    Use when:
    - More than one API worker or host
    - Bursty demand on the same resource and day
    """

    name = "redis"

    def __init__(self, fallback: LocalBookingLock = None):
        self.settings = get_settings()
        self.fallback = fallback or LocalBookingLock()

    @asynccontextmanager
    async def hold(self, resource_id: int, booking_date: date):
        client = await get_redis()
        if client is None:
            redis_circuit_breaker_open.set(1)
            async with self.fallback.hold(resource_id, booking_date):
                yield
            return

        key = self.key(resource_id, booking_date)
        lock = client.lock(
            key,
            timeout=self.settings.LOCK_TIMEOUT_SECONDS,
            blocking_timeout=self.settings.LOCK_BLOCKING_TIMEOUT_SECONDS,
        )

        started = time.perf_counter()
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            redis_connection_errors.inc()
            redis_circuit_breaker_open.set(1)
            logger.warning("booking_lock_fallback", key=key, error=str(e))
            acquired = None

        if acquired is None:
            async with self.fallback.hold(resource_id, booking_date):
                yield
            return

        redis_circuit_breaker_open.set(0)
        lock_wait.labels(strategy=self.name).observe(time.perf_counter() - started)
        if not acquired:
            lock_timeouts.inc()
            logger.warning("booking_lock_timeout", key=key)
            raise ConflictError("This date is busy right now. Please refresh availability and retry.")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Lease expired mid-transaction; the row lock still held the line
                logger.warning("booking_lock_lease_expired", key=key)
            except RedisError as e:
                redis_connection_errors.inc()
                logger.error("booking_lock_release_failed", key=key, error=str(e))
