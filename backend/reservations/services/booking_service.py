"""
Booking service: create and lifecycle workflows on top of the pure
availability, slot and capacity calculators.

CONCURRENCY STRATEGY: per-(resource, date) critical section
===========================================================

Problem:
  Two customers ask for overlapping 10:00 slots on the same service at the
  same moment. Both read an empty busy set, both insert. Result: a
  double-booked slot.

Solution:
  create and approve run their read-check-write sequence inside a
  critical section keyed by (resource_id, booking_date):

  1. Acquire the booking lock (asyncio lock per process, or Redis lease
     lock across processes; see strategy_factory)
  2. Re-read the resource with SELECT ... FOR UPDATE, so writers on the
     same resource queue up in the database even without Redis
  3. Read the active bookings for the date, run the calculators
  4. Insert / update and COMMIT before the lock is released

  The commit happens inside the lock on purpose: releasing first would let
  the next request read a busy set that lacks our uncommitted booking.

Lifecycle updates use optimistic locking on Booking.version:

  UPDATE bookings SET status = :target, version = version + 1
  WHERE id = :id AND version = :seen_version AND status = :seen_status

  rows_affected == 0 means someone else moved the booking first; the caller
  gets a ConflictError and must refresh rather than overwrite.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from time import perf_counter
from typing import NamedTuple, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from reservations.core.config import get_settings
from reservations.core.exceptions import (
    AvailabilityError,
    BookingError,
    CapacityError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from reservations.core.logging import get_logger
from reservations.core.metrics import booking_latency, record_booking_attempt, record_slot_query, record_transition
from reservations.core.security import Actor, ActorRole
from reservations.models.booking import Booking
from reservations.models.enums import ACTIVE_STATUSES
from reservations.models.resource import Resource
from reservations.services.availability_service import AvailabilityResult, availability_model, check_availability
from reservations.services.capacity_service import CapacitySummary, validate_aggregate, validate_quantity
from reservations.services.kinds import AggregateScope, BookingKindPolicy, policy_for
from reservations.services.lifecycle import Action, clean_reason, initial_status, next_status
from reservations.services.resource_service import get_resource
from reservations.services.slot_service import (
    busy_set,
    check_slot,
    list_available_slots,
    spans_of,
    validate_duration,
    validate_on_grid,
)
from reservations.services.strategy_factory import get_booking_lock
from reservations.utils.time_utils import from_hhmm, to_hhmm

logger = get_logger(__name__)
settings = get_settings()

_ACTIVE = [s.value for s in ACTIVE_STATUSES]


@dataclass(frozen=True)
class TemporalSpec:
    booking_date: date
    start_time: Optional[time] = None
    duration_hours: Optional[int] = None


class CreatedBooking(NamedTuple):
    booking: Booking
    warnings: list[str]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()

    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


async def get_booking_for_actor(db: AsyncSession, booking_id: int, actor: Actor) -> Booking:
    """A booking is visible to its requester and to the resource owner."""
    booking = await get_booking(db, booking_id)
    if actor.id not in (booking.requester_id, booking.resource.owner_id):
        raise PermissionDeniedError("Not your booking")
    return booking


async def active_bookings_on(
    db: AsyncSession,
    resource_id: int,
    day: date,
    exclude_id: Optional[int] = None,
) -> list[Booking]:
    """Pending and accepted bookings for a resource on one date: the busy set's source."""
    query = select(Booking).where(
        Booking.resource_id == resource_id,
        Booking.booking_date == day,
        Booking.status.in_(_ACTIVE),
    )
    if exclude_id is not None:
        query = query.where(Booking.id != exclude_id)
    result = await db.execute(query.order_by(Booking.start_time))
    return list(result.scalars().all())


async def booked_quantity(
    db: AsyncSession,
    resource_id: int,
    day: Optional[date] = None,
    exclude_id: Optional[int] = None,
) -> int:
    """Sum of quantities held by active bookings, for one date or overall."""
    query = select(func.coalesce(func.sum(Booking.quantity), 0)).where(
        Booking.resource_id == resource_id,
        Booking.status.in_(_ACTIVE),
    )
    if day is not None:
        query = query.where(Booking.booking_date == day)
    if exclude_id is not None:
        query = query.where(Booking.id != exclude_id)
    return int((await db.execute(query)).scalar())


async def list_requester_bookings(db: AsyncSession, requester_id: int) -> list[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.requester_id == requester_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def list_resource_bookings(db: AsyncSession, resource_id: int, actor: Actor) -> list[Booking]:
    resource = await get_resource(db, resource_id)
    if resource.owner_id != actor.id:
        raise PermissionDeniedError("Only the resource owner can list its bookings")

    result = await db.execute(
        select(Booking)
        .where(Booking.resource_id == resource_id)
        .order_by(Booking.booking_date, Booking.start_time, Booking.id)
    )
    return list(result.scalars().all())


async def list_owner_bookings(db: AsyncSession, owner_id: int) -> list[Booking]:
    """Bookings across every resource the owner runs, newest first."""
    result = await db.execute(
        select(Booking)
        .join(Resource, Booking.resource_id == Resource.id)
        .where(Resource.owner_id == owner_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Availability views
# ---------------------------------------------------------------------------


def _ensure_local_time(start: Optional[time]) -> None:
    if start is not None and start.tzinfo is not None:
        raise ValidationError("start_time must be a local time without a UTC offset")


def _window_problem(policy: BookingKindPolicy, day: date, start: Optional[time], now: datetime) -> Optional[str]:
    """Why a booking at (day, start) could not be requested at `now`, or None."""
    today = now.date()
    if day < today or (start is not None and datetime.combine(day, start) <= now):
        return "Booking must be in the future"
    if policy.has_booking_window:
        window = settings.RESTAURANT_BOOKING_WINDOW_DAYS
        if day > today + timedelta(days=window):
            return f"Booking must be within {window} days"
    return None


def _aggregate_day(policy: BookingKindPolicy, day: date) -> Optional[date]:
    return day if policy.aggregate_scope is AggregateScope.DATE else None


def _aggregate_enforced(policy: BookingKindPolicy) -> bool:
    if policy.aggregate_scope is AggregateScope.DATE:
        return True
    if policy.aggregate_scope is AggregateScope.RESOURCE:
        return settings.ENFORCE_EVENT_AGGREGATE_CAPACITY
    return False


async def resource_availability(
    db: AsyncSession,
    resource: Resource,
    day: date,
    at: Optional[time] = None,
    duration_hours: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AvailabilityResult:
    """
    Booking-window check, operating-model check, then the live state: the
    busy set for duration-based resources and remaining capacity for
    aggregate kinds. Answers what create_booking would decide at `now`.
    """
    now = now or datetime.now()
    policy = policy_for(resource.kind)
    try:
        _ensure_local_time(at)
    except ValidationError as e:
        return AvailabilityResult.reject(e.message, ValidationError)

    problem = _window_problem(policy, day, at, now)
    if problem:
        return AvailabilityResult.reject(problem, AvailabilityError)

    result = check_availability(resource, day, at)
    if not result.ok:
        return result

    if policy.duration_based and at is not None:
        duration = duration_hours or settings.MIN_SERVICE_DURATION_HOURS
        try:
            validate_duration(duration, settings.MIN_SERVICE_DURATION_HOURS, settings.MAX_SERVICE_DURATION_HOURS)
            validate_on_grid(at, settings.SLOT_MINUTES)
        except ValidationError as e:
            return AvailabilityResult.reject(e.message, ValidationError)

        spans = spans_of(await active_bookings_on(db, resource.id, day))
        result = check_slot(
            availability_model(resource), busy_set(spans, settings.SLOT_MINUTES), at, duration, settings.SLOT_MINUTES
        )
        if not result.ok:
            return result

    if _aggregate_enforced(policy):
        booked = await booked_quantity(db, resource.id, _aggregate_day(policy, day))
        if booked >= resource.capacity:
            return AvailabilityResult.reject("Fully booked", CapacityError)

    return result


async def available_slots(
    db: AsyncSession,
    resource: Resource,
    day: date,
    duration_hours: int,
    now: Optional[datetime] = None,
) -> list[time]:
    """Start times create_booking would accept at `now`; start times already past are dropped."""
    now = now or datetime.now()
    policy = policy_for(resource.kind)
    if not policy.duration_based:
        raise ValidationError(f"Time slots are not offered for {resource.kind} resources")
    validate_duration(duration_hours, settings.MIN_SERVICE_DURATION_HOURS, settings.MAX_SERVICE_DURATION_HOURS)

    record_slot_query(resource.kind)
    if _window_problem(policy, day, None, now):
        return []

    bookings = await active_bookings_on(db, resource.id, day)
    slots = list_available_slots(
        availability_model(resource), day, duration_hours, spans_of(bookings), settings.SLOT_MINUTES
    )
    return [slot for slot in slots if _window_problem(policy, day, slot, now) is None]


async def capacity_summary(db: AsyncSession, resource: Resource, day: Optional[date] = None) -> CapacitySummary:
    policy = policy_for(resource.kind)
    if policy.aggregate_scope is AggregateScope.DATE and day is None:
        raise ValidationError(f"A date is required for {resource.kind} capacity")
    if policy.aggregate_scope is AggregateScope.RESOURCE:
        day = None

    booked = await booked_quantity(db, resource.id, day)
    return CapacitySummary(capacity=resource.capacity, booked=booked)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def _validate_temporal(policy: BookingKindPolicy, spec: TemporalSpec, now: datetime) -> None:
    if policy.requires_time and spec.start_time is None:
        raise ValidationError(f"start_time is required for {policy.kind.value} bookings")
    if not policy.requires_time and spec.start_time is not None:
        raise ValidationError(f"{policy.kind.value.capitalize()} bookings take a date only")

    if policy.duration_based:
        validate_duration(
            spec.duration_hours, settings.MIN_SERVICE_DURATION_HOURS, settings.MAX_SERVICE_DURATION_HOURS
        )
        validate_on_grid(spec.start_time, settings.SLOT_MINUTES)
    elif spec.duration_hours is not None:
        raise ValidationError(f"{policy.kind.value.capitalize()} bookings do not take a duration")

    _ensure_local_time(spec.start_time)
    problem = _window_problem(policy, spec.booking_date, spec.start_time, now)
    if problem:
        raise AvailabilityError(problem)


def _clean_request(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    if len(text) > settings.MAX_REQUEST_LENGTH:
        raise ValidationError(f"Request must be at most {settings.MAX_REQUEST_LENGTH} characters")
    return text or None


async def _ensure_slot_free(
    db: AsyncSession,
    resource: Resource,
    day: date,
    start: time,
    duration_hours: int,
    exclude_id: Optional[int] = None,
) -> None:
    spans = spans_of(await active_bookings_on(db, resource.id, day, exclude_id=exclude_id))
    result = check_slot(
        availability_model(resource), busy_set(spans, settings.SLOT_MINUTES), start, duration_hours, settings.SLOT_MINUTES
    )
    if not result.ok:
        logger.info(
            "slot_conflict",
            resource_id=resource.id,
            date=day.isoformat(),
            start=start.isoformat(timespec="minutes"),
            duration_hours=duration_hours,
            busy_bookings=len(spans),
        )
        result.raise_for_status()


async def _ensure_aggregate(
    db: AsyncSession,
    resource: Resource,
    policy: BookingKindPolicy,
    day: date,
    quantity: int,
    exclude_id: Optional[int] = None,
) -> None:
    if not _aggregate_enforced(policy):
        return
    booked = await booked_quantity(db, resource.id, _aggregate_day(policy, day), exclude_id=exclude_id)
    validate_aggregate(quantity, booked, resource.capacity, policy.quantity_label)


async def create_booking(
    db: AsyncSession,
    resource_id: int,
    requester: Actor,
    spec: TemporalSpec,
    quantity: int = 1,
    request_text: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CreatedBooking:
    """
    Create a pending booking after availability, slot and capacity checks.
    The whole check-and-insert runs under the (resource, date) lock.
    """
    started = perf_counter()
    now = now or datetime.now()
    kind = "unknown"

    try:
        status = initial_status(requester.role)
        request_text = _clean_request(request_text)

        async with get_booking_lock().hold(resource_id, spec.booking_date):
            try:
                resource = await get_resource(db, resource_id, for_update=True)
                kind = resource.kind
                policy = policy_for(kind)

                _validate_temporal(policy, spec, now)
                check_availability(resource, spec.booking_date, spec.start_time).raise_for_status()

                if policy.duration_based:
                    await _ensure_slot_free(db, resource, spec.booking_date, spec.start_time, spec.duration_hours)

                warnings = validate_quantity(
                    quantity,
                    resource.capacity,
                    policy.quantity_label,
                    settings.LARGE_PARTY_THRESHOLD if policy.warns_on_large_party else None,
                )
                await _ensure_aggregate(db, resource, policy, spec.booking_date, quantity)

                booking = Booking(
                    kind=kind,
                    resource_id=resource.id,
                    requester_id=requester.id,
                    booking_date=spec.booking_date,
                    start_time=to_hhmm(spec.start_time) if spec.start_time is not None else None,
                    duration_hours=spec.duration_hours,
                    quantity=quantity,
                    status=status.value,
                    request_text=request_text,
                )
                db.add(booking)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        await db.refresh(booking)
    except BookingError as e:
        record_booking_attempt(kind, e.kind)
        logger.warning(
            "booking_rejected",
            resource_id=resource_id,
            requester_id=requester.id,
            kind=kind,
            error=e.kind,
            reason=e.message,
        )
        raise

    booking_latency.observe(perf_counter() - started)
    record_booking_attempt(kind, "created")
    if warnings:
        logger.warning("booking_advisory", booking_id=booking.id, warnings=warnings)
    logger.info(
        "booking_created",
        booking_id=booking.id,
        kind=kind,
        resource_id=resource_id,
        requester_id=requester.id,
        date=spec.booking_date.isoformat(),
        quantity=quantity,
    )
    return CreatedBooking(booking, warnings)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def _authorize(booking: Booking, resource: Resource, actor: Actor) -> None:
    if actor.role is ActorRole.OWNER and resource.owner_id != actor.id:
        raise PermissionDeniedError("Only the resource owner can act on this booking as owner")
    if actor.role is ActorRole.CUSTOMER and booking.requester_id != actor.id:
        raise PermissionDeniedError("Only the requester can act on this booking as customer")


async def _apply(
    db: AsyncSession,
    booking: Booking,
    target,
    action: Action,
    reason: Optional[str],
) -> None:
    values = {"status": target.value, "version": Booking.version + 1}
    if action is Action.REJECT:
        values["rejection_reason"] = reason
    elif action is Action.CANCEL and reason:
        values["cancellation_reason"] = reason

    result = await db.execute(
        update(Booking)
        .where(
            Booking.id == booking.id,
            Booking.version == booking.version,
            Booking.status == booking.status,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise ConflictError("Booking was modified by another request. Please refresh and retry.")

    await db.commit()


async def _revalidate_for_approval(db: AsyncSession, booking: Booking, policy: BookingKindPolicy) -> None:
    """Re-run slot and aggregate checks against the live set, ignoring this booking."""
    resource = await get_resource(db, booking.resource_id, for_update=True)
    if policy.duration_based:
        start = from_hhmm(booking.start_time)
        await _ensure_slot_free(
            db, resource, booking.booking_date, start, booking.duration_hours, exclude_id=booking.id
        )
    await _ensure_aggregate(db, resource, policy, booking.booking_date, booking.quantity, exclude_id=booking.id)


async def transition(
    db: AsyncSession,
    booking_id: int,
    action: Action,
    actor: Actor,
    reason: Optional[str] = None,
) -> Booking:
    """
    Drive one lifecycle move. Approvals of slot- or capacity-bound bookings
    are re-validated under the same lock that guards creation.
    """
    booking = await get_booking(db, booking_id)
    policy = policy_for(booking.kind)
    previous = booking.status
    kind = booking.kind

    try:
        _authorize(booking, booking.resource, actor)
        reason = clean_reason(reason, settings.MAX_REASON_LENGTH)
        target = next_status(policy, booking.booking_status, action, actor.role, reason)

        revalidate = (
            action is Action.APPROVE
            and settings.REVALIDATE_ON_APPROVE
            and (policy.duration_based or _aggregate_enforced(policy))
        )
        if revalidate:
            async with get_booking_lock().hold(booking.resource_id, booking.booking_date):
                try:
                    await _revalidate_for_approval(db, booking, policy)
                    await _apply(db, booking, target, action, reason)
                except Exception:
                    await db.rollback()
                    raise
        else:
            await _apply(db, booking, target, action, reason)
    except BookingError as e:
        record_transition(kind, action.value, applied=False)
        logger.warning(
            "transition_rejected",
            booking_id=booking_id,
            action=action.value,
            actor_id=actor.id,
            role=actor.role.value,
            status=previous,
            error=e.kind,
            reason=e.message,
        )
        raise

    await db.refresh(booking)
    record_transition(kind, action.value, applied=True)
    logger.info(
        "booking_transitioned",
        booking_id=booking.id,
        action=action.value,
        actor_id=actor.id,
        from_status=previous,
        to_status=booking.status,
    )
    return booking
