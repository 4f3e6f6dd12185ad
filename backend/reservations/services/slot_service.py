"""
Slot conflict detector for duration-based resources (services).

ALGORITHM
=========

Time is cut into fixed ticks (30 minutes by default), counted in minutes
since midnight.

  1. Every active booking's [start, start + duration) is expanded into
     ticks; their union is the day's busy set.
  2. The candidate's own [start, start + duration) is expanded the same way.
  3. The candidate is admissible iff none of its ticks is busy and it ends
     no later than closing time.
  4. Offering slots to a client repeats step 3 for every tick from the
     first grid tick at or after opening, yielding sorted start times.

Cost is O(B * D) per date (B bookings that day, D ticks per duration),
which is trivial at per-resource-per-day scale.

A fully booked day yields an empty list. That is a normal answer, not an
error: clients disable submission rather than report a failure.
"""

from datetime import date, time
from typing import Iterable, NamedTuple, Optional

from reservations.core.exceptions import AvailabilityError, ConflictError, ValidationError
from reservations.services.availability_service import AvailabilityResult, ContinuousHours
from reservations.utils.time_utils import format_hhmm, hhmm_to_minutes, minutes_to_time, to_hhmm

DEFAULT_SLOT_MINUTES = 30


class BookedSpan(NamedTuple):
    start_time: int  # HHMM
    duration_hours: int


def spans_of(bookings: Iterable) -> list[BookedSpan]:
    """Reduce Booking rows to the spans the detector needs."""
    return [
        BookedSpan(b.start_time, b.duration_hours)
        for b in bookings
        if b.start_time is not None and b.duration_hours
    ]


def span_ticks(start_minutes: int, duration_hours: int, slot_minutes: int = DEFAULT_SLOT_MINUTES) -> set[int]:
    end = start_minutes + duration_hours * 60
    return set(range(start_minutes, end, slot_minutes))


def busy_set(spans: Iterable[BookedSpan], slot_minutes: int = DEFAULT_SLOT_MINUTES) -> set[int]:
    busy: set[int] = set()
    for span in spans:
        busy |= span_ticks(hhmm_to_minutes(span.start_time), span.duration_hours, slot_minutes)
    return busy


def validate_duration(duration_hours: Optional[int], minimum: int, maximum: int) -> int:
    if duration_hours is None:
        raise ValidationError("duration_hours is required for this resource")
    if not minimum <= duration_hours <= maximum:
        raise ValidationError(f"duration_hours must be between {minimum} and {maximum}")
    return duration_hours


def validate_on_grid(at: time, slot_minutes: int = DEFAULT_SLOT_MINUTES) -> None:
    if at.second or at.microsecond or (at.hour * 60 + at.minute) % slot_minutes:
        raise ValidationError(f"Start time must be on a {slot_minutes}-minute boundary")


def check_slot(
    hours: ContinuousHours,
    busy: set[int],
    start: time,
    duration_hours: int,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> AvailabilityResult:
    """Steps 2-3 for a single candidate against a precomputed busy set."""
    start_minutes = start.hour * 60 + start.minute
    end_minutes = start_minutes + duration_hours * 60

    if end_minutes > hhmm_to_minutes(hours.close_time):
        return AvailabilityResult.reject(
            f"Booking would end after closing time ({format_hhmm(hours.close_time)})",
            AvailabilityError,
        )
    if span_ticks(start_minutes, duration_hours, slot_minutes) & busy:
        return AvailabilityResult.reject(
            f"The {format_hhmm(to_hhmm(start))} slot overlaps an existing booking",
            ConflictError,
        )
    return AvailabilityResult.accept()


def list_available_slots(
    hours: ContinuousHours,
    day: date,
    duration_hours: int,
    spans: Iterable[BookedSpan] = (),
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> list[time]:
    if hours.is_closed_on(day):
        return []

    busy = busy_set(spans, slot_minutes)
    open_minutes = hhmm_to_minutes(hours.open_time)
    close_minutes = hhmm_to_minutes(hours.close_time)
    first_tick = -(-open_minutes // slot_minutes) * slot_minutes

    free = []
    for start in range(first_tick, close_minutes, slot_minutes):
        if start + duration_hours * 60 > close_minutes:
            break
        if not span_ticks(start, duration_hours, slot_minutes) & busy:
            free.append(minutes_to_time(start))
    return free
