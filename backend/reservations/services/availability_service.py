"""
Availability calculator.

Decides whether a candidate date (and time) is admissible for a resource's
operating model. Pure and synchronous: no I/O, safe to call concurrently.

Two models:
  - ContinuousHours: open/close HHMM plus closed weekdays (restaurants, services)
  - OfferedDates:    an explicit list of dates (activities, events)

Overnight hours (close_time < open_time) are not treated as wrapping past
midnight; comparisons assume same-day ordering, so such a resource admits
no time at all. Resource creation refuses those hours for the same reason.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Type, Union

from reservations.core.exceptions import AvailabilityError, BookingError
from reservations.models.resource import Resource
from reservations.services.kinds import policy_for
from reservations.utils.time_utils import format_hhmm, to_hhmm, weekday_name


@dataclass(frozen=True)
class AvailabilityResult:
    ok: bool
    reason: Optional[str] = None
    error: Optional[Type[BookingError]] = None

    @classmethod
    def accept(cls) -> "AvailabilityResult":
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: str, error: Type[BookingError] = AvailabilityError) -> "AvailabilityResult":
        return cls(ok=False, reason=reason, error=error)

    @property
    def error_name(self) -> Optional[str]:
        return self.error.__name__ if self.error else None

    def raise_for_status(self) -> None:
        if not self.ok:
            raise self.error(self.reason)


@dataclass(frozen=True)
class ContinuousHours:
    open_time: int
    close_time: int
    closed_weekdays: frozenset

    def is_closed_on(self, day: date) -> bool:
        return weekday_name(day) in self.closed_weekdays

    def check(self, day: date, at: Optional[time] = None) -> AvailabilityResult:
        if self.is_closed_on(day):
            return AvailabilityResult.reject(f"Closed on {weekday_name(day)}")
        if at is None:
            # Day-level check only; creating a booking still requires a time
            return AvailabilityResult.accept()

        candidate = to_hhmm(at)
        if candidate < self.open_time or candidate > self.close_time:
            return AvailabilityResult.reject(
                f"Outside operating hours ({format_hhmm(self.open_time)}-{format_hhmm(self.close_time)})"
            )
        return AvailabilityResult.accept()


@dataclass(frozen=True)
class OfferedDates:
    dates: frozenset

    def check(self, day: date, at: Optional[time] = None) -> AvailabilityResult:
        if day not in self.dates:
            return AvailabilityResult.reject(f"{day.isoformat()} is not an offered date")
        return AvailabilityResult.accept()


AvailabilityModel = Union[ContinuousHours, OfferedDates]


def availability_model(resource: Resource) -> AvailabilityModel:
    policy = policy_for(resource.kind)
    if policy.continuous:
        return ContinuousHours(
            open_time=resource.open_time,
            close_time=resource.close_time,
            closed_weekdays=frozenset(resource.closed_weekdays or ()),
        )
    return OfferedDates(dates=frozenset(resource.offered_date_values))


def check_availability(resource: Resource, day: date, at: Optional[time] = None) -> AvailabilityResult:
    """Operating-model check only; busy slots and capacity are not consulted."""
    return availability_model(resource).check(day, at)
