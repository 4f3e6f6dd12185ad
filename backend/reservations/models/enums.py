"""
Shared enumerations for resources and bookings.
"""

import enum


class ResourceKind(str, enum.Enum):
    RESTAURANT = "restaurant"
    ACTIVITY = "activity"
    EVENT = "event"
    SERVICE = "service"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"  # restaurants
    CONFIRMED = "confirmed"  # activities, events, services
    REJECTED = "rejected"
    CANCELLED = "cancelled"


ACCEPTED_STATUSES = frozenset({BookingStatus.APPROVED, BookingStatus.CONFIRMED})

# Bookings in these states occupy slots and capacity
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, *ACCEPTED_STATUSES})

TERMINAL_STATUSES = frozenset({BookingStatus.REJECTED, BookingStatus.CANCELLED})

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
