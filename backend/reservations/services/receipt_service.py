"""
Receipt eligibility gate, consumed by the external receipt generator.
"""

from reservations.models.booking import Booking
from reservations.models.enums import ACCEPTED_STATUSES


def is_receipt_eligible(booking: Booking) -> bool:
    return booking.booking_status in ACCEPTED_STATUSES
