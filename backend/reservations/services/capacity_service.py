"""
Capacity validator.

Per-booking bounds apply to every kind. Aggregate bounds (sum of active
bookings) apply to activities per offered date and to events overall.
"""

from dataclasses import dataclass
from typing import Optional

from reservations.core.exceptions import CapacityError


@dataclass(frozen=True)
class CapacitySummary:
    capacity: int
    booked: int

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.booked, 0)

    @property
    def sold_out(self) -> bool:
        return self.booked >= self.capacity


def validate_quantity(
    quantity: int,
    capacity: int,
    label: str = "quantity",
    advisory_threshold: Optional[int] = None,
) -> list[str]:
    """
    Reject quantities outside [1, capacity]. Returns non-blocking warnings,
    e.g. for large restaurant parties that should call ahead.
    """
    if quantity < 1:
        raise CapacityError(f"{label.capitalize()} must be at least 1")
    if quantity > capacity:
        raise CapacityError(f"{label.capitalize()} of {quantity} exceeds capacity of {capacity}")

    warnings = []
    if advisory_threshold is not None and quantity > advisory_threshold:
        warnings.append(
            f"{label.capitalize()} over {advisory_threshold}: please contact the venue directly for large groups"
        )
    return warnings


def validate_aggregate(quantity: int, already_booked: int, capacity: int, label: str = "quantity") -> None:
    remaining = capacity - already_booked
    if quantity > remaining:
        raise CapacityError(
            f"Not enough capacity. Requested {label}: {quantity}, remaining: {max(remaining, 0)}"
        )
