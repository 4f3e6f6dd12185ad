"""
Per-kind booking policies.

All four booking kinds share one Booking model and one lifecycle; what
differs between them is captured here:

    kind        availability   time   duration  accepted   cancellable  aggregate
    restaurant  continuous     yes    no        approved   yes          -
    activity    discrete       no     no        confirmed  yes          per date
    event       discrete       no     no        confirmed  no           per resource
    service     continuous     yes    yes       confirmed  yes          -
"""

import enum
from dataclasses import dataclass
from typing import Optional

from reservations.models.enums import BookingStatus, ResourceKind


class AggregateScope(str, enum.Enum):
    DATE = "date"
    RESOURCE = "resource"


@dataclass(frozen=True)
class BookingKindPolicy:
    kind: ResourceKind
    continuous: bool
    duration_based: bool
    accepted_status: BookingStatus
    cancellable: bool
    aggregate_scope: Optional[AggregateScope]
    quantity_label: str
    warns_on_large_party: bool = False
    has_booking_window: bool = False

    @property
    def requires_time(self) -> bool:
        return self.continuous


RESTAURANT = BookingKindPolicy(
    kind=ResourceKind.RESTAURANT,
    continuous=True,
    duration_based=False,
    accepted_status=BookingStatus.APPROVED,
    cancellable=True,
    aggregate_scope=None,
    quantity_label="party size",
    warns_on_large_party=True,
    has_booking_window=True,
)

ACTIVITY = BookingKindPolicy(
    kind=ResourceKind.ACTIVITY,
    continuous=False,
    duration_based=False,
    accepted_status=BookingStatus.CONFIRMED,
    cancellable=True,
    aggregate_scope=AggregateScope.DATE,
    quantity_label="participants",
)

# All event sales are final
EVENT = BookingKindPolicy(
    kind=ResourceKind.EVENT,
    continuous=False,
    duration_based=False,
    accepted_status=BookingStatus.CONFIRMED,
    cancellable=False,
    aggregate_scope=AggregateScope.RESOURCE,
    quantity_label="ticket quantity",
)

SERVICE = BookingKindPolicy(
    kind=ResourceKind.SERVICE,
    continuous=True,
    duration_based=True,
    accepted_status=BookingStatus.CONFIRMED,
    cancellable=True,
    aggregate_scope=None,
    quantity_label="quantity",
)

POLICIES = {policy.kind: policy for policy in (RESTAURANT, ACTIVITY, EVENT, SERVICE)}


def policy_for(kind) -> BookingKindPolicy:
    return POLICIES[ResourceKind(kind)]
