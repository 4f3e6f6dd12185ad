"""
Booking lifecycle state machine.

    pending --approve(owner)--> approved | confirmed --cancel--> cancelled
    pending --reject(owner, reason)--> rejected
    pending --cancel(customer | owner with reason)--> cancelled

rejected and cancelled are terminal. Event bookings can never be
cancelled, whatever their status.

This module only decides *whether* a move is legal and where it lands.
Persisting it (and re-validating slots on approve) is the booking
service's job.
"""

import enum
from typing import Optional

from reservations.core.exceptions import PermissionDeniedError, StateTransitionError, ValidationError
from reservations.core.security import ActorRole
from reservations.models.enums import ACCEPTED_STATUSES, BookingStatus, TERMINAL_STATUSES
from reservations.services.kinds import BookingKindPolicy


class Action(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"


ALLOWED_ROLES = {
    Action.APPROVE: {ActorRole.OWNER},
    Action.REJECT: {ActorRole.OWNER},
    Action.CANCEL: {ActorRole.CUSTOMER, ActorRole.OWNER},
}

SOURCE_STATES = {
    Action.APPROVE: {BookingStatus.PENDING},
    Action.REJECT: {BookingStatus.PENDING},
    Action.CANCEL: {BookingStatus.PENDING, *ACCEPTED_STATUSES},
}


def initial_status(role: ActorRole) -> BookingStatus:
    if role is not ActorRole.CUSTOMER:
        raise PermissionDeniedError("Only customers can create bookings")
    return BookingStatus.PENDING


def _reason_required(action: Action, role: ActorRole) -> bool:
    return action is Action.REJECT or (action is Action.CANCEL and role is ActorRole.OWNER)


def clean_reason(reason: Optional[str], max_length: int) -> Optional[str]:
    if reason is None:
        return None
    reason = reason.strip()
    if len(reason) > max_length:
        raise ValidationError(f"Reason must be at most {max_length} characters")
    return reason or None


def next_status(
    policy: BookingKindPolicy,
    current: BookingStatus,
    action: Action,
    role: ActorRole,
    reason: Optional[str] = None,
) -> BookingStatus:
    """Return the target status for a legal move; raise for anything else."""
    if action is Action.CANCEL and not policy.cancellable:
        raise StateTransitionError(f"{policy.kind.value.capitalize()} bookings cannot be cancelled")

    if role not in ALLOWED_ROLES[action]:
        raise PermissionDeniedError(f"A {role.value} cannot {action.value} a booking")

    if current in TERMINAL_STATUSES:
        raise StateTransitionError(f"Cannot {action.value} a booking that is already {current.value}")
    if current not in SOURCE_STATES[action]:
        raise StateTransitionError(f"Cannot {action.value} a booking that is {current.value}")

    if _reason_required(action, role) and not reason:
        raise ValidationError(f"A reason is required to {action.value} a booking")

    if action is Action.APPROVE:
        return policy.accepted_status
    if action is Action.REJECT:
        return BookingStatus.REJECTED
    return BookingStatus.CANCELLED
