"""
Booking endpoints: conflict-checked creation and the approve / reject /
cancel lifecycle.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from reservations.db.session import get_db
from reservations.schemas.booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    ReceiptEligibilityResponse,
    TransitionRequest,
)
from reservations.services.booking_service import (
    TemporalSpec,
    create_booking,
    get_booking_for_actor,
    list_owner_bookings,
    list_requester_bookings,
    transition,
)
from reservations.services.lifecycle import Action
from reservations.services.receipt_service import is_receipt_eligible
from reservations.core.security import Actor, get_current_actor, require_owner

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    Request a booking. It starts out pending.

    Availability, slot overlap and capacity are checked under a per-resource,
    per-date lock, so two simultaneous requests for the same slot cannot
    both succeed: the loser gets a 409.
    """
    created = await create_booking(
        db,
        booking_data.resource_id,
        actor,
        TemporalSpec(
            booking_date=booking_data.booking_date,
            start_time=booking_data.start_time,
            duration_hours=booking_data.duration_hours,
        ),
        quantity=booking_data.quantity,
        request_text=booking_data.request_text,
    )
    response = BookingCreateResponse.model_validate(created.booking)
    response.warnings = created.warnings
    return response


@router.get("/", response_model=list[BookingResponse])
async def list_my_bookings(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Bookings the acting customer has made."""
    return await list_requester_bookings(db, actor.id)


@router.get("/owner", response_model=list[BookingResponse])
async def list_owner_bookings_endpoint(
    owner: Actor = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    """Bookings across all resources the acting owner runs."""
    return await list_owner_bookings(db, owner.id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await get_booking_for_actor(db, booking_id, actor)


@router.post("/{booking_id}/approve", response_model=BookingResponse)
async def approve_booking_endpoint(
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Owner accepts a pending booking (approved for restaurants, confirmed otherwise)."""
    return await transition(db, booking_id, Action.APPROVE, actor)


@router.post("/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking_endpoint(
    booking_id: int,
    body: TransitionRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Owner declines a pending booking. A reason is required."""
    return await transition(db, booking_id, Action.REJECT, actor, body.reason)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    body: Optional[TransitionRequest] = None,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking. Owners must give a reason; event bookings are final."""
    return await transition(db, booking_id, Action.CANCEL, actor, body.reason if body else None)


@router.get("/{booking_id}/receipt-eligibility", response_model=ReceiptEligibilityResponse)
async def receipt_eligibility_endpoint(
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    booking = await get_booking_for_actor(db, booking_id, actor)
    return ReceiptEligibilityResponse(
        booking_id=booking.id,
        status=booking.status,
        eligible=is_receipt_eligible(booking),
    )
