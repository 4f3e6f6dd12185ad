"""
Resource endpoints: directory (cached listing) plus live availability views.
"""

from datetime import date, time
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from reservations.db.session import get_db
from reservations.models.enums import ResourceKind
from reservations.schemas.booking import BookingResponse
from reservations.schemas.resource import (
    AvailabilityResponse,
    CapacityResponse,
    ResourceCreate,
    ResourceListResponse,
    ResourceResponse,
    SlotListResponse,
)
from reservations.services.booking_service import (
    available_slots,
    capacity_summary,
    list_resource_bookings,
    resource_availability,
)
from reservations.services.cache_service import get_cached_resources, set_cached_resources, invalidate_resource_cache
from reservations.services.resource_service import create_resource, get_resource, list_resources
from reservations.core.security import Actor, get_current_actor, require_owner
from reservations.core.logging import get_logger
from reservations.utils.time_utils import format_hhmm, to_hhmm

logger = get_logger(__name__)
router = APIRouter(prefix="/resources", tags=["Resources"])


@router.post("/", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource_endpoint(
    resource_data: ResourceCreate,
    owner: Actor = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    """Register a bookable resource. Owner role required."""
    resource = await create_resource(db, resource_data, owner.id)
    await db.commit()
    await invalidate_resource_cache()
    return resource


@router.get("/", response_model=ResourceListResponse)
async def list_resources_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    kind: Optional[ResourceKind] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    List resources with pagination, optionally filtered by kind.
    Results are cached in Redis; the cache is dropped when a resource is created.
    """
    kind_value = kind.value if kind else None
    cached = await get_cached_resources(page, page_size, kind_value)
    if cached:
        logger.info("resources_list_cache_hit", page=page, kind=kind_value)
        cached["cached"] = True
        return ResourceListResponse(**cached)

    resources, total = await list_resources(db, page, page_size, kind)

    response_data = {
        "resources": [ResourceResponse.model_validate(r).model_dump(mode="json") for r in resources],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_resources(page, page_size, kind_value, response_data)

    return ResourceListResponse(**response_data)


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource_endpoint(
    resource_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await get_resource(db, resource_id)


@router.get("/{resource_id}/availability", response_model=AvailabilityResponse)
async def availability_endpoint(
    resource_id: int,
    booking_date: date = Query(..., alias="date"),
    at: Optional[time] = Query(None, alias="time"),
    duration_hours: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Would a booking at this date (and time) be admissible right now?
    A negative answer is a normal 200 response carrying the reason.
    """
    resource = await get_resource(db, resource_id)
    result = await resource_availability(db, resource, booking_date, at, duration_hours)
    return AvailabilityResponse(
        resource_id=resource.id,
        booking_date=booking_date,
        ok=result.ok,
        reason=result.reason,
        error=result.error_name,
    )


@router.get("/{resource_id}/slots", response_model=SlotListResponse)
async def slots_endpoint(
    resource_id: int,
    booking_date: date = Query(..., alias="date"),
    duration_hours: int = Query(1),
    db: AsyncSession = Depends(get_db),
):
    """Free start times for a service on a date. An empty list means fully booked or closed."""
    resource = await get_resource(db, resource_id)
    slots = await available_slots(db, resource, booking_date, duration_hours)
    return SlotListResponse(
        resource_id=resource.id,
        booking_date=booking_date,
        duration_hours=duration_hours,
        slots=[format_hhmm(to_hhmm(slot)) for slot in slots],
    )


@router.get("/{resource_id}/capacity", response_model=CapacityResponse)
async def capacity_endpoint(
    resource_id: int,
    booking_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Booked and remaining capacity: per date for activities, overall for events."""
    resource = await get_resource(db, resource_id)
    summary = await capacity_summary(db, resource, booking_date)
    return CapacityResponse(
        resource_id=resource.id,
        booking_date=booking_date if resource.kind == ResourceKind.ACTIVITY.value else None,
        capacity=summary.capacity,
        booked=summary.booked,
        remaining=summary.remaining,
        sold_out=summary.sold_out,
    )


@router.get("/{resource_id}/bookings", response_model=list[BookingResponse])
async def resource_bookings_endpoint(
    resource_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """All bookings on a resource. Visible to its owner only."""
    return await list_resource_bookings(db, resource_id, actor)
