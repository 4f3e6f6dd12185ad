"""
Resource directory: create, read and list bookable resources.
"""

from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from reservations.core.exceptions import NotFoundError, ValidationError
from reservations.core.logging import get_logger
from reservations.models.enums import ResourceKind
from reservations.models.resource import Resource
from reservations.schemas.resource import ResourceCreate
from reservations.services.kinds import policy_for
from reservations.utils.time_utils import to_hhmm

logger = get_logger(__name__)

SERVICE_CAPACITY = 1


def _validate_model(data: ResourceCreate) -> None:
    policy = policy_for(data.kind)

    if policy.continuous:
        if data.open_time is None or data.close_time is None:
            raise ValidationError(f"A {data.kind.value} needs open_time and close_time")
        if data.close_time < data.open_time:
            # Overnight hours are not supported by the availability calculator
            raise ValidationError("close_time must not be earlier than open_time")
        if data.offered_dates:
            raise ValidationError(f"A {data.kind.value} uses operating hours, not offered_dates")
    else:
        if not data.offered_dates:
            raise ValidationError(f"An {data.kind.value} needs at least one offered date")
        if data.kind is ResourceKind.EVENT and len(data.offered_dates) != 1:
            raise ValidationError("An event takes place on exactly one date")
        if data.open_time is not None or data.close_time is not None or data.closed_weekdays:
            raise ValidationError(f"A {data.kind.value} uses offered_dates, not operating hours")


async def create_resource(db: AsyncSession, data: ResourceCreate, owner_id: int) -> Resource:
    """Create a new resource owned by the acting owner."""
    _validate_model(data)
    policy = policy_for(data.kind)

    resource = Resource(
        kind=data.kind.value,
        name=data.name,
        description=data.description,
        owner_id=owner_id,
        capacity=SERVICE_CAPACITY if data.kind is ResourceKind.SERVICE else data.capacity,
        open_time=to_hhmm(data.open_time) if policy.continuous else None,
        close_time=to_hhmm(data.close_time) if policy.continuous else None,
        closed_weekdays=list(data.closed_weekdays),
        offered_dates=[d.isoformat() for d in data.offered_dates],
    )
    db.add(resource)
    await db.flush()
    await db.refresh(resource)

    logger.info(
        "resource_created",
        resource_id=resource.id,
        kind=resource.kind,
        owner_id=owner_id,
        capacity=resource.capacity,
    )
    return resource


async def get_resource(db: AsyncSession, resource_id: int, for_update: bool = False) -> Resource:
    """
    Get a single resource by ID. With for_update the row stays locked until
    the transaction ends (PostgreSQL; SQLite ignores the clause).
    """
    query = select(Resource).where(Resource.id == resource_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    resource = result.scalar_one_or_none()

    if not resource:
        raise NotFoundError(f"Resource {resource_id} not found")
    return resource


async def list_resources(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    kind: Optional[ResourceKind] = None,
) -> tuple[list[Resource], int]:
    """List resources with pagination, newest first."""
    query = select(Resource)

    if kind is not None:
        query = query.where(Resource.kind == kind.value)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    resources_query = (
        query
        .order_by(Resource.created_at.desc(), Resource.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(resources_query)
    resources = list(result.scalars().all())

    return resources, total
