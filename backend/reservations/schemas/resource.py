"""
Pydantic schemas for resource-related request/response validation.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from reservations.models.enums import ResourceKind
from reservations.utils.time_utils import format_hhmm, normalize_weekday


class ResourceCreate(BaseModel):
    kind: ResourceKind
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    capacity: int = Field(1, gt=0, le=100000)
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    closed_weekdays: list[str] = Field(default_factory=list)
    offered_dates: list[date] = Field(default_factory=list)

    @field_validator("closed_weekdays")
    @classmethod
    def _normalize_weekdays(cls, value: list[str]) -> list[str]:
        return sorted({normalize_weekday(day) for day in value})

    @field_validator("offered_dates")
    @classmethod
    def _dedupe_dates(cls, value: list[date]) -> list[date]:
        return sorted(set(value))


class ResourceResponse(BaseModel):
    id: int
    kind: str
    name: str
    description: Optional[str]
    owner_id: int
    capacity: int
    open_time: Optional[str]
    close_time: Optional[str]
    closed_weekdays: list[str]
    offered_dates: list[date]
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("open_time", "close_time", mode="before")
    @classmethod
    def _format_hhmm(cls, value):
        if isinstance(value, int):
            return format_hhmm(value)
        return value


class ResourceListResponse(BaseModel):
    resources: list[ResourceResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class AvailabilityResponse(BaseModel):
    resource_id: int
    booking_date: date
    ok: bool
    reason: Optional[str] = None
    error: Optional[str] = None


class SlotListResponse(BaseModel):
    resource_id: int
    booking_date: date
    duration_hours: int
    slots: list[str]


class CapacityResponse(BaseModel):
    resource_id: int
    booking_date: Optional[date]
    capacity: int
    booked: int
    remaining: int
    sold_out: bool
