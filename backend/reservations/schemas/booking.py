"""
Pydantic schemas for booking-related request/response validation.

Quantity bounds are deliberately not enforced here: the capacity validator
owns them and reports CapacityError rather than a schema error.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from reservations.utils.time_utils import format_hhmm


class BookingCreate(BaseModel):
    resource_id: int
    booking_date: date
    start_time: Optional[time] = None
    duration_hours: Optional[int] = None
    quantity: int = 1
    request_text: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def _local_time_only(cls, value: Optional[time]) -> Optional[time]:
        if value is not None and value.tzinfo is not None:
            raise ValueError("start_time is a local wall-clock time and must not carry a UTC offset")
        return value


class BookingResponse(BaseModel):
    id: int
    kind: str
    resource_id: int
    requester_id: int
    booking_date: date
    start_time: Optional[str]
    duration_hours: Optional[int]
    quantity: int
    status: str
    request_text: Optional[str]
    cancellation_reason: Optional[str]
    rejection_reason: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("start_time", mode="before")
    @classmethod
    def _format_hhmm(cls, value):
        if isinstance(value, int):
            return format_hhmm(value)
        return value


class BookingCreateResponse(BookingResponse):
    warnings: list[str] = Field(default_factory=list)


class TransitionRequest(BaseModel):
    reason: Optional[str] = None


class ReceiptEligibilityResponse(BaseModel):
    booking_id: int
    status: str
    eligible: bool
