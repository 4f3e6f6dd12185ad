from reservations.schemas.resource import (
    ResourceCreate, ResourceResponse, ResourceListResponse,
    AvailabilityResponse, SlotListResponse, CapacityResponse,
)
from reservations.schemas.booking import (
    BookingCreate, BookingResponse, BookingCreateResponse,
    TransitionRequest, ReceiptEligibilityResponse,
)

__all__ = [
    "ResourceCreate", "ResourceResponse", "ResourceListResponse",
    "AvailabilityResponse", "SlotListResponse", "CapacityResponse",
    "BookingCreate", "BookingResponse", "BookingCreateResponse",
    "TransitionRequest", "ReceiptEligibilityResponse",
]
