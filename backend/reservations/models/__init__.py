from reservations.models.resource import Resource
from reservations.models.booking import Booking

__all__ = ["Resource", "Booking"]
