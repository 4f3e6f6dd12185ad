"""
Booking model: one generic reservation shared by all resource kinds.

Key design decisions:
- `kind` copies the resource kind so policies apply without a join
- Status field allows cancellation without deleting records
- `version` column enables optimistic locking for lifecycle transitions
- Composite index on (resource_id, booking_date) serves the busy-set query
"""

from sqlalchemy import Column, Integer, String, Date, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from reservations.db.base import Base, TimestampMixin
from reservations.models.enums import BookingStatus


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False)
    resource_id = Column(Integer, ForeignKey("resources.id"), nullable=False, index=True)
    requester_id = Column(Integer, nullable=False, index=True)

    booking_date = Column(Date, nullable=False)
    start_time = Column(Integer, nullable=True)  # HHMM
    duration_hours = Column(Integer, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    request_text = Column(String(100), nullable=True)
    cancellation_reason = Column(String(200), nullable=True)
    rejection_reason = Column(String(200), nullable=True)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    resource = relationship("Resource", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_booking_quantity_positive"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'confirmed', 'rejected', 'cancelled')",
            name="check_booking_status",
        ),
        CheckConstraint(
            "duration_hours IS NULL OR duration_hours > 0",
            name="check_booking_duration_positive",
        ),
        Index("ix_bookings_resource_date", "resource_id", "booking_date"),
    )

    @property
    def booking_status(self) -> BookingStatus:
        return BookingStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, kind={self.kind}, resource={self.resource_id}, "
            f"date={self.booking_date}, status={self.status})>"
        )
