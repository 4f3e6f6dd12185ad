"""
Resource model: anything that can be booked.

Key design decisions:
- One table for all four kinds, tagged by `kind`
- Continuous kinds (restaurant, service) use open_time/close_time as HHMM
  integers plus closed_weekdays; discrete kinds (activity, event) use
  offered_dates (ISO date strings; an event has exactly one)
- `capacity` is maxPax / capacity / maxCapacity depending on kind
"""

from datetime import date

from sqlalchemy import Column, Integer, String, JSON, Index, CheckConstraint

from reservations.db.base import Base, TimestampMixin


class Resource(Base, TimestampMixin):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    owner_id = Column(Integer, nullable=False, index=True)
    capacity = Column(Integer, nullable=False, default=1)

    # Continuous availability model
    open_time = Column(Integer, nullable=True)
    close_time = Column(Integer, nullable=True)
    closed_weekdays = Column(JSON, nullable=False, default=list)

    # Discrete availability model
    offered_dates = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_resource_capacity_positive"),
        CheckConstraint(
            "kind IN ('restaurant', 'activity', 'event', 'service')",
            name="check_resource_kind",
        ),
        Index("ix_resources_kind", "kind"),
    )

    @property
    def offered_date_values(self) -> list[date]:
        return sorted(date.fromisoformat(d) for d in (self.offered_dates or []))

    def __repr__(self) -> str:
        return f"<Resource(id={self.id}, kind={self.kind}, name={self.name}, capacity={self.capacity})>"
