"""Initial schema: resources and bookings with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "resources",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("open_time", sa.Integer(), nullable=True),
        sa.Column("close_time", sa.Integer(), nullable=True),
        sa.Column("closed_weekdays", sa.JSON(), nullable=False),
        sa.Column("offered_dates", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("capacity > 0", name="check_resource_capacity_positive"),
        sa.CheckConstraint(
            "kind IN ('restaurant', 'activity', 'event', 'service')",
            name="check_resource_kind",
        ),
    )
    op.create_index("ix_resources_id", "resources", ["id"])
    op.create_index("ix_resources_owner_id", "resources", ["owner_id"])
    # Listing filters by kind on every browse request
    op.create_index("ix_resources_kind", "resources", ["kind"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("resource_id", sa.Integer(), sa.ForeignKey("resources.id"), nullable=False),
        sa.Column("requester_id", sa.Integer(), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Integer(), nullable=True),
        sa.Column("duration_hours", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("request_text", sa.String(100), nullable=True),
        sa.Column("cancellation_reason", sa.String(200), nullable=True),
        sa.Column("rejection_reason", sa.String(200), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity > 0", name="check_booking_quantity_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'confirmed', 'rejected', 'cancelled')",
            name="check_booking_status",
        ),
        sa.CheckConstraint(
            "duration_hours IS NULL OR duration_hours > 0",
            name="check_booking_duration_positive",
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_resource_id", "bookings", ["resource_id"])
    op.create_index("ix_bookings_requester_id", "bookings", ["requester_id"])
    # The busy-set and capacity queries filter by resource and date on
    # every create, approve and slot listing
    op.create_index("ix_bookings_resource_date", "bookings", ["resource_id", "booking_date"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("resources")
