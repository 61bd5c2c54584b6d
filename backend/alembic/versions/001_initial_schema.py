"""Initial schema: users, seats, bookings with partial unique indexes.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_ONLY = sa.text("status = 'active'")


def upgrade() -> None:
    # Users table, keyed by the external identifier
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("identifier", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])
    # Unique: the identity resolver upserts on this column
    op.create_index("ix_users_identifier", "users", ["identifier"], unique=True)

    # Seats table, repopulated from the catalog at startup
    op.create_table(
        "seats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("seat_id", sa.String(10), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False, server_default=sa.text("'seat'")),
        sa.Column("x", sa.Integer(), nullable=True),
        sa.Column("y", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "kind IN ('seat', 'meeting-room', 'quiet', 'touchdown')",
            name="check_seat_kind",
        ),
    )
    op.create_index("ix_seats_id", "seats", ["id"])
    op.create_index("ix_seats_seat_id", "seats", ["seat_id"], unique=True)

    # Bookings table. seat_id is a plain reference, not a foreign key:
    # resetting the catalog must not touch booking history.
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("seat_id", sa.String(10), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('active', 'cancelled', 'expired')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    # PARTIAL UNIQUE INDEXES: the authoritative double-booking guard.
    # Only active rows participate, so cancelled and expired history can
    # pile up for the same seat/day without blocking a new reservation.
    op.create_index(
        "uq_bookings_active_seat_date",
        "bookings",
        ["seat_id", "date"],
        unique=True,
        postgresql_where=ACTIVE_ONLY,
        sqlite_where=ACTIVE_ONLY,
    )
    op.create_index(
        "uq_bookings_active_user_date",
        "bookings",
        ["user_id", "date"],
        unique=True,
        postgresql_where=ACTIVE_ONLY,
        sqlite_where=ACTIVE_ONLY,
    )
    # The expiry sweep scans WHERE status = 'active' AND date < today
    op.create_index("ix_bookings_status_date", "bookings", ["status", "date"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("seats")
    op.drop_table("users")
