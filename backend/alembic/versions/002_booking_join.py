# backend/alembic/versions/002_booking_join.py
"""Shared bookings: players and join requests

Revision ID: 002_booking_join
Revises: 001_courtbook_core
Create Date: 2026-10-20 00:00:00.000000

Adds the players recorded on a joinable reservation and the requests other
users send to join it. Reservations now default to four needed players.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_booking_join"
down_revision: Union[str, None] = "001_courtbook_core"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create booking_players and booking_join_requests."""
    print("Creating booking join tables...")

    op.alter_column("reservations", "needed_players", server_default="4")

    op.create_table(
        "booking_players",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("is_booker", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("players_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["booking_id"], ["reservations.id"]),
        sa.UniqueConstraint("booking_id", "user_id", name="uq_booking_players_booking_user"),
        sa.CheckConstraint("players_count > 0", name="check_booking_player_count_positive"),
    )
    op.create_index("ix_booking_players_booking_id", "booking_players", ["booking_id"])
    op.create_index("ix_booking_players_user_id", "booking_players", ["user_id"])

    op.create_table(
        "booking_join_requests",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("players_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["booking_id"], ["reservations.id"]),
        sa.UniqueConstraint(
            "booking_id", "user_id", name="uq_booking_join_requests_booking_user"
        ),
        sa.CheckConstraint("players_count > 0", name="check_join_request_count_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_booking_join_requests_status",
        ),
    )
    op.create_index("ix_booking_join_requests_booking_id", "booking_join_requests", ["booking_id"])
    op.create_index("ix_booking_join_requests_user_id", "booking_join_requests", ["user_id"])

    print("Booking join tables created")


def downgrade() -> None:
    """Drop booking join tables."""
    print("Dropping booking join tables...")

    op.drop_index("ix_booking_join_requests_user_id", table_name="booking_join_requests")
    op.drop_index("ix_booking_join_requests_booking_id", table_name="booking_join_requests")
    op.drop_table("booking_join_requests")
    op.drop_index("ix_booking_players_user_id", table_name="booking_players")
    op.drop_index("ix_booking_players_booking_id", table_name="booking_players")
    op.drop_table("booking_players")
    op.alter_column("reservations", "needed_players", server_default="0")
