# backend/alembic/versions/001_courtbook_core.py
"""Court booking core schema

Revision ID: 001_courtbook_core
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates courts, reservations, advisory timeslot locks, promotions with their
usage records, and the reward ledger with its materialized balances and rule
overrides. The schema is fixed here; the application never introspects it.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_courtbook_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create booking, promotion and reward tables."""
    print("Creating court booking tables...")

    op.create_table(
        "courts",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("owner_id", sa.String(26), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("hourly_rate >= 0", name="check_court_rate_non_negative"),
    )
    op.create_index("ix_courts_id", "courts", ["id"])
    op.create_index("ix_courts_owner_id", "courts", ["owner_id"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("court_id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("current_players", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("needed_players", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("allow_join", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["court_id"], ["courts.id"]),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_reservations_status",
        ),
        sa.CheckConstraint("end_time > start_time", name="check_reservation_time_order"),
        sa.CheckConstraint("total_price >= 0", name="check_reservation_price_non_negative"),
        sa.CheckConstraint("current_players >= 0", name="check_current_players_non_negative"),
        sa.CheckConstraint("needed_players >= 0", name="check_needed_players_non_negative"),
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])
    op.create_index("ix_reservations_status", "reservations", ["status"])
    op.create_index(
        "ix_reservations_court_window", "reservations", ["court_id", "start_time", "end_time"]
    )

    op.create_table(
        "timeslot_locks",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("court_id", sa.String(26), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["court_id"], ["courts.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("court_id", "start_time", "end_time", name="uq_timeslot_locks_key"),
    )
    op.create_index("ix_timeslot_locks_expires_at", "timeslot_locks", ["expires_at"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("user_specific", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("specific_user_id", sa.String(26), nullable=True),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "discount_percent > 0 AND discount_percent <= 100",
            name="check_promotion_discount_range",
        ),
        sa.CheckConstraint("end_date >= start_date", name="check_promotion_date_order"),
        sa.CheckConstraint(
            "usage_limit IS NULL OR usage_limit >= 0", name="check_promotion_usage_limit"
        ),
    )
    op.create_index("ix_promotions_id", "promotions", ["id"])
    op.create_index("ix_promotions_code", "promotions", ["code"], unique=True)

    op.create_table(
        "promotion_usages",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("promotion_id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["promotion_id"], ["promotions.id"]),
        sa.ForeignKeyConstraint(["booking_id"], ["reservations.id"]),
        sa.UniqueConstraint(
            "promotion_id", "user_id", name="uq_promotion_usages_promotion_user"
        ),
    )
    op.create_index("ix_promotion_usages_promotion_id", "promotion_usages", ["promotion_id"])
    op.create_index("ix_promotion_usages_user_id", "promotion_usages", ["user_id"])

    op.create_table(
        "reward_ledger",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("action_type", sa.String(40), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("source_id", sa.String(26), nullable=True),
        sa.Column("source_type", sa.String(40), nullable=True),
        sa.Column("idempotency_key", sa.String(160), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key"),
    )
    op.create_index("ix_reward_ledger_user_id", "reward_ledger", ["user_id"])
    op.create_index("ix_reward_ledger_action_type", "reward_ledger", ["action_type"])
    op.create_index("ix_reward_ledger_user_created", "reward_ledger", ["user_id", "created_at"])

    op.create_table(
        "reward_balances",
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
        sa.CheckConstraint("points >= 0", name="check_reward_balance_non_negative"),
    )

    op.create_table(
        "reward_rules",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("action_type", sa.String(40), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("is_percentage", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("min_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("max_points", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("action_type"),
    )

    print("Court booking tables created")


def downgrade() -> None:
    """Drop court booking tables."""
    print("Dropping court booking tables...")

    op.drop_table("reward_rules")
    op.drop_table("reward_balances")
    op.drop_index("ix_reward_ledger_user_created", table_name="reward_ledger")
    op.drop_index("ix_reward_ledger_action_type", table_name="reward_ledger")
    op.drop_index("ix_reward_ledger_user_id", table_name="reward_ledger")
    op.drop_table("reward_ledger")
    op.drop_index("ix_promotion_usages_user_id", table_name="promotion_usages")
    op.drop_index("ix_promotion_usages_promotion_id", table_name="promotion_usages")
    op.drop_table("promotion_usages")
    op.drop_index("ix_promotions_code", table_name="promotions")
    op.drop_index("ix_promotions_id", table_name="promotions")
    op.drop_table("promotions")
    op.drop_index("ix_timeslot_locks_expires_at", table_name="timeslot_locks")
    op.drop_table("timeslot_locks")
    op.drop_index("ix_reservations_court_window", table_name="reservations")
    op.drop_index("ix_reservations_status", table_name="reservations")
    op.drop_index("ix_reservations_user_id", table_name="reservations")
    op.drop_index("ix_reservations_id", table_name="reservations")
    op.drop_table("reservations")
    op.drop_index("ix_courts_owner_id", table_name="courts")
    op.drop_index("ix_courts_id", table_name="courts")
    op.drop_table("courts")
