# backend/courtbook/models/reward.py
"""
Reward points models.

The ledger is append-only: every award or redemption writes exactly one row,
keyed by a unique idempotency key. ``RewardBalance`` is the materialized sum of
a user's ledger rows and is updated in the same transaction as the append.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func
import ulid

from ..database import Base


class RewardLedgerEntry(Base):
    __tablename__ = "reward_ledger"
    __table_args__ = (Index("ix_reward_ledger_user_created", "user_id", "created_at"),)

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    action_type = Column(String(40), nullable=False, index=True)
    description = Column(Text, nullable=True)
    source_id = Column(String(26), nullable=True)
    source_type = Column(String(40), nullable=True)
    idempotency_key = Column(String(160), nullable=False, unique=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<RewardLedgerEntry {self.action_type} user={self.user_id} points={self.points}>"


class RewardBalance(Base):
    __tablename__ = "reward_balances"
    __table_args__ = (CheckConstraint("points >= 0", name="check_reward_balance_non_negative"),)

    user_id = Column(String(26), primary_key=True)
    points = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<RewardBalance user={self.user_id} points={self.points}>"


class RewardRule(Base):
    """Operator override for the built-in award of one action type."""

    __tablename__ = "reward_rules"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    action_type = Column(String(40), nullable=False, unique=True)
    points = Column(Integer, nullable=False)
    is_percentage = Column(Boolean, nullable=False, default=False)
    min_amount = Column(Numeric(12, 2), nullable=True)
    max_points = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<RewardRule {self.action_type} points={self.points} pct={self.is_percentage}>"
