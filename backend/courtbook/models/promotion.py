# backend/courtbook/models/promotion.py
"""Promotion codes and their per-user usage records."""

from datetime import datetime, timezone
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    code = Column(String(32), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    discount_percent = Column(Numeric(5, 2), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Restrict to a single account when user_specific is set
    user_specific = Column(Boolean, nullable=False, default=False)
    specific_user_id = Column(String(26), nullable=True)

    # NULL means unlimited
    usage_limit = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    usages = relationship("PromotionUsage", back_populates="promotion")

    __table_args__ = (
        CheckConstraint(
            "discount_percent > 0 AND discount_percent <= 100",
            name="check_promotion_discount_range",
        ),
        CheckConstraint("end_date >= start_date", name="check_promotion_date_order"),
        CheckConstraint(
            "usage_limit IS NULL OR usage_limit >= 0", name="check_promotion_usage_limit"
        ),
    )

    def __repr__(self) -> str:
        return f"<Promotion {self.code}: {self.discount_percent}% active={self.is_active}>"


class PromotionUsage(Base):
    __tablename__ = "promotion_usages"
    __table_args__ = (
        UniqueConstraint("promotion_id", "user_id", name="uq_promotion_usages_promotion_user"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    promotion_id = Column(String(26), ForeignKey("promotions.id"), nullable=False, index=True)
    user_id = Column(String(26), nullable=False, index=True)
    booking_id = Column(String(26), ForeignKey("reservations.id"), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    promotion = relationship("Promotion", back_populates="usages")

    def __repr__(self) -> str:
        return f"<PromotionUsage promotion={self.promotion_id} user={self.user_id}>"
