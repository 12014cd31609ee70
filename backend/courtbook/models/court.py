# backend/courtbook/models/court.py
"""
Court catalog model.

Courts are managed by a separate catalog; the booking service only reads
them (availability flag and hourly rate) and row-locks them while a
reservation is being written.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Court(Base):
    __tablename__ = "courts"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(120), nullable=False)
    owner_id = Column(String(26), nullable=True, index=True)
    hourly_rate = Column(Numeric(12, 2), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    reservations = relationship("Reservation", back_populates="court")

    __table_args__ = (CheckConstraint("hourly_rate >= 0", name="check_court_rate_non_negative"),)

    def __repr__(self) -> str:
        return f"<Court {self.id}: {self.name} rate={self.hourly_rate} available={self.is_available}>"
