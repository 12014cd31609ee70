# backend/courtbook/models/reservation.py
"""
Reservation model.

A reservation holds one court for the half-open interval [start_time, end_time).
For any court, at most one reservation whose status is not ``cancelled`` may
contain a given instant; the booking transaction enforces this under a lock on
the court row.
"""

from datetime import datetime, timezone
import logging
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import ReservationStatus
from ..database import Base

logger = logging.getLogger(__name__)


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    court_id = Column(String(26), ForeignKey("courts.id"), nullable=False)
    user_id = Column(String(26), nullable=False, index=True)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value, index=True)

    current_players = Column(Integer, nullable=False, default=1)
    needed_players = Column(Integer, nullable=False, default=4)
    allow_join = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    court = relationship("Court", back_populates="reservations")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_reservations_status",
        ),
        CheckConstraint("end_time > start_time", name="check_reservation_time_order"),
        CheckConstraint("total_price >= 0", name="check_reservation_price_non_negative"),
        CheckConstraint("current_players >= 0", name="check_current_players_non_negative"),
        CheckConstraint("needed_players >= 0", name="check_needed_players_non_negative"),
        Index("ix_reservations_court_window", "court_id", "start_time", "end_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation {self.id}: court={self.court_id}, user={self.user_id}, "
            f"{self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def spots_available(self) -> int:
        return max(0, (self.needed_players or 0) - (self.current_players or 0))

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel this reservation."""
        self.status = ReservationStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        logger.info(f"Reservation {self.id} cancelled", extra={"reason": reason})

    def complete(self) -> None:
        """Mark reservation as completed."""
        self.status = ReservationStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Reservation {self.id} marked as completed")
