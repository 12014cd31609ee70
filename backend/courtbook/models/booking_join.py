# backend/courtbook/models/booking_join.py
"""
Shared bookings: the players on a reservation and requests to join one.

A booker who opens a reservation for joining is recorded as its first
player. Other users ask to join with a ``BookingJoinRequest``; approving it
adds a ``BookingPlayer`` row and raises ``Reservation.current_players``.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func
import ulid

from ..core.enums import JoinRequestStatus
from ..database import Base


class BookingPlayer(Base):
    __tablename__ = "booking_players"
    __table_args__ = (
        UniqueConstraint("booking_id", "user_id", name="uq_booking_players_booking_user"),
        CheckConstraint("players_count > 0", name="check_booking_player_count_positive"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("reservations.id"), nullable=False, index=True)
    user_id = Column(String(26), nullable=False, index=True)
    is_booker = Column(Boolean, nullable=False, default=False)
    players_count = Column(Integer, nullable=False, default=1)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<BookingPlayer booking={self.booking_id} user={self.user_id} x{self.players_count}>"


class BookingJoinRequest(Base):
    __tablename__ = "booking_join_requests"
    __table_args__ = (
        # One request per user and booking, whatever its outcome
        UniqueConstraint("booking_id", "user_id", name="uq_booking_join_requests_booking_user"),
        CheckConstraint("players_count > 0", name="check_join_request_count_positive"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="ck_booking_join_requests_status"
        ),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("reservations.id"), nullable=False, index=True)
    user_id = Column(String(26), nullable=False, index=True)
    players_count = Column(Integer, nullable=False, default=1)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=JoinRequestStatus.PENDING.value)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<BookingJoinRequest {self.id}: booking={self.booking_id} status={self.status}>"
