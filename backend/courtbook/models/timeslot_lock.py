"""Advisory timeslot lock table."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.sql import func
import ulid

from ..database import Base


class TimeslotLock(Base):
    """Short-lived claim on an exact (court, start, end) key."""

    __tablename__ = "timeslot_locks"
    __table_args__ = (
        UniqueConstraint("court_id", "start_time", "end_time", name="uq_timeslot_locks_key"),
        Index("ix_timeslot_locks_expires_at", "expires_at"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    court_id = Column(String(26), ForeignKey("courts.id", ondelete="CASCADE"), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    user_id = Column(String(26), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return (
            f"<TimeslotLock court={self.court_id} {self.start_time}-{self.end_time} "
            f"owner={self.user_id} expires={self.expires_at}>"
        )
