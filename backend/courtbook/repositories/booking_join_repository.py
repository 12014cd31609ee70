# backend/courtbook/repositories/booking_join_repository.py
"""Players on shared bookings and the requests to join them."""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking_join import BookingJoinRequest, BookingPlayer
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingPlayerRepository(BaseRepository[BookingPlayer]):
    def __init__(self, db: Session):
        super().__init__(db, BookingPlayer)

    def list_for_booking(self, booking_id: str) -> List[BookingPlayer]:
        """Booker first, then players in the order they joined."""
        query = (
            self.db.query(BookingPlayer)
            .filter(BookingPlayer.booking_id == booking_id)
            .order_by(BookingPlayer.is_booker.desc(), BookingPlayer.created_at.asc())
        )
        return self._execute_query(query)

    def exists_for(self, booking_id: str, user_id: str) -> bool:
        return self.exists(booking_id=booking_id, user_id=user_id)


class JoinRequestRepository(BaseRepository[BookingJoinRequest]):
    def __init__(self, db: Session):
        super().__init__(db, BookingJoinRequest)

    def exists_for(self, booking_id: str, user_id: str) -> bool:
        return self.exists(booking_id=booking_id, user_id=user_id)

    def get_for_update(self, request_id: str) -> Optional[BookingJoinRequest]:
        try:
            return (
                self.db.query(BookingJoinRequest)
                .filter(BookingJoinRequest.id == request_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking join request {request_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock join request: {str(e)}") from e

    def list_for_booking(self, booking_id: str) -> List[BookingJoinRequest]:
        query = (
            self.db.query(BookingJoinRequest)
            .filter(BookingJoinRequest.booking_id == booking_id)
            .order_by(BookingJoinRequest.created_at.desc(), BookingJoinRequest.id.desc())
        )
        return self._execute_query(query)

    def list_for_user(self, user_id: str) -> List[BookingJoinRequest]:
        query = (
            self.db.query(BookingJoinRequest)
            .filter(BookingJoinRequest.user_id == user_id)
            .order_by(BookingJoinRequest.created_at.desc(), BookingJoinRequest.id.desc())
        )
        return self._execute_query(query)
