# backend/courtbook/repositories/reservation_repository.py
"""
Reservation Repository

Holds the authoritative overlap query used inside the booking transaction,
the per-user lookups the reward rules need, and the listings for court
owners and players looking for a game to join.
"""

from datetime import datetime
from decimal import Decimal
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import ReservationStatus
from ..core.exceptions import RepositoryException
from ..models.reservation import Reservation
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ReservationRepository(BaseRepository[Reservation]):
    def __init__(self, db: Session):
        super().__init__(db, Reservation)

    def find_overlapping(
        self,
        court_id: str,
        start_time: datetime,
        end_time: datetime,
        *,
        exclude_reservation_id: Optional[str] = None,
        lock: bool = True,
    ) -> List[Reservation]:
        """
        Non-cancelled reservations on the court whose interval intersects
        [start_time, end_time).

        With ``lock`` the matching rows are selected FOR UPDATE SKIP LOCKED.
        Rows another transaction holds are skipped; callers must already hold
        the court row lock for the result to be authoritative.
        """
        try:
            query = self.db.query(Reservation).filter(
                Reservation.court_id == court_id,
                Reservation.status != ReservationStatus.CANCELLED.value,
                Reservation.start_time < end_time,
                Reservation.end_time > start_time,
            )
            if exclude_reservation_id:
                query = query.filter(Reservation.id != exclude_reservation_id)
            if lock:
                query = query.with_for_update(skip_locked=True)
            return cast(List[Reservation], query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking overlapping reservations: {str(e)}")
            raise RepositoryException(f"Failed to check reservation overlap: {str(e)}") from e

    def get_for_update(self, reservation_id: str) -> Optional[Reservation]:
        try:
            return (
                self.db.query(Reservation)
                .filter(Reservation.id == reservation_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking reservation {reservation_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock reservation: {str(e)}") from e

    def count_completed_since(self, user_id: str, since: datetime) -> int:
        try:
            return (
                self.db.query(Reservation)
                .filter(
                    Reservation.user_id == user_id,
                    Reservation.status == ReservationStatus.COMPLETED.value,
                    Reservation.completed_at >= since,
                )
                .count()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting completed reservations: {str(e)}")
            raise RepositoryException(f"Failed to count reservations: {str(e)}") from e

    def list_for_user(self, user_id: str, *, limit: int = 50) -> List[Reservation]:
        query = (
            self.db.query(Reservation)
            .filter(Reservation.user_id == user_id)
            .order_by(Reservation.start_time.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def list_for_court(self, court_id: str) -> List[Reservation]:
        query = (
            self.db.query(Reservation)
            .filter(Reservation.court_id == court_id)
            .order_by(Reservation.start_time.desc())
        )
        return self._execute_query(query)

    def list_joinable(
        self,
        now: datetime,
        *,
        starts_from: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        players_needed: int = 1,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Reservation]:
        """
        Confirmed, open-to-join reservations that have not started and still
        have room for ``players_needed`` more players. Soonest first.
        """
        query = self.db.query(Reservation).filter(
            Reservation.allow_join.is_(True),
            Reservation.status == ReservationStatus.CONFIRMED.value,
            Reservation.start_time > now,
            Reservation.needed_players - Reservation.current_players >= max(players_needed, 1),
        )
        if starts_from is not None:
            query = query.filter(Reservation.start_time >= starts_from)
        if starts_before is not None:
            query = query.filter(Reservation.start_time < starts_before)
        if min_price is not None:
            query = query.filter(Reservation.total_price >= min_price)
        if max_price is not None:
            query = query.filter(Reservation.total_price <= max_price)
        query = (
            query.order_by(Reservation.start_time.asc(), Reservation.id.asc())
            .offset(offset)
            .limit(limit)
        )
        return self._execute_query(query)
