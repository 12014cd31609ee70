"""Data access for advisory timeslot locks."""

from datetime import datetime
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.timeslot_lock import TimeslotLock
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TimeslotLockRepository(BaseRepository[TimeslotLock]):
    def __init__(self, db: Session):
        super().__init__(db, TimeslotLock)

    def _key_query(self, court_id: str, start_time: datetime, end_time: datetime):
        return self.db.query(TimeslotLock).filter(
            TimeslotLock.court_id == court_id,
            TimeslotLock.start_time == start_time,
            TimeslotLock.end_time == end_time,
        )

    def get_for_key(
        self, court_id: str, start_time: datetime, end_time: datetime
    ) -> Optional[TimeslotLock]:
        try:
            return self._key_query(court_id, start_time, end_time).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading timeslot lock: {str(e)}")
            raise RepositoryException(f"Failed to read timeslot lock: {str(e)}") from e

    def delete_expired_for_key(
        self, court_id: str, start_time: datetime, end_time: datetime, now: datetime
    ) -> int:
        try:
            return (
                self._key_query(court_id, start_time, end_time)
                .filter(TimeslotLock.expires_at <= now)
                .delete(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error sweeping timeslot lock: {str(e)}")
            raise RepositoryException(f"Failed to sweep timeslot lock: {str(e)}") from e

    def delete_for_owner(
        self, court_id: str, start_time: datetime, end_time: datetime, user_id: str
    ) -> int:
        try:
            return (
                self._key_query(court_id, start_time, end_time)
                .filter(TimeslotLock.user_id == user_id)
                .delete(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error releasing timeslot lock: {str(e)}")
            raise RepositoryException(f"Failed to release timeslot lock: {str(e)}") from e

    def delete_all_expired(self, now: datetime) -> int:
        try:
            return (
                self.db.query(TimeslotLock)
                .filter(TimeslotLock.expires_at <= now)
                .delete(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error purging expired timeslot locks: {str(e)}")
            raise RepositoryException(f"Failed to purge timeslot locks: {str(e)}") from e
