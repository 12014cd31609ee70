# backend/courtbook/repositories/court_repository.py
"""Read access to the external court catalog."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.court import Court
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CourtRepository(BaseRepository[Court]):
    def __init__(self, db: Session):
        super().__init__(db, Court)

    def get_for_update(self, court_id: str) -> Optional[Court]:
        """
        Fetch a court holding a row lock until the transaction ends.

        Every booking transaction for the same court takes this lock first, so
        they queue behind one another instead of racing on the overlap check.
        """
        try:
            return (
                self.db.query(Court)
                .filter(Court.id == court_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking court {court_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock court: {str(e)}") from e
