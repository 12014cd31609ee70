# backend/courtbook/repositories/promotion_repository.py
"""Promotion and promotion usage data access."""

from decimal import Decimal
import logging
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.promotion import Promotion, PromotionUsage
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PromotionRepository(BaseRepository[Promotion]):
    def __init__(self, db: Session):
        super().__init__(db, Promotion)

    def get_by_code(self, code: str, *, for_update: bool = False) -> Optional[Promotion]:
        """
        Look up a promotion by its code.

        ``for_update`` holds the row until the transaction ends so concurrent
        bookings cannot both pass the usage-limit check.
        """
        try:
            query = self.db.query(Promotion).filter(Promotion.code == code)
            if for_update:
                query = query.with_for_update().populate_existing()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting promotion by code: {str(e)}")
            raise RepositoryException(f"Failed to retrieve promotion: {str(e)}") from e

    def code_exists(self, code: str) -> bool:
        return self.exists(code=code)

    def count_usages(self, promotion_id: str) -> int:
        try:
            return (
                self.db.query(PromotionUsage)
                .filter(PromotionUsage.promotion_id == promotion_id)
                .count()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting promotion usages: {str(e)}")
            raise RepositoryException(f"Failed to count promotion usages: {str(e)}") from e

    def has_user_used(self, promotion_id: str, user_id: str) -> bool:
        try:
            return (
                self.db.query(PromotionUsage.id)
                .filter(
                    PromotionUsage.promotion_id == promotion_id,
                    PromotionUsage.user_id == user_id,
                )
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking promotion usage: {str(e)}")
            raise RepositoryException(f"Failed to check promotion usage: {str(e)}") from e

    def usage_statistics(self, promotion_id: str) -> Dict[str, Any]:
        try:
            total_usage, unique_users, total_discount = (
                self.db.query(
                    func.count(PromotionUsage.id),
                    func.count(func.distinct(PromotionUsage.user_id)),
                    func.coalesce(func.sum(PromotionUsage.discount_amount), 0),
                )
                .filter(PromotionUsage.promotion_id == promotion_id)
                .one()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error aggregating promotion usage: {str(e)}")
            raise RepositoryException(f"Failed to aggregate promotion usage: {str(e)}") from e

        return {
            "total_usage": int(total_usage or 0),
            "unique_users": int(unique_users or 0),
            "total_discount": Decimal(str(total_discount or 0)).quantize(Decimal("0.01")),
        }


class PromotionUsageRepository(BaseRepository[PromotionUsage]):
    def __init__(self, db: Session):
        super().__init__(db, PromotionUsage)
