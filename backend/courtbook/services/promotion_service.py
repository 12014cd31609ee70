# backend/courtbook/services/promotion_service.py
"""
Promotion Service

Validates promotion codes and records their consumption. ``apply`` never
commits: it runs inside the booking transaction so a rejected code rolls the
whole reservation back, and the promotion row stays locked until that
transaction ends.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
import logging
import secrets
import string
from typing import Any, Callable, Dict, Optional, Tuple, cast

from sqlalchemy.orm import Session

from ..core.enums import PROMOTION_REJECTION_MESSAGES, PromotionRejectionReason
from ..core.exceptions import (
    ConflictException,
    DuplicateEntryException,
    NotFoundException,
    PromotionInvalidException,
    ValidationException,
)
from ..models.promotion import Promotion
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.time_utils import ensure_utc, utc_now
from .base import BaseService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
PROMOTION_CODE_ALPHABET = string.ascii_uppercase + string.digits
PROMOTION_CODE_LENGTH = 8


@dataclass
class PromotionVerification:
    promotion: Optional[Promotion] = None
    reason: Optional[PromotionRejectionReason] = None

    @property
    def valid(self) -> bool:
        return self.reason is None and self.promotion is not None

    @property
    def message(self) -> Optional[str]:
        return PROMOTION_REJECTION_MESSAGES[self.reason] if self.reason else None

    def raise_for_reason(self, code: str) -> None:
        if self.reason is not None:
            raise PromotionInvalidException(self.reason.value, self.message or "", code_value=code)


def calculate_discount(original_price: Decimal, discount_percent: Decimal) -> Decimal:
    """Discount in currency units, rounded half-up to the cent."""
    raw = Decimal(original_price) * Decimal(discount_percent) / Decimal(100)
    return raw.quantize(CENT, rounding=ROUND_HALF_UP)


def generate_promotion_code(length: int = PROMOTION_CODE_LENGTH) -> str:
    return "".join(secrets.choice(PROMOTION_CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return code.strip().upper()


class PromotionService(BaseService):
    """Promotion verification, consumption and administration."""

    def __init__(self, db: Session, *, clock: Optional[Callable[[], datetime]] = None):
        super().__init__(db)
        self.repository = RepositoryFactory.create_promotion_repository(db)
        self.usage_repository = RepositoryFactory.create_promotion_usage_repository(db)
        self._clock = clock or utc_now

    @BaseService.measure_operation("verify_promotion")
    def verify(self, code: str, user_id: str, *, for_update: bool = False) -> PromotionVerification:
        """
        Run the eligibility checks in order and stop at the first failure.

        With ``for_update`` the promotion row is locked so the usage-limit
        count stays valid until the caller's transaction ends.
        """
        promotion = self.repository.get_by_code(normalize_code(code), for_update=for_update)
        if promotion is None:
            return PromotionVerification(reason=PromotionRejectionReason.NOT_FOUND)

        if not promotion.is_active:
            return PromotionVerification(promotion, PromotionRejectionReason.INACTIVE)

        now = ensure_utc(self._clock())
        if now < ensure_utc(promotion.start_date):
            return PromotionVerification(promotion, PromotionRejectionReason.NOT_STARTED)
        if now > ensure_utc(promotion.end_date):
            return PromotionVerification(promotion, PromotionRejectionReason.EXPIRED)

        if promotion.user_specific and promotion.specific_user_id != user_id:
            return PromotionVerification(promotion, PromotionRejectionReason.NOT_ELIGIBLE)

        if promotion.usage_limit is not None:
            if self.repository.count_usages(promotion.id) >= promotion.usage_limit:
                return PromotionVerification(promotion, PromotionRejectionReason.LIMIT_REACHED)

        if self.repository.has_user_used(promotion.id, user_id):
            return PromotionVerification(promotion, PromotionRejectionReason.ALREADY_USED)

        return PromotionVerification(promotion)

    def apply(
        self, code: str, user_id: str, booking_id: str, original_price: Decimal
    ) -> Decimal:
        """
        Verify under a row lock and record the usage; returns the discounted price.

        Raises PromotionInvalidException when the code cannot be used.
        """
        verification = self.verify(code, user_id, for_update=True)
        verification.raise_for_reason(code)
        promotion = cast(Promotion, verification.promotion)
        discounted, _ = self.record_usage(promotion, user_id, booking_id, original_price)
        return discounted

    def record_usage(
        self,
        promotion: Promotion,
        user_id: str,
        booking_id: str,
        original_price: Decimal,
    ) -> Tuple[Decimal, Decimal]:
        """Insert the usage row for an already verified promotion."""
        discount = calculate_discount(original_price, promotion.discount_percent)
        try:
            self.usage_repository.create(
                promotion_id=promotion.id,
                user_id=user_id,
                booking_id=booking_id,
                discount_amount=discount,
            )
        except DuplicateEntryException as exc:
            # The unique (promotion, user) key caught a concurrent second use
            reason = PromotionRejectionReason.ALREADY_USED
            raise PromotionInvalidException(
                reason.value, PROMOTION_REJECTION_MESSAGES[reason], code_value=promotion.code
            ) from exc

        prometheus_metrics.inc_promotion_redemption()
        self.logger.info(
            "Promotion applied",
            extra={
                "promotion_code": promotion.code,
                "user_id": user_id,
                "booking_id": booking_id,
                "discount_amount": str(discount),
            },
        )
        return (Decimal(original_price) - discount).quantize(CENT), discount

    @BaseService.measure_operation("create_promotion")
    def create_promotion(
        self,
        *,
        discount_percent: Decimal,
        start_date: datetime,
        end_date: datetime,
        code: Optional[str] = None,
        description: Optional[str] = None,
        is_active: bool = True,
        user_specific: bool = False,
        specific_user_id: Optional[str] = None,
        usage_limit: Optional[int] = None,
    ) -> Promotion:
        percent = Decimal(str(discount_percent))
        if percent <= 0 or percent > 100:
            raise ValidationException("Discount percent must be between 0 and 100")
        if ensure_utc(end_date) < ensure_utc(start_date):
            raise ValidationException("Promotion end date must not precede its start date")
        if user_specific and not specific_user_id:
            raise ValidationException("A user-specific promotion needs a specific_user_id")

        with self.transaction():
            if code:
                code = normalize_code(code)
                if self.repository.code_exists(code):
                    raise ConflictException(
                        "Promotion code already exists", details={"code": code}
                    )
            else:
                code = generate_promotion_code()
                while self.repository.code_exists(code):
                    code = generate_promotion_code()

            promotion = self.repository.create(
                code=code,
                description=description,
                discount_percent=percent,
                start_date=ensure_utc(start_date),
                end_date=ensure_utc(end_date),
                is_active=is_active,
                user_specific=user_specific,
                specific_user_id=specific_user_id if user_specific else None,
                usage_limit=usage_limit,
            )

        self.log_operation("create_promotion", promotion_code=promotion.code)
        return promotion

    @BaseService.measure_operation("get_usage_statistics")
    def get_usage_statistics(self, promotion_id: str) -> Dict[str, Any]:
        promotion = self.repository.get_by_id(promotion_id)
        if promotion is None:
            raise NotFoundException(
                "Promotion not found", code="PROMOTION_NOT_FOUND", details={"id": promotion_id}
            )
        stats = self.repository.usage_statistics(promotion_id)
        remaining = (
            max(promotion.usage_limit - stats["total_usage"], 0)
            if promotion.usage_limit is not None
            else None
        )
        return {"promotion_id": promotion.id, "code": promotion.code, **stats, "remaining": remaining}
