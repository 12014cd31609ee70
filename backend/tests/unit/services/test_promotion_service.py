"""Promotion verification order, discount math and administration."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from courtbook.core.enums import PromotionRejectionReason
from courtbook.core.exceptions import (
    ConflictException,
    NotFoundException,
    PromotionInvalidException,
    ValidationException,
)
from courtbook.models.promotion import PromotionUsage
from courtbook.services.promotion_service import (
    PromotionService,
    calculate_discount,
    generate_promotion_code,
    normalize_code,
)

from tests.helpers.booking import slot


@pytest.fixture
def service(db):
    return PromotionService(db)


def _use(db, promotion, user_id, reservation, amount="10.00"):
    db.add(
        PromotionUsage(
            promotion_id=promotion.id,
            user_id=user_id,
            booking_id=reservation.id,
            discount_amount=Decimal(amount),
        )
    )
    db.commit()


class TestHelpers:
    def test_calculate_discount_rounds_half_up(self):
        assert calculate_discount(Decimal("100000"), Decimal("10")) == Decimal("10000.00")
        assert calculate_discount(Decimal("33.33"), Decimal("15")) == Decimal("5.00")
        assert calculate_discount(Decimal("0.10"), Decimal("5")) == Decimal("0.01")

    def test_normalize_code(self):
        assert normalize_code("  save10 ") == "SAVE10"

    def test_generated_codes_are_uppercase_alphanumeric(self):
        code = generate_promotion_code()
        assert len(code) == 8
        assert code.isalnum() and code == code.upper()


class TestVerify:
    def test_valid_code(self, service, make_promotion, user_id):
        promotion = make_promotion("SAVE10")

        result = service.verify(" save10 ", user_id)

        assert result.valid is True
        assert result.reason is None
        assert result.message is None
        assert result.promotion.id == promotion.id

    def test_unknown_code(self, service, user_id):
        result = service.verify("MISSING", user_id)
        assert result.valid is False
        assert result.reason is PromotionRejectionReason.NOT_FOUND
        assert result.message == "Invalid promotion code"

    def test_inactive(self, service, make_promotion, user_id):
        make_promotion("OFF", is_active=False)
        assert service.verify("OFF", user_id).reason is PromotionRejectionReason.INACTIVE

    def test_not_started(self, service, make_promotion, user_id):
        now = datetime.now(timezone.utc)
        make_promotion("LATER", start_date=now + timedelta(days=2), end_date=now + timedelta(days=9))
        assert service.verify("LATER", user_id).reason is PromotionRejectionReason.NOT_STARTED

    def test_expired(self, service, make_promotion, user_id):
        now = datetime.now(timezone.utc)
        make_promotion("OLD", start_date=now - timedelta(days=9), end_date=now - timedelta(days=2))
        assert service.verify("OLD", user_id).reason is PromotionRejectionReason.EXPIRED

    def test_inactive_checked_before_dates(self, service, make_promotion, user_id):
        now = datetime.now(timezone.utc)
        make_promotion(
            "BOTH", is_active=False, start_date=now - timedelta(days=9), end_date=now - timedelta(days=2)
        )
        assert service.verify("BOTH", user_id).reason is PromotionRejectionReason.INACTIVE

    def test_user_specific(self, service, make_promotion, user_id, other_user_id):
        make_promotion("MINE", user_specific=True, specific_user_id=user_id)

        assert service.verify("MINE", user_id).valid is True
        assert service.verify("MINE", other_user_id).reason is PromotionRejectionReason.NOT_ELIGIBLE

    def test_limit_reached(
        self, service, db, make_promotion, make_reservation, court, user_id, other_user_id
    ):
        promotion = make_promotion("TWICE", usage_limit=1)
        reservation = make_reservation(court, other_user_id, *slot(10))
        _use(db, promotion, other_user_id, reservation)

        assert service.verify("TWICE", user_id).reason is PromotionRejectionReason.LIMIT_REACHED

    def test_already_used(self, service, db, make_promotion, make_reservation, court, user_id):
        promotion = make_promotion("SAVE10")
        reservation = make_reservation(court, user_id, *slot(10))
        _use(db, promotion, user_id, reservation)

        result = service.verify("SAVE10", user_id)

        assert result.reason is PromotionRejectionReason.ALREADY_USED
        with pytest.raises(PromotionInvalidException) as exc_info:
            result.raise_for_reason("SAVE10")
        assert exc_info.value.details == {"reason": "already_used", "promotion_code": "SAVE10"}

    def test_clock_is_injectable(self, db, make_promotion, user_id):
        promotion = make_promotion("SOON")
        before_start = PromotionService(db, clock=lambda: promotion.start_date - timedelta(hours=1))
        assert before_start.verify("SOON", user_id).reason is PromotionRejectionReason.NOT_STARTED


class TestApply:
    def test_apply_records_usage_and_returns_price(
        self, service, db, make_promotion, make_reservation, court, user_id
    ):
        make_promotion("QUARTER", "25")
        reservation = make_reservation(court, user_id, *slot(10))

        discounted = service.apply("QUARTER", user_id, reservation.id, Decimal("100000.00"))
        db.commit()

        assert discounted == Decimal("75000.00")
        assert db.query(PromotionUsage).count() == 1

    def test_apply_rejected_code_raises(self, service, user_id):
        with pytest.raises(PromotionInvalidException) as exc_info:
            service.apply("NOPE", user_id, "01HZZZZZZZZZZZZZZZZZZZZZZZ", Decimal("10"))
        assert exc_info.value.reason == "not_found"


class TestAdministration:
    def test_create_promotion_normalizes_code(self, service):
        now = datetime.now(timezone.utc)
        promotion = service.create_promotion(
            code=" spring ",
            discount_percent=Decimal("15"),
            start_date=now,
            end_date=now + timedelta(days=7),
        )
        assert promotion.code == "SPRING"

    def test_create_promotion_generates_code(self, service):
        now = datetime.now(timezone.utc)
        promotion = service.create_promotion(
            discount_percent=Decimal("5"), start_date=now, end_date=now + timedelta(days=1)
        )
        assert len(promotion.code) == 8

    def test_duplicate_code_conflicts(self, service, make_promotion):
        make_promotion("TAKEN")
        now = datetime.now(timezone.utc)
        with pytest.raises(ConflictException):
            service.create_promotion(
                code="taken",
                discount_percent=Decimal("5"),
                start_date=now,
                end_date=now + timedelta(days=1),
            )

    @pytest.mark.parametrize("percent", ["0", "-5", "100.5"])
    def test_discount_bounds(self, service, percent):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValidationException):
            service.create_promotion(
                discount_percent=Decimal(percent), start_date=now, end_date=now + timedelta(days=1)
            )

    def test_user_specific_needs_user(self, service):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValidationException):
            service.create_promotion(
                discount_percent=Decimal("5"),
                start_date=now,
                end_date=now + timedelta(days=1),
                user_specific=True,
            )

    def test_usage_statistics(
        self, service, db, make_promotion, make_reservation, court, user_id, other_user_id
    ):
        promotion = make_promotion("STATS", usage_limit=5)
        _use(db, promotion, user_id, make_reservation(court, user_id, *slot(8)), "10.00")
        _use(db, promotion, other_user_id, make_reservation(court, other_user_id, *slot(9)), "2.50")

        stats = service.get_usage_statistics(promotion.id)

        assert stats["total_usage"] == 2
        assert stats["unique_users"] == 2
        assert stats["total_discount"] == Decimal("12.50")
        assert stats["remaining"] == 3

    def test_usage_statistics_unknown(self, service):
        with pytest.raises(NotFoundException):
            service.get_usage_statistics("01HZZZZZZZZZZZZZZZZZZZZZZZ")
