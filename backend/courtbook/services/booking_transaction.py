# backend/courtbook/services/booking_transaction.py
"""
Booking Transaction Coordinator

The single place where a reservation row is written. Everything that decides
whether the row may exist happens inside one database transaction:

1. bound the transaction with statement/lock timeouts (PostgreSQL)
2. lock the court row, which queues concurrent bookings for the same court
3. reject if any non-cancelled reservation overlaps [start, end)
4. price the slot and, when a code is given, verify and consume it
5. insert the reservation as ``pending`` (plus the booker as first player
   of a shared booking) and commit

Any failure rolls the whole transaction back, promotion usage included.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ReservationStatus
from ..core.exceptions import (
    CourtNotFoundException,
    CourtUnavailableException,
    SlotTakenException,
    ValidationException,
)
from ..database.session_utils import apply_transaction_timeouts
from ..models.promotion import Promotion
from ..models.reservation import Reservation
from ..repositories.factory import RepositoryFactory
from ..utils.time_utils import ensure_utc
from .base import BaseService
from .promotion_service import PromotionService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass
class BookingRequest:
    court_id: str
    user_id: str
    start_time: datetime
    end_time: datetime
    promotion_code: Optional[str] = None
    current_players: int = 1
    needed_players: int = 4
    allow_join: bool = False


@dataclass
class BookingOutcome:
    reservation: Reservation
    original_price: Decimal
    discount_amount: Decimal = Decimal("0.00")
    promotion: Optional[Promotion] = None


def calculate_price(hourly_rate: Decimal, start_time: datetime, end_time: datetime) -> Decimal:
    """hourly_rate x duration in hours, rounded half-up to the cent."""
    seconds = Decimal((ensure_utc(end_time) - ensure_utc(start_time)).total_seconds())
    return (Decimal(hourly_rate) * seconds / Decimal(3600)).quantize(CENT, rounding=ROUND_HALF_UP)


class BookingTransactionCoordinator(BaseService):
    def __init__(
        self,
        db: Session,
        promotion_service: Optional[PromotionService] = None,
        *,
        statement_timeout_ms: Optional[int] = None,
        lock_timeout_ms: Optional[int] = None,
    ):
        super().__init__(db)
        self.court_repository = RepositoryFactory.create_court_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.player_repository = RepositoryFactory.create_booking_player_repository(db)
        self.promotion_service = promotion_service or PromotionService(db)
        self.statement_timeout_ms = (
            statement_timeout_ms
            if statement_timeout_ms is not None
            else settings.booking_statement_timeout_ms
        )
        self.lock_timeout_ms = (
            lock_timeout_ms if lock_timeout_ms is not None else settings.booking_lock_timeout_ms
        )

    @BaseService.measure_operation("create_reservation")
    def create(self, request: BookingRequest) -> BookingOutcome:
        """
        Insert a reservation if the court is open and the interval is free.

        Raises:
            ValidationException: end is not after start
            CourtNotFoundException: unknown court
            CourtUnavailableException: court closed for booking
            SlotTakenException: overlapping non-cancelled reservation exists
            PromotionInvalidException: code rejected (nothing is written)
        """
        start_time = ensure_utc(request.start_time)
        end_time = ensure_utc(request.end_time)
        if end_time <= start_time:
            raise ValidationException(
                "End time must be after start time",
                details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
            )

        with self.transaction():
            apply_transaction_timeouts(
                self.db,
                statement_timeout_ms=self.statement_timeout_ms,
                lock_timeout_ms=self.lock_timeout_ms,
            )

            court = self.court_repository.get_for_update(request.court_id)
            if court is None:
                raise CourtNotFoundException(request.court_id)
            if not court.is_available:
                raise CourtUnavailableException(request.court_id)

            conflicts = self.reservation_repository.find_overlapping(
                request.court_id, start_time, end_time
            )
            if conflicts:
                self.logger.info(
                    "Reservation overlap detected",
                    extra={
                        "court_id": request.court_id,
                        "conflicting_ids": [r.id for r in conflicts],
                    },
                )
                raise SlotTakenException(
                    details={
                        "court_id": request.court_id,
                        "start_time": start_time.isoformat(),
                        "end_time": end_time.isoformat(),
                    }
                )

            original_price = calculate_price(court.hourly_rate, start_time, end_time)

            promotion: Optional[Promotion] = None
            if request.promotion_code:
                verification = self.promotion_service.verify(
                    request.promotion_code, request.user_id, for_update=True
                )
                verification.raise_for_reason(request.promotion_code)
                promotion = verification.promotion

            reservation = self.reservation_repository.create(
                court_id=request.court_id,
                user_id=request.user_id,
                start_time=start_time,
                end_time=end_time,
                total_price=original_price,
                status=ReservationStatus.PENDING.value,
                current_players=request.current_players,
                needed_players=request.needed_players,
                allow_join=request.allow_join,
            )

            if request.allow_join:
                # The booker is the first player of a shared booking
                self.player_repository.create(
                    booking_id=reservation.id,
                    user_id=request.user_id,
                    is_booker=True,
                    players_count=max(request.current_players, 1),
                )

            outcome = BookingOutcome(reservation=reservation, original_price=original_price)

            if promotion is not None:
                # Usage row references the reservation, so it is written after the insert
                discounted, discount = self.promotion_service.record_usage(
                    promotion, request.user_id, reservation.id, original_price
                )
                reservation.total_price = discounted
                self.reservation_repository.flush()
                outcome.discount_amount = discount
                outcome.promotion = promotion

        self.logger.info(
            "Reservation created",
            extra={
                "reservation_id": reservation.id,
                "court_id": reservation.court_id,
                "user_id": reservation.user_id,
                "total_price": str(reservation.total_price),
            },
        )
        return outcome
