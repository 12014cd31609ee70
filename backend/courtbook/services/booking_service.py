# backend/courtbook/services/booking_service.py
"""
Booking Service

Orchestrates a booking request end to end:

    soft lock -> transactional insert (with promotion) -> commit
    -> release soft lock -> reward rules -> notification

Only the transactional step decides the outcome. Rewards and notifications
run after the commit and their failures are logged, never surfaced.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import ReservationStatus
from ..core.exceptions import (
    BusinessRuleException,
    CourtNotFoundException,
    CourtUnavailableException,
    ForbiddenException,
    NotFoundException,
    PromotionInvalidException,
    SlotHeldException,
    SlotTakenException,
    ValidationException,
)
from ..core.timeslot_lock import TimeslotLockManager
from ..events.booking_events import BookingCancelled, BookingCreated, BookingStatusChanged
from ..models.reservation import Reservation
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.time_utils import ensure_utc, utc_now
from .base import BaseService
from .booking_transaction import BookingOutcome, BookingRequest, BookingTransactionCoordinator
from .notification_service import NotificationService
from .promotion_service import PromotionService
from .reward_service import AwardResult, RewardService

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {ReservationStatus.CANCELLED.value, ReservationStatus.COMPLETED.value}

_ATTEMPT_RESULTS = {
    SlotHeldException: "slot_held",
    SlotTakenException: "slot_taken",
    CourtNotFoundException: "court_not_found",
    CourtUnavailableException: "court_unavailable",
    PromotionInvalidException: "promotion_invalid",
}


@dataclass
class BookingResult:
    reservation: Reservation
    discount_amount: Decimal
    applied_promotion: Optional[Dict[str, Any]] = None
    rewards: Optional[List[AwardResult]] = None


class BookingService(BaseService):
    def __init__(
        self,
        db: Session,
        lock_manager: TimeslotLockManager,
        *,
        promotion_service: Optional[PromotionService] = None,
        reward_service: Optional[RewardService] = None,
        notification_service: Optional[NotificationService] = None,
        coordinator: Optional[BookingTransactionCoordinator] = None,
    ):
        super().__init__(db)
        self.lock_manager = lock_manager
        self.court_repository = RepositoryFactory.create_court_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.promotion_service = promotion_service or PromotionService(db)
        self.reward_service = reward_service or RewardService(db)
        self.notification_service = notification_service or NotificationService()
        self.coordinator = coordinator or BookingTransactionCoordinator(
            db, promotion_service=self.promotion_service
        )

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        user_id: str,
        court_id: str,
        start_time: datetime,
        end_time: datetime,
        *,
        promotion_code: Optional[str] = None,
        current_players: int = 1,
        needed_players: int = 4,
        allow_join: bool = False,
    ) -> BookingResult:
        start_time, end_time = ensure_utc(start_time), ensure_utc(end_time)
        if end_time <= start_time:
            raise ValidationException("End time must be after start time")

        # Cheap rejection before taking a lock on a court that cannot be booked
        with self.transaction():
            court = self.court_repository.get_by_id(court_id)
            if court is None:
                raise CourtNotFoundException(court_id)
            if not court.is_available:
                raise CourtUnavailableException(court_id)

        request = BookingRequest(
            court_id=court_id,
            user_id=user_id,
            start_time=start_time,
            end_time=end_time,
            promotion_code=promotion_code or None,
            current_players=current_players,
            needed_players=needed_players,
            allow_join=allow_join,
        )

        try:
            with self.lock_manager.lease(court_id, start_time, end_time, user_id):
                outcome = self.coordinator.create(request)
        except tuple(_ATTEMPT_RESULTS) as exc:
            prometheus_metrics.record_booking_attempt(_ATTEMPT_RESULTS[type(exc)])
            self.logger.info(
                "Booking rejected",
                extra={"court_id": court_id, "user_id": user_id, "code": exc.code},
            )
            raise
        except Exception:
            prometheus_metrics.record_booking_attempt("error")
            raise

        prometheus_metrics.record_booking_attempt("created")
        return self._after_create(outcome)

    def _after_create(self, outcome: BookingOutcome) -> BookingResult:
        reservation = outcome.reservation
        rewards = self.reward_service.on_booking_created(reservation)

        promotion = outcome.promotion
        self.notification_service.publish(
            reservation.user_id,
            BookingCreated(
                booking_id=reservation.id,
                court_id=reservation.court_id,
                user_id=reservation.user_id,
                start_time=ensure_utc(reservation.start_time),
                end_time=ensure_utc(reservation.end_time),
                total_price=Decimal(reservation.total_price),
                promotion_code=promotion.code if promotion else None,
            ),
        )

        applied = None
        if promotion is not None:
            applied = {
                "code": promotion.code,
                "discount_percent": Decimal(promotion.discount_percent),
            }
        return BookingResult(
            reservation=reservation,
            discount_amount=outcome.discount_amount,
            applied_promotion=applied,
            rewards=rewards,
        )

    def _get_or_404(self, booking_id: str) -> Reservation:
        reservation = self.reservation_repository.get_by_id(booking_id)
        if reservation is None:
            raise NotFoundException(
                "Booking not found", code="BOOKING_NOT_FOUND", details={"booking_id": booking_id}
            )
        return reservation

    def _court_owner_id(self, reservation: Reservation) -> Optional[str]:
        court = self.court_repository.get_by_id(reservation.court_id)
        return court.owner_id if court else None

    @BaseService.measure_operation("get_booking")
    def get_booking(self, booking_id: str, user_id: str) -> Reservation:
        reservation = self._get_or_404(booking_id)
        if user_id not in (reservation.user_id, self._court_owner_id(reservation)):
            raise ForbiddenException("You do not have access to this booking")
        return reservation

    def list_bookings(self, user_id: str, *, limit: int = 50) -> List[Reservation]:
        return self.reservation_repository.list_for_user(user_id, limit=limit)

    def list_court_bookings(self, court_id: str, user_id: str) -> List[Reservation]:
        """Every reservation on a court, latest first. Court owner only."""
        court = self.court_repository.get_by_id(court_id)
        if court is None:
            raise CourtNotFoundException(court_id)
        if court.owner_id != user_id:
            raise ForbiddenException("You are not authorized to view bookings for this court")
        return self.reservation_repository.list_for_court(court_id)

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, user_id: str) -> Reservation:
        with self.transaction():
            reservation = self.reservation_repository.get_for_update(booking_id)
            if reservation is None:
                raise NotFoundException(
                    "Booking not found",
                    code="BOOKING_NOT_FOUND",
                    details={"booking_id": booking_id},
                )
            if reservation.user_id != user_id:
                raise ForbiddenException("Only the customer who made the booking can cancel it")
            if reservation.status == ReservationStatus.CANCELLED.value:
                raise ValidationException("Booking is already cancelled")
            if reservation.status == ReservationStatus.COMPLETED.value:
                raise ValidationException("Cannot cancel a completed booking")
            if ensure_utc(reservation.start_time) <= utc_now():
                raise ValidationException("Cannot cancel a booking that has already started")

            reservation.cancel()

        self.notification_service.publish(
            user_id,
            BookingCancelled(
                booking_id=reservation.id,
                user_id=user_id,
                cancelled_at=ensure_utc(reservation.cancelled_at),
            ),
        )
        return reservation

    @BaseService.measure_operation("update_booking_status")
    def update_status(self, booking_id: str, user_id: str, new_status: str) -> Reservation:
        """
        Move a reservation through its lifecycle. Court owner only.

        Completing a booking triggers the completion-side reward rules.
        """
        try:
            target = ReservationStatus(new_status)
        except ValueError as exc:
            raise ValidationException(
                "Invalid status",
                details={"status": new_status, "allowed": ReservationStatus.values()},
            ) from exc

        with self.transaction():
            reservation = self.reservation_repository.get_for_update(booking_id)
            if reservation is None:
                raise NotFoundException(
                    "Booking not found",
                    code="BOOKING_NOT_FOUND",
                    details={"booking_id": booking_id},
                )
            if self._court_owner_id(reservation) != user_id:
                raise ForbiddenException("Only the court owner can update the booking status")

            old_status = reservation.status
            if old_status in TERMINAL_STATUSES and old_status != target.value:
                raise BusinessRuleException(
                    f"Cannot change a {old_status} booking",
                    code="BOOKING_STATUS_FINAL",
                    details={"status": old_status},
                )

            if target is ReservationStatus.COMPLETED:
                if old_status != target.value:
                    reservation.complete()
            elif target is ReservationStatus.CANCELLED:
                if old_status != target.value:
                    reservation.cancel(reason="court_owner")
            else:
                reservation.status = target.value

        points = 0
        if target is ReservationStatus.COMPLETED and old_status != target.value:
            results = self.reward_service.on_booking_completed(reservation)
            points = sum(r.points for r in results if r.outcome == "awarded")

        self.notification_service.publish(
            reservation.user_id,
            BookingStatusChanged(
                booking_id=reservation.id,
                user_id=reservation.user_id,
                old_status=old_status,
                new_status=target.value,
                points_awarded=points,
            ),
        )
        return reservation
