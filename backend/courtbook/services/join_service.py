# backend/courtbook/services/join_service.py
"""
Join Service

Lets players fill the open spots of someone else's booking. A booker opens a
reservation with ``allow_join``; once the court owner confirms it, other
users send join requests and the booker approves or rejects them. Approval
adds a player row and raises ``current_players`` in the same transaction,
with the reservation row locked so two approvals cannot overfill it.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
import logging
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.enums import (
    JOIN_REJECTION_MESSAGES,
    JoinRejectionReason,
    JoinRequestStatus,
    ReservationStatus,
)
from ..core.exceptions import (
    DuplicateEntryException,
    ForbiddenException,
    JoinRequestInvalidException,
    NotFoundException,
    ValidationException,
)
from ..events.booking_events import JoinRequestAnswered, JoinRequested
from ..models.booking_join import BookingJoinRequest, BookingPlayer
from ..models.reservation import Reservation
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.time_utils import ensure_utc, local_day_bounds, utc_now
from .base import BaseService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class JoinableBooking:
    reservation: Reservation
    players: List[BookingPlayer]

    @property
    def spots_available(self) -> int:
        return self.reservation.spots_available


def _rejected(reason: JoinRejectionReason, **details) -> JoinRequestInvalidException:
    return JoinRequestInvalidException(
        reason.value, JOIN_REJECTION_MESSAGES[reason], details=details
    )


class JoinService(BaseService):
    def __init__(
        self,
        db: Session,
        *,
        notification_service: Optional[NotificationService] = None,
        config: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.player_repository = RepositoryFactory.create_booking_player_repository(db)
        self.request_repository = RepositoryFactory.create_join_request_repository(db)
        self.notification_service = notification_service or NotificationService()
        self.config = config or default_settings
        self._clock = clock or utc_now

    def _get_booking_or_404(self, booking_id: str, *, for_update: bool = False) -> Reservation:
        if for_update:
            reservation = self.reservation_repository.get_for_update(booking_id)
        else:
            reservation = self.reservation_repository.get_by_id(booking_id)
        if reservation is None:
            raise NotFoundException(
                "Booking not found", code="BOOKING_NOT_FOUND", details={"booking_id": booking_id}
            )
        return reservation

    # Browsing

    def list_joinable(
        self,
        *,
        on_date: Optional[date] = None,
        players_needed: int = 1,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Reservation]:
        """Upcoming confirmed bookings with room for ``players_needed`` more."""
        starts_from = starts_before = None
        if on_date is not None:
            starts_from, starts_before = local_day_bounds(on_date, self.config.local_timezone)
        return self.reservation_repository.list_joinable(
            self._clock(),
            starts_from=starts_from,
            starts_before=starts_before,
            players_needed=players_needed,
            min_price=min_price,
            max_price=max_price,
            limit=limit,
            offset=offset,
        )

    def get_joinable(self, booking_id: str) -> JoinableBooking:
        reservation = self._get_booking_or_404(booking_id)
        if not reservation.allow_join:
            raise _rejected(JoinRejectionReason.NOT_JOINABLE, booking_id=booking_id)
        return JoinableBooking(reservation, self.player_repository.list_for_booking(booking_id))

    # Requests

    @BaseService.measure_operation("request_to_join")
    def request_to_join(
        self,
        user_id: str,
        booking_id: str,
        players_count: int = 1,
        message: Optional[str] = None,
    ) -> BookingJoinRequest:
        """
        Ask the booker for ``players_count`` spots on their booking.

        Raises:
            NotFoundException: unknown booking
            JoinRequestInvalidException: booking closed, full, own booking,
                duplicate request, already a player, or too few spots
        """
        if players_count < 1:
            raise ValidationException("Players count must be at least 1")

        try:
            with self.transaction():
                reservation = self._get_booking_or_404(booking_id, for_update=True)
                self._check_can_request(reservation, user_id, players_count)
                try:
                    join_request = self.request_repository.create(
                        booking_id=booking_id,
                        user_id=user_id,
                        players_count=players_count,
                        message=message,
                        status=JoinRequestStatus.PENDING.value,
                    )
                except DuplicateEntryException as exc:
                    # The unique (booking, user) key caught a concurrent request
                    raise _rejected(
                        JoinRejectionReason.ALREADY_REQUESTED, booking_id=booking_id
                    ) from exc
        except JoinRequestInvalidException:
            prometheus_metrics.record_join_request("invalid")
            raise

        prometheus_metrics.record_join_request("sent")
        self.logger.info(
            "Join request sent",
            extra={"request_id": join_request.id, "booking_id": booking_id, "user_id": user_id},
        )
        self.notification_service.publish(
            reservation.user_id,
            JoinRequested(
                request_id=join_request.id,
                booking_id=booking_id,
                requester_id=user_id,
                players_count=players_count,
                message=message,
            ),
        )
        return join_request

    def _check_can_request(
        self, reservation: Reservation, user_id: str, players_count: int
    ) -> None:
        booking_id = reservation.id
        if not reservation.allow_join:
            raise _rejected(JoinRejectionReason.NOT_JOINABLE, booking_id=booking_id)
        if reservation.status != ReservationStatus.CONFIRMED.value:
            raise _rejected(JoinRejectionReason.NOT_CONFIRMED, status=reservation.status)
        if reservation.spots_available <= 0:
            raise _rejected(JoinRejectionReason.FULL, booking_id=booking_id)
        if reservation.user_id == user_id:
            raise _rejected(JoinRejectionReason.OWN_BOOKING, booking_id=booking_id)
        if self.request_repository.exists_for(booking_id, user_id):
            raise _rejected(JoinRejectionReason.ALREADY_REQUESTED, booking_id=booking_id)
        if self.player_repository.exists_for(booking_id, user_id):
            raise _rejected(JoinRejectionReason.ALREADY_PLAYER, booking_id=booking_id)

        spots = reservation.spots_available
        if players_count > spots:
            raise JoinRequestInvalidException(
                JoinRejectionReason.TOO_MANY_PLAYERS.value,
                f"Only {spots} spots available. Please reduce the number of players.",
                details={"spots_available": spots, "players_count": players_count},
            )

    def list_requests_for_booking(self, booking_id: str, user_id: str) -> List[BookingJoinRequest]:
        reservation = self._get_booking_or_404(booking_id)
        if reservation.user_id != user_id:
            raise ForbiddenException(
                "You are not authorized to view join requests for this booking"
            )
        return self.request_repository.list_for_booking(booking_id)

    def list_user_requests(self, user_id: str) -> List[BookingJoinRequest]:
        return self.request_repository.list_for_user(user_id)

    @BaseService.measure_operation("respond_to_join_request")
    def respond(self, request_id: str, user_id: str, status: str) -> BookingJoinRequest:
        """
        Approve or reject a pending request. Booker only.

        Approving more players than there are spots left rejects the request
        instead and raises.
        """
        try:
            decision = JoinRequestStatus(status)
        except ValueError as exc:
            raise ValidationException(
                'Status must be either "approved" or "rejected"', details={"status": status}
            ) from exc
        if decision is JoinRequestStatus.PENDING:
            raise ValidationException(
                'Status must be either "approved" or "rejected"', details={"status": status}
            )

        overfilled: Optional[int] = None
        with self.transaction():
            join_request = self.request_repository.get_for_update(request_id)
            if join_request is None:
                raise NotFoundException(
                    "Join request not found",
                    code="JOIN_REQUEST_NOT_FOUND",
                    details={"request_id": request_id},
                )
            reservation = self._get_booking_or_404(join_request.booking_id, for_update=True)
            if reservation.user_id != user_id:
                raise ForbiddenException("You are not authorized to respond to this join request")
            if join_request.status != JoinRequestStatus.PENDING.value:
                raise JoinRequestInvalidException(
                    JoinRejectionReason.ALREADY_PROCESSED.value,
                    f"This request has already been {join_request.status}",
                    details={"status": join_request.status},
                )

            if decision is JoinRequestStatus.APPROVED:
                spots = reservation.spots_available
                if join_request.players_count > spots:
                    # Recorded as rejected; committed before the error is raised
                    join_request.status = JoinRequestStatus.REJECTED.value
                    overfilled = spots
                else:
                    self.player_repository.create(
                        booking_id=reservation.id,
                        user_id=join_request.user_id,
                        is_booker=False,
                        players_count=join_request.players_count,
                    )
                    reservation.current_players = (
                        reservation.current_players or 0
                    ) + join_request.players_count
                    join_request.status = decision.value
            else:
                join_request.status = decision.value

        if overfilled is not None:
            prometheus_metrics.record_join_request("rejected")
            raise JoinRequestInvalidException(
                JoinRejectionReason.TOO_MANY_PLAYERS.value,
                f"Not enough spots available. Only {overfilled} spots left.",
                details={"spots_available": overfilled, "players_count": join_request.players_count},
            )

        prometheus_metrics.record_join_request(decision.value)
        self.logger.info(
            "Join request answered",
            extra={
                "request_id": request_id,
                "booking_id": reservation.id,
                "status": decision.value,
            },
        )
        self.notification_service.publish(
            join_request.user_id,
            JoinRequestAnswered(
                request_id=join_request.id,
                booking_id=reservation.id,
                status=decision.value,
                start_time=ensure_utc(reservation.start_time),
            ),
        )
        return join_request
