# backend/courtbook/services/reward_service.py
"""
Reward Service

Loyalty points are awarded by independent rules after a booking commits.
Each rule runs in its own transaction and is keyed by a unique idempotency
key, so replaying a trigger never double-awards and one failing rule never
blocks another or the booking itself.

Trigger points:
- booking created (pending): first_booking, off_peak_booking
- booking completed: booking_completed, consecutive_bookings
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_FLOOR, Decimal
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.enums import RewardActionType
from ..core.exceptions import DuplicateEntryException, InsufficientPointsException, ValidationException
from ..core.ulid_helper import generate_ulid
from ..models.reservation import Reservation
from ..models.reward import RewardLedgerEntry
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.time_utils import ensure_utc, is_off_peak, month_key, utc_now
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardRuleConfig:
    points: int
    is_percentage: bool = False
    min_amount: Optional[Decimal] = None
    max_points: Optional[int] = None
    description: str = ""


# Built-in rules; a row in reward_rules overrides the entry for its action type
DEFAULT_REWARD_RULES: Dict[RewardActionType, RewardRuleConfig] = {
    RewardActionType.BOOKING_COMPLETED: RewardRuleConfig(
        points=1, is_percentage=True, description="Points for completed booking"
    ),
    RewardActionType.FIRST_BOOKING: RewardRuleConfig(
        points=100, description="Bonus for first booking"
    ),
    RewardActionType.OFF_PEAK_BOOKING: RewardRuleConfig(
        points=20, description="Bonus for off-peak booking"
    ),
    RewardActionType.CONSECUTIVE_BOOKINGS: RewardRuleConfig(
        points=50, description="Bonus for consecutive bookings"
    ),
}


@dataclass
class AwardResult:
    action_type: RewardActionType
    outcome: str  # awarded | skipped | duplicate | error
    points: int = 0
    entry_id: Optional[str] = None


class RewardService(BaseService):
    """Evaluates reward rules and maintains the points ledger."""

    def __init__(
        self,
        db: Session,
        *,
        config: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db)
        self.repository = RepositoryFactory.create_reward_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.config = config or default_settings
        self._clock = clock or utc_now

    # Rule configuration

    def get_rule(self, action_type: RewardActionType) -> Optional[RewardRuleConfig]:
        """Effective rule for an action type, or None when disabled."""
        row = self.repository.get_rule(action_type.value)
        if row is None:
            return DEFAULT_REWARD_RULES.get(action_type)
        if not row.is_active:
            return None
        return RewardRuleConfig(
            points=row.points,
            is_percentage=row.is_percentage,
            min_amount=Decimal(row.min_amount) if row.min_amount is not None else None,
            max_points=row.max_points,
            description=row.description or "",
        )

    def calculate_points(
        self, action_type: RewardActionType, amount: Optional[Decimal] = None
    ) -> int:
        rule = self.get_rule(action_type)
        if rule is None:
            return 0

        if rule.min_amount is not None and (amount is None or Decimal(amount) < rule.min_amount):
            return 0

        if rule.is_percentage:
            if amount is None:
                return 0
            points = int(
                (Decimal(amount) * rule.points / Decimal(100)).to_integral_value(
                    rounding=ROUND_FLOOR
                )
            )
        else:
            points = rule.points

        if rule.max_points is not None:
            points = min(points, rule.max_points)
        return max(points, 0)

    # Core award

    def award_points(
        self,
        user_id: str,
        action_type: RewardActionType,
        idempotency_key: str,
        *,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        source_id: Optional[str] = None,
        source_type: Optional[str] = None,
    ) -> AwardResult:
        """
        Append one ledger entry and bump the balance in a single transaction.

        A key that already exists yields ``duplicate`` and writes nothing.
        """
        try:
            with self.transaction():
                if self.repository.has_idempotency_key(idempotency_key):
                    return AwardResult(action_type, "duplicate")

                points = self.calculate_points(action_type, amount)
                if points <= 0:
                    return AwardResult(action_type, "skipped")

                rule = self.get_rule(action_type)
                entry = self.repository.append_entry(
                    user_id=user_id,
                    points=points,
                    action_type=action_type.value,
                    idempotency_key=idempotency_key,
                    description=description or (rule.description if rule else None),
                    source_id=source_id,
                    source_type=source_type,
                )
                self.repository.increment_balance(user_id, points)
        except DuplicateEntryException:
            # A concurrent trigger inserted the same key first
            return AwardResult(action_type, "duplicate")

        self.logger.info(
            "Reward points awarded",
            extra={
                "user_id": user_id,
                "action_type": action_type.value,
                "points": points,
                "idempotency_key": idempotency_key,
            },
        )
        return AwardResult(action_type, "awarded", points, entry.id)

    def _run_rule(
        self, action_type: RewardActionType, rule: Callable[[], AwardResult]
    ) -> AwardResult:
        try:
            result = rule()
        except Exception as exc:
            self.logger.warning(
                "Reward rule failed",
                extra={
                    "action_type": action_type.value,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            result = AwardResult(action_type, "error")
        prometheus_metrics.record_reward(action_type.value, result.outcome)
        return result

    # Rules

    def _first_booking(self, reservation: Reservation) -> AwardResult:
        action = RewardActionType.FIRST_BOOKING
        # Keyed per user, so the ledger holds at most one entry
        return self.award_points(
            reservation.user_id,
            action,
            f"{action.value}:{reservation.user_id}",
            source_id=reservation.id,
            source_type="reservation",
        )

    def _off_peak(self, reservation: Reservation) -> AwardResult:
        action = RewardActionType.OFF_PEAK_BOOKING
        if not is_off_peak(
            reservation.start_time,
            self.config.local_timezone,
            before_hour=self.config.off_peak_before_hour,
            from_hour=self.config.off_peak_from_hour,
        ):
            return AwardResult(action, "skipped")
        return self.award_points(
            reservation.user_id,
            action,
            f"{action.value}:{reservation.id}",
            source_id=reservation.id,
            source_type="reservation",
        )

    def _booking_completed(self, reservation: Reservation) -> AwardResult:
        action = RewardActionType.BOOKING_COMPLETED
        return self.award_points(
            reservation.user_id,
            action,
            f"{action.value}:{reservation.id}",
            amount=Decimal(reservation.total_price),
            source_id=reservation.id,
            source_type="reservation",
        )

    def _consecutive_bookings(self, reservation: Reservation) -> AwardResult:
        action = RewardActionType.CONSECUTIVE_BOOKINGS
        now = ensure_utc(self._clock())
        since = now - timedelta(days=self.config.consecutive_bookings_window_days)
        completed = self.reservation_repository.count_completed_since(reservation.user_id, since)
        if completed < self.config.consecutive_bookings_threshold:
            return AwardResult(action, "skipped")
        return self.award_points(
            reservation.user_id,
            action,
            f"{action.value}:{reservation.user_id}:{month_key(now)}",
            description=f"Bonus for {completed} bookings in {self.config.consecutive_bookings_window_days} days",
            source_id=reservation.id,
            source_type="reservation",
        )

    # Triggers

    @BaseService.measure_operation("rewards_on_booking_created")
    def on_booking_created(self, reservation: Reservation) -> List[AwardResult]:
        return [
            self._run_rule(RewardActionType.FIRST_BOOKING, lambda: self._first_booking(reservation)),
            self._run_rule(RewardActionType.OFF_PEAK_BOOKING, lambda: self._off_peak(reservation)),
        ]

    @BaseService.measure_operation("rewards_on_booking_completed")
    def on_booking_completed(self, reservation: Reservation) -> List[AwardResult]:
        return [
            self._run_rule(
                RewardActionType.BOOKING_COMPLETED, lambda: self._booking_completed(reservation)
            ),
            self._run_rule(
                RewardActionType.CONSECUTIVE_BOOKINGS,
                lambda: self._consecutive_bookings(reservation),
            ),
        ]

    # Redemption and reporting

    @BaseService.measure_operation("redeem_points")
    def redeem_points(
        self,
        user_id: str,
        points: int,
        *,
        description: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> RewardLedgerEntry:
        if points <= 0:
            raise ValidationException("Points to redeem must be positive", details={"points": points})

        key = idempotency_key or f"{RewardActionType.REDEMPTION.value}:{user_id}:{generate_ulid()}"

        with self.transaction():
            existing = self.repository.find_one_by(idempotency_key=key)
            if existing is not None:
                return existing

            balance = self.repository.get_balance(user_id, for_update=True)
            available = balance.points if balance is not None else 0
            if available < points:
                raise InsufficientPointsException(required=points, available=available)

            entry = self.repository.append_entry(
                user_id=user_id,
                points=-points,
                action_type=RewardActionType.REDEMPTION.value,
                idempotency_key=key,
                description=description or "Points redeemed",
            )
            self.repository.increment_balance(user_id, -points)

        self.log_operation("redeem_points", user_id=user_id, points=points)
        return entry

    def get_balance(self, user_id: str) -> int:
        balance = self.repository.get_balance(user_id)
        return balance.points if balance is not None else 0

    @BaseService.measure_operation("get_reward_summary")
    def get_summary(self, user_id: str, *, history_limit: int = 10) -> Dict[str, Any]:
        totals = self.repository.ledger_totals(user_id)
        history = self.repository.recent_entries(user_id, limit=history_limit)
        return {
            "user_id": user_id,
            "balance": self.get_balance(user_id),
            "total_earned": totals["earned"],
            "total_redeemed": totals["redeemed"],
            "history": history,
        }

    @BaseService.measure_operation("reconcile_balance")
    def reconcile_balance(self, user_id: str) -> int:
        """Recompute the materialized balance from the ledger; returns the new value."""
        with self.transaction():
            totals = self.repository.ledger_totals(user_id)
            expected = totals["earned"] - totals["redeemed"]
            balance = self.repository.get_balance(user_id, for_update=True)
            current = balance.points if balance is not None else 0
            if current != expected:
                self.logger.warning(
                    "Reward balance drift corrected",
                    extra={"user_id": user_id, "stored": current, "ledger": expected},
                )
            self.repository.set_balance(user_id, expected)
        return expected
