# backend/courtbook/core/enums.py
"""Enumerations shared across models, services and schemas."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Lifecycle of a court reservation."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class RewardActionType(str, Enum):
    """Typed reasons a ledger entry is written."""

    BOOKING_COMPLETED = "booking_completed"
    FIRST_BOOKING = "first_booking"
    OFF_PEAK_BOOKING = "off_peak_booking"
    CONSECUTIVE_BOOKINGS = "consecutive_bookings"
    REDEMPTION = "redemption"


class PromotionRejectionReason(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_STARTED = "not_started"
    EXPIRED = "expired"
    NOT_ELIGIBLE = "not_eligible"
    LIMIT_REACHED = "limit_reached"
    ALREADY_USED = "already_used"


PROMOTION_REJECTION_MESSAGES: dict[PromotionRejectionReason, str] = {
    PromotionRejectionReason.NOT_FOUND: "Invalid promotion code",
    PromotionRejectionReason.INACTIVE: "Promotion is not active",
    PromotionRejectionReason.NOT_STARTED: "Promotion has not started yet",
    PromotionRejectionReason.EXPIRED: "Promotion has expired",
    PromotionRejectionReason.NOT_ELIGIBLE: "This promotion code is not valid for your account",
    PromotionRejectionReason.LIMIT_REACHED: "Promotion usage limit has been reached",
    PromotionRejectionReason.ALREADY_USED: "You have already used this promotion",
}


class JoinRequestStatus(str, Enum):
    """Decision state of a request to join someone else's booking."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class JoinRejectionReason(str, Enum):
    NOT_JOINABLE = "not_joinable"
    NOT_CONFIRMED = "not_confirmed"
    FULL = "full"
    OWN_BOOKING = "own_booking"
    ALREADY_REQUESTED = "already_requested"
    ALREADY_PLAYER = "already_player"
    TOO_MANY_PLAYERS = "too_many_players"
    ALREADY_PROCESSED = "already_processed"


JOIN_REJECTION_MESSAGES: dict[JoinRejectionReason, str] = {
    JoinRejectionReason.NOT_JOINABLE: "This booking is not available for joining",
    JoinRejectionReason.NOT_CONFIRMED: "Only confirmed bookings can be joined",
    JoinRejectionReason.FULL: "This booking already has the maximum number of players",
    JoinRejectionReason.OWN_BOOKING: "You cannot join your own booking",
    JoinRejectionReason.ALREADY_REQUESTED: "You already have a request for this booking",
    JoinRejectionReason.ALREADY_PLAYER: "You are already a player in this booking",
}
