# backend/courtbook/services/__init__.py
"""Service layer: business logic and transaction boundaries."""

from .base import BaseService
from .booking_service import BookingResult, BookingService
from .booking_transaction import BookingOutcome, BookingRequest, BookingTransactionCoordinator
from .notification_service import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    NotificationService,
)
from .promotion_service import PromotionService, PromotionVerification
from .reward_service import AwardResult, RewardService

__all__ = [
    "AwardResult",
    "BaseService",
    "BookingOutcome",
    "BookingRequest",
    "BookingResult",
    "BookingService",
    "BookingTransactionCoordinator",
    "LoggingNotificationDispatcher",
    "NotificationDispatcher",
    "NotificationService",
    "PromotionService",
    "PromotionVerification",
    "RewardService",
]
