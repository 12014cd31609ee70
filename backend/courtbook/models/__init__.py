# backend/courtbook/models/__init__.py
"""
SQLAlchemy models for the court booking service.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking_join import BookingJoinRequest, BookingPlayer
from .court import Court
from .promotion import Promotion, PromotionUsage
from .reservation import Reservation
from .reward import RewardBalance, RewardLedgerEntry, RewardRule
from .timeslot_lock import TimeslotLock

__all__ = [
    "BookingJoinRequest",
    "BookingPlayer",
    "Court",
    "Promotion",
    "PromotionUsage",
    "Reservation",
    "RewardBalance",
    "RewardLedgerEntry",
    "RewardRule",
    "TimeslotLock",
]
