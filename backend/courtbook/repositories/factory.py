# backend/courtbook/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_join_repository import BookingPlayerRepository, JoinRequestRepository
    from .court_repository import CourtRepository
    from .promotion_repository import PromotionRepository, PromotionUsageRepository
    from .reservation_repository import ReservationRepository
    from .reward_repository import RewardRepository
    from .timeslot_lock_repository import TimeslotLockRepository

class RepositoryFactory:
    """
    Factory class for creating repository instances.
    """

    @staticmethod
    def create_court_repository(db: Session) -> "CourtRepository":
        from .court_repository import CourtRepository

        return CourtRepository(db)

    @staticmethod
    def create_reservation_repository(db: Session) -> "ReservationRepository":
        """Create repository for reservation and overlap queries."""
        from .reservation_repository import ReservationRepository

        return ReservationRepository(db)

    @staticmethod
    def create_timeslot_lock_repository(db: Session) -> "TimeslotLockRepository":
        from .timeslot_lock_repository import TimeslotLockRepository

        return TimeslotLockRepository(db)

    @staticmethod
    def create_promotion_repository(db: Session) -> "PromotionRepository":
        from .promotion_repository import PromotionRepository

        return PromotionRepository(db)

    @staticmethod
    def create_promotion_usage_repository(db: Session) -> "PromotionUsageRepository":
        from .promotion_repository import PromotionUsageRepository

        return PromotionUsageRepository(db)

    @staticmethod
    def create_reward_repository(db: Session) -> "RewardRepository":
        """Create repository for the reward ledger, balances and rules."""
        from .reward_repository import RewardRepository

        return RewardRepository(db)

    @staticmethod
    def create_booking_player_repository(db: Session) -> "BookingPlayerRepository":
        from .booking_join_repository import BookingPlayerRepository

        return BookingPlayerRepository(db)

    @staticmethod
    def create_join_request_repository(db: Session) -> "JoinRequestRepository":
        from .booking_join_repository import JoinRequestRepository

        return JoinRequestRepository(db)
