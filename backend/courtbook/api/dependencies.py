# backend/courtbook/api/dependencies.py
"""
Dependency providers for the API layer.

Services are built per request around the request's database session.
The timeslot lock manager is process-wide and opens its own sessions.
"""

from functools import lru_cache
import logging
from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ..core.exceptions import UnauthorizedException
from ..core.timeslot_lock import TimeslotLockManager
from ..core.ulid_helper import is_valid_ulid
from ..database import SessionLocal, get_db as original_get_db
from ..services.booking_service import BookingService
from ..services.join_service import JoinService
from ..services.notification_service import NotificationService
from ..services.promotion_service import PromotionService
from ..services.reward_service import RewardService

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields:
        Database session that will be closed after use
    """
    yield from original_get_db()


def get_current_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> str:
    """Opaque caller id supplied by the upstream user directory."""
    if not x_user_id:
        raise UnauthorizedException("Missing X-User-ID header", code="MISSING_USER_ID").to_http_exception()
    user_id = x_user_id.strip()
    if not is_valid_ulid(user_id):
        raise UnauthorizedException("Invalid X-User-ID header", code="INVALID_USER_ID").to_http_exception()
    return user_id


@lru_cache(maxsize=1)
def get_lock_manager() -> TimeslotLockManager:
    return TimeslotLockManager(SessionLocal)


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    return NotificationService()


def get_promotion_service(db: Session = Depends(get_db)) -> PromotionService:
    return PromotionService(db)


def get_reward_service(db: Session = Depends(get_db)) -> RewardService:
    return RewardService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    lock_manager: TimeslotLockManager = Depends(get_lock_manager),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    return BookingService(db, lock_manager, notification_service=notification_service)


def get_join_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> JoinService:
    return JoinService(db, notification_service=notification_service)
