"""
Shared fixtures for the court booking test suite.

Every test gets a fresh file-backed SQLite database so that the advisory lock
manager, which opens its own sessions, sees the same data as the test session
without sharing a connection with it.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable

import pytest
from sqlalchemy.orm import Session, sessionmaker

from courtbook.core.config import Settings
from courtbook.core.timeslot_lock import TimeslotLockManager
from courtbook.core.ulid_helper import generate_ulid
from courtbook.database import Base, create_app_engine
import courtbook.models  # noqa: F401
from courtbook.models.court import Court
from courtbook.models.promotion import Promotion
from courtbook.models.reservation import Reservation
from courtbook.services.booking_service import BookingService
from courtbook.services.notification_service import NotificationService
from courtbook.services.reward_service import RewardService

from tests.helpers.booking import MutableClock, RecordingDispatcher


@pytest.fixture
def engine(tmp_path):
    test_engine = create_app_engine(f"sqlite+pysqlite:///{tmp_path / 'courtbook.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    """Session for the test body; fixtures commit what they create."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def reward_settings() -> Settings:
    return Settings(
        _env_file=None,
        local_timezone="UTC",
        off_peak_before_hour=9,
        off_peak_from_hour=20,
        consecutive_bookings_threshold=3,
        consecutive_bookings_window_days=30,
    )


@pytest.fixture
def owner_id() -> str:
    return generate_ulid()


@pytest.fixture
def user_id() -> str:
    return generate_ulid()


@pytest.fixture
def other_user_id() -> str:
    return generate_ulid()


@pytest.fixture
def court(db: Session, owner_id: str) -> Court:
    court = Court(name="Center Court", owner_id=owner_id, hourly_rate=Decimal("100000"))
    db.add(court)
    db.commit()
    return court


@pytest.fixture
def closed_court(db: Session, owner_id: str) -> Court:
    court = Court(
        name="Closed Court", owner_id=owner_id, hourly_rate=Decimal("80000"), is_available=False
    )
    db.add(court)
    db.commit()
    return court


@pytest.fixture
def make_promotion(db: Session) -> Callable[..., Promotion]:
    def _make(code: str = "SAVE10", discount_percent: str = "10", **overrides) -> Promotion:
        now = datetime.now(timezone.utc)
        values = {
            "code": code,
            "discount_percent": Decimal(discount_percent),
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
            "is_active": True,
        }
        values.update(overrides)
        promotion = Promotion(**values)
        db.add(promotion)
        db.commit()
        return promotion

    return _make


@pytest.fixture
def make_reservation(db: Session) -> Callable[..., Reservation]:
    """Insert a reservation directly, bypassing the booking flow."""

    def _make(court: Court, user_id: str, start, end, **overrides) -> Reservation:
        values = {
            "court_id": court.id,
            "user_id": user_id,
            "start_time": start,
            "end_time": end,
            "total_price": Decimal("100000.00"),
            "status": "pending",
        }
        values.update(overrides)
        reservation = Reservation(**values)
        db.add(reservation)
        db.commit()
        return reservation

    return _make


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def lock_manager(session_factory, clock) -> TimeslotLockManager:
    return TimeslotLockManager(session_factory, ttl_seconds=30, clock=clock)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def booking_service(db, lock_manager, dispatcher, reward_settings) -> BookingService:
    return BookingService(
        db,
        lock_manager,
        reward_service=RewardService(db, config=reward_settings),
        notification_service=NotificationService(dispatcher),
    )
