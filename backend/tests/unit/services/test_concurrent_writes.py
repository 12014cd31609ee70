"""
Threaded races against the file-backed SQLite database.

SQLite serializes writers on a database lock instead of row locks, so these
check the outcome (one winner, no lost updates) rather than lock behavior.
The PostgreSQL variants live in tests/integration.
"""

from courtbook.core.enums import RewardActionType
from courtbook.core.timeslot_lock import TimeslotLockManager
from courtbook.core.ulid_helper import generate_ulid
from courtbook.models.reservation import Reservation
from courtbook.models.timeslot_lock import TimeslotLock
from courtbook.repositories.factory import RepositoryFactory
from courtbook.services.reward_service import RewardService

from tests.helpers.booking import slot
from tests.helpers.races import race_bookings, run_together

WORKERS = 6


def test_same_slot_has_exactly_one_winner(session_factory, court, db):
    start, end = slot(10)
    attempts = [(generate_ulid(), court.id, start, end, None) for _ in range(WORKERS)]

    outcomes = race_bookings(session_factory, attempts)

    assert outcomes.count("created") == 1
    assert set(outcomes) - {"created"} <= {"SLOT_HELD", "SLOT_TAKEN"}
    assert db.query(Reservation).filter_by(court_id=court.id).count() == 1
    # The winner released its lease after committing
    assert TimeslotLockManager(session_factory).check(court.id, start, end) is None


def test_different_slots_all_succeed(session_factory, court, db):
    attempts = [(generate_ulid(), court.id, *slot(8 + i), None) for i in range(WORKERS)]

    outcomes = race_bookings(session_factory, attempts)

    assert outcomes == ["created"] * WORKERS
    assert db.query(Reservation).count() == WORKERS
    assert db.query(TimeslotLock).count() == 0


def test_first_awards_for_new_user_add_up(session_factory, reward_settings, user_id, db):
    def _award(index):
        session = session_factory()
        try:
            return RewardService(session, config=reward_settings).award_points(
                user_id, RewardActionType.OFF_PEAK_BOOKING, f"race:{index}"
            ).outcome
        finally:
            session.close()

    outcomes = run_together(_award, range(WORKERS))

    assert outcomes == ["awarded"] * WORKERS
    balance = RepositoryFactory.create_reward_repository(db).get_balance(user_id)
    assert balance.points == 20 * WORKERS
