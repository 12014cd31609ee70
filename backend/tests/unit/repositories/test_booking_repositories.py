from datetime import timedelta

import pytest

from courtbook.core.exceptions import DuplicateEntryException
from courtbook.repositories.factory import RepositoryFactory

from tests.helpers.booking import slot


class TestReservationRepository:
    def test_find_overlapping_half_open(self, db, court, user_id, make_reservation):
        existing = make_reservation(court, user_id, *slot(10))
        repo = RepositoryFactory.create_reservation_repository(db)

        start, end = slot(10)
        assert [r.id for r in repo.find_overlapping(court.id, start, end)] == [existing.id]
        assert repo.find_overlapping(court.id, end, end + timedelta(hours=1)) == []
        assert repo.find_overlapping(court.id, start - timedelta(hours=1), start) == []
        assert repo.find_overlapping(
            court.id, start, end, exclude_reservation_id=existing.id
        ) == []

    def test_cancelled_rows_are_ignored(self, db, court, user_id, make_reservation):
        make_reservation(court, user_id, *slot(10), status="cancelled")
        repo = RepositoryFactory.create_reservation_repository(db)
        assert repo.find_overlapping(court.id, *slot(10)) == []

    def test_counts(self, db, court, user_id, make_reservation):
        make_reservation(court, user_id, *slot(8))
        done = make_reservation(court, user_id, *slot(10))
        done.complete()
        db.commit()
        repo = RepositoryFactory.create_reservation_repository(db)

        assert repo.count_completed_since(user_id, done.completed_at - timedelta(days=1)) == 1
        assert repo.count_completed_since(user_id, done.completed_at + timedelta(days=1)) == 0

    def test_list_for_court_latest_first(self, db, court, user_id, make_reservation):
        early = make_reservation(court, user_id, *slot(8))
        late = make_reservation(court, user_id, *slot(12), status="cancelled")
        repo = RepositoryFactory.create_reservation_repository(db)

        assert [r.id for r in repo.list_for_court(court.id)] == [late.id, early.id]


class TestRewardRepository:
    def test_increment_creates_then_adds(self, db, user_id):
        repo = RepositoryFactory.create_reward_repository(db)

        repo.increment_balance(user_id, 100)
        repo.increment_balance(user_id, -30)
        db.commit()

        assert repo.get_balance(user_id).points == 70

    def test_increment_adds_to_row_written_by_another_session(self, db, session_factory, user_id):
        other = session_factory()
        RepositoryFactory.create_reward_repository(other).increment_balance(user_id, 50)
        other.commit()
        other.close()

        repo = RepositoryFactory.create_reward_repository(db)
        repo.increment_balance(user_id, 25)
        db.commit()

        assert repo.get_balance(user_id).points == 75

    def test_ledger_totals(self, db, user_id):
        repo = RepositoryFactory.create_reward_repository(db)
        repo.append_entry(user_id=user_id, points=100, action_type="first_booking", idempotency_key="k1")
        repo.append_entry(user_id=user_id, points=-40, action_type="redemption", idempotency_key="k2")
        db.commit()

        assert repo.ledger_totals(user_id) == {"earned": 100, "redeemed": 40}
        assert repo.has_idempotency_key("k1") is True
        assert [e.idempotency_key for e in repo.recent_entries(user_id, limit=1)] == ["k2"]

    def test_duplicate_idempotency_key(self, db, user_id):
        repo = RepositoryFactory.create_reward_repository(db)
        repo.append_entry(user_id=user_id, points=5, action_type="off_peak_booking", idempotency_key="k1")

        with pytest.raises(DuplicateEntryException):
            repo.append_entry(user_id=user_id, points=5, action_type="off_peak_booking", idempotency_key="k1")
        db.rollback()


class TestJoinRepositories:
    def test_players_and_requests(self, db, court, user_id, other_user_id, make_reservation):
        booking = make_reservation(court, user_id, *slot(10), allow_join=True)
        players = RepositoryFactory.create_booking_player_repository(db)
        requests = RepositoryFactory.create_join_request_repository(db)

        players.create(booking_id=booking.id, user_id=user_id, is_booker=True, players_count=1)
        join_request = requests.create(booking_id=booking.id, user_id=other_user_id, players_count=2)
        db.commit()

        assert players.exists_for(booking.id, user_id) is True
        assert players.exists_for(booking.id, other_user_id) is False
        assert [p.user_id for p in players.list_for_booking(booking.id)] == [user_id]
        assert requests.exists_for(booking.id, other_user_id) is True
        assert [r.id for r in requests.list_for_user(other_user_id)] == [join_request.id]
        assert requests.get_for_update(join_request.id).status == "pending"

    def test_one_request_per_user(self, db, court, user_id, other_user_id, make_reservation):
        booking = make_reservation(court, user_id, *slot(10), allow_join=True)
        requests = RepositoryFactory.create_join_request_repository(db)
        requests.create(booking_id=booking.id, user_id=other_user_id, players_count=1)

        with pytest.raises(DuplicateEntryException):
            requests.create(booking_id=booking.id, user_id=other_user_id, players_count=1)
        db.rollback()
