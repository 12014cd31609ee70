"""JoinService: browsing shared bookings, join requests and the booker's answer."""

from datetime import date
from decimal import Decimal

import pytest

from courtbook.core.exceptions import (
    ForbiddenException,
    JoinRequestInvalidException,
    NotFoundException,
    ValidationException,
)
from courtbook.core.ulid_helper import generate_ulid
from courtbook.models.booking_join import BookingJoinRequest, BookingPlayer
from courtbook.services.join_service import JoinService
from courtbook.services.notification_service import NotificationService

from tests.helpers.booking import slot


@pytest.fixture
def join_service(db, dispatcher, reward_settings, clock):
    return JoinService(
        db,
        notification_service=NotificationService(dispatcher),
        config=reward_settings,
        clock=clock,
    )


@pytest.fixture
def make_shared_booking(db, court, make_reservation):
    """Confirmed booking open to joiners, with its booker recorded as first player."""

    def _make(booker_id, *window, current_players=1, needed_players=4, **overrides):
        values = {
            "status": "confirmed",
            "allow_join": True,
            "current_players": current_players,
            "needed_players": needed_players,
        }
        values.update(overrides)
        reservation = make_reservation(court, booker_id, *(window or slot(10)), **values)
        db.add(
            BookingPlayer(
                booking_id=reservation.id,
                user_id=booker_id,
                is_booker=True,
                players_count=max(current_players, 1),
            )
        )
        db.commit()
        return reservation

    return _make


class TestListJoinable:
    def test_filters_and_orders(self, join_service, make_shared_booking, court, user_id, make_reservation):
        later = make_shared_booking(user_id, *slot(18))
        sooner = make_shared_booking(user_id, *slot(8))
        make_shared_booking(user_id, *slot(11), status="pending")
        make_shared_booking(user_id, *slot(12), current_players=4)
        make_shared_booking(user_id, *slot(13, day_offset=-5))
        make_reservation(court, user_id, *slot(14), status="confirmed")

        assert [r.id for r in join_service.list_joinable()] == [sooner.id, later.id]

    def test_players_needed_and_date(self, join_service, make_shared_booking, user_id):
        roomy = make_shared_booking(user_id, *slot(8))
        make_shared_booking(user_id, *slot(9), current_players=3)
        next_day = make_shared_booking(user_id, *slot(8, day_offset=1))

        assert [r.id for r in join_service.list_joinable(players_needed=2)] == [roomy.id, next_day.id]
        assert [r.id for r in join_service.list_joinable(players_needed=2, on_date=date(2030, 6, 4))] == [
            next_day.id
        ]

    def test_price_bounds(self, join_service, make_shared_booking, user_id):
        cheap = make_shared_booking(user_id, *slot(8), total_price=Decimal("50000.00"))
        make_shared_booking(user_id, *slot(9), total_price=Decimal("150000.00"))

        assert [r.id for r in join_service.list_joinable(max_price=Decimal("100000"))] == [cheap.id]


class TestGetJoinable:
    def test_returns_players_and_spots(self, join_service, make_shared_booking, user_id):
        booking = make_shared_booking(user_id, current_players=2)

        joinable = join_service.get_joinable(booking.id)

        assert joinable.reservation.id == booking.id
        assert [(p.user_id, p.is_booker, p.players_count) for p in joinable.players] == [
            (user_id, True, 2)
        ]
        assert joinable.spots_available == 2

    def test_private_booking_is_not_joinable(self, join_service, court, user_id, make_reservation):
        private = make_reservation(court, user_id, *slot(10), status="confirmed")

        with pytest.raises(JoinRequestInvalidException) as exc_info:
            join_service.get_joinable(private.id)
        assert exc_info.value.reason == "not_joinable"
        assert exc_info.value.status_code == 400

    def test_unknown_booking(self, join_service):
        with pytest.raises(NotFoundException):
            join_service.get_joinable(generate_ulid())


class TestRequestToJoin:
    def test_request_sent_and_booker_notified(
        self, join_service, make_shared_booking, user_id, other_user_id, dispatcher
    ):
        booking = make_shared_booking(user_id)

        join_request = join_service.request_to_join(other_user_id, booking.id, 2, "Two of us")

        assert join_request.status == "pending"
        assert join_request.players_count == 2
        recipient, summary = dispatcher.sent[-1]
        assert recipient == user_id
        assert summary["event_type"] == "JoinRequested"
        assert summary["requester_id"] == other_user_id

    @pytest.mark.parametrize(
        "overrides, reason",
        [
            ({"allow_join": False}, "not_joinable"),
            ({"status": "pending"}, "not_confirmed"),
            ({"current_players": 4}, "full"),
        ],
    )
    def test_booking_state_rejections(
        self, join_service, make_shared_booking, user_id, other_user_id, overrides, reason
    ):
        booking = make_shared_booking(user_id, **overrides)

        with pytest.raises(JoinRequestInvalidException) as exc_info:
            join_service.request_to_join(other_user_id, booking.id)
        assert exc_info.value.reason == reason

    def test_cannot_join_own_booking(self, join_service, make_shared_booking, user_id):
        booking = make_shared_booking(user_id)

        with pytest.raises(JoinRequestInvalidException) as exc_info:
            join_service.request_to_join(user_id, booking.id)
        assert exc_info.value.message == "You cannot join your own booking"

    def test_second_request_rejected(self, join_service, make_shared_booking, user_id, other_user_id, db):
        booking = make_shared_booking(user_id)
        join_service.request_to_join(other_user_id, booking.id)

        with pytest.raises(JoinRequestInvalidException) as exc_info:
            join_service.request_to_join(other_user_id, booking.id)
        assert exc_info.value.reason == "already_requested"
        assert db.query(BookingJoinRequest).count() == 1

    def test_existing_player_rejected(self, join_service, make_shared_booking, user_id, other_user_id, db):
        booking = make_shared_booking(user_id)
        db.add(BookingPlayer(booking_id=booking.id, user_id=other_user_id, players_count=1))
        db.commit()

        with pytest.raises(JoinRequestInvalidException) as exc_info:
            join_service.request_to_join(other_user_id, booking.id)
        assert exc_info.value.reason == "already_player"

    def test_more_players_than_spots(self, join_service, make_shared_booking, user_id, other_user_id):
        booking = make_shared_booking(user_id, current_players=2)

        with pytest.raises(JoinRequestInvalidException) as exc_info:
            join_service.request_to_join(other_user_id, booking.id, 3)
        assert exc_info.value.message == "Only 2 spots available. Please reduce the number of players."

    def test_players_count_must_be_positive(self, join_service, make_shared_booking, user_id, other_user_id):
        booking = make_shared_booking(user_id)
        with pytest.raises(ValidationException):
            join_service.request_to_join(other_user_id, booking.id, 0)


class TestListRequests:
    def test_booker_sees_requests(self, join_service, make_shared_booking, user_id, other_user_id):
        booking = make_shared_booking(user_id)
        sent = join_service.request_to_join(other_user_id, booking.id)

        assert [r.id for r in join_service.list_requests_for_booking(booking.id, user_id)] == [sent.id]
        assert [r.id for r in join_service.list_user_requests(other_user_id)] == [sent.id]

    def test_others_are_forbidden(self, join_service, make_shared_booking, user_id, other_user_id):
        booking = make_shared_booking(user_id)

        with pytest.raises(ForbiddenException):
            join_service.list_requests_for_booking(booking.id, other_user_id)


class TestRespond:
    def test_approval_adds_player(
        self, join_service, make_shared_booking, user_id, other_user_id, dispatcher, db
    ):
        booking = make_shared_booking(user_id)
        sent = join_service.request_to_join(other_user_id, booking.id, 2)

        answered = join_service.respond(sent.id, user_id, "approved")

        assert answered.status == "approved"
        db.refresh(booking)
        assert booking.current_players == 3
        players = db.query(BookingPlayer).filter_by(booking_id=booking.id, is_booker=False).all()
        assert [(p.user_id, p.players_count) for p in players] == [(other_user_id, 2)]
        recipient, summary = dispatcher.sent[-1]
        assert recipient == other_user_id
        assert summary["event_type"] == "JoinRequestAnswered"
        assert summary["status"] == "approved"

    def test_rejection_leaves_booking_alone(
        self, join_service, make_shared_booking, user_id, other_user_id, db
    ):
        booking = make_shared_booking(user_id)
        sent = join_service.request_to_join(other_user_id, booking.id)

        assert join_service.respond(sent.id, user_id, "rejected").status == "rejected"
        db.refresh(booking)
        assert booking.current_players == 1
        assert db.query(BookingPlayer).count() == 1

    def test_only_booker_may_answer(self, join_service, make_shared_booking, user_id, other_user_id):
        booking = make_shared_booking(user_id)
        sent = join_service.request_to_join(other_user_id, booking.id)

        with pytest.raises(ForbiddenException):
            join_service.respond(sent.id, other_user_id, "approved")

    def test_answered_request_is_final(self, join_service, make_shared_booking, user_id, other_user_id):
        booking = make_shared_booking(user_id)
        sent = join_service.request_to_join(other_user_id, booking.id)
        join_service.respond(sent.id, user_id, "rejected")

        with pytest.raises(JoinRequestInvalidException) as exc_info:
            join_service.respond(sent.id, user_id, "approved")
        assert exc_info.value.message == "This request has already been rejected"

    @pytest.mark.parametrize("status", ["pending", "maybe"])
    def test_invalid_decision(self, join_service, status):
        with pytest.raises(ValidationException):
            join_service.respond(generate_ulid(), generate_ulid(), status)

    def test_unknown_request(self, join_service, user_id):
        with pytest.raises(NotFoundException) as exc_info:
            join_service.respond(generate_ulid(), user_id, "approved")
        assert exc_info.value.code == "JOIN_REQUEST_NOT_FOUND"

    def test_overfilling_approval_rejects_request(
        self, join_service, make_shared_booking, user_id, other_user_id, db
    ):
        booking = make_shared_booking(user_id)
        third_user_id = generate_ulid()
        first = join_service.request_to_join(other_user_id, booking.id, 2)
        second = join_service.request_to_join(third_user_id, booking.id, 2)
        join_service.respond(first.id, user_id, "approved")

        with pytest.raises(JoinRequestInvalidException) as exc_info:
            join_service.respond(second.id, user_id, "approved")

        assert exc_info.value.message == "Not enough spots available. Only 1 spots left."
        db.refresh(second)
        assert second.status == "rejected"
        db.refresh(booking)
        assert booking.current_players == 3
