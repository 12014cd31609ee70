from datetime import datetime, timezone
from decimal import Decimal

from courtbook.events.booking_events import BookingCreated, BookingStatusChanged, event_summary
from courtbook.services.notification_service import LoggingNotificationDispatcher, NotificationService

from tests.helpers.booking import RecordingDispatcher


def _created():
    return BookingCreated(
        booking_id="b1",
        court_id="c1",
        user_id="u1",
        start_time=datetime(2030, 6, 3, 10, tzinfo=timezone.utc),
        end_time=datetime(2030, 6, 3, 11, tzinfo=timezone.utc),
        total_price=Decimal("90000.00"),
        promotion_code="SAVE10",
    )


def test_event_summary_is_json_friendly():
    summary = event_summary(_created())
    assert summary["event_type"] == "BookingCreated"
    assert summary["start_time"] == "2030-06-03T10:00:00+00:00"
    assert summary["total_price"] == "90000.00"


def test_publish_hands_summary_to_dispatcher():
    dispatcher = RecordingDispatcher()
    service = NotificationService(dispatcher)

    assert service.publish("u1", BookingStatusChanged("b1", "u1", "pending", "completed", 1000)) is True
    user_id, summary = dispatcher.sent[0]
    assert user_id == "u1"
    assert summary["points_awarded"] == 1000


def test_publish_swallows_dispatch_errors():
    service = NotificationService(RecordingDispatcher(fail=True))
    assert service.publish("u1", _created()) is False


def test_default_dispatcher_logs(caplog):
    service = NotificationService()
    assert isinstance(service.dispatcher, LoggingNotificationDispatcher)
    with caplog.at_level("INFO"):
        assert service.publish("u1", _created()) is True
    assert "Notification dispatched" in caplog.text
