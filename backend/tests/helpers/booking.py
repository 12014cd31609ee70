"""Time slots, clocks and fakes shared by the booking tests."""

from datetime import datetime, timedelta, timezone
from typing import List

# A Monday far enough ahead that bookings are always in the future
BOOKING_DAY = datetime(2030, 6, 3, tzinfo=timezone.utc)


def slot(hour: int, minutes: int = 60, day_offset: int = 0):
    """(start, end) on BOOKING_DAY starting at ``hour`` UTC."""
    start = BOOKING_DAY + timedelta(days=day_offset, hours=hour)
    return start, start + timedelta(minutes=minutes)


class RecordingDispatcher:
    """Notification dispatcher that keeps what it was asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[tuple] = []

    def notify(self, user_id, summary):
        if self.fail:
            raise RuntimeError("dispatcher offline")
        self.sent.append((user_id, summary))


class MutableClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)
