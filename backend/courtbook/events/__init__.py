from .booking_events import (
    BookingCancelled,
    BookingCreated,
    BookingStatusChanged,
    Event,
    JoinRequestAnswered,
    JoinRequested,
    event_summary,
)

__all__ = [
    "BookingCancelled",
    "BookingCreated",
    "BookingStatusChanged",
    "Event",
    "JoinRequestAnswered",
    "JoinRequested",
    "event_summary",
]
