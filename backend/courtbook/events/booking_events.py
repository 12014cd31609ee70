"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


@dataclass
class BookingCreated:
    """Fired after a reservation commits."""

    booking_id: str
    court_id: str
    user_id: str
    start_time: datetime
    end_time: datetime
    total_price: Decimal
    promotion_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a reservation is cancelled by its owner."""

    booking_id: str
    user_id: str
    cancelled_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingStatusChanged:
    """Fired after the court owner moves a reservation to a new status."""

    booking_id: str
    user_id: str
    old_status: str
    new_status: str
    points_awarded: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class JoinRequested:
    """Sent to the booker when another user asks to join their booking."""

    request_id: str
    booking_id: str
    requester_id: str
    players_count: int
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class JoinRequestAnswered:
    """Sent to the requester once the booker approves or rejects."""

    request_id: str
    booking_id: str
    status: str
    start_time: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

def event_summary(event: Event) -> Dict[str, Any]:
    """JSON-friendly payload of an event, tagged with its type."""
    payload = event.to_dict()
    for key, value in payload.items():
        if isinstance(value, datetime):
            payload[key] = value.isoformat()
        elif isinstance(value, Decimal):
            payload[key] = str(value)
    payload["event_type"] = type(event).__name__
    return payload
