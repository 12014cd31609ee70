# backend/courtbook/schemas/join.py
"""Schemas for joining shared bookings."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from ..utils.time_utils import ensure_utc
from ._strict_base import StrictModel, StrictRequestModel
from .booking import ReservationResponse


class JoinRequestCreate(StrictRequestModel):
    booking_id: str = Field(..., min_length=1, max_length=26)
    players_count: int = Field(1, ge=1, le=50)
    message: Optional[str] = Field(None, max_length=500)


class JoinRequestDecision(StrictRequestModel):
    status: Literal["approved", "rejected"]


class JoinRequestResponse(StrictModel):
    id: str
    booking_id: str
    user_id: str
    players_count: int
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None


class BookingPlayerResponse(StrictModel):
    user_id: str
    is_booker: bool
    players_count: int


class JoinableBookingResponse(StrictModel):
    booking: ReservationResponse
    players: List[BookingPlayerResponse]
    spots_available: int


class JoinRequestSentResponse(StrictModel):
    message: str = "Join request sent successfully"
    join_request: JoinRequestResponse


class JoinRequestAnsweredResponse(StrictModel):
    message: str
    join_request: JoinRequestResponse
