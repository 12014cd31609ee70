# backend/courtbook/schemas/booking.py
"""Booking request and response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from ..core.enums import ReservationStatus
from ..utils.time_utils import ensure_utc
from ._strict_base import StrictModel, StrictRequestModel
from .base import Money, Percent


class BookingCreate(StrictRequestModel):
    """Reserve a court for [start_time, end_time). Naive times are taken as UTC."""

    court_id: str = Field(..., min_length=1, max_length=26, description="Court to book")
    start_time: datetime = Field(..., description="Start instant (inclusive)")
    end_time: datetime = Field(..., description="End instant (exclusive)")
    promotion_code: Optional[str] = Field(None, max_length=32, description="Optional discount code")
    current_players: int = Field(1, ge=0, le=50)
    needed_players: int = Field(4, ge=0, le=50)
    allow_join: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("promotion_code")
    @classmethod
    def _clean_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def _check_window(self) -> "BookingCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BookingStatusUpdate(StrictRequestModel):
    status: ReservationStatus


class ReservationResponse(StrictModel):
    id: str
    court_id: str
    user_id: str
    start_time: datetime
    end_time: datetime
    total_price: Money
    status: str
    current_players: int
    needed_players: int
    allow_join: bool
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", "created_at", "completed_at", "cancelled_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None


class AppliedPromotion(StrictModel):
    code: str
    discount_percent: Percent


class BookingCreateResponse(StrictModel):
    message: str = "Booking created successfully"
    booking: ReservationResponse
    discount_amount: Money
    applied_promotion: Optional[AppliedPromotion] = None
