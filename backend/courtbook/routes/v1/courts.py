# backend/courtbook/routes/v1/courts.py
"""
Court routes - API v1

    GET /{court_id}/bookings - Every booking on a court (court owner)
"""

import asyncio
from typing import List

from fastapi import APIRouter, Depends
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_current_user_id
from ...core.exceptions import DomainException
from ...schemas.booking import ReservationResponse
from ...services.booking_service import BookingService
from .bookings import ULID_PATH_PATTERN, handle_domain_exception

router = APIRouter(tags=["courts-v1"])


@router.get("/{court_id}/bookings", response_model=List[ReservationResponse])
async def list_court_bookings(
    court_id: str = Path(..., description="Court ULID", pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[ReservationResponse]:
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_court_bookings, court_id, user_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [ReservationResponse.model_validate(b) for b in bookings]
