# backend/courtbook/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Reserve a court timeslot (optional promotion code)
    GET / - List the caller's bookings
    GET /{booking_id} - Booking details (customer or court owner)
    POST /{booking_id}/cancel - Cancel a booking (customer)
    PATCH /{booking_id}/status - Move a booking through its lifecycle (court owner)
"""

import asyncio
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_current_user_id
from ...core.exceptions import DomainException
from ...schemas.booking import (
    AppliedPromotion,
    BookingCreate,
    BookingCreateResponse,
    BookingStatusUpdate,
    ReservationResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid request, court unavailable or promotion rejected"},
        404: {"description": "Court not found"},
        409: {"description": "Timeslot held by another request or already booked"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """Reserve a court for the requested window. Conflicts are reported, never retried."""
    try:
        result = await asyncio.to_thread(
            booking_service.create_booking,
            user_id,
            booking_data.court_id,
            booking_data.start_time,
            booking_data.end_time,
            promotion_code=booking_data.promotion_code,
            current_players=booking_data.current_players,
            needed_players=booking_data.needed_players,
            allow_join=booking_data.allow_join,
        )
    except DomainException as e:
        handle_domain_exception(e)

    return BookingCreateResponse(
        booking=ReservationResponse.model_validate(result.reservation),
        discount_amount=result.discount_amount,
        applied_promotion=(
            AppliedPromotion(**result.applied_promotion) if result.applied_promotion else None
        ),
    )


@router.get("", response_model=List[ReservationResponse])
async def list_bookings(
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[ReservationResponse]:
    bookings = await asyncio.to_thread(booking_service.list_bookings, user_id, limit=limit)
    return [ReservationResponse.model_validate(b) for b in bookings]


@router.get("/{booking_id}", response_model=ReservationResponse)
async def get_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        reservation = await asyncio.to_thread(booking_service.get_booking, booking_id, user_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ReservationResponse.model_validate(reservation)


@router.post("/{booking_id}/cancel", response_model=ReservationResponse)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        reservation = await asyncio.to_thread(booking_service.cancel_booking, booking_id, user_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ReservationResponse.model_validate(reservation)


@router.patch("/{booking_id}/status", response_model=ReservationResponse)
async def update_booking_status(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    payload: BookingStatusUpdate = Body(...),
    user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        reservation = await asyncio.to_thread(
            booking_service.update_status, booking_id, user_id, payload.status.value
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ReservationResponse.model_validate(reservation)
