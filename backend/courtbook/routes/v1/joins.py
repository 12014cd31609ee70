# backend/courtbook/routes/v1/joins.py
"""
Join routes - API v1

Shared bookings under /api/v1/joins. All business logic delegated to
JoinService.

Endpoints:
    GET /joinable - Upcoming bookings with open spots
    GET /joinable/{booking_id} - Booking, its players and open spots
    POST /requests - Ask to join a booking
    GET /requests - The caller's own join requests
    GET /bookings/{booking_id}/requests - Requests on a booking (booker)
    PATCH /requests/{request_id} - Approve or reject a request (booker)
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.params import Path

from ...api.dependencies import get_current_user_id, get_join_service
from ...core.exceptions import DomainException
from ...schemas.booking import ReservationResponse
from ...schemas.join import (
    BookingPlayerResponse,
    JoinableBookingResponse,
    JoinRequestAnsweredResponse,
    JoinRequestCreate,
    JoinRequestDecision,
    JoinRequestResponse,
    JoinRequestSentResponse,
)
from ...services.join_service import JoinService
from .bookings import ULID_PATH_PATTERN, handle_domain_exception

router = APIRouter(tags=["joins-v1"])


@router.get("/joinable", response_model=List[ReservationResponse])
async def list_joinable_bookings(
    on_date: Optional[date] = Query(None, alias="date", description="Local calendar day"),
    players_needed: int = Query(1, ge=1, le=50),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    join_service: JoinService = Depends(get_join_service),
) -> List[ReservationResponse]:
    bookings = await asyncio.to_thread(
        join_service.list_joinable,
        on_date=on_date,
        players_needed=players_needed,
        min_price=min_price,
        max_price=max_price,
        limit=limit,
        offset=offset,
    )
    return [ReservationResponse.model_validate(b) for b in bookings]


@router.get("/joinable/{booking_id}", response_model=JoinableBookingResponse)
async def get_joinable_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    join_service: JoinService = Depends(get_join_service),
) -> JoinableBookingResponse:
    try:
        joinable = await asyncio.to_thread(join_service.get_joinable, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return JoinableBookingResponse(
        booking=ReservationResponse.model_validate(joinable.reservation),
        players=[BookingPlayerResponse.model_validate(p) for p in joinable.players],
        spots_available=joinable.spots_available,
    )


@router.post(
    "/requests",
    response_model=JoinRequestSentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Booking closed, full, or request not allowed"},
        404: {"description": "Booking not found"},
    },
)
async def send_join_request(
    payload: JoinRequestCreate = Body(...),
    user_id: str = Depends(get_current_user_id),
    join_service: JoinService = Depends(get_join_service),
) -> JoinRequestSentResponse:
    try:
        join_request = await asyncio.to_thread(
            join_service.request_to_join,
            user_id,
            payload.booking_id,
            payload.players_count,
            payload.message,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return JoinRequestSentResponse(join_request=JoinRequestResponse.model_validate(join_request))


@router.get("/requests", response_model=List[JoinRequestResponse])
async def list_my_join_requests(
    user_id: str = Depends(get_current_user_id),
    join_service: JoinService = Depends(get_join_service),
) -> List[JoinRequestResponse]:
    requests = await asyncio.to_thread(join_service.list_user_requests, user_id)
    return [JoinRequestResponse.model_validate(r) for r in requests]


@router.get("/bookings/{booking_id}/requests", response_model=List[JoinRequestResponse])
async def list_booking_join_requests(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    join_service: JoinService = Depends(get_join_service),
) -> List[JoinRequestResponse]:
    try:
        requests = await asyncio.to_thread(
            join_service.list_requests_for_booking, booking_id, user_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [JoinRequestResponse.model_validate(r) for r in requests]


@router.patch("/requests/{request_id}", response_model=JoinRequestAnsweredResponse)
async def answer_join_request(
    request_id: str = Path(..., description="Join request ULID", pattern=ULID_PATH_PATTERN),
    payload: JoinRequestDecision = Body(...),
    user_id: str = Depends(get_current_user_id),
    join_service: JoinService = Depends(get_join_service),
) -> JoinRequestAnsweredResponse:
    try:
        join_request = await asyncio.to_thread(
            join_service.respond, request_id, user_id, payload.status
        )
    except DomainException as e:
        handle_domain_exception(e)
    return JoinRequestAnsweredResponse(
        message=f"Join request {payload.status} successfully",
        join_request=JoinRequestResponse.model_validate(join_request),
    )
