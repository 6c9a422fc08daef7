# backend/tutorbook/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - Caller's bookings (as student or tutor), optional status filter
    POST / - Request a booking for one tutor window
    GET /{booking_id} - Booking details with derived session status
    PATCH /{booking_id} - Change status (confirm, complete, cancel)
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ...api.dependencies import get_booking_service, get_current_user_id
from ...core.exceptions import DomainException
from ...core.ulid_helper import is_valid_ulid
from ...domain.booking_lifecycle import BookingStatus
from ...models.booking import Booking
from ...schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _require_booking_id(booking_id: str) -> None:
    if not is_valid_ulid(booking_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid booking ID")


def _to_response(booking_service: BookingService, booking: Booking) -> BookingResponse:
    return BookingResponse.from_booking(booking, booking_service.session_status_for(booking))


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """List bookings where the caller is the student or the tutor."""
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_bookings_for_user, current_user_id, status_filter
        )
        items = [_to_response(booking_service, booking) for booking in bookings]
        return BookingListResponse(bookings=items, total=len(items))
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid slot, contact number, topic or duration"},
        404: {"description": "Subject offering not found"},
        409: {"description": "Slot was taken by another booking; pick a different slot"},
        422: {"description": "Mode unavailable, no availability or tutor not verified"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Request a session with a tutor.

    The booking is created as ``pending``; the tutor confirms it later.
    """
    try:
        request = booking_data.to_domain()
        booking = await asyncio.to_thread(
            booking_service.create_booking,
            current_user_id,
            request,
            booking_data.total_price,
        )
        return _to_response(booking_service, booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    _require_booking_id(booking_id)
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking_for_user, booking_id, current_user_id
        )
        return _to_response(booking_service, booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    update: BookingStatusUpdate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Confirm, complete or cancel a booking."""
    _require_booking_id(booking_id)
    try:
        booking = await asyncio.to_thread(
            booking_service.update_status,
            booking_id,
            current_user_id,
            update.status,
            update.cancellation_reason,
        )
        return _to_response(booking_service, booking)
    except DomainException as e:
        handle_domain_exception(e)
