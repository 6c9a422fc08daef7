# backend/tutorbook/routes/v1/subject_offerings.py
"""
Subject offering routes - API v1

Tutor configuration of an offering and its weekly availability, plus the
student-facing eligible-slot and price queries.

Endpoints:
    POST / - Create an offering for the calling tutor
    GET /?tutorProfileId= - Offerings of one tutor
    GET /{offering_id} - Offering with rates, topics and schedule
    PATCH /{offering_id} - Edit subject name, topics or rates
    PUT /{offering_id}/availability - Replace the whole weekly schedule
    POST /{offering_id}/availability/{day}/windows - Add a window
    PATCH /{offering_id}/availability/{day}/windows/{index} - Edit a window
    DELETE /{offering_id}/availability/{day}/windows/{index} - Remove a window
    GET /{offering_id}/eligible-slots - Windows able to host a duration
    GET /{offering_id}/price - Hourly rate and total for a mode and duration
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ...api.dependencies import (
    get_availability_service,
    get_current_user_id,
    get_pricing_service,
    get_subject_offering_service,
)
from ...core.enums import TeachingMode, WeekDay
from ...core.exceptions import DomainException
from ...schemas.availability import (
    AvailabilityReplace,
    DayAvailabilityOut,
    EligibleSlotsOut,
    TimeWindowOut,
    WindowCreate,
    WindowUpdate,
)
from ...schemas.subject_offering import (
    PriceQuoteResponse,
    SubjectOfferingCreate,
    SubjectOfferingResponse,
    SubjectOfferingUpdate,
)
from ...services.availability_service import AvailabilityService
from ...services.pricing_service import PricingService
from ...services.subject_offering_service import SubjectOfferingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["subject-offerings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# Offering configuration
# ============================================================================


@router.post("", response_model=SubjectOfferingResponse, status_code=status.HTTP_201_CREATED)
async def create_subject_offering(
    payload: SubjectOfferingCreate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    offering_service: SubjectOfferingService = Depends(get_subject_offering_service),
) -> SubjectOfferingResponse:
    try:
        offering = await asyncio.to_thread(
            lambda: offering_service.create_offering(
                current_user_id, **payload.to_service_kwargs()
            )
        )
        return SubjectOfferingResponse.from_model(offering)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[SubjectOfferingResponse])
async def list_subject_offerings(
    tutor_profile_id: str = Query(..., alias="tutorProfileId"),
    offering_service: SubjectOfferingService = Depends(get_subject_offering_service),
) -> List[SubjectOfferingResponse]:
    """Every offering of one tutor, by subject name."""
    try:
        offerings = await asyncio.to_thread(offering_service.list_for_tutor, tutor_profile_id)
        return [SubjectOfferingResponse.from_model(offering) for offering in offerings]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{offering_id}", response_model=SubjectOfferingResponse)
async def get_subject_offering(
    offering_id: str,
    offering_service: SubjectOfferingService = Depends(get_subject_offering_service),
) -> SubjectOfferingResponse:
    try:
        offering = await asyncio.to_thread(offering_service.get_offering, offering_id)
        return SubjectOfferingResponse.from_model(offering)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{offering_id}", response_model=SubjectOfferingResponse)
async def update_subject_offering(
    offering_id: str,
    payload: SubjectOfferingUpdate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    offering_service: SubjectOfferingService = Depends(get_subject_offering_service),
) -> SubjectOfferingResponse:
    try:
        offering = await asyncio.to_thread(
            offering_service.update_offering,
            current_user_id,
            offering_id,
            payload.to_changes(),
        )
        return SubjectOfferingResponse.from_model(offering)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# Weekly availability
# ============================================================================


@router.put("/{offering_id}/availability", response_model=List[DayAvailabilityOut])
async def replace_availability(
    offering_id: str,
    payload: AvailabilityReplace = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[DayAvailabilityOut]:
    """Replace the whole schedule; any day not listed ends up with no windows."""
    try:
        days = await asyncio.to_thread(
            availability_service.replace_availability,
            current_user_id,
            offering_id,
            payload.to_payload(),
        )
        return [DayAvailabilityOut.from_domain(day) for day in days]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{offering_id}/availability/{day}/windows",
    response_model=DayAvailabilityOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_window(
    offering_id: str,
    day: WeekDay,
    payload: Optional[WindowCreate] = Body(None),
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> DayAvailabilityOut:
    try:
        window = payload.to_domain() if payload is not None else None
        result = await asyncio.to_thread(
            availability_service.add_window, current_user_id, offering_id, day, window
        )
        return DayAvailabilityOut.from_domain(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{offering_id}/availability/{day}/windows/{index}", response_model=DayAvailabilityOut
)
async def update_window(
    offering_id: str,
    day: WeekDay,
    index: int,
    payload: WindowUpdate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> DayAvailabilityOut:
    try:
        result = await asyncio.to_thread(
            availability_service.update_window,
            current_user_id,
            offering_id,
            day,
            index,
            payload.start,
            payload.end,
        )
        return DayAvailabilityOut.from_domain(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{offering_id}/availability/{day}/windows/{index}", response_model=DayAvailabilityOut
)
async def remove_window(
    offering_id: str,
    day: WeekDay,
    index: int,
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> DayAvailabilityOut:
    try:
        result = await asyncio.to_thread(
            availability_service.remove_window, current_user_id, offering_id, day, index
        )
        return DayAvailabilityOut.from_domain(result)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# Student-facing queries
# ============================================================================


@router.get("/{offering_id}/eligible-slots", response_model=EligibleSlotsOut)
async def get_eligible_slots(
    offering_id: str,
    day: WeekDay = Query(...),
    duration: int = Query(..., ge=1, le=24),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> EligibleSlotsOut:
    """An empty ``slots`` list means no window on that day fits the duration."""
    try:
        windows = await asyncio.to_thread(
            availability_service.get_eligible_slots, offering_id, day, duration
        )
        return EligibleSlotsOut(
            subject_offering_id=offering_id,
            day=day,
            duration=duration,
            slots=[TimeWindowOut.from_domain(w) for w in windows],
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{offering_id}/price", response_model=PriceQuoteResponse)
async def get_price(
    offering_id: str,
    mode: TeachingMode = Query(...),
    duration: int = Query(..., ge=1, le=24),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PriceQuoteResponse:
    try:
        quote = await asyncio.to_thread(pricing_service.quote, offering_id, mode, duration)
        return PriceQuoteResponse.from_quote(quote)
    except DomainException as e:
        handle_domain_exception(e)
