"""Scheduling router - availability lookup and reservation endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import availability_rate_limit, reservation_rate_limit
from ...shared.exceptions import ValidationError
from ...shared.validators import parse_iso_date
from ..bookings.schemas import BookingResponse, ReservationResponse
from .reservation_service import ReservationService
from .schemas import AvailabilityResponse, BookingCreate, SlotResponse
from .slot_calculator import SlotCalculator
from .time_calculator import format_12h, minutes_to_hhmm

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_slot_calculator(db: Session = Depends(get_db)) -> SlotCalculator:
    return SlotCalculator(db)


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    return ReservationService(db)


@router.get(
    "/availability/{date}",
    response_model=AvailabilityResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(availability_rate_limit)],
)
def get_availability(
    date: str,
    serviceVariantId: Optional[int] = Query(None),
    calculator: SlotCalculator = Depends(get_slot_calculator),
):
    """Get bookable start times for a date"""
    try:
        day = parse_iso_date(date)
    except ValueError as e:
        raise ValidationError([{"field": "date", "message": str(e)}]) from None

    result = calculator.compute(day, serviceVariantId)
    return AvailabilityResponse(
        available=result.available,
        reason=result.reason,
        slots=[SlotResponse(time=minutes_to_hhmm(m), formatted=format_12h(m)) for m in result.slots],
    )


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(reservation_rate_limit)],
)
def create_booking(
    data: BookingCreate,
    service: ReservationService = Depends(get_reservation_service),
):
    """Reserve a slot; the booking starts in pending_deposit"""
    result = service.reserve(data)
    return ReservationResponse(
        booking=BookingResponse.model_validate(result.booking),
        depositRequired=result.deposit_required,
    )
