"""Booking router - booking lookup and cancellation"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import BookingDetailResponse
from .service import BookingService

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
def get_booking(booking_id: int, service: BookingService = Depends(get_booking_service)):
    """Get a booking with customer and service details"""
    return BookingDetailResponse.from_booking(service.get_booking(booking_id))


@router.patch("/{booking_id}/cancel", response_model=BookingDetailResponse)
def cancel_booking(booking_id: int, service: BookingService = Depends(get_booking_service)):
    """Cancel a booking; its time window is released for new reservations"""
    return BookingDetailResponse.from_booking(service.cancel_booking(booking_id))
