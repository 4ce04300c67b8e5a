"""Staff endpoints for the booking list and status changes"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import BookingStatus
from .schemas import BookingDetailResponse, BookingListResponse, StatusUpdateRequest
from .service import BookingService

router = APIRouter(prefix="/api/admin/bookings", tags=["Admin - Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


@router.get("", response_model=BookingListResponse)
def list_bookings(
    day: Optional[date] = Query(None, alias="date"),
    status: Optional[BookingStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_bookings(day, status, page, limit)
    return BookingListResponse(
        bookings=[BookingDetailResponse.from_booking(b) for b in bookings],
        page=page,
        limit=limit,
    )


@router.patch("/{booking_id}/status", response_model=BookingDetailResponse)
def update_booking_status(
    booking_id: int,
    data: StatusUpdateRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Staff status change (check-in, start, complete, no-show, cancel)"""
    return BookingDetailResponse.from_booking(service.update_status(booking_id, data.status))
