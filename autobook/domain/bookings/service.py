"""Booking service - lookups, cancellation and staff status changes"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...models import Booking, BookingStatus
from ...shared.exceptions import NotFoundError
from .lifecycle import apply_staff_transition
from .repository import BookingRepository

logger = logging.getLogger(__name__)


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def list_bookings(
        self,
        day: Optional[date] = None,
        status: Optional[BookingStatus] = None,
        page: int = 1,
        limit: int = 50,
    ) -> list[Booking]:
        offset = (max(page, 1) - 1) * limit
        return self.repo.list_bookings(self.db, day, status, limit=limit, offset=offset)

    def update_status(self, booking_id: int, target: BookingStatus) -> Booking:
        """Apply a staff-driven status change"""
        with unit_of_work(self.db):
            booking = self.repo.get_booking_for_update(self.db, booking_id)
            if not booking:
                raise NotFoundError("Booking not found")
            previous = booking.status
            apply_staff_transition(booking, target)

        logger.info(f"✅ Booking {booking_id} status updated: {previous.value} → {target.value}")
        return self.get_booking(booking_id)

    def cancel_booking(self, booking_id: int) -> Booking:
        """Cancel a booking; cancelling twice is a no-op"""
        booking = self.get_booking(booking_id)
        if booking.status == BookingStatus.CANCELLED:
            return booking
        return self.update_status(booking_id, BookingStatus.CANCELLED)
