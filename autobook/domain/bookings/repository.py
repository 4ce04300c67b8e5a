"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking, BookingStatus, ServiceVariant


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(
                joinedload(Booking.customer),
                joinedload(Booking.service_variant).joinedload(ServiceVariant.service),
            )
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_appointment_date(db: Session, booking_id: int) -> Optional[date]:
        return db.query(Booking.appointment_date).filter(Booking.id == booking_id).scalar()

    @staticmethod
    def get_booking_for_update(db: Session, booking_id: int) -> Optional[Booking]:
        """Load a booking row-locked for the rest of the transaction, reloading any cached copy"""
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def list_bookings(
        db: Session,
        day: Optional[date] = None,
        status: Optional[BookingStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Booking]:
        query = db.query(Booking).options(
            joinedload(Booking.customer),
            joinedload(Booking.service_variant).joinedload(ServiceVariant.service),
        )
        if day:
            query = query.filter(Booking.appointment_date == day)
        if status:
            query = query.filter(Booking.status == status)
        return (
            query.order_by(Booking.appointment_date.desc(), Booking.appointment_time)
            .offset(offset)
            .limit(limit)
            .all()
        )
