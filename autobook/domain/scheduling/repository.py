"""Scheduling repository - business hours, blocked dates and bookings by date"""

from datetime import date, time
from typing import Optional

from sqlalchemy.orm import Session

from ...database import upsert_statement
from ...models import (
    INACTIVE_BOOKING_STATUSES,
    BlockedDate,
    Booking,
    BookingDayLock,
    BusinessHours,
)


class SchedulingRepository:
    """Repository for calendar and booking-window queries"""

    @staticmethod
    def get_blocked_date(db: Session, day: date) -> Optional[BlockedDate]:
        return db.query(BlockedDate).filter(BlockedDate.blocked_date == day).first()

    @staticmethod
    def get_business_hours(db: Session, weekday: int) -> Optional[BusinessHours]:
        return db.query(BusinessHours).filter(BusinessHours.day_of_week == weekday).first()

    @staticmethod
    def list_business_hours(db: Session) -> list[BusinessHours]:
        return db.query(BusinessHours).order_by(BusinessHours.day_of_week).all()

    @staticmethod
    def set_business_hours(
        db: Session,
        weekday: int,
        open_time: Optional[time],
        close_time: Optional[time],
        is_closed: bool,
    ) -> BusinessHours:
        hours = SchedulingRepository.get_business_hours(db, weekday)
        if hours is None:
            hours = BusinessHours(day_of_week=weekday)
            db.add(hours)
        hours.is_closed = is_closed
        hours.open_time = None if is_closed else open_time
        hours.close_time = None if is_closed else close_time
        db.flush()
        return hours

    @staticmethod
    def list_blocked_dates(db: Session, from_date: Optional[date] = None) -> list[BlockedDate]:
        query = db.query(BlockedDate)
        if from_date:
            query = query.filter(BlockedDate.blocked_date >= from_date)
        return query.order_by(BlockedDate.blocked_date).all()

    @staticmethod
    def add_blocked_date(db: Session, day: date, reason: Optional[str]) -> BlockedDate:
        blocked = BlockedDate(blocked_date=day, reason=reason)
        db.add(blocked)
        db.flush()
        return blocked

    @staticmethod
    def get_blocked_date_by_id(db: Session, blocked_id: int) -> Optional[BlockedDate]:
        return db.query(BlockedDate).filter(BlockedDate.id == blocked_id).first()

    @staticmethod
    def get_active_bookings_on(db: Session, day: date) -> list[Booking]:
        """Bookings on a date that still hold their time window"""
        return (
            db.query(Booking)
            .filter(
                Booking.appointment_date == day,
                Booking.status.notin_(INACTIVE_BOOKING_STATUSES),
            )
            .order_by(Booking.appointment_time)
            .all()
        )

    @staticmethod
    def lock_day(db: Session, day: date) -> None:
        """
        Take the date-scoped lock for the current transaction.

        Reservations and payment settlement for bookings on that date queue
        on it, so their ledger and overlap reads see committed state.

        The upsert row-locks the date's row on PostgreSQL and takes the
        database write lock on SQLite; either way it is held until commit.
        """
        stmt = upsert_statement(db, BookingDayLock)
        if stmt is not None:
            db.execute(
                stmt.values(lock_date=day, version=1).on_conflict_do_update(
                    index_elements=[BookingDayLock.lock_date],
                    set_={"version": BookingDayLock.version + 1},
                )
            )
            return

        lock = (
            db.query(BookingDayLock)
            .filter(BookingDayLock.lock_date == day)
            .with_for_update()
            .first()
        )
        if lock is None:
            db.add(BookingDayLock(lock_date=day, version=1))
        else:
            lock.version += 1
        db.flush()
