"""Reservation service - turns a chosen slot into a persisted booking"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from ...config import BOOKING_DEPOSIT_AMOUNT
from ...database import unit_of_work
from ...models import Booking, BookingStatus
from ...shared.exceptions import ConflictError, InvalidVariantError
from ..catalog.repository import ServiceCatalog
from ..customers.repository import CustomerRepository
from .calendar_policy import CalendarPolicy
from .repository import SchedulingRepository
from .schemas import BookingCreate
from .time_calculator import minutes_to_hhmm, minutes_to_time, overlaps, time_to_minutes

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Requested time slot is no longer available. Please choose another time."


@dataclass
class ReservationResult:
    booking: Booking
    deposit_required: Decimal


class ReservationService:
    """
    Reserve a slot atomically.

    Customer upsert, the conflict re-check and the booking insert run in one
    transaction serialized per appointment date, so two requests for
    overlapping windows on the same date can never both commit.
    """

    def __init__(self, db: Session):
        self.db = db
        self.catalog = ServiceCatalog()
        self.customers = CustomerRepository()
        self.scheduling = SchedulingRepository()
        self.calendar = CalendarPolicy(db)

    def reserve(self, data: BookingCreate) -> ReservationResult:
        day = data.appointmentDate
        start = time_to_minutes(data.appointmentTime)

        with unit_of_work(self.db):
            quote = self.catalog.quote_variant(self.db, data.serviceVariantId)
            if quote is None:
                logger.warning(f"⚠️ Reservation rejected, unknown variant {data.serviceVariantId}")
                raise InvalidVariantError()

            end = start + quote.duration_minutes
            availability = self.calendar.is_open(day)
            if not availability.open:
                raise ConflictError(f"{availability.reason}: {day.isoformat()} is not available")
            if not availability.window.contains(start, end):
                raise ConflictError("Requested time is outside business hours")

            self.scheduling.lock_day(self.db, day)

            for existing in self.scheduling.get_active_bookings_on(self.db, day):
                if overlaps(start, end, existing.start_minutes, existing.end_minutes):
                    logger.info(
                        f"🚫 Slot {day} {minutes_to_hhmm(start)} conflicts with booking {existing.id}"
                    )
                    raise ConflictError(SLOT_TAKEN_MESSAGE)

            customer = self.customers.upsert_by_email(
                self.db,
                email=data.email,
                phone=data.phone,
                first_name=data.firstName,
                last_name=data.lastName,
            )

            booking = Booking(
                customer_id=customer.id,
                service_variant_id=quote.variant_id,
                vehicle_year=data.vehicleYear,
                vehicle_make=data.vehicleMake,
                vehicle_model=data.vehicleModel,
                appointment_date=day,
                appointment_time=minutes_to_time(start),
                duration_minutes=quote.duration_minutes,
                status=BookingStatus.PENDING_DEPOSIT,
                notes=data.notes,
                deposit_amount=BOOKING_DEPOSIT_AMOUNT,
                total_amount=quote.price,
            )
            self.db.add(booking)
            self.db.flush()

        logger.info(
            f"✅ Booking {booking.id} reserved for {day} {minutes_to_hhmm(start)} ({quote.duration_minutes} min)"
        )
        return ReservationResult(booking=booking, deposit_required=BOOKING_DEPOSIT_AMOUNT)
