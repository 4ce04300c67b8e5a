import enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class BookingStatus(str, enum.Enum):
    PENDING_DEPOSIT = "pending_deposit"
    CONFIRMED = "confirmed"
    PAID = "paid"
    CHECKED_IN = "checked_in"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that no longer hold their time window
INACTIVE_BOOKING_STATUSES = (BookingStatus.CANCELLED, BookingStatus.NO_SHOW)


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentType(str, enum.Enum):
    DEPOSIT = "deposit"
    FULL_PAYMENT = "full_payment"


def _string_enum(enum_cls):
    """Persist the enum value strings, not the member names"""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=50,
        validate_strings=True,
    )


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=True, default=60)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    variants = relationship("ServiceVariant", back_populates="service", order_by="ServiceVariant.id")


class ServiceVariant(Base):
    __tablename__ = "service_variants"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=True)  # Falls back to the service duration
    description = Column(Text, nullable=True)

    service = relationship("Service", back_populates="variants")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="customer")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_date_status", "appointment_date", "status"),)

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    service_variant_id = Column(Integer, ForeignKey("service_variants.id"), nullable=False)
    vehicle_year = Column(Integer, nullable=True)
    vehicle_make = Column(String(100), nullable=True)
    vehicle_model = Column(String(100), nullable=True)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    # Snapshot of the resolved service duration; never re-resolved from the catalog
    duration_minutes = Column(Integer, nullable=False)
    status = Column(
        _string_enum(BookingStatus), nullable=False, default=BookingStatus.PENDING_DEPOSIT
    )
    notes = Column(Text, nullable=True)
    deposit_amount = Column(Numeric(10, 2), nullable=False)
    # Snapshot of the variant price at creation time
    total_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    # Operational timestamps, set by staff transitions
    checked_in_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    customer = relationship("Customer", back_populates="bookings")
    service_variant = relationship("ServiceVariant")
    payments = relationship("Payment", back_populates="booking", order_by="Payment.id")

    @property
    def start_minutes(self) -> int:
        return self.appointment_time.hour * 60 + self.appointment_time.minute

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    payment_intent_id = Column(String(255), unique=True, index=True, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(_string_enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    payment_type = Column(_string_enum(PaymentType), nullable=False, default=PaymentType.DEPOSIT)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="payments")


class BusinessHours(Base):
    __tablename__ = "business_hours"

    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(Integer, unique=True, nullable=False)  # 0 = Sunday, 6 = Saturday
    open_time = Column(Time, nullable=True)
    close_time = Column(Time, nullable=True)
    is_closed = Column(Boolean, default=False, nullable=False)


class BlockedDate(Base):
    __tablename__ = "blocked_dates"

    id = Column(Integer, primary_key=True, index=True)
    blocked_date = Column(Date, index=True, nullable=False)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class BookingDayLock(Base):
    """
    One row per appointment date.

    Reservations upsert this row before their conflict check so concurrent
    reservations for the same date serialize on it until commit.
    """

    __tablename__ = "booking_day_locks"

    lock_date = Column(Date, primary_key=True)
    version = Column(Integer, nullable=False, default=1)
