"""Booking schemas - Pydantic models for booking responses and staff updates"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ...models import BookingStatus
from ...shared.money import Money


class BookingResponse(BaseModel):
    """Schema for a booking row"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    service_variant_id: int
    vehicle_year: Optional[int] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    appointment_date: date
    appointment_time: time
    duration_minutes: int
    status: BookingStatus
    notes: Optional[str] = None
    deposit_amount: Money
    total_amount: Money
    created_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_serializer("appointment_time")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class BookingDetailResponse(BookingResponse):
    """Booking with customer contact and service names"""

    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    variant_name: Optional[str] = None
    service_name: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def from_booking(cls, booking) -> "BookingDetailResponse":
        detail = cls.model_validate(booking)
        if booking.customer:
            detail.email = booking.customer.email
            detail.phone = booking.customer.phone
            detail.first_name = booking.customer.first_name
            detail.last_name = booking.customer.last_name
        variant = booking.service_variant
        if variant:
            detail.variant_name = variant.name
            if variant.service:
                detail.service_name = variant.service.name
                detail.category = variant.service.category
        return detail


class ReservationResponse(BaseModel):
    booking: BookingResponse
    depositRequired: Money


class BookingListResponse(BaseModel):
    bookings: list[BookingDetailResponse]
    page: int
    limit: int


class StatusUpdateRequest(BaseModel):
    """Staff status change"""

    status: BookingStatus = Field(..., description="Target booking status")
