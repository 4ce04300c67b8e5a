"""Scheduling schemas - availability responses and reservation requests"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator, model_validator

from ...shared.validators import (
    parse_iso_date,
    validate_email,
    validate_required_text,
    validate_time_of_day,
    validate_vehicle_year,
)


class SlotResponse(BaseModel):
    time: str  # HH:MM
    formatted: str  # h:mm AM/PM


class AvailabilityResponse(BaseModel):
    available: bool
    reason: Optional[str] = None
    slots: list[SlotResponse] = []


class BookingCreate(BaseModel):
    """Reservation request submitted by a customer"""

    email: str
    phone: str
    firstName: str
    lastName: str
    serviceVariantId: int
    vehicleYear: int
    vehicleMake: str
    vehicleModel: str
    appointmentDate: date
    appointmentTime: str
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_contact_email(cls, v):
        return validate_email(validate_required_text(v))

    @field_validator("phone", "firstName", "lastName", "vehicleMake", "vehicleModel")
    @classmethod
    def validate_text(cls, v):
        return validate_required_text(v)

    @field_validator("vehicleYear")
    @classmethod
    def validate_year(cls, v):
        return validate_vehicle_year(v)

    @field_validator("appointmentDate", mode="before")
    @classmethod
    def validate_date(cls, v):
        if isinstance(v, date):
            return v
        if not isinstance(v, str):
            raise ValueError("Date must be in YYYY-MM-DD format")
        return parse_iso_date(v)

    @field_validator("appointmentTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)


class BusinessHoursUpdate(BaseModel):
    openTime: Optional[str] = None
    closeTime: Optional[str] = None
    isClosed: bool = False

    @field_validator("openTime", "closeTime")
    @classmethod
    def validate_clock(cls, v):
        if v is None:
            return v
        return validate_time_of_day(v)

    @model_validator(mode="after")
    def validate_window(self):
        if self.isClosed:
            return self
        if not self.openTime or not self.closeTime:
            raise ValueError("openTime and closeTime are required unless the day is closed")
        if self.closeTime <= self.openTime:
            raise ValueError("closeTime must be after openTime")
        return self


class BusinessHoursResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_of_week: int
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    is_closed: bool

    @field_serializer("open_time", "close_time")
    def serialize_clock(self, value: Optional[time]) -> Optional[str]:
        return value.strftime("%H:%M") if value else None


class BlockedDateCreate(BaseModel):
    blockedDate: date
    reason: Optional[str] = None

    @field_validator("blockedDate", mode="before")
    @classmethod
    def validate_date(cls, v):
        if isinstance(v, date):
            return v
        if not isinstance(v, str):
            raise ValueError("Date must be in YYYY-MM-DD format")
        return parse_iso_date(v)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v):
        return v.strip() if v else v


class BlockedDateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    blocked_date: date
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
