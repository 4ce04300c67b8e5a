"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"

MIN_VEHICLE_YEAR = 1900
MAX_VEHICLE_YEAR = 2100


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Invalid email format")

    return email


def validate_required_text(value: Optional[str]) -> str:
    """Strip surrounding whitespace and reject empty strings"""
    if value is None or not value.strip():
        raise ValueError("Field is required")
    return value.strip()


def validate_vehicle_year(year: int) -> int:
    if year < MIN_VEHICLE_YEAR or year > MAX_VEHICLE_YEAR:
        raise ValueError(f"Vehicle year must be between {MIN_VEHICLE_YEAR} and {MAX_VEHICLE_YEAR}")
    return year


def validate_time_of_day(value: str) -> str:
    """
    Validate an HH:MM wall-clock time.

    Returns the value unchanged when it is a real time of day.
    """
    if not isinstance(value, str) or not re.match(TIME_PATTERN, value):
        raise ValueError("Time must be in HH:MM format")

    hours, minutes = (int(part) for part in value.split(":"))
    if hours > 23 or minutes > 59:
        raise ValueError("Time must be a valid time of day")

    return value


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD calendar date"""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValueError("Date must be in YYYY-MM-DD format") from None
