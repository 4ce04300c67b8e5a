"""Time parsing and formatting helpers for minute-of-day arithmetic"""

from datetime import date, time
from typing import Union


def time_to_minutes(value: Union[time, str]) -> int:
    """Minutes since midnight for a time object or an HH:MM string"""
    if isinstance(value, str):
        hours, minutes = (int(part) for part in value.split(":")[:2])
        return hours * 60 + minutes
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    return time(hour=minutes // 60, minute=minutes % 60)


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_12h(minutes: int) -> str:
    """540 -> '9:00 AM', 810 -> '1:30 PM'"""
    hours = minutes // 60
    period = "PM" if hours >= 12 else "AM"
    hour = hours % 12 or 12
    return f"{hour}:{minutes % 60:02d} {period}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap: [a_start, a_end) and [b_start, b_end)"""
    return a_start < b_end and b_start < a_end


def day_of_week(day: date) -> int:
    """Weekday index with 0 = Sunday ... 6 = Saturday"""
    return (day.weekday() + 1) % 7
