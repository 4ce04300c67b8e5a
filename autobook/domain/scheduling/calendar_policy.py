"""Calendar policy - whether a date is open for appointments and its open window"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from .repository import SchedulingRepository
from .time_calculator import day_of_week, time_to_minutes

logger = logging.getLogger(__name__)

CLOSED_REASON = "Closed"
BLOCKED_REASON = "Blocked"


@dataclass(frozen=True)
class TimeWindow:
    open_minutes: int
    close_minutes: int

    def contains(self, start: int, end: int) -> bool:
        return self.open_minutes <= start and end <= self.close_minutes


@dataclass(frozen=True)
class DayAvailability:
    open: bool
    window: Optional[TimeWindow] = None
    reason: Optional[str] = None
    blocked: bool = False


class CalendarPolicy:
    """Answers open/closed questions from business hours and blocked dates"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def is_open(self, day: date) -> DayAvailability:
        """
        A date is unavailable if it is explicitly blocked, or its weekday is
        flagged closed, or there is no policy entry for its weekday.
        """
        blocked = self.repo.get_blocked_date(self.db, day)
        if blocked:
            return DayAvailability(open=False, reason=blocked.reason or BLOCKED_REASON, blocked=True)

        hours = self.repo.get_business_hours(self.db, day_of_week(day))
        if hours is None or hours.is_closed or not hours.open_time or not hours.close_time:
            return DayAvailability(open=False, reason=CLOSED_REASON)

        window = TimeWindow(time_to_minutes(hours.open_time), time_to_minutes(hours.close_time))
        if window.close_minutes <= window.open_minutes:
            logger.warning(f"⚠️ Business hours for weekday {hours.day_of_week} close before they open")
            return DayAvailability(open=False, reason=CLOSED_REASON)

        return DayAvailability(open=True, window=window)
