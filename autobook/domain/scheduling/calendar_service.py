"""Calendar service - staff maintenance of business hours and blocked dates"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...models import BlockedDate, BusinessHours
from ...shared.exceptions import NotFoundError, ValidationError
from .repository import SchedulingRepository
from .schemas import BlockedDateCreate, BusinessHoursUpdate
from .time_calculator import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


class CalendarService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def list_business_hours(self) -> list[BusinessHours]:
        return self.repo.list_business_hours(self.db)

    def set_business_hours(self, weekday: int, data: BusinessHoursUpdate) -> BusinessHours:
        if weekday < 0 or weekday > 6:
            raise ValidationError(
                [{"field": "dayOfWeek", "message": "Day of week must be between 0 (Sunday) and 6"}]
            )

        open_time = minutes_to_time(time_to_minutes(data.openTime)) if data.openTime else None
        close_time = minutes_to_time(time_to_minutes(data.closeTime)) if data.closeTime else None

        with unit_of_work(self.db):
            hours = self.repo.set_business_hours(self.db, weekday, open_time, close_time, data.isClosed)

        logger.info(f"✅ Business hours updated for weekday {weekday}")
        return hours

    def list_blocked_dates(self, from_date: Optional[date] = None) -> list[BlockedDate]:
        return self.repo.list_blocked_dates(self.db, from_date)

    def block_date(self, data: BlockedDateCreate) -> BlockedDate:
        with unit_of_work(self.db):
            blocked = self.repo.add_blocked_date(self.db, data.blockedDate, data.reason)
        logger.info(f"✅ Blocked {data.blockedDate.isoformat()} ({data.reason or 'no reason'})")
        return blocked

    def unblock_date(self, blocked_id: int) -> None:
        with unit_of_work(self.db):
            blocked = self.repo.get_blocked_date_by_id(self.db, blocked_id)
            if not blocked:
                raise NotFoundError("Blocked date not found")
            self.db.delete(blocked)
        logger.info(f"✅ Unblocked date record {blocked_id}")
