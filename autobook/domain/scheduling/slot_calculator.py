"""Slot calculator - bookable start times for a date and service duration"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...config import SLOT_INTERVAL_MINUTES
from ..catalog.repository import ServiceCatalog, resolve_duration
from .calendar_policy import CalendarPolicy, TimeWindow
from .repository import SchedulingRepository
from .time_calculator import overlaps

logger = logging.getLogger(__name__)


@dataclass
class SlotResult:
    available: bool
    slots: list[int] = field(default_factory=list)  # minutes since midnight
    reason: Optional[str] = None
    duration_minutes: Optional[int] = None


def iter_free_slots(
    window: TimeWindow,
    duration: int,
    busy: Iterable[tuple[int, int]],
    interval: int = SLOT_INTERVAL_MINUTES,
) -> Iterator[int]:
    """
    Yield start minutes from open to close - duration (inclusive) in
    `interval` steps whose [start, start + duration) window does not overlap
    any busy window.
    """
    busy = list(busy)
    start = window.open_minutes
    while start + duration <= window.close_minutes:
        end = start + duration
        if not any(overlaps(start, end, b_start, b_end) for b_start, b_end in busy):
            yield start
        start += interval


class SlotCalculator:
    def __init__(self, db: Session):
        self.db = db
        self.calendar = CalendarPolicy(db)
        self.repo = SchedulingRepository()

    def compute(self, day: date, service_variant_id: Optional[int] = None) -> SlotResult:
        availability = self.calendar.is_open(day)
        if not availability.open:
            return SlotResult(available=False, reason=availability.reason)

        variant = None
        if service_variant_id is not None:
            variant = ServiceCatalog.get_variant(self.db, service_variant_id)
            if variant is None:
                logger.info(f"Unknown service variant {service_variant_id}, using default duration")
        duration = resolve_duration(variant)

        busy = [(b.start_minutes, b.end_minutes) for b in self.repo.get_active_bookings_on(self.db, day)]
        slots = list(iter_free_slots(availability.window, duration, busy))

        return SlotResult(available=True, slots=slots, duration_minutes=duration)
