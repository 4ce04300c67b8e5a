"""Staff endpoints for business hours and blocked dates"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...database import get_db
from .calendar_service import CalendarService
from .schemas import (
    BlockedDateCreate,
    BlockedDateResponse,
    BusinessHoursResponse,
    BusinessHoursUpdate,
)

router = APIRouter(prefix="/api/admin", tags=["Admin - Calendar"])


def get_calendar_service(db: Session = Depends(get_db)) -> CalendarService:
    return CalendarService(db)


# ============================================================================
# BUSINESS HOURS
# ============================================================================


@router.get("/business-hours", response_model=list[BusinessHoursResponse])
def list_business_hours(service: CalendarService = Depends(get_calendar_service)):
    return service.list_business_hours()


@router.put("/business-hours/{day_of_week}", response_model=BusinessHoursResponse)
def update_business_hours(
    day_of_week: int,
    data: BusinessHoursUpdate,
    service: CalendarService = Depends(get_calendar_service),
):
    """Set open/close times for a weekday (0 = Sunday)"""
    return service.set_business_hours(day_of_week, data)


# ============================================================================
# BLOCKED DATES
# ============================================================================


@router.get("/blocked-dates", response_model=list[BlockedDateResponse])
def list_blocked_dates(
    from_date: Optional[date] = Query(None, alias="from"),
    service: CalendarService = Depends(get_calendar_service),
):
    """Blocked dates, by default from today on"""
    return service.list_blocked_dates(from_date or date.today())


@router.post("/blocked-dates", response_model=BlockedDateResponse, status_code=status.HTTP_201_CREATED)
def block_date(data: BlockedDateCreate, service: CalendarService = Depends(get_calendar_service)):
    return service.block_date(data)


@router.delete("/blocked-dates/{blocked_id}")
def unblock_date(blocked_id: int, service: CalendarService = Depends(get_calendar_service)):
    service.unblock_date(blocked_id)
    return {"success": True}
