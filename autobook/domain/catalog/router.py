"""Catalog router - read-only service listing"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.exceptions import NotFoundError
from .repository import ServiceCatalog
from .schemas import ServiceResponse

router = APIRouter(prefix="/api/services", tags=["Services"])


@router.get("", response_model=list[ServiceResponse])
def list_services(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Get all active services with their variants"""
    return ServiceCatalog.get_active_services(db, category)


@router.get("/{service_id}", response_model=ServiceResponse)
def get_service(service_id: int, db: Session = Depends(get_db)):
    service = ServiceCatalog.get_active_service(db, service_id)
    if not service:
        raise NotFoundError("Service not found")
    return service
