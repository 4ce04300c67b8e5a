"""Service catalog repository - read-only access to services and their variants"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...config import DEFAULT_SERVICE_DURATION_MINUTES
from ...models import Service, ServiceVariant


@dataclass(frozen=True)
class VariantQuote:
    """Price and duration of a variant as resolved right now"""

    variant_id: int
    price: Decimal
    duration_minutes: int


def resolve_duration(variant: Optional[ServiceVariant]) -> int:
    """
    Duration fallback chain: variant duration, then the service's own
    duration, then the default.
    """
    if variant is not None:
        if variant.duration_minutes:
            return variant.duration_minutes
        if variant.service is not None and variant.service.duration_minutes:
            return variant.service.duration_minutes
    return DEFAULT_SERVICE_DURATION_MINUTES


class ServiceCatalog:
    """Repository for catalog lookups"""

    @staticmethod
    def get_variant(db: Session, variant_id: int) -> Optional[ServiceVariant]:
        return (
            db.query(ServiceVariant)
            .options(joinedload(ServiceVariant.service))
            .filter(ServiceVariant.id == variant_id)
            .first()
        )

    @staticmethod
    def quote_variant(db: Session, variant_id: int) -> Optional[VariantQuote]:
        """Resolve price and duration for a variant, or None if it does not exist"""
        variant = ServiceCatalog.get_variant(db, variant_id)
        if variant is None:
            return None
        return VariantQuote(
            variant_id=variant.id,
            price=Decimal(variant.price),
            duration_minutes=resolve_duration(variant),
        )

    @staticmethod
    def get_active_services(db: Session, category: Optional[str] = None) -> list[Service]:
        query = (
            db.query(Service)
            .options(joinedload(Service.variants))
            .filter(Service.is_active.is_(True))
        )
        if category:
            query = query.filter(Service.category == category)
        return query.order_by(Service.category, Service.name).all()

    @staticmethod
    def get_active_service(db: Session, service_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .options(joinedload(Service.variants))
            .filter(Service.id == service_id, Service.is_active.is_(True))
            .first()
        )
