"""
Pytest configuration.

Every test gets its own file-backed SQLite database (file-backed so the
concurrency tests can open several connections to the same store).
"""

import os

# Set BEFORE any autobook import; config is read at import time
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import time
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from autobook.database import create_db_engine, create_session_factory, init_db
from autobook.main import create_app
from autobook.models import BusinessHours, Service, ServiceVariant

from .factories import WEBHOOK_SECRET, FakeGateway

# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'autobook.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# SEED DATA
# ============================================================================


@pytest.fixture
def business_hours(db: Session):
    """Monday-Saturday 09:00-17:00, Sunday closed"""
    db.add(BusinessHours(day_of_week=0, is_closed=True))
    for weekday in range(1, 7):
        db.add(
            BusinessHours(
                day_of_week=weekday, open_time=time(9, 0), close_time=time(17, 0), is_closed=False
            )
        )
    db.commit()


@pytest.fixture
def catalog(db: Session) -> SimpleNamespace:
    """
    Sedan: 60 min own duration, 200.00
    SUV: no own duration, falls back to the service's 120 min
    Basic wash: neither variant nor service duration, falls back to 60 min
    """
    detail = Service(
        name="Full Detail",
        category="detailing",
        base_price=Decimal("180.00"),
        duration_minutes=120,
    )
    wash = Service(name="Express Wash", category="wash", base_price=Decimal("40.00"), duration_minutes=None)
    db.add_all([detail, wash])
    db.flush()

    sedan = ServiceVariant(service_id=detail.id, name="Sedan", price=Decimal("200.00"), duration_minutes=60)
    suv = ServiceVariant(service_id=detail.id, name="SUV", price=Decimal("250.00"), duration_minutes=None)
    basic = ServiceVariant(service_id=wash.id, name="Basic", price=Decimal("20.00"), duration_minutes=None)
    db.add_all([sedan, suv, basic])
    db.commit()

    return SimpleNamespace(detail=detail, wash=wash, sedan=sedan, suv=suv, basic=basic)


@pytest.fixture
def seeded(business_hours, catalog) -> SimpleNamespace:
    return catalog


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(engine, session_factory, gateway, seeded) -> TestClient:
    app = create_app(
        engine=engine,
        session_factory=session_factory,
        payment_gateway=gateway,
        webhook_secret=WEBHOOK_SECRET,
    )
    with TestClient(app) as test_client:
        yield test_client
