"""Atomic reservations: validation order, conflict re-check and concurrency"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import time
from decimal import Decimal

import pytest

from autobook.domain.scheduling.repository import SchedulingRepository
from autobook.domain.scheduling.reservation_service import ReservationService
from autobook.domain.scheduling.schemas import BookingCreate
from autobook.models import Booking, BookingStatus, Customer
from autobook.shared.exceptions import ConflictError, InvalidVariantError, NotFoundError

from .factories import MONDAY, SUNDAY, TUESDAY, make_booking, reservation_payload


def request_for(variant, **overrides) -> BookingCreate:
    return BookingCreate(**reservation_payload(serviceVariantId=variant.id, **overrides))


def test_reserve_creates_pending_booking_with_snapshots(db, seeded):
    result = ReservationService(db).reserve(request_for(seeded.sedan))

    booking = result.booking
    assert booking.id is not None
    assert booking.status == BookingStatus.PENDING_DEPOSIT
    assert booking.duration_minutes == 60
    assert booking.total_amount == Decimal("200.00")
    assert booking.deposit_amount == Decimal("35.00")
    assert booking.appointment_time == time(10, 0)
    assert result.deposit_required == Decimal("35.00")


def test_catalog_changes_do_not_touch_existing_bookings(db, seeded):
    booking = ReservationService(db).reserve(request_for(seeded.sedan)).booking

    seeded.sedan.price = Decimal("999.00")
    seeded.sedan.duration_minutes = 240
    db.commit()
    db.refresh(booking)

    assert booking.total_amount == Decimal("200.00")
    assert booking.duration_minutes == 60


def test_unknown_variant_leaves_no_rows(db, seeded):
    payload = BookingCreate(**reservation_payload(serviceVariantId=9999, email="new.person@example.com"))

    with pytest.raises(InvalidVariantError) as exc_info:
        ReservationService(db).reserve(payload)

    assert isinstance(exc_info.value, NotFoundError)
    assert db.query(Customer).count() == 0
    assert db.query(Booking).count() == 0


def test_overlapping_request_is_rejected(db, seeded):
    make_booking(db, seeded.sedan, MONDAY, time(10, 0))

    with pytest.raises(ConflictError):
        ReservationService(db).reserve(request_for(seeded.sedan, appointmentTime="10:30"))

    assert db.query(Booking).count() == 1
    assert db.query(Customer).filter(Customer.email == "jane.doe@example.com").count() == 0


def test_adjacent_request_is_accepted(db, seeded):
    make_booking(db, seeded.sedan, MONDAY, time(10, 0))

    booking = ReservationService(db).reserve(request_for(seeded.sedan, appointmentTime="11:00")).booking

    assert booking.appointment_time == time(11, 0)


def test_cancelled_booking_releases_its_window(db, seeded):
    make_booking(db, seeded.sedan, MONDAY, time(10, 0), status=BookingStatus.CANCELLED)

    booking = ReservationService(db).reserve(request_for(seeded.sedan)).booking

    assert booking.status == BookingStatus.PENDING_DEPOSIT


def test_closed_and_blocked_dates_are_rejected(db, seeded):
    SchedulingRepository.add_blocked_date(db, TUESDAY, "Holiday")
    db.commit()
    service = ReservationService(db)

    with pytest.raises(ConflictError):
        service.reserve(request_for(seeded.sedan, appointmentDate=SUNDAY.isoformat()))
    with pytest.raises(ConflictError):
        service.reserve(request_for(seeded.sedan, appointmentDate=TUESDAY.isoformat()))

    assert db.query(Booking).count() == 0


@pytest.mark.parametrize("start", ["08:30", "16:30"])
def test_requests_outside_business_hours_are_rejected(db, seeded, start):
    with pytest.raises(ConflictError):
        ReservationService(db).reserve(request_for(seeded.sedan, appointmentTime=start))


def test_returning_customer_is_updated_not_duplicated(db, seeded):
    service = ReservationService(db)
    service.reserve(request_for(seeded.sedan, appointmentTime="09:00"))
    service.reserve(request_for(seeded.sedan, appointmentTime="13:00", phone="555-0199", lastName="Smith"))

    customers = db.query(Customer).filter(Customer.email == "jane.doe@example.com").all()
    assert len(customers) == 1
    db.refresh(customers[0])
    assert customers[0].phone == "555-0199"
    assert customers[0].last_name == "Smith"
    assert len(customers[0].bookings) == 2


def test_email_is_normalized_before_lookup(db, seeded):
    service = ReservationService(db)
    service.reserve(request_for(seeded.sedan, appointmentTime="09:00"))
    service.reserve(request_for(seeded.sedan, appointmentTime="13:00", email="  Jane.Doe@Example.com "))

    assert db.query(Customer).count() == 1


def _race(session_factory, requests):
    barrier = threading.Barrier(len(requests))

    def _worker(request):
        session = session_factory()
        try:
            barrier.wait(timeout=5)
            ReservationService(session).reserve(request)
            return "reserved"
        except ConflictError:
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(requests)) as executor:
        return list(executor.map(_worker, requests))


def test_concurrent_identical_requests_book_once(db, session_factory, seeded):
    requests = [
        request_for(seeded.sedan, email=f"racer{i}@example.com") for i in range(2)
    ]

    results = _race(session_factory, requests)

    assert sorted(results) == ["conflict", "reserved"]
    db.expire_all()
    active = SchedulingRepository.get_active_bookings_on(db, MONDAY)
    assert len(active) == 1


def test_concurrent_overlapping_requests_keep_windows_disjoint(db, session_factory, seeded):
    requests = [
        request_for(seeded.suv, appointmentTime="10:00", email="a@example.com"),
        request_for(seeded.sedan, appointmentTime="11:00", email="b@example.com"),
        request_for(seeded.sedan, appointmentTime="10:30", email="c@example.com"),
        request_for(seeded.sedan, appointmentTime="14:00", email="d@example.com"),
    ]

    results = _race(session_factory, requests)

    # The first three windows overlap pairwise; only one of them can win
    assert results.count("reserved") == 2
    db.expire_all()
    active = SchedulingRepository.get_active_bookings_on(db, MONDAY)
    assert len(active) == results.count("reserved")
    for i, first in enumerate(active):
        for second in active[i + 1:]:
            assert not (
                first.start_minutes < second.end_minutes and second.start_minutes < first.end_minutes
            )
