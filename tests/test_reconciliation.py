"""Payment events applied to the ledger and booking status"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import time
from decimal import Decimal

import pytest

from autobook.domain.payments.reconciliation import EventOutcome, ReconciliationStateMachine
from autobook.domain.payments.repository import PaymentLedger
from autobook.domain.payments.schemas import PaymentEvent
from autobook.models import BookingStatus, PaymentStatus, PaymentType

from .factories import MONDAY, make_booking, make_payment, payment_event


@pytest.fixture
def booking(db, seeded):
    """Booking with total 200.00"""
    return make_booking(db, seeded.sedan, MONDAY, time(10, 0))


@pytest.fixture
def machine(db):
    return ReconciliationStateMachine(db)


@pytest.fixture
def deposit(db, booking):
    return make_payment(db, booking, "pi_deposit", "35.00", PaymentType.DEPOSIT)


@pytest.fixture
def balance(db, booking):
    return make_payment(db, booking, "pi_balance", "165.00", PaymentType.FULL_PAYMENT)


def state(db, booking):
    db.refresh(booking)
    return booking.status, PaymentLedger.succeeded_total(db, booking.id)


def test_deposit_then_balance_then_redelivered_deposit(db, machine, booking, deposit, balance):
    assert machine.apply_success("pi_deposit") == EventOutcome.APPLIED
    assert state(db, booking) == (BookingStatus.CONFIRMED, Decimal("35.00"))

    assert machine.apply_success("pi_balance") == EventOutcome.APPLIED
    assert state(db, booking) == (BookingStatus.PAID, Decimal("200.00"))

    assert machine.apply_success("pi_deposit") == EventOutcome.DUPLICATE
    assert state(db, booking) == (BookingStatus.PAID, Decimal("200.00"))


def test_same_event_twice_equals_once(db, machine, booking, deposit):
    machine.apply_success("pi_deposit")
    once = state(db, booking)

    machine.apply_success("pi_deposit")

    assert state(db, booking) == once


def test_balance_before_deposit_reaches_the_same_final_state(db, machine, booking, deposit, balance):
    machine.apply_success("pi_balance")
    # 165 of 200 paid and no deposit yet
    assert state(db, booking) == (BookingStatus.PENDING_DEPOSIT, Decimal("165.00"))

    machine.apply_success("pi_deposit")

    assert state(db, booking) == (BookingStatus.PAID, Decimal("200.00"))


def test_single_full_payment_settles_pending_booking(db, machine, booking):
    make_payment(db, booking, "pi_full", "200.00", PaymentType.FULL_PAYMENT)

    machine.apply_success("pi_full")

    assert state(db, booking) == (BookingStatus.PAID, Decimal("200.00"))


def test_paid_booking_never_moves_back(db, machine, booking, deposit, balance):
    machine.apply_success("pi_deposit")
    machine.apply_success("pi_balance")
    retry = make_payment(db, booking, "pi_retry", "10.00", PaymentType.FULL_PAYMENT)

    machine.apply_failure("pi_retry")
    machine.apply_success("pi_deposit")
    machine.apply_success("pi_balance")

    assert state(db, booking)[0] == BookingStatus.PAID
    db.refresh(retry)
    assert retry.status == PaymentStatus.FAILED


def test_failure_marks_payment_and_leaves_booking(db, machine, booking, deposit):
    assert machine.apply_failure("pi_deposit") == EventOutcome.APPLIED

    db.refresh(deposit)
    assert deposit.status == PaymentStatus.FAILED
    assert state(db, booking) == (BookingStatus.PENDING_DEPOSIT, Decimal("0.00"))


def test_failure_after_success_is_ignored(db, machine, booking, deposit):
    machine.apply_success("pi_deposit")

    assert machine.apply_failure("pi_deposit") == EventOutcome.DUPLICATE

    db.refresh(deposit)
    assert deposit.status == PaymentStatus.SUCCEEDED
    assert state(db, booking)[0] == BookingStatus.CONFIRMED


def test_success_after_failure_is_not_applied(db, machine, booking, deposit):
    machine.apply_failure("pi_deposit")

    assert machine.apply_success("pi_deposit") == EventOutcome.REJECTED

    db.refresh(deposit)
    assert deposit.status == PaymentStatus.FAILED
    assert state(db, booking) == (BookingStatus.PENDING_DEPOSIT, Decimal("0.00"))


def test_unknown_intent_is_a_no_op(db, machine, booking):
    assert machine.apply_success("pi_missing") == EventOutcome.IGNORED
    assert machine.apply_failure("pi_missing") == EventOutcome.IGNORED
    assert state(db, booking) == (BookingStatus.PENDING_DEPOSIT, Decimal("0.00"))


def test_overpayment_is_not_applied(db, machine, booking, deposit):
    full = make_payment(db, booking, "pi_full", "200.00", PaymentType.FULL_PAYMENT)
    machine.apply_success("pi_deposit")

    assert machine.apply_success("pi_full") == EventOutcome.REJECTED

    db.refresh(full)
    assert full.status == PaymentStatus.PENDING
    assert state(db, booking) == (BookingStatus.CONFIRMED, Decimal("35.00"))


def test_cancelled_booking_records_payment_without_reviving(db, machine, seeded):
    cancelled = make_booking(db, seeded.sedan, MONDAY, time(13, 0), status=BookingStatus.CANCELLED)
    payment = make_payment(db, cancelled, "pi_late", "35.00", PaymentType.DEPOSIT)

    assert machine.apply_success("pi_late") == EventOutcome.APPLIED

    db.refresh(payment)
    assert payment.status == PaymentStatus.SUCCEEDED
    assert state(db, cancelled) == (BookingStatus.CANCELLED, Decimal("35.00"))


def test_concurrent_successes_never_overpay(db, session_factory, booking, deposit):
    make_payment(db, booking, "pi_full", "200.00", PaymentType.FULL_PAYMENT)
    barrier = threading.Barrier(2)

    def deliver(intent_id):
        session = session_factory()
        try:
            barrier.wait(timeout=5)
            return ReconciliationStateMachine(session).apply_success(intent_id)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as executor:
        outcomes = list(executor.map(deliver, ["pi_deposit", "pi_full"]))

    assert sorted(outcomes) == [EventOutcome.APPLIED, EventOutcome.REJECTED]
    status, paid = state(db, booking)
    assert paid in (Decimal("35.00"), Decimal("200.00"))
    assert status == (BookingStatus.PAID if paid == Decimal("200.00") else BookingStatus.CONFIRMED)


class TestHandleEvent:
    def test_dispatches_on_event_type(self, db, machine, booking, deposit):
        event = PaymentEvent.model_validate(
            payment_event("payment_intent.succeeded", "pi_deposit", booking.id, "deposit")
        )

        assert machine.handle_event(event) == EventOutcome.APPLIED
        assert state(db, booking)[0] == BookingStatus.CONFIRMED

    def test_generic_event_names(self, db, machine, booking, deposit):
        event = PaymentEvent.model_validate(
            payment_event("payment-failed", "pi_deposit", booking.id, "deposit")
        )

        assert machine.handle_event(event) == EventOutcome.APPLIED
        db.refresh(deposit)
        assert deposit.status == PaymentStatus.FAILED

    def test_other_event_types_are_ignored(self, db, machine, booking, deposit):
        event = PaymentEvent.model_validate(
            payment_event("charge.refunded", "pi_deposit", booking.id, "deposit")
        )

        assert machine.handle_event(event) == EventOutcome.IGNORED
        db.refresh(deposit)
        assert deposit.status == PaymentStatus.PENDING

    def test_ledger_wins_over_event_metadata(self, db, machine, booking, deposit):
        event = PaymentEvent.model_validate(
            payment_event("payment-succeeded", "pi_deposit", booking.id + 100, "full_payment")
        )

        machine.handle_event(event)

        assert state(db, booking) == (BookingStatus.CONFIRMED, Decimal("35.00"))
