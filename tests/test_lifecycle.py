from datetime import datetime
from types import SimpleNamespace

import pytest

from autobook.domain.bookings.lifecycle import (
    PAYMENT_TRANSITIONS,
    STAFF_TRANSITIONS,
    apply_payment_transition,
    apply_staff_transition,
    can_transition,
)
from autobook.models import BookingStatus
from autobook.shared.exceptions import ConflictError


def booking_in(status):
    return SimpleNamespace(status=status, checked_in_at=None, started_at=None, completed_at=None)


class TestPaymentTransitions:
    def test_deposit_then_full_payment(self):
        booking = booking_in(BookingStatus.PENDING_DEPOSIT)

        assert apply_payment_transition(booking, BookingStatus.CONFIRMED)
        assert apply_payment_transition(booking, BookingStatus.PAID)
        assert booking.status == BookingStatus.PAID

    def test_never_regresses(self):
        booking = booking_in(BookingStatus.PAID)

        assert not apply_payment_transition(booking, BookingStatus.CONFIRMED)
        assert booking.status == BookingStatus.PAID

    def test_repeating_a_transition_is_a_no_op(self):
        booking = booking_in(BookingStatus.CONFIRMED)

        assert not apply_payment_transition(booking, BookingStatus.CONFIRMED)

    @pytest.mark.parametrize(
        "status",
        [
            BookingStatus.CANCELLED,
            BookingStatus.NO_SHOW,
            BookingStatus.CHECKED_IN,
            BookingStatus.IN_PROGRESS,
            BookingStatus.COMPLETED,
        ],
    )
    def test_payments_do_not_move_operational_or_cancelled_bookings(self, status):
        booking = booking_in(status)

        assert not apply_payment_transition(booking, BookingStatus.PAID)
        assert booking.status == status


class TestStaffTransitions:
    def test_operational_path_stamps_times(self):
        booking = booking_in(BookingStatus.PAID)
        now = datetime(2030, 1, 7, 10, 0)

        apply_staff_transition(booking, BookingStatus.CHECKED_IN, now=now)
        apply_staff_transition(booking, BookingStatus.IN_PROGRESS, now=now)
        apply_staff_transition(booking, BookingStatus.COMPLETED, now=now)

        assert booking.status == BookingStatus.COMPLETED
        assert booking.checked_in_at == now
        assert booking.started_at == now
        assert booking.completed_at == now

    @pytest.mark.parametrize("target", [BookingStatus.CHECKED_IN, BookingStatus.NO_SHOW])
    def test_unpaid_booking_reaches_operational_states(self, target):
        booking = booking_in(BookingStatus.PENDING_DEPOSIT)

        apply_staff_transition(booking, target)

        assert booking.status == target

    @pytest.mark.parametrize("target", [BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED])
    def test_cannot_skip_check_in(self, target):
        with pytest.raises(ConflictError):
            apply_staff_transition(booking_in(BookingStatus.PENDING_DEPOSIT), target)

    @pytest.mark.parametrize("status", [s for s in BookingStatus if s != BookingStatus.CANCELLED])
    def test_cancel_is_reachable_from_every_live_status(self, status):
        booking = booking_in(status)

        apply_staff_transition(booking, BookingStatus.CANCELLED)

        assert booking.status == BookingStatus.CANCELLED

    def test_cancelled_is_terminal(self):
        for target in BookingStatus:
            assert not can_transition(BookingStatus.CANCELLED, target, STAFF_TRANSITIONS)
            assert not can_transition(BookingStatus.CANCELLED, target, PAYMENT_TRANSITIONS)
