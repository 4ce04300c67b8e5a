"""
Booking lifecycle state machine.

Two transition tables drive every status change:

- PAYMENT_TRANSITIONS: moves caused by reconciled payment outcomes
  (pending_deposit -> confirmed -> paid).
- STAFF_TRANSITIONS: operational moves made by staff (check-in, start,
  completion, no-show, cancellation).

Nothing outside this module assigns Booking.status directly.
"""

from datetime import datetime
from typing import Optional

from ...models import Booking, BookingStatus
from ...shared.exceptions import ConflictError

PAYMENT_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING_DEPOSIT: frozenset({BookingStatus.CONFIRMED, BookingStatus.PAID}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.PAID}),
}

STAFF_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING_DEPOSIT: frozenset(
        {
            BookingStatus.CONFIRMED,
            BookingStatus.CHECKED_IN,
            BookingStatus.NO_SHOW,
            BookingStatus.CANCELLED,
        }
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.CHECKED_IN, BookingStatus.NO_SHOW, BookingStatus.CANCELLED}
    ),
    BookingStatus.PAID: frozenset(
        {BookingStatus.CHECKED_IN, BookingStatus.NO_SHOW, BookingStatus.CANCELLED}
    ),
    BookingStatus.CHECKED_IN: frozenset(
        {BookingStatus.IN_PROGRESS, BookingStatus.NO_SHOW, BookingStatus.CANCELLED}
    ),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.NO_SHOW: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}

# Statuses a payment outcome may still advance
PAYMENT_SETTLEABLE = frozenset(PAYMENT_TRANSITIONS)

_OPERATIONAL_TIMESTAMPS = {
    BookingStatus.CHECKED_IN: "checked_in_at",
    BookingStatus.IN_PROGRESS: "started_at",
    BookingStatus.COMPLETED: "completed_at",
}


def can_transition(
    current: BookingStatus, target: BookingStatus, table: dict[BookingStatus, frozenset]
) -> bool:
    return target in table.get(current, frozenset())


def apply_payment_transition(booking: Booking, target: BookingStatus) -> bool:
    """
    Move a booking forward because of a payment outcome.

    Returns False (and changes nothing) when the booking is not in a state
    the target can be reached from, so redelivered events never regress or
    re-fire a transition.
    """
    if booking.status == target or not can_transition(booking.status, target, PAYMENT_TRANSITIONS):
        return False
    booking.status = target
    return True


def apply_staff_transition(
    booking: Booking, target: BookingStatus, now: Optional[datetime] = None
) -> Booking:
    """Apply a staff action, stamping the matching operational timestamp"""
    if not can_transition(booking.status, target, STAFF_TRANSITIONS):
        raise ConflictError(
            f"Cannot change booking status from {booking.status.value} to {target.value}"
        )

    booking.status = target
    column = _OPERATIONAL_TIMESTAMPS.get(target)
    if column:
        setattr(booking, column, now or datetime.utcnow())
    return booking
