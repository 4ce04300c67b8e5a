"""
Payment reconciliation state machine.

Applies gateway outcomes to the payment ledger and to booking status. The
gateway may redeliver events and deliver them out of order, so every
decision is derived from persisted state:

- a payment row only moves pending -> succeeded | failed
- after a success, the booking is re-settled from the ledger sum instead of
  from the event's own payment type, so the final status depends only on
  the set of succeeded payments
- settlement only moves bookings forward (see lifecycle.PAYMENT_TRANSITIONS)
"""

import enum
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...models import Booking, BookingStatus, Payment, PaymentStatus
from ...shared.money import to_money
from ..bookings.lifecycle import PAYMENT_SETTLEABLE, apply_payment_transition
from ..bookings.repository import BookingRepository
from ..scheduling.repository import SchedulingRepository
from .repository import PaymentLedger
from .schemas import PaymentEvent

logger = logging.getLogger(__name__)

SUCCEEDED_EVENT_TYPES = frozenset({"payment-succeeded", "payment_intent.succeeded"})
FAILED_EVENT_TYPES = frozenset({"payment-failed", "payment_intent.payment_failed"})


class EventOutcome(str, enum.Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    REJECTED = "rejected"


class ReconciliationStateMachine:
    def __init__(self, db: Session):
        self.db = db
        self.ledger = PaymentLedger()
        self.bookings = BookingRepository()

    def handle_event(self, event: PaymentEvent) -> EventOutcome:
        """Dispatch a verified gateway event"""
        if event.type in SUCCEEDED_EVENT_TYPES:
            return self.apply_success(event.payment_intent_id, event.data.object.metadata)
        if event.type in FAILED_EVENT_TYPES:
            return self.apply_failure(event.payment_intent_id)

        logger.info(f"Unhandled payment event type: {event.type}")
        return EventOutcome.IGNORED

    def _lock_payment(self, payment_intent_id: str) -> Optional[tuple[Payment, Booking]]:
        """
        Load the payment and its booking under the booking's date lock, then
        lock the booking row, so concurrent events for one booking settle one
        after another on every store.
        """
        payment = self.ledger.get_by_intent_id(self.db, payment_intent_id)
        if payment is None:
            return None
        day = self.bookings.get_appointment_date(self.db, payment.booking_id)
        SchedulingRepository.lock_day(self.db, day)
        booking = self.bookings.get_booking_for_update(self.db, payment.booking_id)
        self.db.refresh(payment, with_for_update=True)
        return payment, booking

    def apply_success(self, payment_intent_id: str, metadata: Optional[dict] = None) -> EventOutcome:
        with unit_of_work(self.db):
            locked = self._lock_payment(payment_intent_id)
            if locked is None:
                logger.warning(f"⚠️ Payment succeeded for unknown intent {payment_intent_id}, ignoring")
                return EventOutcome.IGNORED
            payment, booking = locked

            if metadata and str(metadata.get("bookingId", booking.id)) != str(booking.id):
                logger.warning(
                    f"⚠️ Intent {payment_intent_id} metadata names booking {metadata.get('bookingId')}, "
                    f"ledger says {booking.id}; using ledger"
                )

            if payment.status == PaymentStatus.SUCCEEDED:
                logger.info(f"Payment {payment_intent_id} already succeeded, duplicate event")
                return EventOutcome.DUPLICATE

            if payment.status == PaymentStatus.FAILED:
                logger.error(
                    f"❌ Success event for failed payment {payment_intent_id} (booking {booking.id}), "
                    "not applied; needs manual review"
                )
                return EventOutcome.REJECTED

            paid = self.ledger.succeeded_total(self.db, booking.id)
            total = to_money(booking.total_amount)
            if paid + to_money(payment.amount) > total:
                logger.error(
                    f"❌ Payment {payment_intent_id} of ${payment.amount} would overpay booking "
                    f"{booking.id} (paid ${paid} of ${total}); left pending for refund"
                )
                return EventOutcome.REJECTED

            payment.status = PaymentStatus.SUCCEEDED
            self.db.flush()
            previous = booking.status
            moved = self.settle(booking)

        logger.info(f"✅ Payment {payment_intent_id} succeeded for booking {booking.id}")
        if moved:
            logger.info(f"✅ Booking {booking.id} status: {previous.value} → {booking.status.value}")
        return EventOutcome.APPLIED

    def settle(self, booking: Booking) -> bool:
        """
        Derive the booking's payment status from the succeeded ledger rows.

        Returns True when the booking status changed.
        """
        if booking.status not in PAYMENT_SETTLEABLE:
            return False

        paid = self.ledger.succeeded_total(self.db, booking.id)
        if paid >= to_money(booking.total_amount):
            return apply_payment_transition(booking, BookingStatus.PAID)
        if self.ledger.has_succeeded_deposit(self.db, booking.id):
            return apply_payment_transition(booking, BookingStatus.CONFIRMED)
        return False

    def apply_failure(self, payment_intent_id: str) -> EventOutcome:
        with unit_of_work(self.db):
            locked = self._lock_payment(payment_intent_id)
            if locked is None:
                logger.warning(f"⚠️ Payment failed for unknown intent {payment_intent_id}, ignoring")
                return EventOutcome.IGNORED
            payment, booking = locked

            if payment.status != PaymentStatus.PENDING:
                logger.info(f"Payment {payment_intent_id} already {payment.status.value}, failure ignored")
                return EventOutcome.DUPLICATE

            payment.status = PaymentStatus.FAILED

        logger.warning(f"⚠️ Payment {payment_intent_id} failed for booking {booking.id}")
        return EventOutcome.APPLIED
