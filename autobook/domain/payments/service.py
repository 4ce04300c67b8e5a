"""Payment service - opens deposit and balance payment intents"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ...database import unit_of_work
from ...models import INACTIVE_BOOKING_STATUSES, Booking, BookingStatus, PaymentType
from ...shared.exceptions import ConflictError, NotFoundError
from ...shared.money import to_money
from ..bookings.repository import BookingRepository
from .gateway import PaymentGateway
from .repository import PaymentLedger
from .schemas import PaymentRecordResponse, PaymentStatusResponse

logger = logging.getLogger(__name__)


@dataclass
class IntentQuote:
    booking_id: int
    amount: Decimal
    payment_type: PaymentType
    total: Decimal
    paid: Decimal
    receipt_email: Optional[str]


@dataclass
class IntentResult:
    client_secret: str
    amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal


class PaymentService:
    """
    Opens payment intents against the gateway and records them as pending
    ledger rows. Booking status only moves when a signed gateway event is
    reconciled.
    """

    def __init__(self, db: Session, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.bookings = BookingRepository()
        self.ledger = PaymentLedger()

    def _get_booking(self, booking_id: int) -> Booking:
        booking = self.bookings.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _quote(
        self, booking: Booking, amount: Decimal, payment_type: PaymentType, paid: Decimal
    ) -> IntentQuote:
        return IntentQuote(
            booking_id=booking.id,
            amount=amount,
            payment_type=payment_type,
            total=to_money(booking.total_amount),
            paid=paid,
            receipt_email=booking.customer.email if booking.customer else None,
        )

    def quote_deposit(self, booking_id: int) -> IntentQuote:
        booking = self._get_booking(booking_id)
        if booking.status != BookingStatus.PENDING_DEPOSIT:
            raise ConflictError("Deposit already paid or booking not awaiting deposit")

        paid = self.ledger.succeeded_total(self.db, booking.id)
        total = to_money(booking.total_amount)
        # Never ask for more than what is still owed
        amount = min(to_money(booking.deposit_amount), total - paid)
        if amount <= 0:
            raise ConflictError("Booking already fully paid")

        return self._quote(booking, amount, PaymentType.DEPOSIT, paid)

    def quote_balance(self, booking_id: int) -> IntentQuote:
        booking = self._get_booking(booking_id)
        if booking.status in INACTIVE_BOOKING_STATUSES:
            raise ConflictError(f"Booking is {booking.status.value}")

        paid = self.ledger.succeeded_total(self.db, booking.id)
        remaining = to_money(booking.total_amount) - paid
        if remaining <= 0:
            raise ConflictError("Booking already fully paid")

        return self._quote(booking, remaining, PaymentType.FULL_PAYMENT, paid)

    async def open_deposit_payment(self, booking_id: int) -> IntentResult:
        quote = await run_in_threadpool(self.quote_deposit, booking_id)
        return await self._open_intent(quote)

    async def open_balance_payment(self, booking_id: int) -> IntentResult:
        quote = await run_in_threadpool(self.quote_balance, booking_id)
        return await self._open_intent(quote)

    def record_intent(self, quote: IntentQuote, payment_intent_id: str) -> None:
        with unit_of_work(self.db):
            self.ledger.record_pending(
                self.db, quote.booking_id, payment_intent_id, quote.amount, quote.payment_type
            )

    async def _open_intent(self, quote: IntentQuote) -> IntentResult:
        """Session work runs in the threadpool; only the gateway call awaits on the loop"""
        intent = await self.gateway.create_payment_intent(
            quote.amount,
            metadata={"bookingId": str(quote.booking_id), "paymentType": quote.payment_type.value},
            receipt_email=quote.receipt_email,
        )
        await run_in_threadpool(self.record_intent, quote, intent.id)

        logger.info(
            f"💳 {quote.payment_type.value} intent {intent.id} opened for booking "
            f"{quote.booking_id}: ${quote.amount}"
        )
        return IntentResult(
            client_secret=intent.client_secret,
            amount=quote.amount,
            total_amount=quote.total,
            paid_amount=quote.paid,
        )

    def payment_summary(self, booking_id: int) -> PaymentStatusResponse:
        booking = self._get_booking(booking_id)
        paid = self.ledger.succeeded_total(self.db, booking.id)
        total = to_money(booking.total_amount)
        return PaymentStatusResponse(
            totalAmount=total,
            depositAmount=to_money(booking.deposit_amount),
            paidAmount=paid,
            remainingAmount=max(total - paid, Decimal("0.00")),
            bookingStatus=booking.status,
            payments=[
                PaymentRecordResponse.model_validate(p)
                for p in self.ledger.list_for_booking(self.db, booking.id)
            ],
        )
