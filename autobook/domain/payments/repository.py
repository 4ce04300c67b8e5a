"""Payment ledger - payment attempts and their outcomes per booking"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Payment, PaymentStatus, PaymentType
from ...shared.money import to_money


class PaymentLedger:
    """Repository for payment database operations"""

    @staticmethod
    def get_by_intent_id(db: Session, payment_intent_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.payment_intent_id == payment_intent_id).first()

    @staticmethod
    def list_for_booking(db: Session, booking_id: int) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.booking_id == booking_id)
            .order_by(Payment.created_at, Payment.id)
            .all()
        )

    @staticmethod
    def record_pending(
        db: Session,
        booking_id: int,
        payment_intent_id: str,
        amount: Decimal,
        payment_type: PaymentType,
    ) -> Payment:
        payment = Payment(
            booking_id=booking_id,
            payment_intent_id=payment_intent_id,
            amount=amount,
            status=PaymentStatus.PENDING,
            payment_type=payment_type,
        )
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def succeeded_total(db: Session, booking_id: int) -> Decimal:
        """Sum of succeeded payments, always recomputed from the ledger"""
        total = (
            db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.booking_id == booking_id, Payment.status == PaymentStatus.SUCCEEDED)
            .scalar()
        )
        return to_money(total)

    @staticmethod
    def has_succeeded_deposit(db: Session, booking_id: int) -> bool:
        return (
            db.query(Payment.id)
            .filter(
                Payment.booking_id == booking_id,
                Payment.payment_type == PaymentType.DEPOSIT,
                Payment.status == PaymentStatus.SUCCEEDED,
            )
            .first()
            is not None
        )
