"""Payments router - payment intents, payment status and the gateway webhook"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ...database import get_db
from ...rate_limiter import payment_intent_rate_limit
from ...shared.exceptions import BookingError
from ...webhook_security import verify_payment_webhook
from .gateway import PaymentGateway
from .reconciliation import ReconciliationStateMachine
from .schemas import PaymentEvent, PaymentIntentRequest, PaymentIntentResponse, PaymentStatusResponse
from .service import IntentResult, PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


def get_payment_service(
    db: Session = Depends(get_db), gateway: PaymentGateway = Depends(get_payment_gateway)
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, gateway)


def _intent_response(result: IntentResult) -> PaymentIntentResponse:
    return PaymentIntentResponse(
        clientSecret=result.client_secret,
        amount=result.amount,
        totalAmount=result.total_amount,
        paidAmount=result.paid_amount,
    )


@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    dependencies=[Depends(payment_intent_rate_limit)],
)
async def create_deposit_intent(
    body: PaymentIntentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Open a deposit payment for a booking awaiting its deposit"""
    return _intent_response(await service.open_deposit_payment(body.bookingId))


@router.post(
    "/create-full-payment-intent",
    response_model=PaymentIntentResponse,
    dependencies=[Depends(payment_intent_rate_limit)],
)
async def create_balance_intent(
    body: PaymentIntentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Open a payment for the remaining balance"""
    return _intent_response(await service.open_balance_payment(body.bookingId))


@router.get("/status/{booking_id}", response_model=PaymentStatusResponse)
def get_payment_status(booking_id: int, service: PaymentService = Depends(get_payment_service)):
    return service.payment_summary(booking_id)


@router.post("/webhook")
async def payment_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Receive payment gateway events.

    The signature is verified on the raw body before anything is parsed or
    touched. Any non-2xx answer makes the gateway redeliver, which is safe
    because reconciliation is idempotent.
    """
    raw_body = await verify_payment_webhook(request, request.app.state.webhook_secret)

    try:
        event = PaymentEvent.model_validate_json(raw_body)
    except PydanticValidationError:
        logger.error("❌ Payment webhook body is not a valid event")
        raise HTTPException(status_code=400, detail="Invalid event payload") from None

    logger.info(f"📥 Payment event received: {event.type} ({event.id or 'no id'})")

    machine = ReconciliationStateMachine(db)
    try:
        outcome = await run_in_threadpool(machine.handle_event, event)
    except BookingError:
        raise
    except Exception as e:
        logger.exception(f"❌ Payment event {event.id} processing failed: {e}")
        raise HTTPException(status_code=500, detail="Event processing failed") from e

    logger.info(f"Payment event {event.id or event.type} → {outcome.value}")
    return {"received": True}
