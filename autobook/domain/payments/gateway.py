"""
Payment gateway client.

Creates payment intents through the Stripe REST API. The gateway reports
outcomes asynchronously through signed webhook events (see
reconciliation.py); creating an intent never changes booking state.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx

from ...config import PAYMENT_CURRENCY, STRIPE_API_URL, STRIPE_SECRET_KEY
from ...shared.exceptions import PaymentGatewayError
from ...shared.money import to_minor_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str


class PaymentGateway(ABC):
    """Interface the payment service depends on"""

    @abstractmethod
    async def create_payment_intent(
        self,
        amount: Decimal,
        metadata: dict[str, str],
        receipt_email: Optional[str] = None,
    ) -> PaymentIntent:
        pass


class StripeGateway(PaymentGateway):
    def __init__(
        self,
        secret_key: Optional[str] = STRIPE_SECRET_KEY,
        api_url: str = STRIPE_API_URL,
        currency: str = PAYMENT_CURRENCY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key
        self.api_url = api_url.rstrip("/")
        self.currency = currency
        self.transport = transport

    async def create_payment_intent(
        self,
        amount: Decimal,
        metadata: dict[str, str],
        receipt_email: Optional[str] = None,
    ) -> PaymentIntent:
        if not self.secret_key:
            logger.error("❌ STRIPE_SECRET_KEY not configured")
            raise PaymentGatewayError("Payment provider not configured")

        form = {
            "amount": str(to_minor_units(amount)),
            "currency": self.currency,
            "automatic_payment_methods[enabled]": "true",
        }
        if receipt_email:
            form["receipt_email"] = receipt_email
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = value

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self.transport) as http_client:
                response = await http_client.post(
                    f"{self.api_url}/payment_intents",
                    data=form,
                    headers={"Authorization": f"Bearer {self.secret_key}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Payment intent request failed: {e}")
            raise PaymentGatewayError() from e

        if response.status_code >= 400:
            logger.error(f"❌ Payment intent creation failed ({response.status_code}): {response.text}")
            raise PaymentGatewayError()

        body = response.json()
        intent_id = body.get("id")
        client_secret = body.get("client_secret")
        if not intent_id or not client_secret:
            logger.error(f"❌ No intent ID in payment provider response: {body}")
            raise PaymentGatewayError()

        logger.info(f"✅ Payment intent created: {intent_id} ({metadata.get('paymentType')})")
        return PaymentIntent(id=intent_id, client_secret=client_secret)
