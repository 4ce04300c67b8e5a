"""Payment schemas - intent requests, payment status and inbound events"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...models import BookingStatus, PaymentStatus, PaymentType
from ...shared.money import Money


class PaymentIntentRequest(BaseModel):
    bookingId: int = Field(..., gt=0)


class PaymentIntentResponse(BaseModel):
    clientSecret: str
    amount: Money
    totalAmount: Money
    paidAmount: Money


class PaymentRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    payment_intent_id: str
    amount: Money
    status: PaymentStatus
    payment_type: PaymentType
    created_at: Optional[datetime] = None


class PaymentStatusResponse(BaseModel):
    totalAmount: Money
    depositAmount: Money
    paidAmount: Money
    remainingAmount: Money
    bookingStatus: BookingStatus
    payments: list[PaymentRecordResponse]


# ============================================================================
# INBOUND EVENTS
# ============================================================================


class PaymentEventObject(BaseModel):
    id: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class PaymentEventData(BaseModel):
    object: PaymentEventObject


class PaymentEvent(BaseModel):
    """Gateway event envelope: {"id", "type", "data": {"object": {...}}}"""

    id: Optional[str] = None
    type: str
    data: PaymentEventData

    @property
    def payment_intent_id(self) -> str:
        return self.data.object.id
