from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict


class SessionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class CheckoutSession(BaseModel):
    id: str
    document_id: UUID
    user_id: UUID
    net_amount: Decimal
    gross_amount: Decimal
    fee_amount: Decimal
    status: SessionStatus
    payment_intent: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Payment(BaseModel):
    id: UUID
    document_id: UUID
    user_id: UUID
    session_id: Optional[str] = None
    amount: Decimal
    net_amount: Decimal
    fee_amount: Decimal
    status: PaymentStatus
    created_at: datetime
    updated_at: datetime
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)

    def can_cancel(self) -> bool:
        return self.status not in (PaymentStatus.CANCELLED, PaymentStatus.REFUNDED)


class CompleteCheckoutRequest(BaseModel):
    payment_intent: Optional[str] = None


class CancelPaymentRequest(BaseModel):
    reason: str = Field(..., min_length=1)
    admin_user_id: UUID

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "reason": "Customer requested cancellation",
            "admin_user_id": "00000000-0000-0000-0000-000000000000",
        }
    })


class CancellationResult(BaseModel):
    payment: Payment
    status: PaymentStatus
    message: str


class PaymentSummary(BaseModel):
    total_count: int
    count_by_status: dict[str, int]
    completed_count: int
    gross_total: Decimal
    net_total: Decimal
    fee_total: Decimal
