from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

from .withdrawal import WithdrawalCountdown


class CommissionStatus(str, Enum):
    CONFIRMED = "confirmed"
    REVERSED = "reversed"


class PaymentMethod(str, Enum):
    ZELLE = "zelle"
    BANK_TRANSFER = "bank_transfer"
    STRIPE = "stripe"
    OTHER = "other"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class WithdrawalAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    COMPLETE = "complete"


class RegisterAffiliateRequest(BaseModel):
    user_id: UUID
    name: str
    email: str


class RegisterClientRequest(BaseModel):
    referral_code: str = Field(..., min_length=1)
    client_id: UUID
    name: str
    email: str


class ReverseCommissionRequest(BaseModel):
    reason: str = Field(..., description="Reason for reversal")


class CreateWithdrawalRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod
    payment_details: dict = Field(default_factory=dict)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "amount": 50.00,
            "payment_method": "zelle",
            "payment_details": {"email": "affiliate@example.com"},
        }
    })


class ProcessWithdrawalRequest(BaseModel):
    action: WithdrawalAction
    notes: Optional[str] = None
    processed_by: Optional[str] = None


class Affiliate(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    email: str
    referral_code: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReferredClient(BaseModel):
    id: UUID
    affiliate_id: UUID
    client_id: UUID
    name: str
    email: str
    registered_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Commission(BaseModel):
    id: UUID
    affiliate_id: UUID
    client_id: UUID
    client_name: str
    document_id: UUID
    pages: int
    rate: Decimal
    level: int
    amount: Decimal
    status: CommissionStatus
    created_at: datetime
    reversal_reason: Optional[str] = None
    reversed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def can_reverse(self) -> bool:
        return self.status == CommissionStatus.CONFIRMED


class WithdrawalRequest(BaseModel):
    id: UUID
    affiliate_id: UUID
    affiliate_name: str
    affiliate_email: str
    amount: Decimal
    payment_method: PaymentMethod
    payment_details: dict = Field(default_factory=dict)
    payment_details_display: str = ""
    status: WithdrawalStatus
    requested_at: datetime
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    admin_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def can_approve(self) -> bool:
        return self.status == WithdrawalStatus.PENDING

    def can_reject(self) -> bool:
        return self.status in (WithdrawalStatus.PENDING, WithdrawalStatus.APPROVED)

    def can_complete(self) -> bool:
        return self.status in (WithdrawalStatus.PENDING, WithdrawalStatus.APPROVED)


class AffiliateStats(BaseModel):
    affiliate_id: UUID
    referral_code: str
    total_balance: Decimal
    available_balance: Decimal
    pending_balance: Decimal
    next_withdrawal_date: Optional[datetime] = None
    first_page_translated_at: Optional[datetime] = None
    total_earned: Decimal
    total_clients: int
    total_pages: int
    current_level: int
    commission_rate: Decimal
    pages_to_next_level: int
    can_request_withdrawal: bool
    countdown: WithdrawalCountdown


class ClientSummary(BaseModel):
    client_id: UUID
    client_name: str
    client_email: str
    registered_at: datetime
    total_pages: int
    total_commission: Decimal


class CommissionTotals(BaseModel):
    confirmed: Decimal
    reversed: Decimal


class AdminAffiliateRow(BaseModel):
    affiliate_id: UUID
    user_name: str
    user_email: str
    referral_code: str
    current_level: int
    available_balance: Decimal
    pending_balance: Decimal
    next_withdrawal_date: Optional[datetime] = None
    total_clients: int
    total_pages: int
    total_earned: Decimal
    created_at: datetime


class WithdrawalResponse(BaseModel):
    withdrawal: WithdrawalRequest
    message: str


class CommissionHistoryResponse(BaseModel):
    commissions: list[Commission]
    totals: CommissionTotals


class WithdrawalEligibility(BaseModel):
    can_request_withdrawal: bool
    available_balance: Decimal
    days_until_available: Optional[int] = None
    countdown: WithdrawalCountdown
    countdown_text: str
    status_message: str
