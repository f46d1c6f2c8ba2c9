"""
Checkout and Payments

This module provides:
- Card checkout sessions grossed up for the processor fee (3.9% + $0.30)
- Payment completion, which moves the document forward and earns the
  referring affiliate's commission
- Admin cancellation: refunded when the card was charged, cancelled otherwise
- Payment totals by status, gross, net and fees
"""

from .fees import card_amount_with_fees, card_fee
from .models import (
    SessionStatus,
    PaymentStatus,
    CheckoutSession,
    Payment,
    PaymentSummary,
)
from .service import PaymentService
from .summary import summarize

__all__ = [
    "card_amount_with_fees",
    "card_fee",
    "SessionStatus",
    "PaymentStatus",
    "CheckoutSession",
    "Payment",
    "PaymentSummary",
    "PaymentService",
    "summarize",
]
