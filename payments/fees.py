"""
Card processing fees.

The customer pays the document price plus the card fee, so the charged
amount is grossed up: ``gross = (net + fixed) / (1 - percentage)``.
"""

from decimal import Decimal, ROUND_HALF_UP

from documents.pricing import translation_price

STRIPE_PERCENTAGE = Decimal("0.039")
STRIPE_FIXED_FEE = Decimal("0.30")

CENTS = Decimal("0.01")

__all__ = [
    "STRIPE_PERCENTAGE",
    "STRIPE_FIXED_FEE",
    "card_amount_with_fees",
    "card_fee",
    "translation_price",
]


def card_amount_with_fees(net_amount: Decimal) -> Decimal:
    net_amount = Decimal(net_amount)
    if net_amount <= 0:
        raise ValueError("Amount must be positive")
    gross = (net_amount + STRIPE_FIXED_FEE) / (1 - STRIPE_PERCENTAGE)
    return gross.quantize(CENTS, rounding=ROUND_HALF_UP)


def card_fee(net_amount: Decimal) -> Decimal:
    return card_amount_with_fees(net_amount) - Decimal(net_amount).quantize(CENTS)
