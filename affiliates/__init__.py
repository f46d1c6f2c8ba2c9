"""
Affiliate Program Ledger

This module provides:
- Per-page commissions with a two-level rate (promotion at 200 pages)
- A fixed 30-day maturation window before earnings can be withdrawn
- Withdrawal requests: pending → approved → completed / rejected
- Ledger snapshots (available, pending and total balances) for dashboards
"""

from .commission import level_for_pages, commission_rate, pages_to_next_level
from .models import (
    CommissionStatus,
    WithdrawalStatus,
    PaymentMethod,
    Affiliate,
    Commission,
    WithdrawalRequest,
    AffiliateStats,
)
from .service import AffiliateService
from .withdrawal import withdrawal_countdown, format_countdown, WITHDRAWAL_WINDOW

__all__ = [
    "level_for_pages",
    "commission_rate",
    "pages_to_next_level",
    "CommissionStatus",
    "WithdrawalStatus",
    "PaymentMethod",
    "Affiliate",
    "Commission",
    "WithdrawalRequest",
    "AffiliateStats",
    "AffiliateService",
    "withdrawal_countdown",
    "format_countdown",
    "WITHDRAWAL_WINDOW",
]
