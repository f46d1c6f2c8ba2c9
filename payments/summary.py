from collections import Counter
from decimal import Decimal
from typing import Iterable, Optional

from .models import PaymentStatus, PaymentSummary


def _money(value: Optional[object]) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def summarize(
    rows: Iterable[dict],
    gross_key: str = "amount",
    net_key: str = "net_amount",
    status_key: str = "status",
) -> PaymentSummary:
    """
    Totals for a batch of payment rows.

    Rows only need a status plus the gross and net amount columns; the
    fee total is the gross/net difference over completed rows.
    """
    rows = list(rows)
    counts = Counter(str(getattr(r.get(status_key), "value", r.get(status_key)) or "null") for r in rows)
    completed = [r for r in rows if r.get(status_key) == PaymentStatus.COMPLETED]

    gross = sum((_money(r.get(gross_key)) for r in completed), Decimal("0"))
    net = sum((_money(r.get(net_key)) for r in completed), Decimal("0"))
    return PaymentSummary(
        total_count=len(rows),
        count_by_status=dict(counts),
        completed_count=len(completed),
        gross_total=gross,
        net_total=net,
        fee_total=gross - net,
    )
