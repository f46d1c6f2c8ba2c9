from dataclasses import dataclass
from decimal import Decimal

LEVEL_ONE = 1
LEVEL_TWO = 2
LEVEL_TWO_PAGE_THRESHOLD = 200

RATES = {
    LEVEL_ONE: Decimal("0.50"),
    LEVEL_TWO: Decimal("1.00"),
}


@dataclass(frozen=True)
class CommissionQuote:
    level: int
    rate: Decimal
    amount: Decimal


def level_for_pages(total_pages: int) -> int:
    return LEVEL_TWO if total_pages >= LEVEL_TWO_PAGE_THRESHOLD else LEVEL_ONE


def commission_rate(total_pages: int) -> Decimal:
    return RATES[level_for_pages(total_pages)]


def pages_to_next_level(total_pages: int) -> int:
    if level_for_pages(total_pages) == LEVEL_TWO:
        return 0
    return LEVEL_TWO_PAGE_THRESHOLD - max(total_pages, 0)


def quote_commission(previous_total_pages: int, pages: int) -> CommissionQuote:
    # Priced at the level held before the order is counted.
    if pages <= 0:
        raise ValueError("Commission pages must be greater than zero")
    level = level_for_pages(previous_total_pages)
    rate = RATES[level]
    return CommissionQuote(level=level, rate=rate, amount=(rate * pages).quantize(Decimal("0.01")))
