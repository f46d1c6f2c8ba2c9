import secrets
import string
from decimal import Decimal

PRICE_PER_PAGE = Decimal("20.00")
BANK_STATEMENT_PRICE_PER_PAGE = Decimal("25.00")

VERIFICATION_CODE_ALPHABET = string.ascii_uppercase + string.digits
VERIFICATION_CODE_LENGTH = 9


def translation_price(pages: int, is_bank_statement: bool = False) -> Decimal:
    if pages < 1:
        raise ValueError("A document must have at least one page")
    per_page = BANK_STATEMENT_PRICE_PER_PAGE if is_bank_statement else PRICE_PER_PAGE
    return per_page * pages


def generate_verification_code() -> str:
    return "".join(secrets.choice(VERIFICATION_CODE_ALPHABET) for _ in range(VERIFICATION_CODE_LENGTH))
