from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from pydantic import TypeAdapter

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "BRL": "R$"}

_datetime_adapter = TypeAdapter(datetime)


def format_payment_details(payment_method: str, payment_details: Optional[dict]) -> str:
    if not payment_details:
        return "No details provided"

    if payment_method == "zelle":
        if payment_details.get("email"):
            return f"Email: {payment_details['email']}"
        if payment_details.get("phone"):
            return f"Phone: {payment_details['phone']}"
        return "Zelle details not provided"

    if payment_method == "bank_transfer":
        bank_name = payment_details.get("bank_name")
        holder = payment_details.get("account_holder")
        if bank_name and holder:
            return f"{bank_name} - {holder}"
        if bank_name:
            return bank_name
        return "Bank details not provided"

    if payment_method == "stripe":
        if payment_details.get("email"):
            return f"Email: {payment_details['email']}"
        return "Stripe details not provided"

    return "Payment details available"


def format_currency(amount: Union[Decimal, float, int], currency: str = "USD") -> str:
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_display_date(value: Union[str, date, datetime]) -> str:
    if isinstance(value, str):
        value = _datetime_adapter.validate_python(value)
    return f"{value.strftime('%b')} {value.day}, {value.year}"
