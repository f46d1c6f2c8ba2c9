"""
Withdrawal window calculations.

Earnings become withdrawable a fixed 30 days after the earning event. Every
countdown shown to affiliates and admins is computed here from either the
ledger's ``next_withdrawal_date`` or ``first_page_translated_at``.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from .formatting import format_currency

WITHDRAWAL_WINDOW = timedelta(days=30)

Timestamp = Union[str, datetime, None]

_datetime_adapter = TypeAdapter(datetime)


class InvalidTimestampError(ValueError):
    pass


class CountdownState(str, Enum):
    NOT_EARNED = "not_earned"
    NO_BALANCE = "no_balance"
    PENDING = "pending"
    AVAILABLE = "available"


class WithdrawalCountdown(BaseModel):
    state: CountdownState
    is_available: bool
    available_at: Optional[datetime] = None
    remaining: Optional[timedelta] = None
    days: int = 0
    hours: int = 0
    minutes: int = 0

    @property
    def message(self) -> str:
        return format_countdown(self)


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if not text:
            return None
        try:
            parsed = _datetime_adapter.validate_python(text)
        except ValidationError as e:
            raise InvalidTimestampError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def withdrawal_available_at(
    next_withdrawal_date: Timestamp = None,
    first_page_translated_at: Timestamp = None,
) -> Optional[datetime]:
    target = parse_timestamp(next_withdrawal_date)
    if target is not None:
        return target
    anchor = parse_timestamp(first_page_translated_at)
    if anchor is not None:
        return anchor + WITHDRAWAL_WINDOW
    return None


def withdrawal_countdown(
    next_withdrawal_date: Timestamp = None,
    first_page_translated_at: Timestamp = None,
    now: Optional[datetime] = None,
) -> WithdrawalCountdown:
    target = withdrawal_available_at(next_withdrawal_date, first_page_translated_at)
    if target is None:
        return WithdrawalCountdown(state=CountdownState.NOT_EARNED, is_available=False)

    now = parse_timestamp(now) or datetime.now(timezone.utc)
    remaining = target - now
    if remaining <= timedelta(0):
        return WithdrawalCountdown(
            state=CountdownState.AVAILABLE,
            is_available=True,
            available_at=target,
            remaining=timedelta(0),
        )

    return WithdrawalCountdown(
        state=CountdownState.PENDING,
        is_available=False,
        available_at=target,
        remaining=remaining,
        days=remaining.days,
        hours=remaining.seconds // 3600,
        minutes=(remaining.seconds % 3600) // 60,
    )


def balance_countdown(
    available_balance: Decimal,
    pending_balance: Decimal,
    next_withdrawal_date: Timestamp = None,
    first_page_translated_at: Timestamp = None,
    now: Optional[datetime] = None,
) -> WithdrawalCountdown:
    """
    Countdown for an affiliate's current balances.

    A matured balance is available now, a maturing one counts down to
    ``next_withdrawal_date``, and an affiliate whose earnings have all been
    withdrawn has nothing to count down to.
    """
    if available_balance > 0:
        return withdrawal_countdown(first_page_translated_at=first_page_translated_at, now=now)
    if pending_balance > 0:
        return withdrawal_countdown(next_withdrawal_date=next_withdrawal_date, now=now)
    if parse_timestamp(first_page_translated_at) is None:
        return WithdrawalCountdown(state=CountdownState.NOT_EARNED, is_available=False)
    return WithdrawalCountdown(state=CountdownState.NO_BALANCE, is_available=False)


def format_countdown(countdown: WithdrawalCountdown) -> str:
    if countdown.state == CountdownState.NOT_EARNED:
        return "No translated pages yet"
    if countdown.state == CountdownState.NO_BALANCE:
        return "No balance to withdraw"
    if countdown.state == CountdownState.AVAILABLE:
        return "Available now"
    if countdown.days > 0:
        unit = "day" if countdown.days == 1 else "days"
        return f"Available in {countdown.days} {unit}, {countdown.hours}h {countdown.minutes}m"
    if countdown.hours > 0:
        return f"Available in {countdown.hours}h {countdown.minutes}m"
    return f"Available in {countdown.minutes}m"


def days_until_available(next_withdrawal_date: Timestamp, now: Optional[datetime] = None) -> Optional[int]:
    target = parse_timestamp(next_withdrawal_date)
    if target is None:
        return None
    now = parse_timestamp(now) or datetime.now(timezone.utc)
    return max((target - now).days, 0)


def withdrawal_status_message(
    can_request: bool,
    days_until: Optional[int],
    available_balance: Decimal,
) -> str:
    balance = format_currency(available_balance)
    if can_request:
        return f"You can request a withdrawal of {balance}"
    if days_until is None and available_balance <= 0:
        return "No balance available for withdrawal"
    if days_until is None:
        return f"Commissions are still maturing. Available balance: {balance}"
    if days_until == 1:
        return f"1 day remaining. Available balance: {balance}"
    return f"{days_until} days remaining. Available balance: {balance}"
