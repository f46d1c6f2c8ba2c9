from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel


class FilterOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    IN = "in"
    IS_TRUE = "is_true"
    IS_FALSE = "is_false"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class BalanceBucket(str, Enum):
    ALL = "all"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SignupWindow(str, Enum):
    ALL = "all"
    RECENT = "recent"
    OLD = "old"


HIGH_BALANCE = Decimal("100")
LOW_BALANCE = Decimal("10")
RECENT_SIGNUP_WINDOW = timedelta(days=30)


@dataclass
class Condition:
    field: str
    operator: FilterOperator
    value: Any = None

    def evaluate(self, row: dict) -> bool:
        field_value = self._get_field_value(row, self.field)
        if field_value is None and self.operator not in (FilterOperator.IS_FALSE, FilterOperator.NOT_EQUALS):
            return False
        return self._apply_operator(field_value, self.value)

    def _get_field_value(self, row: dict, field_path: str) -> Any:
        value: Any = row
        for part in field_path.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                return None
        return value

    def _apply_operator(self, field_value: Any, compare_value: Any) -> bool:
        op = self.operator
        if op == FilterOperator.EQUALS: return _normalize(field_value) == _normalize(compare_value)
        if op == FilterOperator.NOT_EQUALS: return _normalize(field_value) != _normalize(compare_value)
        if op == FilterOperator.GREATER_THAN: return field_value > compare_value
        if op == FilterOperator.LESS_THAN: return field_value < compare_value
        if op == FilterOperator.GREATER_THAN_OR_EQUAL: return field_value >= compare_value
        if op == FilterOperator.LESS_THAN_OR_EQUAL: return field_value <= compare_value
        if op == FilterOperator.CONTAINS: return str(compare_value).lower() in str(_normalize(field_value)).lower()
        if op == FilterOperator.IN: return field_value in compare_value if compare_value else False
        if op == FilterOperator.IS_TRUE: return bool(field_value) is True
        if op == FilterOperator.IS_FALSE: return bool(field_value) is False
        return False


@dataclass
class ConditionGroup:
    operator: LogicalOperator
    conditions: list[Union[Condition, "ConditionGroup"]]

    def evaluate(self, row: dict) -> bool:
        if not self.conditions:
            return True
        results = (cond.evaluate(row) for cond in self.conditions)
        return all(results) if self.operator == LogicalOperator.AND else any(results)


def _normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Decimal(str(value))
    return value


def _as_row(item: Union[dict, BaseModel]) -> dict:
    if isinstance(item, BaseModel):
        return item.model_dump()
    return item


def _search_group(term: str, fields: Iterable[str]) -> Optional[ConditionGroup]:
    term = (term or "").strip()
    if not term:
        return None
    return ConditionGroup(
        operator=LogicalOperator.OR,
        conditions=[Condition(field=f, operator=FilterOperator.CONTAINS, value=term) for f in fields],
    )


def affiliate_filter(
    search: str = "",
    level: str = "all",
    balance: BalanceBucket = BalanceBucket.ALL,
    signup: SignupWindow = SignupWindow.ALL,
    now: Optional[datetime] = None,
) -> ConditionGroup:
    conditions: list[Union[Condition, ConditionGroup]] = []

    search_group = _search_group(search, ("user_name", "user_email", "referral_code"))
    if search_group:
        conditions.append(search_group)

    if level and level != "all":
        conditions.append(Condition(field="current_level", operator=FilterOperator.EQUALS, value=int(level)))

    if balance == BalanceBucket.HIGH:
        conditions.append(Condition(field="available_balance", operator=FilterOperator.GREATER_THAN_OR_EQUAL, value=HIGH_BALANCE))
    elif balance == BalanceBucket.MEDIUM:
        conditions.append(Condition(field="available_balance", operator=FilterOperator.GREATER_THAN_OR_EQUAL, value=LOW_BALANCE))
        conditions.append(Condition(field="available_balance", operator=FilterOperator.LESS_THAN, value=HIGH_BALANCE))
    elif balance == BalanceBucket.LOW:
        conditions.append(Condition(field="available_balance", operator=FilterOperator.LESS_THAN, value=LOW_BALANCE))

    if signup != SignupWindow.ALL:
        cutoff = (now or datetime.now(timezone.utc)) - RECENT_SIGNUP_WINDOW
        operator = FilterOperator.GREATER_THAN_OR_EQUAL if signup == SignupWindow.RECENT else FilterOperator.LESS_THAN
        conditions.append(Condition(field="created_at", operator=operator, value=cutoff))

    return ConditionGroup(operator=LogicalOperator.AND, conditions=conditions)


def withdrawal_filter(search: str = "") -> ConditionGroup:
    search_group = _search_group(
        search, ("affiliate_name", "affiliate_email", "payment_method", "status", "amount")
    )
    return search_group or ConditionGroup(operator=LogicalOperator.AND, conditions=[])


def apply_filter(group: ConditionGroup, items: Iterable[Union[dict, BaseModel]]) -> list:
    return [item for item in items if group.evaluate(_as_row(item))]
