"""
Admin list filters

Condition trees evaluated against affiliate and withdrawal rows for the
admin dashboards.
"""

from .filter_engine import (
    Condition,
    ConditionGroup,
    FilterOperator,
    LogicalOperator,
    BalanceBucket,
    SignupWindow,
    affiliate_filter,
    withdrawal_filter,
    apply_filter,
)

__all__ = [
    "Condition",
    "ConditionGroup",
    "FilterOperator",
    "LogicalOperator",
    "BalanceBucket",
    "SignupWindow",
    "affiliate_filter",
    "withdrawal_filter",
    "apply_filter",
]
