"""Utility functions for budgetbook."""

from budgetbook.utils.date_parser import parse_date
from budgetbook.utils.amount_parser import parse_amount, format_amount
from budgetbook.utils.month import month_key, next_month_key, month_label

__all__ = [
    "parse_date",
    "parse_amount",
    "format_amount",
    "month_key",
    "next_month_key",
    "month_label",
]
