"""Utility functions for klirr."""

from klirr.utils.date_parser import parse_day, parse_target_month
from klirr.utils.amount_parser import parse_decimal, parse_expense_item
from klirr.utils.address_parser import format_email_accounts, parse_email_accounts

__all__ = [
    "parse_day",
    "parse_target_month",
    "parse_decimal",
    "parse_expense_item",
    "parse_email_accounts",
    "format_email_accounts",
]
