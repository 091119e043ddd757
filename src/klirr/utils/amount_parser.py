"""Amount and expense item parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

from klirr.domain.errors import DomainError, InvalidExpenseItem, ValidationError
from klirr.domain.money import Item, parse_currency
from klirr.utils.date_parser import parse_day

EXPENSE_ITEM_FORMAT = "name, unit_price, currency, quantity, YYYY-MM-DD"


def parse_decimal(amount_str: str, field_name: str = "amount") -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "1,234.56"
    - "€4.50"

    Args:
        amount_str: Amount string
        field_name: Name used in error messages

    Returns:
        Decimal amount

    Raises:
        ValidationError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValidationError(f"Empty {field_name}")

    cleaned = re.sub(r"[$€£¥\s]", "", amount_str).replace(",", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValidationError(f"Could not parse {field_name} '{amount_str}'")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be finite, got '{amount_str}'")
    return amount


def parse_expense_item(item_str: str) -> Item:
    """Parse an expense written as "name, unit_price, currency, quantity, date".

    The date is everything after the fourth comma, so written-out dates
    work too.

    Examples:
        "Coffee, 4.5, GBP, 2, 2025-04-15"
        "Coffee, 4.5, GBP, 2, April 15, 2025"

    Raises:
        InvalidExpenseItem: If any part is missing or malformed
    """
    parts = [part.strip() for part in item_str.split(",", 4)]
    if len(parts) != 5 or not all(parts):
        raise InvalidExpenseItem(
            f"Could not parse expense '{item_str}', expected \"{EXPENSE_ITEM_FORMAT}\""
        )

    name, unit_price, currency, quantity, when = parts
    try:
        return Item(
            name=name,
            when=parse_day(when),
            quantity=parse_decimal(quantity, "quantity"),
            unit_price=parse_decimal(unit_price, "unit price"),
            currency=parse_currency(currency),
        )
    except DomainError as e:
        raise InvalidExpenseItem(f"Invalid expense '{item_str}': {e}")
