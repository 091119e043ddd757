"""Money types and line items.

All amounts are ``Decimal``; binary floats never enter the arithmetic.
Costs are rounded half-to-even to two decimals, and totals are summed from
unrounded costs and rounded once.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Iterable, Union

from klirr.domain.errors import ValidationError
from klirr.domain.period import PeriodAnno

CENTS = Decimal("0.01")

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")

# Aliases documenting intent; all three are plain Decimals.
UnitPrice = Decimal
Quantity = Decimal
Cost = Decimal


def parse_currency(code: str) -> str:
    """Normalise and validate an ISO-4217 alphabetic code."""
    normalised = code.strip().upper()
    if not _CURRENCY_CODE.match(normalised):
        raise ValidationError(f"Invalid currency code '{code}', expected three letters like 'EUR'")
    return normalised


def to_decimal(value: Union[str, int, Decimal], field_name: str = "amount") -> Decimal:
    """Convert a string or integer to Decimal, rejecting floats and NaN."""
    if isinstance(value, float):
        raise ValidationError(f"{field_name} must not be a float, got {value!r}")
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Could not parse {field_name} '{value}'")
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite, got '{value}'")
    return result


def round_cost(amount: Decimal) -> Decimal:
    """Bankers' rounding to two decimals."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class Item:
    """A line item priced in its own (source) currency."""

    name: str
    when: PeriodAnno
    quantity: Quantity
    unit_price: UnitPrice
    currency: str

    def __post_init__(self):
        if self.quantity < 0:
            raise ValidationError(f"Quantity of '{self.name}' cannot be negative, got {self.quantity}")

    @property
    def cost(self) -> Cost:
        """Unrounded cost in the source currency."""
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class PricedItem:
    """A line item converted into the invoice currency."""

    item: Item
    rate: Decimal
    converted_unit_price: UnitPrice
    unrounded_cost: Cost

    @classmethod
    def convert(cls, item: Item, rate: Decimal) -> "PricedItem":
        converted = item.unit_price * rate
        return cls(
            item=item,
            rate=rate,
            converted_unit_price=converted,
            unrounded_cost=item.quantity * converted,
        )

    @property
    def total_cost(self) -> Cost:
        return round_cost(self.unrounded_cost)


def grand_total(priced_items: Iterable[PricedItem]) -> Cost:
    """Sum unrounded costs, then round once."""
    return round_cost(sum((p.unrounded_cost for p in priced_items), Decimal(0)))
