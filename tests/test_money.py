"""Tests for money types and line items."""

from decimal import Decimal

import pytest

from klirr.domain.errors import ValidationError
from klirr.domain.money import (
    Item,
    PricedItem,
    grand_total,
    parse_currency,
    round_cost,
    to_decimal,
)
from klirr.domain.period import YearAndMonth


def make_item(quantity="1", unit_price="100", currency="EUR", name="Consulting"):
    return Item(
        name=name,
        when=YearAndMonth(2025, 5),
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
        currency=currency,
    )


class TestParsing:
    def test_parse_currency_normalises(self):
        assert parse_currency(" sek ") == "SEK"

    @pytest.mark.parametrize("code", ["EURO", "E1R", ""])
    def test_parse_currency_rejects(self, code):
        with pytest.raises(ValidationError):
            parse_currency(code)

    def test_to_decimal_accepts_strings_and_ints(self):
        assert to_decimal("4.5") == Decimal("4.5")
        assert to_decimal(7) == Decimal(7)

    def test_to_decimal_rejects_floats(self):
        with pytest.raises(ValidationError, match="float"):
            to_decimal(4.5, "unit_price")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "abc"])
    def test_to_decimal_rejects_non_finite(self, value):
        with pytest.raises(ValidationError):
            to_decimal(value)


class TestRounding:
    def test_half_even(self):
        assert round_cost(Decimal("0.125")) == Decimal("0.12")
        assert round_cost(Decimal("0.135")) == Decimal("0.14")


class TestItem:
    def test_cost(self):
        assert make_item(quantity="2", unit_price="4.5").cost == Decimal("9.0")

    def test_negative_quantity(self):
        with pytest.raises(ValidationError, match="negative"):
            make_item(quantity="-1")


class TestPricedItem:
    def test_convert_eur_to_usd(self):
        priced = PricedItem.convert(make_item(quantity="10", unit_price="100"), Decimal("1.08"))
        assert priced.converted_unit_price == Decimal("108.00")
        assert priced.total_cost == Decimal("1080.00")

    def test_total_cost_is_rounded_product(self):
        item = make_item(quantity="3", unit_price="0.333")
        priced = PricedItem.convert(item, Decimal("1.1"))
        assert priced.total_cost == round_cost(item.quantity * priced.converted_unit_price)

    def test_grand_total_rounds_once(self):
        # 3 x 0.005 rounds to 0.00 each, but sums to 0.015 -> 0.02
        items = [PricedItem.convert(make_item(unit_price="0.005"), Decimal(1)) for _ in range(3)]
        assert all(p.total_cost == Decimal("0.00") for p in items)
        assert grand_total(items) == Decimal("0.02")

    def test_grand_total_of_nothing(self):
        assert grand_total([]) == Decimal("0.00")
