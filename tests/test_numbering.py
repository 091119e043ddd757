"""Tests for invoice number derivation."""

import pytest

from klirr.domain.entities import (
    Expenses,
    ExpensedMonths,
    InvoiceIdentifier,
    Services,
    TimestampedInvoiceNumber,
)
from klirr.domain.errors import InvalidRange, MonthAlreadyExpensed, MonthIsOff, OffsetMonthIsOff
from klirr.domain.numbering import current_number
from klirr.domain.period import YearAndMonth

BASE = TimestampedInvoiceNumber(offset=237, month=YearAndMonth(2025, 3))
APRIL = YearAndMonth(2025, 4)
MAY = YearAndMonth(2025, 5)


def expensed(*months):
    return ExpensedMonths({month: () for month in months})


class TestServices:
    def test_two_months_after_base(self):
        assert current_number(BASE, MAY, ExpensedMonths(), Services()) == InvoiceIdentifier(239)

    def test_expensed_month_does_not_consume_a_number(self):
        assert current_number(BASE, MAY, expensed(APRIL), Services()).number == 238

    def test_base_month_is_the_offset(self):
        assert current_number(BASE, BASE.month, ExpensedMonths(), Services()).number == 237

    def test_next_month_is_one_more(self):
        month = BASE.month
        for _ in range(24):
            later = month.one_month_later()
            assert (
                current_number(BASE, later, ExpensedMonths(), Services()).number
                == current_number(BASE, month, ExpensedMonths(), Services()).number + 1
            )
            month = later

    def test_expensed_months_after_target_are_ignored(self):
        assert current_number(BASE, MAY, expensed(YearAndMonth(2025, 7)), Services()).number == 239

    def test_months_off_do_not_consume_numbers(self):
        number = current_number(BASE, MAY, ExpensedMonths(), Services(), months_off=[APRIL])
        assert number.number == 238

    def test_month_both_off_and_expensed_counts_once(self):
        number = current_number(BASE, MAY, expensed(APRIL), Services(), months_off=[APRIL])
        assert number.number == 238

    def test_target_already_expensed(self):
        with pytest.raises(MonthAlreadyExpensed):
            current_number(BASE, APRIL, expensed(APRIL), Services())

    def test_target_is_off(self):
        with pytest.raises(MonthIsOff):
            current_number(BASE, APRIL, ExpensedMonths(), Services(), months_off=[APRIL])

    def test_target_before_base(self):
        with pytest.raises(InvalidRange):
            current_number(BASE, YearAndMonth(2025, 2), ExpensedMonths(), Services())

    def test_base_month_recorded_as_off(self):
        with pytest.raises(OffsetMonthIsOff, match="2025-03"):
            current_number(BASE, MAY, ExpensedMonths(), Services(), months_off=[BASE.month])


class TestExpenses:
    def test_shares_number_with_next_services_invoice(self):
        expenses = current_number(BASE, APRIL, expensed(APRIL), Expenses())
        services = current_number(BASE, MAY, expensed(APRIL), Services())
        assert expenses.number == services.number == 238
        assert str(expenses) == "238-E"
        assert str(services) == "238"

    def test_expenses_for_a_month_off_are_allowed(self):
        number = current_number(BASE, APRIL, expensed(APRIL), Expenses(), months_off=[APRIL])
        assert number == InvoiceIdentifier(238, is_expenses=True)

    def test_base_month_recorded_as_off(self):
        with pytest.raises(OffsetMonthIsOff):
            current_number(BASE, APRIL, expensed(APRIL), Expenses(), months_off=[BASE.month])
