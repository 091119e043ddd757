"""Invoice number derivation."""

import logging
from typing import Iterable

from klirr.domain.calendar import elapsed_periods
from klirr.domain.entities import (
    ExpensedMonths,
    InvoiceIdentifier,
    InvoicedItems,
    TimestampedInvoiceNumber,
)
from klirr.domain.errors import MonthAlreadyExpensed, MonthIsOff, OffsetMonthIsOff, offset_month_is_off
from klirr.domain.period import Granularity, YearAndMonth

logger = logging.getLogger("klirr.numbering")


def current_number(
    base: TimestampedInvoiceNumber,
    target: YearAndMonth,
    expensed: ExpensedMonths,
    mode: InvoicedItems,
    months_off: Iterable[YearAndMonth] = (),
) -> InvoiceIdentifier:
    """Derive the invoice number for ``target``.

    Every month from ``base.month`` up to (not including) ``target``
    consumes one number, except months that were expensed or recorded as
    off. An expenses invoice gets the number the next services invoice
    will use, presented with a distinct suffix.

    Examples:
        base (237, 2025-03), target 2025-05, nothing expensed -> 239
        same, but 2025-04 expensed -> 238

    Raises:
        InvalidRange: If ``target`` is before ``base.month``
        MonthAlreadyExpensed: Services invoice for an expensed month
        MonthIsOff: Services invoice for a month recorded as off
        OffsetMonthIsOff: If ``base.month`` itself is recorded as off
    """
    months_off = set(months_off)
    if base.month in months_off:
        raise OffsetMonthIsOff(offset_month_is_off(base.month))

    if not mode.is_expenses:
        if target in expensed:
            raise MonthAlreadyExpensed(
                f"Month {target} is expensed and cannot also be invoiced for services"
            )
        if target in months_off:
            raise MonthIsOff(f"Month {target} is recorded as off and cannot be invoiced for services")

    delta = elapsed_periods(base.month, target, Granularity.MONTH)

    skipped = set(expensed.months()) | months_off
    skipped_before = sum(1 for month in skipped if base.month <= month < target)

    number = base.offset + delta - skipped_before
    logger.debug(
        "Invoice number for %s: offset %d + %d elapsed - %d skipped = %d",
        target,
        base.offset,
        delta,
        skipped_before,
        number,
    )
    return InvoiceIdentifier(number=number, is_expenses=mode.is_expenses)
