"""Calendar arithmetic: working days, elapsed periods and period ends."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from klirr.domain.entities import Rate, TimeOff
from klirr.domain.errors import (
    DaysOffExceedsWorkingDays,
    InvalidDay,
    InvalidGranularity,
    InvalidGranularityForTimeOff,
    InvalidRange,
    time_off_exceeds_working_days,
)
from klirr.domain.period import Granularity, PeriodAnno, YearAndMonth

HOURS_PER_WORKING_DAY = Decimal(8)
MAX_DAYS_OFF = Decimal(31)


def working_days(month: YearAndMonth) -> int:
    """Count Monday to Friday in the calendar month.

    Holidays are not considered.
    """
    day = month.first_day()
    last_day = month.to_date_end_of_period()
    count = 0
    while day <= last_day:
        if day.weekday() < 5:
            count += 1
        day += timedelta(days=1)
    return count


def to_date_end_of_period(period: PeriodAnno) -> date:
    """Return the last day of the year or month referenced, or the date itself."""
    return period.to_date_end_of_period()


def _ordinal(period: PeriodAnno, granularity: Granularity) -> int:
    if granularity > period.max_granularity:
        raise InvalidGranularity(
            f"Period {period} is too coarse for granularity {granularity.name.lower()}"
        )
    if granularity == Granularity.YEAR:
        return period.year
    if granularity == Granularity.MONTH:
        return period.year * 12 + int(period.month) - 1
    return period.to_date().toordinal()


def elapsed_periods(start: PeriodAnno, end: PeriodAnno, granularity: Granularity) -> int:
    """Count complete periods of ``granularity`` from ``start`` to ``end``.

    Examples:
        elapsed_periods(YearAndMonth(2024, 12), YearAndMonth(2025, 3), Granularity.MONTH) == 3

    Raises:
        InvalidRange: If ``end`` lies before ``start``
        InvalidGranularity: If either period is coarser than ``granularity``
    """
    elapsed = _ordinal(end, granularity) - _ordinal(start, granularity)
    if elapsed < 0:
        raise InvalidRange(f"End period {end} is before start period {start}")
    return elapsed


def service_quantity(
    month: YearAndMonth,
    rate: Rate = Rate.DAILY,
    time_off: Optional[TimeOff] = None,
) -> Decimal:
    """Billable quantity of the service in ``month``, in the unit of ``rate``.

    A monthly rate bills one month, a daily rate every working day and an
    hourly rate 8 hours per working day. Time off is subtracted and must be
    given in the unit of the rate.

    Examples:
        service_quantity(YearAndMonth(2025, 6), Rate.DAILY, TimeOff.days(2)) == 19
        service_quantity(YearAndMonth(2025, 6), Rate.HOURLY, TimeOff.hours(4)) == 164

    Raises:
        InvalidGranularityForTimeOff: If time off is not in the unit of the rate
        InvalidDay: If time off is more than 31 days
        DaysOffExceedsWorkingDays: If time off exceeds the working time
    """
    if time_off is not None and time_off.unit != rate:
        raise InvalidGranularityForTimeOff(
            f"Time off in {time_off.unit.unit}s does not match the {rate.value} rate of the service"
        )

    if rate == Rate.MONTHLY:
        return Decimal(1)

    available = working_days(month)

    per_day = HOURS_PER_WORKING_DAY if rate == Rate.HOURLY else Decimal(1)
    off = Decimal(0) if time_off is None else time_off.amount
    if off > MAX_DAYS_OFF * per_day:
        raise InvalidDay(f"Time off must be at most {MAX_DAYS_OFF * per_day} {rate.unit}s, got {off}")

    worked = Decimal(available) * per_day - off
    if worked < 0:
        raise DaysOffExceedsWorkingDays(time_off_exceeds_working_days(time_off, available, month))
    return worked


def due_date(invoice_date: date, net_days: int) -> date:
    """Invoice date advanced by the net days of the payment terms."""
    return invoice_date + relativedelta(days=net_days)
