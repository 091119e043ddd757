"""Period-shaped domain types.

A period is a year, a year and month, or a full date. The three shapes are
modelled as separate frozen dataclasses; ``PeriodAnno`` is the union of
them and every function in this package that accepts "a period" accepts
any of the three.
"""

from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Union

from dateutil.relativedelta import relativedelta

from klirr.domain.errors import InvalidDay, InvalidGranularity, InvalidPeriod

MIN_YEAR = 1970
MAX_YEAR = 65535


class Month(IntEnum):
    """Calendar month, January is 1."""

    JANUARY = 1
    FEBRUARY = 2
    MARCH = 3
    APRIL = 4
    MAY = 5
    JUNE = 6
    JULY = 7
    AUGUST = 8
    SEPTEMBER = 9
    OCTOBER = 10
    NOVEMBER = 11
    DECEMBER = 12


class Granularity(IntEnum):
    """Period granularity, ordered from coarse to fine."""

    YEAR = 1
    MONTH = 2
    DAY = 3


def _check_year(year: int) -> int:
    if not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidPeriod(f"Year must be between {MIN_YEAR} and {MAX_YEAR}, got {year!r}")
    return year


def _check_month(month: int) -> Month:
    try:
        return Month(month)
    except ValueError:
        raise InvalidPeriod(f"Month must be between 1 and 12, got {month!r}")


@dataclass(frozen=True, order=True)
class YearOnly:
    """A whole calendar year."""

    year: int

    def __post_init__(self):
        _check_year(self.year)

    @property
    def max_granularity(self) -> Granularity:
        return Granularity.YEAR

    def to_date_end_of_period(self) -> date:
        return date(self.year, 12, 31)

    def __str__(self) -> str:
        return f"{self.year:04d}"


@dataclass(frozen=True, order=True)
class YearAndMonth:
    """A calendar month of a specific year."""

    year: int
    month: Month

    def __post_init__(self):
        _check_year(self.year)
        object.__setattr__(self, "month", _check_month(self.month))

    @classmethod
    def from_date(cls, value: date) -> "YearAndMonth":
        return cls(value.year, Month(value.month))

    @classmethod
    def current(cls) -> "YearAndMonth":
        return cls.from_date(date.today())

    @classmethod
    def last(cls) -> "YearAndMonth":
        return cls.current().one_month_earlier()

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def one_month_earlier(self) -> "YearAndMonth":
        return YearAndMonth.from_date(self.first_day() - relativedelta(months=1))

    def one_month_later(self) -> "YearAndMonth":
        return YearAndMonth.from_date(self.first_day() + relativedelta(months=1))

    @property
    def max_granularity(self) -> Granularity:
        return Granularity.MONTH

    def to_date_end_of_period(self) -> date:
        # relativedelta clamps day=31 to the last day of the month
        return self.first_day() + relativedelta(day=31)

    def __str__(self) -> str:
        return f"{self.year:04d}-{int(self.month):02d}"


@dataclass(frozen=True, order=True)
class YearMonthAndDay:
    """A single calendar date."""

    year: int
    month: Month
    day: int

    def __post_init__(self):
        _check_year(self.year)
        object.__setattr__(self, "month", _check_month(self.month))
        last_day = YearAndMonth(self.year, self.month).to_date_end_of_period().day
        if not isinstance(self.day, int) or not 1 <= self.day <= last_day:
            raise InvalidDay(
                f"Day must be between 1 and {last_day} for {self.year:04d}-{int(self.month):02d}, "
                f"got {self.day!r}"
            )

    @classmethod
    def from_date(cls, value: date) -> "YearMonthAndDay":
        return cls(value.year, Month(value.month), value.day)

    def year_and_month(self) -> YearAndMonth:
        return YearAndMonth(self.year, self.month)

    @property
    def max_granularity(self) -> Granularity:
        return Granularity.DAY

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def to_date_end_of_period(self) -> date:
        return self.to_date()

    def __str__(self) -> str:
        return f"{self.year:04d}-{int(self.month):02d}-{self.day:02d}"


PeriodAnno = Union[YearOnly, YearAndMonth, YearMonthAndDay]


def parse_period(text: str) -> PeriodAnno:
    """Parse ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD`` into a period.

    Raises:
        InvalidPeriod: If the text has none of the three shapes
        InvalidDay: If the day does not exist in the month
    """
    parts = text.strip().split("-")
    try:
        numbers = [int(part) for part in parts]
    except ValueError:
        raise InvalidPeriod(f"Could not parse period '{text}', expected YYYY, YYYY-MM or YYYY-MM-DD")

    if len(numbers) == 1:
        return YearOnly(numbers[0])
    if len(numbers) == 2:
        return YearAndMonth(numbers[0], numbers[1])
    if len(numbers) == 3:
        return YearMonthAndDay(numbers[0], numbers[1], numbers[2])
    raise InvalidPeriod(f"Could not parse period '{text}', expected YYYY, YYYY-MM or YYYY-MM-DD")


def parse_year_and_month(text: str) -> YearAndMonth:
    """Parse ``YYYY-MM`` strictly."""
    period = parse_period(text)
    if not isinstance(period, YearAndMonth):
        raise InvalidPeriod(f"Expected a month on the form YYYY-MM, got '{text}'")
    return period


def as_year_and_month(period: PeriodAnno) -> YearAndMonth:
    """Project a period onto its month.

    Raises:
        InvalidGranularity: If the period is a whole year
    """
    if isinstance(period, YearAndMonth):
        return period
    if isinstance(period, YearMonthAndDay):
        return period.year_and_month()
    raise InvalidGranularity(f"Period {period} has no month")
