"""Date parsing utilities."""

from datetime import date
from typing import Optional

from dateutil import parser as date_parser

from klirr.domain.errors import InvalidPeriod
from klirr.domain.period import YearAndMonth, YearMonthAndDay, parse_year_and_month


def parse_target_month(month_str: str, today: Optional[date] = None) -> YearAndMonth:
    """Parse the month an invoice is for.

    Supports:
    - Relative months: "current", "last"
    - Absolute months: "2025-05"

    Args:
        month_str: Month string
        today: Reference date for relative months, defaults to today

    Returns:
        The target month

    Raises:
        InvalidPeriod: If the month string cannot be parsed
    """
    month_str = month_str.strip().lower()
    current = YearAndMonth.from_date(today or date.today())

    if month_str == "current":
        return current
    if month_str == "last":
        return current.one_month_earlier()
    return parse_year_and_month(month_str)


def parse_day(date_str: str) -> YearMonthAndDay:
    """Parse the date of an expense.

    ISO dates are preferred; other unambiguous formats such as
    "April 14, 2025" are accepted too.

    Raises:
        InvalidPeriod: If the date string cannot be parsed
    """
    date_str = date_str.strip()
    try:
        parsed = date.fromisoformat(date_str)
    except ValueError:
        try:
            parsed = date_parser.parse(date_str).date()
        except (ValueError, OverflowError) as e:
            raise InvalidPeriod(f"Could not parse date '{date_str}': {e}")
    return YearMonthAndDay.from_date(parsed)
