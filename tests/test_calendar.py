"""Tests for calendar arithmetic."""

from datetime import date
from decimal import Decimal

import pytest

from klirr.domain.calendar import (
    due_date,
    elapsed_periods,
    service_quantity,
    to_date_end_of_period,
    working_days,
)
from klirr.domain.entities import Rate, TimeOff
from klirr.domain.errors import (
    DaysOffExceedsWorkingDays,
    InvalidDay,
    InvalidGranularity,
    InvalidGranularityForTimeOff,
    InvalidRange,
)
from klirr.domain.period import Granularity, YearAndMonth, YearMonthAndDay, YearOnly


class TestWorkingDays:
    @pytest.mark.parametrize(
        "month,expected",
        [
            (YearAndMonth(2025, 2), 20),
            (YearAndMonth(2025, 3), 21),
            (YearAndMonth(2025, 4), 22),
            (YearAndMonth(2025, 5), 22),
            (YearAndMonth(2025, 6), 21),
        ],
    )
    def test_known_months(self, month, expected):
        assert working_days(month) == expected

    def test_every_month_has_between_20_and_23(self):
        for year in (2023, 2024, 2025, 2026):
            for month in range(1, 13):
                assert 20 <= working_days(YearAndMonth(year, month)) <= 23


class TestElapsedPeriods:
    def test_months(self):
        assert elapsed_periods(YearAndMonth(2024, 12), YearAndMonth(2025, 3), Granularity.MONTH) == 3

    def test_same_month_is_zero(self):
        month = YearAndMonth(2025, 3)
        assert elapsed_periods(month, month, Granularity.MONTH) == 0

    def test_additive(self):
        a, b, c = YearAndMonth(2023, 11), YearAndMonth(2024, 6), YearAndMonth(2025, 2)
        assert (
            elapsed_periods(a, b, Granularity.MONTH) + elapsed_periods(b, c, Granularity.MONTH)
            == elapsed_periods(a, c, Granularity.MONTH)
        )

    def test_days_and_years(self):
        assert elapsed_periods(YearMonthAndDay(2025, 2, 27), YearMonthAndDay(2025, 3, 2), Granularity.DAY) == 3
        assert elapsed_periods(YearOnly(2020), YearAndMonth(2025, 1), Granularity.YEAR) == 5

    def test_end_before_start(self):
        with pytest.raises(InvalidRange):
            elapsed_periods(YearAndMonth(2025, 3), YearAndMonth(2025, 2), Granularity.MONTH)

    def test_granularity_finer_than_period(self):
        with pytest.raises(InvalidGranularity):
            elapsed_periods(YearOnly(2024), YearOnly(2025), Granularity.MONTH)


class TestServiceQuantity:
    def test_june_2025_minus_two_days(self):
        assert service_quantity(YearAndMonth(2025, 6), Rate.DAILY, TimeOff.days(2)) == Decimal(19)

    def test_no_days_off(self):
        assert service_quantity(YearAndMonth(2025, 6)) == Decimal(21)

    def test_fractional_days_off(self):
        assert service_quantity(YearAndMonth(2025, 6), Rate.DAILY, TimeOff.days(Decimal("1.5"))) == Decimal("19.5")

    def test_days_off_exceed_working_days(self):
        with pytest.raises(DaysOffExceedsWorkingDays, match="21 working days"):
            service_quantity(YearAndMonth(2025, 6), Rate.DAILY, TimeOff.days(22))

    def test_days_off_above_a_month(self):
        with pytest.raises(InvalidDay):
            service_quantity(YearAndMonth(2025, 6), Rate.DAILY, TimeOff.days(32))

    def test_negative_time_off(self):
        with pytest.raises(InvalidDay):
            TimeOff.days(-1)

    def test_hourly_rate_bills_eight_hours_per_working_day(self):
        assert service_quantity(YearAndMonth(2025, 6), Rate.HOURLY) == Decimal(168)

    def test_hourly_rate_minus_hours_off(self):
        assert service_quantity(YearAndMonth(2025, 6), Rate.HOURLY, TimeOff.hours(4)) == Decimal(164)

    def test_hours_off_exceed_working_hours(self):
        with pytest.raises(DaysOffExceedsWorkingDays):
            service_quantity(YearAndMonth(2025, 6), Rate.HOURLY, TimeOff.hours(169))

    def test_monthly_rate_bills_one_month(self):
        assert service_quantity(YearAndMonth(2025, 2), Rate.MONTHLY) == Decimal(1)

    @pytest.mark.parametrize(
        "rate,time_off",
        [
            (Rate.DAILY, TimeOff.hours(8)),
            (Rate.HOURLY, TimeOff.days(1)),
            (Rate.MONTHLY, TimeOff.days(1)),
            (Rate.MONTHLY, TimeOff.hours(8)),
        ],
    )
    def test_time_off_must_match_rate(self, rate, time_off):
        with pytest.raises(InvalidGranularityForTimeOff):
            service_quantity(YearAndMonth(2025, 6), rate, time_off)


def test_due_date_crosses_month():
    assert due_date(date(2025, 5, 31), 30) == date(2025, 6, 30)


def test_to_date_end_of_period():
    assert to_date_end_of_period(YearAndMonth(2025, 4)) == date(2025, 4, 30)
