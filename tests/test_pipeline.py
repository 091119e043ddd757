"""Tests for the invoice pipeline."""

import json
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from klirr.domain.cancellation import CancellationToken
from klirr.domain.entities import Expenses, Rate, Services, TimeOff
from klirr.domain.errors import (
    Cancelled,
    DaysOffExceedsWorkingDays,
    FoundNoExchangeRate,
    InvalidDataDirectory,
    InvalidGranularityForTimeOff,
    MonthAlreadyExpensed,
    MonthIsOff,
    NoExpensesRecorded,
    OffsetMonthIsOff,
)
from klirr.domain.l18n import Language
from klirr.domain.period import YearAndMonth
from klirr.domain.pipeline import InvoicePipeline, ValidInput, resolve_output_path
from klirr.storage.file_store import FileDataStore

from conftest import set_service_rate

APRIL = YearAndMonth(2025, 4)
MAY = YearAndMonth(2025, 5)


@pytest.fixture
def pipeline(store, fetcher):
    return InvoicePipeline(store, fetcher, sleep=lambda _: None)


class TestServicesInvoice:
    def test_may_after_expensed_april(self, pipeline):
        render_input = pipeline.run(ValidInput(month=MAY))

        assert str(render_input.information.identifier) == "238"
        assert render_input.information.date == date(2025, 5, 31)
        assert render_input.information.due_date == date(2025, 6, 30)
        assert render_input.information.purchase_order == "PO-12345"
        (line,) = render_input.line_items
        assert line.item.name == "Agreed Consulting Fees"
        assert line.item.quantity == Decimal(22)
        assert render_input.grand_total == Decimal("7700.00")
        assert render_input.output_name == "2025-05-31_Lupin_et_Associés_invoice_238.pdf"

    def test_no_rates_needed_in_invoice_currency(self, pipeline, fetcher, data_dir):
        pipeline.run(ValidInput(month=MAY))
        assert fetcher.calls == []
        assert not (data_dir / "cached_rates.json").exists()

    def test_days_off_reduce_quantity(self, pipeline):
        render_input = pipeline.run(ValidInput(month=MAY, items=Services(TimeOff.days(2))))
        assert render_input.line_items[0].item.quantity == Decimal(20)
        assert render_input.grand_total == Decimal("7000.00")

    def test_fractional_days_off(self, pipeline):
        render_input = pipeline.run(ValidInput(month=MAY, items=Services(TimeOff.days(Decimal("0.5")))))
        assert render_input.grand_total == Decimal("7525.00")

    def test_too_many_days_off(self, pipeline):
        with pytest.raises(DaysOffExceedsWorkingDays):
            pipeline.run(ValidInput(month=MAY, items=Services(TimeOff.days(23))))

    def test_hourly_rate_minus_hours_off(self, pipeline, store):
        set_service_rate(store, Rate.HOURLY, "50")
        render_input = pipeline.run(ValidInput(month=MAY, items=Services(TimeOff.hours(16))))
        assert render_input.line_items[0].item.quantity == Decimal(160)
        assert render_input.grand_total == Decimal("8000.00")

    def test_monthly_rate_bills_once(self, pipeline, store):
        set_service_rate(store, Rate.MONTHLY, "9000")
        render_input = pipeline.run(ValidInput(month=MAY))
        assert render_input.line_items[0].item.quantity == Decimal(1)
        assert render_input.grand_total == Decimal("9000.00")

    def test_hours_off_with_daily_rate(self, pipeline):
        with pytest.raises(InvalidGranularityForTimeOff):
            pipeline.run(ValidInput(month=MAY, items=Services(TimeOff.hours(8))))

    def test_offset_month_recorded_as_off(self, pipeline, store):
        information = store.read_information()
        store.write_information(replace(information, months_off=(information.offset.month,)))
        with pytest.raises(OffsetMonthIsOff):
            pipeline.run(ValidInput(month=MAY))


    def test_month_already_expensed(self, pipeline):
        with pytest.raises(MonthAlreadyExpensed):
            pipeline.run(ValidInput(month=APRIL))

    def test_month_off(self, pipeline, store):
        store.write_information(store.read_information().with_month_off(MAY))
        with pytest.raises(MonthIsOff):
            pipeline.run(ValidInput(month=MAY))

    def test_month_off_skips_a_number(self, pipeline, store):
        store.write_information(store.read_information().with_month_off(MAY))
        render_input = pipeline.run(ValidInput(month=YearAndMonth(2025, 6)))
        assert str(render_input.information.identifier) == "238"

    def test_swedish_labels(self, pipeline):
        render_input = pipeline.run(ValidInput(month=MAY, language=Language.SV))
        assert render_input.l18n.invoice_info.title == "Faktura"

    def test_localization_overrides(self, pipeline, data_dir):
        (data_dir / "l18n").mkdir()
        (data_dir / "l18n" / "en.json").write_text(
            json.dumps({"invoice_info": {"title": "Bill"}}), encoding="utf-8"
        )
        render_input = pipeline.run(ValidInput(month=MAY))
        assert render_input.l18n.invoice_info.title == "Bill"


class TestExpensesInvoice:
    def test_converted_to_invoice_currency(self, pipeline, fetcher):
        render_input = pipeline.run(ValidInput(month=APRIL, items=Expenses()))

        assert str(render_input.information.identifier) == "238-E"
        assert [line.total_cost for line in render_input.line_items] == [
            Decimal("13.05"),
            Decimal("10.53"),
            Decimal("7.00"),
        ]
        assert render_input.grand_total == Decimal("30.58")
        assert sorted(fetcher.calls) == [
            (date(2025, 4, 14), "SEK", "EUR"),
            (date(2025, 4, 15), "GBP", "EUR"),
        ]
        assert render_input.output_name == "2025-04-30_Lupin_et_Associés_expenses_invoice_238.pdf"

    def test_rates_are_cached_between_runs(self, store, fetcher):
        InvoicePipeline(store, fetcher).run(ValidInput(month=APRIL, items=Expenses()))
        assert len(store.read_cached_rates()) == 2

        fetcher.calls.clear()
        render_input = InvoicePipeline(store, fetcher).run(ValidInput(month=APRIL, items=Expenses()))
        assert fetcher.calls == []
        assert render_input.grand_total == Decimal("30.58")

    def test_no_expenses_recorded(self, pipeline):
        with pytest.raises(NoExpensesRecorded):
            pipeline.run(ValidInput(month=MAY, items=Expenses()))

    def test_missing_rate_writes_no_cache(self, store, fetcher, data_dir):
        del fetcher.rates[("GBP", "EUR")]
        with pytest.raises(FoundNoExchangeRate):
            InvoicePipeline(store, fetcher).run(ValidInput(month=APRIL, items=Expenses()))
        assert not (data_dir / "cached_rates.json").exists()


def test_cancelled_pipeline_reads_nothing(fetcher, tmp_path):
    token = CancellationToken()
    token.cancel()
    store = FileDataStore(tmp_path / "missing")
    with pytest.raises(Cancelled):
        InvoicePipeline(store, fetcher, cancellation=token).run(ValidInput(month=MAY))


def test_missing_data_directory(fetcher, tmp_path):
    with pytest.raises(InvalidDataDirectory):
        InvoicePipeline(FileDataStore(tmp_path / "missing"), fetcher).run(ValidInput(month=MAY))


class TestOutputPath:
    def test_beside_data_directory(self, tmp_path):
        data_dir = tmp_path / "input" / "data"
        path = resolve_output_path(data_dir, "invoice.pdf")
        assert path == (tmp_path / "input").resolve() / "invoices" / "invoice.pdf"

    def test_explicit_path_wins(self, tmp_path):
        assert resolve_output_path(tmp_path, "invoice.pdf", tmp_path / "out.pdf") == Path(tmp_path / "out.pdf")
